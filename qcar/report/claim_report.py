"""Claim report PDF composer."""

import asyncio
import logging
import time
from typing import List, Optional, Sequence, Tuple, Union

from reportlab.lib.utils import ImageReader

from ..models.claim import ClaimPhoto, ClaimReportInput, PartyDetails, ReporterContact
from ..models.report import PhotoSlot, RenderedReport
from ..utils.config import ReportConfig
from ..utils.errors import ClaimsProcessingError, ReportGenerationError, handle_embed_error
from ..utils.logging import log_context
from .formatting import (
    format_date,
    format_datetime,
    generate_claim_id,
    truncate,
    value_or_na,
    witness_summary,
)
from .image_embed import to_embeddable
from .layout import FONT_BOLD, FONT_ITALIC, FONT_NORMAL, RGB, LayoutCursor

logger = logging.getLogger(__name__)

GOLD: RGB = (245, 197, 24)
BLUE: RGB = (66, 135, 245)
RED: RGB = (220, 53, 69)
PURPLE: RGB = (75, 0, 130)
GREY: RGB = (100, 100, 100)
GREEN: RGB = (34, 139, 34)

PHOTO_PLACEHOLDER = "[Photo could not be embedded]"

EmbedResult = Union[ImageReader, ReportGenerationError]


class ClaimReportComposer:
    """
    Renders a ClaimReportInput into a multi-page PDF.

    Section order is fixed: header, status box, incident, claimant,
    third party, reporter, witnesses, photos (own page), summary (own page).
    Optional sections are skipped when their data is absent. A photo that
    cannot be converted is replaced by placeholder text; the rest of the
    report is still produced.
    """

    def __init__(self, config: Optional[ReportConfig] = None):
        """
        Initialize report composer.

        Args:
            config: Layout settings; defaults when omitted
        """
        self.config = config or ReportConfig()
        logger.info(f"Initialized ClaimReportComposer: brand={self.config.brand}, page={self.config.page_size}")

    async def compose(self, claim: ClaimReportInput) -> RenderedReport:
        """
        Render a claim report.

        Args:
            claim: Fully assembled claim data

        Returns:
            RenderedReport with the PDF bytes and per-photo outcomes

        Raises:
            ReportGenerationError: If the document itself cannot be rendered
        """
        claim_id = claim.claim_id or generate_claim_id(claim.generated_at)
        with log_context(claim_id=claim_id):
            start_time = time.time()
            logger.info(f"Composing report {claim_id}: {len(claim.photos)} photos")

            embedded = await self._embed_photos(claim.photos)

            try:
                layout = LayoutCursor(
                    page_size=self.config.page_size,
                    margin=self.config.margin_mm,
                    compress=self.config.compress,
                )
                self._draw_header(layout, claim, claim_id)
                self._draw_status(layout, claim)
                self._draw_incident(layout, claim)
                self._draw_party(layout, "CLAIMANT DETAILS", claim.claimant, BLUE)
                if claim.includes_counterparty():
                    self._draw_party(layout, "THIRD PARTY DETAILS", claim.counterparty, RED)
                if claim.reporter is not None:
                    self._draw_reporter(layout, claim.reporter)
                self._draw_witnesses(layout, claim)
                slots, warnings = self._draw_photos(layout, claim.photos, embedded)
                self._draw_summary(layout, claim, claim_id)
                content = layout.finish()
            except ClaimsProcessingError:
                raise
            except Exception as e:
                logger.error(f"Report rendering failed: {str(e)}", exc_info=True)
                raise ReportGenerationError.render_failed(claim_id, e) from e

            logger.info(
                f"Report {claim_id} complete: {layout.page_count} pages, "
                f"{len(content)} bytes, {len(warnings)} warnings in {time.time() - start_time:.3f}s"
            )
            return RenderedReport(
                content=content,
                claim_id=claim_id,
                page_count=layout.page_count,
                photo_slots=slots,
                warnings=warnings,
                report_date=claim.generated_at.date(),
                brand=self.config.brand,
            )

    async def _embed_photos(self, photos: Sequence[ClaimPhoto]) -> List[EmbedResult]:
        """Convert every photo concurrently; failures are kept in place."""
        results = await asyncio.gather(
            *(asyncio.to_thread(to_embeddable, photo.image_bytes) for photo in photos),
            return_exceptions=True,
        )
        outcomes: List[EmbedResult] = []
        for position, (photo, result) in enumerate(zip(photos, results), start=1):
            if isinstance(result, Exception):
                outcomes.append(handle_embed_error(result, position, photo.guide_label, logger))
            else:
                outcomes.append(result)
        return outcomes

    # Sections

    def _draw_header(self, layout: LayoutCursor, claim: ClaimReportInput, claim_id: str) -> None:
        width = layout.page_width
        layout.band(35, GOLD)
        layout.text(self.config.brand, 20, 18, font=FONT_BOLD, size=24, color=(0, 0, 0))
        layout.text(self.config.title, 20, 28, font=FONT_NORMAL, size=14, color=(0, 0, 0))
        layout.text(f"Report ID: {claim_id}", width - 20, 18, size=10, color=(40, 40, 40), align="right")
        layout.text(
            f"Generated: {format_date(claim.generated_at)}",
            width - 20, 26, size=10, color=(40, 40, 40), align="right",
        )
        layout.y = 50

    def _draw_status(self, layout: LayoutCursor, claim: ClaimReportInput) -> None:
        top = layout.y
        layout.rect(15, top - 5, layout.page_width - 30, 25, fill=(240, 240, 240), radius=3)

        status = (claim.status or "draft").strip() or "draft"
        status_color = GREEN if status.lower() == "submitted" else GREY
        layout.text("CLAIM STATUS:", 20, top + 5, font=FONT_BOLD, size=10, color=(50, 50, 50))
        layout.text(status.upper(), 70, top + 5, font=FONT_BOLD, size=10, color=status_color)
        layout.text("DATE FILED:", 120, top + 5, font=FONT_BOLD, size=10, color=(50, 50, 50))
        layout.text(
            format_date(claim.filed_at or claim.generated_at),
            155, top + 5, font=FONT_NORMAL, size=10, color=(50, 50, 50),
        )
        layout.advance(35)

    def _draw_incident(self, layout: LayoutCursor, claim: ClaimReportInput) -> None:
        incident = claim.incident
        layout.section_header("INCIDENT DETAILS", GOLD)
        layout.two_column_row(
            "Location", value_or_na(incident.location),
            "Date & Time", format_datetime(incident.occurred_at),
        )
        layout.info_row("Weather Conditions", value_or_na(incident.weather))
        layout.advance(5)

        layout.field_label("Description of Incident:")
        description = (incident.description or "").strip() or "No description provided"
        layout.paragraph(description)
        layout.advance(10)

    def _draw_party(self, layout: LayoutCursor, title: str, party: PartyDetails, color: RGB) -> None:
        personal = party.personal
        license_info = party.license
        vehicle = party.vehicle
        policy = party.policy

        layout.section_header(title, color)

        layout.subheading("Personal Information", color)
        layout.two_column_row("Full Name", value_or_na(personal.full_name), "ID Number", value_or_na(personal.id_number))
        layout.two_column_row("Gender", value_or_na(personal.gender), "Date of Birth", format_date(personal.date_of_birth))
        layout.two_column_row("Phone", value_or_na(personal.phone), "Address", value_or_na(personal.address))
        layout.advance(5)

        layout.subheading("Driver's License", color)
        layout.two_column_row(
            "License Number", value_or_na(license_info.number),
            "Year of Issue", value_or_na(license_info.year_of_issue),
        )
        layout.info_row("License Expiry", format_date(license_info.expiry))
        layout.advance(5)

        layout.subheading("Vehicle Information", color)
        layout.two_column_row("Vehicle Number", value_or_na(vehicle.plate), "Vehicle Type", value_or_na(vehicle.vehicle_type))
        layout.two_column_row("Make", value_or_na(vehicle.make), "Model", value_or_na(vehicle.model))
        layout.two_column_row("Year", value_or_na(vehicle.year), "Color", value_or_na(vehicle.color))
        layout.info_row("VIN", value_or_na(vehicle.vin))
        layout.advance(5)

        layout.subheading("Insurance Policy", color)
        layout.two_column_row("Policy Number", value_or_na(policy.number), "Insurance Company", value_or_na(policy.insurer))
        layout.two_column_row("Policyholder Name", value_or_na(policy.holder_name), "Policyholder ID", value_or_na(policy.holder_id))
        layout.two_column_row("Coverage Type", value_or_na(policy.coverage_type), "Agent Name", value_or_na(policy.agent_name))
        layout.two_column_row("Valid From", format_date(policy.valid_from), "Valid Until", format_date(policy.valid_until))
        layout.advance(10)

    def _draw_reporter(self, layout: LayoutCursor, reporter: ReporterContact) -> None:
        layout.section_header("REPORTER CONTACT INFORMATION", GREY)
        layout.two_column_row("Name", value_or_na(reporter.name), "Phone", value_or_na(reporter.phone))
        layout.info_row("Email", (reporter.email or "").strip() or "Not provided")
        layout.advance(10)

    def _draw_witnesses(self, layout: LayoutCursor, claim: ClaimReportInput) -> None:
        witnesses = claim.included_witnesses()
        if not witnesses:
            return

        layout.ensure_space(60)
        layout.section_header("WITNESS INFORMATION", PURPLE)

        for index, (slot, witness) in enumerate(witnesses):
            if index > 0:
                layout.ensure_space(40)
            layout.subheading(f"Witness {slot}", PURPLE)
            layout.two_column_row("Full Name", witness.name.strip(), "Phone", value_or_na(witness.phone))
            layout.info_row("Address", value_or_na(witness.address))

            statement = (witness.statement or "").strip()
            if statement:
                layout.field_label("Statement:")
                layout.paragraph(f'"{statement}"', font=FONT_ITALIC, color=(50, 50, 50))
            layout.advance(5)
        layout.advance(5)

    def _draw_photos(
        self,
        layout: LayoutCursor,
        photos: Sequence[ClaimPhoto],
        embedded: Sequence[EmbedResult]
    ) -> Tuple[List[PhotoSlot], List[str]]:
        """Photos page; labels come from the photo pairing, never from position here."""
        slots: List[PhotoSlot] = []
        warnings: List[str] = []
        if not photos:
            return slots, warnings

        photo_w = self.config.photo_width_mm
        photo_h = self.config.photo_height_mm

        layout.new_page()
        layout.band(25, GOLD)
        layout.text("SCENE PHOTOGRAPHS", 20, 16, font=FONT_BOLD, size=16, color=(0, 0, 0))
        layout.text(
            f"{len(photos)} Photos Attached",
            layout.page_width - 20, 16, font=FONT_BOLD, size=10, color=(0, 0, 0), align="right",
        )
        layout.y = 40

        for position, (photo, result) in enumerate(zip(photos, embedded), start=1):
            if layout.y > layout.page_height - (photo_h + 30):
                layout.new_page()

            # Number badge and guide label
            layout.circle(25, layout.y + 3, 4, fill=BLUE)
            layout.text(str(position), 25, layout.y + 4.5, size=8, color=(255, 255, 255), align="center")
            layout.text(photo.guide_label, 35, layout.y + 5, font=FONT_BOLD, size=11, color=(40, 40, 40))
            layout.advance(12)

            if isinstance(result, ReportGenerationError):
                layout.text(PHOTO_PLACEHOLDER, 20, layout.y + 10, size=9, color=(150, 150, 150))
                layout.advance(20)
                slots.append(PhotoSlot(position=position, label=photo.guide_label, embedded=False))
                warnings.append(str(result))
                continue

            layout.rect(19, layout.y - 1, photo_w + 2, photo_h + 2, stroke=(200, 200, 200), line_width=0.5)
            layout.image(result, 20, layout.y, photo_w, photo_h)
            layout.advance(photo_h + 10)
            slots.append(PhotoSlot(position=position, label=photo.guide_label, embedded=True))

        return slots, warnings

    def _draw_summary(self, layout: LayoutCursor, claim: ClaimReportInput, claim_id: str) -> None:
        width = layout.page_width
        limit = self.config.summary_truncate

        layout.new_page()
        layout.band(45, GOLD)
        layout.text("CLAIM SUMMARY", width / 2, 20, font=FONT_BOLD, size=20, color=(0, 0, 0), align="center")
        layout.text(
            f"Quick Reference Card - Claim ID: {claim_id}",
            width / 2, 32, font=FONT_NORMAL, size=10, color=(0, 0, 0), align="center",
        )
        layout.y = 60

        def party_items(party: Optional[PartyDetails]) -> List[Tuple[str, str]]:
            party = party or PartyDetails()
            return [
                ("Name", value_or_na(party.personal.full_name)),
                ("ID Number", value_or_na(party.personal.id_number)),
                ("Phone", value_or_na(party.personal.phone)),
                ("Vehicle", value_or_na(party.vehicle.plate)),
                ("Policy #", value_or_na(party.policy.number)),
                ("Insurance", value_or_na(party.policy.insurer)),
            ]

        incident_items = [
            ("Location", value_or_na(claim.incident.location)),
            ("Date/Time", format_datetime(claim.incident.occurred_at)),
            ("Weather", value_or_na(claim.incident.weather)),
            ("Photos", f"{len(claim.photos)} attached"),
            ("Witnesses", witness_summary(claim.witness_count())),
            ("Status", ((claim.status or "").strip() or "draft").upper()),
        ]

        column = (width - 50) / 3
        boxes = [
            ("CLAIMANT", party_items(claim.claimant), 15, BLUE),
            ("THIRD PARTY", party_items(claim.counterparty), 20 + column, RED),
            ("INCIDENT", incident_items, 25 + column * 2, GOLD),
        ]
        for title, items, x, color in boxes:
            shortened = [(label, truncate(value, limit)) for label, value in items]
            layout.key_value_box(title, shortened, x, column, color)

        footer_y = layout.page_height - 30
        layout.line(20, footer_y, width - 20, footer_y, color=(200, 200, 200))
        layout.text(
            f"This document was generated by {self.config.brand} Insurance Claims System.",
            width / 2, footer_y + 10, size=8, color=(120, 120, 120), align="center",
        )
        layout.text(
            "Please retain this report for your records.",
            width / 2, footer_y + 16, size=8, color=(120, 120, 120), align="center",
        )
