"""Rendered report data models."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional


@dataclass(frozen=True)
class PhotoSlot:
    """
    Outcome of placing one photo in the report.

    Attributes:
        position: 1-based position in the photos section
        label: Guide label printed beside the photo
        embedded: False when the placeholder text was drawn instead
    """
    position: int
    label: str
    embedded: bool


@dataclass
class RenderedReport:
    """
    A finished claim report.

    Attributes:
        content: PDF bytes
        claim_id: Claim identifier printed in the report
        page_count: Number of pages emitted
        photo_slots: One entry per photo position, in order
        warnings: Absorbed per-photo failures
        report_date: Date used for the download filename
        brand: Brand prefix of the download filename
    """
    content: bytes
    claim_id: str
    page_count: int
    photo_slots: List[PhotoSlot] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    report_date: Optional[date] = None
    brand: str = "QCAR"

    @property
    def filename(self) -> str:
        day = self.report_date or date.today()
        return f"{self.brand}-Claim-{day.isoformat()}.pdf"

    @property
    def embedded_count(self) -> int:
        return sum(1 for slot in self.photo_slots if slot.embedded)
