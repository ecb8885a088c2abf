"""Tests for the claim report PDF composer."""

import asyncio
import io
import logging
from datetime import date, datetime

import pytest
from PIL import Image
from PyPDF2 import PdfReader

from qcar.models import (
    ClaimReportInput,
    Incident,
    LicenseInfo,
    PartyDetails,
    PersonalInfo,
    PolicyInfo,
    ReporterContact,
    VehicleInfo,
    Witness,
    pair_photos_with_guides,
)
from qcar.report import ClaimReportComposer, LayoutCursor
from qcar.report.claim_report import PHOTO_PLACEHOLDER
from qcar.report.formatting import (
    format_date,
    format_datetime,
    generate_claim_id,
    truncate,
    value_or_na,
    witness_summary,
)
from qcar.utils.config import ReportConfig
from qcar.utils.errors import ErrorType, ReportGenerationError
from qcar.utils.logging import ContextFilter, get_context


def _photo(color, size=(320, 240), fmt="JPEG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


def _claim(**overrides) -> ClaimReportInput:
    values = dict(
        claim_id="CLM-TEST01",
        generated_at=datetime(2024, 3, 7, 14, 5, 9),
        status="submitted",
        incident=Incident(
            location="Main St & 5th Ave",
            occurred_at=datetime(2024, 3, 6, 8, 30, 0),
            weather="Rain",
            description="Rear-ended while stopped at a red light.",
        ),
        claimant=PartyDetails(
            personal=PersonalInfo(full_name="Alex Driver", id_number="ID-123", phone="555-0100"),
            vehicle=VehicleInfo(plate="QCR 123", make="Toyota", model="Corolla", year=2019),
            policy=PolicyInfo(number="POL-9", insurer="Acme Mutual"),
        ),
    )
    values.update(overrides)
    return ClaimReportInput(**values)


def _pages(content: bytes):
    reader = PdfReader(io.BytesIO(content))
    return [page.extract_text() or "" for page in reader.pages]


def _compose(claim, config=None):
    return asyncio.run(ClaimReportComposer(config).compose(claim))


# Formatting helpers

def test_value_or_na():
    assert value_or_na(None) == "N/A"
    assert value_or_na("") == "N/A"
    assert value_or_na("   ") == "N/A"
    assert value_or_na(2019) == "2019"
    assert value_or_na(" Corolla ") == "Corolla"


def test_truncate_rule():
    assert truncate("a" * 25) == "a" * 25
    assert truncate("a" * 26) == "a" * 22 + "..."
    assert truncate("742 Evergreen Terrace, Springfield") == "742 Evergreen Terrace,..."


def test_date_formatting():
    assert format_date(None) == "N/A"
    assert format_date("") == "N/A"
    assert format_date("1990-04-02") == "4/2/1990"
    assert format_date(date(2024, 12, 31)) == "12/31/2024"
    assert format_date("sometime last year") == "sometime last year"
    assert format_datetime(datetime(2024, 3, 7, 14, 5, 9)) == "3/7/2024, 2:05:09 PM"
    assert format_datetime(datetime(2024, 3, 7, 0, 0, 0)) == "3/7/2024, 12:00:00 AM"


def test_witness_summary():
    assert witness_summary(0) == "None"
    assert witness_summary(1) == "1 witness"
    assert witness_summary(2) == "2 witnesses"


def test_generated_claim_id():
    claim_id = generate_claim_id(datetime(2024, 3, 7, 14, 5, 9))
    assert claim_id.startswith("CLM-")
    assert claim_id[4:].isalnum() and claim_id[4:].isupper()


# Photo pairing

def test_photos_are_paired_with_guides_by_position():
    photos = pair_photos_with_guides([b"A", b"B", ("scene.png", b"C")])
    assert [p.guide_label for p in photos] == ["Front Damage", "Rear Damage", "Driver Side"]
    assert [p.image_bytes for p in photos] == [b"A", b"B", b"C"]
    assert photos[2].filename == "scene.png"


def test_pairing_rejects_more_than_six_photos():
    with pytest.raises(ValueError):
        pair_photos_with_guides([b"x"] * 7)


# Layout

def test_layout_cursor_breaks_page_when_block_would_overflow():
    layout = LayoutCursor(margin=20)
    layout.y = layout.page_height - 30

    assert layout.ensure_space(5) is False
    assert layout.page_count == 1
    assert layout.ensure_space(15) is True
    assert layout.page_count == 2
    assert layout.y == 20
    assert layout.finish().startswith(b"%PDF")


def test_long_paragraph_flows_onto_new_pages():
    layout = LayoutCursor()
    lines = layout.paragraph("word " * 3000)
    assert lines > 60
    assert layout.page_count > 1


# Composer

def test_report_structure_and_header():
    report = _compose(_claim())
    pages = _pages(report.content)

    assert report.content.startswith(b"%PDF")
    assert report.page_count == len(pages)
    assert report.claim_id == "CLM-TEST01"
    assert report.filename == "QCAR-Claim-2024-03-07.pdf"

    first = pages[0]
    assert "QCAR" in first
    assert "Report ID: CLM-TEST01" in first
    assert "SUBMITTED" in first
    assert "INCIDENT DETAILS" in first
    assert "CLAIMANT DETAILS" in first
    assert "Alex Driver" in "\n".join(pages)

    summary = pages[-1]
    assert "CLAIM SUMMARY" in summary
    assert "Quick Reference Card - Claim ID: CLM-TEST01" in summary
    assert "Please retain this report for your records." in summary


def test_missing_values_render_as_na():
    claim = _claim(claimant=PartyDetails(), incident=Incident())
    text = "\n".join(_pages(_compose(claim).content))

    assert "N/A" in text
    assert "No description provided" in text


def test_download_filename_uses_brand_and_claim_date():
    assert _compose(_claim()).filename == "QCAR-Claim-2024-03-07.pdf"

    report = _compose(_claim(), ReportConfig(brand="Acme"))
    assert report.filename == "Acme-Claim-2024-03-07.pdf"
    assert "Acme" in _pages(report.content)[0]


def test_empty_claim_id_is_generated():
    report = _compose(_claim(claim_id=""))
    assert report.claim_id.startswith("CLM-")
    assert f"Report ID: {report.claim_id}" in _pages(report.content)[0]


def test_counterparty_requires_a_name():
    unnamed = PartyDetails(vehicle=VehicleInfo(plate="ZZZ 999"))
    text = "\n".join(_pages(_compose(_claim(counterparty=unnamed)).content))
    assert "THIRD PARTY DETAILS" not in text

    named = PartyDetails(personal=PersonalInfo(full_name="Sam Other"))
    text = "\n".join(_pages(_compose(_claim(counterparty=named)).content))
    assert "THIRD PARTY DETAILS" in text
    assert "Sam Other" in text


def test_named_counterparty_fills_every_missing_field_with_na():
    full = PartyDetails(
        personal=PersonalInfo(
            full_name="Sam Other", id_number="ID-900", gender="F",
            date_of_birth="1990-04-02", phone="555-0142", address="12 Elm St",
        ),
        license=LicenseInfo(number="DL-77", year_of_issue=2015, expiry="2030-01-31"),
        vehicle=VehicleInfo(
            plate="ZZZ 999", make="Honda", model="Civic", year=2019,
            color="Blue", vin="1HGCM82633A004352", vehicle_type="Sedan",
        ),
        policy=PolicyInfo(
            number="POL-5", insurer="Acme Mutual", coverage_type="Full",
            valid_from="2024-01-01", valid_until="2025-01-01",
            holder_name="Sam Other", holder_id="H-5", agent_name="Lee",
        ),
    )
    name_only = PartyDetails(personal=PersonalInfo(full_name="Sam Other"))

    full_text = "\n".join(_pages(_compose(_claim(counterparty=full)).content))
    sparse_text = "\n".join(_pages(_compose(_claim(counterparty=name_only)).content))

    assert "THIRD PARTY DETAILS" in sparse_text
    # 23 detail fields in the section plus 5 rows in the summary box
    assert sparse_text.count("N/A") - full_text.count("N/A") == 28


def test_reporter_section_is_optional():
    text = "\n".join(_pages(_compose(_claim()).content))
    assert "REPORTER CONTACT INFORMATION" not in text

    reporter = ReporterContact(name="Pat Guest", phone="555-0199")
    text = "\n".join(_pages(_compose(_claim(reporter=reporter)).content))
    assert "REPORTER CONTACT INFORMATION" in text
    assert "Not provided" in text


@pytest.mark.parametrize("has_witnesses,witnesses", [
    (False, [Witness(name="Jane", statement="I saw it")]),
    (True, [Witness(name=""), Witness(name="  ")]),
    (True, []),
])
def test_witness_section_omitted(has_witnesses, witnesses):
    claim = _claim(has_witnesses=has_witnesses, witnesses=witnesses)
    text = "\n".join(_pages(_compose(claim).content))

    assert "WITNESS INFORMATION" not in text
    assert "Witness 1" not in text
    assert claim.witness_count() == 0


def test_only_named_witnesses_are_included():
    claim = _claim(
        has_witnesses=True,
        witnesses=[
            Witness(name="Jane", phone="555-0142", statement="The blue car ran the light."),
            Witness(name="", phone="555-0000"),
        ],
    )
    text = "\n".join(_pages(_compose(claim).content))

    assert "WITNESS INFORMATION" in text
    assert "Witness 1" in text
    assert "Witness 2" not in text
    assert '"The blue car ran the light."' in text
    assert "1 witness" in text


def test_too_many_witnesses_rejected():
    with pytest.raises(ValueError):
        _claim(witnesses=[Witness(name="a"), Witness(name="b"), Witness(name="c")])


def test_no_photos_page_without_photos():
    report = _compose(_claim())
    text = "\n".join(_pages(report.content))

    assert "SCENE PHOTOGRAPHS" not in text
    assert report.photo_slots == []
    assert "0 attached" in text


def test_photo_labels_follow_position():
    photos = pair_photos_with_guides([
        _photo((200, 30, 30)),
        _photo((30, 200, 30), fmt="PNG"),
        _photo((30, 30, 200)),
    ])
    report = _compose(_claim(photos=photos))

    assert [(s.position, s.label) for s in report.photo_slots] == [
        (1, "Front Damage"),
        (2, "Rear Damage"),
        (3, "Driver Side"),
    ]
    assert report.embedded_count == 3
    assert report.warnings == []

    pages = _pages(report.content)
    photo_text = next(p for p in pages if "SCENE PHOTOGRAPHS" in p)
    assert "3 Photos Attached" in photo_text
    assert (
        photo_text.index("Front Damage")
        < photo_text.index("Rear Damage")
        < photo_text.index("Driver Side")
    )


def test_one_bad_photo_does_not_abort_report():
    photos = pair_photos_with_guides([
        _photo((200, 30, 30)),
        b"definitely not an image",
        _photo((30, 30, 200)),
    ])
    report = _compose(_claim(photos=photos))

    assert [s.embedded for s in report.photo_slots] == [True, False, True]
    assert [s.label for s in report.photo_slots] == ["Front Damage", "Rear Damage", "Driver Side"]
    assert len(report.warnings) == 1
    assert "Rear Damage" in report.warnings[0]

    text = "\n".join(_pages(report.content))
    assert text.count(PHOTO_PLACEHOLDER) == 1
    assert "CLAIM SUMMARY" in text


def test_embed_failure_simulated_in_conversion(monkeypatch):
    from qcar.report import claim_report

    real = claim_report.to_embeddable
    calls = []

    def flaky(image_bytes):
        calls.append(image_bytes)
        if image_bytes == b"second":
            raise OSError("conversion failed")
        return real(_photo((120, 120, 120)))

    monkeypatch.setattr(claim_report, "to_embeddable", flaky)
    photos = pair_photos_with_guides([b"first", b"second", b"third"])
    report = _compose(_claim(photos=photos))

    assert len(calls) == 3
    assert [s.embedded for s in report.photo_slots] == [True, False, True]


def test_conversion_errors_become_photo_embed_failures():
    from qcar.report.image_embed import to_embeddable
    from qcar.utils.errors import handle_embed_error

    with pytest.raises(ValueError):
        to_embeddable(b"")
    with pytest.raises(OSError) as exc_info:
        to_embeddable(b"definitely not an image")

    wrapped = handle_embed_error(exc_info.value, 2, "Rear Damage", logging.getLogger("qcar.test"))
    assert isinstance(wrapped, ReportGenerationError)
    assert wrapped.context.error_type == ErrorType.PHOTO_EMBED_FAILED
    assert wrapped.recoverable is True


def test_six_photos_span_multiple_pages():
    photos = pair_photos_with_guides([_photo((i * 40, 100, 100)) for i in range(6)])
    report = _compose(_claim(photos=photos))
    pages = _pages(report.content)

    assert report.embedded_count == 6
    assert [s.label for s in report.photo_slots][-1] == "Wide Shot"
    assert "Wide Shot" in "\n".join(pages)
    assert sum(1 for p in pages if "Front Damage" in p or "Wide Shot" in p) >= 2


def test_summary_values_are_truncated():
    incident = Incident(location="742 Evergreen Terrace, Springfield", weather="Clear")
    report = _compose(_claim(incident=incident))
    summary = _pages(report.content)[-1]

    assert "742 Evergreen Terrace,..." in summary
    assert "742 Evergreen Terrace, Springfield" not in summary


def test_unknown_page_size_raises_render_error():
    with pytest.raises(ReportGenerationError) as exc_info:
        _compose(_claim(), ReportConfig(page_size="NOT_A_PAGE"))
    assert exc_info.value.context.error_type == ErrorType.REPORT_RENDER_FAILED
    assert exc_info.value.recoverable is False


@pytest.mark.asyncio
async def test_concurrent_reports_are_independent():
    composer = ClaimReportComposer()
    first, second = await asyncio.gather(
        composer.compose(_claim(claim_id="CLM-A")),
        composer.compose(_claim(claim_id="CLM-B", photos=pair_photos_with_guides([_photo((9, 9, 9))]))),
    )

    assert "Report ID: CLM-A" in _pages(first.content)[0]
    assert "Report ID: CLM-B" in _pages(second.content)[0]
    assert first.photo_slots == []
    assert len(second.photo_slots) == 1



@pytest.mark.asyncio
async def test_concurrent_reports_tag_their_own_log_records():
    records = []

    class Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    composers = [ClaimReportComposer(), ClaimReportComposer()]
    handler = Collect()
    handler.addFilter(ContextFilter())
    composer_logger = logging.getLogger("qcar.report.claim_report")
    previous_level = composer_logger.level
    composer_logger.addHandler(handler)
    composer_logger.setLevel(logging.INFO)
    try:
        photos_a = pair_photos_with_guides([_photo((i * 40, 0, 0)) for i in range(5)] + [b"corrupt"])
        photos_b = pair_photos_with_guides([_photo((9, 9, 9))])
        await asyncio.gather(
            composers[0].compose(_claim(claim_id="CLM-A", photos=photos_a)),
            composers[1].compose(_claim(claim_id="CLM-B", photos=photos_b)),
        )
    finally:
        composer_logger.removeHandler(handler)
        composer_logger.setLevel(previous_level)

    tagged = {}
    for record in records:
        tagged.setdefault(getattr(record, "claim_id", None), []).append(record.getMessage())
    assert set(tagged) == {"CLM-A", "CLM-B"}
    assert all("CLM-B" not in message for message in tagged["CLM-A"])
    assert all("CLM-A" not in message for message in tagged["CLM-B"])
    assert any(message.startswith("Report CLM-A complete") for message in tagged["CLM-A"])
    assert any(message.startswith("Report CLM-B complete") for message in tagged["CLM-B"])
    assert get_context() == {}


def test_sample_claim_script_renders():
    import runpy

    script = runpy.run_path("data/sample_claims/create_sample_claim.py")
    claim = script["build_sample_claim"]()
    report = _compose(claim)

    assert report.embedded_count == 6
    assert claim.includes_counterparty()
    assert "THIRD PARTY DETAILS" in "\n".join(_pages(report.content))
