"""
Script to generate a sample claim with scene photos and render its report.
Creates labelled placeholder photos for each guide slot, runs the sharpness
check on them and writes the PDF next to this script.
"""

import asyncio
import io
import os
from datetime import datetime

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from qcar.models import (
    PHOTO_GUIDES,
    ClaimReportInput,
    Incident,
    PartyDetails,
    PersonalInfo,
    PolicyInfo,
    VehicleInfo,
    Witness,
    pair_photos_with_guides,
)
from qcar.plugins import BlurDetector
from qcar.report import ClaimReportComposer

# Slots rendered out of focus so the sharpness check has something to flag
BLURRED_SLOTS = {5}


def create_guide_photo(text, size=(800, 600), bg_color=(200, 200, 200), blur_radius=0):
    """Create a placeholder scene photo with a label and a high-contrast grid."""
    img = Image.new('RGB', size, color=bg_color)
    draw = ImageDraw.Draw(img)

    for x in range(0, size[0], 40):
        draw.line([(x, 0), (x, size[1])], fill=(60, 60, 60), width=2)
    for y in range(0, size[1], 40):
        draw.line([(0, y), (size[0], y)], fill=(60, 60, 60), width=2)

    font = ImageFont.load_default()
    bbox = draw.textbbox((0, 0), text, font=font)
    position = ((size[0] - (bbox[2] - bbox[0])) / 2, (size[1] - (bbox[3] - bbox[1])) / 2)
    draw.rectangle([position[0] - 10, position[1] - 10, position[0] + bbox[2] + 10, position[1] + bbox[3] + 10], fill=(255, 255, 255))
    draw.text(position, text, fill=(20, 20, 20), font=font)

    if blur_radius:
        img = img.filter(ImageFilter.GaussianBlur(blur_radius))

    buffer = io.BytesIO()
    img.save(buffer, 'JPEG', quality=85)
    return buffer.getvalue()


def build_sample_claim():
    """Assemble a claim with all six guide photos attached."""
    images = [
        (f"photo_{guide.id}.jpg", create_guide_photo(
            guide.label,
            bg_color=(150 + guide.id * 15, 180, 210),
            blur_radius=12 if guide.id in BLURRED_SLOTS else 0,
        ))
        for guide in PHOTO_GUIDES
    ]

    return ClaimReportInput(
        claim_id="",
        generated_at=datetime.now(),
        status="submitted",
        incident=Incident(
            location="Corner of Harbour Rd and 3rd St",
            occurred_at=datetime.now().replace(hour=8, minute=15, second=0, microsecond=0),
            weather="Light rain",
            description=(
                "Stopped at a red light when the vehicle behind failed to brake "
                "and struck the rear bumper. Both vehicles were moved to the shoulder."
            ),
        ),
        claimant=PartyDetails(
            personal=PersonalInfo(full_name="Alex Morgan", id_number="S1234567A", phone="555-0100"),
            vehicle=VehicleInfo(plate="SGX 1234 A", make="Toyota", model="Corolla", year=2019, color="Silver"),
            policy=PolicyInfo(number="POL-88341", insurer="Harbour Mutual", coverage_type="Comprehensive"),
        ),
        counterparty=PartyDetails(
            personal=PersonalInfo(full_name="Jordan Lee", phone="555-0177"),
            vehicle=VehicleInfo(plate="SKB 8821 C", make="Honda", model="Civic"),
        ),
        has_witnesses=True,
        witnesses=[Witness(name="Sam Tan", phone="555-0142", statement="The Civic did not slow down.")],
        photos=pair_photos_with_guides(images),
    )


async def main():
    claim = build_sample_claim()

    detector = BlurDetector()
    results = await detector.batch_analyze(
        (index, photo.image_bytes) for index, photo in enumerate(claim.photos, start=1)
    )
    for index, photo in enumerate(claim.photos, start=1):
        result = results[index]
        print(f"{photo.guide_label}: score={result.score} blurry={result.is_blurry} - {result.message}")

    report = await ClaimReportComposer().compose(claim)
    output = os.path.join(os.path.dirname(os.path.abspath(__file__)), report.filename)
    with open(output, 'wb') as f:
        f.write(report.content)
    print(f"Created {output} ({report.page_count} pages)")


if __name__ == "__main__":
    asyncio.run(main())
