"""Data models for claim reports and photo quality checks."""

from .claim import (
    PHOTO_GUIDES,
    ClaimPhoto,
    ClaimReportInput,
    Incident,
    LicenseInfo,
    PartyDetails,
    PersonalInfo,
    PhotoGuide,
    PolicyInfo,
    ReporterContact,
    VehicleInfo,
    Witness,
    pair_photos_with_guides,
)
from .report import PhotoSlot, RenderedReport
from .sharpness import Analyzed, SharpnessResult, Unanalyzable

__all__ = [
    "PHOTO_GUIDES",
    "ClaimPhoto",
    "ClaimReportInput",
    "Incident",
    "LicenseInfo",
    "PartyDetails",
    "PersonalInfo",
    "PhotoGuide",
    "PolicyInfo",
    "ReporterContact",
    "VehicleInfo",
    "Witness",
    "pair_photos_with_guides",
    "PhotoSlot",
    "RenderedReport",
    "Analyzed",
    "SharpnessResult",
    "Unanalyzable",
]
