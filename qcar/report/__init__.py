"""Claim report PDF generation."""

from .claim_report import ClaimReportComposer
from .layout import LayoutCursor

__all__ = [
    'ClaimReportComposer',
    'LayoutCursor'
]
