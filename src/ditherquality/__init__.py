"""
Dither pattern quality assessment for drizzle integration.

The metrics engine (``ditherquality.metrics``) is pure and stateless. The
session layer collects guider events and republishes results.
"""
from ditherquality.config import DEFAULT_THRESHOLDS, QualityThresholds
from ditherquality.metrics import GapFill, QualityRating, QualityResult, compute_quality
from ditherquality.report import format_report
from ditherquality.session import DitherEvent, DitherSession

__all__ = [
    "DEFAULT_THRESHOLDS",
    "DitherEvent",
    "DitherSession",
    "GapFill",
    "QualityRating",
    "QualityResult",
    "QualityThresholds",
    "compute_quality",
    "format_report",
]
