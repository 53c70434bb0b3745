"""
Aggregation and rating of the dither quality metrics.

``compute_quality`` is the engine entry point. It drives every leaf
computation on one snapshot of positions and returns an immutable
``QualityResult``. It is referentially transparent: no state, no I/O, safe to
call from any thread.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
import logging
from typing import Iterable

from ditherquality.config import DEFAULT_PIXFRAC, DEFAULT_THRESHOLDS, MIN_POSITIONS, QualityThresholds
from ditherquality.metrics.discrepancy import centered_l2_discrepancy
from ditherquality.metrics.gap_fill import GapFill, check_pixfrac, gap_fill_metrics
from ditherquality.metrics.neighbors import nearest_neighbor_distances, nearest_neighbor_index, voronoi_cv
from ditherquality.metrics.normalize import fractional_positions

logger = logging.getLogger(__name__)

# Combined score weights: global uniformity, 2x coverage, local uniformity
WEIGHT_DISCREPANCY: float = 0.35
WEIGHT_GAP_FILL: float = 0.45
WEIGHT_VORONOI: float = 0.20

# Metric values that map to a zero contribution
DISCREPANCY_NORMALIZER: float = 0.20
VORONOI_CV_NORMALIZER: float = 0.60


class QualityRating(StrEnum):
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    ACCEPTABLE = "Acceptable"
    FAIR = "Fair"
    POOR = "Poor"
    INSUFFICIENT_DATA = "Insufficient Data"


RECOMMENDATIONS: dict[QualityRating, str] = {
    QualityRating.EXCELLENT: "Professional-grade dither pattern. Suitable for all drizzle scales including 3×.",
    QualityRating.VERY_GOOD: "High-quality pattern suitable for demanding astrophotography. Recommended for 2× drizzle.",
    QualityRating.GOOD: "Solid pattern. Suitable for 1× and 2× drizzle with minor residual gaps.",
    QualityRating.ACCEPTABLE: "Standard quality pattern. Suitable for 1× and moderate 2× drizzle.",
    QualityRating.FAIR: "Suboptimal pattern. Consider increasing dither count or improving distribution.",
    QualityRating.POOR: "Insufficient dither quality. Expect visible artifacts in drizzled output. Add more exposures.",
    QualityRating.INSUFFICIENT_DATA: f"At least {MIN_POSITIONS} dither positions required for quality assessment",
}

_TIER_RATINGS: dict[str, QualityRating] = {
    "excellent": QualityRating.EXCELLENT,
    "very_good": QualityRating.VERY_GOOD,
    "good": QualityRating.GOOD,
    "acceptable": QualityRating.ACCEPTABLE,
    "fair": QualityRating.FAIR,
}


@dataclass(frozen=True)
class QualityResult:
    """
    Complete quality assessment of one point set.

    Numeric fields are 0 for an ``INSUFFICIENT_DATA`` result.
    """
    centered_l2_discrepancy: float = 0.0
    gap_fill: GapFill = field(default_factory=GapFill)
    voronoi_cv: float = 0.0
    nearest_neighbor_index: float = 0.0
    combined_score: float = 0.0
    quality_rating: QualityRating = QualityRating.INSUFFICIENT_DATA
    recommendation: str = RECOMMENDATIONS[QualityRating.INSUFFICIENT_DATA]
    total_positions: int = 0

    @property
    def is_sufficient(self) -> bool:
        return self.quality_rating is not QualityRating.INSUFFICIENT_DATA


def combined_score(discrepancy: float, gap_fill_2x: float, cv: float) -> float:
    """
    Weighted score in [0, 1], higher is better.

    Args:
        discrepancy: Centered L2 discrepancy.
        gap_fill_2x: Gap-fill coverage at 2x drizzle.
        cv: Voronoi CV proxy.
    """
    cd_score = 1.0 - min(1.0, discrepancy / DISCREPANCY_NORMALIZER)
    cv_score = 1.0 - min(1.0, cv / VORONOI_CV_NORMALIZER)
    score = (
        WEIGHT_DISCREPANCY * cd_score
        + WEIGHT_GAP_FILL * gap_fill_2x
        + WEIGHT_VORONOI * cv_score
    )
    return min(1.0, max(0.0, score))


def rate_score(score: float, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> QualityRating:
    """Map a combined score onto the rating ladder."""
    for tier, minimum in thresholds.score_ladder():
        if score >= minimum:
            return _TIER_RATINGS[tier]
    return QualityRating.POOR


def build_recommendation(
    rating: QualityRating,
    discrepancy: float,
    gap_fill_2x: float,
    score: float,
    n: int,
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
) -> str:
    """
    Tier recommendation followed by any warnings that apply.

    Clustering, coverage and dither-count notes are checked independently
    and appended in that order.
    """
    parts = [RECOMMENDATIONS[rating]]

    if discrepancy > thresholds.cd_high_warning:
        parts.append(f"WARNING: High clustering detected (CD > {thresholds.cd_high_warning:.2f}).")
    elif discrepancy > thresholds.cd_moderate_warning:
        parts.append(f"WARNING: Moderate clustering detected (CD > {thresholds.cd_moderate_warning:.2f}).")

    if gap_fill_2x < thresholds.coverage_warning_2x:
        parts.append("WARNING: Insufficient coverage for 2× drizzle.")

    if n < thresholds.few_positions and score < thresholds.few_positions_score:
        parts.append(f"Consider increasing dither count (current: {n}).")

    return " ".join(parts)


def compute_quality(
    positions: Iterable[tuple[float, float]],
    pixfrac: float = DEFAULT_PIXFRAC,
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
) -> QualityResult:
    """
    Assess how well a set of dither positions samples the sub-pixel grid.

    Args:
        positions: Cumulative (x, y) pixel offsets. Must be finite.
        pixfrac: Drizzle drop fraction in (0, 1].
        thresholds: Rating policy. Affects rating and recommendation only.

    Returns:
        A fresh ``QualityResult``. Fewer than 4 positions give the
        ``INSUFFICIENT_DATA`` sentinel rather than an error.

    Raises:
        ValueError: If pixfrac is outside (0, 1], whatever the number of positions.
    """
    check_pixfrac(pixfrac)
    fractional = fractional_positions(positions)
    n = len(fractional)
    if n < MIN_POSITIONS:
        logger.debug(f"Only {n} positions, quality assessment skipped.")
        return QualityResult()

    discrepancy = centered_l2_discrepancy(fractional)
    gap_fill = gap_fill_metrics(n, discrepancy, pixfrac)

    nn_distances = nearest_neighbor_distances(fractional)
    cv = voronoi_cv(nn_distances)
    nni = nearest_neighbor_index(nn_distances, n)

    score = combined_score(discrepancy, gap_fill.scale2, cv)
    rating = rate_score(score, thresholds)
    recommendation = build_recommendation(rating, discrepancy, gap_fill.scale2, score, n, thresholds)

    logger.debug(
        f"N={n} CD={discrepancy:.4f} GFM2x={gap_fill.scale2:.3f} "
        f"CV={cv:.3f} NNI={nni:.2f} score={score:.3f} -> {rating}"
    )

    return QualityResult(
        centered_l2_discrepancy=discrepancy,
        gap_fill=gap_fill,
        voronoi_cv=cv,
        nearest_neighbor_index=nni,
        combined_score=score,
        quality_rating=rating,
        recommendation=recommendation,
        total_positions=n,
    )
