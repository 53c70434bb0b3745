"""Plain-text quality report."""
from __future__ import annotations

from ditherquality.config import DEFAULT_THRESHOLDS, QualityThresholds
from ditherquality.metrics.quality import QualityRating, QualityResult

CHECK_GLYPH = "✓"
WARNING_GLYPH = "⚠"


def discrepancy_label(cd: float, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> str:
    if cd < thresholds.cd_excellent:
        return "Excellent uniformity"
    if cd < thresholds.cd_good:
        return "Good uniformity"
    if cd < thresholds.cd_acceptable:
        return "Acceptable uniformity"
    if cd < thresholds.cd_fair:
        return "Fair uniformity"
    return "Poor uniformity - clustering detected"


def voronoi_label(cv: float, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> str:
    if cv < thresholds.cv_excellent:
        return "Excellent local uniformity"
    if cv < thresholds.cv_good:
        return "Good local uniformity"
    if cv < thresholds.cv_acceptable:
        return "Acceptable local uniformity"
    return "Poor local uniformity - significant gaps/clusters"


def nni_label(nni: float, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> str:
    if nni > thresholds.nni_excellent:
        return "Excellent sub-pixel uniformity (regular)"
    if nni > thresholds.nni_good:
        return "Good sub-pixel uniformity"
    if nni > thresholds.nni_acceptable:
        return "Acceptable coverage (random-like)"
    if nni > thresholds.nni_fair:
        return "Fair coverage with some clustering"
    return "Poor coverage - significant clustering"


def gap_fill_glyph(coverage: float, target: float) -> str:
    return CHECK_GLYPH if coverage >= target else WARNING_GLYPH


def grading_scale(thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> list[str]:
    """Static legend of the combined score ladder."""
    lines = []
    labels = [
        QualityRating.EXCELLENT,
        QualityRating.VERY_GOOD,
        QualityRating.GOOD,
        QualityRating.ACCEPTABLE,
        QualityRating.FAIR,
    ]
    upper = 1.0
    for label, (_, minimum) in zip(labels, thresholds.score_ladder()):
        lines.append(f"  {label:<11} {minimum:.2f} - {upper:.2f}")
        upper = minimum
    lines.append(f"  {QualityRating.POOR:<11} 0.00 - {upper:.2f}")
    return lines


def format_report(result: QualityResult, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> str:
    """
    Render a ``QualityResult`` as the text written to report files.

    Args:
        result: Assessment to render.
        thresholds: Policy used for the textual labels and gap-fill targets.

    Returns:
        The report text, newline terminated.
    """
    lines = [
        "=== Dither Quality Assessment ===",
        "",
        f"Overall Rating: {result.quality_rating}",
        f"Combined Score: {result.combined_score:.3f} / 1.000",
        "",
    ]

    if result.is_sufficient:
        lines += [
            "--- Primary Metrics ---",
            f"Centered L2 Discrepancy: {result.centered_l2_discrepancy:.4f}",
            f"  -> {discrepancy_label(result.centered_l2_discrepancy, thresholds)}",
            "",
            "Gap-Fill Coverage:",
        ]
        for scale, coverage in result.gap_fill.items():
            target = thresholds.gap_fill_target(scale)
            lines.append(
                f"  • {scale}× Drizzle: {coverage:.1%} {gap_fill_glyph(coverage, target)} (target {target:.0%})"
            )
        lines += [
            "",
            f"Voronoi CV: {result.voronoi_cv:.3f}",
            f"  -> {voronoi_label(result.voronoi_cv, thresholds)}",
            "",
            "--- Supplementary Metrics ---",
            f"Nearest Neighbor Index: {result.nearest_neighbor_index:.2f}",
            f"  -> {nni_label(result.nearest_neighbor_index, thresholds)}",
            f"Total Dithers: {result.total_positions}",
            "",
        ]
    else:
        lines += [
            "--- Primary Metrics ---",
            "Not enough dither positions to compute metrics.",
            "",
        ]

    lines += [
        "--- Recommendation ---",
        result.recommendation,
        "",
        "--- Grading Scale ---",
        *grading_scale(thresholds),
    ]
    return "\n".join(lines) + "\n"
