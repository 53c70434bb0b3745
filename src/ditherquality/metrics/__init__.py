"""
Quality Metrics Engine
======================
Pure functions that turn a list of cumulative dither positions into a
quality assessment.

Every position is first folded onto the repeating sub-pixel cell (see
``normalize``); all statistics are then computed on the unit torus.

Note: This package should be pure Python/NumPy/SciPy. It holds no state
between calls and performs no I/O.
"""
from ditherquality.metrics.discrepancy import centered_l2_discrepancy
from ditherquality.metrics.gap_fill import DRIZZLE_SCALES, GapFill, gap_fill_coverage, gap_fill_metrics
from ditherquality.metrics.neighbors import (
    nearest_neighbor_distances,
    nearest_neighbor_index,
    toroidal_distance,
    voronoi_cv,
)
from ditherquality.metrics.normalize import as_position_array, fractional_positions
from ditherquality.metrics.quality import QualityRating, QualityResult, compute_quality

__all__ = [
    "DRIZZLE_SCALES",
    "GapFill",
    "QualityRating",
    "QualityResult",
    "as_position_array",
    "centered_l2_discrepancy",
    "compute_quality",
    "fractional_positions",
    "gap_fill_coverage",
    "gap_fill_metrics",
    "nearest_neighbor_distances",
    "nearest_neighbor_index",
    "toroidal_distance",
    "voronoi_cv",
]
