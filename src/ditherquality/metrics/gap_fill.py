"""
Gap-fill estimate for drizzle integration.

Closed-form approximation, not a rasterised simulation: N drops of side
pixfrac / s are spread over s^2 output sub-cells, and the expected coverage
is reduced in proportion to the discrepancy of the point set.

Theoretical minimum for full coverage with CD = 0:
    1x, pixfrac 0.6: 1 / 0.36          ~   3 positions
    2x, pixfrac 0.6: 4 / 0.09          ~  45 positions
    3x, pixfrac 0.6: 9 / (0.2^2)       ~ 225 positions
"""
from __future__ import annotations

from dataclasses import dataclass

from ditherquality.config import DEFAULT_PIXFRAC

DRIZZLE_SCALES: tuple[int, int, int] = (1, 2, 3)

# Coverage lost per unit of centered L2 discrepancy
UNIFORMITY_PENALTY_FACTOR: float = 0.7


@dataclass(frozen=True)
class GapFill:
    """Estimated sub-pixel coverage for 1x, 2x and 3x drizzle, each in [0, 1]."""
    scale1: float = 0.0
    scale2: float = 0.0
    scale3: float = 0.0

    def for_scale(self, scale: int) -> float:
        if scale not in DRIZZLE_SCALES:
            raise ValueError(f"Unsupported drizzle scale {scale}.")
        return getattr(self, f"scale{scale}")

    def items(self) -> list[tuple[int, float]]:
        return [(scale, self.for_scale(scale)) for scale in DRIZZLE_SCALES]


def check_pixfrac(pixfrac: float) -> None:
    if not 0.0 < pixfrac <= 1.0:
        raise ValueError(f"pixfrac must be in (0, 1], got {pixfrac}.")


def gap_fill_coverage(n: int, scale: float, pixfrac: float, discrepancy: float) -> float:
    """
    Expected fraction of the output sub-pixel grid covered by the drops.

    Args:
        n: Number of dither positions.
        scale: Drizzle scale factor (output oversampling).
        pixfrac: Drop size as a fraction of the input pixel, in (0, 1].
        discrepancy: Centered L2 discrepancy of the point set.

    Returns:
        Coverage clamped to [0, 1].
    """
    check_pixfrac(pixfrac)
    drop_size = pixfrac / scale
    effective_area = drop_size * drop_size
    output_pixel_area = scale * scale
    raw_coverage = (n * effective_area) / output_pixel_area

    uniformity_penalty = discrepancy * UNIFORMITY_PENALTY_FACTOR
    coverage = raw_coverage * (1.0 - uniformity_penalty)
    return min(1.0, max(0.0, coverage))


def gap_fill_metrics(n: int, discrepancy: float, pixfrac: float = DEFAULT_PIXFRAC) -> GapFill:
    """
    Evaluate the gap-fill estimate at every drizzle scale.

    The discrepancy is computed once by the caller and shared by all scales.
    """
    coverage = [gap_fill_coverage(n, float(scale), pixfrac, discrepancy) for scale in DRIZZLE_SCALES]
    return GapFill(*coverage)
