from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


def as_position_array(positions: Iterable[tuple[float, float]] | npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Convert a sequence of (x, y) pairs into an (N, 2) float array.

    Args:
        positions: Cumulative pixel positions, in recording order.

    Returns:
        An array of shape (N, 2). An empty input gives shape (0, 2).
    """
    if not isinstance(positions, np.ndarray):
        positions = list(positions)
    arr = np.asarray(positions, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected a sequence of (x, y) pairs, got shape {arr.shape}.")
    return arr


def fractional_positions(positions: Iterable[tuple[float, float]] | npt.ArrayLike) -> npt.NDArray[np.float64]:
    """
    Project cumulative positions onto the repeating sub-pixel cell.

    Uses ``|x| mod 1`` and ``|y| mod 1``, so a negative offset lands on the
    same sub-pixel phase as the positive offset of equal magnitude. The
    rating thresholds are calibrated against this folding.

    Input must be finite; NaN or infinity propagates into the result.

    Args:
        positions: Cumulative pixel positions.

    Returns:
        An array of shape (N, 2) with every coordinate in [0, 1).
    """
    return np.mod(np.abs(as_position_array(positions)), 1.0)
