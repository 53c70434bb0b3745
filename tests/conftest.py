from __future__ import annotations

import logging

import numpy as np
import pytest


def regular_grid(m: int, offset: float = 0.0) -> list[tuple[float, float]]:
    """m x m cell-centred grid on the unit square, shifted by whole pixels per row/column."""
    return [
        (i * 3 + offset + (i + 0.5) / m, j * 2 + offset + (j + 0.5) / m)
        for i in range(m)
        for j in range(m)
    ]


def reference_discrepancy(points) -> float:
    """Direct double-loop evaluation of the centered L2 discrepancy."""
    n = len(points)
    term1 = (13.0 / 12.0) ** 2
    term2 = 0.0
    for x, y in points:
        px = 1.0 + 0.5 * abs(x - 0.5) - 0.5 * (x - 0.5) ** 2
        py = 1.0 + 0.5 * abs(y - 0.5) - 0.5 * (y - 0.5) ** 2
        term2 += px * py
    term2 *= 2.0 / n
    term3 = 0.0
    for xi, yi in points:
        for xj, yj in points:
            px = 1.0 + 0.5 * abs(xi - 0.5) + 0.5 * abs(xj - 0.5) - 0.5 * abs(xi - xj)
            py = 1.0 + 0.5 * abs(yi - 0.5) + 0.5 * abs(yj - 0.5) - 0.5 * abs(yi - yj)
            term3 += px * py
    term3 /= n * n
    return max(0.0, term1 - term2 + term3) ** 0.5


@pytest.fixture
def grid_4() -> list[tuple[float, float]]:
    return [(0.25, 0.25), (0.25, 0.75), (0.75, 0.25), (0.75, 0.75)]


@pytest.fixture
def cluster_4() -> list[tuple[float, float]]:
    return [(0.50, 0.50), (0.51, 0.50), (0.50, 0.51), (0.51, 0.51)]


@pytest.fixture
def grid_64() -> list[tuple[float, float]]:
    return regular_grid(8)


@pytest.fixture
def random_positions() -> list[tuple[float, float]]:
    rng = np.random.default_rng(20240611)
    drift = np.cumsum(rng.uniform(-2.0, 2.0, size=(50, 2)), axis=0)
    return [tuple(p) for p in drift.tolist()]


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger("ditherquality")
    level = logger.level
    handlers = list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
