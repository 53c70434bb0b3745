"""Settle-time statistics over recorded dither events."""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

import numpy as np

if TYPE_CHECKING:
    from ditherquality.session import DitherEvent


@dataclass(frozen=True)
class SettleStatistics:
    """Settle times are in seconds, success rate in percent."""
    total: int = 0
    successful: int = 0
    success_rate: float = 0.0
    average: float = 0.0
    median: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    std_dev: float = 0.0


def settle_statistics(events: Iterable[DitherEvent]) -> SettleStatistics:
    """
    Summarise settle times of the successful events.

    Failed dithers count towards the total and the success rate but not
    towards the timing figures. Standard deviation is the population one.
    """
    events = list(events)
    times = np.array(
        [e.settle_time for e in events if e.success and e.settle_time is not None],
        dtype=np.float64,
    )
    total = len(events)
    successful = len(times)
    success_rate = successful / total * 100.0 if total > 0 else 0.0

    if successful == 0:
        return SettleStatistics(total=total, successful=0, success_rate=success_rate)

    return SettleStatistics(
        total=total,
        successful=successful,
        success_rate=success_rate,
        average=float(np.mean(times)),
        median=float(np.median(times)),
        minimum=float(np.min(times)),
        maximum=float(np.max(times)),
        std_dev=float(np.std(times)),
    )
