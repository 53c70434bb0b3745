"""
Dither Session (State)
======================
Collects dither events for one imaging session and publishes a fresh quality
assessment after every completed dither.

Why is this file needed?
------------------------
1. State Management: It owns the mutable history (events, cumulative drift)
   so the metrics engine never has to.
2. Decoupling: Charts, report writers and loggers subscribe to results. They
   receive immutable snapshots and never touch the event list.

Classes:
    DitherEvent: One dither-and-settle cycle.
    DitherSession: The event container and publisher.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
import logging
import threading
from typing import Callable, Optional

from ditherquality.config import DEFAULT_PIXFRAC, DEFAULT_THRESHOLDS, QualityThresholds
from ditherquality.metrics.gap_fill import check_pixfrac
from ditherquality.metrics.quality import QualityResult, compute_quality
from ditherquality.report import format_report
from ditherquality.settling import SettleStatistics, settle_statistics

logger = logging.getLogger(__name__)

ResultCallback = Callable[[QualityResult, SettleStatistics], None]


@dataclass(frozen=True)
class DitherEvent:
    """
    A single dither with timing and position information.

    pixel_shift_* is the offset of this dither, cumulative_* the drift from
    the session origin after it was applied.
    """
    start_time: datetime
    pixel_shift_x: float
    pixel_shift_y: float
    end_time: Optional[datetime] = None
    success: bool = False
    cumulative_x: float = 0.0
    cumulative_y: float = 0.0

    @property
    def settle_time(self) -> Optional[float]:
        """Settle duration in seconds, None while still settling."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    @property
    def position(self) -> tuple[float, float]:
        return self.cumulative_x, self.cumulative_y


class DitherSession:
    """
    Thread-safe accumulator of dither events.

    Event handlers may be called from a network reader thread. The quality
    engine runs on an immutable snapshot of positions, outside the lock.
    """

    def __init__(
        self,
        pixfrac: float = DEFAULT_PIXFRAC,
        thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        check_pixfrac(pixfrac)
        self.pixfrac = pixfrac
        self.thresholds = thresholds
        self._clock = clock
        self._lock = threading.Lock()
        self._subscribers: list[ResultCallback] = []
        self._events: list[DitherEvent] = []
        self._pending: Optional[DitherEvent] = None
        self._generation = 0
        self._quality = QualityResult()
        self._statistics = SettleStatistics()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------
    def subscribe(self, callback: ResultCallback) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: ResultCallback) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def begin_dither(self, dx: float, dy: float, timestamp: Optional[datetime] = None) -> None:
        """Record the start of a dither with its pixel shift."""
        event = DitherEvent(
            start_time=timestamp or self._clock(),
            pixel_shift_x=float(dx),
            pixel_shift_y=float(dy),
        )
        with self._lock:
            if self._pending is not None:
                logger.warning("New dither started before the previous one settled; discarding the previous one.")
            self._pending = event
        logger.info(f"Dither started with pixel shift ({dx:.2f}, {dy:.2f})")

    def complete_dither(self, success: bool, timestamp: Optional[datetime] = None) -> Optional[DitherEvent]:
        """
        Close the pending dither and publish an updated assessment.

        Args:
            success: Whether the guider reported a successful settle.
            timestamp: End time, defaults to now.

        Returns:
            The completed event, or None if no dither was pending.
        """
        end_time = timestamp or self._clock()
        with self._lock:
            event = self._pending
            if event is None:
                logger.warning("Settle finished but no dither was pending; was the session started mid-dither?")
                return None
            self._pending = None

            last_x, last_y = self._events[-1].position if self._events else (0.0, 0.0)
            event = replace(
                event,
                end_time=end_time,
                success=bool(success),
                cumulative_x=last_x + event.pixel_shift_x,
                cumulative_y=last_y + event.pixel_shift_y,
            )
            self._events.append(event)
            self._generation += 1
            generation = self._generation

            positions = tuple(e.position for e in self._events)
            events = tuple(self._events)

        quality = compute_quality(positions, pixfrac=self.pixfrac, thresholds=self.thresholds)
        stats = settle_statistics(events)

        with self._lock:
            # a newer dither or a reset may have landed while computing
            current = generation == self._generation
            if current:
                self._quality = quality
                self._statistics = stats
            subscribers = list(self._subscribers)

        logger.info(
            f"Dither recorded: {event.settle_time:.2f}s settle, position "
            f"({event.cumulative_x:.2f}, {event.cumulative_y:.2f}) px, rating {quality.quality_rating}"
        )
        if current:
            self._notify(subscribers, quality, stats)
        else:
            logger.debug("Discarding a stale assessment superseded by newer session data.")
        return event

    def _notify(self, subscribers: list[ResultCallback], quality: QualityResult, stats: SettleStatistics) -> None:
        for callback in subscribers:
            try:
                callback(quality, stats)
            except Exception as e:
                logger.exception(f"Result subscriber {callback!r} failed: {e}")

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def events(self) -> tuple[DitherEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def positions(self) -> tuple[tuple[float, float], ...]:
        """Cumulative positions of all completed dithers, in order."""
        with self._lock:
            return tuple(e.position for e in self._events)

    def quality(self) -> QualityResult:
        with self._lock:
            return self._quality

    def statistics(self) -> SettleStatistics:
        with self._lock:
            return self._statistics

    def report(self) -> str:
        return format_report(self.quality(), self.thresholds)

    def reset(self) -> None:
        """Clear all recorded data. Subscribers stay registered."""
        with self._lock:
            self._events = []
            self._pending = None
            self._generation += 1
            self._quality = QualityResult()
            self._statistics = SettleStatistics()
        logger.info("Dither session has been reset.")
