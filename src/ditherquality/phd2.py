"""
PHD2 event decoding.

PHD2 publishes newline-delimited JSON messages on its event server
(port 4400 for the first instance). Only the dither-related events carry
data this package needs. Everything else is logged or ignored.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import json
import logging
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from ditherquality.session import DitherSession

logger = logging.getLogger(__name__)


NOTABLE_EVENTS = frozenset({
    "Paused",
    "Resumed",
    "StarLost",
    "LockPositionLost",
    "CalibrationFailed",
    "Alert",
})
INFO_EVENTS = frozenset({"CalibrationComplete", "StartGuiding"})
IGNORED_EVENTS = frozenset({
    "GuideStep",
    "Settling",
    "SettleBegin",
    "LockPositionSet",
    "LockPositionShift",
    "LoopingExposures",
    "LoopingExposuresStopped",
    "StarSelected",
})


@dataclass(frozen=True)
class GuidingDithered:
    """Start of a dither; dx/dy is the applied shift in pixels."""
    dx: float
    dy: float
    timestamp: Optional[float] = None


@dataclass(frozen=True)
class SettleDone:
    """End of a dither. Status 0 means the guider settled."""
    status: int
    total_frames: int
    dropped_frames: int
    error: Optional[str] = None
    timestamp: Optional[float] = None

    @property
    def success(self) -> bool:
        return self.status == 0


@dataclass(frozen=True)
class Version:
    phd_version: str
    phd_subver: str
    msg_version: int


@dataclass(frozen=True)
class AppState:
    state: str


@dataclass(frozen=True)
class GuiderNotice:
    """Any other named event."""
    name: str


GuiderEvent = Union[GuidingDithered, SettleDone, Version, AppState, GuiderNotice]


def _timestamp(message: dict) -> Optional[float]:
    value = message.get("Timestamp")
    return float(value) if value is not None else None


def _decode(name: str, message: dict) -> GuiderEvent:
    if name == "GuidingDithered":
        return GuidingDithered(
            dx=float(message["dx"]),
            dy=float(message["dy"]),
            timestamp=_timestamp(message),
        )
    if name == "SettleDone":
        return SettleDone(
            status=int(message["Status"]),
            total_frames=int(message["TotalFrames"]),
            dropped_frames=int(message["DroppedFrames"]),
            error=message.get("Error"),
            timestamp=_timestamp(message),
        )
    if name == "Version":
        return Version(
            phd_version=str(message["PHDVersion"]),
            phd_subver=str(message["PHDSubver"]),
            msg_version=int(message["MsgVersion"]),
        )
    if name == "AppState":
        return AppState(state=str(message["State"]))
    return GuiderNotice(name=name)


def _log_event(event: GuiderEvent) -> None:
    if isinstance(event, GuidingDithered):
        logger.debug(f"GuidingDithered dx={event.dx:.2f}, dy={event.dy:.2f}")
    elif isinstance(event, SettleDone):
        logger.debug(
            f"SettleDone status={event.status}, success={event.success}, "
            f"frames={event.total_frames}, dropped={event.dropped_frames}"
        )
    elif isinstance(event, Version):
        logger.info(
            f"Connected to PHD2 version {event.phd_version}.{event.phd_subver} "
            f"(message protocol v{event.msg_version})"
        )
    elif isinstance(event, AppState):
        logger.info(f"PHD2 AppState: {event.state}")
    elif event.name in NOTABLE_EVENTS:
        logger.warning(f"PHD2: {event.name}")
    elif event.name in INFO_EVENTS:
        logger.info(f"PHD2: {event.name}")
    elif event.name not in IGNORED_EVENTS:
        logger.debug(f"Unknown PHD2 event: {event.name}")


def parse_event(line: str) -> Optional[GuiderEvent]:
    """
    Decode one line of the PHD2 event stream.

    Args:
        line: A single JSON message, with or without trailing newline.

    Returns:
        The decoded event, or None for blank lines, RPC responses and
        malformed messages (the latter are logged).
    """
    line = line.strip()
    if not line:
        return None
    try:
        message = json.loads(line)
    except json.JSONDecodeError as e:
        logger.error(f"Malformed PHD2 message ({e}): {line}")
        return None
    if not isinstance(message, dict) or "Event" not in message:
        return None

    name = str(message["Event"])
    try:
        event = _decode(name, message)
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Error decoding PHD2 {name} event ({e!r}): {line}")
        return None

    _log_event(event)
    return event


def feed_line(session: DitherSession, line: str) -> Optional[GuiderEvent]:
    """
    Parse one event line and route dither events into a session.

    The message timestamp is used when present so that replayed logs keep
    the settle times recorded in the log.

    Returns:
        The decoded event (routed or not), or None.
    """
    event = parse_event(line)
    if isinstance(event, GuidingDithered):
        session.begin_dither(event.dx, event.dy, timestamp=_as_datetime(event.timestamp))
    elif isinstance(event, SettleDone):
        session.complete_dither(event.success, timestamp=_as_datetime(event.timestamp))
    return event


def _as_datetime(timestamp: Optional[float]) -> Optional[datetime]:
    return datetime.fromtimestamp(timestamp) if timestamp is not None else None
