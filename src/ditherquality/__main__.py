"""Command-line interface."""
from __future__ import annotations

import argparse
import csv
import logging
import sys
from typing import Optional, Sequence

from ditherquality.config import DEFAULT_PIXFRAC
from ditherquality.logging_config import setup_logging
from ditherquality.metrics.gap_fill import check_pixfrac
from ditherquality.metrics.quality import compute_quality
from ditherquality.phd2 import feed_line
from ditherquality.report import format_report
from ditherquality.session import DitherSession

logger = logging.getLogger("ditherquality.cli")


def read_positions_csv(path: str) -> list[tuple[float, float]]:
    """
    Read cumulative (x, y) positions from a CSV file.

    The first two columns are used. A non-numeric first row is treated as a
    header and skipped.
    """
    positions: list[tuple[float, float]] = []
    with open(path, newline="", encoding="utf-8") as f:
        for row_number, row in enumerate(csv.reader(f), start=1):
            if not row or not "".join(row).strip():
                continue
            try:
                positions.append((float(row[0]), float(row[1])))
            except (ValueError, IndexError):
                if row_number == 1:
                    logger.debug(f"Skipping header row: {row}")
                    continue
                raise ValueError(f"{path}:{row_number}: expected two numeric columns, got {row}")
    logger.info(f"Read {len(positions)} positions from {path}")
    return positions


def replay_events(path: str, pixfrac: float) -> DitherSession:
    """Feed a saved PHD2 event log through a fresh session."""
    session = DitherSession(pixfrac=pixfrac)
    with open(path, encoding="utf-8") as f:
        for line in f:
            feed_line(session, line)
    logger.info(f"Replayed {len(session.events())} dithers from {path}")
    return session


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ditherquality",
        description="Assess how well a set of dither positions fills the sub-pixel grid.",
    )
    parser.add_argument("input", help="CSV of cumulative x,y positions, or a PHD2 event log with --events")
    parser.add_argument("--pixfrac", type=float, default=DEFAULT_PIXFRAC, help="drizzle drop fraction in (0, 1]")
    parser.add_argument("--events", action="store_true", help="input is a PHD2 event log (one JSON message per line)")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None, help="also write logs to this file")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    try:
        check_pixfrac(args.pixfrac)
    except ValueError as e:
        logger.error(str(e))
        return 2

    try:
        if args.events:
            session = replay_events(args.input, args.pixfrac)
            report = session.report()
        else:
            positions = read_positions_csv(args.input)
            report = format_report(compute_quality(positions, pixfrac=args.pixfrac))
    except (OSError, ValueError) as e:
        logger.error(f"Could not read {args.input}: {e}")
        return 2

    sys.stdout.write(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
