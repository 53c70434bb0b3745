"""
Configuration & Rating Policy
=============================
This module serves as the central registry for the rating thresholds and
global constants.

Why is this file needed?
------------------------
1. Abstraction: It prevents cut points (e.g. "CD < 0.05 is good") from being
   scattered throughout the metrics and report code.
2. Policy: The numeric computation never reads these values. Only the rating
   ladder, the warnings and the report labels do, so a different policy can be
   passed in without touching the math.

Exports:
    QualityThresholds: Frozen dataclass holding every cut point.
    DEFAULT_THRESHOLDS: The calibrated default policy.
    DEFAULT_PIXFRAC (float): Default drizzle drop fraction.
    MIN_POSITIONS (int): Smallest point set that gets a real assessment.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


DEFAULT_PIXFRAC: float = 0.6
MIN_POSITIONS: int = 4


@dataclass(frozen=True)
class QualityThresholds:
    """
    Cut points used for rating and labelling only.
    """
    # Combined score ladder (score >= value)
    score_excellent: float = 0.85
    score_very_good: float = 0.75
    score_good: float = 0.65
    score_acceptable: float = 0.55
    score_fair: float = 0.45

    # Centered L2 discrepancy labels (cd < value)
    cd_excellent: float = 0.02
    cd_good: float = 0.05
    cd_acceptable: float = 0.08
    cd_fair: float = 0.10

    # Clustering warnings appended to the recommendation (cd > value)
    cd_moderate_warning: float = 0.25
    cd_high_warning: float = 0.40

    # Voronoi CV labels (cv < value)
    cv_excellent: float = 0.2
    cv_good: float = 0.3
    cv_acceptable: float = 0.5

    # Nearest neighbour index labels (nni > value)
    nni_excellent: float = 1.5
    nni_good: float = 1.2
    nni_acceptable: float = 0.9
    nni_fair: float = 0.7

    # Gap-fill targets shown in the report
    gap_fill_target_1x: float = 0.98
    gap_fill_target_2x: float = 0.95
    gap_fill_target_3x: float = 0.90

    coverage_warning_2x: float = 0.90
    few_positions: int = 30
    few_positions_score: float = 0.75

    def score_ladder(self) -> list[tuple[str, float]]:
        """Ordered (tier name, minimum score) pairs, best tier first."""
        return [
            ("excellent", self.score_excellent),
            ("very_good", self.score_very_good),
            ("good", self.score_good),
            ("acceptable", self.score_acceptable),
            ("fair", self.score_fair),
        ]

    def gap_fill_target(self, scale: int) -> float:
        targets = {
            1: self.gap_fill_target_1x,
            2: self.gap_fill_target_2x,
            3: self.gap_fill_target_3x,
        }
        if scale not in targets:
            raise ValueError(f"No gap-fill target for drizzle scale {scale}.")
        return targets[scale]

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> QualityThresholds:
        """
        Build a policy from a plain mapping, e.g. loaded from a settings file.

        Missing keys keep their default value.

        Raises:
            ValueError: If the mapping contains a key that is not a threshold.
        """
        known = {f.name for f in fields(QualityThresholds)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown threshold keys: {', '.join(unknown)}")
        return QualityThresholds(**dict(data))


DEFAULT_THRESHOLDS = QualityThresholds()
