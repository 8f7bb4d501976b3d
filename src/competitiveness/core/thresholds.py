"""Score normalization and threshold lookup."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from .model import Threshold


@dataclass(frozen=True, slots=True)
class NormalizedScore:
    """Aggregate of all category points."""

    total_score: float
    total_max: float
    total_percent: float


def map_level(percent: float, thresholds: Sequence[Threshold]) -> str:
    """Return the label of the highest threshold whose ``min`` is at most ``percent``.

    ``thresholds`` must be sorted ascending; the last match wins, so a percent
    exactly on a boundary gets that boundary's level.
    """
    if not thresholds:
        raise ValueError("Threshold table must not be empty.")
    level = thresholds[0].level
    for threshold in thresholds:
        if percent >= threshold.min:
            level = threshold.level
    return level


def severity_rank(level: str, thresholds: Sequence[Threshold]) -> float:
    """Lower is more severe. Labels outside the table rank below every threshold."""
    mins = [threshold.min for threshold in thresholds if threshold.level == level]
    if not mins:
        return -math.inf
    return min(mins)


class ScoreNormalizer:
    """Combine per-category points into an overall percentage."""

    def normalize(self, points: Iterable[tuple[float, float]]) -> NormalizedScore:
        pairs = list(points)
        total_score = math.fsum(score for score, _ in pairs)
        total_max = math.fsum(maximum for _, maximum in pairs)
        if total_max <= 0:
            return NormalizedScore(total_score=total_score, total_max=total_max, total_percent=0.0)
        percent = total_score / total_max * 100.0
        return NormalizedScore(
            total_score=total_score,
            total_max=total_max,
            total_percent=min(max(percent, 0.0), 100.0),
        )

    @staticmethod
    def map_level(percent: float, thresholds: Sequence[Threshold]) -> str:
        return map_level(percent, thresholds)


__all__ = ["NormalizedScore", "ScoreNormalizer", "map_level", "severity_rank"]
