from __future__ import annotations

import pytest

from competitiveness.core import ScoreNormalizer, Threshold, map_level
from competitiveness.core.thresholds import severity_rank

THRESHOLDS = (
    Threshold(level="Needs Work", min=0),
    Threshold(level="Developing", min=35),
    Threshold(level="Effective", min=55),
    Threshold(level="Competitive", min=75),
)


@pytest.mark.parametrize(
    ("percent", "expected"),
    [
        (0, "Needs Work"),
        (34.999, "Needs Work"),
        (35, "Developing"),
        (55, "Effective"),
        (74.9, "Effective"),
        (75, "Competitive"),
        (100, "Competitive"),
    ],
)
def test_map_level_boundaries(percent, expected):
    assert map_level(percent, THRESHOLDS) == expected


def test_map_level_requires_thresholds():
    with pytest.raises(ValueError):
        map_level(50, ())


def test_normalize_sums_and_clamps():
    normalized = ScoreNormalizer().normalize([(10, 20), (5, 10)])

    assert normalized.total_score == pytest.approx(15)
    assert normalized.total_max == pytest.approx(30)
    assert normalized.total_percent == pytest.approx(50)


def test_normalize_with_no_max_points_is_zero_percent():
    assert ScoreNormalizer().normalize([(0, 0)]).total_percent == 0.0
    assert ScoreNormalizer().normalize([]).total_percent == 0.0


def test_severity_rank_orders_by_threshold_min():
    assert severity_rank("Needs Work", THRESHOLDS) < severity_rank("Competitive", THRESHOLDS)
    assert severity_rank("Missing", THRESHOLDS) == float("-inf")
