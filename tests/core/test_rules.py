from __future__ import annotations

import pytest

from competitiveness.core import Category, Rule, RuleAccumulator, Threshold, parse_expression

THRESHOLDS = (
    Threshold(level="Needs Work", min=0),
    Threshold(level="Developing", min=35),
    Threshold(level="Competitive", min=75),
)


def build_rule(rule_id: str, points: float, expr: dict | None = None, **kwargs) -> Rule:
    return Rule(id=rule_id, points=points, expr=parse_expression(expr) if expr else None, **kwargs)


def build_category(*rules: Rule, max_points: float = 20, stages: tuple[Threshold, ...] = ()) -> Category:
    return Category(key="certs", display_name="Certifications", max_points=max_points, rules=rules, stages=stages)


def accumulate(category: Category, profile: dict):
    return RuleAccumulator().accumulate(category, profile, THRESHOLDS)


def test_repeatable_rule_counts_each_qualifying_entry_up_to_cap():
    rule = build_rule(
        "extra_relevant_cert",
        5,
        {"var": "certs", "op": "includes", "value": "cpr_c"},
        repeatable=True,
        cap=10,
    )
    profile = {"certs": [{"type": "cpr_c"}, {"type": "cpr_c"}, {"type": "cpr_c"}]}

    score = accumulate(build_category(rule), profile).score

    assert score.points == pytest.approx(10)
    contribution = score.contributions[0]
    assert contribution.occurrences == 3
    assert contribution.capped is True


def test_repeatable_rule_with_single_match_earns_points_once():
    rule = build_rule(
        "extra_relevant_cert",
        5,
        {"var": "certs", "op": "includes", "value": "cpr_c"},
        repeatable=True,
        cap=10,
    )

    score = accumulate(build_category(rule), {"certs": [{"type": "cpr_c"}, {"type": "mhfa"}]}).score

    assert score.points == pytest.approx(5)
    assert score.contributions[0].capped is False


def test_repeatable_rule_on_scalar_path_counts_once():
    rule = build_rule(
        "volunteer_hours",
        4,
        {"var": "volunteer.totalHours", "op": ">=", "value": 10},
        repeatable=True,
    )

    score = accumulate(build_category(rule), {"volunteer": {"totalHours": 500}}).score

    assert score.points == pytest.approx(4)
    assert score.contributions[0].occurrences == 1


def test_category_points_are_capped_at_max_points():
    rules = (
        build_rule("a", 8, {"var": "x", "op": "==", "value": 1}),
        build_rule("b", 8, {"var": "x", "op": "==", "value": 1}),
    )

    score = accumulate(build_category(*rules, max_points=10), {"x": 1}).score

    assert score.raw_points == pytest.approx(16)
    assert score.points == pytest.approx(10)
    assert score.percent == pytest.approx(100)


def test_rule_without_expr_always_contributes():
    score = accumulate(build_category(build_rule("baseline", 2)), {}).score

    assert score.matched_rules == ["baseline"]
    assert score.points == pytest.approx(2)


def test_rule_order_does_not_change_result():
    rules = [
        build_rule("a", 0.1, {"var": "x", "op": ">=", "value": 0}),
        build_rule("b", 0.2, {"var": "x", "op": ">=", "value": 0}),
        build_rule("c", 0.7, {"var": "x", "op": ">=", "value": 0}),
        build_rule("d", 3, {"var": "y", "op": "==", "value": True}),
    ]
    profile = {"x": 5}

    forward = accumulate(build_category(*rules), profile)
    backward = accumulate(build_category(*reversed(rules)), profile)

    assert forward.score == backward.score
    assert forward.warnings == backward.warnings
    assert forward.score.matched_rules == ["a", "b", "c"]


def test_unresolved_rule_warning_names_category_and_rule():
    rule = build_rule("lead_role", 2, {"var": "volunteer.leadership", "op": "==", "value": True})

    accumulation = accumulate(build_category(rule), {})

    assert accumulation.score.points == 0
    assert accumulation.warnings[0].path == "certs.lead_role:volunteer.leadership"


def test_category_level_uses_stages_when_present():
    stages = (Threshold(level="Low", min=0), Threshold(level="High", min=50))
    rule = build_rule("a", 10)

    with_stages = accumulate(build_category(rule, stages=stages), {}).score
    without_stages = accumulate(build_category(rule), {}).score

    assert with_stages.level == "High"
    assert without_stages.level == "Developing"


def test_zero_max_points_category_has_zero_percent():
    score = accumulate(build_category(build_rule("a", 3), max_points=0), {}).score

    assert score.points == 0
    assert score.percent == 0
