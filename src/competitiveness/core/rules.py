"""Per-category rule accumulation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..errors import ExpressionResolutionWarning
from .expressions import ExpressionEvaluator
from .model import Category, Rule, RuleKind, Threshold
from .thresholds import map_level


@dataclass(frozen=True, slots=True)
class RuleContribution:
    """Points a single matched rule added to its category."""

    rule_id: str
    kind: RuleKind
    occurrences: int
    points: float
    capped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.rule_id,
            "type": self.kind,
            "occurrences": self.occurrences,
            "points": self.points,
            "capped": self.capped,
        }


@dataclass(frozen=True, slots=True)
class CategoryScore:
    """Scored category with the audit trail of matched rules."""

    key: str
    display_name: str
    points: float
    max_points: float
    raw_points: float
    percent: float
    level: str
    contributions: tuple[RuleContribution, ...] = ()

    @property
    def matched_rules(self) -> list[str]:
        return [contribution.rule_id for contribution in self.contributions]

    def to_dict(self) -> dict[str, Any]:
        return {
            "displayName": self.display_name,
            "points": self.points,
            "maxPoints": self.max_points,
            "rawPoints": self.raw_points,
            "percent": self.percent,
            "level": self.level,
            "matchedRules": [contribution.to_dict() for contribution in self.contributions],
        }


@dataclass(frozen=True, slots=True)
class CategoryAccumulation:
    score: CategoryScore
    warnings: tuple[ExpressionResolutionWarning, ...] = ()


class RuleAccumulator:
    """Apply every rule of a category to a profile and sum contributions.

    Each rule is evaluated independently and the sum uses ``math.fsum``, so
    reordering rules never changes a category total.
    """

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ExpressionEvaluator()

    def accumulate(
        self,
        category: Category,
        profile: Mapping[str, Any],
        thresholds: Sequence[Threshold],
    ) -> CategoryAccumulation:
        contributions: list[RuleContribution] = []
        warnings: list[ExpressionResolutionWarning] = []

        for rule in category.rules:
            contribution, rule_warnings = self._apply(category, rule, profile)
            warnings.extend(rule_warnings)
            if contribution is not None:
                contributions.append(contribution)

        raw_points = math.fsum(contribution.points for contribution in contributions)
        points = min(max(raw_points, 0.0), category.max_points)
        percent = points / category.max_points * 100.0 if category.max_points > 0 else 0.0
        level = map_level(percent, category.stages or thresholds)

        score = CategoryScore(
            key=category.key,
            display_name=category.display_name,
            points=points,
            max_points=category.max_points,
            raw_points=raw_points,
            percent=percent,
            level=level,
            contributions=tuple(sorted(contributions, key=lambda item: item.rule_id)),
        )
        return CategoryAccumulation(
            score=score,
            warnings=tuple(sorted(warnings, key=lambda item: (item.path, item.message))),
        )

    def _apply(
        self,
        category: Category,
        rule: Rule,
        profile: Mapping[str, Any],
    ) -> tuple[RuleContribution | None, list[ExpressionResolutionWarning]]:
        warnings: list[ExpressionResolutionWarning] = []
        count: int | None = None
        if rule.expr is not None:
            outcome = self._evaluator.evaluate(rule.expr, profile)
            warnings.extend(
                ExpressionResolutionWarning(
                    f"{category.key}.{rule.id}:{warning.path}",
                    warning.message,
                )
                for warning in outcome.warnings
            )
            if not outcome.matched:
                return None, warnings
            count = outcome.count

        if not rule.repeatable:
            return RuleContribution(rule.id, rule.kind, occurrences=1, points=rule.points), warnings

        # Non-collection paths count once even when the rule is repeatable.
        occurrences = count if count is not None else 1
        earned = rule.points * occurrences
        capped = rule.cap is not None and earned > rule.cap
        if capped:
            earned = rule.cap  # type: ignore[assignment]
        return (
            RuleContribution(rule.id, rule.kind, occurrences=occurrences, points=earned, capped=capped),
            warnings,
        )


__all__ = [
    "CategoryAccumulation",
    "CategoryScore",
    "RuleAccumulator",
    "RuleContribution",
]
