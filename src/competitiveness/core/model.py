"""Typed, immutable competitiveness configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from .expressions import Expression

RuleKind = Literal["add", "bonus"]


@dataclass(frozen=True, slots=True)
class Threshold:
    """Score breakpoint: percentages at or above ``min`` map to ``level``."""

    level: str
    min: float

    def to_document(self) -> dict[str, Any]:
        return {"level": self.level, "min": self.min}


@dataclass(frozen=True, slots=True)
class Rule:
    """Single point-contributing condition within a category."""

    id: str
    points: float
    repeatable: bool = False
    cap: float | None = None
    expr: Expression | None = None
    kind: RuleKind = "add"

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "id": self.id,
            "points": self.points,
            "repeatable": self.repeatable,
            "type": self.kind,
        }
        if self.cap is not None:
            document["cap"] = self.cap
        if self.expr is not None:
            document["expr"] = self.expr.to_document()
        return document


@dataclass(frozen=True, slots=True)
class Category:
    """Weighted scoring dimension."""

    key: str
    display_name: str
    max_points: float
    rules: tuple[Rule, ...]
    stages: tuple[Threshold, ...] = ()

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "key": self.key,
            "displayName": self.display_name,
            "maxPoints": self.max_points,
            "rules": [rule.to_document() for rule in self.rules],
        }
        if self.stages:
            document["stages"] = [stage.to_document() for stage in self.stages]
        return document


@dataclass(frozen=True, slots=True)
class Disqualifier:
    """Hard-stop condition that overrides the computed level."""

    id: str
    expr: Expression
    forced_level: str

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "expr": self.expr.to_document(),
            "forcedLevel": self.forced_level,
        }


@dataclass(frozen=True, slots=True)
class CompetitivenessConfig:
    """Validated rule set. Build instances through ``ConfigValidator``."""

    version: str
    categories: tuple[Category, ...]
    thresholds: tuple[Threshold, ...]
    disqualifiers: tuple[Disqualifier, ...] = ()

    @property
    def rule_count(self) -> int:
        return sum(len(category.rules) for category in self.categories)

    @property
    def total_max_points(self) -> float:
        return sum(category.max_points for category in self.categories)

    def category(self, key: str) -> Category:
        for category in self.categories:
            if category.key == key:
                return category
        raise KeyError(f"Unknown category: {key!r}")

    def to_document(self) -> dict[str, Any]:
        """Render back to the persisted document format."""
        return {
            "version": self.version,
            "categories": [category.to_document() for category in self.categories],
            "thresholds": [threshold.to_document() for threshold in self.thresholds],
            "disqualifiers": [disqualifier.to_document() for disqualifier in self.disqualifiers],
        }


__all__ = [
    "Category",
    "CompetitivenessConfig",
    "Disqualifier",
    "Rule",
    "RuleKind",
    "Threshold",
]
