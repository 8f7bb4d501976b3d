"""Core competitiveness scoring components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .disqualifiers import DisqualifierGate, GateDecision
from .engine import (
    CompetitivenessEngine,
    EvaluationMemo,
    EvaluationResult,
    profile_facts,
    profile_fingerprint,
)
from .expressions import (
    AllOf,
    AnyOf,
    Comparison,
    Expression,
    ExpressionEvaluator,
    ExpressionOutcome,
    parse_expression,
    resolve_path,
)
from .model import Category, CompetitivenessConfig, Disqualifier, Rule, Threshold
from .rules import CategoryScore, RuleAccumulator, RuleContribution
from .thresholds import NormalizedScore, ScoreNormalizer, map_level
from .validation import ConfigValidator, ValidationReport

__all__ = [
    "AllOf",
    "AnyOf",
    "Category",
    "CategoryScore",
    "Comparison",
    "CompetitivenessConfig",
    "CompetitivenessEngine",
    "ConfigValidator",
    "Disqualifier",
    "DisqualifierGate",
    "EvaluationMemo",
    "EvaluationResult",
    "Expression",
    "ExpressionEvaluator",
    "ExpressionOutcome",
    "GateDecision",
    "NormalizedScore",
    "Rule",
    "RuleAccumulator",
    "RuleContribution",
    "ScoreNormalizer",
    "Threshold",
    "ValidationReport",
    "map_level",
    "parse_expression",
    "profile_facts",
    "profile_fingerprint",
    "resolve_path",
]
