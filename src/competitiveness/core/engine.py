"""Evaluation orchestration."""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Mapping, Union

import structlog

from ..errors import EvaluationInvariantViolation, EvaluationWarning
from ..schemas.candidate import CandidateProfile, fingerprint_facts
from .disqualifiers import DisqualifierGate
from .expressions import ExpressionEvaluator
from .model import CompetitivenessConfig
from .rules import CategoryScore, RuleAccumulator
from .thresholds import ScoreNormalizer

ProfileInput = Union[CandidateProfile, Mapping[str, Any]]

DEFAULT_MEMO_SIZE = 1024


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    """Immutable outcome of one evaluation.

    ``level`` is the reported level (forced when disqualified);
    ``computed_level`` is what the score alone maps to. The category
    breakdown is never altered by disqualifiers.
    """

    version: str
    category_scores: tuple[CategoryScore, ...]
    total_score: float
    total_max: float
    total_percent: float
    level: str
    computed_level: str
    disqualified: bool = False
    disqualifiers: tuple[str, ...] = ()
    warnings: tuple[EvaluationWarning, ...] = ()

    def category(self, key: str) -> CategoryScore:
        for score in self.category_scores:
            if score.key == key:
                return score
        raise KeyError(f"Unknown category: {key!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "totalScore": self.total_score,
            "totalMaxPoints": self.total_max,
            "totalPercent": self.total_percent,
            "level": self.level,
            "computedLevel": self.computed_level,
            "disqualified": self.disqualified,
            "disqualifiers": list(self.disqualifiers),
            "categoryScores": {score.key: score.to_dict() for score in self.category_scores},
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def profile_facts(profile: ProfileInput) -> Mapping[str, Any]:
    if isinstance(profile, CandidateProfile):
        return profile.facts()
    if isinstance(profile, Mapping):
        return profile
    raise TypeError(f"Unsupported profile type: {type(profile).__name__}")


def profile_fingerprint(profile: ProfileInput) -> str:
    return fingerprint_facts(profile_facts(profile))


class CompetitivenessEngine:
    """Pure ``(config, profile) -> EvaluationResult`` function.

    Holds no per-evaluation state, so one instance can serve concurrent
    callers. Warnings are returned in the result and also logged.
    """

    def __init__(
        self,
        *,
        accumulator: RuleAccumulator | None = None,
        gate: DisqualifierGate | None = None,
        normalizer: ScoreNormalizer | None = None,
    ) -> None:
        evaluator = ExpressionEvaluator()
        self._accumulator = accumulator or RuleAccumulator(evaluator)
        self._gate = gate or DisqualifierGate(evaluator)
        self._normalizer = normalizer or ScoreNormalizer()
        self._logger = structlog.get_logger(__name__)

    def evaluate(self, config: CompetitivenessConfig, profile: ProfileInput) -> EvaluationResult:
        facts = profile_facts(profile)

        warnings: list[EvaluationWarning] = []
        category_scores: list[CategoryScore] = []
        for category in config.categories:
            accumulation = self._accumulator.accumulate(category, facts, config.thresholds)
            category_scores.append(accumulation.score)
            warnings.extend(accumulation.warnings)

        decision = self._gate.evaluate(config.disqualifiers, facts, config.thresholds)
        warnings.extend(decision.warnings)

        normalized = self._normalizer.normalize(
            (score.points, score.max_points) for score in category_scores
        )
        computed_level = self._normalizer.map_level(normalized.total_percent, config.thresholds)
        level = decision.forced_level if decision.disqualified else computed_level

        result = EvaluationResult(
            version=config.version,
            category_scores=tuple(category_scores),
            total_score=normalized.total_score,
            total_max=normalized.total_max,
            total_percent=normalized.total_percent,
            level=level,  # type: ignore[arg-type]
            computed_level=computed_level,
            disqualified=decision.disqualified,
            disqualifiers=decision.fired_ids,
            warnings=tuple(warnings),
        )
        _check_invariants(result)

        for warning in result.warnings:
            self._logger.warning(
                "expression.warning",
                kind=warning.kind,
                path=warning.path,
                message=warning.message,
                version=config.version,
            )
        self._logger.debug(
            "engine.evaluated",
            version=config.version,
            level=result.level,
            total_percent=result.total_percent,
            disqualified=result.disqualified,
        )
        return result


def _check_invariants(result: EvaluationResult) -> None:
    for score in result.category_scores:
        if not 0.0 <= score.points <= score.max_points:
            raise EvaluationInvariantViolation(
                f"category {score.key!r} scored {score.points} of {score.max_points}"
            )
        if not 0.0 <= score.percent <= 100.0:
            raise EvaluationInvariantViolation(
                f"category {score.key!r} percent {score.percent} outside [0, 100]"
            )
    if not 0.0 <= result.total_percent <= 100.0:
        raise EvaluationInvariantViolation(f"total percent {result.total_percent} outside [0, 100]")
    if result.disqualified and not result.disqualifiers:
        raise EvaluationInvariantViolation("disqualified result without a fired disqualifier")


class EvaluationMemo:
    """Caller-owned cache keyed by ``(config version, profile fingerprint)``.

    Config versions are treated as identities: publish a new version string
    whenever rules change.
    """

    def __init__(self, engine: CompetitivenessEngine, *, max_entries: int | None = None) -> None:
        self._engine = engine
        self._max_entries = max_entries or DEFAULT_MEMO_SIZE
        self._entries: OrderedDict[tuple[str, str], EvaluationResult] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def evaluate(self, config: CompetitivenessConfig, profile: ProfileInput) -> EvaluationResult:
        key = (config.version, profile_fingerprint(profile))
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached

        self.misses += 1
        result = self._engine.evaluate(config, profile)
        self._entries[key] = result
        if len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)
        return result

    def clear(self) -> None:
        self._entries.clear()


__all__ = [
    "CompetitivenessEngine",
    "EvaluationMemo",
    "EvaluationResult",
    "profile_facts",
    "profile_fingerprint",
]
