"""Administrator preview of a draft config against a sample profile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .config import parse_document
from .core.engine import CompetitivenessEngine, EvaluationResult, ProfileInput
from .core.model import CompetitivenessConfig
from .core.validation import ConfigValidator
from .errors import Violation


@dataclass(frozen=True, slots=True)
class CategoryDelta:
    key: str
    draft_points: float | None
    baseline_points: float | None

    @property
    def delta(self) -> float:
        return (self.draft_points or 0.0) - (self.baseline_points or 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "draft": self.draft_points,
            "baseline": self.baseline_points,
            "delta": self.delta,
        }


@dataclass(frozen=True, slots=True)
class PreviewReport:
    """Everything an editor needs to judge a draft before publishing it."""

    valid: bool
    errors: tuple[Violation, ...] = ()
    warnings: tuple[Violation, ...] = ()
    result: EvaluationResult | None = None
    baseline: EvaluationResult | None = None
    deltas: tuple[CategoryDelta, ...] = ()

    @property
    def level_changed(self) -> bool:
        if self.result is None or self.baseline is None:
            return False
        return self.result.level != self.baseline.level

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
            "result": self.result.to_dict() if self.result else None,
            "baseline": self.baseline.to_dict() if self.baseline else None,
            "deltas": [delta.to_dict() for delta in self.deltas],
            "levelChanged": self.level_changed,
        }


class PreviewService:
    """Evaluate a draft without publishing it."""

    def __init__(
        self,
        *,
        engine: CompetitivenessEngine,
        validator: ConfigValidator | None = None,
    ) -> None:
        self._engine = engine
        self._validator = validator or ConfigValidator()

    def preview(
        self,
        draft: str | dict[str, Any],
        profile: ProfileInput,
        baseline: CompetitivenessConfig | None = None,
    ) -> PreviewReport:
        if isinstance(draft, str):
            try:
                raw = parse_document(draft)
            except ValueError as exc:
                return PreviewReport(valid=False, errors=(Violation("", str(exc)),))
        else:
            raw = draft

        report = self._validator.check(raw)
        if not report.valid or report.config is None:
            return PreviewReport(valid=False, errors=report.errors, warnings=report.warnings)

        result = self._engine.evaluate(report.config, profile)
        baseline_result = self._engine.evaluate(baseline, profile) if baseline is not None else None
        return PreviewReport(
            valid=True,
            warnings=report.warnings,
            result=result,
            baseline=baseline_result,
            deltas=_category_deltas(result, baseline_result),
        )


def _category_deltas(
    result: EvaluationResult,
    baseline: EvaluationResult | None,
) -> tuple[CategoryDelta, ...]:
    if baseline is None:
        return ()
    draft_points = {score.key: score.points for score in result.category_scores}
    baseline_points = {score.key: score.points for score in baseline.category_scores}
    keys = list(draft_points)
    keys.extend(key for key in baseline_points if key not in draft_points)
    return tuple(
        CategoryDelta(
            key=key,
            draft_points=draft_points.get(key),
            baseline_points=baseline_points.get(key),
        )
        for key in keys
    )


__all__ = ["CategoryDelta", "PreviewReport", "PreviewService"]
