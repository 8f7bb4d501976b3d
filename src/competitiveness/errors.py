"""Exceptions and warning records raised or collected by the engine.

Exceptions signal conditions the caller must act on (a rejected config, a
failed publish, an internal bug). Warnings are plain records collected into an
evaluation result: they never interrupt scoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Iterable


@dataclass(frozen=True, slots=True)
class Violation:
    """A single problem found in a configuration document."""

    path: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message}

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.path}: {self.message}"


class CompetitivenessError(Exception):
    """Base exception for all engine errors."""


class ConfigError(CompetitivenessError):
    """Raised when a configuration document fails validation.

    Carries every violation found, not only the first one, so an administrator
    can fix a draft in a single pass.
    """

    def __init__(self, violations: Iterable[Violation]):
        self.violations = list(violations)
        super().__init__(f"Invalid competitiveness config: {len(self.violations)} violation(s)")

    def __str__(self) -> str:
        details = "; ".join(str(violation) for violation in self.violations)
        return f"Invalid competitiveness config: {details}"


class ConfigPublishError(CompetitivenessError):
    """Raised when the content store refuses a validated config."""

    def __init__(self, key: str, reason: str | None = None):
        self.key = key
        self.reason = reason or "content store rejected the update"
        super().__init__(f"Failed to publish {key!r}: {self.reason}")


class EvaluationInvariantViolation(CompetitivenessError):
    """Raised when an evaluation produces an impossible result.

    This always indicates a bug in the engine. It is never shown to applicants.
    """


@dataclass(frozen=True)
class EvaluationWarning:
    """Non-fatal issue recorded while evaluating a profile."""

    path: str
    message: str

    kind: ClassVar[str] = "evaluation"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "path": self.path, "message": self.message}


@dataclass(frozen=True)
class ExpressionResolutionWarning(EvaluationWarning):
    """A rule expression could not be resolved or compared."""

    kind: ClassVar[str] = "expression_resolution"


@dataclass(frozen=True)
class DisqualifierEvaluationWarning(EvaluationWarning):
    """A disqualifier expression could not be resolved and was treated as not firing."""

    kind: ClassVar[str] = "disqualifier_evaluation"


__all__ = [
    "CompetitivenessError",
    "ConfigError",
    "ConfigPublishError",
    "DisqualifierEvaluationWarning",
    "EvaluationInvariantViolation",
    "EvaluationWarning",
    "ExpressionResolutionWarning",
    "Violation",
]
