"""Hard-stop gate evaluated independently of category scoring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from ..errors import DisqualifierEvaluationWarning
from .expressions import ExpressionEvaluator
from .model import Disqualifier, Threshold
from .thresholds import severity_rank


@dataclass(frozen=True, slots=True)
class GateDecision:
    """Disqualifiers that fired and the level they force."""

    fired: tuple[Disqualifier, ...] = ()
    forced_level: str | None = None
    warnings: tuple[DisqualifierEvaluationWarning, ...] = ()

    @property
    def disqualified(self) -> bool:
        return bool(self.fired)

    @property
    def fired_ids(self) -> tuple[str, ...]:
        return tuple(disqualifier.id for disqualifier in self.fired)


class DisqualifierGate:
    """Evaluate disqualifiers and pick the most severe forced level.

    Unresolvable expressions evaluate to false, so a gap in the profile never
    blocks a candidate; the gap is reported as a warning instead.
    """

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self._evaluator = evaluator or ExpressionEvaluator()

    def evaluate(
        self,
        disqualifiers: Sequence[Disqualifier],
        profile: Mapping[str, Any],
        thresholds: Sequence[Threshold],
    ) -> GateDecision:
        fired: list[Disqualifier] = []
        warnings: list[DisqualifierEvaluationWarning] = []

        for disqualifier in disqualifiers:
            outcome = self._evaluator.evaluate(disqualifier.expr, profile)
            warnings.extend(
                DisqualifierEvaluationWarning(
                    f"disqualifiers.{disqualifier.id}:{warning.path}",
                    warning.message,
                )
                for warning in outcome.warnings
            )
            if outcome.matched:
                fired.append(disqualifier)

        if not fired:
            return GateDecision(warnings=tuple(warnings))

        # min() keeps the first of equally severe disqualifiers in config order.
        most_severe = min(
            fired,
            key=lambda disqualifier: severity_rank(disqualifier.forced_level, thresholds),
        )
        return GateDecision(
            fired=tuple(fired),
            forced_level=most_severe.forced_level,
            warnings=tuple(warnings),
        )


__all__ = ["DisqualifierGate", "GateDecision"]
