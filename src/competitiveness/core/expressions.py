"""Boolean conditions over candidate profiles.

Conditions are data, never code: a small tagged union of comparison and
compound nodes, interpreted by :class:`ExpressionEvaluator`. The evaluator is
total. Missing data, mismatched types and odd profile shapes all evaluate to
``False`` with a recorded warning instead of raising.
"""

from __future__ import annotations

import copy
import math
import operator
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Union

from ..errors import ExpressionResolutionWarning, Violation

INCLUDES = "includes"

_ORDERING: dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    ">": operator.gt,
    "<": operator.lt,
    "<=": operator.le,
}
_EQUALITY: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
}

OPERATORS: frozenset[str] = frozenset({*_ORDERING, *_EQUALITY, INCLUDES})
MAX_EXPRESSION_DEPTH = 32


class _Undefined:
    """Sentinel for a profile path that does not resolve."""

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


@dataclass(frozen=True, slots=True)
class Comparison:
    """Leaf node: ``{"var": path, "op": op, "value": value}``."""

    var: str
    op: str
    value: Any

    def to_document(self) -> dict[str, Any]:
        return {"var": self.var, "op": self.op, "value": copy.deepcopy(self.value)}


@dataclass(frozen=True, slots=True)
class AllOf:
    """True when every child expression is true."""

    items: tuple["Expression", ...]

    def to_document(self) -> dict[str, Any]:
        return {"all": [item.to_document() for item in self.items]}


@dataclass(frozen=True, slots=True)
class AnyOf:
    """True when at least one child expression is true."""

    items: tuple["Expression", ...]

    def to_document(self) -> dict[str, Any]:
        return {"any": [item.to_document() for item in self.items]}


Expression = Union[Comparison, AllOf, AnyOf]


class ExpressionSyntaxError(ValueError):
    """Raised when a raw expression document cannot be parsed."""

    def __init__(self, violations: list[Violation]):
        self.violations = violations
        super().__init__("; ".join(str(violation) for violation in violations))


def parse_expression(raw: Any, path: str = "expr") -> Expression:
    """Parse a raw expression document, reporting every problem found."""
    errors: list[Violation] = []
    node = _parse(raw, path, errors)
    if errors or node is None:
        raise ExpressionSyntaxError(errors or [Violation(path, "invalid expression")])
    return node


def _parse(raw: Any, path: str, errors: list[Violation], depth: int = 1) -> Expression | None:
    if not isinstance(raw, Mapping):
        errors.append(Violation(path, "expression must be an object"))
        return None

    compound_keys = [key for key in ("all", "any") if key in raw]
    if compound_keys:
        if len(compound_keys) > 1 or "var" in raw:
            errors.append(Violation(path, "expression must use exactly one of 'var', 'all' or 'any'"))
            return None
        if depth >= MAX_EXPRESSION_DEPTH:
            errors.append(Violation(path, f"expression nested too deeply (limit {MAX_EXPRESSION_DEPTH})"))
            return None
        key = compound_keys[0]
        children = raw[key]
        if not isinstance(children, list) or not children:
            errors.append(Violation(f"{path}.{key}", "must be a non-empty list of expressions"))
            return None
        items = [
            _parse(child, f"{path}.{key}[{index}]", errors, depth + 1)
            for index, child in enumerate(children)
        ]
        if any(item is None for item in items):
            return None
        node_type = AllOf if key == "all" else AnyOf
        return node_type(items=tuple(items))  # type: ignore[arg-type]

    start = len(errors)
    var = raw.get("var")
    if not isinstance(var, str) or not var.strip():
        errors.append(Violation(f"{path}.var", "must be a non-empty dotted path"))
    elif any(not segment for segment in var.split(".")):
        errors.append(Violation(f"{path}.var", f"malformed path {var!r}"))

    op = raw.get("op")
    if op not in OPERATORS:
        allowed = ", ".join(sorted(OPERATORS))
        errors.append(Violation(f"{path}.op", f"unsupported operator {op!r} (expected one of {allowed})"))

    if "value" not in raw:
        errors.append(Violation(f"{path}.value", "is required"))

    if len(errors) > start:
        return None
    return Comparison(var=var, op=op, value=copy.deepcopy(raw["value"]))


def resolve_path(data: Any, path: str) -> Any:
    """Walk a dotted path through mappings and sequence indexes.

    Any absent segment, or an explicit ``None`` along the way, resolves to
    :data:`UNDEFINED`.
    """
    current = data
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return UNDEFINED
            current = current[segment]
        elif isinstance(current, Sequence) and _is_collection(current) and _is_index(segment):
            index = int(segment)
            if not -len(current) <= index < len(current):
                return UNDEFINED
            current = current[index]
        else:
            return UNDEFINED
        if current is None:
            return UNDEFINED
    return current


@dataclass(frozen=True, slots=True)
class ExpressionOutcome:
    """Result of evaluating one expression against one profile.

    ``count`` is the number of matching elements when the expression resolved
    to a collection, otherwise ``None``.
    """

    matched: bool
    count: int | None = None
    warnings: tuple[ExpressionResolutionWarning, ...] = ()


class ExpressionEvaluator:
    """Total interpreter for :data:`Expression` trees."""

    def evaluate(self, expression: Expression, profile: Mapping[str, Any]) -> ExpressionOutcome:
        if isinstance(expression, Comparison):
            return self._evaluate_comparison(expression, profile)
        if isinstance(expression, (AllOf, AnyOf)):
            # Every child is evaluated so the warning set does not depend on child order.
            outcomes = [self.evaluate(item, profile) for item in expression.items]
            combine = all if isinstance(expression, AllOf) else any
            return ExpressionOutcome(
                matched=combine(outcome.matched for outcome in outcomes),
                count=None,
                warnings=tuple(warning for outcome in outcomes for warning in outcome.warnings),
            )
        return ExpressionOutcome(
            matched=False,
            warnings=(ExpressionResolutionWarning("", f"unknown expression node {type(expression).__name__}"),),
        )

    def _evaluate_comparison(self, comparison: Comparison, profile: Mapping[str, Any]) -> ExpressionOutcome:
        resolved = resolve_path(profile, comparison.var)
        if resolved is UNDEFINED:
            return _failed(comparison, "path is undefined")

        if comparison.op == INCLUDES:
            return self._evaluate_includes(comparison, resolved)

        if _is_collection(resolved):
            hits = 0
            incomparable = 0
            for element in resolved:
                result = _compare(element, comparison.op, comparison.value)
                if result is None:
                    incomparable += 1
                elif result:
                    hits += 1
            warnings: tuple[ExpressionResolutionWarning, ...] = ()
            if incomparable:
                warnings = (
                    ExpressionResolutionWarning(
                        comparison.var,
                        f"{incomparable} element(s) not comparable with {comparison.value!r}",
                    ),
                )
            return ExpressionOutcome(matched=hits > 0, count=hits, warnings=warnings)

        result = _compare(resolved, comparison.op, comparison.value)
        if result is None:
            return _failed(
                comparison,
                f"cannot compare {type(resolved).__name__} with {type(comparison.value).__name__}",
            )
        return ExpressionOutcome(matched=result)

    @staticmethod
    def _evaluate_includes(comparison: Comparison, resolved: Any) -> ExpressionOutcome:
        if isinstance(resolved, str):
            if not isinstance(comparison.value, str):
                return _failed(comparison, "substring test requires a string value")
            return ExpressionOutcome(matched=comparison.value in resolved)
        if _is_collection(resolved):
            hits = sum(1 for element in resolved if _element_matches(element, comparison.value))
            return ExpressionOutcome(matched=hits > 0, count=hits)
        return _failed(comparison, f"'includes' is not supported on {type(resolved).__name__}")


def _failed(comparison: Comparison, message: str) -> ExpressionOutcome:
    return ExpressionOutcome(
        matched=False,
        warnings=(ExpressionResolutionWarning(comparison.var, message),),
    )


def _is_collection(value: Any) -> bool:
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, (Sequence, set, frozenset))


def _is_index(segment: str) -> bool:
    return segment.lstrip("-").isdigit()


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _comparable_pair(left: Any, right: Any) -> tuple[Any, Any] | None:
    """Return operands that can be ordered against each other, or ``None``."""
    if isinstance(left, bool) or isinstance(right, bool):
        if isinstance(left, bool) and isinstance(right, bool):
            return left, right
        return None
    left_number = _as_number(left)
    right_number = _as_number(right)
    if left_number is not None and right_number is not None:
        return left_number, right_number
    if isinstance(left, str) and isinstance(right, str):
        return left, right
    return None


def _values_equal(left: Any, right: Any) -> bool:
    pair = _comparable_pair(left, right)
    if pair is not None:
        return pair[0] == pair[1]
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _compare(left: Any, op: str, right: Any) -> bool | None:
    """Compare two scalars; ``None`` means the operands are not comparable."""
    pair = _comparable_pair(left, right)
    if op in _EQUALITY:
        if pair is not None:
            equal = pair[0] == pair[1]
        elif type(left) is type(right):
            equal = left == right
        else:
            return None
        return equal if op == "==" else not equal
    if pair is None:
        return None
    return _ORDERING[op](*pair)


def _element_matches(element: Any, value: Any) -> bool:
    if _values_equal(element, value):
        return True
    if isinstance(element, Mapping):
        if isinstance(value, Mapping):
            return all(
                key in element and _values_equal(element[key], expected)
                for key, expected in value.items()
            )
        return any(_values_equal(candidate, value) for candidate in element.values())
    return False


__all__ = [
    "AllOf",
    "AnyOf",
    "Comparison",
    "Expression",
    "ExpressionEvaluator",
    "ExpressionOutcome",
    "ExpressionSyntaxError",
    "INCLUDES",
    "MAX_EXPRESSION_DEPTH",
    "OPERATORS",
    "UNDEFINED",
    "parse_expression",
    "resolve_path",
]
