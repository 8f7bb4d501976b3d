"""Validation of raw config documents into typed configs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import structlog
from pydantic import ValidationError

from ..errors import ConfigError, Violation
from ..schemas.document import ConfigDocument
from .expressions import Expression, ExpressionSyntaxError, parse_expression
from .model import Category, CompetitivenessConfig, Disqualifier, Rule, Threshold

DEFAULT_MAX_RULES = 500


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of checking a document. ``config`` is set only when there are no errors."""

    config: CompetitivenessConfig | None
    errors: tuple[Violation, ...] = ()
    warnings: tuple[Violation, ...] = ()

    @property
    def valid(self) -> bool:
        return self.config is not None and not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "version": self.config.version if self.config else None,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


@dataclass
class _Expressions:
    rules: dict[tuple[int, int], Expression]
    disqualifiers: dict[int, Expression]


class ConfigValidator:
    """Check a raw config document and build a :class:`CompetitivenessConfig`.

    Shape and type problems come from the pydantic document schema; the
    cross-field checks (unique keys, threshold ordering, expression syntax,
    rule ceiling) run on the raw mapping so every violation is reported in one
    pass, even when the document also has shape errors.
    """

    def __init__(self, max_rules: int | None = None) -> None:
        self._max_rules = max_rules or DEFAULT_MAX_RULES
        self._logger = structlog.get_logger(__name__)

    @property
    def max_rules(self) -> int:
        return self._max_rules

    def check(self, raw: Any) -> ValidationReport:
        if not isinstance(raw, Mapping):
            return ValidationReport(
                config=None,
                errors=(Violation("", "config must be a JSON object"),),
            )

        errors: list[Violation] = []
        warnings: list[Violation] = []

        document: ConfigDocument | None = None
        try:
            document = ConfigDocument.model_validate(dict(raw))
        except ValidationError as exc:
            errors.extend(_violations_from_pydantic(exc))

        expressions = _Expressions(rules={}, disqualifiers={})
        self._check_categories(raw.get("categories"), expressions, errors, warnings)
        levels = self._check_thresholds(raw.get("thresholds"), errors)
        self._check_disqualifiers(raw.get("disqualifiers"), levels, expressions, errors, warnings)

        if errors or document is None:
            return ValidationReport(config=None, errors=tuple(errors), warnings=tuple(warnings))
        return ValidationReport(
            config=_build_config(document, expressions),
            warnings=tuple(warnings),
        )

    def validate(self, raw: Any) -> CompetitivenessConfig:
        """Return the typed config or raise :class:`ConfigError` with every violation."""
        report = self.check(raw)
        for warning in report.warnings:
            self._logger.warning("config.validation_warning", path=warning.path, message=warning.message)
        if report.valid and report.config is not None:
            return report.config
        raise ConfigError(report.errors)

    def _check_categories(
        self,
        categories: Any,
        expressions: _Expressions,
        errors: list[Violation],
        warnings: list[Violation],
    ) -> None:
        if not isinstance(categories, list):
            return

        seen_keys: dict[str, int] = {}
        rule_total = 0
        for category_index, category in enumerate(categories):
            if not isinstance(category, Mapping):
                continue
            path = f"categories[{category_index}]"

            key = category.get("key")
            if isinstance(key, str) and key:
                if key in seen_keys:
                    errors.append(
                        Violation(
                            f"{path}.key",
                            f"duplicate category key {key!r} (first defined at categories[{seen_keys[key]}])",
                        )
                    )
                else:
                    seen_keys[key] = category_index

            rules = category.get("rules")
            if isinstance(rules, list):
                rule_total += len(rules)
                self._check_rules(category_index, rules, expressions, errors, warnings)

            stages = category.get("stages")
            if isinstance(stages, list) and stages:
                _check_threshold_table(stages, f"{path}.stages", errors)

        if rule_total > self._max_rules:
            errors.append(
                Violation(
                    "categories",
                    f"config defines {rule_total} rules; at most {self._max_rules} are allowed",
                )
            )

    @staticmethod
    def _check_rules(
        category_index: int,
        rules: list[Any],
        expressions: _Expressions,
        errors: list[Violation],
        warnings: list[Violation],
    ) -> None:
        seen_ids: dict[str, int] = {}
        for rule_index, rule in enumerate(rules):
            if not isinstance(rule, Mapping):
                continue
            path = f"categories[{category_index}].rules[{rule_index}]"

            rule_id = rule.get("id")
            if isinstance(rule_id, str) and rule_id:
                if rule_id in seen_ids:
                    errors.append(
                        Violation(
                            f"{path}.id",
                            f"duplicate rule id {rule_id!r} (first defined at rules[{seen_ids[rule_id]}])",
                        )
                    )
                else:
                    seen_ids[rule_id] = rule_index

            if rule.get("cap") is not None and rule.get("repeatable") is not True:
                warnings.append(Violation(f"{path}.cap", "cap has no effect because the rule is not repeatable"))

            expr = rule.get("expr")
            if isinstance(expr, Mapping):
                parsed = _parse_into(expr, f"{path}.expr", errors)
                if parsed is not None:
                    expressions.rules[(category_index, rule_index)] = parsed

    @staticmethod
    def _check_thresholds(thresholds: Any, errors: list[Violation]) -> set[str]:
        if not isinstance(thresholds, list) or not thresholds:
            return set()
        _check_threshold_table(thresholds, "thresholds", errors)
        return {
            entry["level"]
            for entry in thresholds
            if isinstance(entry, Mapping) and isinstance(entry.get("level"), str)
        }

    @staticmethod
    def _check_disqualifiers(
        disqualifiers: Any,
        levels: set[str],
        expressions: _Expressions,
        errors: list[Violation],
        warnings: list[Violation],
    ) -> None:
        if not isinstance(disqualifiers, list):
            return
        seen_ids: dict[str, int] = {}
        for index, disqualifier in enumerate(disqualifiers):
            if not isinstance(disqualifier, Mapping):
                continue
            path = f"disqualifiers[{index}]"

            disqualifier_id = disqualifier.get("id")
            if isinstance(disqualifier_id, str) and disqualifier_id:
                if disqualifier_id in seen_ids:
                    errors.append(Violation(f"{path}.id", f"duplicate disqualifier id {disqualifier_id!r}"))
                else:
                    seen_ids[disqualifier_id] = index

            forced_level = disqualifier.get("forcedLevel")
            if isinstance(forced_level, str) and levels and forced_level not in levels:
                warnings.append(
                    Violation(
                        f"{path}.forcedLevel",
                        f"level {forced_level!r} is not in thresholds and ranks as the most severe level",
                    )
                )

            expr = disqualifier.get("expr")
            if isinstance(expr, Mapping):
                parsed = _parse_into(expr, f"{path}.expr", errors)
                if parsed is not None:
                    expressions.disqualifiers[index] = parsed


def _parse_into(raw: Mapping[str, Any], path: str, errors: list[Violation]) -> Expression | None:
    try:
        return parse_expression(raw, path)
    except ExpressionSyntaxError as exc:
        errors.extend(exc.violations)
        return None


def _check_threshold_table(entries: Sequence[Any], path: str, errors: list[Violation]) -> None:
    mins: list[tuple[int, float]] = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            continue
        value = _number(entry.get("min"))
        if value is not None:
            mins.append((index, value))

    for (_, previous), (index, current) in zip(mins, mins[1:]):
        if current < previous:
            errors.append(
                Violation(
                    f"{path}[{index}].min",
                    f"must be sorted ascending by min ({current:g} follows {previous:g})",
                )
            )

    if mins and mins[0][0] == 0 and mins[0][1] != 0:
        errors.append(Violation(f"{path}[0].min", "lowest threshold must start at 0"))


def _number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _violations_from_pydantic(exc: ValidationError) -> list[Violation]:
    return [Violation(_format_loc(error["loc"]), error["msg"]) for error in exc.errors()]


def _format_loc(loc: Sequence[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif path:
            path += f".{part}"
        else:
            path = str(part)
    return path


def _build_config(document: ConfigDocument, expressions: _Expressions) -> CompetitivenessConfig:
    thresholds = tuple(Threshold(level=item.level, min=item.min) for item in document.thresholds)

    categories = tuple(
        Category(
            key=category.key,
            display_name=category.display_name or category.key,
            max_points=category.max_points,
            rules=tuple(
                Rule(
                    id=rule.id,
                    points=rule.points,
                    repeatable=rule.repeatable,
                    cap=rule.cap,
                    expr=expressions.rules.get((category_index, rule_index)),
                    kind=rule.type,
                )
                for rule_index, rule in enumerate(category.rules)
            ),
            stages=tuple(Threshold(level=stage.level, min=stage.min) for stage in category.stages or ()),
        )
        for category_index, category in enumerate(document.categories)
    )

    disqualifiers = tuple(
        Disqualifier(
            id=item.id or f"disqualifier[{index}]",
            expr=expressions.disqualifiers[index],
            forced_level=item.forced_level or thresholds[0].level,
        )
        for index, item in enumerate(document.disqualifiers)
    )

    return CompetitivenessConfig(
        version=document.version,
        categories=categories,
        thresholds=thresholds,
        disqualifiers=disqualifiers,
    )


__all__ = ["ConfigValidator", "DEFAULT_MAX_RULES", "ValidationReport"]
