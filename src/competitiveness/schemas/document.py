"""Pydantic schema for the persisted competitiveness config document."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ThresholdDocument(BaseModel):
    """Level breakpoint as stored in the document."""

    level: str = Field(min_length=1)
    min: float = Field(ge=0, le=100)

    model_config = ConfigDict(extra="ignore")


class RuleDocument(BaseModel):
    """Rule entry; ``expr`` is checked separately by the expression parser."""

    id: str = Field(min_length=1)
    points: float = Field(ge=0)
    repeatable: bool = False
    cap: float | None = Field(default=None, ge=0)
    expr: dict[str, Any] | None = None
    type: Literal["add", "bonus"] = "add"

    model_config = ConfigDict(extra="ignore")


class CategoryDocument(BaseModel):
    """Scoring category with its rules."""

    key: str = Field(min_length=1)
    display_name: str | None = Field(default=None, alias="displayName")
    max_points: float = Field(alias="maxPoints", ge=0)
    rules: list[RuleDocument] = Field(default_factory=list)
    stages: list[ThresholdDocument] | None = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DisqualifierDocument(BaseModel):
    """Hard-stop entry. ``forcedLevel`` defaults to the lowest threshold."""

    id: str | None = None
    expr: dict[str, Any]
    forced_level: str | None = Field(default=None, alias="forcedLevel")

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ConfigDocument(BaseModel):
    """Top-level config document edited by administrators."""

    version: str = Field(min_length=1)
    categories: list[CategoryDocument] = Field(min_length=1)
    thresholds: list[ThresholdDocument] = Field(min_length=1)
    disqualifiers: list[DisqualifierDocument] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
