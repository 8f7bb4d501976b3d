"""Pydantic configuration schema for CLI YAML settings."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

DEFAULT_CONTENT_KEY = "application.competitiveness.config"


class EngineSettings(BaseModel):
    max_rules: int | None = Field(default=None, gt=0)
    memo_size: int | None = Field(default=None, gt=0)


class StoreSettings(BaseModel):
    path: str | None = None
    content_key: str = DEFAULT_CONTENT_KEY


class AdapterSettings(BaseModel):
    police_related_roles: list[str] | None = None
    customer_facing_roles: list[str] | None = None
    relevant_programs: list[str] | None = None
    min_similarity: float | None = Field(default=None, ge=0, le=100)
    full_time_hours: float | None = Field(default=None, gt=0)
    recent_cert_months: int | None = Field(default=None, gt=0)


class AppConfig(BaseModel):
    engine: EngineSettings = Field(default_factory=EngineSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    adapter: AdapterSettings = Field(default_factory=AdapterSettings)

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        engine_settings = self.engine.model_dump(exclude_none=True)
        if engine_settings:
            settings["engine"] = engine_settings
        settings["store"] = self.store.model_dump(exclude_none=True)
        adapter_settings = {
            key: tuple(value) if isinstance(value, list) else value
            for key, value in self.adapter.model_dump(exclude_none=True).items()
        }
        if adapter_settings:
            settings["adapter"] = adapter_settings
        return settings


def load_config(raw: Any) -> AppConfig:
    if raw is None:
        return AppConfig()
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)
