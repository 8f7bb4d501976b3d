"""Dependency injection container for the competitiveness engine."""

from __future__ import annotations

from dependency_injector import containers, providers

from .adapters import ApplicationProfileAdapter, ApplicationProfileConfig
from .core import (
    CompetitivenessEngine,
    ConfigValidator,
    DisqualifierGate,
    EvaluationMemo,
    ExpressionEvaluator,
    RuleAccumulator,
    ScoreNormalizer,
)
from .pipeline import AdapterRegistry, ConfigLoader, ScoringPipeline
from .preview import PreviewService
from .store import ConfigRegistry, FileContentStore, InMemoryContentStore


class EngineContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    expression_evaluator = providers.Singleton(ExpressionEvaluator)
    rule_accumulator = providers.Singleton(RuleAccumulator, evaluator=expression_evaluator)
    disqualifier_gate = providers.Singleton(DisqualifierGate, evaluator=expression_evaluator)
    score_normalizer = providers.Singleton(ScoreNormalizer)

    engine = providers.Singleton(
        CompetitivenessEngine,
        accumulator=rule_accumulator,
        gate=disqualifier_gate,
        normalizer=score_normalizer,
    )

    validator = providers.Singleton(ConfigValidator, max_rules=config.engine.max_rules)

    content_store = providers.Singleton(InMemoryContentStore)

    config_registry = providers.Singleton(
        ConfigRegistry,
        store=content_store,
        validator=validator,
        key=config.store.content_key,
    )

    memo = providers.Factory(EvaluationMemo, engine=engine, max_entries=config.engine.memo_size)

    application_adapter = providers.Singleton(ApplicationProfileAdapter)

    adapter_registry = providers.Singleton(
        AdapterRegistry,
        adapters=providers.List(application_adapter),
    )

    preview_service = providers.Factory(PreviewService, engine=engine, validator=validator)

    pipeline = providers.Factory(
        ScoringPipeline,
        memo=memo,
        registry=config_registry,
        adapters=adapter_registry,
        config_loader=providers.Factory(ConfigLoader, validator=validator),
    )


def create_container(*, settings: dict | None = None) -> EngineContainer:
    """Instantiate container with optional overrides."""

    container = EngineContainer()

    if not settings:
        return container

    container.config.from_dict(
        {key: settings[key] for key in ("engine", "store") if isinstance(settings.get(key), dict)}
    )

    store_path = (settings.get("store") or {}).get("path")
    if store_path:
        container.content_store.override(providers.Singleton(FileContentStore, base_path=store_path))

    adapter_settings = settings.get("adapter") or {}
    if adapter_settings:
        adapter_config = ApplicationProfileConfig(**adapter_settings)
        container.application_adapter.override(
            providers.Singleton(ApplicationProfileAdapter, config=adapter_config)
        )

    return container


__all__ = ["EngineContainer", "create_container"]
