from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from competitiveness.container import create_container
from competitiveness.schemas.config import DEFAULT_CONTENT_KEY, AppConfig, load_config
from competitiveness.store import FileContentStore, InMemoryContentStore


def test_create_container_defaults():
    container = create_container()

    assert isinstance(container.content_store(), InMemoryContentStore)
    assert container.validator().max_rules == 500
    assert container.config_registry().key == DEFAULT_CONTENT_KEY
    assert container.engine() is container.engine()
    assert container.config_registry().current().version == "ontario-2025-08-20"


def test_create_container_with_overrides(tmp_path: Path):
    container = create_container(
        settings={
            "engine": {"max_rules": 50, "memo_size": 8},
            "store": {"path": str(tmp_path), "content_key": "custom.key"},
            "adapter": {"min_similarity": 90.0, "full_time_hours": 35.0},
        }
    )

    assert container.validator().max_rules == 50
    assert isinstance(container.content_store(), FileContentStore)
    assert container.config_registry().key == "custom.key"
    memo = container.memo()
    assert memo._max_entries == 8
    adapter = container.application_adapter()
    assert adapter._config.min_similarity == 90.0
    assert adapter._config.full_time_hours == 35.0


def test_load_config_validation():
    data = {
        "engine": {"max_rules": 200},
        "store": {"path": "/var/lib/competitiveness"},
        "adapter": {"police_related_roles": ["Security Guard"]},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings["engine"] == {"max_rules": 200}
    assert settings["store"]["content_key"] == DEFAULT_CONTENT_KEY
    assert settings["adapter"]["police_related_roles"] == ("Security Guard",)


def test_load_config_rejects_bad_values():
    assert load_config(None).to_settings() == {"store": {"content_key": DEFAULT_CONTENT_KEY}}

    with pytest.raises(ValidationError):
        load_config({"engine": {"max_rules": 0}})
    with pytest.raises(ValidationError):
        load_config(["engine"])
