"""Content storage for published configs and the live config registry."""

from __future__ import annotations

import json
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable

import pendulum
import structlog

from .config import parse_document
from .core.model import CompetitivenessConfig
from .core.validation import ConfigValidator
from .defaults import default_config_document
from .errors import ConfigError, ConfigPublishError, Violation
from .schemas.config import DEFAULT_CONTENT_KEY


@dataclass(frozen=True, slots=True)
class UpdateResult:
    success: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One accepted write to a content key."""

    key: str
    editor_id: str
    note: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "editor_id": self.editor_id,
            "note": self.note,
            "timestamp": self.timestamp,
        }


@runtime_checkable
class ContentStore(Protocol):
    """Key/value text storage with an attributed change history."""

    def get_content(self, key: str) -> str | None:
        """Return the stored text for ``key`` or ``None`` when absent."""

    def update_content(
        self,
        key: str,
        payload: str,
        editor_id: str,
        changelog_note: str,
    ) -> UpdateResult:
        """Replace the text stored under ``key``."""


class InMemoryContentStore:
    """Process-local store used by default and in tests."""

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        *,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._content = dict(initial or {})
        self._now_provider = now_provider or pendulum.now
        self.history: list[ChangeRecord] = []

    def get_content(self, key: str) -> str | None:
        return self._content.get(key)

    def update_content(self, key: str, payload: str, editor_id: str, changelog_note: str) -> UpdateResult:
        self._content[key] = payload
        self.history.append(
            ChangeRecord(
                key=key,
                editor_id=editor_id,
                note=changelog_note,
                timestamp=self._now_provider().to_iso8601_string(),
            )
        )
        return UpdateResult(success=True)


class FileContentStore:
    """One file per key plus an append-only JSONL change history."""

    HISTORY_FILE = "history.jsonl"

    def __init__(
        self,
        base_path: str | Path,
        *,
        now_provider: Callable[[], pendulum.DateTime] | None = None,
    ) -> None:
        self._base_path = Path(base_path)
        self._now_provider = now_provider or pendulum.now

    @property
    def history_path(self) -> Path:
        return self._base_path / self.HISTORY_FILE

    def _content_path(self, key: str) -> Path:
        return self._base_path / f"{key}.json"

    def get_content(self, key: str) -> str | None:
        path = self._content_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def update_content(self, key: str, payload: str, editor_id: str, changelog_note: str) -> UpdateResult:
        path = self._content_path(key)
        tmp_path = path.with_name(f"{path.name}.tmp")
        record = ChangeRecord(
            key=key,
            editor_id=editor_id,
            note=changelog_note,
            timestamp=self._now_provider().to_iso8601_string(),
        )
        try:
            self._base_path.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
            with self.history_path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(record.to_dict(), ensure_ascii=False))
                handle.write("\n")
        except OSError as exc:
            return UpdateResult(success=False, error=str(exc))
        return UpdateResult(success=True)

    def history(self) -> list[ChangeRecord]:
        if not self.history_path.exists():
            return []
        records: list[ChangeRecord] = []
        with self.history_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                raw = line.strip()
                if raw:
                    records.append(ChangeRecord(**json.loads(raw)))
        return records


class ConfigRegistry:
    """Holds the live config and swaps it atomically on publish.

    Readers call :meth:`current` and get an immutable snapshot; a failed load
    or publish leaves the previous snapshot in place.
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        validator: ConfigValidator | None = None,
        key: str | None = None,
        fallback: dict[str, Any] | None = None,
    ) -> None:
        self._store = store
        self._validator = validator or ConfigValidator()
        self._key = key or DEFAULT_CONTENT_KEY
        self._lock = threading.Lock()
        self._fallback = self._validator.validate(fallback or default_config_document())
        self._current = self._fallback
        self._logger = structlog.get_logger(__name__)

    @property
    def key(self) -> str:
        return self._key

    def current(self) -> CompetitivenessConfig:
        return self._current

    def load(self) -> CompetitivenessConfig:
        """Refresh from the store, keeping the current config on bad content."""
        text = self._store.get_content(self._key)
        if text is None:
            self._logger.info("config.load_default", key=self._key, version=self._current.version)
            return self._current
        try:
            config = self._parse(text)
        except ConfigError as exc:
            self._logger.warning(
                "config.load_rejected",
                key=self._key,
                kept_version=self._current.version,
                violations=[violation.to_dict() for violation in exc.violations],
            )
            return self._current
        with self._lock:
            self._current = config
        self._logger.info("config.loaded", key=self._key, version=config.version)
        return config

    def publish(self, payload: str, *, editor_id: str, note: str = "") -> CompetitivenessConfig:
        """Validate ``payload``, write it through the store and make it live."""
        try:
            config = self._parse(payload)
        except ConfigError as exc:
            self._logger.warning(
                "config.publish_rejected",
                key=self._key,
                editor_id=editor_id,
                violations=[violation.to_dict() for violation in exc.violations],
            )
            raise

        with self._lock:
            result = self._store.update_content(self._key, payload, editor_id, note)
            if not result.success:
                self._logger.error(
                    "config.publish_failed",
                    key=self._key,
                    editor_id=editor_id,
                    error=result.error,
                )
                raise ConfigPublishError(self._key, result.error)
            previous = self._current
            self._current = config

        self._logger.info(
            "config.published",
            key=self._key,
            editor_id=editor_id,
            version=config.version,
            previous_version=previous.version,
            note=note,
        )
        return config

    def _parse(self, text: str) -> CompetitivenessConfig:
        try:
            raw = parse_document(text)
        except ValueError as exc:
            raise ConfigError([Violation("", str(exc))]) from exc
        return self._validator.validate(raw)


__all__ = [
    "ChangeRecord",
    "ConfigRegistry",
    "ContentStore",
    "FileContentStore",
    "InMemoryContentStore",
    "UpdateResult",
]
