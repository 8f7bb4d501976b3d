"""Batch scoring pipeline assembly and execution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

import pendulum
import structlog
from pydantic import ValidationError

from . import __version__
from .adapters import ApplicationProfileAdapter, ProfileAdapter
from .config import load_document
from .core import CompetitivenessConfig, ConfigValidator, EvaluationMemo
from .errors import CompetitivenessError
from .schemas import CandidateProfile
from .store import ConfigRegistry


class AdapterRegistry:
    """Registry mapping record sources to profile adapters."""

    def __init__(self, adapters: Iterable[ProfileAdapter]):
        self._adapters = {adapter.source: adapter for adapter in adapters}

    def get(self, source: str) -> ProfileAdapter:
        try:
            return self._adapters[source]
        except KeyError as exc:
            raise KeyError(f"Unsupported source: {source!r}") from exc

    def sources(self) -> List[str]:
        return list(self._adapters.keys())


class ProfileLoadError(CompetitivenessError, ValueError):
    """Raised when profile loading encounters invalid records."""

    def __init__(self, errors: list[str], partial: list[CandidateProfile]):
        super().__init__("Profile loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Profile loading failed: {self.errors}"


class ProfileLoader:
    """Load candidate profiles from JSONL.

    Each line is either a ready profile (optionally wrapped as
    ``{"profile": {...}}``) or a raw record tagged with a ``source`` that an
    adapter turns into a profile.
    """

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry

    def load(self, path: Path, *, as_of: str | None = None) -> list[CandidateProfile]:
        profiles: list[CandidateProfile] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: expected a JSON object")
                    continue

                source = record.get("source")
                try:
                    if source:
                        adapter = self._registry.get(source)
                        profile = adapter.build(record.get("payload", record), as_of=as_of)
                    else:
                        profile = CandidateProfile.model_validate(record.get("profile", record))
                except KeyError:
                    errors.append(f"line {idx}: unsupported source '{source}'")
                    continue
                except ValidationError as exc:
                    errors.append(f"line {idx}: {exc.error_count()} validation error(s): {exc.errors()[0]['msg']}")
                    continue
                profiles.append(profile)
        if errors:
            raise ProfileLoadError(errors, profiles)
        return profiles


class ConfigLoader:
    """Load and validate a config document from disk."""

    def __init__(self, validator: ConfigValidator | None = None):
        self._validator = validator or ConfigValidator()

    def load(self, path: Path) -> CompetitivenessConfig:
        try:
            raw = load_document(path)
        except ValueError as exc:
            raise ValueError(f"Invalid config document {path}: {exc}") from exc
        return self._validator.validate(raw)


class OutputWriter:
    """Persist scoring outcomes."""

    def write(self, path: Path, payload: dict | list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class AuditLogger:
    """Append-only audit logger writing JSON lines."""

    def __init__(self, path: Path):
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: dict) -> None:
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, ensure_ascii=False))
            handle.write("\n")


class ScoringPipeline:
    """End-to-end batch scoring orchestrator."""

    def __init__(
        self,
        *,
        memo: EvaluationMemo,
        registry: ConfigRegistry,
        adapters: AdapterRegistry,
        profile_loader: ProfileLoader | None = None,
        config_loader: ConfigLoader | None = None,
        writer: OutputWriter | None = None,
    ) -> None:
        self._memo = memo
        self._registry = registry
        self._profiles = profile_loader or ProfileLoader(adapters)
        self._configs = config_loader or ConfigLoader()
        self._writer = writer or OutputWriter()
        self._logger = structlog.get_logger(__name__)

    def run(
        self,
        *,
        profiles_path: Path,
        output_path: Path,
        config_path: Path | None = None,
        as_of: str | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> list[dict]:
        config = self._configs.load(config_path) if config_path else self._registry.current()

        load_errors: list[str] = []
        try:
            profiles = self._profiles.load(profiles_path, as_of=as_of)
        except ProfileLoadError as exc:
            profiles = exc.partial
            load_errors.extend(exc.errors)
            self._logger.warning("profiles.partial_load", errors=exc.errors)

        serialized_results: list[dict] = []
        for profile in profiles:
            result = self._memo.evaluate(config, profile)
            entry = {"candidate_id": profile.candidate_id, **result.to_dict()}
            serialized_results.append(entry)

            if audit_logger:
                audit_logger.append(
                    {
                        "candidate_id": profile.candidate_id,
                        "fingerprint": profile.fingerprint(),
                        "version": result.version,
                        "total_percent": result.total_percent,
                        "level": result.level,
                        "disqualifiers": list(result.disqualifiers),
                        "warnings": len(result.warnings),
                    }
                )

            self._logger.info(
                "pipeline.result",
                candidate_id=profile.candidate_id,
                version=result.version,
                level=result.level,
                total_percent=result.total_percent,
                disqualified=result.disqualified,
            )

        metadata = {
            "config_version": config.version,
            "profile_count": len(profiles),
            "errors": load_errors,
            "timestamp": pendulum.now().to_iso8601_string(),
            "app_version": __version__,
        }
        self._writer.write(output_path, {"metadata": metadata, "results": serialized_results})
        return serialized_results


def default_adapters() -> AdapterRegistry:
    """Return the default adapter registry."""
    return AdapterRegistry(adapters=[ApplicationProfileAdapter()])


__all__ = [
    "AdapterRegistry",
    "AuditLogger",
    "ConfigLoader",
    "OutputWriter",
    "ProfileLoadError",
    "ProfileLoader",
    "ScoringPipeline",
    "default_adapters",
]
