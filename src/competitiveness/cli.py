"""Typer CLI entrypoint for the competitiveness engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError

from .config import load_document
from .container import EngineContainer, create_container
from .errors import ConfigError, ConfigPublishError
from .logging import bind_editor, clear_context, configure_logging
from .pipeline import AuditLogger
from .schemas import CandidateProfile
from .schemas.config import load_config

app = typer.Typer(help="Competitiveness scoring CLI.")

SETTINGS_OPTION = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML settings path.")
LOG_LEVEL_OPTION = typer.Option("WARNING", help="Log level for structured logging.")


def _load_settings(path: Optional[Path]) -> dict[str, Any]:
    if not path:
        return {}
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise typer.BadParameter("Settings file must be a YAML object", param_name="settings")
    try:
        return load_config(loaded).to_settings()
    except ValidationError as exc:
        raise typer.BadParameter(str(exc), param_name="settings") from exc


def _build_container(settings: Optional[Path], log_level: str) -> EngineContainer:
    configure_logging(log_level)
    container = create_container(settings=_load_settings(settings))
    container.config_registry().load()
    return container


def _read_profile(container: EngineContainer, path: Path, as_of: Optional[str]) -> CandidateProfile:
    with path.open("r", encoding="utf-8") as handle:
        try:
            record = json.load(handle)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid profile JSON: {exc}", param_name="profile") from exc
    if not isinstance(record, dict):
        raise typer.BadParameter("Profile must be a JSON object", param_name="profile")
    try:
        source = record.get("source")
        if source:
            adapter = container.adapter_registry().get(source)
            return adapter.build(record.get("payload", record), as_of=as_of)
        return CandidateProfile.model_validate(record.get("profile", record))
    except (KeyError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_name="profile") from exc


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def _echo_violations(exc: ConfigError) -> None:
    for violation in exc.violations:
        typer.echo(f"error: {violation}", err=True)


@app.command()
def evaluate(
    profile: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Profile JSON path."),
    config: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Config document (JSON or YAML)."
    ),
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM or ISO) for derived metrics."),
    settings: Optional[Path] = SETTINGS_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Score a single profile and print the result."""
    container = _build_container(settings, log_level)
    candidate = _read_profile(container, profile, as_of)

    if config:
        try:
            active = container.validator().validate(load_document(config))
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_name="config") from exc
        except ConfigError as exc:
            _echo_violations(exc)
            raise typer.Exit(code=1) from exc
    else:
        active = container.config_registry().current()

    result = container.engine().evaluate(active, candidate)
    _echo_json(result.to_dict())


@app.command()
def validate(
    config: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Config document path."),
    settings: Optional[Path] = SETTINGS_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Check a config document and report every violation."""
    configure_logging(log_level)
    container = create_container(settings=_load_settings(settings))
    try:
        raw = load_document(config)
    except ValueError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    report = container.validator().check(raw)
    _echo_json(report.to_dict())
    if not report.valid:
        raise typer.Exit(code=1)


@app.command()
def preview(
    draft: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Draft config JSON path."),
    profile: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Sample profile JSON path."),
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM or ISO) for derived metrics."),
    compare: bool = typer.Option(True, help="Compare against the currently published config."),
    settings: Optional[Path] = SETTINGS_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Evaluate a draft config against a sample profile without publishing it."""
    container = _build_container(settings, log_level)
    candidate = _read_profile(container, profile, as_of)
    baseline = container.config_registry().current() if compare else None

    report = container.preview_service().preview(
        draft.read_text(encoding="utf-8"),
        candidate,
        baseline=baseline,
    )
    _echo_json(report.to_dict())
    if not report.valid:
        raise typer.Exit(code=1)


@app.command()
def publish(
    config: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Config JSON path."),
    editor: str = typer.Option(..., help="Identifier of the administrator publishing the change."),
    note: str = typer.Option("", help="Changelog note stored with the change."),
    settings: Optional[Path] = SETTINGS_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
) -> None:
    """Validate a config and make it the published config."""
    container = _build_container(settings, log_level)
    registry = container.config_registry()

    bind_editor(editor)
    try:
        published = registry.publish(config.read_text(encoding="utf-8"), editor_id=editor, note=note)
    except ConfigError as exc:
        _echo_violations(exc)
        raise typer.Exit(code=1) from exc
    except ConfigPublishError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    finally:
        clear_context()

    typer.echo(f"Published config {published.version} to {registry.key}.")


@app.command()
def run(
    profiles: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Profiles JSONL path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    config: Optional[Path] = typer.Option(
        None, exists=True, readable=True, dir_okay=False, help="Config document (JSON or YAML)."
    ),
    as_of: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM or ISO) for derived metrics."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
    settings: Optional[Path] = SETTINGS_OPTION,
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Score every profile in a JSONL file."""
    container = _build_container(settings, log_level)
    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None

    try:
        results = pipeline.run(
            profiles_path=profiles,
            output_path=output,
            config_path=config,
            as_of=as_of,
            audit_logger=audit_logger,
        )
    except ConfigError as exc:
        _echo_violations(exc)
        raise typer.Exit(code=1) from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc
    typer.echo(f"Scored {len(results)} profiles. Results saved to {output}.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
