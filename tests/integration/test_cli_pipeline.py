from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from competitiveness.cli import app
from competitiveness.defaults import default_config_document


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_json(path: Path, payload: object) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


def strong_profile() -> dict:
    return {
        "candidate_id": "C-001",
        "work": {"policeRelatedYears": 4, "fullTimeYears": 4, "hasLeadership": True, "customerFacing": True},
        "fitness": {"prepVerifiedMonthsAgo": 2, "meetsIndicators": True},
        "volunteer": {"last12MonthsHours": 100, "totalHours": 200},
        "education": {"highestCredentialScore": 4, "relevantProgram": True},
        "certs": [{"type": "cpr_c"}, {"type": "mhfa"}],
        "driving": {"licenceClass": "G", "cleanAbstract24m": True},
        "background": {"ok": True},
    }


def write_settings(tmp_path: Path) -> Path:
    settings_path = tmp_path / "settings.yaml"
    settings_path.write_text(f"store:\n  path: {tmp_path / 'store'}\n", encoding="utf-8")
    return settings_path


def test_cli_evaluate_prints_result(tmp_path: Path, runner: CliRunner) -> None:
    profile_path = tmp_path / "profile.json"
    write_json(profile_path, strong_profile())

    result = runner.invoke(app, ["evaluate", "--profile", str(profile_path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["version"] == "ontario-2025-08-20"
    assert payload["level"] == "Competitive"
    assert payload["categoryScores"]["work"]["points"] == pytest.approx(25)


def test_cli_evaluate_derives_profile_from_application(tmp_path: Path, runner: CliRunner) -> None:
    profile_path = tmp_path / "application.json"
    write_json(
        profile_path,
        {
            "source": "application",
            "payload": {
                "candidate_id": "A-1",
                "work_history": [{"role": "Security Guard", "start": "2020-01", "end": "2024-01"}],
            },
        },
    )

    result = runner.invoke(app, ["evaluate", "--profile", str(profile_path), "--as-of", "2025-01"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    matched = [rule["id"] for rule in payload["categoryScores"]["work"]["matchedRules"]]
    assert "relevant_3y_plus" in matched


def test_cli_validate_reports_violations(tmp_path: Path, runner: CliRunner) -> None:
    config_path = tmp_path / "config.json"
    document = default_config_document()
    document["thresholds"] = [{"level": "Competitive", "min": 75}, {"level": "Needs Work", "min": 0}]
    write_json(config_path, document)

    result = runner.invoke(app, ["validate", "--config", str(config_path)])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["valid"] is False
    assert {error["path"] for error in payload["errors"]} == {"thresholds[0].min", "thresholds[1].min"}


def test_cli_validate_accepts_yaml(tmp_path: Path, runner: CliRunner) -> None:
    import yaml

    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(default_config_document()), encoding="utf-8")

    result = runner.invoke(app, ["validate", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["valid"] is True


def test_cli_publish_then_evaluate_uses_published_config(tmp_path: Path, runner: CliRunner) -> None:
    settings_path = write_settings(tmp_path)
    config_path = tmp_path / "config.json"
    document = default_config_document()
    document["version"] = "published-2"
    write_json(config_path, document)
    profile_path = tmp_path / "profile.json"
    write_json(profile_path, strong_profile())

    published = runner.invoke(
        app,
        [
            "publish",
            "--config",
            str(config_path),
            "--editor",
            "admin-1",
            "--note",
            "new season",
            "--settings",
            str(settings_path),
        ],
    )

    assert published.exit_code == 0, published.output
    assert "published-2" in published.stdout
    history = (tmp_path / "store" / "history.jsonl").read_text(encoding="utf-8").splitlines()
    assert json.loads(history[0])["editor_id"] == "admin-1"

    evaluated = runner.invoke(
        app,
        ["evaluate", "--profile", str(profile_path), "--settings", str(settings_path)],
    )

    assert evaluated.exit_code == 0, evaluated.output
    assert json.loads(evaluated.stdout)["version"] == "published-2"


def test_cli_publish_rejects_invalid_config(tmp_path: Path, runner: CliRunner) -> None:
    settings_path = write_settings(tmp_path)
    config_path = tmp_path / "config.json"
    write_json(config_path, {"version": "broken"})

    result = runner.invoke(
        app,
        ["publish", "--config", str(config_path), "--editor", "admin-1", "--settings", str(settings_path)],
    )

    assert result.exit_code == 1
    assert not (tmp_path / "store" / "history.jsonl").exists()


def test_cli_preview_compares_with_published(tmp_path: Path, runner: CliRunner) -> None:
    draft_path = tmp_path / "draft.json"
    document = default_config_document()
    document["version"] = "draft-9"
    write_json(draft_path, document)
    profile_path = tmp_path / "profile.json"
    write_json(profile_path, strong_profile())

    result = runner.invoke(app, ["preview", "--draft", str(draft_path), "--profile", str(profile_path)])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["result"]["version"] == "draft-9"
    assert payload["baseline"]["version"] == "ontario-2025-08-20"
    assert all(delta["delta"] == 0 for delta in payload["deltas"])


def test_cli_runs_pipeline_and_writes_output(tmp_path: Path, runner: CliRunner) -> None:
    profiles_path = tmp_path / "profiles.jsonl"
    output_path = tmp_path / "results.json"
    audit_path = tmp_path / "audit" / "audit.jsonl"
    lines = [
        json.dumps(strong_profile()),
        json.dumps({"profile": {"candidate_id": "C-002", "work": {"policeRelatedYears": 1}}}),
        "{broken",
    ]
    profiles_path.write_text("\n".join(lines), encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "run",
            "--profiles",
            str(profiles_path),
            "--output",
            str(output_path),
            "--audit-log",
            str(audit_path),
            "--log-level",
            "ERROR",
        ],
    )

    assert result.exit_code == 0, result.output
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["metadata"]["profile_count"] == 2
    assert data["metadata"]["config_version"] == "ontario-2025-08-20"
    assert data["metadata"]["errors"][0].startswith("line 3:")
    assert [entry["candidate_id"] for entry in data["results"]] == ["C-001", "C-002"]
    audit_lines = audit_path.read_text(encoding="utf-8").splitlines()
    assert len(audit_lines) == 2
    assert json.loads(audit_lines[0])["level"] == "Competitive"
