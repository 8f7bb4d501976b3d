from __future__ import annotations

import json
from pathlib import Path

import pytest

from competitiveness.container import create_container
from competitiveness.defaults import default_config_document
from competitiveness.errors import ConfigError
from competitiveness.pipeline import AuditLogger, ProfileLoader, ProfileLoadError, default_adapters


def write_lines(path: Path, records: list[object]) -> None:
    path.write_text(
        "\n".join(record if isinstance(record, str) else json.dumps(record) for record in records),
        encoding="utf-8",
    )


def application_line(candidate_id: str) -> dict:
    return {
        "source": "application",
        "payload": {
            "candidate_id": candidate_id,
            "work_history": [{"role": "By-law Officer", "start": "2022-01", "end": "2024-01"}],
            "certs_details": [{"name": "CPR-C"}],
        },
    }


def test_profile_loader_collects_errors_with_partial_results(tmp_path: Path):
    path = tmp_path / "profiles.jsonl"
    write_lines(
        path,
        [
            application_line("A-1"),
            {"source": "unknown", "payload": {}},
            [1, 2, 3],
            {"work": "not-a-mapping"},
            "",
            {"candidate_id": "C-9", "work": {"policeRelatedYears": 2}},
        ],
    )

    with pytest.raises(ProfileLoadError) as excinfo:
        ProfileLoader(default_adapters()).load(path, as_of="2025-01")

    errors = excinfo.value.errors
    assert [error.split(":")[0] for error in errors] == ["line 2", "line 3", "line 4"]
    assert "unsupported source 'unknown'" in errors[0]
    assert [profile.candidate_id for profile in excinfo.value.partial] == ["A-1", "C-9"]
    assert excinfo.value.partial[0].work["policeRelatedYears"] == pytest.approx(2.0)


def test_pipeline_scores_with_explicit_config_and_memo(tmp_path: Path):
    profiles_path = tmp_path / "profiles.jsonl"
    output_path = tmp_path / "out" / "results.json"
    config_path = tmp_path / "config.json"
    audit_path = tmp_path / "audit.jsonl"

    document = default_config_document()
    document["version"] = "batch-1"
    config_path.write_text(json.dumps(document), encoding="utf-8")
    same = {"candidate_id": "C-1", "work": {"policeRelatedYears": 5}}
    write_lines(profiles_path, [same, same, application_line("A-2")])

    pipeline = create_container().pipeline()
    results = pipeline.run(
        profiles_path=profiles_path,
        output_path=output_path,
        config_path=config_path,
        as_of="2025-01",
        audit_logger=AuditLogger(audit_path),
    )

    assert [entry["version"] for entry in results] == ["batch-1"] * 3
    assert results[0] == results[1]
    assert pipeline._memo.hits == 1
    data = json.loads(output_path.read_text(encoding="utf-8"))
    assert data["metadata"]["config_version"] == "batch-1"
    assert data["metadata"]["errors"] == []
    assert data["results"][2]["candidate_id"] == "A-2"
    audit = [json.loads(line) for line in audit_path.read_text(encoding="utf-8").splitlines()]
    assert audit[0]["fingerprint"] == audit[1]["fingerprint"]


def test_pipeline_rejects_invalid_config(tmp_path: Path):
    profiles_path = tmp_path / "profiles.jsonl"
    config_path = tmp_path / "config.yaml"
    config_path.write_text("version: broken\ncategories: []\n", encoding="utf-8")
    write_lines(profiles_path, [{"candidate_id": "C-1"}])

    with pytest.raises(ConfigError):
        create_container().pipeline().run(
            profiles_path=profiles_path,
            output_path=tmp_path / "results.json",
            config_path=config_path,
        )

    assert not (tmp_path / "results.json").exists()
