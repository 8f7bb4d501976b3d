from __future__ import annotations

import json

import pytest

from competitiveness.container import create_container
from competitiveness.defaults import default_config_document


def sample_profile() -> dict:
    return {
        "work": {"policeRelatedYears": 1.5, "fullTimeYears": 3},
        "certs": [{"type": "cpr_c"}],
        "background": {"ok": True},
    }


def test_preview_reports_deltas_against_baseline():
    container = create_container()
    service = container.preview_service()
    baseline = container.config_registry().current()

    draft = default_config_document()
    draft["version"] = "draft-1"
    work_rules = draft["categories"][0]["rules"]
    next(rule for rule in work_rules if rule["id"] == "relevant_1to2y")["points"] = 20

    report = service.preview(json.dumps(draft), sample_profile(), baseline=baseline)

    assert report.valid
    assert report.result is not None and report.result.version == "draft-1"
    deltas = {delta.key: delta for delta in report.deltas}
    assert deltas["work"].draft_points == pytest.approx(25)
    assert deltas["work"].baseline_points == pytest.approx(17)
    assert deltas["work"].delta == pytest.approx(8)
    assert deltas["certs"].delta == pytest.approx(0)
    assert container.config_registry().current() is baseline


def test_preview_without_baseline_has_no_deltas():
    service = create_container().preview_service()

    report = service.preview(default_config_document(), sample_profile())

    assert report.valid
    assert report.baseline is None
    assert report.deltas == ()
    assert report.level_changed is False


def test_preview_returns_violations_for_invalid_draft():
    service = create_container().preview_service()
    draft = default_config_document()
    draft["categories"][0]["rules"][0]["expr"]["op"] = "approximately"

    report = service.preview(json.dumps(draft), sample_profile())

    assert report.valid is False
    assert report.result is None
    assert [error.path for error in report.errors] == ["categories[0].rules[0].expr.op"]
    payload = report.to_dict()
    assert payload["valid"] is False
    assert payload["result"] is None


def test_preview_rejects_unparseable_draft():
    report = create_container().preview_service().preview("{oops", sample_profile())

    assert report.valid is False
    assert report.errors[0].path == ""


def test_preview_detects_level_change():
    container = create_container()
    baseline = container.config_registry().current()
    draft = default_config_document()
    draft["version"] = "generous"
    draft["thresholds"] = [{"level": "Needs Work", "min": 0}, {"level": "Competitive", "min": 1}]

    report = container.preview_service().preview(draft, sample_profile(), baseline=baseline)

    assert report.result is not None and report.result.level == "Competitive"
    assert report.level_changed is True
    assert report.to_dict()["levelChanged"] is True
