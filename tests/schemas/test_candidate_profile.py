from __future__ import annotations

import pytest
from pydantic import ValidationError

from competitiveness.schemas import (
    ApplicationRecord,
    CandidateProfile,
    ConfigDocument,
    WorkEntry,
    fingerprint_facts,
)


def test_candidate_profile_defaults():
    profile = CandidateProfile(candidate_id="C-001")

    assert profile.work is None
    assert profile.certs is None
    assert profile.facts() == {"candidate_id": "C-001"}


def test_candidate_profile_keeps_unknown_sections():
    profile = CandidateProfile.model_validate({"work": {"policeRelatedYears": 2}, "languages": {"french": True}})

    facts = profile.facts()
    assert facts["work"]["policeRelatedYears"] == 2
    assert facts["languages"] == {"french": True}


def test_fingerprint_ignores_key_order():
    left = CandidateProfile.model_validate({"work": {"a": 1, "b": 2}, "fitness": {"x": True}})
    right = CandidateProfile.model_validate({"fitness": {"x": True}, "work": {"b": 2, "a": 1}})

    assert left.fingerprint() == right.fingerprint()
    assert left.fingerprint() == fingerprint_facts({"work": {"a": 1, "b": 2}, "fitness": {"x": True}})
    assert left.fingerprint() != CandidateProfile(work={"a": 2, "b": 2}).fingerprint()


def test_candidate_profile_rejects_wrong_section_types():
    with pytest.raises(ValidationError):
        CandidateProfile.model_validate({"work": ["not", "a", "mapping"]})


def test_application_record_defaults_and_entries():
    record = ApplicationRecord.model_validate(
        {
            "candidate_id": "A-1",
            "work_history": [{"employer": "Mall", "title": "Guard", "hours_per_week": "40", "extra": 1}],
        }
    )

    assert isinstance(record.work_history[0], WorkEntry)
    assert record.work_history[0].hours_per_week == pytest.approx(40)
    assert record.volunteer_history == []
    assert record.fitness == {}


def test_config_document_accepts_aliases():
    document = ConfigDocument.model_validate(
        {
            "version": "v1",
            "categories": [{"key": "work", "displayName": "Work", "maxPoints": 10}],
            "thresholds": [{"level": "Needs Work", "min": 0}],
        }
    )

    assert document.categories[0].display_name == "Work"
    assert document.categories[0].max_points == 10
    assert document.categories[0].rules == []
    assert document.disqualifiers == []


def test_config_document_rejects_out_of_range_threshold():
    with pytest.raises(ValidationError):
        ConfigDocument.model_validate(
            {
                "version": "v1",
                "categories": [{"key": "work", "maxPoints": 10}],
                "thresholds": [{"level": "Needs Work", "min": 120}],
            }
        )
