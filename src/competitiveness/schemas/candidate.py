from __future__ import annotations

import hashlib
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkEntry(BaseModel):
    """Employment history entry as captured by the profile forms."""

    employer: str = ""
    title: str = ""
    role: str | None = None
    start: str | None = None
    end: str | None = None
    current: bool = False
    hours_per_week: float | None = None
    leadership: bool = False
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class VolunteerEntry(BaseModel):
    """Volunteer history entry."""

    organization: str = ""
    role: str | None = None
    start: str | None = None
    end: str | None = None
    current: bool = False
    hours_per_week: float | None = None
    total_hours: float | None = None
    lead_role: bool = False

    model_config = ConfigDict(extra="ignore")


class EducationEntry(BaseModel):
    """Education credential entry."""

    institution: str = ""
    credential_level: str | None = None
    program: str | None = None
    end: str | None = None

    model_config = ConfigDict(extra="ignore")


class CertificationEntry(BaseModel):
    """Certification entry; ``type`` is an optional canonical tag."""

    name: str = ""
    type: str | None = None
    issue_date: str | None = None

    model_config = ConfigDict(extra="ignore")


class ReferenceEntry(BaseModel):
    """Reference contact entry."""

    name: str = ""
    relationship: str | None = None
    known_years: float | None = None
    supervisor: bool = False

    model_config = ConfigDict(extra="ignore")


class ApplicationRecord(BaseModel):
    """Raw application data before derivation into a ``CandidateProfile``."""

    candidate_id: str | None = None
    work_history: list[WorkEntry] = Field(default_factory=list)
    volunteer_history: list[VolunteerEntry] = Field(default_factory=list)
    education_details: list[EducationEntry] = Field(default_factory=list)
    certs_details: list[CertificationEntry] = Field(default_factory=list)
    refs_list: list[ReferenceEntry] = Field(default_factory=list)
    fitness: dict[str, Any] = Field(default_factory=dict)
    driving: dict[str, Any] = Field(default_factory=dict)
    background: dict[str, Any] = Field(default_factory=dict)
    softskills: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")


class CandidateProfile(BaseModel):
    """Structured applicant data read by the scoring engine.

    Sections are free-form so administrators can reference any field from a
    rule without a schema change. Unknown top-level sections are kept.
    """

    candidate_id: str | None = None
    work: dict[str, Any] | None = None
    education: dict[str, Any] | None = None
    volunteer: dict[str, Any] | None = None
    certs: list[Any] | None = None
    fitness: dict[str, Any] | None = None
    driving: dict[str, Any] | None = None
    background: dict[str, Any] | None = None
    softskills: dict[str, Any] | None = None
    references: dict[str, Any] | None = None

    model_config = ConfigDict(extra="allow")

    def facts(self) -> dict[str, Any]:
        """Plain JSON-compatible view used for path resolution."""
        return self.model_dump(mode="json", exclude_none=True)

    def fingerprint(self) -> str:
        return fingerprint_facts(self.facts())


def fingerprint_facts(facts: Any) -> str:
    """SHA-256 of the canonical JSON rendering of ``facts``."""
    canonical = json.dumps(
        facts,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
