"""Pydantic schema definitions for engine inputs and settings."""

from __future__ import annotations

from .candidate import (
    ApplicationRecord,
    CandidateProfile,
    CertificationEntry,
    EducationEntry,
    ReferenceEntry,
    VolunteerEntry,
    WorkEntry,
    fingerprint_facts,
)
from .document import (
    CategoryDocument,
    ConfigDocument,
    DisqualifierDocument,
    RuleDocument,
    ThresholdDocument,
)

__all__ = [
    "ApplicationRecord",
    "CandidateProfile",
    "CategoryDocument",
    "CertificationEntry",
    "ConfigDocument",
    "DisqualifierDocument",
    "EducationEntry",
    "ReferenceEntry",
    "RuleDocument",
    "ThresholdDocument",
    "VolunteerEntry",
    "WorkEntry",
    "fingerprint_facts",
]
