"""Source-specific profile adapters."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ..schemas import CandidateProfile
from .application_profile import ApplicationProfileAdapter, ApplicationProfileConfig


@runtime_checkable
class ProfileAdapter(Protocol):
    """Source-specific profile adapter contract.

    Implementations derive the facts the scoring engine reads from the raw
    records a given source captures.
    """

    source: str

    def build(self, record: Any, *, as_of: Any = None) -> CandidateProfile:
        """Return a ``CandidateProfile`` derived from ``record``."""


__all__ = ["ApplicationProfileAdapter", "ApplicationProfileConfig", "ProfileAdapter"]
