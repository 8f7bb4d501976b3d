"""Derive a scoring profile from raw application history."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable

import pendulum
from rapidfuzz import fuzz

from ..schemas import (
    ApplicationRecord,
    CandidateProfile,
    CertificationEntry,
    EducationEntry,
    ReferenceEntry,
    VolunteerEntry,
    WorkEntry,
)

WEEKS_PER_MONTH = 4.345

# Checked top-down; the first pattern that matches a credential wins.
CREDENTIAL_RANKS: tuple[tuple[re.Pattern[str], int, str], ...] = (
    (re.compile(r"phd|doctor|doctoral"), 7, "PhD/Doctorate"),
    (re.compile(r"master|msc|\bma\b|mba"), 6, "Master's"),
    (re.compile(r"post\s?-?grad|postgrad"), 5, "Post-Grad Certificate"),
    (re.compile(r"bachelor|university|degree"), 4, "Bachelor's/University Degree"),
    (re.compile(r"advanced diploma|3[- ]?year"), 3, "Advanced Diploma (3-year)"),
    (re.compile(r"diploma|college"), 2, "College Diploma (2-year)"),
    (re.compile(r"certificate"), 1, "Certificate (incl. online)"),
)

CERT_TAGS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"mental health first aid|mhfa", re.IGNORECASE), "mhfa"),
    (re.compile(r"first aid|cpr-?c", re.IGNORECASE), "cpr_c"),
    (re.compile(r"cpi|nvci|de-?escalation|crisis prevention", re.IGNORECASE), "deescalation"),
    (re.compile(r"naloxone", re.IGNORECASE), "naloxone"),
)


@dataclass
class ApplicationProfileConfig:
    """Tunables for deriving profile facts from application history."""

    police_related_roles: tuple[str, ...] = (
        "Security Guard",
        "Corrections Officer",
        "By-law Officer",
        "Border Services",
        "EMS Support",
        "Shelter/Crisis Worker",
    )
    customer_facing_roles: tuple[str, ...] = (
        "Customer Service",
        "Retail",
        "Hospitality",
        "Sales Associate",
        "Cashier",
    )
    relevant_programs: tuple[str, ...] = (
        "Police Foundations",
        "Criminology",
        "Justice Studies",
        "Law and Security",
        "Psychology",
        "Sociology",
    )
    leadership_titles: tuple[str, ...] = ("supervisor", "manager", "team lead", "lead")
    shift_tags: tuple[str, ...] = ("shift", "night", "overnight", "rotating")
    min_similarity: float = 85.0
    full_time_hours: float = 30.0
    volunteer_window_months: int = 12
    recent_cert_months: int = 24
    known_reference_years: float = 2.0


class ApplicationProfileAdapter:
    """Turn an :class:`ApplicationRecord` into a :class:`CandidateProfile`.

    All date arithmetic runs against an explicit ``as_of`` date so the same
    record always derives the same profile.
    """

    source = "application"

    def __init__(
        self,
        *,
        config: ApplicationProfileConfig | None = None,
        now_provider: Any | None = None,
    ) -> None:
        self._config = config or ApplicationProfileConfig()
        self._now_provider = now_provider or pendulum.now

    def build(
        self,
        record: ApplicationRecord | dict[str, Any],
        *,
        as_of: str | pendulum.DateTime | None = None,
    ) -> CandidateProfile:
        application = ApplicationRecord.model_validate(record)
        reference_date = self._resolve_as_of(as_of)

        return CandidateProfile(
            candidate_id=application.candidate_id,
            work=self._work_metrics(application.work_history, reference_date),
            volunteer=self._volunteer_metrics(application.volunteer_history, reference_date),
            education=self._education_metrics(application.education_details, reference_date),
            certs=self._certifications(application.certs_details, reference_date),
            references=self._reference_metrics(application.refs_list),
            fitness=dict(application.fitness),
            driving=dict(application.driving),
            background=dict(application.background),
            softskills=dict(application.softskills),
        )

    def _work_metrics(self, entries: Iterable[WorkEntry], as_of: pendulum.DateTime) -> dict[str, Any]:
        total_months = 0
        police_months = 0
        full_time_months = 0
        total_hours = 0.0
        has_leadership = False
        customer_facing = False
        shift_exposure = False

        for entry in entries:
            months = self._months_between(entry.start, entry.end, as_of, current=entry.current)
            role = (entry.role or entry.title or "").strip()

            total_months += months
            if self._matches_any(role, self._config.police_related_roles):
                police_months += months
            if entry.hours_per_week is None or entry.hours_per_week >= self._config.full_time_hours:
                full_time_months += months
            if entry.hours_per_week is not None:
                total_hours += entry.hours_per_week * months * WEEKS_PER_MONTH

            if entry.leadership or self._is_leadership_title(entry.title):
                has_leadership = True
            if self._matches_any(role, self._config.customer_facing_roles):
                customer_facing = True
            if any(tag.lower() in self._config.shift_tags for tag in entry.tags):
                shift_exposure = True

        return {
            "totalMonths": total_months,
            "totalYears": round(total_months / 12, 2),
            "policeRelatedMonths": police_months,
            "policeRelatedYears": round(police_months / 12, 2),
            "fullTimeMonths": full_time_months,
            "fullTimeYears": round(full_time_months / 12, 2),
            "totalHours": round(total_hours),
            "hasLeadership": has_leadership,
            "customerFacing": customer_facing,
            "shiftExposure": shift_exposure,
        }

    def _volunteer_metrics(
        self,
        entries: Iterable[VolunteerEntry],
        as_of: pendulum.DateTime,
    ) -> dict[str, Any]:
        window_start = as_of.start_of("month").subtract(months=self._config.volunteer_window_months)
        total_hours = 0.0
        recent_hours = 0.0
        earliest: pendulum.DateTime | None = None
        latest: pendulum.DateTime | None = None
        leadership = False

        for entry in entries:
            start = self._parse_date(entry.start)
            end = as_of if entry.current else self._parse_date(entry.end, default=start)

            if entry.total_hours is not None:
                hours = entry.total_hours
                if end is not None and end >= window_start:
                    recent_hours += hours
            elif entry.hours_per_week is not None and start is not None and end is not None:
                months = max(end.diff(start, False).in_months(), 0)
                hours = entry.hours_per_week * months * WEEKS_PER_MONTH
                if end >= window_start:
                    window_months = end.diff(max(start, window_start), False).in_months()
                    recent_hours += entry.hours_per_week * max(window_months, 0) * WEEKS_PER_MONTH
            else:
                hours = 0.0
            total_hours += hours

            if start is not None:
                earliest = start if earliest is None or start < earliest else earliest
                if end is not None:
                    latest = end if latest is None or end > latest else latest
            if entry.lead_role:
                leadership = True

        commitment_months = 0
        if earliest is not None and latest is not None and latest > earliest:
            commitment_months = latest.diff(earliest).in_months()

        return {
            "totalHours": round(total_hours),
            "last12MonthsHours": round(recent_hours),
            "commitmentMonths": commitment_months,
            "leadership": leadership,
        }

    def _education_metrics(
        self,
        entries: Iterable[EducationEntry],
        as_of: pendulum.DateTime,
    ) -> dict[str, Any]:
        credentials: list[dict[str, Any]] = []
        relevant_program = False
        latest_end: pendulum.DateTime | None = None

        for entry in entries:
            score, label = self._rank_credential(entry.credential_level)
            credentials.append(
                {
                    "level": label,
                    "score": score,
                    "postSecondary": score >= 2,
                    "program": entry.program,
                }
            )
            if entry.program and self._matches_any(entry.program, self._config.relevant_programs):
                relevant_program = True
            end = self._parse_date(entry.end)
            if end is not None and (latest_end is None or end > latest_end):
                latest_end = end

        if not credentials:
            return {"highestCredential": "Unknown", "highestCredentialScore": 0, "relevantProgram": False}

        credentials.sort(key=lambda item: item["score"], reverse=True)
        highest = credentials[0]
        metrics: dict[str, Any] = {
            "highestCredential": highest["level"],
            "highestCredentialScore": highest["score"],
            "relevantProgram": relevant_program,
            "additionalCredentials": credentials[1:],
        }
        if latest_end is not None and latest_end <= as_of:
            metrics["recentYears"] = as_of.diff(latest_end).in_years()
        return metrics

    def _certifications(
        self,
        entries: Iterable[CertificationEntry],
        as_of: pendulum.DateTime,
    ) -> list[dict[str, Any]]:
        certs: list[dict[str, Any]] = []
        for entry in entries:
            issued = self._parse_date(entry.issue_date)
            recent = bool(
                issued is not None
                and issued <= as_of
                and as_of.diff(issued).in_months() <= self._config.recent_cert_months
            )
            cert: dict[str, Any] = {
                "type": entry.type or self._tag_certification(entry.name),
                "name": entry.name,
                "recent": recent,
            }
            if issued is not None:
                cert["issueDate"] = issued.to_date_string()
            certs.append(cert)
        return certs

    def _reference_metrics(self, entries: list[ReferenceEntry]) -> dict[str, Any]:
        return {
            "count": len(entries),
            "knownTwoYearsCount": sum(
                1
                for entry in entries
                if entry.known_years is not None
                and entry.known_years >= self._config.known_reference_years
            ),
            "supervisorCount": sum(1 for entry in entries if entry.supervisor),
        }

    def _matches_any(self, text: str, candidates: Iterable[str]) -> bool:
        normalized = text.strip().lower()
        if not normalized:
            return False
        for candidate in candidates:
            candidate_lower = candidate.lower()
            if candidate_lower in normalized:
                return True
            if fuzz.token_set_ratio(candidate_lower, normalized) >= self._config.min_similarity:
                return True
        return False

    def _is_leadership_title(self, title: str) -> bool:
        words = set(re.findall(r"[a-z]+", title.lower()))
        for keyword in self._config.leadership_titles:
            if set(keyword.split()) <= words:
                return True
        return False

    @staticmethod
    def _rank_credential(value: str | None) -> tuple[int, str]:
        normalized = (value or "").lower()
        for pattern, score, label in CREDENTIAL_RANKS:
            if pattern.search(normalized):
                return score, label
        return 0, "High School/Other"

    @staticmethod
    def _tag_certification(name: str) -> str:
        for pattern, tag in CERT_TAGS:
            if pattern.search(name):
                return tag
        return "other"

    def _months_between(
        self,
        start: str | None,
        end: str | None,
        as_of: pendulum.DateTime,
        *,
        current: bool = False,
    ) -> int:
        start_date = self._parse_date(start)
        if start_date is None:
            return 0
        end_date = as_of if current else self._parse_date(end, default=as_of)
        if end_date is None or end_date < start_date:
            return 0
        return end_date.diff(start_date).in_months()

    @staticmethod
    def _parse_date(
        value: str | None,
        *,
        default: pendulum.DateTime | None = None,
    ) -> pendulum.DateTime | None:
        if not value:
            return default
        try:
            if len(value) == 7 and value[4] == "-":
                return pendulum.datetime(int(value[:4]), int(value[5:7]), 1)
            parsed = pendulum.parse(value)
        except (ValueError, pendulum.parsing.exceptions.ParserError):
            return default
        if not isinstance(parsed, pendulum.DateTime):
            return default
        return parsed

    def _resolve_as_of(self, as_of: str | pendulum.DateTime | None) -> pendulum.DateTime:
        default_now = self._now_provider()
        if as_of is None:
            return default_now
        if isinstance(as_of, pendulum.DateTime):
            return as_of
        return self._parse_date(str(as_of), default=default_now) or default_now


__all__ = ["ApplicationProfileAdapter", "ApplicationProfileConfig"]
