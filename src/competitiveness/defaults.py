"""Built-in config served until an administrator publishes one."""

from __future__ import annotations

import copy
from typing import Any

LICENCE_FULL_OR_G2 = {
    "any": [
        {"var": "driving.licenceClass", "op": "==", "value": "G"},
        {"var": "driving.licenceClass", "op": "==", "value": "G2"},
    ]
}

_DEFAULT_CONFIG_DOCUMENT: dict[str, Any] = {
    "version": "ontario-2025-08-20",
    "categories": [
        {
            "key": "work",
            "displayName": "Work Experience",
            "maxPoints": 25,
            "rules": [
                {"id": "relevant_3y_plus", "points": 18,
                 "expr": {"var": "work.policeRelatedYears", "op": ">=", "value": 3}},
                {"id": "relevant_1to2y", "points": 12,
                 "expr": {"all": [
                     {"var": "work.policeRelatedYears", "op": ">=", "value": 1},
                     {"var": "work.policeRelatedYears", "op": "<", "value": 3},
                 ]}},
                {"id": "ft_stability_24m", "points": 5,
                 "expr": {"var": "work.fullTimeYears", "op": ">=", "value": 2}},
                {"id": "leadership", "points": 3,
                 "expr": {"var": "work.hasLeadership", "op": "==", "value": True}},
                {"id": "customer_facing", "points": 2,
                 "expr": {"var": "work.customerFacing", "op": "==", "value": True}},
                {"id": "shift_exposure", "points": 1, "type": "bonus",
                 "expr": {"var": "work.shiftExposure", "op": "==", "value": True}},
            ],
        },
        {
            "key": "fitness",
            "displayName": "Physical Readiness",
            "maxPoints": 20,
            "rules": [
                {"id": "prep_pass_6m", "points": 20,
                 "expr": {"var": "fitness.prepVerifiedMonthsAgo", "op": "<=", "value": 6}},
                {"id": "prep_pass_12m", "points": 15,
                 "expr": {"all": [
                     {"var": "fitness.prepVerifiedMonthsAgo", "op": ">", "value": 6},
                     {"var": "fitness.prepVerifiedMonthsAgo", "op": "<=", "value": 12},
                 ]}},
                {"id": "strong_indicators", "points": 10,
                 "expr": {"var": "fitness.meetsIndicators", "op": "==", "value": True}},
                {"id": "digital_practice", "points": 3, "type": "bonus",
                 "expr": {"var": "fitness.digitalAttempts", "op": ">=", "value": 3}},
            ],
        },
        {
            "key": "volunteer",
            "displayName": "Volunteer & Community",
            "maxPoints": 12,
            "rules": [
                {"id": "last12m_75h", "points": 8,
                 "expr": {"var": "volunteer.last12MonthsHours", "op": ">=", "value": 75}},
                {"id": "lifetime_150h", "points": 6,
                 "expr": {"var": "volunteer.totalHours", "op": ">=", "value": 150}},
                {"id": "committed_12m", "points": 2,
                 "expr": {"var": "volunteer.commitmentMonths", "op": ">=", "value": 12}},
                {"id": "lead_role", "points": 2, "type": "bonus",
                 "expr": {"var": "volunteer.leadership", "op": "==", "value": True}},
            ],
        },
        {
            "key": "education",
            "displayName": "Education",
            "maxPoints": 12,
            "rules": [
                {"id": "degree_relevant", "points": 12,
                 "expr": {"all": [
                     {"var": "education.highestCredentialScore", "op": ">=", "value": 4},
                     {"var": "education.relevantProgram", "op": "==", "value": True},
                 ]}},
                {"id": "diploma_relevant", "points": 10,
                 "expr": {"all": [
                     {"var": "education.highestCredentialScore", "op": ">=", "value": 2},
                     {"var": "education.relevantProgram", "op": "==", "value": True},
                 ]}},
                {"id": "any_post_secondary", "points": 7,
                 "expr": {"var": "education.highestCredentialScore", "op": ">=", "value": 2}},
                {"id": "extra_post_secondary", "points": 2, "repeatable": True, "cap": 4,
                 "expr": {"var": "education.additionalCredentials", "op": "includes",
                          "value": {"postSecondary": True}}},
                {"id": "recent_grad_5y", "points": 1, "type": "bonus",
                 "expr": {"var": "education.recentYears", "op": "<=", "value": 5}},
            ],
        },
        {
            "key": "certs",
            "displayName": "Certifications",
            "maxPoints": 10,
            "rules": [
                {"id": "cpr_c_current", "points": 3,
                 "expr": {"var": "certs", "op": "includes", "value": "cpr_c"}},
                {"id": "mh_first_aid", "points": 3,
                 "expr": {"var": "certs", "op": "includes", "value": "mhfa"}},
                {"id": "deescalation", "points": 2,
                 "expr": {"var": "certs", "op": "includes", "value": "deescalation"}},
                {"id": "extra_relevant_cert", "points": 2, "repeatable": True, "cap": 4,
                 "expr": {"var": "certs", "op": "includes", "value": {"type": "other"}}},
                {"id": "naloxone_trained", "points": 1, "type": "bonus",
                 "expr": {"var": "certs", "op": "includes", "value": "naloxone"}},
                {"id": "credential_recent_24m", "points": 1, "type": "bonus",
                 "expr": {"var": "certs", "op": "includes", "value": {"recent": True}}},
            ],
        },
        {
            "key": "driving",
            "displayName": "Driving & Record",
            "maxPoints": 8,
            "rules": [
                {"id": "full_licence_clean_24m", "points": 8,
                 "expr": {"all": [
                     LICENCE_FULL_OR_G2,
                     {"var": "driving.cleanAbstract24m", "op": "==", "value": True},
                 ]}},
                {"id": "one_minor_infraction", "points": 4,
                 "expr": {"all": [
                     LICENCE_FULL_OR_G2,
                     {"var": "driving.minorTickets24m", "op": "<=", "value": 1},
                 ]}},
                {"id": "defensive_course", "points": 1, "type": "bonus",
                 "expr": {"var": "driving.defensiveCourse", "op": "==", "value": True}},
            ],
        },
        {
            "key": "background",
            "displayName": "Background & Integrity",
            "maxPoints": 8,
            "rules": [
                {"id": "clean_all", "points": 8,
                 "expr": {"var": "background.ok", "op": "==", "value": True}},
                {"id": "minor_credit_managed", "points": 4,
                 "expr": {"var": "background.minorCreditManaged", "op": "==", "value": True}},
                {"id": "social_media_ack", "points": 1, "type": "bonus",
                 "expr": {"var": "background.socialMediaOk", "op": "==", "value": True}},
            ],
        },
        {
            "key": "softskills",
            "displayName": "Soft Skills",
            "maxPoints": 3,
            "rules": [
                {"id": "second_language_proficient", "points": 2,
                 "expr": {"var": "softskills.secondLanguageProficient", "op": "==", "value": True}},
                {"id": "written_or_public_speaking", "points": 1,
                 "expr": {"var": "softskills.evidenceWrittenOrPublicSpeaking", "op": "==", "value": True}},
            ],
        },
        {
            "key": "references",
            "displayName": "References & Prep",
            "maxPoints": 2,
            "rules": [
                {"id": "strong_set", "points": 2,
                 "expr": {"all": [
                     {"var": "references.count", "op": ">=", "value": 3},
                     {"var": "references.knownTwoYearsCount", "op": ">=", "value": 2},
                 ]}},
            ],
        },
    ],
    "thresholds": [
        {"level": "Needs Work", "min": 0},
        {"level": "Developing", "min": 35},
        {"level": "Effective", "min": 55},
        {"level": "Competitive", "min": 75},
    ],
    "disqualifiers": [
        {"id": "criminal_open", "forcedLevel": "Needs Work",
         "expr": {"var": "background.openCharge", "op": "==", "value": True}},
        {"id": "driving_major_recent", "forcedLevel": "Needs Work",
         "expr": {"var": "driving.recentMajorOffence24m", "op": "==", "value": True}},
        {"id": "integrity_dishonesty", "forcedLevel": "Needs Work",
         "expr": {"var": "background.dishonesty", "op": "==", "value": True}},
    ],
}


def default_config_document() -> dict[str, Any]:
    """Return a fresh copy of the built-in config document."""
    return copy.deepcopy(_DEFAULT_CONFIG_DOCUMENT)


__all__ = ["default_config_document"]
