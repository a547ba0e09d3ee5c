"""Result projection: TrialRecord -> the JSON shape each tool promises.

Missing upstream fields never raise. Every accessor falls back to one of
the documented defaults below.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from trialscope.registry.record import TrialRecord

NOT_SPECIFIED = "Not specified"
UNKNOWN = "Unknown"
NOT_AVAILABLE = "Not available"

MAX_SUMMARY_CONDITIONS = 3
CRITERIA_PREVIEW_CHARS = 200
DETAIL_LOCATIONS = 10
LOCATION_FIELDS = ("facility", "city", "state", "country")

Projector = Callable[[TrialRecord, datetime], dict[str, Any]]


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


def summarize(record: TrialRecord) -> dict[str, Any]:
    """Base summary shared by every search tool."""
    return {
        "nctId": record.nct_id or UNKNOWN,
        "title": record.brief_title or record.official_title or NOT_SPECIFIED,
        "status": record.overall_status or UNKNOWN,
        "phase": record.phases or [NOT_SPECIFIED],
        "studyType": record.study_type or UNKNOWN,
        "sponsor": record.lead_sponsor_name or NOT_SPECIFIED,
        "conditions": record.conditions[:MAX_SUMMARY_CONDITIONS],
        "startDate": record.start_date or NOT_SPECIFIED,
    }


def _as_flag(value: Any) -> bool:
    # older records carry "Yes"/"No" strings instead of booleans
    if isinstance(value, str):
        return value.strip().lower() in {"yes", "true"}
    return bool(value)


def criteria_preview(text: str | None) -> str:
    if not text:
        return NOT_AVAILABLE
    if len(text) <= CRITERIA_PREVIEW_CHARS:
        return text
    return text[:CRITERIA_PREVIEW_CHARS] + "..."


def eligibility_block(
    record: TrialRecord,
    *,
    healthy_volunteers: bool = True,
    preview: bool = False,
) -> dict[str, Any]:
    elig = record.eligibility
    block: dict[str, Any] = {
        "sex": elig.get("sex") or UNKNOWN,
        "minimumAge": elig.get("minimumAge") or NOT_SPECIFIED,
        "maximumAge": elig.get("maximumAge") or NOT_SPECIFIED,
    }
    if healthy_volunteers:
        block["healthyVolunteers"] = _as_flag(elig.get("healthyVolunteers"))
    if preview:
        block["criteriaPreview"] = criteria_preview(record.eligibility_criteria)
    return block


def location_entries(record: TrialRecord, limit: int | None = None) -> list[dict[str, Any]]:
    locations = record.locations if limit is None else record.locations[:limit]
    return [
        {key: loc[key] for key in LOCATION_FIELDS if loc.get(key)}
        for loc in locations
    ]


def sponsor_details(record: TrialRecord) -> dict[str, Any] | None:
    sponsor = record.lead_sponsor
    if sponsor is None:
        return None
    return {
        "name": sponsor.get("name") or NOT_SPECIFIED,
        "class": sponsor.get("class") or UNKNOWN,
    }


def detailed(record: TrialRecord) -> dict[str, Any]:
    """Full single-study view used by get_study_details."""
    eligibility = eligibility_block(record)
    eligibility["eligibilityCriteria"] = record.eligibility_criteria or NOT_AVAILABLE
    std_ages = record.eligibility.get("stdAges")
    if std_ages:
        eligibility["stdAges"] = list(std_ages)

    return {
        "identification": {
            "nctId": record.nct_id or UNKNOWN,
            "briefTitle": record.brief_title or NOT_SPECIFIED,
            "officialTitle": record.official_title or NOT_SPECIFIED,
        },
        "status": {
            "overallStatus": record.overall_status or UNKNOWN,
            "startDate": record.start_date or NOT_SPECIFIED,
            "startDateType": record.start_date_type or UNKNOWN,
            "primaryCompletionDate": record.primary_completion_date or NOT_SPECIFIED,
            "primaryCompletionDateType": record.primary_completion_date_type or UNKNOWN,
        },
        "design": {
            "studyType": record.study_type or UNKNOWN,
            "phases": record.phases or [NOT_SPECIFIED],
        },
        "sponsor": sponsor_details(record),
        "conditions": record.conditions,
        "interventions": record.interventions,
        "eligibility": eligibility,
        "locations": location_entries(record, DETAIL_LOCATIONS),
    }


# ---------------------------------------------------------------------------
# Per-tool projectors (Projector signature)
# ---------------------------------------------------------------------------


def project_summary(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return summarize(record)


def project_detail(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return detailed(record)


def project_with_locations(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {**summarize(record), "locations": location_entries(record, 3)}


def project_with_eligibility(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "conditions": record.conditions,
        "eligibility": eligibility_block(record),
    }


def project_sponsor(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {**summarize(record), "sponsorDetails": sponsor_details(record)}


def project_recruiting(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "eligibility": eligibility_block(record),
        "locations": location_entries(record, 2),
    }


def project_dates(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "dates": {
            "startDate": record.start_date or NOT_SPECIFIED,
            "primaryCompletionDate": record.primary_completion_date or NOT_SPECIFIED,
        },
    }


def project_with_results(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "completionDate": record.primary_completion_date or NOT_SPECIFIED,
        "hasResults": True,
    }


def project_rare_disease(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "conditions": record.conditions,
        "eligibility": eligibility_block(record, healthy_volunteers=False),
    }


def project_pediatric(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **project_with_eligibility(record, now),
        "locations": location_entries(record, 2),
    }


def project_eligibility_preview(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {**summarize(record), "eligibility": eligibility_block(record, preview=True)}
