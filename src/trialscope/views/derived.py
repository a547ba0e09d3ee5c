"""Derived views: values computed locally from a fetched page.

Covers grouped statistics, exclusion-keyword filtering, international
(multi-country) filtering, timeline windows and the reference step of
similar-study lookups, plus the payload builders each tool returns.

None of these ever runs over a failed fetch: an UpstreamFailure aborts
the tool call before any view is computed.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta
from typing import Any

from trialscope.errors import NotFoundError
from trialscope.registry.record import TrialRecord
from trialscope.schema import ResultSet, SimilarityType, StatisticsField, TimelineType, ToolCall
from trialscope.views.projector import (
    NOT_SPECIFIED,
    UNKNOWN,
    Projector,
    detailed,
    location_entries,
    summarize,
)

# Every international study spans at least this many distinct countries.
MIN_INTERNATIONAL_COUNTRIES = 2
SAMPLE_LOCATIONS = 3

CURRENT_STATUSES = ("RECRUITING", "NOT_YET_RECRUITING", "ACTIVE_NOT_RECRUITING")
UPCOMING_WINDOW_DAYS = 30

DerivedView = Callable[[ToolCall, ResultSet, Projector], dict[str, Any]]


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

_GROUP_KEYS: dict[StatisticsField, Callable[[TrialRecord], str]] = {
    StatisticsField.STATUS: lambda r: r.overall_status or UNKNOWN,
    StatisticsField.PHASE: lambda r: r.phases[0] if r.phases else NOT_SPECIFIED,
    StatisticsField.STUDY_TYPE: lambda r: r.study_type or UNKNOWN,
    StatisticsField.CONDITION: lambda r: r.conditions[0] if r.conditions else NOT_SPECIFIED,
    StatisticsField.SPONSOR: lambda r: r.lead_sponsor_name or NOT_SPECIFIED,
}


def group_counts(records: Iterable[TrialRecord], field: StatisticsField) -> dict[str, int]:
    """Occurrence count per group key. List fields group on their first element."""
    key_of = _GROUP_KEYS[field]
    return dict(Counter(key_of(r) for r in records))


def compute_statistics(
    records: Sequence[TrialRecord], group_by: StatisticsField | None
) -> dict[str, Any]:
    if group_by is not None:
        return group_counts(records, group_by)
    return {
        "totalStudies": len(records),
        "byStatus": group_counts(records, StatisticsField.STATUS),
        "byPhase": group_counts(records, StatisticsField.PHASE),
        "byStudyType": group_counts(records, StatisticsField.STUDY_TYPE),
    }


# ---------------------------------------------------------------------------
# Eligibility keyword filtering
# ---------------------------------------------------------------------------


def exclusion_tokens(phrase: str | None) -> list[str]:
    return (phrase or "").lower().split()


def exclude_by_keywords(
    records: Iterable[TrialRecord], phrase: str | None
) -> list[TrialRecord]:
    """Drop records whose criteria text contains ANY token of phrase.

    Matching is a case-insensitive substring test per whitespace-separated
    token. Order is preserved, and applying the same phrase twice is a no-op.
    """
    tokens = exclusion_tokens(phrase)
    if not tokens:
        return list(records)
    kept = []
    for record in records:
        text = (record.eligibility_criteria or "").lower()
        if not any(token in text for token in tokens):
            kept.append(record)
    return kept


# ---------------------------------------------------------------------------
# International studies
# ---------------------------------------------------------------------------


def distinct_countries(record: TrialRecord) -> list[str]:
    """Countries across all locations, first-seen order, blanks skipped."""
    return list(dict.fromkeys(
        loc["country"] for loc in record.locations if loc.get("country")
    ))


def is_international(
    countries: Sequence[str],
    *,
    min_countries: int | None = None,
    exclude_country: str | None = None,
) -> bool:
    if len(countries) < MIN_INTERNATIONAL_COUNTRIES:
        return False
    if min_countries is not None and len(countries) < min_countries:
        return False
    if exclude_country and exclude_country in countries:
        return False
    return True


def international_details(record: TrialRecord) -> dict[str, Any]:
    countries = distinct_countries(record)
    return {
        "totalCountries": len(countries),
        "countries": countries,
        "totalLocations": len(record.locations),
        "sampleLocations": location_entries(record, SAMPLE_LOCATIONS),
    }


# ---------------------------------------------------------------------------
# Timeline windows
# ---------------------------------------------------------------------------


def upcoming_start_floor(now: datetime) -> str:
    """Earliest start date (ISO, UTC calendar day) counted as upcoming."""
    return (now + timedelta(days=UPCOMING_WINDOW_DAYS)).date().isoformat()


def timeline_filters(timeline_type: TimelineType, now: datetime) -> list[tuple[str, str]]:
    if timeline_type is TimelineType.CURRENT:
        return [("filter.overallStatus", ",".join(CURRENT_STATUSES))]
    if timeline_type is TimelineType.COMPLETED:
        return [("filter.overallStatus", "COMPLETED")]
    return [
        ("filter.overallStatus", "NOT_YET_RECRUITING"),
        ("filter.studyStartDateFrom", upcoming_start_floor(now)),
    ]


def parse_registry_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD, YYYY-MM or YYYY. Partial dates resolve to their first day."""
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%Y-%m", "%Y"):
        try:
            return datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    return None


def days_since(value: str | None, now: datetime) -> int | None:
    start = parse_registry_date(value)
    if start is None:
        return None
    return (now.date() - start).days


def project_timeline(record: TrialRecord, now: datetime) -> dict[str, Any]:
    return {
        **summarize(record),
        "timeline": {
            "startDate": record.start_date,
            "primaryCompletionDate": record.primary_completion_date,
            "status": record.overall_status or UNKNOWN,
            "daysFromStart": days_since(record.start_date, now),
        },
    }


# ---------------------------------------------------------------------------
# Similar studies
# ---------------------------------------------------------------------------


def _first(values: Sequence[str]) -> str | None:
    return values[0] if values else None


def similarity_parameter(
    reference: TrialRecord, similarity_type: SimilarityType
) -> tuple[str, str | None]:
    """Upstream key and value the secondary search narrows on.

    The value is None when the reference record lacks the field; the
    caller then simply leaves the parameter out.
    """
    if similarity_type is SimilarityType.CONDITION:
        return "query.cond", _first(reference.conditions)
    if similarity_type is SimilarityType.INTERVENTION:
        return "query.intr", _first(reference.interventions)
    if similarity_type is SimilarityType.SPONSOR:
        return "query.spons", reference.lead_sponsor_name
    return "filter.phase", _first(reference.phases)


def resolve_reference(nct_id: str, results: ResultSet) -> TrialRecord:
    if not results.records:
        raise NotFoundError(f"Reference study not found: {nct_id}")
    return results.records[0]


def without_study(records: Iterable[TrialRecord], nct_id: str) -> list[TrialRecord]:
    return [r for r in records if r.nct_id != nct_id]


# ---------------------------------------------------------------------------
# Payload builders (DerivedView)
# ---------------------------------------------------------------------------


def _page(
    call: ToolCall,
    results: ResultSet,
    studies: list[dict[str, Any]],
    key: str = "studies",
) -> dict[str, Any]:
    return {
        "searchCriteria": call.args.criteria(),
        "totalCount": results.total_count,
        "resultsShown": len(studies),
        key: studies,
    }


def page_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    return _page(call, results, [project(r, call.now) for r in results.records])


def detail_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    if not results.records:
        raise NotFoundError(f"No study found with NCT ID: {call.args.nct_id}")
    return detailed(results.records[0])


def statistics_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    return {
        "totalStudies": results.total_count,
        "analyzedStudies": len(results.records),
        **call.args.criteria(),
        "statistics": compute_statistics(results.records, call.args.group_by),
    }


def eligibility_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    # totalCount stays the upstream figure: exclusion only narrows this page
    kept = exclude_by_keywords(results.records, call.args.exclusion_keywords)
    return _page(call, results, [project(r, call.now) for r in kept])


def international_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    studies = []
    for record in results.records:
        countries = distinct_countries(record)
        if not is_international(
            countries,
            min_countries=call.args.min_countries,
            exclude_country=call.args.exclude_country,
        ):
            continue
        studies.append({
            **project(record, call.now),
            "internationalDetails": international_details(record),
        })
    return _page(call, results, studies, key="internationalStudies")


def similar_view(call: ToolCall, results: ResultSet, project: Projector) -> dict[str, Any]:
    reference = call.reference
    similar = without_study(results.records, call.args.nct_id)
    return {
        "referenceStudy": {
            "nctId": call.args.nct_id,
            "title": (reference.brief_title if reference else None) or NOT_SPECIFIED,
        },
        "similarityType": call.args.similarity_type.value,
        "totalCount": results.total_count,
        "resultsShown": len(similar),
        "similarStudies": [project(r, call.now) for r in similar],
    }
