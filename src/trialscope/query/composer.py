"""Query composition: tool arguments -> UpstreamQuery.

Every composer is a pure function of (arguments, now). Absent and blank
values never reach the query; QueryBuilder drops them. Upstream filter
values are passed through exactly as the caller gave them.

Upstream keys follow the CT.gov API v2 /studies vocabulary:
  query.term / query.cond / query.intr / query.locn / query.spons /
  query.outc / query.eligibility, and filter.* for structured filters.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from trialscope.query.arguments import (
    ConditionArguments,
    DateRangeArguments,
    EligibilityArguments,
    InterventionArguments,
    InternationalArguments,
    LocationArguments,
    PediatricArguments,
    PrimaryOutcomeArguments,
    RareDiseaseArguments,
    RecruitingArguments,
    ResultsArguments,
    SearchStudiesArguments,
    SimilarStudiesArguments,
    SponsorArguments,
    StatisticsArguments,
    StudyDetailsArguments,
    TimelineArguments,
)
from trialscope.schema import ParamValue, PediatricAgeRange, ToolCall, UpstreamQuery
from trialscope.views.derived import similarity_parameter, timeline_filters

Composer = Callable[[Any, datetime], UpstreamQuery]

RARE_DISEASE_TERMS = "orphan OR rare"

# Concrete age window injected on top of filter.stdAge=CHILD.
PEDIATRIC_AGE_BOUNDS: dict[PediatricAgeRange, tuple[str, str]] = {
    PediatricAgeRange.INFANT: ("0 Years", "2 Years"),
    PediatricAgeRange.CHILD: ("2 Years", "12 Years"),
    PediatricAgeRange.ADOLESCENT: ("12 Years", "18 Years"),
}


class QueryBuilder:
    """Accumulates parameters in insertion order, skipping empty values."""

    def __init__(self, page_size: int):
        self._params: dict[str, ParamValue] = {"format": "json", "pageSize": page_size}

    def set(self, key: str, value: ParamValue | None) -> QueryBuilder:
        if value is None:
            return self
        if isinstance(value, str) and not value.strip():
            return self
        self._params[key] = value
        return self

    def build(self) -> UpstreamQuery:
        return UpstreamQuery(items=tuple(self._params.items()))


def location_term(*segments: str | None) -> str:
    """Comma-join the non-empty segments in the order given."""
    return ", ".join(s.strip() for s in segments if s and s.strip())


def _number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


# ---------------------------------------------------------------------------
# Per-tool composers
# ---------------------------------------------------------------------------


def compose_search_studies(args: SearchStudiesArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.term", args.query)
        .set("query.cond", args.condition)
        .set("query.intr", args.intervention)
        .set("query.locn", args.location)
        .set("filter.phase", args.phase)
        .set("filter.overallStatus", args.status)
        .set("filter.sex", args.sex)
        .set("filter.stdAge", args.age)
        .build()
    )


def compose_nct_lookup(nct_id: str) -> QueryBuilder:
    """Exact-term lookup of one study, one record page."""
    return QueryBuilder(1).set("query.term", nct_id)


def compose_study_details(args: StudyDetailsArguments, now: datetime) -> UpstreamQuery:
    return compose_nct_lookup(args.nct_id).set("filter.ids", args.nct_id).build()


def compose_location(args: LocationArguments, now: datetime) -> UpstreamQuery:
    builder = QueryBuilder(args.effective_page_size).set(
        "query.locn",
        location_term(args.country, args.state, args.city, args.facility_name),
    )
    # a radius only means something around a city
    if args.city and args.distance is not None:
        builder.set("filter.distance", _number(args.distance))
    return builder.build()


def compose_condition(args: ConditionArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.cond", args.condition)
        .set("filter.phase", args.phase)
        .set("filter.overallStatus", args.recruitment_status)
        .build()
    )


def compose_statistics(args: StatisticsArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.cond", args.filters.condition)
        .set("filter.phase", args.filters.phase)
        .set("filter.overallStatus", args.filters.status)
        .build()
    )


def compose_sponsor(args: SponsorArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.spons", args.sponsor)
        .set("filter.leadSponsorClass", args.sponsor_type)
        .build()
    )


def compose_intervention(args: InterventionArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.intr", args.intervention)
        .set("filter.interventionType", args.intervention_type)
        .set("filter.phase", args.phase)
        .build()
    )


def compose_recruiting(args: RecruitingArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("filter.overallStatus", "RECRUITING")
        .set("query.cond", args.condition)
        .set("query.locn", args.location)
        .set("filter.stdAge", args.age_group)
        .build()
    )


def compose_date_range(args: DateRangeArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("filter.studyStartDateFrom", args.start_date_from)
        .set("filter.studyStartDateTo", args.start_date_to)
        .set("filter.primaryCompletionDateFrom", args.completion_date_from)
        .set("filter.primaryCompletionDateTo", args.completion_date_to)
        .set("query.cond", args.condition)
        .build()
    )


def compose_with_results(args: ResultsArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("filter.overallStatus", "COMPLETED")
        .set("filter.hasResults", True)
        .set("query.cond", args.condition)
        .set("query.intr", args.intervention)
        .set("filter.primaryCompletionDateFrom", args.completed_after)
        .build()
    )


def compose_rare_disease(args: RareDiseaseArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.cond", args.rare_disease)
        .set("filter.overallStatus", args.recruitment_status)
        .set("query.term", f"{args.rare_disease} OR {RARE_DISEASE_TERMS}")
        .build()
    )


def compose_pediatric(args: PediatricArguments, now: datetime) -> UpstreamQuery:
    builder = (
        QueryBuilder(args.effective_page_size)
        .set("filter.stdAge", "CHILD")
        .set("query.cond", args.condition)
    )
    if args.age_range is not None:
        min_age, max_age = PEDIATRIC_AGE_BOUNDS[args.age_range]
        builder.set("filter.minimumAge", min_age).set("filter.maximumAge", max_age)
    return builder.set("filter.overallStatus", args.recruitment_status).build()


def compose_reference_lookup(args: SimilarStudiesArguments, now: datetime) -> UpstreamQuery:
    return compose_nct_lookup(args.nct_id).build()


def compose_similar(call: ToolCall) -> UpstreamQuery:
    """Second phase of a similar-study lookup, driven by the reference record."""
    builder = QueryBuilder(call.args.effective_page_size)
    if call.reference is not None:
        key, value = similarity_parameter(call.reference, call.args.similarity_type)
        builder.set(key, value)
    return builder.build()


def compose_primary_outcome(args: PrimaryOutcomeArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.outc", args.outcome)
        .set("query.cond", args.condition)
        .set("filter.phase", args.phase)
        .build()
    )


def compose_eligibility(args: EligibilityArguments, now: datetime) -> UpstreamQuery:
    # inclusion keywords narrow upstream; exclusion keywords are applied
    # locally to the fetched page (see views.derived.exclude_by_keywords)
    return (
        QueryBuilder(args.effective_page_size)
        .set("filter.minimumAge", args.min_age)
        .set("filter.maximumAge", args.max_age)
        .set("filter.sex", args.sex)
        .set("filter.healthyVolunteers", args.healthy_volunteers)
        .set("query.cond", args.condition)
        .set("query.eligibility", args.inclusion_keywords)
        .build()
    )


def compose_timeline(args: TimelineArguments, now: datetime) -> UpstreamQuery:
    builder = (
        QueryBuilder(args.effective_page_size)
        .set("query.cond", args.condition)
        .set("query.spons", args.sponsor)
        .set("filter.phase", args.phase)
    )
    for key, value in timeline_filters(args.timeline_type, now):
        builder.set(key, value)
    return builder.build()


def compose_international(args: InternationalArguments, now: datetime) -> UpstreamQuery:
    return (
        QueryBuilder(args.effective_page_size)
        .set("query.cond", args.condition)
        .set("filter.phase", args.phase)
        .set("query.locn", args.include_country)
        .build()
    )
