"""The tool table.

Each of the 17 tools is one ToolSpec row: its argument model, the
composer that turns arguments into an upstream query, the projector
applied per record, and the derived view that assembles the payload.
Adding a tool means adding a row here, not a new code path.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from trialscope.errors import UnknownToolError
from trialscope.query import arguments as a
from trialscope.query import composer as c
from trialscope.query.arguments import ToolArguments, parse_arguments
from trialscope.schema import ToolCall, ToolName, UpstreamQuery
from trialscope.views import derived as d
from trialscope.views import projector as p

FollowUp = Callable[[ToolCall], UpstreamQuery]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    name: ToolName
    description: str
    arguments: type[ToolArguments]
    compose: c.Composer
    project: p.Projector = p.project_summary
    derive: d.DerivedView = d.page_view
    # set for two-phase tools: the first query fetches a reference record,
    # this one builds the real search from it
    follow_up: FollowUp | None = None
    # an upstream 404 on this tool means the identifier does not exist
    not_found_on_404: bool = False


_SPECS = (
    ToolSpec(
        ToolName.SEARCH_STUDIES,
        "Search for clinical trials with various filters",
        a.SearchStudiesArguments,
        c.compose_search_studies,
    ),
    ToolSpec(
        ToolName.GET_STUDY_DETAILS,
        "Get detailed information about a specific clinical trial",
        a.StudyDetailsArguments,
        c.compose_study_details,
        project=p.project_detail,
        derive=d.detail_view,
        not_found_on_404=True,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_LOCATION,
        "Find clinical trials by geographic location",
        a.LocationArguments,
        c.compose_location,
        project=p.project_with_locations,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_CONDITION,
        "Search for clinical trials focusing on specific medical conditions",
        a.ConditionArguments,
        c.compose_condition,
        project=p.project_with_eligibility,
    ),
    ToolSpec(
        ToolName.GET_TRIAL_STATISTICS,
        "Get aggregate statistics about clinical trials",
        a.StatisticsArguments,
        c.compose_statistics,
        derive=d.statistics_view,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_SPONSOR,
        "Search clinical trials by sponsor or organization",
        a.SponsorArguments,
        c.compose_sponsor,
        project=p.project_sponsor,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_INTERVENTION,
        "Search clinical trials by intervention or treatment type",
        a.InterventionArguments,
        c.compose_intervention,
    ),
    ToolSpec(
        ToolName.GET_RECRUITING_STUDIES,
        "Get currently recruiting clinical trials with contact information",
        a.RecruitingArguments,
        c.compose_recruiting,
        project=p.project_recruiting,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_DATE_RANGE,
        "Search clinical trials by start or completion date range",
        a.DateRangeArguments,
        c.compose_date_range,
        project=p.project_dates,
    ),
    ToolSpec(
        ToolName.GET_STUDIES_WITH_RESULTS,
        "Find completed clinical trials that have published results",
        a.ResultsArguments,
        c.compose_with_results,
        project=p.project_with_results,
    ),
    ToolSpec(
        ToolName.SEARCH_RARE_DISEASES,
        "Search clinical trials for rare diseases and orphan conditions",
        a.RareDiseaseArguments,
        c.compose_rare_disease,
        project=p.project_rare_disease,
    ),
    ToolSpec(
        ToolName.GET_PEDIATRIC_STUDIES,
        "Find clinical trials specifically designed for children and adolescents",
        a.PediatricArguments,
        c.compose_pediatric,
        project=p.project_pediatric,
    ),
    ToolSpec(
        ToolName.GET_SIMILAR_STUDIES,
        "Find clinical trials similar to a specific study by NCT ID",
        a.SimilarStudiesArguments,
        c.compose_reference_lookup,
        derive=d.similar_view,
        follow_up=c.compose_similar,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_PRIMARY_OUTCOME,
        "Search clinical trials by primary outcome measures or endpoints",
        a.PrimaryOutcomeArguments,
        c.compose_primary_outcome,
    ),
    ToolSpec(
        ToolName.SEARCH_BY_ELIGIBILITY_CRITERIA,
        "Advanced search based on detailed eligibility criteria",
        a.EligibilityArguments,
        c.compose_eligibility,
        project=p.project_eligibility_preview,
        derive=d.eligibility_view,
    ),
    ToolSpec(
        ToolName.GET_STUDY_TIMELINE,
        "Get detailed timeline and milestone information for studies",
        a.TimelineArguments,
        c.compose_timeline,
        project=d.project_timeline,
    ),
    ToolSpec(
        ToolName.SEARCH_INTERNATIONAL_STUDIES,
        "Find multi-country international clinical trials",
        a.InternationalArguments,
        c.compose_international,
        derive=d.international_view,
    ),
)

TOOL_CATALOG: dict[ToolName, ToolSpec] = {spec.name: spec for spec in _SPECS}


def get_tool_spec(tool_name: str) -> ToolSpec:
    """Look up a tool by wire name. Raises UnknownToolError."""
    try:
        return TOOL_CATALOG[ToolName(tool_name)]
    except ValueError as exc:
        raise UnknownToolError(tool_name) from exc


def input_schema(spec: ToolSpec) -> dict[str, Any]:
    """JSON schema of the tool's argument bag, camelCase property names."""
    return spec.arguments.model_json_schema(by_alias=True)


def utc_now() -> datetime:
    return datetime.now(UTC)


def compose_query(
    tool_name: str,
    arguments: Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> UpstreamQuery:
    """Validate arguments and build the (first) upstream query for a tool.

    Pure: no network access. Raises UnknownToolError or ClientArgumentError.
    """
    spec = get_tool_spec(tool_name)
    args = parse_arguments(spec.arguments, arguments)
    return spec.compose(args, now or utc_now())
