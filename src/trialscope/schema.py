"""Domain models shared by every tool.

These are call-scoped values: built fresh for one tool call, passed
down the pipeline, and discarded. Nothing here is shared between calls.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from trialscope.registry.record import TrialRecord

if TYPE_CHECKING:
    from trialscope.query.arguments import ToolArguments


class ToolName(enum.StrEnum):
    """The 17 registered tools."""

    SEARCH_STUDIES = "search_studies"
    GET_STUDY_DETAILS = "get_study_details"
    SEARCH_BY_LOCATION = "search_by_location"
    SEARCH_BY_CONDITION = "search_by_condition"
    GET_TRIAL_STATISTICS = "get_trial_statistics"
    SEARCH_BY_SPONSOR = "search_by_sponsor"
    SEARCH_BY_INTERVENTION = "search_by_intervention"
    GET_RECRUITING_STUDIES = "get_recruiting_studies"
    SEARCH_BY_DATE_RANGE = "search_by_date_range"
    GET_STUDIES_WITH_RESULTS = "get_studies_with_results"
    SEARCH_RARE_DISEASES = "search_rare_diseases"
    GET_PEDIATRIC_STUDIES = "get_pediatric_studies"
    GET_SIMILAR_STUDIES = "get_similar_studies"
    SEARCH_BY_PRIMARY_OUTCOME = "search_by_primary_outcome"
    SEARCH_BY_ELIGIBILITY_CRITERIA = "search_by_eligibility_criteria"
    GET_STUDY_TIMELINE = "get_study_timeline"
    SEARCH_INTERNATIONAL_STUDIES = "search_international_studies"


class StatisticsField(enum.StrEnum):
    PHASE = "phase"
    STATUS = "status"
    STUDY_TYPE = "studyType"
    CONDITION = "condition"
    SPONSOR = "sponsor"


class PediatricAgeRange(enum.StrEnum):
    INFANT = "INFANT"
    CHILD = "CHILD"
    ADOLESCENT = "ADOLESCENT"


class SimilarityType(enum.StrEnum):
    CONDITION = "CONDITION"
    INTERVENTION = "INTERVENTION"
    SPONSOR = "SPONSOR"
    PHASE = "PHASE"


class TimelineType(enum.StrEnum):
    CURRENT = "CURRENT"
    COMPLETED = "COMPLETED"
    UPCOMING = "UPCOMING"


# ---------------------------------------------------------------------------
# Upstream query / result set
# ---------------------------------------------------------------------------

ParamValue = str | int | bool


@dataclass(frozen=True, slots=True)
class UpstreamQuery:
    """Ordered, immutable set of registry search parameters.

    Built through QueryBuilder, which drops absent and blank values, so
    no parameter here is ever None or the empty string.
    """

    items: tuple[tuple[str, ParamValue], ...]

    def __iter__(self) -> Iterator[tuple[str, ParamValue]]:
        return iter(self.items)

    def __contains__(self, key: object) -> bool:
        return any(k == key for k, _ in self.items)

    def get(self, key: str, default: Any = None) -> Any:
        for k, v in self.items:
            if k == key:
                return v
        return default

    def keys(self) -> list[str]:
        return [k for k, _ in self.items]

    def as_params(self) -> dict[str, ParamValue]:
        return dict(self.items)


@dataclass(frozen=True, slots=True)
class ResultSet:
    """One page of registry results.

    total_count is what the registry reports and may exceed len(records).
    """

    records: tuple[TrialRecord, ...] = ()
    total_count: int = 0

    @classmethod
    def from_response(cls, raw: Mapping[str, Any]) -> ResultSet:
        studies = raw.get("studies") or []
        return cls(
            records=tuple(TrialRecord(s) for s in studies if isinstance(s, Mapping)),
            total_count=int(raw.get("totalCount") or 0),
        )


# ---------------------------------------------------------------------------
# Outcomes and the response envelope
# ---------------------------------------------------------------------------


class OutcomeKind(enum.StrEnum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True, slots=True)
class Ok:
    payload: dict[str, Any]
    kind: OutcomeKind = OutcomeKind.OK


@dataclass(frozen=True, slots=True)
class SoftError:
    """The tool ran but has nothing to show: not found, or upstream failed."""

    kind: OutcomeKind
    message: str


@dataclass(frozen=True, slots=True)
class HardError:
    """The call was rejected or crashed. No (further) network call was made."""

    kind: OutcomeKind
    message: str


ToolOutcome = Ok | SoftError | HardError


class ResponseEnvelope(BaseModel):
    """Uniform wrapper returned for every tool call.

    When is_error is True, data is a human-readable diagnostic string.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    tool: str
    data: Any
    is_error: bool = Field(default=False, alias="isError")
    error_message: str | None = Field(default=None, alias="errorMessage")
    error_kind: OutcomeKind | None = Field(default=None, alias="errorKind")

    @classmethod
    def from_outcome(cls, tool: str, outcome: ToolOutcome) -> ResponseEnvelope:
        if isinstance(outcome, Ok):
            return cls(success=True, tool=tool, data=outcome.payload, is_error=False)
        return cls(
            success=isinstance(outcome, SoftError),
            tool=tool,
            data=outcome.message,
            is_error=True,
            error_message=outcome.message,
            error_kind=outcome.kind,
        )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with the camelCase boundary field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """Per-call context handed to composers and derived views."""

    tool: ToolName
    args: ToolArguments
    now: datetime
    reference: TrialRecord | None = field(default=None)
