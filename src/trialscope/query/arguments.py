"""Typed argument bags, one model per tool.

Arguments arrive as camelCase JSON (``pageSize``, ``nctId``); snake_case
names are accepted too. Blank strings and nulls are dropped before
validation so they behave exactly like an absent argument.

Upstream filter values (phase, status, sex, age group, sponsor class,
intervention type) are deliberately plain strings: they are forwarded as
given and the registry decides whether they are valid. Selectors that
drive local logic (groupBy, ageRange, similarityType, timelineType) are
enums and are rejected here if unknown.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, ClassVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from trialscope.errors import ClientArgumentError
from trialscope.query.identifiers import INVALID_NCT_ID_MESSAGE, is_valid_nct_id
from trialscope.schema import PediatricAgeRange, SimilarityType, StatisticsField, TimelineType

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# recruiting / pediatric / timeline / similarity searches cap lower
REDUCED_MAX_PAGE_SIZE = 50

_ISO_DATE = r"^\d{4}-\d{2}-\d{2}$"


class ToolArguments(BaseModel):
    """Base for every tool's argument model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        return {
            k: v for k, v in data.items()
            if v is not None and not (isinstance(v, str) and not v.strip())
        }

    def criteria(self) -> dict[str, Any]:
        """Non-empty arguments echoed back as searchCriteria."""
        return self.model_dump(
            mode="json", by_alias=True, exclude_none=True, exclude={"page_size"}
        )


class PagedArguments(ToolArguments):
    """Arguments for tools that return a page of studies."""

    max_page_size: ClassVar[int] = MAX_PAGE_SIZE
    default_page_size: ClassVar[int] = DEFAULT_PAGE_SIZE

    # strict: a JSON boolean is not a page size
    page_size: StrictInt | None = None

    @model_validator(mode="after")
    def check_page_size(self) -> PagedArguments:
        limit = type(self).max_page_size
        if self.page_size is not None and not 1 <= self.page_size <= limit:
            raise ValueError(f"pageSize must be between 1 and {limit}")
        return self

    @property
    def effective_page_size(self) -> int:
        if self.page_size is None:
            return type(self).default_page_size
        return self.page_size


def _check_nct_id(value: str) -> str:
    if not is_valid_nct_id(value):
        raise ValueError(INVALID_NCT_ID_MESSAGE)
    return value


NctId = Annotated[str, AfterValidator(_check_nct_id)]


# ---------------------------------------------------------------------------
# Per-tool models
# ---------------------------------------------------------------------------


class SearchStudiesArguments(PagedArguments):
    query: str | None = None
    condition: str | None = None
    intervention: str | None = None
    location: str | None = None
    phase: str | None = None
    status: str | None = None
    sex: str | None = None
    age: str | None = None


class StudyDetailsArguments(ToolArguments):
    nct_id: NctId


class LocationArguments(PagedArguments):
    country: str | None = None
    state: str | None = None
    city: str | None = None
    facility_name: str | None = None
    distance: float | None = Field(default=None, ge=1, le=500)


class ConditionArguments(PagedArguments):
    condition: str = Field(min_length=2)
    phase: str | None = None
    recruitment_status: str | None = None


class StatisticsFilters(ToolArguments):
    condition: str | None = None
    phase: str | None = None
    status: str | None = None


class StatisticsArguments(PagedArguments):
    default_page_size: ClassVar[int] = MAX_PAGE_SIZE

    group_by: StatisticsField | None = None
    filters: StatisticsFilters = Field(default_factory=StatisticsFilters)

    def criteria(self) -> dict[str, Any]:
        return {
            "groupBy": self.group_by.value if self.group_by else "none",
            "filters": self.filters.criteria(),
        }


class SponsorArguments(PagedArguments):
    sponsor: str = Field(min_length=2)
    sponsor_type: str | None = None


class InterventionArguments(PagedArguments):
    intervention: str = Field(min_length=2)
    intervention_type: str | None = None
    phase: str | None = None


class RecruitingArguments(PagedArguments):
    max_page_size: ClassVar[int] = REDUCED_MAX_PAGE_SIZE

    condition: str | None = None
    location: str | None = None
    age_group: str | None = None

    def criteria(self) -> dict[str, Any]:
        return {**super().criteria(), "recruitmentStatus": "RECRUITING"}


class DateRangeArguments(PagedArguments):
    start_date_from: str | None = Field(default=None, pattern=_ISO_DATE)
    start_date_to: str | None = Field(default=None, pattern=_ISO_DATE)
    completion_date_from: str | None = Field(default=None, pattern=_ISO_DATE)
    completion_date_to: str | None = Field(default=None, pattern=_ISO_DATE)
    condition: str | None = None


class ResultsArguments(PagedArguments):
    condition: str | None = None
    intervention: str | None = None
    completed_after: str | None = Field(default=None, pattern=_ISO_DATE)

    def criteria(self) -> dict[str, Any]:
        return {**super().criteria(), "status": "COMPLETED", "hasResults": True}


class RareDiseaseArguments(PagedArguments):
    rare_disease: str = Field(min_length=2)
    recruitment_status: str | None = None

    def criteria(self) -> dict[str, Any]:
        return {
            **super().criteria(),
            "searchNote": "Includes orphan and rare disease designations",
        }


class PediatricArguments(PagedArguments):
    max_page_size: ClassVar[int] = REDUCED_MAX_PAGE_SIZE

    condition: str | None = None
    age_range: PediatricAgeRange | None = None
    recruitment_status: str | None = None

    def criteria(self) -> dict[str, Any]:
        return {**super().criteria(), "targetPopulation": "PEDIATRIC"}


class SimilarStudiesArguments(PagedArguments):
    max_page_size: ClassVar[int] = REDUCED_MAX_PAGE_SIZE

    nct_id: NctId
    similarity_type: SimilarityType = SimilarityType.CONDITION


class PrimaryOutcomeArguments(PagedArguments):
    outcome: str = Field(min_length=3)
    condition: str | None = None
    phase: str | None = None


class EligibilityArguments(PagedArguments):
    min_age: str | None = None
    max_age: str | None = None
    sex: str | None = None
    healthy_volunteers: bool | None = None
    condition: str | None = None
    exclusion_keywords: str | None = None
    inclusion_keywords: str | None = None


class TimelineArguments(PagedArguments):
    max_page_size: ClassVar[int] = REDUCED_MAX_PAGE_SIZE

    condition: str | None = None
    sponsor: str | None = None
    phase: str | None = None
    timeline_type: TimelineType = TimelineType.CURRENT


class InternationalArguments(PagedArguments):
    condition: str | None = None
    exclude_country: str | None = None
    include_country: str | None = None
    min_countries: int | None = Field(default=None, ge=2, le=50)
    phase: str | None = None

    def criteria(self) -> dict[str, Any]:
        return {**super().criteria(), "note": "Only showing studies with 2+ countries"}


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def describe_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one client-facing sentence."""
    problems: list[str] = []
    for err in exc.errors():
        name = ".".join(str(part) for part in err["loc"]) or "arguments"
        if err["type"] == "missing":
            problems.append(f"{name} parameter is required")
        elif err["type"] == "value_error":
            problems.append(str(err["ctx"]["error"]))
        else:
            problems.append(f"{name}: {err['msg']}")
    return "; ".join(problems)


def parse_arguments(model: type[ToolArguments], arguments: Any) -> ToolArguments:
    """Validate a raw argument bag. Raises ClientArgumentError on any problem."""
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise ClientArgumentError("Tool arguments must be a JSON object")
    try:
        return model.model_validate(dict(arguments))
    except ValidationError as exc:
        raise ClientArgumentError(describe_validation_error(exc)) from exc
