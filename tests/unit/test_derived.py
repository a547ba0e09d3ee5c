"""Tests for locally derived views: statistics, filtering, timeline, similarity."""

from __future__ import annotations

import pytest

from trialscope.errors import NotFoundError
from trialscope.query.arguments import (
    EligibilityArguments,
    InternationalArguments,
    StatisticsArguments,
)
from trialscope.registry.record import TrialRecord
from trialscope.schema import ResultSet, StatisticsField, ToolCall, ToolName
from trialscope.views.derived import (
    compute_statistics,
    days_since,
    distinct_countries,
    eligibility_view,
    exclude_by_keywords,
    international_view,
    is_international,
    parse_registry_date,
    resolve_reference,
    statistics_view,
)
from trialscope.views.projector import project_eligibility_preview, project_summary


def _records(*studies):
    return [TrialRecord(s) for s in studies]


class TestStatistics:
    def test_group_by_phase_uses_first_element(self, make_study):
        records = _records(
            make_study(phases=["PHASE2", "PHASE3"]),
            make_study(phases=["PHASE2"]),
            make_study(phases=[]),
        )
        assert compute_statistics(records, StatisticsField.PHASE) == {
            "PHASE2": 2,
            "Not specified": 1,
        }

    def test_group_by_sponsor(self, make_study):
        records = _records(make_study(sponsor="A"), make_study(sponsor=None))
        assert compute_statistics(records, StatisticsField.SPONSOR) == {
            "A": 1,
            "Not specified": 1,
        }

    def test_ungrouped_views(self, make_study):
        records = _records(
            make_study(status="RECRUITING", phases=["PHASE1"]),
            make_study(status="COMPLETED", phases=["PHASE1"]),
        )
        stats = compute_statistics(records, None)
        assert stats["totalStudies"] == 2
        assert stats["byStatus"] == {"RECRUITING": 1, "COMPLETED": 1}
        assert stats["byPhase"] == {"PHASE1": 2}
        assert stats["byStudyType"] == {"INTERVENTIONAL": 2}

    def test_statistics_view(self, make_study, fixed_now):
        args = StatisticsArguments(group_by="status")
        call = ToolCall(ToolName.GET_TRIAL_STATISTICS, args, fixed_now)
        results = ResultSet(records=tuple(_records(make_study())), total_count=900)
        view = statistics_view(call, results, project_summary)
        assert view["totalStudies"] == 900
        assert view["analyzedStudies"] == 1
        assert view["groupBy"] == "status"
        assert view["statistics"] == {"RECRUITING": 1}


class TestExclusionFiltering:
    def test_any_token_excludes(self, make_study):
        records = _records(
            make_study("NCT00000001", criteria="Exclusion: prior CHEMOTHERAPY"),
            make_study("NCT00000002", criteria="Exclusion: pregnancy"),
            make_study("NCT00000003", criteria="Adults only"),
        )
        kept = exclude_by_keywords(records, "chemotherapy pregnancy")
        assert [r.nct_id for r in kept] == ["NCT00000003"]

    def test_idempotent_and_order_preserving(self, make_study):
        records = _records(
            make_study("NCT00000001", criteria="a"),
            make_study("NCT00000002", criteria="smoker"),
            make_study("NCT00000003", criteria="b"),
        )
        once = exclude_by_keywords(records, "smoker")
        twice = exclude_by_keywords(once, "smoker")
        assert once == twice
        assert [r.nct_id for r in once] == ["NCT00000001", "NCT00000003"]

    def test_blank_phrase_keeps_everything(self, make_study):
        records = _records(make_study(criteria="anything"))
        assert exclude_by_keywords(records, "   ") == records

    def test_missing_criteria_is_kept(self, make_study):
        records = _records(make_study(criteria=None))
        assert exclude_by_keywords(records, "pregnancy") == records

    def test_total_count_unchanged(self, make_study, fixed_now):
        args = EligibilityArguments(exclusion_keywords="pregnancy")
        call = ToolCall(ToolName.SEARCH_BY_ELIGIBILITY_CRITERIA, args, fixed_now)
        results = ResultSet(
            records=tuple(_records(make_study(criteria="pregnancy"), make_study(criteria="x"))),
            total_count=77,
        )
        view = eligibility_view(call, results, project_eligibility_preview)
        assert view["totalCount"] == 77
        assert view["resultsShown"] == 1


class TestInternational:
    def test_distinct_countries(self, make_study):
        record = TrialRecord(make_study(countries=["US", "CA", "US", ""]))
        assert distinct_countries(record) == ["US", "CA"]

    def test_single_country_never_international(self):
        assert not is_international(["US"])
        assert not is_international(["US"], min_countries=None, exclude_country="CA")

    def test_min_countries(self):
        assert not is_international(["US", "CA", "MX"], min_countries=4)
        assert is_international(["US", "CA", "MX"], min_countries=3)

    def test_excluded_country(self):
        assert not is_international(["US", "CA"], exclude_country="CA")

    def test_view(self, make_study, fixed_now):
        args = InternationalArguments(min_countries=2)
        call = ToolCall(ToolName.SEARCH_INTERNATIONAL_STUDIES, args, fixed_now)
        results = ResultSet(
            records=tuple(_records(
                make_study("NCT00000001", countries=["US"]),
                make_study("NCT00000002", countries=["US", "CA", "MX", "FR"]),
            )),
            total_count=2,
        )
        view = international_view(call, results, project_summary)
        assert view["resultsShown"] == 1
        study = view["internationalStudies"][0]
        assert study["nctId"] == "NCT00000002"
        details = study["internationalDetails"]
        assert details["totalCountries"] == 4
        assert details["totalLocations"] == 4
        assert len(details["sampleLocations"]) == 3
        assert view["searchCriteria"]["note"] == "Only showing studies with 2+ countries"


class TestTimelineHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [("2024-01-15", (2024, 1, 15)), ("2024-06", (2024, 6, 1)), ("2023", (2023, 1, 1))],
    )
    def test_parse_partial_dates(self, value, expected):
        assert parse_registry_date(value).timetuple()[:3] == expected

    def test_unparseable(self):
        assert parse_registry_date("soon") is None
        assert parse_registry_date(None) is None

    def test_days_since(self, fixed_now):
        assert days_since("2025-02-01", fixed_now) == 28
        assert days_since(None, fixed_now) is None


class TestReference:
    def test_missing_reference_is_not_found(self):
        with pytest.raises(NotFoundError, match="Reference study not found: NCT12345678"):
            resolve_reference("NCT12345678", ResultSet())

    def test_first_record_is_reference(self, make_study):
        results = ResultSet(records=tuple(_records(make_study("NCT12345678"))), total_count=1)
        assert resolve_reference("NCT12345678", results).nct_id == "NCT12345678"
