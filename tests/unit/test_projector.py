"""Tests for per-record projection and its fallbacks."""

from __future__ import annotations

from trialscope.registry.record import TrialRecord
from trialscope.views.projector import (
    criteria_preview,
    detailed,
    eligibility_block,
    project_recruiting,
    project_with_eligibility,
    project_with_locations,
    summarize,
)


class TestSummarize:
    def test_fields(self, make_study):
        record = TrialRecord(
            make_study(phases=["PHASE2"], conditions=["A", "B", "C", "D"])
        )
        summary = summarize(record)
        assert summary["nctId"] == "NCT11111111"
        assert summary["title"] == "Trial Alpha"
        assert summary["phase"] == ["PHASE2"]
        assert summary["conditions"] == ["A", "B", "C"]
        assert summary["sponsor"] == "Sponsor Corp"
        assert summary["startDate"] == "2024-01-15"

    def test_empty_record_uses_defaults(self):
        summary = summarize(TrialRecord({}))
        assert summary == {
            "nctId": "Unknown",
            "title": "Not specified",
            "status": "Unknown",
            "phase": ["Not specified"],
            "studyType": "Unknown",
            "sponsor": "Not specified",
            "conditions": [],
            "startDate": "Not specified",
        }

    def test_malformed_sections_do_not_raise(self):
        record = TrialRecord({"protocolSection": {"statusModule": "oops", "designModule": None}})
        assert summarize(record)["status"] == "Unknown"


class TestEligibility:
    def test_block(self, make_study):
        block = eligibility_block(TrialRecord(make_study()))
        assert block == {
            "sex": "ALL",
            "minimumAge": "18 Years",
            "maximumAge": "Not specified",
            "healthyVolunteers": False,
        }

    def test_yes_string_flag(self):
        record = TrialRecord(
            {"protocolSection": {"eligibilityModule": {"healthyVolunteers": "Yes"}}}
        )
        assert eligibility_block(record)["healthyVolunteers"] is True

    def test_preview_truncates_at_200(self):
        assert criteria_preview("x" * 250) == "x" * 200 + "..."
        assert criteria_preview("short") == "short"
        assert criteria_preview(None) == "Not available"


class TestProjectors:
    def test_condition_projection_keeps_all_conditions(self, make_study, fixed_now):
        record = TrialRecord(make_study(conditions=["A", "B", "C", "D"]))
        projected = project_with_eligibility(record, fixed_now)
        assert projected["conditions"] == ["A", "B", "C", "D"]
        assert "eligibility" in projected

    def test_location_limits(self, make_study, fixed_now):
        record = TrialRecord(make_study(countries=["US", "CA", "MX", "FR"]))
        assert len(project_with_locations(record, fixed_now)["locations"]) == 3
        assert len(project_recruiting(record, fixed_now)["locations"]) == 2

    def test_location_entries_drop_missing_fields(self, make_study, fixed_now):
        record = TrialRecord(make_study(countries=["US"]))
        assert project_with_locations(record, fixed_now)["locations"] == [
            {"facility": "Site 0", "city": "City", "country": "US"}
        ]

    def test_detailed(self, make_study):
        view = detailed(TrialRecord(make_study(interventions=["Drug X"])))
        assert view["identification"]["nctId"] == "NCT11111111"
        assert view["status"]["startDateType"] == "ACTUAL"
        assert view["status"]["primaryCompletionDate"] == "Not specified"
        assert view["sponsor"] == {"name": "Sponsor Corp", "class": "INDUSTRY"}
        assert view["interventions"] == ["Drug X"]
        assert view["eligibility"]["eligibilityCriteria"].startswith("Inclusion Criteria")

    def test_detailed_without_sponsor(self, make_study):
        assert detailed(TrialRecord(make_study(sponsor=None)))["sponsor"] is None
