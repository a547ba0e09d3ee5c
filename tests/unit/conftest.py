"""Shared fixtures: minimal CT.gov v2 study objects and search responses."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import pytest
import structlog

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def _study(
    nct_id: str = "NCT11111111",
    *,
    title: str = "Trial Alpha",
    status: str = "RECRUITING",
    phases: list[str] | None = None,
    conditions: list[str] | None = None,
    interventions: list[str] | None = None,
    sponsor: str | None = "Sponsor Corp",
    countries: list[str] | None = None,
    criteria: str | None = "Inclusion Criteria:\n- Adults\n\nExclusion Criteria:\n- Pregnancy",
    start_date: str | None = "2024-01-15",
) -> dict[str, Any]:
    proto: dict[str, Any] = {
        "identificationModule": {"nctId": nct_id, "briefTitle": title},
        "statusModule": {"overallStatus": status},
        "designModule": {"studyType": "INTERVENTIONAL", "phases": phases or []},
        "conditionsModule": {"conditions": conditions or []},
        "armsInterventionsModule": {
            "interventions": [{"name": n} for n in interventions or []]
        },
        "eligibilityModule": {
            "sex": "ALL",
            "minimumAge": "18 Years",
            "healthyVolunteers": False,
        },
        "contactsLocationsModule": {
            "locations": [
                {"facility": f"Site {i}", "city": "City", "country": c}
                for i, c in enumerate(countries or [])
            ]
        },
    }
    if sponsor is not None:
        proto["sponsorCollaboratorsModule"] = {
            "leadSponsor": {"name": sponsor, "class": "INDUSTRY"}
        }
    if criteria is not None:
        proto["eligibilityModule"]["eligibilityCriteria"] = criteria
    if start_date is not None:
        proto["statusModule"]["startDateStruct"] = {"date": start_date, "type": "ACTUAL"}
    return {"protocolSection": proto}


@pytest.fixture
def make_study():
    """Factory for one study object; keyword overrides per field."""
    return _study


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def condition_response() -> dict[str, Any]:
    """Two diabetes studies out of 450 upstream matches."""
    return {
        "totalCount": 450,
        "studies": [
            _study(
                "NCT11111111",
                title="Diabetes Alpha",
                phases=["PHASE3"],
                conditions=["Type 2 Diabetes", "Obesity"],
            ),
            _study(
                "NCT22222222",
                title="Diabetes Beta",
                phases=["PHASE3"],
                conditions=["Type 1 Diabetes"],
                sponsor=None,
            ),
        ],
    }


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI commands reconfigure structlog globally; restore defaults after each test."""
    yield
    structlog.reset_defaults()
