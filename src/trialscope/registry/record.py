"""Read-only accessor over one CT.gov v2 study object.

The registry nests everything under protocolSection.<module>. Any module
or field may be missing; every accessor here returns None (or an empty
list) instead of raising. Defaults for display are applied by the
projector, not here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, list) else []


@dataclass(frozen=True, slots=True)
class TrialRecord:
    raw: Mapping[str, Any]

    def _module(self, name: str) -> Mapping[str, Any]:
        proto = self.raw.get("protocolSection")
        if not isinstance(proto, Mapping):
            return {}
        module = proto.get(name)
        return module if isinstance(module, Mapping) else {}

    def _date(self, struct_name: str) -> Mapping[str, Any]:
        struct = self._module("statusModule").get(struct_name)
        return struct if isinstance(struct, Mapping) else {}

    # -- identification -----------------------------------------------------

    @property
    def nct_id(self) -> str | None:
        return self._module("identificationModule").get("nctId")

    @property
    def brief_title(self) -> str | None:
        return self._module("identificationModule").get("briefTitle")

    @property
    def official_title(self) -> str | None:
        return self._module("identificationModule").get("officialTitle")

    # -- status / dates -----------------------------------------------------

    @property
    def overall_status(self) -> str | None:
        return self._module("statusModule").get("overallStatus")

    @property
    def start_date(self) -> str | None:
        return self._date("startDateStruct").get("date")

    @property
    def start_date_type(self) -> str | None:
        """ACTUAL or ESTIMATED."""
        return self._date("startDateStruct").get("type")

    @property
    def primary_completion_date(self) -> str | None:
        return self._date("primaryCompletionDateStruct").get("date")

    @property
    def primary_completion_date_type(self) -> str | None:
        return self._date("primaryCompletionDateStruct").get("type")

    # -- sponsor / conditions / design -------------------------------------

    @property
    def lead_sponsor(self) -> Mapping[str, Any] | None:
        sponsor = self._module("sponsorCollaboratorsModule").get("leadSponsor")
        return sponsor if isinstance(sponsor, Mapping) else None

    @property
    def lead_sponsor_name(self) -> str | None:
        sponsor = self.lead_sponsor
        return sponsor.get("name") if sponsor else None

    @property
    def conditions(self) -> list[str]:
        return _as_list(self._module("conditionsModule").get("conditions"))

    @property
    def phases(self) -> list[str]:
        return _as_list(self._module("designModule").get("phases"))

    @property
    def study_type(self) -> str | None:
        return self._module("designModule").get("studyType")

    @property
    def interventions(self) -> list[str]:
        items = _as_list(self._module("armsInterventionsModule").get("interventions"))
        return [i["name"] for i in items if isinstance(i, Mapping) and i.get("name")]

    # -- locations / eligibility -------------------------------------------

    @property
    def locations(self) -> list[Mapping[str, Any]]:
        items = _as_list(self._module("contactsLocationsModule").get("locations"))
        return [loc for loc in items if isinstance(loc, Mapping)]

    @property
    def eligibility(self) -> Mapping[str, Any]:
        return self._module("eligibilityModule")

    @property
    def eligibility_criteria(self) -> str | None:
        return self.eligibility.get("eligibilityCriteria")
