"""NCT identifier format check."""

from __future__ import annotations

import re

NCT_ID_PATTERN = re.compile(r"NCT[0-9]{8}")
INVALID_NCT_ID_MESSAGE = "Valid NCT ID is required (format: NCT########)"


def is_valid_nct_id(candidate: object) -> bool:
    """True iff candidate is exactly 'NCT' followed by 8 ASCII digits."""
    return isinstance(candidate, str) and NCT_ID_PATTERN.fullmatch(candidate) is not None
