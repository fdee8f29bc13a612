# ckd_app/gcua/eligibility.py
from typing import Optional

from .tables import MIN_AGE, MIN_EGFR_EXCLUSIVE, REASON_UNDER_60, REASON_EGFR_LOW


def is_gcua_eligible(age: int, egfr: float) -> bool:
    return age >= MIN_AGE and egfr > MIN_EGFR_EXCLUSIVE


def ineligibility_reason(age: int, egfr: float) -> Optional[str]:
    """None when eligible; age is reported first when both checks fail."""
    if age < MIN_AGE:
        return REASON_UNDER_60
    if egfr <= MIN_EGFR_EXCLUSIVE:
        return REASON_EGFR_LOW
    return None
