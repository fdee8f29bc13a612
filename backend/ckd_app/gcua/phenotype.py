# ckd_app/gcua/phenotype.py
from typing import Optional, Tuple

from .tables import (
    BENEFIT_RATIO_BANDS,
    BENEFIT_RATIO_MORTALITY_FLOOR,
    PHENOTYPES,
)
from .types import Phenotype

ELEVATED_RENAL = ("high", "very_high")
NOT_ELEVATED_RENAL = ("low", "moderate")
ELEVATED_CVD = ("intermediate", "high")
NOT_ELEVATED_CVD = ("low", "borderline")

# First match wins; anything unmatched is phenotype IV.
DECISION_TABLE = (
    (ELEVATED_RENAL, ELEVATED_CVD, "I"),
    (ELEVATED_RENAL, NOT_ELEVATED_CVD, "II"),
    (NOT_ELEVATED_RENAL, ELEVATED_CVD, "III"),
)
DEFAULT_PHENOTYPE = "IV"


def phenotype_type(renal_category: str, cvd_category: str, mortality_category: Optional[str] = None) -> str:
    # mortality category is accepted but never changes the result
    for renal_set, cvd_set, ptype in DECISION_TABLE:
        if renal_category in renal_set and cvd_category in cvd_set:
            return ptype
    return DEFAULT_PHENOTYPE


def classify_phenotype(renal_category: str, cvd_category: str, mortality_category: Optional[str] = None) -> Phenotype:
    return PHENOTYPES[phenotype_type(renal_category, cvd_category, mortality_category)]


def benefit_ratio(renal_risk: float, mortality_risk: float) -> Tuple[float, str]:
    ratio = round(renal_risk / max(mortality_risk, BENEFIT_RATIO_MORTALITY_FLOOR), 2)
    for lower, text in BENEFIT_RATIO_BANDS:
        if ratio >= lower:
            return ratio, text
    return ratio, BENEFIT_RATIO_BANDS[-1][1]
