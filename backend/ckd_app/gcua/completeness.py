# ckd_app/gcua/completeness.py
from typing import Any, Dict, List

from .tables import (
    ELEVATED_RENAL,
    HIGH_CONFIDENCE_PCT,
    KDIGO_SCREENING,
    MODERATE_CONFIDENCE_PCT,
)
from .types import PatientInput

# (display name, attribute, applies to this patient?)
CHECKLIST = (
    ("uACR", "uacr", lambda p: True),
    ("BMI", "measured_bmi", lambda p: True),
    ("Systolic BP", "measured_systolic_bp", lambda p: True),
    ("HbA1c", "hba1c", lambda p: p.has_diabetes),
    ("NT-proBNP", "nt_probnp", lambda p: True),
)


def confidence_label(pct: int) -> str:
    if pct >= HIGH_CONFIDENCE_PCT:
        return "high"
    if pct >= MODERATE_CONFIDENCE_PCT:
        return "moderate"
    return "low"


def completeness(p: PatientInput) -> Dict[str, Any]:
    applicable = [(name, attr) for name, attr, applies in CHECKLIST if applies(p)]
    missing: List[str] = [name for name, attr in applicable if getattr(p, attr) is None]
    present = len(applicable) - len(missing)
    pct = int(round(100 * present / len(applicable)))
    return {"pct": pct, "missing": missing, "confidence": confidence_label(pct)}


def cystatin_c_recommended(p: PatientInput, renal_category: str) -> bool:
    return p.uacr is None and renal_category in ELEVATED_RENAL


def kdigo_screening_recommendation(renal_category: str) -> str:
    return KDIGO_SCREENING[renal_category]
