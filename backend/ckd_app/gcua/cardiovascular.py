# ckd_app/gcua/cardiovascular.py
# Module 2: 10-year cardiovascular risk (office-based Framingham, BMI model).
#
# risk = 1 - S0 ** exp(sum(coef * x) - mean)
# Hypertension marks systolic BP as treated. Unmeasured SBP/BMI fall back to
# the reference values below; heart age is only reported when both were measured.
import math
from typing import List, Optional

import numpy as np

from .tables import (
    CVD_CATEGORIES,
    CVD_CUTS,
    CVD_C_STATISTIC,
    CVD_INTERPRETATION,
    categorize,
)
from .types import CardiovascularRiskResult, PatientInput

COEFFICIENTS = {
    "male": {
        "ln_age": 3.11296,
        "ln_bmi": 0.79277,
        "ln_sbp_untreated": 1.85508,
        "ln_sbp_treated": 1.92672,
        "smoker": 0.70953,
        "diabetes": 0.53160,
        "s0": 0.88431,
        "mean": 23.9388,
    },
    "female": {
        "ln_age": 2.72107,
        "ln_bmi": 0.51125,
        "ln_sbp_untreated": 2.81291,
        "ln_sbp_treated": 2.88267,
        "smoker": 0.61868,
        "diabetes": 0.77763,
        "s0": 0.94833,
        "mean": 26.0145,
    },
}

DEFAULT_SBP = 120.0
DEFAULT_BMI = 25.0

# Heart age reference person: untreated, non-smoker, non-diabetic
HEART_AGE_REF_SBP = 125.0
HEART_AGE_REF_BMI = 22.5
HEART_AGE_BOUNDS = (30, 110)

ESCALATED_CATEGORY = "high"


def _coefficients(sex: str):
    return COEFFICIENTS["female" if sex == "female" else "male"]


def _beta_sum(p: PatientInput) -> float:
    c = _coefficients(p.sex)
    sbp = p.measured_systolic_bp or DEFAULT_SBP
    bmi = p.measured_bmi or DEFAULT_BMI
    sbp_coef = c["ln_sbp_treated"] if p.has_hypertension else c["ln_sbp_untreated"]

    total = c["ln_age"] * math.log(p.age)
    total += c["ln_bmi"] * math.log(bmi)
    total += sbp_coef * math.log(sbp)
    if p.smoking_status == "current":
        total += c["smoker"]
    if p.has_diabetes:
        total += c["diabetes"]
    return total


def ten_year_risk(p: PatientInput) -> float:
    c = _coefficients(p.sex)
    risk = 1.0 - c["s0"] ** np.exp(_beta_sum(p) - c["mean"])
    return round(float(np.clip(risk * 100.0, 0.0, 100.0)), 2)


def heart_age(p: PatientInput) -> Optional[int]:
    """Age at which the reference person carries the same 10-year risk."""
    # provisional: Framingham vascular-age inversion, pending clinical sign-off
    if p.measured_systolic_bp is None or p.measured_bmi is None:
        return None
    c = _coefficients(p.sex)
    reference = c["ln_bmi"] * math.log(HEART_AGE_REF_BMI)
    reference += c["ln_sbp_untreated"] * math.log(HEART_AGE_REF_SBP)
    ln_age = (_beta_sum(p) - reference) / c["ln_age"]
    lo, hi = HEART_AGE_BOUNDS
    return int(round(float(np.clip(math.exp(ln_age), lo, hi))))


def _components(p: PatientInput) -> List[str]:
    out = [f"Age {p.age} years"]
    sbp, bmi = p.measured_systolic_bp, p.measured_bmi
    if sbp is not None and sbp >= 130:
        out.append(f"Elevated systolic BP ({sbp:.0f} mmHg)")
    if p.has_hypertension:
        out.append("Treated hypertension")
    if bmi is not None and bmi >= 30:
        out.append(f"Elevated BMI ({bmi:.1f})")
    if p.smoking_status == "current":
        out.append("Current smoker")
    if p.has_diabetes:
        out.append("Diabetes mellitus")
    return out


def _escalate(category: str, target: str) -> str:
    if CVD_CATEGORIES.index(category) < CVD_CATEGORIES.index(target):
        return target
    return category


def calculate_cardiovascular_risk(p: PatientInput) -> CardiovascularRiskResult:
    risk = ten_year_risk(p)
    category = categorize(risk, CVD_CUTS)
    components = _components(p)

    # prior events override the equation's category, never its number
    if p.has_cvd:
        category = _escalate(category, ESCALATED_CATEGORY)
        components.append("Established cardiovascular disease (override: category at least high)")
    if p.has_heart_failure:
        category = _escalate(category, ESCALATED_CATEGORY)
        components.append("Heart failure (override: category at least high)")

    return CardiovascularRiskResult(
        ten_year_risk=risk,
        risk_category=category,
        components=tuple(components),
        interpretation=CVD_INTERPRETATION[category],
        c_statistic=CVD_C_STATISTIC,
        heart_age=heart_age(p),
    )
