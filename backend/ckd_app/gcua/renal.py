# ckd_app/gcua/renal.py
# Module 1: 5-year risk of incident CKD (eGFR <60).
#
# Logistic risk equation. Each rule returns a log-odds weight (0 when it does
# not apply) and the label recorded in components when the weight is non-zero.
# Rules run in table order, so the component list follows evaluation order.
# Missing optional inputs contribute nothing.
from typing import Callable, List, Tuple

import numpy as np

from .tables import (
    RENAL_CUTS,
    RENAL_C_STATISTIC,
    RENAL_INTERPRETATION,
    categorize,
)
from .types import PatientInput, RenalRiskResult

INTERCEPT = -4.6
REFERENCE_AGE = 60
REFERENCE_EGFR = 90.0

Rule = Callable[[PatientInput], Tuple[float, str]]


def _age(p: PatientInput):
    w = 0.45 * (p.age - REFERENCE_AGE) / 10.0
    return max(w, 0.0), f"Age {p.age} years"


def _female(p: PatientInput):
    return (0.15 if p.sex == "female" else 0.0), "Female sex"


def _egfr(p: PatientInput):
    if p.egfr >= REFERENCE_EGFR:
        return 0.0, ""
    return 0.35 * (REFERENCE_EGFR - p.egfr) / 5.0, f"Reduced eGFR ({p.egfr:.0f} mL/min/1.73m²)"


def _albuminuria(p: PatientInput):
    if p.uacr is None or p.uacr < 30:
        return 0.0, ""
    if p.uacr >= 300:
        return 1.1, f"Severely increased albuminuria (uACR {p.uacr:.0f} mg/g)"
    return 0.6, f"Moderately increased albuminuria (uACR {p.uacr:.0f} mg/g)"


def _diabetes(p: PatientInput):
    return (0.55 if p.has_diabetes else 0.0), "Diabetes mellitus"


def _glycemia(p: PatientInput):
    if p.hba1c is None or p.hba1c < 8.0:
        return 0.0, ""
    return 0.25, f"Poor glycemic control (HbA1c {p.hba1c:.1f}%)"


def _hypertension(p: PatientInput):
    return (0.35 if p.has_hypertension else 0.0), "Hypertension"


def _systolic(p: PatientInput):
    sbp = p.measured_systolic_bp
    if sbp is None or sbp < 140:
        return 0.0, ""
    if sbp >= 160:
        return 0.45, f"Markedly elevated systolic BP ({sbp:.0f} mmHg)"
    return 0.25, f"Elevated systolic BP ({sbp:.0f} mmHg)"


def _bmi(p: PatientInput):
    bmi = p.measured_bmi
    if bmi is None or bmi < 30:
        return 0.0, ""
    if bmi >= 35:
        return 0.4, f"Severe obesity (BMI {bmi:.1f})"
    return 0.25, f"Elevated BMI ({bmi:.1f})"


def _smoking(p: PatientInput):
    if p.smoking_status == "current":
        return 0.3, "Current smoker"
    if p.smoking_status == "former":
        return 0.1, "Former smoker"
    return 0.0, ""


RULES: Tuple[Rule, ...] = (
    _age,
    _female,
    _egfr,
    _albuminuria,
    _diabetes,
    _glycemia,
    _hypertension,
    _systolic,
    _bmi,
    _smoking,
)


def linear_predictor(p: PatientInput) -> Tuple[float, List[str]]:
    lp = INTERCEPT
    components: List[str] = []
    for rule in RULES:
        weight, label = rule(p)
        if weight:
            lp += weight
            components.append(label)
    return lp, components


def calculate_renal_risk(p: PatientInput) -> RenalRiskResult:
    lp, components = linear_predictor(p)
    risk = float(np.clip(100.0 / (1.0 + np.exp(-lp)), 0.0, 100.0))
    risk = round(risk, 2)
    category = categorize(risk, RENAL_CUTS)
    return RenalRiskResult(
        five_year_risk=risk,
        risk_category=category,
        components=tuple(components),
        interpretation=RENAL_INTERPRETATION[category],
        c_statistic=RENAL_C_STATISTIC,
    )
