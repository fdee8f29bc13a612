# ckd_app/gcua/mortality.py
# Module 3: 5-year all-cause mortality, point-based (Bansal-style).
from typing import List, Tuple

from .tables import (
    MORTALITY_CUTS,
    MORTALITY_C_STATISTIC,
    MORTALITY_INTERPRETATION,
    MORTALITY_POINTS_TO_PCT,
    categorize,
)
from .types import MortalityRiskResult, PatientInput

# (lower bound inclusive, points, label)
AGE_BANDS = (
    (85, 5, "Age ≥85"),
    (80, 4, "Age 80-84"),
    (75, 3, "Age 75-79"),
    (70, 2, "Age 70-74"),
    (65, 1, "Age 65-69"),
)


def _age_points(p: PatientInput) -> Tuple[int, str]:
    for lower, pts, label in AGE_BANDS:
        if p.age >= lower:
            return pts, label
    return 0, ""


def _egfr_points(p: PatientInput) -> Tuple[int, str]:
    if p.egfr < 60:
        return 2, f"eGFR <60 ({p.egfr:.0f})"
    if p.egfr < 75:
        return 1, f"eGFR 60-74 ({p.egfr:.0f})"
    return 0, ""


def _uacr_points(p: PatientInput) -> Tuple[int, str]:
    if p.uacr is None:
        return 0, ""
    if p.uacr >= 300:
        return 2, f"Severe albuminuria (uACR {p.uacr:.0f} mg/g)"
    if p.uacr >= 30:
        return 1, f"Albuminuria (uACR {p.uacr:.0f} mg/g)"
    return 0, ""


POINT_RULES = (
    _age_points,
    lambda p: (1 if p.sex == "male" else 0, "Male sex"),
    lambda p: (1 if p.has_diabetes else 0, "Diabetes mellitus"),
    lambda p: (2 if p.has_cvd else 0, "History of cardiovascular disease"),
    lambda p: (3 if p.has_heart_failure else 0, "Heart failure"),
    lambda p: (1 if p.has_atrial_fibrillation else 0, "Atrial fibrillation"),
    lambda p: (2 if p.smoking_status == "current" else 0, "Current smoker"),
    _egfr_points,
    _uacr_points,
    lambda p: (1 if p.measured_bmi is not None and p.measured_bmi < 20 else 0, f"Low BMI ({p.bmi})"),
    lambda p: (
        2 if p.nt_probnp is not None and p.nt_probnp >= 300 else 0,
        f"Elevated NT-proBNP ({p.nt_probnp} pg/mL)",
    ),
)


def score_points(p: PatientInput) -> Tuple[int, List[str]]:
    total = 0
    components: List[str] = []
    for rule in POINT_RULES:
        pts, label = rule(p)
        if pts:
            total += pts
            components.append(f"{label} (+{pts})")
    return total, components


def points_to_percent(points: int) -> float:
    idx = min(max(points, 0), len(MORTALITY_POINTS_TO_PCT) - 1)
    return MORTALITY_POINTS_TO_PCT[idx]


def calculate_mortality_risk(p: PatientInput) -> MortalityRiskResult:
    points, components = score_points(p)
    risk = round(min(max(points_to_percent(points), 0.0), 100.0), 2)
    category = categorize(risk, MORTALITY_CUTS)
    return MortalityRiskResult(
        five_year_mortality_risk=risk,
        risk_category=category,
        points=points,
        components=tuple(components),
        interpretation=MORTALITY_INTERPRETATION[category],
        c_statistic=MORTALITY_C_STATISTIC,
    )
