# ckd_app/gcua/tables.py
# Static reference tables for the GCUA engine.
# Built once at import; nothing in the engine writes to them.
from types import MappingProxyType

from .types import Phenotype, TreatmentRecommendations

# -------------------------
# Eligibility
# -------------------------
MIN_AGE = 60
MIN_EGFR_EXCLUSIVE = 60.0

REASON_UNDER_60 = "Patient is under 60 years old. GCUA is designed for adults 60+."
REASON_EGFR_LOW = "Patient eGFR is ≤60. Use KDIGO staging for established CKD."


# -------------------------
# Category cut points: (upper bound, exclusive) -> label; last band open-ended
# -------------------------
INF = float("inf")

RENAL_CATEGORIES = ("low", "moderate", "high", "very_high")
RENAL_CUTS = ((5.0, "low"), (10.0, "moderate"), (20.0, "high"), (INF, "very_high"))

CVD_CATEGORIES = ("low", "borderline", "intermediate", "high")
CVD_CUTS = ((10.0, "low"), (20.0, "borderline"), (30.0, "intermediate"), (INF, "high"))

MORTALITY_CATEGORIES = ("low", "moderate", "high", "very_high")
MORTALITY_CUTS = ((10.0, "low"), (20.0, "moderate"), (35.0, "high"), (INF, "very_high"))


def categorize(value: float, cuts) -> str:
    for upper, label in cuts:
        if value < upper:
            return label
    return cuts[-1][1]


# Published discrimination of the source models (static annotation)
RENAL_C_STATISTIC = 0.84
CVD_C_STATISTIC = 0.76
MORTALITY_C_STATISTIC = 0.72


# -------------------------
# Interpretations per module category
# -------------------------
RENAL_INTERPRETATION = MappingProxyType({
    "low": "Low probability of developing CKD (eGFR <60) within 5 years.",
    "moderate": "Moderate probability of developing CKD within 5 years; address modifiable risk factors.",
    "high": "High probability of developing CKD within 5 years; renal-protective therapy warranted.",
    "very_high": "Very high probability of developing CKD within 5 years; intensive renal protection and close monitoring.",
})

CVD_INTERPRETATION = MappingProxyType({
    "low": "Low 10-year cardiovascular event risk.",
    "borderline": "Borderline 10-year cardiovascular risk; lifestyle optimisation recommended.",
    "intermediate": "Intermediate 10-year cardiovascular risk; statin therapy should be considered.",
    "high": "High 10-year cardiovascular risk; statin and blood pressure control indicated.",
})

MORTALITY_INTERPRETATION = MappingProxyType({
    "low": "Low 5-year all-cause mortality; long-term preventive therapy likely to pay off.",
    "moderate": "Moderate 5-year mortality; preventive benefit still expected within life expectancy.",
    "high": "High 5-year mortality; weigh time-to-benefit against competing risks.",
    "very_high": "Very high 5-year mortality; competing risks may outweigh long-term renal benefit.",
})


# -------------------------
# Module 3 points -> 5-year mortality percentage
# -------------------------
MORTALITY_POINTS_TO_PCT = (
    2.0, 3.0, 4.0, 6.0, 8.0, 11.0, 14.0, 18.0, 23.0, 28.0, 34.0, 40.0, 46.0, 52.0,
)


# -------------------------
# Phenotype policy
# -------------------------
PHENOTYPES = MappingProxyType({
    "I": Phenotype(
        type="I",
        name="Accelerated Ager",
        tag="High Renal + High CVD Risk",
        color="red",
        description=(
            "Elevated risk of both incident CKD and cardiovascular events. "
            "Kidney and vascular ageing are progressing together."
        ),
        clinical_strategy=(
            "Start SGLT2 inhibitor for combined renal and cardiac protection",
            "Start or up-titrate RAS inhibitor, especially if albuminuria present",
            "High-intensity statin unless contraindicated",
            "Target systolic BP <120 mmHg if tolerated",
            "Quarterly eGFR, uACR and potassium monitoring",
            "Consider early nephrology and cardiology co-management",
        ),
        treatment_recommendations=TreatmentRecommendations(
            sglt2i=True,
            ras_inhibitor=True,
            statin=True,
            bp_target="<120 mmHg systolic (if tolerated)",
            monitoring_frequency="Every 3 months",
        ),
    ),
    "II": Phenotype(
        type="II",
        name="Silent Renal Decline",
        tag="Kidney-Specific Risk",
        color="orange",
        description=(
            "Elevated risk of incident CKD without matching cardiovascular risk. "
            "Kidney decline is likely to go unnoticed without targeted screening."
        ),
        clinical_strategy=(
            "Order uACR if not measured in the last 12 months",
            "Start SGLT2 inhibitor for renal protection",
            "Start RAS inhibitor if albuminuria or hypertension present",
            "Avoid nephrotoxic medications (NSAIDs, contrast where possible)",
            "Semi-annual eGFR and uACR monitoring",
        ),
        treatment_recommendations=TreatmentRecommendations(
            sglt2i=True,
            ras_inhibitor=True,
            statin=False,
            bp_target="<130/80 mmHg",
            monitoring_frequency="Every 6 months",
        ),
    ),
    "III": Phenotype(
        type="III",
        name="Vascular-Dominant",
        tag="Heart-Specific Risk",
        color="yellow",
        description=(
            "Cardiovascular risk dominates while renal risk remains low to moderate. "
            "Prevention should focus on atherosclerotic and heart failure events."
        ),
        clinical_strategy=(
            "Statin therapy for primary or secondary prevention",
            "Blood pressure control to <130/80 mmHg",
            "Smoking cessation and weight management support",
            "Annual eGFR and uACR to detect renal progression",
            "Screen for atrial fibrillation and heart failure symptoms",
        ),
        treatment_recommendations=TreatmentRecommendations(
            sglt2i=False,
            ras_inhibitor=False,
            statin=True,
            bp_target="<130/80 mmHg",
            monitoring_frequency="Every 6 months",
        ),
    ),
    "IV": Phenotype(
        type="IV",
        name="Senescent / Low-Risk",
        tag="Low Organ-Specific Risk",
        color="gray",
        description=(
            "Neither renal nor cardiovascular risk is elevated, or competing mortality "
            "dominates without organ-specific risk. Avoid over-treatment."
        ),
        clinical_strategy=(
            "Focus on function, frailty and quality of life",
            "Deprescribe where benefit is unlikely within life expectancy",
            "Lifestyle advice: activity, diet, smoking cessation",
            "Annual eGFR and uACR screening",
        ),
        treatment_recommendations=TreatmentRecommendations(
            sglt2i=False,
            ras_inhibitor=False,
            statin=False,
            bp_target="<140/90 mmHg",
            monitoring_frequency="Annually",
        ),
    ),
})


# -------------------------
# Benefit ratio
# -------------------------
BENEFIT_RATIO_MORTALITY_FLOOR = 1.0
BENEFIT_RATIO_BANDS = (
    (1.0, "High benefit: renal risk exceeds competing mortality, prioritize renal-protective therapy."),
    (0.5, "Moderate benefit: renal protection worthwhile, individualize intensity to life expectancy."),
    (0.0, "Limited benefit given competing mortality risk; focus on symptom control and quality of life."),
)


# -------------------------
# Completeness / KDIGO
# -------------------------
HIGH_CONFIDENCE_PCT = 80
MODERATE_CONFIDENCE_PCT = 50

ELEVATED_RENAL = frozenset({"high", "very_high"})

KDIGO_SCREENING = MappingProxyType({
    "very_high": "KDIGO: repeat eGFR and uACR screening in 6 months.",
    "high": "KDIGO: repeat eGFR and uACR screening in 12 months.",
    "moderate": "KDIGO: repeat eGFR and uACR screening in 2 years.",
    "low": "KDIGO: repeat eGFR and uACR screening in 3 years.",
})
