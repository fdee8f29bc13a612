from .eligibility import is_gcua_eligible
from .engine import get_gcua_summary, perform_gcua_assessment
from .types import (
    Assessment,
    CardiovascularRiskResult,
    MortalityRiskResult,
    PatientInput,
    Phenotype,
    RenalRiskResult,
    TreatmentRecommendations,
)

__all__ = [
    "is_gcua_eligible",
    "perform_gcua_assessment",
    "get_gcua_summary",
    "Assessment",
    "PatientInput",
    "Phenotype",
    "TreatmentRecommendations",
    "RenalRiskResult",
    "CardiovascularRiskResult",
    "MortalityRiskResult",
]
