# ckd_app/gcua/types.py
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Optional, Tuple, Dict, Any


# -------------------------
# Input
# -------------------------
@dataclass(frozen=True)
class PatientInput:
    age: int
    sex: str                     # "male" / "female"
    egfr: float                  # mL/min/1.73m2
    has_diabetes: bool = False
    has_hypertension: bool = False
    has_cvd: bool = False
    has_heart_failure: Optional[bool] = None
    has_atrial_fibrillation: Optional[bool] = None
    uacr: Optional[float] = None           # mg/g
    bmi: Optional[float] = None
    systolic_bp: Optional[float] = None    # mmHg
    smoking_status: Optional[str] = None   # "never" / "former" / "current"
    hba1c: Optional[float] = None          # %
    nt_probnp: Optional[float] = None      # pg/mL

    # non-positive BMI / SBP readings are entry errors and count as unmeasured
    @property
    def measured_bmi(self) -> Optional[float]:
        return self.bmi if self.bmi is not None and self.bmi > 0 else None

    @property
    def measured_systolic_bp(self) -> Optional[float]:
        return self.systolic_bp if self.systolic_bp is not None and self.systolic_bp > 0 else None


# -------------------------
# Module outputs
# -------------------------
@dataclass(frozen=True)
class RenalRiskResult:
    five_year_risk: float
    risk_category: str           # low / moderate / high / very_high
    components: Tuple[str, ...]
    interpretation: str
    c_statistic: float
    name: str = "Renal Risk (5-year incident CKD)"


@dataclass(frozen=True)
class CardiovascularRiskResult:
    ten_year_risk: float
    risk_category: str           # low / borderline / intermediate / high
    components: Tuple[str, ...]
    interpretation: str
    c_statistic: float
    heart_age: Optional[int] = None
    name: str = "Cardiovascular Risk (10-year CVD)"


@dataclass(frozen=True)
class MortalityRiskResult:
    five_year_mortality_risk: float
    risk_category: str           # low / moderate / high / very_high
    points: int
    components: Tuple[str, ...]
    interpretation: str
    c_statistic: float
    competing_risk_adjustment: bool = True
    name: str = "Mortality Risk (5-year, competing risk)"


# -------------------------
# Phenotype
# -------------------------
@dataclass(frozen=True)
class TreatmentRecommendations:
    sglt2i: bool
    ras_inhibitor: bool
    statin: bool
    bp_target: str
    monitoring_frequency: str


@dataclass(frozen=True)
class Phenotype:
    type: str                    # "I" / "II" / "III" / "IV"
    name: str
    tag: str
    color: str                   # red / orange / yellow / gray
    description: str
    clinical_strategy: Tuple[str, ...]
    treatment_recommendations: TreatmentRecommendations


# -------------------------
# Aggregate
# -------------------------
def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Assessment:
    is_eligible: bool
    eligibility_reason: Optional[str] = None
    module1: Optional[RenalRiskResult] = None
    module2: Optional[CardiovascularRiskResult] = None
    module3: Optional[MortalityRiskResult] = None
    phenotype: Optional[Phenotype] = None
    benefit_ratio: Optional[float] = None
    benefit_ratio_interpretation: Optional[str] = None
    data_completeness: Optional[int] = None
    missing_data: Tuple[str, ...] = ()
    confidence_level: Optional[str] = None
    kdigo_screening_recommendation: Optional[str] = None
    cystatin_c_recommended: bool = False
    assessed_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready view: tuples become lists, timestamp becomes ISO text."""
        out = asdict(self)
        out["assessed_at"] = self.assessed_at.isoformat()
        return _listify(out)


def _listify(value):
    if isinstance(value, dict):
        return {k: _listify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_listify(v) for v in value]
    return value
