# ckd_app/gcua_routes.py
import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .db import get_db
from .gcua import PatientInput, get_gcua_summary, is_gcua_eligible, perform_gcua_assessment
from .gcua.eligibility import ineligibility_reason
from .gcua_input import get_patient_gcua_input
from .gcua_store import (
    assessment_history,
    eligible_patients,
    high_risk_patients,
    latest_assessment,
    missing_uacr_patients,
    population_statistics,
    record_to_dict,
    save_gcua_assessment,
)

router = APIRouter(prefix="/gcua", tags=["gcua"])
log = logging.getLogger("uvicorn.error")

UNSCOREABLE = "Patient not found or missing required data (age, eGFR)"


# -------------------------------------------------
#                 SCHEMAS
# -------------------------------------------------
class PatientProfileIn(BaseModel):
    age: int = Field(..., ge=0, le=130)
    sex: Literal["male", "female"]
    egfr: float = Field(..., ge=0, le=250)
    uacr: Optional[float] = Field(None, ge=0)
    bmi: Optional[float] = Field(None, gt=0, le=100)
    systolic_bp: Optional[float] = Field(None, gt=0, le=300)
    has_diabetes: bool = False
    has_hypertension: bool = False
    has_cvd: bool = False
    has_heart_failure: Optional[bool] = None
    has_atrial_fibrillation: Optional[bool] = None
    smoking_status: Optional[Literal["never", "former", "current"]] = None
    hba1c: Optional[float] = Field(None, gt=0, le=25)
    nt_probnp: Optional[float] = Field(None, ge=0)


class CalculateIn(BaseModel):
    assessed_by: Optional[str] = "system"


class RenalOut(BaseModel):
    name: str
    five_year_risk: float
    risk_category: str
    components: List[str]
    interpretation: str
    c_statistic: float


class CardiovascularOut(BaseModel):
    name: str
    ten_year_risk: float
    risk_category: str
    heart_age: Optional[int] = None
    components: List[str]
    interpretation: str
    c_statistic: float


class MortalityOut(BaseModel):
    name: str
    five_year_mortality_risk: float
    risk_category: str
    points: int
    components: List[str]
    interpretation: str
    c_statistic: float
    competing_risk_adjustment: bool


class TreatmentOut(BaseModel):
    sglt2i: bool
    ras_inhibitor: bool
    statin: bool
    bp_target: str
    monitoring_frequency: str


class PhenotypeOut(BaseModel):
    type: str
    name: str
    tag: str
    color: str
    description: str
    clinical_strategy: List[str]
    treatment_recommendations: TreatmentOut


class AssessmentOut(BaseModel):
    is_eligible: bool
    eligibility_reason: Optional[str] = None
    module1: Optional[RenalOut] = None
    module2: Optional[CardiovascularOut] = None
    module3: Optional[MortalityOut] = None
    phenotype: Optional[PhenotypeOut] = None
    benefit_ratio: Optional[float] = None
    benefit_ratio_interpretation: Optional[str] = None
    data_completeness: Optional[int] = None
    missing_data: List[str] = []
    confidence_level: Optional[str] = None
    kdigo_screening_recommendation: Optional[str] = None
    cystatin_c_recommended: bool = False
    assessed_at: str


class CalculateOut(BaseModel):
    status: str = "success"
    message: str
    summary: str
    assessment: AssessmentOut


class LatestOut(BaseModel):
    status: str = "success"
    is_eligible: Optional[bool] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    assessment: Optional[Dict[str, Any]] = None


class ListOut(BaseModel):
    status: str = "success"
    count: int
    message: Optional[str] = None
    patients: List[Dict[str, Any]]


class HistoryOut(BaseModel):
    status: str = "success"
    count: int
    history: List[Dict[str, Any]]


class StatisticsOut(BaseModel):
    status: str = "success"
    overall: Dict[str, Any]
    by_phenotype: List[Dict[str, Any]]


class BulkOut(BaseModel):
    status: str = "success"
    message: str
    results: Dict[str, int]


# -------------------------------------------------
#                 ROUTES
# -------------------------------------------------
@router.post("/assess", response_model=AssessmentOut)
def assess_profile(payload: PatientProfileIn) -> AssessmentOut:
    """Score a posted profile without touching storage."""
    assessment = perform_gcua_assessment(PatientInput(**payload.model_dump()))
    return AssessmentOut(**assessment.to_dict())


@router.get("/assessment/{patient_id}", response_model=LatestOut)
def get_latest_assessment(patient_id: int, db: Session = Depends(get_db)) -> LatestOut:
    rec = latest_assessment(db, patient_id)
    if rec is not None:
        return LatestOut(assessment=record_to_dict(rec))

    patient_input = get_patient_gcua_input(db, patient_id)
    if patient_input is None:
        raise HTTPException(status_code=404, detail=UNSCOREABLE)

    if not is_gcua_eligible(patient_input.age, patient_input.egfr):
        return LatestOut(
            is_eligible=False,
            reason=ineligibility_reason(patient_input.age, patient_input.egfr),
        )

    return LatestOut(
        is_eligible=True,
        message=f"No GCUA assessment found. Use POST /gcua/calculate/{patient_id} to generate one.",
    )


@router.post("/calculate/{patient_id}", response_model=CalculateOut)
def calculate_assessment(
    patient_id: int,
    payload: Optional[CalculateIn] = None,
    db: Session = Depends(get_db),
) -> CalculateOut:
    assessed_by = (payload.assessed_by if payload else None) or "system"

    patient_input = get_patient_gcua_input(db, patient_id)
    if patient_input is None:
        raise HTTPException(status_code=404, detail=UNSCOREABLE)

    log.info(
        "[GCUA] calculating pid=%s age=%s egfr=%s uacr=%s diabetes=%s",
        patient_id, patient_input.age, patient_input.egfr, patient_input.uacr, patient_input.has_diabetes,
    )

    assessment = perform_gcua_assessment(patient_input)
    try:
        save_gcua_assessment(db, patient_id, patient_input, assessment, assessed_by)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to save GCUA assessment: {e}")

    summary = get_gcua_summary(assessment)
    log.info("[GCUA] pid=%s → %s", patient_id, summary)

    message = (
        f"GCUA assessment complete: {assessment.phenotype.name}"
        if assessment.is_eligible
        else assessment.eligibility_reason
    )
    return CalculateOut(message=message, summary=summary, assessment=AssessmentOut(**assessment.to_dict()))


@router.get("/eligible-patients", response_model=ListOut)
def list_eligible_patients(db: Session = Depends(get_db)) -> ListOut:
    patients = eligible_patients(db)
    return ListOut(count=len(patients), patients=patients)


@router.get("/high-risk", response_model=ListOut)
def list_high_risk(db: Session = Depends(get_db)) -> ListOut:
    patients = high_risk_patients(db)
    return ListOut(count=len(patients), patients=patients)


@router.get("/missing-uacr", response_model=ListOut)
def list_missing_uacr(db: Session = Depends(get_db)) -> ListOut:
    patients = missing_uacr_patients(db)
    return ListOut(
        count=len(patients),
        message="Patients eligible for GCUA but missing uACR - order uACR to unlock full risk profile",
        patients=patients,
    )


@router.get("/statistics", response_model=StatisticsOut)
def get_statistics(db: Session = Depends(get_db)) -> StatisticsOut:
    stats = population_statistics(db)
    return StatisticsOut(overall=stats["overall"], by_phenotype=stats["by_phenotype"])


@router.post("/bulk-calculate", response_model=BulkOut)
def bulk_calculate(db: Session = Depends(get_db)) -> BulkOut:
    candidates = eligible_patients(db)
    calculated = eligible = ineligible = errors = 0

    for row in candidates:
        pid = row["id"]
        try:
            patient_input = get_patient_gcua_input(db, pid)
            if patient_input is None:
                ineligible += 1
                continue
            assessment = perform_gcua_assessment(patient_input)
            if not assessment.is_eligible:
                ineligible += 1
                continue
            save_gcua_assessment(db, pid, patient_input, assessment, "bulk-calculate")
            calculated += 1
            eligible += 1
        except Exception:
            log.exception("[GCUA] bulk calculation failed pid=%s", pid)
            errors += 1

    log.info("[GCUA] bulk done total=%s calculated=%s errors=%s", len(candidates), calculated, errors)
    return BulkOut(
        message="Bulk GCUA calculation complete",
        results={
            "total": len(candidates),
            "calculated": calculated,
            "eligible": eligible,
            "ineligible": ineligible,
            "errors": errors,
        },
    )


@router.get("/history/{patient_id}", response_model=HistoryOut)
def get_history(patient_id: int, db: Session = Depends(get_db)) -> HistoryOut:
    rows = assessment_history(db, patient_id, limit=10)
    history = [
        {
            "id": r.id,
            "phenotype_type": r.phenotype_type,
            "phenotype_name": r.phenotype_name,
            "phenotype_tag": r.phenotype_tag,
            "renal_risk": r.module1_five_year_risk,
            "cvd_risk": r.module2_ten_year_risk,
            "mortality_risk": r.module3_five_year_mortality,
            "benefit_ratio": r.benefit_ratio,
            "confidence_level": r.confidence_level,
            "assessed_at": r.assessed_at.isoformat() if r.assessed_at else None,
            "assessed_by": r.assessed_by,
        }
        for r in rows
    ]
    return HistoryOut(count=len(history), history=history)
