# ckd_app/gcua_input.py
# Gathers GCUA engine input from storage.
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from .gcua import PatientInput
from .models import Patient, PatientRiskFactors, Observation, Condition

EGFR_TYPES = ("eGFR",)
UACR_TYPES = ("uACR",)
SBP_TYPES = ("Systolic BP", "Blood Pressure Systolic")
HBA1C_TYPES = ("HbA1c", "Hemoglobin A1c")
BNP_TYPES = ("NT-proBNP", "BNP", "NT-ProBNP")

SMOKING_MAP = {
    "current": "current",
    "smoker": "current",
    "former": "former",
    "ex-smoker": "former",
    "never": "never",
    "non-smoker": "never",
}


def age_on(dob: Optional[date], today: Optional[date] = None) -> Optional[int]:
    if dob is None:
        return None
    today = today or date.today()
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def latest_observation(db: Session, patient_id: int, types: Sequence[str]) -> Optional[float]:
    row = (
        db.query(Observation.value_numeric)
        .filter(Observation.patient_id == patient_id)
        .filter(Observation.observation_type.in_(types))
        .filter(Observation.value_numeric > 0)
        .order_by(Observation.observation_date.desc(), Observation.id.desc())
        .first()
    )
    return float(row[0]) if row else None


def normalize_smoking(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    return SMOKING_MAP.get(raw.strip().lower())


def _positive(v) -> Optional[float]:
    # zero, negative or empty lab values are treated as not measured
    return float(v) if v is not None and v > 0 else None


def _condition_flags(conditions):
    def code(c):
        return c.condition_code or ""

    def name(c):
        return (c.condition_name or "").lower()

    afib = any(
        "I48" in code(c) or "atrial fibrillation" in name(c) or "afib" in name(c)
        for c in conditions
    )
    hf = any("I50" in code(c) or "heart failure" in name(c) for c in conditions)
    cvd = any(
        code(c).startswith("I2") or code(c).startswith("I63")
        or "myocardial infarction" in name(c) or "stroke" in name(c)
        for c in conditions
    )
    return afib, hf, cvd


def get_patient_gcua_input(db: Session, patient_id: int, today: Optional[date] = None) -> Optional[PatientInput]:
    """
    Build a PatientInput for one patient.

    Returns None when the patient does not exist or age / eGFR cannot be
    established (unscoreable). The latest discrete observation wins over the
    cached risk-factor value for every lab (eGFR, uACR, systolic BP, HbA1c);
    cached values are the fallback. Non-positive readings count as unmeasured.
    """
    patient = db.query(Patient).filter(Patient.id == patient_id).one_or_none()
    if patient is None:
        return None

    rf = db.query(PatientRiskFactors).filter(PatientRiskFactors.patient_id == patient_id).one_or_none()

    age = age_on(patient.date_of_birth, today)

    egfr = _positive(latest_observation(db, patient_id, EGFR_TYPES))
    if egfr is None and rf is not None:
        egfr = _positive(rf.current_egfr)

    if not egfr or age is None:
        return None

    uacr = _positive(latest_observation(db, patient_id, UACR_TYPES))
    if uacr is None and rf is not None:
        uacr = _positive(rf.current_uacr)

    conditions = (
        db.query(Condition)
        .filter(Condition.patient_id == patient_id, Condition.clinical_status == "active")
        .all()
    )
    has_afib, hf_from_conditions, cvd_from_conditions = _condition_flags(conditions)

    has_diabetes = bool(rf and rf.has_diabetes)
    has_heart_failure = bool(rf and rf.has_heart_failure) or hf_from_conditions
    has_cvd = bool(rf and (rf.has_cvd or rf.has_coronary_artery_disease or rf.has_stroke_history)) or cvd_from_conditions

    systolic_bp = _positive(latest_observation(db, patient_id, SBP_TYPES))
    if systolic_bp is None and rf is not None:
        systolic_bp = _positive(rf.average_bp_systolic)

    hba1c = _positive(latest_observation(db, patient_id, HBA1C_TYPES)) if has_diabetes else None
    if hba1c is None and rf is not None:
        hba1c = _positive(rf.hba1c)

    return PatientInput(
        age=age,
        sex="female" if (patient.gender or "").lower() == "female" else "male",
        egfr=egfr,
        uacr=uacr,
        bmi=_positive(rf.current_bmi) if rf else None,
        systolic_bp=systolic_bp,
        has_diabetes=has_diabetes,
        has_hypertension=bool(rf and rf.has_hypertension),
        has_cvd=has_cvd,
        has_heart_failure=has_heart_failure,
        has_atrial_fibrillation=has_afib,
        smoking_status=normalize_smoking(rf.smoking_status) if rf else None,
        hba1c=hba1c,
        nt_probnp=_positive(latest_observation(db, patient_id, BNP_TYPES)),
    )
