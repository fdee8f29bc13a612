# ckd_app/gcua_store.py
# Persistence of GCUA assessments: flattened rows + read helpers.
import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from .gcua import Assessment, PatientInput
from .gcua.tables import MIN_AGE, MIN_EGFR_EXCLUSIVE
from .gcua_input import UACR_TYPES, age_on, latest_observation
from .models import Patient, PatientRiskFactors
from .models_gcua import GCUAAssessmentRecord

log = logging.getLogger("uvicorn.error")

HIGH_RISK_PHENOTYPES = ("I", "II")

# "latest" everywhere: newest assessed_at, ties broken by insert order
LATEST_FIRST = (GCUAAssessmentRecord.assessed_at.desc(), GCUAAssessmentRecord.id.desc())


def _dumps(value) -> Optional[str]:
    return json.dumps(list(value)) if value is not None else None


def _loads(text: Optional[str], default):
    if not text:
        return default
    try:
        parsed = json.loads(text)
    except ValueError:
        log.warning("[GCUA] unreadable JSON column: %r", text[:80])
        return default
    return parsed if isinstance(parsed, type(default)) else default


def save_gcua_assessment(
    db: Session,
    patient_id: int,
    patient_input: PatientInput,
    assessment: Assessment,
    assessed_by: str = "system",
) -> GCUAAssessmentRecord:
    rec = GCUAAssessmentRecord(
        patient_id=patient_id,
        is_eligible=assessment.is_eligible,
        eligibility_reason=assessment.eligibility_reason,
        input_age=patient_input.age,
        input_sex=patient_input.sex,
        input_egfr=patient_input.egfr,
        input_uacr=patient_input.uacr,
        input_systolic_bp=patient_input.systolic_bp,
        input_bmi=patient_input.bmi,
        input_has_diabetes=patient_input.has_diabetes,
        input_has_hypertension=patient_input.has_hypertension,
        input_has_cvd=patient_input.has_cvd,
        input_has_heart_failure=patient_input.has_heart_failure,
        input_has_atrial_fibrillation=patient_input.has_atrial_fibrillation,
        input_smoking_status=patient_input.smoking_status,
        input_nt_probnp=patient_input.nt_probnp,
        input_hba1c=patient_input.hba1c,
        assessed_by=assessed_by,
        assessed_at=assessment.assessed_at,
    )

    if assessment.is_eligible:
        m1, m2, m3, ph = assessment.module1, assessment.module2, assessment.module3, assessment.phenotype
        rec.module1_five_year_risk = m1.five_year_risk
        rec.module1_risk_category = m1.risk_category
        rec.module1_components_json = _dumps(m1.components)
        rec.module1_interpretation = m1.interpretation
        rec.module1_c_statistic = m1.c_statistic

        rec.module2_ten_year_risk = m2.ten_year_risk
        rec.module2_risk_category = m2.risk_category
        rec.module2_heart_age = m2.heart_age
        rec.module2_components_json = _dumps(m2.components)
        rec.module2_interpretation = m2.interpretation
        rec.module2_c_statistic = m2.c_statistic

        rec.module3_five_year_mortality = m3.five_year_mortality_risk
        rec.module3_risk_category = m3.risk_category
        rec.module3_points = m3.points
        rec.module3_components_json = _dumps(m3.components)
        rec.module3_interpretation = m3.interpretation
        rec.module3_c_statistic = m3.c_statistic

        rec.phenotype_type = ph.type
        rec.phenotype_name = ph.name
        rec.phenotype_tag = ph.tag
        rec.phenotype_color = ph.color
        rec.phenotype_description = ph.description
        rec.phenotype_clinical_strategy_json = _dumps(ph.clinical_strategy)
        rec.phenotype_treatment_json = json.dumps(assessment.to_dict()["phenotype"]["treatment_recommendations"])

        rec.benefit_ratio = assessment.benefit_ratio
        rec.benefit_ratio_interpretation = assessment.benefit_ratio_interpretation
        rec.data_completeness = assessment.data_completeness
        rec.missing_data_json = _dumps(assessment.missing_data)
        rec.confidence_level = assessment.confidence_level
        rec.kdigo_screening_recommendation = assessment.kdigo_screening_recommendation
        rec.cystatin_c_recommended = assessment.cystatin_c_recommended

    try:
        db.add(rec)
        if assessment.is_eligible:
            rf = db.query(PatientRiskFactors).filter(PatientRiskFactors.patient_id == patient_id).one_or_none()
            if rf is not None:
                rf.gcua_phenotype = assessment.phenotype.type
                rf.gcua_phenotype_name = assessment.phenotype.name
                rf.gcua_last_assessment_date = assessment.assessed_at
        db.commit()
    except Exception:
        db.rollback()
        log.exception("[GCUA] save failed pid=%s", patient_id)
        raise
    db.refresh(rec)
    log.info(
        "[GCUA] saved assessment pid=%s eligible=%s phenotype=%s",
        patient_id, rec.is_eligible, rec.phenotype_type,
    )
    return rec


def record_to_dict(rec: GCUAAssessmentRecord) -> Dict[str, Any]:
    out = {c.name: getattr(rec, c.name) for c in rec.__table__.columns if not c.name.endswith("_json")}
    out["module1_components"] = _loads(rec.module1_components_json, [])
    out["module2_components"] = _loads(rec.module2_components_json, [])
    out["module3_components"] = _loads(rec.module3_components_json, [])
    out["phenotype_clinical_strategy"] = _loads(rec.phenotype_clinical_strategy_json, [])
    out["phenotype_treatment_recommendations"] = _loads(rec.phenotype_treatment_json, {})
    out["missing_data"] = _loads(rec.missing_data_json, [])
    out["assessed_at"] = rec.assessed_at.isoformat() if rec.assessed_at else None
    return out


def latest_assessment(db: Session, patient_id: int) -> Optional[GCUAAssessmentRecord]:
    return (
        db.query(GCUAAssessmentRecord)
        .filter(GCUAAssessmentRecord.patient_id == patient_id)
        .order_by(*LATEST_FIRST)
        .first()
    )


def assessment_history(db: Session, patient_id: int, limit: int = 10) -> List[GCUAAssessmentRecord]:
    return (
        db.query(GCUAAssessmentRecord)
        .filter(GCUAAssessmentRecord.patient_id == patient_id)
        .order_by(*LATEST_FIRST)
        .limit(limit)
        .all()
    )


def _latest_ids_subquery(db: Session):
    # newest row id per patient, same ordering as latest_assessment
    rank = func.row_number().over(
        partition_by=GCUAAssessmentRecord.patient_id,
        order_by=LATEST_FIRST,
    ).label("row_rank")
    ranked = db.query(GCUAAssessmentRecord.id.label("id"), rank).subquery()
    return db.query(ranked.c.id).filter(ranked.c.row_rank == 1).subquery()


def latest_per_patient(db: Session):
    latest = _latest_ids_subquery(db)
    return db.query(GCUAAssessmentRecord).join(latest, GCUAAssessmentRecord.id == latest.c.id)


def high_risk_patients(db: Session) -> List[Dict[str, Any]]:
    latest = _latest_ids_subquery(db)
    rows = (
        db.query(GCUAAssessmentRecord, Patient)
        .join(latest, GCUAAssessmentRecord.id == latest.c.id)
        .join(Patient, Patient.id == GCUAAssessmentRecord.patient_id)
        .filter(GCUAAssessmentRecord.phenotype_type.in_(HIGH_RISK_PHENOTYPES))
        .order_by(GCUAAssessmentRecord.phenotype_type, GCUAAssessmentRecord.module1_five_year_risk.desc())
        .all()
    )
    return [
        {
            "patient_id": p.id,
            "mrn": p.medical_record_number,
            "patient_name": p.full_name,
            "phenotype_type": rec.phenotype_type,
            "phenotype_name": rec.phenotype_name,
            "renal_risk": rec.module1_five_year_risk,
            "cvd_risk": rec.module2_ten_year_risk,
            "mortality_risk": rec.module3_five_year_mortality,
            "cystatin_c_recommended": rec.cystatin_c_recommended,
            "assessed_at": rec.assessed_at.isoformat() if rec.assessed_at else None,
        }
        for rec, p in rows
    ]


def population_statistics(db: Session) -> Dict[str, Any]:
    rows = latest_per_patient(db).all()
    eligible = [r for r in rows if r.is_eligible]

    def avg(values):
        values = [v for v in values if v is not None]
        return round(sum(values) / len(values), 2) if values else None

    by_phenotype = []
    for ptype in ("I", "II", "III", "IV"):
        group = [r for r in eligible if r.phenotype_type == ptype]
        by_phenotype.append({
            "phenotype_type": ptype,
            "phenotype_name": group[0].phenotype_name if group else None,
            "count": len(group),
            "avg_renal_risk": avg(r.module1_five_year_risk for r in group),
            "avg_cvd_risk": avg(r.module2_ten_year_risk for r in group),
            "avg_mortality_risk": avg(r.module3_five_year_mortality for r in group),
        })

    overall = {
        "total_assessed": len(rows),
        "eligible_count": len(eligible),
        "accelerated_ager_count": by_phenotype[0]["count"],
        "silent_renal_count": by_phenotype[1]["count"],
        "vascular_dominant_count": by_phenotype[2]["count"],
        "senescent_count": by_phenotype[3]["count"],
        "avg_renal_risk": avg(r.module1_five_year_risk for r in eligible),
        "avg_cvd_risk": avg(r.module2_ten_year_risk for r in eligible),
        "avg_mortality_risk": avg(r.module3_five_year_mortality for r in eligible),
    }
    return {"overall": overall, "by_phenotype": by_phenotype}


def eligible_patients(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """
    Patients 60+ whose cached eGFR is above 60 or still unknown; pending
    (never assessed) patients first, then oldest first.
    """
    rows = (
        db.query(Patient, PatientRiskFactors)
        .outerjoin(PatientRiskFactors, PatientRiskFactors.patient_id == Patient.id)
        .all()
    )
    out = []
    for p, rf in rows:
        age = age_on(p.date_of_birth, today)
        if age is None or age < MIN_AGE:
            continue
        egfr = rf.current_egfr if rf else None
        if egfr is not None and egfr <= MIN_EGFR_EXCLUSIVE:
            continue
        phenotype = rf.gcua_phenotype if rf else None
        out.append({
            "id": p.id,
            "mrn": p.medical_record_number,
            "patient_name": p.full_name,
            "age": age,
            "gender": p.gender,
            "current_egfr": egfr,
            "current_uacr": rf.current_uacr if rf else None,
            "has_diabetes": bool(rf and rf.has_diabetes),
            "has_hypertension": bool(rf and rf.has_hypertension),
            "has_cvd": bool(rf and rf.has_cvd),
            "gcua_phenotype": phenotype,
            "gcua_phenotype_name": rf.gcua_phenotype_name if rf else None,
            "gcua_last_assessment_date": (
                rf.gcua_last_assessment_date.isoformat() if rf and rf.gcua_last_assessment_date else None
            ),
            "gcua_status": "assessed" if phenotype else "pending",
        })
    out.sort(key=lambda r: (r["gcua_status"] == "assessed", -r["age"]))
    return out


def missing_uacr_patients(db: Session, today: Optional[date] = None) -> List[Dict[str, Any]]:
    out = []
    for row in eligible_patients(db, today):
        if row["current_uacr"]:
            continue
        if latest_observation(db, row["id"], UACR_TYPES) is not None:
            continue
        out.append(row)
    return out
