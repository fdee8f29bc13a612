# ckd_app/models_gcua.py
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Float, String, Boolean, Text, DateTime, ForeignKey
from .db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class GCUAAssessmentRecord(Base):
    """One row per calculation; history is kept, latest wins on read."""
    __tablename__ = "patient_gcua_assessments"
    id = Column(Integer, primary_key=True, index=True)

    # Who
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), index=True, nullable=False)

    is_eligible = Column(Boolean, nullable=False)
    eligibility_reason = Column(Text, nullable=True)

    # Module 1 (renal)
    module1_five_year_risk = Column(Float, nullable=True)
    module1_risk_category = Column(String(16), nullable=True)
    module1_components_json = Column(Text, nullable=True)     # JSON list
    module1_interpretation = Column(Text, nullable=True)
    module1_c_statistic = Column(Float, nullable=True)

    # Module 2 (CVD)
    module2_ten_year_risk = Column(Float, nullable=True)
    module2_risk_category = Column(String(16), nullable=True)
    module2_heart_age = Column(Integer, nullable=True)
    module2_components_json = Column(Text, nullable=True)
    module2_interpretation = Column(Text, nullable=True)
    module2_c_statistic = Column(Float, nullable=True)

    # Module 3 (mortality)
    module3_five_year_mortality = Column(Float, nullable=True)
    module3_risk_category = Column(String(16), nullable=True)
    module3_points = Column(Integer, nullable=True)
    module3_components_json = Column(Text, nullable=True)
    module3_interpretation = Column(Text, nullable=True)
    module3_c_statistic = Column(Float, nullable=True)

    # Phenotype
    phenotype_type = Column(String(4), nullable=True, index=True)
    phenotype_name = Column(String(64), nullable=True)
    phenotype_tag = Column(String(64), nullable=True)
    phenotype_color = Column(String(16), nullable=True)
    phenotype_description = Column(Text, nullable=True)
    phenotype_clinical_strategy_json = Column(Text, nullable=True)
    phenotype_treatment_json = Column(Text, nullable=True)    # JSON object

    benefit_ratio = Column(Float, nullable=True)
    benefit_ratio_interpretation = Column(Text, nullable=True)

    # Data quality
    data_completeness = Column(Integer, nullable=True)
    missing_data_json = Column(Text, nullable=True)
    confidence_level = Column(String(16), nullable=True)
    kdigo_screening_recommendation = Column(Text, nullable=True)
    cystatin_c_recommended = Column(Boolean, nullable=True)

    # Snapshot of inputs used (audit)
    input_age = Column(Integer, nullable=True)
    input_sex = Column(String(8), nullable=True)
    input_egfr = Column(Float, nullable=True)
    input_uacr = Column(Float, nullable=True)
    input_systolic_bp = Column(Float, nullable=True)
    input_bmi = Column(Float, nullable=True)
    input_has_diabetes = Column(Boolean, nullable=True)
    input_has_hypertension = Column(Boolean, nullable=True)
    input_has_cvd = Column(Boolean, nullable=True)
    input_has_heart_failure = Column(Boolean, nullable=True)
    input_has_atrial_fibrillation = Column(Boolean, nullable=True)
    input_smoking_status = Column(String(16), nullable=True)
    input_nt_probnp = Column(Float, nullable=True)
    input_hba1c = Column(Float, nullable=True)

    assessed_by = Column(String(64), default="system")   # e.g. "system", "bulk-calculate", clinician id
    assessed_at = Column(DateTime(timezone=True), default=_utcnow, index=True)
