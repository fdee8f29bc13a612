from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Boolean,
    DateTime,
    ForeignKey,
    Date,
    UniqueConstraint,
    Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from .db import Base


# -------------------------
# Patients
# -------------------------
class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)

    medical_record_number = Column(String(64), unique=True, index=True, nullable=True)
    first_name = Column(String(128), nullable=True)
    last_name = Column(String(128), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(16), nullable=True)          # "male" / "female"

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    risk_factors = relationship("PatientRiskFactors", back_populates="patient", uselist=False)

    @property
    def full_name(self):
        return " ".join(x for x in (self.first_name, self.last_name) if x) or None


# -------------------------
# Risk factors (cached, rolled-up values)
# -------------------------
class PatientRiskFactors(Base):
    __tablename__ = "patient_risk_factors"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False)

    has_diabetes = Column(Boolean, default=False)
    has_hypertension = Column(Boolean, default=False)
    has_cvd = Column(Boolean, default=False)
    has_heart_failure = Column(Boolean, default=False)
    has_coronary_artery_disease = Column(Boolean, default=False)
    has_stroke_history = Column(Boolean, default=False)

    current_bmi = Column(Float, nullable=True)
    average_bp_systolic = Column(Float, nullable=True)
    smoking_status = Column(String(32), nullable=True)  # free text from intake
    hba1c = Column(Float, nullable=True)
    current_egfr = Column(Float, nullable=True)
    current_uacr = Column(Float, nullable=True)

    # Stamped by the latest GCUA assessment
    gcua_phenotype = Column(String(4), nullable=True)
    gcua_phenotype_name = Column(String(64), nullable=True)
    gcua_last_assessment_date = Column(DateTime(timezone=True), nullable=True)

    patient = relationship("Patient", back_populates="risk_factors")

    __table_args__ = (
        UniqueConstraint("patient_id", name="uq_risk_factors_patient_id"),
    )


# -------------------------
# Lab / vital observations
# -------------------------
class Observation(Base):
    __tablename__ = "observations"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    observation_type = Column(String(64), nullable=False)   # "eGFR", "uACR", "HbA1c", ...
    value_numeric = Column(Float, nullable=True)
    unit = Column(String(32), nullable=True)
    observation_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_observations_patient_type_date", "patient_id", "observation_type", "observation_date"),
    )


# -------------------------
# Conditions (problem list)
# -------------------------
class Condition(Base):
    __tablename__ = "conditions"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    condition_code = Column(String(16), nullable=True)      # ICD-10
    condition_name = Column(String(255), nullable=True)
    clinical_status = Column(String(16), default="active", nullable=False)
