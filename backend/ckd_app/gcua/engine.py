# ckd_app/gcua/engine.py
from .cardiovascular import calculate_cardiovascular_risk
from .completeness import completeness, cystatin_c_recommended, kdigo_screening_recommendation
from .eligibility import ineligibility_reason
from .mortality import calculate_mortality_risk
from .phenotype import benefit_ratio, classify_phenotype
from .renal import calculate_renal_risk
from .types import Assessment, PatientInput


def perform_gcua_assessment(patient_input: PatientInput) -> Assessment:
    """
    Full GCUA run for one patient. Ineligible patients short-circuit with only
    the eligibility fields set; no module is computed for them.
    """
    reason = ineligibility_reason(patient_input.age, patient_input.egfr)
    if reason is not None:
        return Assessment(is_eligible=False, eligibility_reason=reason)

    renal = calculate_renal_risk(patient_input)
    cvd = calculate_cardiovascular_risk(patient_input)
    mortality = calculate_mortality_risk(patient_input)

    phenotype = classify_phenotype(renal.risk_category, cvd.risk_category, mortality.risk_category)
    ratio, ratio_text = benefit_ratio(renal.five_year_risk, mortality.five_year_mortality_risk)
    data = completeness(patient_input)

    return Assessment(
        is_eligible=True,
        module1=renal,
        module2=cvd,
        module3=mortality,
        phenotype=phenotype,
        benefit_ratio=ratio,
        benefit_ratio_interpretation=ratio_text,
        data_completeness=data["pct"],
        missing_data=tuple(data["missing"]),
        confidence_level=data["confidence"],
        kdigo_screening_recommendation=kdigo_screening_recommendation(renal.risk_category),
        cystatin_c_recommended=cystatin_c_recommended(patient_input, renal.risk_category),
    )


def format_summary(phenotype_type: str, phenotype_name: str, renal: float, cvd: float, mortality: float) -> str:
    return (
        f"Phenotype {phenotype_type} ({phenotype_name}): "
        f"renal 5y {renal}%, CVD 10y {cvd}%, mortality 5y {mortality}%"
    )


def get_gcua_summary(assessment: Assessment) -> str:
    if not assessment.is_eligible:
        return assessment.eligibility_reason or "Not eligible for GCUA"
    return format_summary(
        assessment.phenotype.type,
        assessment.phenotype.name,
        assessment.module1.five_year_risk,
        assessment.module2.ten_year_risk,
        assessment.module3.five_year_mortality_risk,
    )
