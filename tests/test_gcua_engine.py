import random
from dataclasses import replace

import pytest

from ckd_app.gcua import PatientInput, get_gcua_summary, is_gcua_eligible, perform_gcua_assessment
from ckd_app.gcua.tables import CVD_CATEGORIES, RENAL_CATEGORIES


# 70-year-old male smoker with diabetes and hypertension
HIGH_RISK = PatientInput(
    age=70,
    sex="male",
    egfr=75,
    has_diabetes=True,
    has_hypertension=True,
    systolic_bp=150,
    bmi=32,
    smoking_status="current",
)

LOW_RISK = PatientInput(
    age=61,
    sex="female",
    egfr=95,
    uacr=10,
    bmi=23,
    systolic_bp=118,
    smoking_status="never",
    hba1c=5.4,
    nt_probnp=80,
    has_heart_failure=False,
    has_atrial_fibrillation=False,
)


def _without_timestamp(assessment):
    d = assessment.to_dict()
    d.pop("assessed_at")
    return d


# -------------------------
# Eligibility
# -------------------------
def test_eligibility_boundaries():
    assert is_gcua_eligible(60, 60.1)
    assert is_gcua_eligible(95, 120)
    assert not is_gcua_eligible(59, 90)
    assert not is_gcua_eligible(70, 60)


def test_under_60_short_circuits_with_age_reason():
    out = perform_gcua_assessment(replace(HIGH_RISK, age=45))
    assert out.is_eligible is False
    assert "under 60" in out.eligibility_reason
    assert out.module1 is None and out.module2 is None and out.module3 is None
    assert out.phenotype is None
    assert out.data_completeness is None


def test_low_egfr_routes_to_kdigo_staging():
    out = perform_gcua_assessment(replace(HIGH_RISK, age=65, egfr=45))
    assert out.is_eligible is False
    assert "eGFR" in out.eligibility_reason
    assert "KDIGO" in out.eligibility_reason
    assert out.module1 is None and out.phenotype is None


def test_age_reason_wins_when_both_fail():
    out = perform_gcua_assessment(replace(HIGH_RISK, age=59, egfr=60))
    assert "under 60" in out.eligibility_reason


def test_eligible_result_has_no_reason():
    out = perform_gcua_assessment(HIGH_RISK)
    assert out.is_eligible is True
    assert out.eligibility_reason is None


# -------------------------
# Scenarios
# -------------------------
def test_high_risk_scenario():
    out = perform_gcua_assessment(HIGH_RISK)

    assert RENAL_CATEGORIES.index(out.module1.risk_category) >= RENAL_CATEGORIES.index("moderate")
    assert CVD_CATEGORIES.index(out.module2.risk_category) >= CVD_CATEGORIES.index("intermediate")
    assert out.phenotype.type in ("I", "III")
    if out.module1.risk_category in ("high", "very_high"):
        assert out.cystatin_c_recommended is True

    # concrete values for this profile
    assert out.module1.risk_category == "high"
    assert out.module2.risk_category == "high"
    assert out.phenotype.type == "I"
    assert out.phenotype.treatment_recommendations.sglt2i is True
    assert out.phenotype.treatment_recommendations.monitoring_frequency == "Every 3 months"
    assert out.missing_data == ("uACR", "HbA1c", "NT-proBNP")
    assert out.data_completeness == 40
    assert out.confidence_level == "low"
    assert out.kdigo_screening_recommendation.endswith("12 months.")


def test_low_risk_scenario_is_phenotype_iv_with_full_data():
    out = perform_gcua_assessment(LOW_RISK)
    assert out.phenotype.type == "IV"
    assert out.data_completeness == 100
    assert out.confidence_level == "high"
    assert out.missing_data == ()
    assert out.cystatin_c_recommended is False
    assert out.kdigo_screening_recommendation.endswith("3 years.")


@pytest.mark.parametrize("sex", ["male", "female"])
def test_low_risk_profile_is_phenotype_iv_for_both_sexes(sex):
    out = perform_gcua_assessment(replace(LOW_RISK, sex=sex))
    assert out.phenotype.type == "IV"


def test_silent_renal_decline_profile():
    p = PatientInput(
        age=62, sex="female", egfr=62, uacr=400, bmi=24, systolic_bp=125,
        has_diabetes=True, hba1c=9.0, smoking_status="never",
    )
    out = perform_gcua_assessment(p)
    assert out.module1.risk_category == "very_high"
    assert out.module2.risk_category in ("low", "borderline")
    assert out.phenotype.type == "II"
    assert out.phenotype.treatment_recommendations.statin is False
    assert out.cystatin_c_recommended is False   # uACR measured


def test_vascular_dominant_profile():
    p = PatientInput(
        age=72, sex="male", egfr=92, uacr=12, bmi=27, systolic_bp=135,
        smoking_status="current", nt_probnp=120,
    )
    out = perform_gcua_assessment(p)
    assert out.module1.risk_category == "low"
    assert out.module2.risk_category == "high"
    assert out.phenotype.type == "III"


def test_benefit_ratio_uses_renal_over_mortality():
    out = perform_gcua_assessment(HIGH_RISK)
    expected = round(out.module1.five_year_risk / out.module3.five_year_mortality_risk, 2)
    assert out.benefit_ratio == expected
    assert out.benefit_ratio_interpretation.startswith("High benefit")


# -------------------------
# Properties
# -------------------------
def test_idempotent_apart_from_timestamp():
    a = perform_gcua_assessment(HIGH_RISK)
    b = perform_gcua_assessment(HIGH_RISK)
    assert _without_timestamp(a) == _without_timestamp(b)


def test_assessment_is_immutable():
    out = perform_gcua_assessment(HIGH_RISK)
    with pytest.raises(Exception):
        out.benefit_ratio = 99.0


def test_extreme_inputs_stay_clamped():
    worst = PatientInput(
        age=120, sex="male", egfr=61, uacr=5000, bmi=60, systolic_bp=250,
        has_diabetes=True, has_hypertension=True, has_cvd=True,
        has_heart_failure=True, has_atrial_fibrillation=True,
        smoking_status="current", hba1c=14, nt_probnp=10000,
    )
    out = perform_gcua_assessment(worst)
    for value in (
        out.module1.five_year_risk,
        out.module2.ten_year_risk,
        out.module3.five_year_mortality_risk,
    ):
        assert 0.0 <= value <= 100.0
    assert out.module2.heart_age <= 110


@pytest.mark.parametrize("patch", [
    {"bmi": 0.0},
    {"bmi": -3.0},
    {"systolic_bp": 0.0},
    {"systolic_bp": -5.0},
])
def test_non_positive_vitals_do_not_raise(patch):
    out = perform_gcua_assessment(replace(HIGH_RISK, **patch))
    assert out.is_eligible
    assert out.module2.heart_age is None
    assert 0 <= out.module2.ten_year_risk <= 100
    missing = "BMI" if "bmi" in patch else "Systolic BP"
    assert missing in out.missing_data


def test_randomized_profiles_keep_invariants():
    rng = random.Random(20261018)
    for _ in range(200):
        p = PatientInput(
            age=rng.randint(60, 105),
            sex=rng.choice(["male", "female"]),
            egfr=round(rng.uniform(60.5, 130), 1),
            uacr=rng.choice([None, rng.uniform(1, 1200)]),
            bmi=rng.choice([None, rng.uniform(16, 50)]),
            systolic_bp=rng.choice([None, rng.uniform(95, 210)]),
            has_diabetes=rng.random() < 0.3,
            has_hypertension=rng.random() < 0.5,
            has_cvd=rng.random() < 0.2,
            has_heart_failure=rng.choice([None, False, True]),
            has_atrial_fibrillation=rng.choice([None, False, True]),
            smoking_status=rng.choice([None, "never", "former", "current"]),
            hba1c=rng.choice([None, rng.uniform(4.8, 12)]),
            nt_probnp=rng.choice([None, rng.uniform(20, 3000)]),
        )
        out = perform_gcua_assessment(p)
        assert out.is_eligible
        assert 0 <= out.module1.five_year_risk <= 100
        assert 0 <= out.module2.ten_year_risk <= 100
        assert 0 <= out.module3.five_year_mortality_risk <= 100
        assert out.phenotype.type in ("I", "II", "III", "IV")
        assert 0 <= out.data_completeness <= 100
        if p.has_cvd or p.has_heart_failure:
            assert out.module2.risk_category == "high"


# -------------------------
# Summary
# -------------------------
def test_summary_names_phenotype_and_three_risks():
    out = perform_gcua_assessment(HIGH_RISK)
    text = get_gcua_summary(out)
    assert text.startswith("Phenotype I (Accelerated Ager)")
    assert f"{out.module1.five_year_risk}%" in text
    assert f"{out.module2.ten_year_risk}%" in text
    assert f"{out.module3.five_year_mortality_risk}%" in text


def test_summary_for_ineligible_is_the_reason():
    out = perform_gcua_assessment(replace(HIGH_RISK, age=45))
    assert get_gcua_summary(out) == out.eligibility_reason


def test_to_dict_is_json_ready():
    d = perform_gcua_assessment(HIGH_RISK).to_dict()
    assert isinstance(d["module1"]["components"], list)
    assert isinstance(d["phenotype"]["clinical_strategy"], list)
    assert isinstance(d["assessed_at"], str)
    assert d["module3"]["competing_risk_adjustment"] is True
