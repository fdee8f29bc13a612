import itertools

import pytest

from ckd_app.gcua.phenotype import benefit_ratio, classify_phenotype, phenotype_type
from ckd_app.gcua.tables import CVD_CATEGORIES, MORTALITY_CATEGORIES, PHENOTYPES, RENAL_CATEGORIES

# renal category -> CVD category -> expected phenotype
TRUTH_TABLE = {
    "low":       {"low": "IV", "borderline": "IV", "intermediate": "III", "high": "III"},
    "moderate":  {"low": "IV", "borderline": "IV", "intermediate": "III", "high": "III"},
    "high":      {"low": "II", "borderline": "II", "intermediate": "I",   "high": "I"},
    "very_high": {"low": "II", "borderline": "II", "intermediate": "I",   "high": "I"},
}


@pytest.mark.parametrize("renal,cvd", list(itertools.product(RENAL_CATEGORIES, CVD_CATEGORIES)))
def test_decision_table(renal, cvd):
    assert phenotype_type(renal, cvd) == TRUTH_TABLE[renal][cvd]


def test_classification_depends_only_on_categories():
    for renal, cvd, mortality in itertools.product(RENAL_CATEGORIES, CVD_CATEGORIES, MORTALITY_CATEGORIES):
        a = classify_phenotype(renal, cvd, mortality)
        b = classify_phenotype(renal, cvd, mortality)
        assert a is b
        assert a == PHENOTYPES[TRUTH_TABLE[renal][cvd]]


def test_treatment_bundles():
    i = PHENOTYPES["I"].treatment_recommendations
    assert (i.sglt2i, i.ras_inhibitor, i.statin) == (True, True, True)
    assert i.monitoring_frequency == "Every 3 months"

    ii = PHENOTYPES["II"].treatment_recommendations
    assert (ii.sglt2i, ii.ras_inhibitor, ii.statin) == (True, True, False)

    iii = PHENOTYPES["III"].treatment_recommendations
    assert (iii.sglt2i, iii.ras_inhibitor, iii.statin) == (False, False, True)

    iv = PHENOTYPES["IV"].treatment_recommendations
    assert (iv.sglt2i, iv.ras_inhibitor, iv.statin) == (False, False, False)
    assert iv.monitoring_frequency == "Annually"


def test_phenotype_colors_and_names():
    assert [PHENOTYPES[t].color for t in ("I", "II", "III", "IV")] == ["red", "orange", "yellow", "gray"]
    assert PHENOTYPES["I"].name == "Accelerated Ager"
    assert PHENOTYPES["II"].name == "Silent Renal Decline"
    assert PHENOTYPES["III"].name == "Vascular-Dominant"


def test_policy_tables_are_read_only():
    with pytest.raises(TypeError):
        PHENOTYPES["V"] = PHENOTYPES["IV"]


def test_benefit_ratio_bands():
    ratio, text = benefit_ratio(20.0, 10.0)
    assert ratio == 2.0 and text.startswith("High benefit")

    ratio, text = benefit_ratio(6.0, 10.0)
    assert ratio == 0.6 and text.startswith("Moderate benefit")

    ratio, text = benefit_ratio(2.0, 40.0)
    assert ratio == 0.05 and text.startswith("Limited benefit")


def test_benefit_ratio_mortality_floor():
    ratio, _ = benefit_ratio(3.0, 0.0)
    assert ratio == 3.0
