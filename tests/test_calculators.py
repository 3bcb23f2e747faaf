import math

import pytest

from clinicalc.calculators import FAMILIES
from clinicalc.calculators._base import steps, upto
from clinicalc.models import InputType


def _run(registry, calc_id, **inputs):
    return registry.lookup(calc_id).run(inputs)


# ── Every calculator ─────────────────────────────────────────────────────────

def test_every_calculator_computes_from_sample_inputs(registry, sample_inputs):
    for definition in registry:
        result = definition.run(sample_inputs(definition))
        assert result is not None, definition.id
        assert math.isfinite(result.value), definition.id
        assert result.id == definition.id


def test_every_calculator_is_deterministic(registry, sample_inputs):
    for definition in registry:
        bag = sample_inputs(definition)
        first = definition.run(bag)
        second = definition.run(dict(bag))
        assert first == second, definition.id


def test_removing_any_required_field_yields_none(registry, sample_inputs):
    for definition in registry:
        bag = sample_inputs(definition)
        for key in definition.required_keys:
            partial = {k: v for k, v in bag.items() if k != key}
            assert definition.run(partial) is None, f"{definition.id} without {key}"


def test_non_finite_required_value_yields_none(registry, sample_inputs):
    for definition in registry:
        numeric = [i.key for i in definition.inputs if i.required and i.type is InputType.NUMBER]
        if not numeric:
            continue
        bag = sample_inputs(definition)
        bag[numeric[0]] = float("nan")
        assert definition.run(bag) is None, definition.id


def test_every_calculator_tagged_with_its_family(registry):
    families = {module.CALCS.family for module in FAMILIES}
    for definition in registry:
        assert len(definition.tags) == 1
        assert definition.tags[0] in families


# ── Worked examples ──────────────────────────────────────────────────────────

def test_aa_gradient_worked_example(registry):
    result = _run(registry, "aa_gradient", age_years=40, fio2_percent=21, pao2_mm_hg=95, paco2_mm_hg=40)
    assert result.extra["alveolar_po2"] == pytest.approx(99.73)
    assert result.extra["aagrad"] == pytest.approx(4.73)
    assert result.value == pytest.approx(4.73)
    assert result.extra["expected_normal"] == pytest.approx(12.5)


def test_aa_gradient_without_age_has_no_expected_normal(registry):
    result = _run(registry, "aa_gradient", fio2_percent=21, pao2_mm_hg=95, paco2_mm_hg=40)
    assert result.value == pytest.approx(4.73)
    assert result.extra["expected_normal"] is None


def test_revised_geneva_all_factors_is_high(registry):
    result = _run(registry, "geneva_revised", age_years=72, previous_dvt_pe=True, active_malignancy=True,
                  unilateral_leg_pain=True, hemoptysis=True, pain_on_palpation_edema=True, heart_rate_bpm=110)
    assert result.value == 1 + 3 + 2 + 3 + 2 + 4 + 5
    assert result.extra["band"] == "high"


def test_ranson_48h_all_criteria(registry):
    result = _run(registry, "ranson_48h", hct_fall_percent=12, bun_rise_mg_dl=6, calcium_mg_dl=7.5,
                  pao2_mm_hg=55, base_deficit_mEq_l=5, fluid_sequestration_l=7)
    assert result.value == 6


def test_bishop_score_favorable(registry):
    result = _run(registry, "bishop_score", dilation_cm=4, effacement_percent=80, station=0,
                  consistency="soft", position="anterior")
    assert result.value == 11
    assert result.extra["favorable"] is True


def test_qpitt_four_criteria_is_high(registry):
    result = _run(registry, "qpitt", temperature_abnormal=True, hypotension=True, respiratory_failure=True,
                  cardiac_arrest=True, altered_mental_status=False)
    assert result.value == 4
    assert result.extra["risk_band"] == "high"


def test_qpitt_from_numeric_vitals(registry):
    result = _run(registry, "qpitt", temp_c=35.5, sbp_mm_hg=85)
    assert result.value == 2


def test_spesi_zero_is_low_risk(registry):
    result = _run(registry, "spesi", age_years=50, cancer=False, chronic_cardiopulm=False, heart_rate_bpm=80,
                  sbp_mm_hg=120, sao2_percent=98)
    assert result.value == 0
    assert result.extra["risk"] == "low"


def test_anion_gap(registry):
    assert _run(registry, "anion_gap", sodium_mmol_l=140, chloride_mmol_l=104, bicarbonate_mmol_l=24).value == 12


def test_corrected_calcium_uses_default_normal_albumin(registry):
    result = _run(registry, "corrected_calcium", calcium_mg_dl=8.0, albumin_g_dl=2.0)
    assert result.value == pytest.approx(9.6)


def test_cockcroft_gault_sex_factor(registry):
    male = _run(registry, "cockcroft_gault", age_years=60, weight_kg=72, sex="male", creatinine_mg_dl=1.0)
    female = _run(registry, "cockcroft_gault", age_years=60, weight_kg=72, sex="female", creatinine_mg_dl=1.0)
    assert male.value == pytest.approx(80.0)
    assert female.value == pytest.approx(68.0)


def test_ckd_epi_2021_at_kappa(registry):
    result = _run(registry, "egfr_ckd_epi_2021", age_years=60, sex="male", creatinine_mg_dl=0.9)
    assert result.value == pytest.approx(97.8, abs=0.2)
    assert result.extra["stage"] == "G1"


def test_meld_na_sodium_adjustment(registry):
    result = _run(registry, "meld_na", bilirubin_mg_dl=3, inr=2, creatinine_mg_dl=2, sodium_mmol_l=130)
    assert result.extra["meld_i"] == pytest.approx(24.979, abs=0.01)
    assert result.value == pytest.approx(28.449, abs=0.01)


def test_meld_floors_at_six(registry):
    result = _run(registry, "meld_classic", bilirubin_mg_dl=0.5, inr=0.9, creatinine_mg_dl=0.5)
    assert result.value == pytest.approx(6.43)


def test_zero_denominator_returns_none(registry):
    assert _run(registry, "delta_ratio", sodium_mmol_l=140, chloride_mmol_l=104, bicarbonate_mmol_l=24) is None
    assert _run(registry, "shock_index", heart_rate_bpm=90, sbp_mm_hg=0) is None


def test_gcs_out_of_range_component_returns_none(registry):
    assert _run(registry, "gcs", eye_response=5, verbal_response=5, motor_response=6) is None
    assert _run(registry, "gcs", eye_response=4, verbal_response=5, motor_response=6).value == 15


def test_nee_needs_at_least_one_agent(registry):
    assert _run(registry, "nee") is None
    result = _run(registry, "nee", norepinephrine_mcg_kg_min=0.1, vasopressin_u_min=0.04)
    assert result.value == pytest.approx(0.2)


def test_holliday_segar(registry):
    assert _run(registry, "holliday_segar", weight_kg=25).value == 1000 + 500 + 100


def test_ldl_friedewald_invalid_with_high_triglycerides(registry):
    assert _run(registry, "ldl_friedewald", total_cholesterol_mg_dl=200, hdl_mg_dl=50,
                triglycerides_mg_dl=450) is None
    assert _run(registry, "ldl_friedewald", total_cholesterol_mg_dl=200, hdl_mg_dl=50,
                triglycerides_mg_dl=150).value == 120


def test_apap_nomogram_outside_window(registry):
    assert _run(registry, "apap_nomogram_ratio", apap_level_mcg_ml=100, hours_since_ingestion=2) is None
    result = _run(registry, "apap_nomogram_ratio", apap_level_mcg_ml=150, hours_since_ingestion=4)
    assert result.value == pytest.approx(1.0)


def test_dka_severity_grades(registry):
    assert _run(registry, "dka_severity", glucose_mg_dl=400, ph=6.9, bicarbonate_mmol_l=12).value == 3
    assert _run(registry, "dka_severity", glucose_mg_dl=400, ph=7.2, bicarbonate_mmol_l=14).value == 2
    assert _run(registry, "dka_severity", glucose_mg_dl=400, ph=7.28, bicarbonate_mmol_l=17).value == 1
    assert _run(registry, "dka_severity", glucose_mg_dl=180, ph=7.1, bicarbonate_mmol_l=8).value == 0


# ── Boundaries ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("hr, points", [(74, 0), (75, 3), (94, 3), (95, 5)])
def test_geneva_heart_rate_boundaries(registry, hr, points):
    result = _run(registry, "geneva_revised", age_years=40, heart_rate_bpm=hr)
    assert result.extra["components"]["heart_rate"] == points
    assert result.value == points


def test_geneva_age_threshold_is_strictly_over_65(registry):
    assert _run(registry, "geneva_revised", age_years=65, heart_rate_bpm=60).value == 0
    assert _run(registry, "geneva_revised", age_years=66, heart_rate_bpm=60).value == 1


@pytest.mark.parametrize("pf, severity", [(300, "mild"), (301, "none"), (200, "moderate"), (100, "severe")])
def test_pf_ratio_berlin_cutoffs(registry, pf, severity):
    result = _run(registry, "pf_ratio", pao2_mm_hg=pf, fio2_percent=100)
    assert result.extra["severity"] == severity


def test_news2_single_red_score_is_low_medium(registry):
    result = _run(registry, "news2", respiratory_rate=16, spo2_percent=97, temp_c=37, sbp_mm_hg=120,
                  heart_rate_bpm=70, new_confusion_or_not_alert=True)
    assert result.value == 3
    assert result.extra["risk"] == "low-medium"


# ── Monotonicity ─────────────────────────────────────────────────────────────

_GENEVA_FLAGS = ["previous_dvt_pe", "surgery_fracture_recent", "active_malignancy", "unilateral_leg_pain",
                 "hemoptysis", "pain_on_palpation_edema"]
_BAND_ORDER = {"low": 0, "intermediate": 1, "high": 2}


def test_geneva_adding_a_factor_never_lowers_score_or_band(registry):
    base = {"age_years": 50, "heart_rate_bpm": 70}
    prev = _run(registry, "geneva_revised", **base)
    for flag in _GENEVA_FLAGS:
        base[flag] = True
        cur = _run(registry, "geneva_revised", **base)
        assert cur.value >= prev.value
        assert _BAND_ORDER[cur.extra["band"]] >= _BAND_ORDER[prev.extra["band"]]
        prev = cur


def test_wells_pe_adding_a_factor_never_lowers_score(registry):
    flags = ["clinical_signs_dvt", "pe_most_likely", "heart_rate_over_100", "immobilization_or_surgery",
             "previous_dvt_pe", "hemoptysis", "malignancy"]
    inputs = {}
    prev = _run(registry, "wells_pe").value
    for flag in flags:
        inputs[flag] = True
        cur = _run(registry, "wells_pe", **inputs).value
        assert cur > prev
        prev = cur
    assert prev == 12.5


def test_curb65_rises_with_bun(registry):
    low = _run(registry, "curb65", confusion=False, bun_mg_dl=19, respiratory_rate=20, sbp_mm_hg=120,
               dbp_mm_hg=80, age_years=50)
    high = _run(registry, "curb65", confusion=False, bun_mg_dl=20, respiratory_rate=20, sbp_mm_hg=120,
                dbp_mm_hg=80, age_years=50)
    assert high.value == low.value + 1


# Flags that lower a score when present.
_PROTECTIVE_FLAGS = {
    ("wells_dvt", "alternative_dx_as_likely"),
    ("oasis", "elective_surgery"),
    ("edacs", "pain_worse_with_inspiration"),
    ("edacs", "pain_reproduced_by_palpation"),
}


def test_setting_any_flag_never_lowers_the_value(registry, sample_inputs):
    for definition in registry:
        bag = sample_inputs(definition)
        base = definition.run(bag)
        for inp in definition.inputs:
            if inp.type is not InputType.BOOL or (definition.id, inp.key) in _PROTECTIVE_FLAGS:
                continue
            flipped = definition.run({**bag, inp.key: True})
            assert flipped is not None, f"{definition.id}.{inp.key}"
            assert flipped.value >= base.value, f"{definition.id}.{inp.key}"


def test_protective_flags_lower_the_value(registry, sample_inputs):
    for calc_id, key in _PROTECTIVE_FLAGS:
        definition = registry.lookup(calc_id)
        bag = sample_inputs(definition)
        assert definition.run({**bag, key: True}).value < definition.run(bag).value, f"{calc_id}.{key}"


# ── Inclusive and exclusive bins ─────────────────────────────────────────────

def test_upto_bins_include_the_upper_bound():
    bins = [(8, 3), (11, 1), (20, 0)]
    assert upto(8, bins, 2) == 3
    assert upto(8.5, bins, 2) == 1
    assert upto(21, bins, 2) == 2
    assert steps(8, bins, 2) == 1


def test_news2_respiratory_rate_boundaries(registry):
    vitals = {"spo2_percent": 97, "temp_c": 37, "sbp_mm_hg": 120, "heart_rate_bpm": 70}
    assert _run(registry, "news2", respiratory_rate=20, **vitals).value == 0
    assert _run(registry, "news2", respiratory_rate=21, **vitals).value == 2
    assert _run(registry, "news2", respiratory_rate=8, **vitals).value == 3


# ── Cockcroft-Gault age limit ────────────────────────────────────────────────

@pytest.mark.parametrize("age", [140, 151])
def test_cockcroft_gault_not_computable_at_extreme_age(registry, age):
    assert _run(registry, "cockcroft_gault", age_years=age, weight_kg=70, sex="male",
                creatinine_mg_dl=1.0) is None


# ── APACHE II ────────────────────────────────────────────────────────────────

_APACHE_BASE = {
    "age_years": 60, "temp_c": 37, "map_mm_hg": 75, "heart_rate_bpm": 110, "respiratory_rate": 24,
    "fio2_percent": 40, "pao2_mm_hg": 80, "ph": 7.2, "sodium_mmol_l": 132, "potassium_mmol_l": 4.5,
    "creatinine_mg_dl": 1.8, "hematocrit_percent": 36, "wbc_10e9_l": 14, "gcs_total": 13,
}


def test_apache_ii_worked_example(registry):
    result = _run(registry, "apache_ii", **_APACHE_BASE)
    assert result.extra["acute_physiology_points"] == 9
    assert result.extra["age_points"] == 3
    assert result.extra["chronic_health_points"] == 0
    assert result.value == 12
    assert result.extra["components"]["ph"] == 3
    assert result.extra["components"]["gcs"] == 2


def test_apache_ii_acute_renal_failure_doubles_creatinine(registry):
    result = _run(registry, "apache_ii", acute_renal_failure=True, **_APACHE_BASE)
    assert result.extra["components"]["creatinine"] == 4
    assert result.value == 14


@pytest.mark.parametrize("category, points", [("nonoperative", 5), ("emergency_postop", 5),
                                              ("elective_postop", 2)])
def test_apache_ii_chronic_health_points(registry, category, points):
    result = _run(registry, "apache_ii", severe_organ_insufficiency=True, admission_category=category,
                  **_APACHE_BASE)
    assert result.extra["chronic_health_points"] == points


def test_apache_ii_uses_aa_gradient_at_high_fio2(registry):
    inputs = {**_APACHE_BASE, "fio2_percent": 60}
    computed = _run(registry, "apache_ii", paco2_mm_hg=40, **inputs)
    assert computed.extra["components"]["oxygenation"] == 2
    given = _run(registry, "apache_ii", aa_gradient_mm_hg=520, **inputs)
    assert given.extra["components"]["oxygenation"] == 4
    missing = _run(registry, "apache_ii", **inputs)
    assert missing.extra["components"]["oxygenation"] == 0
    assert any("paco2_mm_hg" in note for note in missing.notes)


def test_apache_ii_low_fio2_scores_pao2(registry):
    assert _run(registry, "apache_ii", **{**_APACHE_BASE, "pao2_mm_hg": 50}).extra["components"]["oxygenation"] == 4
    assert _run(registry, "apache_ii", **{**_APACHE_BASE, "pao2_mm_hg": 65}).extra["components"]["oxygenation"] == 1


def test_apache_ii_rejects_out_of_range_gcs(registry):
    assert _run(registry, "apache_ii", **{**_APACHE_BASE, "gcs_total": 2}) is None


def test_apache_ii_feeds_nutric(registry):
    apache = _run(registry, "apache_ii", **_APACHE_BASE).value
    result = _run(registry, "nutric_simplified", age_years=60, apache_ii=apache, sofa_total=7,
                  comorbidity_count=1, days_hospital_to_icu=0)
    assert result.extra["components"]["apache_ii"] == 0


# ── EDACS, thyroid emergencies, GDM ──────────────────────────────────────────

def test_edacs_low_risk_cutoff(registry):
    low = _run(registry, "edacs", age_years=50, sex="male", diaphoresis=True)
    assert low.value == 13
    assert low.extra["low_risk"]
    high = _run(registry, "edacs", age_years=50, sex="male", diaphoresis=True,
                pain_radiates_to_arm_or_shoulder=True)
    assert high.value == 18
    assert not high.extra["low_risk"]


def test_edacs_age_bins(registry):
    assert _run(registry, "edacs", age_years=45, sex="female").value == 2
    assert _run(registry, "edacs", age_years=86, sex="female").value == 20
    assert _run(registry, "edacs", age_years=17, sex="female") is None


def test_burch_wartofsky_bands(registry):
    storm = _run(registry, "burch_wartofsky", temp_c=39.0, heart_rate_bpm=125, atrial_fibrillation=True)
    assert storm.value == 45
    assert storm.extra["likelihood"] == "highly suggestive"
    calm = _run(registry, "burch_wartofsky", temp_c=37.0, heart_rate_bpm=90)
    assert calm.value == 0
    assert calm.notes == ["thyroid storm unlikely"]


def test_myxedema_coma_score(registry):
    result = _run(registry, "myxedema_coma", temp_c=33.5, heart_rate_bpm=45, cns_status="stupor",
                  hypotension=True, sodium_mmol_l=125)
    assert result.value == 15 + 20 + 20 + 20 + 10
    assert result.extra["likelihood"] == "highly suggestive"


@pytest.mark.parametrize("temp, points", [(36.1, 5), (36.2, 0), (34.5, 10), (29.0, 30)])
def test_myxedema_temperature_bins(registry, temp, points):
    result = _run(registry, "myxedema_coma", temp_c=temp, heart_rate_bpm=70)
    assert result.extra["components"]["temperature"] == points


def test_gdm_ogtt_protocols(registry):
    iadpsg = _run(registry, "gdm_ogtt", ogtt_protocol="iadpsg_75g", fasting_glucose_mg_dl=90,
                  glucose_1h_mg_dl=185)
    assert iadpsg.value == 1
    assert iadpsg.extra["diagnostic"]
    one_value = _run(registry, "gdm_ogtt", ogtt_protocol="carpenter_coustan_100g", fasting_glucose_mg_dl=96)
    assert not one_value.extra["diagnostic"]
    two_values = _run(registry, "gdm_ogtt", ogtt_protocol="carpenter_coustan_100g", fasting_glucose_mg_dl=96,
                      glucose_1h_mg_dl=170, glucose_2h_mg_dl=150, glucose_3h_mg_dl=145)
    assert two_values.extra["abnormal"] == ["fasting_glucose_mg_dl", "glucose_3h_mg_dl"]
    assert two_values.extra["diagnostic"]


def test_gdm_ogtt_converts_mmol(registry):
    result = _run(registry, "gdm_ogtt", protocol="iadpsg_75g", fasting_glucose="5.2 mmol/L")
    assert result.extra["abnormal"] == ["fasting_glucose_mg_dl"]
