import logging

import pytest

from clinicalc.normalize import normalize, normalize_inputs
from clinicalc.units import canonical_key, convert, parse_bool, parse_number, split_value
from clinicalc.validate import validate


def _norm(registry, calc_id, raw):
    return normalize(registry.lookup(calc_id), raw)


def test_shared_aliases_map_to_canonical_keys(registry):
    bundle = _norm(registry, "anion_gap", {"Na": 140, "CL": "104", "hco3": 24})
    assert bundle == {"sodium_mmol_l": 140.0, "chloride_mmol_l": 104.0, "bicarbonate_mmol_l": 24.0}


def test_field_synonyms_and_spaced_keys(registry):
    bundle = _norm(registry, "anion_gap", {"serum sodium": 140, "Serum-Chloride": 104, "HCO3 mmol/L": 24})
    assert bundle["sodium_mmol_l"] == 140.0
    assert bundle["chloride_mmol_l"] == 104.0
    assert "bicarbonate_mmol_l" not in bundle


def test_first_spelling_wins(registry):
    bundle = _norm(registry, "anion_gap", {"sodium_mmol_l": 140, "na": 150})
    assert bundle["sodium_mmol_l"] == 140.0


def test_none_values_are_ignored(registry):
    bundle = _norm(registry, "anion_gap", {"sodium_mmol_l": None, "na": 138})
    assert bundle["sodium_mmol_l"] == 138.0


# ── Units ────────────────────────────────────────────────────────────────────

def test_glucose_mmol_to_mg_dl(registry):
    bundle = _norm(registry, "effective_osmolality", {"na": 140, "glucose": "10 mmol/L"})
    assert bundle["glucose_mg_dl"] == pytest.approx(180.182)


def test_creatinine_umol_to_mg_dl(registry):
    bundle = _norm(registry, "cockcroft_gault", {"creatinine": {"value": 88.4, "unit": "µmol/L"}})
    assert bundle["creatinine_mg_dl"] == pytest.approx(1.0)


def test_fio2_fraction_becomes_percent(registry):
    assert _norm(registry, "pf_ratio", {"fio2": 0.4})["fio2_percent"] == pytest.approx(40.0)
    assert _norm(registry, "pf_ratio", {"fio2": "40%"})["fio2_percent"] == pytest.approx(40.0)
    assert _norm(registry, "pf_ratio", {"fio2": 60})["fio2_percent"] == 60.0


def test_fahrenheit_to_celsius(registry):
    bundle = _norm(registry, "sirs", {"temp": "101.3 °F"})
    assert bundle["temp_c"] == pytest.approx(38.5)


def test_kpa_to_mm_hg(registry):
    bundle = _norm(registry, "pf_ratio", {"pao2": "10 kPa", "fio2": 0.5})
    assert bundle["pao2_mm_hg"] == pytest.approx(75.0062)


def test_unknown_unit_is_dropped(registry, caplog):
    with caplog.at_level(logging.DEBUG, logger="clinicalc.normalize"):
        bundle = _norm(registry, "cockcroft_gault", {"creatinine": "1.0 furlongs", "age": 60})
    assert "creatinine_mg_dl" not in bundle
    assert bundle["age_years"] == 60.0
    assert "dropped creatinine_mg_dl" in caplog.text


@pytest.mark.parametrize("calc_id, raw, key", [
    ("pesi", {"age": "72 kg"}, "age_years"),
    ("oasis", {"urine_output": "1,500 mL/day"}, "urine_output_ml_day"),
    ("oasis", {"urine_output": "1 500"}, "urine_output_ml_day"),
    ("apache_ii", {"gcs": "13 mmHg"}, "gcs_total"),
])
def test_foreign_unit_without_conversion_family_is_dropped(registry, calc_id, raw, key):
    assert key not in _norm(registry, calc_id, raw)


def test_canonical_unit_spellings_without_conversion_family(registry):
    assert _norm(registry, "pesi", {"age": "72 yrs"})["age_years"] == 72.0
    assert _norm(registry, "pesi", {"age": "72 years", "hr": "110 bpm"})["heart_rate_bpm"] == 110.0
    assert _norm(registry, "oasis", {"urine_output": "1500 mL/day"})["urine_output_ml_day"] == 1500.0


@pytest.mark.parametrize("raw", ["0.8 mg/L", "0.8 µg/mL", "0.8 ug/mL FEU", {"value": 0.8, "unit": "mg/L FEU"}])
def test_d_dimer_mass_units_convert_to_ng_ml(registry, raw):
    assert _norm(registry, "years_pe", {"d_dimer": raw})["d_dimer_ng_ml"] == pytest.approx(800.0)


def test_d_dimer_in_mg_l_is_not_read_as_ng_ml(registry):
    result = registry.lookup("years_pe").run({"pe_most_likely": True, "d_dimer": "0.8 mg/L"})
    assert result.extra["d_dimer_threshold"] == 500
    assert not result.extra["pe_excluded"]
    assert result.notes == ["CT pulmonary angiography indicated"]


# ── Booleans and enums ───────────────────────────────────────────────────────

def test_bool_words(registry):
    bundle = _norm(registry, "wells_pe", {"hemoptysis": "yes", "malignancy": "Absent", "previous_dvt_pe": 1,
                                          "pe_most_likely": "maybe"})
    assert bundle["hemoptysis"] is True
    assert bundle["malignancy"] is False
    assert bundle["previous_dvt_pe"] is True
    assert "pe_most_likely" not in bundle


@pytest.mark.parametrize("raw, expected", [("Female", "female"), ("f", "female"), ("M", "male"),
                                           ("fem", "female"), ("other", None), (True, None)])
def test_enum_matching(registry, raw, expected):
    bundle = _norm(registry, "cockcroft_gault", {"sex": raw})
    assert bundle.get("sex") == expected


@pytest.mark.parametrize("raw, expected", [("Unscheduled Surgical", "unscheduled_surgical"),
                                           ("unsched", "unscheduled_surgical"), ("surgical", None), ("", None)])
def test_enum_options_with_spaces_and_prefixes(registry, raw, expected):
    assert _norm(registry, "saps_ii", {"admission_type": raw}).get("admission_type") == expected


# ── Totality and idempotence ─────────────────────────────────────────────────

@pytest.mark.parametrize("raw", [None, [], "sodium=140", 42])
def test_non_mapping_input_normalizes_to_empty(registry, raw):
    assert _norm(registry, "anion_gap", raw) == {}


def test_normalize_is_idempotent(registry, sample_inputs):
    for definition in registry:
        once = normalize(definition, sample_inputs(definition))
        assert normalize(definition, once) == once, definition.id


def test_normalize_is_idempotent_with_units(registry):
    definition = registry.lookup("sofa")
    once = normalize(definition, {"pao2": "9 kPa", "fio2": 0.35, "bili": "34 µmol/L", "cr": "150 umol/L"})
    assert normalize(definition, once) == once


def test_normalize_inputs_by_id(registry):
    assert normalize_inputs(registry, "BMI", {"wt": 70, "ht": "1.75 m"}) == {"weight_kg": 70.0, "height_cm": 175.0}


# ── Validation ───────────────────────────────────────────────────────────────

def test_validate_reports_missing_in_declaration_order(registry):
    definition = registry.lookup("anion_gap")
    result = validate(definition, {"chloride_mmol_l": 104})
    assert not result.ok
    assert result.missing == ["sodium_mmol_l", "bicarbonate_mmol_l"]


def test_validate_ignores_optional_inputs(registry):
    definition = registry.lookup("aa_gradient")
    result = validate(definition, {"fio2_percent": 21, "pao2_mm_hg": 95, "paco2_mm_hg": 40})
    assert result.ok
    assert result.missing == []


def test_validate_treats_non_finite_as_missing(registry):
    result = validate(registry.lookup("bmi"), {"weight_kg": float("inf"), "height_cm": 170})
    assert result.missing == ["weight_kg"]


# ── Low-level helpers ────────────────────────────────────────────────────────

def test_split_and_parse_helpers():
    assert split_value("7.2 mmol/L") == ("7.2", "mmol/L")
    assert split_value({"value": 3, "unit": None}) == (3, "")
    assert parse_number("1e3") == 1000.0
    assert parse_number(True) is None
    assert parse_number(float("nan")) is None
    assert parse_bool("Positive") is True
    assert parse_bool(2) is None
    assert canonical_key(" Heart Rate ") == "heart_rate"
    assert convert(5.0, "mmol/L", "mg/dL", "") == 5.0
    assert convert(5.0, "stones", "kg", "weight") is None
    assert convert(72.0, "kg", "years", "") is None
    assert convert(72.0, "yr", "years", "") == 72.0


@pytest.mark.parametrize("raw", ["1,500", "1 500", "12,5 mmol/L"])
def test_thousands_separators_do_not_parse(raw):
    assert parse_number(raw) is None
    assert split_value(raw) == (raw, "")
