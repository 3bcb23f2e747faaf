from typing import Any, Dict

import pytest

from clinicalc.models import CalculatorDefinition, InputType, PolicyEntry
from clinicalc.policy import PolicyTable
from clinicalc.registry import build_registry

# Plausible adult values for every numeric input key.
SAMPLES: Dict[str, float] = {
    "admission_points": 2, "age_years": 60, "albumin_g_dl": 3.0, "alt_u_l": 40, "anc_10e9_l": 8.0,
    "apache_ii": 18, "apap_level_mcg_ml": 150, "ast_u_l": 80, "ast_uln_u_l": 40, "band_percent": 5,
    "base_deficit_mEq_l": 5, "baseline_creatinine_mg_dl": 1.0, "bicarbonate_mmol_l": 18,
    "bilirubin_mg_dl": 2.5, "bmi": 31, "bun_mg_dl": 30, "bun_rise_mg_dl": 6, "calcium_mg_dl": 8.4,
    "cardiac_output_l_min": 5.0, "chloride_mmol_l": 100, "comorbidity_count": 2,
    "compliance_ml_cm_h2o": 30, "crcl_ml_min": 50, "creatinine_mg_dl": 1.8, "cvp_mm_hg": 8,
    "cxr_quadrants": 2, "d_dimer_ng_ml": 800, "days_hospital_to_icu": 1, "days_since_heparin": 7,
    "dbp_mm_hg": 70, "dilation_cm": 4, "dobutamine_mcg_kg_min": 0, "dopamine_mcg_kg_min": 0,
    "duration_min": 45, "effacement_percent": 80, "epinephrine_mcg_kg_min": 0, "ethanol_mg_dl": 80,
    "eye_response": 3, "fasting_glucose_mg_dl": 95, "fio2_percent": 40, "fluid_sequestration_l": 7, "gcs_total": 13,
    "glucose_mg_dl": 300, "hct_fall_percent": 12, "hdl_mg_dl": 45, "heart_rate_bpm": 110,
    "height_cm": 170, "hematocrit_percent": 36, "hemoglobin_g_dl": 11, "hours_since_ingestion": 8,
    "infusate_potassium_mmol_l": 0, "infusate_sodium_mmol_l": 154, "initial_lactate_mmol_l": 4.0,
    "inr": 1.8, "insulin_uu_ml": 15, "lactate_mmol_l": 3.0, "ldh_u_l": 400, "lvot_diameter_cm": 2.0,
    "lvot_vti_cm": 20, "lymphocytes_10e9_l": 1.2, "map_mm_hg": 75, "mean_airway_pressure_cm_h2o": 15,
    "measured_osm": 320, "minute_ventilation_l_min": 10, "motor_response": 5, "mpap_mm_hg": 30,
    "neck_circumference_cm": 42, "neutrophil_percent": 80, "neutrophils_10e9_l": 8.0,
    "norepinephrine_mcg_kg_min": 0.1, "normal_albumin_g_dl": 4.0, "normal_hematocrit_percent": 45,
    "paco2_mm_hg": 40, "pao2_mm_hg": 80, "patm_mm_hg": 760, "pcwp_mm_hg": 12, "peak_pressure_cm_h2o": 30,
    "peep_cm_h2o": 8, "ph": 7.2, "phenytoin_mcg_ml": 8, "phosphate_mg_dl": 4.5,
    "plateau_pressure_cm_h2o": 24, "platelet_fall_percent": 55, "platelet_nadir_10e9_l": 40,
    "platelets_10e9_l": 150, "potassium_mmol_l": 4.5, "pre_icu_los_hours": 10, "pt_control_seconds": 12,
    "pt_seconds": 20, "qt_ms": 420, "repeat_lactate_mmol_l": 2.5, "respiratory_rate": 24,
    "reticulocyte_percent": 3, "risk_factor_count": 2, "sao2_percent": 94, "sbp_mm_hg": 105,
    "scalene_retraction": 1, "serum_osm": 290, "sodium_mmol_l": 132, "sofa_total": 7, "spo2_percent": 93,
    "station": 0, "stroke_volume_ml": 70, "suprasternal_retraction": 1, "surgery_duration_h": 2.5,
    "target_bicarbonate_mmol_l": 24, "target_sodium_mmol_l": 140, "tbsa_percent": 30, "temp_c": 38.5,
    "tidal_volume_ml": 450, "total_cholesterol_mg_dl": 200, "triglycerides_mg_dl": 150,
    "urine_chloride_mmol_l": 40, "urine_creatinine_mg_dl": 80, "urine_osm": 500, "urine_output_l_day": 0.8,
    "urine_output_ml_day": 800, "urine_potassium_mmol_l": 30, "urine_sodium_mmol_l": 30,
    "urine_urea_mg_dl": 300, "verbal_response": 4, "wbc_10e9_l": 14, "weight_kg": 80, "wheezing": 2,
    # Braden subscales
    "sensory_perception": 3, "moisture": 3, "activity": 3, "mobility": 3, "nutrition": 3, "friction_shear": 2,
}
SAMPLES.update({f"nihss_{k}": 1 for k in (
    "loc", "loc_questions", "loc_commands", "best_gaze", "visual_fields", "facial_palsy", "motor_arm_left",
    "motor_arm_right", "motor_leg_left", "motor_leg_right", "limb_ataxia", "sensory", "best_language",
    "dysarthria", "extinction_inattention")})
SAMPLES.update({f"apgar_{k}": 2 for k in ("appearance", "pulse", "grimace", "activity", "respiration")})


def build_sample(definition: CalculatorDefinition) -> Dict[str, Any]:
    """A complete input bag for ``definition``.

    Numbers come from SAMPLES (declared defaults when absent), enums take
    their first option and flags are False.
    """
    bag: Dict[str, Any] = {}
    for inp in definition.inputs:
        if inp.type is InputType.BOOL:
            bag[inp.key] = False
        elif inp.type is InputType.ENUM:
            bag[inp.key] = inp.default or inp.options[0]
        elif inp.key in SAMPLES:
            bag[inp.key] = SAMPLES[inp.key]
        elif inp.required:
            raise KeyError(f"no sample value for {definition.id}.{inp.key}")
    return bag


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def sample_inputs():
    return build_sample


@pytest.fixture
def fast_policies():
    """Default policy with a short timeout so timeout paths finish quickly."""
    return PolicyTable(entries={}, default=PolicyEntry(precision=1, tolerance_pct=1.0, timeout_ms=100))
