"""Reference formula table used to cross-check calculator output.

Each entry maps a calculator id to a Python expression over that
calculator's canonical input keys. The expressions are written from the
published formulas, separately from the calculator bodies, and evaluated by
:mod:`clinicalc.expr`. Booleans bind as True/False, enum inputs as their
option strings, and optional inputs without a default as None (hence the
``(x or 0)`` idiom).

Point-sum scores are mostly absent here: their local value is a count of
boolean criteria and there is nothing independent to recompute.
"""

from __future__ import annotations

from typing import Dict, Optional

_FEMALE = "sex == 'female'"
_ELDERLY = "(age_years or 0) >= 65"
_TBW = (f"(((0.45 if {_ELDERLY} else 0.5) if {_FEMALE} else (0.5 if {_ELDERLY} else 0.6))"
        f" * weight_kg)")
_OSM = "(2 * sodium_mmol_l + glucose_mg_dl / 18 + bun_mg_dl / 2.8 + ethanol_mg_dl / 3.7)"
_MAP = "((sbp_mm_hg + 2 * dbp_mm_hg) / 3)"
_RR_S = "(60 / heart_rate_bpm)"
_MELD_I = ("(10 * (0.957 * ln(4 if dialysis_twice_past_week else clamp(creatinine_mg_dl, 1, 4))"
           " + 0.378 * ln(max(bilirubin_mg_dl, 1)) + 1.120 * ln(max(inr, 1)) + 0.643))")
_NA_CLAMP = "clamp(sodium_mmol_l, 125, 137)"
_CKD_K = f"(0.7 if {_FEMALE} else 0.9)"
_PBW = "((50 if sex == 'male' else 45.5) + 0.91 * (height_cm - 152.4))"
_DEVINE = "((50 if sex == 'male' else 45.5) + 2.3 * (height_cm / 2.54 - 60))"
_CAO2 = "(1.34 * hemoglobin_g_dl * sao2_percent / 100 + 0.003 * pao2_mm_hg)"

FORMULA_SPECS: Dict[str, str] = {
    # electrolytes
    "anion_gap": "sodium_mmol_l - chloride_mmol_l - bicarbonate_mmol_l",
    "anion_gap_k": "sodium_mmol_l + potassium_mmol_l - chloride_mmol_l - bicarbonate_mmol_l",
    "anion_gap_albumin_corrected":
        "sodium_mmol_l - chloride_mmol_l - bicarbonate_mmol_l + 2.5 * (4 - albumin_g_dl)",
    "delta_gap": "sodium_mmol_l - chloride_mmol_l - bicarbonate_mmol_l - 12",
    "delta_ratio": "(sodium_mmol_l - chloride_mmol_l - bicarbonate_mmol_l - 12) / (24 - bicarbonate_mmol_l)",
    "winters_expected_paco2": "1.5 * bicarbonate_mmol_l + 8",
    "hh_ph": "6.1 + log10(bicarbonate_mmol_l / (0.03 * paco2_mm_hg))",
    "serum_osmolality": _OSM,
    "effective_osmolality": "2 * sodium_mmol_l + glucose_mg_dl / 18",
    "osmolal_gap": f"measured_osm - {_OSM}",
    "corrected_calcium": "calcium_mg_dl + 0.8 * (normal_albumin_g_dl - albumin_g_dl)",
    "corrected_sodium_hyperglycemia": "sodium_mmol_l + 0.024 * (glucose_mg_dl - 100)",
    "free_water_deficit": f"{_TBW} * (sodium_mmol_l / target_sodium_mmol_l - 1)",
    "sodium_deficit": f"max(0, {_TBW} * (target_sodium_mmol_l - sodium_mmol_l))",
    "sodium_correction_rate":
        f"(infusate_sodium_mmol_l + infusate_potassium_mmol_l - sodium_mmol_l) / ({_TBW} + 1)",
    "bicarbonate_deficit": "max(0, 0.5 * weight_kg * (target_bicarbonate_mmol_l - bicarbonate_mmol_l))",
    "urine_anion_gap": "urine_sodium_mmol_l + urine_potassium_mmol_l - urine_chloride_mmol_l",
    "ttkg": "(urine_potassium_mmol_l / potassium_mmol_l) / (urine_osm / serum_osm)",
    "calcium_phosphate_product": "calcium_mg_dl * phosphate_mg_dl",

    # renal
    "cockcroft_gault":
        f"(140 - age_years) * weight_kg / (72 * creatinine_mg_dl) * (0.85 if {_FEMALE} else 1)",
    "egfr_ckd_epi_2021": (f"142 * pow(min(creatinine_mg_dl / {_CKD_K}, 1), -0.241 if {_FEMALE} else -0.302)"
                          f" * pow(max(creatinine_mg_dl / {_CKD_K}, 1), -1.2) * pow(0.9938, age_years)"
                          f" * (1.012 if {_FEMALE} else 1)"),
    "egfr_mdrd": (f"175 * pow(creatinine_mg_dl, -1.154) * pow(age_years, -0.203)"
                  f" * (0.742 if {_FEMALE} else 1) * (1.212 if black_race else 1)"),
    "bun_creatinine_ratio": "bun_mg_dl / creatinine_mg_dl",
    "fena": "100 * urine_sodium_mmol_l * creatinine_mg_dl / (sodium_mmol_l * urine_creatinine_mg_dl)",
    "feurea": "100 * urine_urea_mg_dl * creatinine_mg_dl / (bun_mg_dl * urine_creatinine_mg_dl)",

    # body
    "bmi": "weight_kg / (height_cm / 100) ** 2",
    "bsa_mosteller": "sqrt(weight_kg * height_cm / 3600)",
    "bsa_dubois": "0.007184 * pow(weight_kg, 0.425) * pow(height_cm, 0.725)",
    "ibw_devine": _DEVINE,
    "adjusted_body_weight": f"{_DEVINE} + 0.4 * (weight_kg - {_DEVINE})",
    "lean_body_weight": ("9270 * weight_kg / ((6680 + 216 * weight_kg / (height_cm / 100) ** 2) if sex == 'male'"
                         " else (8780 + 244 * weight_kg / (height_cm / 100) ** 2))"),
    "harris_benedict": ("66.5 + 13.75 * weight_kg + 5.003 * height_cm - 6.755 * age_years if sex == 'male'"
                        " else 655.1 + 9.563 * weight_kg + 1.850 * height_cm - 4.676 * age_years"),
    "mifflin_st_jeor":
        "10 * weight_kg + 6.25 * height_cm - 5 * age_years + (5 if sex == 'male' else -161)",
    "maintenance_fluids_421": ("4 * weight_kg if weight_kg <= 10 else"
                               " (40 + 2 * (weight_kg - 10) if weight_kg <= 20 else 60 + (weight_kg - 20))"),
    "parkland_burns": "4 * weight_kg * tbsa_percent",

    # cardiology
    "map": _MAP,
    "pulse_pressure": "sbp_mm_hg - dbp_mm_hg",
    "shock_index": "heart_rate_bpm / sbp_mm_hg",
    "modified_shock_index": f"heart_rate_bpm / {_MAP}",
    "rate_pressure_product": "heart_rate_bpm * sbp_mm_hg",
    "qtc_bazett": f"qt_ms / sqrt({_RR_S})",
    "qtc_fridericia": f"qt_ms / pow({_RR_S}, 1 / 3)",
    "qtc_framingham": f"qt_ms + 154 * (1 - {_RR_S})",
    "qtc_hodges": "qt_ms + 1.75 * (heart_rate_bpm - 60)",
    "cardiac_output": "heart_rate_bpm * stroke_volume_ml / 1000",
    "cardiac_index": "cardiac_output_l_min / sqrt(weight_kg * height_cm / 3600)",
    "stroke_volume": "3.141592653589793 * (lvot_diameter_cm / 2) ** 2 * lvot_vti_cm",
    "svr": "80 * (map_mm_hg - cvp_mm_hg) / cardiac_output_l_min",
    "pvr": "80 * (mpap_mm_hg - pcwp_mm_hg) / cardiac_output_l_min",
    "cao2": _CAO2,
    "do2": f"cardiac_output_l_min * {_CAO2} * 10",
    "nee": ("(norepinephrine_mcg_kg_min or 0) + (epinephrine_mcg_kg_min or 0)"
            " + 0.01 * (dopamine_mcg_kg_min or 0) + 0.1 * (phenylephrine_mcg_kg_min or 0)"
            " + 2.5 * (vasopressin_u_min or 0) + 10 * (angiotensin_ii_mcg_kg_min or 0)"),

    # vte
    "wells_pe": ("3 * clinical_signs_dvt + 3 * pe_most_likely"
                 " + 1.5 * (heart_rate_over_100 or (heart_rate_bpm or 0) > 100)"
                 " + 1.5 * immobilization_or_surgery + 1.5 * previous_dvt_pe + hemoptysis + malignancy"),

    # pulmonary
    "aa_gradient": "(patm_mm_hg - 47) * fio2_percent / 100 - paco2_mm_hg / 0.8 - pao2_mm_hg",
    "pf_ratio": "pao2_mm_hg / (fio2_percent / 100)",
    "sf_ratio": "spo2_percent / (fio2_percent / 100)",
    "oxygenation_index": "fio2_percent * mean_airway_pressure_cm_h2o / pao2_mm_hg",
    "oxygen_saturation_index": "fio2_percent * mean_airway_pressure_cm_h2o / spo2_percent",
    "static_compliance": "tidal_volume_ml / (plateau_pressure_cm_h2o - peep_cm_h2o)",
    "dynamic_compliance": "tidal_volume_ml / (peak_pressure_cm_h2o - peep_cm_h2o)",
    "driving_pressure": "plateau_pressure_cm_h2o - peep_cm_h2o",
    "ventilatory_ratio": f"minute_ventilation_l_min * 1000 * paco2_mm_hg / ({_PBW} * 100 * 37.5)",
    "rox_index": "spo2_percent / (fio2_percent / 100) / respiratory_rate",
    "rsbi": "respiratory_rate / (tidal_volume_ml / 1000)",

    # hepatology
    "meld_classic": f"clamp({_MELD_I}, 6, 40)",
    "meld_na": (f"clamp({_MELD_I} + 1.32 * (137 - {_NA_CLAMP}) - 0.033 * {_MELD_I} * (137 - {_NA_CLAMP})"
                f" if {_MELD_I} > 11 else {_MELD_I}, 6, 40)"),
    "meld_3_0": ("clamp(1.33 * (sex == 'female')"
                 " + 4.56 * ln(max(bilirubin_mg_dl, 1))"
                 f" + 0.82 * (137 - {_NA_CLAMP})"
                 f" - 0.24 * (137 - {_NA_CLAMP}) * ln(max(bilirubin_mg_dl, 1))"
                 " + 9.09 * ln(max(inr, 1))"
                 " + 11.14 * ln(3 if dialysis_twice_past_week else clamp(creatinine_mg_dl, 1, 3))"
                 " + 1.85 * (3.5 - clamp(albumin_g_dl, 1.5, 3.5))"
                 " - 1.83 * (3.5 - clamp(albumin_g_dl, 1.5, 3.5))"
                 " * ln(3 if dialysis_twice_past_week else clamp(creatinine_mg_dl, 1, 3))"
                 " + 6, 6, 40)"),
    "fib4": "age_years * ast_u_l / (platelets_10e9_l * sqrt(alt_u_l))",
    "apri": "(ast_u_l / ast_uln_u_l) * 100 / platelets_10e9_l",
    "nafld_fibrosis_score": ("-1.675 + 0.037 * age_years + 0.094 * bmi"
                             " + 1.13 * impaired_fasting_glucose_or_diabetes + 0.99 * ast_u_l / alt_u_l"
                             " - 0.013 * platelets_10e9_l - 0.66 * albumin_g_dl"),
    "de_ritis": "ast_u_l / alt_u_l",
    "maddrey_df": "4.6 * (pt_seconds - pt_control_seconds) + bilirubin_mg_dl",
    "clif_c_ad": ("10 * (0.03 * age_years + 0.66 * ln(creatinine_mg_dl) + 1.71 * ln(inr)"
                  " + 0.88 * ln(wbc_10e9_l) - 0.05 * sodium_mmol_l + 8)"),

    # critical care
    "gcs": "eye_response + verbal_response + motor_response",
    "lactate_clearance": "(initial_lactate_mmol_l - repeat_lactate_mmol_l) / initial_lactate_mmol_l * 100",

    # labs
    "nlr": "neutrophils_10e9_l / lymphocytes_10e9_l",
    "plr": "platelets_10e9_l / lymphocytes_10e9_l",
    "anc": "wbc_10e9_l * 10 * (neutrophil_percent + band_percent)",
    "corrected_reticulocyte": "reticulocyte_percent * hematocrit_percent / normal_hematocrit_percent",
    "phenytoin_corrected": "phenytoin_mcg_ml / ((0.1 if renal_failure else 0.2) * albumin_g_dl + 0.1)",
    "apap_nomogram_ratio": "apap_level_mcg_ml / (150 * pow(2, -(hours_since_ingestion - 4) / 4))",
    "ethanol_osmolal_contribution": "ethanol_mg_dl / 3.7",
    "homa_ir": "glucose_mg_dl * insulin_uu_ml / 405",
    "homa_b": "360 * insulin_uu_ml / (glucose_mg_dl - 63)",
    "quicki": "1 / (log10(insulin_uu_ml) + log10(glucose_mg_dl))",
    "tyg_index": "ln(triglycerides_mg_dl * glucose_mg_dl / 2)",
    "ldl_friedewald": "total_cholesterol_mg_dl - hdl_mg_dl - triglycerides_mg_dl / 5",
    "non_hdl": "total_cholesterol_mg_dl - hdl_mg_dl",
    "tg_hdl_ratio": "triglycerides_mg_dl / hdl_mg_dl",
    "atherogenic_index": "log10((triglycerides_mg_dl / 88.57) / (hdl_mg_dl / 38.67))",

    # obstetrics and pediatrics
    "holliday_segar": ("100 * min(weight_kg, 10) + 50 * min(max(weight_kg - 10, 0), 10)"
                       " + 20 * max(weight_kg - 20, 0)"),
}


def formula_for(calculator_id: str, table: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Formula spec for ``calculator_id``, or None when none is registered."""
    return (FORMULA_SPECS if table is None else table).get(calculator_id)
