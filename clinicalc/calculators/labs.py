"""Hematology, toxicology and metabolic laboratory indices."""

import math

from ._base import CalculatorSet, band, choice, flag, num, ratio, scored

CALCS = CalculatorSet("labs")
register_all = CALCS.register_all

_GLU = num("glucose_mg_dl", "mg/dL", "glucose", synonyms=["fasting_glucose", "fasting_glucose_mg_dl"])
_INSULIN = num("insulin_uu_ml", "µU/mL", "insulin", synonyms=["fasting_insulin"])
_TC = num("total_cholesterol_mg_dl", "mg/dL", "cholesterol", synonyms=["total_cholesterol", "tc"])
_HDL = num("hdl_mg_dl", "mg/dL", "cholesterol", synonyms=["hdl", "hdl_cholesterol"])
_TG = num("triglycerides_mg_dl", "mg/dL", "triglycerides", synonyms=["triglycerides", "tg"])
_LYMPH = num("lymphocytes_10e9_l", "10^9/L", "cells", synonyms=["absolute_lymphocyte_count", "alc"])


# 1. HIT 4Ts ──────────────────────────────────────────────────────────────────
_OTHER_CAUSES = {"none": 2, "possible": 1, "definite": 0}


@CALCS.define("hit_4ts", "4Ts Score (heparin-induced thrombocytopenia)",
              [num("platelet_fall_percent", "%", synonyms=["platelet_fall_pct"]),
               num("platelet_nadir_10e9_l", "10^9/L", "cells", synonyms=["platelet_nadir", "platelet_nadir_k"]),
               num("days_since_heparin", "days", synonyms=["timing_days_since_heparin"]),
               flag("recent_heparin_exposure", synonyms=["heparin_exposure_past_30_days"]),
               flag("new_thrombosis", synonyms=["skin_necrosis", "acute_systemic_reaction"]),
               flag("suspected_thrombosis"),
               choice("other_causes", list(_OTHER_CAUSES), synonyms=["other_causes_of_thrombocytopenia"])])
def hit_4ts(v):
    fall, nadir, days = v["platelet_fall_percent"], v["platelet_nadir_10e9_l"], v["days_since_heparin"]
    if fall > 50 and nadir >= 20:
        thrombocytopenia = 2
    elif 30 <= fall <= 50 or 10 <= nadir < 20:
        thrombocytopenia = 1
    else:
        thrombocytopenia = 0
    if 5 <= days <= 10 or (days <= 1 and v["recent_heparin_exposure"]):
        timing = 2
    elif days > 10:
        timing = 1
    elif days < 4 and not v["recent_heparin_exposure"]:
        timing = 0
    else:
        timing = 1
    thrombosis = 2 if v["new_thrombosis"] else (1 if v["suspected_thrombosis"] else 0)
    components = {"thrombocytopenia": thrombocytopenia, "timing": timing, "thrombosis": thrombosis,
                  "other_causes": _OTHER_CAUSES[v["other_causes"]]}
    total = sum(components.values())
    probability = band(total, [(0, "low"), (4, "intermediate"), (6, "high")])
    return scored(total, f"{probability} pretest probability of HIT", probability=probability,
                  components=components)


# 2-3. Inflammatory ratios ────────────────────────────────────────────────────
@CALCS.define("nlr", "Neutrophil-to-Lymphocyte Ratio",
              [num("neutrophils_10e9_l", "10^9/L", "cells", synonyms=["anc_10e9_l", "absolute_neutrophil_count"]),
               _LYMPH], unit="ratio", precision=2)
def nlr(v):
    value = ratio(v["neutrophils_10e9_l"], v["lymphocytes_10e9_l"])
    if value is None:
        return None
    return scored(value, "elevated" if value > 3 else "")


@CALCS.define("plr", "Platelet-to-Lymphocyte Ratio",
              [num("platelets_10e9_l", "10^9/L", "cells", synonyms=["platelet_count"]), _LYMPH],
              unit="ratio", precision=1)
def plr(v):
    value = ratio(v["platelets_10e9_l"], v["lymphocytes_10e9_l"])
    return None if value is None else scored(value)


# 4. Absolute Neutrophil Count ────────────────────────────────────────────────
@CALCS.define("anc", "Absolute Neutrophil Count",
              [num("wbc_10e9_l", "10^9/L", "cells", synonyms=["white_cell_count"]),
               num("neutrophil_percent", "%", synonyms=["segs_percent", "neutrophils_pct"]),
               num("band_percent", "%", default=0.0, synonyms=["bands_percent"])],
              unit="cells/µL", precision=0)
def anc(v):
    value = v["wbc_10e9_l"] * 1000 * (v["neutrophil_percent"] + v["band_percent"]) / 100
    if value < 500:
        grade = "severe neutropenia"
    elif value < 1000:
        grade = "moderate neutropenia"
    elif value < 1500:
        grade = "mild neutropenia"
    else:
        grade = "normal"
    return scored(value, grade, grade=grade)


# 5. Corrected Reticulocyte Count ─────────────────────────────────────────────
@CALCS.define("corrected_reticulocyte", "Corrected Reticulocyte Count / RPI",
              [num("reticulocyte_percent", "%", synonyms=["retic_percent", "reticulocytes"]),
               num("hematocrit_percent", "%", synonyms=["hct"]),
               num("normal_hematocrit_percent", "%", default=45.0)],
              unit="%", precision=2)
def corrected_reticulocyte(v):
    hct = v["hematocrit_percent"]
    corrected = ratio(v["reticulocyte_percent"] * hct, v["normal_hematocrit_percent"])
    if corrected is None:
        return None
    if hct >= 35:
        maturation = 1.0
    elif hct >= 25:
        maturation = 1.5
    elif hct >= 20:
        maturation = 2.0
    else:
        maturation = 2.5
    rpi = corrected / maturation
    note = "adequate marrow response" if rpi >= 2 else "hypoproliferative"
    return scored(corrected, f"RPI {rpi:.2f}: {note}", rpi=rpi, maturation_days=maturation)


# 6. Phenytoin (Sheiner-Tozer) ────────────────────────────────────────────────
@CALCS.define("phenytoin_corrected", "Corrected Phenytoin (Sheiner-Tozer)",
              [num("phenytoin_mcg_ml", "mcg/mL", synonyms=["phenytoin_level", "measured_phenytoin"]),
               num("albumin_g_dl", "g/dL", "albumin"),
               flag("renal_failure", synonyms=["crcl_below_10", "esrd"])],
              unit="mcg/mL", precision=1)
def phenytoin_corrected(v):
    coeff = 0.1 if v["renal_failure"] else 0.2
    value = ratio(v["phenytoin_mcg_ml"], coeff * v["albumin_g_dl"] + 0.1)
    if value is None:
        return None
    status = band(value, [(0, "subtherapeutic"), (10, "therapeutic"), (20, "supratherapeutic")])
    return scored(value, status)


# 7. Acetaminophen nomogram ───────────────────────────────────────────────────
@CALCS.define("apap_nomogram_ratio", "Acetaminophen Level / Rumack-Matthew Treatment Line",
              [num("apap_level_mcg_ml", "mcg/mL", synonyms=["acetaminophen_level", "paracetamol_level"]),
               num("hours_since_ingestion", "h", synonyms=["hours_post_ingestion"])],
              unit="ratio", precision=2)
def apap_nomogram_ratio(v):
    hours = v["hours_since_ingestion"]
    if not 4 <= hours <= 24:
        return None
    line = 150 * 2 ** (-(hours - 4) / 4)
    value = v["apap_level_mcg_ml"] / line
    treat = value >= 1
    return scored(value, "above treatment line: give NAC" if treat else "below treatment line",
                  treatment_line_mcg_ml=line, above_line=treat)


# 8. Ethanol osmolal contribution ─────────────────────────────────────────────
@CALCS.define("ethanol_osmolal_contribution", "Ethanol Osmolal Contribution",
              [num("ethanol_mg_dl", "mg/dL", "ethanol", synonyms=["etoh", "blood_alcohol"])],
              unit="mOsm/kg", precision=1)
def ethanol_osmolal_contribution(v):
    return scored(v["ethanol_mg_dl"] / 3.7)


# 9-12. Insulin resistance ────────────────────────────────────────────────────
@CALCS.define("homa_ir", "HOMA-IR", [_GLU, _INSULIN], unit="index", precision=2)
def homa_ir(v):
    value = v["glucose_mg_dl"] * v["insulin_uu_ml"] / 405
    return scored(value, "insulin resistance likely" if value >= 2.5 else "")


@CALCS.define("homa_b", "HOMA-β (beta-cell function)", [_GLU, _INSULIN], unit="%", precision=1)
def homa_b(v):
    value = ratio(360 * v["insulin_uu_ml"], v["glucose_mg_dl"] - 63)
    return None if value is None else scored(value)


@CALCS.define("quicki", "QUICKI", [_GLU, _INSULIN], unit="index", precision=3)
def quicki(v):
    if v["glucose_mg_dl"] <= 0 or v["insulin_uu_ml"] <= 0:
        return None
    value = ratio(1, math.log10(v["insulin_uu_ml"]) + math.log10(v["glucose_mg_dl"]))
    return None if value is None else scored(value)


@CALCS.define("tyg_index", "Triglyceride-Glucose Index", [_TG, _GLU], unit="index", precision=2)
def tyg_index(v):
    product = v["triglycerides_mg_dl"] * v["glucose_mg_dl"]
    if product <= 0:
        return None
    return scored(math.log(product / 2))


# 13-16. Lipids ───────────────────────────────────────────────────────────────
@CALCS.define("ldl_friedewald", "LDL Cholesterol (Friedewald)", [_TC, _HDL, _TG], unit="mg/dL", precision=0)
def ldl_friedewald(v):
    if v["triglycerides_mg_dl"] >= 400:
        return None
    return scored(v["total_cholesterol_mg_dl"] - v["hdl_mg_dl"] - v["triglycerides_mg_dl"] / 5)


@CALCS.define("non_hdl", "Non-HDL Cholesterol", [_TC, _HDL], unit="mg/dL", precision=0)
def non_hdl(v):
    return scored(v["total_cholesterol_mg_dl"] - v["hdl_mg_dl"])


@CALCS.define("tg_hdl_ratio", "Triglyceride/HDL Ratio", [_TG, _HDL], unit="ratio", precision=2)
def tg_hdl_ratio(v):
    value = ratio(v["triglycerides_mg_dl"], v["hdl_mg_dl"])
    return None if value is None else scored(value)


@CALCS.define("atherogenic_index", "Atherogenic Index of Plasma", [_TG, _HDL], unit="index", precision=3)
def atherogenic_index(v):
    tg_mmol = v["triglycerides_mg_dl"] / 88.57
    hdl_mmol = v["hdl_mg_dl"] / 38.67
    if tg_mmol <= 0 or hdl_mmol <= 0:
        return None
    value = math.log10(tg_mmol / hdl_mmol)
    risk = band(value, [(-math.inf, "low"), (0.11, "intermediate"), (0.21, "high")])
    return scored(value, f"{risk} cardiovascular risk", risk=risk)
