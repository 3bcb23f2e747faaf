"""Cardiology risk scores and hemodynamic formulas."""

import math
from typing import Optional

from ._base import CalculatorSet, band, choice, fired, flag, num, ratio, scored, upto

CALCS = CalculatorSet("cardiology")
register_all = CALCS.register_all

_SBP = num("sbp_mm_hg", "mmHg", "pressure", synonyms=["systolic_blood_pressure"])
_DBP = num("dbp_mm_hg", "mmHg", "pressure", synonyms=["diastolic_blood_pressure"])
_HR = num("heart_rate_bpm", "/min", synonyms=["heart_rate_per_min"])
_AGE = num("age_years", "years")
_SEX = choice("sex", ["male", "female"], synonyms=["gender"])
_QT = num("qt_ms", "ms", "interval", synonyms=["qt_interval"])
_CO = num("cardiac_output_l_min", "L/min", synonyms=["cardiac_output", "co"])


# ── Vital sign derived indices ──────────────────────────────────────────────

# 1. Mean Arterial Pressure ───────────────────────────────────────────────────
@CALCS.define("map", "Mean Arterial Pressure", [_SBP, _DBP], unit="mmHg", precision=0)
def mean_arterial_pressure(v):
    value = (v["sbp_mm_hg"] + 2 * v["dbp_mm_hg"]) / 3
    return scored(value, "below perfusion target (65)" if value < 65 else "")


# 2. Pulse Pressure ───────────────────────────────────────────────────────────
@CALCS.define("pulse_pressure", "Pulse Pressure", [_SBP, _DBP], unit="mmHg", precision=0)
def pulse_pressure(v):
    pp = v["sbp_mm_hg"] - v["dbp_mm_hg"]
    if pp < 25:
        note = "narrow pulse pressure"
    elif pp > 60:
        note = "wide pulse pressure"
    else:
        note = ""
    return scored(pp, note)


# 3. Shock Index ──────────────────────────────────────────────────────────────
@CALCS.define("shock_index", "Shock Index", [_HR, _SBP], unit="", precision=2)
def shock_index(v):
    si = ratio(v["heart_rate_bpm"], v["sbp_mm_hg"])
    if si is None:
        return None
    return scored(si, "elevated shock index" if si >= 1.0 else "")


# 4. Modified Shock Index ─────────────────────────────────────────────────────
@CALCS.define("modified_shock_index", "Modified Shock Index (HR/MAP)", [_HR, _SBP, _DBP], unit="", precision=2)
def modified_shock_index(v):
    mean = (v["sbp_mm_hg"] + 2 * v["dbp_mm_hg"]) / 3
    msi = ratio(v["heart_rate_bpm"], mean)
    if msi is None:
        return None
    if msi > 1.3:
        note = "high (hemodynamic compromise)"
    elif msi < 0.7:
        note = "low"
    else:
        note = "normal"
    return scored(msi, note, map=mean)


# 5. Rate-Pressure Product ────────────────────────────────────────────────────
@CALCS.define("rate_pressure_product", "Rate-Pressure Product", [_HR, _SBP], unit="mmHg/min", precision=0)
def rate_pressure_product(v):
    return scored(v["heart_rate_bpm"] * v["sbp_mm_hg"])


# ── QT correction ───────────────────────────────────────────────────────────

def _qtc_note(qtc: float, sex: Optional[str]) -> str:
    if qtc >= 500:
        return "markedly prolonged QTc"
    limit = 460 if sex == "female" else 450
    return "prolonged QTc" if qtc > limit else ""


_SEX_OPT = choice("sex", ["male", "female"], required=False, synonyms=["gender"])


def _rr_seconds(hr: float) -> Optional[float]:
    return ratio(60.0, hr)


# 6. QTc Bazett ───────────────────────────────────────────────────────────────
@CALCS.define("qtc_bazett", "QTc (Bazett)", [_QT, _HR, _SEX_OPT], unit="ms", precision=0)
def qtc_bazett(v):
    rr = _rr_seconds(v["heart_rate_bpm"])
    if rr is None:
        return None
    qtc = v["qt_ms"] / math.sqrt(rr)
    return scored(qtc, _qtc_note(qtc, v["sex"]), rr_s=rr)


# 7. QTc Fridericia ───────────────────────────────────────────────────────────
@CALCS.define("qtc_fridericia", "QTc (Fridericia)", [_QT, _HR, _SEX_OPT], unit="ms", precision=0)
def qtc_fridericia(v):
    rr = _rr_seconds(v["heart_rate_bpm"])
    if rr is None:
        return None
    qtc = v["qt_ms"] / rr ** (1 / 3)
    return scored(qtc, _qtc_note(qtc, v["sex"]), rr_s=rr)


# 8. QTc Framingham ───────────────────────────────────────────────────────────
@CALCS.define("qtc_framingham", "QTc (Framingham)", [_QT, _HR, _SEX_OPT], unit="ms", precision=0)
def qtc_framingham(v):
    rr = _rr_seconds(v["heart_rate_bpm"])
    if rr is None:
        return None
    qtc = v["qt_ms"] + 154 * (1 - rr)
    return scored(qtc, _qtc_note(qtc, v["sex"]), rr_s=rr)


# 9. QTc Hodges ───────────────────────────────────────────────────────────────
@CALCS.define("qtc_hodges", "QTc (Hodges)", [_QT, _HR, _SEX_OPT], unit="ms", precision=0)
def qtc_hodges(v):
    qtc = v["qt_ms"] + 1.75 * (v["heart_rate_bpm"] - 60)
    return scored(qtc, _qtc_note(qtc, v["sex"]))


# ── Risk scores ─────────────────────────────────────────────────────────────

# 10. CHA2DS2-VASc ────────────────────────────────────────────────────────────
@CALCS.define("cha2ds2_vasc", "CHA2DS2-VASc",
              [_AGE, _SEX, flag("chf", synonyms=["congestive_heart_failure"]), flag("hypertension"),
               flag("diabetes"), flag("stroke_tia", synonyms=["stroke", "prior_stroke_tia_thromboembolism"]),
               flag("vascular_disease")])
def cha2ds2_vasc(v):
    age = v["age_years"]
    points = {
        "chf": 1 if v["chf"] else 0,
        "hypertension": 1 if v["hypertension"] else 0,
        "age": 2 if age >= 75 else (1 if age >= 65 else 0),
        "diabetes": 1 if v["diabetes"] else 0,
        "stroke_tia": 2 if v["stroke_tia"] else 0,
        "vascular_disease": 1 if v["vascular_disease"] else 0,
        "sex": 1 if v["sex"] == "female" else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (1, "intermediate"), (2, "high")])
    return scored(total, f"{risk} stroke risk", risk=risk, components=points)


# 11. HAS-BLED ────────────────────────────────────────────────────────────────
@CALCS.define("has_bled", "HAS-BLED",
              [_AGE, flag("uncontrolled_hypertension", synonyms=["hypertension"]), flag("abnormal_renal_function"),
               flag("abnormal_liver_function"), flag("stroke_history", synonyms=["stroke"]),
               flag("bleeding_history", synonyms=["major_bleeding"]), flag("labile_inr"),
               flag("antiplatelet_or_nsaid", synonyms=["drugs"]), flag("alcohol_use", synonyms=["alcohol"])])
def has_bled(v):
    criteria = {
        "hypertension": v["uncontrolled_hypertension"],
        "renal": v["abnormal_renal_function"],
        "liver": v["abnormal_liver_function"],
        "stroke": v["stroke_history"],
        "bleeding": v["bleeding_history"],
        "labile_inr": v["labile_inr"],
        "elderly": v["age_years"] > 65,
        "drugs": v["antiplatelet_or_nsaid"],
        "alcohol": v["alcohol_use"],
    }
    total = len(fired(criteria))
    risk = "high" if total >= 3 else ("moderate" if total >= 1 else "low")
    return scored(total, f"{risk} bleeding risk", risk=risk, criteria=fired(criteria))


# 12. HEART Score ─────────────────────────────────────────────────────────────
_HISTORY = {"slightly_suspicious": 0, "moderately_suspicious": 1, "highly_suspicious": 2}
_ECG = {"normal": 0, "nonspecific_repolarization": 1, "significant_st_deviation": 2}
_TROPONIN = {"normal": 0, "one_to_three_times": 1, "over_three_times": 2}


@CALCS.define("heart_score", "HEART Score",
              [choice("history", list(_HISTORY)), choice("ecg", list(_ECG)), _AGE,
               num("risk_factor_count", "", default=0.0, synonyms=["risk_factors"]),
               flag("known_atherosclerosis"), choice("troponin", list(_TROPONIN))])
def heart_score(v):
    age = v["age_years"]
    rf = v["risk_factor_count"]
    points = {
        "history": _HISTORY[v["history"]],
        "ecg": _ECG[v["ecg"]],
        "age": 2 if age >= 65 else (1 if age >= 45 else 0),
        "risk_factors": 2 if (rf >= 3 or v["known_atherosclerosis"]) else (1 if rf >= 1 else 0),
        "troponin": _TROPONIN[v["troponin"]],
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (4, "moderate"), (7, "high")])
    return scored(total, f"{risk} risk of MACE", risk=risk, components=points)


# 13. TIMI UA/NSTEMI ──────────────────────────────────────────────────────────
@CALCS.define("timi_ua_nstemi", "TIMI Risk Score (UA/NSTEMI)",
              [_AGE, flag("three_or_more_cad_risk_factors"), flag("known_cad_stenosis_50"),
               flag("aspirin_last_7_days", synonyms=["asa_use"]), flag("severe_angina_24h"),
               flag("st_deviation"), flag("positive_cardiac_marker", synonyms=["positive_troponin"])])
def timi_ua_nstemi(v):
    criteria = {
        "age_65_or_over": v["age_years"] >= 65,
        "three_or_more_cad_risk_factors": v["three_or_more_cad_risk_factors"],
        "known_cad_stenosis_50": v["known_cad_stenosis_50"],
        "aspirin_last_7_days": v["aspirin_last_7_days"],
        "severe_angina_24h": v["severe_angina_24h"],
        "st_deviation": v["st_deviation"],
        "positive_cardiac_marker": v["positive_cardiac_marker"],
    }
    total = len(fired(criteria))
    risk = band(total, [(0, "low"), (3, "intermediate"), (5, "high")])
    return scored(total, f"{risk} risk", risk=risk, criteria=fired(criteria))


# 14. TIMI STEMI ──────────────────────────────────────────────────────────────
@CALCS.define("timi_stemi", "TIMI Risk Score (STEMI)",
              [_AGE, _SBP, _HR, num("weight_kg", "kg", "weight"),
               flag("diabetes_hypertension_or_angina"), flag("killip_ii_to_iv"),
               flag("anterior_ste_or_lbbb"), flag("time_to_treatment_over_4h")])
def timi_stemi(v):
    age = v["age_years"]
    points = {
        "age": 3 if age >= 75 else (2 if age >= 65 else 0),
        "history": 1 if v["diabetes_hypertension_or_angina"] else 0,
        "sbp": 3 if v["sbp_mm_hg"] < 100 else 0,
        "heart_rate": 2 if v["heart_rate_bpm"] > 100 else 0,
        "killip": 2 if v["killip_ii_to_iv"] else 0,
        "weight": 1 if v["weight_kg"] < 67 else 0,
        "anterior_ste_or_lbbb": 1 if v["anterior_ste_or_lbbb"] else 0,
        "delay": 1 if v["time_to_treatment_over_4h"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (4, "intermediate"), (7, "high")])
    return scored(total, f"{risk} 30-day mortality risk", risk=risk, components=points)


# 15. Killip Class ────────────────────────────────────────────────────────────
_KILLIP_MORTALITY = {1: "6%", 2: "17%", 3: "38%", 4: "81%"}


@CALCS.define("killip_class", "Killip Classification",
              [flag("rales_or_s3"), flag("pulmonary_edema"), flag("cardiogenic_shock")], unit="class")
def killip_class(v):
    if v["cardiogenic_shock"]:
        klass = 4
    elif v["pulmonary_edema"]:
        klass = 3
    elif v["rales_or_s3"]:
        klass = 2
    else:
        klass = 1
    roman = "I" * klass if klass < 4 else "IV"
    return scored(klass, f"Killip class {roman}", klass=roman, mortality=_KILLIP_MORTALITY[klass])


# 16. Revised Cardiac Risk Index ──────────────────────────────────────────────
@CALCS.define("rcri", "Revised Cardiac Risk Index",
              [flag("high_risk_surgery"), flag("ischemic_heart_disease"), flag("heart_failure"),
               flag("cerebrovascular_disease"), flag("insulin_treated_diabetes"),
               flag("creatinine_over_2"),
               num("creatinine_mg_dl", "mg/dL", "creatinine", required=False)])
def rcri(v):
    cr = v["creatinine_mg_dl"]
    criteria = {
        "high_risk_surgery": v["high_risk_surgery"],
        "ischemic_heart_disease": v["ischemic_heart_disease"],
        "heart_failure": v["heart_failure"],
        "cerebrovascular_disease": v["cerebrovascular_disease"],
        "insulin_treated_diabetes": v["insulin_treated_diabetes"],
        "creatinine_over_2": v["creatinine_over_2"] or (cr is not None and cr > 2.0),
    }
    total = len(fired(criteria))
    klass = band(total, [(0, "I"), (1, "II"), (2, "III"), (3, "IV")])
    return scored(total, f"RCRI class {klass}", klass=klass, criteria=fired(criteria))


# 17. DAPT Score ──────────────────────────────────────────────────────────────
@CALCS.define("dapt_score", "DAPT Score",
              [_AGE, flag("current_smoker"), flag("diabetes"), flag("mi_at_presentation"),
               flag("prior_pci_or_mi"), flag("paclitaxel_eluting_stent"), flag("stent_diameter_under_3mm"),
               flag("chf_or_lvef_under_30"), flag("vein_graft_stent")])
def dapt_score(v):
    age = v["age_years"]
    points = {
        "age": -2 if age >= 75 else (-1 if age >= 65 else 0),
        "current_smoker": 1 if v["current_smoker"] else 0,
        "diabetes": 1 if v["diabetes"] else 0,
        "mi_at_presentation": 1 if v["mi_at_presentation"] else 0,
        "prior_pci_or_mi": 1 if v["prior_pci_or_mi"] else 0,
        "paclitaxel_eluting_stent": 1 if v["paclitaxel_eluting_stent"] else 0,
        "stent_diameter_under_3mm": 1 if v["stent_diameter_under_3mm"] else 0,
        "chf_or_lvef_under_30": 2 if v["chf_or_lvef_under_30"] else 0,
        "vein_graft_stent": 2 if v["vein_graft_stent"] else 0,
    }
    total = sum(points.values())
    if total >= 2:
        note = "favourable benefit/risk for prolonged DAPT"
    else:
        note = "unfavourable benefit/risk for prolonged DAPT"
    return scored(total, note, components=points)


# 18. CRUSADE Bleeding Score ──────────────────────────────────────────────────
_CRUSADE_CRCL = [(15, 39), (30, 35), (60, 28), (90, 17), (120, 7)]
_CRUSADE_HR = [(70, 0), (80, 1), (90, 3), (100, 6), (110, 8), (120, 10)]
_CRUSADE_SBP = [(90, 10), (100, 8), (120, 5), (180, 1), (200, 3)]


def _crusade_hct(hct: float) -> int:
    if hct < 31:
        return 9
    if hct < 34:
        return 7
    if hct < 37:
        return 3
    if hct < 40:
        return 2
    return 0


@CALCS.define("crusade", "CRUSADE Bleeding Score",
              [num("hematocrit_percent", "%"), num("crcl_ml_min", "mL/min", synonyms=["creatinine_clearance"]),
               _HR, _SBP, _SEX, flag("signs_of_chf"), flag("prior_vascular_disease"), flag("diabetes")])
def crusade(v):
    points = {
        "hematocrit": _crusade_hct(v["hematocrit_percent"]),
        "crcl": upto(v["crcl_ml_min"], _CRUSADE_CRCL, 0),
        "heart_rate": upto(v["heart_rate_bpm"], _CRUSADE_HR, 11),
        "sex": 8 if v["sex"] == "female" else 0,
        "signs_of_chf": 7 if v["signs_of_chf"] else 0,
        "prior_vascular_disease": 6 if v["prior_vascular_disease"] else 0,
        "diabetes": 6 if v["diabetes"] else 0,
        "sbp": upto(v["sbp_mm_hg"], _CRUSADE_SBP, 5),
    }
    total = sum(points.values())
    risk = band(total, [(0, "very low"), (21, "low"), (31, "moderate"), (41, "high"), (51, "very high")])
    return scored(total, f"{risk} bleeding risk", risk=risk, components=points)


# ── Hemodynamics ────────────────────────────────────────────────────────────

# 19. Cardiac Output ──────────────────────────────────────────────────────────
@CALCS.define("cardiac_output", "Cardiac Output (HR x SV)",
              [_HR, num("stroke_volume_ml", "mL", synonyms=["stroke_volume", "sv"])], unit="L/min", precision=2)
def cardiac_output(v):
    return scored(v["heart_rate_bpm"] * v["stroke_volume_ml"] / 1000)


# 20. Cardiac Index ───────────────────────────────────────────────────────────
@CALCS.define("cardiac_index", "Cardiac Index",
              [_CO, num("weight_kg", "kg", "weight"), num("height_cm", "cm", "height")],
              unit="L/min/m²", precision=2)
def cardiac_index(v):
    if v["weight_kg"] <= 0 or v["height_cm"] <= 0:
        return None
    bsa = math.sqrt(v["weight_kg"] * v["height_cm"] / 3600)
    ci = v["cardiac_output_l_min"] / bsa
    return scored(ci, "low cardiac index" if ci < 2.2 else "", bsa=bsa)


# 21. Stroke Volume (LVOT) ────────────────────────────────────────────────────
@CALCS.define("stroke_volume", "Stroke Volume (LVOT VTI)",
              [num("lvot_diameter_cm", "cm"), num("lvot_vti_cm", "cm")], unit="mL", precision=0)
def stroke_volume(v):
    area = math.pi * (v["lvot_diameter_cm"] / 2) ** 2
    return scored(area * v["lvot_vti_cm"], lvot_area_cm2=area)


# 22. Systemic Vascular Resistance ────────────────────────────────────────────
@CALCS.define("svr", "Systemic Vascular Resistance",
              [num("map_mm_hg", "mmHg", "pressure", synonyms=["mean_arterial_pressure"]),
               num("cvp_mm_hg", "mmHg", "pressure", synonyms=["cvp"]), _CO],
              unit="dyn·s/cm⁵", precision=0)
def svr(v):
    value = ratio(80 * (v["map_mm_hg"] - v["cvp_mm_hg"]), v["cardiac_output_l_min"])
    if value is None:
        return None
    if value < 800:
        note = "low SVR"
    elif value > 1200:
        note = "high SVR"
    else:
        note = ""
    return scored(value, note)


# 23. Pulmonary Vascular Resistance ───────────────────────────────────────────
@CALCS.define("pvr", "Pulmonary Vascular Resistance",
              [num("mpap_mm_hg", "mmHg", "pressure", synonyms=["mean_pap"]),
               num("pcwp_mm_hg", "mmHg", "pressure", synonyms=["pcwp", "wedge"]), _CO],
              unit="dyn·s/cm⁵", precision=0)
def pvr(v):
    wood = ratio(v["mpap_mm_hg"] - v["pcwp_mm_hg"], v["cardiac_output_l_min"])
    if wood is None:
        return None
    return scored(wood * 80, "elevated PVR" if wood > 2 else "", wood_units=wood)


# 24. Arterial Oxygen Content ─────────────────────────────────────────────────
_HB = num("hemoglobin_g_dl", "g/dL", "hemoglobin", synonyms=["hgb", "hb_g_dl"])
_SAO2 = num("sao2_percent", "%", synonyms=["oxygen_saturation"])
_PAO2 = num("pao2_mm_hg", "mmHg", "pressure")


def arterial_o2_content(hb: float, sao2: float, pao2: float) -> float:
    return 1.34 * hb * sao2 / 100 + 0.003 * pao2


@CALCS.define("cao2", "Arterial Oxygen Content", [_HB, _SAO2, _PAO2], unit="mL/dL", precision=1)
def cao2(v):
    return scored(arterial_o2_content(v["hemoglobin_g_dl"], v["sao2_percent"], v["pao2_mm_hg"]))


# 25. Oxygen Delivery ─────────────────────────────────────────────────────────
@CALCS.define("do2", "Oxygen Delivery", [_CO, _HB, _SAO2, _PAO2], unit="mL/min", precision=0)
def do2(v):
    content = arterial_o2_content(v["hemoglobin_g_dl"], v["sao2_percent"], v["pao2_mm_hg"])
    delivery = v["cardiac_output_l_min"] * content * 10
    return scored(delivery, "low oxygen delivery" if delivery < 500 else "", cao2=content)


# 26. Norepinephrine Equivalent ───────────────────────────────────────────────
# mcg/kg/min except vasopressin (U/min)
_NEE_FACTORS = {
    "norepinephrine_mcg_kg_min": 1.0,
    "epinephrine_mcg_kg_min": 1.0,
    "dopamine_mcg_kg_min": 0.01,
    "phenylephrine_mcg_kg_min": 0.1,
    "vasopressin_u_min": 2.5,
    "angiotensin_ii_mcg_kg_min": 10.0,
}


@CALCS.define("nee", "Norepinephrine Equivalent Dose",
              [num(key, "U/min" if key.endswith("u_min") else "mcg/kg/min", required=False)
               for key in _NEE_FACTORS],
              unit="mcg/kg/min", precision=2)
def nee(v):
    given = {k: v[k] for k in _NEE_FACTORS if v[k] is not None}
    if not given:
        return None
    contributions = {k: dose * _NEE_FACTORS[k] for k, dose in given.items()}
    total = sum(contributions.values())
    if total >= 0.5:
        note = "high-dose vasopressor support"
    elif total > 0:
        note = "vasopressor support"
    else:
        note = "no vasopressor support"
    return scored(total, note, components=contributions)


# 27. EDACS ───────────────────────────────────────────────────────────────────
_EDACS_AGE = [(45, 2), (50, 4), (55, 6), (60, 8), (65, 10), (70, 12), (75, 14), (80, 16), (85, 18)]


@CALCS.define("edacs", "EDACS (Emergency Department Assessment of Chest pain Score)",
              [_AGE, _SEX, flag("known_cad_or_3_risk_factors", synonyms=["known_cad"]), flag("diaphoresis"),
               flag("pain_radiates_to_arm_or_shoulder", synonyms=["radiation_to_arm_or_shoulder"]),
               flag("pain_described_as_pressure"), flag("pain_worse_with_inspiration", synonyms=["pleuritic_pain"]),
               flag("pain_reproduced_by_palpation", synonyms=["chest_wall_tenderness"])])
def edacs(v):
    if v["age_years"] < 18:
        return None
    points = {
        "age": upto(v["age_years"], _EDACS_AGE, 20),
        "male": 6 if v["sex"] == "male" else 0,
        "known_cad_or_3_risk_factors": 4 if v["known_cad_or_3_risk_factors"] else 0,
        "diaphoresis": 3 if v["diaphoresis"] else 0,
        "radiation": 5 if v["pain_radiates_to_arm_or_shoulder"] else 0,
        "pressure": 3 if v["pain_described_as_pressure"] else 0,
        "pleuritic": -4 if v["pain_worse_with_inspiration"] else 0,
        "palpation": -6 if v["pain_reproduced_by_palpation"] else 0,
    }
    total = sum(points.values())
    low_risk = total < 16
    note = ("low risk if no new ischemia on ECG and serial troponins are negative" if low_risk
            else "not low risk")
    return scored(total, note, low_risk=low_risk, components=points)
