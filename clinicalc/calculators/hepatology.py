"""Liver, pancreas and GI bleeding scores."""

import math

from ._base import CalculatorSet, _clamp, band, choice, fired, flag, num, ratio, scored

CALCS = CalculatorSet("hepatology")
register_all = CALCS.register_all

_AGE = num("age_years", "years")
_BILI = num("bilirubin_mg_dl", "mg/dL", "bilirubin", synonyms=["total_bilirubin", "serum_bilirubin"])
_INR = num("inr", "", synonyms=["international_normalized_ratio"])
_CR = num("creatinine_mg_dl", "mg/dL", "creatinine", synonyms=["serum_creatinine"])
_NA = num("sodium_mmol_l", "mmol/L", "electrolyte", synonyms=["serum_sodium"])
_ALB = num("albumin_g_dl", "g/dL", "albumin", synonyms=["serum_albumin"])
_AST = num("ast_u_l", "U/L", synonyms=["ast", "sgot"])
_ALT = num("alt_u_l", "U/L", synonyms=["alt", "sgpt"])
_PLT = num("platelets_10e9_l", "10^9/L", "cells", synonyms=["platelet_count"])
_DIALYSIS = flag("dialysis_twice_past_week", synonyms=["dialysis", "crrt"])


def _meld_i(bili: float, inr: float, cr: float, dialysis: bool) -> float:
    bili = max(bili, 1.0)
    inr = max(inr, 1.0)
    cr = 4.0 if dialysis else _clamp(cr, 1.0, 4.0)
    return 10 * (0.957 * math.log(cr) + 0.378 * math.log(bili) + 1.120 * math.log(inr) + 0.643)


_MELD_MORTALITY = [(0, "1.9%"), (10, "6.0%"), (20, "19.6%"), (30, "52.6%"), (40, "71.3%")]


# 1. MELD (classic) ───────────────────────────────────────────────────────────
@CALCS.define("meld_classic", "MELD (classic)", [_BILI, _INR, _CR, _DIALYSIS], unit="points", precision=0)
def meld_classic(v):
    if min(v["bilirubin_mg_dl"], v["inr"], v["creatinine_mg_dl"]) <= 0:
        return None
    meld = _clamp(_meld_i(v["bilirubin_mg_dl"], v["inr"], v["creatinine_mg_dl"], v["dialysis_twice_past_week"]), 6, 40)
    return scored(meld, f"90-day mortality about {band(meld, _MELD_MORTALITY)}")


# 2. MELD-Na ──────────────────────────────────────────────────────────────────
@CALCS.define("meld_na", "MELD-Na (UNOS/OPTN)", [_BILI, _INR, _CR, _NA, _DIALYSIS], unit="points", precision=0)
def meld_na(v):
    if min(v["bilirubin_mg_dl"], v["inr"], v["creatinine_mg_dl"]) <= 0:
        return None
    meld_i = _meld_i(v["bilirubin_mg_dl"], v["inr"], v["creatinine_mg_dl"], v["dialysis_twice_past_week"])
    na = _clamp(v["sodium_mmol_l"], 125, 137)
    meld = meld_i
    if meld_i > 11:
        meld = meld_i + 1.32 * (137 - na) - 0.033 * meld_i * (137 - na)
    meld = _clamp(meld, 6, 40)
    return scored(meld, f"90-day mortality about {band(meld, _MELD_MORTALITY)}", meld_i=meld_i)


# 3. MELD 3.0 ─────────────────────────────────────────────────────────────────
@CALCS.define("meld_3_0", "MELD 3.0",
              [choice("sex", ["male", "female"], synonyms=["gender"]), _BILI, _INR, _CR, _NA, _ALB, _DIALYSIS],
              unit="points", precision=0)
def meld_3_0(v):
    if min(v["bilirubin_mg_dl"], v["inr"], v["creatinine_mg_dl"]) <= 0:
        return None
    female = 1.0 if v["sex"] == "female" else 0.0
    bili = max(v["bilirubin_mg_dl"], 1.0)
    inr = max(v["inr"], 1.0)
    cr = 3.0 if v["dialysis_twice_past_week"] else _clamp(v["creatinine_mg_dl"], 1.0, 3.0)
    na = _clamp(v["sodium_mmol_l"], 125, 137)
    alb = _clamp(v["albumin_g_dl"], 1.5, 3.5)
    score = (1.33 * female
             + 4.56 * math.log(bili)
             + 0.82 * (137 - na)
             - 0.24 * (137 - na) * math.log(bili)
             + 9.09 * math.log(inr)
             + 11.14 * math.log(cr)
             + 1.85 * (3.5 - alb)
             - 1.83 * (3.5 - alb) * math.log(cr)
             + 6)
    score = _clamp(score, 6, 40)
    return scored(score, f"90-day mortality about {band(score, _MELD_MORTALITY)}",
                  clamped_inputs={"bilirubin": bili, "inr": inr, "creatinine": cr, "sodium": na, "albumin": alb})


# 4. Child-Pugh ───────────────────────────────────────────────────────────────
_ASCITES = {"none": 1, "mild": 2, "moderate_severe": 3}
_ENCEPHALOPATHY = {"none": 1, "grade_1_2": 2, "grade_3_4": 3}


@CALCS.define("child_pugh", "Child-Pugh Score",
              [_BILI, _ALB, _INR, choice("ascites", list(_ASCITES)),
               choice("encephalopathy", list(_ENCEPHALOPATHY), synonyms=["hepatic_encephalopathy"])])
def child_pugh(v):
    bili, alb, inr = v["bilirubin_mg_dl"], v["albumin_g_dl"], v["inr"]
    points = {
        "bilirubin": 1 if bili < 2 else (2 if bili <= 3 else 3),
        "albumin": 1 if alb > 3.5 else (2 if alb >= 2.8 else 3),
        "inr": 1 if inr < 1.7 else (2 if inr <= 2.3 else 3),
        "ascites": _ASCITES[v["ascites"]],
        "encephalopathy": _ENCEPHALOPATHY[v["encephalopathy"]],
    }
    total = sum(points.values())
    klass = band(total, [(0, "A"), (7, "B"), (10, "C")])
    return scored(total, f"Child-Pugh class {klass}", klass=klass, components=points)


# 5. FIB-4 ────────────────────────────────────────────────────────────────────
@CALCS.define("fib4", "FIB-4 Index", [_AGE, _AST, _ALT, _PLT], unit="", precision=2)
def fib4(v):
    if v["alt_u_l"] <= 0:
        return None
    value = ratio(v["age_years"] * v["ast_u_l"], v["platelets_10e9_l"] * math.sqrt(v["alt_u_l"]))
    if value is None:
        return None
    if value < 1.30:
        risk = "low"
    elif value <= 2.67:
        risk = "indeterminate"
    else:
        risk = "high"
    return scored(value, f"{risk} probability of advanced fibrosis", risk=risk)


# 6. APRI ─────────────────────────────────────────────────────────────────────
@CALCS.define("apri", "AST to Platelet Ratio Index",
              [_AST, num("ast_uln_u_l", "U/L", default=40.0, synonyms=["ast_upper_limit"]), _PLT],
              unit="", precision=2)
def apri(v):
    if v["ast_uln_u_l"] <= 0:
        return None
    value = ratio(v["ast_u_l"] / v["ast_uln_u_l"] * 100, v["platelets_10e9_l"])
    if value is None:
        return None
    if value > 1.0:
        note = "suggests cirrhosis"
    elif value >= 0.5:
        note = "possible significant fibrosis"
    else:
        note = "significant fibrosis unlikely"
    return scored(value, note)


# 7. NAFLD Fibrosis Score ─────────────────────────────────────────────────────
@CALCS.define("nafld_fibrosis_score", "NAFLD Fibrosis Score",
              [_AGE, num("bmi", "kg/m²"), flag("impaired_fasting_glucose_or_diabetes", synonyms=["diabetes"]),
               _AST, _ALT, _PLT, _ALB],
              unit="", precision=3)
def nafld_fibrosis_score(v):
    ast_alt = ratio(v["ast_u_l"], v["alt_u_l"])
    if ast_alt is None:
        return None
    score = (-1.675 + 0.037 * v["age_years"] + 0.094 * v["bmi"]
             + 1.13 * (1 if v["impaired_fasting_glucose_or_diabetes"] else 0)
             + 0.99 * ast_alt - 0.013 * v["platelets_10e9_l"] - 0.66 * v["albumin_g_dl"])
    if score < -1.455:
        risk = "F0-F2"
    elif score <= 0.676:
        risk = "indeterminate"
    else:
        risk = "F3-F4"
    return scored(score, risk, risk=risk)


# 8. De Ritis Ratio ───────────────────────────────────────────────────────────
@CALCS.define("de_ritis", "De Ritis Ratio (AST/ALT)", [_AST, _ALT], unit="ratio", precision=2)
def de_ritis(v):
    value = ratio(v["ast_u_l"], v["alt_u_l"])
    if value is None:
        return None
    return scored(value, "pattern suggests alcoholic liver disease or cirrhosis" if value >= 2 else "")


# 9. Maddrey Discriminant Function ────────────────────────────────────────────
@CALCS.define("maddrey_df", "Maddrey Discriminant Function",
              [num("pt_seconds", "s", synonyms=["prothrombin_time"]),
               num("pt_control_seconds", "s", default=12.0, synonyms=["control_pt"]), _BILI],
              unit="", precision=1)
def maddrey_df(v):
    df = 4.6 * (v["pt_seconds"] - v["pt_control_seconds"]) + v["bilirubin_mg_dl"]
    return scored(df, "severe alcoholic hepatitis: consider corticosteroids" if df >= 32 else "")


# 10. CLIF-C AD ───────────────────────────────────────────────────────────────
@CALCS.define("clif_c_ad", "CLIF-C Acute Decompensation Score",
              [_AGE, _CR, _INR, num("wbc_10e9_l", "10^9/L", "cells"), _NA], unit="points", precision=0)
def clif_c_ad(v):
    if min(v["creatinine_mg_dl"], v["inr"], v["wbc_10e9_l"]) <= 0:
        return None
    score = 10 * (0.03 * v["age_years"] + 0.66 * math.log(v["creatinine_mg_dl"]) + 1.71 * math.log(v["inr"])
                  + 0.88 * math.log(v["wbc_10e9_l"]) - 0.05 * v["sodium_mmol_l"] + 8)
    risk = band(score, [(0, "low"), (45, "intermediate"), (60, "high")])
    return scored(score, f"{risk} risk", risk=risk)


# 11. Glasgow-Blatchford ──────────────────────────────────────────────────────
@CALCS.define("glasgow_blatchford", "Glasgow-Blatchford Bleeding Score",
              [num("bun_mg_dl", "mg/dL", "bun"), num("hemoglobin_g_dl", "g/dL", "hemoglobin"),
               choice("sex", ["male", "female"], synonyms=["gender"]), num("sbp_mm_hg", "mmHg", "pressure"),
               num("heart_rate_bpm", "/min"), flag("melena"), flag("syncope"), flag("hepatic_disease"),
               flag("cardiac_failure")])
def glasgow_blatchford(v):
    bun, hb, sbp = v["bun_mg_dl"], v["hemoglobin_g_dl"], v["sbp_mm_hg"]
    if bun < 18.2:
        bun_pts = 0
    elif bun < 22.4:
        bun_pts = 2
    elif bun < 28:
        bun_pts = 3
    elif bun <= 70:
        bun_pts = 4
    else:
        bun_pts = 6
    if v["sex"] == "male":
        hb_pts = 0 if hb >= 13 else (1 if hb >= 12 else (3 if hb >= 10 else 6))
    else:
        hb_pts = 0 if hb >= 12 else (1 if hb >= 10 else 6)
    points = {
        "bun": bun_pts,
        "hemoglobin": hb_pts,
        "sbp": 0 if sbp >= 110 else (1 if sbp >= 100 else (2 if sbp >= 90 else 3)),
        "heart_rate_100_or_over": 1 if v["heart_rate_bpm"] >= 100 else 0,
        "melena": 1 if v["melena"] else 0,
        "syncope": 2 if v["syncope"] else 0,
        "hepatic_disease": 2 if v["hepatic_disease"] else 0,
        "cardiac_failure": 2 if v["cardiac_failure"] else 0,
    }
    total = sum(points.values())
    note = "low risk: outpatient management may be appropriate" if total == 0 else "intervention may be required"
    return scored(total, note, components=points)


# 12. AIMS65 ──────────────────────────────────────────────────────────────────
@CALCS.define("aims65", "AIMS65 (upper GI bleeding)",
              [_ALB, _INR, flag("altered_mental_status"), num("sbp_mm_hg", "mmHg", "pressure"), _AGE])
def aims65(v):
    criteria = {
        "albumin_under_3": v["albumin_g_dl"] < 3.0,
        "inr_over_1_5": v["inr"] > 1.5,
        "altered_mental_status": v["altered_mental_status"],
        "sbp_90_or_under": v["sbp_mm_hg"] <= 90,
        "age_65_or_over": v["age_years"] >= 65,
    }
    total = len(fired(criteria))
    risk = "high" if total >= 2 else "low"
    return scored(total, f"{risk} in-hospital mortality risk", risk=risk, criteria=fired(criteria))


# 13. Rockall (post-endoscopy) ────────────────────────────────────────────────
_ROCKALL_COMORBIDITY = {"none": 0, "cardiac_or_major": 2, "renal_liver_failure_or_metastatic": 3}
_ROCKALL_DIAGNOSIS = {"mallory_weiss_or_none": 0, "other": 1, "gi_malignancy": 2}
_ROCKALL_STIGMATA = {"none_or_dark_spot": 0, "blood_clot_or_visible_vessel": 2}


@CALCS.define("rockall_post", "Rockall Score (post-endoscopy)",
              [_AGE, num("heart_rate_bpm", "/min"), num("sbp_mm_hg", "mmHg", "pressure"),
               choice("comorbidity", list(_ROCKALL_COMORBIDITY)), choice("diagnosis", list(_ROCKALL_DIAGNOSIS)),
               choice("stigmata", list(_ROCKALL_STIGMATA))])
def rockall_post(v):
    age = v["age_years"]
    if v["sbp_mm_hg"] < 100:
        shock = 2
    elif v["heart_rate_bpm"] >= 100:
        shock = 1
    else:
        shock = 0
    points = {
        "age": 2 if age >= 80 else (1 if age >= 60 else 0),
        "shock": shock,
        "comorbidity": _ROCKALL_COMORBIDITY[v["comorbidity"]],
        "diagnosis": _ROCKALL_DIAGNOSIS[v["diagnosis"]],
        "stigmata": _ROCKALL_STIGMATA[v["stigmata"]],
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (3, "intermediate"), (5, "high")])
    return scored(total, f"{risk} risk of rebleeding and death", risk=risk, components=points)


# 14. Ranson (admission) ──────────────────────────────────────────────────────
def _ranson_band(total: int) -> str:
    return band(total, [(0, "about 1% mortality"), (3, "about 15% mortality"), (5, "about 40% mortality"),
                        (7, "near 100% mortality")])


@CALCS.define("ranson_admission", "Ranson Criteria (admission)",
              [_AGE, num("wbc_10e9_l", "10^9/L", "cells"), num("glucose_mg_dl", "mg/dL", "glucose"),
               _AST, num("ldh_u_l", "U/L", synonyms=["ldh"])])
def ranson_admission(v):
    criteria = {
        "age_over_55": v["age_years"] > 55,
        "wbc_over_16": v["wbc_10e9_l"] > 16,
        "glucose_over_200": v["glucose_mg_dl"] > 200,
        "ast_over_250": v["ast_u_l"] > 250,
        "ldh_over_350": v["ldh_u_l"] > 350,
    }
    total = len(fired(criteria))
    return scored(total, _ranson_band(total), criteria=fired(criteria))


# 15. Ranson (48 hours) ───────────────────────────────────────────────────────
@CALCS.define("ranson_48h", "Ranson Criteria (48 hours)",
              [num("hct_fall_percent", "%", synonyms=["hematocrit_fall"]),
               num("bun_rise_mg_dl", "mg/dL", "bun", synonyms=["bun_rise"]),
               num("calcium_mg_dl", "mg/dL", "calcium"),
               num("pao2_mm_hg", "mmHg", "pressure"),
               num("base_deficit_mEq_l", "mEq/L", "electrolyte", synonyms=["base_deficit"]),
               num("fluid_sequestration_l", "L", synonyms=["fluid_sequestration"]),
               num("admission_points", "", default=0.0, synonyms=["ranson_admission"])])
def ranson_48h(v):
    criteria = {
        "hct_fall_over_10": v["hct_fall_percent"] > 10,
        "bun_rise_over_5": v["bun_rise_mg_dl"] > 5,
        "calcium_under_8": v["calcium_mg_dl"] < 8,
        "pao2_under_60": v["pao2_mm_hg"] < 60,
        "base_deficit_over_4": v["base_deficit_mEq_l"] > 4,
        "fluid_sequestration_over_6": v["fluid_sequestration_l"] > 6,
    }
    total = len(fired(criteria))
    combined = total + int(v["admission_points"])
    return scored(total, _ranson_band(combined), combined_total=combined, criteria=fired(criteria))


# 16. BISAP ───────────────────────────────────────────────────────────────────
@CALCS.define("bisap", "BISAP (acute pancreatitis)",
              [num("bun_mg_dl", "mg/dL", "bun"), flag("impaired_mental_status"), flag("sirs"), _AGE,
               flag("pleural_effusion")])
def bisap(v):
    criteria = {
        "bun_over_25": v["bun_mg_dl"] > 25,
        "impaired_mental_status": v["impaired_mental_status"],
        "sirs": v["sirs"],
        "age_over_60": v["age_years"] > 60,
        "pleural_effusion": v["pleural_effusion"],
    }
    total = len(fired(criteria))
    risk = "high" if total >= 3 else "low"
    return scored(total, f"{risk} mortality risk", risk=risk, criteria=fired(criteria))


# 17. Harmless Acute Pancreatitis Score ───────────────────────────────────────
@CALCS.define("haps", "Harmless Acute Pancreatitis Score",
              [flag("rebound_tenderness_or_guarding"), num("hematocrit_percent", "%"),
               choice("sex", ["male", "female"], synonyms=["gender"]), _CR],
              unit="abnormal findings")
def haps(v):
    hct_limit = 43 if v["sex"] == "male" else 39.6
    criteria = {
        "rebound_tenderness_or_guarding": v["rebound_tenderness_or_guarding"],
        "elevated_hematocrit": v["hematocrit_percent"] >= hct_limit,
        "creatinine_over_2": v["creatinine_mg_dl"] > 2,
    }
    failed = fired(criteria)
    note = "harmless course predicted" if not failed else "harmless course not predicted"
    return scored(len(failed), note, harmless=not failed, failed_criteria=failed)


# 18. King's College Criteria (acetaminophen) ─────────────────────────────────
@CALCS.define("kings_college_apap", "King's College Criteria (acetaminophen)",
              [num("ph", "", required=False, synonyms=["arterial_ph"]),
               num("inr", "", required=False),
               num("creatinine_mg_dl", "mg/dL", "creatinine", required=False),
               flag("encephalopathy_grade_3_4"),
               num("lactate_mmol_l", "mmol/L", "lactate", required=False)],
              unit="criteria met")
def kings_college_apap(v):
    ph, inr, cr, lactate = v["ph"], v["inr"], v["creatinine_mg_dl"], v["lactate_mmol_l"]
    if ph is None and inr is None and cr is None and lactate is None:
        return None
    criteria = {
        "ph_under_7_30": ph is not None and ph < 7.30,
        "lactate_over_3": lactate is not None and lactate > 3.0,
        "triad": (inr is not None and inr > 6.5 and cr is not None and cr > 3.4
                  and v["encephalopathy_grade_3_4"]),
    }
    met = bool(fired(criteria))
    note = "meets criteria: refer for transplant evaluation" if met else "criteria not met"
    return scored(1 if met else 0, note, criteria=fired(criteria))
