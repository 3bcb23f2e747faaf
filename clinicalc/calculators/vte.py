"""Pulmonary embolism and venous thromboembolism scores."""

from ._base import CalculatorSet, band, choice, fired, flag, num, scored

CALCS = CalculatorSet("vte")
register_all = CALCS.register_all

_AGE = num("age_years", "years")
_HR = num("heart_rate_bpm", "/min", synonyms=["heart_rate_per_min"])
_SBP = num("sbp_mm_hg", "mmHg", "pressure", synonyms=["sbp_mmhg"])


# 1. Wells PE ─────────────────────────────────────────────────────────────────
@CALCS.define("wells_pe", "Wells' Criteria for PE",
              [flag("clinical_signs_dvt"), flag("pe_most_likely", synonyms=["alternative_less_likely"]),
               flag("heart_rate_over_100"), num("heart_rate_bpm", "/min", required=False),
               flag("immobilization_or_surgery"), flag("previous_dvt_pe"), flag("hemoptysis"),
               flag("malignancy", synonyms=["active_cancer"])])
def wells_pe(v):
    tachy = v["heart_rate_over_100"] or (v["heart_rate_bpm"] is not None and v["heart_rate_bpm"] > 100)
    points = {
        "clinical_signs_dvt": 3.0 if v["clinical_signs_dvt"] else 0.0,
        "pe_most_likely": 3.0 if v["pe_most_likely"] else 0.0,
        "heart_rate_over_100": 1.5 if tachy else 0.0,
        "immobilization_or_surgery": 1.5 if v["immobilization_or_surgery"] else 0.0,
        "previous_dvt_pe": 1.5 if v["previous_dvt_pe"] else 0.0,
        "hemoptysis": 1.0 if v["hemoptysis"] else 0.0,
        "malignancy": 1.0 if v["malignancy"] else 0.0,
    }
    total = sum(points.values())
    risk = "high" if total > 6 else ("moderate" if total >= 2 else "low")
    likelihood = "PE likely" if total > 4 else "PE unlikely"
    return scored(total, f"{risk} probability", likelihood, risk=risk, likelihood=likelihood, components=points)


# 2. Wells DVT ────────────────────────────────────────────────────────────────
_WELLS_DVT_ITEMS = [
    "active_cancer", "paralysis_or_recent_immobilization", "bedridden_3d_or_major_surgery_12w",
    "localized_tenderness_deep_veins", "entire_leg_swollen", "calf_swelling_gt_3cm",
    "pitting_edema_confined", "collateral_superficial_veins", "previous_dvt",
]


@CALCS.define("wells_dvt", "Wells' Criteria for DVT",
              [flag(k) for k in _WELLS_DVT_ITEMS] + [flag("alternative_dx_as_likely")])
def wells_dvt(v):
    criteria = {k: v[k] for k in _WELLS_DVT_ITEMS}
    total = len(fired(criteria)) - (2 if v["alternative_dx_as_likely"] else 0)
    risk = "high" if total >= 3 else ("moderate" if total >= 1 else "low")
    likelihood = "DVT likely" if total >= 2 else "DVT unlikely"
    return scored(total, f"{risk} probability", likelihood, risk=risk, likelihood=likelihood,
                  criteria=fired(criteria))


# 3. Revised Geneva (full) ────────────────────────────────────────────────────
_GENEVA_INPUTS = [
    _AGE, flag("previous_dvt_pe"),
    flag("surgery_fracture_recent", synonyms=["surgery_fracture_within_1mo", "surgery_or_fracture"]),
    flag("active_malignancy"), flag("unilateral_leg_pain", synonyms=["unilateral_lower_limb_pain"]),
    flag("hemoptysis"), _HR,
    flag("pain_on_palpation_edema", synonyms=["pain_on_deep_palpation_unilateral_edema",
                                             "pain_on_deep_venous_palpation_and_unilateral_edema",
                                             "pain_on_palpation_and_edema"]),
]


def _geneva_hr_points(hr: float, mid: int, high: int) -> int:
    if hr >= 95:
        return high
    if hr >= 75:
        return mid
    return 0


@CALCS.define("geneva_revised", "Revised Geneva Score (PE)", _GENEVA_INPUTS)
def geneva_revised(v):
    points = {
        "age_over_65": 1 if v["age_years"] > 65 else 0,
        "previous_dvt_pe": 3 if v["previous_dvt_pe"] else 0,
        "surgery_fracture_recent": 2 if v["surgery_fracture_recent"] else 0,
        "active_malignancy": 2 if v["active_malignancy"] else 0,
        "unilateral_leg_pain": 3 if v["unilateral_leg_pain"] else 0,
        "hemoptysis": 2 if v["hemoptysis"] else 0,
        "heart_rate": _geneva_hr_points(v["heart_rate_bpm"], 3, 5),
        "pain_on_palpation_edema": 4 if v["pain_on_palpation_edema"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (4, "intermediate"), (11, "high")])
    return scored(total, f"{risk} clinical probability", band=risk, components=points)


# 4. Simplified Revised Geneva ────────────────────────────────────────────────
@CALCS.define("geneva_simplified", "Simplified Revised Geneva Score (PE)", _GENEVA_INPUTS)
def geneva_simplified(v):
    points = {
        "age_over_65": 1 if v["age_years"] > 65 else 0,
        "previous_dvt_pe": 1 if v["previous_dvt_pe"] else 0,
        "surgery_fracture_recent": 1 if v["surgery_fracture_recent"] else 0,
        "active_malignancy": 1 if v["active_malignancy"] else 0,
        "unilateral_leg_pain": 1 if v["unilateral_leg_pain"] else 0,
        "hemoptysis": 1 if v["hemoptysis"] else 0,
        "heart_rate": _geneva_hr_points(v["heart_rate_bpm"], 1, 2),
        "pain_on_palpation_edema": 1 if v["pain_on_palpation_edema"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (2, "intermediate"), (5, "high")])
    likelihood = "PE likely" if total > 2 else "PE unlikely"
    return scored(total, f"{risk} clinical probability", likelihood, band=risk, components=points)


# 5. PERC Rule ────────────────────────────────────────────────────────────────
@CALCS.define("perc", "PERC Rule for PE",
              [_AGE, _HR, num("sao2_percent", "%", synonyms=["spo2_percent", "oxygen_saturation"]),
               flag("unilateral_leg_swelling"), flag("hemoptysis"), flag("recent_surgery_or_trauma"),
               flag("prior_pe_or_dvt", synonyms=["previous_dvt_pe"]), flag("hormone_use")],
              unit="criteria")
def perc(v):
    criteria = {
        "age_50_or_over": v["age_years"] >= 50,
        "heart_rate_100_or_over": v["heart_rate_bpm"] >= 100,
        "sao2_under_95": v["sao2_percent"] < 95,
        "unilateral_leg_swelling": v["unilateral_leg_swelling"],
        "hemoptysis": v["hemoptysis"],
        "recent_surgery_or_trauma": v["recent_surgery_or_trauma"],
        "prior_pe_or_dvt": v["prior_pe_or_dvt"],
        "hormone_use": v["hormone_use"],
    }
    failed = fired(criteria)
    note = "PERC negative: PE can be ruled out if pretest probability is low" if not failed else "PERC positive"
    return scored(len(failed), note, perc_negative=not failed, failed_criteria=failed)


# 6. YEARS Algorithm ──────────────────────────────────────────────────────────
@CALCS.define("years_pe", "YEARS Algorithm (PE)",
              [flag("clinical_signs_dvt"), flag("hemoptysis"), flag("pe_most_likely"),
               num("d_dimer_ng_ml", "ng/mL", "d_dimer", synonyms=["d_dimer", "ddimer"])],
              unit="items")
def years_pe(v):
    items = fired({"clinical_signs_dvt": v["clinical_signs_dvt"], "hemoptysis": v["hemoptysis"],
                   "pe_most_likely": v["pe_most_likely"]})
    threshold = 1000 if not items else 500
    excluded = v["d_dimer_ng_ml"] < threshold
    note = "PE excluded without imaging" if excluded else "CT pulmonary angiography indicated"
    return scored(len(items), note, d_dimer_threshold=threshold, pe_excluded=excluded, criteria=items)


# 7. Age-Adjusted D-dimer ─────────────────────────────────────────────────────
@CALCS.define("age_adjusted_ddimer", "Age-Adjusted D-dimer Cutoff",
              [_AGE, num("d_dimer_ng_ml", "ng/mL", "d_dimer", required=False, synonyms=["d_dimer", "ddimer"])],
              unit="ng/mL FEU")
def age_adjusted_ddimer(v):
    cutoff = v["age_years"] * 10 if v["age_years"] > 50 else 500.0
    dimer = v["d_dimer_ng_ml"]
    note = ""
    if dimer is not None:
        note = "D-dimer above age-adjusted cutoff" if dimer >= cutoff else "D-dimer below age-adjusted cutoff"
    return scored(cutoff, note)


# 8. Padua Prediction Score ───────────────────────────────────────────────────
_PADUA_POINTS = {
    "active_cancer": 3, "previous_vte": 3, "reduced_mobility": 3, "known_thrombophilia": 3,
    "recent_trauma_or_surgery": 2, "heart_or_respiratory_failure": 1, "acute_mi_or_stroke": 1,
    "acute_infection_or_rheumatologic": 1, "obesity": 1, "hormonal_treatment": 1,
}


@CALCS.define("padua", "Padua Prediction Score (VTE)", [_AGE] + [flag(k) for k in _PADUA_POINTS])
def padua(v):
    points = {k: (pts if v[k] else 0) for k, pts in _PADUA_POINTS.items()}
    points["age_70_or_over"] = 1 if v["age_years"] >= 70 else 0
    total = sum(points.values())
    risk = "high" if total >= 4 else "low"
    return scored(total, f"{risk} VTE risk", risk=risk, components=points)


# 9. Caprini ──────────────────────────────────────────────────────────────────
_CAPRINI_POINTS = {
    1: ["minor_surgery", "bmi_over_25", "swollen_legs", "varicose_veins", "pregnancy_or_postpartum",
        "history_unexplained_stillbirth", "oral_contraceptives_or_hrt", "sepsis_1mo", "serious_lung_disease",
        "abnormal_pft", "acute_mi", "chf_1mo", "ibd_history", "bed_rest_medical"],
    2: ["major_surgery_over_45min", "laparoscopic_over_45min", "malignancy", "confined_to_bed_over_72h",
        "immobilizing_cast", "central_venous_access"],
    3: ["history_vte", "family_history_vte", "factor_v_leiden", "prothrombin_20210a", "lupus_anticoagulant",
        "anticardiolipin_antibodies", "elevated_homocysteine", "heparin_induced_thrombocytopenia",
        "other_thrombophilia"],
    5: ["stroke_1mo", "elective_arthroplasty", "hip_pelvis_leg_fracture", "acute_spinal_cord_injury_1mo"],
}


@CALCS.define("caprini", "Caprini VTE Risk Score",
              [_AGE] + [flag(k) for pts in _CAPRINI_POINTS.values() for k in pts])
def caprini(v):
    age = v["age_years"]
    total = 3 if age >= 75 else (2 if age >= 61 else (1 if age >= 41 else 0))
    present = []
    for pts, keys in _CAPRINI_POINTS.items():
        for k in keys:
            if v[k]:
                total += pts
                present.append(k)
    risk = band(total, [(0, "very low"), (1, "low"), (3, "moderate"), (5, "high")])
    return scored(total, f"{risk} VTE risk", risk=risk, criteria=present)


# 10. PESI ────────────────────────────────────────────────────────────────────
@CALCS.define("pesi", "Pulmonary Embolism Severity Index",
              [_AGE, choice("sex", ["male", "female"], synonyms=["gender"]), flag("cancer"),
               flag("chronic_heart_failure"), flag("chronic_lung_disease"), _HR, _SBP,
               num("respiratory_rate", "/min"), num("temp_c", "°C", "temperature"),
               flag("altered_mental_status"), num("sao2_percent", "%", synonyms=["spo2_percent"])])
def pesi(v):
    points = {
        "age": v["age_years"],
        "male": 10 if v["sex"] == "male" else 0,
        "cancer": 30 if v["cancer"] else 0,
        "chronic_heart_failure": 10 if v["chronic_heart_failure"] else 0,
        "chronic_lung_disease": 10 if v["chronic_lung_disease"] else 0,
        "heart_rate_110_or_over": 20 if v["heart_rate_bpm"] >= 110 else 0,
        "sbp_under_100": 30 if v["sbp_mm_hg"] < 100 else 0,
        "respiratory_rate_30_or_over": 20 if v["respiratory_rate"] >= 30 else 0,
        "temp_under_36": 20 if v["temp_c"] < 36 else 0,
        "altered_mental_status": 60 if v["altered_mental_status"] else 0,
        "sao2_under_90": 20 if v["sao2_percent"] < 90 else 0,
    }
    total = sum(points.values())
    klass = band(total, [(0, "I"), (66, "II"), (86, "III"), (106, "IV"), (126, "V")])
    risk = "low" if klass in ("I", "II") else "high"
    return scored(total, f"class {klass}", f"{risk} 30-day mortality risk", klass=klass, risk=risk,
                  components=points)


# 11. Simplified PESI ─────────────────────────────────────────────────────────
@CALCS.define("spesi", "Simplified PESI",
              [_AGE, flag("cancer"), flag("chronic_cardiopulm", synonyms=["chronic_cardiopulmonary_disease"]),
               _HR, _SBP, num("sao2_percent", "%", synonyms=["spo2_percent"])])
def spesi(v):
    criteria = {
        "age_over_80": v["age_years"] > 80,
        "cancer": v["cancer"],
        "chronic_cardiopulm": v["chronic_cardiopulm"],
        "heart_rate_110_or_over": v["heart_rate_bpm"] >= 110,
        "sbp_under_100": v["sbp_mm_hg"] < 100,
        "sao2_under_90": v["sao2_percent"] < 90,
    }
    total = len(fired(criteria))
    risk = "low" if total == 0 else "high"
    return scored(total, f"{risk} risk", risk=risk, criteria=fired(criteria))


# 12. Hestia Criteria ─────────────────────────────────────────────────────────
_HESTIA_ITEMS = [
    "hemodynamic_instability", "need_for_thrombolysis_or_embolectomy", "active_bleeding",
    "oxygen_needed_to_keep_sat_90", "pe_on_anticoagulation", "need_for_iv_pain_medication",
    "medical_or_social_reason_for_admission", "creatinine_clearance_lt_30", "severe_liver_impairment",
    "pregnancy", "history_of_hit",
]


@CALCS.define("hestia", "Hestia Criteria (PE outpatient eligibility)", [flag(k) for k in _HESTIA_ITEMS],
              unit="criteria")
def hestia(v):
    present = fired({k: v[k] for k in _HESTIA_ITEMS})
    note = "eligible for outpatient treatment" if not present else "not eligible for outpatient treatment"
    return scored(len(present), note, outpatient_eligible=not present, criteria=present)


# 13. BOVA ────────────────────────────────────────────────────────────────────
@CALCS.define("bova", "Bova Score (PE complications)",
              [_SBP, _HR, flag("rv_dysfunction"), flag("troponin_elevated")])
def bova(v):
    sbp = v["sbp_mm_hg"]
    points = {
        "sbp_90_to_100": 2 if 90 <= sbp <= 100 else 0,
        "heart_rate_110_or_over": 1 if v["heart_rate_bpm"] >= 110 else 0,
        "rv_dysfunction": 2 if v["rv_dysfunction"] else 0,
        "troponin_elevated": 2 if v["troponin_elevated"] else 0,
    }
    total = sum(points.values())
    stage = band(total, [(0, "I"), (3, "II"), (5, "III")])
    return scored(total, f"stage {stage}", stage=stage, components=points)


# 14. Khorana ─────────────────────────────────────────────────────────────────
_KHORANA_SITE = {"very_high_risk": 2, "high_risk": 1, "other": 0}


@CALCS.define("khorana", "Khorana Score (cancer-associated VTE)",
              [choice("cancer_site_risk", list(_KHORANA_SITE), synonyms=["cancer_site"]),
               num("platelets_10e9_l", "10^9/L", "cells"), num("hemoglobin_g_dl", "g/dL", "hemoglobin"),
               flag("esa_use"), num("wbc_10e9_l", "10^9/L", "cells"), num("bmi", "kg/m²")])
def khorana(v):
    points = {
        "site": _KHORANA_SITE[v["cancer_site_risk"]],
        "platelets_350_or_over": 1 if v["platelets_10e9_l"] >= 350 else 0,
        "hemoglobin_under_10_or_esa": 1 if (v["hemoglobin_g_dl"] < 10 or v["esa_use"]) else 0,
        "wbc_over_11": 1 if v["wbc_10e9_l"] > 11 else 0,
        "bmi_35_or_over": 1 if v["bmi"] >= 35 else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (1, "intermediate"), (3, "high")])
    return scored(total, f"{risk} VTE risk", risk=risk, components=points)
