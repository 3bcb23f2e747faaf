"""Neurology scales and emergency department decision rules."""

from ._base import CalculatorSet, band, choice, fired, flag, num, scored, steps

CALCS = CalculatorSet("emergency")
register_all = CALCS.register_all

_AGE = num("age_years", "years")


def _rule(met, positive: str, negative: str, **extra):
    """Decision-rule result: value is the number of criteria met."""
    indicated = bool(met)
    return scored(len(met), positive if indicated else negative, indicated=indicated, criteria=met, **extra)


# 1. ABCD2 ────────────────────────────────────────────────────────────────────
@CALCS.define("abcd2", "ABCD² Score (TIA)",
              [_AGE, num("sbp_mm_hg", "mmHg", "pressure"), num("dbp_mm_hg", "mmHg", "pressure"),
               choice("clinical_features", ["none", "speech_only", "unilateral_weakness"],
                      synonyms=["clinical_feature"]),
               num("duration_min", "min", synonyms=["symptom_duration_min"]), flag("diabetes")])
def abcd2(v):
    points = {
        "age": 1 if v["age_years"] >= 60 else 0,
        "blood_pressure": 1 if v["sbp_mm_hg"] >= 140 or v["dbp_mm_hg"] >= 90 else 0,
        "clinical": {"none": 0, "speech_only": 1, "unilateral_weakness": 2}[v["clinical_features"]],
        "duration": steps(v["duration_min"], [(10, 0), (60, 1)], 2),
        "diabetes": 1 if v["diabetes"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (4, "moderate"), (6, "high")])
    two_day = {"low": "1.0%", "moderate": "4.1%", "high": "8.1%"}[risk]
    return scored(total, f"{risk} risk, 2-day stroke risk about {two_day}", risk=risk, components=points)


# 2. NIHSS ────────────────────────────────────────────────────────────────────
_NIHSS_ITEMS = {
    "loc": 3, "loc_questions": 2, "loc_commands": 2, "best_gaze": 2, "visual_fields": 3,
    "facial_palsy": 3, "motor_arm_left": 4, "motor_arm_right": 4, "motor_leg_left": 4,
    "motor_leg_right": 4, "limb_ataxia": 2, "sensory": 2, "best_language": 3, "dysarthria": 2,
    "extinction_inattention": 2,
}


@CALCS.define("nihss_total", "NIH Stroke Scale", [num(f"nihss_{k}", "") for k in _NIHSS_ITEMS])
def nihss_total(v):
    total = 0
    for item, top in _NIHSS_ITEMS.items():
        pts = v[f"nihss_{item}"]
        if not 0 <= pts <= top:
            return None
        total += pts
    severity = band(total, [(0, "no stroke symptoms"), (1, "minor"), (5, "moderate"),
                            (16, "moderate to severe"), (21, "severe")])
    return scored(total, f"{severity} stroke", severity=severity)


# 3. Canadian CT Head Rule ────────────────────────────────────────────────────
@CALCS.define("canadian_ct_head", "Canadian CT Head Rule",
              [flag("gcs_below_15_at_2h"), flag("suspected_open_or_depressed_skull_fracture"),
               flag("basal_skull_fracture_signs"), flag("vomiting_two_or_more"),
               num("age_years", "years"), flag("amnesia_before_impact_30min"), flag("dangerous_mechanism")],
              unit="criteria")
def canadian_ct_head(v):
    high = fired({
        "gcs_below_15_at_2h": v["gcs_below_15_at_2h"],
        "open_or_depressed_skull_fracture": v["suspected_open_or_depressed_skull_fracture"],
        "basal_skull_fracture_signs": v["basal_skull_fracture_signs"],
        "vomiting_two_or_more": v["vomiting_two_or_more"],
        "age_65_or_over": v["age_years"] >= 65,
    })
    medium = fired({
        "retrograde_amnesia_30min": v["amnesia_before_impact_30min"],
        "dangerous_mechanism": v["dangerous_mechanism"],
    })
    risk = "high" if high else ("medium" if medium else "low")
    return _rule(high + medium, f"CT head indicated ({risk} risk)", "CT head not indicated by rule", risk=risk)


# 4. NEXUS C-spine ────────────────────────────────────────────────────────────
@CALCS.define("nexus", "NEXUS C-Spine Criteria",
              [flag("midline_cervical_tenderness"), flag("focal_neurologic_deficit"),
               flag("altered_alertness"), flag("intoxication"), flag("distracting_injury")],
              unit="criteria")
def nexus(v):
    return _rule(fired(v), "imaging indicated", "low risk, imaging not required")


# 5-7. Ottawa rules ───────────────────────────────────────────────────────────
@CALCS.define("ottawa_ankle", "Ottawa Ankle Rule",
              [flag("malleolar_zone_pain", required=True),
               flag("lateral_malleolus_tenderness"), flag("medial_malleolus_tenderness"),
               flag("unable_to_bear_weight")], unit="criteria")
def ottawa_ankle(v):
    met = fired({k: v[k] for k in ("lateral_malleolus_tenderness", "medial_malleolus_tenderness",
                                   "unable_to_bear_weight")}) if v["malleolar_zone_pain"] else []
    return _rule(met, "ankle x-ray indicated", "ankle x-ray not indicated")


@CALCS.define("ottawa_knee", "Ottawa Knee Rule",
              [_AGE, flag("fibular_head_tenderness"), flag("isolated_patellar_tenderness"),
               flag("unable_to_flex_90"), flag("unable_to_bear_weight")], unit="criteria")
def ottawa_knee(v):
    met = fired({
        "age_55_or_over": v["age_years"] >= 55,
        "fibular_head_tenderness": v["fibular_head_tenderness"],
        "isolated_patellar_tenderness": v["isolated_patellar_tenderness"],
        "unable_to_flex_90": v["unable_to_flex_90"],
        "unable_to_bear_weight": v["unable_to_bear_weight"],
    })
    return _rule(met, "knee x-ray indicated", "knee x-ray not indicated")


@CALCS.define("ottawa_foot", "Ottawa Foot Rule",
              [flag("midfoot_zone_pain", required=True), flag("fifth_metatarsal_base_tenderness"),
               flag("navicular_tenderness"), flag("unable_to_bear_weight")], unit="criteria")
def ottawa_foot(v):
    met = fired({k: v[k] for k in ("fifth_metatarsal_base_tenderness", "navicular_tenderness",
                                   "unable_to_bear_weight")}) if v["midfoot_zone_pain"] else []
    return _rule(met, "foot x-ray indicated", "foot x-ray not indicated")


# 8. Ottawa SAH ───────────────────────────────────────────────────────────────
@CALCS.define("ottawa_sah", "Ottawa Subarachnoid Hemorrhage Rule",
              [_AGE, flag("neck_pain_or_stiffness"), flag("witnessed_loss_of_consciousness"),
               flag("onset_during_exertion"), flag("thunderclap_onset"), flag("limited_neck_flexion")],
              unit="criteria")
def ottawa_sah(v):
    met = fired({
        "age_40_or_over": v["age_years"] >= 40,
        "neck_pain_or_stiffness": v["neck_pain_or_stiffness"],
        "witnessed_loss_of_consciousness": v["witnessed_loss_of_consciousness"],
        "onset_during_exertion": v["onset_during_exertion"],
        "thunderclap_onset": v["thunderclap_onset"],
        "limited_neck_flexion": v["limited_neck_flexion"],
    })
    return _rule(met, "SAH cannot be ruled out, investigate", "SAH ruled out by rule")


# 9. San Francisco Syncope Rule ───────────────────────────────────────────────
@CALCS.define("sf_syncope", "San Francisco Syncope Rule",
              [flag("chf_history"), num("hematocrit_percent", "%", synonyms=["hct"]),
               flag("abnormal_ecg"), flag("shortness_of_breath"), num("sbp_mm_hg", "mmHg", "pressure")],
              unit="criteria")
def sf_syncope(v):
    met = fired({
        "chf_history": v["chf_history"],
        "hematocrit_below_30": v["hematocrit_percent"] < 30,
        "abnormal_ecg": v["abnormal_ecg"],
        "shortness_of_breath": v["shortness_of_breath"],
        "sbp_below_90": v["sbp_mm_hg"] < 90,
    })
    return _rule(met, "high risk for serious outcome", "low risk for serious outcome")


# 10. Centor (McIsaac) ────────────────────────────────────────────────────────
@CALCS.define("centor", "Centor Score (McIsaac modification)",
              [_AGE, num("temp_c", "°C", "temperature"), flag("cough_absent"),
               flag("tender_anterior_cervical_nodes"), flag("tonsillar_exudate_or_swelling")])
def centor(v):
    age = v["age_years"]
    total = sum([v["temp_c"] > 38, v["cough_absent"], v["tender_anterior_cervical_nodes"],
                 v["tonsillar_exudate_or_swelling"]])
    if 3 <= age <= 14:
        total += 1
    elif age >= 45:
        total -= 1
    if total >= 4:
        advice = "consider empiric antibiotics or rapid strep testing"
    elif total >= 2:
        advice = "rapid strep testing or culture"
    else:
        advice = "no testing or antibiotics needed"
    return scored(total, advice)


# 11. Pediatric Appendicitis Score ────────────────────────────────────────────
@CALCS.define("pas_appendicitis", "Pediatric Appendicitis Score",
              [flag("cough_percussion_hop_tenderness"), flag("anorexia"), num("temp_c", "°C", "temperature"),
               flag("nausea_vomiting"), flag("rlq_tenderness"), num("wbc_10e9_l", "10^9/L", "cells"),
               num("anc_10e9_l", "10^9/L", "cells", synonyms=["absolute_neutrophil_count"]),
               flag("migration_to_rlq")])
def pas_appendicitis(v):
    points = {
        "cough_percussion_hop_tenderness": 2 if v["cough_percussion_hop_tenderness"] else 0,
        "anorexia": 1 if v["anorexia"] else 0,
        "fever": 1 if v["temp_c"] >= 38 else 0,
        "nausea_vomiting": 1 if v["nausea_vomiting"] else 0,
        "rlq_tenderness": 2 if v["rlq_tenderness"] else 0,
        "leukocytosis": 1 if v["wbc_10e9_l"] > 10 else 0,
        "neutrophilia": 1 if v["anc_10e9_l"] > 7.5 else 0,
        "migration": 1 if v["migration_to_rlq"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (4, "equivocal"), (7, "high")])
    return scored(total, f"{risk} likelihood of appendicitis", risk=risk, components=points)


# 12. Alvarado ────────────────────────────────────────────────────────────────
@CALCS.define("alvarado", "Alvarado Score",
              [flag("migration_to_rlq"), flag("anorexia"), flag("nausea_vomiting"), flag("rlq_tenderness"),
               flag("rebound_tenderness"), num("temp_c", "°C", "temperature"),
               num("wbc_10e9_l", "10^9/L", "cells"), num("neutrophil_percent", "%", synonyms=["neutrophils_pct"])])
def alvarado(v):
    points = {
        "migration": 1 if v["migration_to_rlq"] else 0,
        "anorexia": 1 if v["anorexia"] else 0,
        "nausea_vomiting": 1 if v["nausea_vomiting"] else 0,
        "rlq_tenderness": 2 if v["rlq_tenderness"] else 0,
        "rebound": 1 if v["rebound_tenderness"] else 0,
        "elevated_temperature": 1 if v["temp_c"] >= 37.3 else 0,
        "leukocytosis": 2 if v["wbc_10e9_l"] > 10 else 0,
        "left_shift": 1 if v["neutrophil_percent"] > 75 else 0,
    }
    total = sum(points.values())
    likelihood = band(total, [(0, "unlikely"), (5, "equivocal"), (7, "probable"), (9, "very probable")])
    return scored(total, f"appendicitis {likelihood}", likelihood=likelihood, components=points)


# 13. STOP-BANG ───────────────────────────────────────────────────────────────
@CALCS.define("stop_bang", "STOP-BANG (obstructive sleep apnea)",
              [flag("snoring"), flag("tiredness"), flag("observed_apnea"), flag("hypertension"),
               num("bmi", "kg/m²", synonyms=["body_mass_index"]), _AGE,
               num("neck_circumference_cm", "cm", "height"), choice("sex", ["male", "female"])])
def stop_bang(v):
    met = fired({
        "snoring": v["snoring"],
        "tiredness": v["tiredness"],
        "observed_apnea": v["observed_apnea"],
        "pressure": v["hypertension"],
        "bmi_over_35": v["bmi"] > 35,
        "age_over_50": v["age_years"] > 50,
        "neck_over_40cm": v["neck_circumference_cm"] > 40,
        "male": v["sex"] == "male",
    })
    risk = band(len(met), [(0, "low"), (3, "intermediate"), (5, "high")])
    return scored(len(met), f"{risk} risk of OSA", risk=risk, criteria=met)


# 14. Apfel ───────────────────────────────────────────────────────────────────
_APFEL_RISK = ["10%", "21%", "39%", "61%", "79%"]


@CALCS.define("apfel", "Apfel Score (PONV)",
              [choice("sex", ["male", "female"]), flag("non_smoker"), flag("ponv_or_motion_sickness_history"),
               flag("postoperative_opioids")])
def apfel(v):
    total = sum([v["sex"] == "female", v["non_smoker"], v["ponv_or_motion_sickness_history"],
                 v["postoperative_opioids"]])
    return scored(total, f"PONV risk about {_APFEL_RISK[total]}", ponv_risk=_APFEL_RISK[total])


# 15. ARISCAT ─────────────────────────────────────────────────────────────────
_ARISCAT_INCISION = {"peripheral": 0, "upper_abdominal": 15, "intrathoracic": 24}


@CALCS.define("ariscat", "ARISCAT (postoperative pulmonary complications)",
              [_AGE, num("spo2_percent", "%", synonyms=["preop_spo2"]), flag("respiratory_infection_last_month"),
               num("hemoglobin_g_dl", "g/dL", "hemoglobin", synonyms=["hgb", "hb"]),
               choice("incision", list(_ARISCAT_INCISION), synonyms=["surgical_incision"]),
               num("surgery_duration_h", "h", synonyms=["duration_hours"]), flag("emergency_surgery")])
def ariscat(v):
    age, spo2, dur = v["age_years"], v["spo2_percent"], v["surgery_duration_h"]
    points = {
        "age": 16 if age > 80 else (3 if age > 50 else 0),
        "spo2": 0 if spo2 >= 96 else (8 if spo2 > 90 else 24),
        "respiratory_infection": 17 if v["respiratory_infection_last_month"] else 0,
        "anemia": 11 if v["hemoglobin_g_dl"] <= 10 else 0,
        "incision": _ARISCAT_INCISION[v["incision"]],
        "duration": 23 if dur > 3 else (16 if dur >= 2 else 0),
        "emergency": 8 if v["emergency_surgery"] else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (26, "intermediate"), (45, "high")])
    return scored(total, f"{risk} risk of pulmonary complications", risk=risk, components=points)


# ── Thyroid emergencies ─────────────────────────────────────────────────────

# 16. Burch-Wartofsky ─────────────────────────────────────────────────────────
_BW_CNS = {"absent": 0, "agitation": 10, "delirium_psychosis_lethargy": 20, "seizure_or_coma": 30}
_BW_GI = {"absent": 0, "diarrhea_vomiting_pain": 10, "unexplained_jaundice": 20}
_BW_HEART_FAILURE = {"absent": 0, "pedal_edema": 5, "bibasilar_rales": 10, "pulmonary_edema": 15}


@CALCS.define("burch_wartofsky", "Burch-Wartofsky Point Scale (thyroid storm)",
              [num("temp_c", "°C", "temperature", synonyms=["temperature_c"]),
               num("heart_rate_bpm", "/min"),
               choice("cns_effects", list(_BW_CNS), default="absent", synonyms=["cns"]),
               choice("gi_hepatic", list(_BW_GI), default="absent", synonyms=["gi_hepatic_dysfunction"]),
               choice("heart_failure", list(_BW_HEART_FAILURE), default="absent"),
               flag("atrial_fibrillation", synonyms=["afib"]),
               flag("precipitant_present", synonyms=["precipitating_event"])])
def burch_wartofsky(v):
    points = {
        "temperature": steps(v["temp_c"], [(37.2, 0), (37.8, 5), (38.3, 10), (38.9, 15), (39.4, 20), (40.0, 25)], 30),
        "heart_rate": steps(v["heart_rate_bpm"], [(100, 0), (110, 5), (120, 10), (130, 15), (140, 20)], 25),
        "cns": _BW_CNS[v["cns_effects"]],
        "gi_hepatic": _BW_GI[v["gi_hepatic"]],
        "heart_failure": _BW_HEART_FAILURE[v["heart_failure"]],
        "atrial_fibrillation": 10 if v["atrial_fibrillation"] else 0,
        "precipitant": 10 if v["precipitant_present"] else 0,
    }
    total = sum(points.values())
    likelihood = band(total, [(0, "unlikely"), (25, "impending"), (45, "highly suggestive")])
    return scored(total, f"thyroid storm {likelihood}", likelihood=likelihood, components=points)


# 17. Myxedema Coma Score ─────────────────────────────────────────────────────
_MYX_CNS = {"normal": 0, "lethargy": 10, "obtunded": 15, "stupor": 20, "coma_or_seizures": 30}
_MYX_GI = {"none": 0, "anorexia_pain_constipation": 5, "decreased_motility": 15, "paralytic_ileus": 20}


@CALCS.define("myxedema_coma", "Myxedema Coma Diagnostic Score (Popoveniuc)",
              [num("temp_c", "°C", "temperature", synonyms=["temperature_c"]),
               num("heart_rate_bpm", "/min"),
               choice("cns_status", list(_MYX_CNS), default="normal", synonyms=["cns"]),
               choice("gi_findings", list(_MYX_GI), default="none", synonyms=["gi"]),
               flag("precipitating_event"), flag("ecg_changes"), flag("pericardial_or_pleural_effusion"),
               flag("pulmonary_edema"), flag("cardiomegaly"), flag("hypotension"),
               num("sodium_mmol_l", "mmol/L", "electrolyte", required=False),
               num("glucose_mg_dl", "mg/dL", "glucose", required=False),
               num("pao2_mm_hg", "mmHg", "pressure", required=False),
               num("paco2_mm_hg", "mmHg", "pressure", required=False),
               num("egfr_ml_min", "mL/min/1.73m²", required=False, synonyms=["egfr"]),
               flag("decreased_gfr")])
def myxedema_coma(v):
    temp, hr = v["temp_c"], v["heart_rate_bpm"]
    na, glucose = v["sodium_mmol_l"], v["glucose_mg_dl"]
    pao2, paco2, egfr = v["pao2_mm_hg"], v["paco2_mm_hg"], v["egfr_ml_min"]
    points = {
        "temperature": 0 if temp > 36.1 else steps(temp, [(30, 30), (33, 20), (34, 15), (35, 10)], 5),
        "cns": _MYX_CNS[v["cns_status"]],
        "gi": _MYX_GI[v["gi_findings"]],
        "precipitant": 10 if v["precipitating_event"] else 0,
        "bradycardia": steps(hr, [(40, 30), (50, 20), (60, 10)], 0),
        "ecg_changes": 10 if v["ecg_changes"] else 0,
        "effusion": 10 if v["pericardial_or_pleural_effusion"] else 0,
        "pulmonary_edema": 15 if v["pulmonary_edema"] else 0,
        "cardiomegaly": 15 if v["cardiomegaly"] else 0,
        "hypotension": 20 if v["hypotension"] else 0,
    }
    metabolic = {
        "hyponatremia": na is not None and na < 130,
        "hypoglycemia": glucose is not None and glucose < 60,
        "hypoxemia": pao2 is not None and pao2 < 60,
        "hypercarbia": paco2 is not None and paco2 > 45,
        "decreased_gfr": v["decreased_gfr"] or (egfr is not None and egfr < 60),
    }
    points.update({name: 10 if hit else 0 for name, hit in metabolic.items()})
    total = sum(points.values())
    likelihood = band(total, [(0, "unlikely"), (25, "suggestive"), (60, "highly suggestive")])
    return scored(total, f"myxedema coma {likelihood}", likelihood=likelihood, components=points)
