"""ICU severity, sepsis and early-warning scores."""

import math

from ._base import CalculatorSet, band, choice, fired, flag, num, ratio, scored, steps, upto

CALCS = CalculatorSet("critical_care")
register_all = CALCS.register_all

_AGE = num("age_years", "years")
_HR = num("heart_rate_bpm", "/min")
_RR = num("respiratory_rate", "/min", synonyms=["respiratory_rate_per_min"])
_SBP = num("sbp_mm_hg", "mmHg", "pressure")
_TEMP = num("temp_c", "°C", "temperature", synonyms=["temperature_c"])
_GCS = num("gcs_total", "", synonyms=["glasgow_coma_scale", "gcs_score"])


# 1. SIRS ─────────────────────────────────────────────────────────────────────
@CALCS.define("sirs", "SIRS Criteria",
              [_TEMP, _HR, _RR, num("paco2_mm_hg", "mmHg", "pressure", required=False),
               num("wbc_10e9_l", "10^9/L", "cells", required=False), flag("bands_over_10_percent")],
              unit="criteria")
def sirs(v):
    wbc = v["wbc_10e9_l"]
    paco2 = v["paco2_mm_hg"]
    criteria = {
        "temperature": v["temp_c"] > 38 or v["temp_c"] < 36,
        "heart_rate_over_90": v["heart_rate_bpm"] > 90,
        "respiratory": v["respiratory_rate"] > 20 or (paco2 is not None and paco2 < 32),
        "white_cells": (wbc is not None and (wbc > 12 or wbc < 4)) or v["bands_over_10_percent"],
    }
    met = fired(criteria)
    positive = len(met) >= 2
    return scored(len(met), "SIRS positive" if positive else "SIRS negative", sirs_positive=positive,
                  criteria=met)


# 2. qSOFA ────────────────────────────────────────────────────────────────────
@CALCS.define("qsofa", "qSOFA", [_RR, _SBP, flag("altered_mentation", synonyms=["altered_mental_status"]),
                                 num("gcs_total", "", required=False)])
def qsofa(v):
    gcs = v["gcs_total"]
    criteria = {
        "respiratory_rate_22_or_over": v["respiratory_rate"] >= 22,
        "sbp_100_or_under": v["sbp_mm_hg"] <= 100,
        "altered_mentation": v["altered_mentation"] or (gcs is not None and gcs < 15),
    }
    total = len(fired(criteria))
    risk = "high" if total >= 2 else "low"
    return scored(total, f"{risk} risk of poor outcome", risk=risk, criteria=fired(criteria))


# 3. SOFA ─────────────────────────────────────────────────────────────────────
@CALCS.define("sofa", "SOFA Score",
              [num("pao2_mm_hg", "mmHg", "pressure"), num("fio2_percent", "%", "fio2"),
               flag("mechanical_ventilation", synonyms=["on_mechanical_ventilation", "mech_vent"]),
               num("platelets_10e9_l", "10^9/L", "cells"), _GCS,
               num("bilirubin_mg_dl", "mg/dL", "bilirubin"), num("map_mm_hg", "mmHg", "pressure"),
               num("dopamine_mcg_kg_min", "mcg/kg/min", default=0.0),
               num("dobutamine_mcg_kg_min", "mcg/kg/min", default=0.0),
               num("epinephrine_mcg_kg_min", "mcg/kg/min", default=0.0),
               num("norepinephrine_mcg_kg_min", "mcg/kg/min", default=0.0),
               num("creatinine_mg_dl", "mg/dL", "creatinine"),
               num("urine_output_ml_day", "mL/day", required=False, synonyms=["urine_output"])])
def sofa(v):
    pf = ratio(v["pao2_mm_hg"], v["fio2_percent"] / 100)
    if pf is None:
        return None
    vent = v["mechanical_ventilation"]
    if pf < 100 and vent:
        resp = 4
    elif pf < 200 and vent:
        resp = 3
    elif pf < 300:
        resp = 2
    elif pf < 400:
        resp = 1
    else:
        resp = 0

    plt = v["platelets_10e9_l"]
    coag = steps(plt, [(20, 4), (50, 3), (100, 2), (150, 1)], 0)

    bili = v["bilirubin_mg_dl"]
    liver = steps(bili, [(1.2, 0), (2.0, 1), (6.0, 2), (12.0, 3)], 4)

    dopa, dobu = v["dopamine_mcg_kg_min"], v["dobutamine_mcg_kg_min"]
    epi, norepi = v["epinephrine_mcg_kg_min"], v["norepinephrine_mcg_kg_min"]
    if dopa > 15 or epi > 0.1 or norepi > 0.1:
        cardio = 4
    elif dopa > 5 or epi > 0 or norepi > 0:
        cardio = 3
    elif dopa > 0 or dobu > 0:
        cardio = 2
    elif v["map_mm_hg"] < 70:
        cardio = 1
    else:
        cardio = 0

    gcs = v["gcs_total"]
    cns = steps(gcs, [(6, 4), (10, 3), (13, 2), (15, 1)], 0)

    cr, uo = v["creatinine_mg_dl"], v["urine_output_ml_day"]
    renal = steps(cr, [(1.2, 0), (2.0, 1), (3.5, 2), (5.0, 3)], 4)
    if uo is not None:
        renal = max(renal, 4 if uo < 200 else (3 if uo < 500 else 0))

    components = {"respiration": resp, "coagulation": coag, "liver": liver, "cardiovascular": cardio,
                  "cns": cns, "renal": renal}
    total = sum(components.values())
    return scored(total, components=components, pf_ratio=pf)


# 4. NEWS2 ────────────────────────────────────────────────────────────────────
@CALCS.define("news2", "NEWS2",
              [_RR, num("spo2_percent", "%", synonyms=["oxygen_saturation"]), flag("supplemental_oxygen"),
               _TEMP, _SBP, _HR, flag("new_confusion_or_not_alert", synonyms=["avpu_not_alert"])])
def news2(v):
    points = {
        "respiratory_rate": upto(v["respiratory_rate"], [(8, 3), (11, 1), (20, 0), (24, 2)], 3),
        "spo2": upto(v["spo2_percent"], [(91, 3), (93, 2), (95, 1)], 0),
        "supplemental_oxygen": 2 if v["supplemental_oxygen"] else 0,
        "temperature": upto(v["temp_c"], [(35, 3), (36, 1), (38, 0), (39, 1)], 2),
        "sbp": upto(v["sbp_mm_hg"], [(90, 3), (100, 2), (110, 1), (219, 0)], 3),
        "heart_rate": upto(v["heart_rate_bpm"], [(40, 3), (50, 1), (90, 0), (110, 1), (130, 2)], 3),
        "consciousness": 3 if v["new_confusion_or_not_alert"] else 0,
    }
    total = sum(points.values())
    if total >= 7:
        risk = "high"
    elif total >= 5:
        risk = "medium"
    elif 3 in points.values():
        risk = "low-medium"
    else:
        risk = "low"
    return scored(total, f"{risk} clinical risk", risk=risk, components=points)


# 5. OASIS ────────────────────────────────────────────────────────────────────
_OASIS_BINS = {
    "pre_icu_los_hours": ([(0.17, 5), (4.95, 3), (24.01, 0), (311.81, 2)], 1),
    "age_years": ([(24, 0), (54, 3), (78, 6), (90, 9)], 7),
    "gcs_total": ([(8, 10), (14, 4), (15, 3)], 0),
    "heart_rate_bpm": ([(33, 4), (89, 0), (107, 1), (126, 3)], 6),
    "map_mm_hg": ([(20.65, 4), (51, 3), (61.33, 2), (143.45, 0)], 3),
    "respiratory_rate": ([(6, 10), (13, 1), (23, 0), (31, 1), (45, 6)], 9),
    "temp_c": ([(33.22, 3), (35.94, 4), (36.40, 2), (36.89, 0), (39.89, 2)], 6),
    "urine_output_ml_day": ([(671.09, 10), (1427, 5), (2544, 1), (6896.81, 0)], 8),
}


@CALCS.define("oasis", "OASIS (Oxford Acute Severity of Illness Score)",
              [num("pre_icu_los_hours", "h", synonyms=["preicu_los_hours"]), _AGE, _GCS, _HR,
               num("map_mm_hg", "mmHg", "pressure"), _RR, _TEMP,
               num("urine_output_ml_day", "mL/day", synonyms=["urine_output"]),
               flag("mechanical_ventilation", synonyms=["mech_vent"]), flag("elective_surgery")])
def oasis(v):
    points = {key: steps(v[key], bins, above) for key, (bins, above) in _OASIS_BINS.items()}
    points["mechanical_ventilation"] = 9 if v["mechanical_ventilation"] else 0
    points["elective_surgery"] = 0 if v["elective_surgery"] else 6
    total = sum(points.values())
    mortality = 1 / (1 + math.exp(-(-6.1746 + 0.1275 * total)))
    return scored(total, f"predicted in-hospital mortality {mortality:.1%}", mortality=mortality,
                  components=points)


# 6. SAPS II ──────────────────────────────────────────────────────────────────
_SAPS_BINS = {
    "age_years": ([(40, 0), (60, 7), (70, 12), (75, 15), (80, 16)], 18),
    "heart_rate_bpm": ([(40, 11), (70, 2), (120, 0), (160, 4)], 7),
    "sbp_mm_hg": ([(70, 13), (100, 5), (200, 0)], 2),
    "urine_output_l_day": ([(0.5, 11), (1.0, 4)], 0),
    "bun_mg_dl": ([(28, 0), (84, 6)], 10),
    "wbc_10e9_l": ([(1, 12), (20, 0)], 3),
    "potassium_mmol_l": ([(3, 3), (5, 0)], 3),
    "sodium_mmol_l": ([(125, 5), (145, 0)], 1),
    "bicarbonate_mmol_l": ([(15, 6), (20, 3)], 0),
    "bilirubin_mg_dl": ([(4, 0), (6, 4)], 9),
    "gcs_total": ([(6, 26), (9, 13), (11, 7), (14, 5)], 0),
}
_SAPS_ADMISSION = {"scheduled_surgical": 0, "medical": 6, "unscheduled_surgical": 8}


@CALCS.define("saps_ii", "SAPS II",
              [_AGE, _HR, _SBP, _TEMP,
               num("pao2_mm_hg", "mmHg", "pressure", required=False),
               num("fio2_percent", "%", "fio2", required=False),
               flag("mechanical_ventilation", synonyms=["mech_vent", "cpap"]),
               num("urine_output_l_day", "L/day", synonyms=["urine_output_l"]),
               num("bun_mg_dl", "mg/dL", "bun"), num("wbc_10e9_l", "10^9/L", "cells"),
               num("potassium_mmol_l", "mmol/L", "electrolyte"), num("sodium_mmol_l", "mmol/L", "electrolyte"),
               num("bicarbonate_mmol_l", "mmol/L", "electrolyte"), num("bilirubin_mg_dl", "mg/dL", "bilirubin"),
               _GCS, flag("metastatic_cancer"), flag("hematologic_malignancy"), flag("aids"),
               choice("admission_type", list(_SAPS_ADMISSION))])
def saps_ii(v):
    points = {key: steps(v[key], bins, above) for key, (bins, above) in _SAPS_BINS.items()}
    points["temperature"] = 3 if v["temp_c"] >= 39 else 0
    points["pf_ratio"] = 0
    needs = []
    if v["mechanical_ventilation"]:
        if v["pao2_mm_hg"] is None or v["fio2_percent"] is None:
            needs.append("needs: pao2_mm_hg and fio2_percent for ventilated patients")
        else:
            pf = ratio(v["pao2_mm_hg"], v["fio2_percent"] / 100)
            if pf is None:
                return None
            points["pf_ratio"] = steps(pf, [(100, 11), (200, 9)], 6)
    points["chronic_disease"] = 17 if v["aids"] else (
        10 if v["hematologic_malignancy"] else (9 if v["metastatic_cancer"] else 0))
    points["admission_type"] = _SAPS_ADMISSION[v["admission_type"]]
    total = sum(points.values())
    logit = -7.7631 + 0.0737 * total + 0.9971 * math.log(total + 1)
    mortality = 1 / (1 + math.exp(-logit))
    return scored(total, f"predicted mortality {mortality:.1%}", *needs, mortality=mortality, components=points)


# 7. Glasgow Coma Scale ───────────────────────────────────────────────────────
@CALCS.define("gcs", "Glasgow Coma Scale",
              [num("eye_response", "", synonyms=["gcs_eye", "eye"]),
               num("verbal_response", "", synonyms=["gcs_verbal", "verbal"]),
               num("motor_response", "", synonyms=["gcs_motor", "motor"])])
def gcs(v):
    eye, verbal, motor = v["eye_response"], v["verbal_response"], v["motor_response"]
    if not (1 <= eye <= 4 and 1 <= verbal <= 5 and 1 <= motor <= 6):
        return None
    total = eye + verbal + motor
    severity = band(total, [(3, "severe"), (9, "moderate"), (13, "mild")])
    return scored(total, f"{severity} brain injury", severity=severity)


# 8. qPitt ────────────────────────────────────────────────────────────────────
@CALCS.define("qpitt", "Quick Pitt Bacteremia Score",
              [flag("temperature_abnormal", synonyms=["temp_abnormal"]),
               num("temp_c", "°C", "temperature", required=False),
               flag("hypotension", synonyms=["hypotension_or_vasopressors"]),
               num("sbp_mm_hg", "mmHg", "pressure", required=False),
               flag("respiratory_failure", synonyms=["mechanical_ventilation"]),
               num("respiratory_rate", "/min", required=False),
               flag("cardiac_arrest"), flag("altered_mental_status", synonyms=["altered_mentation"])])
def qpitt(v):
    temp, sbp, rr = v["temp_c"], v["sbp_mm_hg"], v["respiratory_rate"]
    criteria = {
        "temperature": v["temperature_abnormal"] or (temp is not None and (temp < 36 or temp >= 39)),
        "hypotension": v["hypotension"] or (sbp is not None and sbp < 90),
        "respiratory": v["respiratory_failure"] or (rr is not None and rr >= 25),
        "cardiac_arrest": v["cardiac_arrest"],
        "altered_mental_status": v["altered_mental_status"],
    }
    total = len(fired(criteria))
    risk = "high" if total >= 2 else "low"
    return scored(total, f"{risk} mortality risk", risk_band=risk, criteria=fired(criteria))


# 9. Lactate Clearance ────────────────────────────────────────────────────────
@CALCS.define("lactate_clearance", "Lactate Clearance",
              [num("initial_lactate_mmol_l", "mmol/L", "lactate", synonyms=["lactate_initial"]),
               num("repeat_lactate_mmol_l", "mmol/L", "lactate", synonyms=["lactate_repeat"])],
              unit="%", precision=1)
def lactate_clearance(v):
    cleared = ratio(v["initial_lactate_mmol_l"] - v["repeat_lactate_mmol_l"], v["initial_lactate_mmol_l"])
    if cleared is None:
        return None
    pct = cleared * 100
    return scored(pct, "adequate clearance" if pct >= 10 else "inadequate clearance")


# 10. Braden Scale ────────────────────────────────────────────────────────────
_BRADEN_RANGES = {"sensory_perception": 4, "moisture": 4, "activity": 4, "mobility": 4, "nutrition": 4,
                  "friction_shear": 3}


@CALCS.define("braden", "Braden Scale (pressure injury risk)", [num(k, "") for k in _BRADEN_RANGES])
def braden(v):
    for key, top in _BRADEN_RANGES.items():
        if not 1 <= v[key] <= top:
            return None
    total = sum(v[k] for k in _BRADEN_RANGES)
    risk = band(total, [(0, "very high"), (10, "high"), (13, "moderate"), (15, "mild"), (19, "no")])
    return scored(total, f"{risk} risk", risk=risk)


# 11. mNUTRIC ─────────────────────────────────────────────────────────────────
@CALCS.define("nutric_simplified", "Modified NUTRIC Score",
              [_AGE, num("apache_ii", "", synonyms=["apache2"]), num("sofa_total", "", synonyms=["sofa"]),
               num("comorbidity_count", "", synonyms=["comorbidities"]),
               num("days_hospital_to_icu", "days", synonyms=["hospital_days_before_icu"])])
def nutric_simplified(v):
    age, apache, sofa_total = v["age_years"], v["apache_ii"], v["sofa_total"]
    points = {
        "age": 2 if age >= 75 else (1 if age >= 50 else 0),
        "apache_ii": steps(apache, [(15, 0), (20, 1), (28, 2)], 3),
        "sofa": steps(sofa_total, [(6, 0), (10, 1)], 2),
        "comorbidities": 1 if v["comorbidity_count"] >= 2 else 0,
        "days_hospital_to_icu": 1 if v["days_hospital_to_icu"] >= 1 else 0,
    }
    total = sum(points.values())
    risk = "high" if total >= 5 else "low"
    return scored(total, f"{risk} nutrition risk", risk=risk, components=points)


# 12. DKA Severity ────────────────────────────────────────────────────────────
@CALCS.define("dka_severity", "DKA Severity (ADA)",
              [num("glucose_mg_dl", "mg/dL", "glucose"), num("ph", "", synonyms=["arterial_ph"]),
               num("bicarbonate_mmol_l", "mmol/L", "electrolyte"), flag("stupor_or_coma")],
              unit="grade")
def dka_severity(v):
    ph, hco3 = v["ph"], v["bicarbonate_mmol_l"]
    if v["glucose_mg_dl"] <= 250:
        grade = 0
    elif ph < 7.0 or hco3 < 10 or v["stupor_or_coma"]:
        grade = 3
    elif ph < 7.25 or hco3 < 15:
        grade = 2
    elif ph <= 7.30 or hco3 <= 18:
        grade = 1
    else:
        grade = 0
    severity = ["DKA criteria not met", "mild DKA", "moderate DKA", "severe DKA"][grade]
    return scored(grade, severity, severity=severity)


# 13. APACHE II ───────────────────────────────────────────────────────────────
_APACHE_BINS = {
    "temp_c": ([(30, 4), (32, 3), (34, 2), (36, 1), (38.5, 0), (39, 1), (41, 3)], 4),
    "map_mm_hg": ([(50, 4), (70, 2), (110, 0), (130, 2), (160, 3)], 4),
    "heart_rate_bpm": ([(40, 4), (55, 3), (70, 2), (110, 0), (140, 2), (180, 3)], 4),
    "respiratory_rate": ([(6, 4), (10, 2), (12, 1), (25, 0), (35, 1), (50, 3)], 4),
    "ph": ([(7.15, 4), (7.25, 3), (7.33, 2), (7.5, 0), (7.6, 1), (7.7, 3)], 4),
    "sodium_mmol_l": ([(111, 4), (120, 3), (130, 2), (150, 0), (155, 1), (160, 2), (180, 3)], 4),
    "potassium_mmol_l": ([(2.5, 4), (3.0, 2), (3.5, 1), (5.5, 0), (6.0, 1), (7.0, 3)], 4),
    "hematocrit_percent": ([(20, 4), (30, 2), (46, 0), (50, 1), (60, 2)], 4),
    "wbc_10e9_l": ([(1, 4), (3, 2), (15, 0), (20, 1), (40, 2)], 4),
}
_APACHE_ADMISSION = ["nonoperative", "emergency_postop", "elective_postop"]


def _apache_oxygenation(v):
    """Oxygenation points and a note naming any missing input."""
    fio2 = v["fio2_percent"]
    if fio2 < 50:
        pao2 = v["pao2_mm_hg"]
        if pao2 < 55:
            return 4, ""
        if pao2 <= 60:
            return 3, ""
        return (1 if pao2 <= 70 else 0), ""
    gradient = v["aa_gradient_mm_hg"]
    if gradient is None:
        if v["paco2_mm_hg"] is None:
            return 0, "needs: paco2_mm_hg or aa_gradient_mm_hg when FiO2 is 50% or more"
        gradient = (760 - 47) * fio2 / 100 - v["paco2_mm_hg"] / 0.8 - v["pao2_mm_hg"]
    return steps(gradient, [(200, 0), (350, 2), (500, 3)], 4), ""


@CALCS.define("apache_ii", "APACHE II",
              [_AGE, _TEMP, num("map_mm_hg", "mmHg", "pressure"), _HR, _RR,
               num("fio2_percent", "%", "fio2"), num("pao2_mm_hg", "mmHg", "pressure"),
               num("paco2_mm_hg", "mmHg", "pressure", required=False),
               num("aa_gradient_mm_hg", "mmHg", "pressure", required=False, synonyms=["aa_gradient"]),
               num("ph", "", synonyms=["arterial_ph"]),
               num("sodium_mmol_l", "mmol/L", "electrolyte"), num("potassium_mmol_l", "mmol/L", "electrolyte"),
               num("creatinine_mg_dl", "mg/dL", "creatinine"), flag("acute_renal_failure", synonyms=["aki"]),
               num("hematocrit_percent", "%"), num("wbc_10e9_l", "10^9/L", "cells"), _GCS,
               flag("severe_organ_insufficiency", synonyms=["immunocompromised", "chronic_health"]),
               choice("admission_category", _APACHE_ADMISSION, default="nonoperative")])
def apache_ii(v):
    gcs_total = v["gcs_total"]
    if not 3 <= gcs_total <= 15:
        return None
    points = {key: steps(v[key], bins, above) for key, (bins, above) in _APACHE_BINS.items()}
    points["oxygenation"], needs = _apache_oxygenation(v)
    creatinine = steps(v["creatinine_mg_dl"], [(0.6, 2), (1.5, 0), (2.0, 2), (3.5, 3)], 4)
    points["creatinine"] = creatinine * 2 if v["acute_renal_failure"] else creatinine
    points["gcs"] = int(15 - round(gcs_total))
    acute_physiology = sum(points.values())

    age_points = steps(v["age_years"], [(45, 0), (55, 2), (65, 3), (75, 5)], 6)
    chronic_points = 0
    if v["severe_organ_insufficiency"]:
        chronic_points = 2 if v["admission_category"] == "elective_postop" else 5
    total = acute_physiology + age_points + chronic_points
    return scored(total, needs, acute_physiology_points=acute_physiology, age_points=age_points,
                  chronic_health_points=chronic_points, components=points)
