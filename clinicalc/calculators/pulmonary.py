"""Oxygenation, ventilation and pneumonia severity calculators."""

from typing import Optional

from ._base import CalculatorSet, _clamp, band, choice, fired, flag, num, ratio, scored

CALCS = CalculatorSet("pulmonary")
register_all = CALCS.register_all

_AGE = num("age_years", "years")
_FIO2 = num("fio2_percent", "%", "fio2", synonyms=["fio2_pct"])
_PAO2 = num("pao2_mm_hg", "mmHg", "pressure", synonyms=["pao2_mmhg"])
_PACO2 = num("paco2_mm_hg", "mmHg", "pressure", synonyms=["paco2_mmhg"])
_SPO2 = num("spo2_percent", "%", synonyms=["oxygen_saturation", "sao2_percent"])
_RR = num("respiratory_rate", "/min", synonyms=["respiratory_rate_per_min"])
_SBP = num("sbp_mm_hg", "mmHg", "pressure")
_HR = num("heart_rate_bpm", "/min")
_PEEP = num("peep_cm_h2o", "cmH2O", synonyms=["peep"])
_VT = num("tidal_volume_ml", "mL", synonyms=["vt_ml", "tidal_volume"])
_MAWP = num("mean_airway_pressure_cm_h2o", "cmH2O", synonyms=["mean_airway_pressure", "paw"])


def pf_value(pao2: float, fio2_percent: float) -> Optional[float]:
    return ratio(pao2, fio2_percent / 100)


def _berlin(pf: float) -> str:
    if pf <= 100:
        return "severe"
    if pf <= 200:
        return "moderate"
    if pf <= 300:
        return "mild"
    return "none"


# 1. A-a Gradient ─────────────────────────────────────────────────────────────
@CALCS.define("aa_gradient", "Alveolar-arterial O2 Gradient",
              [num("age_years", "years", required=False), _FIO2, _PAO2, _PACO2,
               num("patm_mm_hg", "mmHg", "pressure", default=760.0, synonyms=["barometric_pressure"])],
              unit="mmHg", precision=2)
def aa_gradient(v):
    alveolar = (v["patm_mm_hg"] - 47) * v["fio2_percent"] / 100 - v["paco2_mm_hg"] / 0.8
    aagrad = alveolar - v["pao2_mm_hg"]
    expected = (v["age_years"] + 10) / 4 if v["age_years"] is not None else None
    note = ""
    if expected is not None:
        note = "elevated A-a gradient" if aagrad > expected else "A-a gradient within expected range"
    return scored(aagrad, note, alveolar_po2=alveolar, aagrad=aagrad, expected_normal=expected)


# 2. P/F Ratio ────────────────────────────────────────────────────────────────
@CALCS.define("pf_ratio", "PaO2/FiO2 Ratio", [_PAO2, _FIO2], unit="mmHg", precision=0)
def pf_ratio(v):
    pf = pf_value(v["pao2_mm_hg"], v["fio2_percent"])
    if pf is None:
        return None
    severity = _berlin(pf)
    return scored(pf, "" if severity == "none" else f"{severity} hypoxemia (Berlin range)", severity=severity)


# 3. S/F Ratio ────────────────────────────────────────────────────────────────
@CALCS.define("sf_ratio", "SpO2/FiO2 Ratio", [_SPO2, _FIO2], unit="", precision=0)
def sf_ratio(v):
    sf = ratio(v["spo2_percent"], v["fio2_percent"] / 100)
    if sf is None:
        return None
    return scored(sf, "S/F consistent with ARDS-range hypoxemia" if sf <= 315 else "")


# 4. Oxygenation Index ────────────────────────────────────────────────────────
@CALCS.define("oxygenation_index", "Oxygenation Index", [_FIO2, _MAWP, _PAO2], unit="", precision=1)
def oxygenation_index(v):
    oi = ratio(v["fio2_percent"] * v["mean_airway_pressure_cm_h2o"], v["pao2_mm_hg"])
    if oi is None:
        return None
    severity = band(oi, [(0, "none"), (4, "mild"), (8, "moderate"), (16, "severe")])
    return scored(oi, f"{severity} (PARDS)" if severity != "none" else "", severity=severity)


# 5. Oxygen Saturation Index ──────────────────────────────────────────────────
@CALCS.define("oxygen_saturation_index", "Oxygen Saturation Index", [_FIO2, _MAWP, _SPO2], unit="", precision=1)
def oxygen_saturation_index(v):
    osi = ratio(v["fio2_percent"] * v["mean_airway_pressure_cm_h2o"], v["spo2_percent"])
    if osi is None:
        return None
    severity = band(osi, [(0, "none"), (5, "mild"), (7.5, "moderate"), (12.3, "severe")])
    return scored(osi, severity=severity)


# 6. ARDS Berlin Definition ───────────────────────────────────────────────────
@CALCS.define("ards_berlin", "ARDS Severity (Berlin)",
              [_PAO2, _FIO2, _PEEP, flag("acute_onset_within_1wk"), flag("bilateral_opacities"),
               flag("not_explained_by_cardiac_failure")],
              unit="grade")
def ards_berlin(v):
    pf = pf_value(v["pao2_mm_hg"], v["fio2_percent"])
    if pf is None:
        return None
    unmet = fired({
        "acute_onset_within_1wk": not v["acute_onset_within_1wk"],
        "bilateral_opacities": not v["bilateral_opacities"],
        "not_explained_by_cardiac_failure": not v["not_explained_by_cardiac_failure"],
        "peep_5_or_over": v["peep_cm_h2o"] < 5,
    })
    severity = _berlin(pf) if not unmet else "none"
    grade = {"none": 0, "mild": 1, "moderate": 2, "severe": 3}[severity]
    note = f"{severity} ARDS" if grade else "ARDS criteria not met"
    return scored(grade, note, severity=severity, pf_ratio=pf, failed_criteria=unmet)


# 7. Murray Lung Injury Score ─────────────────────────────────────────────────
def _murray_pf(pf: float) -> int:
    if pf >= 300:
        return 0
    if pf >= 225:
        return 1
    if pf >= 175:
        return 2
    if pf >= 100:
        return 3
    return 4


def _murray_peep(peep: float) -> int:
    if peep <= 5:
        return 0
    if peep <= 8:
        return 1
    if peep <= 11:
        return 2
    if peep <= 14:
        return 3
    return 4


def _murray_compliance(c: float) -> int:
    if c >= 80:
        return 0
    if c >= 60:
        return 1
    if c >= 40:
        return 2
    if c >= 20:
        return 3
    return 4


@CALCS.define("murray_lis", "Murray Lung Injury Score",
              [num("cxr_quadrants", "quadrants", required=False, synonyms=["cxr_quadrants_involved"]),
               num("pao2_mm_hg", "mmHg", "pressure", required=False),
               num("fio2_percent", "%", "fio2", required=False),
               num("peep_cm_h2o", "cmH2O", required=False, synonyms=["peep"]),
               num("compliance_ml_cm_h2o", "mL/cmH2O", required=False, synonyms=["compliance"])],
              unit="score", precision=2)
def murray_lis(v):
    components = {}
    needs = []
    if v["cxr_quadrants"] is not None:
        components["cxr"] = int(_clamp(round(v["cxr_quadrants"]), 0, 4))
    else:
        needs.append("cxr_quadrants")
    pf = None
    if v["pao2_mm_hg"] is not None and v["fio2_percent"] is not None:
        pf = pf_value(v["pao2_mm_hg"], v["fio2_percent"])
    if pf is not None:
        components["pf_ratio"] = _murray_pf(pf)
    else:
        needs.append("pao2_mm_hg/fio2_percent")
    if v["peep_cm_h2o"] is not None:
        components["peep"] = _murray_peep(v["peep_cm_h2o"])
    else:
        needs.append("peep_cm_h2o")
    if v["compliance_ml_cm_h2o"] is not None:
        components["compliance"] = _murray_compliance(v["compliance_ml_cm_h2o"])
    else:
        needs.append("compliance_ml_cm_h2o")
    if not components:
        return None
    score = sum(components.values()) / len(components)
    if score == 0:
        note = "no lung injury"
    elif score <= 2.5:
        note = "mild to moderate lung injury"
    else:
        note = "severe lung injury"
    notes = [note] + [f"needs: {n}" for n in needs]
    return scored(score, *notes, components=components, components_used=len(components))


# 8. Static Compliance ────────────────────────────────────────────────────────
@CALCS.define("static_compliance", "Static Respiratory Compliance",
              [_VT, num("plateau_pressure_cm_h2o", "cmH2O", synonyms=["pplat", "plateau_pressure"]), _PEEP],
              unit="mL/cmH2O", precision=1)
def static_compliance(v):
    c = ratio(v["tidal_volume_ml"], v["plateau_pressure_cm_h2o"] - v["peep_cm_h2o"])
    if c is None:
        return None
    return scored(c, "reduced compliance" if c < 40 else "")


# 9. Dynamic Compliance ───────────────────────────────────────────────────────
@CALCS.define("dynamic_compliance", "Dynamic Respiratory Compliance",
              [_VT, num("peak_pressure_cm_h2o", "cmH2O", synonyms=["pip", "peak_inspiratory_pressure"]), _PEEP],
              unit="mL/cmH2O", precision=1)
def dynamic_compliance(v):
    c = ratio(v["tidal_volume_ml"], v["peak_pressure_cm_h2o"] - v["peep_cm_h2o"])
    if c is None:
        return None
    return scored(c)


# 10. Driving Pressure ────────────────────────────────────────────────────────
@CALCS.define("driving_pressure", "Driving Pressure",
              [num("plateau_pressure_cm_h2o", "cmH2O", synonyms=["pplat", "plateau_pressure"]), _PEEP],
              unit="cmH2O", precision=0)
def driving_pressure(v):
    dp = v["plateau_pressure_cm_h2o"] - v["peep_cm_h2o"]
    return scored(dp, "above 15 cmH2O: associated with higher mortality" if dp > 15 else "")


# 11. Ventilatory Ratio ───────────────────────────────────────────────────────
def predicted_body_weight(sex: str, height_cm: float) -> float:
    base = 50.0 if sex == "male" else 45.5
    return base + 0.91 * (height_cm - 152.4)


@CALCS.define("ventilatory_ratio", "Ventilatory Ratio",
              [num("minute_ventilation_l_min", "L/min", synonyms=["minute_ventilation", "ve"]), _PACO2,
               choice("sex", ["male", "female"], synonyms=["gender"]), num("height_cm", "cm", "height")],
              unit="", precision=2)
def ventilatory_ratio(v):
    pbw = predicted_body_weight(v["sex"], v["height_cm"])
    vr = ratio(v["minute_ventilation_l_min"] * 1000 * v["paco2_mm_hg"], pbw * 100 * 37.5)
    if vr is None:
        return None
    return scored(vr, "increased dead space" if vr > 2 else "", predicted_body_weight=pbw)


# 12. ROX Index ───────────────────────────────────────────────────────────────
@CALCS.define("rox_index", "ROX Index (HFNC)", [_SPO2, _FIO2, _RR], unit="", precision=2)
def rox_index(v):
    sf = ratio(v["spo2_percent"], v["fio2_percent"] / 100)
    if sf is None:
        return None
    rox = ratio(sf, v["respiratory_rate"])
    if rox is None:
        return None
    if rox >= 4.88:
        note = "low risk of HFNC failure"
    elif rox < 3.85:
        note = "high risk of HFNC failure"
    else:
        note = "indeterminate"
    return scored(rox, note)


# 13. Rapid Shallow Breathing Index ───────────────────────────────────────────
@CALCS.define("rsbi", "Rapid Shallow Breathing Index", [_RR, _VT], unit="breaths/min/L", precision=0)
def rsbi(v):
    value = ratio(v["respiratory_rate"], v["tidal_volume_ml"] / 1000)
    if value is None:
        return None
    return scored(value, "weaning likely to succeed" if value < 105 else "weaning likely to fail")


# 14. CURB-65 ─────────────────────────────────────────────────────────────────
@CALCS.define("curb65", "CURB-65",
              [flag("confusion"), num("bun_mg_dl", "mg/dL", "bun"), _RR, _SBP,
               num("dbp_mm_hg", "mmHg", "pressure"), _AGE])
def curb65(v):
    criteria = {
        "confusion": v["confusion"],
        "bun_over_19": v["bun_mg_dl"] > 19,
        "respiratory_rate_30_or_over": v["respiratory_rate"] >= 30,
        "low_blood_pressure": v["sbp_mm_hg"] < 90 or v["dbp_mm_hg"] <= 60,
        "age_65_or_over": v["age_years"] >= 65,
    }
    total = len(fired(criteria))
    risk = band(total, [(0, "low"), (2, "moderate"), (3, "high")])
    return scored(total, f"{risk} severity", risk=risk, criteria=fired(criteria))


# 15. CRB-65 ──────────────────────────────────────────────────────────────────
@CALCS.define("crb65", "CRB-65",
              [flag("confusion"), _RR, _SBP, num("dbp_mm_hg", "mmHg", "pressure"), _AGE])
def crb65(v):
    criteria = {
        "confusion": v["confusion"],
        "respiratory_rate_30_or_over": v["respiratory_rate"] >= 30,
        "low_blood_pressure": v["sbp_mm_hg"] < 90 or v["dbp_mm_hg"] <= 60,
        "age_65_or_over": v["age_years"] >= 65,
    }
    total = len(fired(criteria))
    risk = band(total, [(0, "low"), (1, "moderate"), (3, "high")])
    return scored(total, f"{risk} severity", risk=risk, criteria=fired(criteria))


# 16. Pneumonia Severity Index ────────────────────────────────────────────────
_PSI_COMORBID = {"neoplastic_disease": 30, "liver_disease": 20, "chf": 10, "cerebrovascular_disease": 10,
                 "renal_disease": 10}


@CALCS.define("psi", "Pneumonia Severity Index (PORT)",
              [_AGE, choice("sex", ["male", "female"], synonyms=["gender"]), flag("nursing_home_resident")]
              + [flag(k) for k in _PSI_COMORBID]
              + [flag("altered_mental_status"), _RR, _SBP, num("temp_c", "°C", "temperature"), _HR,
                 num("ph", "", required=False, synonyms=["arterial_ph"]),
                 num("bun_mg_dl", "mg/dL", "bun", required=False),
                 num("sodium_mmol_l", "mmol/L", "electrolyte", required=False),
                 num("glucose_mg_dl", "mg/dL", "glucose", required=False),
                 num("hematocrit_percent", "%", required=False),
                 num("pao2_mm_hg", "mmHg", "pressure", required=False),
                 num("sao2_percent", "%", required=False, synonyms=["spo2_percent"]),
                 flag("pleural_effusion")])
def psi(v):
    age = v["age_years"]
    female = v["sex"] == "female"
    points = {"age": age - 10 if female else age,
              "nursing_home_resident": 10 if v["nursing_home_resident"] else 0}
    for k, pts in _PSI_COMORBID.items():
        points[k] = pts if v[k] else 0
    temp = v["temp_c"]
    points.update({
        "altered_mental_status": 20 if v["altered_mental_status"] else 0,
        "respiratory_rate_30_or_over": 20 if v["respiratory_rate"] >= 30 else 0,
        "sbp_under_90": 20 if v["sbp_mm_hg"] < 90 else 0,
        "temperature": 15 if (temp < 35 or temp >= 40) else 0,
        "pulse_125_or_over": 10 if v["heart_rate_bpm"] >= 125 else 0,
    })

    def below(key, limit):
        return v[key] is not None and v[key] < limit

    def at_least(key, limit):
        return v[key] is not None and v[key] >= limit

    points.update({
        "ph_under_7_35": 30 if below("ph", 7.35) else 0,
        "bun_30_or_over": 20 if at_least("bun_mg_dl", 30) else 0,
        "sodium_under_130": 20 if below("sodium_mmol_l", 130) else 0,
        "glucose_250_or_over": 10 if at_least("glucose_mg_dl", 250) else 0,
        "hematocrit_under_30": 10 if below("hematocrit_percent", 30) else 0,
        "hypoxemia": 10 if (below("pao2_mm_hg", 60) or below("sao2_percent", 90)) else 0,
        "pleural_effusion": 10 if v["pleural_effusion"] else 0,
    })
    total = sum(points.values())
    low_risk_profile = (age < 50 and total - points["age"] == 0)
    if low_risk_profile:
        klass = "I"
    else:
        klass = band(total, [(0, "II"), (71, "III"), (91, "IV"), (131, "V")])
    return scored(total, f"PSI class {klass}", klass=klass, components=points)


# 17. BAP-65 ──────────────────────────────────────────────────────────────────
@CALCS.define("bap65", "BAP-65 (COPD exacerbation)",
              [num("bun_mg_dl", "mg/dL", "bun"), flag("altered_mental_status"), _HR, _AGE],
              unit="class")
def bap65(v):
    points = len(fired({
        "bun_25_or_over": v["bun_mg_dl"] >= 25,
        "altered_mental_status": v["altered_mental_status"],
        "pulse_109_or_over": v["heart_rate_bpm"] >= 109,
    }))
    if points == 0:
        klass = 2 if v["age_years"] >= 65 else 1
    else:
        klass = points + 2
    roman = ["I", "II", "III", "IV", "V"][klass - 1]
    return scored(klass, f"BAP-65 class {roman}", klass=roman, bap_points=points)


# 18. SMART-COP ───────────────────────────────────────────────────────────────
@CALCS.define("smart_cop", "SMART-COP",
              [_AGE, _SBP, flag("multilobar_infiltrates"), num("albumin_g_dl", "g/dL", "albumin", required=False),
               _RR, _HR, flag("confusion"),
               num("pao2_mm_hg", "mmHg", "pressure", required=False),
               num("sao2_percent", "%", required=False, synonyms=["spo2_percent"]),
               num("ph", "", required=False, synonyms=["arterial_ph"])])
def smart_cop(v):
    young = v["age_years"] <= 50
    pao2, sao2 = v["pao2_mm_hg"], v["sao2_percent"]
    if young:
        low_o2 = (pao2 is not None and pao2 < 70) or (sao2 is not None and sao2 <= 93)
    else:
        low_o2 = (pao2 is not None and pao2 < 60) or (sao2 is not None and sao2 <= 90)
    points = {
        "sbp_under_90": 2 if v["sbp_mm_hg"] < 90 else 0,
        "multilobar": 1 if v["multilobar_infiltrates"] else 0,
        "albumin_under_3_5": 1 if (v["albumin_g_dl"] is not None and v["albumin_g_dl"] < 3.5) else 0,
        "respiratory_rate": 1 if v["respiratory_rate"] >= (25 if young else 30) else 0,
        "tachycardia": 1 if v["heart_rate_bpm"] >= 125 else 0,
        "confusion": 1 if v["confusion"] else 0,
        "low_oxygenation": 2 if low_o2 else 0,
        "ph_under_7_35": 2 if (v["ph"] is not None and v["ph"] < 7.35) else 0,
    }
    total = sum(points.values())
    risk = band(total, [(0, "low"), (3, "moderate"), (5, "high"), (7, "very high")])
    return scored(total, f"{risk} risk of needing intensive respiratory or vasopressor support",
                  risk=risk, components=points)
