"""Obstetric and pediatric scores."""

from ._base import CalculatorSet, band, choice, flag, num, scored, steps

CALCS = CalculatorSet("obstetrics")
register_all = CALCS.register_all


# 1. Bishop Score ─────────────────────────────────────────────────────────────
_CONSISTENCY = {"firm": 0, "medium": 1, "soft": 2}
_POSITION = {"posterior": 0, "mid": 1, "anterior": 2}


@CALCS.define("bishop_score", "Bishop Score (induction readiness)",
              [num("dilation_cm", "cm", synonyms=["cervical_dilation"]),
               num("effacement_percent", "%", synonyms=["effacement"]),
               num("station", "", synonyms=["fetal_station"]),
               choice("consistency", list(_CONSISTENCY), synonyms=["cervical_consistency"]),
               choice("position", list(_POSITION), synonyms=["cervical_position"])])
def bishop_score(v):
    points = {
        "dilation": steps(v["dilation_cm"], [(1, 0), (3, 1), (5, 2)], 3),
        "effacement": steps(v["effacement_percent"], [(40, 0), (60, 1), (80, 2)], 3),
        "station": steps(v["station"], [(-2, 0), (-1, 1), (1, 2)], 3),
        "consistency": _CONSISTENCY[v["consistency"]],
        "position": _POSITION[v["position"]],
    }
    total = sum(points.values())
    favorable = total >= 8
    return scored(total, "favorable cervix" if favorable else "unfavorable cervix", favorable=favorable,
                  components=points)


# 2. APGAR ────────────────────────────────────────────────────────────────────
_APGAR_ITEMS = ("appearance", "pulse", "grimace", "activity", "respiration")


@CALCS.define("apgar", "APGAR Score", [num(f"apgar_{k}", "", synonyms=[k]) for k in _APGAR_ITEMS])
def apgar(v):
    parts = [v[f"apgar_{k}"] for k in _APGAR_ITEMS]
    if any(not 0 <= p <= 2 for p in parts):
        return None
    total = sum(parts)
    status = band(total, [(0, "severely depressed"), (4, "moderately abnormal"), (7, "reassuring")])
    return scored(total, status)


# 3. Pediatric GCS ────────────────────────────────────────────────────────────
@CALCS.define("pediatric_gcs", "Pediatric Glasgow Coma Scale",
              [num("eye_response", "", synonyms=["gcs_eye"]),
               num("verbal_response", "", synonyms=["gcs_verbal"]),
               num("motor_response", "", synonyms=["gcs_motor"]),
               flag("preverbal")])
def pediatric_gcs(v):
    eye, verbal, motor = v["eye_response"], v["verbal_response"], v["motor_response"]
    if not (1 <= eye <= 4 and 1 <= verbal <= 5 and 1 <= motor <= 6):
        return None
    total = eye + verbal + motor
    severity = band(total, [(3, "severe"), (9, "moderate"), (13, "mild")])
    scale = "infant verbal scale" if v["preverbal"] else "child verbal scale"
    return scored(total, f"{severity} ({scale})", severity=severity)


# 4. Holliday-Segar ───────────────────────────────────────────────────────────
@CALCS.define("holliday_segar", "Holliday-Segar Daily Maintenance Fluids",
              [num("weight_kg", "kg", "weight")], unit="mL/day", precision=0)
def holliday_segar(v):
    wt = v["weight_kg"]
    if wt <= 0:
        return None
    daily = 100 * min(wt, 10) + 50 * min(max(wt - 10, 0), 10) + 20 * max(wt - 20, 0)
    return scored(daily, f"about {daily / 24:.0f} mL/h", hourly_ml=daily / 24)


# 5. PRAM ─────────────────────────────────────────────────────────────────────
_PRAM_RANGES = {"suprasternal_retraction": 2, "scalene_retraction": 2, "wheezing": 3}
_AIR_ENTRY = {"normal": 0, "decreased_bases": 1, "widespread_decrease": 2, "absent_minimal": 3}


@CALCS.define("pram_asthma", "Pediatric Respiratory Assessment Measure (PRAM)",
              [num("spo2_percent", "%", synonyms=["oxygen_saturation"]),
               num("suprasternal_retraction", ""), num("scalene_retraction", ""),
               choice("air_entry", list(_AIR_ENTRY)), num("wheezing", "")])
def pram_asthma(v):
    for key, top in _PRAM_RANGES.items():
        if not 0 <= v[key] <= top:
            return None
    spo2 = v["spo2_percent"]
    points = {
        "spo2": 0 if spo2 >= 95 else (1 if spo2 >= 92 else 2),
        "air_entry": _AIR_ENTRY[v["air_entry"]],
    }
    points.update({key: int(v[key]) for key in _PRAM_RANGES})
    total = sum(points.values())
    severity = band(total, [(0, "mild"), (4, "moderate"), (8, "severe")])
    return scored(total, f"{severity} asthma exacerbation", severity=severity, components=points)


# 6. GDM Oral Glucose Tolerance Test ──────────────────────────────────────────
# (fasting, 1 h, 2 h, 3 h) thresholds in mg/dL and abnormal values needed.
_OGTT_CRITERIA = {
    "iadpsg_75g": ((92, 180, 153, None), 1),
    "carpenter_coustan_100g": ((95, 180, 155, 140), 2),
}
_OGTT_KEYS = ("fasting_glucose_mg_dl", "glucose_1h_mg_dl", "glucose_2h_mg_dl", "glucose_3h_mg_dl")


@CALCS.define("gdm_ogtt", "Gestational Diabetes OGTT Interpretation",
              [choice("ogtt_protocol", list(_OGTT_CRITERIA), synonyms=["protocol"]),
               num("fasting_glucose_mg_dl", "mg/dL", "glucose", synonyms=["fasting_glucose"]),
               num("glucose_1h_mg_dl", "mg/dL", "glucose", required=False, synonyms=["one_hour_glucose"]),
               num("glucose_2h_mg_dl", "mg/dL", "glucose", required=False, synonyms=["two_hour_glucose"]),
               num("glucose_3h_mg_dl", "mg/dL", "glucose", required=False, synonyms=["three_hour_glucose"])],
              unit="abnormal values")
def gdm_ogtt(v):
    thresholds, needed = _OGTT_CRITERIA[v["ogtt_protocol"]]
    abnormal = [key for key, limit in zip(_OGTT_KEYS, thresholds)
                if limit is not None and v[key] is not None and v[key] >= limit]
    diagnostic = len(abnormal) >= needed
    note = "meets GDM criteria" if diagnostic else "does not meet GDM criteria"
    return scored(len(abnormal), note, diagnostic=diagnostic, abnormal=abnormal)
