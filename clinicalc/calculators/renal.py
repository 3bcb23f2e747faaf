"""Renal function calculators."""

from ._base import CalculatorSet, band, choice, flag, num, ratio, scored

CALCS = CalculatorSet("renal")
register_all = CALCS.register_all

_AGE = num("age_years", "years")
_SEX = choice("sex", ["male", "female"], synonyms=["gender"])
_CR = num("creatinine_mg_dl", "mg/dL", "creatinine", synonyms=["serum_creatinine", "scr"])
_BUN = num("bun_mg_dl", "mg/dL", "bun", synonyms=["blood_urea_nitrogen"])

GFR_STAGES = [(0, "G5"), (15, "G4"), (30, "G3b"), (45, "G3a"), (60, "G2"), (90, "G1")]


# 1. Creatinine Clearance (Cockcroft-Gault) ───────────────────────────────────
@CALCS.define("cockcroft_gault", "Creatinine Clearance (Cockcroft-Gault)",
              [_AGE, num("weight_kg", "kg", "weight"), _SEX, _CR], unit="mL/min", precision=1)
def cockcroft_gault(v):
    if v["age_years"] >= 140:
        return None
    crcl = ratio((140 - v["age_years"]) * v["weight_kg"], 72 * v["creatinine_mg_dl"])
    if crcl is None:
        return None
    if v["sex"] == "female":
        crcl *= 0.85
    return scored(crcl)


# 2. CKD-EPI 2021 ─────────────────────────────────────────────────────────────
@CALCS.define("egfr_ckd_epi_2021", "eGFR (CKD-EPI 2021, race-free)", [_AGE, _SEX, _CR],
              unit="mL/min/1.73m²", precision=0)
def egfr_ckd_epi_2021(v):
    scr = v["creatinine_mg_dl"]
    if scr <= 0:
        return None
    female = v["sex"] == "female"
    kappa = 0.7 if female else 0.9
    alpha = -0.241 if female else -0.302
    x = scr / kappa
    egfr = 142 * min(x, 1) ** alpha * max(x, 1) ** -1.200 * 0.9938 ** v["age_years"]
    if female:
        egfr *= 1.012
    stage = band(egfr, GFR_STAGES)
    return scored(egfr, f"CKD stage {stage}", stage=stage)


# 3. MDRD ─────────────────────────────────────────────────────────────────────
@CALCS.define("egfr_mdrd", "eGFR (MDRD)", [_AGE, _SEX, _CR, flag("black_race")],
              unit="mL/min/1.73m²", precision=0)
def egfr_mdrd(v):
    scr = v["creatinine_mg_dl"]
    if scr <= 0 or v["age_years"] <= 0:
        return None
    egfr = 175 * scr ** -1.154 * v["age_years"] ** -0.203
    if v["sex"] == "female":
        egfr *= 0.742
    if v["black_race"]:
        egfr *= 1.212
    stage = band(egfr, GFR_STAGES)
    return scored(egfr, f"CKD stage {stage}", stage=stage)


# 4. BUN:Creatinine Ratio ─────────────────────────────────────────────────────
@CALCS.define("bun_creatinine_ratio", "BUN:Creatinine Ratio", [_BUN, _CR], unit="ratio", precision=1)
def bun_creatinine_ratio(v):
    r = ratio(v["bun_mg_dl"], v["creatinine_mg_dl"])
    if r is None:
        return None
    return scored(r, "suggests prerenal azotemia or upper GI bleed" if r > 20 else "")


# 5. FENa ─────────────────────────────────────────────────────────────────────
@CALCS.define("fena", "Fractional Excretion of Sodium",
              [num("sodium_mmol_l", "mmol/L", "electrolyte"), _CR,
               num("urine_sodium_mmol_l", "mmol/L", "electrolyte", synonyms=["urine_na"]),
               num("urine_creatinine_mg_dl", "mg/dL", "urine_creatinine", synonyms=["urine_cr"])],
              unit="%", precision=2)
def fena(v):
    value = ratio(v["urine_sodium_mmol_l"] * v["creatinine_mg_dl"],
                  v["sodium_mmol_l"] * v["urine_creatinine_mg_dl"])
    if value is None:
        return None
    value *= 100
    if value < 1:
        note = "prerenal"
    elif value > 2:
        note = "intrinsic renal (ATN)"
    else:
        note = "indeterminate"
    return scored(value, note)


# 6. FEUrea ───────────────────────────────────────────────────────────────────
@CALCS.define("feurea", "Fractional Excretion of Urea",
              [_BUN, _CR,
               num("urine_urea_mg_dl", "mg/dL", "urea", synonyms=["urine_urea_nitrogen", "uun"]),
               num("urine_creatinine_mg_dl", "mg/dL", "urine_creatinine", synonyms=["urine_cr"])],
              unit="%", precision=1)
def feurea(v):
    value = ratio(v["urine_urea_mg_dl"] * v["creatinine_mg_dl"], v["bun_mg_dl"] * v["urine_creatinine_mg_dl"])
    if value is None:
        return None
    value *= 100
    if value <= 35:
        note = "prerenal"
    elif value > 50:
        note = "intrinsic renal"
    else:
        note = "indeterminate"
    return scored(value, note)


# 7. KDIGO AKI Stage ──────────────────────────────────────────────────────────
@CALCS.define("kdigo_aki_stage", "KDIGO AKI Stage (creatinine criteria)",
              [_CR, num("baseline_creatinine_mg_dl", "mg/dL", "creatinine", synonyms=["baseline_creatinine"]),
               flag("renal_replacement_therapy", synonyms=["rrt", "dialysis"])],
              unit="stage", precision=0)
def kdigo_aki_stage(v):
    cr, base = v["creatinine_mg_dl"], v["baseline_creatinine_mg_dl"]
    r = ratio(cr, base)
    if r is None:
        return None
    if v["renal_replacement_therapy"] or r >= 3 or cr >= 4.0:
        stage = 3
    elif r >= 2:
        stage = 2
    elif r >= 1.5 or cr - base >= 0.3:
        stage = 1
    else:
        stage = 0
    return scored(stage, f"AKI stage {stage}" if stage else "no AKI by creatinine", fold_rise=r)
