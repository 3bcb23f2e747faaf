"""Acid-base and electrolyte calculators."""

import math
from typing import Any, Dict, Optional

from ._base import CalculatorSet, choice, num, ratio, scored

CALCS = CalculatorSet("electrolytes")
register_all = CALCS.register_all

SEX = ["male", "female"]


def _na(**kw):
    return num("sodium_mmol_l", "mmol/L", "electrolyte", synonyms=["serum_sodium", "na_mmol_l"], **kw)


def _cl():
    return num("chloride_mmol_l", "mmol/L", "electrolyte", synonyms=["serum_chloride"])


def _hco3(**kw):
    return num("bicarbonate_mmol_l", "mmol/L", "electrolyte", synonyms=["serum_bicarbonate", "hco3_mmol_l"], **kw)


def _alb():
    return num("albumin_g_dl", "g/dL", "albumin", synonyms=["serum_albumin"])


def _glu():
    return num("glucose_mg_dl", "mg/dL", "glucose", synonyms=["serum_glucose", "glucose_mgdl"])


def _bun():
    return num("bun_mg_dl", "mg/dL", "bun", synonyms=["blood_urea_nitrogen", "bun_mgdl"])


def tbw_fraction(sex: str, age: Optional[float]) -> float:
    """Total body water as a fraction of weight."""
    elderly = age is not None and age >= 65
    if sex == "female":
        return 0.45 if elderly else 0.5
    return 0.5 if elderly else 0.6


def _ag(v: Dict[str, Any]) -> float:
    return v["sodium_mmol_l"] - (v["chloride_mmol_l"] + v["bicarbonate_mmol_l"])


# 1. Anion Gap ────────────────────────────────────────────────────────────────
@CALCS.define("anion_gap", "Anion Gap", [_na(), _cl(), _hco3()], unit="mmol/L", precision=1)
def anion_gap(v):
    ag = _ag(v)
    if ag > 12:
        note = "elevated anion gap"
    elif ag < 3:
        note = "low anion gap"
    else:
        note = "normal anion gap"
    return scored(ag, note)


# 2. Anion Gap with Potassium ─────────────────────────────────────────────────
@CALCS.define("anion_gap_k", "Anion Gap (with K)",
              [_na(), num("potassium_mmol_l", "mmol/L", "electrolyte"), _cl(), _hco3()],
              unit="mmol/L", precision=1)
def anion_gap_k(v):
    ag = v["sodium_mmol_l"] + v["potassium_mmol_l"] - (v["chloride_mmol_l"] + v["bicarbonate_mmol_l"])
    return scored(ag, "elevated anion gap" if ag > 20 else "")


# 3. Albumin-Corrected Anion Gap ──────────────────────────────────────────────
@CALCS.define("anion_gap_albumin_corrected", "Albumin-Corrected Anion Gap",
              [_na(), _cl(), _hco3(), _alb()], unit="mmol/L", precision=1)
def anion_gap_albumin_corrected(v):
    ag = _ag(v)
    corrected = ag + 2.5 * (4 - v["albumin_g_dl"])
    return scored(corrected, "elevated anion gap" if corrected > 12 else "", anion_gap=ag)


# 4. Delta Gap ────────────────────────────────────────────────────────────────
@CALCS.define("delta_gap", "Delta Gap", [_na(), _cl(), _hco3()], unit="mmol/L", precision=1)
def delta_gap(v):
    ag = _ag(v)
    return scored(ag - 12, anion_gap=ag)


# 5. Delta Ratio ──────────────────────────────────────────────────────────────
@CALCS.define("delta_ratio", "Delta Ratio", [_na(), _cl(), _hco3()], unit="ratio", precision=2)
def delta_ratio(v):
    ag = _ag(v)
    dr = ratio(ag - 12, 24 - v["bicarbonate_mmol_l"])
    if dr is None:
        return None
    if dr < 0.4:
        note = "hyperchloremic normal anion gap acidosis"
    elif dr < 0.8:
        note = "combined high and normal anion gap acidosis"
    elif dr <= 2:
        note = "pure anion gap acidosis"
    else:
        note = "concurrent metabolic alkalosis or chronic respiratory acidosis"
    return scored(dr, note, anion_gap=ag)


# 6. Winters' Formula ─────────────────────────────────────────────────────────
@CALCS.define("winters_expected_paco2", "Expected PaCO2 (Winters' Formula)",
              [_hco3(), num("paco2_mm_hg", "mmHg", "pressure", required=False)],
              unit="mmHg", precision=1)
def winters_expected_paco2(v):
    expected = 1.5 * v["bicarbonate_mmol_l"] + 8
    lo, hi = expected - 2, expected + 2
    note = ""
    paco2 = v["paco2_mm_hg"]
    if paco2 is not None:
        if paco2 > hi:
            note = "concurrent respiratory acidosis"
        elif paco2 < lo:
            note = "concurrent respiratory alkalosis"
        else:
            note = "appropriate respiratory compensation"
    return scored(expected, note, low=lo, high=hi)


# 7. Henderson-Hasselbalch pH ─────────────────────────────────────────────────
@CALCS.define("hh_ph", "pH (Henderson-Hasselbalch)",
              [_hco3(), num("paco2_mm_hg", "mmHg", "pressure")], unit="", precision=2)
def hh_ph(v):
    if v["bicarbonate_mmol_l"] <= 0 or v["paco2_mm_hg"] <= 0:
        return None
    ph = 6.1 + math.log10(v["bicarbonate_mmol_l"] / (0.03 * v["paco2_mm_hg"]))
    if ph < 7.35:
        note = "acidemia"
    elif ph > 7.45:
        note = "alkalemia"
    else:
        note = "normal pH"
    return scored(ph, note)


# 8. Serum Osmolality ─────────────────────────────────────────────────────────
def _calc_osm(v: Dict[str, Any]) -> float:
    return 2 * v["sodium_mmol_l"] + v["glucose_mg_dl"] / 18 + v["bun_mg_dl"] / 2.8 + v["ethanol_mg_dl"] / 3.7


_ETOH = num("ethanol_mg_dl", "mg/dL", "ethanol", default=0.0, synonyms=["etoh", "ethanol"])


@CALCS.define("serum_osmolality", "Calculated Serum Osmolality", [_na(), _glu(), _bun(), _ETOH],
              unit="mOsm/kg", precision=1)
def serum_osmolality(v):
    osm = _calc_osm(v)
    if osm > 295:
        note = "hyperosmolar"
    elif osm < 275:
        note = "hypo-osmolar"
    else:
        note = ""
    return scored(osm, note)


# 9. Effective Osmolality ─────────────────────────────────────────────────────
@CALCS.define("effective_osmolality", "Effective Serum Osmolality (Tonicity)", [_na(), _glu()],
              unit="mOsm/kg", precision=1)
def effective_osmolality(v):
    eosm = 2 * v["sodium_mmol_l"] + v["glucose_mg_dl"] / 18
    return scored(eosm, "hypertonic (HHS range)" if eosm > 320 else "")


# 10. Osmolal Gap ─────────────────────────────────────────────────────────────
@CALCS.define("osmolal_gap", "Osmolal Gap",
              [num("measured_osm", "mOsm/kg", synonyms=["osm_meas", "measured_osmolality"]),
               _na(), _glu(), _bun(), _ETOH],
              unit="mOsm/kg", precision=1)
def osmolal_gap(v):
    calculated = _calc_osm(v)
    gap = v["measured_osm"] - calculated
    return scored(gap, "elevated osmolal gap" if gap > 10 else "", calculated_osm=calculated)


# 11. Corrected Calcium ───────────────────────────────────────────────────────
@CALCS.define("corrected_calcium", "Calcium Corrected for Albumin",
              [num("calcium_mg_dl", "mg/dL", "calcium", synonyms=["serum_calcium"]), _alb(),
               num("normal_albumin_g_dl", "g/dL", "albumin", default=4.0)],
              unit="mg/dL", precision=1)
def corrected_calcium(v):
    ca = v["calcium_mg_dl"] + 0.8 * (v["normal_albumin_g_dl"] - v["albumin_g_dl"])
    if ca < 8.5:
        note = "hypocalcemia"
    elif ca > 10.5:
        note = "hypercalcemia"
    else:
        note = ""
    return scored(ca, note)


# 12. Sodium Correction for Hyperglycemia ─────────────────────────────────────
@CALCS.define("corrected_sodium_hyperglycemia", "Sodium Corrected for Hyperglycemia", [_na(), _glu()],
              unit="mmol/L", precision=1)
def corrected_sodium_hyperglycemia(v):
    excess = v["glucose_mg_dl"] - 100
    hillier = v["sodium_mmol_l"] + 0.024 * excess
    katz = v["sodium_mmol_l"] + 0.016 * excess
    return scored(hillier, katz=katz)


# 13. Free Water Deficit ──────────────────────────────────────────────────────
_SEX = choice("sex", SEX, synonyms=["gender"])
_AGE_OPT = num("age_years", "years", required=False)
_WEIGHT = num("weight_kg", "kg", "weight", synonyms=["body_weight"])


@CALCS.define("free_water_deficit", "Free Water Deficit",
              [_na(), _WEIGHT, _SEX, _AGE_OPT, num("target_sodium_mmol_l", "mmol/L", "electrolyte", default=140.0)],
              unit="L", precision=1)
def free_water_deficit(v):
    tbw = tbw_fraction(v["sex"], v["age_years"]) * v["weight_kg"]
    na_ratio = ratio(v["sodium_mmol_l"], v["target_sodium_mmol_l"])
    if na_ratio is None:
        return None
    deficit = tbw * (na_ratio - 1)
    return scored(deficit, "no free water deficit" if deficit <= 0 else "", total_body_water=tbw)


# 14. Sodium Deficit ──────────────────────────────────────────────────────────
@CALCS.define("sodium_deficit", "Sodium Deficit",
              [_na(), _WEIGHT, _SEX, _AGE_OPT, num("target_sodium_mmol_l", "mmol/L", "electrolyte", default=140.0)],
              unit="mmol", precision=0)
def sodium_deficit(v):
    tbw = tbw_fraction(v["sex"], v["age_years"]) * v["weight_kg"]
    deficit = max(0.0, tbw * (v["target_sodium_mmol_l"] - v["sodium_mmol_l"]))
    return scored(deficit, total_body_water=tbw)


# 15. Sodium Correction Rate (Adrogue-Madias) ─────────────────────────────────
@CALCS.define("sodium_correction_rate", "Serum Sodium Change per Litre Infusate (Adrogue-Madias)",
              [_na(), _WEIGHT, _SEX, _AGE_OPT,
               num("infusate_sodium_mmol_l", "mmol/L", "electrolyte", synonyms=["infusate_na"]),
               num("infusate_potassium_mmol_l", "mmol/L", "electrolyte", default=0.0)],
              unit="mmol/L per L", precision=1)
def sodium_correction_rate(v):
    tbw = tbw_fraction(v["sex"], v["age_years"]) * v["weight_kg"]
    change = (v["infusate_sodium_mmol_l"] + v["infusate_potassium_mmol_l"] - v["sodium_mmol_l"]) / (tbw + 1)
    return scored(change, total_body_water=tbw)


# 16. Bicarbonate Deficit ─────────────────────────────────────────────────────
@CALCS.define("bicarbonate_deficit", "Bicarbonate Deficit",
              [_hco3(), _WEIGHT, num("target_bicarbonate_mmol_l", "mmol/L", "electrolyte", default=24.0)],
              unit="mmol", precision=0)
def bicarbonate_deficit(v):
    deficit = 0.5 * v["weight_kg"] * (v["target_bicarbonate_mmol_l"] - v["bicarbonate_mmol_l"])
    return scored(max(0.0, deficit))


# 17. Urine Anion Gap ─────────────────────────────────────────────────────────
@CALCS.define("urine_anion_gap", "Urine Anion Gap",
              [num("urine_sodium_mmol_l", "mmol/L", "electrolyte", synonyms=["urine_na"]),
               num("urine_potassium_mmol_l", "mmol/L", "electrolyte", synonyms=["urine_k"]),
               num("urine_chloride_mmol_l", "mmol/L", "electrolyte", synonyms=["urine_cl"])],
              unit="mmol/L", precision=0)
def urine_anion_gap(v):
    uag = v["urine_sodium_mmol_l"] + v["urine_potassium_mmol_l"] - v["urine_chloride_mmol_l"]
    note = "suggests GI bicarbonate loss" if uag < 0 else "suggests renal acidification defect"
    return scored(uag, note)


# 18. TTKG ────────────────────────────────────────────────────────────────────
@CALCS.define("ttkg", "Transtubular Potassium Gradient",
              [num("urine_potassium_mmol_l", "mmol/L", "electrolyte", synonyms=["urine_k"]),
               num("potassium_mmol_l", "mmol/L", "electrolyte"),
               num("urine_osm", "mOsm/kg", synonyms=["urine_osmolality"]),
               num("serum_osm", "mOsm/kg", synonyms=["plasma_osmolality", "serum_osmolality"])],
              unit="", precision=1)
def ttkg(v):
    k_ratio = ratio(v["urine_potassium_mmol_l"], v["potassium_mmol_l"])
    osm_ratio = ratio(v["urine_osm"], v["serum_osm"])
    if k_ratio is None or osm_ratio is None:
        return None
    value = ratio(k_ratio, osm_ratio)
    if value is None:
        return None
    return scored(value, "" if v["urine_osm"] > v["serum_osm"] else "unreliable: urine not concentrated")


# 19. Calcium-Phosphate Product ───────────────────────────────────────────────
@CALCS.define("calcium_phosphate_product", "Calcium-Phosphate Product",
              [num("calcium_mg_dl", "mg/dL", "calcium", synonyms=["serum_calcium"]),
               num("phosphate_mg_dl", "mg/dL", "phosphate", synonyms=["phosphorus", "phos"])],
              unit="mg²/dL²", precision=0)
def calcium_phosphate_product(v):
    product = v["calcium_mg_dl"] * v["phosphate_mg_dl"]
    return scored(product, "elevated (calcification risk)" if product > 55 else "")
