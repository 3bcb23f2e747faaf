"""Body size, energy expenditure and fluid calculators."""

import math

from ._base import CalculatorSet, band, choice, num, ratio, scored

CALCS = CalculatorSet("body")
register_all = CALCS.register_all

_WT = num("weight_kg", "kg", "weight", synonyms=["body_weight"])
_HT = num("height_cm", "cm", "height", synonyms=["body_height"])
_SEX = choice("sex", ["male", "female"], synonyms=["gender"])
_AGE = num("age_years", "years")

BMI_BANDS = [(0, "underweight"), (18.5, "normal"), (25, "overweight"), (30, "obese class I"),
             (35, "obese class II"), (40, "obese class III")]


def bmi_value(weight_kg: float, height_cm: float):
    return ratio(weight_kg, (height_cm / 100) ** 2) if height_cm > 0 else None


def devine_ibw(sex: str, height_cm: float) -> float:
    base = 50.0 if sex == "male" else 45.5
    return base + 2.3 * (height_cm / 2.54 - 60)


# 1. BMI ──────────────────────────────────────────────────────────────────────
@CALCS.define("bmi", "Body Mass Index", [_WT, _HT], unit="kg/m²", precision=1)
def bmi(v):
    value = bmi_value(v["weight_kg"], v["height_cm"])
    if value is None:
        return None
    category = band(value, BMI_BANDS)
    return scored(value, category, category=category)


# 2. BSA (Mosteller) ──────────────────────────────────────────────────────────
@CALCS.define("bsa_mosteller", "Body Surface Area (Mosteller)", [_WT, _HT], unit="m²", precision=2)
def bsa_mosteller(v):
    if v["weight_kg"] <= 0 or v["height_cm"] <= 0:
        return None
    return scored(math.sqrt(v["weight_kg"] * v["height_cm"] / 3600))


# 3. BSA (Du Bois) ────────────────────────────────────────────────────────────
@CALCS.define("bsa_dubois", "Body Surface Area (Du Bois)", [_WT, _HT], unit="m²", precision=2)
def bsa_dubois(v):
    if v["weight_kg"] <= 0 or v["height_cm"] <= 0:
        return None
    return scored(0.007184 * v["weight_kg"] ** 0.425 * v["height_cm"] ** 0.725)


# 4. Ideal Body Weight (Devine) ───────────────────────────────────────────────
@CALCS.define("ibw_devine", "Ideal Body Weight (Devine)", [_SEX, _HT], unit="kg", precision=1)
def ibw_devine(v):
    ibw = devine_ibw(v["sex"], v["height_cm"])
    return scored(ibw, "height below 60 in: Devine formula unreliable" if v["height_cm"] < 152.4 else "")


# 5. Adjusted Body Weight ─────────────────────────────────────────────────────
@CALCS.define("adjusted_body_weight", "Adjusted Body Weight", [_WT, _SEX, _HT], unit="kg", precision=1)
def adjusted_body_weight(v):
    ibw = devine_ibw(v["sex"], v["height_cm"])
    return scored(ibw + 0.4 * (v["weight_kg"] - ibw), ideal_body_weight=ibw)


# 6. Lean Body Weight (Janmahasatian) ─────────────────────────────────────────
@CALCS.define("lean_body_weight", "Lean Body Weight (Janmahasatian)", [_WT, _HT, _SEX], unit="kg", precision=1)
def lean_body_weight(v):
    b = bmi_value(v["weight_kg"], v["height_cm"])
    if b is None:
        return None
    if v["sex"] == "male":
        lbw = 9270 * v["weight_kg"] / (6680 + 216 * b)
    else:
        lbw = 9270 * v["weight_kg"] / (8780 + 244 * b)
    return scored(lbw, bmi=b)


# 7. Harris-Benedict ──────────────────────────────────────────────────────────
@CALCS.define("harris_benedict", "Basal Energy Expenditure (Harris-Benedict)", [_WT, _HT, _AGE, _SEX],
              unit="kcal/day", precision=0)
def harris_benedict(v):
    w, h, a = v["weight_kg"], v["height_cm"], v["age_years"]
    if v["sex"] == "male":
        bee = 66.5 + 13.75 * w + 5.003 * h - 6.755 * a
    else:
        bee = 655.1 + 9.563 * w + 1.850 * h - 4.676 * a
    return scored(bee)


# 8. Mifflin-St Jeor ──────────────────────────────────────────────────────────
@CALCS.define("mifflin_st_jeor", "Resting Energy Expenditure (Mifflin-St Jeor)", [_WT, _HT, _AGE, _SEX],
              unit="kcal/day", precision=0)
def mifflin_st_jeor(v):
    ree = 10 * v["weight_kg"] + 6.25 * v["height_cm"] - 5 * v["age_years"]
    ree += 5 if v["sex"] == "male" else -161
    return scored(ree)


# 9. Maintenance Fluids (4-2-1) ───────────────────────────────────────────────
@CALCS.define("maintenance_fluids_421", "Maintenance Fluids (4-2-1 rule)", [_WT], unit="mL/h", precision=0)
def maintenance_fluids_421(v):
    w = v["weight_kg"]
    if w <= 0:
        return None
    if w <= 10:
        rate = 4 * w
    elif w <= 20:
        rate = 40 + 2 * (w - 10)
    else:
        rate = 60 + (w - 20)
    return scored(rate)


# 10. Parkland Formula ────────────────────────────────────────────────────────
@CALCS.define("parkland_burns", "Burn Resuscitation (Parkland)",
              [_WT, num("tbsa_percent", "%", synonyms=["burn_tbsa", "tbsa"])], unit="mL/24h", precision=0)
def parkland_burns(v):
    total = 4 * v["weight_kg"] * v["tbsa_percent"]
    return scored(total, first_8h_ml=total / 2, next_16h_ml=total / 2)
