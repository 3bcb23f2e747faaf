"""Value parsing and unit conversion for calculator inputs."""

import math
import re
from typing import Any, Dict, Optional, Tuple

# Multiplicative factors from a given unit into the analyte's canonical unit.
_UNIT_CONVERSIONS: Dict[str, Dict[str, float]] = {
    "height":        {"m": 100, "in": 2.54, "inch": 2.54, "inches": 2.54, "ft": 30.48, "feet": 30.48, "mm": 0.1},
    "weight":        {"lb": 1/2.20462, "lbs": 1/2.20462, "pounds": 1/2.20462, "g": 0.001},
    "creatinine":    {"µmol/l": 1/88.4, "umol/l": 1/88.4, "μmol/l": 1/88.4, "micromol/l": 1/88.4},
    "urine_creatinine": {"mmol/l": 11.312, "µmol/l": 1/88.4, "umol/l": 1/88.4},
    "glucose":       {"mmol/l": 18.0182},
    "bilirubin":     {"µmol/l": 1/17.1, "umol/l": 1/17.1, "μmol/l": 1/17.1},
    "albumin":       {"g/l": 0.1},
    "protein":       {"g/l": 0.1},
    "bun":           {"mmol/l": 2.8011},
    "urea":          {"mmol/l": 2.8011},
    "hemoglobin":    {"g/l": 0.1, "mmol/l": 1.611},
    "calcium":       {"mmol/l": 4.008},
    "phosphate":     {"mmol/l": 3.097},
    "cholesterol":   {"mmol/l": 38.67},
    "triglycerides": {"mmol/l": 88.57},
    "ethanol":       {"mmol/l": 4.607},
    "lactate":       {"mg/dl": 1/9.008},
    "pressure":      {"kpa": 7.50062},
    "insulin":       {"pmol/l": 1/6.0, "uu/ml": 1.0, "µiu/ml": 1.0, "uiu/ml": 1.0, "miu/l": 1.0},
    "interval":      {"s": 1000, "sec": 1000, "seconds": 1000},
    "electrolyte":   {"meq/l": 1.0, "mmol/l": 1.0},
    "cells":         {"/ul": 0.001, "/µl": 0.001, "cells/ul": 0.001, "cells/µl": 0.001,
                      "/mm3": 0.001, "/mm^3": 0.001, "10^3/ul": 1.0, "k/ul": 1.0, "10^3/µl": 1.0},
    "fio2":          {"fraction": 100.0},
    "d_dimer":       {"mg/l": 1000, "mg/l feu": 1000, "mcg/ml": 1000, "mcg/ml feu": 1000, "µg/ml feu": 1000,
                      "ug/ml feu": 1000, "ng/ml feu": 1.0, "µg/l": 1.0, "ug/l": 1.0},
}

_UNIT_SPELLINGS = {
    "mmhg": "mmhg", "mm hg": "mmhg",
    "mg/dl": "mg/dl", "g/dl": "g/dl", "g/l": "g/l",
    "meq/l": "meq/l", "mmol/l": "mmol/l", "mm": "mm",
    "bpm": "/min", "/min": "/min", "breaths/min": "/min", "beats/min": "/min",
    "%": "%", "percent": "%", "pct": "%",
    "°c": "c", "c": "c", "celsius": "c", "°f": "f", "f": "f", "fahrenheit": "f",
    "years": "years", "year": "years", "yrs": "years", "yr": "years", "y": "years",
    "h": "h", "hr": "h", "hrs": "h", "hours": "h", "hour": "h",
    "days": "days", "day": "days", "d": "days",
    "min": "min", "mins": "min", "minutes": "min",
    "ms": "ms", "msec": "ms",
    "mcg/ml": "mcg/ml", "µg/ml": "mcg/ml", "ug/ml": "mcg/ml",
    "kg/m2": "kg/m²", "kg/m^2": "kg/m²",
}

# A number with an optional trailing unit. "1,500" and "1 500" do not parse.
_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)(?!\s*[\d,])\s*(.*?)\s*$")

_TRUE_WORDS = {"true", "yes", "y", "1", "present", "positive", "pos", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "absent", "negative", "neg", "none", "off"}


def canonical_key(key: str) -> str:
    """Lowercase a raw key and collapse spaces and hyphens to underscores."""
    return re.sub(r"[\s\-]+", "_", str(key).strip().lower())


def canonical_unit(unit: str) -> str:
    u = unit.strip().lower().replace("μ", "µ")
    return _UNIT_SPELLINGS.get(u, u)


def split_value(raw: Any) -> Tuple[Any, str]:
    """Split a raw value into (value, unit).

    Accepts ``{"value": v, "unit": u}`` dicts, numbers, and strings with a
    trailing unit such as ``"7.2 mmol/L"``.
    """
    if isinstance(raw, dict):
        return raw.get("value"), str(raw.get("unit") or "")
    if isinstance(raw, str):
        m = _NUMBER_RE.match(raw)
        if m:
            return m.group(1), m.group(2)
    return raw, ""


def parse_number(raw: Any) -> Optional[float]:
    """Finite float from a number or numeric string, else None."""
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        val = float(raw)
    elif isinstance(raw, str):
        m = _NUMBER_RE.match(raw)
        if not m:
            return None
        val = float(m.group(1))
    else:
        return None
    return val if math.isfinite(val) else None


def parse_bool(raw: Any) -> Optional[bool]:
    if isinstance(raw, dict):
        return parse_bool(raw.get("value"))
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def convert(value: float, unit: str, canonical: str, analyte: str) -> Optional[float]:
    """Convert ``value`` given in ``unit`` to the canonical unit.

    Returns None when the unit is not recognised for the analyte.
    """
    unit_lower = canonical_unit(unit) if unit else ""
    canonical_lower = canonical_unit(canonical) if canonical else ""

    # FiO2: fraction (0-1) vs percent, regardless of stated unit
    if analyte == "fio2" and canonical_lower == "%":
        if unit_lower in ("", "%"):
            return value * 100 if 0 < value <= 1.0 else value
    if not unit_lower or unit_lower == canonical_lower:
        return value
    # No conversion family: only the canonical unit itself is accepted
    if not analyte:
        return None

    # Temperature: F → C
    if analyte == "temperature":
        if unit_lower == "f":
            return (value - 32) * 5 / 9
        return value if unit_lower == "c" else None

    factor = _UNIT_CONVERSIONS.get(analyte, {}).get(unit_lower)
    if factor is None:
        return None
    return value * factor
