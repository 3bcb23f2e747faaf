"""Scrape lab and vital-sign values out of pasted free text."""

import logging
import re
from typing import Any, Dict, List, Pattern, Tuple

logger = logging.getLogger(__name__)

_UNIT = r"(?P<unit>mmol/l|[µμu]mol/l|mg/dl|g/dl|g/l|meq/l|kpa|mmhg|mosm/kg|ms|bpm|%)?"
_NUM = r"(?P<num>[-+]?\d+(?:\.\d+)?)"
# Label, then a short run of separators or filler words, then the number.
_GAP = r"[\s:=,(]*(?:(?:level|of|is|was|measured)\s+)?[\s:=]*"


def _pattern(labels: str) -> Pattern[str]:
    return re.compile(rf"\b(?:{labels})\b{_GAP}{_NUM}\s*{_UNIT}", re.IGNORECASE)


_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("sodium_mmol_l", _pattern(r"na|sodium")),
    ("potassium_mmol_l", _pattern(r"k|potassium")),
    ("chloride_mmol_l", _pattern(r"cl|chloride")),
    ("bicarbonate_mmol_l", _pattern(r"hco3|bicarb(?:onate)?|tco2")),
    ("albumin_g_dl", _pattern(r"alb(?:umin)?")),
    ("calcium_mg_dl", _pattern(r"ca|calcium")),
    ("creatinine_mg_dl", _pattern(r"creat(?:inine)?|cr|scr")),
    ("bun_mg_dl", _pattern(r"bun")),
    ("bilirubin_mg_dl", _pattern(r"t\.?\s?bili(?:rubin)?|bili(?:rubin)?")),
    ("inr", _pattern(r"inr")),
    ("glucose_mg_dl", _pattern(r"glu(?:cose)?|bg")),
    ("pao2_mm_hg", _pattern(r"pao2|po2")),
    ("paco2_mm_hg", _pattern(r"paco2|pco2")),
    ("fio2_percent", _pattern(r"fio2")),
    ("qt_ms", _pattern(r"qt")),
    ("heart_rate_bpm", _pattern(r"hr|heart\s+rate|pulse")),
    ("sbp_mm_hg", _pattern(r"sbp|systolic")),
    ("dbp_mm_hg", _pattern(r"dbp|diastolic")),
    ("respiratory_rate", _pattern(r"rr|resp(?:iratory)?(?:\s+rate)?")),
    ("ethanol_mg_dl", _pattern(r"etoh|ethanol|alcohol")),
    ("measured_osm", _pattern(r"osm(?:olality)?|serum\s+osm")),
]

_BLOOD_PRESSURE = re.compile(r"\b(?:bp|blood\s+pressure)[\s:=]*(?P<sbp>\d{2,3})\s*/\s*(?P<dbp>\d{2,3})", re.IGNORECASE)


def _value(match: "re.Match[str]") -> Any:
    num = float(match.group("num"))
    unit = match.group("unit")
    if unit and unit.lower() not in ("bpm", "%"):
        return {"value": num, "unit": unit}
    return num


def extract_values(text: str) -> Dict[str, Any]:
    """Return a raw input bag of every recognised value in ``text``.

    The first match for each key wins. Values that carry a unit come back
    as ``{"value": ..., "unit": ...}`` so the normalizer can convert them.
    """
    out: Dict[str, Any] = {}
    if not text:
        return out
    bp = _BLOOD_PRESSURE.search(text)
    if bp:
        out["sbp_mm_hg"] = float(bp.group("sbp"))
        out["dbp_mm_hg"] = float(bp.group("dbp"))
    for key, pattern in _PATTERNS:
        if key in out:
            continue
        match = pattern.search(text)
        if match:
            out[key] = _value(match)
    logger.debug(f"Extracted {sorted(out)} from {len(text)} chars")
    return out
