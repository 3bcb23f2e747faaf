"""Map loosely shaped caller input onto a calculator's canonical inputs."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from .models import CalcInput, CalculatorDefinition, InputType
from .units import canonical_key, convert, parse_bool, parse_number, split_value

logger = logging.getLogger(__name__)

# Shared aliases used by every calculator, on top of per-field synonyms.
ALIASES: Dict[str, str] = {
    "age": "age_years",
    "age_yrs": "age_years",
    "hr": "heart_rate_bpm",
    "heart_rate": "heart_rate_bpm",
    "pulse": "heart_rate_bpm",
    "sbp": "sbp_mm_hg",
    "systolic_bp": "sbp_mm_hg",
    "systolic": "sbp_mm_hg",
    "dbp": "dbp_mm_hg",
    "diastolic_bp": "dbp_mm_hg",
    "diastolic": "dbp_mm_hg",
    "map": "map_mm_hg",
    "rr": "respiratory_rate",
    "resp_rate": "respiratory_rate",
    "temp": "temp_c",
    "temperature": "temp_c",
    "spo2": "spo2_percent",
    "sao2": "sao2_percent",
    "fio2": "fio2_percent",
    "pao2": "pao2_mm_hg",
    "paco2": "paco2_mm_hg",
    "na": "sodium_mmol_l",
    "sodium": "sodium_mmol_l",
    "k": "potassium_mmol_l",
    "potassium": "potassium_mmol_l",
    "cl": "chloride_mmol_l",
    "chloride": "chloride_mmol_l",
    "hco3": "bicarbonate_mmol_l",
    "bicarb": "bicarbonate_mmol_l",
    "bicarbonate": "bicarbonate_mmol_l",
    "bun": "bun_mg_dl",
    "urea": "bun_mg_dl",
    "cr": "creatinine_mg_dl",
    "creat": "creatinine_mg_dl",
    "creatinine": "creatinine_mg_dl",
    "serum_creatinine": "creatinine_mg_dl",
    "glucose": "glucose_mg_dl",
    "glu": "glucose_mg_dl",
    "albumin": "albumin_g_dl",
    "alb": "albumin_g_dl",
    "bilirubin": "bilirubin_mg_dl",
    "bili": "bilirubin_mg_dl",
    "ca": "calcium_mg_dl",
    "calcium": "calcium_mg_dl",
    "plt": "platelets_10e9_l",
    "platelets": "platelets_10e9_l",
    "wbc": "wbc_10e9_l",
    "hb": "hemoglobin_g_dl",
    "hgb": "hemoglobin_g_dl",
    "hemoglobin": "hemoglobin_g_dl",
    "hct": "hematocrit_percent",
    "hematocrit": "hematocrit_percent",
    "weight": "weight_kg",
    "wt": "weight_kg",
    "height": "height_cm",
    "ht": "height_cm",
    "gcs": "gcs_total",
    "lactate": "lactate_mmol_l",
    "ast": "ast_u_l",
    "alt": "alt_u_l",
    "qt": "qt_ms",
    "gender": "sex",
}

_ALIASES_BY_TARGET: Dict[str, List[str]] = {}
for _alias, _target in ALIASES.items():
    _ALIASES_BY_TARGET.setdefault(_target, []).append(_alias)


def _candidate_keys(inp: CalcInput) -> List[str]:
    keys = [canonical_key(inp.key)]
    keys.extend(canonical_key(s) for s in inp.synonyms)
    keys.extend(_ALIASES_BY_TARGET.get(inp.key, []))
    return keys


def coerce(inp: CalcInput, raw: Any) -> Optional[Any]:
    """Coerce one raw value to the input's declared type and canonical unit.

    Returns None when the value cannot be normalized with confidence.
    """
    if inp.type is InputType.BOOL:
        return parse_bool(raw)

    if inp.type is InputType.ENUM:
        value, _ = split_value(raw) if isinstance(raw, dict) else (raw, "")
        if isinstance(value, bool) or value is None:
            return None
        wanted = canonical_key(str(value))
        for option in inp.options:
            if canonical_key(option) == wanted:
                return option
        # Unambiguous prefix ("f" -> "female")
        matches = [o for o in inp.options if wanted and canonical_key(o).startswith(wanted)]
        return matches[0] if len(matches) == 1 else None

    value, unit = split_value(raw)
    num = parse_number(value)
    if num is None:
        return None
    return convert(num, unit, inp.unit, inp.analyte)


def normalize(definition: CalculatorDefinition, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Produce the normalized input bundle for one calculator.

    Never raises on malformed input: anything that cannot be normalized is
    left out so the validator reports it. Normalizing an already normalized
    bundle returns it unchanged.
    """
    if not isinstance(raw, Mapping):
        return {}

    by_key: Dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        by_key.setdefault(canonical_key(key), value)

    bundle: Dict[str, Any] = {}
    for inp in definition.inputs:
        source = next((k for k in _candidate_keys(inp) if k in by_key), None)
        if source is None:
            continue
        value = coerce(inp, by_key[source])
        if value is None:
            logger.debug(f"{definition.id}: dropped {inp.key} from {source}={by_key[source]!r}")
            continue
        bundle[inp.key] = value
    return bundle


def normalize_inputs(registry, calculator_id: str, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Look up ``calculator_id`` in ``registry`` and normalize ``raw`` for it."""
    return normalize(registry.lookup(calculator_id), raw)
