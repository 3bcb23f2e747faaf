"""Shared declaration helpers for calculator modules.

Each family module builds a :class:`CalculatorSet`, declares its calculators
with the ``define`` decorator, and exposes ``register_all`` for the registry
initializer. A calculator body receives a validated bundle with defaults
filled in and returns :func:`scored` output, or None when the formula is
undefined for the given values (e.g. a zero denominator).
"""

import math
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..models import CalcInput, CalculatorDefinition, CalculatorResult, InputType
from ..normalize import normalize
from ..validate import validate


# ── Input declarations ──────────────────────────────────────────────────────

def num(key: str, unit: str = "", analyte: str = "", required: bool = True,
        synonyms: Sequence[str] = (), label: str = "", default: Optional[float] = None) -> CalcInput:
    return CalcInput(key=key, label=label or key, type=InputType.NUMBER, required=required and default is None,
                     unit=unit, analyte=analyte, synonyms=list(synonyms), default=default)


def flag(key: str, synonyms: Sequence[str] = (), label: str = "", required: bool = False) -> CalcInput:
    return CalcInput(key=key, label=label or key, type=InputType.BOOL, required=required,
                     synonyms=list(synonyms), default=None if required else False)


def choice(key: str, options: Sequence[str], required: bool = True, default: Optional[str] = None,
           synonyms: Sequence[str] = (), label: str = "") -> CalcInput:
    return CalcInput(key=key, label=label or key, type=InputType.ENUM, required=required and default is None,
                     options=list(options), synonyms=list(synonyms), default=default)


# ── Result helpers ──────────────────────────────────────────────────────────

def scored(value: float, *notes: str, **extra: Any) -> Dict[str, Any]:
    return {"value": value, "notes": [n for n in notes if n], "extra": extra}


def band(total: float, table: Sequence[Tuple[float, str]]) -> str:
    """Label of the highest threshold in ``table`` that ``total`` reaches.

    ``table`` is ascending ``(lower_bound, label)`` pairs; lower bounds are
    inclusive.
    """
    label = table[0][1]
    for lower, name in table:
        if total >= lower:
            label = name
    return label


def fired(criteria: Mapping[str, bool]) -> List[str]:
    return [name for name, hit in criteria.items() if hit]


def steps(value: float, bins: Sequence[Tuple[float, int]], above: int) -> int:
    """Points for the first ``(upper_bound, points)`` bin with value < bound."""
    for upper, pts in bins:
        if value < upper:
            return pts
    return above


def upto(value: float, bins: Sequence[Tuple[float, int]], above: int) -> int:
    """Points for the first ``(upper_bound, points)`` bin with value <= bound."""
    for upper, pts in bins:
        if value <= upper:
            return pts
    return above


def ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator <= 0:
        return None
    return numerator / denominator


def _clamp(val: float, lo: float, hi: float) -> float:
    return max(lo, min(val, hi))


# ── Definition wiring ───────────────────────────────────────────────────────

def _bind(calc_id: str, label: str, inputs: List[CalcInput], unit: str, precision: int,
          tags: Iterable[str], body: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]) -> CalculatorDefinition:
    definition: Optional[CalculatorDefinition] = None

    def run(values: Mapping[str, Any]) -> Optional[CalculatorResult]:
        bundle = normalize(definition, values)
        if not validate(definition, bundle).ok:
            return None
        for inp in definition.inputs:
            if inp.key not in bundle:
                bundle[inp.key] = inp.default
        out = body(bundle)
        if out is None:
            return None
        value = out["value"]
        if value is None or not math.isfinite(value):
            return None
        return CalculatorResult(id=calc_id, label=label, value=float(value), unit=unit,
                                precision=precision, notes=out["notes"], extra=out["extra"])

    definition = CalculatorDefinition(id=calc_id, label=label, inputs=inputs, run=run,
                                      unit=unit, precision=precision, tags=list(tags))
    return definition


class CalculatorSet:
    """Calculators declared by one family module."""

    def __init__(self, family: str):
        self.family = family
        self.definitions: List[CalculatorDefinition] = []

    def define(self, calc_id: str, label: str, inputs: List[CalcInput], unit: str = "points",
               precision: int = 0):
        def decorator(body):
            self.definitions.append(_bind(calc_id, label, inputs, unit, precision, [self.family], body))
            return body
        return decorator

    def register_all(self, registry) -> None:
        for definition in self.definitions:
            registry.register(definition)
