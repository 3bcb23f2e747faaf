"""Batch computation and human-readable calculator descriptions."""

import logging
from typing import Any, List, Mapping

from .models import CalculatorDefinition, CalculatorResult, InputType
from .normalize import normalize
from .validate import validate

logger = logging.getLogger(__name__)


def compute_all(registry, raw: Mapping[str, Any]) -> List[CalculatorResult]:
    """Run every calculator whose required inputs are all present in ``raw``.

    Results come back in registry order; calculators that are missing inputs
    or cannot compute (e.g. a zero denominator) are skipped.
    """
    results: List[CalculatorResult] = []
    for definition in registry:
        bundle = normalize(definition, raw)
        if not validate(definition, bundle).ok:
            continue
        result = definition.run(bundle)
        if result is not None:
            results.append(result)
    logger.debug(f"compute_all produced {len(results)} results")
    return results


def describe(definition: CalculatorDefinition) -> str:
    lines = [f"{definition.id}: {definition.label} [{definition.unit}]"]
    for inp in definition.inputs:
        if inp.type is InputType.ENUM:
            kind = "one of " + "|".join(inp.options)
        elif inp.type is InputType.BOOL:
            kind = "yes/no"
        else:
            kind = f"number ({inp.unit})" if inp.unit else "number"
        if inp.required:
            need = "required"
        elif inp.default is not None:
            need = f"default {inp.default}"
        else:
            need = "optional"
        line = f"  {inp.key}: {kind}, {need}"
        if inp.synonyms:
            line += f"; also {', '.join(inp.synonyms)}"
        lines.append(line)
    return "\n".join(lines)
