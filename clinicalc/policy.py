"""Per-calculator verification policy."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from .errors import ConfigError
from .models import PolicyEntry

logger = logging.getLogger(__name__)

# High-stakes calculators: a disagreement or an unverifiable value blocks.
STRICT_POLICIES: Dict[str, PolicyEntry] = {
    "meld_classic": PolicyEntry(precision=0, strict=True),
    "meld_na": PolicyEntry(precision=0, strict=True),
    "meld_3_0": PolicyEntry(precision=0, strict=True),
    "cockcroft_gault": PolicyEntry(precision=1, strict=True),
    "egfr_ckd_epi_2021": PolicyEntry(precision=0, strict=True),
    "egfr_mdrd": PolicyEntry(precision=0, strict=True),
    "aa_gradient": PolicyEntry(precision=2, strict=True),
    "pf_ratio": PolicyEntry(precision=0, strict=True),
    "corrected_sodium_hyperglycemia": PolicyEntry(precision=1, strict=True),
    "corrected_calcium": PolicyEntry(precision=1, strict=True),
    "free_water_deficit": PolicyEntry(precision=1, strict=True),
    "sodium_correction_rate": PolicyEntry(precision=1, strict=True),
    "nee": PolicyEntry(precision=2, strict=True),
}


class PolicyTable:
    """Lookup of :class:`PolicyEntry` by calculator id with a fallback default."""

    def __init__(self, entries: Optional[Mapping[str, PolicyEntry]] = None,
                 default: Optional[PolicyEntry] = None):
        self.entries: Dict[str, PolicyEntry] = dict(STRICT_POLICIES if entries is None else entries)
        self.default = default or PolicyEntry()

    def policy_for(self, calculator_id: str) -> PolicyEntry:
        return self.entries.get(calculator_id, self.default)

    def with_overrides(self, overrides: Mapping[str, PolicyEntry],
                       default: Optional[PolicyEntry] = None) -> "PolicyTable":
        merged = dict(self.entries)
        merged.update(overrides)
        return PolicyTable(merged, default or self.default)

    def __contains__(self, calculator_id: object) -> bool:
        return calculator_id in self.entries


class _PolicyFile(BaseModel):
    default: Optional[PolicyEntry] = None
    calculators: Dict[str, PolicyEntry] = {}


def load_policy_overrides(path: Union[str, Path], base: Optional[PolicyTable] = None) -> PolicyTable:
    """Merge a JSON override file onto ``base`` (the built-in table by default).

    File shape::

        {"default": {"tolerance_pct": 0.5},
         "calculators": {"fib4": {"strict": true, "precision": 2}}}

    Raises
    ------
    ConfigError
        If the file is missing, is not JSON, or holds invalid entries.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text())
    except OSError as e:
        raise ConfigError(f"cannot read policy file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"policy file {path} is not valid JSON: {e}") from e
    try:
        parsed = _PolicyFile.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"invalid policy file {path}: {e}") from e
    logger.info(f"Loaded {len(parsed.calculators)} policy overrides from {path}")
    return (base or PolicyTable()).with_overrides(parsed.calculators, parsed.default)


_DEFAULT_TABLE = PolicyTable()


def policy_for(calculator_id: str) -> PolicyEntry:
    """Policy from the built-in table."""
    return _DEFAULT_TABLE.policy_for(calculator_id)
