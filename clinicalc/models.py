"""Pydantic models for clinicalc."""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InputType(str, Enum):
    """Value kinds a calculator input may declare."""

    NUMBER = "number"
    BOOL = "bool"
    ENUM = "enum"


class CalcInput(BaseModel):
    """A declared calculator input field."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str = ""
    type: InputType = InputType.NUMBER
    required: bool = False
    unit: str = ""  # canonical unit
    analyte: str = ""  # unit conversion family, see units.py
    synonyms: List[str] = []
    options: List[str] = []  # allowed values for enum inputs
    default: Any = None  # used for optional inputs when absent


class CalculatorResult(BaseModel):
    """Output of a single calculator invocation."""

    id: str
    label: str
    value: Optional[float] = None
    unit: str = ""
    precision: int = 0
    notes: List[str] = []
    extra: Dict[str, Any] = {}

    @property
    def display(self) -> Optional[float]:
        """Value rounded to the declared precision."""
        if self.value is None:
            return None
        return round(self.value, self.precision)


class CalculatorDefinition(BaseModel):
    """The unit of registration: one named formula and its inputs."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    label: str
    inputs: List[CalcInput]
    run: Callable[[Mapping[str, Any]], Optional[CalculatorResult]] = Field(repr=False)
    unit: str = "points"
    precision: int = 0
    tags: List[str] = []

    @property
    def required_keys(self) -> List[str]:
        return [inp.key for inp in self.inputs if inp.required]

    def field(self, key: str) -> Optional[CalcInput]:
        for inp in self.inputs:
            if inp.key == key:
                return inp
        return None


class ValidationResult(BaseModel):
    """Outcome of the required-field check."""

    ok: bool
    missing: List[str] = []


class VerdictStatus(str, Enum):
    """Terminal states of the verification runner."""

    OK = "ok"
    BLOCKED = "blocked"
    DISAGREEMENT = "disagreement"


class VerificationVerdict(BaseModel):
    """Terminal output of the authoritative runner.

    Serializes with camelCase keys (``agreeWithLocal``, ``deltaPct``) when
    dumped with ``by_alias=True``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    calculator_id: str
    status: VerdictStatus
    final: float = 0.0
    tier: str = "local"
    attempts: int = 0
    agree_with_local: bool = False
    delta_abs: float = math.nan
    delta_pct: float = math.nan
    reason: Optional[str] = None
    missing: List[str] = []
    local: Optional[CalculatorResult] = None

    @property
    def blocked(self) -> bool:
        return self.status is VerdictStatus.BLOCKED


class PolicyEntry(BaseModel):
    """Per-calculator verification policy."""

    model_config = ConfigDict(frozen=True)

    precision: int = Field(default=2, ge=0, le=10)
    tolerance_pct: float = Field(default=1.0, ge=0)
    strict: bool = False
    timeout_ms: int = Field(default=2000, gt=0)
