"""Clinical calculator engine with independent verification."""

from .compute import compute_all, describe
from .errors import (
    AuthorityError,
    ClinicalcError,
    ConfigError,
    DuplicateRegistrationError,
    FormulaError,
    UnknownCalculatorError,
)
from .extract import extract_values
from .models import (
    CalcInput,
    CalculatorDefinition,
    CalculatorResult,
    InputType,
    PolicyEntry,
    ValidationResult,
    VerdictStatus,
    VerificationVerdict,
)
from .normalize import normalize, normalize_inputs
from .policy import PolicyTable, policy_for
from .registry import Registry, build_registry, default_registry
from .runner import AuthoritativeRunner, run_calc_authoritative, run_many
from .validate import validate

__version__ = "0.1.0"
