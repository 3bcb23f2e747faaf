"""Exception types raised by clinicalc.

Only integration and configuration problems raise. Missing or implausible
clinical data never does: it surfaces as a ``None`` result or a blocked
verdict.
"""


class ClinicalcError(Exception):
    """Base class for clinicalc errors."""


class UnknownCalculatorError(ClinicalcError, KeyError):
    """No calculator is registered under the requested id."""

    def __init__(self, calculator_id: str):
        self.calculator_id = calculator_id
        super().__init__(f"Unknown calculator: {calculator_id!r}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateRegistrationError(ClinicalcError):
    """A calculator id was registered twice."""

    def __init__(self, calculator_id: str):
        self.calculator_id = calculator_id
        super().__init__(f"Calculator {calculator_id!r} is already registered")


class AuthorityError(ClinicalcError):
    """An authority could not produce a value."""


class FormulaError(AuthorityError):
    """A formula specification could not be evaluated."""


class ConfigError(ClinicalcError):
    """Invalid settings or policy overrides."""
