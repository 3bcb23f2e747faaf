"""Authoritative verification runner.

Computes a calculator locally, asks one or more authorities to recompute the
same value independently, and reconciles the two into a
:class:`VerificationVerdict` according to the calculator's policy.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .authority import AuthorityClient, ReferenceAuthority, RemoteAuthority
from .config import Settings, load_settings
from .errors import AuthorityError
from .formulas import FORMULA_SPECS
from .models import (
    CalculatorDefinition,
    CalculatorResult,
    PolicyEntry,
    VerdictStatus,
    VerificationVerdict,
)
from .normalize import normalize
from .policy import PolicyTable, load_policy_overrides
from .registry import Registry, default_registry
from .validate import validate

logger = logging.getLogger(__name__)

LOCAL_TIER = "local"


def _round(value: float, precision: int) -> float:
    return float(round(value, precision))


class AuthoritativeRunner:
    """Runs calculators and cross-checks them against independent authorities.

    Parameters
    ----------
    registry    : calculator catalog to resolve ids against
    policies    : per-calculator precision/tolerance/strictness/timeout
    formulas    : calculator id -> formula spec handed to authorities
    authorities : tried in order until one produces a finite value
    """

    def __init__(self, registry: Registry, policies: Optional[PolicyTable] = None,
                 formulas: Optional[Mapping[str, str]] = None,
                 authorities: Optional[Sequence[AuthorityClient]] = None):
        self.registry = registry
        self.policies = policies if policies is not None else PolicyTable()
        self.formulas = dict(FORMULA_SPECS if formulas is None else formulas)
        self.authorities: List[AuthorityClient] = (
            [ReferenceAuthority()] if authorities is None else list(authorities))

    # ── Authority calls ─────────────────────────────────────────────────────

    @staticmethod
    def _authority_inputs(definition: CalculatorDefinition, bundle: Mapping[str, Any]) -> Dict[str, Any]:
        return {inp.key: bundle.get(inp.key, inp.default) for inp in definition.inputs}

    async def _recompute(self, calculator_id: str, spec: str, inputs: Dict[str, Any],
                         policy: PolicyEntry) -> Tuple[Optional[float], Optional[str], int, str]:
        """Try each authority within one shared deadline.

        Returns ``(value, authority_name, attempts, failure_reason)``; value
        is None when no authority produced a finite number in time.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + policy.timeout_ms / 1000
        attempts = 0
        failures: List[str] = []
        for authority in self.authorities:
            remaining = deadline - loop.time()
            if remaining <= 0:
                failures.append("timeout budget exhausted")
                break
            attempts += 1
            try:
                value = await asyncio.wait_for(
                    authority.recompute(calculator_id, spec, inputs, remaining * 1000), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning(f"Authority {authority.name} timed out for {calculator_id} "
                               f"after {policy.timeout_ms} ms budget")
                failures.append(f"{authority.name}: timed out")
                continue
            except AuthorityError as e:
                logger.warning(f"Authority {authority.name} failed for {calculator_id}: {e}")
                failures.append(f"{authority.name}: {e}")
                continue
            if value is None or isinstance(value, bool) or not math.isfinite(value):
                logger.warning(f"Authority {authority.name} returned non-finite value for {calculator_id}")
                failures.append(f"{authority.name}: non-finite value")
                continue
            return float(value), authority.name, attempts, ""
        if not self.authorities:
            failures.append("no authority configured")
        return None, None, attempts, "; ".join(failures)

    # ── Verdicts ────────────────────────────────────────────────────────────

    @staticmethod
    def _blocked(calculator_id: str, reason: str, attempts: int = 0, missing: Optional[List[str]] = None,
                 local: Optional[CalculatorResult] = None, delta_abs: float = math.nan,
                 delta_pct: float = math.nan) -> VerificationVerdict:
        return VerificationVerdict(calculator_id=calculator_id, status=VerdictStatus.BLOCKED, final=0.0,
                                   tier=LOCAL_TIER, attempts=attempts, agree_with_local=False,
                                   delta_abs=delta_abs, delta_pct=delta_pct, reason=reason,
                                   missing=missing or [], local=local)

    def _reconcile(self, calculator_id: str, local: CalculatorResult, policy: PolicyEntry,
                   auth_value: Optional[float], tier: Optional[str], attempts: int,
                   failure: str) -> VerificationVerdict:
        value = local.value
        if auth_value is None:
            if policy.strict:
                return self._blocked(calculator_id, f"strict policy: no authoritative value ({failure})",
                                     attempts=attempts, local=local)
            return VerificationVerdict(
                calculator_id=calculator_id, status=VerdictStatus.OK, final=_round(value, policy.precision),
                tier=LOCAL_TIER, attempts=attempts, agree_with_local=False,
                reason=f"unverified local result ({failure})", local=local)

        delta_abs = abs(value - auth_value)
        delta_pct = delta_abs / max(abs(auth_value), 1e-9) * 100
        if delta_pct <= policy.tolerance_pct:
            return VerificationVerdict(
                calculator_id=calculator_id, status=VerdictStatus.OK, final=_round(value, policy.precision),
                tier=tier, attempts=attempts, agree_with_local=True, delta_abs=delta_abs,
                delta_pct=delta_pct, local=local)

        reason = (f"local {value:.6g} vs {tier} {auth_value:.6g}: delta {delta_pct:.3g}% "
                  f"exceeds tolerance {policy.tolerance_pct:g}%")
        logger.warning(f"{calculator_id}: {reason}")
        if policy.strict:
            return self._blocked(calculator_id, f"strict policy: {reason}", attempts=attempts, local=local,
                                 delta_abs=delta_abs, delta_pct=delta_pct)
        return VerificationVerdict(
            calculator_id=calculator_id, status=VerdictStatus.DISAGREEMENT, final=_round(value, policy.precision),
            tier=tier, attempts=attempts, agree_with_local=False, delta_abs=delta_abs, delta_pct=delta_pct,
            reason=reason, local=local)

    async def run(self, calculator_id: str, raw_inputs: Mapping[str, Any]) -> VerificationVerdict:
        """Verify one calculation. Raises UnknownCalculatorError for unknown ids."""
        definition = self.registry.lookup(calculator_id)
        cid = definition.id
        bundle = normalize(definition, raw_inputs)

        check = validate(definition, bundle)
        if not check.ok:
            verdict = self._blocked(cid, f"missing required inputs: {', '.join(check.missing)}",
                                    missing=check.missing)
            logger.info(f"{cid}: blocked, missing {check.missing}")
            return verdict

        local = definition.run(bundle)
        if local is None:
            logger.info(f"{cid}: blocked, not computable from given inputs")
            return self._blocked(cid, "not computable from the given inputs")

        policy = self.policies.policy_for(cid)
        spec = self.formulas.get(cid)
        if spec is None:
            auth_value, tier, attempts, failure = None, None, 0, "no formula spec"
        else:
            auth_value, tier, attempts, failure = await self._recompute(
                cid, spec, self._authority_inputs(definition, bundle), policy)

        verdict = self._reconcile(cid, local, policy, auth_value, tier, attempts, failure)
        logger.info(f"{cid}: {verdict.status.value} final={verdict.final} tier={verdict.tier} "
                    f"attempts={verdict.attempts}")
        return verdict

    async def run_many(self, requests: Iterable[Tuple[str, Mapping[str, Any]]]) -> List[VerificationVerdict]:
        """Verify independent ``(calculator_id, raw_inputs)`` pairs concurrently."""
        return list(await asyncio.gather(*(self.run(cid, raw) for cid, raw in requests)))


# ── Wiring from settings ────────────────────────────────────────────────────

def authorities_from_settings(settings: Settings) -> List[AuthorityClient]:
    if settings.authority == "none":
        return []
    if settings.authority == "reference":
        return [ReferenceAuthority()]
    remote = RemoteAuthority(settings.authority_url, attempts_per_call=settings.authority_attempts)
    if settings.authority == "remote":
        return [remote]
    return [remote, ReferenceAuthority()]


def build_runner(settings: Optional[Settings] = None, registry: Optional[Registry] = None) -> AuthoritativeRunner:
    settings = settings or load_settings()
    default = PolicyEntry(precision=settings.default_precision, tolerance_pct=settings.default_tolerance_pct,
                          timeout_ms=settings.default_timeout_ms)
    policies = PolicyTable(default=default)
    if settings.policy_file:
        policies = load_policy_overrides(settings.policy_file, policies)
    return AuthoritativeRunner(registry or default_registry(), policies=policies,
                               authorities=authorities_from_settings(settings))


@functools.lru_cache(maxsize=1)
def default_runner() -> AuthoritativeRunner:
    return build_runner()


async def run_calc_authoritative(calculator_id: str, raw_inputs: Mapping[str, Any],
                                 runner: Optional[AuthoritativeRunner] = None) -> VerificationVerdict:
    """Verify one calculation with ``runner`` or the process-wide default."""
    return await (runner or default_runner()).run(calculator_id, raw_inputs)


async def run_many(requests: Iterable[Tuple[str, Mapping[str, Any]]],
                   runner: Optional[AuthoritativeRunner] = None) -> List[VerificationVerdict]:
    return await (runner or default_runner()).run_many(requests)
