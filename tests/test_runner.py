import asyncio

import pytest

from clinicalc.config import Settings
from clinicalc.errors import AuthorityError, UnknownCalculatorError
from clinicalc.models import PolicyEntry, VerdictStatus
from clinicalc.policy import PolicyTable
from clinicalc.runner import (
    AuthoritativeRunner,
    authorities_from_settings,
    build_runner,
    run_calc_authoritative,
    run_many,
)

ANION_GAP = {"na": 140, "cl": 104, "hco3": 24}
CRCL = {"age": 60, "weight": 72, "sex": "male", "creatinine": 1.0}


class FixedAuthority:
    def __init__(self, value, name="fixed"):
        self.value = value
        self.name = name
        self.calls = []

    async def recompute(self, calculator_id, formula_spec, inputs, timeout_ms):
        self.calls.append((calculator_id, formula_spec, dict(inputs), timeout_ms))
        return self.value


class FailingAuthority:
    name = "failing"

    async def recompute(self, calculator_id, formula_spec, inputs, timeout_ms):
        raise AuthorityError("service unavailable")


class SlowAuthority:
    name = "slow"

    async def recompute(self, calculator_id, formula_spec, inputs, timeout_ms):
        await asyncio.sleep(5)
        return 0.0


def _run(runner, calc_id, raw):
    return asyncio.run(runner.run(calc_id, raw))


# ── Blocking before any authority call ───────────────────────────────────────

def test_missing_inputs_block_without_calling_authority(registry):
    auth = FixedAuthority(12.0)
    runner = AuthoritativeRunner(registry, authorities=[auth])
    verdict = _run(runner, "anion_gap", {"na": 140})
    assert verdict.status is VerdictStatus.BLOCKED
    assert verdict.missing == ["chloride_mmol_l", "bicarbonate_mmol_l"]
    assert verdict.reason.startswith("missing required inputs")
    assert verdict.attempts == 0
    assert verdict.final == 0.0
    assert auth.calls == []


def test_unknown_calculator_raises(registry):
    runner = AuthoritativeRunner(registry)
    with pytest.raises(UnknownCalculatorError):
        _run(runner, "no_such_score", {})


def test_not_computable_blocks(registry):
    runner = AuthoritativeRunner(registry)
    verdict = _run(runner, "delta_ratio", ANION_GAP)
    assert verdict.blocked
    assert verdict.reason == "not computable from the given inputs"
    assert verdict.missing == []


# ── Agreement and disagreement ───────────────────────────────────────────────

def test_reference_authority_agrees(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.OK
    assert verdict.tier == "reference"
    assert verdict.final == 12.0
    assert verdict.attempts == 1
    assert verdict.agree_with_local is True
    assert verdict.delta_abs == 0.0
    assert verdict.local.value == 12.0


def test_agreement_within_tolerance(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies, authorities=[FixedAuthority(12.1)])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.OK
    assert verdict.agree_with_local
    assert verdict.tier == "fixed"
    assert verdict.delta_pct == pytest.approx(0.1 / 12.1 * 100)


def test_disagreement_non_strict(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies, authorities=[FixedAuthority(20.0)])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.DISAGREEMENT
    assert verdict.final == 12.0
    assert verdict.agree_with_local is False
    assert verdict.delta_abs == pytest.approx(8.0)
    assert verdict.delta_pct == pytest.approx(40.0)
    assert "exceeds tolerance" in verdict.reason


def test_disagreement_strict_blocks(registry):
    runner = AuthoritativeRunner(registry, authorities=[FixedAuthority(100.0)])
    verdict = _run(runner, "cockcroft_gault", CRCL)
    assert verdict.blocked
    assert verdict.final == 0.0
    assert verdict.delta_pct == pytest.approx(20.0)
    assert verdict.reason.startswith("strict policy")
    assert verdict.local.value == pytest.approx(80.0)


def test_authority_gets_canonical_inputs_with_defaults(registry):
    auth = FixedAuthority(9.6)
    runner = AuthoritativeRunner(registry, authorities=[auth])
    verdict = _run(runner, "corrected_calcium", {"calcium": 8.0, "albumin": 2.0})
    assert verdict.status is VerdictStatus.OK
    (calc_id, spec, inputs, timeout_ms), = auth.calls
    assert calc_id == "corrected_calcium"
    assert "calcium_mg_dl" in spec
    assert inputs == {"calcium_mg_dl": 8.0, "albumin_g_dl": 2.0, "normal_albumin_g_dl": 4.0}
    assert 0 < timeout_ms <= 2000


def test_final_rounded_to_policy_precision(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    verdict = _run(runner, "bmi", {"weight": 80, "height": 170})
    assert verdict.status is VerdictStatus.OK
    assert verdict.final == 27.7


# ── Failures, timeouts and fallback ──────────────────────────────────────────

def test_timeout_non_strict_returns_unverified_local(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies, authorities=[SlowAuthority()])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.OK
    assert verdict.tier == "local"
    assert verdict.attempts == 1
    assert verdict.agree_with_local is False
    assert verdict.final == 12.0
    assert "unverified" in verdict.reason
    assert "timed out" in verdict.reason


def test_timeout_strict_blocks(registry):
    policies = PolicyTable(entries={"anion_gap": PolicyEntry(strict=True, timeout_ms=100)})
    runner = AuthoritativeRunner(registry, policies=policies, authorities=[SlowAuthority()])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.blocked
    assert verdict.attempts == 1
    assert verdict.reason.startswith("strict policy: no authoritative value")


def test_falls_back_to_next_authority(registry, fast_policies):
    fallback = FixedAuthority(12.0, name="backup")
    runner = AuthoritativeRunner(registry, policies=fast_policies, authorities=[FailingAuthority(), fallback])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.OK
    assert verdict.tier == "backup"
    assert verdict.attempts == 2


def test_non_finite_authority_value_counts_as_failure(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies,
                                 authorities=[FixedAuthority(float("nan")), FixedAuthority(12.0, name="ok")])
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.tier == "ok"
    assert verdict.attempts == 2


def test_every_authority_failing_strict_blocks(registry):
    runner = AuthoritativeRunner(registry, authorities=[FailingAuthority(), FailingAuthority()])
    verdict = _run(runner, "meld_na", {"bili": 3, "inr": 2, "cr": 2, "na": 130})
    assert verdict.blocked
    assert verdict.attempts == 2
    assert "service unavailable" in verdict.reason


def test_no_formula_spec_is_unverified(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies, formulas={})
    verdict = _run(runner, "anion_gap", ANION_GAP)
    assert verdict.status is VerdictStatus.OK
    assert verdict.tier == "local"
    assert verdict.attempts == 0
    assert "no formula spec" in verdict.reason


def test_no_formula_spec_strict_blocks(registry):
    runner = AuthoritativeRunner(registry, formulas={})
    verdict = _run(runner, "cockcroft_gault", CRCL)
    assert verdict.blocked
    assert verdict.attempts == 0


def test_no_authorities_configured(registry):
    runner = AuthoritativeRunner(registry, authorities=[])
    verdict = _run(runner, "cockcroft_gault", CRCL)
    assert verdict.blocked
    assert "no authority configured" in verdict.reason


# ── Batch, serialization and wiring ──────────────────────────────────────────

def test_run_many_keeps_request_order(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    verdicts = asyncio.run(runner.run_many([
        ("anion_gap", ANION_GAP),
        ("bmi", {"weight": 80, "height": 170}),
        ("anion_gap", {"na": 140}),
    ]))
    assert [v.calculator_id for v in verdicts] == ["anion_gap", "bmi", "anion_gap"]
    assert [v.status for v in verdicts] == [VerdictStatus.OK, VerdictStatus.OK, VerdictStatus.BLOCKED]


def test_verdict_serializes_camel_case(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    dumped = _run(runner, "anion_gap", ANION_GAP).model_dump(by_alias=True, mode="json")
    for key in ("calculatorId", "status", "final", "tier", "attempts", "agreeWithLocal", "deltaAbs", "deltaPct"):
        assert key in dumped
    assert dumped["status"] == "ok"
    assert dumped["agreeWithLocal"] is True


def test_module_level_helpers_accept_runner(registry, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    verdict = asyncio.run(run_calc_authoritative("ANION_GAP", ANION_GAP, runner=runner))
    assert verdict.calculator_id == "anion_gap"
    verdicts = asyncio.run(run_many([("anion_gap", ANION_GAP)], runner=runner))
    assert verdicts[0].final == 12.0


def test_authorities_from_settings():
    assert authorities_from_settings(Settings(authority="none")) == []
    assert [a.name for a in authorities_from_settings(Settings())] == ["reference"]
    chain = authorities_from_settings(Settings(authority="chain", authority_url="http://calc.local/recompute"))
    assert [a.name for a in chain] == ["remote", "reference"]


def test_build_runner_uses_settings_defaults(registry):
    settings = Settings(default_precision=3, default_tolerance_pct=0.5, default_timeout_ms=500)
    runner = build_runner(settings, registry=registry)
    policy = runner.policies.policy_for("anion_gap")
    assert (policy.precision, policy.tolerance_pct, policy.timeout_ms) == (3, 0.5, 500)
    assert runner.policies.policy_for("meld_na").strict
