import asyncio

import pytest

from clinicalc.formulas import FORMULA_SPECS, formula_for
from clinicalc.models import VerdictStatus
from clinicalc.registry import build_registry
from clinicalc.runner import AuthoritativeRunner


def test_every_formula_names_a_registered_calculator():
    ids = set(build_registry().ids())
    assert set(FORMULA_SPECS) <= ids


@pytest.mark.parametrize("calc_id", sorted(FORMULA_SPECS))
def test_reference_formula_agrees_with_calculator(calc_id, registry, sample_inputs, fast_policies):
    runner = AuthoritativeRunner(registry, policies=fast_policies)
    bag = sample_inputs(registry.lookup(calc_id))
    verdict = asyncio.run(runner.run(calc_id, bag))
    assert verdict.status is VerdictStatus.OK, verdict.reason
    assert verdict.tier == "reference"
    assert verdict.agree_with_local


def test_formula_for_custom_table():
    assert formula_for("anion_gap") == FORMULA_SPECS["anion_gap"]
    assert formula_for("anion_gap", {"anion_gap": "1"}) == "1"
    assert formula_for("curb65") is None
