import threading

import pytest

from clinicalc.calculators import FAMILIES
from clinicalc.calculators._base import CalculatorSet, num, scored
from clinicalc.errors import DuplicateRegistrationError, UnknownCalculatorError
from clinicalc.registry import Registry, build_registry, default_registry


def _toy_set():
    calcs = CalculatorSet("toy")

    @calcs.define("double", "Double It", [num("x")])
    def double(v):
        return scored(2 * v["x"])

    return calcs


def test_build_registry_holds_every_family(registry):
    expected = sum(len(module.CALCS.definitions) for module in FAMILIES)
    assert len(registry) == expected
    assert len(set(registry.ids())) == expected
    assert len(registry) > 150


def test_registered_ids_are_unique_across_families():
    seen = {}
    for module in FAMILIES:
        for definition in module.CALCS.definitions:
            assert definition.id not in seen, f"{definition.id} in {module.CALCS.family} and {seen.get(definition.id)}"
            seen[definition.id] = module.CALCS.family


def test_lookup_exact_then_case_insensitive(registry):
    assert registry.lookup("meld_na").id == "meld_na"
    assert registry.lookup("MELD_Na").id == "meld_na"
    assert registry.lookup("  curb65 ").id == "curb65"


def test_unknown_id_raises(registry):
    with pytest.raises(UnknownCalculatorError) as exc:
        registry.lookup("apache_iv")
    assert exc.value.calculator_id == "apache_iv"
    assert "apache_iv" in str(exc.value)
    assert isinstance(exc.value, KeyError)


def test_duplicate_registration_rejected():
    reg = Registry()
    _toy_set().register_all(reg)
    with pytest.raises(DuplicateRegistrationError):
        _toy_set().register_all(reg)
    assert reg.ids() == ["double"]


def test_concurrent_registration_keeps_one_copy():
    reg = Registry()
    errors = []

    def register():
        try:
            _toy_set().register_all(reg)
        except DuplicateRegistrationError as e:
            errors.append(e)

    threads = [threading.Thread(target=register) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(reg) == 1
    assert len(errors) == 7


def test_toy_calculator_runs():
    reg = Registry()
    _toy_set().register_all(reg)
    definition = reg.lookup("double")
    assert "double" in reg
    assert definition.tags == ["toy"]
    assert definition.run({"x": "2.5"}).value == 5.0
    assert definition.run({}) is None


def test_default_registry_is_shared():
    assert default_registry() is default_registry()
    assert default_registry() is not build_registry()
