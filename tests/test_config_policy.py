import json

import pytest
from pydantic import ValidationError

from clinicalc.config import Settings, load_settings
from clinicalc.errors import ConfigError
from clinicalc.models import PolicyEntry
from clinicalc.policy import STRICT_POLICIES, PolicyTable, load_policy_overrides, policy_for


# ── Settings ─────────────────────────────────────────────────────────────────

def test_defaults_without_environment():
    settings = load_settings({})
    assert settings == Settings()
    assert settings.authority == "reference"
    assert settings.default_timeout_ms == 2000
    assert settings.log_level == "WARNING"


def test_environment_overrides():
    settings = load_settings({
        "CLINICALC_AUTHORITY": "Chain",
        "CLINICALC_AUTHORITY_URL": "http://calc.local/recompute",
        "CLINICALC_AUTHORITY_ATTEMPTS": "3",
        "CLINICALC_DEFAULT_TIMEOUT_MS": "750",
        "CLINICALC_DEFAULT_TOLERANCE_PCT": "0.5",
        "CLINICALC_DEFAULT_PRECISION": "1",
        "CLINICALC_LOG_LEVEL": "debug",
        "UNRELATED": "x",
    })
    assert settings.authority == "chain"
    assert settings.authority_url == "http://calc.local/recompute"
    assert settings.authority_attempts == 3
    assert settings.default_timeout_ms == 750
    assert settings.default_tolerance_pct == 0.5
    assert settings.default_precision == 1
    assert settings.log_level == "DEBUG"


def test_empty_variables_fall_back_to_defaults():
    assert load_settings({"CLINICALC_DEFAULT_TIMEOUT_MS": "  ", "CLINICALC_AUTHORITY": ""}) == Settings()


@pytest.mark.parametrize("env", [
    {"CLINICALC_DEFAULT_TIMEOUT_MS": "soon"},
    {"CLINICALC_DEFAULT_TIMEOUT_MS": "0"},
    {"CLINICALC_AUTHORITY": "oracle"},
    {"CLINICALC_LOG_LEVEL": "chatty"},
    {"CLINICALC_AUTHORITY": "remote"},
])
def test_invalid_settings_raise_config_error(env):
    with pytest.raises(ConfigError):
        load_settings(env)


def test_settings_are_frozen():
    with pytest.raises(ValidationError):
        Settings().authority = "none"


# ── Policy table ─────────────────────────────────────────────────────────────

def test_strict_defaults():
    assert policy_for("meld_na").strict
    assert policy_for("meld_na").precision == 0
    assert policy_for("cockcroft_gault") == STRICT_POLICIES["cockcroft_gault"]
    assert policy_for("curb65") == PolicyEntry()
    assert not policy_for("curb65").strict


def test_policy_table_default_and_overrides():
    table = PolicyTable(default=PolicyEntry(tolerance_pct=5.0))
    assert "meld_na" in table
    assert table.policy_for("bmi").tolerance_pct == 5.0
    merged = table.with_overrides({"bmi": PolicyEntry(strict=True)})
    assert merged.policy_for("bmi").strict
    assert not table.policy_for("bmi").strict
    assert merged.default.tolerance_pct == 5.0


def test_policy_entry_bounds():
    with pytest.raises(ValidationError):
        PolicyEntry(timeout_ms=0)
    with pytest.raises(ValidationError):
        PolicyEntry(tolerance_pct=-1)


def test_load_policy_overrides(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({
        "default": {"tolerance_pct": 0.5},
        "calculators": {"fib4": {"strict": True, "precision": 2}, "meld_na": {"strict": False}},
    }))
    table = load_policy_overrides(path)
    assert table.policy_for("fib4") == PolicyEntry(strict=True, precision=2)
    assert not table.policy_for("meld_na").strict
    assert table.policy_for("cockcroft_gault").strict
    assert table.policy_for("bmi").tolerance_pct == 0.5


def test_load_policy_overrides_keeps_base_default(tmp_path):
    path = tmp_path / "policy.json"
    path.write_text(json.dumps({"calculators": {}}))
    base = PolicyTable(default=PolicyEntry(precision=4))
    assert load_policy_overrides(path, base).policy_for("bmi").precision == 4


@pytest.mark.parametrize("content", ["{not json", json.dumps({"calculators": {"fib4": {"timeout_ms": -5}}}),
                                     json.dumps({"calculators": []})])
def test_invalid_policy_file(tmp_path, content):
    path = tmp_path / "policy.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_policy_overrides(path)


def test_missing_policy_file(tmp_path):
    with pytest.raises(ConfigError, match="cannot read"):
        load_policy_overrides(tmp_path / "absent.json")
