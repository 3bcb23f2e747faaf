import json

import pytest

from clinicalc.__main__ import main
from clinicalc.compute import compute_all, describe
from clinicalc.extract import extract_values

NOTE = "Labs: Na 140 mmol/L, K 4.1, Cl 104, HCO3 24, glucose 10 mmol/L. BP 120/80, HR 88 bpm."


@pytest.fixture(autouse=True)
def _reference_settings(monkeypatch):
    for suffix in ("AUTHORITY_URL", "POLICY_FILE", "LOG_LEVEL"):
        monkeypatch.delenv(f"CLINICALC_{suffix}", raising=False)
    monkeypatch.setenv("CLINICALC_AUTHORITY", "reference")


# ── Extraction ───────────────────────────────────────────────────────────────

def test_extract_values_from_note():
    bag = extract_values(NOTE)
    assert bag["sodium_mmol_l"] == {"value": 140.0, "unit": "mmol/L"}
    assert bag["potassium_mmol_l"] == 4.1
    assert bag["chloride_mmol_l"] == 104.0
    assert bag["bicarbonate_mmol_l"] == 24.0
    assert bag["glucose_mg_dl"] == {"value": 10.0, "unit": "mmol/L"}
    assert bag["sbp_mm_hg"] == 120.0
    assert bag["dbp_mm_hg"] == 80.0
    assert bag["heart_rate_bpm"] == 88.0


def test_extract_first_match_wins():
    assert extract_values("sodium 130 then sodium 140")["sodium_mmol_l"] == 130.0


def test_extract_empty_text():
    assert extract_values("") == {}
    assert extract_values("no numbers here") == {}


def test_compute_all_from_extracted_values(registry):
    results = {r.id: r for r in compute_all(registry, extract_values(NOTE))}
    assert results["anion_gap"].value == 12.0
    assert results["anion_gap_k"].value == pytest.approx(16.1)
    assert results["effective_osmolality"].value == pytest.approx(280 + 180.182 / 18)
    assert results["shock_index"].value == pytest.approx(88 / 120)
    assert "delta_ratio" not in results
    assert "meld_na" not in results


def test_compute_all_keeps_registry_order(registry):
    ids = [r.id for r in compute_all(registry, extract_values(NOTE))]
    order = registry.ids()
    assert ids == sorted(ids, key=order.index)


def test_describe_lists_inputs(registry):
    text = describe(registry.lookup("aa_gradient"))
    assert text.splitlines()[0] == "aa_gradient: Alveolar-arterial O2 Gradient [mmHg]"
    assert "  age_years: number (years), optional" in text
    assert "  patm_mm_hg: number (mmHg), default 760.0; also barometric_pressure" in text


# ── Command line ─────────────────────────────────────────────────────────────

def test_cli_list(capsys):
    assert main(["list"]) == 0
    out = capsys.readouterr().out
    assert "anion_gap" in out
    assert "wells_pe" in out


def test_cli_list_family(capsys):
    assert main(["list", "--family", "vte"]) == 0
    out = capsys.readouterr().out
    assert "wells_pe" in out
    assert "anion_gap" not in out


def test_cli_info(capsys):
    assert main(["info", "BMI"]) == 0
    assert "weight_kg" in capsys.readouterr().out


def test_cli_run_verified(capsys):
    assert main(["run", "anion_gap", "na=140", "cl=104", "hco3=24"]) == 0
    verdict = json.loads(capsys.readouterr().out)
    assert verdict["status"] == "ok"
    assert verdict["final"] == 12.0
    assert verdict["tier"] == "reference"
    assert verdict["agreeWithLocal"] is True


def test_cli_run_with_units(capsys):
    assert main(["run", "pf_ratio", "pao2=10 kPa", "fio2=0.5"]) == 0
    verdict = json.loads(capsys.readouterr().out)
    assert verdict["final"] == 150.0


def test_cli_run_blocked_exit_code(capsys):
    assert main(["run", "anion_gap", "na=140"]) == 2
    verdict = json.loads(capsys.readouterr().out)
    assert verdict["status"] == "blocked"
    assert verdict["missing"] == ["chloride_mmol_l", "bicarbonate_mmol_l"]


def test_cli_unknown_calculator(capsys):
    assert main(["run", "nope"]) == 1
    assert "Unknown calculator" in capsys.readouterr().err


def test_cli_rejects_malformed_pair():
    with pytest.raises(SystemExit):
        main(["run", "anion_gap", "na140"])


def test_cli_invalid_settings(monkeypatch, capsys):
    monkeypatch.setenv("CLINICALC_AUTHORITY", "remote")
    assert main(["list"]) == 1
    assert "error" in capsys.readouterr().err


def test_cli_extract(capsys):
    assert main(["extract", NOTE]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["inputs"]["chloride_mmol_l"] == 104.0
    by_id = {r["id"]: r for r in payload["results"]}
    assert by_id["anion_gap"]["value"] == 12.0
