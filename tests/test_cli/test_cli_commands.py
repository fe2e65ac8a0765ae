"""
Tests for wealth_strategist/cli.py.

What we test
------------
validate-config:
  - The committed config validates and prints its key limits.
  - --full dumps the config as JSON.
  - An invalid config exits 1 with a validation message.

generate:
  - Writes the recommendations and conflicts JSON into --output-dir and
    prints the run summary, including the resolved plan.
  - --user-id overrides the id in the input.
  - A missing or malformed input file exits 1.

forecast:
  - --all writes one CSV per scenario.
  - A single --scenario writes one CSV; an unknown scenario exits 1.

quality:
  - Prints per-source completeness, limited mode and confidence.
"""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from wealth_strategist.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    # configure_logging() replaces the root handlers; put pytest's back.
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def input_file(tmp_path, full_payload):
    path = tmp_path / "packet.json"
    path.write_text(json.dumps(full_payload), encoding="utf-8")
    return path


def _invoke(*args):
    return runner.invoke(app, [str(a) for a in args])


# ── validate-config ───────────────────────────────────────────────────────────

class TestValidateConfig:
    def test_default_config(self):
        result = _invoke("validate-config")
        assert result.exit_code == 0, result.output
        assert "Configuration validated successfully." in result.output
        assert "Max debt-to-income:   43%" in result.output
        assert "Scenario spread:      ±30%" in result.output

    def test_full_dump(self):
        result = _invoke("validate-config", "--full")
        assert result.exit_code == 0
        assert '"max_debt_to_income": 0.43' in result.output

    def test_invalid_config(self, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text("[scoring]\nfinancial_weight = 0.9\n", encoding="utf-8")
        result = _invoke("validate-config", "--config", bad)
        assert result.exit_code == 1
        assert "Config validation failed" in result.output

    def test_missing_config(self, tmp_path):
        result = _invoke("validate-config", "--config", tmp_path / "nope.toml")
        assert result.exit_code == 1
        assert "Config file not found" in result.output


# ── generate ──────────────────────────────────────────────────────────────────

class TestGenerate:
    def test_writes_reports(self, input_file, tmp_path):
        out_dir = tmp_path / "out"
        result = _invoke("generate", "--input", input_file, "--output-dir", out_dir)

        assert result.exit_code == 0, result.output
        assert "Strategy run for u-100: success" in result.output
        assert "Data quality:     100/100" in result.output
        assert "Resolved plan:" in result.output
        rec_files = list(out_dir.glob("recommendations_u-100_*.json"))
        conflict_files = list(out_dir.glob("conflicts_u-100_*.json"))
        assert len(rec_files) == 1
        assert len(conflict_files) == 1

        data = json.loads(rec_files[0].read_text(encoding="utf-8"))
        assert data["status"] == "success"
        assert data["recommendations"]

    def test_user_id_override(self, input_file, tmp_path):
        result = _invoke(
            "generate", "--input", input_file, "--output-dir", tmp_path, "--user-id", "u-override",
        )
        assert result.exit_code == 0, result.output
        assert "Strategy run for u-override" in result.output
        assert list(tmp_path.glob("recommendations_u-override_*.json"))

    def test_missing_input(self, tmp_path):
        result = _invoke("generate", "--input", tmp_path / "missing.json", "--output-dir", tmp_path)
        assert result.exit_code == 1
        assert "Input file not found" in result.output

    def test_malformed_input(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        result = _invoke("generate", "--input", bad, "--output-dir", tmp_path)
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


# ── forecast ──────────────────────────────────────────────────────────────────

class TestForecast:
    def test_all_scenarios(self, input_file, tmp_path):
        out_dir = tmp_path / "fc"
        result = _invoke("forecast", "--input", input_file, "--all", "--output-dir", out_dir)

        assert result.exit_code == 0, result.output
        for name in ("conservative", "default", "aggressive"):
            assert len(list(out_dir.glob(f"forecast_u-100_{name}_*.csv"))) == 1
        assert "Forecast for u-100:" in result.output

    def test_single_scenario(self, input_file, tmp_path):
        result = _invoke(
            "forecast", "--input", input_file, "--scenario", "aggressive", "--output-dir", tmp_path,
        )
        assert result.exit_code == 0, result.output
        assert [p.name.split("_")[2] for p in tmp_path.glob("forecast_*.csv")] == ["aggressive"]

    def test_unknown_scenario(self, input_file, tmp_path):
        result = _invoke("forecast", "--input", input_file, "--scenario", "optimistic", "--output-dir", tmp_path)
        assert result.exit_code == 1
        assert "Unknown scenario 'optimistic'" in result.output
        assert not list(tmp_path.glob("forecast_*.csv"))


# ── quality ───────────────────────────────────────────────────────────────────

class TestQuality:
    def test_complete_payload(self, input_file):
        result = _invoke("quality", "--input", input_file)
        assert result.exit_code == 0, result.output
        assert "Data quality for u-100: 100/100 (Excellent)" in result.output
        assert "Limited mode:  no" in result.output
        assert "Confidence:    HIGH" in result.output

    def test_thin_payload(self, tmp_path):
        path = tmp_path / "thin.json"
        path.write_text(json.dumps({"user_id": "u-thin", "snapshot": {"cashflow": {}}}), encoding="utf-8")
        result = _invoke("quality", "--input", path)
        assert result.exit_code == 0, result.output
        assert "Limited mode:  yes" in result.output
        assert "Missing critical data:" in result.output
        assert "User risk preferences (critical)" in result.output
