"""Tests for the text report and the tabular exports."""

import pytest

from builders import make_basic_panel
from verteiler.report import (
    CIRCUIT_COLUMNS,
    DIAGNOSTIC_COLUMNS,
    WIRE_COLUMNS,
    circuits_frame,
    diagnostics_frame,
    format_errors,
    format_validation_report,
    wires_frame,
)
from verteiler.validator import run_validation, validate_verteiler


@pytest.fixture
def failing_result():
    return validate_verteiler(make_basic_panel(zs=2.0))


# ── Text report ──────────────────────────────────────────────────────────


class TestFormatValidationReport:
    def test_passed(self, three_phase_panel):
        report = format_validation_report(validate_verteiler(three_phase_panel))
        assert report.startswith("=== Validation Report ===")
        assert "✓ PASSED - All checks passed" in report
        assert "ERRORS" not in report
        assert "WARNINGS" not in report

    def test_failed_with_name(self, failing_result):
        report = format_validation_report(failing_result, name="Test panel")
        lines = report.splitlines()
        assert lines[0] == "=== Panel Validation: Test panel ==="
        assert "✗ FAILED - Validation errors found" in lines
        assert f"ERRORS ({len(failing_result.errors)}):" in lines
        assert "WARNINGS (1):" in lines
        assert "  1. [WARNING] Whole installation: Phase asymmetry" in report

    def test_numbered_errors(self, failing_result):
        report = format_validation_report(failing_result)
        assert "  1. [CRITICAL] " in report
        assert "Loop impedance too high" in report

    def test_aggregates(self, basic_panel):
        report = format_validation_report(validate_verteiler(basic_panel))
        assert "Total load: 2.00 kW" in report
        assert "Phase loads: L1 2.00 kW, L2 0.00 kW, L3 0.00 kW" in report
        assert "Supply loop impedance: 300 mOhm" in report
        assert "(default)" not in report

    def test_default_impedance_marked(self):
        report = format_validation_report(validate_verteiler(make_basic_panel(zs=None)))
        assert "Supply loop impedance: 500 mOhm (default)" in report


class TestFormatErrors:
    def test_empty(self):
        assert format_errors([]) == ""

    def test_diagnostics(self, failing_result):
        text = format_errors(failing_result.errors)
        lines = text.splitlines()
        assert lines[0] == "Panel validation failed:"
        assert len(lines) == len(failing_result.errors) + 1
        assert lines[1].startswith("- Loop impedance too high")

    def test_plain_strings(self):
        assert format_errors(["one", "two"]) == "Panel validation failed:\n- one\n- two"


# ── Tables ───────────────────────────────────────────────────────────────


class TestFrames:
    def test_diagnostics_frame(self, failing_result):
        df = diagnostics_frame(failing_result)
        assert list(df.columns) == DIAGNOSTIC_COLUMNS
        assert len(df) == len(failing_result.errors) + len(failing_result.warnings)
        assert set(df["schweregrad"]) == {"kritisch", "warnung"}
        assert df["id"].is_unique

    def test_diagnostics_frame_empty(self, three_phase_panel):
        df = diagnostics_frame(validate_verteiler(three_phase_panel))
        assert df.empty
        assert list(df.columns) == DIAGNOSTIC_COLUMNS

    def test_circuits_frame(self, basic_panel):
        df = circuits_frame(validate_verteiler(basic_panel))
        assert list(df.columns) == CIRCUIT_COLUMNS
        row = df.iloc[0]
        assert row["verbraucherId"] == "v1"
        assert row["status"] == "ok"
        assert row["strom"] == pytest.approx(8.696, abs=0.001)
        assert row["anzahlFehler"] == 0

    def test_wires_frame(self, basic_panel):
        updated, _ = run_validation(basic_panel)
        df = wires_frame(updated)
        assert list(df.columns) == WIRE_COLUMNS
        assert len(df) == 8
        first = df.iloc[0]
        assert first["von"] == "S:OUT_L1"
        assert first["nach"] == "fi1:IN_L1"
        assert df.set_index("id").loc["w8", "strom"] == 0.0
