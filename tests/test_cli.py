"""
Tests for the Typer command line interface, run against the mock calendar.
"""

import pytest
from typer.testing import CliRunner

from clubslots import __version__
from clubslots.adapters.mock_calendar_client import MockCalendarClient
from clubslots.cli.app import app

runner = CliRunner()

CONFIG_YAML = """
calendar_id: club@example.com
timezone: America/Mexico_City
coaches: "Enzo=enzo@example.com,Wil=wil@example.com"
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return str(path)


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_coaches(config_file):
    result = runner.invoke(app, ["coaches", "--config", config_file])

    assert result.exit_code == 0
    assert "Enzo" in result.output
    assert "Wil" in result.output


def test_missing_config(tmp_path):
    result = runner.invoke(app, ["coaches", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_availability_chat(config_file):
    result = runner.invoke(
        app,
        [
            "availability", "--config", config_file, "--mock",
            "--start", "2025-10-07T07:00", "--end", "2025-10-07T23:00",
            "--coach", "Enzo", "--mode", "ranges", "--pretty",
        ],
    )

    assert result.exit_code == 0
    assert "Disponibilidad de Enzo" in result.output
    assert "10:00–22:30" in result.output


def test_availability_validation_error(config_file):
    result = runner.invoke(
        app,
        ["availability", "--config", config_file, "--mock", "--start", "2025-10-07T07:00"],
    )

    assert result.exit_code == 1
    assert "VALIDATION" in result.output


def test_book_out_of_hours(config_file):
    result = runner.invoke(
        app,
        ["book", "--config", config_file, "--mock", "--start", "2025-10-07T22:00", "--duration", "60"],
    )

    assert result.exit_code == 1
    assert "OUT_OF_BUSINESS_HOURS" in result.output


def test_unexpected_failure_is_reported_as_internal(config_file, monkeypatch):
    async def broken_list_calendars(self):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(MockCalendarClient, "list_calendars", broken_list_calendars)

    result = runner.invoke(app, ["calendars", "--config", config_file, "--mock"])

    assert result.exit_code == 1
    assert "INTERNAL" in result.output
    assert "disk on fire" in result.output
