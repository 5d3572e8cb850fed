"""Tests for the tou command-line interface."""

import json

import pytest
from click.testing import CliRunner

from touenergy.cli import cli
from touenergy.tariffs import CONFIG_ENV_VAR


@pytest.fixture
def runner(tmp_path, monkeypatch):
    """Run from an empty directory so only the built-in schedules apply."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    return CliRunner()


def test_cost_json(runner):
    result = runner.invoke(cli, ["cost", "1000", "18:00", "20:00", "--date", "2024-07-10", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["totalCost"] == 1.1
    assert data["breakdown"][0]["ratePeriod"] == "On-Peak"


def test_cost_table(runner):
    result = runner.invoke(cli, ["cost", "2000", "09:00", "21:00", "--date", "2024-07-10"])

    assert result.exit_code == 0
    assert "Off-Peak" in result.output
    assert "On-Peak" in result.output
    assert "8.99" in result.output


def test_cost_rejects_equal_times(runner):
    result = runner.invoke(cli, ["cost", "1000", "18:00", "18:00", "--date", "2024-07-10"])

    assert result.exit_code == 1
    assert "End time must be different" in result.output


def test_cost_rejects_bad_date(runner):
    result = runner.invoke(cli, ["cost", "1000", "18:00", "19:00", "--date", "10/07/2024"])

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_schedule(runner):
    result = runner.invoke(cli, ["schedule", "--date", "2024-07-13"])

    assert result.exit_code == 0
    assert "summer_weekend" in result.output
    assert "Mid-Peak" in result.output
    assert "0.37" in result.output


def test_now(runner):
    result = runner.invoke(cli, ["now"])

    assert result.exit_code == 0
    assert "/kWh" in result.output


def test_custom_config(runner, tmp_path):
    config = tmp_path / "flat.yaml"
    flat = '[{name: Off-Peak, start: "00:00", end: "23:59", rate: 0.1}]'
    config.write_text(
        f"schedules:\n  winter: {flat}\n  summer_weekday: {flat}\n  summer_weekend: {flat}\n"
    )

    result = runner.invoke(
        cli, ["--config", str(config), "cost", "1000", "18:00", "20:00", "--date", "2024-07-10", "--json"]
    )

    assert result.exit_code == 0
    assert json.loads(result.output)["totalCost"] == 0.2


def test_invalid_config_exits(runner, tmp_path):
    config = tmp_path / "broken.yaml"
    config.write_text("schedules: {}\n")

    result = runner.invoke(cli, ["--config", str(config), "now"])

    assert result.exit_code == 1
    assert "Invalid tariff config" in result.output


def test_check_config(runner, tmp_path):
    broken = tmp_path / "broken.yaml"
    gap = '[{name: Off-Peak, start: "00:00", end: "11:59", rate: 0.1}]'
    broken.write_text(
        f"schedules:\n  winter: {gap}\n  summer_weekday: {gap}\n  summer_weekend: {gap}\n"
    )

    result = runner.invoke(cli, ["check-config", str(broken)])
    assert result.exit_code == 1
    assert "gap at 12:00" in result.output

    result = runner.invoke(cli, ["check-config"])
    assert result.exit_code == 0
    assert "built-in schedules" in result.output


def test_batch(runner, tmp_path):
    csv_path = tmp_path / "sessions.csv"
    csv_path.write_text(
        "wattage,start_time,end_time,usage_date\n"
        "1000,18:00,20:00,2024-07-10\n"
        "1000,18:00,18:00,2024-07-10\n"
    )

    result = runner.invoke(cli, ["batch", str(csv_path), "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert len(data["sessions"]) == 1
    assert data["sessions"][0]["line"] == 2
    assert data["errors"][0]["line"] == 3
    assert data["totalCost"] == 1.1

    result = runner.invoke(cli, ["batch", str(csv_path)])
    assert result.exit_code == 0
    assert "Skipped line 3" in result.output


def test_cost_negative_wattage_is_a_validation_error(runner):
    """A leading minus is read as the wattage, not as an unknown option."""
    result = runner.invoke(cli, ["cost", "-100", "10:00", "11:00", "--date", "2024-07-10"])

    assert result.exit_code == 1
    assert "cannot be negative" in result.output
