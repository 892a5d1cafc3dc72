"""Tests for the Typer CLI against the in-memory gateway."""

import asyncio

import pytest
from typer.testing import CliRunner

from cli import cli as cli_module

EMAIL = "ana@example.com"
DAY = "2024-03-05"

runner = CliRunner()


@pytest.fixture(autouse=True)
def use_program_gateway(monkeypatch, program_gateway):
    monkeypatch.setattr(cli_module, "create_gateway", lambda: program_gateway)
    return program_gateway


def test_today_prints_checklist(program_gateway):
    result = runner.invoke(cli_module.app, ["today", EMAIL, "--day", DAY])
    assert result.exit_code == 0, result.output
    assert "1/3 done" in result.output
    assert program_gateway.closed is True


def test_check_toggles_assignment(program_gateway):
    result = runner.invoke(cli_module.app, ["check", EMAIL, "a1", "--day", DAY])
    assert result.exit_code == 0, result.output
    assert "2/3 done" in result.output
    assert program_gateway.count("create_completion") == 1


def test_check_unknown_assignment_exits_1():
    result = runner.invoke(cli_module.app, ["check", EMAIL, "nope", "--day", DAY])
    assert result.exit_code == 1


def test_check_partial_failure_exits_2(program_gateway):
    program_gateway.fail_creates.add("a1")
    result = runner.invoke(cli_module.app, ["check", EMAIL, "a1", "--day", DAY])
    assert result.exit_code == 2


def test_progress_and_summary():
    result = runner.invoke(cli_module.app, ["progress", EMAIL, "--week-of", DAY])
    assert result.exit_code == 0, result.output
    assert "Daily goal: 3 per day" in result.output

    result = runner.invoke(cli_module.app, ["summary", "--week-of", DAY])
    assert result.exit_code == 0, result.output


def test_unavailable_store_prints_message(program_gateway):
    program_gateway.unavailable = True
    result = runner.invoke(cli_module.app, ["today", EMAIL, "--day", DAY])
    assert result.exit_code == 0
    assert "Your exercise records" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["today", EMAIL, "--day", "10:30"],
        ["progress", EMAIL, "--week-of", "soon"],
        ["summary", "--week-of", "2024-13-45"],
    ],
)
def test_bad_day_is_rejected_before_loading(program_gateway, args):
    result = runner.invoke(cli_module.app, args)
    assert result.exit_code == 2
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert program_gateway.closed is False


def test_day_option_is_canonicalized(program_gateway):
    result = runner.invoke(cli_module.app, ["today", EMAIL, "--day", "March 5, 2024"])
    assert result.exit_code == 0, result.output
    assert "1/3 done" in result.output


def test_seed_demo_twice_creates_nothing_new(sql_gateway):
    client_id, created = asyncio.run(cli_module._seed_demo(sql_gateway, "demo@example.com", "Demo Client"))
    assert created == 3

    again_id, created_again = asyncio.run(cli_module._seed_demo(sql_gateway, "demo@example.com", "Demo Client"))
    assert again_id == client_id
    assert created_again == 0
    assert len(asyncio.run(sql_gateway.list_exercises())) == 3
    assert len(asyncio.run(sql_gateway.list_assignments_for_client("demo@example.com"))) == 3
