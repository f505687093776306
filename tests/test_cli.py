"""Tests for the pycube CLI (verify, describe)."""

import json
import sys
import types

import pytest
from click.testing import CliRunner

from pycube import interface
from pycube.cli import main


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def contracts_module(monkeypatch, adder, calculator, simple_calc_impl):
    """An importable module holding interfaces and implementations."""

    class MissingPos:
        def sum(self, a, b):
            return a + b

        def fact(self, n):
            return n

    module = types.ModuleType("cube_cli_contracts")
    module.Adder = adder
    module.Calculator = calculator
    module.Closeable = interface(
        "Closeable", lambda i: i.public_visible("close").proto("flush", optional=True)
    )
    module.SimpleCalcImpl = simple_calc_impl
    module.MissingPos = MissingPos
    module.not_a_class = 42
    monkeypatch.setitem(sys.modules, "cube_cli_contracts", module)
    return module


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------


class TestVerify:
    def test_pass(self, runner, contracts_module):
        result = runner.invoke(
            main,
            ["verify", "cube_cli_contracts:SimpleCalcImpl", "cube_cli_contracts:Calculator"],
        )
        assert result.exit_code == 0, result.output
        assert "[PASS] SimpleCalcImpl conforms to Calculator" in result.output

    def test_fail(self, runner, contracts_module):
        result = runner.invoke(
            main,
            ["verify", "cube_cli_contracts:MissingPos", "cube_cli_contracts:Calculator"],
        )
        assert result.exit_code == 1
        assert "[FAIL]" in result.output
        assert "  missing: pos" in result.output
        assert "  arity: sum takes 2, expected 1" in result.output

    def test_json(self, runner, contracts_module):
        result = runner.invoke(
            main,
            ["verify", "cube_cli_contracts:MissingPos", "cube_cli_contracts:Adder", "--json"],
        )
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["passed"] is False
        assert data["interface"] == "Adder"
        assert data["arity_mismatches"] == [{"method": "sum", "expected": 1, "actual": 2}]

    def test_target_not_a_class(self, runner, contracts_module):
        result = runner.invoke(
            main, ["verify", "cube_cli_contracts:not_a_class", "cube_cli_contracts:Adder"]
        )
        assert result.exit_code == 2
        assert "is not a class" in result.output

    def test_interface_ref_not_an_interface(self, runner, contracts_module):
        result = runner.invoke(
            main,
            ["verify", "cube_cli_contracts:SimpleCalcImpl", "cube_cli_contracts:SimpleCalcImpl"],
        )
        assert result.exit_code == 2
        assert "is not an interface" in result.output

    @pytest.mark.parametrize(
        "ref",
        ["no_colon_here", "cube_cli_missing_module:Adder", "cube_cli_contracts:Nope"],
    )
    def test_bad_reference(self, runner, contracts_module, ref):
        result = runner.invoke(main, ["verify", ref, "cube_cli_contracts:Adder"])
        assert result.exit_code == 2


# ---------------------------------------------------------------------------
# describe
# ---------------------------------------------------------------------------


class TestDescribe:
    def test_text(self, runner, contracts_module):
        result = runner.invoke(main, ["describe", "cube_cli_contracts:Calculator"])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "Interface Calculator"
        assert lines[1] == "  extends: Adder"
        assert "  sum([int]) -> int" in lines
        assert "  fact(int) -> int" in lines

    def test_optional_and_untyped(self, runner, contracts_module):
        result = runner.invoke(main, ["describe", "cube_cli_contracts:Closeable"])
        assert result.exit_code == 0, result.output
        assert "  close" in result.output.splitlines()
        assert "  flush() (optional)" in result.output.splitlines()

    def test_json(self, runner, contracts_module):
        result = runner.invoke(main, ["describe", "cube_cli_contracts:Calculator", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["name"] == "Calculator"
        assert data["parents"] == ["Adder"]
        assert data["methods"]["sum"] == "([int]) -> int"
        assert data["optional"] == []
