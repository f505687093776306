"""
Pytest configuration and fixtures for pycube tests.
"""

from __future__ import annotations

from typing import Generator

import pytest

from pycube import configure, interface, reset_config
from pycube.config import CubeConfig


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Start every test from an uninitialized configuration."""
    for var in ("PYCUBE_TYPECHECK", "PYCUBE_EMIT_EVENTS", "PYCUBE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def typecheck() -> CubeConfig:
    """Enable call-time type checks for the test."""
    return configure(typecheck=True)


@pytest.fixture
def no_typecheck() -> CubeConfig:
    """Explicitly disable call-time type checks for the test."""
    return configure(typecheck=False)


# ============================================================================
# Interface Fixtures
# ============================================================================


@pytest.fixture
def adder():
    """Adder{sum: ([int]) -> int}."""
    return interface("Adder", lambda i: i.proto("sum", [int], returns=int))


@pytest.fixture
def calculator(adder):
    """Calculator extends Adder with fact and pos."""

    def build(i):
        i.extends(adder)
        i.proto("fact", int, returns=int)
        i.proto("pos", [int], int, returns={int, None})

    return interface("Calculator", build)


@pytest.fixture
def simple_calc_impl():
    """A plain class implementing Calculator."""

    class SimpleCalcImpl:
        def __init__(self):
            self.calls = []

        def fact(self, n):
            result = 1
            for k in range(2, n + 1):
                result *= k
            return result

        def sum(self, a):
            self.calls.append(list(a))
            total = 0
            for x in a:
                total += x
            return total

        def pos(self, arr, i):
            return arr.index(i) if i in arr else None

    return SimpleCalcImpl
