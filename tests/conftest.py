"""Shared fixtures: seed rule tables, a default engine, and a frozen clock."""

from __future__ import annotations

import itertools
from datetime import datetime, timezone

import pytest

from domaingen.engine import GeneratorEngine
from domaingen.rules.loader import default_rule_tables
from domaingen.rules.tables import RuleTables

FIXED_NOW = datetime(2026, 10, 19, 12, 30, 45, 123000, tzinfo=timezone.utc)


@pytest.fixture
def rules() -> RuleTables:
    return default_rule_tables()


@pytest.fixture
def engine() -> GeneratorEngine:
    return GeneratorEngine()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def counting_entropy():
    """Deterministic entropy: 1, 2, 3, ... scaled to fill every width."""
    counter = itertools.count(1)
    return lambda: next(counter) * 0x9E3779B97F4A7C15
