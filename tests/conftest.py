"""
Pytest configuration and shared fixtures for the FIRE planner tests.
"""

import os
from typing import Dict, List, Sequence
from unittest.mock import patch

import pytest

from fire_planner.config import reset_global_settings
from fire_planner.models.profile import FinancialProfile, SimulationParameters

START_YEAR = 2025


class ConstantUniformSource:
    """Uniform source that always returns the same value."""

    def __init__(self, value: float = 0.5):
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


class SequenceUniformSource:
    """Uniform source that cycles through a fixed sequence."""

    def __init__(self, values: Sequence[float]):
        self.values: List[float] = list(values)
        self.calls = 0

    def random(self) -> float:
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


@pytest.fixture
def constant_source():
    """Factory for constant uniform sources."""
    return ConstantUniformSource


@pytest.fixture
def sequence_source():
    """Factory for cycling uniform sources."""
    return SequenceUniformSource


@pytest.fixture
def profile_data() -> Dict:
    """Raw profile payload of a 35 year old saver."""
    return {
        "initial_savings": 50000,
        "stocks_percent": 70,
        "bonds_percent": 20,
        "cash_percent": 10,
        "current_annual_expenses": 40000,
        "fire_annual_expenses": 40000,
        "annual_labor_income": 60000,
        "labor_income_growth_rate": 3,
        "savings_rate": 33.33,
        "desired_withdrawal_rate": 4,
        "expected_stock_return": 7,
        "expected_bond_return": 2,
        "expected_cash_return": -2,
        "year_of_birth": START_YEAR - 35,
        "retirement_age": 67,
        "state_pension_income": 0,
        "private_pension_income": 0,
        "other_income": 0,
        "stop_working_at_fire": True,
    }


@pytest.fixture
def base_profile(profile_data) -> FinancialProfile:
    """Validated profile of a 35 year old saver."""
    return FinancialProfile(**profile_data)


@pytest.fixture
def parameters_data() -> Dict:
    """Raw Monte Carlo parameter payload."""
    return {
        "num_simulations": 50,
        "stock_volatility": 15,
        "bond_volatility": 5,
        "black_swan_probability": 2,
        "black_swan_impact": -40,
        "start_year": START_YEAR,
        "seed": 1234,
    }


@pytest.fixture
def base_params(parameters_data) -> SimulationParameters:
    """Validated Monte Carlo parameters."""
    return SimulationParameters(**parameters_data)


@pytest.fixture
def deterministic_params() -> SimulationParameters:
    """Parameters without volatility or black swans."""
    return SimulationParameters(
        num_simulations=1,
        stock_volatility=0,
        bond_volatility=0,
        black_swan_probability=0,
        black_swan_impact=-40,
        start_year=START_YEAR,
    )


@pytest.fixture
def clean_settings():
    """Isolate tests from the environment and the cached global settings."""
    reset_global_settings()
    with patch.dict(os.environ, {}, clear=True):
        yield
    reset_global_settings()
