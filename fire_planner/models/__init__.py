"""Data models and engine for FIRE Monte Carlo simulations."""

from .profile import (
    ConfigurationError,
    FinancialProfile,
    FixedParameters,
    SimulationParameters,
    validate_inputs,
)
from .random_variates import NormalVariateGenerator, NumpyUniformSource
from .success_metrics import OutcomeSummary, summarize_outcomes

__all__ = [
    "ConfigurationError",
    "FinancialProfile",
    "FixedParameters",
    "SimulationParameters",
    "validate_inputs",
    "NormalVariateGenerator",
    "NumpyUniformSource",
    "OutcomeSummary",
    "summarize_outcomes",
]
