"""
Simulation result models.

This module provides the models produced by a Monte Carlo batch: one outcome
per simulated path, the optional year-by-year logs, and the aggregate result
consumed by the surrounding application for summary statistics, charts and
exports.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ..profile import FixedParameters
from .failure import FailureReason, is_critical


class PathOutcome(BaseModel):
    """Outcome of one simulated life path."""

    model_config = ConfigDict(frozen=True)

    simulation_id: int = Field(..., ge=1, description="1-based path identifier")
    success: bool = Field(..., description="Whether the path counts as a success")
    years_to_fire: Optional[int] = Field(
        default=None, ge=0, description="Years until FIRE, None for failed paths"
    )
    final_portfolio: float = Field(..., description="Terminal portfolio value")
    failure_reasons: List[FailureReason] = Field(
        default_factory=list, description="Failure conditions detected on the path"
    )

    @property
    def critical_reasons(self) -> List[FailureReason]:
        """Failure reasons that make the path a failure."""
        return [reason for reason in self.failure_reasons if is_critical(reason)]


class YearSnapshot(BaseModel):
    """Record of one simulated year, captured when logging is requested."""

    model_config = ConfigDict(frozen=True)

    year: int
    age: int
    stock_return: float = Field(..., description="Stock return (%)")
    bond_return: float = Field(..., description="Bond return (%)")
    cash_return: float = Field(..., description="Cash return (%)")
    inflation_rate: float = Field(..., description="Inflation for the year (%)")
    portfolio_return: float = Field(..., description="Weighted portfolio return (%)")
    is_black_swan: bool
    expenses: float
    labor_income: float
    pension_income: float
    total_income: float
    portfolio_value: float = Field(..., description="Portfolio at start of year")
    is_fire_achieved: bool
    withdrawal_rate: Optional[float] = Field(
        default=None, description="Withdrawal rate (%) while living off the portfolio"
    )


class SimulationLog(BaseModel):
    """Detailed log of one simulated path."""

    model_config = ConfigDict(frozen=True)

    simulation_id: int
    timestamp: datetime = Field(default_factory=datetime.now)
    success: bool
    years_to_fire: Optional[int]
    final_portfolio: float
    failure_reasons: List[FailureReason] = Field(default_factory=list)
    yearly_data: List[YearSnapshot] = Field(default_factory=list)


class AggregateResult(BaseModel):
    """
    Aggregate result of a Monte Carlo batch.

    Example:
        ```python
        result = BatchRunner().run(profile, params, capture_logs=True)

        print(result.success_rate, result.median_years_to_fire)
        csv_text = export_logs_to_csv(result.logs, result.fixed_parameters)
        ```
    """

    model_config = ConfigDict(frozen=True)

    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    success_rate: float = Field(..., ge=0, le=100, description="Success rate (%)")
    median_years_to_fire: float = Field(
        ..., ge=0, description="Median years to FIRE over successful paths"
    )
    simulations: List[PathOutcome] = Field(..., description="Outcomes in id order")

    terminal_portfolio_percentiles: Dict[str, float] = Field(
        default_factory=dict, description="Percentiles of the final portfolio"
    )
    failure_reason_counts: Dict[str, int] = Field(
        default_factory=dict, description="Number of paths flagged per reason"
    )

    logs: Optional[List[SimulationLog]] = Field(
        default=None, description="Per-path logs when logging was requested"
    )
    fixed_parameters: Optional[FixedParameters] = Field(
        default=None, description="Inputs used, attached when logging"
    )

    execution_time_seconds: Optional[float] = Field(
        default=None, description="Time taken to run the batch"
    )
    created_at: datetime = Field(
        default_factory=datetime.now, description="When the batch was completed"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def num_simulations(self) -> int:
        """Number of simulated paths."""
        return len(self.simulations)

    def get_years_to_fire(self) -> List[int]:
        """Years to FIRE of every successful path, in id order."""
        return [
            sim.years_to_fire
            for sim in self.simulations
            if sim.success and sim.years_to_fire is not None
        ]

    def get_final_portfolios(self) -> List[float]:
        """Terminal portfolio value of every path, in id order."""
        return [sim.final_portfolio for sim in self.simulations]

    def create_summary_report(self) -> Dict[str, Any]:
        """Create the headline statistics of the batch."""
        return {
            "num_simulations": self.num_simulations,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "success_rate": self.success_rate,
            "median_years_to_fire": self.median_years_to_fire,
            "terminal_portfolio_percentiles": dict(self.terminal_portfolio_percentiles),
            "failure_reason_counts": dict(self.failure_reason_counts),
        }

    def to_dict(self, include_logs: bool = True) -> Dict[str, Any]:
        """
        Convert result to dictionary for serialization.

        Args:
            include_logs: Whether to include the per-path yearly logs

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        exclude = None if include_logs else {"logs"}
        return self.model_dump(mode="json", exclude=exclude)

    def to_json(self, include_logs: bool = True, indent: int = 2) -> str:
        """
        Convert result to JSON string.

        Args:
            include_logs: Whether to include the per-path yearly logs
            indent: JSON indentation level

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(include_logs=include_logs), indent=indent)
