"""
Simulation inputs for the FIRE Monte Carlo engine.

This module holds the financial profile and Monte Carlo parameters supplied by
the calling application, the snapshot of fixed parameters attached to logged
batches, and the up-front validation that rejects an unusable configuration
before any path is simulated.

All rates and allocations are expressed in percent (7 means 7%).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

ALLOCATION_TOLERANCE = 0.01


class ConfigurationError(ValueError):
    """Raised when simulation inputs cannot produce a meaningful batch."""


class FinancialProfile(BaseModel):
    """Financial situation of the person being simulated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    initial_savings: float = Field(..., ge=0, description="Starting portfolio value")

    # Asset allocation (growth, income and liquid buckets, must sum to 100)
    stocks_percent: float = Field(..., ge=0, le=100, description="Growth bucket %")
    bonds_percent: float = Field(..., ge=0, le=100, description="Income bucket %")
    cash_percent: float = Field(..., ge=0, le=100, description="Liquid bucket %")

    current_annual_expenses: float = Field(
        ..., ge=0, description="Annual expenses before reaching FIRE"
    )
    fire_annual_expenses: float = Field(
        ..., ge=0, description="Annual expenses once FIRE is reached"
    )

    annual_labor_income: float = Field(..., ge=0, description="Annual labor income")
    labor_income_growth_rate: float = Field(
        default=0.0, description="Annual labor income growth (%)"
    )
    savings_rate: float = Field(
        ..., ge=0, le=100, description="Share of labor income saved (%)"
    )

    desired_withdrawal_rate: float = Field(
        ..., description="Safe withdrawal rate used for the FIRE target (%)"
    )

    expected_stock_return: float = Field(..., description="Expected stock return (%)")
    expected_bond_return: float = Field(..., description="Expected bond return (%)")
    expected_cash_return: float = Field(
        ..., description="Expected cash return (%), typically minus inflation"
    )

    year_of_birth: int = Field(..., ge=1900, le=2200, description="Year of birth")
    retirement_age: int = Field(
        ..., ge=0, le=120, description="Age at which pensions start paying"
    )
    max_age: int = Field(default=100, ge=1, le=120, description="Projection end age")

    state_pension_income: float = Field(default=0.0, ge=0)
    private_pension_income: float = Field(default=0.0, ge=0)
    other_income: float = Field(
        default=0.0, ge=0, description="Other annual income received every year"
    )

    stop_working_at_fire: bool = Field(
        default=True, description="Stop labor income once FIRE is reached"
    )

    @property
    def allocation_sum(self) -> float:
        """Total of the three allocation percentages."""
        return self.stocks_percent + self.bonds_percent + self.cash_percent

    @property
    def pension_income(self) -> float:
        """Combined annual pension income once eligible."""
        return self.state_pension_income + self.private_pension_income

    def fire_target(self, annual_expenses: Optional[float] = None) -> float:
        """Portfolio value at which withdrawals cover the given expenses.

        Args:
            annual_expenses: Expense level to cover, defaults to the
                post-FIRE expenses

        Returns:
            FIRE target portfolio value
        """
        if annual_expenses is None:
            annual_expenses = self.fire_annual_expenses
        return annual_expenses / (self.desired_withdrawal_rate / 100)


class SimulationParameters(BaseModel):
    """Monte Carlo parameters for a batch of simulated paths."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    num_simulations: int = Field(
        default=1000, gt=0, le=100000, description="Number of simulated paths"
    )
    stock_volatility: float = Field(
        default=15.0, ge=0, description="Annual stock return volatility (%)"
    )
    bond_volatility: float = Field(
        default=5.0, ge=0, description="Annual bond return volatility (%)"
    )
    black_swan_probability: float = Field(
        default=2.0, ge=0, le=100, description="Yearly probability of a crash (%)"
    )
    black_swan_impact: float = Field(
        default=-40.0, ge=-100, le=0, description="Stock return in a crash year (%)"
    )
    start_year: Optional[int] = Field(
        default=None, description="Calendar year of the first simulated year"
    )
    seed: Optional[int] = Field(
        default=None, ge=0, description="Random seed for reproducibility"
    )

    def resolved_start_year(self) -> int:
        """Get the first simulated calendar year."""
        if self.start_year is not None:
            return self.start_year
        return date.today().year


class FixedParameters(BaseModel):
    """Snapshot of the numeric inputs of a batch, attached to exported logs."""

    model_config = ConfigDict(frozen=True)

    initial_savings: float
    stocks_percent: float
    bonds_percent: float
    cash_percent: float
    current_annual_expenses: float
    fire_annual_expenses: float
    annual_labor_income: float
    labor_income_growth_rate: float
    savings_rate: float
    desired_withdrawal_rate: float
    expected_stock_return: float
    expected_bond_return: float
    expected_cash_return: float
    year_of_birth: int
    retirement_age: int
    max_age: int
    state_pension_income: float
    private_pension_income: float
    other_income: float
    num_simulations: int
    stock_volatility: float
    bond_volatility: float
    black_swan_probability: float
    black_swan_impact: float
    start_year: int
    seed: Optional[int]
    stop_working_at_fire: bool

    @classmethod
    def from_inputs(
        cls, profile: FinancialProfile, params: SimulationParameters
    ) -> "FixedParameters":
        """Build the snapshot from the inputs of a batch."""
        return cls(
            **profile.model_dump(),
            num_simulations=params.num_simulations,
            stock_volatility=params.stock_volatility,
            bond_volatility=params.bond_volatility,
            black_swan_probability=params.black_swan_probability,
            black_swan_impact=params.black_swan_impact,
            start_year=params.resolved_start_year(),
            seed=params.seed,
        )

    def to_profile(self) -> FinancialProfile:
        """Rebuild the financial profile of the batch."""
        return FinancialProfile(
            **self.model_dump(include=set(FinancialProfile.model_fields))
        )

    def to_parameters(self) -> SimulationParameters:
        """Rebuild the Monte Carlo parameters of the batch."""
        return SimulationParameters(
            **self.model_dump(include=set(SimulationParameters.model_fields))
        )


def validate_inputs(profile: FinancialProfile) -> None:
    """
    Reject a profile that cannot be simulated.

    Args:
        profile: Financial profile to check

    Raises:
        ConfigurationError: If the allocation does not sum to 100% or the
            withdrawal rate is not positive
    """
    allocation_sum = profile.allocation_sum
    if abs(allocation_sum - 100) > ALLOCATION_TOLERANCE:
        raise ConfigurationError(
            f"Asset allocation must sum to 100%, currently {allocation_sum:.2f}%"
        )

    if profile.desired_withdrawal_rate <= 0:
        raise ConfigurationError("desired_withdrawal_rate must be greater than 0")
