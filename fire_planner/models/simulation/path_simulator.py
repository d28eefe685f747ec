"""
Single-path FIRE simulation.

This module advances one simulated life path year by year: it draws market
returns and inflation, tracks when financial independence (FIRE) is reached,
lost and re-achieved, applies income and expenses, and raises the failure
flags that the classifier turns into a final verdict.

The yearly rules are small functions over a ``PathState`` accumulator, so each
rule can be exercised on its own. A path stops early only when its portfolio
is depleted.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Set

from ..profile import FinancialProfile, SimulationParameters, validate_inputs
from ..random_variates import NormalVariateGenerator, random_return
from .failure import Classification, FailureReason, classify_path, depleted
from .protocols import UniformSource
from .result import PathOutcome, SimulationLog, YearSnapshot

logger = logging.getLogger(__name__)

MAX_SIMULATION_YEARS = 50

# Inflation is perturbed by a uniform draw within +/- this amount each year
INFLATION_JITTER = 0.01

HEALTHCARE_AGE = 75
HEALTHCARE_EXPENSE_MULTIPLIER = 1.3
HEALTHCARE_SHOCK_WITHDRAWAL_RATE = 0.08

WITHDRAWAL_BREACH_RATE = 0.06
FORCED_RETURN_YEARS_OF_EXPENSES = 3

SEQUENCE_RISK_WINDOW_YEARS = 10
SEQUENCE_RISK_DRAWDOWN = 0.5


@dataclass
class PathState:
    """Mutable state carried across the years of one path."""

    portfolio_value: float
    labor_income: float
    current_expenses: float
    fire_expenses: float
    cumulative_inflation: float = 1.0

    fire_achieved: bool = False
    fire_year: Optional[int] = None
    fire_age: Optional[int] = None
    portfolio_at_fire: Optional[float] = None
    fire_lost: bool = False
    fire_reachieved: bool = False

    flags: Set[FailureReason] = field(default_factory=set)

    @classmethod
    def initial(cls, profile: FinancialProfile) -> "PathState":
        """Build the state at the start of a path."""
        return cls(
            portfolio_value=profile.initial_savings,
            labor_income=profile.annual_labor_income,
            current_expenses=profile.current_annual_expenses,
            fire_expenses=profile.fire_annual_expenses,
        )

    def is_working(self, profile: FinancialProfile) -> bool:
        """Check whether labor income is earned this year."""
        if profile.stop_working_at_fire:
            return not self.fire_achieved
        return True


class MarketYear(NamedTuple):
    """Market conditions drawn for one year (decimal returns)."""

    is_black_swan: bool
    stock_return: float
    bond_return: float
    cash_return: float
    inflation: float


class PathRun(NamedTuple):
    """Outcome of a path and its log when one was captured."""

    outcome: PathOutcome
    log: Optional[SimulationLog]


def draw_market_year(
    profile: FinancialProfile,
    params: SimulationParameters,
    uniform: UniformSource,
    normal: NormalVariateGenerator,
) -> MarketYear:
    """
    Draw the returns and inflation of one year.

    One uniform draw decides the black swan, the normal generator supplies the
    stock and bond returns outside crash years, and a final uniform draw
    perturbs inflation.

    Args:
        profile: Financial profile with expected returns
        params: Volatility and black swan parameters
        uniform: Uniform source owned by the path
        normal: Normal generator owned by the path

    Returns:
        MarketYear with decimal returns
    """
    is_black_swan = uniform.random() < params.black_swan_probability / 100

    if is_black_swan:
        stock_return = params.black_swan_impact / 100
        # bonds less affected
        bond_return = params.black_swan_impact / 200
    else:
        stock_return = random_return(
            profile.expected_stock_return / 100, params.stock_volatility / 100, normal
        )
        bond_return = random_return(
            profile.expected_bond_return / 100, params.bond_volatility / 100, normal
        )

    base_inflation = abs(profile.expected_cash_return) / 100
    inflation = base_inflation + (uniform.random() * 2 - 1) * INFLATION_JITTER

    return MarketYear(
        is_black_swan=is_black_swan,
        stock_return=stock_return,
        bond_return=bond_return,
        cash_return=-inflation,
        inflation=inflation,
    )


def weighted_return(profile: FinancialProfile, market: MarketYear) -> float:
    """Allocation-weighted portfolio return for the year."""
    return (
        (profile.stocks_percent / 100) * market.stock_return
        + (profile.bonds_percent / 100) * market.bond_return
        + (profile.cash_percent / 100) * market.cash_return
    )


def update_fire_status(
    state: PathState, profile: FinancialProfile, year_index: int, age: int
) -> None:
    """Mark FIRE achieved, lost or re-achieved against the current target."""
    target = profile.fire_target(state.fire_expenses)

    if not state.fire_achieved:
        if state.portfolio_value >= target:
            state.fire_achieved = True
            state.fire_year = year_index
            state.fire_age = age
            state.portfolio_at_fire = state.portfolio_value
        return

    if state.portfolio_value < target:
        state.fire_lost = True
    elif state.fire_lost:
        state.fire_reachieved = True


def annual_expenses(
    state: PathState, profile: FinancialProfile, age: int, living_off_portfolio: bool
) -> float:
    """
    Expenses for the year, including late-life healthcare escalation.

    Raises the healthcare shock flag when the escalated expenses push the
    withdrawal rate of a retiree above the shock threshold.
    """
    expenses = state.fire_expenses if state.fire_achieved else state.current_expenses

    if age >= HEALTHCARE_AGE:
        expenses *= HEALTHCARE_EXPENSE_MULTIPLIER
        if living_off_portfolio and state.portfolio_value > 0:
            if expenses / state.portfolio_value > HEALTHCARE_SHOCK_WITHDRAWAL_RATE:
                state.flags.add(FailureReason.HEALTHCARE_EXPENSE_SHOCK)

    return expenses


def assess_withdrawal(state: PathState, expenses: float) -> float:
    """
    Check the withdrawal rate of a path living off its portfolio.

    The forced-return-to-work flag is reported only, it does not change the
    working status of later years.

    Returns:
        Current withdrawal rate (decimal), infinite for an empty portfolio
    """
    if state.portfolio_value > 0:
        withdrawal_rate = expenses / state.portfolio_value
    else:
        withdrawal_rate = math.inf

    if withdrawal_rate > WITHDRAWAL_BREACH_RATE:
        state.flags.add(FailureReason.WITHDRAWAL_RATE_BREACH)

    if state.portfolio_value < FORCED_RETURN_YEARS_OF_EXPENSES * expenses:
        state.flags.add(FailureReason.FORCED_RETURN_TO_WORK)

    return withdrawal_rate


def check_sequence_risk(state: PathState, year_index: int) -> None:
    """Flag a deep drawdown within the first years after reaching FIRE."""
    if state.fire_year is None or state.portfolio_at_fire is None:
        return

    years_since_fire = year_index - state.fire_year
    if 0 < years_since_fire < SEQUENCE_RISK_WINDOW_YEARS:
        if state.portfolio_value < SEQUENCE_RISK_DRAWDOWN * state.portfolio_at_fire:
            state.flags.add(FailureReason.SEQUENCE_OF_RETURNS_RISK)


def apply_inflation(state: PathState, inflation: float) -> None:
    """Inflate both expense levels and the cumulative inflation index."""
    growth = 1 + inflation
    state.current_expenses *= growth
    state.fire_expenses *= growth
    state.cumulative_inflation *= growth


def simulation_horizon(profile: FinancialProfile, start_year: int) -> int:
    """Number of years simulated for a profile starting in ``start_year``."""
    current_age = start_year - profile.year_of_birth
    return max(0, min(MAX_SIMULATION_YEARS, profile.max_age - current_age))


def simulate_path(
    profile: FinancialProfile,
    params: SimulationParameters,
    simulation_id: int,
    uniform_source: UniformSource,
    normal_generator: Optional[NormalVariateGenerator] = None,
    capture_log: bool = False,
) -> PathRun:
    """
    Simulate one life path.

    Args:
        profile: Financial profile to simulate
        params: Monte Carlo parameters
        simulation_id: 1-based identifier of the path
        uniform_source: Uniform source owned by this path
        normal_generator: Normal generator owned by this path, built over
            ``uniform_source`` when omitted
        capture_log: Whether to record a snapshot of every year

    Returns:
        PathRun with the outcome and, when requested, the yearly log

    Raises:
        ConfigurationError: If the profile cannot be simulated
    """
    validate_inputs(profile)

    if normal_generator is None:
        normal_generator = NormalVariateGenerator(uniform_source)

    start_year = params.resolved_start_year()
    current_age = start_year - profile.year_of_birth
    max_years = simulation_horizon(profile, start_year)

    state = PathState.initial(profile)
    yearly_data: List[YearSnapshot] = []

    for i in range(max_years):
        age = current_age + i

        market = draw_market_year(profile, params, uniform_source, normal_generator)
        portfolio_return = weighted_return(profile, market)

        update_fire_status(state, profile, i, age)
        is_working = state.is_working(profile)
        living_off_portfolio = state.fire_achieved and not is_working

        investment_yield = state.portfolio_value * portfolio_return
        labor_income = state.labor_income if is_working else 0.0
        pension_income = profile.pension_income if age >= profile.retirement_age else 0.0
        total_income = labor_income + investment_yield + pension_income + profile.other_income

        expenses = annual_expenses(state, profile, age, living_off_portfolio)

        withdrawal_rate: Optional[float] = None
        if living_off_portfolio:
            withdrawal_rate = assess_withdrawal(state, expenses)

        check_sequence_risk(state, i)

        if capture_log:
            yearly_data.append(
                YearSnapshot(
                    year=start_year + i,
                    age=age,
                    stock_return=market.stock_return * 100,
                    bond_return=market.bond_return * 100,
                    cash_return=market.cash_return * 100,
                    inflation_rate=market.inflation * 100,
                    portfolio_return=portfolio_return * 100,
                    is_black_swan=market.is_black_swan,
                    expenses=expenses,
                    labor_income=labor_income,
                    pension_income=pension_income,
                    total_income=total_income,
                    portfolio_value=state.portfolio_value,
                    is_fire_achieved=state.fire_achieved,
                    withdrawal_rate=(
                        withdrawal_rate * 100
                        if withdrawal_rate is not None and math.isfinite(withdrawal_rate)
                        else None
                    ),
                )
            )

        if is_working:
            # Savings rate already accounts for expenses
            labor_savings = state.labor_income * (profile.savings_rate / 100)
            state.portfolio_value += labor_savings + investment_yield
            state.labor_income *= 1 + profile.labor_income_growth_rate / 100
        else:
            state.portfolio_value += total_income - expenses

        apply_inflation(state, market.inflation)

        if state.portfolio_value <= 0:
            logger.debug(
                f"Path {simulation_id} depleted in year {i} at age {age}"
            )
            return _finish(simulation_id, depleted(), 0.0, yearly_data, capture_log)

    classification = classify_path(state, profile, max_years)
    return _finish(
        simulation_id, classification, state.portfolio_value, yearly_data, capture_log
    )


def _finish(
    simulation_id: int,
    classification: Classification,
    final_portfolio: float,
    yearly_data: List[YearSnapshot],
    capture_log: bool,
) -> PathRun:
    """Build the outcome and optional log of a finished path."""
    reasons = sorted(classification.reasons, key=lambda reason: reason.value)
    outcome = PathOutcome(
        simulation_id=simulation_id,
        success=classification.success,
        years_to_fire=classification.years_to_fire,
        final_portfolio=final_portfolio,
        failure_reasons=reasons,
    )

    log = None
    if capture_log:
        log = SimulationLog(
            simulation_id=simulation_id,
            success=outcome.success,
            years_to_fire=outcome.years_to_fire,
            final_portfolio=outcome.final_portfolio,
            failure_reasons=reasons,
            yearly_data=yearly_data,
        )

    return PathRun(outcome=outcome, log=log)
