"""
Failure taxonomy and path classification.

A simulated path that ends badly is a normal domain outcome, not an error.
This module names the ways a path can go wrong, separates the critical
conditions that turn a path into a failure from the advisory ones that are
only reported, and classifies a finished path.
"""

from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, NamedTuple, Optional

if TYPE_CHECKING:
    from ..profile import FinancialProfile
    from .path_simulator import PathState

# Final portfolio below this share of the inflation-adjusted target is unsustainable
UNSUSTAINABLE_ENDING_RATIO = 0.5


class FailureReason(str, Enum):
    """Named financial-ruin conditions detected on a path."""

    PORTFOLIO_DEPLETED = "portfolio_depleted"
    FIRE_LOST = "fire_lost"
    UNSUSTAINABLE_ENDING = "unsustainable_ending"
    FORCED_RETURN_TO_WORK = "forced_return_to_work"
    SEQUENCE_OF_RETURNS_RISK = "sequence_of_returns_risk"
    WITHDRAWAL_RATE_BREACH = "withdrawal_rate_breach"
    HEALTHCARE_EXPENSE_SHOCK = "healthcare_expense_shock"
    FIRE_TOO_LATE = "fire_too_late"


CRITICAL_FAILURE_REASONS: FrozenSet[FailureReason] = frozenset(
    {
        FailureReason.PORTFOLIO_DEPLETED,
        FailureReason.FIRE_LOST,
        FailureReason.UNSUSTAINABLE_ENDING,
        FailureReason.FORCED_RETURN_TO_WORK,
    }
)


class Classification(NamedTuple):
    """Verdict for a finished path."""

    success: bool
    reasons: FrozenSet[FailureReason]
    years_to_fire: Optional[int]


def is_critical(reason: FailureReason) -> bool:
    """Check whether a reason turns a path into a failure on its own."""
    return reason in CRITICAL_FAILURE_REASONS


def depleted() -> Classification:
    """Classification of a path whose portfolio ran out."""
    return Classification(
        success=False,
        reasons=frozenset({FailureReason.PORTFOLIO_DEPLETED}),
        years_to_fire=None,
    )


def classify_path(
    state: "PathState", profile: "FinancialProfile", years_simulated: int
) -> Classification:
    """
    Classify a path that ran to the end of its horizon.

    Args:
        state: Final state of the path
        profile: Financial profile the path was simulated for
        years_simulated: Number of years the path ran

    Returns:
        Classification with success flag, reasons and years to FIRE
    """
    reasons = set(state.flags)

    inflation_adjusted_target = profile.fire_target() * state.cumulative_inflation
    if state.portfolio_value < UNSUSTAINABLE_ENDING_RATIO * inflation_adjusted_target:
        reasons.add(FailureReason.UNSUSTAINABLE_ENDING)

    if state.fire_achieved and state.fire_age is not None:
        if state.fire_age >= profile.retirement_age:
            reasons.add(FailureReason.FIRE_TOO_LATE)

    if state.fire_lost and not state.fire_reachieved:
        reasons.add(FailureReason.FIRE_LOST)

    final_target = profile.fire_target(state.fire_expenses)
    reached = state.fire_achieved or state.portfolio_value >= final_target
    success = reached and not any(is_critical(reason) for reason in reasons)

    years_to_fire: Optional[int] = None
    if success:
        years_to_fire = (
            state.fire_year if state.fire_year is not None else years_simulated
        )

    return Classification(
        success=success, reasons=frozenset(reasons), years_to_fire=years_to_fire
    )
