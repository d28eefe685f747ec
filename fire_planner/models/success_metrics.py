"""
Success metrics module for Monte Carlo simulation.

This module reduces the outcomes of a batch of simulated paths into the
headline statistics reported to the user: success rate, median years to FIRE,
terminal portfolio percentiles and how often each failure condition occurred.
All functions are pure, so reducing the same outcomes twice gives identical
results.
"""

from collections import Counter
from typing import Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field

from .simulation.result import PathOutcome

DEFAULT_PERCENTILES = (5, 25, 50, 75, 95)


class OutcomeSummary(BaseModel):
    """Aggregate statistics of a batch of path outcomes."""

    success_count: int = Field(..., ge=0)
    failure_count: int = Field(..., ge=0)
    success_rate: float = Field(..., ge=0, le=100, description="Success rate (%)")
    median_years_to_fire: float = Field(..., ge=0)
    terminal_portfolio_percentiles: Dict[str, float] = Field(default_factory=dict)
    failure_reason_counts: Dict[str, int] = Field(default_factory=dict)


def calculate_success_rate(outcomes: Sequence[PathOutcome]) -> float:
    """Share of successful paths in percent, 0 for an empty batch."""
    if not outcomes:
        return 0.0
    success_count = sum(1 for outcome in outcomes if outcome.success)
    return success_count / len(outcomes) * 100


def calculate_median_years_to_fire(outcomes: Sequence[PathOutcome]) -> float:
    """
    Median years to FIRE over the successful paths.

    Args:
        outcomes: Path outcomes of the batch

    Returns:
        Median of the sorted years, the mean of the two middle values for an
        even count, and 0 when no path succeeded
    """
    years = sorted(
        outcome.years_to_fire
        for outcome in outcomes
        if outcome.success and outcome.years_to_fire is not None
    )
    return median_of_sorted(years)


def median_of_sorted(values: List[int]) -> float:
    """Median of an ascending list, 0 when empty."""
    if not values:
        return 0.0

    mid_index = len(values) // 2
    if len(values) % 2 == 0:
        return (values[mid_index - 1] + values[mid_index]) / 2
    return float(values[mid_index])


def calculate_terminal_percentiles(
    outcomes: Sequence[PathOutcome],
    percentiles: Sequence[float] = DEFAULT_PERCENTILES,
) -> Dict[str, float]:
    """Percentiles of the terminal portfolio value, keyed ``p5``, ``p50``..."""
    if not outcomes:
        return {}

    final_balances = np.array([outcome.final_portfolio for outcome in outcomes])
    return {
        f"p{int(level)}": float(np.percentile(final_balances, level))
        for level in percentiles
    }


def count_failure_reasons(outcomes: Sequence[PathOutcome]) -> Dict[str, int]:
    """Number of paths flagged with each failure reason."""
    counts: Counter = Counter()
    for outcome in outcomes:
        counts.update(reason.value for reason in outcome.failure_reasons)
    return dict(sorted(counts.items()))


def summarize_outcomes(
    outcomes: Sequence[PathOutcome],
    percentiles: Optional[Sequence[float]] = None,
) -> OutcomeSummary:
    """
    Reduce path outcomes into aggregate statistics.

    Args:
        outcomes: Path outcomes of the batch
        percentiles: Terminal portfolio percentile levels (0-100)

    Returns:
        OutcomeSummary for the batch
    """
    success_count = sum(1 for outcome in outcomes if outcome.success)

    return OutcomeSummary(
        success_count=success_count,
        failure_count=len(outcomes) - success_count,
        success_rate=calculate_success_rate(outcomes),
        median_years_to_fire=calculate_median_years_to_fire(outcomes),
        terminal_portfolio_percentiles=calculate_terminal_percentiles(
            outcomes, percentiles or DEFAULT_PERCENTILES
        ),
        failure_reason_counts=count_failure_reasons(outcomes),
    )
