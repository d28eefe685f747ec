"""
Export of Monte Carlo simulation logs.

Builds the CSV and JSON documents offered for download next to a logged
batch. Both exports carry the fixed parameters of the batch once, followed by
the per-path summary and the yearly data. The functions only build strings,
writing them anywhere is left to the caller.
"""

import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..profile import FixedParameters
from .result import SimulationLog

EXPORT_TYPE = "MonteCarloSimulationLogs"
EXPORT_VERSION = "1.0"

FIXED_PARAMETER_LABELS = {
    "initial_savings": "Initial Savings",
    "stocks_percent": "Stocks Percent",
    "bonds_percent": "Bonds Percent",
    "cash_percent": "Cash Percent",
    "current_annual_expenses": "Current Annual Expenses",
    "fire_annual_expenses": "FIRE Annual Expenses",
    "annual_labor_income": "Annual Labor Income",
    "labor_income_growth_rate": "Labor Income Growth Rate",
    "savings_rate": "Savings Rate",
    "desired_withdrawal_rate": "Desired Withdrawal Rate",
    "expected_stock_return": "Expected Stock Return",
    "expected_bond_return": "Expected Bond Return",
    "expected_cash_return": "Expected Cash Return",
    "year_of_birth": "Year Of Birth",
    "retirement_age": "Retirement Age",
    "max_age": "Max Age",
    "state_pension_income": "State Pension Income",
    "private_pension_income": "Private Pension Income",
    "other_income": "Other Income",
    "num_simulations": "Number Of Simulations",
    "stock_volatility": "Stock Volatility",
    "bond_volatility": "Bond Volatility",
    "black_swan_probability": "Black Swan Probability",
    "black_swan_impact": "Black Swan Impact",
    "start_year": "Start Year",
    "seed": "Seed",
    "stop_working_at_fire": "Stop Working At FIRE",
}

SUMMARY_HEADER = [
    "Simulation ID",
    "Success",
    "Years to FIRE",
    "Final Portfolio",
    "Failure Reasons",
]

YEARLY_HEADER = [
    "Simulation ID",
    "Year",
    "Age",
    "Stock Return",
    "Bond Return",
    "Cash Return",
    "Inflation Rate",
    "Portfolio Return",
    "Black Swan",
    "Expenses",
    "Labor Income",
    "Pension Income",
    "Total Income",
    "Portfolio Value",
    "FIRE Achieved",
    "Withdrawal Rate",
]


def _format_value(value: Any, precision: Optional[int] = None) -> str:
    """Format a scalar for the CSV export, exactly unless a precision is given."""
    if value is None:
        return "N/A"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value) if precision is None else f"{value:.{precision}f}"
    return str(value)


def export_logs_to_csv(
    logs: Sequence[SimulationLog], fixed_parameters: Optional[FixedParameters]
) -> str:
    """
    Export simulation logs to CSV.

    Args:
        logs: Per-path logs of a batch
        fixed_parameters: Inputs of the batch

    Returns:
        CSV document with fixed parameters, a summary and the yearly data
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Monte Carlo Simulation Logs"])
    writer.writerow(["Export Date", datetime.now().isoformat()])
    writer.writerow([])

    writer.writerow(["Fixed Parameters (apply to all simulations)"])
    if fixed_parameters is not None:
        for key, value in fixed_parameters.model_dump().items():
            label = FIXED_PARAMETER_LABELS.get(key, key)
            writer.writerow([label, _format_value(value)])
    writer.writerow([])

    writer.writerow(["Simulation Results Summary"])
    writer.writerow(SUMMARY_HEADER)
    for log in logs:
        writer.writerow(
            [
                log.simulation_id,
                _format_value(log.success),
                _format_value(log.years_to_fire),
                _format_value(log.final_portfolio),
                ";".join(reason.value for reason in log.failure_reasons),
            ]
        )
    writer.writerow([])

    writer.writerow(["Detailed Yearly Data"])
    writer.writerow(YEARLY_HEADER)
    for log in logs:
        for year in log.yearly_data:
            writer.writerow(
                [
                    log.simulation_id,
                    year.year,
                    year.age,
                    f"{year.stock_return:.2f}",
                    f"{year.bond_return:.2f}",
                    f"{year.cash_return:.2f}",
                    f"{year.inflation_rate:.2f}",
                    f"{year.portfolio_return:.2f}",
                    _format_value(year.is_black_swan),
                    f"{year.expenses:.2f}",
                    f"{year.labor_income:.2f}",
                    f"{year.pension_income:.2f}",
                    f"{year.total_income:.2f}",
                    f"{year.portfolio_value:.2f}",
                    _format_value(year.is_fire_achieved),
                    _format_value(year.withdrawal_rate, precision=2),
                ]
            )

    return buffer.getvalue()


def build_logs_document(
    logs: Sequence[SimulationLog], fixed_parameters: Optional[FixedParameters]
) -> Dict[str, Any]:
    """Build the JSON export document as a dictionary."""
    simulations: List[Dict[str, Any]] = [log.model_dump(mode="json") for log in logs]
    return {
        "type": EXPORT_TYPE,
        "exportVersion": EXPORT_VERSION,
        "exportDate": datetime.now().isoformat(),
        "fixedParameters": (
            fixed_parameters.model_dump(mode="json") if fixed_parameters else None
        ),
        "simulations": simulations,
    }


def export_logs_to_json(
    logs: Sequence[SimulationLog],
    fixed_parameters: Optional[FixedParameters],
    indent: int = 2,
) -> str:
    """
    Export simulation logs to JSON.

    Args:
        logs: Per-path logs of a batch
        fixed_parameters: Inputs of the batch
        indent: JSON indentation level

    Returns:
        JSON document with fixed parameters and every simulation
    """
    return json.dumps(build_logs_document(logs, fixed_parameters), indent=indent)
