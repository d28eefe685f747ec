"""
Simulation service for running FIRE Monte Carlo batches.

This service turns request payloads into validated simulation inputs, enforces
the configured batch limits, runs the batch and prepares log exports.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional, Tuple

from pydantic import ValidationError

from fire_planner.config import Settings, get_global_settings
from fire_planner.models.profile import (
    ConfigurationError,
    FinancialProfile,
    SimulationParameters,
)
from fire_planner.models.simulation.export import (
    export_logs_to_csv,
    export_logs_to_json,
)
from fire_planner.models.simulation.result import AggregateResult
from fire_planner.models.simulation.runner import BatchRunner

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    "csv": "text/csv",
    "json": "application/json",
}


class SimulationService:
    """Service for running Monte Carlo simulation batches."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize the simulation service.

        Args:
            settings: Application settings, defaults to the global settings
        """
        self.settings = settings or get_global_settings()
        self.logger = logging.getLogger(__name__)

    def build_inputs(
        self,
        profile_data: Dict[str, Any],
        parameters_data: Optional[Dict[str, Any]] = None,
    ) -> Tuple[FinancialProfile, SimulationParameters]:
        """Build simulation inputs from request payloads.

        Args:
            profile_data: Financial profile fields
            parameters_data: Monte Carlo parameter fields

        Returns:
            Tuple of (profile, parameters)

        Raises:
            ValidationError: If a field is missing or out of range
            ConfigurationError: If the batch exceeds the configured path limit
        """
        parameters_data = dict(parameters_data or {})
        parameters_data.setdefault(
            "num_simulations", self.settings.simulation_default_paths
        )

        profile = FinancialProfile.model_validate(profile_data)
        params = SimulationParameters.model_validate(parameters_data)

        if params.num_simulations > self.settings.simulation_max_paths:
            raise ConfigurationError(
                f"num_simulations must not exceed {self.settings.simulation_max_paths}"
            )

        return profile, params

    def run_simulation(
        self,
        profile_data: Dict[str, Any],
        parameters_data: Optional[Dict[str, Any]] = None,
        capture_logs: bool = False,
    ) -> AggregateResult:
        """Run a Monte Carlo batch.

        Args:
            profile_data: Financial profile fields
            parameters_data: Monte Carlo parameter fields
            capture_logs: Whether to keep yearly logs for export

        Returns:
            AggregateResult of the batch

        Raises:
            ValidationError: If the payload is malformed
            ConfigurationError: If the inputs cannot be simulated
        """
        try:
            profile, params = self.build_inputs(profile_data, parameters_data)

            self.logger.info(
                f"Starting simulation of {params.num_simulations} paths "
                f"(capture_logs={capture_logs})"
            )

            runner = BatchRunner(
                max_workers=self.settings.simulation_max_workers,
                chunk_size=self.settings.simulation_chunk_size,
                executor=self.settings.simulation_executor,
            )
            result = runner.run(profile, params, capture_logs=capture_logs)

            self.logger.info(
                f"Completed simulation with success rate {result.success_rate:.1f}%"
            )
            return result

        except (ConfigurationError, ValidationError) as e:
            self.logger.warning(f"Rejected simulation inputs: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Simulation failed: {str(e)}")
            raise

    def export_logs(self, result: AggregateResult, fmt: str) -> Tuple[str, str, str]:
        """Export the logs of a batch.

        Args:
            result: Batch result captured with logs
            fmt: Export format, "csv" or "json"

        Returns:
            Tuple of (body, mimetype, filename)

        Raises:
            ValueError: If the format is unsupported or the result has no logs
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        if result.logs is None:
            raise ValueError("Result was produced without logs")

        if fmt == "csv":
            body = export_logs_to_csv(result.logs, result.fixed_parameters)
        else:
            body = export_logs_to_json(result.logs, result.fixed_parameters)

        filename = f"monte-carlo-logs-{date.today().isoformat()}.{fmt}"
        return body, EXPORT_FORMATS[fmt], filename
