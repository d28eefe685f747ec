"""
Simulation blueprint for FIRE Monte Carlo runs.

This module provides API endpoints for running a Monte Carlo batch and for
downloading the logs of a batch as CSV or JSON.
"""

from typing import Any, Dict, Optional

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError

from fire_planner.models.profile import ConfigurationError
from fire_planner.services.simulation_service import EXPORT_FORMATS, SimulationService

simulation_bp = Blueprint("simulation", __name__, url_prefix="/api")


def _read_payload() -> Optional[Dict[str, Any]]:
    """Read the JSON body of a simulation request, None when malformed."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("profile"), dict):
        return None
    parameters = data.get("parameters")
    if parameters is not None and not isinstance(parameters, dict):
        return None
    return data


def _malformed_body() -> Any:
    """Build the 400 response for a body without the expected objects."""
    return (
        jsonify(
            {
                "error": "Request body must contain a 'profile' object "
                "and an optional 'parameters' object"
            }
        ),
        400,
    )


def _bad_request(e: Exception) -> Any:
    """Build the 400 response for rejected inputs."""
    if isinstance(e, ValidationError):
        message = e.errors(include_url=False, include_context=False)
    else:
        message = str(e)
    return jsonify({"error": "Invalid simulation inputs", "message": message}), 400


@simulation_bp.route("/monte-carlo", methods=["POST"])
def run_monte_carlo() -> Any:
    """Run a Monte Carlo batch.

    Returns:
        JSON response with the aggregate result
    """
    data = _read_payload()
    if data is None:
        return _malformed_body()

    capture_logs = data.get("capture_logs", False)
    if not isinstance(capture_logs, bool):
        return jsonify({"error": "capture_logs must be a boolean"}), 400

    try:
        service = SimulationService()
        result = service.run_simulation(
            data["profile"], data.get("parameters"), capture_logs=capture_logs
        )
        return jsonify(result.to_dict()), 201

    except (ConfigurationError, ValidationError) as e:
        return _bad_request(e)

    except Exception as e:
        current_app.logger.error(f"Error running simulation: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500


@simulation_bp.route("/monte-carlo/export", methods=["POST"])
def export_monte_carlo_logs() -> Any:
    """Run a logged Monte Carlo batch and return its logs as a download.

    Returns:
        CSV or JSON attachment with fixed parameters and per-path logs
    """
    fmt = request.args.get("format", "csv").lower()
    if fmt not in EXPORT_FORMATS:
        return jsonify({"error": "Invalid format"}), 400

    data = _read_payload()
    if data is None:
        return _malformed_body()

    try:
        service = SimulationService()
        result = service.run_simulation(
            data["profile"], data.get("parameters"), capture_logs=True
        )
        body, mimetype, filename = service.export_logs(result, fmt)

        return Response(
            body,
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    except (ConfigurationError, ValidationError) as e:
        return _bad_request(e)

    except Exception as e:
        current_app.logger.error(f"Error exporting simulation logs: {str(e)}")
        return jsonify({"error": "Internal server error"}), 500
