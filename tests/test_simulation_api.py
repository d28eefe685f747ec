"""Tests for the Monte Carlo simulation API endpoints."""

import json

import pytest

from fire_planner import create_app


@pytest.fixture
def client(clean_settings):
    app = create_app("testing")
    return app.test_client()


@pytest.fixture
def payload(profile_data, parameters_data):
    parameters_data["num_simulations"] = 10
    return {"profile": profile_data, "parameters": parameters_data}


class TestRunMonteCarlo:
    """Test POST /api/monte-carlo."""

    def test_run_batch(self, client, payload):
        """Test a valid batch returns the aggregate result."""
        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 201
        data = json.loads(response.data)
        assert data["num_simulations"] == 10
        assert data["success_count"] + data["failure_count"] == 10
        assert 0 <= data["success_rate"] <= 100
        assert [sim["simulation_id"] for sim in data["simulations"]] == list(
            range(1, 11)
        )
        assert data["logs"] is None

    def test_run_batch_with_logs(self, client, payload):
        """Test logs are returned when requested."""
        payload["capture_logs"] = True

        response = client.post("/api/monte-carlo", json=payload)

        data = json.loads(response.data)
        assert response.status_code == 201
        assert len(data["logs"]) == 10
        assert data["fixed_parameters"]["start_year"] == 2025

    def test_invalid_allocation(self, client, payload):
        """Test allocations not summing to 100% are rejected."""
        payload["profile"].update(stocks_percent=40, bonds_percent=40, cash_percent=10)

        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 400
        data = json.loads(response.data)
        assert data["error"] == "Invalid simulation inputs"
        assert "Asset allocation must sum to 100%" in data["message"]

    def test_missing_profile(self, client):
        """Test requests without a profile are rejected."""
        response = client.post("/api/monte-carlo", json={"parameters": {}})

        assert response.status_code == 400
        data = json.loads(response.data)
        assert "profile" in data["error"]
        assert "message" not in data

    @pytest.mark.parametrize(
        "body",
        [["not", "an", "object"], {"profile": "me"}, {"profile": {}, "parameters": [1]}],
    )
    def test_malformed_body(self, client, body):
        """Test bodies without the expected objects are rejected."""
        response = client.post("/api/monte-carlo", json=body)

        assert response.status_code == 400
        assert "profile" in json.loads(response.data)["error"]

    def test_null_parameters_use_defaults(self, client, payload):
        """Test a null parameters object falls back to the defaults."""
        payload["parameters"] = None

        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 201

    @pytest.mark.parametrize("value", ["false", "true", 1, 0, None])
    def test_capture_logs_must_be_boolean(self, client, payload, value):
        """Test non-boolean capture_logs values are rejected."""
        payload["capture_logs"] = value

        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 400
        assert json.loads(response.data) == {"error": "capture_logs must be a boolean"}

    def test_capture_logs_false(self, client, payload):
        """Test an explicit false leaves logs out."""
        payload["capture_logs"] = False

        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 201
        assert json.loads(response.data)["logs"] is None

    def test_malformed_profile(self, client, payload):
        """Test field validation errors are reported."""
        payload["profile"]["initial_savings"] = "lots"

        response = client.post("/api/monte-carlo", json=payload)

        assert response.status_code == 400
        assert isinstance(json.loads(response.data)["message"], list)


class TestExportMonteCarloLogs:
    """Test POST /api/monte-carlo/export."""

    def test_csv_export(self, client, payload):
        """Test CSV download."""
        response = client.post("/api/monte-carlo/export?format=csv", json=payload)

        assert response.status_code == 200
        assert response.mimetype == "text/csv"
        assert "attachment; filename=monte-carlo-logs-" in response.headers[
            "Content-Disposition"
        ]
        body = response.data.decode()
        assert body.startswith("Monte Carlo Simulation Logs")
        assert "Fixed Parameters (apply to all simulations)" in body

    def test_json_export(self, client, payload):
        """Test JSON download."""
        response = client.post("/api/monte-carlo/export?format=json", json=payload)

        assert response.status_code == 200
        document = json.loads(response.data)
        assert document["type"] == "MonteCarloSimulationLogs"
        assert len(document["simulations"]) == 10

    def test_invalid_format(self, client, payload):
        """Test unknown export formats are rejected."""
        response = client.post("/api/monte-carlo/export?format=xml", json=payload)

        assert response.status_code == 400
        assert json.loads(response.data) == {"error": "Invalid format"}

    def test_invalid_inputs(self, client, payload):
        """Test exports validate inputs like runs do."""
        payload["profile"]["desired_withdrawal_rate"] = 0

        response = client.post("/api/monte-carlo/export", json=payload)

        assert response.status_code == 400
