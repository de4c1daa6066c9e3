"""
API Tests

Exercise the FastAPI routes through TestClient with the model service
dependency overridden by a hand-built model.
"""

import pytest
from fastapi.testclient import TestClient

from fairvalue.engine.types import MarketModel
from fairvalue.main import app
from fairvalue.services.model_service import ModelService, get_model_service

# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def client(model_service):
    app.dependency_overrides[get_model_service] = lambda: model_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def empty_client(settings):
    service = ModelService(settings, model=MarketModel())
    app.dependency_overrides[get_model_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def request_body():
    return {
        "city": "Coquitlam",
        "sub_area": "Westwood Plateau",
        "sqft": 1500,
        "year_built": 2015,
        "bedrooms": 3,
        "bathrooms": 2,
        "condition": 4,
        "strata_fee": 300,
        "property_tax": 3000,
        "assessment": 850000,
        "parking_type": "double",
        "parking_spaces": 2,
        "is_end_unit": True,
        "is_rainscreened": True,
    }


# =============================================================================
# HEALTH / MODEL
# =============================================================================


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["model_loaded"] is True
        assert body["sample_size"] == 250

    def test_unhealthy_without_model(self, empty_client):
        body = empty_client.get("/api/v1/health").json()
        assert body["status"] == "unhealthy"
        assert body["model_loaded"] is False

    def test_root(self, client):
        assert client.get("/").json()["health"] == "/api/v1/health"


class TestModelEndpoints:
    def test_model_record(self, client):
        body = client.get("/api/v1/model").json()
        assert body["reference_location"] == "Coquitlam - Burke Mountain"
        assert body["coef_sqft"] == 0.0003
        assert body["location_coefficients"]["Coquitlam - Westwood Plateau"] == 0.05

    def test_coefficient_report(self, client):
        response = client.get("/api/v1/model/coefficients")
        assert response.status_code == 200
        body = response.json()
        assert body["sample_size"] == 250
        assert body["coefficients"][0]["term"] == "intercept"
        assert {row["kind"] for row in body["coefficients"]} == {"intercept", "feature", "location"}

    def test_coefficient_report_without_model(self, empty_client):
        assert empty_client.get("/api/v1/model/coefficients").status_code == 503


# =============================================================================
# PREDICTION
# =============================================================================


class TestPredict:
    def test_predict_success(self, client, request_body):
        response = client.post("/api/v1/predict", json=request_body)
        assert response.status_code == 200
        body = response.json()
        assert body["lower_bound"] < body["predicted_price"] < body["upper_bound"]
        assert body["prediction_id"].startswith("pred-")
        assert body["is_log_linear"] is True
        assert body["reference_location"] == "Coquitlam - Burke Mountain"
        assert set(body["impacts"]) >= {"location", "age", "parking", "baseline_price", "approximation_gap"}

    def test_city_resolved_against_model(self, client, request_body):
        body = client.post("/api/v1/predict", json=request_body).json()
        assert body["location_adjustment"] == 0.05

    def test_explicit_adjustment_wins(self, client, request_body):
        body = client.post("/api/v1/predict", json={**request_body, "location_adjustment": 0.2}).json()
        assert body["location_adjustment"] == 0.2

    def test_unseen_location_uses_reference(self, client, request_body):
        body = client.post("/api/v1/predict", json={**request_body, "city": "Surrey"}).json()
        assert body["location_adjustment"] == 0.0

    def test_no_location_at_all(self, client, request_body):
        body = {k: v for k, v in request_body.items() if k not in ("city", "sub_area")}
        response = client.post("/api/v1/predict", json=body)
        assert response.status_code == 200
        assert response.json()["location_adjustment"] == 0.0

    def test_same_request_same_price(self, client, request_body):
        first = client.post("/api/v1/predict", json=request_body).json()
        second = client.post("/api/v1/predict", json=request_body).json()
        assert first["predicted_price"] == second["predicted_price"]
        assert first["prediction_id"] != second["prediction_id"]

    @pytest.mark.parametrize(
        "override",
        [
            {"sqft": 50},
            {"year_built": 1700},
            {"condition": 7},
            {"parking_type": "valet"},
            {"sqft": None},
        ],
    )
    def test_invalid_request_rejected(self, client, request_body, override):
        response = client.post("/api/v1/predict", json={**request_body, **override})
        assert response.status_code == 422

    def test_no_model_returns_503(self, empty_client, request_body):
        response = empty_client.post("/api/v1/predict", json=request_body)
        assert response.status_code == 503
        assert response.json()["detail"]["error"] == "ModelNotAvailable"
