"""Pytest configuration and fixtures for tests."""

import math

import numpy as np
import pytest

from fairvalue.config import Settings
from fairvalue.engine.types import ListingRecord, MarketModel, ParkingType, PredictionInput
from fairvalue.services.model_service import ModelService

REFERENCE_YEAR = 2025

LOCATIONS = {
    "Burnaby - Edmonds": 0.0,
    "Coquitlam - Westwood Plateau": 0.10,
    "Port Moody - Heritage Woods": -0.05,
}

# Ground truth for synthetic log-linear listings; unlisted coefficients are 0
LOG_TRUTH = {
    "intercept": 12.4,
    "sqft": 0.0004,
    "age": -0.006,
    "bathrooms": 0.05,
    "condition": 0.02,
    "double_garage": 0.08,
    "rainscreen": 0.06,
}

LINEAR_TRUTH = {
    "intercept": 150_000.0,
    "sqft": 350.0,
    "age": -2_000.0,
    "bathrooms": 20_000.0,
    "condition": 10_000.0,
    "double_garage": 25_000.0,
    "rainscreen": 30_000.0,
}

LINEAR_LOCATIONS = {
    "Burnaby - Edmonds": 0.0,
    "Coquitlam - Westwood Plateau": 50_000.0,
    "Port Moody - Heritage Woods": -20_000.0,
}


def make_listings(n: int = 400, log_linear: bool = True, seed: int = 7) -> list:
    """Synthetic listings whose prices follow LOG_TRUTH / LINEAR_TRUTH.

    Locations are assigned 5:3:2 so "Burnaby - Edmonds" is always the most
    frequent. Assessment and tax are missing for roughly a third of the
    listings so their indicator columns are not collinear with the intercept.
    """
    rng = np.random.default_rng(seed)
    truth = LOG_TRUTH if log_linear else LINEAR_TRUTH
    premiums = LOCATIONS if log_linear else LINEAR_LOCATIONS
    labels = list(LOCATIONS)
    parking_choices = [ParkingType.GARAGE_DOUBLE, ParkingType.GARAGE_TANDEM, ParkingType.UNDERGROUND, None]

    listings = []
    for i in range(n):
        label = labels[0] if i % 10 < 5 else labels[1] if i % 10 < 8 else labels[2]
        city, sub_area = label.split(" - ")

        sqft = float(rng.integers(700, 2200))
        year_built = int(rng.integers(1970, 2024))
        bathrooms = float(rng.choice([1.0, 1.5, 2.0, 2.5, 3.0]))
        bedrooms = float(rng.integers(1, 5))
        condition = float(rng.integers(1, 6))
        parking_type = parking_choices[int(rng.integers(0, len(parking_choices)))]
        parking_spaces = int(rng.integers(1, 4))
        rainscreen = bool(rng.random() < 0.4)
        assessment = float(rng.integers(500_000, 1_200_000)) if rng.random() < 0.65 else None
        tax = float(rng.integers(1_500, 4_500)) if rng.random() < 0.65 else None
        fee = float(rng.integers(150, 600))

        signal = (
            truth["intercept"]
            + truth["sqft"] * sqft
            + truth["age"] * (REFERENCE_YEAR - year_built)
            + truth["bathrooms"] * bathrooms
            + truth["condition"] * condition
            + truth["double_garage"] * (parking_type == ParkingType.GARAGE_DOUBLE)
            + truth["rainscreen"] * rainscreen
            + premiums[label]
        )
        if log_linear:
            price = math.exp(signal + rng.normal(0, 0.01))
        else:
            price = signal + rng.normal(0, 5_000)

        listings.append(
            ListingRecord(
                city=city,
                sub_area=sub_area,
                sqft=sqft,
                year_built=year_built,
                bedrooms=bedrooms,
                bathrooms=bathrooms,
                condition=condition,
                strata_fee=fee,
                property_tax=tax,
                assessment=assessment,
                parking_type=parking_type,
                parking_spaces=parking_spaces,
                is_end_unit=bool(rng.random() < 0.3),
                has_ac=bool(rng.random() < 0.2),
                is_rainscreened=rainscreen,
                price=round(price, 2),
            )
        )
    return listings


@pytest.fixture
def synthetic_listings():
    return make_listings()


@pytest.fixture
def linear_listings():
    return make_listings(log_linear=False)


@pytest.fixture
def mock_model() -> MarketModel:
    """A hand-built log-linear model with realistic coefficients."""
    return MarketModel(
        sample_size=250,
        degrees_of_freedom=231,
        is_log_linear=True,
        reference_year=REFERENCE_YEAR,
        intercept=13.5,
        coef_sqft=0.0003,
        coef_age=-0.01,
        coef_bath=0.05,
        coef_bedrooms=0.03,
        coef_condition=0.02,
        coef_rainscreen=0.08,
        coef_ac=0.06,
        coef_end_unit=0.04,
        coef_double_garage=0.10,
        coef_tandem_garage=0.07,
        coef_extra_parking=0.03,
        coef_assessment=0.5,
        coef_has_assessment=0.02,
        coef_tax=-0.002,
        coef_has_tax=-0.01,
        coef_fee_per_sqft=-0.001,
        t_stats={"intercept": 45.0, "sqft": 12.3, "age": -6.1, "bathrooms": 1.2},
        std_errors={"intercept": 0.3, "sqft": 0.0000244, "age": 0.00164, "bathrooms": 0.0417},
        r_squared=0.87,
        std_error=0.15,
        reference_location="Coquitlam - Burke Mountain",
        location_coefficients={
            "Coquitlam - Burke Mountain": 0.0,
            "Coquitlam - Westwood Plateau": 0.05,
            "Port Coquitlam - Citadel": -0.08,
        },
        location_t_stats={
            "Coquitlam - Burke Mountain": 0.0,
            "Coquitlam - Westwood Plateau": 2.5,
            "Port Coquitlam - Citadel": -3.2,
        },
        location_std_errors={
            "Coquitlam - Burke Mountain": 0.0,
            "Coquitlam - Westwood Plateau": 0.02,
            "Port Coquitlam - Citadel": 0.025,
        },
    )


@pytest.fixture
def linear_model(mock_model) -> MarketModel:
    """A linear model in dollars."""
    return mock_model.model_copy(
        update={
            "is_log_linear": False,
            "intercept": 200_000.0,
            "coef_sqft": 300.0,
            "coef_age": -1_500.0,
            "coef_bath": 15_000.0,
            "coef_bedrooms": 10_000.0,
            "coef_condition": 8_000.0,
            "coef_rainscreen": 20_000.0,
            "coef_ac": 12_000.0,
            "coef_end_unit": 9_000.0,
            "coef_double_garage": 25_000.0,
            "coef_tandem_garage": 15_000.0,
            "coef_extra_parking": 10_000.0,
            "coef_assessment": 0.0,
            "coef_has_assessment": 0.0,
            "coef_tax": -50.0,
            "coef_has_tax": -2_000.0,
            "coef_fee_per_sqft": -5_000.0,
            "std_error": 40_000.0,
            "location_coefficients": {
                "Coquitlam - Burke Mountain": 0.0,
                "Coquitlam - Westwood Plateau": 30_000.0,
                "Port Coquitlam - Citadel": -45_000.0,
            },
        }
    )


@pytest.fixture
def sample_input() -> PredictionInput:
    """A realistic valuation query."""
    return PredictionInput(
        sqft=1500,
        year_built=2015,
        bedrooms=3,
        bathrooms=2,
        condition=4,
        strata_fee=300,
        property_tax=3000,
        assessment=850_000,
        parking_type=ParkingType.GARAGE_DOUBLE,
        parking_spaces=2,
        is_end_unit=True,
        has_ac=False,
        is_rainscreened=True,
        location_adjustment=0.05,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        listings_dir=str(tmp_path / "listings"),
        model_path=str(tmp_path / "model" / "market_model.json"),
        metrics_path=str(tmp_path / "model" / "metrics.json"),
    )


@pytest.fixture
def model_service(settings, mock_model) -> ModelService:
    return ModelService(settings, model=mock_model)
