"""
Pydantic models for request/response validation in the FairValue API.

This module defines the data structures for:
- Valuation requests
- Valuation responses (estimate, range, impact breakdown)
- Model summary / coefficient report responses
- Health check responses
- Error responses

The engine's own types live in fairvalue.engine.types; these models are the
HTTP-facing shapes with stricter bounds and OpenAPI examples.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fairvalue.engine.types import ParkingType, PredictionInput, parse_parking_type

# ==============================================================================
# REQUEST MODELS
# ==============================================================================


class PredictionRequest(BaseModel):
    """Valuation request for one strata unit.

    The location premium comes either from ``city`` / ``sub_area`` (looked up
    in the fitted model) or from an explicit ``location_adjustment``, which
    takes precedence when both are given.
    """

    # Location
    city: Optional[str] = Field(
        default=None, max_length=100, description="City of the unit", examples=["Coquitlam"]
    )
    sub_area: Optional[str] = Field(
        default=None, max_length=100, description="Neighbourhood / sub-area", examples=["Westwood Plateau"]
    )
    location_adjustment: Optional[float] = Field(
        default=None,
        ge=-5,
        le=5,
        description="Explicit location premium relative to the reference location (log units for log-linear models)",
        examples=[0.05],
    )

    # Physical attributes
    sqft: float = Field(..., ge=100, le=20000, description="Interior square footage", examples=[1500])
    year_built: int = Field(..., ge=1800, le=2100, description="Year built", examples=[2015])
    bedrooms: Optional[float] = Field(default=None, ge=0, le=10, description="Bedrooms (default 2)", examples=[3])
    bathrooms: Optional[float] = Field(
        default=None, ge=0, le=10, description="Bathrooms, may be fractional (default 1)", examples=[2.5]
    )
    condition: Optional[int] = Field(
        default=None, ge=1, le=5, description="Condition, 1 (poor) to 5 (new/renovated), default 3", examples=[4]
    )

    # Cost attributes
    strata_fee: Optional[float] = Field(
        default=None, ge=0, le=10000, description="Monthly strata / maintenance fee", examples=[310]
    )
    property_tax: Optional[float] = Field(
        default=None, ge=0, le=100000, description="Annual property tax", examples=[3200]
    )
    assessment: Optional[float] = Field(
        default=None, ge=0, description="Assessed value", examples=[875000]
    )
    list_price: Optional[float] = Field(
        default=None, ge=0, description="Asking price (used only by models fitted with list price)"
    )

    # Parking and amenities
    parking_type: Optional[ParkingType] = Field(
        default=None,
        description="Parking type; 'std', 'tandem' and 'double' are accepted as shorthands",
        examples=["garage_double"],
    )
    parking_spaces: Optional[int] = Field(default=None, ge=0, le=10, description="Parking spaces (default 1)", examples=[2])
    is_end_unit: bool = Field(default=False, description="End unit")
    has_ac: bool = Field(default=False, description="Air conditioning")
    is_rainscreened: bool = Field(default=False, description="Rainscreen remediation done")

    @field_validator("parking_type", mode="before")
    @classmethod
    def normalize_parking_type(cls, v):
        parsed = parse_parking_type(v)
        if v is not None and parsed is None:
            raise ValueError(f"Unknown parking type: {v}")
        return parsed

    def to_prediction_input(self, location_adjustment: float) -> PredictionInput:
        """Engine input with the resolved location adjustment."""
        return PredictionInput(
            sqft=self.sqft,
            year_built=self.year_built,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            condition=self.condition,
            strata_fee=self.strata_fee,
            property_tax=self.property_tax,
            assessment=self.assessment,
            list_price=self.list_price,
            parking_type=self.parking_type,
            parking_spaces=self.parking_spaces,
            is_end_unit=self.is_end_unit,
            has_ac=self.has_ac,
            is_rainscreened=self.is_rainscreened,
            location_adjustment=location_adjustment,
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "city": "Coquitlam",
                    "sub_area": "Westwood Plateau",
                    "sqft": 1500,
                    "year_built": 2015,
                    "bedrooms": 3,
                    "bathrooms": 2.5,
                    "condition": 4,
                    "strata_fee": 310,
                    "property_tax": 3200,
                    "assessment": 875000,
                    "parking_type": "double",
                    "parking_spaces": 2,
                    "is_end_unit": False,
                    "has_ac": False,
                    "is_rainscreened": True,
                }
            ]
        }
    }


# ==============================================================================
# RESPONSE MODELS
# ==============================================================================


class ImpactResponse(BaseModel):
    """Dollar impact of each factor group on the predicted price."""

    location: float
    age: float
    condition: float
    bathrooms: float
    bedrooms: float
    parking: float
    amenities: float
    assessment: float
    tax: float
    fee: float
    list_price: float
    baseline_price: float = Field(..., description="Price with every factor group at its baseline")
    approximation_gap: float = Field(
        ...,
        description="(predicted - baseline) minus the sum of impacts; non-zero for log-linear models",
    )


class PredictionResponse(BaseModel):
    """Response containing the estimate, its range and the impact breakdown."""

    predicted_price: float = Field(..., ge=0, description="Predicted price", examples=[905000.0])
    lower_bound: float = Field(..., description="Lower bound of the 80% range; can be negative for a linear model", examples=[747000.0])
    upper_bound: float = Field(..., ge=0, description="Upper bound of the 80% range", examples=[1097000.0])
    prediction_id: str = Field(
        ...,
        description="Unique identifier for this prediction",
        examples=["pred-20251207-123456-abc123"],
    )
    location_adjustment: float = Field(..., description="Location premium that was applied")
    reference_location: Optional[str] = Field(
        default=None, description="Location the premium is relative to", examples=["Coquitlam - Burke Mountain"]
    )
    is_log_linear: bool = Field(..., description="Whether the model is log-linear")
    impacts: ImpactResponse
    confidence_note: str = Field(
        default="80% range from the model's residual standard error. Factor impacts are "
        "counterfactual and only approximately additive.",
        description="Confidence note about the prediction",
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Timestamp of the prediction"
    )


class CoefficientRow(BaseModel):
    """One row of the coefficient significance report."""

    term: str
    kind: str
    coefficient: float
    std_error: float
    t_stat: float
    p_value: float
    significant: bool


class CoefficientReportResponse(BaseModel):
    sample_size: int
    r_squared: float
    std_error: float
    reference_location: Optional[str]
    coefficients: list[CoefficientRow]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Health status of the API", examples=["healthy"])
    model_loaded: bool = Field(..., description="Whether a usable model is loaded", examples=[True])
    model_source: str = Field(..., description="Where the model came from", examples=["artifact"])
    sample_size: int = Field(..., description="Listings the model was fitted on", examples=[412])
    r_squared: float = Field(..., description="Model R^2", examples=[0.87])
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Timestamp of the health check"
    )

    model_config = {"protected_namespaces": ()}


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error type", examples=["ModelNotAvailable"])
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["No market model is available"],
    )
    details: dict | None = Field(default=None, description="Additional error details")
    timestamp: datetime = Field(
        default_factory=datetime.utcnow, description="Timestamp of the error"
    )
