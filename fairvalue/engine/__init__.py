"""
Hedonic regression and prediction engine.

This package contains the valuation core:
- linalg: dense matrix transpose / multiply / inverse
- ols: least-squares solver with standard errors and t-statistics
- encoding: the design-row encoder shared by fit and predict
- builder: listings -> MarketModel
- predictor: MarketModel + PredictionInput -> price and range
- decomposer: MarketModel + PredictionInput -> ImpactBreakdown
"""

from fairvalue.engine.builder import build_market_model
from fairvalue.engine.decomposer import decompose
from fairvalue.engine.linalg import Matrix, inverse, multiply, transpose
from fairvalue.engine.ols import OLSResult, solve_ols
from fairvalue.engine.predictor import (
    estimate,
    location_adjustment_for,
    predict_price,
    prediction_input_from_listing,
    price_range,
)
from fairvalue.engine.types import (
    ImpactBreakdown,
    ListingRecord,
    MarketModel,
    ParkingType,
    PredictionInput,
    PriceEstimate,
    PriceRange,
)

__all__ = [
    "Matrix",
    "transpose",
    "multiply",
    "inverse",
    "OLSResult",
    "solve_ols",
    "build_market_model",
    "predict_price",
    "price_range",
    "estimate",
    "location_adjustment_for",
    "prediction_input_from_listing",
    "decompose",
    "ListingRecord",
    "PredictionInput",
    "MarketModel",
    "ParkingType",
    "PriceRange",
    "PriceEstimate",
    "ImpactBreakdown",
]
