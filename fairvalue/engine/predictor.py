"""
Forward predictor for a fitted MarketModel.

The input is encoded with the same function the builder used, so every
coefficient meets the attribute it was fitted on. The location term is not
looked up here: the caller passes ``location_adjustment`` on the input
(see location_adjustment_for for the lookup against the model).

Price range: an 80% interval with z = 1.28.
    log-linear: price / e^(z*se) .. price * e^(z*se)
    linear:     price - z*se     .. price + z*se   (symmetric, may go below 0)
"""

import logging
import math
import sys
from typing import Optional

from fairvalue.engine.encoding import COEFFICIENT_FIELDS, encode_features
from fairvalue.engine.types import (
    ListingRecord,
    MarketModel,
    PredictionInput,
    PriceEstimate,
    PriceRange,
    location_label,
)

logger = logging.getLogger(__name__)

Z_SCORE_80 = 1.28

# Largest exponent math.exp accepts without overflow
MAX_LOG_PRICE = math.log(sys.float_info.max)


def linear_predictor(
    model: MarketModel,
    inputs: PredictionInput,
    reference_year: Optional[int] = None,
) -> float:
    """Intercept + sum(term * coefficient) + location adjustment.

    In log units for a log-linear model, price units otherwise.
    """
    year = reference_year if reference_year is not None else model.reference_year
    features = encode_features(inputs, year, model.includes_list_price)

    total = model.intercept
    for name, value in features.items():
        total += value * getattr(model, COEFFICIENT_FIELDS[name])
    return total + inputs.location_adjustment


def to_price(model: MarketModel, value: float) -> float:
    """Convert a linear-predictor value into a price."""
    if model.is_log_linear:
        return math.exp(min(value, MAX_LOG_PRICE))
    return max(0.0, value)


def predict_price(
    model: MarketModel,
    inputs: PredictionInput,
    reference_year: Optional[int] = None,
) -> float:
    """Predicted price for one input.

    Args:
        model: Fitted model
        inputs: Query attributes with their location adjustment
        reference_year: Year that age is measured from. Defaults to the
            model's fit year, or today for a hand-built model.

    Returns:
        Non-negative, finite price
    """
    return to_price(model, linear_predictor(model, inputs, reference_year))


def price_range(
    price: float,
    std_error: float,
    is_log_linear: bool = True,
    z: float = Z_SCORE_80,
) -> PriceRange:
    """Uncertainty interval around a point estimate."""
    if is_log_linear:
        margin = math.exp(z * std_error)
        return PriceRange(lower_bound=price / margin, upper_bound=price * margin)

    return PriceRange(
        lower_bound=price - z * std_error,
        upper_bound=price + z * std_error,
    )


def estimate(
    model: MarketModel,
    inputs: PredictionInput,
    reference_year: Optional[int] = None,
    z: float = Z_SCORE_80,
) -> PriceEstimate:
    """Point estimate plus price range."""
    price = predict_price(model, inputs, reference_year)
    bounds = price_range(price, model.std_error, model.is_log_linear, z)
    return PriceEstimate(price=price, lower_bound=bounds.lower_bound, upper_bound=bounds.upper_bound)


def location_adjustment_for(
    model: MarketModel,
    city: str,
    sub_area: Optional[str] = None,
) -> float:
    """Fitted premium of a location relative to the model's reference.

    The reference location and locations never seen at fit time both give 0.
    An unseen location is logged and ignored; it never gets a dummy of its own.
    """
    label = location_label(city, sub_area)
    if label not in model.location_coefficients:
        logger.warning("Location '%s' not in model vocabulary; using reference premium 0", label)
        return 0.0
    return model.location_coefficients[label]


def prediction_input_from_listing(listing: ListingRecord, model: MarketModel) -> PredictionInput:
    """Build a query from a listing, resolving its location against the model."""
    return PredictionInput(
        sqft=listing.sqft,
        year_built=listing.year_built,
        bedrooms=listing.bedrooms,
        bathrooms=listing.bathrooms,
        condition=listing.condition,
        strata_fee=listing.strata_fee,
        property_tax=listing.property_tax,
        assessment=listing.assessment,
        list_price=listing.list_price,
        parking_type=listing.parking_type,
        parking_spaces=listing.parking_spaces,
        is_end_unit=listing.is_end_unit,
        has_ac=listing.has_ac,
        is_rainscreened=listing.is_rainscreened,
        location_adjustment=location_adjustment_for(model, listing.city, listing.sub_area),
    )
