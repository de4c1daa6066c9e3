"""
Feature encoding shared by model fitting and prediction.

A design row is, in this exact order:

    intercept | FEATURE_NAMES (+ LIST_PRICE_FEATURES when enabled) | location dummies

Fit-time and predict-time rows must come from the same function, otherwise a
coefficient would be applied to the wrong attribute. Both ListingRecord and
PredictionInput expose the attributes read here.

Missing attributes resolve through ATTRIBUTE_DEFAULTS. Attributes that only
make sense when present (assessment, tax, list price) use an indicator column
plus a value column that is zeroed when the indicator is off, so a missing
value never reaches log() and never produces NaN.
"""

import math
from datetime import date
from typing import Dict, List, Optional, Protocol, Sequence

from fairvalue.engine.types import ParkingType

FEATURE_NAMES = (
    "sqft",
    "age",
    "bathrooms",
    "bedrooms",
    "condition",
    "rainscreen",
    "ac",
    "end_unit",
    "double_garage",
    "tandem_garage",
    "extra_parking",
    "log_assessment",
    "has_assessment",
    "tax_per_sqft",
    "has_tax",
    "fee_per_sqft",
)

LIST_PRICE_FEATURES = ("log_list_price", "has_list_price")

# Feature name -> MarketModel coefficient field
COEFFICIENT_FIELDS = {
    "sqft": "coef_sqft",
    "age": "coef_age",
    "bathrooms": "coef_bath",
    "bedrooms": "coef_bedrooms",
    "condition": "coef_condition",
    "rainscreen": "coef_rainscreen",
    "ac": "coef_ac",
    "end_unit": "coef_end_unit",
    "double_garage": "coef_double_garage",
    "tandem_garage": "coef_tandem_garage",
    "extra_parking": "coef_extra_parking",
    "log_assessment": "coef_assessment",
    "has_assessment": "coef_has_assessment",
    "tax_per_sqft": "coef_tax",
    "has_tax": "coef_has_tax",
    "fee_per_sqft": "coef_fee_per_sqft",
    "log_list_price": "coef_list_price",
    "has_list_price": "coef_has_list_price",
}

# Declared defaults for attributes that may be missing
ATTRIBUTE_DEFAULTS = {
    "bathrooms": 1.0,
    "bedrooms": 2.0,
    "condition": 3.0,
    "parking_spaces": 1,
    "strata_fee": 0.0,
    "property_tax": 0.0,
    "assessment": 0.0,
    "list_price": 0.0,
}


class PropertyAttributes(Protocol):
    sqft: float
    year_built: int
    bathrooms: Optional[float]
    bedrooms: Optional[float]
    condition: Optional[float]
    strata_fee: Optional[float]
    property_tax: Optional[float]
    assessment: Optional[float]
    list_price: Optional[float]
    parking_type: Optional[ParkingType]
    parking_spaces: Optional[int]
    is_end_unit: bool
    has_ac: bool
    is_rainscreened: bool


def feature_names(include_list_price: bool = False) -> tuple:
    return FEATURE_NAMES + LIST_PRICE_FEATURES if include_list_price else FEATURE_NAMES


def resolve(record: PropertyAttributes, name: str) -> float:
    """Attribute value, or its declared default when missing."""
    value = getattr(record, name, None)
    if value is None:
        return ATTRIBUTE_DEFAULTS.get(name, 0.0)
    return value


def _log_with_flag(value: float) -> tuple:
    if value > 0:
        return math.log(value), 1.0
    return 0.0, 0.0


def encode_features(
    record: PropertyAttributes,
    reference_year: Optional[int] = None,
    include_list_price: bool = False,
) -> Dict[str, float]:
    """Encode one record's non-location features.

    Args:
        record: Listing or prediction input
        reference_year: Year that age is measured from (defaults to today)
        include_list_price: Append the list-price columns

    Returns:
        Ordered mapping of feature name -> encoded value
    """
    year = reference_year if reference_year is not None else date.today().year
    sqft = float(record.sqft or 0.0)

    log_assessment, has_assessment = _log_with_flag(resolve(record, "assessment"))

    tax = resolve(record, "property_tax")
    has_tax = 1.0 if tax > 0 else 0.0
    tax_per_sqft = tax / sqft if has_tax and sqft > 0 else 0.0

    fee = resolve(record, "strata_fee")
    fee_per_sqft = fee * 12 / sqft if fee > 0 and sqft > 0 else 0.0

    parking_type = record.parking_type
    spaces = resolve(record, "parking_spaces")

    encoded = {
        "sqft": sqft,
        "age": float(year - record.year_built),
        "bathrooms": float(resolve(record, "bathrooms")),
        "bedrooms": float(resolve(record, "bedrooms")),
        "condition": float(resolve(record, "condition")),
        "rainscreen": 1.0 if record.is_rainscreened else 0.0,
        "ac": 1.0 if record.has_ac else 0.0,
        "end_unit": 1.0 if record.is_end_unit else 0.0,
        "double_garage": 1.0 if parking_type == ParkingType.GARAGE_DOUBLE else 0.0,
        "tandem_garage": 1.0 if parking_type == ParkingType.GARAGE_TANDEM else 0.0,
        "extra_parking": float(max(0, spaces - 1)),
        "log_assessment": log_assessment,
        "has_assessment": has_assessment,
        "tax_per_sqft": tax_per_sqft,
        "has_tax": has_tax,
        "fee_per_sqft": fee_per_sqft,
    }

    if include_list_price:
        log_list_price, has_list_price = _log_with_flag(resolve(record, "list_price"))
        encoded["log_list_price"] = log_list_price
        encoded["has_list_price"] = has_list_price

    return encoded


def location_dummies(location: str, locations: Sequence[str]) -> List[float]:
    """One-hot encoding of ``location`` against the non-reference vocabulary."""
    return [1.0 if location == candidate else 0.0 for candidate in locations]


def design_row(
    record: PropertyAttributes,
    location: str,
    locations: Sequence[str],
    reference_year: Optional[int] = None,
    include_list_price: bool = False,
) -> List[float]:
    """Full design-matrix row: intercept, features, location dummies."""
    features = encode_features(record, reference_year, include_list_price)
    return [1.0] + list(features.values()) + location_dummies(location, locations)
