"""
Domain types for the valuation engine.

- ListingRecord: one observed sale, parsed from the scraper's JSON output
- PredictionInput: one query in the same attribute space, plus a location adjustment
- MarketModel: the immutable fitted artifact
- PriceRange / PriceEstimate: predictor outputs
- ImpactBreakdown: counterfactual dollar impacts per factor group

Every optional attribute is either present or None. None is resolved by the
encoder to a declared default (see fairvalue.engine.encoding), never guessed
at the call site.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Listing validity thresholds (exclusive)
MIN_VALID_PRICE = 100_000
MIN_VALID_SQFT = 300
MIN_VALID_YEAR_BUILT = 1900

MODEL_SCHEMA_VERSION = 1


class ParkingType(str, Enum):
    """Parking categories produced by the listing enrichment step."""

    UNDERGROUND = "underground"
    CARPORT = "carport"
    GARAGE_DOUBLE = "garage_double"
    GARAGE_TANDEM = "garage_tandem"
    STREET = "street"
    OTHER = "other"


# Calculator shorthands accepted on input
PARKING_ALIASES = {
    "double": ParkingType.GARAGE_DOUBLE,
    "tandem": ParkingType.GARAGE_TANDEM,
    "std": ParkingType.OTHER,
    "standard": ParkingType.OTHER,
}


class OutdoorSpace(str, Enum):
    BALCONY = "balcony"
    YARD = "yard"
    ROOFTOP = "rooftop"
    NONE = "none"


def parse_parking_type(value):
    if value is None or isinstance(value, ParkingType):
        return value
    key = str(value).strip().lower()
    if key in PARKING_ALIASES:
        return PARKING_ALIASES[key]
    try:
        return ParkingType(key)
    except ValueError:
        return None


# ==============================================================================
# INPUT RECORDS
# ==============================================================================


class ListingRecord(BaseModel):
    """One observed transaction or active listing.

    Field aliases match the scraper's camelCase JSON; snake_case names are
    accepted as well. Attributes that are absent or unusable (an unknown
    parking type, a condition outside 1-5) parse to None.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    # Location
    city: str = ""
    sub_area: Optional[str] = Field(default=None, alias="subArea")
    address: Optional[str] = None

    # Physical attributes
    sqft: float = 0.0
    year_built: int = Field(default=0, validation_alias=AliasChoices("year", "year_built", "yearBuilt"))
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    condition: Optional[float] = None
    levels: Optional[int] = None

    # Cost attributes
    strata_fee: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("fee", "strata_fee", "strataFee")
    )
    property_tax: Optional[float] = Field(default=None, alias="propertyTax")
    assessment: Optional[float] = None

    # Categorical attributes
    parking_type: Optional[ParkingType] = Field(default=None, alias="parkingType")
    parking_spaces: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("parking", "parking_spaces", "parkingSpots")
    )
    outdoor_space: Optional[OutdoorSpace] = Field(default=None, alias="outdoorSpace")

    # Amenities
    is_end_unit: bool = Field(default=False, alias="isEndUnit")
    has_ac: bool = Field(default=False, alias="hasAC")
    is_rainscreened: bool = Field(
        default=False,
        validation_alias=AliasChoices("isRainscreened", "rainscreen", "is_rainscreened"),
    )

    # Prices
    price: float = 0.0
    list_price: Optional[float] = Field(default=None, alias="listPrice")
    sold_date: Optional[str] = Field(default=None, alias="soldDate")

    # Free text, consumed only by the enrichment step
    description: Optional[str] = None
    features: List[str] = Field(default_factory=list)

    @field_validator("parking_type", mode="before")
    @classmethod
    def normalize_parking_type(cls, v):
        return parse_parking_type(v)

    @field_validator("outdoor_space", mode="before")
    @classmethod
    def normalize_outdoor_space(cls, v):
        if v is None or isinstance(v, OutdoorSpace):
            return v
        try:
            return OutdoorSpace(str(v).strip().lower())
        except ValueError:
            return None

    @field_validator("condition", mode="before")
    @classmethod
    def drop_out_of_range_condition(cls, v):
        if v is None:
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        return value if 1 <= value <= 5 else None

    @field_validator("is_end_unit", "has_ac", "is_rainscreened", mode="before")
    @classmethod
    def null_flag_is_false(cls, v):
        return False if v is None else v

    @field_validator("sqft", "year_built", "price", mode="before")
    @classmethod
    def null_is_zero(cls, v):
        # A missing price/sqft/year makes the record invalid for fitting, not unparseable
        return 0 if v is None else v

    @field_validator("city", mode="before")
    @classmethod
    def null_city_is_blank(cls, v):
        return "" if v is None else v

    @field_validator("features", mode="before")
    @classmethod
    def null_features_is_empty(cls, v):
        return [] if v is None else v

    @property
    def location(self) -> str:
        """Location label used for the one-hot dummies."""
        return location_label(self.city, self.sub_area)

    @property
    def is_valid_for_fit(self) -> bool:
        return (
            self.price > MIN_VALID_PRICE
            and self.sqft > MIN_VALID_SQFT
            and self.year_built > MIN_VALID_YEAR_BUILT
        )


class PredictionInput(BaseModel):
    """A single valuation query.

    Carries the same attributes as ListingRecord plus ``location_adjustment``:
    the log-space (or linear) premium of the chosen location relative to the
    model's reference location, resolved by the caller.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    sqft: float = Field(..., ge=0)
    year_built: int = Field(..., validation_alias=AliasChoices("year", "year_built", "yearBuilt"))
    bedrooms: Optional[float] = Field(default=None, ge=0)
    bathrooms: Optional[float] = Field(default=None, ge=0)
    condition: Optional[float] = Field(default=None, ge=1, le=5)

    strata_fee: Optional[float] = Field(
        default=None, ge=0, validation_alias=AliasChoices("fee", "strata_fee", "strataFee")
    )
    property_tax: Optional[float] = Field(default=None, ge=0, alias="propertyTax")
    assessment: Optional[float] = Field(default=None, ge=0)
    list_price: Optional[float] = Field(default=None, ge=0, alias="listPrice")

    parking_type: Optional[ParkingType] = Field(default=None, alias="parkingType")
    parking_spaces: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("parkingSpots", "parking_spaces", "parking")
    )

    is_end_unit: bool = Field(default=False, alias="isEndUnit")
    has_ac: bool = Field(default=False, alias="hasAC")
    is_rainscreened: bool = Field(default=False, alias="isRainscreened")

    location_adjustment: float = Field(
        default=0.0, validation_alias=AliasChoices("areaCoefVal", "location_adjustment")
    )

    @field_validator("parking_type", mode="before")
    @classmethod
    def normalize_parking_type(cls, v):
        return parse_parking_type(v)


def location_label(city: str, sub_area: Optional[str]) -> str:
    return f"{(city or '').strip()} - {(sub_area or '').strip() or 'Other'}"


# ==============================================================================
# MODEL ARTIFACT
# ==============================================================================


class MarketModel(BaseModel):
    """Immutable fitted hedonic model.

    Coefficients are flat named fields so the record serialises directly for
    a UI. For a log-linear model (the default) coefficients are in log-price
    units and ``std_error`` is the residual standard error of log price.
    """

    model_config = ConfigDict(frozen=True)

    schema_version: int = MODEL_SCHEMA_VERSION
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    sample_size: int = 0
    degrees_of_freedom: int = 0
    is_log_linear: bool = True
    includes_list_price: bool = False
    reference_year: Optional[int] = None

    intercept: float = 0.0
    coef_sqft: float = 0.0
    coef_age: float = 0.0
    coef_bath: float = 0.0
    coef_bedrooms: float = 0.0
    coef_condition: float = 0.0
    coef_rainscreen: float = 0.0
    coef_ac: float = 0.0
    coef_end_unit: float = 0.0
    coef_double_garage: float = 0.0
    coef_tandem_garage: float = 0.0
    coef_extra_parking: float = 0.0
    coef_assessment: float = 0.0
    coef_has_assessment: float = 0.0
    coef_tax: float = 0.0
    coef_has_tax: float = 0.0
    coef_fee_per_sqft: float = 0.0
    coef_list_price: float = 0.0
    coef_has_list_price: float = 0.0

    t_stats: Dict[str, float] = Field(default_factory=dict)
    std_errors: Dict[str, float] = Field(default_factory=dict)

    r_squared: float = 0.0
    std_error: float = 0.0

    reference_location: Optional[str] = None
    location_coefficients: Dict[str, float] = Field(default_factory=dict)
    location_t_stats: Dict[str, float] = Field(default_factory=dict)
    location_std_errors: Dict[str, float] = Field(default_factory=dict)

    @property
    def is_available(self) -> bool:
        """False for the empty model produced from zero valid listings."""
        return self.sample_size > 0

    @property
    def locations(self) -> List[str]:
        return sorted(self.location_coefficients)


# ==============================================================================
# OUTPUTS
# ==============================================================================


class PriceRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    lower_bound: float
    upper_bound: float


class PriceEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    price: float
    lower_bound: float
    upper_bound: float


class ImpactBreakdown(BaseModel):
    """Dollar impact of each factor group on the final price.

    Each impact is final_price minus the price with that group alone removed.
    Under a log-linear model removals are multiplicative, so the impacts do
    not add up to final_price - baseline_price; ``approximation_gap`` holds
    the difference.
    """

    model_config = ConfigDict(frozen=True)

    location: float = 0.0
    age: float = 0.0
    condition: float = 0.0
    bathrooms: float = 0.0
    bedrooms: float = 0.0
    parking: float = 0.0
    amenities: float = 0.0
    assessment: float = 0.0
    tax: float = 0.0
    fee: float = 0.0
    list_price: float = 0.0

    final_price: float = 0.0
    baseline_price: float = 0.0

    def impacts(self) -> Dict[str, float]:
        return {
            "location": self.location,
            "age": self.age,
            "condition": self.condition,
            "bathrooms": self.bathrooms,
            "bedrooms": self.bedrooms,
            "parking": self.parking,
            "amenities": self.amenities,
            "assessment": self.assessment,
            "tax": self.tax,
            "fee": self.fee,
            "list_price": self.list_price,
        }

    @property
    def total_impact(self) -> float:
        return sum(self.impacts().values())

    @property
    def approximation_gap(self) -> float:
        return (self.final_price - self.baseline_price) - self.total_impact
