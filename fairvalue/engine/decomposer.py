"""
Counterfactual decomposition of a predicted price.

For each factor group the group's term is removed from the final price:

    log-linear: counterfactual = final / e^term
    linear:     counterfactual = final - term

and the group's impact is final - counterfactual.

Groups with a natural non-zero floor are measured against it: condition
against condition 1, bathrooms against one bathroom, bedrooms against two.

Under a log-linear model the removals interact multiplicatively, so the
impacts do not sum to final - baseline. The difference is reported as
ImpactBreakdown.approximation_gap rather than spread across the groups.

A linear prediction is floored at 0, and the counterfactuals are measured
from the floored price. For a floored prediction the impacts no longer
describe the unfloored linear predictor, and baseline_price is 0 minus the
sum of the terms.
"""

import math
from typing import Dict, Optional

from fairvalue.engine.encoding import encode_features
from fairvalue.engine.predictor import MAX_LOG_PRICE, predict_price
from fairvalue.engine.types import ImpactBreakdown, MarketModel, PredictionInput

# Baseline values that a group is measured against
GROUP_BASELINES = {
    "condition": 1.0,
    "bathrooms": 1.0,
    "bedrooms": 2.0,
}


def group_terms(
    model: MarketModel,
    inputs: PredictionInput,
    reference_year: Optional[int] = None,
) -> Dict[str, float]:
    """Each factor group's contribution to the linear predictor."""
    year = reference_year if reference_year is not None else model.reference_year
    f = encode_features(inputs, year, model.includes_list_price)

    terms = {
        "location": inputs.location_adjustment,
        "age": f["age"] * model.coef_age,
        "condition": (f["condition"] - GROUP_BASELINES["condition"]) * model.coef_condition,
        "bathrooms": (f["bathrooms"] - GROUP_BASELINES["bathrooms"]) * model.coef_bath,
        "bedrooms": (f["bedrooms"] - GROUP_BASELINES["bedrooms"]) * model.coef_bedrooms,
        "parking": (
            f["double_garage"] * model.coef_double_garage
            + f["tandem_garage"] * model.coef_tandem_garage
            + f["extra_parking"] * model.coef_extra_parking
        ),
        "amenities": (
            f["end_unit"] * model.coef_end_unit
            + f["ac"] * model.coef_ac
            + f["rainscreen"] * model.coef_rainscreen
        ),
        "assessment": (
            f["log_assessment"] * model.coef_assessment
            + f["has_assessment"] * model.coef_has_assessment
        ),
        "tax": f["tax_per_sqft"] * model.coef_tax + f["has_tax"] * model.coef_has_tax,
        "fee": f["fee_per_sqft"] * model.coef_fee_per_sqft,
        "list_price": 0.0,
    }
    if model.includes_list_price:
        terms["list_price"] = (
            f["log_list_price"] * model.coef_list_price
            + f["has_list_price"] * model.coef_has_list_price
        )
    return terms


def _remove(final_price: float, term: float, is_log_linear: bool) -> float:
    if is_log_linear:
        return final_price / math.exp(max(-MAX_LOG_PRICE, min(term, MAX_LOG_PRICE)))
    return final_price - term


def decompose(
    model: MarketModel,
    inputs: PredictionInput,
    reference_year: Optional[int] = None,
) -> ImpactBreakdown:
    """Dollar impact of every factor group on the predicted price."""
    final_price = predict_price(model, inputs, reference_year)
    terms = group_terms(model, inputs, reference_year)

    impacts = {
        group: final_price - _remove(final_price, term, model.is_log_linear)
        for group, term in terms.items()
    }
    baseline_price = _remove(final_price, sum(terms.values()), model.is_log_linear)

    return ImpactBreakdown(final_price=final_price, baseline_price=baseline_price, **impacts)
