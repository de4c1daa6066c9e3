"""
Hedonic model builder.

Turns a batch of ListingRecords into an immutable MarketModel:

1. Keep listings valid for fitting (price > 100k, sqft > 300, built after 1900)
2. Pick the reference location: the most frequent "{city} - {sub_area}" label,
   ties broken by the lexicographically smallest label
3. Target y = ln(price) (log-linear, default) or price (linear fallback)
4. Encode X with fairvalue.engine.encoding, one dummy per non-reference location
5. Solve OLS
6. R^2 and residual standard error
7. Map coefficients and t-stats back to named fields and the location map

Each call returns a brand-new model. Nothing is cached between calls.
"""

import logging
import math
from collections import Counter
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from fairvalue.engine.encoding import COEFFICIENT_FIELDS, design_row, feature_names
from fairvalue.engine.ols import OLSResult, residual_sum_of_squares, solve_ols
from fairvalue.engine.types import ListingRecord, MarketModel
from fairvalue.exceptions import DegenerateFitError, InsufficientDataError

logger = logging.getLogger(__name__)


def filter_valid(listings: Iterable[ListingRecord]) -> List[ListingRecord]:
    return [listing for listing in listings if listing.is_valid_for_fit]


def choose_reference_location(listings: Sequence[ListingRecord]) -> Tuple[Optional[str], List[str]]:
    """Pick the reference location and order the remaining ones.

    Returns:
        (reference label or None when there are no listings,
         sorted list of non-reference labels)
    """
    counts = Counter(listing.location for listing in listings)
    if not counts:
        return None, []

    reference = min(counts, key=lambda label: (-counts[label], label))
    others = sorted(label for label in counts if label != reference)
    return reference, others


def build_design(
    listings: Sequence[ListingRecord],
    locations: Sequence[str],
    reference_year: int,
    log_linear: bool = True,
    include_list_price: bool = False,
) -> Tuple[List[List[float]], List[float]]:
    """Encode listings into a design matrix X and target vector y."""
    X = [
        design_row(listing, listing.location, locations, reference_year, include_list_price)
        for listing in listings
    ]
    y = [math.log(listing.price) if log_linear else float(listing.price) for listing in listings]
    return X, y


def _require_solution(result: OLSResult) -> None:
    if result.is_degenerate:
        raise DegenerateFitError()


def _empty_model(log_linear: bool, include_list_price: bool, reference_year: int) -> MarketModel:
    return MarketModel(
        sample_size=0,
        is_log_linear=log_linear,
        includes_list_price=include_list_price,
        reference_year=reference_year,
    )


def build_market_model(
    listings: Iterable[ListingRecord],
    log_linear: bool = True,
    include_list_price: bool = False,
    reference_year: Optional[int] = None,
) -> MarketModel:
    """Fit the hedonic model on a batch of listings.

    Args:
        listings: Observed listings; invalid ones are skipped
        log_linear: Regress ln(price) (True) or raw price (False)
        include_list_price: Add ln(list price) and a has-list-price flag
        reference_year: Year that age is measured from (defaults to today)

    Returns:
        A new MarketModel. With no valid listings the model has sample_size 0
        and all coefficients 0.
    """
    year = reference_year if reference_year is not None else date.today().year
    listings = list(listings)
    valid = filter_valid(listings)
    logger.info("Building model from %d listings (%d valid)", len(listings), len(valid))

    if not valid:
        logger.warning("No valid listings; returning an empty model")
        return _empty_model(log_linear, include_list_price, year)

    reference, locations = choose_reference_location(valid)
    logger.info("Reference location: %s (%d other locations)", reference, len(locations))

    names = feature_names(include_list_price)
    X, y = build_design(valid, locations, year, log_linear, include_list_price)
    n, p = len(X), len(X[0])

    if n <= p:
        logger.warning("%s", InsufficientDataError(n, p).message)

    result = solve_ols(X, y)
    mean_y = sum(y) / n

    try:
        _require_solution(result)
    except DegenerateFitError as e:
        logger.warning("%s; falling back to the sample mean as intercept", e.message)
        result = OLSResult([mean_y] + [0.0] * (p - 1), [0.0] * p, [0.0] * p)

    rss = residual_sum_of_squares(X, y, result.betas)
    tss = sum((value - mean_y) ** 2 for value in y)
    r_squared = 1.0 - rss / tss if tss > 0 else 0.0
    std_error = math.sqrt(rss / (n - p)) if n > p else 0.0

    betas = result.betas
    n_features = len(names)
    coefficients = {COEFFICIENT_FIELDS[name]: betas[1 + i] for i, name in enumerate(names)}
    t_stats = {"intercept": result.t_stats[0]}
    std_errors = {"intercept": result.std_errors[0]}
    for i, name in enumerate(names):
        t_stats[name] = result.t_stats[1 + i]
        std_errors[name] = result.std_errors[1 + i]

    offset = 1 + n_features
    location_coefficients = {reference: 0.0}
    location_t_stats = {reference: 0.0}
    location_std_errors = {reference: 0.0}
    for i, label in enumerate(locations):
        location_coefficients[label] = betas[offset + i]
        location_t_stats[label] = result.t_stats[offset + i]
        location_std_errors[label] = result.std_errors[offset + i]

    model = MarketModel(
        sample_size=n,
        degrees_of_freedom=max(0, n - p),
        is_log_linear=log_linear,
        includes_list_price=include_list_price,
        reference_year=year,
        intercept=betas[0],
        t_stats=t_stats,
        std_errors=std_errors,
        r_squared=r_squared,
        std_error=std_error,
        reference_location=reference,
        location_coefficients=location_coefficients,
        location_t_stats=location_t_stats,
        location_std_errors=location_std_errors,
        **coefficients,
    )

    logger.info(
        "Model fitted: n=%d, p=%d, R2=%.4f, std_error=%.4f",
        n,
        p,
        r_squared,
        std_error,
    )
    return model
