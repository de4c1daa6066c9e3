"""
Prediction API endpoints for FairValue.

Endpoints:
    GET  /health                - Health check
    GET  /model                 - The fitted model as a flat record
    GET  /model/coefficients    - Coefficient significance report
    POST /predict               - Estimate, 80% range and impact breakdown

A model fitted on zero valid listings is treated as "no model available":
the model endpoints still answer, /predict returns 503.
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status

from fairvalue.engine.types import MarketModel
from fairvalue.exceptions import ModelNotAvailableError
from fairvalue.models import (
    CoefficientReportResponse,
    CoefficientRow,
    ErrorResponse,
    HealthResponse,
    ImpactResponse,
    PredictionRequest,
    PredictionResponse,
)
from fairvalue.reporting import coefficient_table
from fairvalue.services.model_service import ModelService, get_model_service

logger = logging.getLogger(__name__)

router = APIRouter()


def generate_prediction_id() -> str:
    """Generate a unique prediction ID.

    Returns:
        String in format: pred-YYYYMMDD-HHMMSS-uuid8
    """
    now = datetime.utcnow()
    date_str = now.strftime("%Y%m%d-%H%M%S")
    short_uuid = uuid.uuid4().hex[:8]
    return f"pred-{date_str}-{short_uuid}"


def _model_unavailable(e: ModelNotAvailableError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"error": e.error_code, "message": e.message},
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check if the API is healthy and a usable model is loaded.",
    tags=["Health"],
)
async def health_check(
    model_service: ModelService = Depends(get_model_service),
) -> HealthResponse:
    model_status = model_service.get_status()

    return HealthResponse(
        status="healthy" if model_status["is_loaded"] else "unhealthy",
        model_loaded=model_status["is_loaded"],
        model_source=model_status["source"],
        sample_size=model_status["sample_size"],
        r_squared=model_status["r_squared"],
        timestamp=datetime.utcnow(),
    )


@router.get(
    "/model",
    response_model=MarketModel,
    summary="Fitted Model",
    description="The fitted model's coefficients, t-statistics, fit statistics and location map.",
    tags=["Model"],
)
async def get_model(
    model_service: ModelService = Depends(get_model_service),
) -> MarketModel:
    if model_service.model is None:
        raise _model_unavailable(ModelNotAvailableError())
    return model_service.model


@router.get(
    "/model/coefficients",
    response_model=CoefficientReportResponse,
    summary="Coefficient Report",
    description="Per-coefficient standard errors, t-statistics and p-values.",
    tags=["Model"],
)
async def get_coefficients(
    model_service: ModelService = Depends(get_model_service),
) -> CoefficientReportResponse:
    try:
        model = model_service.require_model()
    except ModelNotAvailableError as e:
        raise _model_unavailable(e)

    table = coefficient_table(model)
    return CoefficientReportResponse(
        sample_size=model.sample_size,
        r_squared=model.r_squared,
        std_error=model.std_error,
        reference_location=model.reference_location,
        coefficients=[
            CoefficientRow(
                term=row.term,
                kind=row.kind,
                coefficient=float(row.coefficient),
                std_error=float(row.std_error),
                t_stat=float(row.t_stat),
                p_value=float(row.p_value),
                significant=bool(row.significant),
            )
            for row in table.itertuples(index=False)
        ],
    )


@router.post(
    "/predict",
    response_model=PredictionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input"},
        422: {"model": ErrorResponse, "description": "Validation error"},
        503: {"model": ErrorResponse, "description": "No model available"},
        500: {"model": ErrorResponse, "description": "Server error"},
    },
    summary="Estimate Fair Value",
    description="""
    Estimate the fair market value of a strata unit.

    Returns the point estimate, an 80% price range, and the dollar impact of
    each factor group. Impacts are counterfactual ("price without this
    factor") and only approximately additive for log-linear models.
    """,
    tags=["Prediction"],
)
async def predict(
    request: PredictionRequest,
    model_service: ModelService = Depends(get_model_service),
) -> PredictionResponse:
    """Estimate a price with its range and impact breakdown.

    Raises:
        HTTPException: 503 when no model is available, 400 on bad input
    """
    prediction_id = generate_prediction_id()
    logger.info("Prediction request received. ID: %s, City: %s", prediction_id, request.city)

    try:
        if request.location_adjustment is not None:
            location_adjustment = request.location_adjustment
        elif request.city:
            location_adjustment = model_service.resolve_location(request.city, request.sub_area)
        else:
            location_adjustment = 0.0

        inputs = request.to_prediction_input(location_adjustment)
        price_estimate, breakdown = model_service.value(inputs)

        logger.info("Prediction completed. ID: %s, Price: $%.2f", prediction_id, price_estimate.price)

        return PredictionResponse(
            predicted_price=round(price_estimate.price, 2),
            lower_bound=round(price_estimate.lower_bound, 2),
            upper_bound=round(price_estimate.upper_bound, 2),
            prediction_id=prediction_id,
            location_adjustment=location_adjustment,
            reference_location=model_service.model.reference_location,
            is_log_linear=model_service.model.is_log_linear,
            impacts=ImpactResponse(
                **breakdown.impacts(),
                baseline_price=breakdown.baseline_price,
                approximation_gap=breakdown.approximation_gap,
            ),
            timestamp=datetime.utcnow(),
        )

    except ModelNotAvailableError as e:
        logger.warning("Prediction %s rejected: %s", prediction_id, e.message)
        raise _model_unavailable(e)
    except ValueError as e:
        logger.error("Validation error in prediction: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "ValidationError", "message": str(e)},
        )
    except Exception as e:
        logger.error("Unexpected error in prediction: %s", str(e), exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "PredictionError",
                "message": "An unexpected error occurred during prediction.",
            },
        )
