"""
FastAPI application entry point for the FairValue Strata Estimator API.

This module creates and configures the FastAPI application, including:
- CORS middleware
- Logging configuration
- Router mounting
- Startup/shutdown event handlers
- API metadata for documentation

Usage:
    Development:
        uvicorn fairvalue.main:app --reload --host 0.0.0.0 --port 8000

    Production:
        uvicorn fairvalue.main:app --host 0.0.0.0 --port 8000 --workers 4

API Documentation:
    - Swagger UI: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
    - OpenAPI JSON: http://localhost:8000/openapi.json
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fairvalue.api.prediction import router as prediction_router
from fairvalue.config import get_settings
from fairvalue.services.model_service import get_model_service, reset_model_service

# Get settings
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan manager for startup and shutdown events.

    On startup the model service loads the model artifact, or fits a model
    from the listings directory when no artifact exists. On shutdown the
    singleton is dropped.
    """
    logger.info("Starting FairValue Strata Estimator API...")

    try:
        model_service = get_model_service()
        model_status = model_service.get_status()
        logger.info(
            "Model loaded: source=%s, sample_size=%d, locations=%d",
            model_status["source"],
            model_status["sample_size"],
            model_status["location_count"],
        )
        if not model_status["is_loaded"]:
            logger.warning("Model was fitted on zero valid listings; /predict will return 503")

        logger.info("API startup complete. Ready to serve valuations.")

    except FileNotFoundError as e:
        logger.error("Failed to load required files: %s", str(e))
        logger.error("Fit a model (python -m fairvalue.train) or point FAIRVALUE_LISTINGS_DIR at listing JSON.")
        raise
    except Exception as e:
        logger.error("Unexpected error during startup: %s", str(e), exc_info=True)
        raise

    yield

    logger.info("Shutting down FairValue Strata Estimator API...")
    reset_model_service()
    logger.info("Cleanup complete.")


app = FastAPI(
    title=settings.app_name,
    description="""
## FairValue Strata Estimator API

Estimate the fair market value of strata townhouses and apartments with a
hedonic (log-linear OLS) regression fitted on recent sales.

### Endpoints

- **GET /health** - Check API health and model status
- **GET /model** - The fitted model record
- **GET /model/coefficients** - Coefficient significance report
- **POST /predict** - Estimate, 80% price range and factor impacts

### Notes

Impacts are counterfactual ("what would the price be without this
factor") and are only approximately additive for log-linear models.
    """,
    version=settings.app_version,
    openapi_tags=[
        {"name": "Health", "description": "API health and status endpoints"},
        {"name": "Model", "description": "Fitted model inspection"},
        {"name": "Prediction", "description": "Valuation endpoints"},
    ],
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prediction_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint - redirect to docs."""
    return {
        "message": "FairValue Strata Estimator API",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/api/v1/health",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fairvalue.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
