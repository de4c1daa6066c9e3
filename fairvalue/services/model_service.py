"""
Model service for loading, fitting and querying the market model.

This service handles:
- Loading the fitted model from its JSON artifact
- Fitting a fresh model from the listings directory when no artifact exists
- Answering valuation queries (estimate + impact breakdown)
- Managing model lifecycle (reload replaces the model, never mutates it)
"""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from fairvalue.config import Settings, get_settings
from fairvalue.data import load_listings
from fairvalue.engine.builder import build_market_model
from fairvalue.engine.decomposer import decompose
from fairvalue.engine.predictor import estimate, location_adjustment_for
from fairvalue.engine.types import ImpactBreakdown, MarketModel, PredictionInput, PriceEstimate
from fairvalue.exceptions import ModelNotAvailableError

logger = logging.getLogger(__name__)


def save_model(model: MarketModel, path: Union[str, Path]) -> Path:
    """Write the model as a flat JSON record."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(model.model_dump_json(indent=2))
    return output_path


def load_model(path: Union[str, Path]) -> MarketModel:
    """Read a model written by save_model.

    Raises:
        FileNotFoundError: If the artifact does not exist
    """
    model_path = Path(path)
    if not model_path.exists():
        raise FileNotFoundError(
            f"Model file not found: {model_path}. "
            "Run 'python -m fairvalue.train' to fit the model first."
        )
    with open(model_path, encoding="utf-8") as f:
        return MarketModel.model_validate(json.load(f))


class ModelService:
    """Service holding the current market model.

    Attributes:
        model: The current MarketModel (None until loaded)
        source: Where the model came from ("artifact" or "listings")
        is_loaded: Whether a model with at least one observation is loaded
    """

    def __init__(self, settings: Settings, model: Optional[MarketModel] = None):
        """Initialize the model service.

        Args:
            settings: Application settings
            model: Use this model instead of loading one
        """
        self.settings = settings
        self.model: Optional[MarketModel] = model
        self.source: str = "provided" if model is not None else "unknown"
        if model is None:
            self._load_model()

    @property
    def is_loaded(self) -> bool:
        return self.model is not None and self.model.is_available

    def _load_model(self) -> None:
        """Load the artifact, or fit from listings when allowed.

        Raises:
            FileNotFoundError: If neither an artifact nor listings are available
        """
        model_path = Path(self.settings.model_path)
        if model_path.exists():
            logger.info("Loading model from: %s", model_path)
            self.model = load_model(model_path)
            self.source = "artifact"
        elif self.settings.fit_on_startup:
            logger.info(
                "No model artifact at %s; fitting from %s",
                model_path,
                self.settings.listings_dir,
            )
            listings = load_listings(self.settings.listings_dir)
            self.model = build_market_model(
                listings,
                log_linear=self.settings.log_linear,
                include_list_price=self.settings.include_list_price,
            )
            self.source = "listings"
        else:
            raise FileNotFoundError(
                f"Model file not found: {model_path}. "
                "Run 'python -m fairvalue.train' to fit the model first."
            )

        logger.info(
            "Model ready. Source: %s, Sample size: %d, R2: %.4f",
            self.source,
            self.model.sample_size,
            self.model.r_squared,
        )

    def require_model(self) -> MarketModel:
        """Current model, or ModelNotAvailableError when it was fitted on nothing."""
        if not self.is_loaded:
            raise ModelNotAvailableError(
                "No market model is available: it was fitted on zero valid listings"
            )
        return self.model

    def resolve_location(self, city: str, sub_area: Optional[str] = None) -> float:
        return location_adjustment_for(self.require_model(), city, sub_area)

    def value(self, inputs: PredictionInput) -> Tuple[PriceEstimate, ImpactBreakdown]:
        """Price estimate and impact breakdown for one query.

        Raises:
            ModelNotAvailableError: If no usable model is loaded
        """
        model = self.require_model()
        price_estimate = estimate(model, inputs, z=self.settings.z_score)
        breakdown = decompose(model, inputs)
        return price_estimate, breakdown

    def replace(self, model: MarketModel) -> None:
        """Swap in a newly fitted model."""
        self.model = model
        self.source = "provided"

    def reload(self) -> None:
        """Reload the model (e.g. after a new artifact is written)."""
        logger.info("Reloading model...")
        self.model = None
        self._load_model()
        logger.info("Model reloaded successfully.")

    def get_status(self) -> dict:
        """Get the current status of the model service."""
        model = self.model
        return {
            "is_loaded": self.is_loaded,
            "source": self.source,
            "sample_size": model.sample_size if model else 0,
            "r_squared": model.r_squared if model else 0.0,
            "is_log_linear": model.is_log_linear if model else True,
            "reference_location": model.reference_location if model else None,
            "location_count": len(model.location_coefficients) if model else 0,
            "generated_at": model.generated_at if model else None,
        }


# Singleton instance
_model_service: Optional[ModelService] = None


def get_model_service() -> ModelService:
    """Get the singleton ModelService instance."""
    global _model_service
    if _model_service is None:
        settings = get_settings()
        _model_service = ModelService(settings)
    return _model_service


def reset_model_service() -> None:
    """Reset the model service singleton.

    Useful for testing or forcing a model reload.
    """
    global _model_service
    _model_service = None
