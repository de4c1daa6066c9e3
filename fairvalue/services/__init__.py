"""
Services package for the FairValue API.

This package contains business logic services:
- model_service: Model loading/fitting, valuation queries and lifecycle
"""

from fairvalue.services.model_service import (
    ModelService,
    get_model_service,
    load_model,
    reset_model_service,
    save_model,
)

__all__ = [
    "ModelService",
    "get_model_service",
    "reset_model_service",
    "load_model",
    "save_model",
]
