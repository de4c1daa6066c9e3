"""
Error taxonomy for the valuation engine.

The set is deliberately closed:
- DimensionMismatchError: incompatible matrix shapes (programming error, fails loudly)
- DegenerateFitError: the solver produced an all-zero coefficient vector
- InsufficientDataError: fewer valid listings than design-matrix columns
- ModelNotAvailableError: no fitted model can be served

Missing attributes are never errors; they resolve to declared defaults.
"""

from typing import Any, Dict, Optional


class EstimatorError(Exception):
    """Base exception for the valuation engine."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class DimensionMismatchError(EstimatorError):
    """Matrix shapes are incompatible for the requested operation."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="DimensionMismatch", details=details)


class DegenerateFitError(EstimatorError):
    """The solver returned all-zero coefficients."""

    def __init__(self, message: str = "Solver returned an all-zero coefficient vector"):
        super().__init__(message, error_code="DegenerateFit")


class InsufficientDataError(EstimatorError):
    """Fewer observations than design-matrix columns."""

    def __init__(self, n_samples: int, n_columns: int, message: Optional[str] = None):
        super().__init__(
            message
            or f"{n_samples} valid listings for {n_columns} design columns; "
            "standard errors and t-statistics are reported as 0",
            error_code="InsufficientData",
            details={"n_samples": n_samples, "n_columns": n_columns},
        )


class ModelNotAvailableError(EstimatorError):
    """No fitted model is available to answer a query."""

    def __init__(self, message: str = "No fitted model is available"):
        super().__init__(message, error_code="ModelNotAvailable")
