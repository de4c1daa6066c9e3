"""
Ordinary least squares via the normal equations.

    beta = (X'X + lambda*I)^-1 X'y

A fixed ridge term lambda = 1e-4 is added to every diagonal entry of X'X for
numerical stability only; on well-conditioned data it does not move the
coefficients materially.

Besides the coefficients, the solver reports per-coefficient standard errors
and t-statistics:
    sigma^2    = RSS / (n - p)          (0 when n <= p)
    var(b_j)   = sigma^2 * (X'X + lambda*I)^-1 [j, j]
    se_j       = sqrt(max(0, var(b_j)))
    t_j        = b_j / se_j             (0 when se_j < 1e-10)

Failure policy: a structurally invalid design (ragged rows, y of the wrong
length) raises DimensionMismatchError. Any other failure, including malformed
cells (None or non-numeric values) and numerical breakdown, is logged and an
all-zero result of the right shape is returned; callers check
OLSResult.is_degenerate.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence

from fairvalue.engine.linalg import Matrix
from fairvalue.exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)

RIDGE_LAMBDA = 1e-4
MIN_STD_ERROR = 1e-10


@dataclass(frozen=True)
class OLSResult:
    """Fitted coefficients with their standard errors and t-statistics."""

    betas: List[float]
    std_errors: List[float]
    t_stats: List[float]

    @classmethod
    def zeros(cls, n_columns: int) -> "OLSResult":
        return cls([0.0] * n_columns, [0.0] * n_columns, [0.0] * n_columns)

    @property
    def is_degenerate(self) -> bool:
        """True when every coefficient is zero (solver failure)."""
        return all(b == 0.0 for b in self.betas)


def residual_sum_of_squares(
    X: Sequence[Sequence[float]], y: Sequence[float], betas: Sequence[float]
) -> float:
    """Sum of squared residuals of y against X * betas."""
    rss = 0.0
    for row, target in zip(X, y):
        fitted = sum(x * b for x, b in zip(row, betas))
        rss += (target - fitted) ** 2
    return rss


def _check_shapes(X: Sequence[Sequence[float]], y: Sequence[float]) -> int:
    n_columns = len(X[0]) if len(X) else 0
    for i, row in enumerate(X):
        if len(row) != n_columns:
            raise DimensionMismatchError(
                f"Design matrix row {i} has {len(row)} columns, expected {n_columns}",
                details={"row": i, "length": len(row), "expected": n_columns},
            )
    if len(y) != len(X):
        raise DimensionMismatchError(
            f"Target has {len(y)} values for {len(X)} design rows",
            details={"n_targets": len(y), "n_rows": len(X)},
        )
    return n_columns


def solve_ols(X: Sequence[Sequence[float]], y: Sequence[float]) -> OLSResult:
    """Fit y = X * beta by least squares.

    Args:
        X: Design matrix, n rows x p columns (column 0 conventionally all 1s)
        y: Target vector with n values

    Returns:
        OLSResult with p betas, standard errors and t-statistics. All zeros
        if the fit fails numerically.

    Raises:
        DimensionMismatchError: If X is ragged or y does not match X's rows
    """
    p = _check_shapes(X, y)
    n = len(X)
    if n == 0 or p == 0:
        return OLSResult.zeros(p)

    try:
        design = Matrix(X)
        target = Matrix.column(y)
        design_t = design.transpose()

        xtx = design_t.multiply(design)
        for i in range(xtx.rows):
            xtx.data[i][i] += RIDGE_LAMBDA

        xtx_inv = xtx.inverse()
        betas = [row[0] for row in xtx_inv.multiply(design_t).multiply(target).data]

        if not all(math.isfinite(b) for b in betas):
            logger.warning("OLS produced non-finite coefficients; returning zero fit")
            return OLSResult.zeros(p)

        rss = residual_sum_of_squares(X, y, betas)
        sigma2 = rss / (n - p) if n > p else 0.0

        std_errors = []
        t_stats = []
        for j in range(p):
            variance = sigma2 * xtx_inv.data[j][j]
            se = math.sqrt(max(0.0, variance)) if math.isfinite(variance) else 0.0
            std_errors.append(se)
            t_stats.append(betas[j] / se if se > MIN_STD_ERROR else 0.0)

        return OLSResult(betas, std_errors, t_stats)

    except (ArithmeticError, TypeError, ValueError) as e:
        logger.error("OLS solver error: %s", e, exc_info=True)
        return OLSResult.zeros(p)
