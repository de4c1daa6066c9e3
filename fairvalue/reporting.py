"""
Coefficient significance report.

Flattens a MarketModel into one row per coefficient (named features first,
then locations) with its standard error, t-statistic and two-sided p-value
from Student's t with the model's residual degrees of freedom. This is the
table a UI renders to show which factors matter.
"""

from typing import Dict, List

import pandas as pd
from scipy import stats

from fairvalue.engine.encoding import COEFFICIENT_FIELDS, feature_names
from fairvalue.engine.types import MarketModel

SIGNIFICANCE_LEVEL = 0.05


def p_value(t_stat: float, degrees_of_freedom: int) -> float:
    """Two-sided p-value; 1.0 when there is no residual variance to test against."""
    if degrees_of_freedom <= 0 or t_stat == 0.0:
        return 1.0
    return float(2 * stats.t.sf(abs(t_stat), degrees_of_freedom))


def coefficient_table(model: MarketModel) -> pd.DataFrame:
    """One row per coefficient with its significance.

    Columns: term, kind ("feature" or "location"), coefficient, std_error,
    t_stat, p_value, significant. The reference location appears with a
    fixed coefficient of 0.
    """
    dof = model.degrees_of_freedom
    rows: List[Dict] = [
        {
            "term": "intercept",
            "kind": "intercept",
            "coefficient": model.intercept,
            "std_error": model.std_errors.get("intercept", 0.0),
            "t_stat": model.t_stats.get("intercept", 0.0),
        }
    ]

    for name in feature_names(model.includes_list_price):
        rows.append(
            {
                "term": name,
                "kind": "feature",
                "coefficient": getattr(model, COEFFICIENT_FIELDS[name]),
                "std_error": model.std_errors.get(name, 0.0),
                "t_stat": model.t_stats.get(name, 0.0),
            }
        )

    for label in model.locations:
        rows.append(
            {
                "term": label,
                "kind": "location",
                "coefficient": model.location_coefficients[label],
                "std_error": model.location_std_errors.get(label, 0.0),
                "t_stat": model.location_t_stats.get(label, 0.0),
            }
        )

    table = pd.DataFrame(rows)
    table["p_value"] = [p_value(t, dof) for t in table["t_stat"]]
    table["significant"] = table["p_value"] < SIGNIFICANCE_LEVEL
    return table
