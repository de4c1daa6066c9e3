"""
Holdout evaluation for the FairValue hedonic model.

Splits the valid listings into train and test parts (same seed every run),
fits a log-linear and a linear model on the train part, predicts the test
part in price space and compares the two.

Features:
- R2, MAE, RMSE, MAPE per model specification
- Residual summary
- Test listings whose location was unseen at fit time
- JSON report, optionally logged to MLflow

Usage:
    python -m fairvalue.evaluate
    python -m fairvalue.evaluate --listings-dir data/json --test-size 0.2
    python -m fairvalue.evaluate --output model/evaluation_report.json --mlflow
"""

import argparse
import json
import logging
import pathlib
import sys
from datetime import datetime
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score
from sklearn.model_selection import train_test_split

from fairvalue.config import get_settings
from fairvalue.data import load_listings
from fairvalue.engine.builder import build_market_model, filter_valid
from fairvalue.engine.encoding import feature_names
from fairvalue.engine.predictor import predict_price, prediction_input_from_listing
from fairvalue.engine.types import ListingRecord, MarketModel
from fairvalue.exceptions import InsufficientDataError

logger = logging.getLogger(__name__)

# ==============================================================================
# CONFIGURATION
# ==============================================================================

DEFAULT_OUTPUT = "model/evaluation_report.json"
RANDOM_STATE = 42
MIN_TEST_LISTINGS = 2

# ==============================================================================
# EVALUATION FUNCTIONS
# ==============================================================================


def calculate_metrics(y_true: np.ndarray, y_pred: np.ndarray) -> Dict:
    """Calculate evaluation metrics in price space.

    Args:
        y_true: Actual sale prices
        y_pred: Predicted prices

    Returns:
        Dictionary of metrics
    """
    r2 = r2_score(y_true, y_pred)
    mae = mean_absolute_error(y_true, y_pred)
    rmse = np.sqrt(mean_squared_error(y_true, y_pred))

    mask = y_true != 0
    mape = np.mean(np.abs((y_true[mask] - y_pred[mask]) / y_true[mask])) * 100

    return {
        "r2_score": round(float(r2), 4),
        "mae": round(float(mae), 2),
        "rmse": round(float(rmse), 2),
        "mape_percent": round(float(mape), 2),
    }


def analyze_residuals(y_true: np.ndarray, y_pred: np.ndarray) -> Dict:
    residuals = y_true - y_pred
    return {
        "mean_residual": round(float(np.mean(residuals)), 2),
        "std_residual": round(float(np.std(residuals)), 2),
        "median_residual": round(float(np.median(residuals)), 2),
        "min_residual": round(float(np.min(residuals)), 2),
        "max_residual": round(float(np.max(residuals)), 2),
    }


def split_listings(
    listings: Sequence[ListingRecord],
    test_size: float = 0.2,
    random_state: int = RANDOM_STATE,
    include_list_price: bool = False,
) -> tuple[List[ListingRecord], List[ListingRecord]]:
    """Split the valid listings into train and test parts.

    Raises:
        InsufficientDataError: If either part would be too small to use
    """
    valid = filter_valid(listings)
    n_columns = 1 + len(feature_names(include_list_price))
    n_test = int(np.ceil(len(valid) * test_size))
    if n_test < MIN_TEST_LISTINGS or len(valid) - n_test <= n_columns:
        raise InsufficientDataError(
            len(valid),
            n_columns,
            message=(
                f"{len(valid)} valid listings cannot be split for evaluation "
                f"(test_size={test_size}, at least {n_columns + 1} training listings "
                f"and {MIN_TEST_LISTINGS} test listings needed)"
            ),
        )
    train, test = train_test_split(valid, test_size=test_size, random_state=random_state)
    return list(train), list(test)


def predict_listings(model: MarketModel, listings: Sequence[ListingRecord]) -> np.ndarray:
    return np.array(
        [predict_price(model, prediction_input_from_listing(listing, model)) for listing in listings]
    )


def evaluate_specification(
    train: Sequence[ListingRecord],
    test: Sequence[ListingRecord],
    log_linear: bool,
    include_list_price: bool = False,
) -> Dict:
    """Fit one model specification on train and score it on test."""
    model = build_market_model(train, log_linear=log_linear, include_list_price=include_list_price)
    y_true = np.array([listing.price for listing in test], dtype=float)
    y_pred = predict_listings(model, test)

    unseen = sum(1 for listing in test if listing.location not in model.location_coefficients)

    return {
        "is_log_linear": log_linear,
        "fit_r_squared": round(model.r_squared, 4),
        "fit_std_error": round(model.std_error, 6),
        "metrics": calculate_metrics(y_true, y_pred),
        "residual_analysis": analyze_residuals(y_true, y_pred),
        "unseen_locations": unseen,
    }


# ==============================================================================
# MAIN EVALUATION
# ==============================================================================


def evaluate(
    listings_dir: str,
    test_size: float = 0.2,
    include_list_price: bool = False,
    output_path: str = None,
    use_mlflow: bool = False,
) -> Dict:
    """Run the holdout comparison of log-linear and linear models.

    Returns:
        Complete evaluation report dictionary
    """
    print("\n" + "=" * 60)
    print("MODEL EVALUATION")
    print("=" * 60)

    print(f"Loading listings from {listings_dir}...")
    listings = load_listings(listings_dir)
    train, test = split_listings(listings, test_size, RANDOM_STATE, include_list_price)
    print(f"Train: {len(train)} listings, Test: {len(test)} listings")

    results = {
        "log_linear": evaluate_specification(train, test, True, include_list_price),
        "linear": evaluate_specification(train, test, False, include_list_price),
    }

    comparison = pd.DataFrame(
        {name: result["metrics"] for name, result in results.items()}
    ).T
    best = comparison["mae"].idxmin()

    report = {
        "evaluation_timestamp": datetime.now().isoformat(),
        "listings_dir": listings_dir,
        "n_listings": len(listings),
        "train_samples": len(train),
        "test_samples": len(test),
        "test_size": test_size,
        "random_state": RANDOM_STATE,
        "includes_list_price": include_list_price,
        "models": results,
        "best_by_mae": best,
    }

    print("\n" + "-" * 60)
    print("PERFORMANCE METRICS (test set, price space)")
    print("-" * 60)
    print(comparison.to_string())
    print(f"\nBest by MAE: {best}")
    print("=" * 60)

    if output_path:
        output_file = pathlib.Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, "w") as f:
            json.dump(report, f, indent=2)
        print(f"\nEvaluation report saved to: {output_path}")

    if use_mlflow:
        import mlflow

        from mlflow_config import setup_mlflow

        setup_mlflow()
        with mlflow.start_run(run_name=f"evaluation-{datetime.now().strftime('%Y%m%d-%H%M%S')}"):
            mlflow.log_param("test_size", test_size)
            mlflow.log_param("includes_list_price", include_list_price)
            for name, result in results.items():
                mlflow.log_metrics({f"{name}_{k}": v for k, v in result["metrics"].items()})
            if output_path:
                mlflow.log_artifact(output_path)
        print("Metrics logged to MLflow")

    return report


# ==============================================================================
# CLI ENTRY POINT
# ==============================================================================


def parse_args(argv=None):
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Evaluate the FairValue hedonic model on a holdout split",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--listings-dir", "-d",
        type=str,
        default=settings.listings_dir,
        help="Directory of listing JSON files",
    )
    parser.add_argument(
        "--test-size", "-t",
        type=float,
        default=0.2,
        help="Test set fraction",
    )
    parser.add_argument(
        "--include-list-price",
        action="store_true",
        default=settings.include_list_price,
        help="Add ln(list price) and a has-list-price flag to the design",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=DEFAULT_OUTPUT,
        help="Output path for evaluation report JSON",
    )
    parser.add_argument("--mlflow", action="store_true", help="Log the evaluation to MLflow")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for evaluation."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        evaluate(
            listings_dir=args.listings_dir,
            test_size=args.test_size,
            include_list_price=args.include_list_price,
            output_path=args.output,
            use_mlflow=args.mlflow,
        )
    except (FileNotFoundError, InsufficientDataError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
