"""
Training script for the FairValue hedonic model.

Loads every listing JSON under the listings directory, fits the hedonic
regression and writes:
- the model as a flat JSON record (model/market_model.json)
- fit metrics (model/metrics.json)

Optionally logs the run to MLflow (parameters, fit metrics, both files).

Usage:
    python -m fairvalue.train
    python -m fairvalue.train --listings-dir data/json --output model/market_model.json
    python -m fairvalue.train --linear --include-list-price --mlflow
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fairvalue.config import get_settings
from fairvalue.data import load_listings
from fairvalue.engine.builder import build_market_model
from fairvalue.engine.types import MarketModel
from fairvalue.reporting import coefficient_table
from fairvalue.services.model_service import save_model

logger = logging.getLogger(__name__)


def fit_metrics(model: MarketModel, n_listings: int) -> Dict[str, Any]:
    """Summary of a fit for metrics.json and MLflow."""
    table = coefficient_table(model)
    features = table[table["kind"] == "feature"]
    return {
        "generated_at": model.generated_at.isoformat(),
        "n_listings": n_listings,
        "sample_size": model.sample_size,
        "degrees_of_freedom": model.degrees_of_freedom,
        "is_log_linear": model.is_log_linear,
        "includes_list_price": model.includes_list_price,
        "r_squared": round(model.r_squared, 4),
        "std_error": round(model.std_error, 6),
        "reference_location": model.reference_location,
        "n_locations": len(model.location_coefficients),
        "significant_features": features.loc[features["significant"], "term"].tolist(),
    }


def log_to_mlflow(
    model: MarketModel,
    metrics: Dict[str, Any],
    model_path: Path,
    metrics_path: Path,
    run_name: Optional[str] = None,
) -> str:
    """Log a fit to MLflow and return the run ID."""
    import mlflow

    from mlflow_config import setup_mlflow

    setup_mlflow()

    if run_name is None:
        run_name = f"fit_{datetime.now().strftime('%Y%m%d_%H%M%S')}"

    with mlflow.start_run(run_name=run_name) as run:
        mlflow.log_param("is_log_linear", model.is_log_linear)
        mlflow.log_param("includes_list_price", model.includes_list_price)
        mlflow.log_param("reference_year", model.reference_year)
        mlflow.log_param("reference_location", model.reference_location)
        mlflow.log_param("n_listings", metrics["n_listings"])

        mlflow.log_metrics(
            {
                "sample_size": model.sample_size,
                "r_squared": model.r_squared,
                "std_error": model.std_error,
                "n_locations": metrics["n_locations"],
            }
        )

        mlflow.set_tag("model_type", "hedonic-ols")

        mlflow.log_artifact(str(model_path))
        mlflow.log_artifact(str(metrics_path))

        return run.info.run_id


def train(
    listings_dir: str,
    output_path: str,
    metrics_path: str,
    log_linear: bool = True,
    include_list_price: bool = False,
    use_mlflow: bool = False,
    run_name: Optional[str] = None,
) -> MarketModel:
    """Fit the model from a listings directory and write the artifacts.

    Raises:
        FileNotFoundError: If the listings directory does not exist
    """
    print("\n" + "=" * 60)
    print("FAIRVALUE MODEL FIT")
    print("=" * 60)

    print(f"Loading listings from {listings_dir}...")
    listings = load_listings(listings_dir)
    print(f"Loaded {len(listings)} listings")

    print(f"Fitting {'log-linear' if log_linear else 'linear'} model...")
    model = build_market_model(
        listings,
        log_linear=log_linear,
        include_list_price=include_list_price,
    )

    model_file = save_model(model, output_path)
    metrics = fit_metrics(model, len(listings))

    metrics_file = Path(metrics_path)
    metrics_file.parent.mkdir(parents=True, exist_ok=True)
    with open(metrics_file, "w", encoding="utf-8") as f:
        json.dump(metrics, f, indent=2)

    print("\n" + "-" * 60)
    print("FIT SUMMARY")
    print("-" * 60)
    print(f"Valid listings:     {model.sample_size} of {len(listings)}")
    print(f"R2:                 {model.r_squared:.4f}")
    print(f"Residual std error: {model.std_error:.4f}")
    print(f"Reference location: {model.reference_location}")
    print(f"Locations:          {len(model.location_coefficients)}")
    print(f"Significant:        {', '.join(metrics['significant_features']) or '-'}")
    print("-" * 60)
    print(f"Model saved to:   {model_file}")
    print(f"Metrics saved to: {metrics_file}")

    if not model.is_available:
        print("WARNING: no valid listings; the model has sample size 0 and cannot serve predictions")

    if use_mlflow:
        run_id = log_to_mlflow(model, metrics, model_file, metrics_file, run_name)
        print(f"MLflow Run ID: {run_id}")

    print("=" * 60)
    return model


def parse_args(argv=None):
    """Parse command line arguments."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Fit the FairValue hedonic model from listing JSON files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--listings-dir", "-d",
        type=str,
        default=settings.listings_dir,
        help="Directory of listing JSON files",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=settings.model_path,
        help="Output path for the model JSON",
    )
    parser.add_argument(
        "--metrics-output",
        type=str,
        default=settings.metrics_path,
        help="Output path for the fit metrics JSON",
    )
    parser.add_argument(
        "--linear",
        action="store_true",
        default=not settings.log_linear,
        help="Regress raw price instead of ln(price)",
    )
    parser.add_argument(
        "--include-list-price",
        action="store_true",
        default=settings.include_list_price,
        help="Add ln(list price) and a has-list-price flag to the design",
    )
    parser.add_argument("--mlflow", action="store_true", help="Log the fit to MLflow")
    parser.add_argument("--run-name", type=str, default=None, help="MLflow run name")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    try:
        train(
            listings_dir=args.listings_dir,
            output_path=args.output,
            metrics_path=args.metrics_output,
            log_linear=not args.linear,
            include_list_price=args.include_list_price,
            use_mlflow=args.mlflow,
            run_name=args.run_name,
        )
    except FileNotFoundError as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
