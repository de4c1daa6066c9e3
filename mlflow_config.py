"""
MLflow Configuration for FairValue

Centralizes experiment tracking settings so the training and evaluation
CLIs log to the same place.

- TRACKING URI: where runs are stored (local SQLite by default)
- EXPERIMENT: the group all hedonic fits are logged under
- ARTIFACT: files attached to a run (model JSON, metrics, reports)

Override the tracking URI with the MLFLOW_TRACKING_URI environment variable
to log to a remote server.
"""

import os
from pathlib import Path

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent

MLFLOW_DIR = PROJECT_ROOT / "mlflow"

# =============================================================================
# MLFLOW SETTINGS
# =============================================================================

MLFLOW_TRACKING_URI = os.environ.get(
    "MLFLOW_TRACKING_URI", f"sqlite:///{MLFLOW_DIR / 'mlflow.db'}"
)

MLFLOW_ARTIFACT_LOCATION = (MLFLOW_DIR / "artifacts").as_uri()

MLFLOW_EXPERIMENT_NAME = "fairvalue-hedonic"

# Registered name for the model JSON artifact
MLFLOW_MODEL_NAME = "fairvalue-market-model"


def setup_mlflow():
    """
    Configure MLflow for this project.

    Call this at the start of any script that uses MLflow.

    Returns:
        experiment_id: The ID of the configured experiment
    """
    import mlflow

    MLFLOW_DIR.mkdir(exist_ok=True)
    mlflow.set_tracking_uri(MLFLOW_TRACKING_URI)

    experiment = mlflow.get_experiment_by_name(MLFLOW_EXPERIMENT_NAME)

    if experiment is None:
        experiment_id = mlflow.create_experiment(
            MLFLOW_EXPERIMENT_NAME, artifact_location=MLFLOW_ARTIFACT_LOCATION
        )
        print(f"Created new experiment: {MLFLOW_EXPERIMENT_NAME} (id: {experiment_id})")
    else:
        experiment_id = experiment.experiment_id
        print(f"Using existing experiment: {MLFLOW_EXPERIMENT_NAME} (id: {experiment_id})")

    mlflow.set_experiment(MLFLOW_EXPERIMENT_NAME)

    return experiment_id


if __name__ == "__main__":
    print("=" * 60)
    print(" MLflow Configuration for FairValue")
    print("=" * 60)
    print(f"\nTracking URI: {MLFLOW_TRACKING_URI}")
    print(f"Artifact Location: {MLFLOW_ARTIFACT_LOCATION}")
    print(f"Experiment Name: {MLFLOW_EXPERIMENT_NAME}")
    print(f"Model Name: {MLFLOW_MODEL_NAME}")

    setup_mlflow()
