"""
Training, Evaluation and Model Service Tests

These run the CLIs end to end against synthetic listings written to a
temporary directory.
"""

import json

import pytest

import fairvalue.services.model_service as model_service_module
from conftest import make_listings
from fairvalue import evaluate, train
from fairvalue.exceptions import InsufficientDataError, ModelNotAvailableError
from fairvalue.engine.types import MarketModel, PredictionInput
from fairvalue.services.model_service import (
    ModelService,
    get_model_service,
    load_model,
    reset_model_service,
    save_model,
)

# =============================================================================
# FIXTURES
# =============================================================================


def write_listings(directory, listings):
    directory.mkdir(parents=True, exist_ok=True)
    for i, listing in enumerate(listings):
        (directory / f"listing_{i:04d}.json").write_text(json.dumps(listing.model_dump(mode="json")))


@pytest.fixture
def listings_dir(tmp_path):
    directory = tmp_path / "listings"
    write_listings(directory, make_listings(n=200))
    return directory


@pytest.fixture
def isolated_mlflow(tmp_path, monkeypatch):
    import mlflow_config

    monkeypatch.setattr(mlflow_config, "MLFLOW_DIR", tmp_path / "mlflow")
    monkeypatch.setattr(mlflow_config, "MLFLOW_TRACKING_URI", f"sqlite:///{tmp_path / 'mlflow' / 'mlflow.db'}")
    monkeypatch.setattr(mlflow_config, "MLFLOW_ARTIFACT_LOCATION", (tmp_path / "mlflow" / "artifacts").as_uri())
    return mlflow_config


# =============================================================================
# TRAINING CLI
# =============================================================================


class TestTrain:
    def test_writes_model_and_metrics(self, listings_dir, tmp_path):
        output = tmp_path / "model" / "market_model.json"
        metrics = tmp_path / "model" / "metrics.json"

        exit_code = train.main(
            ["--listings-dir", str(listings_dir), "--output", str(output), "--metrics-output", str(metrics)]
        )

        assert exit_code == 0
        model = load_model(output)
        assert model.sample_size == 200
        assert model.is_log_linear
        report = json.loads(metrics.read_text())
        assert report["sample_size"] == 200
        assert report["reference_location"] == "Burnaby - Edmonds"
        assert "sqft" in report["significant_features"]

    def test_linear_flag(self, listings_dir, tmp_path):
        output = tmp_path / "linear.json"
        train.main(
            [
                "--listings-dir", str(listings_dir),
                "--output", str(output),
                "--metrics-output", str(tmp_path / "m.json"),
                "--linear",
            ]
        )
        assert not load_model(output).is_log_linear

    def test_missing_listings_dir(self, tmp_path):
        assert train.main(["--listings-dir", str(tmp_path / "nope"), "--output", str(tmp_path / "m.json")]) == 1

    @pytest.mark.slow
    def test_mlflow_logging(self, listings_dir, tmp_path, isolated_mlflow):
        import mlflow

        output = tmp_path / "model.json"
        train.train(
            str(listings_dir),
            str(output),
            str(tmp_path / "metrics.json"),
            use_mlflow=True,
            run_name="test-fit",
        )
        runs = mlflow.search_runs(experiment_names=[isolated_mlflow.MLFLOW_EXPERIMENT_NAME])
        assert len(runs) == 1
        assert runs.iloc[0]["params.is_log_linear"] == "True"


# =============================================================================
# EVALUATION CLI
# =============================================================================


class TestEvaluate:
    def test_holdout_report(self, listings_dir, tmp_path):
        output = tmp_path / "evaluation.json"
        report = evaluate.evaluate(str(listings_dir), test_size=0.25, output_path=str(output))

        assert report["train_samples"] == 150
        assert report["test_samples"] == 50
        assert report["models"]["log_linear"]["metrics"]["r2_score"] > 0.9
        assert report["models"]["log_linear"]["metrics"]["mape_percent"] < 5
        assert report["best_by_mae"] in ("log_linear", "linear")
        assert json.loads(output.read_text())["test_samples"] == 50

    def test_split_is_reproducible(self):
        listings = make_listings(n=100)
        first = evaluate.split_listings(listings)
        second = evaluate.split_listings(listings)
        assert [l.price for l in first[1]] == [l.price for l in second[1]]

    def test_too_few_listings(self):
        with pytest.raises(InsufficientDataError):
            evaluate.split_listings(make_listings(n=10))

    def test_cli_reports_insufficient_data(self, tmp_path):
        directory = tmp_path / "few"
        write_listings(directory, make_listings(n=5))
        assert evaluate.main(["--listings-dir", str(directory), "--output", str(tmp_path / "r.json")]) == 1


# =============================================================================
# MODEL SERVICE
# =============================================================================


class TestModelService:
    def test_save_and_load(self, mock_model, tmp_path):
        path = save_model(mock_model, tmp_path / "nested" / "model.json")
        assert load_model(path) == mock_model

    def test_load_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_model(tmp_path / "missing.json")

    def test_loads_artifact(self, settings, mock_model):
        save_model(mock_model, settings.model_path)
        service = ModelService(settings)
        assert service.source == "artifact"
        assert service.model == mock_model

    def test_fits_from_listings_without_artifact(self, settings, tmp_path):
        write_listings(tmp_path / "listings", make_listings(n=80))
        service = ModelService(settings)
        assert service.source == "listings"
        assert service.model.sample_size == 80

    def test_no_artifact_no_fit(self, settings):
        no_fit = settings.model_copy(update={"fit_on_startup": False})
        with pytest.raises(FileNotFoundError):
            ModelService(no_fit)

    def test_empty_model_not_available(self, settings):
        service = ModelService(settings, model=MarketModel())
        assert not service.is_loaded
        with pytest.raises(ModelNotAvailableError):
            service.value(PredictionInput(sqft=1000, year_built=2000))

    def test_value(self, model_service, sample_input):
        estimate, breakdown = model_service.value(sample_input)
        assert estimate.price == pytest.approx(breakdown.final_price)
        assert estimate.lower_bound < estimate.price < estimate.upper_bound

    def test_reload_picks_up_new_artifact(self, settings, mock_model):
        save_model(mock_model, settings.model_path)
        service = ModelService(settings)
        save_model(mock_model.model_copy(update={"intercept": 14.0}), settings.model_path)
        service.reload()
        assert service.model.intercept == 14.0

    def test_replace(self, model_service, mock_model):
        replacement = mock_model.model_copy(update={"sample_size": 999})
        model_service.replace(replacement)
        assert model_service.get_status()["sample_size"] == 999

    def test_singleton(self, settings, mock_model, monkeypatch):
        save_model(mock_model, settings.model_path)
        monkeypatch.setattr(model_service_module, "get_settings", lambda: settings)
        reset_model_service()
        try:
            assert get_model_service() is get_model_service()
        finally:
            reset_model_service()


# =============================================================================
# MLFLOW CONFIG
# =============================================================================


class TestMLflowConfig:
    def test_mlflow_config_imports(self):
        from mlflow_config import MLFLOW_EXPERIMENT_NAME, MLFLOW_TRACKING_URI

        assert MLFLOW_TRACKING_URI is not None
        assert MLFLOW_EXPERIMENT_NAME == "fairvalue-hedonic"

    @pytest.mark.slow
    def test_mlflow_setup(self, isolated_mlflow):
        experiment_id = isolated_mlflow.setup_mlflow()
        assert experiment_id is not None
