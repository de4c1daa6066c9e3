"""
Application configuration, read from environment variables (prefix FAIRVALUE_).

The engine never reads these settings; they configure the service, the
training CLI and the evaluation CLI.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """FairValue configuration."""

    model_config = SettingsConfigDict(env_prefix="FAIRVALUE_", protected_namespaces=())

    app_name: str = "FairValue Strata Estimator"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Data and artifacts
    listings_dir: str = "data/json"
    model_path: str = "model/market_model.json"
    metrics_path: str = "model/metrics.json"

    # Model specification
    log_linear: bool = True
    include_list_price: bool = False
    fit_on_startup: bool = True

    # 80% interval
    z_score: float = 1.28


@lru_cache
def get_settings() -> Settings:
    return Settings()
