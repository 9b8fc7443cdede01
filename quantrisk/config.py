"""Configuration for the QuantRisk CLI loaded from environment variables."""

from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """QuantRisk configuration.

    Every field can be overridden with a ``QUANTRISK_``-prefixed
    environment variable (e.g. ``QUANTRISK_LOOKBACK_DAYS=500``) or a
    ``.env`` file in the working directory.
    """

    DATA_SOURCE: str = "synthetic"  # "synthetic" or "yahoo"
    LOOKBACK_DAYS: int = 252
    TRADING_DAYS_PER_YEAR: int = 252
    VOLATILITY_DDOF: int = 0
    DEFAULT_STRESS_SHOCK: float = -0.20
    MC_DAILY_VOLATILITY: float = 0.02
    MC_NUM_SIMULATIONS: int = 10_000
    RANDOM_SEED: Optional[int] = None
    FETCH_MAX_WORKERS: int = 10
    FETCH_TIMEOUT_SECONDS: float = 30.0
    FETCH_MAX_RETRIES: int = 2
    SCENARIO_FILE: Optional[str] = None  # JSON of extra stress scenarios
    RESULTS_DIR: str = "results"
    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_prefix": "QUANTRISK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


def get_settings() -> Settings:
    """Return a Settings instance read from the current environment."""
    return Settings()
