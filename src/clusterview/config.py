"""Environment-based configuration for clusterview."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_REFRESH_INTERVAL_MS = 15000
SETTLE_WINDOW_MS = 500
DEFAULT_SERIES_CAPACITY = 20
REFRESH_INTERVAL_KEY = "clusterview-refresh-interval"


class ClusterViewSettings(BaseSettings):
    """clusterview configuration.

    All settings can be overridden via environment variables with
    CLUSTERVIEW_ prefix. For example:
        CLUSTERVIEW_DEFAULT_REFRESH_INTERVAL_MS=30000
        CLUSTERVIEW_PREFERENCES_PATH=/var/lib/clusterview/prefs.db

    Settings are passed into constructors explicitly; nothing reads a
    module-level instance.
    """

    # Refresh clock
    default_refresh_interval_ms: int = Field(DEFAULT_REFRESH_INTERVAL_MS, ge=0)
    settle_window_ms: int = Field(SETTLE_WINDOW_MS, ge=0)
    refresh_interval_key: str = REFRESH_INTERVAL_KEY

    # Time series
    series_capacity: int = Field(DEFAULT_SERIES_CAPACITY, ge=1)

    # Preference persistence
    preferences_path: Path = Path.home() / ".clusterview" / "preferences.db"

    # Logging
    log_level: str = "WARNING"

    model_config = {"env_prefix": "CLUSTERVIEW_"}


def load_settings(**overrides: object) -> ClusterViewSettings:
    """Build settings from the environment, with explicit overrides on top."""
    return ClusterViewSettings(**overrides)
