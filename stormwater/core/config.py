from functools import lru_cache
from decouple import config
from stormwater.core.exceptions import ConfigurationError

class Settings:
    PROJECT_NAME: str = "Stormwater Event Diagnostics"
    try:
        # logging
        LOG_LEVEL: str = str(config("STORMWATER_LOG_LEVEL", default="INFO")).upper()
        LOG_TO_CONSOLE: bool = config("STORMWATER_LOG_TO_CONSOLE", default=True, cast=bool)
        LOG_TO_FILE: bool = config("STORMWATER_LOG_TO_FILE", default=False, cast=bool)
        LOG_DIR: str = str(config("STORMWATER_LOG_DIR", default="logs"))

        # analysis
        DEFAULT_DESIGN_DRAWDOWN_HOURS: float = config(
            "STORMWATER_DEFAULT_DESIGN_DRAWDOWN_HOURS", default=24.0, cast=float
        )
    except ValueError as e:
        raise ConfigurationError("Invalid value for a STORMWATER_* environment variable: " + str(e))


@lru_cache
def get_settings():
    return Settings()
