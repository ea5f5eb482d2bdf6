from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ccrop import __version__

DOWNLOAD_TIMEOUT_SECONDS: float = 30.0
DEFAULT_OUTPUT: str = "output.png"


class AppSettings(BaseSettings):
    """ Application settings, read from CCROP_* environment variables """

    log_level: str = 'warning'
    """ Logging level. Options: critical, error, warning, info, debug, trace. Default: warning """

    log_fmt: str = "{time} | {level}: {extra} {message}"
    """ Logging message format """

    user_agent: str = Field(default=f"ccrop/{__version__}")
    """ User-Agent header sent with the download request """

    model_config = SettingsConfigDict(env_prefix="CCROP_", env_file=".env", extra='ignore',
                                      case_sensitive=False)


_app_settings: AppSettings | None = None


def get_app_settings() -> AppSettings:
    global _app_settings
    if not _app_settings:
        _app_settings = AppSettings()
    return _app_settings


def reset_app_settings() -> None:
    global _app_settings
    _app_settings = None
