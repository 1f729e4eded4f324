import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any
from typing import Final

from loguru import logger
from pydantic import ValidationError

from waitfor.config.data_types import CONFIG_PATH_ENV_VAR
from waitfor.config.data_types import DEFAULT_SETTINGS_DIR
from waitfor.config.data_types import SETTINGS_FILENAME
from waitfor.config.data_types import WaitforConfig
from waitfor.errors import ConfigParseError
from waitfor.utils.logging import log_call

# Environment variable -> config field. Enum-valued fields are upper-cased before validation.
_ENV_VAR_TO_FIELD: Final[dict[str, str]] = {
    "WAITFOR_INTERVAL": "interval_seconds",
    "WAITFOR_HTTP_TIMEOUT": "http_timeout_seconds",
    "WAITFOR_TCP_TIMEOUT": "tcp_timeout_seconds",
    "WAITFOR_LOG_LEVEL": "log_level",
    "WAITFOR_COMBINE": "combine_mode",
}
_ENUM_FIELDS: Final[frozenset[str]] = frozenset({"log_level", "combine_mode"})


def _format_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in detail['loc'])}: {detail['msg']}" for detail in error.errors()
    )


def find_settings_path(environ: Mapping[str, str]) -> Path | None:
    """Locate the settings file: $WAITFOR_CONFIG if set, else the default location if it exists."""
    explicit_path = environ.get(CONFIG_PATH_ENV_VAR)
    if explicit_path:
        return Path(explicit_path).expanduser()
    default_path = (DEFAULT_SETTINGS_DIR / SETTINGS_FILENAME).expanduser()
    if default_path.is_file():
        return default_path
    return None


@log_call
def read_settings_file(path: Path) -> WaitforConfig:
    """Parse a TOML settings file. Only the keys present in the file count as set."""
    try:
        with open(path, "rb") as f:
            raw_settings: dict[str, Any] = tomllib.load(f)
    except OSError as e:
        raise ConfigParseError(f"Cannot read settings file {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Settings file {path} is not valid TOML: {e}") from e

    for field_name in _ENUM_FIELDS & raw_settings.keys():
        if isinstance(raw_settings[field_name], str):
            raw_settings[field_name] = raw_settings[field_name].upper()

    try:
        return WaitforConfig.model_validate(raw_settings)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid settings in {path}: {_format_validation_error(e)}") from e


def read_env_overrides(environ: Mapping[str, str]) -> WaitforConfig:
    """Build a config from WAITFOR_* environment variables. Only the variables present count as set."""
    raw_settings: dict[str, str] = {}
    for env_var, field_name in _ENV_VAR_TO_FIELD.items():
        value = environ.get(env_var)
        if value is None or not value.strip():
            continue
        raw_settings[field_name] = value.strip().upper() if field_name in _ENUM_FIELDS else value.strip()

    try:
        return WaitforConfig.model_validate(raw_settings)
    except ValidationError as e:
        raise ConfigParseError(f"Invalid WAITFOR_* environment variable: {_format_validation_error(e)}") from e


def load_config(
    environ: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> WaitforConfig:
    """Load and merge configuration from all sources.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. Settings file (config_path, else $WAITFOR_CONFIG, else ~/.config/waitfor/settings.toml)
    3. WAITFOR_* environment variables
    4. CLI flags (applied by the caller)
    """
    resolved_environ = os.environ if environ is None else environ
    config = WaitforConfig()

    settings_path = config_path if config_path is not None else find_settings_path(resolved_environ)
    if settings_path is not None:
        logger.trace("Reading settings from {}", settings_path)
        config = config.merge_with(read_settings_file(settings_path))

    return config.merge_with(read_env_overrides(resolved_environ))
