from pathlib import Path
from typing import Final

from pydantic import Field

from waitfor.common.models import FrozenModel
from waitfor.primitives import CombineMode
from waitfor.primitives import LogLevel
from waitfor.primitives import PositiveFloat

SETTINGS_FILENAME: Final[str] = "settings.toml"
DEFAULT_SETTINGS_DIR: Final[Path] = Path("~/.config/waitfor")
CONFIG_PATH_ENV_VAR: Final[str] = "WAITFOR_CONFIG"

DEFAULT_INTERVAL_SECONDS: Final[float] = 2.0


class WaitforConfig(FrozenModel):
    """Settings that shape a wait but are not conditions themselves."""

    interval_seconds: PositiveFloat = Field(
        default=PositiveFloat(DEFAULT_INTERVAL_SECONDS),
        description="Nominal time between the starts of two consecutive ticks",
    )
    http_timeout_seconds: PositiveFloat | None = Field(
        default=None,
        description="Timeout for each HTTP GET probe; unset means no timeout",
    )
    tcp_timeout_seconds: PositiveFloat | None = Field(
        default=None,
        description="Timeout for each TCP connect probe; unset means the platform default",
    )
    log_level: LogLevel = Field(default=LogLevel.WARN, description="Console log level")
    combine_mode: CombineMode = Field(
        default=CombineMode.ANY,
        description="Whether the CLI waits for any or for all of its conditions",
    )

    def merge_with(self, override: "WaitforConfig") -> "WaitforConfig":
        """Return a config where every field explicitly set on `override` wins."""
        merged = {**self.model_dump(), **override.model_dump(include=override.model_fields_set)}
        return WaitforConfig.model_validate(merged)
