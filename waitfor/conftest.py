from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from waitfor.config.data_types import CONFIG_PATH_ENV_VAR
from waitfor.testing import find_free_port
from waitfor.testing import listening_socket

_WAITFOR_ENV_VARS = (
    CONFIG_PATH_ENV_VAR,
    "WAITFOR_INTERVAL",
    "WAITFOR_HTTP_TIMEOUT",
    "WAITFOR_TCP_TIMEOUT",
    "WAITFOR_LOG_LEVEL",
    "WAITFOR_COMBINE",
)


@pytest.fixture(autouse=True)
def isolate_waitfor_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's settings file and WAITFOR_* variables out of every test.

    HOME points at a fresh directory, so ~/.config/waitfor/settings.toml never exists
    unless a test writes it.
    """
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    for env_var in _WAITFOR_ENV_VARS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def free_port() -> int:
    return find_free_port()


@pytest.fixture
def listening_port() -> Generator[int, None, None]:
    with listening_socket() as port:
        yield port
