"""Builders for condition values, called once before polling starts.

The file-state kinds (updated, size_changed, modified_within) check their target
here, so that a missing or non-regular file is reported as a construction error
rather than surfacing later as a tick that never succeeds.
"""

import stat
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any
from typing import TypeVar

from waitfor.conditions.data_types import CustomCondition
from waitfor.conditions.data_types import ElapsedCondition
from waitfor.conditions.data_types import ExistsCondition
from waitfor.conditions.data_types import HttpGetCondition
from waitfor.conditions.data_types import ModifiedWithinCondition
from waitfor.conditions.data_types import ProcessExitedCondition
from waitfor.conditions.data_types import SizeChangedCondition
from waitfor.conditions.data_types import TcpConnectCondition
from waitfor.conditions.data_types import UpdatedCondition
from waitfor.errors import InputNotFileError
from waitfor.errors import InvalidConditionValueError
from waitfor.errors import MetadataUnavailableError
from waitfor.primitives import HttpStatusCode
from waitfor.primitives import NonNegativeFloat
from waitfor.primitives import PortNumber
from waitfor.primitives import PositiveFloat
from waitfor.primitives import ProbeFailurePolicy
from waitfor.primitives import ProcessId

_V = TypeVar("_V")


def _require_regular_file(path: Path) -> Path:
    try:
        metadata = path.stat()
    except OSError as e:
        raise MetadataUnavailableError(path, e.strerror or str(e)) from e
    if not stat.S_ISREG(metadata.st_mode):
        raise InputNotFileError(path)
    return path


def _validated(value_type: Callable[[Any], _V], value: Any, field_name: str) -> _V:
    """Convert a raw argument to its value type, reporting range errors as construction errors."""
    try:
        return value_type(value)
    except ValueError as e:
        raise InvalidConditionValueError(field_name, str(e)) from e


def _optional_positive(value: float | None, field_name: str) -> PositiveFloat | None:
    return None if value is None else _validated(PositiveFloat, value, field_name)


def elapsed(seconds: float) -> ElapsedCondition:
    """Met once `seconds` have passed, counting from now."""
    return ElapsedCondition(deadline=time.monotonic() + _validated(NonNegativeFloat, seconds, "elapsed duration"))


def exists(
    path: Path | str,
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> ExistsCondition:
    return ExistsCondition(path=Path(path), is_negated=is_negated, on_probe_failure=on_probe_failure)


def http_get(
    url: str,
    expected_status: int = 200,
    *,
    is_negated: bool = False,
    timeout_seconds: float | None = None,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> HttpGetCondition:
    return HttpGetCondition(
        url=url,
        expected_status=_validated(HttpStatusCode, expected_status, "HTTP status"),
        is_negated=is_negated,
        timeout_seconds=_optional_positive(timeout_seconds, "HTTP timeout"),
        on_probe_failure=on_probe_failure,
    )


def tcp_connect(
    host: str,
    port: int,
    *,
    is_negated: bool = False,
    timeout_seconds: float | None = None,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> TcpConnectCondition:
    return TcpConnectCondition(
        host=host,
        port=_validated(PortNumber, port, "port"),
        is_negated=is_negated,
        timeout_seconds=_optional_positive(timeout_seconds, "TCP timeout"),
        on_probe_failure=on_probe_failure,
    )


def updated(
    path: Path | str,
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> UpdatedCondition:
    """Watch a regular file's modification time.

    Raises MetadataUnavailableError or InputNotFileError if the file cannot be watched.
    """
    return UpdatedCondition(
        path=_require_regular_file(Path(path)),
        is_negated=is_negated,
        on_probe_failure=on_probe_failure,
    )


def size_changed(
    path: Path | str,
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> SizeChangedCondition:
    """Watch a regular file's size in bytes.

    Raises MetadataUnavailableError or InputNotFileError if the file cannot be watched.
    """
    return SizeChangedCondition(
        path=_require_regular_file(Path(path)),
        is_negated=is_negated,
        on_probe_failure=on_probe_failure,
    )


def modified_within(
    path: Path | str,
    window_seconds: float,
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> ModifiedWithinCondition:
    return ModifiedWithinCondition(
        path=_require_regular_file(Path(path)),
        window_seconds=_validated(PositiveFloat, window_seconds, "modification window"),
        is_negated=is_negated,
        on_probe_failure=on_probe_failure,
    )


def process_exited(
    pid: int,
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> ProcessExitedCondition:
    return ProcessExitedCondition(
        pid=_validated(ProcessId, pid, "pid"),
        is_negated=is_negated,
        on_probe_failure=on_probe_failure,
    )


def custom(
    check: Callable[[], bool],
    label: str = "custom check",
    *,
    is_negated: bool = False,
    on_probe_failure: ProbeFailurePolicy | None = None,
) -> CustomCondition:
    return CustomCondition(check=check, label=label, is_negated=is_negated, on_probe_failure=on_probe_failure)
