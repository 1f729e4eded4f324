import os
import time
from collections.abc import Callable
from pathlib import Path

import pytest
from pydantic import ValidationError

from waitfor.conditions import constructors
from waitfor.errors import ConditionConstructionError
from waitfor.errors import InputNotFileError
from waitfor.errors import InvalidConditionValueError
from waitfor.errors import MetadataUnavailableError
from waitfor.primitives import ConditionKind
from waitfor.primitives import ProbeFailurePolicy
from waitfor.testing import write_bytes


def test_elapsed_sets_deadline_relative_to_now() -> None:
    before = time.monotonic()
    condition = constructors.elapsed(5.0)
    after = time.monotonic()

    assert condition.kind == ConditionKind.ELAPSED
    assert before + 5.0 <= condition.deadline <= after + 5.0


def test_elapsed_rejects_negative_duration() -> None:
    with pytest.raises(InvalidConditionValueError):
        constructors.elapsed(-1.0)


def test_exists_accepts_missing_path(tmp_path: Path) -> None:
    """Existence is checked on every tick, not at construction."""
    condition = constructors.exists(tmp_path / "not-yet", is_negated=True)

    assert condition.path == tmp_path / "not-yet"
    assert condition.is_negated is True


@pytest.mark.parametrize("builder", [constructors.updated, constructors.size_changed])
def test_file_state_conditions_reject_missing_file(tmp_path: Path, builder: Callable[[Path], object]) -> None:
    with pytest.raises(MetadataUnavailableError, match="Cannot read metadata"):
        builder(tmp_path / "missing.log")


@pytest.mark.parametrize("builder", [constructors.updated, constructors.size_changed])
def test_file_state_conditions_reject_directory(tmp_path: Path, builder: Callable[[Path], object]) -> None:
    with pytest.raises(InputNotFileError, match="Not a regular file"):
        builder(tmp_path)


def test_modified_within_rejects_directory(tmp_path: Path) -> None:
    with pytest.raises(InputNotFileError):
        constructors.modified_within(tmp_path, 10.0)


def test_construction_errors_exit_with_code_1(tmp_path: Path) -> None:
    with pytest.raises(ConditionConstructionError) as exc_info:
        constructors.updated(tmp_path / "missing.log")

    assert exc_info.value.exit_code == 1


def test_updated_starts_without_a_baseline(tmp_path: Path) -> None:
    path = write_bytes(tmp_path / "app.log", 10)

    condition = constructors.updated(path)

    assert condition.memory.last_observed is None


def test_each_stateful_condition_gets_its_own_memory(tmp_path: Path) -> None:
    path = write_bytes(tmp_path / "app.log", 10)

    first = constructors.size_changed(path)
    second = constructors.size_changed(path)

    assert first.memory is not second.memory


def test_http_get_validates_status_and_timeout() -> None:
    condition = constructors.http_get("http://localhost/health", 204, timeout_seconds=2.5)

    assert condition.expected_status == 204
    assert condition.timeout_seconds == 2.5

    with pytest.raises(InvalidConditionValueError):
        constructors.http_get("http://localhost/health", 42)
    with pytest.raises(InvalidConditionValueError):
        constructors.http_get("http://localhost/health", timeout_seconds=0)


def test_tcp_connect_validates_port() -> None:
    assert constructors.tcp_connect("localhost", 5432).port == 5432

    with pytest.raises(InvalidConditionValueError):
        constructors.tcp_connect("localhost", 0)


def test_process_exited_validates_pid() -> None:
    assert constructors.process_exited(os.getpid(), is_negated=True).pid == os.getpid()

    with pytest.raises(InvalidConditionValueError):
        constructors.process_exited(0)


def test_policy_override_is_stored_on_the_condition(tmp_path: Path) -> None:
    condition = constructors.exists(tmp_path, on_probe_failure=ProbeFailurePolicy.FAIL_OPEN)

    assert condition.on_probe_failure == ProbeFailurePolicy.FAIL_OPEN


def test_conditions_are_frozen(tmp_path: Path) -> None:
    condition = constructors.exists(tmp_path)

    with pytest.raises(ValidationError):
        condition.is_negated = True  # type: ignore[misc]


def test_out_of_range_arguments_are_construction_errors() -> None:
    with pytest.raises(ConditionConstructionError, match="Invalid pid") as exc_info:
        constructors.process_exited(-5)

    assert exc_info.value.exit_code == 1
    assert "waitfor --help" in exc_info.value.format_message()
