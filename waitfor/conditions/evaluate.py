import time
from collections.abc import Callable
from typing import assert_never

from loguru import logger

from waitfor.conditions.data_types import Condition
from waitfor.conditions.data_types import CustomCondition
from waitfor.conditions.data_types import ElapsedCondition
from waitfor.conditions.data_types import ExistsCondition
from waitfor.conditions.data_types import HttpGetCondition
from waitfor.conditions.data_types import ModifiedWithinCondition
from waitfor.conditions.data_types import ProbingCondition
from waitfor.conditions.data_types import ProcessExitedCondition
from waitfor.conditions.data_types import SizeChangedCondition
from waitfor.conditions.data_types import TcpConnectCondition
from waitfor.conditions.data_types import UpdatedCondition
from waitfor.conditions.policy import get_effective_policy
from waitfor.conditions.policy import resolve_probe_failure
from waitfor.conditions.probes import can_connect_tcp
from waitfor.conditions.probes import fetch_http_status
from waitfor.conditions.probes import is_process_alive
from waitfor.conditions.probes import path_exists
from waitfor.conditions.probes import read_modification_time_ns
from waitfor.conditions.probes import read_seconds_since_modified
from waitfor.conditions.probes import read_size_bytes
from waitfor.errors import ProbeError


def _on_probe_failure(condition: ProbingCondition, error: ProbeError) -> bool:
    policy = get_effective_policy(condition.kind, condition.on_probe_failure)
    is_met = resolve_probe_failure(policy, condition.is_negated)
    logger.debug("Probe failed for {} ({}); policy {} reports met={}", condition.describe(), error, policy, is_met)
    return is_met


def _evaluate_observation(condition: ProbingCondition, observe: Callable[[], bool]) -> bool:
    """Run a stateless probe and apply the negate flag to its positive observation."""
    try:
        is_observed = observe()
    except ProbeError as e:
        return _on_probe_failure(condition, e)
    return is_observed != condition.is_negated


def _evaluate_change(condition: UpdatedCondition | SizeChangedCondition, read: Callable[[], int]) -> bool:
    """Compare a fresh reading against the one stored on the previous reached tick.

    The first successful reading only records a baseline. Every later reading replaces
    the stored value whatever the comparison says, so a change is reported once.
    A failed reading leaves the stored value alone.
    """
    try:
        current = read()
    except ProbeError as e:
        return _on_probe_failure(condition, e)

    memory = condition.memory
    previous = memory.last_observed
    memory.last_observed = current
    if previous is None:
        logger.trace("Recorded baseline {} for {}", current, condition.describe())
        return False

    is_changed = current != previous
    return is_changed != condition.is_negated


def is_condition_met(condition: Condition) -> bool:
    """Evaluate one condition right now.

    Probe failures are resolved by the condition's failure policy and never raised.
    Updated and SizeChanged conditions overwrite their memory as a side effect.
    """
    logger.debug("Checking {}", condition.describe())
    match condition:
        case ElapsedCondition():
            return time.monotonic() >= condition.deadline
        case ExistsCondition():
            return _evaluate_observation(condition, lambda: path_exists(condition.path))
        case HttpGetCondition():
            return _evaluate_observation(
                condition,
                lambda: fetch_http_status(condition.url, condition.timeout_seconds) == condition.expected_status,
            )
        case TcpConnectCondition():
            return _evaluate_observation(
                condition,
                lambda: can_connect_tcp(condition.host, condition.port, condition.timeout_seconds),
            )
        case UpdatedCondition():
            return _evaluate_change(condition, lambda: read_modification_time_ns(condition.path))
        case SizeChangedCondition():
            return _evaluate_change(condition, lambda: read_size_bytes(condition.path))
        case ModifiedWithinCondition():
            return _evaluate_observation(
                condition,
                lambda: read_seconds_since_modified(condition.path) < condition.window_seconds,
            )
        case ProcessExitedCondition():
            return _evaluate_observation(condition, lambda: not is_process_alive(condition.pid))
        case CustomCondition():
            return _evaluate_observation(condition, lambda: bool(condition.check()))
        case _ as unreachable:
            assert_never(unreachable)
