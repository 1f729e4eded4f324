"""Probe failure policy: the one place that decides what a failed observation means.

A probe fails when it cannot observe its target at all on a tick: the HTTP transport
errored, the connection attempt raised, the file could not be stat'ed, the process
table could not be read. Such failures never escape an evaluation. Instead each
condition resolves them through a ProbeFailurePolicy, taken from its own
on_probe_failure field when set and from DEFAULT_PROBE_FAILURE_POLICIES otherwise.

Defaults per kind:

- EXISTS: FAIL_CLOSED. "No such file" is an observation, not a failure; anything
  else (e.g. permission denied) reports not met in either polarity.
- HTTP_GET: TREAT_AS_UNMET. A transport error counts as "did not get the expected
  status", so a negated GET (wait until the endpoint stops answering) is met.
- TCP_CONNECT: TREAT_AS_UNMET. A refused or unroutable connection is exactly the
  negative observation, so a negated connect is met.
- UPDATED, SIZE_CHANGED: FAIL_CLOSED, and the remembered reading is left untouched.
- MODIFIED_WITHIN, PROCESS_EXITED, CUSTOM: FAIL_CLOSED.

ELAPSED has no probe and therefore no entry.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Final
from typing import assert_never

from waitfor.common.pure import pure
from waitfor.primitives import ConditionKind
from waitfor.primitives import ProbeFailurePolicy

DEFAULT_PROBE_FAILURE_POLICIES: Final[Mapping[ConditionKind, ProbeFailurePolicy]] = MappingProxyType(
    {
        ConditionKind.EXISTS: ProbeFailurePolicy.FAIL_CLOSED,
        ConditionKind.HTTP_GET: ProbeFailurePolicy.TREAT_AS_UNMET,
        ConditionKind.TCP_CONNECT: ProbeFailurePolicy.TREAT_AS_UNMET,
        ConditionKind.UPDATED: ProbeFailurePolicy.FAIL_CLOSED,
        ConditionKind.SIZE_CHANGED: ProbeFailurePolicy.FAIL_CLOSED,
        ConditionKind.MODIFIED_WITHIN: ProbeFailurePolicy.FAIL_CLOSED,
        ConditionKind.PROCESS_EXITED: ProbeFailurePolicy.FAIL_CLOSED,
        ConditionKind.CUSTOM: ProbeFailurePolicy.FAIL_CLOSED,
    }
)


@pure
def get_effective_policy(kind: ConditionKind, override: ProbeFailurePolicy | None) -> ProbeFailurePolicy:
    """Return the override when given, else the default for the kind."""
    if override is not None:
        return override
    return DEFAULT_PROBE_FAILURE_POLICIES[kind]


@pure
def resolve_probe_failure(policy: ProbeFailurePolicy, is_negated: bool) -> bool:
    """Return whether a condition whose probe failed counts as met for this tick."""
    match policy:
        case ProbeFailurePolicy.FAIL_OPEN:
            return True
        case ProbeFailurePolicy.FAIL_CLOSED:
            return False
        case ProbeFailurePolicy.TREAT_AS_UNMET:
            # positive predicate is false, so the result is the negate flag itself
            return is_negated
        case _ as unreachable:
            assert_never(unreachable)
