from collections.abc import Callable
from pathlib import Path
from typing import Annotated
from typing import Literal

from pydantic import Discriminator
from pydantic import Field

from waitfor.common.models import FrozenModel
from waitfor.common.models import MutableModel
from waitfor.primitives import ConditionKind
from waitfor.primitives import HttpStatusCode
from waitfor.primitives import PortNumber
from waitfor.primitives import PositiveFloat
from waitfor.primitives import ProbeFailurePolicy
from waitfor.primitives import ProcessId


class ObservationMemory(MutableModel):
    """The value a stateful condition read on the last tick it was actually evaluated.

    Owned by exactly one condition and only touched from inside that condition's evaluation.
    """

    last_observed: int | None = Field(
        default=None,
        description="Last successful reading (mtime in ns, or size in bytes); None until the first reading",
    )


def _negation_prefix(is_negated: bool) -> str:
    return "not " if is_negated else ""


class ElapsedCondition(FrozenModel):
    """Met once the monotonic clock reaches a fixed deadline."""

    kind: Literal[ConditionKind.ELAPSED] = ConditionKind.ELAPSED
    deadline: float = Field(description="time.monotonic() value at or after which the condition is met")

    def describe(self) -> str:
        return f"elapsed (deadline {self.deadline:.3f})"


class ExistsCondition(FrozenModel):
    """Met when a path exists (or, negated, when it does not)."""

    kind: Literal[ConditionKind.EXISTS] = ConditionKind.EXISTS
    path: Path = Field(description="File or directory to look for")
    is_negated: bool = Field(default=False, description="Wait for the path to be absent instead")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}exists {self.path}"


class HttpGetCondition(FrozenModel):
    """Met when a GET to a URL returns the expected status (or, negated, anything else)."""

    kind: Literal[ConditionKind.HTTP_GET] = ConditionKind.HTTP_GET
    url: str = Field(description="Already-validated http(s) URL")
    expected_status: HttpStatusCode = Field(default=HttpStatusCode(200), description="Status code to wait for")
    is_negated: bool = Field(default=False, description="Wait for any other status instead")
    timeout_seconds: PositiveFloat | None = Field(
        default=None,
        description="Request timeout; None waits as long as the transport allows",
    )
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}GET {self.url} -> {self.expected_status}"


class TcpConnectCondition(FrozenModel):
    """Met when a TCP connection to host:port succeeds (or, negated, when it fails)."""

    kind: Literal[ConditionKind.TCP_CONNECT] = ConditionKind.TCP_CONNECT
    host: str = Field(description="Hostname or IP address, without brackets")
    port: PortNumber = Field(description="TCP port")
    is_negated: bool = Field(default=False, description="Wait for connections to be refused instead")
    timeout_seconds: PositiveFloat | None = Field(
        default=None,
        description="Connect timeout; None uses the platform default",
    )
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}connect {self.host}:{self.port}"


class UpdatedCondition(FrozenModel):
    """Met on the tick where a file's modification time differs from the previous reading."""

    kind: Literal[ConditionKind.UPDATED] = ConditionKind.UPDATED
    path: Path = Field(description="Regular file to watch")
    is_negated: bool = Field(default=False, description="Wait for a tick with no modification instead")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )
    memory: ObservationMemory = Field(
        default_factory=ObservationMemory,
        description="Modification time (ns) seen on the previous reached tick",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}updated {self.path}"


class SizeChangedCondition(FrozenModel):
    """Met on the tick where a file's size differs from the previous reading."""

    kind: Literal[ConditionKind.SIZE_CHANGED] = ConditionKind.SIZE_CHANGED
    path: Path = Field(description="Regular file to watch")
    is_negated: bool = Field(default=False, description="Wait for a tick with no size change instead")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )
    memory: ObservationMemory = Field(
        default_factory=ObservationMemory,
        description="Size in bytes seen on the previous reached tick",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}size changed {self.path}"


class ModifiedWithinCondition(FrozenModel):
    """Met while a file's last modification is more recent than a time window.

    Negated, it is met once the file has been quiet for at least the window.
    """

    kind: Literal[ConditionKind.MODIFIED_WITHIN] = ConditionKind.MODIFIED_WITHIN
    path: Path = Field(description="Regular file to watch")
    window_seconds: PositiveFloat = Field(description="How recent a modification must be to count")
    is_negated: bool = Field(default=False, description="Wait for the file to go quiet instead")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}modified within {self.window_seconds:g}s {self.path}"


class ProcessExitedCondition(FrozenModel):
    """Met once no live process has the given pid (or, negated, while one does)."""

    kind: Literal[ConditionKind.PROCESS_EXITED] = ConditionKind.PROCESS_EXITED
    pid: ProcessId = Field(description="Process id to watch")
    is_negated: bool = Field(default=False, description="Wait for the process to be running instead")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}process {self.pid} exited"


class CustomCondition(FrozenModel):
    """Met when a caller-supplied zero-argument check returns True.

    The check reports a failed observation by raising ProbeError.
    """

    kind: Literal[ConditionKind.CUSTOM] = ConditionKind.CUSTOM
    check: Callable[[], bool] = Field(description="Zero-argument predicate")
    label: str = Field(default="custom check", description="Name shown in verbose output")
    is_negated: bool = Field(default=False, description="Invert the check's result")
    on_probe_failure: ProbeFailurePolicy | None = Field(
        default=None,
        description="Override for the default failure policy of this kind",
    )

    def describe(self) -> str:
        return f"{_negation_prefix(self.is_negated)}{self.label}"


Condition = Annotated[
    ElapsedCondition
    | ExistsCondition
    | HttpGetCondition
    | TcpConnectCondition
    | UpdatedCondition
    | SizeChangedCondition
    | ModifiedWithinCondition
    | ProcessExitedCondition
    | CustomCondition,
    Discriminator("kind"),
]

ProbingCondition = (
    ExistsCondition
    | HttpGetCondition
    | TcpConnectCondition
    | UpdatedCondition
    | SizeChangedCondition
    | ModifiedWithinCondition
    | ProcessExitedCondition
    | CustomCondition
)
