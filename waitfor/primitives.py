from enum import StrEnum
from enum import auto
from typing import Any
from typing import Self

from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema
from pydantic_core import core_schema


class UpperCaseStrEnum(StrEnum):
    """A StrEnum whose auto() values are the upper-cased member names."""

    @staticmethod
    def _generate_next_value_(
        name: str,
        start: int,
        count: int,
        last_values: list[str],
    ) -> str:
        return name.upper()


# === Enums ===


class ConditionKind(UpperCaseStrEnum):
    """Discriminator for the closed set of condition variants."""

    ELAPSED = auto()
    EXISTS = auto()
    HTTP_GET = auto()
    TCP_CONNECT = auto()
    UPDATED = auto()
    SIZE_CHANGED = auto()
    MODIFIED_WITHIN = auto()
    PROCESS_EXITED = auto()
    CUSTOM = auto()


class CombinatorOperator(UpperCaseStrEnum):
    """Boolean operator joining the two children of a combinator node."""

    AND = auto()
    OR = auto()


class ProbeFailurePolicy(UpperCaseStrEnum):
    """What a condition reports for a tick on which its probe could not observe anything.

    FAIL_OPEN reports the condition as met. FAIL_CLOSED reports it as not met, whatever
    the negate flag says. TREAT_AS_UNMET takes the positive predicate as false and still
    applies negation, so a negated condition is met.
    """

    FAIL_OPEN = auto()
    FAIL_CLOSED = auto()
    TREAT_AS_UNMET = auto()


class CombineMode(UpperCaseStrEnum):
    """How the CLI joins the conditions it was given."""

    ANY = auto()
    ALL = auto()


class LogLevel(UpperCaseStrEnum):
    """Log verbosity level."""

    TRACE = auto()
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()
    NONE = auto()


# === Value Types ===


class PositiveFloat(float):
    """A float that must be > 0."""

    def __new__(cls, value: float) -> Self:
        if value <= 0:
            raise ValueError(f"{cls.__name__} must be > 0, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.float_schema(gt=0),
        )


class NonNegativeFloat(float):
    """A float that must be >= 0."""

    def __new__(cls, value: float) -> Self:
        if value < 0:
            raise ValueError(f"{cls.__name__} must be >= 0, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.float_schema(ge=0),
        )


class HttpStatusCode(int):
    """An HTTP status code in the range 100-599."""

    def __new__(cls, value: int) -> Self:
        if not 100 <= value <= 599:
            raise ValueError(f"{cls.__name__} must be between 100 and 599, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(ge=100, le=599),
        )


class PortNumber(int):
    """A TCP port number in the range 1-65535."""

    def __new__(cls, value: int) -> Self:
        if not 1 <= value <= 65535:
            raise ValueError(f"{cls.__name__} must be between 1 and 65535, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(ge=1, le=65535),
        )


class ProcessId(int):
    """An operating system process id."""

    def __new__(cls, value: int) -> Self:
        if value <= 0:
            raise ValueError(f"{cls.__name__} must be > 0, got {value}")
        return super().__new__(cls, value)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.int_schema(gt=0),
        )
