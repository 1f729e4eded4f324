from pathlib import Path

from click import ClickException


class BaseWaitforError(Exception):
    """Base exception for all waitfor errors."""


class WaitforError(ClickException, BaseWaitforError):
    """Base exception for all user-facing waitfor errors.

    Subclasses can set user_help_text to add a hint that the CLI prints after the message.
    Raising one of these aborts the command with exit code 1 before any polling happens.
    """

    user_help_text: str | None = None

    def format_message(self) -> str:
        if self.user_help_text:
            return str(self) + "  [" + self.user_help_text + "]"
        return str(self)


class UserInputError(WaitforError):
    """Raised when user input is invalid."""

    user_help_text = "Check the command syntax with 'waitfor --help'."


class ParseArgumentError(UserInputError, ValueError):
    """Raised when parsing a condition argument fails."""


class InvalidDurationError(ParseArgumentError):
    """Raised when a duration string cannot be decoded."""

    def __init__(self, duration_str: str, reason: str) -> None:
        self.duration_str = duration_str
        super().__init__(f"Invalid duration: '{duration_str}'. {reason}")


class InvalidUrlError(ParseArgumentError):
    """Raised when an HTTP GET target is not a usable http(s) URL."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Invalid URL: '{url}'. {reason}")


class InvalidHttpStatusError(ParseArgumentError):
    """Raised when an expected HTTP status code is out of range."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"Invalid HTTP status code: {status}. Expected a value between 100 and 599.")


class InvalidHostError(ParseArgumentError):
    """Raised when a TCP target is not of the form host:port."""

    user_help_text = "TCP targets look like 'localhost:5432' or '[::1]:8080'."

    def __init__(self, host: str, reason: str) -> None:
        self.host = host
        super().__init__(f"Invalid host: '{host}'. {reason}")


class ConditionConstructionError(WaitforError):
    """Base class for errors raised while building a condition, before polling starts."""


class MetadataUnavailableError(ConditionConstructionError):
    """The target path has no retrievable metadata (missing or inaccessible)."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot read metadata for {path}: {reason}")


class InputNotFileError(ConditionConstructionError):
    """The target path exists but is not a regular file."""

    user_help_text = "Use --exists / --not-exists to wait on directories."

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Not a regular file: {path}")


class InvalidConditionValueError(ConditionConstructionError, ValueError):
    """A condition argument is outside its valid range, e.g. a pid of 0."""

    user_help_text = "Check the command syntax with 'waitfor --help'."

    def __init__(self, field_name: str, reason: str) -> None:
        self.field_name = field_name
        super().__init__(f"Invalid {field_name}: {reason}")


class SharedSubtreeError(ConditionConstructionError):
    """The same condition instance was placed into an expression more than once."""


class EmptyExpressionError(ConditionConstructionError):
    """An expression builder was given nothing to combine."""


class ConfigParseError(WaitforError):
    """Raised when a settings file or environment override cannot be parsed."""

    user_help_text = "Fix or remove the offending setting, or point WAITFOR_CONFIG at another file."


class ProbeError(BaseWaitforError):
    """Raised by a probe that could not observe its target on this tick.

    Never escapes an evaluation: the condition's failure policy decides what it means.
    Custom check callables raise it to report a failed observation.
    """
