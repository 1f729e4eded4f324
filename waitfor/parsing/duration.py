import re
from types import MappingProxyType

from waitfor.common.pure import pure
from waitfor.errors import InvalidDurationError

_DURATION_PATTERN = re.compile(r"(?:\d+\s*[dhms]\s*)+(?:\d+)?", re.IGNORECASE)

_DURATION_PART_PATTERN = re.compile(r"(\d+)\s*([dhms]?)", re.IGNORECASE)

_PLAIN_SECONDS_PATTERN = re.compile(r"\d+(?:\.\d*)?|\.\d+")

_SECONDS_PER_UNIT = MappingProxyType({"d": 86400, "h": 3600, "m": 60, "s": 1, "": 1})


@pure
def parse_duration_to_seconds(duration_str: str, *, is_zero_allowed: bool = True) -> float:
    """Parse a human-readable duration string into seconds.

    Accepts plain numbers, which may be fractional ('1.5' is a second and a half), and
    sums of days (d), hours (h), minutes (m) and seconds (s) in any order:
    '300', '7d', '24h', '30m', '90s', '3h10m', '1d12h', '30m1h'. A trailing number
    without a unit counts as seconds, so '1h30' is an hour and thirty seconds.
    """
    stripped = duration_str.strip()
    if not stripped:
        raise InvalidDurationError(duration_str, "Duration is empty.")

    if _PLAIN_SECONDS_PATTERN.fullmatch(stripped):
        total_seconds = float(stripped)
    elif _DURATION_PATTERN.fullmatch(stripped):
        total_seconds = float(
            sum(
                int(amount) * _SECONDS_PER_UNIT[unit.lower()]
                for amount, unit in _DURATION_PART_PATTERN.findall(stripped)
            )
        )
    else:
        raise InvalidDurationError(
            duration_str,
            "Expected a number of seconds or a format like '7d', '24h', '30m', '90s', '3h10m'.",
        )

    if total_seconds == 0.0 and not is_zero_allowed:
        raise InvalidDurationError(duration_str, "Duration must be greater than zero.")
    return total_seconds
