import httpx

from waitfor.common.pure import pure
from waitfor.errors import InvalidHostError
from waitfor.errors import InvalidHttpStatusError
from waitfor.errors import InvalidUrlError
from waitfor.primitives import HttpStatusCode
from waitfor.primitives import PortNumber

DEFAULT_EXPECTED_STATUS = HttpStatusCode(200)

_SUPPORTED_URL_SCHEMES = frozenset({"http", "https"})


@pure
def _is_encodable_hostname(host: str) -> bool:
    """Return whether the resolver will accept the hostname (no empty or over-long labels)."""
    try:
        host.encode("idna")
    except UnicodeError:
        return False
    return True


@pure
def normalize_url(url: str) -> str:
    """Validate an http(s) URL with httpx and return its normalized form."""
    try:
        parsed = httpx.URL(url.strip())
    except httpx.InvalidURL as e:
        raise InvalidUrlError(url, str(e)) from e
    if parsed.scheme not in _SUPPORTED_URL_SCHEMES:
        raise InvalidUrlError(url, "Only http:// and https:// URLs are supported.")
    if not parsed.host:
        raise InvalidUrlError(url, "The URL has no host.")
    if not _is_encodable_hostname(parsed.host):
        raise InvalidUrlError(url, f"The host '{parsed.host}' is not a valid hostname.")
    return str(parsed)


@pure
def parse_http_get_arg(url_arg: str) -> tuple[HttpStatusCode, str]:
    """Split an HTTP GET argument into the expected status and a normalized URL.

    The argument is either a bare URL (expecting 200) or 'NNN,URL', e.g. '404,http://localhost/gone'.
    """
    status = DEFAULT_EXPECTED_STATUS
    url = url_arg
    prefix, separator, remainder = url_arg.partition(",")
    if separator and len(prefix) == 3 and prefix.isdigit() and remainder:
        status_value = int(prefix)
        if not 100 <= status_value <= 599:
            raise InvalidHttpStatusError(status_value)
        status = HttpStatusCode(status_value)
        url = remainder
    return status, normalize_url(url)


@pure
def parse_host_port(host_arg: str) -> tuple[str, PortNumber]:
    """Split 'host:port' at the last colon.

    IPv6 literals must be bracketed ('[::1]:8080'); the brackets are removed from the host.
    """
    host, separator, port_str = host_arg.strip().rpartition(":")
    if not separator:
        raise InvalidHostError(host_arg, "Expected host:port.")
    if not port_str.isdigit():
        raise InvalidHostError(host_arg, f"Port '{port_str}' is not a number.")
    port_value = int(port_str)
    if not 1 <= port_value <= 65535:
        raise InvalidHostError(host_arg, f"Port {port_value} is out of range (1-65535).")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise InvalidHostError(host_arg, "IPv6 addresses must be written in brackets, e.g. [::1]:8080.")
    if not host:
        raise InvalidHostError(host_arg, "The host is empty.")
    if not _is_encodable_hostname(host):
        raise InvalidHostError(host_arg, "The host is not a valid hostname (empty or over-long label).")
    return host, PortNumber(port_value)
