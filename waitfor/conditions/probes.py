import os
import socket
import time
from pathlib import Path

import httpx
import psutil

from waitfor.errors import ProbeError


def path_exists(path: Path) -> bool:
    """Return whether the path exists.

    A missing entry (or a missing parent directory) is a negative observation.
    Any other stat failure raises ProbeError, since existence is then unknown.
    """
    try:
        path.stat()
    except (FileNotFoundError, NotADirectoryError):
        return False
    except OSError as e:
        raise ProbeError(f"Cannot stat {path}: {e}") from e
    return True


def _stat_file(path: Path) -> os.stat_result:
    try:
        return path.stat()
    except OSError as e:
        raise ProbeError(f"Cannot read metadata for {path}: {e}") from e


def read_modification_time_ns(path: Path) -> int:
    return _stat_file(path).st_mtime_ns


def read_size_bytes(path: Path) -> int:
    return _stat_file(path).st_size


def read_seconds_since_modified(path: Path) -> float:
    """Return how long ago the file was last modified, according to the wall clock."""
    modified_at = _stat_file(path).st_mtime
    return time.time() - modified_at


def fetch_http_status(url: str, timeout_seconds: float | None) -> int:
    """Issue one blocking GET and return the final status code, following redirects."""
    try:
        response = httpx.get(url, timeout=timeout_seconds, follow_redirects=True)
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
        raise ProbeError(f"GET {url} failed: {e}") from e
    return response.status_code


def can_connect_tcp(host: str, port: int, timeout_seconds: float | None) -> bool:
    """Open and immediately close one TCP connection.

    Refused, unreachable and unresolvable targets raise ProbeError, and so do hostnames
    that cannot be IDNA-encoded. The condition's failure policy turns that into the
    negative observation by default.
    """
    try:
        # getaddrinfo accepts only an exact int or str as the port
        with socket.create_connection((host, int(port)), timeout=timeout_seconds):
            return True
    except (OSError, UnicodeError) as e:
        raise ProbeError(f"Cannot connect to {host}:{port}: {e}") from e


def is_process_alive(pid: int) -> bool:
    """Return whether a non-zombie process with this pid exists."""
    try:
        return psutil.Process(int(pid)).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied as e:
        raise ProbeError(f"Cannot inspect process {pid}: {e}") from e
