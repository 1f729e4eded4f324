import os
import socket
import threading
from collections.abc import Generator
from collections.abc import Iterable
from contextlib import contextmanager
from http.server import BaseHTTPRequestHandler
from http.server import ThreadingHTTPServer
from pathlib import Path

from waitfor.conditions.data_types import CustomCondition


def find_free_port() -> int:
    """Find a port on localhost that nothing is listening on right now."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@contextmanager
def listening_socket() -> Generator[int, None, None]:
    """Listen on a free localhost port for the duration of the block and yield the port.

    Connections complete in the kernel backlog, so nothing has to accept them.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.listen(16)
        yield s.getsockname()[1]


class ScriptedStatusServer:
    """A local HTTP server that answers each GET with the next status from a script.

    Once the script runs out, the last status is repeated.
    """

    def __init__(self, statuses: Iterable[int]) -> None:
        self._statuses = list(statuses)
        if not self._statuses:
            raise ValueError("ScriptedStatusServer needs at least one status")
        self._lock = threading.Lock()
        self.request_count = 0
        self._http_server = ThreadingHTTPServer(("127.0.0.1", 0), self._make_handler_class())
        self._thread = threading.Thread(target=self._http_server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self._http_server.server_address[1]}/health"

    def next_status(self) -> int:
        with self._lock:
            index = min(self.request_count, len(self._statuses) - 1)
            self.request_count += 1
            return self._statuses[index]

    def _make_handler_class(self) -> type[BaseHTTPRequestHandler]:
        server = self

        class _Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:
                self.send_response(server.next_status())
                self.send_header("Content-Type", "text/plain")
                self.send_header("Content-Length", "0")
                self.end_headers()

            def log_message(self, format: str, *args: object) -> None:
                """Suppress default access log output."""

        return _Handler

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._http_server.shutdown()
        self._http_server.server_close()
        self._thread.join(timeout=5.0)


@contextmanager
def scripted_status_server(statuses: Iterable[int]) -> Generator[ScriptedStatusServer, None, None]:
    server = ScriptedStatusServer(statuses)
    server.start()
    try:
        yield server
    finally:
        server.stop()


def write_bytes(path: Path, size: int) -> Path:
    """Create or overwrite a file with `size` bytes of content."""
    path.write_bytes(b"x" * size)
    return path


def set_modification_time_ns(path: Path, mtime_ns: int) -> None:
    """Set a file's modification time exactly, independent of filesystem timestamp granularity."""
    os.utime(path, ns=(mtime_ns, mtime_ns))


class CountingCheck:
    """A zero-argument check that returns a fixed answer and counts how often it was asked."""

    def __init__(self, result: bool) -> None:
        self.result = result
        self.call_count = 0

    def __call__(self) -> bool:
        self.call_count += 1
        return self.result


def counting_condition(result: bool, label: str = "counting check") -> tuple[CustomCondition, CountingCheck]:
    check = CountingCheck(result)
    return CustomCondition(check=check, label=label), check
