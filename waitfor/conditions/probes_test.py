import os
from pathlib import Path

import pytest

from waitfor.conditions.probes import can_connect_tcp
from waitfor.conditions.probes import fetch_http_status
from waitfor.conditions.probes import is_process_alive
from waitfor.conditions.probes import path_exists
from waitfor.errors import ProbeError
from waitfor.primitives import PortNumber
from waitfor.primitives import ProcessId
from waitfor.testing import scripted_status_server


def test_can_connect_tcp_accepts_validated_port_numbers(listening_port: int) -> None:
    """Ports come out of parsing as PortNumber, which the resolver must still accept."""
    assert can_connect_tcp("127.0.0.1", PortNumber(listening_port), 2.0) is True


def test_can_connect_tcp_refused_raises_probe_error(free_port: int) -> None:
    with pytest.raises(ProbeError, match="Cannot connect"):
        can_connect_tcp("127.0.0.1", PortNumber(free_port), 2.0)


def test_can_connect_tcp_unencodable_hostname_raises_probe_error() -> None:
    with pytest.raises(ProbeError, match="Cannot connect to a..b:80"):
        can_connect_tcp("a..b", PortNumber(80), 2.0)


@pytest.mark.timeout(30)
def test_fetch_http_status_returns_status() -> None:
    with scripted_status_server([418]) as server:
        assert fetch_http_status(server.url, 5.0) == 418


def test_fetch_http_status_unencodable_hostname_raises_probe_error() -> None:
    with pytest.raises(ProbeError, match="GET http://a..b/ failed"):
        fetch_http_status("http://a..b/", 2.0)


def test_fetch_http_status_invalid_url_raises_probe_error() -> None:
    with pytest.raises(ProbeError):
        fetch_http_status("http://[not-an-ip/", 2.0)


def test_path_exists(tmp_path: Path) -> None:
    assert path_exists(tmp_path) is True
    assert path_exists(tmp_path / "missing") is False


def test_is_process_alive_accepts_validated_pids() -> None:
    assert is_process_alive(ProcessId(os.getpid())) is True
