"""
Tests for process-level behaviour: interrupt handling and exit codes.
"""
import signal
import socket

import pytest

from whereyoufrom.config import SocketAddress
from .utils import get_free_port, response_text, tcp_request, wait_for_port, wait_for_udp_reply

LOCALHOST = SocketAddress(socket.AF_INET, "127.0.0.1", 0)


@pytest.mark.quick
def test_sigint_exits_cleanly(whereyoufrom):
    port = get_free_port()
    proc = whereyoufrom(["-t", f"127.0.0.1:{port}", "-u", "-"])
    assert wait_for_port(port)

    data, me = tcp_request(port)
    assert response_text(data).startswith(f"you: {me} | connection_number: ")

    proc.send_signal(signal.SIGINT)
    stdout, stderr = proc.communicate(timeout=10)

    assert proc.returncode == 0, stderr
    assert "Received break signal, shutting down" in stderr


def test_sigterm_exits_cleanly_udp_only(whereyoufrom):
    port = get_free_port(kind=socket.SOCK_DGRAM)
    proc = whereyoufrom(["-t", "-", "-u", f"127.0.0.1:{port}"])

    reply, me = wait_for_udp_reply(port, b"ping")
    assert reply.startswith(f"you: {me} | bytes: 4 | packet_number: ")

    proc.send_signal(signal.SIGTERM)
    proc.communicate(timeout=10)
    assert proc.returncode == 0


def test_idle_interrupt_closes_listener(whereyoufrom):
    port = get_free_port()
    proc = whereyoufrom(["-t", f"127.0.0.1:{port}", "-u", "-", "--silent"])
    assert wait_for_port(port)

    proc.send_signal(signal.SIGINT)
    _, stderr = proc.communicate(timeout=10)

    assert proc.returncode == 0
    assert " INFO " not in stderr
    assert " DEBUG " not in stderr
    with pytest.raises(OSError):
        socket.create_connection(("127.0.0.1", port), timeout=1)


def test_nothing_bound_exits_nonzero(whereyoufrom):
    proc = whereyoufrom(["-t", "192.0.2.1:1", "-u", "-"])
    _, stderr = proc.communicate(timeout=10)

    assert proc.returncode == 1
    assert "Failed to bind TCP socket at 192.0.2.1:1" in stderr
    assert "No TCP nor UDP sockets could be bound. Aborting." in stderr


def test_configuration_error_exits_nonzero(whereyoufrom):
    proc = whereyoufrom(["-t", "-", "-u", "-"])
    _, stderr = proc.communicate(timeout=10)

    assert proc.returncode == 1
    assert "No sockets were specified for TCP nor UDP!" in stderr


def test_verbose_reports_progress(whereyoufrom):
    port = get_free_port()
    proc = whereyoufrom(["-v", "-t", f"127.0.0.1:{port}", "-u", "-"])
    assert wait_for_port(port)
    _, me = tcp_request(port)

    proc.send_signal(signal.SIGINT)
    _, stderr = proc.communicate(timeout=10)

    assert f"Successfully bound TCP socket at 127.0.0.1:{port}" in stderr
    assert f"accepted connection from {me}" in stderr
    assert f"responded to {me} with connection number 2" in stderr


def test_silent_hides_notices(whereyoufrom):
    port = get_free_port()
    proc = whereyoufrom(["-s", "-t", f"127.0.0.1:{port}", "-u", "-"])
    assert wait_for_port(port)
    tcp_request(port)

    proc.send_signal(signal.SIGINT)
    _, stderr = proc.communicate(timeout=10)

    assert proc.returncode == 0
    assert "accepted connection" not in stderr


def test_in_process_shutdown_stops_every_loop(start_server):
    server = start_server(tcp=[LOCALHOST, LOCALHOST], udp=[LOCALHOST])

    server.shutdown()

    assert len(server.loops) == 3
    for loop in server.loops:
        assert not loop.is_alive()
        assert loop.sock.fileno() == -1
