import logging
import os
import subprocess
import sys
import time

import pytest

from whereyoufrom.config import StartupConfig
from whereyoufrom.log import LOGGER_NAME
from whereyoufrom.server import Server

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def start_server():
    """
    Fixture to run an in-process server.
    Usage: start_server(tcp=[...], udp=[...])
    Returns: started whereyoufrom.server.Server
    """
    servers = []

    def _start(tcp=(), udp=(), verbose=False, silent=False):
        config = StartupConfig(verbose=verbose, silent=silent,
                               tcp_addresses=tuple(tcp), udp_addresses=tuple(udp))
        server = Server(config).start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        server.shutdown()


@pytest.fixture
def whereyoufrom():
    """
    Fixture to run whereyoufrom as a separate process.
    Usage: whereyoufrom(["-t", "127.0.0.1:1234"])
    Returns: subprocess.Popen object
    """
    process = None

    def _run(args):
        nonlocal process
        process = subprocess.Popen(
            [sys.executable, "-m", "whereyoufrom", *args],
            cwd=PROJECT_ROOT,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            universal_newlines=True
        )
        # Give it a moment to start
        time.sleep(0.2)
        return process

    yield _run

    if process and process.poll() is None:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


@pytest.fixture
def wyf_caplog(caplog):
    """caplog capturing everything the whereyoufrom logger emits."""
    caplog.set_level(logging.DEBUG, logger=LOGGER_NAME)
    return caplog


@pytest.fixture
def restore_logger():
    """Undo setup_logging() so later tests see the default logger again."""
    yield
    log = logging.getLogger(LOGGER_NAME)
    log.handlers.clear()
    log.propagate = True
    log.setLevel(logging.NOTSET)
