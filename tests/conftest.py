"""Test configuration and shared fixtures.

Provide isolated settings and loopback servers bound to the collector's
introspection port. All fixtures bind to 127.0.0.1 only and skip the test when
the port is already taken on this machine.
"""
import logging
import socket
import threading
import time
from contextlib import contextmanager
from typing import Generator, Iterator

import pytest
import structlog
import uvicorn

from collector_probe.config import get_settings
from collector_probe.introspection import INTROSPECTION_PORT
from fake_collector import create_fake_collector

LOOPBACK = "127.0.0.1"
STARTUP_TIMEOUT = 10.0

PROXY_ENV_VARS = (
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "ALL_PROXY",
    "http_proxy",
    "https_proxy",
    "all_proxy",
)

# ==============================================================================
# ENVIRONMENT FIXTURES
# ==============================================================================

@pytest.fixture(autouse=True)
def no_proxy_env(monkeypatch):
    """Keep loopback requests away from any proxy configured on the host."""
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Undo dictConfig and structlog configuration applied during a test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def clear_settings_cache() -> Iterator[None]:
    """Drop the cached settings before and after a test that edits the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

# ==============================================================================
# LOOPBACK SERVERS
# ==============================================================================

def _reusable_socket() -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    return sock


@pytest.fixture
def introspection_port() -> int:
    """Skip the test unless the introspection port is free on loopback."""
    with _reusable_socket() as sock:
        try:
            sock.bind((LOOPBACK, INTROSPECTION_PORT))
        except OSError:
            pytest.skip(f"port {INTROSPECTION_PORT} is in use on {LOOPBACK}")
    return INTROSPECTION_PORT


class ThreadedServer(uvicorn.Server):
    """uvicorn server that can run outside the main thread."""

    def install_signal_handlers(self) -> None:
        pass


@contextmanager
def serve_in_thread(app, port: int) -> Iterator[ThreadedServer]:
    config = uvicorn.Config(
        app,
        host=LOOPBACK,
        port=port,
        lifespan="off",
        log_config=None,
        log_level="warning",
        # Long enough that a leaked keep-alive connection is still visible
        # when tests count open connections.
        timeout_keep_alive=60,
    )
    server = ThreadedServer(config)
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    deadline = time.monotonic() + STARTUP_TIMEOUT
    while not server.started:
        if not thread.is_alive() or time.monotonic() > deadline:
            server.should_exit = True
            raise RuntimeError("fake collector failed to start")
        time.sleep(0.01)

    try:
        yield server
    finally:
        server.should_exit = True
        thread.join(timeout=STARTUP_TIMEOUT)


@pytest.fixture
def fake_collector_server(introspection_port: int) -> Generator[ThreadedServer, None, None]:
    """Run the fake collector on the introspection port.

    Yields:
        ThreadedServer: The running server; its app is `server.config.app`.
    """
    with serve_in_thread(create_fake_collector(), introspection_port) as server:
        yield server


@pytest.fixture
def fake_collector(fake_collector_server: ThreadedServer):
    """Return the app behind the running fake collector."""
    return fake_collector_server.config.app


@pytest.fixture
def refusing_port(introspection_port: int) -> Generator[None, None, None]:
    """Hold the introspection port bound without listening, so connects are refused."""
    with _reusable_socket() as sock:
        sock.bind((LOOPBACK, introspection_port))
        yield


@pytest.fixture
def truncated_body_server(introspection_port: int) -> Generator[None, None, None]:
    """Answer one request with a 200 whose body stops short of Content-Length."""
    listener = _reusable_socket()
    listener.bind((LOOPBACK, introspection_port))
    listener.listen(1)
    listener.settimeout(STARTUP_TIMEOUT)

    def serve_once() -> None:
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        with conn:
            request = b""
            while b"\r\n\r\n" not in request:
                chunk = conn.recv(4096)
                if not chunk:
                    return
                request += chunk
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/json\r\n"
                b"Content-Length: 1024\r\n"
                b"\r\n"
                b'{"partial": '
            )

    thread = threading.Thread(target=serve_once, daemon=True)
    thread.start()
    try:
        yield
    finally:
        thread.join(timeout=STARTUP_TIMEOUT)
        listener.close()
