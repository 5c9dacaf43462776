"""Shared fixtures: a live sidecar, clients for it, sample configs, export dirs."""

import shutil
import threading
import uuid
from pathlib import Path

import pytest
import zmq

from engine.config import ShardConfig
from zmq_server import ZMQServer

SAMPLE_SHA = "3f9a2c71d0b84e6fa15c9e07b2d4a8f16c0e5b93"
SAMPLE_REPO = "anza-xyz/agave"

STARTUP_TIMEOUT_S = 2.0
# One poller cycle in ZMQServer.run is 500ms
SHUTDOWN_TIMEOUT_S = 2.0


class SidecarClient:
    """REQ socket to one sidecar port.

    With a token, every outgoing message is stamped with it; without one the
    client behaves like an unknown local process.
    """

    def __init__(self, port: int, token: str | None = None):
        self._ctx = zmq.Context()
        self._sock = self._ctx.socket(zmq.REQ)
        self._sock.setsockopt(zmq.LINGER, 0)
        self._sock.connect(f"tcp://127.0.0.1:{port}")
        self._token = token

    def send_json(self, msg: dict) -> None:
        if self._token is not None:
            msg["_token"] = self._token
        self._sock.send_json(msg)

    def send_raw(self, data: bytes) -> None:
        self._sock.send(data)

    def recv_json(self) -> dict:
        return self._sock.recv_json()

    def poll(self, timeout_ms: int) -> bool:
        return bool(self._sock.poll(timeout_ms))

    def request(self, cmd: str, **body) -> dict:
        """Send one command and return the reply, checking the echoed id."""
        msg_id = str(uuid.uuid4())
        self.send_json({"cmd": cmd, "id": msg_id, **body})
        resp = self.recv_json()
        assert resp.get("id") == msg_id
        return resp

    def close(self) -> None:
        self._sock.close()
        self._ctx.term()


def _wait_until_alive(srv: ZMQServer, timeout: float = STARTUP_TIMEOUT_S) -> bool:
    # Sockets are bound in __init__, so one queued ping is enough; retrying
    # on a REQ socket would need a reply first.
    client = SidecarClient(srv.ping_port, srv.token)
    try:
        client.send_json({"cmd": "ping", "id": "health"})
        if not client.poll(int(timeout * 1000)):
            return False
        return client.recv_json().get("status") == "alive"
    finally:
        client.close()


def _start_sidecar() -> tuple[ZMQServer, threading.Thread]:
    srv = ZMQServer()
    thread = threading.Thread(target=srv.run, name="sidecar", daemon=True)
    thread.start()
    if not _wait_until_alive(srv):
        srv.running = False
        pytest.skip(f"ZMQ server failed to start within {STARTUP_TIMEOUT_S}s")
    return srv, thread


def _stop_sidecar(srv: ZMQServer, thread: threading.Thread) -> None:
    srv.running = False
    thread.join(timeout=SHUTDOWN_TIMEOUT_S)


@pytest.fixture(scope="session")
def _sidecar_session():
    """ONE sidecar per test session (per xdist worker)."""
    srv, thread = _start_sidecar()
    yield srv
    _stop_sidecar(srv, thread)


@pytest.fixture
def zmq_server(_sidecar_session):
    """Shared sidecar with export and timing state reset for this test."""
    _sidecar_session.reset_state()
    yield _sidecar_session


@pytest.fixture
def zmq_server_disposable():
    """Private sidecar for tests that shut it down; torn down afterwards."""
    srv, thread = _start_sidecar()
    yield srv
    _stop_sidecar(srv, thread)


@pytest.fixture
def sidecar_client():
    """Factory for extra clients, closed at teardown: sidecar_client(port, token)."""
    clients: list[SidecarClient] = []

    def connect(port: int, token: str | None = None) -> SidecarClient:
        client = SidecarClient(port, token)
        clients.append(client)
        return client

    yield connect
    for client in clients:
        client.close()


@pytest.fixture
def zmq_client(zmq_server, sidecar_client):
    """Authenticated client on the command port."""
    return sidecar_client(zmq_server.port, zmq_server.token)


@pytest.fixture
def zmq_ping_client(zmq_server, sidecar_client):
    """Authenticated client on the ping port."""
    return sidecar_client(zmq_server.ping_port, zmq_server.token)


@pytest.fixture
def sample_config():
    return ShardConfig.create(
        SAMPLE_SHA, SAMPLE_REPO, title="Fix stake account rent", author="octocat"
    )


@pytest.fixture
def export_dir():
    """Writable export directory outside the blocked system prefixes."""
    base = Path.home() / ".cache" / "commit-shards" / "test-tmp"
    base.mkdir(parents=True, exist_ok=True)
    d = base / f"test_{uuid.uuid4().hex[:8]}"
    d.mkdir()
    yield d
    shutil.rmtree(d, ignore_errors=True)
