"""Tests for the sidecar transport: ping, auth token, malformed input, shutdown."""

import uuid


def test_ping_pong(zmq_client):
    resp = zmq_client.request("ping")
    assert resp["status"] == "alive"
    assert isinstance(resp["uptime_s"], float)
    assert resp["last_render_ms"] == 0.0


def test_ping_socket_answers(zmq_ping_client):
    zmq_ping_client.send_json({"cmd": "ping", "id": "p1"})
    resp = zmq_ping_client.recv_json()
    assert resp["id"] == "p1"
    assert resp["status"] == "alive"


def test_ping_socket_requires_token(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.ping_port)
    client.send_json({"cmd": "ping", "id": "p2"})
    resp = client.recv_json()
    assert resp["ok"] is False
    assert "token" in resp["error"]


def test_ping_socket_rejects_non_object(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.ping_port)
    client.send_raw(b'"ping"')
    assert client.recv_json() == {"ok": False, "error": "Invalid message format"}


def test_unknown_command(zmq_client):
    resp = zmq_client.request("foobar")
    assert resp["ok"] is False
    assert "unknown" in resp["error"]


def test_unauthenticated_message_rejected(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.port)
    client.send_json({"cmd": "generate", "id": "no-token", "identifier": "abc"})
    resp = client.recv_json()
    assert resp["ok"] is False
    assert "token" in resp["error"]
    assert "document" not in resp


def test_wrong_token_rejected(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.port, token="wrong-token-value")
    client.send_json({"cmd": "ping", "id": "bad"})
    resp = client.recv_json()
    assert resp["ok"] is False
    assert "token" in resp["error"]


def test_invalid_json_gets_reply(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.port)
    client.send_raw(b"{not json")
    assert client.recv_json() == {"ok": False, "error": "Invalid message format"}


def test_non_object_json_gets_reply(zmq_server, sidecar_client):
    client = sidecar_client(zmq_server.port)
    client.send_raw(b'["ping"]')
    assert client.recv_json() == {"ok": False, "error": "Invalid message format"}


def test_server_keeps_serving_after_bad_input(zmq_server, zmq_client, sidecar_client):
    bad = sidecar_client(zmq_server.port)
    bad.send_raw(b"\xc3\x28")
    assert bad.recv_json()["ok"] is False
    assert zmq_client.request("ping")["status"] == "alive"


def test_shutdown_stops_run_loop(zmq_server_disposable, sidecar_client):
    assert zmq_server_disposable.running is True
    client = sidecar_client(zmq_server_disposable.port, zmq_server_disposable.token)
    msg_id = str(uuid.uuid4())
    client.send_json({"cmd": "shutdown", "id": msg_id})
    resp = client.recv_json()
    assert resp["id"] == msg_id
    assert resp["ok"] is True
    assert zmq_server_disposable.running is False


def test_shutdown_without_id(zmq_server_disposable, sidecar_client):
    client = sidecar_client(zmq_server_disposable.port, zmq_server_disposable.token)
    client.send_json({"cmd": "shutdown"})
    resp = client.recv_json()
    assert resp["ok"] is True
    assert resp["id"] is None
