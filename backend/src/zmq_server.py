import json
import logging
import time
import uuid

import sentry_sdk
import zmq

from diagnostics import piece_of
from engine.config import ShardConfig
from engine.errors import ShardConfigError
from engine.export import ExportManager
from engine.generator import generate_from_config
from engine.metadata import build_metadata
from engine.pipeline import flush_timing, get_layer_stats
from engine.traits import extract_traits
from layers import registry
from security import validate_batch_size, validate_output_dir

logger = logging.getLogger(__name__)


def config_from_message(message: dict) -> ShardConfig:
    """Build a validated config from a request body.

    Raises:
        ShardConfigError: Rejected identifier, canvas size or text field.
    """
    kwargs = {}
    if "canvas_size" in message:
        kwargs["canvas_size"] = message["canvas_size"]
    return ShardConfig.create(
        message.get("identifier"),
        message.get("collection_name", ""),
        title=message.get("title"),
        author=message.get("author"),
        **kwargs,
    )


class ZMQServer:
    def __init__(self):
        self.context = zmq.Context()
        self.socket = self.context.socket(zmq.REP)
        self.socket.setsockopt(zmq.MAXMSGSIZE, 1_048_576)  # 1 MB limit
        self.port = self.socket.bind_to_random_port("tcp://127.0.0.1")
        # Dedicated ping socket, never blocked by batch renders
        self.ping_socket = self.context.socket(zmq.REP)
        self.ping_socket.setsockopt(zmq.MAXMSGSIZE, 4096)  # 4 KB limit (pings only)
        self.ping_port = self.ping_socket.bind_to_random_port("tcp://127.0.0.1")
        # Auth token — prevents unauthorized ZMQ access from other local processes
        self.token = str(uuid.uuid4())
        self.start_time = time.time()
        self.running = False
        self.last_render_ms = 0.0
        self.export_manager = ExportManager()

    def reset_state(self):
        """Clear accumulated state without closing sockets/context.

        Used by session-scoped test fixtures to reset between tests
        while keeping the server running.
        """
        # Cancel any in-flight export
        self.export_manager.cancel()
        self.export_manager = ExportManager()

        flush_timing()
        self.last_render_ms = 0.0

    def _validate_token(self, message: dict) -> str | None:
        """Validate auth token. Returns error message or None if valid."""
        msg_token = message.get("_token")
        if msg_token != self.token:
            return "invalid or missing auth token"
        return None

    def _make_ping_response(self, msg_id: str | None) -> dict:
        return {
            "id": msg_id,
            "status": "alive",
            "uptime_s": round(time.time() - self.start_time, 1),
            "last_render_ms": self.last_render_ms,
        }

    def handle_message(self, message: dict) -> dict:
        cmd = message.get("cmd")
        msg_id = message.get("id")

        # Auth token required on all commands
        token_err = self._validate_token(message)
        if token_err:
            return {"id": msg_id, "ok": False, "error": token_err}

        if cmd == "ping":
            return self._make_ping_response(msg_id)
        elif cmd == "shutdown":
            self.running = False
            return {"id": msg_id, "ok": True}
        elif cmd == "generate":
            return self._handle_generate(message, msg_id)
        elif cmd == "traits":
            return self._handle_traits(message, msg_id)
        elif cmd == "metadata":
            return self._handle_metadata(message, msg_id)
        elif cmd == "list_layers":
            return {"id": msg_id, "ok": True, "layers": registry.list_all()}
        elif cmd == "layer_stats":
            return {"id": msg_id, "ok": True, "stats": get_layer_stats()}
        elif cmd == "flush_state":
            flush_timing()
            return {"id": msg_id, "ok": True}
        elif cmd == "export_start":
            return self._handle_export_start(message, msg_id)
        elif cmd == "export_status":
            return self._handle_export_status(msg_id)
        elif cmd == "export_cancel":
            return self._handle_export_cancel(msg_id)
        else:
            return {"id": msg_id, "ok": False, "error": f"unknown: {cmd}"}

    def _handle_generate(self, message: dict, msg_id: str | None) -> dict:
        try:
            config = config_from_message(message)
        except ShardConfigError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}

        try:
            t0 = time.time()
            result = generate_from_config(config)
            self.last_render_ms = round((time.time() - t0) * 1000, 2)
            return {
                "id": msg_id,
                "ok": True,
                "identifier": config.identifier,
                "document": result.document,
                "traits": result.traits_as_dicts(),
            }
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error(
                "Generate handler error: %s", type(e).__name__, extra=piece_of(e)
            )
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _handle_traits(self, message: dict, msg_id: str | None) -> dict:
        try:
            config = config_from_message(message)
        except ShardConfigError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}

        try:
            traits = extract_traits(config)
            return {
                "id": msg_id,
                "ok": True,
                "traits": [{"name": t.name, "value": t.value} for t in traits],
            }
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Traits handler error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _handle_metadata(self, message: dict, msg_id: str | None) -> dict:
        try:
            config = config_from_message(message)
        except ShardConfigError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}

        image_uri = message.get("image_uri")
        if image_uri is not None and not isinstance(image_uri, str):
            return {"id": msg_id, "ok": False, "error": "image_uri must be a string"}

        try:
            metadata = build_metadata(config, extract_traits(config), image_uri)
            return {"id": msg_id, "ok": True, "metadata": metadata}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Metadata handler error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _handle_export_start(self, message: dict, msg_id: str | None) -> dict:
        items = message.get("items")
        output_dir = message.get("output_dir")

        if not isinstance(items, list):
            return {"id": msg_id, "ok": False, "error": "missing items"}
        if not output_dir:
            return {"id": msg_id, "ok": False, "error": "missing output_dir"}

        errors = validate_batch_size(items)
        if errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(errors)}

        # Prevents writing to system dirs
        out_errors = validate_output_dir(output_dir)
        if out_errors:
            return {"id": msg_id, "ok": False, "error": "; ".join(out_errors)}

        # Validate every item before any work starts; no partial batches
        configs = []
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                return {"id": msg_id, "ok": False, "error": f"item {i}: not an object"}
            try:
                configs.append(config_from_message(item))
            except ShardConfigError as e:
                return {"id": msg_id, "ok": False, "error": f"item {i}: {e}"}

        try:
            self.export_manager.start(configs, output_dir)
            return {"id": msg_id, "ok": True, "total_items": len(configs)}
        except RuntimeError as e:
            return {"id": msg_id, "ok": False, "error": str(e)}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Export start error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _handle_export_status(self, msg_id: str | None) -> dict:
        try:
            status = self.export_manager.get_status()
            status["id"] = msg_id
            status["ok"] = True
            return status
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Export status error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def _handle_export_cancel(self, msg_id: str | None) -> dict:
        try:
            cancelled = self.export_manager.cancel()
            return {"id": msg_id, "ok": True, "cancelled": cancelled}
        except Exception as e:
            sentry_sdk.capture_exception(e)
            logger.error("Export cancel error: %s", type(e).__name__)
            return {"id": msg_id, "ok": False, "error": "Internal processing error"}

    def run(self):
        self.running = True
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self.ping_socket, zmq.POLLIN)
        while self.running:
            events = dict(poller.poll(timeout=500))

            # Handle ping socket first (lightweight, never blocked)
            if self.ping_socket in events:
                try:
                    raw = self.ping_socket.recv()
                    message = json.loads(raw)
                    if not isinstance(message, dict):
                        raise ValueError("not an object")
                    msg_id = message.get("id")
                    token_err = self._validate_token(message)
                    if token_err:
                        self.ping_socket.send_json(
                            {"id": msg_id, "ok": False, "error": token_err}
                        )
                    else:
                        self.ping_socket.send_json(self._make_ping_response(msg_id))
                except ValueError:
                    # Bad JSON, bad UTF-8 or a non-object payload
                    self.ping_socket.send_json(
                        {"ok": False, "error": "Invalid message format"}
                    )
                except zmq.ZMQError:
                    logger.error("ZMQ error on ping socket")
                    break  # socket state is unrecoverable

            # Handle main command socket
            if self.socket in events:
                try:
                    raw = self.socket.recv()
                    message = json.loads(raw)
                except ValueError:
                    # MUST send reply before next recv (REP protocol)
                    self.socket.send_json(
                        {"ok": False, "error": "Invalid message format"}
                    )
                    continue
                except zmq.ZMQError:
                    logger.error("ZMQ error on main socket")
                    break

                if not isinstance(message, dict):
                    self.socket.send_json(
                        {"ok": False, "error": "Invalid message format"}
                    )
                    continue

                try:
                    response = self.handle_message(message)
                except Exception as e:
                    sentry_sdk.capture_exception(e)
                    logger.error("Unhandled handler error: %s", type(e).__name__)
                    response = {"ok": False, "error": "Internal processing error"}

                self.socket.send_json(response)
        self.close()

    def close(self):
        self.export_manager.cancel()
        self.ping_socket.close()
        self.socket.close()
        self.context.term()
