"""Layer pipeline — runs every registered layer against one crystal, in draw order.

Includes rolling timing stats per layer and a Sentry breadcrumb per stage
recording how many generator draws the stage consumed. A failing layer is
captured with layer context and re-raised; there are no partial scenes.
"""

import logging
import threading
import time
from collections import defaultdict, deque

import sentry_sdk

from diagnostics import set_current_layer
from layers import registry

logger = logging.getLogger(__name__)

# Per-layer timing threshold (milliseconds)
LAYER_WARN_MS = 50

# Rolling timing stats per layer, shared by concurrent generations
_timing_lock = threading.Lock()
_layer_timing: dict[str, deque] = defaultdict(lambda: deque(maxlen=100))


def _capture_with_context(e: Exception, layer_id: str, extra: dict):
    """Capture exception to Sentry with layer-level context and fingerprint dedup."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("layer_id", layer_id)
        scope.fingerprint = ["layer-crash", layer_id, type(e).__name__]
        scope.set_context("layer", extra)
        sentry_sdk.capture_exception(e, scope=scope)


def record_timing(layer_id: str, elapsed_ms: float):
    """Record a timing sample for a layer."""
    with _timing_lock:
        _layer_timing[layer_id].append(elapsed_ms)


def get_layer_stats() -> dict[str, dict]:
    """Return p50/p95/max per layer."""
    with _timing_lock:
        snapshot = {lid: sorted(samples) for lid, samples in _layer_timing.items()}
    result = {}
    for lid, s in snapshot.items():
        result[lid] = {
            "p50": s[len(s) // 2] if s else 0,
            "p95": s[int(len(s) * 0.95)] if len(s) >= 20 else None,
            "max": max(s) if s else 0,
            "samples": len(s),
        }
    return result


def flush_timing():
    """Clear all timing stats."""
    with _timing_lock:
        _layer_timing.clear()


def compose_layers(crystal) -> tuple[dict[str, list], dict[str, int]]:
    """Compose every registered layer, consuming crystal.rng in draw order.

    Args:
        crystal: Output of engine.geometry.build_crystal; its rng must not
                 have been used since the last shard was built.

    Returns:
        Tuple of (elements keyed by layer id, draws consumed per layer id),
        both in draw order.
    """
    rng = crystal.rng
    elements: dict[str, list] = {}
    draws: dict[str, int] = {}

    for i, layer_id in enumerate(registry.draw_order()):
        info = registry.get(layer_id)
        set_current_layer(layer_id)
        start_draws = rng.draws
        t0 = time.monotonic()

        try:
            composed = info["compose"](rng, crystal)
        except Exception as e:
            _capture_with_context(
                e,
                layer_id,
                {
                    "draw_index": i,
                    "draws_before": start_draws,
                    "short_id": crystal.config.short_id,
                    "canvas_size": crystal.size,
                },
            )
            logger.error(
                "Layer %s failed: %s",
                layer_id,
                type(e).__name__,
                extra={"layer_id": layer_id, "draws": rng.draws - start_draws},
            )
            raise

        elapsed_ms = (time.monotonic() - t0) * 1000
        record_timing(layer_id, elapsed_ms)

        used = rng.draws - start_draws
        elements[layer_id] = composed
        draws[layer_id] = used

        sentry_sdk.add_breadcrumb(
            category="layer",
            message=f"Composed {layer_id}",
            data={"elements": len(composed), "draws": used},
            level="debug",
        )
        logger.debug(
            "Layer %s composed",
            layer_id,
            extra={
                "layer_id": layer_id,
                "elements": len(composed),
                "draws": used,
                "elapsed_ms": round(elapsed_ms, 2),
            },
        )
        if elapsed_ms > LAYER_WARN_MS:
            logger.warning(
                "Layer %s took %.0fms (>%dms warn threshold)",
                layer_id,
                elapsed_ms,
                LAYER_WARN_MS,
            )

    set_current_layer(None)
    return elements, draws
