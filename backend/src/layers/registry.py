"""Layer registry — central lookup for all scene layers.

Registration order is DRAW order: the order in which layers consume the
shared generator. Paint order is decided by the renderer.
"""

from typing import Any, Callable

ComposeFn = Callable[..., list[Any]]
RenderFn = Callable[..., str]

_REGISTRY: dict[str, dict] = {}


def register(
    layer_id: str, compose: ComposeFn, render: RenderFn, name: str, slot: str
):
    """Register a layer. Re-registering an id keeps its original draw position."""
    _REGISTRY[layer_id] = {
        "compose": compose,
        "render": render,
        "name": name,
        "slot": slot,
    }


def get(layer_id: str) -> dict | None:
    """Get layer info by ID."""
    return _REGISTRY.get(layer_id)


def draw_order() -> list[str]:
    """Layer ids in the order they consume the generator."""
    return list(_REGISTRY)


def list_all() -> list[dict]:
    """List all registered layers with metadata, in draw order."""
    return [
        {
            "id": lid,
            "name": info["name"],
            "slot": info["slot"],
            "draw_index": i,
        }
        for i, (lid, info) in enumerate(_REGISTRY.items())
    ]


def _auto_register():
    """Import and register all built-in layers in draw order."""
    from layers import (
        starfield,
        nebula,
        gradients,
        shards,
        reflections,
        cracks,
        lightning,
        particles,
        burst,
        caption,
    )

    for mod in [
        starfield,
        nebula,
        gradients,
        shards,
        reflections,
        cracks,
        lightning,
        particles,
        burst,
        caption,
    ]:
        register(
            mod.LAYER_ID, mod.compose, mod.render, mod.LAYER_NAME, mod.LAYER_SLOT
        )


_auto_register()
