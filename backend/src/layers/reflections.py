"""Reflections — small bright inset triangles on roughly half the shards."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt_points

LAYER_ID = "layer.reflections"
LAYER_NAME = "Reflections"
LAYER_SLOT = "body"


@dataclass(frozen=True)
class Reflection:
    points: tuple[tuple[float, float], ...]
    hue: float
    sat: float
    lit: float


def compose(rng, crystal) -> list[Reflection]:
    refs = []
    for shard in crystal.shards:
        # Coin flip first: the draw happens for every shard.
        if rng.chance(0.5):
            continue
        v = shard.vertices
        if len(v) < 4:
            continue
        t = rng.range(0.3, 0.6)
        ax, ay = v[0]
        points = tuple((ax + (x - ax) * t, ay + (y - ay) * t) for x, y in v[:3])
        refs.append(Reflection(points, shard.hue, shard.sat - 10, shard.lit + 35))
    return refs


def render(refs: list[Reflection], crystal) -> str:
    parts = [
        f'<polygon points="{fmt_points(r.points)}" '
        f'fill="{hsla(r.hue, r.sat, r.lit, 0.15)}" class="reflection-pulse"/>'
        for r in refs
    ]
    return "<g>" + "\n  ".join(parts) + "</g>"
