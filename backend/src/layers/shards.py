"""Shards — crystal polygons with edge highlight and inner reflection line.

Spawn animation is staggered by generation index, so visual spawn order is
the order shards were drawn from the generator.
"""

from dataclasses import dataclass

from engine.geometry import Shard
from engine.palette import hsla
from engine.svg import fmt, fmt_points, path_d
from layers.gradients import gradient_id

LAYER_ID = "layer.shards"
LAYER_NAME = "Shards"
LAYER_SLOT = "body"

SPAWN_STAGGER_S = 0.12


@dataclass(frozen=True)
class ShardSprite:
    index: int
    shard: Shard
    delay: float


def compose(rng, crystal) -> list[ShardSprite]:
    return [
        ShardSprite(i, shard, i * SPAWN_STAGGER_S)
        for i, shard in enumerate(crystal.shards)
    ]


def _render_one(sprite: ShardSprite, crystal) -> str:
    s = sprite.shard
    v = s.vertices
    edge = path_d(v[:3])
    mid = v[len(v) // 2]
    origin = f"{fmt(crystal.cx)}px {fmt(crystal.cy)}px"
    return (
        f'<g class="shard-spawn" style="animation-delay:{fmt(sprite.delay, 2)}s; '
        f'transform-origin:{origin}" opacity="{fmt(s.opacity, 3)}">\n'
        f'      <polygon points="{fmt_points(v)}" fill="url(#{gradient_id(sprite.index)})" '
        f'stroke="{hsla(s.hue, s.sat + 10, s.lit + 30, 0.7)}" stroke-width="0.6"/>\n'
        f'      <path d="{edge}" fill="none" '
        f'stroke="{hsla(s.hue, s.sat, s.lit + 40, 0.4)}" stroke-width="1.2" '
        f'filter="url(#hardGlow)"/>\n'
        f'      <line x1="{fmt(v[0][0])}" y1="{fmt(v[0][1])}" '
        f'x2="{fmt(mid[0])}" y2="{fmt(mid[1])}" '
        f'stroke="{hsla(s.hue, s.sat, s.lit + 35, 0.25)}" stroke-width="0.7"/>\n'
        f"    </g>"
    )


def render(sprites: list[ShardSprite], crystal) -> str:
    body = "\n    ".join(_render_one(sprite, crystal) for sprite in sprites)
    return f'<g filter="url(#shardGlow)">\n    {body}\n  </g>'
