"""Shard gradients — one rotated linear gradient per shard, emitted into <defs>."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt

LAYER_ID = "layer.gradients"
LAYER_NAME = "Shard Gradients"
LAYER_SLOT = "defs"

# (offset %, hue shift, saturation shift, lightness shift, alpha)
STOP_PROFILE = (
    (0, 0, 10, 25, 0.9),
    (30, 0, 0, 10, 1.0),
    (70, 0, 0, 0, 1.0),
    (100, 15, -10, -20, 1.0),
)


@dataclass(frozen=True)
class ShardGradient:
    index: int
    angle: float
    hue: float
    sat: float
    lit: float


def gradient_id(index: int) -> str:
    return f"sg{index}"


def compose(rng, crystal) -> list[ShardGradient]:
    return [
        ShardGradient(i, rng.range(0, 360), s.hue, s.sat, s.lit)
        for i, s in enumerate(crystal.shards)
    ]


def render(gradients: list[ShardGradient], crystal) -> str:
    parts = []
    for g in gradients:
        stops = "\n      ".join(
            f'<stop offset="{offset}%" '
            f'stop-color="{hsla(g.hue + dh, g.sat + ds, g.lit + dl, alpha)}"/>'
            for offset, dh, ds, dl, alpha in STOP_PROFILE
        )
        parts.append(
            f'<linearGradient id="{gradient_id(g.index)}" '
            f'gradientTransform="rotate({fmt(g.angle, 0)})">\n      {stops}\n    '
            f"</linearGradient>"
        )
    return "\n    ".join(parts)
