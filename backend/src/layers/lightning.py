"""Lightning — jittered bolts from the center to shard tips, some branching."""

import math
from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt, path_d

LAYER_ID = "layer.lightning"
LAYER_NAME = "Lightning"
LAYER_SLOT = "body"

MIN_BOLTS = 2
EXTRA_BOLTS = 2
# Only the first few shards are bolt targets.
MAX_TARGET_INDEX = 8
JITTER_PX = 15
BRANCH_JITTER_PX = 8


@dataclass(frozen=True)
class Bolt:
    points: tuple[tuple[float, float], ...]
    hue: float
    sat: float
    lit: float
    alpha: float
    stroke_width: float
    delay: float


def compose(rng, crystal) -> list[Bolt]:
    shards = crystal.shards
    cx, cy = crystal.cx, crystal.cy
    palette = crystal.palette
    bolts = []
    for _ in range(MIN_BOLTS + rng.int_range(0, EXTRA_BOLTS)):
        target = shards[rng.int_range(0, min(len(shards) - 1, MAX_TARGET_INDEX))]
        tx, ty = target.tip

        points = [(cx, cy)]
        segments = 4 + rng.int_range(0, 4)
        for j in range(1, segments + 1):
            t = j / (segments + 1)
            bx = cx + (tx - cx) * t + rng.range(-JITTER_PX, JITTER_PX)
            by = cy + (ty - cy) * t + rng.range(-JITTER_PX, JITTER_PX)
            points.append((bx, by))
        points.append((tx, ty))

        hue = palette.accent_hue if rng.chance(0.5) else palette.base_hue
        delay = rng.range(1.5, 3.0)
        bolts.append(Bolt(tuple(points), hue, 80, 80, 0.7, 1.5, delay))

        if rng.chance(0.4):
            branch_from = rng.int_range(1, segments)
            t = branch_from / (segments + 1)
            sx = cx + (tx - cx) * t
            sy = cy + (ty - cy) * t
            angle = math.atan2(ty - cy, tx - cx) + rng.range(-0.8, 0.8)
            length = rng.range(20, 60)
            mx = sx + math.cos(angle) * length * 0.5 + rng.range(
                -BRANCH_JITTER_PX, BRANCH_JITTER_PX
            )
            my = sy + math.sin(angle) * length * 0.5 + rng.range(
                -BRANCH_JITTER_PX, BRANCH_JITTER_PX
            )
            ex = sx + math.cos(angle) * length
            ey = sy + math.sin(angle) * length
            bolts.append(
                Bolt(((sx, sy), (mx, my), (ex, ey)), hue, 70, 75, 0.4, 0.8, delay + 0.1)
            )
    return bolts


def render(bolts: list[Bolt], crystal) -> str:
    parts = [
        f'<path d="{path_d(b.points)}" stroke="{hsla(b.hue, b.sat, b.lit, b.alpha)}" '
        f'stroke-width="{fmt(b.stroke_width)}" fill="none" filter="url(#lightningGlow)" '
        f'class="lightning-flash" style="animation-delay:{fmt(b.delay)}s"/>'
        for b in bolts
    ]
    return "<g>" + "\n  ".join(parts) + "</g>"
