"""Energy cracks — jittered polylines between consecutive shard apexes."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt, path_d

LAYER_ID = "layer.cracks"
LAYER_NAME = "Energy Cracks"
LAYER_SLOT = "body"

MAX_CRACKS = 8
# Absolute pixels; does not scale with canvas size.
JITTER_PX = 12


@dataclass(frozen=True)
class Crack:
    points: tuple[tuple[float, float], ...]
    hue: float
    glow: float
    delay: float
    dash: float


def compose(rng, crystal) -> list[Crack]:
    shards = crystal.shards
    palette = crystal.palette
    cracks = []
    for i in range(min(MAX_CRACKS, len(shards) - 1)):
        ax, ay = shards[i].apex
        bx, by = shards[(i + 1) % len(shards)].apex

        points = [(ax, ay)]
        steps = 3 + rng.int_range(0, 4)
        for j in range(1, steps + 1):
            t = j / (steps + 1)
            mx = ax + (bx - ax) * t + rng.range(-JITTER_PX, JITTER_PX)
            my = ay + (by - ay) * t + rng.range(-JITTER_PX, JITTER_PX)
            points.append((mx, my))
        points.append((bx, by))

        hue = palette.accent_hue if rng.chance(0.7) else palette.base_hue
        glow = rng.range(0.3, 0.8)
        dash = rng.range(100, 300)
        cracks.append(Crack(tuple(points), hue, glow, 0.8 + i * 0.1, dash))
    return cracks


def render(cracks: list[Crack], crystal) -> str:
    parts = []
    for c in cracks:
        dash = fmt(c.dash)
        parts.append(
            f'<path d="{path_d(c.points)}" stroke="{hsla(c.hue, 70, 75, c.glow)}" '
            f'stroke-width="1" fill="none" filter="url(#crackGlow)" '
            f'class="crack-draw" style="animation-delay:{fmt(c.delay, 2)}s" '
            f'stroke-dasharray="{dash}" stroke-dashoffset="{dash}"/>'
        )
    return '<g opacity="0.7">' + "\n  ".join(parts) + "</g>"
