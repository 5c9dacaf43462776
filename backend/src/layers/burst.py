"""Center burst — three concentric rings with a continuous core pulse."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt

LAYER_ID = "layer.burst"
LAYER_NAME = "Center Burst"
LAYER_SLOT = "body"

RING_RATIOS = (0.15, 0.06, 0.025)


@dataclass(frozen=True)
class Burst:
    cx: float
    cy: float
    radii: tuple[float, float, float]
    hue: float
    sat: float


def compose(rng, crystal) -> list[Burst]:
    size = crystal.size
    radii = tuple(size * ratio for ratio in RING_RATIOS)
    palette = crystal.palette
    return [Burst(crystal.cx, crystal.cy, radii, palette.base_hue, palette.base_sat)]


def render(bursts: list[Burst], crystal) -> str:
    parts = []
    for b in bursts:
        x, y = fmt(b.cx), fmt(b.cy)
        r1, r2, r3 = (fmt(r) for r in b.radii)
        parts.append(
            f'<g class="burst-fade">\n'
            f'    <circle cx="{x}" cy="{y}" r="{r1}" fill="url(#burstGrad)" '
            f'filter="url(#softGlow)"/>\n'
            f'    <circle cx="{x}" cy="{y}" r="{r2}" fill="{hsla(b.hue, b.sat, 80, 0.5)}" '
            f'filter="url(#softGlow)"/>\n'
            f'    <circle cx="{x}" cy="{y}" r="{r3}" fill="{hsla(b.hue, b.sat, 95, 0.9)}" '
            f'filter="url(#hardGlow)" class="core-pulse"/>\n'
            f"  </g>"
        )
    return "\n  ".join(parts)
