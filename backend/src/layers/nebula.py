"""Nebula — soft blurred clouds around the center plus two fixed core glows."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt

LAYER_ID = "layer.nebula"
LAYER_NAME = "Nebula"
LAYER_SLOT = "body"

MIN_CLOUDS = 3
EXTRA_CLOUDS = 3


@dataclass(frozen=True)
class Cloud:
    x: float
    y: float
    rx: float
    ry: float
    rotation: float | None
    hue: float
    sat: float
    lit: float
    opacity: float


def compose(rng, crystal) -> list[Cloud]:
    size = crystal.size
    cx, cy = crystal.cx, crystal.cy
    palette = crystal.palette
    clouds = []
    for _ in range(MIN_CLOUDS + rng.int_range(0, EXTRA_CLOUDS)):
        x = cx + rng.range(-size * 0.3, size * 0.3)
        y = cy + rng.range(-size * 0.3, size * 0.3)
        rx = rng.range(size * 0.15, size * 0.4)
        ry = rng.range(size * 0.1, size * 0.35)
        rotation = rng.range(0, 360)
        hue = palette.accent_hue if rng.chance(0.6) else palette.base_hue
        opacity = rng.range(0.04, 0.12)
        clouds.append(Cloud(x, y, rx, ry, rotation, hue, 40, 25, opacity))

    # Bright core around the center
    clouds.append(
        Cloud(cx, cy, size * 0.18, size * 0.18, None, palette.base_hue, 50, 20, 0.08)
    )
    clouds.append(
        Cloud(cx, cy, size * 0.1, size * 0.1, None, palette.base_hue, 60, 30, 0.06)
    )
    return clouds


def render(clouds: list[Cloud], crystal) -> str:
    parts = []
    for c in clouds:
        transform = ""
        if c.rotation is not None:
            transform = (
                f' transform="rotate({fmt(c.rotation, 0)} {fmt(c.x)} {fmt(c.y)})"'
            )
        parts.append(
            f'<ellipse cx="{fmt(c.x)}" cy="{fmt(c.y)}" rx="{fmt(c.rx)}" ry="{fmt(c.ry)}"'
            f'{transform} fill="{hsla(c.hue, c.sat, c.lit, c.opacity)}" '
            f'filter="url(#nebulaBlur)"/>'
        )
    return '<g class="nebula-pulse">' + "\n  ".join(parts) + "</g>"
