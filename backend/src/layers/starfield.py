"""Starfield — scattered background stars, some tinted, some twinkling."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt

LAYER_ID = "layer.starfield"
LAYER_NAME = "Starfield"
LAYER_SLOT = "body"

MIN_STARS = 80
EXTRA_STARS = 60


@dataclass(frozen=True)
class Star:
    x: float
    y: float
    r: float
    brightness: float
    hue: float
    sat: float
    twinkle_delay: float | None


def compose(rng, crystal) -> list[Star]:
    size = crystal.size
    hue = crystal.palette.base_hue
    stars = []
    for _ in range(MIN_STARS + rng.int_range(0, EXTRA_STARS)):
        x = rng.range(0, size)
        y = rng.range(0, size)
        r = rng.range(0.3, 1.8)
        brightness = rng.range(0.15, 0.7)
        twinkle = rng.chance(0.7)
        if rng.chance(0.8):
            star_hue = hue + rng.range(-30, 30)
            star_sat = rng.range(20, 50)
        else:
            star_hue, star_sat = 0.0, 0.0
        delay = rng.range(0, 4) if twinkle else None
        stars.append(Star(x, y, r, brightness, star_hue, star_sat, delay))
    return stars


def render(stars: list[Star], crystal) -> str:
    parts = []
    for s in stars:
        cls = ""
        if s.twinkle_delay is not None:
            cls = f' class="twinkle" style="animation-delay:{fmt(s.twinkle_delay)}s"'
        parts.append(
            f'<circle cx="{fmt(s.x)}" cy="{fmt(s.y)}" r="{fmt(s.r)}" '
            f'fill="{hsla(s.hue, s.sat, 90, s.brightness)}"{cls}/>'
        )
    return "<g>" + "\n  ".join(parts) + "</g>"
