"""Particles — small glowing dots drifting around the center."""

import math
from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt

LAYER_ID = "layer.particles"
LAYER_NAME = "Particles"
LAYER_SLOT = "body"

MIN_PARTICLES = 15
EXTRA_PARTICLES = 19


@dataclass(frozen=True)
class Particle:
    x: float
    y: float
    r: float
    hue: float
    lit: float
    alpha: float
    drift: float
    duration: float
    delay: float


def compose(rng, crystal) -> list[Particle]:
    size = crystal.size
    cx, cy = crystal.cx, crystal.cy
    palette = crystal.palette
    particles = []
    for _ in range(MIN_PARTICLES + rng.int_range(0, EXTRA_PARTICLES)):
        angle = rng.range(0, math.pi * 2)
        dist = rng.range(size * 0.05, size * 0.45)
        x = cx + math.cos(angle) * dist
        y = cy + math.sin(angle) * dist
        r = rng.range(0.5, 3.0)
        if rng.chance(0.7):
            hue = palette.accent_hue
        else:
            hue = palette.base_hue + rng.range(-20, 20)
        particles.append(
            Particle(
                x=x,
                y=y,
                r=r,
                hue=hue,
                lit=rng.range(55, 85),
                alpha=rng.range(0.2, 0.6),
                drift=rng.range(8, 25),
                duration=rng.range(3, 7),
                delay=rng.range(0, 3),
            )
        )
    return particles


def render(particles: list[Particle], crystal) -> str:
    parts = [
        f'<circle cx="{fmt(p.x)}" cy="{fmt(p.y)}" r="{fmt(p.r)}" '
        f'fill="{hsla(p.hue, 60, p.lit, p.alpha)}" filter="url(#softGlow)" '
        f'class="particle-drift" style="--drift:{fmt(p.drift)}px;'
        f'animation-duration:{fmt(p.duration)}s;animation-delay:{fmt(p.delay)}s"/>'
        for p in particles
    ]
    return "<g>" + "\n  ".join(parts) + "</g>"
