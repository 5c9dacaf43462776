"""Geometry builder — primary and secondary shard polygons.

Draw order inside this module is part of the determinism contract. Keep every
draw exactly where it is; add new draws only at the end of a shard.
"""

import math
from dataclasses import dataclass

from engine.config import ShardConfig
from engine.determinism import ShardRNG, identifier_bytes, make_rng
from engine.palette import Palette, build_palette

Point = tuple[float, float]

PRIMARY_MIN = 6
PRIMARY_SPREAD = 7
SECONDARY_MIN = 4
SECONDARY_EXTRA_MAX = 6

# Absolute-pixel nudge of the composition center per unit of byte distance
# from 128. Does not scale with canvas size.
CENTER_JITTER_PX = 0.12


@dataclass(frozen=True)
class Shard:
    vertices: tuple[Point, ...]
    hue: float
    sat: float
    lit: float
    opacity: float
    angle: float
    length: float
    tip_index: int = 2
    primary: bool = True

    @property
    def apex(self) -> Point:
        return self.vertices[0]

    @property
    def tip(self) -> Point:
        return self.vertices[self.tip_index]

    @property
    def facets(self) -> int:
        """Extra facet points beyond the base four vertices."""
        return len(self.vertices) - 4


@dataclass
class Crystal:
    """Palette + shards, plus the generator positioned right after them."""

    config: ShardConfig
    data: bytes
    palette: Palette
    cx: float
    cy: float
    shards: list[Shard]
    primary_count: int
    secondary_count: int
    rng: ShardRNG

    @property
    def size(self) -> int:
        return self.config.canvas_size

    @property
    def primary(self) -> list[Shard]:
        return self.shards[: self.primary_count]

    @property
    def secondary(self) -> list[Shard]:
        return self.shards[self.primary_count :]


def primary_count(data: bytes) -> int:
    return PRIMARY_MIN + (data[3] % PRIMARY_SPREAD)


def composition_center(data: bytes, size: int) -> Point:
    cx = size / 2 + (data[4] - 128) * CENTER_JITTER_PX
    cy = size / 2 + (data[5] - 128) * CENTER_JITTER_PX
    return cx, cy


def shard_vertices(
    rng: ShardRNG,
    cx: float,
    cy: float,
    angle: float,
    length: float,
    width: float,
) -> tuple[list[Point], int]:
    """Build one shard outline. Returns (vertices, tip_index).

    Base outline is apex, shoulder, tip, shoulder. Up to two facet points are
    spliced in at fixed positions (third, then fourth) so existing vertices
    keep their relative order.
    """
    cos = math.cos(angle)
    sin = math.sin(angle)
    pc = math.cos(angle + math.pi / 2)
    ps = math.sin(angle + math.pi / 2)

    tip_x = cx + cos * length
    tip_y = cy + sin * length
    base_off = length * rng.range(0.15, 0.35)
    mid_x = cx + cos * base_off
    mid_y = cy + sin * base_off
    w1 = width * rng.range(0.5, 1.0)
    w2 = width * rng.range(0.5, 1.0)

    verts: list[Point] = [
        (cx, cy),
        (mid_x + pc * w1, mid_y + ps * w1),
        (tip_x + pc * width * 0.03, tip_y + ps * width * 0.03),
        (mid_x - pc * w2, mid_y - ps * w2),
    ]
    tip_index = 2

    if rng.chance(0.3):
        t = rng.range(0.35, 0.7)
        ex = cx + cos * length * t
        ey = cy + sin * length * t
        side = 1 if rng.chance(0.5) else -1
        ew = width * rng.range(0.15, 0.45) * side
        verts.insert(2, (ex + pc * ew, ey + ps * ew))
        tip_index += 1

    if rng.chance(0.5):
        t = rng.range(0.5, 0.85)
        ex = cx + cos * length * t
        ey = cy + sin * length * t
        side = 1 if rng.chance(0.5) else -1
        ew = width * rng.range(0.1, 0.3) * side
        verts.insert(3, (ex + pc * ew, ey + ps * ew))
        if tip_index >= 3:
            tip_index += 1

    return verts, tip_index


def build_primary_shards(
    rng: ShardRNG, palette: Palette, cx: float, cy: float, size: int, count: int
) -> list[Shard]:
    shards = []
    for i in range(count):
        angle = (i / count) * math.pi * 2 + rng.range(-0.25, 0.25)
        length = rng.range(size * 0.22, size * 0.44)
        width = rng.range(size * 0.03, size * 0.09)
        vertices, tip_index = shard_vertices(rng, cx, cy, angle, length, width)

        if rng.chance(0.75):
            hue = palette.accent_hue + rng.range(-15, 15)
        else:
            hue = palette.base_hue + rng.range(-25, 25)

        shards.append(
            Shard(
                vertices=tuple(vertices),
                hue=hue,
                sat=palette.base_sat + rng.range(-15, 15),
                lit=rng.range(30, 70),
                opacity=rng.range(0.55, 0.9),
                angle=angle,
                length=length,
                tip_index=tip_index,
            )
        )
    return shards


def build_secondary_shards(
    rng: ShardRNG, palette: Palette, cx: float, cy: float, size: int
) -> list[Shard]:
    """Background debris scattered near the center, dimmer than the primaries."""
    count = SECONDARY_MIN + rng.int_range(0, SECONDARY_EXTRA_MAX)
    shards = []
    for _ in range(count):
        angle = rng.range(0, math.pi * 2)
        dist = rng.range(size * 0.03, size * 0.12)
        ox = cx + math.cos(angle) * dist
        oy = cy + math.sin(angle) * dist
        length = rng.range(size * 0.08, size * 0.22)
        width = rng.range(size * 0.015, size * 0.04)
        axis = angle + rng.range(-0.4, 0.4)
        vertices, tip_index = shard_vertices(rng, ox, oy, axis, length, width)

        shards.append(
            Shard(
                vertices=tuple(vertices),
                hue=palette.base_hue + rng.range(-35, 35),
                sat=palette.base_sat + rng.range(-20, 5),
                lit=rng.range(18, 40),
                opacity=rng.range(0.3, 0.55),
                angle=angle,
                length=length,
                tip_index=tip_index,
                primary=False,
            )
        )
    return shards


def build_crystal(config: ShardConfig) -> Crystal:
    """Seed the generator, pick colors and build every shard.

    The returned crystal's rng is positioned right after the last geometry
    draw; decorative layers continue from there.
    """
    data = identifier_bytes(config.identifier)
    rng = make_rng(data)
    size = config.canvas_size

    palette = build_palette(data, config.collection_name, rng)
    n_primary = primary_count(data)
    cx, cy = composition_center(data, size)

    primary = build_primary_shards(rng, palette, cx, cy, size, n_primary)
    secondary = build_secondary_shards(rng, palette, cx, cy, size)

    return Crystal(
        config=config,
        data=data,
        palette=palette,
        cx=cx,
        cy=cy,
        shards=primary + secondary,
        primary_count=n_primary,
        secondary_count=len(secondary),
        rng=rng,
    )
