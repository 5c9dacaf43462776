"""Trait extractor — name/value summary of a piece for minting collaborators.

Traits read only the identifier bytes, the palette draw and the geometry
draws. Decorative layers can change without moving any trait value.
"""

from dataclasses import dataclass

import numpy as np

from engine.config import ShardConfig
from engine.geometry import Crystal, Shard, build_crystal
from engine.palette import ANALOGOUS

GENERATOR_VERSION = "v2-crystal"

HUE_BANDS = (
    "Crimson",
    "Amber",
    "Lime",
    "Emerald",
    "Cyan",
    "Azure",
    "Violet",
    "Magenta",
)
HUE_BAND_WIDTH = 360 / len(HUE_BANDS)

# Mean extra facets per shard; expected value is 1.2
COMPLEXITY_TIERS = ((0.9, "Simple"), (1.4, "Faceted"))
COMPLEXITY_MAX = "Intricate"


@dataclass(frozen=True)
class Trait:
    name: str
    value: str

    def as_attribute(self) -> dict:
        return {"trait_type": self.name, "value": self.value}


def formation(count: int) -> str:
    if count <= 7:
        return "Sparse"
    if count <= 10:
        return "Balanced"
    return "Dense"


def hue_band(hue: float) -> str:
    return HUE_BANDS[int((hue % 360) // HUE_BAND_WIDTH)]


def saturation_tier(sat: int) -> str:
    if sat < 65:
        return "Muted"
    if sat < 78:
        return "Rich"
    return "Vivid"


def complexity(shards: list[Shard]) -> str:
    mean = sum(s.facets for s in shards) / len(shards)
    for limit, name in COMPLEXITY_TIERS:
        if mean < limit:
            return name
    return COMPLEXITY_MAX


def polygon_area(vertices) -> float:
    """Shoelace area of a simple polygon."""
    pts = np.asarray(vertices, dtype=np.float64)
    x, y = pts[:, 0], pts[:, 1]
    return 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def crystal_mass(crystal: Crystal) -> int:
    """Primary shard area as an integer percent of the canvas (overlap counted twice)."""
    area = sum(polygon_area(s.vertices) for s in crystal.primary)
    return int(round(100 * area / (crystal.size * crystal.size)))


def traits_from_crystal(crystal: Crystal) -> list[Trait]:
    palette = crystal.palette
    return [
        Trait("Formation", formation(crystal.primary_count)),
        Trait("Primary Shards", str(crystal.primary_count)),
        Trait("Debris", str(crystal.secondary_count)),
        Trait("Hue Band", hue_band(palette.base_hue)),
        Trait(
            "Palette",
            "Analogous" if palette.accent_mode == ANALOGOUS else "Complementary",
        ),
        Trait("Saturation", saturation_tier(palette.base_sat)),
        Trait("Complexity", complexity(crystal.shards)),
        Trait("Crystal Mass", f"{crystal_mass(crystal)}%"),
        Trait(
            "Lineage",
            palette.repo_key.title() if palette.repo_key else "Independent",
        ),
        Trait("Generator", GENERATOR_VERSION),
    ]


def extract_traits(config: ShardConfig) -> list[Trait]:
    """Traits for a config. Runs the geometry stage only, on its own generator."""
    return traits_from_crystal(build_crystal(config))
