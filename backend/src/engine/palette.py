"""Color model — base/accent hue and saturation from identifier bytes."""

import math
from dataclasses import dataclass

from engine.determinism import ShardRNG
from engine.svg import ALPHA_PLACES, fmt

# Known projects get a fixed signature hue instead of the hash-derived one.
REPO_HUES: dict[str, int] = {
    "agave": 160,
    "solana": 170,
    "anchor": 210,
    "metaplex": 280,
}

ANALOGOUS = "analogous"
COMPLEMENTARY = "complementary"


@dataclass(frozen=True)
class Palette:
    base_hue: float
    accent_hue: float
    base_sat: int
    accent_mode: str
    repo_key: str | None = None

    @property
    def background_hue(self) -> float:
        return (self.base_hue + 180) % 360


def repo_key(collection_name: str) -> str:
    """Lower-cased last path segment: 'anza-xyz/Agave' -> 'agave'."""
    return collection_name.lower().split("/")[-1]


def repo_hue(collection_name: str, fallback: int) -> int:
    return REPO_HUES.get(repo_key(collection_name), fallback)


def build_palette(data: bytes, collection_name: str, rng: ShardRNG) -> Palette:
    """Pick hues. Consumes the first draw(s) after seeding.

    The accent branch draw must happen before any shard geometry is drawn.
    """
    hash_hue = ((data[0] << 8) | data[1]) % 360
    base_hue = repo_hue(collection_name, hash_hue)
    base_sat = 55 + (data[2] % 35)

    if rng.chance(0.5):
        accent_hue = (base_hue + 30 + rng.range(0, 20)) % 360
        mode = ANALOGOUS
    else:
        accent_hue = (base_hue + 150 + rng.range(0, 60)) % 360
        mode = COMPLEMENTARY

    key = repo_key(collection_name)
    return Palette(
        base_hue=base_hue,
        accent_hue=accent_hue,
        base_sat=base_sat,
        accent_mode=mode,
        repo_key=key if key in REPO_HUES else None,
    )


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def hsla(h: float, s: float, light: float, a: float = 1.0) -> str:
    """CSS hsla() with integer degrees/percents and three-decimal alpha."""
    hue = math.floor(h + 0.5) % 360
    sat = fmt(_clamp(s, 0, 100), 0)
    lit = fmt(_clamp(light, 0, 100), 0)
    alpha = fmt(_clamp(a, 0.0, 1.0), ALPHA_PLACES)
    return f"hsla({hue}, {sat}%, {lit}%, {alpha})"
