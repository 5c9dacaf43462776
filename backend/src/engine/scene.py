"""Scene — all visual elements of one piece, composed but not yet serialized."""

from dataclasses import dataclass

from engine.config import ShardConfig
from engine.geometry import Crystal, build_crystal
from engine.pipeline import compose_layers


@dataclass
class Scene:
    crystal: Crystal
    layers: dict[str, list]
    draws: dict[str, int]

    @property
    def config(self) -> ShardConfig:
        return self.crystal.config

    @property
    def total_draws(self) -> int:
        return self.crystal.rng.draws


def compose_scene(crystal: Crystal) -> Scene:
    """Run every decorative layer after the crystal's geometry draws."""
    layers, draws = compose_layers(crystal)
    return Scene(crystal=crystal, layers=layers, draws=draws)


def build_scene(config: ShardConfig) -> Scene:
    return compose_scene(build_crystal(config))
