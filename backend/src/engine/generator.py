"""Core entry point: config in, document + traits out.

Every call builds its own generator, so concurrent calls for different
identifiers never share state and never see each other's draws.
"""

import logging
from dataclasses import dataclass

from diagnostics import piece_context
from engine.config import DEFAULT_CANVAS_SIZE, ShardConfig
from engine.renderer import render_document
from engine.scene import build_scene
from engine.traits import Trait, traits_from_crystal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationResult:
    document: str
    traits: list[Trait]

    def traits_as_dicts(self) -> list[dict]:
        return [{"name": t.name, "value": t.value} for t in self.traits]


def generate_from_config(config: ShardConfig) -> GenerationResult:
    with piece_context(config.short_id, config.canvas_size):
        scene = build_scene(config)
        # Geometry is untouched by the decorative layers, so traits can be read
        # from the same crystal after composition.
        traits = traits_from_crystal(scene.crystal)
        document = render_document(scene)
        logger.debug(
            "Generated %s: %d bytes",
            config.short_id,
            len(document),
            extra={"draws": scene.total_draws},
        )
    return GenerationResult(document=document, traits=traits)


def generate(
    identifier: str,
    collection_name: str,
    title: str | None = None,
    author: str | None = None,
    canvas_size: int = DEFAULT_CANVAS_SIZE,
) -> GenerationResult:
    """Generate one piece.

    Raises:
        InvalidIdentifier: Empty or non-hex identifier. Nothing is generated.
        InvalidCanvasSize: Non-positive or non-integer canvas size.
    """
    config = ShardConfig.create(
        identifier,
        collection_name,
        title=title,
        author=author,
        canvas_size=canvas_size,
    )
    return generate_from_config(config)
