"""SVG renderer — serializes a composed Scene into one self-contained document.

Paint order (later on top): background, nebula, stars, vignette, shards,
reflections, cracks, lightning, particles, scanlines, center burst, caption.
No generator draws happen here; everything random was fixed by the composer.
"""

from engine.palette import hsla
from engine.scene import Scene
from engine.svg import fmt
from layers import registry

SVG_NS = "http://www.w3.org/2000/svg"

# Layer ids painted in the document body, bottom to top. "@vignette" and
# "@scanlines" are static overlays owned by the renderer.
PAINT_ORDER = (
    "layer.nebula",
    "layer.starfield",
    "@vignette",
    "layer.shards",
    "layer.reflections",
    "layer.cracks",
    "layer.lightning",
    "layer.particles",
    "@scanlines",
    "layer.burst",
    "layer.caption",
)

FILTER_IDS = (
    "shardGlow",
    "nebulaBlur",
    "softGlow",
    "crackGlow",
    "hardGlow",
    "lightningGlow",
)

_FILTERS = """<filter id="shardGlow" x="-30%" y="-30%" width="160%" height="160%">
      <feGaussianBlur in="SourceGraphic" stdDeviation="2" result="blur1"/>
      <feGaussianBlur in="SourceGraphic" stdDeviation="6" result="blur2"/>
      <feMerge>
        <feMergeNode in="blur2"/>
        <feMergeNode in="blur1"/>
        <feMergeNode in="SourceGraphic"/>
      </feMerge>
    </filter>
    <filter id="nebulaBlur" x="-100%" y="-100%" width="300%" height="300%">
      <feGaussianBlur stdDeviation="40"/>
    </filter>
    <filter id="softGlow" x="-100%" y="-100%" width="300%" height="300%">
      <feGaussianBlur stdDeviation="10"/>
    </filter>
    <filter id="crackGlow" x="-100%" y="-100%" width="300%" height="300%">
      <feGaussianBlur stdDeviation="3"/>
    </filter>
    <filter id="hardGlow" x="-50%" y="-50%" width="200%" height="200%">
      <feGaussianBlur stdDeviation="1.5"/>
    </filter>
    <filter id="lightningGlow" x="-50%" y="-50%" width="200%" height="200%">
      <feGaussianBlur in="SourceGraphic" stdDeviation="2" result="blur"/>
      <feGaussianBlur in="SourceGraphic" stdDeviation="5" result="blur2"/>
      <feMerge>
        <feMergeNode in="blur2"/>
        <feMergeNode in="blur"/>
        <feMergeNode in="SourceGraphic"/>
      </feMerge>
    </filter>"""

_ANIMATIONS = """
    .shard-spawn {
      animation: spawnIn 0.8s cubic-bezier(0.16, 1, 0.3, 1) both;
    }
    @keyframes spawnIn {
      0% { transform: scale(0); opacity: 0; }
      60% { transform: scale(1.05); }
      100% { transform: scale(1); opacity: 1; }
    }
    .burst-fade {
      animation: burstFade 2s ease-out 0.3s both;
    }
    @keyframes burstFade {
      0% { opacity: 1; transform: scale(0.3); }
      30% { opacity: 1; transform: scale(1.2); }
      100% { opacity: 0.15; transform: scale(1); }
    }
    .core-pulse {
      animation: corePulse 2s ease-in-out infinite;
    }
    @keyframes corePulse {
      0%, 100% { opacity: 0.6; r: $pulse_min; }
      50% { opacity: 1; r: $pulse_max; }
    }
    .twinkle {
      animation: twinkle 3s ease-in-out infinite;
    }
    @keyframes twinkle {
      0%, 100% { opacity: 0.3; }
      50% { opacity: 1; }
    }
    .nebula-pulse {
      animation: nebPulse 8s ease-in-out infinite;
    }
    @keyframes nebPulse {
      0%, 100% { opacity: 0.8; }
      50% { opacity: 1; }
    }
    .crack-draw {
      animation: drawCrack 0.6s ease-out both;
    }
    @keyframes drawCrack {
      to { stroke-dashoffset: 0; }
    }
    .lightning-flash {
      animation: lightningFlash 3s ease-out infinite;
    }
    @keyframes lightningFlash {
      0% { opacity: 0; }
      5% { opacity: 1; }
      10% { opacity: 0.3; }
      12% { opacity: 0.8; }
      20% { opacity: 0; }
      100% { opacity: 0; }
    }
    .particle-drift {
      animation: pDrift linear infinite alternate;
    }
    @keyframes pDrift {
      0% { transform: translate(0, 0); opacity: 0.3; }
      50% { opacity: 0.8; }
      100% { transform: translate(var(--drift, 10px), calc(var(--drift, 10px) * -0.7)); opacity: 0.3; }
    }
    .reflection-pulse {
      animation: refPulse 4s ease-in-out infinite alternate;
    }
    @keyframes refPulse {
      0% { opacity: 0.1; }
      100% { opacity: 0.3; }
    }
    .meta-fade {
      animation: metaIn 1s ease-out 2s both;
    }
    @keyframes metaIn {
      from { opacity: 0; }
      to { opacity: 1; }
    }
  """


def render_animations(size: int) -> str:
    """The <style> body; parameterized only by canvas size."""
    return _ANIMATIONS.replace("$pulse_min", fmt(size * 0.02)).replace(
        "$pulse_max", fmt(size * 0.035)
    )


def render_static_defs(scene: Scene) -> str:
    """Vignette, scanline pattern, burst gradient and the named filters."""
    hue = scene.crystal.palette.base_hue
    return f"""<radialGradient id="vignette" cx="50%" cy="50%">
      <stop offset="40%" stop-color="transparent"/>
      <stop offset="100%" stop-color="{hsla(0, 0, 0, 0.7)}"/>
    </radialGradient>
    <pattern id="scanlines" width="4" height="4" patternUnits="userSpaceOnUse">
      <line x1="0" y1="0" x2="4" y2="0" stroke="white" stroke-width="0.5" opacity="0.3"/>
    </pattern>
    <radialGradient id="burstGrad" cx="50%" cy="50%">
      <stop offset="0%" stop-color="{hsla(hue, 80, 90, 0.8)}"/>
      <stop offset="20%" stop-color="{hsla(hue, 70, 70, 0.4)}"/>
      <stop offset="50%" stop-color="{hsla(hue, 50, 40, 0.1)}"/>
      <stop offset="100%" stop-color="transparent"/>
    </radialGradient>
    {_FILTERS}"""


def _render_layer(scene: Scene, layer_id: str) -> str:
    info = registry.get(layer_id)
    return info["render"](scene.layers[layer_id], scene.crystal)


def render_defs(scene: Scene) -> str:
    parts = [
        _render_layer(scene, lid)
        for lid in registry.draw_order()
        if registry.get(lid)["slot"] == "defs"
    ]
    parts.append(render_static_defs(scene))
    return "\n    ".join(parts)


def render_body(scene: Scene) -> str:
    size = scene.crystal.size
    parts = []
    for item in PAINT_ORDER:
        if item == "@vignette":
            parts.append(f'<rect width="{size}" height="{size}" fill="url(#vignette)"/>')
        elif item == "@scanlines":
            parts.append(
                f'<rect width="{size}" height="{size}" fill="url(#scanlines)" opacity="0.03"/>'
            )
        else:
            parts.append(_render_layer(scene, item))
    return "\n  ".join(parts)


def render_document(scene: Scene) -> str:
    """Serialize the scene. Same scene in, same bytes out."""
    size = scene.crystal.size
    background = hsla(scene.crystal.palette.background_hue, 12, 2)
    return (
        f'<svg xmlns="{SVG_NS}" viewBox="0 0 {size} {size}" '
        f'width="{size}" height="{size}">\n'
        f"  <defs>\n    {render_defs(scene)}\n  </defs>\n"
        f"  <style>{render_animations(size)}</style>\n"
        f'  <rect width="{size}" height="{size}" fill="{background}"/>\n'
        f"  {render_body(scene)}\n"
        f"</svg>\n"
    )
