"""Caption — identifier prefix, optional title and author in the corner."""

from dataclasses import dataclass

from engine.palette import hsla
from engine.svg import fmt, text

LAYER_ID = "layer.caption"
LAYER_NAME = "Caption"
LAYER_SLOT = "body"

MAX_TITLE_CHARS = 45
MARGIN_PX = 18
LINE_HEIGHT_PX = 14
FONT_FAMILY = "'SF Mono', 'Fira Code', monospace"


@dataclass(frozen=True)
class CaptionLine:
    text: str
    font_size: int
    sat: float
    lit: float
    alpha: float


def caption_text(short_id: str, title: str | None) -> str:
    if title:
        return f"{short_id} · {title[:MAX_TITLE_CHARS]}"
    return short_id


def compose(rng, crystal) -> list[CaptionLine]:
    config = crystal.config
    lines = [CaptionLine(caption_text(config.short_id, config.title), 10, 40, 50, 0.7)]
    if config.author:
        lines.append(CaptionLine(config.author, 9, 30, 40, 0.5))
    return lines


def render(lines: list[CaptionLine], crystal) -> str:
    x = fmt(crystal.size - MARGIN_PX)
    hue = crystal.palette.base_hue
    parts = []
    for i, line in enumerate(lines):
        y = fmt(crystal.size - MARGIN_PX - i * LINE_HEIGHT_PX)
        parts.append(
            f'<text x="{x}" y="{y}" text-anchor="end" font-family="{FONT_FAMILY}" '
            f'font-size="{line.font_size}" '
            f'fill="{hsla(hue, line.sat, line.lit, line.alpha)}" '
            f'letter-spacing="0.5">{text(line.text)}</text>'
        )
    return '<g class="meta-fade">\n    ' + "\n    ".join(parts) + "\n  </g>"
