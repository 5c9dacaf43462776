"""Fixed-precision number formatting for SVG output.

Every number that reaches the document passes through `fmt` so repeated
serialization of the same scene is byte-identical.
"""

from xml.sax.saxutils import escape

COORD_PLACES = 1
ALPHA_PLACES = 3


def fmt(value: float, places: int = COORD_PLACES) -> str:
    """Format with a fixed number of decimals; never emits '-0.0'."""
    text = f"{value:.{places}f}"
    if text.startswith("-") and float(text) == 0.0:
        return text[1:]
    return text


def fmt_point(point) -> str:
    return f"{fmt(point[0])},{fmt(point[1])}"


def fmt_points(points) -> str:
    """Space-separated `x,y` pairs for a polygon `points` attribute."""
    return " ".join(fmt_point(p) for p in points)


def path_d(points) -> str:
    """Open polyline path: M first, L for the rest."""
    head, *rest = points
    return " ".join([f"M{fmt_point(head)}"] + [f"L{fmt_point(p)}" for p in rest])


def text(value: str) -> str:
    """Escape caller-supplied text for element content."""
    return escape(value)
