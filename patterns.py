"""Procedural background textures painted with Pillow.

Every pattern is a pure function of its arguments: the same size, pattern,
spacing, scale and inks always produce the same pixels.
"""

from PIL import Image, ImageDraw

from models import PATTERNS, ValidationError


MIN_SPACING = 5      # logical px floor for pattern spacing
DOT_RADIUS = 1.5     # logical px
LINE_WIDTH = 1.0     # logical px, diagonal stripes
GRID_WIDTH = 0.5     # logical px


def pattern_spacing(spacing_logical: float, scale: float) -> float:
    """Device-pixel spacing with a floor so tiny values stay bounded."""
    return max(spacing_logical * scale, MIN_SPACING * scale)


def _steps(start: float, stop: float, step: float):
    v = start
    while v < stop:
        yield v
        v += step


def _stroke(width_logical: float, scale: float) -> int:
    return max(1, int(round(width_logical * scale)))


def paint(surface: Image.Image, width: int, height: int, pattern: str,
          spacing_logical: float, scale: float, ink_soft, ink_strong):
    """Paint *pattern* over the (width x height) region of *surface*."""
    if pattern not in PATTERNS:
        raise ValidationError(f"Unknown pattern: {pattern!r}")
    if pattern == "none":
        return

    spacing = pattern_spacing(spacing_logical, scale)
    draw = ImageDraw.Draw(surface)

    if pattern == "dots":
        r = DOT_RADIUS * scale
        for x in _steps(0, width, spacing):
            for y in _steps(0, height, spacing):
                draw.ellipse([x - r, y - r, x + r, y + r], fill=ink_soft)

    elif pattern == "lines":
        w = _stroke(LINE_WIDTH, scale)
        for i in _steps(-width, width + height, spacing):
            draw.line([(i, 0), (i + height, height)], fill=ink_soft, width=w)

    elif pattern == "grid":
        w = _stroke(GRID_WIDTH, scale)
        for x in _steps(0, width, spacing):
            draw.line([(x, 0), (x, height)], fill=ink_soft, width=w)
        for y in _steps(0, height, spacing):
            draw.line([(0, y), (width, y)], fill=ink_soft, width=w)

    elif pattern == "checkers":
        for x in _steps(0, width, spacing * 2):
            for y in _steps(0, height, spacing * 2):
                draw.rectangle([x, y, x + spacing - 1, y + spacing - 1], fill=ink_strong)
                draw.rectangle([x + spacing, y + spacing,
                                x + 2 * spacing - 1, y + 2 * spacing - 1], fill=ink_strong)


def paint_layer(width: int, height: int, pattern: str, spacing_logical: float,
                scale: float, ink_soft, ink_strong) -> Image.Image:
    """Return a transparent RGBA layer carrying the pattern."""
    layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    paint(layer, width, height, pattern, spacing_logical, scale, ink_soft, ink_strong)
    return layer
