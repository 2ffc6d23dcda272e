"""Hex color parsing and pattern ink selection.

Both the live preview and the rasterizer take their pattern colors from
pattern_ink() so the two stay visually consistent.
"""

import re
from dataclasses import dataclass

from models import ValidationError


# Perceived luminance weights and the light/dark threshold
LUMA_WEIGHTS = (0.299, 0.587, 0.114)
LIGHT_THRESHOLD = 0.5
SOFT_OPACITY = 0.15
STRONG_OPACITY = 0.30

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class PatternInk:
    """Two RGBA inks for the background texture."""
    soft: tuple[int, int, int, int]
    strong: tuple[int, int, int, int]


def parse_hex(color: str) -> tuple[int, int, int]:
    """Decode '#rrggbb' (hash optional) into an (r, g, b) tuple."""
    m = _HEX_RE.match(color.strip())
    if m is None:
        raise ValidationError(f"Not a 6-digit hex color: {color!r}")
    digits = m.group(1)
    return tuple(max(0, min(int(digits[i:i + 2], 16), 255)) for i in (0, 2, 4))


def luminance(color: str) -> float:
    """Perceived brightness in [0, 1]."""
    r, g, b = parse_hex(color)
    wr, wg, wb = LUMA_WEIGHTS
    return (wr * r + wg * g + wb * b) / 255


def _alpha(opacity: float) -> int:
    return int(round(opacity * 255))


def pattern_ink(background: str) -> PatternInk:
    """Dark inks on light backgrounds, white inks otherwise.

    The comparison is strict, so a luminance of exactly 0.5 gets white ink.
    """
    base = (0, 0, 0) if luminance(background) > LIGHT_THRESHOLD else (255, 255, 255)
    return PatternInk(
        soft=(*base, _alpha(SOFT_OPACITY)),
        strong=(*base, _alpha(STRONG_OPACITY)),
    )
