"""Rasterizer: compose cropped images, background, pattern and text into one bitmap.

This is the authoritative rendering path used for export. Drawing order is
fixed: background, pattern, top text, images (in list order), bottom text.
"""

import asyncio
import functools
import io
import logging
import re
import time

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from colors import parse_hex, pattern_ink
from layout import plan
from models import (
    CroppedImage, DesignConfig, FinishedRaster,
    DecodeError, RenderError, UnsupportedError, ValidationError,
    EXPORT_SCALE, MIN_IMAGES,
)
import patterns


log = logging.getLogger(__name__)

# Weight 600: prefer a semibold face, then bold, then regular
_FONT_SUFFIXES = ["-SemiBold", "-Bold", "", "-Regular"]


# === Fonts ===

def _family_names(font_family: str) -> list[str]:
    """Split a CSS font-family list into bare family names."""
    names = []
    for part in font_family.split(","):
        name = part.strip().strip("'\"").strip()
        if name:
            names.append(name)
    return names


@functools.lru_cache(maxsize=64)
def load_font(font_family: str, size: int) -> ImageFont.FreeTypeFont:
    """Resolve a CSS font family to a Pillow font, falling back to the default."""
    size = max(1, size)
    for name in _family_names(font_family):
        stem = re.sub(r"\s+", "", name)
        for suffix in _FONT_SUFFIXES:
            for ext in (".ttf", ".otf"):
                try:
                    return ImageFont.truetype(f"{stem}{suffix}{ext}", size)
                except OSError:
                    continue
    log.debug("no font file for %r, using Pillow default", font_family)
    return ImageFont.load_default(size)


# === Image decode ===

async def _decode(image: CroppedImage) -> Image.Image:
    """Decode one cropped image. Yields to the event loop first."""
    await asyncio.sleep(0)
    try:
        img = Image.open(io.BytesIO(image.png_data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(image.id, str(e)) from e
    return img.convert("RGB")


def _allocate(size: tuple[int, int], color: tuple[int, int, int]) -> Image.Image:
    try:
        return Image.new("RGB", size, color)
    except (MemoryError, ValueError, Image.DecompressionBombError) as e:
        raise UnsupportedError(f"Cannot allocate a {size[0]}x{size[1]} surface: {e}") from e


def _draw_text(surface: Image.Image, text: str, x: float, baseline: float,
               font_size: float, config: DesignConfig):
    if not text:
        return
    font = load_font(config.text.font_family, int(round(font_size)))
    draw = ImageDraw.Draw(surface)
    draw.text((x, baseline), text, font=font, fill=parse_hex(config.text.color), anchor="ms")


# === Render ===

async def render(images: list[CroppedImage], config: DesignConfig,
                 scale: float = EXPORT_SCALE) -> FinishedRaster:
    """Render the collage at *scale*.

    Raises ValidationError for bad input, RenderError if any image fails to
    decode and UnsupportedError if no surface can be allocated. A failed render
    returns nothing.
    """
    start = time.monotonic()
    if len(images) < MIN_IMAGES:
        raise ValidationError(f"A collage needs at least {MIN_IMAGES} images")
    p = plan(len(images), config, scale)
    width, height = p.pixel_size

    surface = _allocate((width, height), parse_hex(config.background_color))

    if config.pattern != "none":
        ink = pattern_ink(config.background_color)
        layer = patterns.paint_layer(width, height, config.pattern,
                                     config.pattern_scale, scale, ink.soft, ink.strong)
        surface = Image.alpha_composite(surface.convert("RGBA"), layer).convert("RGB")

    if p.text_position == "top":
        _draw_text(surface, config.text.content, p.width / 2, p.text_baseline,
                   p.font_size, config)

    # Strictly sequential so draw order always matches list order
    for i, image in enumerate(images):
        try:
            img = await _decode(image)
        except DecodeError as e:
            raise RenderError(f"Image {i + 1} could not be decoded") from e
        x, y, w, h = p.cell_rect(i)
        cell_size = (max(1, int(round(w))), max(1, int(round(h))))
        if img.size != cell_size:
            img = img.resize(cell_size, Image.Resampling.BILINEAR)
        surface.paste(img, (int(round(x)), int(round(y))))

    if p.text_position == "bottom":
        _draw_text(surface, config.text.content, p.width / 2, p.text_baseline,
                   p.font_size, config)

    log.debug("rendered %d images at %sx in %.3fs (%dx%d)",
              len(images), scale, time.monotonic() - start, width, height)
    return FinishedRaster(image=surface, width=width, height=height)


def render_sync(images: list[CroppedImage], config: DesignConfig,
                scale: float = EXPORT_SCALE) -> FinishedRaster:
    """Blocking wrapper for callers without an event loop (GUI, CLI)."""
    return asyncio.run(render(images, config, scale))
