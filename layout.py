"""Layout engine: collage geometry shared by the preview and the rasterizer.

Images are stacked top to bottom in square cells. The border around the
collage doubles as the gap between cells, and a text band of twice the font
size is reserved above or below the images whether or not there is text.
"""

import logging

from models import (
    DesignConfig, RenderPlan, ValidationError,
    BASE_WIDTH, MAX_IMAGES, TEXT_BAND_FACTOR,
)


log = logging.getLogger(__name__)


def plan(image_count: int, config: DesignConfig, scale: float) -> RenderPlan:
    """Compute the RenderPlan for *image_count* images at *scale*."""
    if image_count <= 0:
        raise ValidationError("A collage needs at least one image")
    if image_count > MAX_IMAGES:
        raise ValidationError(f"A collage holds at most {MAX_IMAGES} images")
    if scale <= 0:
        raise ValidationError(f"Scale must be positive, got {scale}")
    config.validate()

    border = config.border_thickness * scale
    gap = border
    width = BASE_WIDTH * scale
    cell = width - 2 * border
    if cell <= 0:
        raise ValidationError(
            f"Border {config.border_thickness} leaves no room for images")

    font_size = config.text.font_size * scale
    band = font_size * TEXT_BAND_FACTOR
    height = 2 * border + image_count * cell + (image_count - 1) * gap + band

    result = RenderPlan(
        image_count=image_count,
        scale=scale,
        width=width,
        height=height,
        border=border,
        gap=gap,
        cell_width=cell,
        cell_height=cell,
        font_size=font_size,
        text_band_height=band,
        text_position=config.text.position,
    )
    log.debug("plan n=%d scale=%s -> %sx%s cell=%s band=%s",
              image_count, scale, width, height, cell, band)
    return result


def preview_scale(avail_w: float, avail_h: float, image_count: int,
                  config: DesignConfig) -> float:
    """Largest scale at which the collage fits inside avail_w x avail_h."""
    if image_count <= 0:
        raise ValidationError("A collage needs at least one image")
    # width and height are both linear in scale, so measure at scale 1
    unit = plan(image_count, config, 1.0)
    return max(1e-6, min(avail_w / unit.width, avail_h / unit.height))
