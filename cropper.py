"""Crop transform: turn a source photo plus a CropSpec into a CroppedImage."""

import io
import logging
import os
import uuid

from PIL import Image, UnidentifiedImageError

from models import SourceImage, CropSpec, CroppedImage, DecodeError, ValidationError


log = logging.getLogger(__name__)

MIN_ZOOM = 1.0
MAX_ZOOM = 3.0


def decode_source(source: SourceImage) -> Image.Image:
    """Decode the source bytes, raising DecodeError on any Pillow failure."""
    try:
        img = Image.open(io.BytesIO(source.data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(source.id, str(e)) from e
    return img


def load_source(path: str) -> SourceImage:
    """Read a photo file into a SourceImage, normalized to RGB PNG bytes."""
    name = os.path.basename(path)
    try:
        img = Image.open(path)
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(name, str(e)) from e
    buf = io.BytesIO()
    img.convert("RGB").save(buf, format="PNG")
    return SourceImage(id=uuid.uuid4().hex, data=buf.getvalue(), name=name)


def _is_integral(*values: float) -> bool:
    return all(float(v).is_integer() for v in values)


def crop(source: SourceImage, spec: CropSpec) -> CroppedImage:
    """Extract *spec* from *source* into a raster of exactly spec.output_size.

    The rectangle is clipped to the image; whatever lies outside stays black.
    """
    img = decode_source(source).convert("RGB")
    out_w, out_h = spec.output_size
    if out_w <= 0 or out_h <= 0:
        raise ValidationError(f"Empty crop rectangle: {spec}")

    x1, y1, x2, y2 = spec.box
    left, top = max(x1, 0), max(y1, 0)
    right, bottom = min(x2, img.width), min(y2, img.height)
    if right <= left or bottom <= top:
        raise ValidationError(
            f"Crop {spec} does not overlap the {img.width}x{img.height} image")

    if _is_integral(left, top, right, bottom):
        region = img.crop((int(left), int(top), int(right), int(bottom)))
    else:
        size = (max(1, int(round(right - left))), max(1, int(round(bottom - top))))
        region = img.resize(size, Image.Resampling.BILINEAR, box=(left, top, right, bottom))

    if region.size == (out_w, out_h):
        result = region
    else:
        result = Image.new("RGB", (out_w, out_h), (0, 0, 0))
        result.paste(region, (int(round(left - x1)), int(round(top - y1))))

    buf = io.BytesIO()
    result.save(buf, format="PNG")
    log.debug("cropped %s box=%s -> %dx%d", source.id, spec.box, out_w, out_h)
    return CroppedImage(id=source.id, png_data=buf.getvalue(), crop=spec,
                        pixel_width=out_w, pixel_height=out_h)


def square_crop(width: int, height: int, zoom: float = 1.0,
                center: tuple[float, float] = (0.5, 0.5)) -> CropSpec:
    """Square crop of an image for a given zoom and normalized center point.

    At zoom 1 the square spans the short side; higher zoom shrinks it.
    The square is kept inside the image.
    """
    if width <= 0 or height <= 0:
        raise ValidationError(f"Image has no pixels: {width}x{height}")
    zoom = max(MIN_ZOOM, min(zoom, MAX_ZOOM))
    side = min(width, height) / zoom
    cx, cy = center
    x = max(0.0, min(cx * width - side / 2, width - side))
    y = max(0.0, min(cy * height - side / 2, height - side))
    return CropSpec(round(x), round(y), round(side), round(side))


def crop_all(sources: list[SourceImage], specs: list[CropSpec]
             ) -> tuple[list[CroppedImage], list[DecodeError]]:
    """Crop each source independently.

    Decode failures are collected instead of raised so one bad photo does not
    discard the crops of the others.
    """
    if len(sources) != len(specs):
        raise ValidationError("Each source needs exactly one crop")
    cropped: list[CroppedImage] = []
    failures: list[DecodeError] = []
    for source, spec in zip(sources, specs):
        try:
            cropped.append(crop(source, spec))
        except DecodeError as e:
            log.warning("skipping %s: %s", source.id, e)
            failures.append(e)
    return cropped, failures
