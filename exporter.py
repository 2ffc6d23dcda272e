"""Write a FinishedRaster to disk as PNG or single-page PDF."""

import logging
import os
import tempfile

from models import FinishedRaster, ExportError, JPEG_QUALITY


log = logging.getLogger(__name__)

DEFAULT_PNG_NAME = "photobooth-collage.png"
DEFAULT_PDF_NAME = "photobooth-collage.pdf"
PNG_FILTER = "PNG Image (*.png)"
PDF_FILTER = "PDF Document (*.pdf)"


def page_orientation(raster: FinishedRaster) -> str:
    return "landscape" if raster.width > raster.height else "portrait"


def _write_atomic(path: str, save):
    """Call save(tmp_path), then move the result over *path*."""
    directory = os.path.dirname(os.path.abspath(path))
    suffix = os.path.splitext(path)[1]
    try:
        fd, tmp = tempfile.mkstemp(prefix=".collage-", suffix=suffix, dir=directory)
    except OSError as e:
        raise ExportError(f"Could not write to {directory}: {e}") from e
    os.close(fd)
    try:
        save(tmp)
        os.replace(tmp, path)
    except OSError as e:
        raise ExportError(f"Could not save {path}: {e}") from e
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)
    log.debug("wrote %s", path)


def save_png(raster: FinishedRaster, path: str):
    """Lossless PNG of the raster."""
    _write_atomic(path, lambda tmp: raster.image.save(tmp, format="PNG"))


def save_pdf(raster: FinishedRaster, path: str, quality: int = JPEG_QUALITY):
    """One-page PDF with the raster embedded as JPEG.

    At 72 dpi one pixel is one point, so the page is exactly raster-sized and
    its orientation follows from the raster's aspect.
    """
    log.debug("pdf page %dx%d pt, %s", raster.width, raster.height,
              page_orientation(raster))
    _write_atomic(path, lambda tmp: raster.image.convert("RGB").save(
        tmp, format="PDF", resolution=72.0, quality=quality))
