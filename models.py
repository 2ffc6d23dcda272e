"""Data model classes, constants and errors for Collage Maker.

All design dimensions are logical pixels; renderers multiply by a scale factor.
"""

import io
from dataclasses import dataclass, field, replace

from PIL import Image


# === Constants (logical pixel space) ===
BASE_WIDTH = 400        # nominal collage width before scaling
EXPORT_SCALE = 4        # 400 -> 1600 px wide export
TEXT_BAND_FACTOR = 2    # text band height = font size * 2
MIN_IMAGES = 2
MAX_IMAGES = 3
MAX_TEXT_LENGTH = 20
JPEG_QUALITY = 95

PATTERNS = ["none", "dots", "lines", "grid", "checkers"]
TEXT_POSITIONS = ["top", "bottom"]
PATTERN_SCALE_RANGE = (10, 100)
FONT_SIZE_RANGE = (12, 120)

# (label, CSS font family)
FONT_FAMILIES = [
    ("Inter", "Inter, sans-serif"),
    ("Dancing Script", "'Dancing Script', cursive"),
    ("Great Vibes", "'Great Vibes', cursive"),
    ("Pacifico", "'Pacifico', cursive"),
    ("Caveat", "'Caveat', cursive"),
    ("Satisfy", "'Satisfy', cursive"),
    ("Amatic SC", "'Amatic SC', cursive"),
    ("Courgette", "'Courgette', cursive"),
    ("Kaushan Script", "'Kaushan Script', cursive"),
    ("Permanent Marker", "'Permanent Marker', cursive"),
    ("Sacramento", "'Sacramento', cursive"),
]

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp *.tif *.tiff)"


# === Errors ===

class CollageError(Exception):
    """Base class for all collage failures."""


class DecodeError(CollageError):
    """A source or cropped image could not be decoded."""

    def __init__(self, image_id: str, reason: str = ""):
        self.image_id = image_id
        msg = f"Could not decode image {image_id!r}"
        super().__init__(f"{msg}: {reason}" if reason else msg)


class ValidationError(CollageError):
    """Invalid geometry or out-of-range design parameters."""


class RenderError(CollageError):
    """The compositing pass failed; no raster was produced."""


class UnsupportedError(CollageError):
    """The host cannot provide a drawing surface."""


class ExportError(CollageError):
    """The finished raster could not be written to disk."""


# === Data Model ===

@dataclass(frozen=True)
class SourceImage:
    """An uploaded photo as encoded bytes. Decoded lazily by the cropper."""
    id: str
    data: bytes
    name: str = ""


@dataclass(frozen=True)
class CropSpec:
    """Crop rectangle in the source image's natural pixel coordinates."""
    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def output_size(self) -> tuple[int, int]:
        return int(round(self.width)), int(round(self.height))


@dataclass(frozen=True)
class CroppedImage:
    """A confirmed crop, stored as lossless PNG bytes."""
    id: str
    png_data: bytes
    crop: CropSpec
    pixel_width: int
    pixel_height: int

    def to_jpeg(self, quality: int = JPEG_QUALITY) -> bytes:
        """Encode as the lossy intermediate used when persisting the asset."""
        img = Image.open(io.BytesIO(self.png_data)).convert("RGB")
        buf = io.BytesIO()
        img.save(buf, format="JPEG", quality=quality)
        return buf.getvalue()


@dataclass
class TextConfig:
    """Text overlay settings."""
    content: str = ""
    font_size: int = 24                   # logical px
    color: str = "#000000"
    position: str = "bottom"              # "top" or "bottom"
    font_family: str = "Inter, sans-serif"


@dataclass
class DesignConfig:
    """Collage design settings, in logical pixels."""
    border_thickness: float = 24
    background_color: str = "#ffffff"
    pattern: str = "dots"                 # one of PATTERNS
    pattern_scale: float = 20             # pattern spacing, PATTERN_SCALE_RANGE
    text: TextConfig = field(default_factory=TextConfig)
    theme: str | None = None              # key into THEMES, informational

    def validate(self):
        """Raise ValidationError if any field is out of range."""
        from colors import parse_hex

        if self.pattern not in PATTERNS:
            raise ValidationError(f"Unknown pattern: {self.pattern!r}")
        lo, hi = PATTERN_SCALE_RANGE
        if not lo <= self.pattern_scale <= hi:
            raise ValidationError(
                f"Pattern scale {self.pattern_scale} outside {lo}-{hi}")
        if self.border_thickness < 0:
            raise ValidationError("Border thickness must not be negative")
        if self.text.font_size <= 0:
            raise ValidationError("Font size must be positive")
        if self.text.position not in TEXT_POSITIONS:
            raise ValidationError(f"Unknown text position: {self.text.position!r}")
        if len(self.text.content) > MAX_TEXT_LENGTH:
            raise ValidationError(
                f"Text is limited to {MAX_TEXT_LENGTH} characters")
        parse_hex(self.background_color)
        parse_hex(self.text.color)

    def copy(self) -> "DesignConfig":
        return replace(self, text=replace(self.text))


# Presets: (background, pattern, pattern_scale, text color, font family)
THEMES = {
    "wedding": ("#fdf6f0", "dots", 20, "#8a6d3b", "'Great Vibes', cursive"),
    "birthday": ("#ffd6e8", "checkers", 30, "#c2185b", "'Pacifico', cursive"),
    "corporate": ("#1f2937", "grid", 40, "#ffffff", "Inter, sans-serif"),
    "modern": ("#111111", "lines", 20, "#f5f5f5", "Inter, sans-serif"),
}


def apply_theme(config: DesignConfig, name: str) -> DesignConfig:
    """Return a copy of *config* with the named theme preset applied."""
    if name not in THEMES:
        raise ValidationError(f"Unknown theme: {name!r}")
    bg, pattern, pattern_scale, color, family = THEMES[name]
    result = config.copy()
    result.background_color = bg
    result.pattern = pattern
    result.pattern_scale = pattern_scale
    result.text.color = color
    result.text.font_family = family
    result.theme = name
    return result


@dataclass(frozen=True)
class RenderPlan:
    """Derived collage geometry for one render, in device pixels."""
    image_count: int
    scale: float
    width: float
    height: float
    border: float
    gap: float
    cell_width: float
    cell_height: float
    font_size: float
    text_band_height: float
    text_position: str

    @property
    def pixel_size(self) -> tuple[int, int]:
        return int(self.width), int(self.height)

    @property
    def image_origin_y(self) -> float:
        """Top of the first image cell."""
        if self.text_position == "top":
            return self.border + self.text_band_height
        return self.border

    def cell_rect(self, index: int) -> tuple[float, float, float, float]:
        """(x, y, w, h) of the cell for image *index*."""
        y = self.image_origin_y + index * (self.cell_height + self.gap)
        return (self.border, y, self.cell_width, self.cell_height)

    @property
    def text_baseline(self) -> float:
        if self.text_position == "top":
            return self.border + self.font_size
        return self.height - self.border - 0.2 * self.font_size


@dataclass(frozen=True)
class FinishedRaster:
    """The composed collage bitmap. Consumed once by an encoder."""
    image: Image.Image  # RGB
    width: int
    height: int

    def tobytes(self) -> bytes:
        return self.image.tobytes()


@dataclass
class CollageProject:
    """Full editing state handed to the renderers."""
    images: list[CroppedImage] = field(default_factory=list)
    design: DesignConfig = field(default_factory=DesignConfig)
