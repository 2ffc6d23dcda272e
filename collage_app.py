#!/usr/bin/env python3
"""Collage Maker - Compose two or three photos into a decorated collage.

Usage:
    python collage_app.py                       # open the editor
    python collage_app.py a.jpg b.jpg           # open with photos loaded
    python collage_app.py --export out.png a.jpg b.jpg c.jpg
    python collage_app.py --export out.pdf --pattern grid --text "Hello" a.jpg b.jpg
"""

import argparse
import logging
import sys

from models import (
    DesignConfig, PATTERNS, TEXT_POSITIONS, THEMES, EXPORT_SCALE,
    MIN_IMAGES, MAX_IMAGES, CollageError, ValidationError, apply_theme,
)


log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = DesignConfig()
    parser = argparse.ArgumentParser(description="Collage Maker")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--export", metavar="PATH", default=None,
                        help="Render without a window and write PATH (.png or .pdf)")
    parser.add_argument("--pdf", action="store_true", help="Force PDF output for --export")
    parser.add_argument("--scale", type=float, default=EXPORT_SCALE,
                        help=f"Export scale factor (default {EXPORT_SCALE})")
    parser.add_argument("--theme", choices=sorted(THEMES), default=None)
    parser.add_argument("--border", type=float, default=defaults.border_thickness)
    parser.add_argument("--background", default=defaults.background_color)
    parser.add_argument("--pattern", choices=PATTERNS, default=defaults.pattern)
    parser.add_argument("--pattern-scale", type=float, default=defaults.pattern_scale)
    parser.add_argument("--text", default=defaults.text.content)
    parser.add_argument("--font-size", type=int, default=defaults.text.font_size)
    parser.add_argument("--text-color", default=defaults.text.color)
    parser.add_argument("--text-position", choices=TEXT_POSITIONS,
                        default=defaults.text.position)
    parser.add_argument("--font", default=defaults.text.font_family)
    parser.add_argument("photos", nargs="*", help="Photo files, top to bottom")
    return parser


def design_from_args(args) -> DesignConfig:
    config = DesignConfig(
        border_thickness=args.border,
        background_color=args.background,
        pattern=args.pattern,
        pattern_scale=args.pattern_scale,
    )
    config.text.content = args.text
    config.text.font_size = args.font_size
    config.text.color = args.text_color
    config.text.position = args.text_position
    config.text.font_family = args.font
    if args.theme:
        config = apply_theme(config, args.theme)
    config.validate()
    return config


def export_headless(args) -> int:
    """Center-crop each photo to a square, render and write the collage."""
    import exporter
    from cropper import crop, decode_source, load_source, square_crop
    from renderer import render_sync

    if not MIN_IMAGES <= len(args.photos) <= MAX_IMAGES:
        raise ValidationError(f"Pass {MIN_IMAGES} or {MAX_IMAGES} photos to export")
    config = design_from_args(args)
    images = []
    for path in args.photos:
        source = load_source(path)
        img = decode_source(source)
        images.append(crop(source, square_crop(img.width, img.height)))

    raster = render_sync(images, config, args.scale)
    if args.pdf or args.export.lower().endswith(".pdf"):
        exporter.save_pdf(raster, args.export)
    else:
        exporter.save_png(raster, args.export)
    print(f"Wrote {args.export} ({raster.width}x{raster.height})")
    return 0


def main():
    args = build_parser().parse_args()

    if args.debug:
        logging.basicConfig(level=logging.DEBUG)

    if args.export:
        try:
            sys.exit(export_headless(args))
        except CollageError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(1)

    from controller import CollageApp, MainWindow

    app = CollageApp(sys.argv)
    app.setApplicationName("Collage Maker")
    window = MainWindow()
    try:
        window._apply_design(design_from_args(args))
    except CollageError as e:
        log.warning("ignoring design options: %s", e)
    window.show()

    # macOS Finder "Open With" delivers photos as file-open events
    app.file_open_requested.connect(window.add_path)

    for path in args.photos[:MAX_IMAGES]:
        window.add_path(path)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
