"""
Command line front end.

Loads a photo, applies the gated filter chain and writes the rendered result.

Usage:
    imagepost photo.jpg out.png --blur 4 --bloom
    imagepost photo.jpg out.png --size 320x240 --scale 2 --tiled --pixellate
    python -m imagepost photo.jpg out.png --gloom --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
import math
import sys

from .config import FilterConfig, settings
from .exceptions import PipelineError
from .filters.base import FilterContext
from .filters.pipeline import APPLIED_STAGES_KEY, FilterPipeline
from .image import Image
from .scaling import scale_to_fit

logger = logging.getLogger(__name__)


def _parse_size(text: str) -> tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` view size."""
    try:
        width, height = (int(part) for part in text.lower().split('x'))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size {text!r}, expected WIDTHxHEIGHT")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError(f"Size has to be positive, got {text!r}")
    return width, height


def _parse_radius(text: str) -> float:
    """Parse a blur radius, negative values are clamped later."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid radius {text!r}")
    if math.isnan(value) or value == math.inf:
        raise argparse.ArgumentTypeError(f"Radius has to be finite, got {text!r}")
    return value


def _parse_scale(text: str) -> float:
    """Parse a positive screen scale."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid scale {text!r}")
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"Scale has to be positive, got {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='imagepost',
        description='Apply the photo post filter chain to an image',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s in.jpg out.png --blur 4          # Blur only
  %(prog)s in.jpg out.png --tiled --bloom   # Kaleidoscope with glow
  %(prog)s in.jpg out.png --size 320x240 --scale 2 --pixellate
"""
    )
    parser.add_argument('input', help='Photo to process')
    parser.add_argument('output', help='Target file, the extension selects the format')
    parser.add_argument(
        '--blur', type=_parse_radius, default=0.0,
        help='Gaussian blur radius in pixels (default: 0)'
    )
    parser.add_argument('--tiled', action='store_true', help='Enable eightfold reflected tiling')
    parser.add_argument('--bloom', action='store_true', help='Enable bloom')
    parser.add_argument('--gloom', action='store_true', help='Enable gloom')
    parser.add_argument('--pixellate', action='store_true', help='Enable pixellation')
    parser.add_argument(
        '--size', type=_parse_size, default=None,
        help='Scale the photo to this view size in points first, e.g. 320x240'
    )
    parser.add_argument(
        '--scale', type=_parse_scale, default=1.0,
        help='Device pixels per point used with --size (default: 1)'
    )
    parser.add_argument(
        '--log-level', default=None, type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help=f'Logging level (default: {settings.LOG_LEVEL})'
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or settings.LOG_LEVEL).upper(),
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        image = Image(args.input)
    except ValueError as e:
        logger.error(f"Could not load {args.input}: {e}")
        return 1

    view_size = args.size or settings.DEFAULT_VIEW_SIZE
    if view_size is not None:
        try:
            image = scale_to_fit(image, view_size, args.scale)
        except ValueError as e:
            logger.error(f"Could not scale to {view_size}: {e}")
            return 1

    config = FilterConfig(
        blur_radius=args.blur,
        tiled_enabled=args.tiled,
        bloom_enabled=args.bloom,
        gloom_enabled=args.gloom,
        pixellate_enabled=args.pixellate,
    )
    context = FilterContext()
    try:
        result = FilterPipeline().run(image, config, context)
        result.save(args.output)
    except PipelineError as e:
        logger.error(f"Filtering failed: {e}")
        return 1
    except (ValueError, OSError) as e:
        logger.error(f"Could not write {args.output}: {e}")
        return 1

    stages = ', '.join(context.get(APPLIED_STAGES_KEY, [])) or 'none'
    logger.info(f"Wrote {result.width}x{result.height} image to {args.output} (stages: {stages})")
    return 0


if __name__ == '__main__':
    sys.exit(main())
