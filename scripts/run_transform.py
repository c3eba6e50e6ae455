"""
Command-line crop / perspective correction of a single image.

Usage:
    # Straighten a photographed document
    python scripts/run_transform.py --input photo.jpg \
        --points 0.1,0.1 0.9,0.3 0.9,0.7 0.1,0.9 --mode warp

    # Crop to the quadrilateral only, lossless output
    python scripts/run_transform.py --input photo.jpg \
        --points 0.2,0.2 0.8,0.2 0.8,0.8 0.2,0.8 --mode crop --quality 1.0
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.export import export_raster  # noqa: E402
from src.transform import TransformMode, TransformProcessor, load_config  # noqa: E402
from src.transform.config_loader import DEFAULT_CONFIG_PATH  # noqa: E402
from src.utils.io import load_raster  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def parse_point(text: str):
    """Parse 'x,y' into a pair of floats."""
    try:
        x_text, y_text = text.split(",")
        return float(x_text), float(y_text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"Expected a point as 'x,y' with normalized values, got {text!r}"
        ) from e


def main():
    """Main entry point for the transform tool."""
    parser = argparse.ArgumentParser(
        description="Crop or perspective-correct an image region",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--input", type=Path, required=True, help="Source image")
    parser.add_argument(
        "--points",
        type=parse_point,
        nargs=4,
        required=True,
        metavar="X,Y",
        help="Four normalized corners (0..1), any order",
    )
    parser.add_argument(
        "--mode",
        type=str,
        default="warp",
        choices=[m.value for m in TransformMode],
        help="crop: clip to the quadrilateral; warp: correct perspective",
    )
    parser.add_argument("--width", type=int, default=None, help="Warp output width")
    parser.add_argument("--height", type=int, default=None, help="Warp output height")
    parser.add_argument(
        "--quality",
        type=float,
        default=None,
        help="Output quality in [0, 1]; PNG at or above the configured threshold",
    )
    parser.add_argument(
        "--output-dir", type=Path, default=Path("."), help="Directory for the result"
    )
    parser.add_argument(
        "--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path"
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Override resampling thread count"
    )

    args = parser.parse_args()

    config = load_config(args.config)
    if args.workers is not None:
        config.resampling.max_workers = max(1, args.workers)

    raster = load_raster(args.input)
    logger.info(f"Loaded {args.input} ({raster.width}x{raster.height})")

    mode = TransformMode(args.mode)
    processor = TransformProcessor(config=config)
    result = processor.process(
        raster, [list(p) for p in args.points], mode, args.width, args.height
    )

    if not result.is_success():
        logger.error(result.get_error_message())
        return 1

    quality = args.quality
    if quality is None:
        quality = config.export.default_quality
    output_path = export_raster(
        result.raster,
        args.output_dir,
        args.input.name,
        warped=mode == TransformMode.WARP,
        quality=quality,
        png_threshold=config.export.png_quality_threshold,
    )
    print(output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
