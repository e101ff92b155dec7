"""
Command-line front end: read an image, run configured morphology / stroke
operations on it and write the result.

Only this module touches the filesystem; the operators work on in-memory
PixelImage grids.
"""
from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional

import cv2
import numpy as np

from image import PixelImage
from morphology import closing, dilate, erode, gradient, opening
from pixel import RGBA
from stroke import Stroke
from utils import load_settings, parse_color, setup_logging


logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {"level": "INFO"},
    "display": False,
    "operations": [
        {"op": "stroke", "size": 3, "color": [0, 0, 0, 255], "threshold": 0},
    ],
}

MORPHOLOGY_OPS = {
    "dilate": dilate,
    "erode": erode,
    "opening": opening,
    "closing": closing,
}


# ============================================================================
# Colour conversion
# ============================================================================

def to_rgba(frame: np.ndarray) -> np.ndarray:
    """Convert an OpenCV grey / BGR / BGRA frame to RGBA."""
    if frame.dtype != np.uint8:
        raise ValueError(f"Only 8-bit images are supported, got {frame.dtype}")

    if frame.ndim == 2:
        return cv2.cvtColor(frame, cv2.COLOR_GRAY2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGBA)
    if frame.ndim == 3 and frame.shape[2] == 4:
        return cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA)

    raise ValueError(f"Unsupported image shape: {frame.shape}")


def to_bgra(image: PixelImage) -> np.ndarray:
    """Convert an RGBA PixelImage back to an OpenCV BGRA frame."""
    return cv2.cvtColor(image.array, cv2.COLOR_RGBA2BGRA)


# ============================================================================
# Pipeline
# ============================================================================

def apply_operation(image: PixelImage, cfg: Dict[str, Any]) -> PixelImage:
    """
    Apply a single configured operation.

    Args:
        image: RGBA input image
        cfg: Operation settings, ``op`` selects the operation

    Returns:
        New image with the operation applied

    Raises:
        ValueError: If the operation is unknown
    """
    op = cfg.get("op")

    if op == "stroke":
        stroke = Stroke(
            image,
            size=int(cfg.get("size", 1)),
            color=parse_color(cfg.get("color"), default=(0, 0, 0, 255)),
            threshold=int(cfg.get("threshold", 0)),
        )
        result = image.copy()
        stroke.draw(result)
        return result

    kernel_size = int(cfg.get("kernel_size", 3))
    kernel_shape = cfg.get("kernel_shape", "rect")

    if op in MORPHOLOGY_OPS:
        return MORPHOLOGY_OPS[op](
            image,
            iterations=int(cfg.get("iterations", 1)),
            kernel_size=kernel_size,
            kernel_shape=kernel_shape,
        )
    if op == "gradient":
        return gradient(image, kernel_size=kernel_size, kernel_shape=kernel_shape)

    raise ValueError(f"Unsupported operation: {op}")


def apply_operations(image: PixelImage, operations: List[Dict[str, Any]]) -> PixelImage:
    """Run operations in order, each on the previous result."""
    result = image
    for index, cfg in enumerate(operations):
        logger.info("Step %d: %s", index + 1, cfg.get("op"))
        result = apply_operation(result, cfg)
    return result


def show_comparison(before: PixelImage, after: PixelImage) -> None:
    """Show input and output side by side until a key is pressed."""
    cv2.imshow("Input", to_bgra(before))
    cv2.imshow("Output", to_bgra(after))
    cv2.waitKey(0)
    cv2.destroyAllWindows()


def run_pipeline(input_path: str, output_path: str, config: Dict[str, Any]) -> PixelImage:
    """Read ``input_path``, apply the configured operations, write ``output_path``."""
    frame = cv2.imread(input_path, cv2.IMREAD_UNCHANGED)
    if frame is None:
        raise RuntimeError(f"Unable to read image: {input_path}")

    image = PixelImage(to_rgba(frame), RGBA)
    logger.info("Loaded %s (%dx%d)", input_path, image.width, image.height)

    result = apply_operations(image, config.get("operations", []))

    if not cv2.imwrite(output_path, to_bgra(result)):
        raise RuntimeError(f"Unable to write image: {output_path}")
    logger.info("Saved %s", output_path)

    if config.get("display", False):
        show_comparison(image, result)

    return result


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Morphology and stroke effects for images")
    parser.add_argument("input", help="Path of the image to process")
    parser.add_argument("output", help="Path of the image to write")
    parser.add_argument(
        "--config", "-c",
        default="config/settings.yaml",
        help="Path to YAML configuration file",
    )
    parser.add_argument("--show", action="store_true", help="Display input and output")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)

    try:
        config = load_settings(args.config)
        missing_config = False
    except FileNotFoundError:
        config = dict(DEFAULT_CONFIG)
        missing_config = True

    setup_logging(config.get("logging", {}).get("level"), verbose=args.verbose)
    if missing_config:
        logger.warning("Config not found: %s, using defaults", args.config)

    if args.show:
        config["display"] = True

    run_pipeline(args.input, args.output, config)


if __name__ == "__main__":
    main()
