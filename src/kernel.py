"""
Structuring elements ("kernels") for morphological operations.

Kernels are float-weighted masks. Besides the plain rectangle and cross,
ellipses are rasterized with the midpoint algorithm, optionally with an
anti-aliased one pixel border carrying fractional coverage.
"""
from __future__ import annotations

import logging
import math
from typing import Literal, Optional, Tuple

import numpy as np

from image import PixelImage
from pixel import BIT, LUMA
from utils import ensure_odd


logger = logging.getLogger(__name__)

KernelShape = Literal["rect", "cross", "ellipse", "ellipse_aa"]

KERNEL_SHAPES: Tuple[str, ...] = ("rect", "cross", "ellipse", "ellipse_aa")


def _round_half_away(value: float) -> int:
    """Round a non-negative value, with halves going up."""
    return int(math.floor(value + 0.5))


def _axis_extent(t: float, t_axis: float, other_axis: float) -> float:
    """
    Distance from the centre to the ellipse boundary along the other axis,
    at offset ``t`` along an axis with semi-axis ``t_axis``.
    """
    t_axis2 = t_axis * t_axis
    if t_axis2 > 0.0:
        ratio = (t * t) / t_axis2
    else:
        ratio = 0.0 if t == 0 else 1.0
    return other_axis * math.sqrt(max(0.0, 1.0 - ratio))


class KernelImage:
    """
    Float-weighted rectangular mask.

    Weights live in a (height, width) float32 array; ``data`` exposes the same
    storage flattened row-major, always ``width * height`` long.
    """

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("KernelImage dimensions must be positive integers")

        self.width = int(width)
        self.height = int(height)
        self.weights = np.zeros((self.height, self.width), dtype=np.float32)

    @classmethod
    def from_shape(cls, shape: KernelShape, width: int, height: int) -> "KernelImage":
        """
        Create a kernel filled with one of the built-in shapes.

        Args:
            shape: "rect", "cross", "ellipse" or "ellipse_aa"
            width: Kernel width in pixels
            height: Kernel height in pixels

        Raises:
            ValueError: If the shape is unknown or a dimension is not positive
        """
        kernel = cls(width, height)

        if shape == "rect":
            kernel.weights[...] = 1.0
        elif shape == "cross":
            kernel.weights[height // 2, :] = 1.0
            kernel.weights[:, width // 2] = 1.0
        elif shape == "ellipse":
            kernel._draw_ellipse(anti_alias=False)
        elif shape == "ellipse_aa":
            kernel._draw_ellipse(anti_alias=True)
        else:
            raise ValueError(f"Unknown kernel shape: {shape}")

        logger.debug("Built %s kernel %dx%d", shape, width, height)
        return kernel

    @property
    def data(self) -> np.ndarray:
        return self.weights.reshape(-1)

    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> Optional[float]:
        """Return the weight at (x, y), or None outside the kernel."""
        if not self.in_bounds(x, y):
            return None
        return float(self.weights[y, x])

    def pixel(self, x: int, y: int) -> float:
        if not self.in_bounds(x, y):
            raise IndexError(f"Kernel cell ({x}, {y}) is out of bounds for {self.dimensions()}")
        return float(self.weights[y, x])

    def set_pixel(self, x: int, y: int, weight: float) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Kernel cell ({x}, {y}) is out of bounds for {self.dimensions()}")
        self.weights[y, x] = weight

    def _draw_ellipse(self, anti_alias: bool) -> None:
        width, height = self.width, self.height
        ox, oy = width // 2, height // 2
        # Even sizes have their centre between two cells
        px, py = 1 - width % 2, 1 - height % 2

        if anti_alias:
            # Keep one pixel on each side free for the soft edge
            a = max(0.0, (width - 2) / 2.0)
            b = max(0.0, (height - 2) / 2.0)
        else:
            a = width / 2.0
            b = height / 2.0

        a2, b2 = a * a, b * b
        norm = math.sqrt(a2 + b2)

        quarter = _round_half_away(a2 / norm) if norm > 0.0 else 0
        for x in range(quarter + 1):
            y = _axis_extent(x, a, b)
            span = int(math.floor(y))
            if anti_alias:
                self._draw_4sym(ox, oy, px, py, x, span + 1, y - span)
            self._fill_4sym(ox, oy, px, py, x, span)

        quarter = _round_half_away(b2 / norm) if norm > 0.0 else 0
        for y in range(quarter + 1):
            x = _axis_extent(y, b, a)
            span = int(math.floor(x))
            if anti_alias:
                self._draw_4sym(ox, oy, px, py, span + 1, y, x - span)
            self._fill_4sym(ox, oy, px, py, span, y)

    def _put(self, x: int, y: int, weight: float) -> None:
        if self.in_bounds(x, y):
            self.weights[y, x] = weight

    def _draw_4sym(self, ox: int, oy: int, px: int, py: int, x: int, y: int, weight: float) -> None:
        self._put(ox + x, oy + y, weight)
        self._put(ox + x, oy - py - y, weight)
        self._put(ox - px - x, oy + y, weight)
        self._put(ox - px - x, oy - py - y, weight)

    def _fill_4sym(self, ox: int, oy: int, px: int, py: int, x: int, y: int) -> None:
        x0 = max(0, ox - px - x)
        x1 = min(self.width, ox + x + 1)
        if x0 >= x1:
            return
        for row in (oy + y, oy - py - y):
            if 0 <= row < self.height:
                self.weights[row, x0:x1] = 1.0

    def to_luma(self) -> PixelImage:
        """Render the weights as an 8-bit luminance image."""
        values = np.clip(self.weights * 255.0, 0, 255).astype(np.uint8)
        return PixelImage(values, LUMA)

    def to_bitmask(self) -> PixelImage:
        """Render the weights as a bit image, set wherever the weight is positive."""
        return PixelImage(self.weights > 0.0, BIT)

    def __repr__(self) -> str:
        return f"KernelImage({self.width}x{self.height})"


def get_structuring_element(shape: KernelShape = "rect", size: int = 3) -> KernelImage:
    """
    Create a square structuring element.

    Args:
        shape: Element shape - "rect", "cross", "ellipse" or "ellipse_aa"
        size: Element size (will be forced to odd)

    Returns:
        Square KernelImage of the requested shape
    """
    size = ensure_odd(size)
    return KernelImage.from_shape(shape, size, size)
