"""
Morphological operations driven by a weighted structuring element.

Dilation takes, at every output pixel, the component-wise maximum of the
kernel-weighted source samples under the kernel footprint; erosion takes the
component-wise minimum. Both work on any pixel format from ``pixel``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

import numpy as np

from image import DrawTarget, PixelImage
from kernel import KernelImage, KernelShape, get_structuring_element
from pixel import BIT


logger = logging.getLogger(__name__)

Anchor = Tuple[float, float]
Position = Tuple[int, int]

CENTER: Anchor = (0.5, 0.5)


def anchor_offset(kernel: KernelImage, anchor: Anchor) -> Tuple[int, int]:
    """Kernel cell that lines up with the sampled pixel."""
    kw, kh = kernel.dimensions()
    return int(kw * anchor[0]), int(kh * anchor[1])


# ============================================================================
# Per-pixel samplers
# ============================================================================

def dilate_pixel(
    source: PixelImage,
    kernel: KernelImage,
    anchor: Anchor,
    x: int,
    y: int
) -> Any:
    """
    Dilated value of the pixel at (x, y), relative to the source origin.

    Samples outside the source contribute nothing.
    """
    pixel_format = source.pixel_format
    ax, ay = anchor_offset(kernel, anchor)
    kw, kh = kernel.dimensions()

    value = pixel_format.neutral_min()
    for ky in range(kh):
        for kx in range(kw):
            sample = source.get_pixel(x + kx - ax, y + ky - ay)
            if sample is None:
                continue
            weight = kernel.pixel(kx, ky)
            value = pixel_format.component_max(value, pixel_format.scale(sample, weight))

    return value


def erode_pixel(
    source: PixelImage,
    kernel: KernelImage,
    anchor: Anchor,
    x: int,
    y: int
) -> Any:
    """
    Eroded value of the pixel at (x, y), relative to the source origin.

    Taps with a non-positive weight are outside the structuring element and
    samples outside the source are neutral; neither lowers the result.
    """
    pixel_format = source.pixel_format
    ax, ay = anchor_offset(kernel, anchor)
    kw, kh = kernel.dimensions()

    value = pixel_format.neutral_max()
    for ky in range(kh):
        for kx in range(kw):
            weight = kernel.pixel(kx, ky)
            if not weight > 0.0:
                continue
            sample = source.get_pixel(x + kx - ax, y + ky - ay)
            if sample is None:
                continue
            value = pixel_format.component_min(value, pixel_format.scale(sample, weight))

    return value


def _sweep_taps(
    source: PixelImage,
    kernel: KernelImage,
    anchor: Anchor,
    reduce: Callable[[Any, Any], Any],
    start: Any,
    skip_empty_taps: bool
) -> np.ndarray:
    """
    Evaluate the sampling loop for every pixel at once, one kernel tap at a time.

    Each tap shifts the source by its offset and folds the in-bounds part into
    the accumulator. max / min are commutative, so the result matches the
    per-pixel samplers exactly.
    """
    pixel_format = source.pixel_format
    src = source.array
    width, height = source.dimensions()
    kw, kh = kernel.dimensions()
    ax, ay = anchor_offset(kernel, anchor)

    acc = pixel_format.filled((height, width), start)

    for ky in range(kh):
        dy = ky - ay
        i0, i1 = max(0, -dy), min(height, height - dy)
        if i0 >= i1:
            continue

        for kx in range(kw):
            weight = kernel.pixel(kx, ky)
            if skip_empty_taps and not weight > 0.0:
                continue

            dx = kx - ax
            j0, j1 = max(0, -dx), min(width, width - dx)
            if j0 >= j1:
                continue

            taps = pixel_format.scale(src[i0 + dy:i1 + dy, j0 + dx:j1 + dx], weight)
            acc[i0:i1, j0:j1] = reduce(acc[i0:i1, j0:j1], taps)

    return acc


# ============================================================================
# Operators
# ============================================================================

class _KernelOperator:
    """
    Shared configuration of Dilation and Erosion.

    The operator only refers to the source and kernel; both must stay alive
    and unchanged while it is used.
    """

    name = "operator"

    def __init__(
        self,
        source: PixelImage,
        kernel: KernelImage,
        position: Position = (0, 0),
        anchor: Anchor = CENTER
    ) -> None:
        """
        Args:
            source: Image to transform
            kernel: Structuring element
            position: Where the top-left of the result lands in the target
            anchor: Fractional point of the kernel aligned with each pixel,
                (0.5, 0.5) being the kernel centre

        Raises:
            ValueError: If position is negative or anchor is outside [0, 1]
        """
        if not isinstance(source, PixelImage):
            raise ValueError(f"{self.name} expects a PixelImage source")
        if not isinstance(kernel, KernelImage):
            raise ValueError(f"{self.name} expects a KernelImage kernel")

        x, y = int(position[0]), int(position[1])
        if x < 0 or y < 0:
            raise ValueError(f"{self.name} position must be non-negative, got {position}")

        ax, ay = float(anchor[0]), float(anchor[1])
        if not (0.0 <= ax <= 1.0 and 0.0 <= ay <= 1.0):
            raise ValueError(f"{self.name} anchor must lie in [0, 1] x [0, 1], got {anchor}")

        self.source = source
        self.kernel = kernel
        self.position: Position = (x, y)
        self.anchor: Anchor = (ax, ay)

    def with_position(self, x: int, y: int) -> "_KernelOperator":
        return type(self)(self.source, self.kernel, (x, y), self.anchor)

    def with_anchor(self, x: float, y: float) -> "_KernelOperator":
        return type(self)(self.source, self.kernel, self.position, (x, y))

    def _compute(self) -> np.ndarray:
        raise NotImplementedError

    def sample(self, x: int, y: int) -> Any:
        """Value of one output pixel, relative to the source origin."""
        raise NotImplementedError

    def render(self) -> PixelImage:
        """Return the result as a new image the size of the source."""
        return PixelImage(self._compute(), self.source.pixel_format)

    def draw(self, target: DrawTarget) -> None:
        """
        Paint the result into ``target`` at ``position``.

        Raises:
            IndexError: If the result does not fit inside the target
        """
        x, y = self.position
        logger.debug(
            "%s %s with %s at (%d, %d) anchor %s",
            self.name, self.source, self.kernel, x, y, self.anchor
        )
        target.write_region(x, y, self._compute())


class Dilation(_KernelOperator):
    """Sliding-window, component-max convolution of a source against a kernel."""

    name = "Dilation"

    def _compute(self) -> np.ndarray:
        pixel_format = self.source.pixel_format
        return _sweep_taps(
            self.source, self.kernel, self.anchor,
            pixel_format.component_max, pixel_format.neutral_min(),
            skip_empty_taps=False
        )

    def sample(self, x: int, y: int) -> Any:
        return dilate_pixel(self.source, self.kernel, self.anchor, x, y)


class Erosion(_KernelOperator):
    """Sliding-window, component-min convolution of a source against a kernel."""

    name = "Erosion"

    def _compute(self) -> np.ndarray:
        pixel_format = self.source.pixel_format
        return _sweep_taps(
            self.source, self.kernel, self.anchor,
            pixel_format.component_min, pixel_format.neutral_max(),
            skip_empty_taps=True
        )

    def sample(self, x: int, y: int) -> Any:
        return erode_pixel(self.source, self.kernel, self.anchor, x, y)


# ============================================================================
# Functional helpers
# ============================================================================

def erode(
    image: PixelImage,
    iterations: int = 1,
    kernel_size: int = 3,
    kernel_shape: KernelShape = "rect",
    kernel: Optional[KernelImage] = None
) -> PixelImage:
    """
    Erode an image - shrinks bright regions.

    Args:
        image: Input image
        iterations: Number of times to apply erosion
        kernel_size: Size of structuring element
        kernel_shape: Shape of structuring element
        kernel: Custom kernel (overrides size and shape)

    Returns:
        Eroded image
    """
    if kernel is None:
        kernel = get_structuring_element(kernel_shape, kernel_size)

    result = image
    for _ in range(max(1, iterations)):
        result = Erosion(result, kernel).render()

    return result


def dilate(
    image: PixelImage,
    iterations: int = 1,
    kernel_size: int = 3,
    kernel_shape: KernelShape = "rect",
    kernel: Optional[KernelImage] = None
) -> PixelImage:
    """
    Dilate an image - grows bright regions.

    Args:
        image: Input image
        iterations: Number of times to apply dilation
        kernel_size: Size of structuring element
        kernel_shape: Shape of structuring element
        kernel: Custom kernel (overrides size and shape)

    Returns:
        Dilated image
    """
    if kernel is None:
        kernel = get_structuring_element(kernel_shape, kernel_size)

    result = image
    for _ in range(max(1, iterations)):
        result = Dilation(result, kernel).render()

    return result


def opening(
    image: PixelImage,
    iterations: int = 1,
    kernel_size: int = 3,
    kernel_shape: KernelShape = "rect",
    kernel: Optional[KernelImage] = None
) -> PixelImage:
    """
    Morphological opening = Erode → Dilate.

    Removes small bright specks while preserving the shape of larger objects.
    """
    if kernel is None:
        kernel = get_structuring_element(kernel_shape, kernel_size)

    result = erode(image, iterations, kernel=kernel)
    return dilate(result, iterations, kernel=kernel)


def closing(
    image: PixelImage,
    iterations: int = 1,
    kernel_size: int = 3,
    kernel_shape: KernelShape = "rect",
    kernel: Optional[KernelImage] = None
) -> PixelImage:
    """
    Morphological closing = Dilate → Erode.

    Fills small holes in bright regions while preserving shape.
    """
    if kernel is None:
        kernel = get_structuring_element(kernel_shape, kernel_size)

    result = dilate(image, iterations, kernel=kernel)
    return erode(result, iterations, kernel=kernel)


def gradient(
    image: PixelImage,
    kernel_size: int = 3,
    kernel_shape: KernelShape = "rect",
    kernel: Optional[KernelImage] = None
) -> PixelImage:
    """
    Morphological gradient = Dilate - Erode.

    Extracts edges/outlines of objects.
    """
    if kernel is None:
        kernel = get_structuring_element(kernel_shape, kernel_size)

    dilated = dilate(image, 1, kernel=kernel).array
    eroded = erode(image, 1, kernel=kernel).array

    if image.pixel_format is BIT:
        return PixelImage(np.logical_and(dilated, np.logical_not(eroded)), BIT)

    edges = (dilated.astype(np.int16) - eroded.astype(np.int16)).clip(0, 255).astype(np.uint8)
    return PixelImage(edges, image.pixel_format)
