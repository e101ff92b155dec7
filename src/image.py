"""
In-memory pixel grids backed by numpy arrays.

Arrays are stored row-major as (height, width) or (height, width, channels);
coordinates passed to the accessors are always (x, y).
"""
from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Tuple

import numpy as np

from pixel import LUMA, PixelFormat, format_for_array


class DrawTarget(Protocol):
    """Minimal surface a morphology operator needs to paint into."""

    def dimensions(self) -> Tuple[int, int]:
        ...

    def write_region(self, x: int, y: int, block: np.ndarray) -> None:
        ...


class PixelImage:
    """
    A rectangular pixel grid with a known pixel format.

    The wrapped array is shared, not copied: views created with ``view()``
    write through to their parent image.
    """

    def __init__(self, array: np.ndarray, pixel_format: Optional[PixelFormat] = None) -> None:
        """
        Args:
            array: Pixel data, (height, width) or (height, width, channels)
            pixel_format: Format of the data, inferred from the array if omitted

        Raises:
            ValueError: If the array does not match the pixel format
        """
        if not isinstance(array, np.ndarray):
            raise ValueError("PixelImage expects a numpy array")

        if pixel_format is None:
            pixel_format = format_for_array(array)
        elif not pixel_format.accepts(array):
            raise ValueError(
                f"Array with dtype={array.dtype}, shape={array.shape} "
                f"is not a valid {pixel_format.name} image"
            )

        if array.shape[0] == 0 or array.shape[1] == 0:
            raise ValueError("PixelImage dimensions must be positive")

        self.array = array
        self.pixel_format = pixel_format

    @classmethod
    def new(
        cls,
        width: int,
        height: int,
        fill: Any = None,
        pixel_format: PixelFormat = LUMA
    ) -> "PixelImage":
        """Create an image filled with ``fill`` (the neutral minimum by default)."""
        if width <= 0 or height <= 0:
            raise ValueError("Width and height must be positive integers")

        if fill is None:
            fill = pixel_format.neutral_min()
        return cls(pixel_format.filled((int(height), int(width)), fill), pixel_format)

    @property
    def width(self) -> int:
        return int(self.array.shape[1])

    @property
    def height(self) -> int:
        return int(self.array.shape[0])

    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(
                f"Pixel ({x}, {y}) is out of bounds for image of size {self.dimensions()}"
            )

    def get_pixel(self, x: int, y: int) -> Optional[Any]:
        """Return the pixel at (x, y), or None when the coordinate is outside the image."""
        if not self.in_bounds(x, y):
            return None
        return self.array[y, x]

    def pixel(self, x: int, y: int) -> Any:
        self._check_bounds(x, y)
        return self.array[y, x]

    def set_pixel(self, x: int, y: int, value: Any) -> None:
        self._check_bounds(x, y)
        self.array[y, x] = self.pixel_format.coerce(value)

    def view(self, x: int, y: int, width: int, height: int) -> "PixelImage":
        """Borrow a sub-rectangle; writes to the view land in this image."""
        if width <= 0 or height <= 0:
            raise ValueError("View dimensions must be positive")
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise IndexError(
                f"View ({x}, {y}, {width}x{height}) exceeds image of size {self.dimensions()}"
            )
        return PixelImage(self.array[y:y + height, x:x + width], self.pixel_format)

    def write_region(self, x: int, y: int, block: np.ndarray) -> None:
        """
        Overwrite the box starting at (x, y) with ``block``.

        Raises:
            IndexError: If any part of the block falls outside the image
        """
        height, width = block.shape[:2]
        if x < 0 or y < 0 or x + width > self.width or y + height > self.height:
            raise IndexError(
                f"Region ({x}, {y}, {width}x{height}) exceeds image of size {self.dimensions()}"
            )
        self.array[y:y + height, x:x + width] = block

    def underlay_pixel(self, x: int, y: int, value: Any) -> None:
        """Paint ``value`` behind the existing pixel; ignored outside the image."""
        if not self.in_bounds(x, y):
            return
        value = self.pixel_format.coerce(value)
        self.array[y, x] = self.pixel_format.merge_under(self.array[y, x], value)

    def underlay_region(self, x: int, y: int, block: np.ndarray) -> None:
        """
        Paint ``block`` behind existing content, starting at (x, y).

        Cells of the block that fall outside the image are dropped.
        """
        height, width = block.shape[:2]
        x0, y0 = max(0, x), max(0, y)
        x1, y1 = min(self.width, x + width), min(self.height, y + height)
        if x0 >= x1 or y0 >= y1:
            return

        clipped = block[y0 - y:y1 - y, x0 - x:x1 - x]
        existing = self.array[y0:y1, x0:x1]
        self.array[y0:y1, x0:x1] = self.pixel_format.merge_under(existing, clipped)

    def map_pixels(
        self,
        func: Callable[[np.ndarray], np.ndarray],
        pixel_format: Optional[PixelFormat] = None
    ) -> "PixelImage":
        """
        Return a transformed copy.

        Args:
            func: Receives a copy of the pixel array and returns the new array
            pixel_format: Format of the result, inferred if omitted
        """
        return PixelImage(np.asarray(func(self.array.copy())), pixel_format)

    def band(self, index: int) -> "PixelImage":
        """Extract one channel as a standalone single-channel image."""
        channels = self.pixel_format.channels
        if not 0 <= index < channels:
            raise IndexError(f"Band {index} does not exist in a {channels}-channel image")

        if self.array.dtype == np.bool_:
            return PixelImage(self.array.astype(np.uint8) * 255, LUMA)
        if channels == 1:
            return PixelImage(self.array.copy(), LUMA)
        return PixelImage(self.array[..., index].copy(), LUMA)

    def copy(self) -> "PixelImage":
        return PixelImage(self.array.copy(), self.pixel_format)

    def __repr__(self) -> str:
        return f"PixelImage({self.width}x{self.height}, {self.pixel_format.name})"
