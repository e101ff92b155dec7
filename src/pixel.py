"""
Pixel formats and the per-pixel algebra used by morphology operators.

A pixel format knows its numpy dtype and channel count and exposes the
operations dilation and erosion need: a neutral minimum, its complement,
scaling by a kernel weight and component-wise max / min.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Tuple

import numpy as np


class PixelFormat(ABC):
    """Abstract base class for a concrete pixel representation."""

    name: str = ""
    dtype: Any = np.uint8
    channels: int = 1

    @property
    def pixel_shape(self) -> Tuple[int, ...]:
        """Shape of a single pixel value (empty for single-channel formats)."""
        return () if self.channels == 1 else (self.channels,)

    def coerce(self, value: Any) -> Any:
        """Convert an int / tuple / array into a pixel value of this format."""
        array = np.asarray(value, dtype=self.dtype)
        if array.shape != self.pixel_shape:
            try:
                array = array.reshape(self.pixel_shape)
            except ValueError as exc:
                raise ValueError(
                    f"{self.name} pixel expects shape {self.pixel_shape}, got {array.shape}"
                ) from exc
        return array[()]

    def filled(self, shape: Tuple[int, int], value: Any) -> np.ndarray:
        """Allocate a (height, width) block filled with one pixel value."""
        block = np.empty(tuple(shape) + self.pixel_shape, dtype=self.dtype)
        block[...] = self.coerce(value)
        return block

    def accepts(self, array: np.ndarray) -> bool:
        """Whether a numpy array is a valid (height, width) block of this format."""
        return array.dtype == self.dtype and array.ndim == 2 + len(self.pixel_shape) and (
            self.channels == 1 or array.shape[-1] == self.channels
        )

    @abstractmethod
    def neutral_min(self) -> Any:
        """The default pixel; identity of component_max."""

    @abstractmethod
    def complement(self, value: Any) -> Any:
        """Bitwise complement of a pixel or block."""

    def neutral_max(self) -> Any:
        """The complement of the default pixel; identity of component_min."""
        return self.complement(self.neutral_min())

    @abstractmethod
    def scale(self, value: Any, weight: float) -> Any:
        """Multiply a pixel or block by a kernel weight."""

    def component_max(self, a: Any, b: Any) -> Any:
        return np.maximum(a, b)[()]

    def component_min(self, a: Any, b: Any) -> Any:
        return np.minimum(a, b)[()]

    @abstractmethod
    def merge_under(self, top: Any, bottom: Any) -> Any:
        """Composite ``bottom`` behind ``top``; ``top`` wins wherever it is present."""

    def __repr__(self) -> str:
        return f"<PixelFormat {self.name}>"


class BitPixelFormat(PixelFormat):
    """Single-bit pixels stored as numpy booleans."""

    name = "bit"
    dtype = np.bool_
    channels = 1

    def neutral_min(self) -> Any:
        return np.bool_(False)

    def complement(self, value: Any) -> Any:
        return np.logical_not(value)[()]

    def scale(self, value: Any, weight: float) -> Any:
        # A set bit survives only under a positive weight
        return np.logical_and(value, weight > 0.0)[()]

    def merge_under(self, top: Any, bottom: Any) -> Any:
        return np.logical_or(top, bottom)[()]


class LumaFormat(PixelFormat):
    """8-bit single-channel luminance."""

    name = "L"
    dtype = np.uint8
    channels = 1

    def neutral_min(self) -> Any:
        return np.uint8(0)

    def complement(self, value: Any) -> Any:
        return np.invert(np.asarray(value, dtype=np.uint8))[()]

    def scale(self, value: Any, weight: float) -> Any:
        scaled = np.floor(np.asarray(value, dtype=np.float64) * float(weight))
        return np.clip(scaled, 0, 255).astype(np.uint8)[()]

    def merge_under(self, top: Any, bottom: Any) -> Any:
        return np.where(np.asarray(top) != 0, top, bottom).astype(np.uint8)[()]


class RgbaFormat(LumaFormat):
    """
    8-bit RGBA with straight (non-premultiplied) alpha.

    Scaling, max and min act on every channel including alpha.
    """

    name = "RGBA"
    dtype = np.uint8
    channels = 4

    def neutral_min(self) -> Any:
        return np.zeros(4, dtype=np.uint8)

    def merge_under(self, top: Any, bottom: Any) -> Any:
        top = np.asarray(top, dtype=np.float64)
        bottom = np.asarray(bottom, dtype=np.float64)

        top_alpha = top[..., 3:4] / 255.0
        bottom_alpha = bottom[..., 3:4] / 255.0
        out_alpha = top_alpha + bottom_alpha * (1.0 - top_alpha)

        # Porter-Duff "top over bottom"
        weighted = top[..., :3] * top_alpha + bottom[..., :3] * bottom_alpha * (1.0 - top_alpha)
        with np.errstate(divide="ignore", invalid="ignore"):
            color = np.where(out_alpha > 0.0, weighted / out_alpha, 0.0)

        result = np.concatenate([color, out_alpha * 255.0], axis=-1)
        return np.clip(np.rint(result), 0, 255).astype(np.uint8)[()]


BIT = BitPixelFormat()
LUMA = LumaFormat()
RGBA = RgbaFormat()


def format_for_array(array: np.ndarray) -> PixelFormat:
    """Infer the pixel format of a (height, width[, channels]) array."""
    for pixel_format in (BIT, LUMA, RGBA):
        if pixel_format.accepts(array):
            return pixel_format
    raise ValueError(
        f"Unsupported pixel array: dtype={array.dtype}, shape={array.shape}"
    )
