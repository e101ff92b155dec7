"""
Outline ("stroke") synthesis for RGBA images.

The alpha channel is binarized, grown with an anti-aliased elliptical kernel
and painted in the stroke colour behind the original content.
"""
from __future__ import annotations

import copy
import logging
from typing import Tuple

import numpy as np

from image import PixelImage
from kernel import KernelImage
from morphology import Dilation
from pixel import LUMA, RGBA
from threshold import binary_threshold
from utils import parse_color


logger = logging.getLogger(__name__)

Color = Tuple[int, int, int, int]


class Stroke:
    """
    Creates a stroke around the opaque parts of an RGBA image.

    Attributes:
        alpha: Alpha channel of the reference image
        size: Stroke size in pixels, at least 1
        color: Stroke fill colour as (r, g, b, a)
        threshold: Alpha value above which a pixel counts as filled
    """

    def __init__(
        self,
        image: PixelImage,
        size: int,
        color: Color,
        threshold: int = 0
    ) -> None:
        if image.pixel_format is not RGBA:
            raise ValueError("Stroke expects an RGBA image")
        if not 0 <= int(threshold) <= 255:
            raise ValueError(f"Stroke threshold must be in 0-255, got {threshold}")

        self.alpha = image.band(3)
        self.size = max(1, int(size))
        self.color: Color = parse_color(color)
        self.threshold = int(threshold)

    def with_threshold(self, threshold: int) -> "Stroke":
        """Return a copy using a different alpha threshold."""
        if not 0 <= int(threshold) <= 255:
            raise ValueError(f"Stroke threshold must be in 0-255, got {threshold}")

        clone = copy.copy(self)
        clone.threshold = int(threshold)
        return clone

    def kernel(self) -> KernelImage:
        """Anti-aliased ellipse spanning ``size - 1`` pixels on each side of its centre."""
        k_size = self.size * 2 - 1
        return KernelImage.from_shape("ellipse_aa", k_size, k_size)

    def coverage(self) -> PixelImage:
        """Grown occupancy of the reference image as an 8-bit coverage field."""
        width, height = self.alpha.dimensions()
        mask = self.alpha.map_pixels(lambda a: binary_threshold(a, self.threshold), LUMA)

        grown = PixelImage.new(width, height, 0, LUMA)
        Dilation(mask, self.kernel()).draw(grown)
        return grown

    def render(self) -> PixelImage:
        """The stroke layer: fill colour with alpha scaled by coverage."""
        r, g, b, a = self.color
        coverage = self.coverage().array.astype(np.float64)

        layer = np.empty(coverage.shape + (4,), dtype=np.uint8)
        layer[..., 0] = r
        layer[..., 1] = g
        layer[..., 2] = b
        layer[..., 3] = (a * coverage / 255.0).astype(np.uint8)
        return PixelImage(layer, RGBA)

    def draw(self, target: PixelImage) -> None:
        """Composite the stroke behind the existing content of ``target``."""
        logger.debug(
            "Stroke size=%d color=%s threshold=%d over %s",
            self.size, self.color, self.threshold, target
        )
        target.underlay_region(0, 0, self.render().array)
