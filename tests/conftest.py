"""Common test fixtures for all test modules."""

import os
import sys

import numpy as np
import pytest

# Make the flat modules under src/ importable without installing
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from image import PixelImage  # noqa: E402
from pixel import LUMA, RGBA  # noqa: E402


@pytest.fixture
def opaque_square():
    """12x12 transparent RGBA image with an opaque 4x4 red square at (4..7, 4..7)."""
    array = np.zeros((12, 12, 4), dtype=np.uint8)
    array[4:8, 4:8] = (200, 10, 10, 255)
    return PixelImage(array, RGBA)


@pytest.fixture
def single_pixel():
    """9x9 luma image, black except a white pixel in the centre."""
    image = PixelImage.new(9, 9, 0, LUMA)
    image.set_pixel(4, 4, 255)
    return image


@pytest.fixture
def binary_blobs():
    """Deterministic binary luma image with a few blobs and holes."""
    rng = np.random.default_rng(7)
    array = np.where(rng.random((14, 16)) > 0.55, 255, 0).astype(np.uint8)
    array[3:9, 4:11] = 255
    array[5, 6] = 0
    return PixelImage(array, LUMA)
