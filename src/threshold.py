"""
Thresholding used to turn coverage / alpha channels into occupancy masks.
"""
from __future__ import annotations

import numpy as np


def binary_threshold(image: np.ndarray, thresh: int, max_val: int = 255) -> np.ndarray:
    """
    Apply binary threshold to a single-channel image.

    Args:
        image: Single-channel input image (2D)
        thresh: Threshold value (0-255); pixels strictly above it are set
        max_val: Value for pixels above threshold

    Returns:
        Binary image (0 and max_val)

    Raises:
        ValueError: If image is not single-channel
    """
    if image.ndim != 2:
        raise ValueError("binary_threshold expects a single-channel image")

    return np.where(image > thresh, max_val, 0).astype(np.uint8)
