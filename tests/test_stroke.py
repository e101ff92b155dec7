""" Tests for src/stroke.py """

# External
import numpy as np
import pytest

# Internal
from image import PixelImage
from pixel import LUMA, RGBA
from stroke import Stroke


SQUARE = slice(4, 8)


def _chebyshev_distance_to_square(x, y):
    dx = max(4 - x, 0, x - 7)
    dy = max(4 - y, 0, y - 7)
    return max(dx, dy)


def test_coverage_margin(opaque_square):
    """ Size 3 stroke covers up to 2 pixels beyond the square and nothing further """
    coverage = Stroke(opaque_square, 3, (0, 255, 0, 255)).coverage()

    assert coverage.pixel_format is LUMA
    assert np.all(coverage.array[SQUARE, SQUARE] == 255)

    # 2 pixels out along each side
    assert coverage.pixel(2, 5) > 0
    assert coverage.pixel(9, 5) > 0
    assert coverage.pixel(5, 2) > 0
    assert coverage.pixel(5, 9) > 0

    for y in range(12):
        for x in range(12):
            if _chebyshev_distance_to_square(x, y) > 2:
                assert coverage.pixel(x, y) == 0, (x, y)


def test_coverage_is_anti_aliased(opaque_square):
    """ The outermost ring carries fractional coverage """
    coverage = Stroke(opaque_square, 3, (0, 255, 0, 255)).coverage()

    assert coverage.pixel(3, 5) == 255
    assert coverage.pixel(2, 5) == 127
    assert coverage.pixel(2, 3) == 30
    assert coverage.pixel(2, 2) == 0


def test_render_scales_fill_alpha(opaque_square):
    """ Stroke alpha is the fill alpha times coverage """
    layer = Stroke(opaque_square, 3, (0, 255, 0, 200)).render()

    assert layer.pixel_format is RGBA
    np.testing.assert_array_equal(layer.pixel(5, 5), [0, 255, 0, 200])
    np.testing.assert_array_equal(layer.pixel(2, 5), [0, 255, 0, 99])
    np.testing.assert_array_equal(layer.pixel(0, 0), [0, 255, 0, 0])


def test_draw_paints_behind(opaque_square):
    """ The stroke shows around the square but never over it """
    original = opaque_square.copy()
    Stroke(opaque_square, 3, (0, 255, 0, 255)).draw(opaque_square)

    np.testing.assert_array_equal(
        opaque_square.array[SQUARE, SQUARE], original.array[SQUARE, SQUARE]
    )
    np.testing.assert_array_equal(opaque_square.pixel(3, 5), [0, 255, 0, 255])
    np.testing.assert_array_equal(opaque_square.pixel(2, 5), [0, 255, 0, 127])
    np.testing.assert_array_equal(opaque_square.pixel(0, 0), [0, 0, 0, 0])


def test_draw_into_larger_target(opaque_square):
    """ Only the stroke's extent of the target is touched """
    target = PixelImage.new(20, 20, (1, 1, 1, 0), RGBA)
    Stroke(opaque_square, 2, (9, 9, 9, 255)).draw(target)

    np.testing.assert_array_equal(target.pixel(5, 5), [9, 9, 9, 255])
    np.testing.assert_array_equal(target.pixel(15, 15), [1, 1, 1, 0])


def test_size_is_clamped(opaque_square):
    """ Sizes below one behave like one: coverage equals the mask """
    stroke = Stroke(opaque_square, 0, (0, 0, 0, 255))

    assert stroke.size == 1
    assert stroke.kernel().dimensions() == (1, 1)

    expected = np.zeros((12, 12), dtype=np.uint8)
    expected[SQUARE, SQUARE] = 255
    np.testing.assert_array_equal(stroke.coverage().array, expected)


def test_threshold():
    """ Only alpha strictly above the threshold counts as filled """
    array = np.zeros((5, 5, 4), dtype=np.uint8)
    array[2, 1, 3] = 100
    array[2, 3, 3] = 101
    image = PixelImage(array, RGBA)

    stroke = Stroke(image, 1, (0, 0, 0, 255), threshold=100)
    coverage = stroke.coverage()
    assert coverage.pixel(1, 2) == 0
    assert coverage.pixel(3, 2) == 255

    relaxed = stroke.with_threshold(99)
    assert relaxed.threshold == 99
    assert stroke.threshold == 100
    assert relaxed.coverage().pixel(1, 2) == 255


def test_invalid_arguments(opaque_square):
    """ Non-RGBA sources, bad colours and thresholds are rejected """
    with pytest.raises(ValueError):
        Stroke(PixelImage.new(3, 3, 0, LUMA), 2, (0, 0, 0, 255))
    with pytest.raises(ValueError):
        Stroke(opaque_square, 2, (0, 0, 300, 255))
    with pytest.raises(ValueError):
        Stroke(opaque_square, 2, (0, 0, 0, 255), threshold=256)
