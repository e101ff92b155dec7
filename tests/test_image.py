""" Tests for src/image.py """

# External
import numpy as np
import pytest

# Internal
from image import PixelImage
from pixel import BIT, LUMA, RGBA


def test_new_and_dimensions():
    """ New images are filled and report (width, height) """
    image = PixelImage.new(5, 3, 9, LUMA)

    assert image.dimensions() == (5, 3)
    assert image.array.shape == (3, 5)
    assert np.all(image.array == 9)

    rgba = PixelImage.new(2, 2, pixel_format=RGBA)
    np.testing.assert_array_equal(rgba.pixel(1, 1), [0, 0, 0, 0])


def test_invalid_construction():
    """ Bad sizes and arrays are rejected """
    with pytest.raises(ValueError):
        PixelImage.new(0, 3)
    with pytest.raises(ValueError):
        PixelImage(np.zeros((3, 3), dtype=np.uint8), RGBA)
    with pytest.raises(ValueError):
        PixelImage([[0, 1]])


def test_pixel_access():
    """ get_pixel probes, pixel / set_pixel raise out of bounds """
    image = PixelImage.new(4, 3, 0, LUMA)
    image.set_pixel(3, 2, 77)

    assert image.get_pixel(3, 2) == 77
    assert image.array[2, 3] == 77
    assert image.get_pixel(4, 0) is None
    assert image.get_pixel(0, -1) is None

    with pytest.raises(IndexError):
        image.pixel(0, 3)
    with pytest.raises(IndexError):
        image.set_pixel(-1, 0, 1)


def test_view_writes_through():
    """ Views share storage with their parent """
    image = PixelImage.new(6, 6, 0, LUMA)
    view = image.view(2, 1, 3, 2)
    view.set_pixel(0, 0, 50)

    assert view.dimensions() == (3, 2)
    assert image.pixel(2, 1) == 50

    with pytest.raises(IndexError):
        image.view(4, 4, 3, 3)


def test_write_region_bounds():
    """ Region writes must fit inside the image """
    image = PixelImage.new(4, 4, 0, LUMA)
    image.write_region(1, 2, np.full((2, 3), 8, dtype=np.uint8))

    assert image.pixel(3, 3) == 8
    assert image.pixel(0, 2) == 0

    with pytest.raises(IndexError):
        image.write_region(2, 2, np.zeros((3, 3), dtype=np.uint8))


def test_band():
    """ band() extracts one channel as a luma image """
    array = np.zeros((2, 3, 4), dtype=np.uint8)
    array[..., 3] = 200
    array[0, 1, 3] = 5
    image = PixelImage(array, RGBA)

    alpha = image.band(3)
    assert alpha.pixel_format is LUMA
    assert alpha.pixel(1, 0) == 5
    assert alpha.pixel(0, 0) == 200

    alpha.set_pixel(0, 0, 1)
    assert image.array[0, 0, 3] == 200

    with pytest.raises(IndexError):
        image.band(4)


def test_band_of_bits():
    """ Bit images band to 0 / 255 luma """
    bits = PixelImage(np.array([[True, False]]), BIT)

    np.testing.assert_array_equal(bits.band(0).array, [[255, 0]])


def test_map_pixels_returns_copy():
    """ map_pixels leaves the original untouched """
    image = PixelImage.new(2, 2, 10, LUMA)
    mapped = image.map_pixels(lambda a: a * 2)

    assert np.all(mapped.array == 20)
    assert np.all(image.array == 10)

    bits = image.map_pixels(lambda a: a > 5)
    assert bits.pixel_format is BIT


def test_underlay_pixel():
    """ Underlay paints behind existing content and ignores outside cells """
    image = PixelImage.new(2, 1, pixel_format=RGBA)
    image.set_pixel(0, 0, (9, 9, 9, 255))

    image.underlay_pixel(0, 0, (1, 2, 3, 255))
    image.underlay_pixel(1, 0, (1, 2, 3, 255))
    image.underlay_pixel(5, 0, (1, 2, 3, 255))

    np.testing.assert_array_equal(image.pixel(0, 0), [9, 9, 9, 255])
    np.testing.assert_array_equal(image.pixel(1, 0), [1, 2, 3, 255])


def test_underlay_region_clips():
    """ Underlay regions are clipped to the image """
    image = PixelImage.new(3, 3, 0, LUMA)
    image.set_pixel(1, 1, 4)

    image.underlay_region(1, 1, np.full((4, 4), 7, dtype=np.uint8))

    expected = np.array([
        [0, 0, 0],
        [0, 4, 7],
        [0, 7, 7],
    ])
    np.testing.assert_array_equal(image.array, expected)
