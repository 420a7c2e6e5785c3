# © 2025 EarthDaily Analytics Corp.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import unittest

import numpy as np

from ..image import (
    ALPHA,
    RED,
    RasterImage,
    alpha_of,
    pack_pixels,
    unpack_pixels,
)


class TestPackedPixels(unittest.TestCase):
    def test_channel_order(self):
        words = pack_pixels(np.array([[1, 2, 3, 4]], dtype=np.uint8))
        assert words.dtype == np.uint32
        assert words.tolist() == [0x04030201]

    def test_unpack(self):
        rgba = unpack_pixels(np.array([0xFF000080], dtype=np.uint32))
        assert rgba.tolist() == [[0x80, 0, 0, 0xFF]]
        assert rgba[0, RED] == 0x80
        assert rgba[0, ALPHA] == 0xFF

    def test_unpack_inverts_pack(self):
        rgba = np.arange(2 * 3 * 4, dtype=np.uint8).reshape(2, 3, 4) * 10
        np.testing.assert_array_equal(unpack_pixels(pack_pixels(rgba)), rgba)

    def test_alpha_of(self):
        words = pack_pixels(np.array([[9, 9, 9, 0], [9, 9, 9, 200]], dtype=np.uint8))
        assert alpha_of(words).tolist() == [0, 200]

    def test_pack_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            pack_pixels(np.zeros((2, 3), dtype=np.uint8))
        with self.assertRaises(ValueError):
            pack_pixels(np.zeros((2, 4), dtype=np.uint16))


class TestRasterImage(unittest.TestCase):
    def setUp(self):
        self.rgba = np.zeros((2, 3, 4), dtype=np.uint8)
        self.rgba[..., 0] = 7
        self.rgba[..., 3] = 255
        self.image = RasterImage.from_rgba(self.rgba, origin=(5, 6), path="a.tif")

    def test_placement(self):
        image = self.image
        assert image.origin == (5, 6)
        assert image.size == (3, 2)
        assert (image.x, image.y, image.width, image.height) == (5, 6, 3, 2)
        assert image.bounds == (5, 6, 8, 8)
        assert image.path == "a.tif"

    def test_pixels(self):
        assert self.image.pixels.shape == (2, 3)
        assert self.image.pixels.dtype == np.uint32
        np.testing.assert_array_equal(self.image.rgba(), self.rgba)

    def test_pixels_read_only(self):
        with self.assertRaises(ValueError):
            self.image.pixels[0, 0] = 1

    def test_pixels_copied(self):
        words = pack_pixels(self.rgba)
        image = RasterImage(words)
        words[0, 0] = 0
        assert image.pixels[0, 0] == pack_pixels(self.rgba)[0, 0]

    def test_origin_immutable(self):
        with self.assertRaises(AttributeError):
            self.image.origin = (0, 0)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((2, 3, 4), dtype=np.uint8))
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((2, 3), dtype=np.int64))
        with self.assertRaises(ValueError):
            RasterImage(np.zeros((2, 3), dtype=np.uint32), origin=(0.5, 0))

    def test_release(self):
        assert not self.image.released
        self.image.release()
        assert self.image.released
        assert self.image.size == (3, 2)
        with self.assertRaises(ValueError):
            self.image.pixels

    def test_equality(self):
        same = RasterImage.from_rgba(self.rgba, origin=(5, 6), path="b.tif")
        moved = RasterImage.from_rgba(self.rgba, origin=(0, 6))
        assert self.image == same
        assert self.image != moved

    def test_repr(self):
        assert repr(self.image) == "RasterImage('a.tif', 3x2+5+6)"
