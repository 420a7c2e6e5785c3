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

import os
import unittest

import numpy as np
import tifffile

from ...exceptions import EncodeError
from ...tests.base import TempDirTestCase
from ..image import pack_pixels
from ..loader import ImageLoader
from ..writer import RasterWriter, default_rows_per_strip


class TestRowsPerStrip(unittest.TestCase):
    def test_default_rows_per_strip(self):
        assert default_rows_per_strip(4 * 100) == 20
        assert default_rows_per_strip(8192) == 1
        assert default_rows_per_strip(4 * 10000) == 1
        assert default_rows_per_strip(0) == 1


class TestRasterWriter(TempDirTestCase):
    def setUp(self):
        super(TestRasterWriter, self).setUp()
        self.rgba = np.zeros((3, 5, 4), dtype=np.uint8)
        self.rgba[..., 0] = np.arange(5)
        self.rgba[..., 1] = np.arange(3)[:, np.newaxis]
        self.rgba[..., 2] = 77
        self.rgba[..., 3] = 255
        self.rgba[0, 0, 3] = 0

    def test_write(self):
        path = RasterWriter().write(self.path("out.tif"), pack_pixels(self.rgba))
        assert path == self.path("out.tif")

        with tifffile.TiffFile(path) as tif:
            page = tif.pages[0]
            np.testing.assert_array_equal(page.asarray(), self.rgba)
            assert page.photometric == tifffile.PHOTOMETRIC.RGB
            assert page.planarconfig == tifffile.PLANARCONFIG.CONTIG
            assert page.bitspersample == 8
            assert page.samplesperpixel == 4
            assert page.extrasamples == (tifffile.EXTRASAMPLE.UNASSALPHA,)
            assert page.compression == tifffile.COMPRESSION.NONE
            assert page.tags["Orientation"].value == 1
            assert page.tags["Software"].value == "medianstack"
            # tifffile caps RowsPerStrip at the image length
            assert page.tags["RowsPerStrip"].value in (
                default_rows_per_strip(5 * 4),
                3,
            )
            assert len(page.dataoffsets) == 1

    def test_strips(self):
        rgba = np.zeros((5, 1024, 4), dtype=np.uint8)
        rgba[..., 3] = 255
        path = RasterWriter().write(self.path("wide.tif"), pack_pixels(rgba))

        with tifffile.TiffFile(path) as tif:
            page = tif.pages[0]
            assert page.tags["RowsPerStrip"].value == default_rows_per_strip(1024 * 4)
            assert page.tags["RowsPerStrip"].value == 2
            assert len(page.dataoffsets) == 3
            np.testing.assert_array_equal(page.asarray(), rgba)

    def test_top_row_first(self):
        path = RasterWriter().write(self.path("out.tif"), pack_pixels(self.rgba))
        image = ImageLoader().load(path)
        np.testing.assert_array_equal(image.rgba(), self.rgba)

    def test_software(self):
        path = RasterWriter(software="testing").write(
            self.path("out.tif"), pack_pixels(self.rgba)
        )
        with tifffile.TiffFile(path) as tif:
            assert tif.pages[0].tags["Software"].value == "testing"

    def test_creates_directories(self):
        path = self.path("nested/dir/out.tif")
        RasterWriter().write(path, pack_pixels(self.rgba))
        assert os.path.isfile(path)

    def test_empty_canvas(self):
        with self.assertRaises(EncodeError):
            RasterWriter().write(self.path("out.tif"), np.zeros((0, 5), np.uint32))
        assert not os.path.exists(self.path("out.tif"))

    def test_not_2d(self):
        with self.assertRaises(EncodeError):
            RasterWriter().write(self.path("out.tif"), np.zeros(5, np.uint32))

    def test_unwritable(self):
        with self.assertRaises(EncodeError) as ctx:
            RasterWriter().write(self.tmpdir, pack_pixels(self.rgba))
        assert ctx.exception.path == self.tmpdir
