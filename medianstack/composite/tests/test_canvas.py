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

from ...exceptions import PlacementError
from ...raster.image import RasterImage
from ...tests.base import solid
from ..canvas import Canvas, canvas_size, check_placement


def image_at(x, y, width, height, rgba=(1, 2, 3, 255), path=None):
    return RasterImage.from_rgba(solid(width, height, rgba), origin=(x, y), path=path)


class TestCanvasSize(unittest.TestCase):
    def test_overlapping(self):
        images = [image_at(0, 0, 100, 100), image_at(50, 50, 100, 100)]
        assert canvas_size(images) == (150, 150)

    def test_axes_independent(self):
        images = [image_at(90, 0, 10, 5), image_at(0, 40, 20, 10)]
        assert canvas_size(images) == (100, 50)

    def test_single_offset(self):
        assert canvas_size([image_at(3, 4, 2, 1)]) == (5, 5)

    def test_empty(self):
        assert canvas_size([]) == (0, 0)

    def test_no_side_effects(self):
        images = [image_at(1, 2, 3, 4)]
        canvas_size(images)
        assert images[0].origin == (1, 2)
        assert not images[0].released


class TestCheckPlacement(unittest.TestCase):
    def test_fits(self):
        check_placement([image_at(0, 0, 2, 2), image_at(1, 1, 2, 2)])
        check_placement([image_at(0, 0, 2, 2)], size=(5, 5))

    def test_outside(self):
        with self.assertRaises(PlacementError) as ctx:
            check_placement([image_at(4, 0, 2, 2, path="wide.tif")], size=(5, 5))
        assert ctx.exception.path == "wide.tif"

    def test_negative(self):
        image = image_at(0, 0, 2, 2, path="neg.tif")
        image._origin = (-1, 0)
        with self.assertRaises(PlacementError):
            check_placement([image])


class TestCanvas(unittest.TestCase):
    def test_fill(self):
        canvas = Canvas(3, 2, fill=0xFF0000FF)
        assert canvas.size == (3, 2)
        assert canvas.pixels.shape == (2, 3)
        assert canvas.pixels.dtype == np.uint32
        assert canvas.rgba()[1, 2].tolist() == [255, 0, 0, 255]

    def test_plan(self):
        canvas = Canvas.plan([image_at(0, 0, 100, 100), image_at(50, 50, 100, 100)])
        assert canvas.size == (150, 150)
        assert (canvas.pixels == 0).all()

    def test_plan_empty(self):
        canvas = Canvas.plan([])
        assert canvas.size == (0, 0)
        assert canvas.pixels.shape == (0, 0)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            Canvas(-1, 2)
