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

from typing import Tuple

import numpy as np

from ..exceptions import AllocationError, PlacementError
from ..raster.image import unpack_pixels


def canvas_size(images) -> Tuple[int, int]:
    """
    Smallest ``(width, height)`` anchored at (0, 0) containing every image.

    An empty sequence gives ``(0, 0)``.
    """
    width = height = 0
    for image in images:
        width = max(width, image.x + image.width)
        height = max(height, image.y + image.height)
    return width, height


def check_placement(images, size=None):
    """
    Make sure every image lies on the canvas.

    Parameters
    ----------
    images : Sequence[RasterImage]
    size : tuple(int, int), optional
        Canvas ``(width, height)``, defaults to ``canvas_size(images)``.

    Raises
    ------
    PlacementError
        For the first image with a negative origin or extending past the
        canvas.
    """
    if size is None:
        size = canvas_size(images)
    width, height = size

    for image in images:
        x0, y0, x1, y1 = image.bounds
        if x0 < 0 or y0 < 0:
            raise PlacementError(
                image.path, "Negative origin {}+{} is outside the canvas".format(x0, y0)
            )
        if x1 > width or y1 > height:
            raise PlacementError(
                image.path,
                "{}x{}+{}+{} extends past the {}x{} canvas".format(
                    image.width, image.height, x0, y0, width, height
                ),
            )


class Canvas(object):
    """
    The output buffer: ``(height, width)`` packed pixels anchored at (0, 0).

    Parameters
    ----------
    width, height : int
    fill : int, default 0
        Packed pixel the buffer starts out with.

    Raises
    ------
    AllocationError
        If the buffer cannot be allocated.
    """

    def __init__(self, width, height, fill=0):
        if width < 0 or height < 0:
            raise ValueError("Invalid canvas size {}x{}".format(width, height))

        self.width = width
        self.height = height
        try:
            self.pixels = np.full((height, width), fill, dtype=np.uint32)
        except MemoryError as e:
            raise AllocationError(
                "Failed to allocate a {}x{} canvas".format(width, height)
            ) from e

    @classmethod
    def plan(cls, images, fill=0):
        """Allocate the canvas covering ``images`` after checking their placement."""
        size = canvas_size(images)
        check_placement(images, size)
        return cls(*size, fill=fill)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def rgba(self) -> np.ndarray:
        return unpack_pixels(self.pixels)

    def __repr__(self):
        return "Canvas({}x{})".format(self.width, self.height)
