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

from typing import Optional, Tuple

import numpy as np

##############################################################################
# Packed pixels
##############################################################################

# One 32-bit word per pixel, channel c in bits 8c..8c+7 (libtiff's ABGR word)
RED, GREEN, BLUE, ALPHA = range(4)
CHANNELS = 4

Origin = Tuple[int, int]
Size = Tuple[int, int]


def pack_pixels(rgba: np.ndarray) -> np.ndarray:
    """Pack a ``(..., 4)`` uint8 array into ``(...)`` uint32 words."""
    rgba = np.asarray(rgba)
    if rgba.shape[-1:] != (CHANNELS,):
        raise ValueError(
            "Expected {} channels in the last axis, got shape {}".format(
                CHANNELS, rgba.shape
            )
        )
    if rgba.dtype != np.uint8:
        raise ValueError("Expected uint8 channels, got {}".format(rgba.dtype))

    words = np.zeros(rgba.shape[:-1], dtype=np.uint32)
    for c in range(CHANNELS):
        words |= rgba[..., c].astype(np.uint32) << np.uint32(8 * c)
    return words


def unpack_pixels(words: np.ndarray) -> np.ndarray:
    """Unpack ``(...)`` uint32 words into a ``(..., 4)`` uint8 array."""
    words = np.asarray(words, dtype=np.uint32)
    return np.stack(
        [((words >> np.uint32(8 * c)) & np.uint32(0xFF)) for c in range(CHANNELS)],
        axis=-1,
    ).astype(np.uint8)


def alpha_of(words: np.ndarray) -> np.ndarray:
    """The alpha byte of every packed pixel in ``words``."""
    return (np.asarray(words, dtype=np.uint32) >> np.uint32(8 * ALPHA)).astype(
        np.uint8
    )


##############################################################################
# RasterImage
##############################################################################


class RasterImage(object):
    """
    A decoded image and its placement on the shared canvas.

    Parameters
    ----------
    pixels : ndarray
        ``(height, width)`` uint32 array of packed pixels, top row first.
    origin : tuple(int, int)
        ``(x, y)`` offset of the top-left pixel on the canvas.
    path : str, optional
        Where the image was loaded from, for diagnostics.

    The origin, size and pixel buffer are read-only once constructed. Call
    `release` when the pixel buffer is no longer needed.
    """

    __slots__ = ("_pixels", "_origin", "_size", "_path")

    def __init__(self, pixels, origin=(0, 0), path=None):
        pixels = np.asarray(pixels)
        if pixels.ndim != 2:
            raise ValueError(
                "Expected a 2D array of packed pixels, got shape {}".format(
                    pixels.shape
                )
            )
        if pixels.dtype != np.uint32:
            raise ValueError("Expected uint32 packed pixels, got {}".format(pixels.dtype))

        x, y = origin
        if int(x) != x or int(y) != y:
            raise ValueError("Origin must be integral, got {}".format(origin))

        # private copy so callers cannot mutate the buffer behind our back
        pixels = np.array(pixels, dtype=np.uint32, order="C", copy=True)
        pixels.flags.writeable = False

        self._pixels = pixels
        self._origin = (int(x), int(y))
        self._size = (pixels.shape[1], pixels.shape[0])
        self._path = None if path is None else str(path)

    @classmethod
    def from_rgba(cls, rgba, origin=(0, 0), path=None):
        """Create an image from a ``(height, width, 4)`` uint8 array."""
        return cls(pack_pixels(rgba), origin=origin, path=path)

    @property
    def path(self) -> Optional[str]:
        return self._path

    @property
    def origin(self) -> Origin:
        return self._origin

    @property
    def size(self) -> Size:
        return self._size

    @property
    def x(self) -> int:
        return self._origin[0]

    @property
    def y(self) -> int:
        return self._origin[1]

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def bounds(self) -> Tuple[int, int, int, int]:
        """The placed rectangle as ``(x0, y0, x1, y1)``, end-exclusive."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise ValueError("{!r} has been released".format(self))
        return self._pixels

    @property
    def released(self) -> bool:
        return self._pixels is None

    def rgba(self) -> np.ndarray:
        """The pixels unpacked into a ``(height, width, 4)`` uint8 array."""
        return unpack_pixels(self.pixels)

    def release(self):
        """Drop the pixel buffer. Placement stays available for diagnostics."""
        self._pixels = None

    def __eq__(self, other):
        if not isinstance(other, RasterImage):
            return NotImplemented
        return (
            self.origin == other.origin
            and self.size == other.size
            and not self.released
            and not other.released
            and np.array_equal(self.pixels, other.pixels)
        )

    __hash__ = None

    def __repr__(self):
        return "RasterImage({!r}, {}x{}+{}+{})".format(
            self.path, self.width, self.height, self.x, self.y
        )
