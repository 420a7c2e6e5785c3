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

import logging
from concurrent import futures

import numpy as np

from .._progress import progress_bar
from ..config import max_workers as _max_workers
from ..exceptions import AllocationError
from ..raster.image import CHANNELS, alpha_of, pack_pixels, unpack_pixels
from .canvas import Canvas, check_placement

logger = logging.getLogger(__name__)

# Sort key for excluded samples, larger than any byte
_EXCLUDED = 256

DEFAULT_ROWS_PER_TILE = 64


def channel_median(values) -> int:
    """
    Median of one channel's byte values.

    The middle value for an odd count, otherwise the mean of the two middle
    values rounded half up.

    >>> channel_median([10, 20, 30])
    20
    >>> channel_median([10, 21])
    16
    """
    values = sorted(int(v) for v in values)
    count = len(values)
    if count == 0:
        raise ValueError("Median of an empty sample stack")
    return (values[(count - 1) // 2] + values[count // 2] + 1) // 2


def median_reduce(samples, valid, fill=0) -> np.ndarray:
    """
    Reduce a stack of samples to one pixel per coordinate.

    Parameters
    ----------
    samples : ndarray
        ``(k, ..., 4)`` uint8 channels, one layer per image.
    valid : ndarray
        ``(k, ...)`` bool, whether each sample takes part in the median.
    fill : int, default 0
        Packed pixel for coordinates without any valid sample.

    Returns
    -------
    ndarray
        ``(..., 4)`` uint8, the per-channel medians.

    Each channel is sorted and reduced on its own, so the result is in
    general not one of the input pixels.
    """
    samples = np.asarray(samples)
    valid = np.asarray(valid, dtype=bool)
    if samples.shape[-1:] != (CHANNELS,) or samples.shape[:-1] != valid.shape:
        raise ValueError(
            "Mismatched samples {} and validity {}".format(samples.shape, valid.shape)
        )

    fill_rgba = unpack_pixels(np.uint32(fill))
    if samples.shape[0] == 0:
        return np.broadcast_to(fill_rgba, samples.shape[1:]).copy()

    keyed = samples.astype(np.uint16)
    keyed[~valid] = _EXCLUDED
    keyed.sort(axis=0)

    count = valid.sum(axis=0)
    low = ((np.maximum(count, 1) - 1) // 2)[np.newaxis, ..., np.newaxis]
    high = (count // 2)[np.newaxis, ..., np.newaxis]

    lo = np.take_along_axis(keyed, low, axis=0)[0]
    hi = np.take_along_axis(keyed, high, axis=0)[0]
    reduced = ((lo + hi + 1) // 2).astype(np.uint8)

    empty = count == 0
    if empty.any():
        reduced[empty] = fill_rgba
    return reduced


class MedianCompositor(object):
    """
    Composites positioned images by per-channel median.

    Parameters
    ----------
    fill : int, default 0
        Packed pixel for canvas coordinates no opaque sample covers.
        The default is fully transparent black.
    rows_per_tile : int, default 64
        Canvas rows reduced by one task.
    max_workers : int, optional
        Size of the thread pool, the executor default if None.
    progress : bool, optional
        Show a progress bar; None shows it only on a terminal.
    """

    def __init__(
        self,
        fill=0,
        rows_per_tile=DEFAULT_ROWS_PER_TILE,
        max_workers=None,
        progress=None,
    ):
        if rows_per_tile < 1:
            raise ValueError("rows_per_tile must be positive")
        self.fill = fill
        self.rows_per_tile = rows_per_tile
        self.max_workers = max_workers
        self.progress = progress

    @classmethod
    def from_settings(cls, settings):
        return cls(
            fill=settings.empty_pixel,
            rows_per_tile=settings.rows_per_tile,
            max_workers=_max_workers(settings),
            progress=settings.get("progress"),
        )

    def composite(self, images, canvas=None) -> Canvas:
        """
        Composite ``images`` into ``canvas``.

        Parameters
        ----------
        images : Sequence[RasterImage]
        canvas : Canvas, optional
            Planned from the images if not given.

        Returns
        -------
        Canvas

        Raises
        ------
        PlacementError
            If an image does not lie on the canvas.
        AllocationError
            If the canvas or a tile's sample stack cannot be allocated.
        """
        images = list(images)
        if canvas is None:
            canvas = Canvas.plan(images, fill=self.fill)
        else:
            check_placement(images, canvas.size)

        logger.info(
            "Blending to a %5dx%5d final canvas...", canvas.width, canvas.height
        )

        tiles = [
            (y0, min(y0 + self.rows_per_tile, canvas.height))
            for y0 in range(0, canvas.height, self.rows_per_tile)
        ]
        progbar = progress_bar(self.progress, canvas.height, "Blending", "row")

        # tiles are disjoint row ranges, so workers never share output
        with futures.ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_tiles = {
                executor.submit(self.composite_tile, images, canvas, y0, y1): (y0, y1)
                for y0, y1 in tiles
            }
            try:
                for future in futures.as_completed(future_tiles):
                    future.result()
                    if progbar is not None:
                        y0, y1 = future_tiles[future]
                        progbar.update(y1 - y0)
            except BaseException:
                for future in future_tiles:
                    future.cancel()
                raise
            finally:
                if progbar is not None:
                    progbar.close()

        return canvas

    def composite_tile(self, images, canvas, y0, y1):
        """Composite canvas rows ``y0:y1`` in place."""
        covering = [
            image
            for image in images
            if image.width > 0 and image.y < y1 and image.y + image.height > y0
        ]
        if not covering:
            canvas.pixels[y0:y1] = self.fill
            return

        rows = y1 - y0
        try:
            samples = np.zeros(
                (len(covering), rows, canvas.width, CHANNELS), dtype=np.uint8
            )
            valid = np.zeros((len(covering), rows, canvas.width), dtype=bool)
        except MemoryError as e:
            raise AllocationError(
                "Failed to allocate the sample stack for rows {}-{}".format(y0, y1)
            ) from e

        for layer, image in enumerate(covering):
            top = max(y0, image.y)
            bottom = min(y1, image.y + image.height)
            words = image.pixels[top - image.y : bottom - image.y]
            region = (
                layer,
                slice(top - y0, bottom - y0),
                slice(image.x, image.x + image.width),
            )
            samples[region] = unpack_pixels(words)
            # fully transparent samples never reach the median
            valid[region] = alpha_of(words) != 0

        try:
            reduced = median_reduce(samples, valid, fill=self.fill)
        except MemoryError as e:
            raise AllocationError(
                "Failed to allocate the sample stack for rows {}-{}".format(y0, y1)
            ) from e

        canvas.pixels[y0:y1] = pack_pixels(reduced)
