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
import os

import numpy as np
from tifffile import EXTRASAMPLE, TiffWriter

from ..exceptions import EncodeError
from .image import CHANNELS, unpack_pixels

logger = logging.getLogger(__name__)

# libtiff's TIFFDefaultStripSize aims for strips of about 8 KiB
STRIP_SIZE_DEFAULT = 8192

ORIENTATION_TOPLEFT = 1

# Past this size classic TIFF offsets overflow
BIGTIFF_THRESHOLD = 2**32 - 2**25


def default_rows_per_strip(bytes_per_line: int) -> int:
    """Rows per strip giving strips of about 8 KiB, at least one row."""
    if bytes_per_line < 1:
        return 1
    return max(1, STRIP_SIZE_DEFAULT // bytes_per_line)


# Orientation: row 0 is the top, column 0 the left
_EXTRA_TAGS = [(274, 3, 1, ORIENTATION_TOPLEFT, False)]


class RasterWriter(object):
    """
    Encodes a packed canvas buffer as an RGBA TIFF.

    The TIFF has 4 samples of 8 bits, RGB photometric interpretation with an
    unassociated alpha extra sample, contiguous planar configuration, top-left
    orientation and no compression.

    Parameters
    ----------
    software : str, default "medianstack"
        Written to the Software tag.
    """

    def __init__(self, software="medianstack"):
        self.software = software

    def write(self, path, pixels):
        """
        Write ``pixels``, a ``(height, width)`` array of packed pixels stored
        top row first, to ``path``.

        Returns
        -------
        str
            The path written.

        Raises
        ------
        EncodeError
            If the canvas is empty or the file cannot be created or written.
        """
        path = os.fspath(path)
        pixels = np.asarray(pixels)
        if pixels.ndim != 2:
            raise EncodeError(
                path, "Expected a 2D canvas buffer, got shape {}".format(pixels.shape)
            )

        height, width = pixels.shape
        if height < 1 or width < 1:
            raise EncodeError(path, "Height or width less than one pixel in dimension")

        # Create any intermediate directories
        dirname = os.path.dirname(path)
        try:
            if dirname != "" and not os.path.exists(dirname):
                os.makedirs(dirname)
        except OSError as e:
            raise EncodeError(path, "Cannot create directory: {}".format(e)) from e

        try:
            data = unpack_pixels(pixels)
        except MemoryError as e:
            raise EncodeError(path, "Failed to allocate the output buffer") from e

        bytes_per_line = width * CHANNELS
        rowsperstrip = default_rows_per_strip(bytes_per_line)

        logger.debug(
            "Writing %dx%d RGBA to %s, %d rows per strip",
            width,
            height,
            path,
            rowsperstrip,
        )
        try:
            with TiffWriter(path, bigtiff=data.nbytes > BIGTIFF_THRESHOLD) as tif:
                tif.write(
                    data,
                    photometric="rgb",
                    planarconfig="contig",
                    extrasamples=(EXTRASAMPLE.UNASSALPHA,),
                    rowsperstrip=rowsperstrip,
                    compression=None,
                    software=self.software,
                    metadata=None,
                    extratags=_EXTRA_TAGS,
                )
        except (OSError, ValueError) as e:
            raise EncodeError(path, "Cannot write raster: {}".format(e)) from e

        return path
