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
import math
import struct
from concurrent import futures
from enum import IntEnum
from typing import List, Optional

import numpy as np
import tifffile
from PIL import Image, UnidentifiedImageError

from .._progress import progress_bar
from ..exceptions import DecodeError, LoadError, PlacementError
from .image import RasterImage

logger = logging.getLogger(__name__)

##############################################################################
# Tiff Tags
##############################################################################


class TiffTag(IntEnum):
    ORIENTATION = 274
    X_RESOLUTION = 282
    Y_RESOLUTION = 283
    X_POSITION = 286
    Y_POSITION = 287


class Photometric(IntEnum):
    MINISWHITE = 0
    MINISBLACK = 1
    RGB = 2
    PALETTE = 3
    YCBCR = 6


class ExtraSample(IntEnum):
    UNSPECIFIED = 0
    ASSOCALPHA = 1
    UNASSALPHA = 2


JPEG_COMPRESSION = 7

TIFF_MAGIC = (b"II*\x00", b"MM\x00*", b"II+\x00", b"MM\x00+")

# Orientation -> (flip rows, flip columns). The transposed orientations 5-8
# are flipped like their counterparts 1-4, which is what libtiff's top-left
# RGBA reader does.
ORIENTATION_FLIPS = {
    1: (False, False),
    2: (False, True),
    3: (True, True),
    4: (True, False),
    5: (False, False),
    6: (False, True),
    7: (True, True),
    8: (True, False),
}


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (C ``roundf``)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _rational(value) -> float:
    # RATIONAL tags come back from tifffile as (numerator, denominator)
    if isinstance(value, (tuple, list)):
        if len(value) != 2:
            value = value[:2]
        numerator, denominator = value
        if denominator == 0:
            raise ZeroDivisionError("rational with zero denominator")
        return numerator / denominator
    return float(value)


def is_tiff(path) -> bool:
    """Whether ``path`` starts with a classic or BigTIFF header."""
    with open(path, "rb") as f:
        return f.read(4) in TIFF_MAGIC


def to_rgba8(
    data: np.ndarray, photometric, extrasamples=(), colormap=None, bitspersample=None
):
    """Convert decoded TIFF samples to a ``(height, width, 4)`` uint8 array.

    Parameters
    ----------
    data : ndarray
        ``(height, width)`` or contiguous ``(height, width, samples)`` samples.
    photometric : int
        TIFF PhotometricInterpretation.
    extrasamples : tuple(int)
        TIFF ExtraSamples. The first extra sample is alpha if it is marked as
        associated or unassociated alpha, or if it is unspecified and there
        are more than three samples per pixel.
    colormap : ndarray, optional
        ``(3, 2**bits)`` uint16 palette for PALETTE images.
    bitspersample : int, optional
        Significant bits per sample, the full width of ``data.dtype`` if None.

    Raises
    ------
    ValueError
        If the layout cannot be expressed as RGBA.
    """
    if data.ndim == 2:
        data = data[..., np.newaxis]
    if data.ndim != 3:
        raise ValueError("Unsupported sample layout with shape {}".format(data.shape))

    photometric = int(photometric)
    if photometric == Photometric.PALETTE:
        if colormap is None:
            raise ValueError("Palette image without a color map")
        if data.shape[-1] != 1 or data.dtype.kind not in "ub":
            raise ValueError("Unsupported palette layout")
        indices = data[..., 0].astype(np.intp)
        colors = np.asarray(colormap)[:, indices]
        rgb = _to_uint8(np.moveaxis(colors, 0, -1))
        alpha = None
    else:
        samples = _to_uint8(data, bitspersample)
        if photometric in (Photometric.MINISWHITE, Photometric.MINISBLACK):
            gray = samples[..., 0]
            if photometric == Photometric.MINISWHITE:
                gray = 255 - gray
            rgb = np.repeat(gray[..., np.newaxis], 3, axis=-1)
            color_samples = 1
        elif photometric in (Photometric.RGB, Photometric.YCBCR):
            if samples.shape[-1] < 3:
                raise ValueError(
                    "RGB image with {} samples per pixel".format(samples.shape[-1])
                )
            rgb = samples[..., :3]
            color_samples = 3
        else:
            raise ValueError(
                "Unsupported photometric interpretation {}".format(photometric)
            )

        alpha = None
        if samples.shape[-1] > color_samples and _has_alpha(
            extrasamples, samples.shape[-1]
        ):
            alpha = samples[..., color_samples]

    height, width = rgb.shape[:2]
    rgba = np.empty((height, width, 4), dtype=np.uint8)
    rgba[..., :3] = rgb
    rgba[..., 3] = 255 if alpha is None else alpha
    return rgba


def _has_alpha(extrasamples, samplesperpixel) -> bool:
    if not len(extrasamples):
        return False
    kind = int(extrasamples[0])
    if kind in (ExtraSample.ASSOCALPHA, ExtraSample.UNASSALPHA):
        return True
    return kind == ExtraSample.UNSPECIFIED and samplesperpixel > 3


def _to_uint8(samples: np.ndarray, bitspersample=None) -> np.ndarray:
    """Scale ``bitspersample``-bit samples to 0..255.

    Samples filling their dtype keep their high byte. libtiff's RGBA reader
    rounds 16-bit samples as ``(v + 128) // 257`` instead, which can differ by
    one. Narrower samples are rescaled to the full range, so 15 in a 4-bit
    image becomes 255.
    """
    if samples.dtype == np.bool_:
        return samples.astype(np.uint8) * np.uint8(255)
    if samples.dtype not in (np.uint8, np.uint16, np.uint32):
        raise ValueError("Unsupported sample format {}".format(samples.dtype))

    width = samples.dtype.itemsize * 8
    if bitspersample is None:
        bitspersample = width
    if not 1 <= bitspersample <= width:
        raise ValueError(
            "Unsupported {}-bit samples in {}".format(bitspersample, samples.dtype)
        )

    if bitspersample == width:
        return (samples >> (width - 8)).astype(np.uint8)
    maxv = (1 << bitspersample) - 1
    scaled = (samples.astype(np.uint64) * 255 + maxv // 2) // maxv
    return np.minimum(scaled, 255).astype(np.uint8)


def _unsqueeze(data, shaped):
    # tifffile squeezes length-1 axes; shaped is
    # (separate samples, depth, length, width, contiguous samples)
    separate, depth = shaped[:2]
    if depth != 1:
        raise ValueError("Volumetric images are not supported")
    data = data.reshape(shaped)[:, 0]
    if separate > 1:
        return np.moveaxis(data[..., 0], 0, -1)
    return data[0]


def orient_topleft(data: np.ndarray, orientation) -> np.ndarray:
    """Flip ``data`` so that its first row is the top of the image."""
    try:
        flip_rows, flip_columns = ORIENTATION_FLIPS[int(orientation)]
    except (KeyError, TypeError, ValueError):
        raise ValueError("Unknown orientation {!r}".format(orientation)) from None

    if flip_rows:
        data = data[::-1]
    if flip_columns:
        data = data[:, ::-1]
    return data


class ImageLoader(object):
    """
    Decodes raster files into `RasterImage` objects.

    TIFF files are read with ``tifffile`` and placed using their
    XPosition/YPosition and XResolution/YResolution tags. Any other
    container Pillow can open is loaded at the origin, since it carries no
    position.

    Parameters
    ----------
    require_position : bool, default False
        Raise a `DecodeError` for images without position tags instead of
        placing them at the origin.

    A loader holds no mutable state and may be shared between threads.
    """

    def __init__(self, require_position=False):
        self.require_position = require_position

    def load(self, path) -> RasterImage:
        """
        Load a single image.

        Raises
        ------
        LoadError
            If the file is missing or cannot be read.
        DecodeError
            If the container is corrupt or lacks required metadata.
        PlacementError
            If the computed origin is negative.
        """
        try:
            tiff = is_tiff(path)
        except (FileNotFoundError, IsADirectoryError, PermissionError) as e:
            raise LoadError(path, e.strerror or str(e)) from e
        except OSError as e:
            raise LoadError(path, "Unreadable file: {}".format(e)) from e

        try:
            if tiff:
                rgba, origin = self._load_tiff(path)
            else:
                rgba, origin = self._load_other(path)
        except MemoryError as e:
            raise LoadError(path, "Failed to allocate the pixel buffer") from e

        if origin[0] < 0 or origin[1] < 0:
            raise PlacementError(
                path, "Negative origin {}+{} is outside the canvas".format(*origin)
            )

        return RasterImage.from_rgba(rgba, origin=origin, path=path)

    def _load_tiff(self, path):
        try:
            with tifffile.TiffFile(path) as tif:
                page = tif.pages[0]
                tags = page.tags
                origin = self._tiff_origin(path, tags)
                data = _unsqueeze(page.asarray(), page.shaped)

                photometric = int(page.photometric)
                if (
                    photometric == Photometric.YCBCR
                    and int(page.compression) != JPEG_COMPRESSION
                ):
                    raise ValueError("Uncompressed YCbCr is not supported")

                rgba = to_rgba8(
                    data,
                    photometric,
                    extrasamples=page.extrasamples,
                    colormap=page.colormap,
                    bitspersample=page.bitspersample,
                )
                orientation = tags.get(TiffTag.ORIENTATION)
                if orientation is not None:
                    rgba = orient_topleft(rgba, orientation.value)
        except (LoadError, MemoryError):
            raise
        except (
            tifffile.TiffFileError,
            OSError,
            ValueError,
            IndexError,
            struct.error,
        ) as e:
            raise DecodeError(path, "Corrupt or unsupported TIFF: {}".format(e)) from e

        if rgba.shape[:2] != (page.imagelength, page.imagewidth):
            raise DecodeError(
                path,
                "Decoded {}x{} pixels, expected {}x{}".format(
                    rgba.shape[1], rgba.shape[0], page.imagewidth, page.imagelength
                ),
            )
        return rgba, origin

    def _tiff_origin(self, path, tags):
        origin = []
        for axis, position_tag, resolution_tag in (
            ("X", TiffTag.X_POSITION, TiffTag.X_RESOLUTION),
            ("Y", TiffTag.Y_POSITION, TiffTag.Y_RESOLUTION),
        ):
            position = tags.get(position_tag)
            if position is None:
                if self.require_position:
                    raise DecodeError(path, "Missing {}Position tag".format(axis))
                logger.warning(
                    "%s: no %sPosition tag, placing at %s=0", path, axis, axis.lower()
                )
                origin.append(0)
                continue

            resolution = tags.get(resolution_tag)
            if resolution is None:
                raise DecodeError(
                    path, "{}Position without {}Resolution".format(axis, axis)
                )

            try:
                offset = _rational(position.value) * _rational(resolution.value)
            except (ZeroDivisionError, TypeError, ValueError) as e:
                raise DecodeError(
                    path, "Invalid {} position or resolution: {}".format(axis, e)
                ) from e
            if not math.isfinite(offset):
                raise DecodeError(path, "Non-finite {} offset".format(axis))
            origin.append(round_half_away(offset))
        return tuple(origin)

    def _load_other(self, path):
        if self.require_position:
            raise DecodeError(path, "Only TIFF images carry position tags")

        try:
            with Image.open(path) as img:
                rgba = np.asarray(img.convert("RGBA"), dtype=np.uint8)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(path, "Corrupt or unsupported image: {}".format(e)) from e

        logger.warning("%s: not a TIFF, placing at the origin", path)
        return rgba, (0, 0)


def load_images(
    paths, loader=None, max_workers=None, progress=None
) -> List[RasterImage]:
    """
    Load images on a thread pool.

    Parameters
    ----------
    paths : Sequence[str or path-like]
        Images to load.
    loader : ImageLoader, optional
        Defaults to ``ImageLoader()``.
    max_workers : int, optional
        Size of the thread pool, the executor default if None.
    progress : bool, optional
        Show a progress bar; None shows it only on a terminal.

    Returns
    -------
    list(RasterImage)
        In the same order as ``paths``.

    Raises
    ------
    LoadError
        The first failure. Loads that have not started are cancelled and
        images already loaded are released.
    """
    if loader is None:
        loader = ImageLoader()

    paths = list(paths)
    n_images = len(paths)
    images: List[Optional[RasterImage]] = [None] * n_images

    logger.info("Loading %3d images...", n_images)
    progbar = progress_bar(progress, n_images, "Loading", "image")

    with futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_images = {
            executor.submit(loader.load, path): i for i, path in enumerate(paths)
        }
        try:
            for future in futures.as_completed(future_images):
                i = future_images[future]
                try:
                    image = future.result()
                except Exception:
                    logger.error("\t%3d/%-3d %s... failed.", i + 1, n_images, paths[i])
                    raise

                images[i] = image
                logger.info(
                    "\t%3d/%-3d %s... loaded: %5dx%-5d+%5d+%-5d.",
                    i + 1,
                    n_images,
                    paths[i],
                    image.width,
                    image.height,
                    image.x,
                    image.y,
                )
                if progbar is not None:
                    progbar.update(1)
        except BaseException:
            for future in future_images:
                future.cancel()
            for image in images:
                if image is not None:
                    image.release()
            raise
        finally:
            if progbar is not None:
                progbar.close()

    return images
