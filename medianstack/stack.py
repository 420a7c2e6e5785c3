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

from .composite import MedianCompositor
from .config import get_settings, max_workers
from .raster import ImageLoader, RasterWriter, load_images

logger = logging.getLogger(__name__)


def median_stack(paths, output=None, settings=None):
    """
    Composite the images at ``paths`` and write the result.

    Parameters
    ----------
    paths : Sequence[str or path-like]
        Positioned images, at least one.
    output : str or path-like, optional
        Where to write the composite, the ``output`` setting if not given.
    settings : Settings, optional
        Defaults to :py:func:`~medianstack.config.get_settings`.

    Returns
    -------
    str
        The path written.

    Raises
    ------
    ValueError
        If no paths are given.
    LoadError
        If any image fails to load. Nothing is written.
    AllocationError
        If the canvas or a sample stack cannot be allocated.
    EncodeError
        If the output cannot be written.
    """
    paths = list(paths)
    if len(paths) == 0:
        raise ValueError("No images given to composite")

    if settings is None:
        settings = get_settings()
    if output is None:
        output = settings.output

    images = load_images(
        paths,
        loader=ImageLoader(require_position=settings.require_position),
        max_workers=max_workers(settings),
        progress=settings.get("progress"),
    )

    try:
        canvas = MedianCompositor.from_settings(settings).composite(images)
    finally:
        for image in images:
            image.release()

    logger.info("Writing output...")
    written = RasterWriter(software=settings.software).write(output, canvas.pixels)
    logger.info("Done.")
    return written
