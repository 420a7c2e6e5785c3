"""Median stacking of positioned rasters

.. code-block:: bash

    medianstack a.tif b.tif c.tif

Composites images of the same scene, each placed on a shared canvas by its
TIFF position and resolution tags, into one raster. Where images overlap, every
channel of the output is the median of the opaque samples at that pixel, which
removes transient objects such as people, vehicles and shadows.
"""

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

from medianstack import config
from medianstack import exceptions
from medianstack.version import __version__

from medianstack.composite import Canvas, MedianCompositor
from medianstack.raster import ImageLoader, RasterImage, RasterWriter, load_images
from medianstack.stack import median_stack

select_env = config.select_env
get_settings = config.get_settings

__author__ = "EarthDaily Analytics Corp."

__all__ = [
    "__version__",
    "Canvas",
    "ImageLoader",
    "MedianCompositor",
    "RasterImage",
    "RasterWriter",
    "config",
    "exceptions",
    "get_settings",
    "load_images",
    "median_stack",
    "select_env",
]
