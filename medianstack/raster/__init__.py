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

"""
Reading and writing positioned rasters.

Images are held as `RasterImage` objects: a ``(height, width)`` buffer of
packed 32-bit RGBA pixels and an integer origin on the shared canvas.
"""

from .image import RasterImage, pack_pixels, unpack_pixels
from .loader import ImageLoader, load_images
from .writer import RasterWriter

__all__ = [
    "ImageLoader",
    "RasterImage",
    "RasterWriter",
    "load_images",
    "pack_pixels",
    "unpack_pixels",
]
