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
Canvas planning and per-channel median compositing.

The canvas is anchored at (0, 0) and sized to contain every placed image.
Each canvas pixel is the per-channel median of the opaque samples covering it.
"""

from .canvas import Canvas, canvas_size, check_placement
from .median import MedianCompositor, channel_median, median_reduce

__all__ = [
    "Canvas",
    "MedianCompositor",
    "canvas_size",
    "channel_median",
    "check_placement",
    "median_reduce",
]
