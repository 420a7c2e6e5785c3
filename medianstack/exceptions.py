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


"""Exceptions raised while loading, compositing and writing rasters."""


class MedianStackError(Exception):
    """Base class for all medianstack exceptions."""

    pass


class ConfigError(MedianStackError):
    """Configuration error during initial configuration of the library."""

    pass


class LoadError(MedianStackError):
    """A source image could not be loaded.

    Attributes
    ==========
    path : Optional[str]
        The path of the image that failed to load.
    """

    def __init__(self, path, message):
        self.path = None if path is None else str(path)
        if self.path is not None:
            message = "{}: {}".format(self.path, message)
        super(LoadError, self).__init__(message)


class DecodeError(LoadError):
    """The source container is corrupt, unsupported, or lacks required metadata."""

    pass


class PlacementError(LoadError):
    """An image is placed outside of the canvas (e.g. a negative origin)."""

    pass


class AllocationError(MedianStackError):
    """A pixel buffer could not be allocated."""

    pass


class EncodeError(MedianStackError):
    """The output raster could not be created or written.

    Attributes
    ==========
    path : str
        The output path.
    """

    def __init__(self, path, message):
        self.path = str(path)
        super(EncodeError, self).__init__("{}: {}".format(self.path, message))
