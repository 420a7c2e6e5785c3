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
import sys

import click

from medianstack.config import get_settings
from medianstack.stack import median_stack


def configure_logging(settings):
    """Send diagnostics to stderr as configured by ``log_level`` and ``log_format``."""
    logging.basicConfig(
        level=str(settings.log_level).upper(),
        format=settings.log_format,
        stream=sys.stderr,
    )


@click.command(
    help=(
        "Composite positioned images by per-channel median. "
        "The result is written to the configured output path (out.tif)."
    )
)
@click.argument(
    "images", nargs=-1, required=True, type=click.Path(dir_okay=False)
)
def cli(images):
    settings = get_settings()
    configure_logging(settings)
    median_stack(images, settings=settings)
