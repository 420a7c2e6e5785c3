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

from tqdm import tqdm


def progress_bar(progress, total, desc, unit):
    """A ``tqdm`` bar on stderr, or None when ``progress`` is False.

    ``progress=None`` lets tqdm decide, which hides the bar when stderr is
    not a terminal.
    """
    if progress is False:
        return None

    return tqdm(
        desc=desc,
        total=total,
        unit=unit,
        leave=False,
        disable=False if progress is True else None,
    )
