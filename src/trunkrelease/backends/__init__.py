# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Protocol-based backend shim layer for trunkrelease.

All external tool calls (git, GitHub API) go through injectable Protocol
interfaces defined here, so tests swap in in-memory fakes.

Protocols (defined in subpackage ``__init__.py`` files):

- :class:`VCS`: tags, history, commit, push (default: :class:`GitCLIBackend`)
- :class:`Forge`: releases and assets (default: :class:`GitHubAPIBackend`)
"""

from trunkrelease.backends._run import CommandResult, run_command
from trunkrelease.backends.forge import Forge, GitHubAPIBackend
from trunkrelease.backends.vcs import VCS, GitCLIBackend

__all__ = [
    'VCS',
    'CommandResult',
    'Forge',
    'GitCLIBackend',
    'GitHubAPIBackend',
    'run_command',
]
