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

"""Forge protocol for trunkrelease.

The :class:`Forge` protocol defines the remote-release operations of a
code hosting platform: releases, their assets, and web links. The
production implementation is
:class:`~trunkrelease.backends.forge.github.GitHubAPIBackend`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from trunkrelease.backends.forge.github import GitHubAPIBackend as GitHubAPIBackend

__all__ = [
    'Forge',
    'GitHubAPIBackend',
]


@runtime_checkable
class Forge(Protocol):
    """Protocol for remote releases."""

    def release_exists(self, tag: str) -> bool:
        """Return ``True`` if a release exists for ``tag``."""
        ...

    def create_release(self, tag: str, name: str, body: str, *, prerelease: bool = False) -> str:
        """Create a release for an existing tag.

        Returns:
            The release's web URL.
        """
        ...

    def delete_release(self, tag: str) -> None:
        """Delete the release for ``tag``. The tag itself is kept."""
        ...

    def upload_assets(self, tag: str, paths: Sequence[Path]) -> None:
        """Attach files to the release for ``tag``."""
        ...

    def compare_url(self, base: str, head: str) -> str:
        """Return the web URL of the diff ``base...head``."""
        ...

    def repo_url(self) -> str:
        """Return the repository's web URL."""
        ...
