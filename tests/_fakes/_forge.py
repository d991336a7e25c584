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

"""Fake Forge backend for tests.

Provides a configurable :class:`FakeForge` that satisfies the full
:class:`~trunkrelease.backends.forge.Forge` protocol.  Every call that
would reach the network is appended to :attr:`FakeForge.calls`; the URL
builders are pure and are not recorded.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from trunkrelease.errors import E, TrunkReleaseError

REPO_URL = 'https://github.com/octo/widgets'


class FakeForge:
    """Configurable Forge test double.

    Records release and asset operations for assertions.
    """

    def __init__(
        self,
        *,
        releases: dict[str, dict[str, Any]] | None = None,
        fail_on: frozenset[str] = frozenset(),
    ) -> None:
        """Initialize with existing releases and failure injection.

        Args:
            releases: Existing releases by tag.
            fail_on: Methods that raise ``TR-FORGE-REQUEST-FAILED``.
        """
        self.releases: dict[str, dict[str, Any]] = dict(releases or {})
        self.fail_on = fail_on
        self.calls: list[tuple[str, str]] = []
        self.uploads: list[tuple[str, list[str]]] = []

    def _record(self, method: str, tag: str) -> None:
        self.calls.append((method, tag))
        if method in self.fail_on:
            raise TrunkReleaseError(E.FORGE_REQUEST_FAILED, f'{method} {tag} returned 502: Bad Gateway')

    def release_exists(self, tag: str) -> bool:
        """Return whether a release is recorded for ``tag``."""
        self._record('release_exists', tag)
        return tag in self.releases

    def create_release(self, tag: str, name: str, body: str, *, prerelease: bool = False) -> str:
        """Record a created release and return its URL."""
        self._record('create_release', tag)
        self.releases[tag] = {'name': name, 'body': body, 'prerelease': prerelease}
        return f'{REPO_URL}/releases/tag/{tag}'

    def delete_release(self, tag: str) -> None:
        """Forget the release for ``tag``."""
        self._record('delete_release', tag)
        self.releases.pop(tag, None)

    def upload_assets(self, tag: str, paths: Sequence[Path]) -> None:
        """Record uploaded file names."""
        self._record('upload_assets', tag)
        self.uploads.append((tag, [p.name for p in paths]))

    def compare_url(self, base: str, head: str) -> str:
        """Return the compare URL."""
        return f'{REPO_URL}/compare/{base}...{head}'

    def repo_url(self) -> str:
        """Return the repository URL."""
        return REPO_URL
