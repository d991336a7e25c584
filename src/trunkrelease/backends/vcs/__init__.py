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

"""VCS protocol for trunkrelease.

The :class:`VCS` protocol defines the repository operations the release
orchestrator needs (tags, commit history, commit, push). The production
implementation is :class:`~trunkrelease.backends.vcs.git.GitCLIBackend`;
tests substitute an in-memory fake.

Calls are synchronous: a release is one linear sequence of ``git``
invocations and nothing runs concurrently.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from trunkrelease.backends.vcs.git import GitCLIBackend as GitCLIBackend
from trunkrelease.commit_parsing import RawCommit
from trunkrelease.versioning import TagInfo

__all__ = [
    'VCS',
    'GitCLIBackend',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for repository access."""

    def latest_tag(self, prefix: str) -> TagInfo | None:
        """Return the highest semantic-version tag with ``prefix``.

        Tags whose remainder is not a full ``X.Y.Z`` version (floating
        tags such as ``v3``) are ignored.
        """
        ...

    def all_tags(self, prefix: str) -> list[TagInfo]:
        """Return every release tag with ``prefix``, newest version first."""
        ...

    def commits_since(self, tag: str | None) -> list[RawCommit]:
        """Return commits after ``tag`` up to HEAD, oldest first.

        Args:
            tag: Exclusive lower bound, or ``None`` for the whole history.
        """
        ...

    def commits_between(self, base: str | None, head: str) -> list[RawCommit]:
        """Return commits in ``base..head``, oldest first."""
        ...

    def tag_date(self, tag: str) -> str:
        """Return the commit date of ``tag`` as ``YYYY-MM-DD``."""
        ...

    def head_commit(self) -> str:
        """Return the full SHA of HEAD."""
        ...

    def current_branch(self) -> str | None:
        """Return the checked-out branch, or ``None`` for a detached HEAD."""
        ...

    def create_tag(self, name: str, message: str) -> None:
        """Create an annotated tag at HEAD."""
        ...

    def force_create_tag(self, name: str, message: str) -> None:
        """Create or move an annotated tag to HEAD."""
        ...

    def tag_exists(self, name: str) -> bool:
        """Return ``True`` if the tag exists locally."""
        ...

    def remote_tag_exists(self, name: str) -> bool:
        """Return ``True`` if the tag exists on the remote."""
        ...

    def push(self, refs: Sequence[str]) -> None:
        """Push refs (``HEAD`` or tag names) to the remote."""
        ...

    def force_push_tag(self, name: str) -> None:
        """Force-push a moved tag to the remote."""
        ...

    def stage_and_commit(self, paths: Sequence[str], message: str) -> bool:
        """Stage ``paths`` and commit them.

        Returns:
            ``True`` if a commit was created, ``False`` if nothing changed.
        """
        ...

    def remote_url(self) -> str:
        """Return the URL of the ``origin`` remote."""
        ...
