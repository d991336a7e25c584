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

"""Version engine: semantic versions, tags and bump arithmetic.

Pure functions, no I/O.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ SemanticVersion     │ ``MAJOR.MINOR.PATCH`` plus optional           │
    │                     │ ``-prerelease`` and ``+build`` tails.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ determine_bump      │ The strongest bump across all commits, or     │
    │                     │ ``None`` when nothing warrants a release.     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ apply_bump          │ ``1.4.2`` + MINOR = ``1.5.0``. Tails are      │
    │                     │ dropped: releases are always plain X.Y.Z.     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Floating tag        │ ``v3`` tracks the newest ``v3.x.y``.          │
    └─────────────────────┴────────────────────────────────────────────────┘

Bump table::

    current     PATCH       MINOR       MAJOR
    ─────────   ─────────   ─────────   ─────────
    (no tag)    0.0.1       0.1.0       1.0.0
    1.4.2       1.4.3       1.5.0       2.0.0
    2.0.0-rc.1  2.0.1       2.1.0       3.0.0
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from trunkrelease.commit_parsing import BumpLevel, Classifier, ConventionalCommit
from trunkrelease.errors import E, TrunkReleaseError

_SEMVER_RE = re.compile(
    r'^(?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)'
    r'(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$',
)


def _prerelease_key(prerelease: str) -> tuple[tuple[int, int | str], ...]:
    """Order pre-release identifiers: numeric below alphanumeric."""
    key: list[tuple[int, int | str]] = []
    for ident in prerelease.split('.'):
        if ident.isdigit():
            key.append((0, int(ident)))
        else:
            key.append((1, ident))
    return tuple(key)


@functools.total_ordering
@dataclass(frozen=True)
class SemanticVersion:
    """A semantic version.

    Ordering follows SemVer 2.0 precedence. A pre-release sorts below
    its release, and build metadata does not take part in ordering.
    """

    major: int
    minor: int
    patch: int
    prerelease: str = ''
    build: str = field(default='', compare=False)

    def __str__(self) -> str:
        """Render as ``X.Y.Z[-pre][+build]``."""
        text = f'{self.major}.{self.minor}.{self.patch}'
        if self.prerelease:
            text += f'-{self.prerelease}'
        if self.build:
            text += f'+{self.build}'
        return text

    def _precedence(self) -> tuple[object, ...]:
        if self.prerelease:
            return (self.major, self.minor, self.patch, 0, _prerelease_key(self.prerelease))
        return (self.major, self.minor, self.patch, 1, ())

    def __lt__(self, other: object) -> bool:
        """Compare by SemVer precedence."""
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._precedence() < other._precedence()  # type: ignore[operator]

    @property
    def base(self) -> SemanticVersion:
        """This version without pre-release or build metadata."""
        return SemanticVersion(self.major, self.minor, self.patch)


ZERO = SemanticVersion(0, 0, 0)


@dataclass(frozen=True)
class TagInfo:
    """A release tag resolved to its version and commit.

    Attributes:
        name: Tag name (``"v1.2.0"``).
        version: Parsed version without the prefix.
        sha: Commit the tag points to.
    """

    name: str
    version: SemanticVersion
    sha: str


def parse_version(text: str) -> SemanticVersion:
    """Parse ``X.Y.Z[-pre][+build]``.

    Raises:
        TrunkReleaseError: If ``text`` is not a semantic version.
    """
    m = _SEMVER_RE.match(text.strip())
    if not m:
        raise TrunkReleaseError(
            code=E.VERSION_INVALID,
            message=f'Version {text!r} is not valid (expected MAJOR.MINOR.PATCH)',
            hint='Use a version string like "1.2.3".',
        )
    return SemanticVersion(
        major=int(m.group('major')),
        minor=int(m.group('minor')),
        patch=int(m.group('patch')),
        prerelease=m.group('prerelease') or '',
        build=m.group('build') or '',
    )


def parse_tag(name: str, prefix: str) -> SemanticVersion | None:
    """Return the version encoded in a tag, or ``None``.

    Tags without the prefix, and tags whose remainder is not a full
    semantic version (floating tags like ``v3``), yield ``None``.
    """
    if not name.startswith(prefix):
        return None
    m = _SEMVER_RE.match(name[len(prefix) :])
    if not m:
        return None
    return parse_version(name[len(prefix) :])


def format_tag(prefix: str, version: SemanticVersion) -> str:
    """Return the release tag for ``version`` (``v1.2.0``)."""
    return f'{prefix}{version}'


def floating_tag(prefix: str, version: SemanticVersion) -> str:
    """Return the floating major tag for ``version`` (``v1``)."""
    return f'{prefix}{version.major}'


def determine_bump(commits: Iterable[ConventionalCommit], classifier: Classifier) -> BumpLevel | None:
    """Return the strongest bump over ``commits``.

    Returns:
        The maximum level, or ``None`` when the set is empty or every
        commit classifies to :attr:`BumpLevel.NONE`.
    """
    level = max((classifier.bump_for(c) for c in commits), default=BumpLevel.NONE)
    if level == BumpLevel.NONE:
        return None
    return level


def apply_bump(current: SemanticVersion | None, level: BumpLevel) -> SemanticVersion:
    """Apply ``level`` to ``current``.

    A missing ``current`` (no prior tag) counts as ``0.0.0``. The result
    never carries pre-release or build metadata.
    """
    base = (current or ZERO).base
    if level == BumpLevel.MAJOR:
        return SemanticVersion(base.major + 1, 0, 0)
    if level == BumpLevel.MINOR:
        return SemanticVersion(base.major, base.minor + 1, 0)
    if level == BumpLevel.PATCH:
        return SemanticVersion(base.major, base.minor, base.patch + 1)
    return base


__all__ = [
    'ZERO',
    'SemanticVersion',
    'TagInfo',
    'apply_bump',
    'determine_bump',
    'floating_tag',
    'format_tag',
    'parse_tag',
    'parse_version',
]
