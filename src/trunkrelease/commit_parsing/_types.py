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

"""Pure types for commit message parsing and classification.

This module has **zero** runtime dependencies beyond the standard library.
Everything here is a frozen dataclass, enum, or protocol: no I/O, no
logging, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, runtime_checkable


class BumpLevel(IntEnum):
    """Semver bump levels, totally ordered ``NONE < PATCH < MINOR < MAJOR``.

    The strongest bump wins across a commit set, so ``max()`` over
    levels is the aggregation rule.

    >>> max(BumpLevel.PATCH, BumpLevel.MINOR)
    <BumpLevel.MINOR: 2>
    """

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        """Return the lowercase name used in config files and output."""
        return self.name.lower()

    @classmethod
    def from_name(cls, name: str) -> BumpLevel:
        """Look up a level by its lowercase name (``"minor"``).

        Raises:
            ValueError: If ``name`` is not a bump level.
        """
        try:
            return cls[name.strip().upper()]
        except KeyError:
            msg = f"Unknown bump level '{name}'"
            raise ValueError(msg) from None


@dataclass(frozen=True)
class RawCommit:
    """A commit as read from the repository.

    Attributes:
        sha: Full commit SHA.
        message: Full commit message (subject, body and footers).
    """

    sha: str
    message: str

    @property
    def subject(self) -> str:
        """The first line of the message."""
        return self.message.split('\n', 1)[0].strip()


@dataclass(frozen=True)
class ConventionalCommit:
    """A commit message that follows the configured convention.

    Attributes:
        sha: The full commit SHA.
        type: The commit type (e.g. ``"feat"``, ``"fix"``).
        description: The subject text after ``type(scope)!:``.
        scope: The trimmed scope, or ``None``.
        breaking: ``!`` marker or ``BREAKING CHANGE:`` footer present.
        body: Everything after the subject's blank line, or ``None``.
    """

    sha: str
    type: str
    description: str
    scope: str | None = None
    breaking: bool = False
    body: str | None = None

    @property
    def short_sha(self) -> str:
        """The first seven characters of the SHA."""
        return self.sha[:7]


@dataclass(frozen=True)
class ClassificationResult:
    """The classifier's verdict for one commit.

    ``section`` is a changelog grouping label only; it does not depend
    on whether the commit contributes to the bump.
    """

    bump: BumpLevel
    section: str


@dataclass(frozen=True)
class CommitType:
    """One row of the commit-type table.

    Attributes:
        name: Commit type as written in messages (``"feat"``).
        bump: Level this type triggers, or ``None`` for no release.
        section: Changelog heading, or ``None`` to fall back to the
            miscellaneous section.
    """

    name: str
    bump: BumpLevel | None = None
    section: str | None = None


@runtime_checkable
class CommitParser(Protocol):
    """Protocol for commit message parsers."""

    def parse(self, raw: RawCommit) -> ConventionalCommit | None:
        """Parse a raw commit, returning ``None`` when it does not match."""
        ...


__all__ = [
    'BumpLevel',
    'ClassificationResult',
    'CommitParser',
    'CommitType',
    'ConventionalCommit',
    'RawCommit',
]
