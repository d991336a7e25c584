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

"""Conventional Commits parser.

Pure implementation, depending only on ``re`` and :mod:`._types`.
No I/O, no logging, no side effects.

The subject pattern is configurable. It must expose the named groups
``type`` and ``description``; ``scope`` and ``breaking`` are optional.
Only the first line of the message is matched.
"""

from __future__ import annotations

import re

from trunkrelease.commit_parsing._types import ConventionalCommit, RawCommit

# type(scope)!: description
DEFAULT_COMMIT_PATTERN = r'^(?P<type>\w+)(?:\((?P<scope>[^)]+)\))?(?P<breaking>!)?:\s+(?P<description>.+)'

REQUIRED_GROUPS: frozenset[str] = frozenset({'type', 'description'})

# Merge commits and rebase leftovers never reach the parser.
EXCLUDED_PREFIXES: tuple[str, ...] = ('Merge ', 'fixup!', 'squash!', 'amend!')

# "BREAKING CHANGE:" or "BREAKING-CHANGE:" at the start of a footer line.
BREAKING_FOOTER: re.Pattern[str] = re.compile(r'^BREAKING[ -]CHANGE:', re.MULTILINE)


def is_excluded(raw: RawCommit) -> bool:
    """Return ``True`` for merge and rebase-artifact commits."""
    return raw.message.lstrip().startswith(EXCLUDED_PREFIXES)


def _split_body(message: str) -> tuple[str, str | None]:
    """Split a message into its subject and body (text after the first blank line)."""
    lines = message.strip().split('\n')
    subject = lines[0].strip()
    rest = '\n'.join(lines[1:])
    body = rest.strip()
    return subject, body or None


class ConventionalCommitParser:
    """Parser for `Conventional Commits <https://www.conventionalcommits.org/>`_.

    Args:
        pattern: Compiled subject pattern. Defaults to
            :data:`DEFAULT_COMMIT_PATTERN`.
    """

    def __init__(self, pattern: re.Pattern[str] | None = None) -> None:
        """Initialize with a compiled subject pattern."""
        self._pattern = pattern or re.compile(DEFAULT_COMMIT_PATTERN)

    @property
    def pattern(self) -> re.Pattern[str]:
        """The compiled subject pattern."""
        return self._pattern

    def parse(self, raw: RawCommit) -> ConventionalCommit | None:
        """Parse a raw commit as a Conventional Commit.

        Args:
            raw: The commit to parse.

        Returns:
            A :class:`ConventionalCommit`, or ``None`` when the subject
            does not match or carries no type.
        """
        subject, body = _split_body(raw.message)
        match = self._pattern.match(subject)
        if not match:
            return None

        groups = match.groupdict()
        cc_type = groups.get('type')
        if not cc_type:
            return None

        scope = (groups.get('scope') or '').strip() or None
        description = (groups.get('description') or '').strip()

        # Either the inline marker or a footer is enough.
        breaking = bool(groups.get('breaking'))
        if body and BREAKING_FOOTER.search(body):
            breaking = True

        return ConventionalCommit(
            sha=raw.sha,
            type=cc_type,
            scope=scope,
            description=description,
            breaking=breaking,
            body=body,
        )
