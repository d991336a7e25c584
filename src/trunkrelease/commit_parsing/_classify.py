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

"""Commit classification: bump level and changelog section per commit.

One resolved commit-type table drives two lookup tables, ``type → bump``
and ``type → section``. The bump and the section are answered
independently: a ``docs:`` commit lands in "Documentation" without
triggering a release, and a breaking ``chore!:`` is MAJOR while still
listed under "Chores".

Resolution order for the bump::

    breaking?  ──yes──→ MAJOR
       │no
       ▼
    type in bump table? ──yes──→ table value
       │no
       ▼
    NONE
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from trunkrelease.commit_parsing._types import (
    BumpLevel,
    ClassificationResult,
    CommitType,
    ConventionalCommit,
)

BREAKING_SECTION = 'Breaking Changes'
MISC_SECTION = 'Miscellaneous'

# Display order of the changelog follows this table.
DEFAULT_COMMIT_TYPES: tuple[CommitType, ...] = (
    CommitType('feat', BumpLevel.MINOR, 'Features'),
    CommitType('fix', BumpLevel.PATCH, 'Bug Fixes'),
    CommitType('perf', BumpLevel.PATCH, 'Performance'),
    CommitType('docs', None, 'Documentation'),
    CommitType('refactor', None, 'Refactoring'),
    CommitType('test', None, 'Tests'),
    CommitType('build', None, 'Build'),
    CommitType('style', None, 'Style'),
    CommitType('ci', None, 'CI'),
    CommitType('revert', None, 'Reverts'),
    CommitType('chore', None, 'Chores'),
)


def merge_commit_types(
    overrides: Iterable[CommitType],
    defaults: Sequence[CommitType] = DEFAULT_COMMIT_TYPES,
) -> tuple[CommitType, ...]:
    """Merge user overrides over the built-in table.

    A known type keeps its position; fields the override leaves as
    ``None`` keep the default value. New types are appended in the
    order given.
    """
    merged: dict[str, CommitType] = {ct.name: ct for ct in defaults}
    for override in overrides:
        base = merged.get(override.name)
        if base is None:
            merged[override.name] = override
            continue
        merged[override.name] = CommitType(
            name=override.name,
            bump=override.bump if override.bump is not None else base.bump,
            section=override.section if override.section is not None else base.section,
        )
    return tuple(merged.values())


class Classifier:
    """Maps conventional commits to a bump level and a section label.

    Args:
        types: Resolved commit-type table (see :func:`merge_commit_types`).
        breaking_section: Heading that re-lists breaking commits.
        misc_section: Heading for unmapped types and unparseable commits.
    """

    def __init__(
        self,
        types: Sequence[CommitType] = DEFAULT_COMMIT_TYPES,
        *,
        breaking_section: str = BREAKING_SECTION,
        misc_section: str = MISC_SECTION,
    ) -> None:
        """Build the two lookup tables from one type table."""
        self._bumps: dict[str, BumpLevel] = {ct.name: ct.bump for ct in types if ct.bump is not None}
        self._sections: dict[str, str] = {ct.name: ct.section for ct in types if ct.section}
        self.breaking_section = breaking_section
        self.misc_section = misc_section

    @property
    def section_order(self) -> list[str]:
        """Unique section headings in table order, misc excluded."""
        order: list[str] = []
        for section in self._sections.values():
            if section not in order and section != self.misc_section:
                order.append(section)
        return order

    def bump_for(self, commit: ConventionalCommit) -> BumpLevel:
        """Return the bump level ``commit`` contributes."""
        if commit.breaking:
            return BumpLevel.MAJOR
        return self._bumps.get(commit.type, BumpLevel.NONE)

    def section_for(self, commit_type: str) -> str:
        """Return the changelog section for a commit type."""
        return self._sections.get(commit_type, self.misc_section)

    def classify(self, commit: ConventionalCommit) -> ClassificationResult:
        """Classify one commit."""
        return ClassificationResult(bump=self.bump_for(commit), section=self.section_for(commit.type))

    def classify_unparsed(self) -> ClassificationResult:
        """Classification used for commits the parser rejected."""
        return ClassificationResult(bump=BumpLevel.NONE, section=self.misc_section)


def classify(commit: ConventionalCommit, type_map: dict[str, BumpLevel] | None = None) -> ClassificationResult:
    """Classify ``commit`` against a ``type → bump`` override map.

    Convenience wrapper: the map is merged over the default table.
    """
    overrides = [CommitType(name, bump) for name, bump in (type_map or {}).items()]
    return Classifier(merge_commit_types(overrides)).classify(commit)


__all__ = [
    'BREAKING_SECTION',
    'DEFAULT_COMMIT_TYPES',
    'MISC_SECTION',
    'Classifier',
    'classify',
    'merge_commit_types',
]
