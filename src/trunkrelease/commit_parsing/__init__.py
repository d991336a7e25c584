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

"""Commit message parsing and classification.

Usage::

    from trunkrelease.commit_parsing import BumpLevel, Classifier, RawCommit, parse_commit

    cc = parse_commit(RawCommit(sha='abc1234', message='feat(auth): add OAuth2'))
    assert cc.type == 'feat'
    assert Classifier().classify(cc).bump == BumpLevel.MINOR
"""

import re

from trunkrelease.commit_parsing._classify import (
    BREAKING_SECTION,
    DEFAULT_COMMIT_TYPES,
    MISC_SECTION,
    Classifier,
    classify,
    merge_commit_types,
)
from trunkrelease.commit_parsing._conventional import (
    DEFAULT_COMMIT_PATTERN,
    REQUIRED_GROUPS,
    ConventionalCommitParser,
    is_excluded,
)
from trunkrelease.commit_parsing._types import (
    BumpLevel,
    ClassificationResult,
    CommitParser,
    CommitType,
    ConventionalCommit,
    RawCommit,
)


def parse_commit(raw: RawCommit, pattern: re.Pattern[str] | None = None) -> ConventionalCommit | None:
    """Parse ``raw`` with ``pattern`` (default: Conventional Commits)."""
    return ConventionalCommitParser(pattern).parse(raw)


__all__ = [
    'BREAKING_SECTION',
    'DEFAULT_COMMIT_PATTERN',
    'DEFAULT_COMMIT_TYPES',
    'MISC_SECTION',
    'REQUIRED_GROUPS',
    'BumpLevel',
    'ClassificationResult',
    'Classifier',
    'CommitParser',
    'CommitType',
    'ConventionalCommit',
    'ConventionalCommitParser',
    'RawCommit',
    'classify',
    'is_excluded',
    'merge_commit_types',
    'parse_commit',
]
