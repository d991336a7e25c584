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

"""Tests for trunkrelease.commit_parsing."""

from __future__ import annotations

import re

import pytest
from trunkrelease.commit_parsing import (
    BumpLevel,
    Classifier,
    CommitType,
    ConventionalCommit,
    ConventionalCommitParser,
    RawCommit,
    classify,
    is_excluded,
    merge_commit_types,
    parse_commit,
)

SHA = 'f' * 40


def _parse(message: str) -> ConventionalCommit | None:
    return parse_commit(RawCommit(sha=SHA, message=message))


class TestParseCommit:
    """Tests for the default Conventional Commits parser."""

    def test_type_scope_description(self) -> None:
        """Parses type, scope and description."""
        cc = _parse('feat(api): add pagination')
        if cc is None:
            raise AssertionError('Expected a parsed commit')
        if (cc.type, cc.scope, cc.description) != ('feat', 'api', 'add pagination'):
            raise AssertionError(f'Unexpected parse: {cc}')
        if cc.breaking:
            raise AssertionError('Should not be breaking')
        if cc.sha != SHA:
            raise AssertionError(f'Expected sha {SHA}, got {cc.sha}')

    def test_no_scope(self) -> None:
        """Scope is None when absent."""
        cc = _parse('fix: handle empty input')
        if cc is None or cc.scope is not None:
            raise AssertionError(f'Expected no scope, got {cc}')

    def test_scope_trimmed(self) -> None:
        """Whitespace around the scope is dropped."""
        cc = _parse('fix( core ): typo')
        if cc is None or cc.scope != 'core':
            raise AssertionError(f'Expected scope core, got {cc}')

    def test_breaking_marker(self) -> None:
        """``!`` before the colon marks a breaking change."""
        cc = _parse('feat(api)!: drop v1')
        if cc is None or not cc.breaking:
            raise AssertionError('Expected breaking')

    @pytest.mark.parametrize('footer', ['BREAKING CHANGE: tokens expire', 'BREAKING-CHANGE: tokens expire'])
    def test_breaking_footer(self, footer: str) -> None:
        """Either footer spelling marks a breaking change."""
        cc = _parse(f'refactor: rework auth\n\nSome context.\n\n{footer}')
        if cc is None or not cc.breaking:
            raise AssertionError(f'Expected breaking for footer {footer!r}')

    def test_footer_mid_line_ignored(self) -> None:
        """The footer must start a line."""
        cc = _parse('docs: explain\n\nThis is not a BREAKING CHANGE: really')
        if cc is None or cc.breaking:
            raise AssertionError('Expected not breaking')

    def test_body_kept(self) -> None:
        """The body is everything after the subject."""
        cc = _parse('fix: retry\n\nThe server drops idle connections.')
        if cc is None or cc.body != 'The server drops idle connections.':
            raise AssertionError(f'Unexpected body: {cc}')

    @pytest.mark.parametrize(
        'message',
        [
            'update readme',
            'feat add thing',
            'feat:no space',
            '(scope): missing type',
            '',
        ],
    )
    def test_not_conventional(self, message: str) -> None:
        """Messages that do not match yield None."""
        if _parse(message) is not None:
            raise AssertionError(f'Expected None for {message!r}')

    def test_custom_pattern(self) -> None:
        """A custom pattern with the required groups is honored."""
        pattern = re.compile(r'^\[(?P<type>\w+)\]\s+(?P<description>.+)')
        cc = ConventionalCommitParser(pattern).parse(RawCommit(sha=SHA, message='[fix] null pointer'))
        if cc is None or (cc.type, cc.description) != ('fix', 'null pointer'):
            raise AssertionError(f'Unexpected parse: {cc}')


class TestIsExcluded:
    """Tests for is_excluded()."""

    @pytest.mark.parametrize(
        'message',
        [
            "Merge branch 'main' into feature",
            'Merge pull request #12 from octo/fix',
            'fixup! feat: add export',
            'squash! fix: typo',
        ],
    )
    def test_excluded(self, message: str) -> None:
        """Merge and rebase-artifact commits are excluded."""
        if not is_excluded(RawCommit(sha=SHA, message=message)):
            raise AssertionError(f'Expected {message!r} to be excluded')

    def test_regular_commit_kept(self) -> None:
        """Ordinary commits are kept."""
        if is_excluded(RawCommit(sha=SHA, message='feat: merge two configs')):
            raise AssertionError('Should not be excluded')


class TestClassifier:
    """Tests for Classifier and classify()."""

    def test_default_bumps(self) -> None:
        """feat is minor, fix and perf are patch, docs is none."""
        classifier = Classifier()
        cases = {'feat': BumpLevel.MINOR, 'fix': BumpLevel.PATCH, 'perf': BumpLevel.PATCH, 'docs': BumpLevel.NONE}
        for commit_type, expected in cases.items():
            got = classifier.bump_for(ConventionalCommit(sha=SHA, type=commit_type, description='x'))
            if got != expected:
                raise AssertionError(f'{commit_type}: expected {expected}, got {got}')

    def test_breaking_wins(self) -> None:
        """Any breaking commit is major regardless of type."""
        cc = ConventionalCommit(sha=SHA, type='chore', description='x', breaking=True)
        if Classifier().bump_for(cc) != BumpLevel.MAJOR:
            raise AssertionError('Expected MAJOR')

    def test_unknown_type_misc(self) -> None:
        """Unknown types land in the miscellaneous section with no bump."""
        result = Classifier().classify(ConventionalCommit(sha=SHA, type='wip', description='x'))
        if result.bump != BumpLevel.NONE or result.section != 'Miscellaneous':
            raise AssertionError(f'Unexpected classification: {result}')

    def test_section_independent_of_bump(self) -> None:
        """docs keeps its section even though it does not bump."""
        result = Classifier().classify(ConventionalCommit(sha=SHA, type='docs', description='x'))
        if result.section != 'Documentation':
            raise AssertionError(f'Expected Documentation, got {result.section}')

    def test_type_map_override(self) -> None:
        """classify() merges a type map over the defaults."""
        cc = ConventionalCommit(sha=SHA, type='docs', description='x')
        if classify(cc, {'docs': BumpLevel.PATCH}).bump != BumpLevel.PATCH:
            raise AssertionError('Expected docs to bump patch')

    def test_classify_unparsed(self) -> None:
        """Unparseable commits never bump."""
        result = Classifier(misc_section='Other').classify_unparsed()
        if result.bump != BumpLevel.NONE or result.section != 'Other':
            raise AssertionError(f'Unexpected classification: {result}')


class TestMergeCommitTypes:
    """Tests for merge_commit_types()."""

    def test_override_keeps_position_and_section(self) -> None:
        """Overriding only the bump keeps the default section and order."""
        merged = merge_commit_types([CommitType('docs', BumpLevel.PATCH)])
        names = [ct.name for ct in merged]
        docs = merged[names.index('docs')]
        if names[:4] != ['feat', 'fix', 'perf', 'docs']:
            raise AssertionError(f'Order changed: {names}')
        if docs.bump != BumpLevel.PATCH or docs.section != 'Documentation':
            raise AssertionError(f'Unexpected docs entry: {docs}')

    def test_new_type_appended(self) -> None:
        """New types go at the end of the table."""
        merged = merge_commit_types([CommitType('security', BumpLevel.PATCH, 'Security')])
        if merged[-1] != CommitType('security', BumpLevel.PATCH, 'Security'):
            raise AssertionError(f'Expected security last, got {merged[-1]}')

    def test_section_order(self) -> None:
        """section_order follows the table and skips duplicates."""
        types = merge_commit_types([CommitType('perf', section='Bug Fixes')])
        order = Classifier(types).section_order
        if order[:2] != ['Features', 'Bug Fixes'] or order.count('Bug Fixes') != 1:
            raise AssertionError(f'Unexpected order: {order}')


class TestBumpLevel:
    """Tests for BumpLevel."""

    def test_ordering(self) -> None:
        """Levels are totally ordered."""
        if not BumpLevel.NONE < BumpLevel.PATCH < BumpLevel.MINOR < BumpLevel.MAJOR:
            raise AssertionError('Levels out of order')

    def test_from_name(self) -> None:
        """Names are case-insensitive."""
        if BumpLevel.from_name(' Minor ') != BumpLevel.MINOR:
            raise AssertionError('Expected MINOR')

    def test_from_name_unknown(self) -> None:
        """Unknown names raise ValueError."""
        with pytest.raises(ValueError, match='Unknown bump level'):
            BumpLevel.from_name('huge')
