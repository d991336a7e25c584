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

"""Tests for trunkrelease.errors."""

from __future__ import annotations

import io

from trunkrelease.errors import (
    ERRORS,
    E,
    ErrorCode,
    ForceNotAtTag,
    NoReleasableCommits,
    ReleaseAlreadyExists,
    ReleaseStepError,
    TrunkReleaseError,
    explain,
    render_error,
)


class TestErrorCode:
    """Tests for the ErrorCode enum."""

    def test_codes_are_prefixed(self) -> None:
        """Every code is TR-*."""
        for code in ErrorCode:
            if not code.value.startswith('TR-'):
                raise AssertionError(f'{code.name} is not TR-prefixed: {code.value}')

    def test_codes_are_unique(self) -> None:
        """No two names share a value."""
        values = [code.value for code in ErrorCode]
        if len(values) != len(set(values)):
            raise AssertionError('Duplicate error code values')

    def test_catalog_keys_match(self) -> None:
        """Catalog entries describe their own code."""
        for code, info in ERRORS.items():
            if info.code != code:
                raise AssertionError(f'{code} catalog entry has code {info.code}')


class TestTrunkReleaseError:
    """Tests for the exception hierarchy."""

    def test_str_includes_code(self) -> None:
        """str() is '[CODE] message'."""
        exc = TrunkReleaseError(E.CONFIG_INVALID_KEY, 'bad key', hint='fix it')
        if str(exc) != '[TR-CONFIG-INVALID-KEY] bad key':
            raise AssertionError(f'Unexpected str: {exc}')
        if exc.hint != 'fix it' or exc.message != 'bad key':
            raise AssertionError('Unexpected hint or message')

    def test_subclasses_carry_codes(self) -> None:
        """Each specialized error has its own code."""
        cases = [
            (NoReleasableCommits(), E.NO_RELEASABLE_COMMITS),
            (ForceNotAtTag('v1.0.0', 'a' * 40, 'b' * 40), E.FORCE_NOT_AT_TAG),
            (ReleaseAlreadyExists('v1.0.0'), E.RELEASE_EXISTS),
            (ReleaseStepError('push', 'rejected'), E.RELEASE_STEP_FAILED),
        ]
        for exc, code in cases:
            if exc.code != code:
                raise AssertionError(f'{type(exc).__name__} has {exc.code}, expected {code}')
            if not isinstance(exc, TrunkReleaseError):
                raise AssertionError(f'{type(exc).__name__} is not a TrunkReleaseError')

    def test_force_not_at_tag_short_shas(self) -> None:
        """The message shows short SHAs."""
        exc = ForceNotAtTag('v1.2.0', '1234567890' * 4, 'abcdefabcd' * 4)
        if '1234567' not in exc.message or 'abcdefa' not in exc.message:
            raise AssertionError(f'Unexpected message: {exc.message}')

    def test_step_error_names_step(self) -> None:
        """The step name is available and in the message."""
        exc = ReleaseStepError('artifacts', 'upload failed')
        if exc.step != 'artifacts' or "'artifacts'" not in exc.message:
            raise AssertionError(f'Unexpected step error: {exc.message}')


class TestExplain:
    """Tests for explain()."""

    def test_known_code(self) -> None:
        """Known codes include the message and hint."""
        text = explain('TR-FORCE-NOT-AT-TAG')
        if text is None or 'Hint:' not in text:
            raise AssertionError(f'Unexpected explanation: {text}')

    def test_code_without_catalog_entry(self) -> None:
        """Valid codes without an entry get a generic line."""
        if explain('TR-VCS-COMMAND-FAILED') != 'TR-VCS-COMMAND-FAILED: No detailed explanation available.':
            raise AssertionError('Unexpected generic explanation')

    def test_unknown_code(self) -> None:
        """Unknown codes return None."""
        if explain('TR-NOPE') is not None:
            raise AssertionError('Expected None')


class TestRenderError:
    """Tests for render_error()."""

    def test_plain_output(self) -> None:
        """Non-TTY output is plain text with the hint."""
        out = io.StringIO()
        render_error(ReleaseAlreadyExists('v1.0.0'), file=out)
        lines = out.getvalue().splitlines()
        if lines[0] != 'error[TR-RELEASE-EXISTS]: A release for v1.0.0 already exists.':
            raise AssertionError(f'Unexpected first line: {lines[0]}')
        if not lines[2].startswith('  = hint: '):
            raise AssertionError(f'Unexpected hint line: {lines[2]}')

    def test_no_hint(self) -> None:
        """Errors without a hint print one line and a blank line."""
        out = io.StringIO()
        render_error(TrunkReleaseError(E.VCS_COMMAND_FAILED, 'git failed'), file=out)
        if out.getvalue() != 'error[TR-VCS-COMMAND-FAILED]: git failed\n\n':
            raise AssertionError(f'Unexpected output: {out.getvalue()!r}')
