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

"""Structured error system for trunkrelease.

Every error has a unique ``TR-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A unique named ID like "TR-FORCE-NOT-AT-TAG"  │
    │                     │ for each error. Readable at a glance.         │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ TrunkReleaseError   │ An exception you can raise. Carries the       │
    │                     │ code, message and hint for the renderer.      │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ NoReleasableCommits │ Not a failure: nothing since the last tag     │
    │                     │ warrants a release. Gets its own exit code.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ReleaseStepError    │ A release step blew up. Names the step so you │
    │                     │ know where to resume with ``--force``.        │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    TR-CONFIG-*        Configuration errors (fatal, before planning)
    TR-VERSION-*       Version parsing and version-file errors
    TR-PLAN-*          Planning outcomes
    TR-FORCE-*         Force / re-release preconditions
    TR-RELEASE-*       Execution step and idempotency errors
    TR-VCS-*           Repository collaborator failures
    TR-FORGE-*         Remote-release collaborator failures
    TR-HOOK-*          Lifecycle hook failures

Usage::

    from trunkrelease.errors import E, TrunkReleaseError

    raise TrunkReleaseError(
        code=E.CONFIG_INVALID_KEY,
        message="Unknown key 'tag_prefx' in trunkrelease.toml",
        hint="Did you mean 'tag_prefix'?",
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """Enumeration of all trunkrelease diagnostic codes."""

    # Configuration
    CONFIG_INVALID_KEY = 'TR-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'TR-CONFIG-INVALID-VALUE'
    CONFIG_INVALID_PATTERN = 'TR-CONFIG-INVALID-PATTERN'
    CONFIG_PARSE_ERROR = 'TR-CONFIG-PARSE-ERROR'
    CONFIG_EXISTS = 'TR-CONFIG-EXISTS'

    # Versioning
    VERSION_INVALID = 'TR-VERSION-INVALID'
    VERSION_FILE_UNSUPPORTED = 'TR-VERSION-FILE-UNSUPPORTED'
    VERSION_FILE_FIELD = 'TR-VERSION-FILE-FIELD'
    VERSION_FILE_MISSING = 'TR-VERSION-FILE-MISSING'

    # Planning
    NO_RELEASABLE_COMMITS = 'TR-PLAN-NO-RELEASABLE-COMMITS'

    # Force mode
    FORCE_NOT_AT_TAG = 'TR-FORCE-NOT-AT-TAG'
    FORCE_NO_TAGS = 'TR-FORCE-NO-TAGS'

    # Execution
    RELEASE_EXISTS = 'TR-RELEASE-EXISTS'
    RELEASE_STEP_FAILED = 'TR-RELEASE-STEP-FAILED'
    BRANCH_NOT_ALLOWED = 'TR-BRANCH-NOT-ALLOWED'
    CHANGELOG_TEMPLATE = 'TR-CHANGELOG-TEMPLATE'

    # Collaborators
    VCS_COMMAND_FAILED = 'TR-VCS-COMMAND-FAILED'
    VCS_REMOTE_UNPARSEABLE = 'TR-VCS-REMOTE-UNPARSEABLE'
    FORGE_REQUEST_FAILED = 'TR-FORGE-REQUEST-FAILED'
    FORGE_UNAVAILABLE = 'TR-FORGE-UNAVAILABLE'
    HOOK_FAILED = 'TR-HOOK-FAILED'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``TR-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class TrunkReleaseError(Exception):
    """Base exception for all trunkrelease errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def message(self) -> str:
        """The human-readable message without the code prefix."""
        return self.info.message

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


class NoReleasableCommits(TrunkReleaseError):
    """No commit since the latest tag warrants a release.

    An expected outcome, not a defect. The CLI maps it to its own exit
    code so CI pipelines can tell "nothing to do" from "broken".
    """

    def __init__(self, message: str = 'No releasable commits since the last release.') -> None:
        """Initialize with an optional message."""
        super().__init__(
            E.NO_RELEASABLE_COMMITS,
            message,
            hint='Only feat, fix, perf and breaking commits trigger a release by default.',
        )


class ForceNotAtTag(TrunkReleaseError):
    """Force mode requested while HEAD is not the latest tag's commit."""

    def __init__(self, tag: str, head: str, tag_sha: str) -> None:
        """Initialize with the tag and the two mismatching SHAs."""
        self.tag = tag
        super().__init__(
            E.FORCE_NOT_AT_TAG,
            f'HEAD ({head[:7]}) is not at {tag} ({tag_sha[:7]}).',
            hint='Force only re-runs publish steps for the tag at HEAD. Check out the tag commit or release normally.',
        )


class NoTagsToForce(TrunkReleaseError):
    """Force mode requested in a repository with no release tags."""

    def __init__(self, prefix: str) -> None:
        """Initialize with the configured tag prefix."""
        super().__init__(
            E.FORCE_NO_TAGS,
            f"No tags matching '{prefix}*' exist; there is nothing to re-release.",
            hint='Run a normal release first.',
        )


class ReleaseAlreadyExists(TrunkReleaseError):
    """The remote already has a release for the planned tag."""

    def __init__(self, tag: str) -> None:
        """Initialize with the existing tag."""
        self.tag = tag
        super().__init__(
            E.RELEASE_EXISTS,
            f'A release for {tag} already exists.',
            hint='Re-run with --force to refresh the existing release.',
        )


class ReleaseStepError(TrunkReleaseError):
    """An execution step failed; later steps were not run.

    Completed steps are left in place. ``--force`` is the recovery path.
    """

    def __init__(self, step: str, message: str, hint: str = '') -> None:
        """Initialize with the failing step name and underlying message."""
        self.step = step
        super().__init__(
            E.RELEASE_STEP_FAILED,
            f"Release step '{step}' failed: {message}",
            hint=hint or 'Fix the cause, then re-run with --force from the tagged commit.',
        )


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='trunkrelease.toml contains a key that is not recognized.',
        hint="Run 'trunkrelease config --resolved' to see every valid key.",
    ),
    E.CONFIG_INVALID_PATTERN: ErrorInfo(
        code=E.CONFIG_INVALID_PATTERN,
        message='commit_pattern does not compile or lacks the type/description groups.',
        hint='The pattern needs (?P<type>...) and (?P<description>...); scope and breaking are optional.',
    ),
    E.NO_RELEASABLE_COMMITS: ErrorInfo(
        code=E.NO_RELEASABLE_COMMITS,
        message='No commit since the last tag maps to a version bump.',
        hint='This is a normal outcome (exit code 3). Add a feat/fix commit or map more types in [[types]].',
    ),
    E.FORCE_NOT_AT_TAG: ErrorInfo(
        code=E.FORCE_NOT_AT_TAG,
        message='--force requires HEAD to be exactly the latest release tag.',
        hint='Force recovers a partially failed release; it never cuts a new version.',
    ),
    E.FORCE_NO_TAGS: ErrorInfo(
        code=E.FORCE_NO_TAGS,
        message='--force was requested but no release tag exists yet.',
        hint='Run a normal release first.',
    ),
    E.RELEASE_EXISTS: ErrorInfo(
        code=E.RELEASE_EXISTS,
        message='The remote already has a release for this tag.',
        hint='Use --force to delete and recreate it with fresh notes.',
    ),
    E.RELEASE_STEP_FAILED: ErrorInfo(
        code=E.RELEASE_STEP_FAILED,
        message='A release step failed. Earlier steps (e.g. a pushed tag) were kept.',
        hint='Fix the cause and re-run with --force while HEAD is the tag commit.',
    ),
    E.FORGE_UNAVAILABLE: ErrorInfo(
        code=E.FORGE_UNAVAILABLE,
        message='No GitHub token was found, so remote releases cannot be created.',
        hint='Set GITHUB_TOKEN or GH_TOKEN.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"TR-FORCE-NOT-AT-TAG"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: TrunkReleaseError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style with color.

    Output format::

        error[TR-FORCE-NOT-AT-TAG]: HEAD (abc1234) is not at v1.2.0 (def5678).
          |
          = hint: Check out the tag commit or release normally.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            hint = rich_escape(exc.hint)
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {hint}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ForceNotAtTag',
    'NoReleasableCommits',
    'NoTagsToForce',
    'ReleaseAlreadyExists',
    'ReleaseStepError',
    'TrunkReleaseError',
    'explain',
    'render_error',
]
