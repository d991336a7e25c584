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

"""Git VCS backend for trunkrelease.

The :class:`GitCLIBackend` implements the :class:`VCS` protocol by
delegating to ``git`` via :func:`run_command`. Any failing ``git``
invocation raises ``TR-VCS-COMMAND-FAILED`` carrying git's stderr; no
command is retried.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from trunkrelease.backends._run import CommandResult, run_command
from trunkrelease.commit_parsing import RawCommit
from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger
from trunkrelease.versioning import SemanticVersion, TagInfo, parse_tag

log = get_logger('trunkrelease.backends.git')

# One record per commit: SHA line, then the raw message, then NUL.
# Commit messages cannot contain NUL.
_LOG_FORMAT = '%H%n%B%x00'

# Never block on a credential prompt in CI.
_GIT_ENV = {'GIT_TERMINAL_PROMPT': '0'}

_SSH_REMOTE_RE = re.compile(r'^(?:ssh://)?[^@/]+@(?P<host>[^:/]+)[:/](?P<path>.+)$')
_HTTPS_REMOTE_RE = re.compile(r'^(?:https?|git)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?/(?P<path>.+)$')


def parse_commit_log(output: str) -> list[RawCommit]:
    """Split ``git log --format=%H%n%B%x00`` output into commits."""
    commits: list[RawCommit] = []
    for record in output.split('\0'):
        record = record.strip('\n')
        if not record.strip():
            continue
        sha, _, message = record.partition('\n')
        commits.append(RawCommit(sha=sha.strip(), message=message.strip('\n')))
    return commits


def parse_remote_url(url: str) -> tuple[str, str, str]:
    """Split a git remote URL into ``(host, owner, repo)``.

    Accepts ``https://host/owner/repo(.git)``, ``git@host:owner/repo(.git)``
    and ``ssh://git@host/owner/repo(.git)``.

    Raises:
        TrunkReleaseError: If the URL has no ``owner/repo`` path.
    """
    url = url.strip()
    match = _HTTPS_REMOTE_RE.match(url) or _SSH_REMOTE_RE.match(url)
    if match is not None:
        path = match.group('path').rstrip('/')
        path = path.removesuffix('.git')
        parts = path.split('/')
        if len(parts) >= 2 and all(parts):
            return match.group('host'), '/'.join(parts[:-1]), parts[-1]
    raise TrunkReleaseError(
        code=E.VCS_REMOTE_UNPARSEABLE,
        message=f'Cannot determine owner/repo from remote URL {url!r}',
        hint='Set the origin remote to an https:// or git@ URL of the form host/owner/repo.',
    )


class GitCLIBackend:
    """Default :class:`~trunkrelease.backends.vcs.VCS` implementation using ``git``.

    Args:
        repo_root: Path to the git repository root.
        remote: Name of the remote to push to.
    """

    def __init__(self, repo_root: Path, *, remote: str = 'origin') -> None:
        """Initialize with the git repository root path."""
        self._root = repo_root
        self._remote = remote

    def __repr__(self) -> str:
        """Show the repository root."""
        return f'GitCLIBackend(repo_root={str(self._root)!r}, remote={self._remote!r})'

    def _run(self, *args: str, env: dict[str, str] | None = None) -> CommandResult:
        return run_command(['git', *args], cwd=self._root, env={**_GIT_ENV, **(env or {})})

    def _git(self, *args: str, env: dict[str, str] | None = None) -> str:
        """Run ``git`` and return stdout, raising on a non-zero exit."""
        result = self._run(*args, env=env)
        if not result.ok:
            stderr = result.stderr.strip() or result.stdout.strip()
            raise TrunkReleaseError(
                code=E.VCS_COMMAND_FAILED,
                message=f'{result.command_str} failed (exit {result.return_code}): {stderr}',
                hint='Run the command by hand in the repository to see the full error.',
            )
        return result.stdout

    def _tag_sha(self, name: str) -> str:
        return self._git('rev-list', '-n', '1', name).strip()

    def _version_tags(self, prefix: str) -> list[tuple[str, SemanticVersion]]:
        output = self._git('tag', '--list', f'{prefix}*', '--sort=-v:refname')
        tags: list[tuple[str, SemanticVersion]] = []
        for name in output.splitlines():
            name = name.strip()
            version = parse_tag(name, prefix) if name else None
            if version is not None:
                tags.append((name, version))
        # git's v:refname sort puts 1.0.0-rc.1 after 1.0.0; re-sort by precedence.
        tags.sort(key=lambda item: item[1], reverse=True)
        return tags

    def latest_tag(self, prefix: str) -> TagInfo | None:
        """Return the highest semantic-version tag with ``prefix``."""
        tags = self._version_tags(prefix)
        if not tags:
            log.debug('no_tags', prefix=prefix)
            return None
        name, version = tags[0]
        return TagInfo(name=name, version=version, sha=self._tag_sha(name))

    def all_tags(self, prefix: str) -> list[TagInfo]:
        """Return every release tag with ``prefix``, newest version first."""
        return [
            TagInfo(name=name, version=version, sha=self._tag_sha(name))
            for name, version in self._version_tags(prefix)
        ]

    def commits_between(self, base: str | None, head: str) -> list[RawCommit]:
        """Return commits in ``base..head``, oldest first."""
        rev_range = f'{base}..{head}' if base else head
        output = self._git('log', '--reverse', f'--format={_LOG_FORMAT}', rev_range)
        return parse_commit_log(output)

    def commits_since(self, tag: str | None) -> list[RawCommit]:
        """Return commits after ``tag`` up to HEAD, oldest first."""
        return self.commits_between(tag, 'HEAD')

    def tag_date(self, tag: str) -> str:
        """Return the UTC commit date of ``tag`` as ``YYYY-MM-DD``."""
        output = self._git(
            'log',
            '-1',
            '--format=%cd',
            '--date=format-local:%Y-%m-%d',
            tag,
            env={'TZ': 'UTC'},
        )
        return output.strip()

    def head_commit(self) -> str:
        """Return the full SHA of HEAD."""
        return self._git('rev-parse', 'HEAD').strip()

    def current_branch(self) -> str | None:
        """Return the checked-out branch, or ``None`` when detached."""
        result = self._run('symbolic-ref', '--short', '-q', 'HEAD')
        branch = result.stdout.strip()
        return branch if result.ok and branch else None

    def create_tag(self, name: str, message: str) -> None:
        """Create an annotated tag at HEAD."""
        log.info('tag', tag=name)
        self._git('tag', '-a', '--cleanup=verbatim', name, '-m', message)

    def force_create_tag(self, name: str, message: str) -> None:
        """Create or move an annotated tag to HEAD."""
        log.info('tag_moved', tag=name)
        self._git('tag', '-fa', '--cleanup=verbatim', name, '-m', message)

    def tag_exists(self, name: str) -> bool:
        """Return ``True`` if the tag exists locally."""
        return self._run('rev-parse', '-q', '--verify', f'refs/tags/{name}').ok

    def remote_tag_exists(self, name: str) -> bool:
        """Return ``True`` if the tag exists on the remote."""
        output = self._git('ls-remote', '--tags', self._remote, f'refs/tags/{name}')
        return bool(output.strip())

    def push(self, refs: Sequence[str]) -> None:
        """Push refs (``HEAD`` or tag names) to the remote."""
        if not refs:
            return
        log.info('push', remote=self._remote, refs=list(refs))
        self._git('push', self._remote, *refs)

    def force_push_tag(self, name: str) -> None:
        """Force-push a moved tag to the remote."""
        log.info('push_forced', remote=self._remote, tag=name)
        self._git('push', self._remote, f'refs/tags/{name}', '--force')

    def stage_and_commit(self, paths: Sequence[str], message: str) -> bool:
        """Stage ``paths`` and commit them if anything changed."""
        if not paths:
            return False
        self._git('add', '--', *paths)
        if not self._git('status', '--porcelain', '--', *paths).strip():
            log.info('commit_skipped', reason='no changes')
            return False
        log.info('commit', message=message[:80])
        self._git('commit', '-m', message, '--', *paths)
        return True

    def remote_url(self) -> str:
        """Return the URL of the configured remote."""
        return self._git('remote', 'get-url', self._remote).strip()


__all__ = [
    'GitCLIBackend',
    'parse_commit_log',
    'parse_remote_url',
]
