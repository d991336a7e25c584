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

"""Lifecycle hooks for trunkrelease.

Executes shell commands at specific points in the release sequence:

- ``pre_release``: Before version files and the changelog are written.
- ``post_tag``: After the release tag has been pushed.
- ``post_release``: After the remote release and its assets exist.
- ``on_failure``: After any step fails.

Hooks are defined in the ``[hooks]`` section of ``trunkrelease.toml``
and support template variables: ``${version}``, ``${tag}``,
``${previous_tag}``. The same values are exported to each command as
``TRUNKRELEASE_VERSION``, ``TRUNKRELEASE_TAG`` and
``TRUNKRELEASE_PREVIOUS_TAG``.

Usage::

    from trunkrelease.hooks import run_hooks

    results = run_hooks(
        config.hooks,
        event='post_release',
        variables={'version': '1.2.3', 'tag': 'v1.2.3', 'previous_tag': 'v1.2.2'},
        cwd=repo_root,
    )
"""

from __future__ import annotations

import shlex
from pathlib import Path

from trunkrelease.backends._run import CommandResult, run_command
from trunkrelease.config import HooksConfig
from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger

log = get_logger('trunkrelease.hooks')


def expand_template(
    command: str,
    variables: dict[str, str],
) -> str:
    """Expand ``${variable}`` placeholders in a hook command.

    Unknown placeholders are left untouched.
    """
    result = command
    for key, value in variables.items():
        result = result.replace(f'${{{key}}}', value)
    return result


def hook_env(variables: dict[str, str]) -> dict[str, str]:
    """Map hook variables to ``TRUNKRELEASE_*`` environment variables."""
    return {f'TRUNKRELEASE_{key.upper()}': value for key, value in variables.items()}


def run_hooks(
    hooks: HooksConfig,
    event: str,
    *,
    variables: dict[str, str] | None = None,
    cwd: Path | None = None,
    dry_run: bool = False,
) -> list[CommandResult]:
    """Execute hooks for a specific lifecycle event.

    Commands run in order and execution stops at the first failure.

    Args:
        hooks: Hooks configuration.
        event: Hook event name (``"pre_release"``, ``"post_tag"``,
            ``"post_release"``, ``"on_failure"``).
        variables: Values for ``${...}`` expansion.
        cwd: Working directory for hook commands.
        dry_run: If ``True``, log commands without executing.

    Returns:
        List of :class:`CommandResult` for each hook command.

    Raises:
        ValueError: If ``event`` is not a recognized hook event.
        TrunkReleaseError: If a command exits non-zero.
    """
    commands = getattr(hooks, event, None)
    if commands is None:
        msg = f"Unknown hook event: '{event}'"
        raise ValueError(msg)

    if not commands:
        return []

    vars_ = variables or {}
    env = hook_env(vars_)
    results: list[CommandResult] = []

    for raw_cmd in commands:
        expanded = expand_template(raw_cmd, vars_)
        log.info('hook', hook_event=event, command=expanded, dry_run=dry_run)

        try:
            argv = shlex.split(expanded)
        except ValueError as exc:
            raise TrunkReleaseError(
                code=E.HOOK_FAILED,
                message=f'{event} hook cannot be split: {expanded}: {exc}',
                hint='Check the quoting of the hook command.',
            ) from exc

        try:
            result = run_command(argv, cwd=cwd, env=env, dry_run=dry_run)
        except OSError as exc:
            raise TrunkReleaseError(
                code=E.HOOK_FAILED,
                message=f'{event} hook could not start: {expanded}: {exc}',
                hint='Check that the hook executable exists and is on PATH.',
            ) from exc
        results.append(result)

        if not result.ok:
            log.error(
                'hook_failed',
                hook_event=event,
                command=expanded,
                return_code=result.return_code,
                stderr=result.stderr[:500],
            )
            raise TrunkReleaseError(
                code=E.HOOK_FAILED,
                message=f'{event} hook failed (exit {result.return_code}): {expanded}',
                hint=result.stderr.strip()[:500] or 'Run the hook command by hand to see its output.',
            )

    return results


__all__ = [
    'expand_template',
    'hook_env',
    'run_hooks',
]
