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

"""Release orchestration: plan the next version, then execute it.

:class:`ReleaseStrategy` composes the commit parser, classifier, version
engine and changelog formatter with the two collaborators (:class:`VCS`
and :class:`Forge`) into :meth:`~ReleaseStrategy.plan` and
:meth:`~ReleaseStrategy.execute`.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                            │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ ReleasePlan             │ What would be released: versions, bump,     │
    │                         │ commits, tag, changelog text. Read-only.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Dry run                 │ Compute and report, touch nothing: no       │
    │                         │ files, no git writes, no API calls.         │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Force                   │ Re-publish the tag already at HEAD after a  │
    │                         │ half-finished run. No new version.          │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Step                    │ One named side effect. A failure names the  │
    │                         │ step, stops the run and keeps what was      │
    │                         │ already done.                               │
    └─────────────────────────┴─────────────────────────────────────────────┘

State machine::

    IDLE ──plan()──→ PLANNED ──execute(dry_run=True)──→ DRY_RUN_REPORTED
                        │
                        └──execute()──→ EXECUTING ──→ EXECUTED
                                            │
                                            └──→ FAILED

Execute steps (normal mode)::

    1  hooks.pre_release
    2  version_files      ┐
    3  changelog          │ skipped
    4  commit             │ in force
    5  tag                ┘ mode
    6  push
    7  hooks.post_tag
    8  release            (force: delete + recreate)
    9  floating_tag       (floating_tags = true)
    10 artifacts          (artifacts = [...])
    11 hooks.post_release
"""

from __future__ import annotations

import datetime
import enum
import glob
import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import jinja2

from trunkrelease.backends.forge import Forge
from trunkrelease.backends.vcs import VCS
from trunkrelease.changelog import (
    ChangelogEntry,
    load_template,
    regenerate,
    render_entry,
    write_changelog,
)
from trunkrelease.commit_parsing import (
    BumpLevel,
    ConventionalCommit,
    ConventionalCommitParser,
    RawCommit,
    is_excluded,
)
from trunkrelease.config import ReleaseConfig
from trunkrelease.errors import (
    E,
    ForceNotAtTag,
    NoReleasableCommits,
    NoTagsToForce,
    ReleaseAlreadyExists,
    ReleaseStepError,
    TrunkReleaseError,
)
from trunkrelease.hooks import run_hooks
from trunkrelease.logging import get_logger, release_context
from trunkrelease.version_files import bump_version_files
from trunkrelease.versioning import (
    SemanticVersion,
    TagInfo,
    apply_bump,
    determine_bump,
    floating_tag,
    format_tag,
)

logger = get_logger(__name__)

RELEASE_COMMIT_TEMPLATE = 'chore(release): {tag} [skip ci]'

T = TypeVar('T')


def _release_commit_re(tag_prefix: str) -> re.Pattern[str]:
    """Match the subject of the commits this tool makes for ``tag_prefix`` tags."""
    head, tail = RELEASE_COMMIT_TEMPLATE.split('{tag}')
    return re.compile(rf'^{re.escape(head)}{re.escape(tag_prefix)}\S+{re.escape(tail)}$')


class ReleaseState(enum.Enum):
    """Lifecycle of one :class:`ReleaseStrategy`."""

    IDLE = 'idle'
    PLANNED = 'planned'
    DRY_RUN_REPORTED = 'dry_run_reported'
    EXECUTING = 'executing'
    EXECUTED = 'executed'
    FAILED = 'failed'


@dataclass(frozen=True)
class ReleasePlan:
    """What a release would do, computed once by :meth:`ReleaseStrategy.plan`.

    Attributes:
        current_version: Version of the latest tag, or ``None``.
        next_version: Version to release (equal to ``current_version``
            in force mode).
        bump: Strongest bump over ``commits`` (``NONE`` in force mode).
        commits: Parsed commits, oldest first.
        unparsed: Commits the parser rejected, oldest first.
        tag_name: Tag to create (or re-publish).
        changelog_entry: Rendered changelog entry and release notes.
        previous_tag: Tag the commits were counted from.
        force: Whether this plan re-publishes an existing tag.
    """

    current_version: SemanticVersion | None
    next_version: SemanticVersion
    bump: BumpLevel
    commits: tuple[ConventionalCommit, ...]
    tag_name: str
    changelog_entry: str
    unparsed: tuple[RawCommit, ...] = ()
    previous_tag: str | None = None
    force: bool = False

    @property
    def commit_count(self) -> int:
        """Number of commits considered (parsed and unparsed)."""
        return len(self.commits) + len(self.unparsed)


@dataclass(frozen=True)
class ReleaseResult:
    """Machine-readable outcome of a release run.

    Attributes:
        current_version: Version before the release, or ``None``.
        next_version: Released (or would-be) version.
        bump: Bump level name (``"minor"``).
        tag: Release tag.
        commit_count: Commits that went into the release.
        released: Whether the remote release was created.
        dry_run: Whether this was a dry run.
        release_url: Web URL of the remote release.
        floating_tag: Floating major tag that was (or would be) moved.
        steps: Names of the steps that ran, in order.
    """

    current_version: str | None
    next_version: str
    bump: str
    tag: str
    commit_count: int
    released: bool = False
    dry_run: bool = False
    release_url: str | None = None
    floating_tag: str | None = None
    steps: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-compatible values
        """Return a JSON-compatible dict."""
        return {
            'current_version': self.current_version,
            'next_version': self.next_version,
            'bump': self.bump,
            'tag': self.tag,
            'commit_count': self.commit_count,
            'released': self.released,
            'dry_run': self.dry_run,
            'release_url': self.release_url,
            'floating_tag': self.floating_tag,
            'steps': list(self.steps),
        }

    @classmethod
    def from_plan(cls, plan: ReleasePlan, **kwargs: Any) -> ReleaseResult:  # noqa: ANN401
        """Build a result carrying the plan's versions, bump and tag."""
        return cls(
            current_version=str(plan.current_version) if plan.current_version else None,
            next_version=str(plan.next_version),
            bump=str(plan.bump),
            tag=plan.tag_name,
            commit_count=plan.commit_count,
            **kwargs,
        )

    def to_json(self) -> str:
        """Serialize to pretty JSON."""
        return json.dumps(self.as_dict(), indent=2)


def _today() -> str:
    # UTC, like the tag dates read back by regenerate_changelog().
    return datetime.datetime.now(datetime.timezone.utc).date().isoformat()


class ReleaseStrategy:
    """Trunk-based release orchestrator.

    Args:
        config: Resolved configuration.
        vcs: Repository collaborator.
        forge: Remote-release collaborator, or ``None`` to skip the
            remote steps (release, assets).
        root: Repository root; relative paths in ``config`` resolve
            against it.
        today: Returns the release date as ``YYYY-MM-DD``.
    """

    def __init__(
        self,
        config: ReleaseConfig,
        vcs: VCS,
        forge: Forge | None = None,
        *,
        root: Path,
        today: Callable[[], str] = _today,
    ) -> None:
        """Wire the collaborators; nothing is read until :meth:`plan`."""
        self._config = config
        self._vcs = vcs
        self._forge = forge
        self._root = root
        self._today = today
        self._parser = ConventionalCommitParser(config.compiled_pattern())
        self._release_commit = _release_commit_re(config.tag_prefix)
        self._classifier = config.classifier()
        self._template: jinja2.Template | None = None
        self._template_loaded = False
        self._state = ReleaseState.IDLE
        self._steps: list[str] = []

    @property
    def state(self) -> ReleaseState:
        """Current lifecycle state."""
        return self._state

    def _changelog_template(self) -> jinja2.Template | None:
        if not self._template_loaded:
            if self._config.changelog.template:
                self._template = load_template(self._root / self._config.changelog.template)
            self._template_loaded = True
        return self._template

    def _split(self, raw_commits: list[RawCommit]) -> tuple[list[ConventionalCommit], list[RawCommit]]:
        """Drop excluded commits and our own release commits, then parse the rest."""
        parsed: list[ConventionalCommit] = []
        unparsed: list[RawCommit] = []
        for raw in raw_commits:
            if is_excluded(raw) or self._release_commit.match(raw.subject):
                continue
            commit = self._parser.parse(raw)
            if commit is None:
                unparsed.append(raw)
            else:
                parsed.append(commit)
        return parsed, unparsed

    def _entry(
        self,
        version: SemanticVersion,
        date: str,
        commits: list[ConventionalCommit],
        unparsed: list[RawCommit],
        previous_tag: str | None,
        tag_name: str,
    ) -> ChangelogEntry:
        compare_url = None
        repo_url = None
        if self._forge is not None:
            repo_url = self._forge.repo_url()
            if previous_tag:
                compare_url = self._forge.compare_url(previous_tag, tag_name)
        return ChangelogEntry(
            version=str(version),
            date=date,
            commits=tuple(commits),
            unparsed=tuple(unparsed),
            compare_url=compare_url,
            repo_url=repo_url,
        )

    def plan(self, *, force: bool = False) -> ReleasePlan:
        """Compute the next release from the commits since the latest tag.

        Args:
            force: Plan a re-publish of the latest tag instead of a new
                version.

        Raises:
            NoReleasableCommits: If no commit warrants a release.
            NoTagsToForce: If ``force`` is set and no tag exists.
        """
        prefix = self._config.tag_prefix
        latest = self._vcs.latest_tag(prefix)
        if force:
            plan = self._plan_force(latest)
        else:
            plan = self._plan_next(latest)
        self._state = ReleaseState.PLANNED
        logger.info(
            'release_planned',
            current=str(plan.current_version) if plan.current_version else None,
            next=str(plan.next_version),
            bump=str(plan.bump),
            tag=plan.tag_name,
            commits=plan.commit_count,
            force=plan.force,
        )
        return plan

    def _plan_next(self, latest: TagInfo | None) -> ReleasePlan:
        raw_commits = self._vcs.commits_since(latest.name if latest else None)
        commits, unparsed = self._split(raw_commits)
        bump = determine_bump(commits, self._classifier)
        if bump is None:
            since = latest.name if latest else 'the first commit'
            raise NoReleasableCommits(
                f'No releasable commits since {since} ({len(commits) + len(unparsed)} commit(s) checked).',
            )
        current = latest.version if latest else None
        next_version = apply_bump(current, bump)
        tag_name = format_tag(self._config.tag_prefix, next_version)
        previous_tag = latest.name if latest else None
        entry = self._entry(next_version, self._today(), commits, unparsed, previous_tag, tag_name)
        return ReleasePlan(
            current_version=current,
            next_version=next_version,
            bump=bump,
            commits=tuple(commits),
            unparsed=tuple(unparsed),
            tag_name=tag_name,
            changelog_entry=render_entry(entry, self._classifier, self._changelog_template()),
            previous_tag=previous_tag,
        )

    def _plan_force(self, latest: TagInfo | None) -> ReleasePlan:
        if latest is None:
            raise NoTagsToForce(self._config.tag_prefix)
        tags = self._vcs.all_tags(self._config.tag_prefix)
        older = [t for t in tags if t.version < latest.version]
        previous_tag = older[0].name if older else None
        commits, unparsed = self._split(self._vcs.commits_between(previous_tag, latest.name))
        entry = self._entry(
            latest.version,
            self._vcs.tag_date(latest.name),
            commits,
            unparsed,
            previous_tag,
            latest.name,
        )
        return ReleasePlan(
            current_version=latest.version,
            next_version=latest.version,
            bump=BumpLevel.NONE,
            commits=tuple(commits),
            unparsed=tuple(unparsed),
            tag_name=latest.name,
            changelog_entry=render_entry(entry, self._classifier, self._changelog_template()),
            previous_tag=previous_tag,
            force=True,
        )

    def _result(self, plan: ReleasePlan, **kwargs: Any) -> ReleaseResult:  # noqa: ANN401
        return ReleaseResult.from_plan(plan, steps=list(self._steps), **kwargs)

    def _floating_tag_name(self, plan: ReleasePlan) -> str | None:
        if not self._config.floating_tags:
            return None
        return floating_tag(self._config.tag_prefix, plan.next_version)

    def _hook_variables(self, plan: ReleasePlan) -> dict[str, str]:
        return {
            'version': str(plan.next_version),
            'tag': plan.tag_name,
            'previous_tag': plan.previous_tag or '',
        }

    def _artifact_paths(self) -> list[Path]:
        """Expand artifact globs relative to the root; sorted, de-duplicated."""
        found: set[Path] = set()
        for pattern in self._config.artifacts:
            matches = [Path(p) for p in glob.glob(pattern, root_dir=self._root, recursive=True)]
            files = [self._root / m for m in matches if (self._root / m).is_file()]
            if not files:
                logger.warning('artifact_glob_empty', pattern=pattern)
            found.update(files)
        return sorted(found)

    def _step(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:  # noqa: ANN401
        """Run one named step, wrapping any failure in :class:`ReleaseStepError`."""
        logger.info('step_started', step=name)
        try:
            result = fn(*args, **kwargs)
        except ReleaseStepError:
            raise
        except TrunkReleaseError as exc:
            raise ReleaseStepError(name, exc.message, hint=exc.hint) from exc
        except Exception as exc:
            raise ReleaseStepError(name, str(exc)) from exc
        self._steps.append(name)
        logger.info('step_finished', step=name)
        return result

    def _check_branch(self) -> None:
        branch = self._vcs.current_branch()
        if branch is not None and branch not in self._config.branches:
            raise TrunkReleaseError(
                code=E.BRANCH_NOT_ALLOWED,
                message=f"Branch '{branch}' is not a release branch",
                hint=f'Release from one of: {", ".join(self._config.branches)}.',
            )

    def _check_force(self, plan: ReleasePlan) -> None:
        latest = self._vcs.latest_tag(self._config.tag_prefix)
        if latest is None:
            raise NoTagsToForce(self._config.tag_prefix)
        head = self._vcs.head_commit()
        if head != latest.sha:
            raise ForceNotAtTag(latest.name, head, latest.sha)

    def execute(self, plan: ReleasePlan, *, dry_run: bool = False) -> ReleaseResult:
        """Carry out ``plan``.

        Args:
            plan: Plan from :meth:`plan`.
            dry_run: Report the steps without side effects.

        Returns:
            The :class:`ReleaseResult`.

        Raises:
            ReleaseAlreadyExists: If the release exists and ``plan`` is
                not a force plan.
            ForceNotAtTag: If a force plan runs with HEAD off the tag.
            ReleaseStepError: If a step fails; later steps do not run.
        """
        if self._state is not ReleaseState.PLANNED:
            msg = f'execute() needs a fresh plan; state is {self._state.value}'
            raise RuntimeError(msg)
        self._steps = []

        with release_context(tag=plan.tag_name, dry_run=dry_run, force=plan.force):
            if plan.force:
                try:
                    self._check_force(plan)
                except TrunkReleaseError:
                    self._state = ReleaseState.FAILED
                    raise
            if dry_run:
                return self._report_dry_run(plan)

            self._state = ReleaseState.EXECUTING
            try:
                result = self._execute(plan)
            except ReleaseStepError as exc:
                self._state = ReleaseState.FAILED
                logger.error('release_failed', step=exc.step, error=exc.message)
                self._run_failure_hooks(plan)
                raise
            except TrunkReleaseError:
                self._state = ReleaseState.FAILED
                raise
            self._state = ReleaseState.EXECUTED
            logger.info('release_done', tag=plan.tag_name, url=result.release_url)
            return result

    def _report_dry_run(self, plan: ReleasePlan) -> ReleaseResult:
        steps: list[str] = []
        if self._config.hooks.pre_release:
            steps.append('hooks.pre_release')
        if not plan.force:
            if self._config.version_files:
                steps.append('version_files')
            steps.extend(['changelog', 'commit', 'tag'])
        steps.append('push')
        if self._config.hooks.post_tag:
            steps.append('hooks.post_tag')
        if self._forge is not None:
            steps.append('release')
        float_name = self._floating_tag_name(plan)
        if float_name:
            steps.append('floating_tag')
        if self._config.artifacts and self._forge is not None:
            steps.append('artifacts')
        if self._config.hooks.post_release:
            steps.append('hooks.post_release')

        for step in steps:
            logger.info('dry_run_step', step=step)
        self._state = ReleaseState.DRY_RUN_REPORTED
        return ReleaseResult.from_plan(plan, dry_run=True, floating_tag=float_name, steps=steps)

    def _execute(self, plan: ReleasePlan) -> ReleaseResult:
        config = self._config
        variables = self._hook_variables(plan)

        self._check_branch()
        exists = False
        if self._forge is not None:
            exists = self._step('preflight', self._forge.release_exists, plan.tag_name)
            if exists and not plan.force:
                raise ReleaseAlreadyExists(plan.tag_name)

        self._hook_step('pre_release', variables)

        if not plan.force:
            touched: list[Path] = []
            if config.version_files:
                touched = self._step(
                    'version_files',
                    bump_version_files,
                    [self._root / p for p in config.version_files],
                    str(plan.next_version),
                    strict=config.version_files_strict,
                )
            changelog_path = self._root / config.changelog.file
            self._step('changelog', write_changelog, changelog_path, plan.changelog_entry)
            self._step('commit', self._commit, plan, [*touched, changelog_path])
            self._step('tag', self._create_tag, plan)

        self._step('push', self._push, plan)
        self._hook_step('post_tag', variables)

        release_url: str | None = None
        if self._forge is not None:
            release_url = self._step('release', self._publish_release, plan, exists)
        else:
            logger.warning('release_skipped', reason='no forge configured')

        float_name = self._floating_tag_name(plan)
        if float_name:
            self._step('floating_tag', self._move_floating_tag, float_name, plan)

        if config.artifacts and self._forge is not None:
            self._step('artifacts', self._upload_artifacts, plan)

        self._hook_step('post_release', variables)

        return self._result(
            plan,
            released=release_url is not None,
            release_url=release_url,
            floating_tag=float_name,
        )

    def _hook_step(self, event: str, variables: dict[str, str]) -> None:
        if getattr(self._config.hooks, event):
            self._step(f'hooks.{event}', run_hooks, self._config.hooks, event, variables=variables, cwd=self._root)

    def _commit(self, plan: ReleasePlan, paths: list[Path]) -> bool:
        rel_paths = [str(p.relative_to(self._root)) if p.is_relative_to(self._root) else str(p) for p in paths]
        return self._vcs.stage_and_commit(rel_paths, RELEASE_COMMIT_TEMPLATE.format(tag=plan.tag_name))

    def _create_tag(self, plan: ReleasePlan) -> None:
        if self._vcs.tag_exists(plan.tag_name):
            logger.info('tag_exists', tag=plan.tag_name)
            return
        self._vcs.create_tag(plan.tag_name, plan.changelog_entry)

    def _push(self, plan: ReleasePlan) -> None:
        refs = ['HEAD']
        if not self._vcs.remote_tag_exists(plan.tag_name):
            refs.append(plan.tag_name)
        self._vcs.push(refs)

    def _publish_release(self, plan: ReleasePlan, exists: bool) -> str:
        forge = self._forge
        assert forge is not None  # noqa: S101 - guarded by the caller
        if exists:
            # Recreate so the notes match the current changelog entry.
            forge.delete_release(plan.tag_name)
        return forge.create_release(plan.tag_name, plan.tag_name, plan.changelog_entry, prerelease=False)

    def _move_floating_tag(self, name: str, plan: ReleasePlan) -> None:
        self._vcs.force_create_tag(name, f'Latest {plan.tag_name}')
        self._vcs.force_push_tag(name)

    def _upload_artifacts(self, plan: ReleasePlan) -> None:
        forge = self._forge
        assert forge is not None  # noqa: S101 - guarded by the caller
        paths = self._artifact_paths()
        if paths:
            forge.upload_assets(plan.tag_name, paths)

    def _run_failure_hooks(self, plan: ReleasePlan) -> None:
        try:
            run_hooks(self._config.hooks, 'on_failure', variables=self._hook_variables(plan), cwd=self._root)
        except TrunkReleaseError as exc:
            logger.warning('on_failure_hook_failed', error=exc.message)

    def regenerate_changelog(self) -> str:
        """Rebuild the whole changelog from every release tag.

        One entry per tag, newest first, dated by the tag's commit and
        linked to the previous tag. The same history always yields the
        same text.
        """
        tags = self._vcs.all_tags(self._config.tag_prefix)
        entries: list[ChangelogEntry] = []
        for index, tag in enumerate(tags):
            previous = tags[index + 1] if index + 1 < len(tags) else None
            commits, unparsed = self._split(
                self._vcs.commits_between(previous.name if previous else None, tag.name),
            )
            entries.append(
                self._entry(
                    tag.version,
                    self._vcs.tag_date(tag.name),
                    commits,
                    unparsed,
                    previous.name if previous else None,
                    tag.name,
                ),
            )
        logger.info('changelog_regenerated', tags=len(tags))
        return regenerate(entries, self._classifier, self._changelog_template())


__all__ = [
    'RELEASE_COMMIT_TEMPLATE',
    'ReleasePlan',
    'ReleaseResult',
    'ReleaseState',
    'ReleaseStrategy',
]
