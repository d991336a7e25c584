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

"""Changelog rendering from classified Conventional Commits.

Groups the commits of one release by section (Features, Bug Fixes, ...)
and renders a Markdown entry, either with the built-in layout or with a
user-supplied Jinja2 template. Entries are inserted at the top of an
existing ``CHANGELOG.md``, or the whole file is rebuilt from tag history
with :func:`regenerate`.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ ChangelogEntry          │ One release: version, date, its commits.    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ ChangelogSection        │ One heading ("Features") and its bullets,   │
    │                         │ newest first.                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ insert_entry            │ Put a new release right under the           │
    │                         │ ``# Changelog`` heading.                    │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ regenerate              │ Rebuild the whole file from every tag.      │
    │                         │ Same history in, same bytes out.            │
    └─────────────────────────┴─────────────────────────────────────────────┘

Default layout::

    ## 1.1.0 (2026-03-02)

    ### Features

    - **api**: add batch endpoint ([abc1234](https://github.com/o/r/commit/abc1234...))

    ### Bug Fixes

    - handle empty input ([def5678](https://github.com/o/r/commit/def5678...))

    [Full Changelog](https://github.com/o/r/compare/v1.0.0...v1.1.0)

Building the file one release at a time with :func:`insert_entry` and
rebuilding it with :func:`regenerate` produce identical text for the
same history.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import jinja2

from trunkrelease.commit_parsing import Classifier, ConventionalCommit, RawCommit
from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger

logger = get_logger(__name__)

CHANGELOG_HEADING = '# Changelog'

# First release heading in an existing file.
_ENTRY_HEADING_RE = re.compile(r'^## ', re.MULTILINE)


@dataclass(frozen=True)
class ChangelogEntry:
    """Input for one rendered release.

    Attributes:
        version: Version string for the heading.
        date: ISO date (``YYYY-MM-DD``).
        commits: Parsed commits, oldest first.
        unparsed: Commits the parser rejected, oldest first.
        compare_url: Link to the diff against the previous release.
        repo_url: Repository web URL used to link commit SHAs.
    """

    version: str
    date: str
    commits: tuple[ConventionalCommit, ...] = ()
    unparsed: tuple[RawCommit, ...] = ()
    compare_url: str | None = None
    repo_url: str | None = None


@dataclass(frozen=True)
class ChangelogItem:
    """One bullet, as exposed to templates."""

    sha: str
    short_sha: str
    description: str
    type: str = ''
    scope: str | None = None
    breaking: bool = False
    url: str | None = None


@dataclass
class ChangelogSection:
    """A heading and its bullets, newest first."""

    title: str
    items: list[ChangelogItem] = field(default_factory=list)


def _commit_url(repo_url: str | None, sha: str) -> str | None:
    return f'{repo_url.rstrip("/")}/commit/{sha}' if repo_url else None


def _item(commit: ConventionalCommit, repo_url: str | None) -> ChangelogItem:
    return ChangelogItem(
        sha=commit.sha,
        short_sha=commit.short_sha,
        description=commit.description,
        type=commit.type,
        scope=commit.scope,
        breaking=commit.breaking,
        url=_commit_url(repo_url, commit.sha),
    )


def group_sections(entry: ChangelogEntry, classifier: Classifier) -> list[ChangelogSection]:
    """Group an entry's commits into non-empty sections.

    Section order follows the commit-type table, then the breaking
    section (breaking commits listed again), then the miscellaneous
    section (unmapped types, then unparseable commits).
    """
    newest_first = list(reversed(entry.commits))
    by_section: dict[str, list[ChangelogItem]] = {}
    for commit in newest_first:
        by_section.setdefault(classifier.section_for(commit.type), []).append(_item(commit, entry.repo_url))

    sections = [
        ChangelogSection(title=title, items=by_section[title])
        for title in classifier.section_order
        if by_section.get(title)
    ]

    breaking = [_item(c, entry.repo_url) for c in newest_first if c.breaking]
    if breaking:
        sections.append(ChangelogSection(title=classifier.breaking_section, items=breaking))

    misc = list(by_section.get(classifier.misc_section, []))
    misc.extend(
        ChangelogItem(
            sha=raw.sha,
            short_sha=raw.sha[:7],
            description=raw.subject,
            url=_commit_url(entry.repo_url, raw.sha),
        )
        for raw in reversed(entry.unparsed)
    )
    if misc:
        sections.append(ChangelogSection(title=classifier.misc_section, items=misc))

    return sections


def _render_item(item: ChangelogItem) -> str:
    """Render one bullet: ``- **scope**: description (sha)``."""
    parts = ['- ']
    if item.scope:
        parts.append(f'**{item.scope}**: ')
    parts.append(item.description)
    if item.url:
        parts.append(f' ([{item.short_sha}]({item.url}))')
    else:
        parts.append(f' ({item.short_sha})')
    return ''.join(parts)


def _render_default(entry: ChangelogEntry, sections: Sequence[ChangelogSection]) -> str:
    lines = [f'## {entry.version} ({entry.date})']
    for section in sections:
        lines.extend(['', f'### {section.title}', ''])
        lines.extend(_render_item(item) for item in section.items)
    if entry.compare_url:
        lines.extend(['', f'[Full Changelog]({entry.compare_url})'])
    return '\n'.join(lines)


def load_template(template_path: Path) -> jinja2.Template:
    """Load a Jinja2 changelog template.

    Raises:
        TrunkReleaseError: If the file is missing or does not compile.
    """
    if not template_path.is_file():
        raise TrunkReleaseError(
            code=E.CHANGELOG_TEMPLATE,
            message=f'Changelog template not found: {template_path}',
            hint='Fix changelog.template in trunkrelease.toml or remove it to use the default layout.',
        )
    env = jinja2.Environment(  # noqa: S701 - renders Markdown, not HTML
        loader=jinja2.FileSystemLoader(str(template_path.parent)),
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    try:
        return env.get_template(template_path.name)
    except jinja2.TemplateSyntaxError as exc:
        raise TrunkReleaseError(
            code=E.CHANGELOG_TEMPLATE,
            message=f'Changelog template {template_path} line {exc.lineno}: {exc.message}',
        ) from exc


def render_entry(
    entry: ChangelogEntry,
    classifier: Classifier,
    template: jinja2.Template | None = None,
) -> str:
    """Render one release entry as Markdown.

    The template receives ``version``, ``date``, ``sections`` (each with
    ``title`` and ``items``), ``commits`` (flat, newest first),
    ``compare_url`` and ``repo_url``.

    Returns:
        The entry text without a trailing newline.
    """
    sections = group_sections(entry, classifier)
    if template is None:
        return _render_default(entry, sections)
    rendered = template.render(
        version=entry.version,
        date=entry.date,
        sections=sections,
        commits=[_item(c, entry.repo_url) for c in reversed(entry.commits)],
        compare_url=entry.compare_url,
        repo_url=entry.repo_url,
    )
    return rendered.rstrip()


def insert_entry(existing: str, rendered: str) -> str:
    """Insert ``rendered`` above the newest entry of an existing changelog.

    - Empty or missing content gets a fresh ``# Changelog`` heading.
    - Otherwise the entry goes above the first ``## `` line (below the
      top-level heading and any intro text).
    - A file with a heading but no entries gets the entry appended.
    - A file without a top-level heading gets the entry prepended.
    """
    rendered = rendered.rstrip('\n')
    if not existing.strip():
        return f'{CHANGELOG_HEADING}\n\n{rendered}\n'

    body = existing.lstrip('\n')
    if not body.startswith('# '):
        return f'{rendered}\n\n{body}'

    match = _ENTRY_HEADING_RE.search(body)
    if match is None:
        return f'{body.rstrip()}\n\n{rendered}\n'

    head = body[: match.start()].rstrip('\n')
    return f'{head}\n\n{rendered}\n\n{body[match.start() :]}'


def regenerate(
    entries: Sequence[ChangelogEntry],
    classifier: Classifier,
    template: jinja2.Template | None = None,
) -> str:
    """Rebuild a whole changelog from ``entries`` (newest first).

    The output is a pure function of the entries, so the same tag and
    commit history always yields the same bytes.
    """
    rendered = [render_entry(entry, classifier, template) for entry in entries]
    if not rendered:
        return f'{CHANGELOG_HEADING}\n'
    return f'{CHANGELOG_HEADING}\n\n' + '\n\n'.join(rendered) + '\n'


def write_changelog(changelog_path: Path, rendered: str) -> None:
    """Insert ``rendered`` into ``changelog_path``, creating it if needed."""
    existing = changelog_path.read_text(encoding='utf-8') if changelog_path.exists() else ''
    changelog_path.parent.mkdir(parents=True, exist_ok=True)
    changelog_path.write_text(insert_entry(existing, rendered), encoding='utf-8')
    logger.info(
        'changelog_written',
        path=str(changelog_path),
        version_heading=rendered.split('\n', 1)[0].strip(),
    )


__all__ = [
    'CHANGELOG_HEADING',
    'ChangelogEntry',
    'ChangelogItem',
    'ChangelogSection',
    'group_sections',
    'insert_entry',
    'load_template',
    'regenerate',
    'render_entry',
    'write_changelog',
]
