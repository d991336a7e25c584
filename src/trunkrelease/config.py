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

"""Configuration reader for trunkrelease.

Reads ``trunkrelease.toml`` from the repository root and returns a
validated :class:`ReleaseConfig` dataclass. A missing file yields the
defaults, so a repository with Conventional Commits and ``v``-prefixed
tags needs no configuration at all.

Key Concepts (ELI5)::

    ┌─────────────────────────┬────────────────────────────────────────────┐
    │ Concept                 │ ELI5 Explanation                           │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ ReleaseConfig           │ The knobs for one run. Loaded once, never │
    │                         │ changed afterwards.                       │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ load_config()           │ Read trunkrelease.toml, check every key,  │
    │                         │ fill in defaults.                         │
    ├─────────────────────────┼────────────────────────────────────────────┤
    │ Fuzzy key matching      │ Typo a key and we suggest the closest     │
    │                         │ valid one.                                │
    └─────────────────────────┴────────────────────────────────────────────┘

Validation Pipeline::

    trunkrelease.toml
    ┌──────────────────┐
    │ tag_prefx = "v"  │  ← typo!
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ TR-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'tag_prefix'?"         │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ TR-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ 'branches' must be list      │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 3. Value check   │────→│ TR-CONFIG-INVALID-PATTERN:   │
    │    (bumps, regex)│     │ missing (?P<type>...) group  │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ ReleaseConfig()  │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``trunkrelease.toml``::

    branches             = ["main", "master"]   # trunk branches
    tag_prefix           = "v"                  # tags look like v1.2.3
    commit_pattern       = "^(?P<type>\\w+)..."  # named groups type/scope/breaking/description
    breaking_section     = "Breaking Changes"
    misc_section         = "Miscellaneous"
    version_files        = ["Cargo.toml"]       # manifests to bump
    version_files_strict = false                # missing manifest is an error
    floating_tags        = false                # move v1 to the newest v1.x.y
    artifacts            = ["dist/*.tar.gz"]    # globs uploaded to the release

    [[types]]                                   # merged over the built-in table
    name = "docs"
    bump = "patch"                              # "major", "minor", "patch" or "none"
    section = "Documentation"

    [changelog]
    file = "CHANGELOG.md"
    template = ".github/changelog.md.j2"

    [hooks]
    pre_release = ["make check"]
    post_release = ["./notify.sh ${tag}"]

Usage::

    from trunkrelease.config import load_config

    cfg = load_config(Path('/path/to/repo'))
    print(cfg.tag_prefix)  # "v"
"""

from __future__ import annotations

import difflib
import re
import shlex
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from trunkrelease.commit_parsing import (
    BREAKING_SECTION,
    DEFAULT_COMMIT_PATTERN,
    DEFAULT_COMMIT_TYPES,
    MISC_SECTION,
    REQUIRED_GROUPS,
    BumpLevel,
    Classifier,
    CommitType,
    merge_commit_types,
)
from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = 'trunkrelease.toml'
DEFAULT_CHANGELOG_FILE = 'CHANGELOG.md'

VALID_KEYS: frozenset[str] = frozenset({
    'artifacts',
    'branches',
    'breaking_section',
    'changelog',
    'commit_pattern',
    'floating_tags',
    'hooks',
    'misc_section',
    'tag_prefix',
    'types',
    'version_files',
    'version_files_strict',
})

VALID_CHANGELOG_KEYS: frozenset[str] = frozenset({'file', 'template'})
VALID_HOOK_EVENTS: frozenset[str] = frozenset({'pre_release', 'post_tag', 'post_release', 'on_failure'})
VALID_TYPE_KEYS: frozenset[str] = frozenset({'name', 'bump', 'section'})

# Tag prefixes end up in ref names and glob patterns.
_TAG_PREFIX_RE = re.compile(r'^[A-Za-z0-9._/-]*$')


@dataclass(frozen=True)
class ChangelogConfig:
    """``[changelog]`` section.

    Attributes:
        file: Changelog path, relative to the repository root.
        template: Optional Jinja2 template path, relative to the root.
    """

    file: str = DEFAULT_CHANGELOG_FILE
    template: str | None = None


@dataclass(frozen=True)
class HooksConfig:
    """``[hooks]`` section: shell commands per lifecycle event.

    Commands support ``${version}``, ``${tag}`` and ``${previous_tag}``.
    """

    pre_release: list[str] = field(default_factory=list)
    post_tag: list[str] = field(default_factory=list)
    post_release: list[str] = field(default_factory=list)
    on_failure: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReleaseConfig:
    """Validated configuration for a trunkrelease run.

    Attributes:
        branches: Branches a release may be cut from.
        tag_prefix: Prefix of release tags (``"v"`` gives ``v1.2.3``).
        commit_pattern: Regex matched against the first line of each
            commit message.
        breaking_section: Changelog heading re-listing breaking commits.
        misc_section: Changelog heading for everything unmapped.
        types: Resolved commit-type table (defaults merged with
            ``[[types]]`` overrides).
        changelog: ``[changelog]`` settings.
        version_files: Manifests whose version is rewritten.
        version_files_strict: Treat a missing manifest as an error.
        floating_tags: Maintain a ``<prefix><major>`` tag.
        artifacts: Glob patterns of files attached to the release.
        hooks: Lifecycle hook commands.
        config_path: Path to the trunkrelease.toml that was loaded.
    """

    branches: list[str] = field(default_factory=lambda: ['main', 'master'])
    tag_prefix: str = 'v'
    commit_pattern: str = DEFAULT_COMMIT_PATTERN
    breaking_section: str = BREAKING_SECTION
    misc_section: str = MISC_SECTION
    types: tuple[CommitType, ...] = DEFAULT_COMMIT_TYPES
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    version_files: list[str] = field(default_factory=list)
    version_files_strict: bool = False
    floating_tags: bool = False
    artifacts: list[str] = field(default_factory=list)
    hooks: HooksConfig = field(default_factory=HooksConfig)
    config_path: Path | None = None

    def compiled_pattern(self) -> re.Pattern[str]:
        """Return :attr:`commit_pattern` compiled.

        The pattern is validated at load time, so this does not fail
        for a config returned by :func:`load_config`.
        """
        return re.compile(self.commit_pattern)

    def classifier(self) -> Classifier:
        """Build the classifier for this config's type table."""
        return Classifier(
            self.types,
            breaking_section=self.breaking_section,
            misc_section=self.misc_section,
        )


_GLOBAL_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'artifacts': list,
    'branches': list,
    'breaking_section': str,
    'changelog': dict,
    'commit_pattern': str,
    'floating_tags': bool,
    'hooks': dict,
    'misc_section': str,
    'tag_prefix': str,
    'types': list,
    'version_files': list,
    'version_files_strict': bool,
}


def _unknown_key_error(key: str, valid: frozenset[str], context: str) -> TrunkReleaseError:
    suggestion = difflib.get_close_matches(key, valid, n=1, cutoff=0.6)
    hint = f"Did you mean '{suggestion[0]}'?" if suggestion else f'Valid keys: {", ".join(sorted(valid))}.'
    return TrunkReleaseError(
        code=E.CONFIG_INVALID_KEY,
        message=f"Unknown key '{key}' in {context}",
        hint=hint,
    )


def _validate_value_type(
    key: str,
    value: Any,  # noqa: ANN401 - dynamic config values
    type_map: dict[str, type | tuple[type, ...]],
    *,
    context: str = CONFIG_FILENAME,
) -> None:
    """Raise if a config value has the wrong type."""
    expected = type_map.get(key)
    if expected is None:
        return
    if not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else str(expected)
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {context}.',
        )


def _validate_string_list(key: str, items: list[object], context: str = CONFIG_FILENAME) -> list[str]:
    for item in items:
        if not isinstance(item, str):
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' entries must be strings, got {type(item).__name__}",
                hint=f'Check the value of {key} in {context}.',
            )
    return [str(item) for item in items]


def validate_commit_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a commit pattern and check its named groups.

    Raises:
        TrunkReleaseError: If the regex does not compile or lacks a
            ``type`` or ``description`` group.
    """
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_PATTERN,
            message=f'commit_pattern does not compile: {exc}',
            hint='Check the regular expression syntax in commit_pattern.',
        ) from exc
    missing = sorted(REQUIRED_GROUPS - set(compiled.groupindex))
    if missing:
        groups = ', '.join(f'(?P<{name}>...)' for name in missing)
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_PATTERN,
            message=f'commit_pattern is missing named group(s): {groups}',
            hint='The pattern needs named groups type and description; scope and breaking are optional.',
        )
    return compiled


def _validate_tag_prefix(prefix: str) -> None:
    if not _TAG_PREFIX_RE.fullmatch(prefix):
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'tag_prefix {prefix!r} contains characters not allowed in tag names',
            hint='Use letters, digits, ".", "_", "-" or "/".',
        )


def _parse_bump(name: str, value: Any) -> BumpLevel:  # noqa: ANN401 - dynamic config values
    if not isinstance(value, str):
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"types.{name}.bump must be a string, got {type(value).__name__}",
        )
    try:
        return BumpLevel.from_name(value)
    except ValueError as exc:
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"Unknown bump level '{value}' for commit type '{name}'",
            hint='Use one of: major, minor, patch, none.',
        ) from exc


def _parse_types(items: list[Any]) -> tuple[CommitType, ...]:  # noqa: ANN401 - dynamic config values
    """Parse ``[[types]]`` and merge them over the built-in table."""
    overrides: list[CommitType] = []
    for item in items:
        if not isinstance(item, dict):
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f'types entries must be tables, got {type(item).__name__}',
                hint='Write each type as a [[types]] table with name, bump and section.',
            )
        for key in item:
            if key not in VALID_TYPE_KEYS:
                raise _unknown_key_error(key, VALID_TYPE_KEYS, '[[types]]')
        name = item.get('name')
        if not isinstance(name, str) or not name:
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message='Every [[types]] entry needs a non-empty name',
            )
        bump = _parse_bump(name, item['bump']) if 'bump' in item else None
        section = item.get('section')
        if section is not None and not isinstance(section, str):
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f'types.{name}.section must be a string, got {type(section).__name__}',
            )
        overrides.append(CommitType(name=name, bump=bump, section=section or None))
    return merge_commit_types(overrides)


def _parse_changelog(section: dict[str, Any]) -> ChangelogConfig:  # noqa: ANN401 - dynamic config values
    for key, value in section.items():
        if key not in VALID_CHANGELOG_KEYS:
            raise _unknown_key_error(key, VALID_CHANGELOG_KEYS, '[changelog]')
        if not isinstance(value, str):
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'changelog.{key}' must be str, got {type(value).__name__}",
            )
    return ChangelogConfig(
        file=section.get('file', DEFAULT_CHANGELOG_FILE),
        template=section.get('template') or None,
    )


def _parse_hooks(section: dict[str, Any]) -> HooksConfig:  # noqa: ANN401 - dynamic config values
    events: dict[str, list[str]] = {}
    for event, commands in section.items():
        if event not in VALID_HOOK_EVENTS:
            raise _unknown_key_error(event, VALID_HOOK_EVENTS, '[hooks]')
        if not isinstance(commands, list):
            raise TrunkReleaseError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'hooks.{event}' must be list, got {type(commands).__name__}",
            )
        events[event] = _validate_string_list(f'hooks.{event}', commands)
        for command in events[event]:
            try:
                shlex.split(command)
            except ValueError as exc:
                raise TrunkReleaseError(
                    code=E.CONFIG_INVALID_VALUE,
                    message=f'hooks.{event} command cannot be split: {command!r} ({exc})',
                    hint='Check the quoting of the hook command.',
                ) from exc
    return HooksConfig(**events)


def parse_config(raw: dict[str, Any], *, config_path: Path | None = None) -> ReleaseConfig:  # noqa: ANN401
    """Validate a parsed TOML mapping and build a :class:`ReleaseConfig`.

    Raises:
        TrunkReleaseError: On unknown keys, wrong types or bad values.
    """
    for key in raw:
        if key not in VALID_KEYS:
            raise _unknown_key_error(key, VALID_KEYS, CONFIG_FILENAME)

    for key, value in raw.items():
        _validate_value_type(key, value, _GLOBAL_TYPE_MAP)

    kwargs: dict[str, Any] = {}  # noqa: ANN401
    for key in ('branches', 'version_files', 'artifacts'):
        if key in raw:
            kwargs[key] = _validate_string_list(key, raw[key])
    for key in ('tag_prefix', 'breaking_section', 'misc_section', 'floating_tags', 'version_files_strict'):
        if key in raw:
            kwargs[key] = raw[key]

    if 'branches' in kwargs and not kwargs['branches']:
        raise TrunkReleaseError(
            code=E.CONFIG_INVALID_VALUE,
            message="'branches' must list at least one branch",
        )
    if 'tag_prefix' in kwargs:
        _validate_tag_prefix(kwargs['tag_prefix'])
    if 'commit_pattern' in raw:
        validate_commit_pattern(raw['commit_pattern'])
        kwargs['commit_pattern'] = raw['commit_pattern']
    if 'types' in raw:
        kwargs['types'] = _parse_types(raw['types'])
    if 'changelog' in raw:
        kwargs['changelog'] = _parse_changelog(dict(raw['changelog']))
    if 'hooks' in raw:
        kwargs['hooks'] = _parse_hooks(dict(raw['hooks']))

    return ReleaseConfig(**kwargs, config_path=config_path)


def load_config(repo_root: Path) -> ReleaseConfig:
    """Load and validate configuration from ``trunkrelease.toml``.

    Args:
        repo_root: Directory containing ``trunkrelease.toml``.

    Returns:
        A validated :class:`ReleaseConfig`; the defaults when the file
        does not exist.

    Raises:
        TrunkReleaseError: If the file cannot be parsed or contains
            invalid config.
    """
    config_path = repo_root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_trunkrelease_config', path=str(config_path))
        return ReleaseConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise TrunkReleaseError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise TrunkReleaseError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to parse {config_path}: {exc}',
            hint='Check the TOML syntax.',
        ) from exc

    # unwrap() turns tomlkit containers into plain dicts, lists and scalars.
    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401
    config = parse_config(raw, config_path=config_path)
    logger.debug('config_loaded', path=str(config_path), keys=sorted(raw))
    return config


def config_to_dict(config: ReleaseConfig) -> dict[str, Any]:  # noqa: ANN401
    """Return the resolved configuration as plain data (for ``config --resolved``)."""
    data = asdict(config)
    data['types'] = [
        {
            'name': ct.name,
            'bump': str(ct.bump) if ct.bump is not None else None,
            'section': ct.section,
        }
        for ct in config.types
    ]
    data['config_path'] = str(config.config_path) if config.config_path else None
    return data


def default_config_text() -> str:
    """Render a commented ``trunkrelease.toml`` holding the defaults."""
    defaults = ReleaseConfig()
    doc = tomlkit.document()
    doc.add(tomlkit.comment('trunkrelease configuration. Every key is optional.'))
    doc.add(tomlkit.nl())
    doc.add('branches', defaults.branches)
    doc.add('tag_prefix', defaults.tag_prefix)
    doc.add('commit_pattern', defaults.commit_pattern)
    doc.add('breaking_section', defaults.breaking_section)
    doc.add('misc_section', defaults.misc_section)
    doc.add('version_files', tomlkit.array())
    doc['version_files'].comment('e.g. ["Cargo.toml", "package.json"]')
    doc.add('version_files_strict', defaults.version_files_strict)
    doc.add('floating_tags', defaults.floating_tags)
    doc.add('artifacts', tomlkit.array())
    doc['artifacts'].comment('globs uploaded to the release, e.g. ["dist/*.tar.gz"]')
    doc.add(tomlkit.nl())
    doc.add(tomlkit.comment('Override or add commit types:'))
    doc.add(tomlkit.comment('[[types]]'))
    doc.add(tomlkit.comment('name = "docs"'))
    doc.add(tomlkit.comment('bump = "patch"'))
    doc.add(tomlkit.comment('section = "Documentation"'))
    doc.add(tomlkit.nl())

    changelog = tomlkit.table()
    changelog.add('file', defaults.changelog.file)
    changelog.add(tomlkit.comment('template = ".github/changelog.md.j2"'))
    doc.add('changelog', changelog)

    hooks = tomlkit.table()
    for event in ('pre_release', 'post_tag', 'post_release', 'on_failure'):
        hooks.add(event, tomlkit.array())
    doc.add('hooks', hooks)
    return tomlkit.dumps(doc)


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_CHANGELOG_FILE',
    'VALID_KEYS',
    'ChangelogConfig',
    'HooksConfig',
    'ReleaseConfig',
    'config_to_dict',
    'default_config_text',
    'load_config',
    'parse_config',
    'validate_commit_pattern',
]
