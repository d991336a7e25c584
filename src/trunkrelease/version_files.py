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

r"""Version-field rewriting in project manifests.

Only the version value changes; every other byte of the file (comments,
key order, indentation) is preserved. The manifest kind is inferred
from the file name:

============================  =============================================
File                          Field
============================  =============================================
``Cargo.toml``                ``[package].version``, else
                              ``[workspace.package].version`` (tomlkit)
``pyproject.toml``            ``[project].version``, else
                              ``[tool.poetry].version`` (tomlkit)
``package.json``              top-level ``"version"``
``build.gradle(.kts)``        ``version = "..."``
``pom.xml``                   first ``<version>`` after ``</parent>``, else
                              after ``</modelVersion>``
``*.go``                      ``var``/``const Version = "..."``
============================  =============================================

A manifest whose version field cannot be found is a hard error, never a
silent skip.

Usage::

    from trunkrelease.version_files import bump_version_file

    old = bump_version_file(Path('Cargo.toml'), '1.3.0')
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger

logger = get_logger(__name__)

GRADLE_VERSION_PATTERN = r'''^(\s*version\s*=\s*["'])([^"']*)(["'])'''
GO_VERSION_PATTERN = r'((?:var|const)\s+Version\s*(?:string\s*)?=\s*")([^"]*)(")'
POM_VERSION_PATTERN = r'(<version>)([^<]*)(</version>)'


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        raise TrunkReleaseError(
            code=E.VERSION_FILE_MISSING,
            message=f'Cannot read {path}: {exc}',
            hint=f'Check that {path} exists and is readable.',
        ) from exc


def _write(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding='utf-8')
    except OSError as exc:
        raise TrunkReleaseError(
            code=E.VERSION_FILE_FIELD,
            message=f'Cannot write {path}: {exc}',
            hint=f'Check file permissions for {path}.',
        ) from exc


def _missing_field(path: Path, field: str) -> TrunkReleaseError:
    return TrunkReleaseError(
        code=E.VERSION_FILE_FIELD,
        message=f'No {field} found in {path}',
        hint=f'Add a literal {field} to {path.name} or remove it from version_files.',
    )


def _parse_toml(path: Path, text: str) -> tomlkit.TOMLDocument:
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise TrunkReleaseError(
            code=E.VERSION_FILE_FIELD,
            message=f'Cannot parse {path}: {exc}',
            hint=f'Check that {path} contains valid TOML.',
        ) from exc


def _toml_table(doc: Any, *keys: str) -> Any:  # noqa: ANN401 - tomlkit containers
    """Walk nested tables, returning ``None`` when a level is absent."""
    node = doc
    for key in keys:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def _bump_toml(path: Path, new_version: str, candidates: Sequence[tuple[str, ...]], field: str) -> str:
    doc = _parse_toml(path, _read(path))
    for keys in candidates:
        table = _toml_table(doc, *keys)
        # A table value (``version.workspace = true``) is not a literal version.
        if isinstance(table, dict) and isinstance(table.get('version'), str):
            old_version = str(table['version'])
            table['version'] = new_version
            _write(path, tomlkit.dumps(doc))
            return old_version
    raise _missing_field(path, field)


def bump_cargo_toml(path: Path, new_version: str) -> str:
    """Update ``package.version`` or ``workspace.package.version``."""
    return _bump_toml(
        path,
        new_version,
        [('package',), ('workspace', 'package')],
        '[package].version or [workspace.package].version',
    )


def bump_pyproject_toml(path: Path, new_version: str) -> str:
    """Update ``project.version`` or ``tool.poetry.version``."""
    return _bump_toml(
        path,
        new_version,
        [('project',), ('tool', 'poetry')],
        '[project].version or [tool.poetry].version',
    )


def _top_level_key_span(text: str, key: str) -> tuple[int, int] | None:
    """Locate the string value of a depth-1 JSON key.

    Returns the ``(start, end)`` offsets of the value's characters
    (inside the quotes), or ``None`` when the key is absent or its
    value is not a string.
    """
    depth = 0
    i = 0
    n = len(text)
    expecting_key = False
    while i < n:
        ch = text[i]
        if ch == '"':
            end = i + 1
            while end < n and text[end] != '"':
                end += 2 if text[end] == '\\' else 1
            token = text[i + 1 : end]
            if depth == 1 and expecting_key and token == key:
                j = end + 1
                while j < n and text[j] in ' \t\r\n:':
                    j += 1
                if j < n and text[j] == '"':
                    value_end = j + 1
                    while value_end < n and text[value_end] != '"':
                        value_end += 2 if text[value_end] == '\\' else 1
                    return j + 1, value_end
                return None
            expecting_key = False
            i = end + 1
            continue
        if ch in '{[':
            depth += 1
            expecting_key = ch == '{'
        elif ch in '}]':
            depth -= 1
        elif ch == ',':
            expecting_key = depth == 1 or expecting_key
        i += 1
    return None


def bump_package_json(path: Path, new_version: str) -> str:
    """Update the top-level ``"version"`` of a ``package.json``."""
    text = _read(path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TrunkReleaseError(
            code=E.VERSION_FILE_FIELD,
            message=f'Cannot parse {path}: {exc}',
            hint=f'Check that {path} contains valid JSON.',
        ) from exc
    if not isinstance(data, dict) or not isinstance(data.get('version'), str):
        raise _missing_field(path, 'top-level "version"')

    span = _top_level_key_span(text, 'version')
    if span is None:
        raise _missing_field(path, 'top-level "version"')
    start, end = span
    _write(path, text[:start] + new_version + text[end:])
    return data['version']


def _bump_regex(path: Path, new_version: str, pattern: str, field: str, *, start: int = 0) -> str:
    """Replace group 2 of the first match of a three-group pattern."""
    text = _read(path)
    match = re.compile(pattern, re.MULTILINE).search(text, start)
    if match is None:
        raise _missing_field(path, field)
    old_version = match.group(2)
    new_text = text[: match.start(2)] + new_version + text[match.end(2) :]
    _write(path, new_text)
    return old_version


def bump_gradle(path: Path, new_version: str) -> str:
    """Update ``version = "..."`` in ``build.gradle`` or ``build.gradle.kts``."""
    return _bump_regex(path, new_version, GRADLE_VERSION_PATTERN, 'version = "..." assignment')


def bump_pom_xml(path: Path, new_version: str) -> str:
    """Update the project ``<version>``, skipping the ``<parent>`` block."""
    text = _read(path)
    start = 0
    for marker in ('</parent>', '</modelVersion>'):
        pos = text.find(marker)
        if pos != -1:
            start = pos + len(marker)
            break
    return _bump_regex(path, new_version, POM_VERSION_PATTERN, 'project <version>', start=start)


def bump_go(path: Path, new_version: str) -> str:
    """Update ``var Version = "..."`` or ``const Version = "..."``."""
    return _bump_regex(path, new_version, GO_VERSION_PATTERN, 'Version variable or constant')


def _bumper_for(path: Path) -> Callable[[Path, str], str] | None:
    name = path.name
    if name == 'Cargo.toml':
        return bump_cargo_toml
    if name == 'pyproject.toml':
        return bump_pyproject_toml
    if name == 'package.json':
        return bump_package_json
    if name in ('build.gradle', 'build.gradle.kts'):
        return bump_gradle
    if name == 'pom.xml':
        return bump_pom_xml
    if path.suffix == '.go':
        return bump_go
    return None


def is_supported(path: Path) -> bool:
    """Return ``True`` if the file name is a recognized manifest kind."""
    return _bumper_for(path) is not None


def bump_version_file(path: Path, new_version: str) -> str:
    """Set the version field of one manifest.

    Args:
        path: Manifest path; the kind is inferred from its name.
        new_version: Version string to write.

    Returns:
        The version that was replaced.

    Raises:
        TrunkReleaseError: If the kind is unsupported, the file cannot
            be read, or the version field is missing.
    """
    bumper = _bumper_for(path)
    if bumper is None:
        raise TrunkReleaseError(
            code=E.VERSION_FILE_UNSUPPORTED,
            message=f'Unsupported version file: {path}',
            hint='Supported: Cargo.toml, pyproject.toml, package.json, build.gradle(.kts), pom.xml, *.go',
        )
    old_version = bumper(path, new_version)
    logger.info('version_file_bumped', path=str(path), old=old_version, new=new_version)
    return old_version


def bump_version_files(
    paths: Sequence[Path],
    new_version: str,
    *,
    strict: bool = False,
) -> list[Path]:
    """Bump every configured manifest.

    Missing files are skipped with a warning unless ``strict`` is set.

    Returns:
        The paths that were rewritten, in the order given.
    """
    touched: list[Path] = []
    for path in paths:
        if not path.exists():
            if strict:
                raise TrunkReleaseError(
                    code=E.VERSION_FILE_MISSING,
                    message=f'Version file not found: {path}',
                    hint='Fix version_files or set version_files_strict = false.',
                )
            logger.warning('version_file_missing', path=str(path))
            continue
        bump_version_file(path, new_version)
        touched.append(path)
    return touched


__all__ = [
    'bump_cargo_toml',
    'bump_go',
    'bump_gradle',
    'bump_package_json',
    'bump_pom_xml',
    'bump_pyproject_toml',
    'bump_version_file',
    'bump_version_files',
    'is_supported',
]
