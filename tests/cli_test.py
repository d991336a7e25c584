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

"""Tests for the trunkrelease CLI.

Backends are replaced with the in-memory fakes, so no git repository
or network access is needed.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from trunkrelease import cli
from trunkrelease.cli import build_parser, main
from trunkrelease.config import CONFIG_FILENAME

from tests._fakes import FakeForge, FakeVCS, raw


def _history() -> FakeVCS:
    return FakeVCS(
        history=[
            raw('a', 'feat: initial import'),
            raw('b', 'fix: crash on empty input'),
            raw('c', 'feat(cli): add export command'),
        ],
        tags={'v1.0.0': 'a' * 40},
        remote_tags={'v1.0.0'},
    )


@pytest.fixture
def backends(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    """Route the CLI to fakes; tests may swap entries before calling main()."""
    state: dict[str, object] = {'vcs': _history(), 'forge': FakeForge()}
    monkeypatch.setattr(cli, '_create_backends', lambda root: (state['vcs'], state['forge']))
    return state


def _run(tmp_path: Path, *args: str) -> int:
    return main(['--quiet', '--root', str(tmp_path), *args])


class TestParser:
    """Tests for build_parser()."""

    def test_release_flags(self) -> None:
        """release accepts --dry-run, --force and --format."""
        args = build_parser().parse_args(['release', '--dry-run', '--force', '--format', 'json'])
        assert (args.command, args.dry_run, args.force, args.format) == ('release', True, True, 'json')

    def test_defaults(self) -> None:
        """Global flags default off."""
        args = build_parser().parse_args(['plan'])
        assert (args.root, args.verbose, args.quiet, args.json_log, args.format) == (
            None,
            False,
            False,
            False,
            'human',
        )

    def test_verbose_and_quiet_exclusive(self) -> None:
        """--verbose and --quiet cannot be combined."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--verbose', '--quiet', 'plan'])


class TestMainBasics:
    """Tests for commands that need no backends."""

    def test_no_command_is_usage_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        """No subcommand prints help and exits 2."""
        assert main(['--quiet']) == 2
        assert 'please provide a command' in capsys.readouterr().err

    def test_explain_known(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Known codes print an explanation."""
        assert main(['--quiet', 'explain', 'TR-FORCE-NOT-AT-TAG']) == 0
        assert capsys.readouterr().out.startswith('TR-FORCE-NOT-AT-TAG: ')

    def test_explain_unknown(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Unknown codes exit 1."""
        assert main(['--quiet', 'explain', 'TR-NOPE']) == 1
        assert 'Unknown error code: TR-NOPE' in capsys.readouterr().out

    def test_init(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """init writes the file once; --force overwrites."""
        assert _run(tmp_path, 'init') == 0
        assert (tmp_path / CONFIG_FILENAME).is_file()
        assert _run(tmp_path, 'init') == 1
        assert 'error[TR-CONFIG-EXISTS]' in capsys.readouterr().err
        assert _run(tmp_path, 'init', '--force') == 0

    def test_config_resolved(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """config --resolved prints the merged configuration as JSON."""
        (tmp_path / CONFIG_FILENAME).write_text('tag_prefix = "release-"\n', encoding='utf-8')
        assert _run(tmp_path, 'config', '--resolved') == 0
        data = json.loads(capsys.readouterr().out)
        assert data['tag_prefix'] == 'release-'
        assert data['branches'] == ['main', 'master']

    def test_config_defaults(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Without a file, config reports the defaults."""
        assert _run(tmp_path, 'config') == 0
        assert 'defaults' in capsys.readouterr().out

    def test_invalid_config(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """Validation errors exit 1 with the code on stderr."""
        (tmp_path / CONFIG_FILENAME).write_text('tag_prefx = "v"\n', encoding='utf-8')
        assert _run(tmp_path, 'config') == 1
        assert 'error[TR-CONFIG-INVALID-KEY]' in capsys.readouterr().err


class TestPlanCommands:
    """Tests for plan, version and changelog."""

    def test_version_short(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """--short prints only the next version."""
        assert _run(tmp_path, 'version', '--short') == 0
        assert capsys.readouterr().out == '1.1.0\n'

    def test_version(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Default output is current -> next (bump)."""
        assert _run(tmp_path, 'version') == 0
        assert capsys.readouterr().out == '1.0.0 -> 1.1.0 (minor)\n'

    def test_plan_json(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """plan --format json includes the result and the changelog entry."""
        assert _run(tmp_path, 'plan', '--format', 'json') == 0
        data = json.loads(capsys.readouterr().out)
        assert data['next_version'] == '1.1.0'
        assert data['tag'] == 'v1.1.0'
        assert data['dry_run'] is True
        assert data['changelog'].startswith('## 1.1.0 (')
        assert backends['forge'].calls == []  # type: ignore[attr-defined]

    def test_plan_has_no_side_effects(self, tmp_path: Path, backends: dict[str, object]) -> None:
        """plan creates no tags and writes no files."""
        assert _run(tmp_path, 'plan') == 0
        vcs = backends['vcs']
        assert vcs.created_tags == []  # type: ignore[attr-defined]
        assert vcs.pushes == []  # type: ignore[attr-defined]
        assert not (tmp_path / 'CHANGELOG.md').exists()

    def test_nothing_to_release(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Only non-releasing commits exit 3."""
        backends['vcs'] = FakeVCS(
            history=[raw('a', 'feat: init'), raw('b', 'docs: readme'), raw('c', 'chore: tidy')],
            tags={'v1.0.0': 'a' * 40},
        )
        assert _run(tmp_path, 'plan') == 3
        assert 'No releasable commits' in capsys.readouterr().err

    def test_changelog_stdout(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Without --write the entry goes to stdout."""
        assert _run(tmp_path, 'changelog') == 0
        assert '### Bug Fixes' in capsys.readouterr().out
        assert not (tmp_path / 'CHANGELOG.md').exists()

    def test_changelog_write(self, tmp_path: Path, backends: dict[str, object]) -> None:
        """--write inserts the entry into the configured file."""
        assert _run(tmp_path, 'changelog', '--write') == 0
        text = (tmp_path / 'CHANGELOG.md').read_text(encoding='utf-8')
        assert text.startswith('# Changelog')
        assert '## 1.1.0 (' in text

    def test_changelog_regenerate(self, tmp_path: Path, backends: dict[str, object]) -> None:
        """--regenerate --write rebuilds the file from every tag."""
        backends['vcs'] = FakeVCS(
            history=[
                raw('a', 'feat: initial import'),
                raw('b', 'fix: crash on empty input'),
                raw('c', 'feat(cli): add export command'),
            ],
            tags={'v1.0.0': 'a' * 40, 'v1.1.0': 'c' * 40},
        )
        (tmp_path / 'CHANGELOG.md').write_text('stale\n', encoding='utf-8')
        assert _run(tmp_path, 'changelog', '--regenerate', '--write') == 0
        text = (tmp_path / 'CHANGELOG.md').read_text(encoding='utf-8')
        assert 'stale' not in text
        assert text.index('## 1.1.0 (') < text.index('## 1.0.0 (')


class TestReleaseCommand:
    """Tests for the release subcommand."""

    def test_dry_run(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """--dry-run reports and touches nothing, even without a forge."""
        backends['forge'] = None
        assert _run(tmp_path, 'release', '--dry-run') == 0
        assert capsys.readouterr().out.startswith('[dry-run] 1.0.0 -> 1.1.0 (minor)')
        assert backends['vcs'].created_tags == []  # type: ignore[attr-defined]

    def test_dry_run_makes_no_forge_calls(self, tmp_path: Path, backends: dict[str, object]) -> None:
        """No release or upload is attempted on a dry run."""
        assert _run(tmp_path, 'release', '--dry-run') == 0
        assert backends['forge'].calls == []  # type: ignore[attr-defined]

    def test_without_forge(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A real release without a forge fails before any side effect."""
        backends['forge'] = None
        assert _run(tmp_path, 'release') == 1
        assert 'error[TR-FORGE-UNAVAILABLE]' in capsys.readouterr().err
        assert backends['vcs'].created_tags == []  # type: ignore[attr-defined]

    def test_release_json(
        self,
        tmp_path: Path,
        backends: dict[str, object],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """A full release tags, pushes and reports the release URL."""
        assert _run(tmp_path, 'release', '--format', 'json') == 0
        data = json.loads(capsys.readouterr().out)
        assert data['released'] is True
        assert data['tag'] == 'v1.1.0'
        assert data['release_url'].endswith('/releases/tag/v1.1.0')
        vcs = backends['vcs']
        assert 'v1.1.0' in vcs.remote_tags  # type: ignore[attr-defined]
        assert (tmp_path / 'CHANGELOG.md').is_file()
