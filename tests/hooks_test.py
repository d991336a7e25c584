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

"""Tests for trunkrelease.hooks: lifecycle hooks."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from trunkrelease.config import HooksConfig
from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.hooks import expand_template, hook_env, run_hooks
from trunkrelease.logging import configure_logging

configure_logging(quiet=True)

VARIABLES = {'version': '1.2.3', 'tag': 'v1.2.3', 'previous_tag': 'v1.2.2'}

requires_sh = pytest.mark.skipif(shutil.which('sh') is None, reason='sh not found on PATH')


# ---------------------------------------------------------------------------
# expand_template / hook_env
# ---------------------------------------------------------------------------


class TestExpandTemplate:
    """Tests for expand_template()."""

    def test_expands_version(self) -> None:
        """Expands ${version} placeholder."""
        assert expand_template('echo ${version}', VARIABLES) == 'echo 1.2.3'

    def test_expands_multiple(self) -> None:
        """Expands multiple placeholders in one command."""
        result = expand_template('./notify.sh ${previous_tag} ${tag}', VARIABLES)
        assert result == './notify.sh v1.2.2 v1.2.3'

    def test_unknown_variable_left_as_is(self) -> None:
        """Unknown variable placeholder is left as-is."""
        assert expand_template('echo ${name}', VARIABLES) == 'echo ${name}'


class TestHookEnv:
    """Tests for hook_env()."""

    def test_prefixed_upper(self) -> None:
        """Variables become TRUNKRELEASE_* environment variables."""
        assert hook_env(VARIABLES) == {
            'TRUNKRELEASE_VERSION': '1.2.3',
            'TRUNKRELEASE_TAG': 'v1.2.3',
            'TRUNKRELEASE_PREVIOUS_TAG': 'v1.2.2',
        }


# ---------------------------------------------------------------------------
# run_hooks
# ---------------------------------------------------------------------------


class TestRunHooks:
    """Tests for run_hooks()."""

    def test_no_commands(self, tmp_path: Path) -> None:
        """An event with no commands runs nothing."""
        assert run_hooks(HooksConfig(), 'post_release', variables=VARIABLES, cwd=tmp_path) == []

    def test_unknown_event(self) -> None:
        """Unknown events raise ValueError."""
        with pytest.raises(ValueError, match='Unknown hook event'):
            run_hooks(HooksConfig(), 'before_publish')

    def test_dry_run(self, tmp_path: Path) -> None:
        """Dry run returns synthetic results without executing."""
        hooks = HooksConfig(post_tag=['touch ${tag}.marker'])
        results = run_hooks(hooks, 'post_tag', variables=VARIABLES, cwd=tmp_path, dry_run=True)
        assert len(results) == 1
        assert results[0].dry_run
        assert results[0].command == ['touch', 'v1.2.3.marker']
        assert not (tmp_path / 'v1.2.3.marker').exists()

    @requires_sh
    def test_runs_in_cwd_with_env(self, tmp_path: Path) -> None:
        """Commands run in cwd with TRUNKRELEASE_* set."""
        hooks = HooksConfig(post_release=['sh -c "echo $TRUNKRELEASE_TAG > ${version}.txt"'])
        results = run_hooks(hooks, 'post_release', variables=VARIABLES, cwd=tmp_path)
        assert results[0].ok
        assert (tmp_path / '1.2.3.txt').read_text().strip() == 'v1.2.3'

    @requires_sh
    def test_failure_stops(self, tmp_path: Path) -> None:
        """A non-zero exit raises TR-HOOK-FAILED and skips later commands."""
        hooks = HooksConfig(pre_release=['sh -c "exit 3"', 'sh -c "touch later"'])
        with pytest.raises(TrunkReleaseError) as exc_info:
            run_hooks(hooks, 'pre_release', variables=VARIABLES, cwd=tmp_path)
        assert exc_info.value.code == E.HOOK_FAILED
        assert 'exit 3' in exc_info.value.message
        assert not (tmp_path / 'later').exists()

    def test_missing_executable(self, tmp_path: Path) -> None:
        """A command that cannot start raises TR-HOOK-FAILED."""
        hooks = HooksConfig(on_failure=['definitely-not-a-real-command-xyz'])
        with pytest.raises(TrunkReleaseError) as exc_info:
            run_hooks(hooks, 'on_failure', cwd=tmp_path)
        assert exc_info.value.code == E.HOOK_FAILED

    def test_unbalanced_quotes(self, tmp_path: Path) -> None:
        """A command shlex cannot split raises TR-HOOK-FAILED."""
        hooks = HooksConfig(on_failure=['echo "unterminated'])
        with pytest.raises(TrunkReleaseError) as exc_info:
            run_hooks(hooks, 'on_failure', cwd=tmp_path)
        assert exc_info.value.code == E.HOOK_FAILED
