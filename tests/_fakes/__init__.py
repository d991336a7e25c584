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

"""Shared test fakes for trunkrelease.

Provides reusable fake implementations of the VCS and Forge protocols
so that individual test modules don't need to duplicate boilerplate
classes.

Usage::

    from tests._fakes import FakeForge, FakeVCS, raw

    vcs = FakeVCS(history=[raw('a', 'feat: init')], tags={'v1.0.0': 'a' * 40})
    forge = FakeForge()
"""

from tests._fakes._forge import REPO_URL as REPO_URL, FakeForge as FakeForge
from tests._fakes._vcs import FakeVCS as FakeVCS, raw as raw

__all__ = [
    'REPO_URL',
    'FakeForge',
    'FakeVCS',
    'raw',
]
