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

"""GitHub REST API forge backend for trunkrelease.

Implements the :class:`~trunkrelease.backends.forge.Forge` protocol
using the GitHub REST API v3 via ``httpx``.

Authentication:

    Resolves a token in order of precedence:

    1. ``token`` constructor parameter.
    2. ``GITHUB_TOKEN`` env var (set automatically by GitHub Actions).
    3. ``GH_TOKEN`` env var (used by the ``gh`` CLI).

    The token is only needed for API calls. Building web URLs (compare
    links, commit links) works without one, so ``--dry-run`` runs
    without credentials.

GitHub Enterprise Server is selected by ``host``: the API lives at
``https://<host>/api/v3``.

Usage::

    from trunkrelease.backends.forge.github import GitHubAPIBackend

    forge = GitHubAPIBackend(owner='octo', repo='widgets')
    if not forge.release_exists('v1.0.0'):
        url = forge.create_release('v1.0.0', 'v1.0.0', body='...')

.. seealso::

    `GitHub REST API <https://docs.github.com/en/rest/releases>`_
"""

from __future__ import annotations

import os
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from trunkrelease.errors import E, TrunkReleaseError
from trunkrelease.logging import get_logger
from trunkrelease.net import DEFAULT_TIMEOUT, http_client

log = get_logger('trunkrelease.backends.forge.github')

_PUBLIC_HOST = 'github.com'
_PUBLIC_API_URL = 'https://api.github.com'

# API version header for stable API behavior.
_API_VERSION = '2022-11-28'

# ``upload_url`` is an RFC 6570 template: ``.../assets{?name,label}``.
_URL_TEMPLATE_RE = re.compile(r'\{[^}]*\}$')


class GitHubAPIBackend:
    """Forge implementation using the GitHub REST API.

    Args:
        owner: Repository owner (e.g., ``"octo"``).
        repo: Repository name (e.g., ``"widgets"``).
        host: Web host; anything other than ``github.com`` is treated as
            GitHub Enterprise Server.
        token: GitHub API token. Falls back to ``GITHUB_TOKEN`` or
            ``GH_TOKEN`` env vars.
        timeout: HTTP request timeout in seconds.
        transport: Optional ``httpx`` transport, for tests.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        host: str = _PUBLIC_HOST,
        token: str = '',
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize with owner, repo, and an optional API token."""
        self._owner = owner
        self._repo = repo
        self._host = host
        self._timeout = timeout
        self._transport = transport
        self._token = token or os.environ.get('GITHUB_TOKEN', '') or os.environ.get('GH_TOKEN', '')
        self._api_url = _PUBLIC_API_URL if host == _PUBLIC_HOST else f'https://{host}/api/v3'
        self._web_url = f'https://{host}/{owner}/{repo}'
        # Releases created or looked up in this process, by tag.
        self._releases: dict[str, dict[str, Any]] = {}

    def __repr__(self) -> str:
        """Return a safe repr that never exposes the API token."""
        return f'GitHubAPIBackend(owner={self._owner!r}, repo={self._repo!r}, host={self._host!r})'

    @property
    def has_token(self) -> bool:
        """Whether an API token was found."""
        return bool(self._token)

    @property
    def api_url(self) -> str:
        """Base URL of the REST API."""
        return self._api_url

    def _headers(self) -> dict[str, str]:
        if not self._token:
            raise TrunkReleaseError(
                code=E.FORGE_UNAVAILABLE,
                message='GitHub API token required for release operations.',
                hint='Set GITHUB_TOKEN (or GH_TOKEN) with contents: write permission.',
            )
        return {
            'Authorization': f'Bearer {self._token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': _API_VERSION,
        }

    def _request(
        self,
        method: str,
        url: str,
        *,
        ok: tuple[int, ...] = (200, 201, 204),
        allow: tuple[int, ...] = (),
        **kwargs: Any,  # noqa: ANN401 - forwarded to httpx
    ) -> httpx.Response:
        """Send one request and map failures to ``TR-FORGE-REQUEST-FAILED``.

        Statuses in ``allow`` are returned to the caller unchanged.
        """
        headers = self._headers()
        try:
            with http_client(
                timeout=self._timeout,
                base_url=self._api_url,
                headers=headers,
                transport=self._transport,
            ) as client:
                response = client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TrunkReleaseError(
                code=E.FORGE_REQUEST_FAILED,
                message=f'{method} {url} failed: {exc}',
                hint='Check network access to the GitHub API.',
            ) from exc

        if response.status_code in ok or response.status_code in allow:
            return response
        raise TrunkReleaseError(
            code=E.FORGE_REQUEST_FAILED,
            message=f'{method} {url} returned {response.status_code}: {_api_message(response)}',
            hint='Check that the token has contents: write permission on the repository.',
        )

    def _repo_path(self) -> str:
        return f'/repos/{self._owner}/{self._repo}'

    def _lookup(self, tag: str) -> dict[str, Any] | None:
        response = self._request('GET', f'{self._repo_path()}/releases/tags/{tag}', ok=(200,), allow=(404,))
        if response.status_code == 404:
            self._releases.pop(tag, None)
            return None
        data = response.json()
        self._releases[tag] = data
        return data

    def release_exists(self, tag: str) -> bool:
        """Return ``True`` if a release exists for ``tag``."""
        exists = self._lookup(tag) is not None
        log.debug('release_lookup', tag=tag, exists=exists)
        return exists

    def create_release(self, tag: str, name: str, body: str, *, prerelease: bool = False) -> str:
        """Create a published release for an existing tag.

        Returns:
            The release's ``html_url``.
        """
        payload = {
            'tag_name': tag,
            'name': name,
            'body': body,
            'draft': False,
            'prerelease': prerelease,
        }
        response = self._request('POST', f'{self._repo_path()}/releases', ok=(201,), json=payload)
        data = response.json()
        self._releases[tag] = data
        url = data.get('html_url', f'{self._web_url}/releases/tag/{tag}')
        log.info('release_created', tag=tag, url=url)
        return url

    def delete_release(self, tag: str) -> None:
        """Delete the release for ``tag``; a missing release is a no-op."""
        data = self._lookup(tag)
        if data is None:
            log.warning('release_not_found', tag=tag)
            return
        self._request('DELETE', f'{self._repo_path()}/releases/{data["id"]}', ok=(204,))
        self._releases.pop(tag, None)
        log.info('release_deleted', tag=tag)

    def upload_assets(self, tag: str, paths: Sequence[Path]) -> None:
        """Upload files to the release for ``tag``, one request per file."""
        if not paths:
            return
        data = self._releases.get(tag) or self._lookup(tag)
        if data is None:
            raise TrunkReleaseError(
                code=E.FORGE_REQUEST_FAILED,
                message=f'No release for tag {tag} to attach assets to.',
            )
        upload_url = _URL_TEMPLATE_RE.sub('', data['upload_url'])
        for path in paths:
            self._request(
                'POST',
                upload_url,
                ok=(201,),
                params={'name': path.name},
                content=path.read_bytes(),
                headers={**self._headers(), 'Content-Type': 'application/octet-stream'},
            )
            log.info('asset_uploaded', tag=tag, asset=path.name)

    def compare_url(self, base: str, head: str) -> str:
        """Return the web URL of the diff ``base...head``."""
        return f'{self._web_url}/compare/{base}...{head}'

    def repo_url(self) -> str:
        """Return the repository's web URL."""
        return self._web_url


def _api_message(response: httpx.Response) -> str:
    """Pull the ``message`` field out of a GitHub error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and body.get('message'):
        return str(body['message'])
    return response.text[:200]


__all__ = [
    'GitHubAPIBackend',
]
