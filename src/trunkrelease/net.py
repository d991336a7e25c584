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

"""HTTP utilities for trunkrelease.

Provides a managed :class:`httpx.Client` with a request timeout and a
structured log event per request. Requests are never retried: a failed
call surfaces immediately and retrying is left to the CI pipeline.

Usage::

    from trunkrelease.net import http_client

    with http_client(base_url='https://api.github.com') as client:
        response = client.get('/repos/o/r/releases/tags/v1.0.0')
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Final

import httpx

from trunkrelease.logging import get_logger

log = get_logger('trunkrelease.net')

DEFAULT_TIMEOUT: Final[float] = 30.0


def _log_response(response: httpx.Response) -> None:
    log.debug(
        'http_response',
        method=response.request.method,
        url=str(response.request.url),
        status=response.status_code,
    )


@contextmanager
def http_client(
    *,
    timeout: float = DEFAULT_TIMEOUT,
    base_url: str = '',
    headers: dict[str, str] | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Iterator[httpx.Client]:
    """Create a managed HTTP client.

    Args:
        timeout: Request timeout in seconds.
        base_url: Optional base URL for all requests.
        headers: Optional default headers.
        transport: Optional transport (``httpx.MockTransport`` in tests).

    Yields:
        An :class:`httpx.Client` instance.
    """
    with httpx.Client(
        timeout=httpx.Timeout(timeout),
        base_url=base_url,
        headers=headers or {},
        follow_redirects=True,
        transport=transport,
        event_hooks={'response': [_log_response]},
    ) as client:
        yield client


__all__ = [
    'DEFAULT_TIMEOUT',
    'http_client',
]
