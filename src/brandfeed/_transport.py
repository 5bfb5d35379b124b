"""HTTP transport for the brand data provider."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from brandfeed._constants import API_KEY_HEADER, USER_AGENT
from brandfeed._redact import redact_for_log
from brandfeed.config import BrandFeedConfig
from brandfeed.exceptions import BrandFeedTransportError
from brandfeed.state.cycle import CancellationToken

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        *,
        token: CancellationToken | None = None,
    ) -> Any: ...


class HttpTransport:
    """aiohttp-backed transport that authenticates with the provider API key."""

    def __init__(self, config: BrandFeedConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        return {
            "accept": "application/json",
            "user-agent": USER_AGENT,
            API_KEY_HEADER: self._config.api_key,
        }

    async def get_json(
        self,
        endpoint: str,
        params: Mapping[str, Any],
        *,
        token: CancellationToken | None = None,
    ) -> Any:
        """GET ``base_url + endpoint`` and return the decoded JSON body.

        Raises :class:`BrandFeedTransportError` for network failures,
        timeouts, non-200 statuses and undecodable bodies.
        """
        if token is not None:
            token.raise_if_cancelled()

        url = f"{self._config.base_url.rstrip('/')}{endpoint}"
        query = {key: str(value) for key, value in params.items() if value is not None}
        headers = self._headers()
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("GET %s params=%s headers=%s", url, redact_for_log(query), redact_for_log(headers))

        try:
            async with self._http.get(url, params=query, headers=headers, timeout=timeout) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise BrandFeedTransportError(
                        f"HTTP {resp.status} from {endpoint}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except BrandFeedTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise BrandFeedTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except TimeoutError as exc:
            raise BrandFeedTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        if token is not None:
            token.raise_if_cancelled()

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise BrandFeedTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc
