"""
Shared asynchronous HTTP client for provider adapters

Wraps a single lazily created aiohttp.ClientSession and maps transport and
protocol failures onto ProviderError so adapters stay thin. Timeouts are
left as asyncio.TimeoutError; the dispatcher reports those separately.
"""

from typing import Any, Dict, Optional

import aiohttp

from ..core.exceptions import ProviderError
from .logger import get_logger


class HttpClient:
    """JSON-oriented HTTP client shared by all adapters of one service instance"""

    def __init__(self, user_agent: str = "LyricsTranslator/1.0", session: Optional[aiohttp.ClientSession] = None):
        self.user_agent = user_agent
        self.logger = get_logger(__name__)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers={'User-Agent': self.user_agent})
            self._owns_session = True
        return self._session

    async def request_json(
        self,
        provider: str,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout_millis: Optional[int] = None,
        not_found_ok: bool = False
    ) -> Optional[Any]:
        """
        Perform a request and decode the JSON body

        Args:
            provider: Provider display name used in error messages
            method: HTTP method
            url: Request URL
            params: Query string parameters
            data: Form payload (dict or aiohttp.FormData)
            json: JSON payload
            headers: Extra request headers
            timeout_millis: Total request timeout
            not_found_ok: Return None on HTTP 404 instead of raising

        Returns:
            Decoded JSON payload, or None for a tolerated 404

        Raises:
            ProviderError: On non-2xx status, malformed body or connection failure
        """
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=timeout_millis / 1000.0) if timeout_millis else None

        try:
            async with session.request(
                method,
                url,
                params=params,
                data=data,
                json=json,
                headers=headers,
                timeout=timeout
            ) as response:
                if response.status == 404 and not_found_ok:
                    self.logger.debug(f"{provider}: not found ({url})")
                    return None
                if response.status == 429:
                    raise ProviderError(provider, f"{provider} rate limit exceeded", status=429)
                if response.status >= 400:
                    raise ProviderError(provider, f"{provider} API error: {response.status}", status=response.status)

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise ProviderError(provider, f"{provider} returned a malformed response: {e}")
        except aiohttp.ClientError as e:
            raise ProviderError(provider, f"{provider} request failed: {e}") from e

    async def get_json(self, provider: str, url: str, **kwargs) -> Optional[Any]:
        return await self.request_json(provider, 'GET', url, **kwargs)

    async def post_json(self, provider: str, url: str, **kwargs) -> Optional[Any]:
        return await self.request_json(provider, 'POST', url, **kwargs)

    async def close(self) -> None:
        """Close the underlying session if this client created it"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
