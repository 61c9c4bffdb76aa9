"""
Trade backend API client

aiohttp based client shared by the order engine and the trade desk pages.
One ClientSession per client instance, created lazily and closed explicitly.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

import aiohttp

from .exceptions import BackendError, TransportError

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def extract_error_message(body: Any) -> Optional[str]:
    """Pull a user-facing message out of an error response body"""
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
        return None
    if isinstance(body, str) and body.strip():
        return body.strip()
    return None


class TradeApiClient:

    def __init__(self, base_url: str, token_provider: Optional[TokenProvider] = None,
                 timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self._timeout = aiohttp.ClientTimeout(total=timeout, connect=10)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _headers(self) -> Dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    @staticmethod
    async def _read_body(response: aiohttp.ClientResponse) -> Any:
        try:
            text = await response.text()
        except UnicodeDecodeError as e:
            logger.error(f"Undecodable response body ({response.status}): {e}")
            raise TransportError() from e
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            if response.status < 400 and response.content_type == "application/json":
                raise TransportError()
            return text

    async def request(self, method: str, endpoint: str, data: Any = None,
                      params: Optional[Dict[str, Any]] = None,
                      retries: int = 1, backoff: float = 1.0,
                      fallback_error: str = "Unknown API error") -> Any:
        """Send a request and return the decoded body.

        Raises BackendError for non-2xx answers and TransportError when the
        request could not be completed. Only connection failures are retried.
        """
        url = f"{self.base_url}{endpoint}"
        request_kwargs: Dict[str, Any] = {"headers": self._headers()}
        if data is not None:
            request_kwargs["json"] = data
        if params:
            request_kwargs["params"] = params

        logger.info(f"Calling API: {method} {url}")
        for attempt in range(max(retries, 1)):
            try:
                session = await self._get_session()
                async with session.request(method, url, **request_kwargs) as response:
                    logger.debug(f"API call: {method} {url}, Status: {response.status}")
                    body = await self._read_body(response)
                    if response.status >= 400:
                        detail = extract_error_message(body) or fallback_error
                        logger.error(f"API Error ({response.status}): {detail}")
                        raise BackendError(detail, status=response.status)
                    return body
            except aiohttp.ClientConnectorError as e:
                logger.error(f"API connection failed: {e}")
                if attempt < retries - 1:
                    await asyncio.sleep(backoff * (2 ** attempt))
                    continue
                raise TransportError() from e
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f"API request failed: {method} {url}: {e!r}")
                raise TransportError() from e
        raise TransportError()

    async def fetch_api(self, endpoint: str, method: str = "GET", data: Any = None,
                        params: Optional[Dict[str, Any]] = None, retries: int = 3,
                        backoff: float = 1.0) -> Any:
        """Page-level helper returning an error dict instead of raising"""
        try:
            return await self.request(method, endpoint, data=data, params=params,
                                      retries=retries, backoff=backoff)
        except BackendError as e:
            return {"error": {"code": "API_ERROR", "message": e.message}, "status": e.status}
        except TransportError as e:
            return {"error": {"code": "CONNECTION_FAILED", "message": e.message}, "status": 503}

    async def post_trade(self, action: str, payload: Dict[str, Any]) -> Any:
        """Single, non-retried order submission"""
        return await self.request("POST", f"/trade/{action}", data=payload, retries=1,
                                  fallback_error=f"Failed to {action} trade")

    async def get_profile(self) -> Any:
        return await self.fetch_api("/user/profile")

    async def get_transactions(self, page: int) -> Any:
        return await self.fetch_api("/trade/transactions", params={"page": page})

    async def get_quote(self, pair: str, feed: Optional[str] = None) -> Any:
        params = {"pair": pair}
        if feed:
            params["feed"] = feed
        return await self.fetch_api("/market/price", params=params, retries=1)
