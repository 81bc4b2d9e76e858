"""Content relay client.

Third-party pages are fetched through public relays rather than directly:

- the primary relay answers with a JSON envelope carrying the page body and
  origin metadata (final URL after redirects, HTTP status);
- the fallback relay answers with the raw body only.

Retrying is left to callers.
"""

import json
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .cancel import CancelToken, ensure_token
from .config import RelayConfig
from .errors import AuditError, FetchFailed, RelayUnavailable
from .models import RelayResponse

logger = logging.getLogger(__name__)


class RelayClient:
    """Fetch page and sitemap content through the configured relays."""

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or RelayConfig()
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.config.headers,
                timeout=self.config.timeout,
                follow_redirects=True,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RelayClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def primary_url(self, url: str) -> str:
        return f"{self.config.primary_url}{quote(url, safe='')}"

    def fallback_url(self, url: str) -> str:
        return f"{self.config.fallback_url}{quote(url, safe='')}"

    async def _get_envelope(self, url: str, token: CancelToken) -> dict[str, Any]:
        """The primary relay's envelope, with ``contents`` a str or None and
        ``status`` a dict."""
        response = await token.run(self.client.get(self.primary_url(url)))
        if not response.is_success:
            raise FetchFailed(f"Primary relay request failed: {response.status_code}")
        payload = response.json()
        if not isinstance(payload, dict):
            raise FetchFailed("Primary relay returned an unexpected payload.")

        contents = payload.get("contents")
        status = payload.get("status") or {}
        if not isinstance(status, dict) or not isinstance(contents, (str, type(None))):
            raise FetchFailed(
                f"Primary relay returned a malformed envelope "
                f"(contents: {type(contents).__name__}, status: {type(status).__name__})."
            )
        final_url = status.get("url")
        if final_url is not None and not isinstance(final_url, str):
            raise FetchFailed(f"Primary relay returned a malformed final URL ({final_url!r}).")
        return {"contents": contents, "status": status}

    async def _fetch_primary(self, url: str, token: CancelToken) -> str:
        payload = await self._get_envelope(url, token)
        contents = payload.get("contents")
        if contents is None:
            http_code = payload["status"].get("http_code")
            raise FetchFailed(f"Target URL could not be reached via primary relay (Status: {http_code})")
        return contents

    async def _fetch_fallback(self, url: str, token: CancelToken) -> str:
        response = await token.run(self.client.get(self.fallback_url(url)))
        if not response.is_success:
            raise FetchFailed(f"Fallback relay request failed: {response.status_code}")
        text = response.text
        # This relay reports failures as {"error": "..."} with a 200 status
        if text.startswith('{"error"'):
            try:
                message = json.loads(text)["error"]
            except (ValueError, KeyError, TypeError):
                raise FetchFailed("Fallback relay returned an unparseable error.")
            raise FetchFailed(f"Fallback relay error: {message}")
        return text

    async def fetch_raw(self, url: str, token: Optional[CancelToken] = None) -> str:
        """Fetch the body of ``url``, falling back to the second relay.

        Raises:
            RelayUnavailable: both relays failed; chained from the last error.
            AuditCancelled: the token fired.
        """
        token = ensure_token(token)

        try:
            return await self._fetch_primary(url, token)
        except (httpx.HTTPError, ValueError, AuditError) as e:
            logger.warning(f"Primary relay failed for {url}: {e}")

        logger.info(f"Trying fallback relay for {url}")
        try:
            return await self._fetch_fallback(url, token)
        except (httpx.HTTPError, AuditError) as e:
            logger.error(f"Fallback relay also failed for {url}: {e}")
            raise RelayUnavailable(f"Both relays failed for {url}: {e}") from e

    async def fetch_with_metadata(
        self, url: str, token: Optional[CancelToken] = None
    ) -> RelayResponse:
        """Fetch ``url`` through the primary relay, keeping origin metadata.

        Only the primary relay reports the resolved URL and the origin's
        status code, so there is no fallback here. A missing body is returned
        as an empty string; judging the target's status is up to the caller.

        Raises:
            RelayUnavailable: the relay itself could not be used.
            AuditCancelled: the token fired.
        """
        token = ensure_token(token)

        try:
            payload = await self._get_envelope(url, token)
        except (httpx.HTTPError, ValueError, AuditError) as e:
            raise RelayUnavailable(f"CORS proxy request failed: {e}") from e

        status = payload["status"]
        try:
            http_status = int(status.get("http_code") or 0)
        except (TypeError, ValueError):
            http_status = 0

        return RelayResponse(
            content=payload["contents"] or "",
            final_url=status.get("url") or url,
            http_status=http_status,
        )
