"""
Pytest configuration and fixtures for seo-geo-audit tests.
"""
import asyncio
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from seo_geo_audit import auditor, sitemap
from seo_geo_audit.cancel import CancelToken
from seo_geo_audit.config import RelayConfig
from seo_geo_audit.relay import RelayClient

from fixtures.sample_pages import (
    GOOD_PAGE_HTML,
    POOR_PAGE_HTML,
    SITEMAP_INDEX_XML,
    SITEMAP_URLSET_XML,
)


# ============================================================================
# Relay stub
# ============================================================================

class RelayStub:
    """Fake primary and fallback relays behind an httpx.MockTransport.

    Pages registered with ``add_page`` are served by the primary relay in its
    JSON envelope; ``add_fallback`` registers raw bodies for the fallback
    relay. Anything unknown comes back the way the real relays report an
    unreachable target.
    """

    def __init__(self):
        self.pages: dict[str, dict] = {}
        self.fallback_pages: dict[str, str] = {}
        self.primary_status: dict[str, int] = {}
        self.envelopes: dict[str, object] = {}
        self.unreachable: set[str] = set()
        self.requests: list[httpx.Request] = []
        self.delay = 0.0

    def add_page(self, url: str, html: str | None, final_url: str | None = None, http_code: int = 200):
        self.pages[url] = {
            "contents": html,
            "status": {
                "url": final_url or url,
                "content_type": "text/html; charset=utf-8",
                "http_code": http_code,
                "response_time": 42,
            },
        }

    def add_fallback(self, url: str, body: str):
        self.fallback_pages[url] = body

    def add_envelope(self, url: str, payload: object):
        """Serve ``payload`` verbatim as the primary relay's JSON for ``url``."""
        self.envelopes[url] = payload

    def targets(self, relay: str = "primary") -> list[str]:
        key = "url" if relay == "primary" else "quest"
        return [r.url.params[key] for r in self.requests if key in r.url.params]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)

        if "quest" in request.url.params:
            target = request.url.params["quest"]
            if target in self.unreachable:
                raise httpx.ConnectError("connection refused", request=request)
            if target in self.fallback_pages:
                return httpx.Response(200, text=self.fallback_pages[target])
            return httpx.Response(200, text='{"error": "Could not fetch the requested URL"}')

        target = request.url.params["url"]
        if target in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if target in self.primary_status:
            return httpx.Response(self.primary_status[target], text="relay error")
        if target in self.envelopes:
            return httpx.Response(200, json=self.envelopes[target])
        if target in self.pages:
            return httpx.Response(200, json=self.pages[target])
        return httpx.Response(200, json={"contents": None, "status": {"url": target, "http_code": 0}})


@pytest.fixture
def relay_stub() -> RelayStub:
    return RelayStub()


@pytest_asyncio.fixture
async def relay(relay_stub: RelayStub) -> AsyncGenerator[RelayClient, None]:
    """RelayClient wired to the stub."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(relay_stub.handler))
    config = RelayConfig(
        primary_url="https://relay.test/get?url=",
        fallback_url="https://fallback.test/proxy?quest=",
    )
    async with RelayClient(config, client=client) as relay_client:
        yield relay_client
    await client.aclose()


class RecordingToken(CancelToken):
    """CancelToken whose sleeps return at once, recording each requested wait."""

    def __init__(self):
        super().__init__()
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        self.sleeps.append(seconds)


@pytest.fixture
def recording_token() -> RecordingToken:
    return RecordingToken()


@pytest.fixture
def fast_retries(monkeypatch):
    """Shrink retry waits so failure paths run quickly."""
    monkeypatch.setattr(auditor, "RETRY_DELAY_SECONDS", 0.01)
    monkeypatch.setattr(sitemap, "BACKOFF_SECONDS", 0.01)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def good_page_html() -> str:
    return GOOD_PAGE_HTML


@pytest.fixture
def poor_page_html() -> str:
    return POOR_PAGE_HTML


@pytest.fixture
def sitemap_index_xml() -> str:
    return SITEMAP_INDEX_XML


@pytest.fixture
def sitemap_urlset_xml() -> str:
    return SITEMAP_URLSET_XML
