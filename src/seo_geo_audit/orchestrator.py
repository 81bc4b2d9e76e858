"""Batch auditing: explicit URL lists, homepage crawls and audit modes."""

import asyncio
import logging
from enum import Enum
from typing import Callable, Iterable, Optional
from urllib.parse import urlparse

from .auditor import audit_url, normalize_url
from .cancel import CancelToken, ensure_token
from .document import parse_document, resolve_url
from .errors import FetchFailed, InvalidRequest
from .models import MAX_PAGES, AuditReport, SitemapParseResult
from .relay import RelayClient

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[str], None]


class AuditMode(Enum):
    """How the operator chose the pages to audit."""
    CRAWL = "crawl"
    SITEMAP = "sitemap"
    SINGLE = "single"
    CUSTOM = "custom"


def _noop_progress(message: str) -> None:
    pass


async def audit_many(
    urls: Iterable[str],
    relay: RelayClient,
    on_progress: Optional[ProgressCallback] = None,
    token: Optional[CancelToken] = None,
) -> list[AuditReport]:
    """Audit up to MAX_PAGES URLs concurrently.

    Reports come back in input order. The token is checked before each page
    is dispatched; a cancellation, whether seen here or inside a page audit,
    cancels the remaining pages and propagates as AuditCancelled.
    """
    token = ensure_token(token)
    on_progress = on_progress or _noop_progress
    pages = list(urls)[:MAX_PAGES]
    total = len(pages)

    tasks: list[asyncio.Task] = []
    try:
        for index, url in enumerate(pages, 1):
            token.raise_if_cancelled()
            on_progress(f"Auditing page {index} of {total}: {url}")
            tasks.append(asyncio.ensure_future(audit_url(url, relay, token)))
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


def discover_links(html: str, final_url: str, limit: int = MAX_PAGES) -> list[str]:
    """Same-host links on a page, starting with the page itself.

    Links containing a fragment are skipped; deduplication is by exact URL
    string. At most ``limit`` URLs are returned.
    """
    soup = parse_document(html, final_url)
    host = urlparse(final_url).hostname
    found: dict[str, None] = {final_url: None}

    for anchor in soup.find_all("a", href=True):
        if len(found) >= limit:
            break
        href = resolve_url(soup, anchor["href"])
        if href is None:
            continue
        parsed = urlparse(href)
        if parsed.scheme not in ("http", "https") or parsed.hostname != host:
            continue
        if "#" in href or href in found:
            continue
        found[href] = None

    return list(found)


async def crawl_and_audit(
    start_url: str,
    relay: RelayClient,
    on_progress: Optional[ProgressCallback] = None,
    token: Optional[CancelToken] = None,
) -> list[AuditReport]:
    """Audit a homepage and the same-host pages it links to.

    Discovery is a single level deep and capped at MAX_PAGES pages,
    homepage included.

    Raises:
        RelayUnavailable: the homepage could not be fetched at all.
        FetchFailed: the homepage came back empty.
        AuditCancelled: the token fired.
    """
    token = ensure_token(token)
    on_progress = on_progress or _noop_progress
    on_progress("Starting crawl from homepage...")

    homepage = await relay.fetch_with_metadata(start_url, token)
    if not homepage.content:
        raise FetchFailed("Homepage content is empty.")

    urls = discover_links(homepage.content, homepage.final_url)
    logger.info(f"Discovered {len(urls)} page(s) to audit from {homepage.final_url}")

    return await audit_many(urls, relay, on_progress, token)


def select_sitemap_urls(
    result: SitemapParseResult,
    selection: Optional[Iterable[str]] = None,
    filter_text: Optional[str] = None,
) -> list[str]:
    """Pick the sitemap URLs to audit, capped at MAX_PAGES.

    Args:
        result: A resolved sitemap
        selection: Explicit URLs chosen by the operator; unknown ones are dropped
        filter_text: Case-insensitive substring the URL must contain
    """
    urls = list(result.urls)
    if filter_text:
        needle = filter_text.lower()
        urls = [u for u in urls if needle in u.lower()]
    if selection is not None:
        chosen = set(selection)
        urls = [u for u in urls if u in chosen]
    return urls[:MAX_PAGES]


async def run_audit_request(
    mode: AuditMode,
    relay: RelayClient,
    url: Optional[str] = None,
    urls: Optional[Iterable[str]] = None,
    on_progress: Optional[ProgressCallback] = None,
    token: Optional[CancelToken] = None,
) -> list[AuditReport]:
    """Route an operator request to the crawler or the list auditor.

    ``crawl`` and ``single`` take ``url``; ``sitemap`` and ``custom`` take
    ``urls``. URLs without a scheme are given ``https://``.

    Raises:
        InvalidRequest: the URL or URL list the mode needs is missing.
    """
    if mode is AuditMode.CRAWL:
        if not url or not url.strip():
            raise InvalidRequest("Invalid analysis request. Please select a mode and provide a URL.")
        return await crawl_and_audit(normalize_url(url), relay, on_progress, token)

    if mode is AuditMode.SINGLE:
        if not url or not url.strip():
            raise InvalidRequest("Invalid analysis request. Please select a mode and provide a URL.")
        targets = [url]
    else:
        targets = [u for u in (urls or []) if u.strip()]
        if not targets:
            raise InvalidRequest("No URLs were provided or selected for audit.")

    return await audit_many([normalize_url(u) for u in targets], relay, on_progress, token)
