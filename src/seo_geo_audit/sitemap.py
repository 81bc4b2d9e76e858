"""Fetch and parse XML sitemaps and sitemap indexes."""

import logging
from typing import Optional

from lxml import etree
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from .cancel import CancelToken, ensure_token
from .errors import AuditCancelled, ParseFailure, SitemapUnavailable
from .models import SitemapKind, SitemapParseResult
from .relay import RelayClient

logger = logging.getLogger(__name__)


SITEMAP_ATTEMPTS = 3
BACKOFF_SECONDS = 1.0  # wait before retry n is n * BACKOFF_SECONDS


def localname(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[-1]
    return tag


def _locs(root: etree._Element, parent: str) -> list[str]:
    urls = []
    for node in root.iter():
        if not isinstance(node.tag, str) or localname(node.tag) != parent:
            continue
        for child in node:
            if isinstance(child.tag, str) and localname(child.tag) == "loc":
                text = (child.text or "").strip()
                if text:
                    urls.append(text)
    return urls


def parse_sitemap(xml_text: str) -> SitemapParseResult:
    """Parse sitemap XML.

    A <sitemapindex> root yields its <sitemap><loc> entries as an index;
    anything else is read as a urlset of <url><loc> entries, which must not
    be empty.

    Raises:
        ParseFailure: not well-formed XML, or a urlset with no URLs.
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_text.strip().encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError as e:
        raise ParseFailure(f"Failed to parse sitemap. The document is not valid XML. ({e})") from e

    if localname(root.tag).lower() == "sitemapindex":
        return SitemapParseResult(kind=SitemapKind.INDEX, urls=tuple(_locs(root, "sitemap")))

    urls = _locs(root, "url")
    if not urls:
        raise ParseFailure("Sitemap appears to be a URL set but contains no URLs.")
    return SitemapParseResult(kind=SitemapKind.URLSET, urls=tuple(urls))


async def resolve_sitemap(
    url: str,
    relay: RelayClient,
    token: Optional[CancelToken] = None,
) -> SitemapParseResult:
    """Fetch and parse the sitemap at ``url``, retrying with linear backoff.

    Raises:
        SitemapUnavailable: every attempt failed; names the last error.
        AuditCancelled: the token fired. Never retried.
    """
    token = ensure_token(token)
    retrying = AsyncRetrying(
        stop=stop_after_attempt(SITEMAP_ATTEMPTS),
        wait=wait_incrementing(start=BACKOFF_SECONDS, increment=BACKOFF_SECONDS),
        retry=retry_if_not_exception_type(AuditCancelled),
        sleep=token.sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )

    try:
        async for attempt in retrying:
            with attempt:
                token.raise_if_cancelled()
                xml_text = await relay.fetch_raw(url, token)
                result = parse_sitemap(xml_text)
                logger.info(f"Sitemap {url}: {result.kind.value} with {len(result.urls)} URL(s)")
                return result
    except RetryError as e:
        last_error = e.last_attempt.exception()
        raise SitemapUnavailable(SITEMAP_ATTEMPTS, last_error) from last_error

    raise SitemapUnavailable(SITEMAP_ATTEMPTS, None)
