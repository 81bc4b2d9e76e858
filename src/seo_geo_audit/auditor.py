"""Single-page auditor that runs all checks."""

import logging
from typing import Optional

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .cancel import CancelToken, ensure_token
from .checks import order_findings, run_checks
from .document import parse_document
from .errors import AuditCancelled, FetchFailed, RelayUnavailable
from .models import PAGE_FETCH, AuditReport, Finding, RelayResponse, Status, TextData
from .relay import RelayClient
from .scoring import calculate_scores

logger = logging.getLogger(__name__)


FETCH_ATTEMPTS = 2
RETRY_DELAY_SECONDS = 0.5

RELAY_FAILED_SUMMARY = "The request to the CORS proxy failed."
RELAY_FAILED_DETAILS = (
    "This is often caused by:\n"
    "1. The third-party proxy service being temporarily unavailable.\n"
    "2. A browser extension (like an ad-blocker) blocking the request.\n"
    "3. A network firewall or security policy.\n\n"
    "Please try again later or check your network configuration."
)
FETCH_FAILED_SUMMARY = "Failed to fetch page content via proxy."


def normalize_url(url: str) -> str:
    """Ensure URL has a scheme."""
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        url = "https://" + url
    return url


def degraded_report(url: str, message: str, details: Optional[str] = None) -> AuditReport:
    """Report for a page that could not be audited: one failed fetch, zero scores."""
    finding = Finding(
        PAGE_FETCH,
        Status.FAIL,
        message,
        TextData(details) if details else None,
    )
    return AuditReport(id=url, url=url, findings=(finding,), seo_score=0, geo_score=0)


def audit_document(html: str, url: str, final_url: str) -> AuditReport:
    """Audit already-fetched markup. No network access.

    Args:
        html: Page markup as delivered
        url: The URL that was requested, used as the report id
        final_url: The URL the page was served from after redirects
    """
    soup = parse_document(html, final_url)
    findings = order_findings(run_checks(soup, final_url))
    scores = calculate_scores(findings)

    return AuditReport(
        id=url,
        url=final_url,
        findings=tuple(findings),
        seo_score=scores.seo,
        geo_score=scores.geo,
    )


async def fetch_page(url: str, relay: RelayClient, token: CancelToken) -> RelayResponse:
    """Fetch through the relay, retrying once if the relay itself fails."""
    retrying = AsyncRetrying(
        stop=stop_after_attempt(FETCH_ATTEMPTS),
        wait=wait_fixed(RETRY_DELAY_SECONDS),
        retry=retry_if_exception_type(RelayUnavailable),
        sleep=token.sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await relay.fetch_with_metadata(url, token)
    raise RelayUnavailable(f"No fetch attempt was made for {url}")


def _check_delivery(page: RelayResponse) -> None:
    if page.http_status >= 400:
        raise FetchFailed(f"Page returned a client or server error (Status: {page.http_status}).")
    if page.http_status == 0:
        raise FetchFailed("The URL may be invalid or the site is blocking requests from the proxy.")
    if not page.content:
        raise FetchFailed("Failed to fetch page content.")


async def audit_url(
    url: str,
    relay: RelayClient,
    token: Optional[CancelToken] = None,
) -> AuditReport:
    """Run a complete audit on a URL.

    Never raises for page-level problems: they come back as a degraded
    report holding a single failed "Page Fetch" finding.

    Raises:
        AuditCancelled: the token fired. Batch callers rely on seeing this
            rather than a degraded report.
    """
    token = ensure_token(token)
    logger.debug(f"Auditing {url}")

    try:
        page = await fetch_page(url, relay, token)
        _check_delivery(page)
        report = audit_document(page.content, url, page.final_url)
    except AuditCancelled:
        raise
    except RelayUnavailable as e:
        logger.warning(f"Relay unavailable for {url}: {e}")
        return degraded_report(url, RELAY_FAILED_SUMMARY, RELAY_FAILED_DETAILS)
    except FetchFailed as e:
        logger.warning(f"Could not fetch {url}: {e}")
        return degraded_report(url, str(e), FETCH_FAILED_SUMMARY)
    except Exception as e:
        logger.exception(f"Unexpected error auditing {url}")
        return degraded_report(url, FETCH_FAILED_SUMMARY, f"Error: {e}")

    logger.info(f"Audited {url}: SEO {report.seo_score}, GEO {report.geo_score}")
    return report
