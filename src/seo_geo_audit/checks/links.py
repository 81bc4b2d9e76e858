"""Check the page's linking profile."""

from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..document import resolve_url
from ..models import LINKING_PROFILE, AnchorListData, AnchorRecord, Finding, Status, TableData


SAMPLE_ANCHORS = 5

_SKIPPED_PREFIXES = ("#", "mailto:", "tel:")


def _anchor_type(anchor: Tag, text: str) -> str:
    if text:
        return "text"
    if anchor.find("img") is not None:
        return "image"
    return "empty"


def check_linking_profile(soup: BeautifulSoup, final_url: str) -> Finding:
    """Count unique internal, external and nofollow links.

    Links are deduplicated by resolved href. Fragment-only, mailto: and tel:
    links are ignored, as are invalid URLs and other non-HTTP schemes.
    Internal means the same hostname as ``final_url``.
    """
    base_host = urlparse(final_url).hostname
    unique_hrefs: set[str] = set()
    samples: list[AnchorRecord] = []
    internal = external = nofollow = 0

    anchors = soup.find_all("a", href=True)
    for anchor in anchors:
        raw = anchor["href"].strip()
        if not raw or raw.lower().startswith(_SKIPPED_PREFIXES):
            continue
        href = resolve_url(soup, raw)
        if href is None:
            continue
        parsed = urlparse(href)
        if parsed.scheme not in ("http", "https") or href in unique_hrefs:
            continue
        unique_hrefs.add(href)

        rel = [r.lower() for r in anchor.get("rel") or []]
        if "nofollow" in rel:
            nofollow += 1

        is_internal = parsed.hostname == base_host
        if is_internal:
            internal += 1
        else:
            external += 1

        if len(samples) < SAMPLE_ANCHORS:
            text = anchor.get_text(" ", strip=True)
            samples.append(AnchorRecord(
                text=text[:100],
                href=href,
                is_internal=is_internal,
                type=_anchor_type(anchor, text),
            ))

    data = TableData({
        "internalLinks": internal,
        "externalLinks": external,
        "nofollowLinks": nofollow,
        "totalUniqueLinks": len(unique_hrefs),
        "sampleAnchors": AnchorListData(tuple(samples)),
    })

    if internal == 0 and external == 0:
        return Finding(
            LINKING_PROFILE,
            Status.WARNING,
            f"No unique internal or external links found ({len(anchors)} anchor(s) checked).",
            data,
        )

    if external == 0:
        return Finding(
            LINKING_PROFILE,
            Status.WARNING,
            f"No external links found ({internal} internal). "
            "Linking to authoritative sources can improve trust.",
            data,
        )

    return Finding(
        LINKING_PROFILE,
        Status.PASS,
        f"A healthy mix of internal ({internal}) and external ({external}) links was found.",
        data,
    )
