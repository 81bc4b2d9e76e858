"""Check image alt text coverage."""

import re

from bs4 import BeautifulSoup, Tag

from ..document import resolve_url
from ..models import IMAGE_ALT_TEXT, Finding, Status, TableData
from ..scoring import round_half_up


FAIL_PERCENT_MISSING = 50

_DISPLAY_NONE = re.compile(r"display\s*:\s*none", re.IGNORECASE)


def _dimension(img: Tag, name: str) -> int | None:
    value = (img.get(name) or "").strip().lower().removesuffix("px")
    return int(value) if value.isdigit() else None


def _is_tracking_pixel(img: Tag, src: str) -> bool:
    if _dimension(img, "width") == 1 and _dimension(img, "height") == 1:
        return True
    return "pixel" in src


def _is_hidden(img: Tag) -> bool:
    """Static approximation of a computed ``display: none``."""
    for node in [img, *img.parents]:
        if not isinstance(node, Tag):
            continue
        if node.has_attr("hidden"):
            return True
        if _DISPLAY_NONE.search(node.get("style") or ""):
            return True
    return False


def qualifying_images(soup: BeautifulSoup) -> list[Tag]:
    """Images that carry content, one per unique resolved source.

    Skips invalid sources, data URIs, repeats of a source already seen, 1x1 tracking pixels,
    sources mentioning "pixel", and hidden images.
    """
    seen: set[str] = set()
    images = []

    for img in soup.find_all("img"):
        raw = (img.get("src") or "").strip()
        if not raw:
            continue
        src = resolve_url(soup, raw)
        if src is None or src.startswith("data:") or src in seen:
            continue
        if _is_tracking_pixel(img, src) or _is_hidden(img):
            continue
        seen.add(src)
        images.append(img)

    return images


def check_image_alt_text(soup: BeautifulSoup) -> Finding:
    images = qualifying_images(soup)
    total = len(images)

    if total == 0:
        return Finding(
            IMAGE_ALT_TEXT,
            Status.PASS,
            f"No unique, content-relevant images found to audit "
            f"({len(soup.find_all('img'))} <img> element(s) checked).",
            TableData({"Total": 0, "MissingALT": 0}),
        )

    missing = sum(1 for img in images if not (img.get("alt") or "").strip())
    data = TableData({"Total": total, "MissingALT": missing})

    if missing == 0:
        return Finding(IMAGE_ALT_TEXT, Status.PASS, f"All {total} images have alt text.", data)

    percent = round_half_up(missing * 100 / total)

    if percent >= FAIL_PERCENT_MISSING:
        return Finding(
            IMAGE_ALT_TEXT,
            Status.FAIL,
            f"Critical: {missing} of {total} images ({percent}%) missing alt text.",
            data,
        )

    return Finding(
        IMAGE_ALT_TEXT,
        Status.WARNING,
        f"Missing alt text on {missing} of {total} images ({percent}%).",
        data,
    )
