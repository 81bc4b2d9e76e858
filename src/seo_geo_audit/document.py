"""Parse delivered markup into a navigable document."""

from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup


def parse_document(html: str, final_url: str) -> BeautifulSoup:
    """Parse ``html`` and point its <base> at ``final_url``.

    The relay hands back markup detached from its origin, so relative links
    and image sources only resolve correctly once <base> carries the URL the
    page was really served from. An existing <base> is overwritten.
    """
    soup = BeautifulSoup(html, "lxml")

    base = soup.find("base")
    if base is None:
        base = soup.new_tag("base")
        head = soup.head
        if head is None:
            head = soup.new_tag("head")
            if soup.html is not None:
                soup.html.insert(0, head)
            else:
                soup.insert(0, head)
        head.insert(0, base)
    base["href"] = final_url

    return soup


def base_url(soup: BeautifulSoup) -> str:
    base = soup.find("base")
    if base is None:
        return ""
    return base.get("href") or ""


def resolve_url(soup: BeautifulSoup, href: str) -> Optional[str]:
    """Resolve ``href`` against the document's <base>, like a browser would.

    Returns None when ``href`` is not a valid URL (e.g. ``http://[oops/``).
    """
    try:
        return urljoin(base_url(soup), href.strip())
    except ValueError:
        return None


def body_text(soup: BeautifulSoup) -> str:
    body = soup.body
    return body.get_text() if body is not None else ""
