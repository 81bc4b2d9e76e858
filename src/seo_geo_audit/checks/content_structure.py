"""Check heading structure."""

from bs4 import BeautifulSoup

from ..document import body_text
from ..models import H1_TAG, HEADING_STRUCTURE, Finding, ListData, Status, TableData, TextData


# Pages longer than this are expected to be broken up with H2s
LONG_PAGE_CHARS = 1500


def check_h1_tag(soup: BeautifulSoup) -> Finding:
    """Check the page has exactly one H1, its primary topic signal."""
    h1s = soup.find_all("h1")

    if len(h1s) == 1:
        return Finding(
            H1_TAG,
            Status.PASS,
            f"Exactly one H1 tag found ({len(h1s[0].get_text().strip())} characters).",
            TextData(h1s[0].get_text().strip()),
        )

    if not h1s:
        heading_count = len(soup.find_all(["h2", "h3", "h4", "h5", "h6"]))
        return Finding(
            H1_TAG,
            Status.FAIL,
            f"H1 tag is missing ({heading_count} lower-level heading(s) found).",
            TextData("Not found"),
        )

    return Finding(
        H1_TAG,
        Status.FAIL,
        f"Multiple H1 tags found ({len(h1s)}). Use only one H1 per page.",
        ListData(tuple(h.get_text().strip() for h in h1s)),
    )


def check_heading_structure(soup: BeautifulSoup) -> Finding:
    """Check the H1/H2 hierarchy.

    Answer engines extract passages section by section, so a single H1
    followed by H2 sections is what makes long content quotable.
    """
    h1_count = len(soup.find_all("h1"))
    h2_count = len(soup.find_all("h2"))
    text_length = len(body_text(soup))
    data = TableData({"H1": h1_count, "H2": h2_count, "Body Length": text_length})

    if h1_count != 1:
        return Finding(
            HEADING_STRUCTURE,
            Status.FAIL,
            f"Found {h1_count} H1 tags. Exactly one is required.",
            data,
        )

    if h2_count == 0 and text_length > LONG_PAGE_CHARS:
        return Finding(
            HEADING_STRUCTURE,
            Status.WARNING,
            f"No H2 tags were found on a lengthy page ({text_length} characters). "
            "Use H2s to break up content.",
            data,
        )

    if h2_count == 0:
        message = f"A proper H1 tag is in use; the page is short ({text_length} characters) so H2s are optional."
    else:
        message = f"A proper H1 tag and {h2_count} H2 tag(s) are in use."
    return Finding(HEADING_STRUCTURE, Status.PASS, message, data)
