"""Meta tag checks: title, description, canonical, robots, Open Graph."""

from bs4 import BeautifulSoup

from ..models import (
    CANONICAL_TAG,
    META_DESCRIPTION,
    META_ROBOTS,
    META_TITLE,
    OPEN_GRAPH_TAGS,
    Finding,
    Status,
    TableData,
    TextData,
)


TITLE_MAX_LENGTH = 60
DESCRIPTION_MIN_LENGTH = 70
DESCRIPTION_MAX_LENGTH = 160

OPEN_GRAPH_PROPERTIES = ("og:title", "og:description", "og:image")

NOT_FOUND = TextData("Not found")


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def check_meta_title(soup: BeautifulSoup) -> Finding:
    """Check the <title> is present and will not be truncated in results."""
    title_tags = soup.find_all("title")
    title = title_tags[0].get_text().strip() if title_tags else ""

    if not title:
        return Finding(
            META_TITLE,
            Status.FAIL,
            f"Meta title is missing ({len(title_tags)} <title> tag(s) found, none with text).",
            NOT_FOUND,
        )

    if len(title) > TITLE_MAX_LENGTH:
        return Finding(
            META_TITLE,
            Status.WARNING,
            f"Title is too long ({len(title)} characters). Recommended: <= {TITLE_MAX_LENGTH}.",
            TextData(title),
        )

    return Finding(
        META_TITLE,
        Status.PASS,
        f"Title length is optimal ({len(title)} characters).",
        TextData(title),
    )


def check_meta_description(soup: BeautifulSoup) -> Finding:
    """Check the meta description length.

    Answer engines and search snippets both lean on the description as a
    ready-made page summary; 70-160 characters is long enough to say
    something and short enough to survive truncation.
    """
    description = _meta_content(soup, name="description")
    recommended = f"Recommended: {DESCRIPTION_MIN_LENGTH}-{DESCRIPTION_MAX_LENGTH}."

    if not description:
        tag_count = len(soup.find_all("meta", attrs={"name": "description"}))
        return Finding(
            META_DESCRIPTION,
            Status.FAIL,
            f"Meta description is missing ({tag_count} description tag(s) found, none with content).",
            NOT_FOUND,
        )

    if len(description) < DESCRIPTION_MIN_LENGTH:
        return Finding(
            META_DESCRIPTION,
            Status.WARNING,
            f"Description is too short ({len(description)} characters). {recommended}",
            TextData(description),
        )

    if len(description) > DESCRIPTION_MAX_LENGTH:
        return Finding(
            META_DESCRIPTION,
            Status.WARNING,
            f"Description is too long ({len(description)} characters). {recommended}",
            TextData(description),
        )

    return Finding(
        META_DESCRIPTION,
        Status.PASS,
        f"Description length is optimal ({len(description)} characters).",
        TextData(description),
    )


def check_canonical_tag(soup: BeautifulSoup) -> Finding:
    # The href is reported but not compared with the final URL
    canonical = soup.find("link", rel="canonical")
    if canonical is None:
        return Finding(
            CANONICAL_TAG,
            Status.FAIL,
            f"Canonical tag not found among {len(soup.find_all('link'))} <link> element(s), "
            "which can lead to duplicate content issues.",
            NOT_FOUND,
        )

    href = (canonical.get("href") or "").strip()
    target = f"pointing to {href}" if href else "with an empty href"
    return Finding(
        CANONICAL_TAG,
        Status.PASS,
        f"Canonical tag is implemented, {target} ({len(href)} characters).",
        TextData(href),
    )


def check_meta_robots(soup: BeautifulSoup) -> Finding:
    robots = _meta_content(soup, name="robots").lower()

    if not robots:
        return Finding(
            META_ROBOTS,
            Status.PASS,
            f"Meta robots tag not found among {len(soup.find_all('meta'))} <meta> element(s), "
            'defaulting to "index, follow".',
            NOT_FOUND,
        )

    if "noindex" in robots:
        return Finding(
            META_ROBOTS,
            Status.FAIL,
            f'Page is set to "noindex" ("{robots}"), it will be excluded from search results.',
            TextData(robots),
        )

    if "nofollow" in robots:
        return Finding(
            META_ROBOTS,
            Status.WARNING,
            f"Page is set to \"nofollow\" (\"{robots}\"), search engines won't follow links on this page.",
            TextData(robots),
        )

    return Finding(META_ROBOTS, Status.PASS, f'Meta robots tag is valid ("{robots}").', TextData(robots))


def check_open_graph_tags(soup: BeautifulSoup) -> Finding:
    """Check og:title, og:description and og:image.

    These drive link previews on social platforms and give AI assistants a
    second, curated summary of the page.
    """
    present: dict[str, str] = {}
    missing: list[str] = []

    for prop in OPEN_GRAPH_PROPERTIES:
        content = _meta_content(soup, property=prop)
        if content:
            present[prop] = content
        else:
            missing.append(prop)

    if not missing:
        return Finding(
            OPEN_GRAPH_TAGS,
            Status.PASS,
            f"All {len(OPEN_GRAPH_PROPERTIES)} key Open Graph tags are present.",
            TableData(present),
        )

    if len(missing) == len(OPEN_GRAPH_PROPERTIES):
        return Finding(
            OPEN_GRAPH_TAGS,
            Status.FAIL,
            f"No Open Graph tags found (0/{len(OPEN_GRAPH_PROPERTIES)} present).",
            NOT_FOUND,
        )

    return Finding(
        OPEN_GRAPH_TAGS,
        Status.WARNING,
        f"Missing key tags: {', '.join(missing)} ({len(present)}/{len(OPEN_GRAPH_PROPERTIES)} present).",
        TableData(present),
    )
