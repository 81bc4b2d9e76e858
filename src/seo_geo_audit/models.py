"""Data models for SEO/GEO audit results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


MAX_PAGES = 12  # Hard cap on pages per batch or crawl


class Status(Enum):
    """Outcome tier of a single check."""
    PASS = "Pass"
    WARNING = "Warning"
    FAIL = "Fail"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {Status.PASS: 0, Status.WARNING: 1, Status.FAIL: 2}


# Check names
META_TITLE = "Meta Title"
META_DESCRIPTION = "Meta Description"
H1_TAG = "H1 Tag"
HEADING_STRUCTURE = "Heading Structure"
CANONICAL_TAG = "Canonical Tag"
META_ROBOTS = "Meta Robots"
IMAGE_ALT_TEXT = "Image Alt Text"
LINKING_PROFILE = "Linking Profile"
SCHEMA_MARKUP = "Schema Markup"
OPEN_GRAPH_TAGS = "Open Graph Tags"
PAGE_FETCH = "Page Fetch"

CANONICAL_ORDER: tuple[str, ...] = (
    META_TITLE,
    META_DESCRIPTION,
    H1_TAG,
    HEADING_STRUCTURE,
    CANONICAL_TAG,
    META_ROBOTS,
    IMAGE_ALT_TEXT,
    LINKING_PROFILE,
    SCHEMA_MARKUP,
    OPEN_GRAPH_TAGS,
)


@dataclass(frozen=True)
class AnchorRecord:
    """A link sampled from the page."""
    text: str
    href: str
    is_internal: bool
    type: str  # "text", "image" or "empty"

    def to_json(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "href": self.href,
            "isInternal": self.is_internal,
            "type": self.type,
        }


@dataclass(frozen=True)
class TextData:
    """Free-text evidence."""
    text: str

    def to_json(self) -> Any:
        return self.text


@dataclass(frozen=True)
class ListData:
    """Ordered list of strings, e.g. every H1 on the page."""
    items: tuple[str, ...]

    def to_json(self) -> Any:
        return list(self.items)


@dataclass(frozen=True)
class AnchorListData:
    """Ordered list of sampled anchors."""
    anchors: tuple[AnchorRecord, ...]

    def to_json(self) -> Any:
        return [a.to_json() for a in self.anchors]


@dataclass(frozen=True)
class TableData:
    """Named values. A value may itself be an AnchorListData."""
    values: dict[str, Any]

    def to_json(self) -> Any:
        return {
            key: value.to_json() if isinstance(value, AnchorListData) else value
            for key, value in self.values.items()
        }


Evidence = Union[TextData, ListData, TableData, AnchorListData]


@dataclass(frozen=True)
class Finding:
    """Outcome of one audit check."""
    check_name: str
    status: Status
    message: str
    data: Optional[Evidence] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "checkName": self.check_name,
            "status": self.status.value,
            "message": self.message,
            "data": self.data.to_json() if self.data is not None else None,
        }


@dataclass(frozen=True)
class AuditReport:
    """Audit outcome for one URL."""
    id: str  # URL as requested
    url: str  # Final URL after redirects
    findings: tuple[Finding, ...] = field(default_factory=tuple)
    seo_score: int = 0
    geo_score: int = 0

    @property
    def issues(self) -> list[Finding]:
        """Findings that did not pass."""
        return [f for f in self.findings if f.status is not Status.PASS]

    @property
    def worst_status(self) -> Status:
        """Most severe status among the findings; Pass when there are none."""
        return max((f.status for f in self.findings), key=lambda s: s.severity, default=Status.PASS)

    @property
    def is_degraded(self) -> bool:
        return any(f.check_name == PAGE_FETCH for f in self.findings)

    def finding(self, check_name: str) -> Optional[Finding]:
        for f in self.findings:
            if f.check_name == check_name:
                return f
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "seoScore": self.seo_score,
            "geoScore": self.geo_score,
            "findings": [f.to_dict() for f in self.findings],
        }


class SitemapKind(Enum):
    INDEX = "index"
    URLSET = "urlset"


@dataclass(frozen=True)
class SitemapParseResult:
    """Parsed sitemap: child sitemaps (index) or page URLs (urlset)."""
    kind: SitemapKind
    urls: tuple[str, ...]


@dataclass(frozen=True)
class RelayResponse:
    """Page content as delivered by the relay, with origin metadata."""
    content: str
    final_url: str
    http_status: int
