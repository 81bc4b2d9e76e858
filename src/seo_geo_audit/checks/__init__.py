"""Audit checks for SEO and GEO readiness."""

from bs4 import BeautifulSoup

from ..models import CANONICAL_ORDER, Finding
from .content_structure import check_h1_tag, check_heading_structure
from .images import check_image_alt_text
from .links import check_linking_profile
from .meta_tags import (
    check_canonical_tag,
    check_meta_description,
    check_meta_robots,
    check_meta_title,
    check_open_graph_tags,
)
from .structured_data import check_schema_markup

__all__ = [
    "check_meta_title",
    "check_meta_description",
    "check_h1_tag",
    "check_canonical_tag",
    "check_meta_robots",
    "check_image_alt_text",
    "check_schema_markup",
    "check_open_graph_tags",
    "check_heading_structure",
    "check_linking_profile",
    "run_checks",
    "order_findings",
]


_DISPLAY_POSITION = {name: i for i, name in enumerate(CANONICAL_ORDER)}


def run_checks(soup: BeautifulSoup, final_url: str) -> list[Finding]:
    """Run the full battery, one finding per check, in execution order."""
    return [
        check_meta_title(soup),
        check_meta_description(soup),
        check_h1_tag(soup),
        check_canonical_tag(soup),
        check_meta_robots(soup),
        check_image_alt_text(soup),
        check_schema_markup(soup),
        check_open_graph_tags(soup),
        check_heading_structure(soup),
        check_linking_profile(soup, final_url),
    ]


def order_findings(findings: list[Finding]) -> list[Finding]:
    """Sort findings into display order; unknown checks go last."""
    return sorted(findings, key=lambda f: _DISPLAY_POSITION.get(f.check_name, len(CANONICAL_ORDER)))
