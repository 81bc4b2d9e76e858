"""Weighted SEO and GEO scores."""

import math
from dataclasses import dataclass
from typing import Iterable

from .models import (
    CANONICAL_TAG,
    H1_TAG,
    HEADING_STRUCTURE,
    IMAGE_ALT_TEXT,
    LINKING_PROFILE,
    META_DESCRIPTION,
    META_ROBOTS,
    META_TITLE,
    OPEN_GRAPH_TAGS,
    SCHEMA_MARKUP,
    Finding,
    Status,
)


SEO_WEIGHTS: dict[str, int] = {
    META_TITLE: 15,
    META_DESCRIPTION: 10,
    H1_TAG: 15,
    CANONICAL_TAG: 10,
    META_ROBOTS: 10,
    IMAGE_ALT_TEXT: 10,
    SCHEMA_MARKUP: 5,
    OPEN_GRAPH_TAGS: 5,
    HEADING_STRUCTURE: 10,
    LINKING_PROFILE: 10,
}

# Answer engines care most about what they can extract
GEO_WEIGHTS: dict[str, int] = {
    META_TITLE: 10,
    META_DESCRIPTION: 10,
    H1_TAG: 10,
    SCHEMA_MARKUP: 25,
    HEADING_STRUCTURE: 20,
    LINKING_PROFILE: 15,
    OPEN_GRAPH_TAGS: 10,
}

STATUS_MULTIPLIERS: dict[Status, float] = {
    Status.PASS: 1.0,
    Status.WARNING: 0.5,
    Status.FAIL: 0.0,
}


@dataclass(frozen=True)
class Scores:
    seo: int
    geo: int


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike round()."""
    return int(math.floor(value + 0.5))


def weighted_score(findings: Iterable[Finding], weights: dict[str, int]) -> int:
    """Percentage of the available weight earned by ``findings``.

    Checks missing from ``weights`` are ignored; 0 if none apply.
    """
    earned = 0.0
    total = 0
    for finding in findings:
        weight = weights.get(finding.check_name)
        if not weight:
            continue
        earned += weight * STATUS_MULTIPLIERS[finding.status]
        total += weight

    if total == 0:
        return 0
    return round_half_up(earned * 100 / total)


def calculate_scores(findings: Iterable[Finding]) -> Scores:
    findings = list(findings)
    return Scores(
        seo=weighted_score(findings, SEO_WEIGHTS),
        geo=weighted_score(findings, GEO_WEIGHTS),
    )
