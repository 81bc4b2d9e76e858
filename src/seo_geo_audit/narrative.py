"""Inputs for, and the interface of, the narrative generator.

The generator itself (an LLM behind some API) turns findings into prose and
lives outside this package. The engine's side of the contract is to hand it
well-formed reports plus the non-passing findings it should talk about.
"""

from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence
from urllib.parse import urlparse

from .models import AuditReport, Status


NO_ISSUES_SUMMARY = (
    "Excellent SEO health across all analyzed pages! No common issues were found. "
    "Continue maintaining these high standards."
)


@dataclass(frozen=True)
class ChatMessage:
    """One turn of the remediation conversation."""
    role: str  # "user" or "ai"
    content: str


@dataclass(frozen=True)
class SiteSummary:
    """Aggregate view of a batch of reports."""
    domain: str
    page_count: int
    avg_seo_score: float
    avg_geo_score: float
    # (check name, pages with a non-passing result), most frequent first
    issue_counts: list[tuple[str, int]] = field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issue_counts)


def report_issues(report: AuditReport) -> list[str]:
    """Non-passing findings of ``report`` as "- name: status (message)" lines."""
    return [
        f"- {f.check_name}: {f.status.value} ({f.message})"
        for f in report.findings
        if f.status is not Status.PASS
    ]


def summarize_reports(reports: Sequence[AuditReport]) -> SiteSummary:
    if not reports:
        return SiteSummary(domain="the website", page_count=0, avg_seo_score=0.0, avg_geo_score=0.0)

    counts: Counter[str] = Counter(
        finding.check_name
        for report in reports
        for finding in report.findings
        if finding.status is not Status.PASS
    )

    return SiteSummary(
        domain=urlparse(reports[0].url).hostname or "the website",
        page_count=len(reports),
        avg_seo_score=sum(r.seo_score for r in reports) / len(reports),
        avg_geo_score=sum(r.geo_score for r in reports) / len(reports),
        issue_counts=counts.most_common(),
    )


class NarrativeGenerator(ABC):
    """Turns structured audit data into natural-language advice."""

    name: str

    @abstractmethod
    async def chat(self, report: AuditReport, messages: Sequence[ChatMessage]) -> str:
        """Answer the last message of ``messages`` about ``report``."""

    @abstractmethod
    async def summarize_site(self, reports: Sequence[AuditReport], summary: SiteSummary) -> str:
        """Write a strategic summary for a batch of reports."""


async def site_narrative(generator: NarrativeGenerator, reports: Sequence[AuditReport]) -> str:
    """Site-wide summary, skipping the generator when nothing needs fixing."""
    summary = summarize_reports(reports)
    if not summary.has_issues:
        return NO_ISSUES_SUMMARY
    return await generator.summarize_site(reports, summary)
