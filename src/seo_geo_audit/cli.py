"""CLI interface for seo-geo-audit."""

import asyncio
import json
import logging
import signal
import sys
from contextlib import contextmanager
from typing import Awaitable, Callable, Iterator, Optional, TypeVar

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from . import __version__
from .auditor import normalize_url
from .cancel import CancelToken
from .config import RelayConfig
from .errors import AuditCancelled, AuditError
from .models import (
    MAX_PAGES,
    AnchorListData,
    AuditReport,
    Evidence,
    ListData,
    SitemapKind,
    Status,
    TableData,
    TextData,
)
from .narrative import summarize_reports
from .orchestrator import AuditMode, run_audit_request, select_sitemap_urls
from .relay import RelayClient
from .sitemap import resolve_sitemap


console = Console()
err_console = Console(stderr=True)

T = TypeVar("T")

CANCELLED_LABEL = "[yellow]Cancelled:[/yellow]"
NOTHING_PROCESSED = (
    "The audit completed, but no pages were processed. "
    "This can happen if the analysis was terminated early."
)


def status_style(status: Status) -> str:
    """Get Rich style for a check status."""
    return {
        Status.PASS: "green",
        Status.WARNING: "yellow",
        Status.FAIL: "red",
    }.get(status, "white")


def status_icon(status: Status) -> str:
    """Get icon for a check status."""
    return {
        Status.PASS: "✓",
        Status.WARNING: "⚠",
        Status.FAIL: "✗",
    }.get(status, "•")


def score_color(score: float) -> str:
    """Get color for a score value."""
    if score >= 80:
        return "green"
    elif score >= 60:
        return "yellow"
    elif score >= 40:
        return "orange1"
    else:
        return "red"


def print_score_bar(score: float, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((score / 100) * width)
    empty = width - filled
    color = score_color(score)

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * empty, style="dim")
    bar.append(f" {score:.0f}/100", style=f"bold {color}")
    return bar


def format_evidence(data: Optional[Evidence]) -> list[str]:
    """Render a finding's evidence as display lines."""
    if data is None:
        return []
    if isinstance(data, TextData):
        return [data.text] if data.text else []
    if isinstance(data, ListData):
        return [f"• {item}" for item in data.items]
    if isinstance(data, AnchorListData):
        return [
            f"{'Internal' if a.is_internal else 'External'} ({a.type}): \"{a.text}\" → {a.href}"
            for a in data.anchors
        ]
    if isinstance(data, TableData):
        lines = []
        for key, value in data.values.items():
            if isinstance(value, AnchorListData):
                if value.anchors:
                    lines.append(f"{key}:")
                    lines.extend(f"  {line}" for line in format_evidence(value))
            else:
                lines.append(f"{key}: {value}")
        return lines
    raise TypeError(f"Unknown evidence type: {type(data).__name__}")


def print_report(report: AuditReport, verbose: bool = False) -> None:
    """Print one page's audit to console."""
    console.print()
    title = report.url if report.url == report.id else f"{report.url}\n[dim]requested as {report.id}[/dim]"
    console.print(Panel(
        f"[bold]{title}[/bold]",
        title="🔍 SEO / GEO Audit",
        border_style=status_style(report.worst_status),
    ))

    console.print("  SEO Score: ", end="")
    console.print(print_score_bar(report.seo_score, width=25))
    console.print("  GEO Score: ", end="")
    console.print(print_score_bar(report.geo_score, width=25))
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for finding in report.findings:
        if not verbose and finding.status is Status.PASS:
            continue
        style = status_style(finding.status)
        details = finding.message
        evidence = format_evidence(finding.data)
        if evidence and (verbose or finding.status is not Status.PASS):
            details += "\n[dim]" + "\n".join(evidence[:8]) + "[/dim]"
        table.add_row(
            finding.check_name,
            f"[{style}]{status_icon(finding.status)} {finding.status.value}[/]",
            details,
        )

    if table.row_count:
        console.print(table)
    else:
        console.print("  [green]All checks passed.[/green]")


def print_summary(reports: list[AuditReport]) -> None:
    """Print aggregate scores and the most frequent issues."""
    summary = summarize_reports(reports)

    console.print()
    console.print(Panel(
        f"[bold]{summary.domain}[/bold]\n[dim]{summary.page_count} page(s) audited[/dim]",
        title="📊 Site Summary",
        border_style="green",
    ))
    console.print("  Average SEO: ", end="")
    console.print(print_score_bar(summary.avg_seo_score, width=25))
    console.print("  Average GEO: ", end="")
    console.print(print_score_bar(summary.avg_geo_score, width=25))

    if summary.has_issues:
        console.print("\n[bold]Most Frequent Issues:[/bold]\n")
        for check_name, count in summary.issue_counts:
            console.print(f"  • [bold]{check_name}[/bold]: found on {count} of {summary.page_count} pages")
    console.print()


def print_footer() -> None:
    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]seo-geo-audit v{__version__}[/dim]")
    console.print()


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@contextmanager
def cancel_on_interrupt(loop: asyncio.AbstractEventLoop, token: CancelToken) -> Iterator[None]:
    """Turn Ctrl-C into a cooperative cancellation of the running audit."""
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        installed = True
    except (NotImplementedError, RuntimeError):
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_with_relay(
    timeout: float,
    job: Callable[[RelayClient, CancelToken], Awaitable[T]],
) -> T:
    """Run ``job`` on a fresh event loop with a relay client and Ctrl-C handling."""
    async def main() -> T:
        token = CancelToken()
        config = RelayConfig(timeout=timeout)
        with cancel_on_interrupt(asyncio.get_running_loop(), token):
            async with RelayClient(config) as relay:
                return await job(relay, token)

    return asyncio.run(main())


def run_audit(
    mode: AuditMode,
    timeout: float,
    url: Optional[str] = None,
    urls: Optional[list[str]] = None,
) -> list[AuditReport]:
    with console.status("[bold blue]Starting audit...[/bold blue]") as status:
        def on_progress(message: str) -> None:
            status.update(f"[bold blue]{message}[/bold blue]")

        return run_with_relay(
            timeout,
            lambda relay, token: run_audit_request(
                mode, relay, url=url, urls=urls, on_progress=on_progress, token=token
            ),
        )


def fail(message: str, label: str = "[red]Error:[/red]") -> None:
    console.print(f"\n{label} {message}")
    sys.exit(1)


def output_reports(reports: list[AuditReport], verbose: bool, json_output: bool) -> None:
    if json_output:
        summary = summarize_reports(reports)
        output = {
            "reports": [r.to_dict() for r in reports],
            "summary": {
                "pages": summary.page_count,
                "avgSeoScore": round(summary.avg_seo_score, 1),
                "avgGeoScore": round(summary.avg_geo_score, 1),
                "issueCounts": dict(summary.issue_counts),
            },
        }
        click.echo(json.dumps(output, indent=2))
        return

    if not reports:
        console.print(f"\n[yellow]Notice:[/yellow] {NOTHING_PROCESSED}")
        return

    for report in reports:
        print_report(report, verbose=verbose)
    if len(reports) > 1:
        print_summary(reports)
    print_footer()


def audit_command(
    mode: AuditMode,
    verbose: bool,
    timeout: float,
    json_output: bool,
    url: Optional[str] = None,
    urls: Optional[list[str]] = None,
) -> None:
    try:
        reports = run_audit(mode, timeout, url=url, urls=urls)
    except AuditCancelled as e:
        fail(str(e), label=CANCELLED_LABEL)
    except AuditError as e:
        fail(str(e))
    else:
        output_reports(reports, verbose, json_output)


verbose_option = click.option("-v", "--verbose", is_flag=True, help="Show all findings and debug logging")
timeout_option = click.option("-t", "--timeout", default=30.0, help="Request timeout in seconds")
json_option = click.option("--json", "json_output", is_flag=True, help="Output as JSON")


@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx):
    """SEO / GEO Audit - on-page SEO and answer-engine readiness.

    \b
    Quick start:
        seo-geo-audit scan example.com
        seo-geo-audit crawl example.com

    \b
    Commands:
        scan     Audit a single URL
        crawl    Audit a homepage and the pages it links to
        urls     Audit a list of URLs
        sitemap  Resolve a sitemap and audit pages from it
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("url")
@verbose_option
@timeout_option
@json_option
def scan(url: str, verbose: bool, timeout: float, json_output: bool):
    """Audit a single URL.

    \b
    Examples:
        seo-geo-audit scan stripe.com
        seo-geo-audit scan example.com --verbose
        seo-geo-audit scan example.com --json
    """
    configure_logging(verbose)
    audit_command(AuditMode.SINGLE, verbose, timeout, json_output, url=url)


@cli.command()
@click.argument("url")
@verbose_option
@timeout_option
@json_option
def crawl(url: str, verbose: bool, timeout: float, json_output: bool):
    """Audit a homepage and up to 11 pages it links to."""
    configure_logging(verbose)
    audit_command(AuditMode.CRAWL, verbose, timeout, json_output, url=url)


@cli.command()
@click.argument("urls", nargs=-1)
@click.option("-f", "--file", "url_file", type=click.File("r"), help="Read URLs from a file, one per line")
@verbose_option
@timeout_option
@json_option
def urls(urls: tuple[str, ...], url_file, verbose: bool, timeout: float, json_output: bool):
    """Audit a list of URLs (at most 12).

    \b
    Examples:
        seo-geo-audit urls example.com/a example.com/b
        seo-geo-audit urls -f pages.txt
    """
    configure_logging(verbose)
    targets = list(urls)
    if url_file is not None:
        targets.extend(line.strip() for line in url_file if line.strip())
    if len(targets) > MAX_PAGES:
        console.print(f"[yellow]Only the first {MAX_PAGES} of {len(targets)} URLs will be audited.[/yellow]")
    audit_command(AuditMode.CUSTOM, verbose, timeout, json_output, urls=targets)


@cli.command()
@click.argument("url")
@click.option("--audit", "do_audit", is_flag=True, help="Audit the selected pages instead of listing them")
@click.option("--filter", "filter_text", help="Only keep URLs containing this text")
@click.option("-s", "--select", "selected", multiple=True, help="Audit this sitemap URL (repeatable)")
@verbose_option
@timeout_option
@json_option
def sitemap(url: str, do_audit: bool, filter_text: Optional[str], selected: tuple[str, ...],
            verbose: bool, timeout: float, json_output: bool):
    """Resolve a sitemap, then list or audit its pages.

    \b
    Examples:
        seo-geo-audit sitemap example.com/sitemap.xml
        seo-geo-audit sitemap example.com/sitemap.xml --filter /blog/ --audit
        seo-geo-audit sitemap example.com/sitemap.xml -s https://example.com/ --audit
    """
    configure_logging(verbose)

    try:
        with console.status(f"[bold blue]Fetching sitemap {url}...[/bold blue]"):
            result = run_with_relay(
                timeout, lambda relay, token: resolve_sitemap(normalize_url(url), relay, token)
            )
    except AuditCancelled as e:
        fail(str(e), label=CANCELLED_LABEL)
    except AuditError as e:
        fail(str(e))

    if result.kind is SitemapKind.INDEX:
        console.print(f"\n[bold]Sitemap index with {len(result.urls)} child sitemap(s):[/bold]\n")
        for child in result.urls:
            console.print(f"  • {child}")
        console.print("\n[dim]Run this command again with one of the child sitemaps.[/dim]")
        return

    chosen = select_sitemap_urls(result, selection=selected or None, filter_text=filter_text)

    if not do_audit:
        console.print(f"\n[bold]{len(result.urls)} URL(s) in sitemap[/bold]")
        console.print(f"[dim]{len(chosen)} selected for audit (max {MAX_PAGES}):[/dim]\n")
        for page_url in chosen:
            console.print(f"  • {page_url}")
        return

    audit_command(AuditMode.SITEMAP, verbose, timeout, json_output, urls=chosen)


# Convenience: allow `seo-geo-audit URL` as shortcut for `seo-geo-audit scan URL`
def main():
    """Entry point that handles both `seo-geo-audit URL` and `seo-geo-audit scan URL`."""
    args = sys.argv[1:]

    # If first arg looks like a URL (not a command), insert 'scan'
    if args and not args[0].startswith('-') and args[0] not in cli.commands:
        # Check if it looks like a URL/domain
        if '.' in args[0] or args[0] == 'localhost':
            sys.argv.insert(1, 'scan')

    cli()


if __name__ == "__main__":
    main()
