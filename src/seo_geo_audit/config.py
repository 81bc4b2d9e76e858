"""Relay and fetch configuration."""

import os
from dataclasses import dataclass, field

from . import __version__


PRIMARY_RELAY_URL = "https://api.allorigins.win/get?url="
FALLBACK_RELAY_URL = "https://api.codetabs.com/v1/proxy?quest="

DEFAULT_HEADERS = {
    "User-Agent": f"Mozilla/5.0 (compatible; SEOGEOAudit/{__version__})",
    "Accept": "application/json,text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass
class RelayConfig:
    """Where and how the relay client fetches pages.

    Every field falls back to an environment variable, then to the public
    relays the tool ships with.
    """
    primary_url: str = field(
        default_factory=lambda: os.getenv("SEO_GEO_AUDIT_PRIMARY_RELAY", PRIMARY_RELAY_URL)
    )
    fallback_url: str = field(
        default_factory=lambda: os.getenv("SEO_GEO_AUDIT_FALLBACK_RELAY", FALLBACK_RELAY_URL)
    )
    timeout: float = field(
        default_factory=lambda: _env_float("SEO_GEO_AUDIT_TIMEOUT", 30.0)
    )
    headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    def __post_init__(self) -> None:
        user_agent = os.getenv("SEO_GEO_AUDIT_USER_AGENT")
        if user_agent:
            self.headers["User-Agent"] = user_agent
