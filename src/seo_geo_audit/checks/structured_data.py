"""Check for structured data (JSON-LD and microdata)."""

import json
from typing import Any
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from ..models import SCHEMA_MARKUP, Finding, Status, TableData, TextData


def extract_json_ld(soup: BeautifulSoup) -> list[dict[str, Any]]:
    """Extract all JSON-LD objects from the page.

    Malformed blocks are skipped.
    """
    scripts = soup.find_all("script", type="application/ld+json")
    results = []

    for script in scripts:
        try:
            content = script.string
            if content:
                data = json.loads(content)
                items = data if isinstance(data, list) else [data]
                results.extend(item for item in items if isinstance(item, dict))
        except json.JSONDecodeError:
            continue

    return results


def get_schema_types(data: dict[str, Any]) -> list[str]:
    """Extract @type values from JSON-LD, handling various formats."""
    types: list[str] = []

    type_val = data.get("@type")
    if isinstance(type_val, list):
        types.extend(t for t in type_val if isinstance(t, str))
    elif isinstance(type_val, str):
        types.append(type_val)

    # Check @graph
    graph = data.get("@graph")
    if isinstance(graph, list):
        for item in graph:
            if isinstance(item, dict):
                types.extend(get_schema_types(item))

    return types


def get_microdata_types(soup: BeautifulSoup) -> list[str]:
    """Type names from ``itemscope`` elements, e.g. "Article" for
    ``itemtype="https://schema.org/Article"``."""
    types: list[str] = []

    for element in soup.find_all(attrs={"itemscope": True, "itemtype": True}):
        for item_type in (element.get("itemtype") or "").split():
            try:
                parsed = urlparse(item_type)
            except ValueError:
                continue
            if not parsed.scheme or not parsed.netloc:
                continue
            segments = [s for s in parsed.path.split("/") if s]
            if segments:
                types.append(segments[-1])

    return types


def check_schema_markup(soup: BeautifulSoup) -> Finding:
    """Check that the page declares at least one structured-data type.

    Structured data is the most direct way to tell an answer engine what
    entity a page is about.
    """
    # dict keeps first-seen order
    detected: dict[str, None] = {}
    json_ld = extract_json_ld(soup)
    for data in json_ld:
        detected.update(dict.fromkeys(get_schema_types(data)))
    detected.update(dict.fromkeys(get_microdata_types(soup)))

    if not detected:
        itemscopes = len(soup.find_all(attrs={"itemscope": True}))
        return Finding(
            SCHEMA_MARKUP,
            Status.FAIL,
            f"No schema markup detected ({len(json_ld)} JSON-LD object(s) "
            f"and {itemscopes} microdata item(s) without a recognizable type).",
            TextData("Not Present"),
        )

    types = list(detected)
    return Finding(
        SCHEMA_MARKUP,
        Status.PASS,
        f"Schema markup detected. Found {len(types)} type(s).",
        TableData({"Detected Types": ", ".join(types)}),
    )
