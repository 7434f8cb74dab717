"""
BeautifulSoup lookups shared by adapters that parse fetched HTML.
"""

from __future__ import annotations

from typing import Optional

from bs4 import BeautifulSoup, Tag

HTML_PARSER = "html.parser"


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup or "", HTML_PARSER)


def meta_content(soup: BeautifulSoup, *names: str) -> Optional[str]:
    """Content of the first ``<meta>`` whose ``property`` or ``name`` is in *names*."""
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find("meta", attrs={"name": name})
        if isinstance(tag, Tag):
            content = (tag.get("content") or "").strip()
            if content:
                return content
    return None


def select_text(soup: BeautifulSoup, selector: str) -> Optional[str]:
    tag = soup.select_one(selector)
    if tag is None:
        return None
    return tag.get_text(" ", strip=True) or None


def select_html(soup: BeautifulSoup, selector: str) -> Optional[str]:
    """Inner HTML of the first match of *selector*."""
    tag = soup.select_one(selector)
    if tag is None:
        return None
    return tag.decode_contents().strip() or None
