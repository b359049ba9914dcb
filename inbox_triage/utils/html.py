"""HTML helpers over BeautifulSoup trees.

The host page is only available as a parsed tree, so "computed style" here
means the inline ``style`` declarations on an element and its ancestors plus
the ``hidden`` attribute. Everything in this module is read-only except
``format_for_editor``, which only builds a string.
"""

from __future__ import annotations

import html
import re
from urllib.parse import urljoin

from bs4 import Tag

from inbox_triage.utils.text import clean_text

_LEADING_INT = re.compile(r"^\s*(-?\d+)")
_CSS_URL = re.compile(r"url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")


def text_of(tag: Tag | None) -> str:
    """Cleaned text content of a tag ("" for None)."""
    if tag is None:
        return ""
    return clean_text(tag.get_text(" "))


def matches(tag: Tag, selector: str | None) -> bool:
    """True if ``tag`` itself matches the CSS selector."""
    if not selector or not isinstance(tag, Tag):
        return False
    return bool(tag.css.match(selector))


def select_first(scope: Tag, *selectors: str | None) -> Tag | None:
    """First descendant matching the first selector that matches anything."""
    for selector in selectors:
        if not selector:
            continue
        found = scope.select_one(selector)
        if found is not None:
            return found
    return None


def ancestors_matching(tag: Tag, selector: str) -> list[Tag]:
    """Ancestors of ``tag`` (nearest first, excluding itself) matching ``selector``."""
    found = []
    for parent in tag.parents:
        if not isinstance(parent, Tag) or parent.name == "[document]":
            continue
        if parent.css.match(selector):
            found.append(parent)
    return found


def inline_style(tag: Tag) -> dict[str, str]:
    """Parse a tag's inline ``style`` attribute into lowercase property -> value."""
    raw = tag.get("style") or ""
    if isinstance(raw, list):
        raw = " ".join(raw)
    declarations: dict[str, str] = {}
    for chunk in raw.split(";"):
        if ":" not in chunk:
            continue
        prop, _, value = chunk.partition(":")
        prop = prop.strip().lower()
        if prop:
            declarations[prop] = value.strip()
    return declarations


def style_px(tag: Tag, prop: str) -> int:
    """Leading integer of a length property ("24px" -> 24, missing -> 0)."""
    match = _LEADING_INT.match(inline_style(tag).get(prop, ""))
    return int(match.group(1)) if match else 0


def _self_hidden(tag: Tag) -> bool:
    if tag.has_attr("hidden"):
        return True
    style = inline_style(tag)
    if style.get("display", "").lower() == "none":
        return True
    if style.get("visibility", "").lower() == "hidden":
        return True
    opacity = style.get("opacity", "").strip()
    return opacity in ("0", "0.0", "0%")


def is_hidden(tag: Tag) -> bool:
    """True if the tag or any ancestor is hidden via display/visibility/opacity."""
    if _self_hidden(tag):
        return True
    for parent in tag.parents:
        if isinstance(parent, Tag) and parent.name != "[document]" and _self_hidden(parent):
            return True
    return False


def background_image_url(tag: Tag) -> str | None:
    """URL inside an inline ``background-image: url(...)`` declaration."""
    style = inline_style(tag)
    value = style.get("background-image") or style.get("background") or ""
    if not value or value.lower() == "none":
        return None
    match = _CSS_URL.search(value)
    return match.group(1).strip() if match else None


def absolute_url(href: str | None, base_url: str | None) -> str:
    """Resolve an href against the page URL the way a browser's ``.href`` does."""
    if not href:
        return ""
    href = href.strip()
    if base_url:
        return urljoin(base_url, href)
    return href


def format_for_editor(text: str | None) -> str:
    """
    Escape text for a contenteditable editor and turn line breaks into <br>.

    Handles \\r\\n, \\n and lone \\r endings.

    Examples:
        >>> format_for_editor("a < b\\nthanks")
        'a &lt; b<br>thanks'
    """
    if not text:
        return ""
    escaped = html.escape(text, quote=False)
    return escaped.replace("\r\n", "<br>").replace("\n", "<br>").replace("\r", "<br>")
