"""
app/sanitizers.py

Text clean-up applied to imported free-form fields before storage.
"""

from __future__ import annotations

import nh3

DESCRIPTION_ALLOWED_TAGS = {
    "a",
    "abbr",
    "b",
    "blockquote",
    "br",
    "code",
    "em",
    "i",
    "li",
    "ol",
    "p",
    "pre",
    "span",
    "strong",
    "ul",
}

DESCRIPTION_ALLOWED_ATTRIBUTES = {
    "a": {"href", "title"},
    "abbr": {"title"},
}


def sanitize_markdown(content: str | None) -> str:
    """
    Strip executable HTML from markdown text.

    Tags outside the allow-list are dropped (script and style together with
    their content), as are event-handler attributes and non-http(s) link
    schemes. Markdown syntax passes through; bare `<`, `>` and `&` in text
    come back as HTML entities.
    """

    if not content:
        return ""

    return nh3.clean(
        content,
        tags=DESCRIPTION_ALLOWED_TAGS,
        attributes=DESCRIPTION_ALLOWED_ATTRIBUTES,
        url_schemes={"http", "https", "mailto"},
    ).strip()
