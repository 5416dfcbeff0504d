"""Link formatters: build a link to `note#^anchor` with optional display text.

    WikiLinkFormatter      [[note#^abc12|display]]
    MarkdownLinkFormatter  [display](note.md#^abc12)

Embed prefixing (`!`) is left to the caller.
"""

from __future__ import annotations

from typing import Protocol
from urllib.parse import quote


class LinkFormatter(Protocol):
    def __call__(self, target: str, fragment: str, display_text: str = "") -> str: ...


class WikiLinkFormatter:
    """`[[target#^id]]`, or `[[target#^id|text]]` when display text is set."""

    def __call__(self, target: str, fragment: str, display_text: str = "") -> str:
        link = f"{_strip_md_suffix(target)}{fragment}"
        if display_text:
            return f"[[{link}|{display_text}]]"
        return f"[[{link}]]"


class MarkdownLinkFormatter:
    """`[text](target.md#^id)` with the path percent-encoded.

    With no display text, the note name and anchor are shown, e.g.
    `[note > ^abc12](note.md#^abc12)`.
    """

    def __call__(self, target: str, fragment: str, display_text: str = "") -> str:
        name = _strip_md_suffix(target)
        if not display_text:
            display_text = f"{name} > {fragment.lstrip('#')}" if fragment else name
        path = quote(f"{name}.md", safe="/")
        return f"[{display_text}]({path}{quote(fragment, safe='#^')})"


def get_formatter(style: str) -> LinkFormatter:
    """Formatter for a `link_style` setting value."""
    if style == "markdown":
        return MarkdownLinkFormatter()
    if style == "wikilink":
        return WikiLinkFormatter()
    raise ValueError(f"Unknown link style: {style}")


def _strip_md_suffix(target: str) -> str:
    return target[:-3] if target.lower().endswith(".md") else target
