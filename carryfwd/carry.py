"""Carry lines forward: copy a selection with links back to anchored source lines.

For each selected line (or only the first, depending on the copy mode) the
source line gets a block anchor, and the copied text gets a link to it:

    source:  - Call the plumber ^k2x-9
    copied:  - Call the plumber (see [[todo#^k2x-9]])

`carry_lines` is the pure transform. `carry_forward` drives it against an
editor: resolves link text, writes the clipboard, applies the edit.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass, field
from enum import Enum

from carryfwd.anchors import append_anchor, ensure_anchor, strip_anchor
from carryfwd.config import (
    LINK_PLACEHOLDER,
    CarryForwardSettings,
    InvalidConfigError,
    compile_line_format,
)
from carryfwd.editor import (
    NOTICE_DURATION_MS,
    WARNING_DURATION_MS,
    Clipboard,
    LineBuffer,
    Notifier,
    Position,
    Selection,
    TextDocument,
)
from carryfwd.links import LinkFormatter, get_formatter


class CopyMode(Enum):
    SEPARATE_LINES = "separate-lines"
    COMBINED_LINES = "combined-lines"
    LINK_ONLY = "link-only"
    LINK_ONLY_EMBED = "embed-link-only"

    @property
    def link_only(self) -> bool:
        return self in (CopyMode.LINK_ONLY, CopyMode.LINK_ONLY_EMBED)


class LinkTextMode(Enum):
    FROM_SETTINGS = "settings"
    FROM_SELECTION = "selection"
    FROM_CLIPBOARD = "clipboard"


@dataclass
class CarryResult:
    """Output of one carry.

    rewritten_range replaces the selected lines in full (column 0 of the
    first through the end of the last); clipboard_text is what gets copied.
    """

    rewritten_lines: list[str] = field(default_factory=list)
    copied_lines: list[str] = field(default_factory=list)
    created_anchors: list[str] = field(default_factory=list)
    reused_anchors: list[str] = field(default_factory=list)

    @property
    def rewritten_range(self) -> str:
        return "\n".join(self.rewritten_lines)

    @property
    def clipboard_text(self) -> str:
        return "\n".join(self.copied_lines)


def carry_lines(
    lines: LineBuffer,
    selection: Selection,
    settings: CarryForwardSettings,
    copy_mode: CopyMode = CopyMode.SEPARATE_LINES,
    link_text: str = "",
    target: str = "",
    formatter: LinkFormatter | None = None,
    rng: random.Random | None = None,
) -> CarryResult:
    """Build the rewritten source lines and the copied text for a selection.

    Args:
        lines: the source document
        selection: normalized, in-range selection
        settings: patterns and templates to apply
        copy_mode: which lines get linked and how the copy is composed
        link_text: display text for generated links
        target: document the links point back to
        formatter: link builder (defaults to the settings' link style)
        rng: random source for new anchor ids

    Raises:
        InvalidConfigError: if the "from" pattern doesn't compile, or the
            "to" template references a group the pattern doesn't have
    """
    pattern, line_template = compile_line_format(settings)
    formatter = formatter or get_formatter(settings.link_style)

    first = selection.start.line
    last = selection.end.line
    collapsed = selection.is_caret
    result = CarryResult()

    for index in range(first, last + 1):
        line = lines.get_line(index)
        copied = _copied_text(line, index, selection, settings.remove_leading_whitespace)

        # Blank lines inside a multi-line carry pass through untouched
        if not line.strip() and first != last:
            result.copied_lines.append(copied)
            result.rewritten_lines.append(line)
            continue

        if copy_mode is CopyMode.SEPARATE_LINES or index == first:
            anchor, existed = ensure_anchor(line, rng=rng)
            if existed:
                result.reused_anchors.append(anchor)
            else:
                line = append_anchor(line, anchor)
                result.created_anchors.append(anchor)

            link = formatter(target, f"#{anchor}", link_text)

            if copy_mode is CopyMode.LINK_ONLY_EMBED:
                copied = f"!{link}"
            elif copy_mode is CopyMode.LINK_ONLY:
                copied = settings.copied_link_text.replace(LINK_PLACEHOLDER, link, 1)
            else:
                if existed:
                    copied = strip_anchor(copied)
                copied = _substitute(pattern, line_template, link, copied)

        if not copy_mode.link_only or index == first:
            result.copied_lines.append(copied)
        result.rewritten_lines.append(line)

    return result


def _copied_text(line: str, index: int, selection: Selection, remove_leading_whitespace: bool) -> str:
    """The part of a line that gets copied, before any rewriting."""
    first = selection.start.line
    last = selection.end.line

    if selection.is_caret:
        if remove_leading_whitespace and index == first:
            return line.lstrip()
        return line

    if index not in (first, last):
        return line
    start = selection.start.ch if index == first else 0
    end = selection.end.ch if index == last else len(line)
    return line[start:end]


def _substitute(pattern: re.Pattern, template: str, link: str, text: str) -> str:
    """Replace the first match of `pattern`, filling the link into the template."""

    def expand(match: re.Match) -> str:
        try:
            replacement = match.expand(template)
        except (re.error, IndexError) as e:
            raise InvalidConfigError(template, str(e), setting="lineFormatTo") from e
        return replacement.replace(LINK_PLACEHOLDER, link, 1)

    return pattern.sub(expand, text, count=1)


async def resolve_link_text(
    mode: LinkTextMode,
    settings: CarryForwardSettings,
    document: TextDocument,
    clipboard: Clipboard,
) -> str:
    if mode is LinkTextMode.FROM_SELECTION:
        return document.get_selection_text()
    if mode is LinkTextMode.FROM_CLIPBOARD:
        return await clipboard.read()
    return settings.link_text


async def carry_forward(
    document: TextDocument,
    settings: CarryForwardSettings,
    copy_mode: CopyMode = CopyMode.SEPARATE_LINES,
    link_text_mode: LinkTextMode = LinkTextMode.FROM_SETTINGS,
    *,
    clipboard: Clipboard,
    notifier: Notifier,
    target: str = "",
    formatter: LinkFormatter | None = None,
    rng: random.Random | None = None,
) -> CarryResult | None:
    """Run one carry-forward command against a document.

    Returns None (after a long warning notice) when the settings can't be
    used; neither the document nor the clipboard is touched in that case.
    Clipboard errors propagate.
    """
    selection = document.selection

    try:
        compile_line_format(settings)
    except InvalidConfigError as e:
        notifier.show(_invalid_settings_message(e), WARNING_DURATION_MS)
        return None

    link_text = await resolve_link_text(link_text_mode, settings, document, clipboard)

    try:
        result = carry_lines(
            document,
            selection,
            settings,
            copy_mode,
            link_text=link_text,
            target=target,
            formatter=formatter,
            rng=rng,
        )
    except InvalidConfigError as e:
        notifier.show(_invalid_settings_message(e), WARNING_DURATION_MS)
        return None

    await clipboard.write(result.clipboard_text)
    notifier.show("Copied", NOTICE_DURATION_MS)

    last = selection.end.line
    document.transaction(
        Position(selection.start.line, 0),
        Position(last, len(document.get_line(last))),
        result.rewritten_range,
        selection=selection,
    )
    return result


def _invalid_settings_message(error: InvalidConfigError) -> str:
    label = "To" if error.setting == "lineFormatTo" else "From"
    return (
        f"Error: '{label}' setting is invalid:\n\n{error}\n\n"
        "Please update the Carry-Forward settings and try again."
    )
