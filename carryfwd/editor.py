"""Editor-side collaborators: positions, a line buffer, clipboard, notices."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import pyperclip
from rich.console import Console
from rich.markup import escape


class InvalidSelectionError(ValueError):
    """A position or range doesn't fit the document."""


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based (line, column)."""

    line: int
    ch: int = 0

    @classmethod
    def parse(cls, value: str) -> Position:
        """Parse `LINE` or `LINE:COL` (both one-based, as editors display them)."""
        match = re.fullmatch(r"\s*(\d+)(?::(\d+))?\s*", value)
        if not match:
            raise InvalidSelectionError(f"Expected LINE or LINE:COL, got {value!r}")
        line = int(match.group(1))
        col = int(match.group(2)) if match.group(2) else 1
        if line < 1 or col < 1:
            raise InvalidSelectionError(f"Lines and columns start at 1: {value!r}")
        return cls(line - 1, col - 1)


@dataclass(frozen=True)
class Selection:
    """Selected range; `start == end` for a bare caret."""

    start: Position
    end: Position

    def __post_init__(self):
        if self.end < self.start:
            start, end = self.end, self.start
            object.__setattr__(self, "start", start)
            object.__setattr__(self, "end", end)

    @classmethod
    def caret(cls, line: int, ch: int = 0) -> Selection:
        pos = Position(line, ch)
        return cls(pos, pos)

    @property
    def is_caret(self) -> bool:
        return self.start == self.end


class LineBuffer(Protocol):
    def get_line(self, index: int) -> str: ...

    @property
    def line_count(self) -> int: ...


@dataclass
class TextDocument:
    """In-memory document with a current selection and atomic range edits.

    Usage:
        doc = TextDocument.from_file(Path("note.md"))
        doc.selection = Selection.caret(3)
        ...
        doc.save()
    """

    lines: list[str]
    selection: Selection = field(default_factory=lambda: Selection.caret(0))
    path: Path | None = None
    trailing_newline: bool = False
    newline: str = "\n"

    @classmethod
    def from_text(cls, text: str, path: Path | None = None) -> TextDocument:
        newline = "\r\n" if "\r\n" in text else "\n"
        trailing = text.endswith(newline)
        body = text[:-len(newline)] if trailing else text
        return cls(
            lines=body.split(newline),
            path=path,
            trailing_newline=trailing,
            newline=newline,
        )

    @classmethod
    def from_file(cls, path: Path) -> TextDocument:
        path = Path(path)
        # Decoded by hand so CRLF survives (text mode would translate it)
        return cls.from_text(path.read_bytes().decode("utf-8"), path=path)

    @property
    def text(self) -> str:
        return self.newline.join(self.lines) + (self.newline if self.trailing_newline else "")

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def get_line(self, index: int) -> str:
        return self.lines[index]

    def get_range(self, start: Position, end: Position) -> str:
        self._check(start)
        self._check(end)
        if start.line == end.line:
            return self.lines[start.line][start.ch:end.ch]
        parts = [self.lines[start.line][start.ch:]]
        parts.extend(self.lines[start.line + 1:end.line])
        parts.append(self.lines[end.line][:end.ch])
        return "\n".join(parts)

    def get_selection_text(self) -> str:
        return self.get_range(self.selection.start, self.selection.end)

    def transaction(
        self,
        start: Position,
        end: Position,
        text: str,
        selection: Selection | None = None,
    ) -> None:
        """Replace `start..end` with `text` and set the selection.

        The range is validated before the buffer changes, so a bad range
        leaves the document untouched. The new selection is clamped to the
        edited lines.
        """
        self._check(start)
        self._check(end)
        if end < start:
            raise InvalidSelectionError(f"Range end {end} is before start {start}")

        head = self.lines[start.line][:start.ch]
        tail = self.lines[end.line][end.ch:]
        replacement = (head + text + tail).split("\n")
        new_lines = self.lines[:start.line] + replacement + self.lines[end.line + 1:]

        self.lines = new_lines
        if selection is not None:
            self.selection = Selection(self._clamp(selection.start), self._clamp(selection.end))

    def save(self, path: Path | None = None) -> Path:
        out = Path(path) if path else self.path
        if out is None:
            raise ValueError("Document has no path to save to")
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(self.text.encode("utf-8"))
        return out

    def _clamp(self, pos: Position) -> Position:
        line = min(max(pos.line, 0), len(self.lines) - 1)
        ch = min(max(pos.ch, 0), len(self.lines[line]))
        return Position(line, ch)

    def _check(self, pos: Position) -> None:
        if not 0 <= pos.line < len(self.lines):
            raise InvalidSelectionError(
                f"Line {pos.line + 1} is out of range (document has {len(self.lines)} lines)"
            )
        if not 0 <= pos.ch <= len(self.lines[pos.line]):
            raise InvalidSelectionError(
                f"Column {pos.ch + 1} is out of range on line {pos.line + 1}"
            )


class Clipboard(Protocol):
    async def read(self) -> str: ...

    async def write(self, text: str) -> None: ...


class SystemClipboard:
    """OS clipboard via pyperclip; the blocking calls run in a worker thread."""

    async def read(self) -> str:
        return await asyncio.to_thread(pyperclip.paste)

    async def write(self, text: str) -> None:
        await asyncio.to_thread(pyperclip.copy, text)


@dataclass
class MemoryClipboard:
    """Clipboard kept in memory. Records every write."""

    text: str = ""
    writes: list[str] = field(default_factory=list)

    async def read(self) -> str:
        return self.text

    async def write(self, text: str) -> None:
        self.text = text
        self.writes.append(text)


class Notifier(Protocol):
    def show(self, message: str, duration_ms: int = ...) -> None: ...


NOTICE_DURATION_MS = 5000
WARNING_DURATION_MS = 30 * 1000


class ConsoleNotifier:
    """Notices printed to a rich console. Long-lived notices are shown as warnings."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def show(self, message: str, duration_ms: int = NOTICE_DURATION_MS) -> None:
        if duration_ms > NOTICE_DURATION_MS:
            self.console.print(f"[yellow]{escape(message)}[/yellow]", highlight=False)
        else:
            self.console.print(f"[green]{escape(message)}[/green]", highlight=False)


@dataclass
class RecordingNotifier:
    """Keeps (message, duration_ms) pairs."""

    notices: list[tuple[str, int]] = field(default_factory=list)

    def show(self, message: str, duration_ms: int = NOTICE_DURATION_MS) -> None:
        self.notices.append((message, duration_ms))
