"""Block anchors: the `^abc12` ids that give a line a permanent identity.

A line is anchored when it ends in a token like:
    Some text ^x7k-2
The `^` must follow whitespace (or start the line). Trailing whitespace
after the token is tolerated.
"""

from __future__ import annotations

import random
import re

ANCHOR_ALPHABET = "abcdefghijklmnopqrstuvwxyz-0123456789"
ANCHOR_LENGTH = 5

ANCHOR_PATTERN = re.compile(r"(?:(?<=\s)|^)(\^[a-zA-Z0-9-]+)\s*$")


def find_anchor(line: str) -> str | None:
    """Return the trailing anchor token of a line (with its `^`), if any."""
    match = ANCHOR_PATTERN.search(line)
    return match.group(1) if match else None


def generate_anchor(length: int = ANCHOR_LENGTH, rng: random.Random | None = None) -> str:
    """Draw a fresh anchor token. Uniqueness is not checked against the document."""
    rng = rng or random
    return "^" + "".join(rng.choice(ANCHOR_ALPHABET) for _ in range(length))


def ensure_anchor(line: str, rng: random.Random | None = None) -> tuple[str, bool]:
    """Return (anchor, was_existing) for a line.

    The line itself is never touched: when `was_existing` is False the
    caller appends the new token with `append_anchor`.
    """
    existing = find_anchor(line)
    if existing is not None:
        return existing, True
    return generate_anchor(rng=rng), False


def append_anchor(line: str, anchor: str) -> str:
    """Replace trailing whitespace with a single space and the anchor."""
    return f"{line.rstrip()} {anchor}"


def strip_anchor(text: str) -> str:
    """Drop a trailing anchor token, keeping the whitespace before it."""
    match = ANCHOR_PATTERN.search(text)
    if not match:
        return text
    return text[:match.start()]
