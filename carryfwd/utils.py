"""Utility functions for carryfwd."""

from pathlib import Path


def note_name(path: Path, root: Path | None = None) -> str:
    """Link target for a note file, without the `.md` suffix.

    Relative to `root` (a vault directory) when given and the note lives
    under it; otherwise just the file name.
    """
    path = Path(path)
    name = path.name
    if root is not None:
        try:
            name = path.resolve().relative_to(Path(root).resolve()).as_posix()
        except ValueError:
            pass
    return name[:-3] if name.lower().endswith(".md") else name
