"""Concat manifest serialization.

The concatenation gateway reads an ordered list of inputs in the ffmpeg
concat-demuxer format: one `file '<absolute path>'` directive per line.
Paths are single-quoted; a literal single quote inside a path is written
as `'\\''` (close the quote, an escaped quote, reopen the quote).
"""

from collections.abc import Iterable
from pathlib import Path


def quote_path(path: str | Path) -> str:
    """Quote one absolute path for a manifest line."""
    absolute = str(Path(path).resolve())
    if "\n" in absolute or "\r" in absolute:
        raise ValueError("Manifest paths cannot contain line breaks")
    return "'" + absolute.replace("'", "'\\''") + "'"


def render_manifest(paths: Iterable[str | Path]) -> str:
    """Render paths, in order, as a concat manifest.

    Raises:
        ValueError: If no paths are given or a path contains a line break.
    """
    lines = [f"file {quote_path(p)}" for p in paths]
    if not lines:
        raise ValueError("A manifest needs at least one input")
    return "\n".join(lines) + "\n"
