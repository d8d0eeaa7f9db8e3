"""Title inference for articles."""

from __future__ import annotations

import posixpath

from .dates import parse_date_prefix

_SEPARATORS = "-_. \t"


def _strip_extension(name: str) -> str:
    stem, _ext = posixpath.splitext(name)
    return stem or name


def strip_date_prefixes(name: str) -> str:
    """Remove every leading date prefix and the separators that follow it."""
    parsed = parse_date_prefix(name)
    while parsed is not None:
        name = parsed[1].lstrip(_SEPARATORS)
        parsed = parse_date_prefix(name)
    return name


def resolve_title(
    name: str,
    strip_date_prefix: bool = True,
    clean_underscores: bool = False,
    is_filename: bool = False,
) -> str:
    """Derive a display title from a file or directory name."""
    base = _strip_extension(name) if is_filename else name
    title = strip_date_prefixes(base) if strip_date_prefix else base
    if clean_underscores:
        title = title.replace("_", " ")
    title = title.strip()
    if not title:
        return base
    return title
