"""Shared data models for gematom."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:
    from .filesystem import FileSystem


INDEX_NAMES: Tuple[str, ...] = ("index.gmi", "index.gemini")


class CategoryScheme(enum.Enum):
    """How articles are laid out inside a category directory."""

    FLAT = "flat"
    TREE = "tree"


@dataclass(frozen=True)
class CategoryDescriptor:
    """A category subdirectory of the site root and its scheme."""

    path: str
    scheme: CategoryScheme


@dataclass(frozen=True)
class SiteConfig:
    """Validated settings for a single feed generation run."""

    root: Path
    base_url: str
    categories: Tuple[CategoryDescriptor, ...]
    title: Optional[str] = None
    subtitle: Optional[str] = None
    author: Optional[str] = None
    email: Optional[str] = None
    output: Path = Path("atom.xml")
    limit: int = 10
    use_mtime: bool = False
    clean_underscores: bool = False
    public_only: bool = False
    suffixes: Tuple[str, ...] = ()
    concurrency: int = 1

    @property
    def output_path(self) -> Path:
        """Absolute location of the feed file; relative outputs live under the root."""
        if self.output.is_absolute():
            return self.output
        return self.root / self.output


@dataclass(frozen=True)
class ContentHandle:
    """Deferred read of an article body."""

    path: Path
    fs: "FileSystem" = field(repr=False, compare=False)

    def read(self) -> bytes:
        return self.fs.read_bytes(self.path)


@dataclass(frozen=True)
class CandidateEntry:
    """An article found while scanning a category."""

    path: Path
    relative_path: str
    published: datetime
    title: str
    content: ContentHandle
    category: str = ""


@dataclass(frozen=True)
class FeedModel:
    """Everything the serializer needs to render a feed."""

    title: str
    base_url: str
    feed_url: str
    generated: datetime
    updated: datetime
    entries: Tuple[CandidateEntry, ...] = ()
    subtitle: Optional[str] = None
    author: Optional[str] = None
    email: Optional[str] = None
