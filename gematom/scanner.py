"""Article discovery inside category directories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional

from .dates import resolve_date
from .filesystem import FileSystem, LocalFileSystem, timestamp
from .models import (
    INDEX_NAMES,
    CandidateEntry,
    CategoryDescriptor,
    CategoryScheme,
    ContentHandle,
    SiteConfig,
)
from .titles import resolve_title

logger = logging.getLogger(__name__)


class CategoryError(RuntimeError):
    """Raised when a category directory cannot be read."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot read category directory {path}: {reason}")
        self.path = path


def _list_category(fs: FileSystem, directory: Path):
    if not fs.is_dir(directory):
        raise CategoryError(directory, "not a directory")
    try:
        return fs.list_dir(directory)
    except OSError as exc:
        raise CategoryError(directory, exc.strerror or str(exc)) from exc


def _relative(site: SiteConfig, path: Path) -> str:
    return path.relative_to(site.root).as_posix()


def _has_wanted_suffix(name: str, site: SiteConfig) -> bool:
    if not site.suffixes:
        return True
    _stem, dot, ext = name.rpartition(".")
    return bool(dot) and ext in site.suffixes


def _build_entry(
    fs: FileSystem,
    site: SiteConfig,
    descriptor: CategoryDescriptor,
    path: Path,
    name: str,
    is_filename: bool,
) -> Optional[CandidateEntry]:
    """Resolve date and title for one article, or None if it cannot be served."""
    if site.public_only and not fs.is_world_readable(path):
        logger.debug("Skipping %s: not world readable", path)
        return None
    if not fs.is_readable(path):
        logger.warning("Skipping %s: content is not readable", path)
        return None
    try:
        published = resolve_date(
            name, lambda use_mtime: timestamp(fs, path, use_mtime), site.use_mtime
        )
    except OSError as exc:
        logger.warning("Skipping %s: cannot read timestamps (%s)", path, exc)
        return None

    title = resolve_title(
        name,
        strip_date_prefix=True,
        clean_underscores=site.clean_underscores,
        is_filename=is_filename,
    )
    return CandidateEntry(
        path=path,
        relative_path=_relative(site, path),
        published=published,
        title=title,
        content=ContentHandle(path=path, fs=fs),
        category=descriptor.path,
    )


def scan_flat(
    descriptor: CategoryDescriptor, site: SiteConfig, fs: FileSystem
) -> Iterator[CandidateEntry]:
    """Yield every file directly inside the category except its index page."""
    directory = site.root / descriptor.path
    for name in _list_category(fs, directory):
        if name in INDEX_NAMES:
            continue
        path = directory / name
        if not fs.is_file(path):
            continue
        if not _has_wanted_suffix(name, site):
            logger.debug("Skipping %s: suffix not in %s", path, site.suffixes)
            continue
        entry = _build_entry(fs, site, descriptor, path, name, is_filename=True)
        if entry is not None:
            yield entry


def _find_index(fs: FileSystem, article_dir: Path) -> Optional[Path]:
    names = set(fs.list_dir(article_dir))
    for index_name in INDEX_NAMES:
        if index_name in names and fs.is_file(article_dir / index_name):
            return article_dir / index_name
    return None


def scan_tree(
    descriptor: CategoryDescriptor, site: SiteConfig, fs: FileSystem
) -> Iterator[CandidateEntry]:
    """Yield the index page of every article directory inside the category."""
    directory = site.root / descriptor.path
    for name in _list_category(fs, directory):
        article_dir = directory / name
        if not fs.is_dir(article_dir):
            continue
        try:
            index_path = _find_index(fs, article_dir)
        except OSError as exc:
            logger.warning("Skipping article directory %s: %s", article_dir, exc)
            continue
        if index_path is None:
            logger.debug("No index page in %s; skipping", article_dir)
            continue
        entry = _build_entry(fs, site, descriptor, index_path, name, is_filename=False)
        if entry is not None:
            yield entry


_SCANNERS: Dict[
    CategoryScheme,
    Callable[[CategoryDescriptor, SiteConfig, FileSystem], Iterator[CandidateEntry]],
] = {
    CategoryScheme.FLAT: scan_flat,
    CategoryScheme.TREE: scan_tree,
}


def scan(
    descriptor: CategoryDescriptor,
    site: SiteConfig,
    fs: Optional[FileSystem] = None,
) -> Iterator[CandidateEntry]:
    """Return a lazy iterator over the candidate entries of one category."""
    if fs is None:
        fs = LocalFileSystem()
    logger.debug(
        "Scanning %s category %s", descriptor.scheme.value, site.root / descriptor.path
    )
    return _SCANNERS[descriptor.scheme](descriptor, site, fs)
