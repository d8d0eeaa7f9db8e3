"""Filesystem access used by the scanner and the renderer."""

from __future__ import annotations

import logging
import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Protocol

logger = logging.getLogger(__name__)


class FileSystem(Protocol):
    """The filesystem operations gematom relies on. Errors surface as OSError."""

    def list_dir(self, path: Path) -> List[str]: ...

    def is_dir(self, path: Path) -> bool: ...

    def is_file(self, path: Path) -> bool: ...

    def read_bytes(self, path: Path) -> bytes: ...

    def is_readable(self, path: Path) -> bool: ...

    def created(self, path: Path) -> datetime: ...

    def modified(self, path: Path) -> datetime: ...

    def is_world_readable(self, path: Path) -> bool: ...


def _from_epoch(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def list_dir(self, path: Path) -> List[str]:
        return sorted(os.listdir(path))

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def is_readable(self, path: Path) -> bool:
        return os.access(path, os.R_OK)

    def created(self, path: Path) -> datetime:
        info = os.stat(path)
        # Linux does not expose the birth time through os.stat.
        birth = getattr(info, "st_birthtime", None)
        if birth is None:
            return _from_epoch(info.st_ctime)
        return _from_epoch(birth)

    def modified(self, path: Path) -> datetime:
        return _from_epoch(os.stat(path).st_mtime)

    def is_world_readable(self, path: Path) -> bool:
        try:
            mode = os.stat(path).st_mode
        except OSError as exc:
            logger.debug("Cannot stat %s: %s", path, exc)
            return False
        return bool(mode & stat.S_IROTH)


def timestamp(fs: FileSystem, path: Path, use_mtime: bool) -> datetime:
    """Return the modification time when use_mtime is set, else the creation time."""
    if use_mtime:
        return fs.modified(path)
    return fs.created(path)
