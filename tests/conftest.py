import errno
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Set

import pytest

from gematom.models import CategoryDescriptor, CategoryScheme, SiteConfig

DEFAULT_TIME = datetime(2020, 1, 1, tzinfo=timezone.utc)


@dataclass
class FakeFile:
    content: bytes
    created: datetime
    modified: datetime
    mode: int = 0o644


class FakeFileSystem:
    """In-memory FileSystem with controllable timestamps and failures."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.files: Dict[Path, FakeFile] = {}
        self.dirs: Set[Path] = {self.root}
        self.unreadable: Set[Path] = set()
        self.broken_stat: Set[Path] = set()
        self.reads = []

    def add_dir(self, relative: str) -> Path:
        path = self.root / relative
        current = path
        while current != self.root and current not in self.dirs:
            self.dirs.add(current)
            current = current.parent
        return path

    def add_file(
        self,
        relative: str,
        content: bytes = b"# body\n",
        created: datetime = DEFAULT_TIME,
        modified: datetime = DEFAULT_TIME,
        mode: int = 0o644,
    ) -> Path:
        path = self.root / relative
        self.add_dir(str(Path(relative).parent))
        self.files[path] = FakeFile(content, created, modified, mode)
        return path

    def _denied(self, path: Path):
        return PermissionError(errno.EACCES, "Permission denied", str(path))

    def list_dir(self, path):
        path = Path(path)
        if path in self.unreadable:
            raise self._denied(path)
        if path not in self.dirs:
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(path))
        children = {
            child.name
            for child in list(self.files) + list(self.dirs)
            if child.parent == path and child != path
        }
        return sorted(children)

    def is_dir(self, path):
        return Path(path) in self.dirs

    def is_file(self, path):
        return Path(path) in self.files

    def read_bytes(self, path):
        path = Path(path)
        if path in self.unreadable:
            raise self._denied(path)
        self.reads.append(path)
        return self.files[path].content

    def is_readable(self, path):
        path = Path(path)
        return path in self.files and path not in self.unreadable

    def created(self, path):
        path = Path(path)
        if path in self.broken_stat:
            raise self._denied(path)
        return self.files[path].created

    def modified(self, path):
        path = Path(path)
        if path in self.broken_stat:
            raise self._denied(path)
        return self.files[path].modified

    def is_world_readable(self, path):
        return bool(self.files[Path(path)].mode & 0o004)


@pytest.fixture
def fake_fs(tmp_path):
    return FakeFileSystem(tmp_path)


@pytest.fixture
def make_site(tmp_path):
    """Build a SiteConfig rooted at tmp_path."""

    def factory(*categories, **overrides):
        descriptors = tuple(
            CategoryDescriptor(path=name, scheme=CategoryScheme(scheme))
            for name, scheme in categories
        )
        values = dict(
            root=tmp_path,
            base_url="gemini://example.org/",
            categories=descriptors,
        )
        values.update(overrides)
        return SiteConfig(**values)

    return factory


@pytest.fixture
def restore_logging():
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    try:
        yield
    finally:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)
