"""Configuration loading and validation for gematom."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit
from xml.etree import ElementTree as ET

from .models import CategoryDescriptor, CategoryScheme, SiteConfig

logger = logging.getLogger(__name__)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class FileConfig:
    """Values read from an XML configuration file; unset values stay None."""

    directory: Optional[str] = None
    base_url: Optional[str] = None
    categories: List[str] = field(default_factory=list)
    title: Optional[str] = None
    subtitle: Optional[str] = None
    author: Optional[str] = None
    email: Optional[str] = None
    output: Optional[str] = None
    limit: Optional[int] = None
    use_mtime: Optional[bool] = None
    clean_underscores: Optional[bool] = None
    public_only: Optional[bool] = None
    suffixes: List[str] = field(default_factory=list)
    concurrency: Optional[int] = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_category(value: str) -> CategoryDescriptor:
    """Parse a ``DIR:TYPE`` category specification."""
    parts = value.split(":")
    if len(parts) != 2:
        raise ValueError(f"Bad category specification: {value}")
    directory, scheme = parts
    try:
        category_scheme = CategoryScheme(scheme)
    except ValueError:
        raise ValueError(f"Not a valid category: {scheme}") from None
    if not directory.strip("/"):
        raise ValueError(f"Bad category specification: {value}")
    return CategoryDescriptor(path=directory.strip("/"), scheme=category_scheme)


def validate_base_url(value: str) -> str:
    """Check that value is an absolute gemini URL without credentials."""
    try:
        parts = urlsplit(value)
    except ValueError as exc:
        raise ValueError(str(exc)) from None
    if not parts.scheme:
        raise ValueError("relative URL without a base")
    if parts.scheme != "gemini":
        raise ValueError(f"Bad url scheme : {parts.scheme}")
    if parts.username is not None or parts.password is not None:
        raise ValueError(f"user authentication not allowed in url {value}")
    if not parts.hostname:
        raise ValueError(f"Missing host in url {value}")
    return value


def validate_directory(value: str) -> Path:
    """Return value as an absolute path if it names an existing directory."""
    path = Path(value)
    if not path.is_dir():
        raise ValueError(f"Invalid directory: {value}")
    return path.resolve()


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def _parse_bool(node: ET.Element, tag: str) -> Optional[bool]:
    text = node.findtext(tag)
    if text is None:
        return None
    text = text.strip().lower()
    if text in ("true", "yes", "1"):
        return True
    if text in ("false", "no", "0"):
        return False
    raise ValueError(f"<{tag}> must be true or false, got {text!r}")


def _parse_int(node: ET.Element, tag: str) -> Optional[int]:
    text = node.findtext(tag)
    if text is None or not text.strip():
        return None
    try:
        return int(text)
    except ValueError:
        raise ValueError(f"<{tag}> must be an integer, got {text.strip()!r}") from None


def _text(node: ET.Element, tag: str) -> Optional[str]:
    text = node.findtext(tag)
    if text is None:
        return None
    return text.strip() or None


def parse_config_file(path: str) -> FileConfig:
    """Parse the XML configuration file."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading configuration from %s", config_path)
    try:
        root = ET.parse(config_path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Config file {config_path} is not valid XML: {exc}") from exc

    config = FileConfig()

    directory = _text(root, "directory")
    if directory:
        config.directory = _resolve_path(config_path, directory)

    config.base_url = _text(root, "base")

    categories_node = root.find("categories")
    if categories_node is not None:
        for node in categories_node.findall("category"):
            name = (node.text or "").strip()
            scheme = node.attrib.get("scheme", "").strip()
            config.categories.append(f"{name}:{scheme}")

    config.title = _text(root, "title")
    config.subtitle = _text(root, "subtitle")

    author_node = root.find("author")
    if author_node is not None:
        config.author = _text(author_node, "name")
        config.email = _text(author_node, "email")

    output = _text(root, "output")
    if output:
        config.output = output

    config.limit = _parse_int(root, "limit")
    config.concurrency = _parse_int(root, "concurrency")

    date_source = _text(root, "date-source")
    if date_source is not None:
        if date_source not in ("ctime", "mtime"):
            raise ValueError(f"<date-source> must be ctime or mtime, got {date_source!r}")
        config.use_mtime = date_source == "mtime"

    config.clean_underscores = _parse_bool(root, "clean-underscores")
    config.public_only = _parse_bool(root, "public-only")

    suffixes_node = root.find("suffixes")
    if suffixes_node is not None:
        config.suffixes = [
            (node.text or "").strip().lstrip(".")
            for node in suffixes_node.findall("suffix")
            if (node.text or "").strip()
        ]

    log_node = root.find("logging")
    if log_node is not None:
        config.logging.level = log_node.findtext("level", "INFO").strip()
        log_file = _text(log_node, "file")
        if log_file:
            config.logging.file = _resolve_path(config_path, log_file)

    return config


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def build_site_config(
    file_config: Optional[FileConfig] = None,
    *,
    directory: Optional[str] = None,
    base_url: Optional[str] = None,
    categories: Optional[Iterable[str]] = None,
    title: Optional[str] = None,
    subtitle: Optional[str] = None,
    author: Optional[str] = None,
    email: Optional[str] = None,
    output: Optional[str] = None,
    limit: Optional[int] = None,
    use_mtime: Optional[bool] = None,
    clean_underscores: Optional[bool] = None,
    public_only: Optional[bool] = None,
    suffixes: Optional[Iterable[str]] = None,
    concurrency: Optional[int] = None,
) -> SiteConfig:
    """Merge file values with explicit overrides into a validated SiteConfig.

    Keyword arguments win over ``file_config``. Raises ValueError for any
    missing or malformed setting.
    """
    file_config = file_config or FileConfig()

    directory = _first(directory, file_config.directory)
    if not directory:
        raise ValueError("A site root directory is required.")
    root = validate_directory(directory)

    base_url = _first(base_url, file_config.base_url)
    if not base_url:
        raise ValueError("A base URL is required.")
    validate_base_url(base_url)

    specs = list(categories) if categories else list(file_config.categories)
    if not specs:
        raise ValueError("At least one category is required.")
    descriptors: Tuple[CategoryDescriptor, ...] = tuple(
        parse_category(value) for value in specs
    )

    limit = _first(limit, file_config.limit, 10)
    concurrency = _first(concurrency, file_config.concurrency, 1)
    if concurrency < 1:
        raise ValueError(f"Concurrency must be at least 1, got {concurrency}")

    suffix_list = list(suffixes) if suffixes else list(file_config.suffixes)

    return SiteConfig(
        root=root,
        base_url=base_url,
        categories=descriptors,
        title=_first(title, file_config.title),
        subtitle=_first(subtitle, file_config.subtitle),
        author=_first(author, file_config.author) or None,
        email=_first(email, file_config.email),
        output=Path(os.path.expanduser(_first(output, file_config.output, "atom.xml"))),
        limit=limit,
        use_mtime=bool(_first(use_mtime, file_config.use_mtime, False)),
        clean_underscores=bool(
            _first(clean_underscores, file_config.clean_underscores, False)
        ),
        public_only=bool(_first(public_only, file_config.public_only, False)),
        suffixes=tuple(suffix.lstrip(".") for suffix in suffix_list),
        concurrency=concurrency,
    )
