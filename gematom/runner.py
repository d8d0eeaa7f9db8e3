"""High-level orchestration for a gematom run."""

from __future__ import annotations

import concurrent.futures
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .feeds import assemble
from .filesystem import FileSystem, LocalFileSystem
from .models import CandidateEntry, SiteConfig
from .renderers import build_atom_feed
from .scanner import scan

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Returned data after generating a feed."""

    output_path: Path
    entry_count: int
    title: str
    feed_url: str


def _collect_entries(site: SiteConfig, fs: FileSystem) -> List[CandidateEntry]:
    candidates: List[CandidateEntry] = []

    if site.concurrency <= 1 or len(site.categories) <= 1:
        for descriptor in site.categories:
            found = list(scan(descriptor, site, fs))
            logger.info("Found %d entries in %s", len(found), descriptor.path)
            candidates.extend(found)
        return candidates

    with concurrent.futures.ThreadPoolExecutor(
        max_workers=site.concurrency
    ) as executor:
        future_to_category = {
            executor.submit(lambda d: list(scan(d, site, fs)), descriptor): descriptor
            for descriptor in site.categories
        }
        for future in concurrent.futures.as_completed(future_to_category):
            descriptor = future_to_category[future]
            found = future.result()
            logger.info("Found %d entries in %s", len(found), descriptor.path)
            candidates.extend(found)

    return candidates


def write_output(path: Path, payload: bytes) -> None:
    """Replace ``path`` with ``payload`` without leaving a partial file behind."""
    directory = path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=directory
        )
    except OSError as exc:
        raise RuntimeError(f"Cannot write feed to {path}: {exc}") from exc

    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug("Could not remove temporary file %s", tmp_name)
        raise RuntimeError(f"Cannot write feed to {path}: {exc}") from exc
    logger.debug("Wrote %d bytes to %s", len(payload), path)


def execute(
    site: SiteConfig,
    fs: Optional[FileSystem] = None,
    now: Optional[datetime] = None,
) -> RunResult:
    """Scan the site, build the feed and write it to the configured output."""
    if fs is None:
        fs = LocalFileSystem()

    candidates = _collect_entries(site, fs)
    if not candidates:
        logger.warning("No content found under %s", site.root)

    model = assemble(candidates, site, now=now)
    logger.info(
        "Generating feed \"%s\", which should be served from %s",
        model.title,
        model.feed_url,
    )
    document = build_atom_feed(model)

    output_path = site.output_path
    write_output(output_path, document)

    return RunResult(
        output_path=output_path,
        entry_count=len(model.entries),
        title=model.title,
        feed_url=model.feed_url,
    )
