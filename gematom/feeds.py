"""Feed assembly: ranking candidates and filling feed metadata."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import PurePosixPath
from typing import Iterable, List, Optional
from urllib.parse import quote

from .models import CandidateEntry, FeedModel, SiteConfig

logger = logging.getLogger(__name__)


def join_url(base_url: str, relative_path: str) -> str:
    """Append a site-relative POSIX path to the base URL.

    urllib's urljoin leaves unknown schemes such as gemini:// untouched, so
    the join is done by hand.
    """
    if not base_url.endswith("/"):
        base_url += "/"
    return base_url + quote(relative_path.lstrip("/"), safe="/")


def select_recent_entries(
    entries: Iterable[CandidateEntry], limit: int
) -> List[CandidateEntry]:
    """Return the newest entries, most recent first, at most ``limit`` of them."""
    if limit <= 0:
        logger.info("Entry limit is %d; feed will be empty", limit)
        return []
    sorted_entries = sorted(entries, key=lambda item: item.published, reverse=True)
    selected = sorted_entries[:limit]
    logger.info(
        "Selected %d of %d entries (limit %d)", len(selected), len(sorted_entries), limit
    )
    return selected


def _feed_url(site: SiteConfig) -> str:
    try:
        relative = site.output_path.relative_to(site.root)
    except ValueError:
        logger.debug(
            "Output %s lies outside %s; using the base URL as feed URL",
            site.output_path,
            site.root,
        )
        return site.base_url
    return join_url(site.base_url, PurePosixPath(*relative.parts).as_posix())


def assemble(
    candidates: Iterable[CandidateEntry],
    site: SiteConfig,
    now: Optional[datetime] = None,
) -> FeedModel:
    """Build the feed model from the candidates of every category."""
    generated = now or datetime.now(timezone.utc)
    entries = select_recent_entries(candidates, site.limit)
    updated = entries[0].published if entries else generated

    return FeedModel(
        title=site.title or site.root.name,
        subtitle=site.subtitle,
        base_url=site.base_url,
        feed_url=_feed_url(site),
        author=site.author,
        email=site.email,
        generated=generated,
        updated=updated,
        entries=tuple(entries),
    )
