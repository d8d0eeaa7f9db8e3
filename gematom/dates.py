"""Publication date inference for articles."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?!\d)", re.ASCII)
_TIMESTAMP_RE = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2}(?:\.\d+)?)([Zz]|[+-]\d{2}:\d{2})(?!\d)",
    re.ASCII,
)

FallbackProvider = Callable[[bool], datetime]


def _parse_timestamp(name: str) -> Optional[Tuple[datetime, str]]:
    match = _TIMESTAMP_RE.match(name)
    if not match:
        return None
    date_part, time_part, offset = match.groups()
    if offset in ("Z", "z"):
        offset = "+00:00"
    # fromisoformat only accepts 3 or 6 fractional digits before 3.11.
    if "." in time_part:
        whole, fraction = time_part.split(".", 1)
        time_part = f"{whole}.{(fraction + '000000')[:6]}"
    try:
        value = datetime.fromisoformat(f"{date_part}T{time_part}{offset}")
    except ValueError:
        return None
    return value, name[match.end():]


def parse_date_prefix(name: str) -> Optional[Tuple[datetime, str]]:
    """Split a leading RFC 3339 date off ``name``.

    Returns the parsed instant and the rest of the name, or None when the
    name does not start with a valid ``YYYY-MM-DD`` date followed by a
    non-digit (or nothing). A full timestamp such as
    ``2021-01-15T10:00:00Z`` is honoured literally; a bare date maps to
    midnight UTC.
    """
    stamped = _parse_timestamp(name)
    if stamped is not None:
        return stamped

    match = _DATE_RE.match(name)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        value = datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        logger.debug("Ignoring malformed date prefix in %r", name)
        return None
    return value, name[match.end():]


def resolve_date(
    name: str, fallback_instant_provider: FallbackProvider, use_mtime: bool
) -> datetime:
    """Return the effective publication instant for an article.

    A valid date prefix on ``name`` wins. Otherwise the fallback provider is
    asked for the creation time, or the modification time when
    ``use_mtime`` is set. OSErrors from the provider propagate.
    """
    parsed = parse_date_prefix(name)
    if parsed is not None:
        return parsed[0]
    return fallback_instant_provider(use_mtime)
