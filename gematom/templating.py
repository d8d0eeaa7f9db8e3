"""Jinja2 environment for gematom templates."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from importlib import resources

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

_ENV: Environment | None = None

# Characters outside the XML 1.0 Char production.
_ILLEGAL_XML_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def _rfc3339(value: datetime) -> str:
    """Format an aware datetime as RFC 3339, using Z for UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.replace(microsecond=0)
    if value.utcoffset() == timedelta(0):
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")
    return value.isoformat()


def _xml_text(value: str | bytes | None) -> Markup:
    """Escape text for XML content, dropping characters XML cannot carry."""
    if value is None:
        return Markup("")
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return escape(_ILLEGAL_XML_CHARS.sub("", value))


def get_environment() -> Environment:
    """Return a cached Jinja environment configured for package templates."""
    global _ENV
    if _ENV is None:
        template_dir = resources.files(__package__) / "templates"
        loader = FileSystemLoader(str(template_dir))
        _ENV = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "xml.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        _ENV.filters["rfc3339"] = _rfc3339
        _ENV.filters["xml_text"] = _xml_text
    return _ENV
