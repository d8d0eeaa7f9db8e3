"""Rendering of the Atom feed document."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from typing import List

from .feeds import join_url
from .models import CandidateEntry, FeedModel
from .templating import get_environment

logger = logging.getLogger(__name__)

GENERATOR = "gematom"
GEMINI_SUFFIXES = (".gmi", ".gemini")


@dataclass
class RenderedEntry:
    """An entry together with the values only known at render time."""

    entry: CandidateEntry
    link: str
    content_type: str
    body: bytes


def content_type_for(name: str) -> str:
    """Return the Atom content type declared for a source file."""
    lowered = name.lower()
    if lowered.endswith(GEMINI_SUFFIXES):
        return "text/gemini"
    guessed, _encoding = mimetypes.guess_type(lowered)
    if guessed and guessed.startswith("text/"):
        return guessed
    return "text"


def entry_link(base_url: str, entry: CandidateEntry) -> str:
    """Public URL of an entry; also used as its Atom id."""
    return join_url(base_url, entry.relative_path)


def _render_entries(model: FeedModel) -> List[RenderedEntry]:
    rendered: List[RenderedEntry] = []
    for entry in model.entries:
        try:
            body = entry.content.read()
        except OSError as exc:
            logger.warning("Skipping %s: cannot read content (%s)", entry.path, exc)
            continue
        link = entry_link(model.base_url, entry)
        logger.info("Adding %s with title %s", link, entry.title)
        rendered.append(
            RenderedEntry(
                entry=entry,
                link=link,
                content_type=content_type_for(entry.path.name),
                body=body,
            )
        )
    return rendered


def build_atom_feed(model: FeedModel) -> bytes:
    """Render the feed model to an Atom XML document."""
    env = get_environment()
    template = env.get_template("atom.xml.j2")
    document = template.render(
        feed=model, items=_render_entries(model), generator=GENERATOR
    )
    return document.encode("utf-8")
