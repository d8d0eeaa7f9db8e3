from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from gematom.feeds import assemble, join_url, select_recent_entries
from gematom.models import CandidateEntry, ContentHandle

BASE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _entry(name: str, days: int) -> CandidateEntry:
    path = Path("/site/texts") / name
    return CandidateEntry(
        path=path,
        relative_path=f"texts/{name}",
        published=BASE + timedelta(days=days),
        title=name,
        content=ContentHandle(path=path, fs=None),
        category="texts",
    )


def test_select_recent_entries_sorts_descending_and_truncates():
    entries = [_entry(f"e{i}", i) for i in (3, 7, 1, 9, 5)]

    selected = select_recent_entries(entries, limit=3)

    assert [entry.title for entry in selected] == ["e9", "e7", "e5"]


@pytest.mark.parametrize("limit", [0, -1])
def test_select_recent_entries_non_positive_limit_is_empty(limit):
    assert select_recent_entries([_entry("a", 1)], limit=limit) == []


def test_select_recent_entries_keeps_everything_below_limit():
    entries = [_entry("a", 1), _entry("b", 2)]

    assert len(select_recent_entries(entries, limit=10)) == 2


def test_select_recent_entries_is_stable_for_ties():
    entries = [_entry("first", 1), _entry("second", 1), _entry("third", 1)]

    selected = select_recent_entries(entries, limit=3)

    assert [entry.title for entry in selected] == ["first", "second", "third"]


def test_select_recent_entries_compares_mixed_offsets():
    early = _entry("early", 0)
    later = CandidateEntry(
        path=Path("/site/texts/later"),
        relative_path="texts/later",
        published=datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=1))),
        title="later",
        content=ContentHandle(path=Path("/site/texts/later"), fs=None),
    )

    selected = select_recent_entries([early, later], limit=2)

    assert [entry.title for entry in selected] == ["later", "early"]


def test_assemble_populates_metadata(make_site, tmp_path):
    site = make_site(
        ("texts", "flat"),
        title="Capsule",
        subtitle="Notes",
        author="Jane",
        email="jane@example.org",
        limit=2,
    )
    entries = [_entry("a", 1), _entry("b", 5), _entry("c", 3)]

    model = assemble(entries, site, now=BASE + timedelta(days=100))

    assert [entry.title for entry in model.entries] == ["b", "c"]
    assert model.updated == BASE + timedelta(days=5)
    assert model.generated == BASE + timedelta(days=100)
    assert model.title == "Capsule"
    assert model.subtitle == "Notes"
    assert model.author == "Jane"
    assert model.email == "jane@example.org"
    assert model.feed_url == "gemini://example.org/atom.xml"


def test_assemble_without_entries_uses_current_time(make_site, tmp_path):
    now = datetime(2025, 5, 5, tzinfo=timezone.utc)
    site = make_site(("texts", "flat"))

    model = assemble([], site, now=now)

    assert model.entries == ()
    assert model.updated == now
    assert model.title == tmp_path.name


def test_assemble_feed_url_for_nested_output(make_site, tmp_path):
    site = make_site(("texts", "flat"), output=Path("feeds/all posts.xml"))

    model = assemble([], site, now=BASE)

    assert model.feed_url == "gemini://example.org/feeds/all%20posts.xml"


def test_assemble_feed_url_outside_root_falls_back_to_base(make_site, tmp_path):
    site = make_site(
        ("texts", "flat"),
        base_url="gemini://example.org/~jane",
        output=tmp_path.parent / "elsewhere.xml",
    )

    model = assemble([], site, now=BASE)

    assert model.feed_url == "gemini://example.org/~jane"


@pytest.mark.parametrize(
    "base, relative, expected",
    [
        ("gemini://example.org", "texts/a.gmi", "gemini://example.org/texts/a.gmi"),
        ("gemini://example.org/", "/texts/a.gmi", "gemini://example.org/texts/a.gmi"),
        (
            "gemini://example.org/~jane/",
            "noise/spam and eggs/index.gmi",
            "gemini://example.org/~jane/noise/spam%20and%20eggs/index.gmi",
        ),
    ],
)
def test_join_url(base, relative, expected):
    assert join_url(base, relative) == expected
