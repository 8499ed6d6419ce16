"""Shared fixtures: a deterministic clock and a seeded in-memory catalogue."""

from __future__ import annotations

import datetime as _dt
from typing import Iterator

import pytest

from aitoonic.content.store import ContentStore, FailSoftContentStore, seed

START = _dt.datetime(2024, 3, 1, 12, 0, tzinfo=_dt.timezone.utc)


class Clock:
    """Deterministic clock helper for TTL validation."""

    def __init__(self, start: _dt.datetime = START) -> None:
        self._now = start

    def now(self) -> _dt.datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now = self._now + _dt.timedelta(seconds=seconds)


CATALOG = {
    "categories": [
        {"id": "cat-writing", "name": "Writing", "description": "Draft and edit text"},
        {"id": "cat-image", "name": "Image Generation", "description": "Create pictures from prompts"},
        {"id": "cat-empty", "name": "Empty Shelf", "description": "Nothing here yet"},
    ],
    "tools": [
        {
            "id": "tool-quill",
            "name": "Quill Bot",
            "description": "Rewrites paragraphs in any tone",
            "url": "https://quill.example",
            "category_id": "cat-writing",
            "rating": 4.5,
            "features": [{"title": "Tone control", "description": "Formal or casual"}],
            "pricing": [{"plan": "Pro", "price": "$9", "features": ["Unlimited rewrites"]}],
            "created_at": START - _dt.timedelta(days=10),
        },
        {
            "id": "tool-ink",
            "name": "Ink Writer",
            "description": "Long-form blog assistant",
            "url": "https://ink.example",
            "category_id": "cat-writing",
            "created_at": START - _dt.timedelta(days=2),
        },
        {
            "id": "tool-pixel",
            "name": "Pixel Forge",
            "description": "Turns prompts into artwork",
            "url": "https://pixel.example",
            "category_id": "cat-image",
            "created_at": START - _dt.timedelta(hours=1),
        },
    ],
    "agents": [
        {
            "id": "agent-scout",
            "name": "Research Scout",
            "description": "Finds and summarises sources",
            "capabilities": ["web search", "summaries"],
            "status": "active",
            "is_available_24_7": True,
            "created_at": START - _dt.timedelta(days=5),
        },
        {
            "id": "agent-mail",
            "name": "Mail Sorter",
            "description": "Triage for your inbox",
            "status": "active",
            "created_at": START - _dt.timedelta(days=3),
        },
        {
            "id": "agent-retired",
            "name": "Retired Bot",
            "description": "No longer maintained",
            "status": "inactive",
            "created_at": START - _dt.timedelta(days=30),
        },
    ],
}


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(clock: Clock) -> Iterator[ContentStore]:
    content = ContentStore(":memory:", clock=clock.now)
    seed(content, CATALOG)
    yield content
    content.close()


@pytest.fixture
def reader(store: ContentStore) -> FailSoftContentStore:
    return FailSoftContentStore(store)
