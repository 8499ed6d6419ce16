"""Catalogue search and list filters."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from typing import Iterable, Literal, Sequence, TypeVar, Union

from .models import Agent, Category, Tool

_Item = TypeVar("_Item", Tool, Category, Agent)

DEFAULT_RESULT_LIMIT = 10
NEW_TOOLS_LIMIT = 12


@dataclass(frozen=True)
class SearchResult:
    kind: Literal["tool", "category"]
    item: Union[Tool, Category]

    @property
    def href(self) -> str:
        prefix = "/ai/" if self.kind == "tool" else "/category/"
        return prefix + self.item.slug


def _normalise(term: str | None) -> str:
    return (term or "").strip().lower()


def _matches(term: str, name: str, description: str | None) -> bool:
    return term in name.lower() or term in (description or "").lower()


def search_catalog(
    term: str | None,
    tools: Iterable[Tool],
    categories: Iterable[Category],
    *,
    limit: int = DEFAULT_RESULT_LIMIT,
) -> list[SearchResult]:
    """Case-insensitive substring search; tool hits precede category hits."""

    needle = _normalise(term)
    if not needle:
        return []
    results = [
        SearchResult("tool", tool)
        for tool in tools
        if _matches(needle, tool.name, tool.description)
    ]
    results.extend(
        SearchResult("category", category)
        for category in categories
        if _matches(needle, category.name, category.description)
    )
    return results[:limit]


def filter_items(items: Sequence[_Item], term: str | None) -> list[_Item]:
    """Keep items whose name or description contains ``term``."""

    needle = _normalise(term)
    if not needle:
        return list(items)
    return [item for item in items if _matches(needle, item.name, item.description)]


def tools_added_since(tools: Iterable[Tool], since: datetime) -> list[Tool]:
    return [tool for tool in tools if tool.created_at is not None and tool.created_at >= since]


def tools_added_today(tools: Iterable[Tool], now: datetime) -> list[Tool]:
    moment = now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)
    midnight = datetime.combine(moment.date(), time.min, tzinfo=moment.tzinfo)
    return tools_added_since(tools, midnight)


def newest_tools(tools: Sequence[Tool], limit: int = NEW_TOOLS_LIMIT) -> list[Tool]:
    return list(tools[:limit])


__all__ = [
    "SearchResult",
    "filter_items",
    "newest_tools",
    "search_catalog",
    "tools_added_since",
    "tools_added_today",
]
