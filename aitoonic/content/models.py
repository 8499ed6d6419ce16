"""Value types for tools, categories and agents."""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

_WHITESPACE = re.compile(r"\s+")


def slugify(name: str) -> str:
    """Lower-case ``name`` and replace whitespace runs with ``-``."""

    return _WHITESPACE.sub("-", name.strip().lower())


def name_from_slug(slug: str) -> str:
    return slug.replace("-", " ")


def _as_utc(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _load_json_list(raw: Any) -> list[Any]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        loaded = json.loads(raw)
        return list(loaded) if isinstance(loaded, list) else []
    return list(raw)


@dataclass(frozen=True)
class Feature:
    title: str
    description: str = ""


@dataclass(frozen=True)
class PricingPlan:
    plan: str
    price: str = ""
    features: tuple[str, ...] = ()


def _features(raw: Any) -> tuple[Feature, ...]:
    return tuple(
        Feature(title=str(item.get("title", "")), description=str(item.get("description", "")))
        for item in _load_json_list(raw)
        if isinstance(item, Mapping)
    )


def _pricing(raw: Any) -> tuple[PricingPlan, ...]:
    return tuple(
        PricingPlan(
            plan=str(item.get("plan", "")),
            price=str(item.get("price", "")),
            features=tuple(str(value) for value in item.get("features") or ()),
        )
        for item in _load_json_list(raw)
        if isinstance(item, Mapping)
    )


def _strings(raw: Any) -> tuple[str, ...]:
    return tuple(str(value) for value in _load_json_list(raw) if str(value).strip())


def dump_json(values: Sequence[Any]) -> str:
    """Serialise nested values (features, pricing, capabilities) for storage."""

    return json.dumps([asdict(value) if is_dataclass(value) else value for value in values])


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: str = ""
    seo_title: str | None = None
    seo_description: str | None = None
    image_url: str | None = None
    image_alt: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tool_count: int = 0

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def last_modified(self) -> datetime | None:
        return self.updated_at or self.created_at

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, tool_count: int = 0) -> "Category":
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            description=record.get("description") or "",
            seo_title=record.get("seo_title"),
            seo_description=record.get("seo_description"),
            image_url=record.get("image_url"),
            image_alt=record.get("image_alt"),
            created_at=_as_utc(record.get("created_at")),
            updated_at=_as_utc(record.get("updated_at")),
            tool_count=int(record.get("tool_count", tool_count) or 0),
        )


@dataclass(frozen=True)
class Tool:
    id: str
    name: str
    description: str
    url: str
    category_id: str | None = None
    image_url: str | None = None
    image_alt: str | None = None
    favicon_url: str | None = None
    rating: float | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    how_to_use: str | None = None
    features: tuple[Feature, ...] = ()
    use_cases: tuple[Feature, ...] = ()
    pricing: tuple[PricingPlan, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def last_modified(self) -> datetime | None:
        return self.updated_at or self.created_at

    @property
    def starting_price(self) -> str:
        if not self.pricing:
            return "0"
        return self.pricing[0].price.replace("$", "") or "0"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Tool":
        rating = record.get("rating")
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            description=record.get("description") or "",
            url=record.get("url") or "",
            category_id=record.get("category_id"),
            image_url=record.get("image_url"),
            image_alt=record.get("image_alt"),
            favicon_url=record.get("favicon_url"),
            rating=None if rating is None else float(rating),
            seo_title=record.get("seo_title"),
            seo_description=record.get("seo_description"),
            how_to_use=record.get("how_to_use"),
            features=_features(record.get("features")),
            use_cases=_features(record.get("use_cases")),
            pricing=_pricing(record.get("pricing")),
            created_at=_as_utc(record.get("created_at")),
            updated_at=_as_utc(record.get("updated_at")),
        )


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    description: str
    capabilities: tuple[str, ...] = ()
    agent_features: tuple[str, ...] = ()
    api_endpoint: str | None = None
    pricing_type: str = "free"
    status: str = "active"
    image_url: str | None = None
    image_alt: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    is_available_24_7: bool = False
    user_count: int = 0
    has_fast_response: bool = False
    is_secure: bool = False
    is_featured: bool = False
    is_verified: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def last_modified(self) -> datetime | None:
        return self.updated_at or self.created_at

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Agent":
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            description=record.get("description") or "",
            capabilities=_strings(record.get("capabilities")),
            agent_features=_strings(record.get("agent_features")),
            api_endpoint=record.get("api_endpoint"),
            pricing_type=record.get("pricing_type") or "free",
            status=record.get("status") or "active",
            image_url=record.get("image_url"),
            image_alt=record.get("image_alt"),
            seo_title=record.get("seo_title"),
            seo_description=record.get("seo_description"),
            is_available_24_7=bool(record.get("is_available_24_7")),
            user_count=int(record.get("user_count") or 0),
            has_fast_response=bool(record.get("has_fast_response")),
            is_secure=bool(record.get("is_secure")),
            is_featured=bool(record.get("is_featured")),
            is_verified=bool(record.get("is_verified")),
            created_at=_as_utc(record.get("created_at")),
            updated_at=_as_utc(record.get("updated_at")),
        )


@dataclass(frozen=True)
class ToolFilter:
    """Read options for :meth:`ContentStore.list_tools`."""

    category_id: str | None = None
    exclude_id: str | None = None
    limit: int | None = None
    newest_first: bool = True


@dataclass(frozen=True)
class AgentFilter:
    """Read options for :meth:`ContentStore.list_agents`."""

    status: str | None = "active"
    exclude_id: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything the sitemap and static builder enumerate."""

    tools: tuple[Tool, ...] = ()
    categories: tuple[Category, ...] = ()
    agents: tuple[Agent, ...] = ()


__all__ = [
    "Agent",
    "AgentFilter",
    "CatalogSnapshot",
    "Category",
    "Feature",
    "PricingPlan",
    "Tool",
    "ToolFilter",
    "dump_json",
    "name_from_slug",
    "slugify",
]
