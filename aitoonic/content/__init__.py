"""Catalogue data: models, the DuckDB store and search helpers."""

from .models import (
    Agent,
    AgentFilter,
    CatalogSnapshot,
    Category,
    Feature,
    PricingPlan,
    Tool,
    ToolFilter,
    name_from_slug,
    slugify,
)
from .search import SearchResult, filter_items, search_catalog, tools_added_today
from .store import ContentStore, FailSoftContentStore, StoreError, seed

__all__ = [
    "Agent",
    "AgentFilter",
    "CatalogSnapshot",
    "Category",
    "ContentStore",
    "FailSoftContentStore",
    "Feature",
    "PricingPlan",
    "SearchResult",
    "StoreError",
    "Tool",
    "ToolFilter",
    "filter_items",
    "name_from_slug",
    "search_catalog",
    "seed",
    "slugify",
    "tools_added_today",
]
