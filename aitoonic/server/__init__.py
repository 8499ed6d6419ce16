"""Render dispatch, response caching and page rendering."""

from .cache import CacheEntry, ResponseCache, is_fresh
from .dispatch import HttpResponse, RenderDispatcher
from .document import DocumentShell
from .page import HeadMetadata, RenderedPage, Renderer, RendererError
from .render import SiteRenderer
from .routes import (
    DEFAULT_ROUTE_TABLE,
    MatchKind,
    RouteClass,
    RouteRule,
    TTLPolicy,
    classify,
)

__all__ = [
    "CacheEntry",
    "DEFAULT_ROUTE_TABLE",
    "DocumentShell",
    "HeadMetadata",
    "HttpResponse",
    "MatchKind",
    "RenderDispatcher",
    "RenderedPage",
    "Renderer",
    "RendererError",
    "ResponseCache",
    "RouteClass",
    "RouteRule",
    "SiteRenderer",
    "TTLPolicy",
    "classify",
    "is_fresh",
]
