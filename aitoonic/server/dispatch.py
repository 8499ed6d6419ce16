"""Decide per request whether to render fresh or serve from the response cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Mapping, Sequence

from .cache import CacheEntry, ResponseCache
from .document import SERVER_ERROR_HTML, DocumentShell
from .page import HeadMetadata, Renderer
from .routes import DEFAULT_ROUTE_TABLE, RouteClass, RouteRule, TTLPolicy, classify

logger = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html; charset=utf-8"
NO_STORE = "no-store"
CACHE_STATUS_HEADER = "X-Render-Cache"


class CacheStatus:
    HIT = "HIT"
    MISS = "MISS"
    BYPASS = "BYPASS"
    ERROR = "ERROR"


@dataclass(frozen=True)
class HttpResponse:
    """Framework-neutral response produced by :meth:`RenderDispatcher.handle`."""

    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)
    route_class: RouteClass | None = None

    @property
    def cache_status(self) -> str | None:
        return self.headers.get(CACHE_STATUS_HEADER)

    @property
    def cache_control(self) -> str | None:
        return self.headers.get("Cache-Control")


@dataclass(frozen=True)
class _Document:
    status_code: int
    body: str
    head: HeadMetadata


def public_cache_control(ttl: timedelta) -> str:
    return f"public, max-age={int(ttl.total_seconds())}"


def _headers(cache_control: str, cache_status: str) -> dict[str, str]:
    return {
        "Content-Type": HTML_MEDIA_TYPE,
        "Cache-Control": cache_control,
        CACHE_STATUS_HEADER: cache_status,
    }


def server_error_response(route_class: RouteClass | None = None) -> HttpResponse:
    return HttpResponse(
        status_code=500,
        body=SERVER_ERROR_HTML,
        headers=_headers(NO_STORE, CacheStatus.ERROR),
        route_class=route_class,
    )


class RenderDispatcher:
    """Single entry point that classifies a request target and serves it.

    Fresh targets always render and never touch the cache. Static and
    dynamic targets are served from the cache while the entry is younger
    than the class TTL; otherwise they are rendered and stored. A failed
    render never falls back to a stale entry and never writes the cache.
    """

    def __init__(
        self,
        renderer: Renderer,
        cache: ResponseCache,
        *,
        clock: Callable[[], datetime] | None = None,
        routes: Sequence[RouteRule] = DEFAULT_ROUTE_TABLE,
        ttl_policy: TTLPolicy | None = None,
        document: DocumentShell | None = None,
        single_flight: bool = False,
    ) -> None:
        self._renderer = renderer
        self._cache = cache
        self._clock = clock or cache.clock
        self._routes = tuple(routes)
        self._ttl_policy = ttl_policy or TTLPolicy()
        self._document = document or DocumentShell()
        self._single_flight = single_flight

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def classify(self, path: str) -> RouteClass:
        return classify(path, self._routes)

    def handle(self, path: str) -> HttpResponse:
        route_class = self.classify(path)
        if route_class is RouteClass.FRESH:
            return self._render_fresh(path)
        return self._serve_cached(path, route_class)

    def _render_fresh(self, path: str) -> HttpResponse:
        document = self._render(path, RouteClass.FRESH)
        if document is None:
            return server_error_response(RouteClass.FRESH)
        return HttpResponse(
            status_code=document.status_code,
            body=document.body,
            headers=_headers(NO_STORE, CacheStatus.BYPASS),
            route_class=RouteClass.FRESH,
        )

    def _serve_cached(self, path: str, route_class: RouteClass) -> HttpResponse:
        ttl = self._ttl_policy.ttl_for(route_class)
        if (hit := self._lookup(path, ttl)) is not None:
            return self._from_entry(hit, ttl, route_class)
        if not self._single_flight:
            return self._refresh(path, route_class, ttl)
        with self._cache.lock_for(path):
            if (hit := self._lookup(path, ttl)) is not None:
                return self._from_entry(hit, ttl, route_class)
            return self._refresh(path, route_class, ttl)

    def _lookup(self, path: str, ttl: timedelta) -> CacheEntry | None:
        return self._cache.get_fresh(path, ttl, now=self._clock())

    def _refresh(self, path: str, route_class: RouteClass, ttl: timedelta) -> HttpResponse:
        document = self._render(path, route_class)
        if document is None:
            return server_error_response(route_class)
        entry = CacheEntry(
            path=path,
            body=document.body,
            head=document.head,
            stored_at=self._clock(),
            status_code=document.status_code,
        )
        self._cache.put(path, entry)
        logger.debug("Cached %s render of %s", route_class.value, path)
        return HttpResponse(
            status_code=document.status_code,
            body=document.body,
            headers=_headers(public_cache_control(ttl), CacheStatus.MISS),
            route_class=route_class,
        )

    def _render(self, path: str, route_class: RouteClass) -> _Document | None:
        try:
            page = self._renderer.render(path)
            body = self._document.compose(page)
        except Exception:
            logger.exception("Rendering %s (%s) failed", path, route_class.value)
            return None
        return _Document(page.status_code, body, page.head)

    def _from_entry(
        self, entry: CacheEntry, ttl: timedelta, route_class: RouteClass
    ) -> HttpResponse:
        return HttpResponse(
            status_code=entry.status_code,
            body=entry.body,
            headers=_headers(public_cache_control(ttl), CacheStatus.HIT),
            route_class=route_class,
        )


__all__ = [
    "CACHE_STATUS_HEADER",
    "CacheStatus",
    "HTML_MEDIA_TYPE",
    "HttpResponse",
    "RenderDispatcher",
    "public_cache_control",
    "server_error_response",
]
