"""robots.txt and sitemap.xml generation from the catalogue."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Iterator, Protocol, Sequence

from jinja2 import Environment

from ..content.models import CatalogSnapshot
from .templating import default_environment

SITEMAP_CACHE_CONTROL = "public, max-age=3600, stale-while-revalidate=86400"
ROBOTS_CACHE_CONTROL = "public, max-age=86400"
SITEMAP_KINDS = ("main", "tools", "categories", "agents")


class _Listed(Protocol):
    @property
    def slug(self) -> str: ...

    @property
    def last_modified(self) -> datetime | None: ...


@dataclass(frozen=True)
class SitemapUrl:
    loc: str
    changefreq: str
    priority: str
    lastmod: str | None = None


@dataclass(frozen=True)
class _StaticPage:
    path: str
    changefreq: str
    priority: str
    dated: bool = False


STATIC_PAGES: tuple[_StaticPage, ...] = (
    _StaticPage("/", "daily", "1.0", dated=True),
    _StaticPage("/categories", "daily", "0.9", dated=True),
    _StaticPage("/ai-agent", "daily", "0.9", dated=True),
    _StaticPage("/about", "monthly", "0.7"),
    _StaticPage("/contact", "monthly", "0.7"),
    _StaticPage("/terms", "monthly", "0.5"),
    _StaticPage("/privacy", "monthly", "0.5"),
    _StaticPage("/advertise", "monthly", "0.7"),
    _StaticPage("/affiliate", "monthly", "0.5"),
)


def _isoformat(moment: datetime | None) -> str | None:
    return None if moment is None else moment.isoformat()


def _entity_urls(
    base_url: str, prefix: str, items: Iterable[_Listed]
) -> Iterator[SitemapUrl]:
    for item in items:
        yield SitemapUrl(
            loc=f"{base_url}{prefix}{item.slug}",
            lastmod=_isoformat(item.last_modified),
            changefreq="weekly",
            priority="0.8",
        )


def _urls_for_kind(
    kind: str, snapshot: CatalogSnapshot, base_url: str, now: datetime
) -> Iterator[SitemapUrl]:
    if kind == "main":
        stamp = now.isoformat()
        for page in STATIC_PAGES:
            yield SitemapUrl(
                loc=f"{base_url}{page.path}",
                changefreq=page.changefreq,
                priority=page.priority,
                lastmod=stamp if page.dated else None,
            )
    elif kind == "tools":
        yield from _entity_urls(base_url, "/ai/", snapshot.tools)
    elif kind == "categories":
        yield from _entity_urls(base_url, "/category/", snapshot.categories)
    elif kind == "agents":
        active = (agent for agent in snapshot.agents if agent.is_active)
        yield from _entity_urls(base_url, "/ai-agent/", active)
    else:
        raise ValueError(f"Unknown sitemap kind {kind!r}")


def sitemap_urls(
    snapshot: CatalogSnapshot,
    base_url: str,
    now: datetime,
    *,
    kinds: Sequence[str] = SITEMAP_KINDS,
) -> list[SitemapUrl]:
    """Static pages first, then every tool, category and active agent.

    ``kinds`` narrows the listing to a subset of :data:`SITEMAP_KINDS`, in
    the order given.
    """

    base = base_url.rstrip("/")
    return [url for kind in kinds for url in _urls_for_kind(kind, snapshot, base, now)]


def build_sitemap(
    snapshot: CatalogSnapshot,
    base_url: str,
    now: datetime,
    *,
    kinds: Sequence[str] = SITEMAP_KINDS,
    env: Environment | None = None,
) -> str:
    template = (env or default_environment()).get_template("sitemap.xml")
    return template.render(urls=sitemap_urls(snapshot, base_url, now, kinds=kinds))


def build_robots(base_url: str) -> str:
    base = base_url.rstrip("/")
    return "\n".join(
        (
            "# Allow all crawlers",
            "User-agent: *",
            "Allow: /",
            "",
            "# Sitemap location",
            f"Sitemap: {base}/sitemap.xml",
            "",
            "# Disallow admin area",
            "Disallow: /admin",
            "",
            "# Crawl-delay",
            "Crawl-delay: 10",
            "",
            "# Static assets",
            "Allow: /*.js",
            "Allow: /*.css",
            "Allow: /*.png",
            "Allow: /*.jpg",
            "Allow: /*.gif",
            "Allow: /*.svg",
            "Allow: /*.ico",
            "",
            "# Prevent duplicate content",
            "Disallow: /*?*",
            "Disallow: /*?",
        )
    )


__all__ = [
    "ROBOTS_CACHE_CONTROL",
    "SITEMAP_CACHE_CONTROL",
    "SITEMAP_KINDS",
    "STATIC_PAGES",
    "SitemapUrl",
    "build_robots",
    "build_sitemap",
    "sitemap_urls",
]
