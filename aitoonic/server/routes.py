"""Route classification table and per-class cache lifetimes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Iterable, Sequence
from urllib.parse import urlsplit


class RouteClass(str, Enum):
    """How a request path is rendered and cached."""

    FRESH = "fresh"
    STATIC = "static"
    DYNAMIC = "dynamic"


class MatchKind(str, Enum):
    EXACT = "exact"
    PREFIX = "prefix"


@dataclass(frozen=True)
class RouteRule:
    """One row of the classification table."""

    match: MatchKind
    pattern: str
    route_class: RouteClass

    def matches(self, path: str) -> bool:
        if self.match is MatchKind.EXACT:
            return path == self.pattern
        if self.pattern == "/":
            return True
        return path == self.pattern or path.startswith(self.pattern.rstrip("/") + "/")


def _rules(match: MatchKind, route_class: RouteClass, patterns: Iterable[str]) -> tuple[RouteRule, ...]:
    return tuple(RouteRule(match, pattern, route_class) for pattern in patterns)


ADMIN_PREFIX = "/admin"
FRESH_PREFIXES = (ADMIN_PREFIX, "/login", "/search", "/compare")
STATIC_PATHS = (
    "/",
    "/categories",
    "/ai-agent",
    "/about",
    "/contact",
    "/terms",
    "/privacy",
    "/advertise",
    "/affiliate",
    "/sitemap",
)

DEFAULT_ROUTE_TABLE: tuple[RouteRule, ...] = (
    *_rules(MatchKind.PREFIX, RouteClass.FRESH, FRESH_PREFIXES),
    *_rules(MatchKind.EXACT, RouteClass.STATIC, STATIC_PATHS),
)


def request_path(target: str) -> str:
    """Strip the query string and fragment from a request target."""

    path = urlsplit(target).path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def is_admin_path(target: str) -> bool:
    """Return ``True`` for the admin page and anything below it."""

    rule = RouteRule(MatchKind.PREFIX, ADMIN_PREFIX, RouteClass.FRESH)
    return rule.matches(request_path(target))


def classify(target: str, table: Sequence[RouteRule] = DEFAULT_ROUTE_TABLE) -> RouteClass:
    """Classify ``target``; fresh rules win over static, everything else is dynamic."""

    path = request_path(target)
    for route_class in (RouteClass.FRESH, RouteClass.STATIC):
        if any(rule.matches(path) for rule in table if rule.route_class is route_class):
            return route_class
    return RouteClass.DYNAMIC


@dataclass(frozen=True)
class TTLPolicy:
    """Cache lifetime per route class; fresh routes are never cached."""

    static: timedelta = timedelta(hours=1)
    dynamic: timedelta = timedelta(minutes=5)

    def __post_init__(self) -> None:
        if self.static <= timedelta(0) or self.dynamic <= timedelta(0):
            raise ValueError("ttl values must be positive")

    def ttl_for(self, route_class: RouteClass) -> timedelta:
        if route_class is RouteClass.STATIC:
            return self.static
        if route_class is RouteClass.DYNAMIC:
            return self.dynamic
        return timedelta(0)


__all__ = [
    "ADMIN_PREFIX",
    "DEFAULT_ROUTE_TABLE",
    "FRESH_PREFIXES",
    "STATIC_PATHS",
    "MatchKind",
    "RouteClass",
    "RouteRule",
    "TTLPolicy",
    "classify",
    "is_admin_path",
    "request_path",
]
