"""Renderer contract shared by the dispatcher, renderer and static builder."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from ..errors import AitoonicError


class RendererError(AitoonicError):
    """Raised when a page cannot be rendered."""


@dataclass(frozen=True)
class HeadMetadata:
    """Tags injected into the document ``<head>``."""

    title: str
    description: str | None = None
    robots: str | None = None
    canonical: str | None = None
    open_graph: Mapping[str, str] = field(default_factory=dict)
    json_ld: Mapping[str, Any] | None = None

    @property
    def indexable(self) -> bool:
        return not self.robots or "noindex" not in self.robots


@dataclass(frozen=True)
class RenderedPage:
    """Page fragment plus its head metadata and status code."""

    body: str
    head: HeadMetadata
    status_code: int = 200


class Renderer(Protocol):
    def render(self, path: str) -> RenderedPage:  # pragma: no cover - protocol
        ...


__all__ = ["HeadMetadata", "RenderedPage", "Renderer", "RendererError"]
