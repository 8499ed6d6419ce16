"""Pre-render static and catalogue routes to HTML files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from ..content.models import CatalogSnapshot
from .document import DocumentShell
from .page import Renderer
from .routes import STATIC_PATHS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaticBuildResult:
    written: tuple[Path, ...]
    failed: tuple[str, ...]


def catalogue_routes(snapshot: CatalogSnapshot) -> list[str]:
    routes = [f"/ai/{tool.slug}" for tool in snapshot.tools]
    routes.extend(f"/category/{category.slug}" for category in snapshot.categories)
    routes.extend(f"/ai-agent/{agent.slug}" for agent in snapshot.agents if agent.is_active)
    return routes


def output_path(output_dir: Path, route: str) -> Path:
    relative = route.strip("/")
    if not relative:
        return output_dir / "index.html"
    return output_dir / relative / "index.html"


def build_static_site(
    renderer: Renderer,
    snapshot: CatalogSnapshot,
    output_dir: Path,
    *,
    document: DocumentShell | None = None,
    static_routes: Iterable[str] = STATIC_PATHS,
) -> StaticBuildResult:
    """Render every static route plus one page per catalogue entity.

    A route that fails to render is logged and skipped; the rest of the
    build carries on.
    """

    shell = document or DocumentShell()
    output_dir = Path(output_dir)
    written: list[Path] = []
    failed: list[str] = []
    root = output_dir.resolve()
    for route in [*static_routes, *catalogue_routes(snapshot)]:
        target = output_path(output_dir, route)
        if not target.resolve().is_relative_to(root):
            logger.error("Refusing to write %s outside %s", route, root)
            failed.append(route)
            continue
        try:
            html = shell.compose(renderer.render(route))
        except Exception:
            logger.exception("Error generating %s", route)
            failed.append(route)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        written.append(target)
        logger.info("Generated %s", target.relative_to(output_dir))
    return StaticBuildResult(written=tuple(written), failed=tuple(failed))


__all__ = ["StaticBuildResult", "build_static_site", "catalogue_routes", "output_path"]
