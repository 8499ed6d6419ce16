"""Command line entry point: serve the site or pre-render it to disk."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .config import SiteSettings
from .content.store import ContentStore, FailSoftContentStore
from .server.document import DocumentShell
from .server.render import SiteRenderer
from .server.static_build import build_static_site


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aitoonic", description=__doc__)
    parser.add_argument("--database", help="DuckDB database path (overrides AITOONIC_DATABASE)")
    parser.add_argument("--log-level", default="INFO")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP server")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)

    build = commands.add_parser("build-static", help="Pre-render pages to HTML files")
    build.add_argument("--output", type=Path, default=Path("dist/static"))
    return parser


def _settings(args: argparse.Namespace) -> SiteSettings:
    settings = SiteSettings.from_env()
    if args.database:
        settings = replace(settings, database=args.database)
    return settings


def _serve(settings: SiteSettings, host: str, port: int) -> int:
    import uvicorn

    from .server.http.app import create_site_app

    uvicorn.run(create_site_app(settings), host=host, port=port)
    return 0


def _build_static(settings: SiteSettings, output: Path) -> int:
    store = ContentStore(settings.database)
    try:
        reader = FailSoftContentStore(store)
        result = build_static_site(
            SiteRenderer(reader, settings),
            reader.snapshot(),
            output,
            document=DocumentShell(site_name=settings.site_name),
        )
    finally:
        store.close()
    logging.getLogger(__name__).info(
        "Static build complete: %d pages written, %d failed",
        len(result.written),
        len(result.failed),
    )
    return 1 if result.failed else 0


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = _settings(args)
    if args.command == "serve":
        return _serve(settings, args.host, args.port)
    return _build_static(settings, args.output)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
