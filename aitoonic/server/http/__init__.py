"""FastAPI wiring for the site."""

from .app import SiteRuntimeState, build_runtime, create_site_app

__all__ = ["SiteRuntimeState", "build_runtime", "create_site_app"]
