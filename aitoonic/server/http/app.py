"""HTTP application wiring for the render dispatcher and admin API."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Sequence

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ...config import SiteSettings
from ...content.store import ContentStore, FailSoftContentStore, StoreError
from ..cache import ResponseCache, utc_now
from ..dispatch import RenderDispatcher
from ..document import DocumentShell
from ..render import SiteRenderer
from ..routes import TTLPolicy, is_admin_path
from ..sitemap import (
    ROBOTS_CACHE_CONTROL,
    SITEMAP_CACHE_CONTROL,
    SITEMAP_KINDS,
    build_robots,
    build_sitemap,
)
from .models import (
    AgentPayload,
    CategoryPayload,
    MessageResponse,
    StoredItemResponse,
    ToolPayload,
)

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class SiteRuntimeState:
    """Objects shared across HTTP handlers."""

    settings: SiteSettings
    store: ContentStore
    reader: FailSoftContentStore
    cache: ResponseCache
    dispatcher: RenderDispatcher
    clock: Callable[[], datetime]


def build_runtime(
    settings: SiteSettings,
    *,
    store: ContentStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> SiteRuntimeState:
    """Construct the store, renderer, cache and dispatcher for one process."""

    now = clock or utc_now
    content_store = store or ContentStore(settings.database)
    reader = FailSoftContentStore(content_store)
    renderer = SiteRenderer(reader, settings, clock=now)
    cache = ResponseCache(clock=now)
    dispatcher = RenderDispatcher(
        renderer,
        cache,
        ttl_policy=TTLPolicy(static=settings.static_ttl, dynamic=settings.dynamic_ttl),
        document=DocumentShell(site_name=settings.site_name),
        single_flight=settings.single_flight,
    )
    return SiteRuntimeState(
        settings=settings,
        store=content_store,
        reader=reader,
        cache=cache,
        dispatcher=dispatcher,
        clock=now,
    )


def create_site_app(
    settings: SiteSettings | None = None,
    *,
    store: ContentStore | None = None,
    clock: Callable[[], datetime] | None = None,
) -> FastAPI:
    """Create the FastAPI app serving pages, robots/sitemap and the admin API."""

    state = build_runtime(settings or SiteSettings(), store=store, clock=clock)
    app = FastAPI(title=state.settings.site_name)
    app.state.site_state = state
    app.include_router(_SEO_ROUTER)
    app.include_router(_ADMIN_ROUTER)
    app.include_router(_PAGE_ROUTER)
    return app


def _get_site_state(request: Request) -> SiteRuntimeState:
    state = getattr(request.app.state, "site_state", None)
    if state is None:
        raise RuntimeError("Site runtime state is not configured")
    return state


def _method_not_allowed() -> JSONResponse:
    return JSONResponse(
        status_code=405,
        content=MessageResponse(message="Method not allowed").model_dump(),
        headers={"Allow": "GET"},
    )


_SEO_ROUTER = APIRouter()


@_SEO_ROUTER.api_route("/robots.txt", methods=_ALL_METHODS, include_in_schema=False)
def robots_txt(
    request: Request, state: SiteRuntimeState = Depends(_get_site_state)
) -> Response:
    if request.method != "GET":
        return _method_not_allowed()
    return PlainTextResponse(
        build_robots(state.settings.base_url),
        headers={"Cache-Control": ROBOTS_CACHE_CONTROL},
    )


def _sitemap_response(state: SiteRuntimeState, kinds: Sequence[str] = SITEMAP_KINDS) -> Response:
    try:
        payload = build_sitemap(
            state.reader.snapshot(), state.settings.base_url, state.clock(), kinds=kinds
        )
    except Exception:
        logger.exception("Error generating sitemap")
        return JSONResponse(status_code=500, content={"message": "Error generating sitemap"})
    return Response(
        payload,
        media_type="application/xml",
        headers={"Cache-Control": SITEMAP_CACHE_CONTROL},
    )


@_SEO_ROUTER.api_route("/sitemap.xml", methods=_ALL_METHODS, include_in_schema=False)
def sitemap_xml(
    request: Request, state: SiteRuntimeState = Depends(_get_site_state)
) -> Response:
    if request.method != "GET":
        return _method_not_allowed()
    return _sitemap_response(state)


@_SEO_ROUTER.api_route(
    "/api/sitemap/{kind}.xml", methods=_ALL_METHODS, include_in_schema=False
)
def sitemap_by_kind(
    kind: str, request: Request, state: SiteRuntimeState = Depends(_get_site_state)
) -> Response:
    if request.method != "GET":
        return _method_not_allowed()
    if kind not in SITEMAP_KINDS:
        return JSONResponse(
            status_code=404,
            content=MessageResponse(message=f"Unknown sitemap type: {kind}").model_dump(),
        )
    return _sitemap_response(state, (kind,))


def _check_admin_token(state: SiteRuntimeState, authorization: str | None) -> None:
    expected = state.settings.admin_token
    if expected is None:
        raise HTTPException(status_code=403, detail="Admin access is not configured")
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not secrets.compare_digest(token.strip(), expected):
        raise HTTPException(status_code=403, detail="Invalid admin credentials")


def _require_admin(
    state: SiteRuntimeState = Depends(_get_site_state),
    authorization: str | None = Header(None),
) -> SiteRuntimeState:
    _check_admin_token(state, authorization)
    return state


def _store_failure(kind: str, exc: StoreError) -> JSONResponse:
    logger.error("Error saving %s: %s", kind, exc)
    return JSONResponse(
        status_code=500,
        content=MessageResponse(message=f"Error saving item: {exc}").model_dump(),
    )


_ADMIN_ROUTER = APIRouter(prefix="/api/admin")


@_ADMIN_ROUTER.put("/tools", response_model=StoredItemResponse, name="admin-upsert-tool")
def upsert_tool(
    payload: ToolPayload, state: SiteRuntimeState = Depends(_require_admin)
) -> StoredItemResponse | JSONResponse:
    try:
        tool = state.store.upsert_tool(payload.to_values())
    except StoreError as exc:
        return _store_failure("tools", exc)
    return StoredItemResponse.from_item("tools", tool)


@_ADMIN_ROUTER.put(
    "/categories", response_model=StoredItemResponse, name="admin-upsert-category"
)
def upsert_category(
    payload: CategoryPayload, state: SiteRuntimeState = Depends(_require_admin)
) -> StoredItemResponse | JSONResponse:
    try:
        category = state.store.upsert_category(payload.to_values())
    except StoreError as exc:
        return _store_failure("categories", exc)
    return StoredItemResponse.from_item("categories", category)


@_ADMIN_ROUTER.put("/agents", response_model=StoredItemResponse, name="admin-upsert-agent")
def upsert_agent(
    payload: AgentPayload, state: SiteRuntimeState = Depends(_require_admin)
) -> StoredItemResponse | JSONResponse:
    try:
        agent = state.store.upsert_agent(payload.to_values())
    except StoreError as exc:
        return _store_failure("agents", exc)
    return StoredItemResponse.from_item("agents", agent)


_PAGE_ROUTER = APIRouter()


def _request_target(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


@_PAGE_ROUTER.get("/{path:path}", name="page", include_in_schema=False)
async def render_page(
    request: Request,
    state: SiteRuntimeState = Depends(_get_site_state),
    authorization: str | None = Header(None),
) -> Response:
    target = _request_target(request)
    if is_admin_path(target):
        _check_admin_token(state, authorization)
    result = await run_in_threadpool(state.dispatcher.handle, target)
    return Response(
        content=result.body,
        status_code=result.status_code,
        headers=dict(result.headers),
    )


__all__ = ["SiteRuntimeState", "build_runtime", "create_site_app"]
