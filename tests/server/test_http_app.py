"""End-to-end tests for the FastAPI surface."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient

from aitoonic.config import SiteSettings
from aitoonic.content.store import ContentStore
from aitoonic.server.http import create_site_app

AUTH = {"Authorization": "Bearer let-me-in"}


@pytest.fixture
def client(store: ContentStore, clock) -> TestClient:
    settings = SiteSettings(base_url="https://example.test", admin_token="let-me-in")
    app = create_site_app(settings, store=store, clock=clock.now)
    return TestClient(app)


def test_static_page_cached_between_requests(client: TestClient, clock) -> None:
    first = client.get("/")
    clock.advance(30 * 60)
    second = client.get("/")

    assert first.status_code == 200
    assert first.headers["content-type"] == "text/html; charset=utf-8"
    assert first.headers["cache-control"] == "public, max-age=3600"
    assert first.headers["x-render-cache"] == "MISS"
    assert second.headers["x-render-cache"] == "HIT"
    assert first.text == second.text
    assert '<link rel="canonical" href="https://example.test/" />' in first.text


def test_dynamic_page_expires_after_ttl(client: TestClient, clock) -> None:
    client.get("/ai/quill-bot")
    clock.advance(6 * 60)
    response = client.get("/ai/quill-bot")

    assert response.headers["x-render-cache"] == "MISS"
    assert response.headers["cache-control"] == "public, max-age=300"
    assert "application/ld+json" in response.text


def test_fresh_page_is_never_cached(client: TestClient) -> None:
    response = client.get("/admin", params={"tab": "agents"}, headers=AUTH)

    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"
    assert response.headers["x-render-cache"] == "BYPASS"
    assert '<meta name="robots" content="noindex, nofollow" />' in response.text
    assert "Retired Bot" in response.text
    assert len(client.app.state.site_state.cache) == 0


@pytest.mark.parametrize(
    "headers",
    [{}, {"Authorization": "Bearer nope"}, {"Authorization": "let-me-in"}],
)
def test_admin_page_requires_token(client: TestClient, headers: dict) -> None:
    response = client.get("/admin", params={"tab": "agents"}, headers=headers)

    assert response.status_code == 403
    assert "Retired Bot" not in response.text
    assert "agent-retired" not in response.text


def test_admin_subpaths_require_token(client: TestClient) -> None:
    assert client.get("/admin/").status_code == 403
    assert client.get("/admin/tools").status_code == 403
    assert client.get("/administrator").status_code == 404


def test_admin_page_disabled_without_configured_token(store: ContentStore) -> None:
    app = create_site_app(SiteSettings(), store=store)

    assert TestClient(app).get("/admin", headers=AUTH).status_code == 403


def test_unknown_page_is_a_real_404(client: TestClient) -> None:
    response = client.get("/ai/not-a-real-tool")

    assert response.status_code == 404
    assert "Tool Not Found" in response.text


def test_robots_txt(client: TestClient) -> None:
    response = client.get("/robots.txt")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["cache-control"] == "public, max-age=86400"
    assert "Sitemap: https://example.test/sitemap.xml" in response.text


def test_sitemap_xml(client: TestClient) -> None:
    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.headers["cache-control"].startswith("public, max-age=3600")
    assert "<loc>https://example.test/ai/quill-bot</loc>" in response.text


@pytest.mark.parametrize("path", ["/robots.txt", "/sitemap.xml"])
def test_seo_endpoints_reject_other_methods(client: TestClient, path: str) -> None:
    response = client.post(path)

    assert response.status_code == 405
    assert response.json() == {"message": "Method not allowed"}


def test_admin_write_requires_token(client: TestClient) -> None:
    payload = {"name": "Video", "description": "Edit clips"}

    assert client.put("/api/admin/categories", json=payload).status_code == 403
    wrong = client.put(
        "/api/admin/categories", json=payload, headers={"Authorization": "Bearer nope"}
    )
    assert wrong.status_code == 403


def test_admin_disabled_without_configured_token(store: ContentStore) -> None:
    app = create_site_app(SiteSettings(), store=store)
    response = TestClient(app).put(
        "/api/admin/categories", json={"name": "Video", "description": "x"}, headers=AUTH
    )

    assert response.status_code == 403


def test_admin_creates_and_updates_tool(client: TestClient, store: ContentStore) -> None:
    created = client.put(
        "/api/admin/tools",
        json={
            "name": "Beat Maker",
            "description": "Generates music loops",
            "url": "https://beats.example",
            "category_id": "cat-image",
            "pricing": [{"plan": "Free", "price": "$0"}],
        },
        headers=AUTH,
    )
    assert created.status_code == 200
    body = created.json()
    assert body["kind"] == "tools"
    assert body["slug"] == "beat-maker"

    updated = client.put(
        "/api/admin/tools",
        json={
            "id": body["id"],
            "name": "Beat Maker",
            "description": "Generates music loops and stems",
            "url": "https://beats.example",
            "category_id": "cat-image",
        },
        headers=AUTH,
    )
    assert updated.status_code == 200
    assert store.get_tool(body["id"]).description == "Generates music loops and stems"

    page = client.get("/ai/beat-maker")
    assert page.status_code == 200
    assert "Generates music loops and stems" in page.text


def test_admin_validation_errors(client: TestClient) -> None:
    response = client.put(
        "/api/admin/tools",
        json={"name": "  ", "description": "x", "url": "https://x.example", "category_id": "c"},
        headers=AUTH,
    )

    assert response.status_code == 422
    assert "Name is required" in response.text


def test_admin_agent_rejects_unknown_status(client: TestClient) -> None:
    response = client.put(
        "/api/admin/agents",
        json={"name": "Bot", "description": "Does things", "status": "paused"},
        headers=AUTH,
    )

    assert response.status_code == 422


def test_admin_store_failure_is_reported(client: TestClient, store: ContentStore) -> None:
    store.close()
    response = client.put(
        "/api/admin/categories",
        json={"name": "Video", "description": "Edit clips"},
        headers=AUTH,
    )

    assert response.status_code == 500
    assert response.json()["message"].startswith("Error saving item")


@pytest.mark.parametrize(
    ("kind", "present", "absent"),
    [
        ("main", "<loc>https://example.test/about</loc>", "/ai/quill-bot"),
        ("tools", "<loc>https://example.test/ai/quill-bot</loc>", "/category/"),
        ("categories", "<loc>https://example.test/category/empty-shelf</loc>", "/ai/"),
        ("agents", "<loc>https://example.test/ai-agent/mail-sorter</loc>", "retired-bot"),
    ],
)
def test_sitemap_by_kind(client: TestClient, kind: str, present: str, absent: str) -> None:
    response = client.get(f"/api/sitemap/{kind}.xml")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.headers["cache-control"] == "public, max-age=3600, stale-while-revalidate=86400"
    assert present in response.text
    assert absent not in response.text


def test_sitemap_by_kind_rejects_other_methods(client: TestClient) -> None:
    response = client.delete("/api/sitemap/tools.xml")

    assert response.status_code == 405
    assert response.json() == {"message": "Method not allowed"}


def test_sitemap_unknown_kind(client: TestClient) -> None:
    response = client.get("/api/sitemap/users.xml")

    assert response.status_code == 404
    assert response.json() == {"message": "Unknown sitemap type: users"}
