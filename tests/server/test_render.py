"""Page rendering against a seeded in-memory catalogue."""

from __future__ import annotations

import pytest

from aitoonic.config import SiteSettings
from aitoonic.content.store import ContentStore, FailSoftContentStore
from aitoonic.server.render import INFO_PAGES, NOINDEX, SiteRenderer


@pytest.fixture
def renderer(reader: FailSoftContentStore, clock) -> SiteRenderer:
    settings = SiteSettings(base_url="https://example.test/", auth_url="https://auth.example.test/login")
    return SiteRenderer(reader, settings, clock=clock.now)


def test_home_lists_categories_and_todays_tools(renderer: SiteRenderer) -> None:
    page = renderer.render("/")

    assert page.status_code == 200
    assert page.head.title.endswith("| Aitoonic")
    assert page.head.canonical == "https://example.test/"
    assert 'href="/category/image-generation"' in page.body
    today = page.body.split('class="today"', 1)[1].split('class="latest"', 1)[0]
    assert "Pixel Forge" in today
    assert "Quill Bot" not in today


def test_categories_page_hides_empty_categories(renderer: SiteRenderer) -> None:
    page = renderer.render("/categories")

    assert "Writing" in page.body
    assert "Empty Shelf" not in page.body
    assert page.body.index("Writing") < page.body.index("Image Generation")


def test_category_page_lists_its_tools(renderer: SiteRenderer) -> None:
    page = renderer.render("/category/writing")

    assert page.status_code == 200
    assert "Quill Bot" in page.body and "Ink Writer" in page.body
    assert "Pixel Forge" not in page.body
    assert page.head.description == "Draft and edit text"


def test_tool_page_has_structured_data(renderer: SiteRenderer) -> None:
    page = renderer.render("/ai/quill-bot")

    assert page.status_code == 200
    assert page.head.canonical == "https://example.test/ai/quill-bot"
    assert page.head.open_graph["og:type"] == "product"
    assert page.head.json_ld is not None
    assert page.head.json_ld["@type"] == "SoftwareApplication"
    assert page.head.json_ld["offers"]["price"] == "9"
    assert "Tone control" in page.body
    assert "Added Feb 20, 2024" in page.body
    assert "Ink Writer" in page.body.split('class="similar"', 1)[1]


def test_tool_lookup_is_case_insensitive(renderer: SiteRenderer) -> None:
    assert renderer.render("/ai/QUILL-BOT").status_code == 200


@pytest.mark.parametrize(
    ("path", "heading"),
    [
        ("/ai/does-not-exist", "Tool Not Found"),
        ("/category/nope", "Category Not Found"),
        ("/ai-agent/nobody", "Agent Not Found"),
        ("/no/such/page", "Page Not Found"),
    ],
)
def test_missing_pages_render_not_found(renderer: SiteRenderer, path: str, heading: str) -> None:
    page = renderer.render(path)

    assert page.status_code == 404
    assert heading in page.body
    assert page.head.robots == NOINDEX
    assert not page.head.indexable


def test_agents_page_shows_active_agents_only(renderer: SiteRenderer) -> None:
    page = renderer.render("/ai-agent")

    assert "Research Scout" in page.body
    assert "Mail Sorter" in page.body
    assert "Retired Bot" not in page.body


def test_agent_page(renderer: SiteRenderer) -> None:
    page = renderer.render("/ai-agent/research-scout")

    assert page.status_code == 200
    assert "Available 24/7" in page.body
    assert "web search" in page.body
    assert "Mail Sorter" in page.body


def test_search_matches_tools_before_categories(renderer: SiteRenderer) -> None:
    page = renderer.render("/search?q=writ")

    assert page.head.robots == "noindex, follow"
    assert page.body.index("/ai/ink-writer") < page.body.index("/category/writing")


def test_search_without_term_renders_form(renderer: SiteRenderer) -> None:
    page = renderer.render("/search")

    assert page.status_code == 200
    assert 'class="results"' not in page.body


def test_compare_page(renderer: SiteRenderer) -> None:
    page = renderer.render("/compare/quill-bot,pixel-forge,unknown")

    assert "Compare Quill Bot vs Pixel Forge" in page.body
    assert "Image Generation" in page.body


def test_compare_with_no_known_tools_is_not_found(renderer: SiteRenderer) -> None:
    assert renderer.render("/compare/nothing,here").status_code == 404


def test_admin_tabs_and_filter(renderer: SiteRenderer) -> None:
    tools = renderer.render("/admin")
    agents = renderer.render("/admin?tab=agents&q=bot")
    bogus = renderer.render("/admin?tab=secrets")

    assert "tool-quill" in tools.body
    assert "Retired Bot" in agents.body
    assert "Research Scout" not in agents.body
    assert "tool-quill" in bogus.body
    assert tools.head.robots == NOINDEX


def test_login_links_to_auth_provider(renderer: SiteRenderer) -> None:
    page = renderer.render("/login")

    assert 'href="https://auth.example.test/login"' in page.body


def test_html_sitemap_lists_everything(renderer: SiteRenderer) -> None:
    page = renderer.render("/sitemap")

    for name in ("Quill Bot", "Pixel Forge", "Empty Shelf", "Research Scout"):
        assert name in page.body
    assert "Retired Bot" not in page.body


@pytest.mark.parametrize("path", sorted(INFO_PAGES))
def test_info_pages(renderer: SiteRenderer, path: str) -> None:
    page = renderer.render(path)

    assert page.status_code == 200
    assert page.head.canonical == f"https://example.test{path}"


def test_user_content_is_escaped(store: ContentStore, reader: FailSoftContentStore) -> None:
    store.upsert_tool(
        {
            "name": "Sneaky",
            "description": "<script>alert(1)</script>",
            "url": "https://sneaky.example",
            "category_id": "cat-writing",
        }
    )
    page = SiteRenderer(reader).render("/ai/sneaky")

    assert "<script>alert(1)</script>" not in page.body
    assert "&lt;script&gt;" in page.body


def test_unreachable_store_degrades_to_empty_pages(store: ContentStore, reader: FailSoftContentStore) -> None:
    store.close()
    renderer = SiteRenderer(reader)

    home = renderer.render("/")
    tool = renderer.render("/ai/quill-bot")

    assert home.status_code == 200
    assert "No categories yet." in home.body
    assert tool.status_code == 404
    assert reader.last_error is not None


def test_compare_accepts_vs_separator(renderer: SiteRenderer) -> None:
    page = renderer.render("/compare/quill-bot-vs-ink-writer")

    assert page.status_code == 200
    assert "Compare Quill Bot vs Ink Writer" in page.body


def test_tool_page_links_to_comparison(renderer: SiteRenderer) -> None:
    page = renderer.render("/ai/quill-bot")

    assert 'href="/compare/quill-bot-vs-ink-writer"' in page.body
    assert "Compare with Ink Writer" in page.body
