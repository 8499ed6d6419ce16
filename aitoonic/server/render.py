"""Server-side page renderer for the catalogue site."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from urllib.parse import parse_qs, unquote, urlsplit

from jinja2 import Environment, TemplateError

from ..config import SiteSettings
from ..content.models import AgentFilter, Tool, ToolFilter, name_from_slug
from ..content.search import (
    filter_items,
    newest_tools,
    search_catalog,
    tools_added_today,
)
from ..content.store import FailSoftContentStore
from .page import HeadMetadata, RenderedPage, RendererError
from .routes import request_path
from .templating import default_environment

HOME_CATEGORY_LIMIT = 10
HOME_TOOL_LIMIT = 50
SIMILAR_TOOL_LIMIT = 4
SIMILAR_AGENT_LIMIT = 3
ADMIN_TABS = ("tools", "categories", "agents")
NOINDEX = "noindex, nofollow"
DEFAULT_TOOL_IMAGE = "https://i.imgur.com/ZXqf6Kx.png"
_COMPARE_SEPARATOR = re.compile(r",|-vs-")

INFO_PAGES: Mapping[str, tuple[str, str]] = {
    "/about": (
        "About Us",
        "We collect and review AI tools and agents so you can find the right one quickly.",
    ),
    "/contact": (
        "Contact",
        "Questions, corrections or partnership ideas are welcome by email.",
    ),
    "/terms": (
        "Terms & Conditions",
        "Listings are provided as-is. Tool names and logos belong to their owners.",
    ),
    "/privacy": (
        "Privacy Policy",
        "We only collect the data needed to operate the directory and never sell it.",
    ),
    "/advertise": (
        "Publish Your Tool",
        "Get your AI tool in front of people actively looking for one.",
    ),
    "/affiliate": (
        "Affiliate Disclaimer",
        "Some outbound links are affiliate links; this never changes our listings.",
    ),
}


@dataclass(frozen=True)
class _Request:
    path: str
    query: Mapping[str, list[str]]

    def param(self, name: str, default: str = "") -> str:
        values = self.query.get(name)
        return values[0] if values else default


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_request(target: str) -> _Request:
    return _Request(
        path=request_path(target),
        query=parse_qs(urlsplit(target).query, keep_blank_values=True),
    )


class SiteRenderer:
    """Render a request target to a page fragment plus head metadata.

    Reads go through :class:`FailSoftContentStore`, so an unreachable
    database renders empty listings or "not found" pages instead of raising.
    """

    def __init__(
        self,
        store: FailSoftContentStore,
        settings: SiteSettings | None = None,
        *,
        env: Environment | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or SiteSettings()
        self._env = env or default_environment()
        self._clock = clock or _utc_now
        self._routes: tuple[tuple[re.Pattern[str], Callable[..., RenderedPage]], ...] = (
            (re.compile(r"^/$"), self._home),
            (re.compile(r"^/categories$"), self._categories),
            (re.compile(r"^/category/(?P<slug>[^/]+)$"), self._category),
            (re.compile(r"^/ai/(?P<slug>[^/]+)$"), self._tool),
            (re.compile(r"^/ai-agent$"), self._agents),
            (re.compile(r"^/ai-agent/(?P<slug>[^/]+)$"), self._agent),
            (re.compile(r"^/search$"), self._search),
            (re.compile(r"^/compare/(?P<slugs>[^/]+)$"), self._compare),
            (re.compile(r"^/admin$"), self._admin),
            (re.compile(r"^/login$"), self._login),
            (re.compile(r"^/sitemap$"), self._sitemap),
        )

    def render(self, path: str) -> RenderedPage:
        request = _parse_request(path)
        if request.path in INFO_PAGES:
            return self._info(request)
        for pattern, handler in self._routes:
            match = pattern.match(request.path)
            if match is not None:
                arguments = {name: unquote(value) for name, value in match.groupdict().items()}
                return handler(request, **arguments)
        return self._not_found(request, "Page Not Found")

    # Helpers ---------------------------------------------------------------

    def _page(
        self,
        template_name: str,
        head: HeadMetadata,
        *,
        status_code: int = 200,
        **context: Any,
    ) -> RenderedPage:
        try:
            body = self._env.get_template(template_name).render(
                site=self._settings, head=head, **context
            )
        except TemplateError as exc:
            raise RendererError(f"Template {template_name!r} failed: {exc}") from exc
        return RenderedPage(body=body, head=head, status_code=status_code)

    def _title(self, text: str) -> str:
        return f"{text} | {self._settings.site_name}"

    def _canonical(self, path: str) -> str:
        return self._settings.base_url + path

    def _head(
        self,
        request: _Request,
        title: str,
        description: str | None = None,
        *,
        robots: str | None = None,
        image: str | None = None,
        og_type: str = "website",
        json_ld: Mapping[str, Any] | None = None,
    ) -> HeadMetadata:
        open_graph = {"og:title": title, "og:type": og_type}
        if description:
            open_graph["og:description"] = description
        if image:
            open_graph["og:image"] = image
        return HeadMetadata(
            title=self._title(title),
            description=description,
            robots=robots,
            canonical=None if robots == NOINDEX else self._canonical(request.path),
            open_graph=open_graph,
            json_ld=json_ld,
        )

    def _category_names(self) -> dict[str, str]:
        return {category.id: category.name for category in self._store.list_categories()}

    def _not_found(
        self,
        request: _Request,
        heading: str,
        *,
        back_href: str = "/",
        back_label: str = "Back to Home",
    ) -> RenderedPage:
        head = HeadMetadata(title=self._title(heading), robots=NOINDEX)
        return self._page(
            "not_found.html",
            head,
            status_code=404,
            heading=heading,
            back_href=back_href,
            back_label=back_label,
        )

    # Pages -----------------------------------------------------------------

    def _home(self, request: _Request) -> RenderedPage:
        categories = self._store.list_categories()
        tools = self._store.list_tools(ToolFilter(limit=HOME_TOOL_LIMIT))
        head = self._head(
            request,
            "Discover the Best AI Tools & Agents",
            "Browse hand-picked AI tools by category and find the right agent for the job.",
        )
        return self._page(
            "home.html",
            head,
            categories=categories[:HOME_CATEGORY_LIMIT],
            today_tools=tools_added_today(tools, self._clock()),
            new_tools=newest_tools(tools),
            category_names={category.id: category.name for category in categories},
        )

    def _categories(self, request: _Request) -> RenderedPage:
        listed = sorted(
            (category for category in self._store.list_categories() if category.tool_count > 0),
            key=lambda category: category.tool_count,
            reverse=True,
        )
        head = self._head(
            request, "AI Tool Categories", "Explore AI tools organised by what they do."
        )
        return self._page("categories.html", head, categories=listed)

    def _category(self, request: _Request, slug: str) -> RenderedPage:
        category = self._store.get_category_by_name(name_from_slug(slug))
        if category is None:
            return self._not_found(
                request, "Category Not Found", back_href="/categories", back_label="Back to Categories"
            )
        tools = self._store.list_tools(ToolFilter(category_id=category.id))
        head = self._head(
            request,
            f"{category.seo_title or category.name} AI Tools",
            category.seo_description or category.description,
            image=category.image_url,
        )
        return self._page("category.html", head, category=category, tools=tools)

    def _tool(self, request: _Request, slug: str) -> RenderedPage:
        tool = self._store.get_tool_by_name(name_from_slug(slug))
        if tool is None:
            return self._not_found(
                request, "Tool Not Found", back_href="/categories", back_label="Back to Categories"
            )
        category = self._store.get_category(tool.category_id) if tool.category_id else None
        similar = (
            self._store.list_tools(
                ToolFilter(category_id=tool.category_id, exclude_id=tool.id, limit=SIMILAR_TOOL_LIMIT)
            )
            if tool.category_id
            else []
        )
        description = tool.seo_description or tool.description
        head = self._head(
            request,
            tool.seo_title or tool.name,
            description,
            image=tool.image_url,
            og_type="product",
            json_ld=self._tool_structured_data(tool),
        )
        return self._page(
            "tool.html",
            head,
            tool=tool,
            category=category,
            similar_tools=similar,
            image_url=tool.image_url or DEFAULT_TOOL_IMAGE,
        )

    def _tool_structured_data(self, tool: Tool) -> dict[str, Any]:
        return {
            "@context": "https://schema.org",
            "@type": "SoftwareApplication",
            "name": tool.name,
            "description": tool.description,
            "applicationCategory": "AIApplication",
            "operatingSystem": "Web",
            "url": self._canonical(f"/ai/{tool.slug}"),
            "image": tool.image_url,
            "offers": {
                "@type": "Offer",
                "price": tool.starting_price,
                "priceCurrency": "USD",
                "availability": "https://schema.org/OnlineOnly",
            },
        }

    def _agents(self, request: _Request) -> RenderedPage:
        agents = self._store.list_agents(AgentFilter())
        head = self._head(
            request, "AI Agents", "Autonomous AI agents ready to work for you around the clock."
        )
        return self._page("agents.html", head, agents=agents)

    def _agent(self, request: _Request, slug: str) -> RenderedPage:
        agent = self._store.get_agent_by_name(name_from_slug(slug))
        if agent is None:
            return self._not_found(
                request, "Agent Not Found", back_href="/ai-agent", back_label="Back to AI Agents"
            )
        similar = self._store.list_agents(
            AgentFilter(exclude_id=agent.id, limit=SIMILAR_AGENT_LIMIT)
        )
        head = self._head(
            request,
            f"{agent.seo_title or agent.name} - AI Agent",
            agent.seo_description or agent.description,
            image=agent.image_url,
        )
        return self._page("agent.html", head, agent=agent, similar_agents=similar)

    def _search(self, request: _Request) -> RenderedPage:
        term = request.param("q").strip()
        results = (
            search_catalog(term, self._store.list_tools(), self._store.list_categories())
            if term
            else []
        )
        head = self._head(request, f"Search: {term}" if term else "Search", robots="noindex, follow")
        return self._page("search.html", head, term=term, results=results)

    def _compare(self, request: _Request, slugs: str) -> RenderedPage:
        tools = [
            tool
            for slug in dict.fromkeys(part.strip() for part in _COMPARE_SEPARATOR.split(slugs))
            if slug and (tool := self._store.get_tool_by_name(name_from_slug(slug))) is not None
        ]
        if not tools:
            return self._not_found(request, "Nothing to Compare")
        names = " vs ".join(tool.name for tool in tools)
        head = self._head(request, f"Compare {names}", f"Side-by-side comparison of {names}.")
        return self._page(
            "compare.html", head, tools=tools, category_names=self._category_names()
        )

    def _admin(self, request: _Request) -> RenderedPage:
        tab = request.param("tab", "tools")
        if tab not in ADMIN_TABS:
            tab = "tools"
        term = request.param("q").strip()
        items: list[Any]
        if tab == "tools":
            items = self._store.list_tools()
        elif tab == "categories":
            items = self._store.list_categories()
        else:
            items = self._store.list_agents(AgentFilter(status=None))
        head = HeadMetadata(title=self._title("Admin"), robots=NOINDEX)
        return self._page(
            "admin.html",
            head,
            tab=tab,
            tabs=ADMIN_TABS,
            term=term,
            items=filter_items(items, term),
        )

    def _login(self, request: _Request) -> RenderedPage:
        head = HeadMetadata(title=self._title("Sign In"), robots=NOINDEX)
        return self._page("login.html", head, auth_url=self._settings.auth_url)

    def _sitemap(self, request: _Request) -> RenderedPage:
        snapshot = self._store.snapshot()
        head = self._head(request, "Sitemap", "Every tool, category and agent in the directory.")
        return self._page(
            "sitemap.html",
            head,
            tools=sorted(snapshot.tools, key=lambda tool: tool.name.lower()),
            categories=sorted(snapshot.categories, key=lambda category: category.name.lower()),
            agents=sorted(snapshot.agents, key=lambda agent: agent.name.lower()),
            info_pages=INFO_PAGES,
        )

    def _info(self, request: _Request) -> RenderedPage:
        title, summary = INFO_PAGES[request.path]
        head = self._head(request, title, summary)
        return self._page("info.html", head, heading=title, summary=summary)


__all__ = ["ADMIN_TABS", "INFO_PAGES", "NOINDEX", "SiteRenderer"]
