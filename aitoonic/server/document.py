"""Assemble full HTML documents from rendered page fragments."""

from __future__ import annotations

import json

from jinja2 import Environment
from markupsafe import Markup

from .page import RenderedPage
from .templating import default_environment


def _json_ld(payload: object) -> Markup:
    # "</" must not terminate the surrounding <script> element.
    return Markup(json.dumps(payload, sort_keys=True).replace("</", "<\\/"))


class DocumentShell:
    """Inject head metadata and the page body into ``document.html``."""

    template_name = "document.html"

    def __init__(self, env: Environment | None = None, *, site_name: str = "Aitoonic") -> None:
        self._env = env or default_environment()
        self._site_name = site_name

    def compose(self, page: RenderedPage) -> str:
        template = self._env.get_template(self.template_name)
        head = page.head
        return template.render(
            site_name=self._site_name,
            head=head,
            json_ld=None if head.json_ld is None else _json_ld(head.json_ld),
            body=Markup(page.body),
        )


SERVER_ERROR_HTML = (
    "<!DOCTYPE html>\n"
    '<html lang="en"><head><meta charset="UTF-8" />'
    '<meta name="robots" content="noindex, nofollow" />'
    "<title>Internal Server Error</title></head>"
    "<body><h1>Internal Server Error</h1>"
    "<p>Something went wrong while rendering this page.</p></body></html>"
)


__all__ = ["DocumentShell", "SERVER_ERROR_HTML"]
