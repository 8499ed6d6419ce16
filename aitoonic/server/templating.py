"""Jinja2 environment used for page and document templates."""

from __future__ import annotations

from datetime import datetime
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_ROOT = Path(__file__).resolve().parent / "templates"


def _date(value: datetime | None, fmt: str = "%b %d, %Y") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


def build_environment(template_root: Path = TEMPLATE_ROOT) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(template_root)),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["date"] = _date
    return env


@lru_cache(maxsize=None)
def default_environment() -> Environment:
    return build_environment()


__all__ = ["TEMPLATE_ROOT", "build_environment", "default_environment"]
