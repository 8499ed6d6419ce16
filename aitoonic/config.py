"""Site configuration loaded from keyword arguments or the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping
from urllib.parse import urlparse

ENV_PREFIX = "AITOONIC_"


class SettingsError(ValueError):
    """Raised when site settings are missing or malformed."""


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_seconds(name: str, raw: str) -> timedelta:
    try:
        return timedelta(seconds=float(raw))
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number of seconds, got {raw!r}") from exc


@dataclass(frozen=True)
class SiteSettings:
    """Runtime configuration shared by the renderer, cache and HTTP app."""

    database: str | Path = ":memory:"
    base_url: str = "https://aitoonic.com"
    site_name: str = "Aitoonic"
    static_ttl: timedelta = timedelta(hours=1)
    dynamic_ttl: timedelta = timedelta(minutes=5)
    admin_token: str | None = None
    auth_url: str | None = None
    single_flight: bool = False

    def __post_init__(self) -> None:
        base_url = str(self.base_url).rstrip("/")
        parsed = urlparse(base_url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            msg = (
                f"Invalid base_url {self.base_url!r}. Expected an absolute URL "
                "such as https://example.com"
            )
            raise SettingsError(msg)
        object.__setattr__(self, "base_url", base_url)
        if self.static_ttl <= timedelta(0):
            raise SettingsError("static_ttl must be positive")
        if self.dynamic_ttl <= timedelta(0):
            raise SettingsError("dynamic_ttl must be positive")
        if self.admin_token is not None and not self.admin_token.strip():
            object.__setattr__(self, "admin_token", None)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SiteSettings":
        """Build settings from ``AITOONIC_*`` variables, falling back to defaults."""

        env = os.environ if environ is None else environ
        options: dict[str, object] = {}
        for field_name in ("database", "base_url", "site_name", "admin_token", "auth_url"):
            value = env.get(ENV_PREFIX + field_name.upper())
            if value is not None:
                options[field_name] = value
        for field_name in ("static_ttl", "dynamic_ttl"):
            env_name = ENV_PREFIX + field_name.upper() + "_SECONDS"
            value = env.get(env_name)
            if value is not None:
                options[field_name] = _parse_seconds(env_name, value)
        single_flight = env.get(ENV_PREFIX + "SINGLE_FLIGHT")
        if single_flight is not None:
            options["single_flight"] = _parse_bool(single_flight)
        return cls(**options)


__all__ = ["ENV_PREFIX", "SettingsError", "SiteSettings"]
