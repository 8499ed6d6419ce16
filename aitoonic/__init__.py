"""Server-rendered AI tools directory with a per-route response cache."""

from .config import SettingsError, SiteSettings
from .errors import AitoonicError

__all__ = ["AitoonicError", "SettingsError", "SiteSettings"]
