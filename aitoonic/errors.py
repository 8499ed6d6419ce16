"""Exception hierarchy shared across the package."""

from __future__ import annotations


class AitoonicError(RuntimeError):
    """Base class for errors raised by the site runtime."""


__all__ = ["AitoonicError"]
