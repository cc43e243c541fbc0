"""Base exception shared by confgen modules."""

from __future__ import annotations

__all__ = ["ConfgenError"]


class ConfgenError(RuntimeError):
    """Base class for every error raised by confgen."""
