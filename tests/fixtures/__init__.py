"""Shared testing helpers for the confgen test suite."""

from .project import ProjectBuilder, build_tree  # noqa: F401

__all__ = [
    "ProjectBuilder",
    "build_tree",
]
