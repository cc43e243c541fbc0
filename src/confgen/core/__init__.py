"""Core shared helpers for confgen."""

from __future__ import annotations

from .config import (
    ConfigFileError,
    load_toml,
    merge_defaults,
    write_text,
)
from .config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
    iter_templates,
)
from .errors import ConfgenError
from .logging import (
    DEFAULT_LOG_DIR,
    JsonLogFormatter,
    configure_logger,
    release_logger,
)

__all__ = [
    "ConfgenError",
    "ConfigFileError",
    "load_toml",
    "merge_defaults",
    "write_text",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
    "DEFAULT_LOG_DIR",
    "JsonLogFormatter",
    "configure_logger",
    "release_logger",
]
