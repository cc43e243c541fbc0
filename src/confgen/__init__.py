"""Reconcile declared config vars with a config file and regenerate it."""

from __future__ import annotations

from .edn import EdnError, EnvVar, Keyword, Symbol, loads, pr_str
from .formatter import EntryFormatter, format_doc, should_split
from .generate import (
    DEFAULT_FILENAME,
    DiscoveryError,
    GenerationResult,
    discover,
    find_unbound,
    generate_config_file,
)
from .loader import (
    ConfigSourceError,
    load_config_source,
    resolve_env,
    unset_env_refs,
)
from .reconciler import (
    Reconciliation,
    generate_config,
    reconcile,
    render_config,
)
from .registry import (
    MISSING,
    REGISTRY,
    ConfigRegistry,
    ConfigVar,
    UnboundConfigError,
    defconfig,
)

__all__ = [
    "EdnError",
    "EnvVar",
    "Keyword",
    "Symbol",
    "loads",
    "pr_str",
    "EntryFormatter",
    "format_doc",
    "should_split",
    "DEFAULT_FILENAME",
    "DiscoveryError",
    "GenerationResult",
    "discover",
    "find_unbound",
    "generate_config_file",
    "ConfigSourceError",
    "load_config_source",
    "resolve_env",
    "unset_env_refs",
    "Reconciliation",
    "generate_config",
    "reconcile",
    "render_config",
    "MISSING",
    "REGISTRY",
    "ConfigRegistry",
    "ConfigVar",
    "UnboundConfigError",
    "defconfig",
]
