"""Write regenerated config files and run the strict unbound check."""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable, Mapping, Optional, Sequence

from confgen.core.config import write_text
from confgen.core.errors import ConfgenError

from .edn import Symbol
from .reconciler import (
    DeclarationSource,
    Reconciliation,
    generate_config,
    reconcile,
    sort_names,
)
from .registry import UnboundConfigError

__all__ = [
    "DEFAULT_FILENAME",
    "DiscoveryError",
    "GenerationResult",
    "discover",
    "find_unbound",
    "generate_config_file",
]

DEFAULT_FILENAME = "config.edn"

_logger = logging.getLogger(__name__)


class DiscoveryError(ConfgenError):
    """Raised when a module declaring config vars cannot be imported."""


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of writing a config file."""

    path: Path
    text: str
    reconciliation: Reconciliation


def find_unbound(
    configured: Mapping[Symbol, Any], registry: DeclarationSource
) -> tuple[Symbol, ...]:
    """Required names missing from both the configured and default maps."""

    missing = set(registry.required) - set(registry.defaults) - set(configured)
    return sort_names(missing)


def generate_config_file(
    path: Path,
    configured: Mapping[Symbol, Any],
    registry: DeclarationSource,
    *,
    strict: bool = False,
    logger: Optional[logging.Logger] = None,
) -> GenerationResult:
    """Write the regenerated config for ``configured`` to ``path``.

    In strict mode :class:`UnboundConfigError` is raised after the file has
    been written when required config vars are still unbound.
    """

    log = logger or _logger
    log.info("Generating %s", path)

    text = generate_config(configured, registry)
    write_text(path, text)
    reconciliation = reconcile(configured, registry.defaults, registry.required)
    log.info(
        "Wrote %s",
        path,
        extra={"path": path, **reconciliation.counts},
    )

    if strict:
        unbound = find_unbound(configured, registry)
        if unbound:
            log.error(
                "Unbound config vars after generation",
                extra={"names": [str(name) for name in unbound]},
            )
            raise UnboundConfigError(
                unbound,
                message=f"Generated {path.name} with unbound config vars",
            )

    return GenerationResult(path=path, text=text, reconciliation=reconciliation)


def discover(
    modules: Iterable[str],
    *,
    search_paths: Sequence[Path | str] = (),
) -> list[ModuleType]:
    """Import ``modules`` so their config var declarations register."""

    added: list[str] = []
    for entry in reversed(list(search_paths)):
        candidate = str(Path(entry).expanduser().resolve())
        if candidate not in sys.path:
            sys.path.insert(0, candidate)
            added.append(candidate)
    importlib.invalidate_caches()

    imported: list[ModuleType] = []
    try:
        for name in modules:
            try:
                imported.append(importlib.import_module(name))
            except ImportError as exc:
                raise DiscoveryError(
                    f"Failed to import module '{name}': {exc}"
                ) from exc
            _logger.debug("Imported %s", name)
    finally:
        for candidate in added:
            if candidate in sys.path:
                sys.path.remove(candidate)
    return imported
