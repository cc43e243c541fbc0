"""Load config files and resolve ``#config/env`` references."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from confgen.core.errors import ConfgenError

from . import edn
from .edn import EdnError, EnvVar, Symbol

__all__ = [
    "ConfigSourceError",
    "load_config_source",
    "resolve_env",
    "unset_env_refs",
]

logger = logging.getLogger(__name__)


class ConfigSourceError(ConfgenError):
    """Raised when a config file cannot be read as a map of config vars."""


def load_config_source(
    path: Path, *, missing_ok: bool = True
) -> dict[Symbol, Any]:
    """Read the configured values stored in ``path``.

    ``#config/env`` references are kept unresolved so regenerating the file
    preserves them.
    """

    try:
        data = edn.load(path)
    except FileNotFoundError as exc:
        if missing_ok:
            logger.info("No config file at %s; starting empty", path)
            return {}
        raise ConfigSourceError(f"Config file not found: {path}") from exc
    except EdnError as exc:
        raise ConfigSourceError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigSourceError(f"Unable to read {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigSourceError(
            f"Expected a map at the top of {path}, found "
            f"{type(data).__name__}."
        )
    for key in data:
        if not isinstance(key, Symbol):
            raise ConfigSourceError(
                f"Config keys must be symbols; found {edn.pr_str(key)} in {path}."
            )
    logger.debug("Loaded %d config entries from %s", len(data), path)
    return dict(data)


def resolve_env(value: Any, env: Optional[Mapping[str, str]] = None) -> Any:
    """Replace ``#config/env`` references in ``value`` with their values.

    Unset variables resolve to ``None``.
    """

    env_map = os.environ if env is None else env
    if isinstance(value, EnvVar):
        return env_map.get(value.name)
    if isinstance(value, list):
        return [resolve_env(item, env_map) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve_env(item, env_map) for item in value)
    if isinstance(value, (set, frozenset)):
        return type(value)(resolve_env(item, env_map) for item in value)
    if isinstance(value, dict):
        return {key: resolve_env(item, env_map) for key, item in value.items()}
    return value


def unset_env_refs(
    configured: Mapping[Symbol, Any],
    env: Optional[Mapping[str, str]] = None,
) -> tuple[Symbol, ...]:
    """Return config names bound to an environment variable that is unset."""

    env_map = os.environ if env is None else env
    return tuple(
        sorted(
            name
            for name, value in configured.items()
            if any(ref.name not in env_map for ref in _env_refs(value))
        )
    )


def _env_refs(value: Any) -> Iterator[EnvVar]:
    if isinstance(value, EnvVar):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _env_refs(item)
    elif isinstance(value, (list, tuple, set, frozenset)):
        for item in value:
            yield from _env_refs(item)
