"""File helpers shared by the settings loader and the config writer."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping

from .errors import ConfgenError

__all__ = [
    "ConfigFileError",
    "load_toml",
    "merge_defaults",
    "write_text",
]


class ConfigFileError(ConfgenError):
    """Raised when a TOML settings file or a generated file cannot be handled."""


def load_toml(path: Path) -> Mapping[str, Any]:
    """Load a TOML document from ``path``.

    Errors are surfaced as :class:`ConfigFileError` instances so callers can
    translate them into their own exceptions.
    """

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigFileError(f"Settings file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"Failed to parse settings TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Recursively merge ``override`` into ``base`` rejecting unknown keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise ConfigFileError(f"Unknown settings key '{dotted}'.")
        base_value = base[key]
        if isinstance(base_value, MutableMapping):
            if not isinstance(value, Mapping):
                raise ConfigFileError(
                    "Expected table for '{0}', found {1}.".format(
                        dotted,
                        type(value).__name__,
                    )
                )
            merge_defaults(base_value, value, path=f"{dotted}.")
            continue
        base[key] = value


def write_text(path: Path, text: str, *, overwrite: bool = True) -> Path:
    """Write ``text`` to ``path`` as UTF-8, creating parent directories."""

    if path.exists() and not overwrite:
        raise ConfigFileError(f"File already exists: {path}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            handle.write(text)
    except OSError as exc:
        raise ConfigFileError(f"Unable to write {path}: {exc}") from exc
    return path
