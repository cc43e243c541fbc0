"""Settings loader for the confgen command."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional, Sequence

from confgen.core import config as core_config
from confgen.core.errors import ConfgenError
from confgen.core.logging import DEFAULT_LOG_DIR

from .generate import DEFAULT_FILENAME

SETTINGS_FILENAME = "confgen.toml"
SETTINGS_ENV = "CONFGEN_SETTINGS"
ENV_PREFIX = "CONFGEN_"

_DEFAULT_LOG_LEVEL = "INFO"
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class SettingsError(ConfgenError):
    """Raised when settings parsing or validation fails."""


@dataclass(frozen=True)
class Settings:
    """Fully resolved settings for a generation run."""

    source: Path
    output: Path
    modules: tuple[str, ...]
    search_paths: tuple[Path, ...]
    strict: bool
    log_level: str
    log_dir: Path


@dataclass(frozen=True)
class SettingsOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    source: Optional[Path] = None
    output: Optional[Path] = None
    modules: Optional[Sequence[str]] = None
    strict: Optional[bool] = None
    log_level: Optional[str] = None
    log_dir: Optional[Path] = None


@dataclass(frozen=True)
class LoadResult:
    settings: Settings
    settings_path: Optional[Path]


def load_settings(
    *,
    settings_path: Optional[Path] = None,
    overrides: Optional[SettingsOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> LoadResult:
    """Load settings applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or SettingsOverrides()
    env_map = os.environ if env is None else env
    base = (cwd or Path.cwd()).resolve()

    requested_path = _resolve_settings_path(
        settings_path=settings_path, env_map=env_map, base=base
    )
    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(table, parsed)
        except core_config.ConfigFileError as exc:
            raise SettingsError(str(exc)) from exc
    elif settings_path is not None or env_map.get(SETTINGS_ENV, "").strip():
        raise SettingsError(f"Settings file not found: {requested_path}")

    source = _resolve_path(
        _pick_first(
            overrides.source,
            _env_string(env_map, "SOURCE"),
            _optional_string(table["paths"]["source"], "paths.source"),
            DEFAULT_FILENAME,
        ),
        base,
    )
    output_candidate = _pick_first(
        overrides.output,
        _env_string(env_map, "OUTPUT"),
        _optional_string(table["paths"]["output"], "paths.output"),
    )
    output = source if output_candidate is None else _resolve_path(
        output_candidate, base
    )

    modules = _pick_first(
        overrides.modules,
        _env_list(env_map, "MODULES"),
        _string_list(table["discovery"]["modules"], "discovery.modules"),
    )
    search_paths = tuple(
        _resolve_path(entry, base)
        for entry in _string_list(
            table["discovery"]["search_paths"], "discovery.search_paths"
        )
    )

    strict = _pick_first(
        overrides.strict,
        _env_bool(env_map, "STRICT"),
        table["generation"]["strict"],
    )
    if not isinstance(strict, bool):
        raise SettingsError("generation.strict must be a boolean.")

    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        )
    )
    log_dir_candidate = _pick_first(
        overrides.log_dir,
        _env_string(env_map, "LOG_DIR"),
        _optional_string(table["logging"]["dir"], "logging.dir"),
    )
    log_dir = (
        DEFAULT_LOG_DIR
        if log_dir_candidate is None
        else _resolve_path(log_dir_candidate, base)
    )

    settings = Settings(
        source=source,
        output=output,
        modules=_normalize_modules(modules),
        search_paths=search_paths,
        strict=strict,
        log_level=log_level,
        log_dir=log_dir,
    )
    return LoadResult(settings=settings, settings_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, Any]]:
    return {
        "paths": {"source": DEFAULT_FILENAME, "output": None},
        "discovery": {"modules": [], "search_paths": ["."]},
        "generation": {"strict": False},
        "logging": {"level": _DEFAULT_LOG_LEVEL, "dir": None},
    }


def _resolve_settings_path(
    *, settings_path: Optional[Path], env_map: Mapping[str, str], base: Path
) -> Path:
    if settings_path is not None:
        return _resolve_path(settings_path, base)
    env_candidate = env_map.get(SETTINGS_ENV, "").strip()
    if env_candidate:
        return _resolve_path(env_candidate, base)
    return base / SETTINGS_FILENAME


def _resolve_path(value: Path | str, base: Path) -> Path:
    candidate = Path(value).expanduser()
    if not candidate.is_absolute():
        candidate = base / candidate
    return candidate


def _optional_string(value: object, key: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise SettingsError(f"{key} must be a string.")
    return value.strip() or None


def _string_list(value: object, key: str) -> list[str]:
    if not isinstance(value, list) or not all(
        isinstance(item, str) for item in value
    ):
        raise SettingsError(f"{key} must be a list of strings.")
    return [item.strip() for item in value if item.strip()]


def _normalize_modules(value: Sequence[str]) -> tuple[str, ...]:
    seen: set[str] = set()
    result: list[str] = []
    for item in value:
        name = item.strip()
        if name and name not in seen:
            seen.add(name)
            result.append(name)
    return tuple(result)


def _resolve_log_level(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise SettingsError("logging.level must be a non-empty string.")
    return value.strip().upper()


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def _env_list(env_map: Mapping[str, str], key: str) -> Optional[list[str]]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    return [part for part in raw.replace(",", " ").split() if part] or None


def _env_bool(env_map: Mapping[str, str], key: str) -> Optional[bool]:
    raw = _env_string(env_map, key)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise SettingsError(
        f"{ENV_PREFIX}{key} must be one of: "
        f"{', '.join(sorted(_TRUE_VALUES | _FALSE_VALUES))}."
    )


def _pick_first(*candidates: Any) -> Any:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
