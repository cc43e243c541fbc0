"""Declaration registry for config vars.

Application modules declare their config vars once, anywhere in the
codebase::

    DB_URL = defconfig(
        "myapp.db/url",
        doc="JDBC-style URL of the primary database.",
        required=True,
    )
    POOL_SIZE = defconfig("myapp.db/pool-size", 10, doc="Connections kept open.")

and read them at runtime with ``DB_URL.resolve(configured)``. The registry
is handed explicitly to :func:`confgen.reconciler.generate_config`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional

from confgen.core.errors import ConfgenError

from .edn import EnvVar, Symbol, pr_str
from .loader import resolve_env
from .reconciler import sort_names

__all__ = [
    "MISSING",
    "REGISTRY",
    "ConfigRegistry",
    "ConfigVar",
    "UnboundConfigError",
    "coerce_name",
    "defconfig",
]

logger = logging.getLogger(__name__)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class UnboundConfigError(ConfgenError):
    """Raised when required config vars have neither a value nor a default."""

    def __init__(
        self,
        names: Iterable[Symbol],
        message: str = "Unbound config vars",
    ) -> None:
        self.names = sort_names(names)
        super().__init__(f"{message}: {pr_str(self.names)}")


def coerce_name(name: Symbol | str) -> Symbol:
    if isinstance(name, Symbol):
        return name
    if isinstance(name, str):
        return Symbol.parse(name.strip())
    raise TypeError(
        f"Config var names must be symbols or strings, not {type(name).__name__}."
    )


@dataclass(frozen=True)
class ConfigVar:
    """A declared config var."""

    name: Symbol
    default: Any = MISSING
    doc: Optional[str] = None
    required: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def resolve(
        self,
        configured: Mapping[Symbol, Any],
        env: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Return the configured value, falling back to the default.

        A ``#config/env`` value whose variable is unset counts as not
        configured.
        """

        if self.name in configured:
            raw = configured[self.name]
            value = resolve_env(raw, env)
            if not (isinstance(raw, EnvVar) and value is None):
                return value
        if self.has_default:
            return self.default
        if self.required:
            raise UnboundConfigError([self.name])
        return None


class ConfigRegistry:
    """Collects config var declarations for one process."""

    def __init__(self) -> None:
        self._vars: dict[Symbol, ConfigVar] = {}

    def declare(
        self,
        name: Symbol | str,
        *,
        default: Any = MISSING,
        doc: Optional[str] = None,
        required: bool = False,
    ) -> ConfigVar:
        symbol = coerce_name(name)
        if symbol in self._vars:
            logger.debug("Redeclaring config var %s", symbol)
        var = ConfigVar(name=symbol, default=default, doc=doc, required=required)
        self._vars[symbol] = var
        return var

    @property
    def defaults(self) -> Mapping[Symbol, Any]:
        return MappingProxyType(
            {name: var.default for name, var in self._vars.items() if var.has_default}
        )

    @property
    def required(self) -> frozenset[Symbol]:
        """Names that must be configured because they have no default."""

        return frozenset(
            name
            for name, var in self._vars.items()
            if var.required and not var.has_default
        )

    @property
    def names(self) -> tuple[Symbol, ...]:
        return sort_names(self._vars)

    def doc_for(self, name: Symbol) -> Optional[str]:
        var = self._vars.get(name)
        return var.doc if var is not None else None

    def get(self, name: Symbol | str) -> Optional[ConfigVar]:
        return self._vars.get(coerce_name(name))

    def clear(self) -> None:
        self._vars.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._vars

    def __iter__(self) -> Iterator[ConfigVar]:
        return iter(self._vars[name] for name in self.names)

    def __len__(self) -> int:
        return len(self._vars)


REGISTRY = ConfigRegistry()


def defconfig(
    name: Symbol | str,
    default: Any = MISSING,
    *,
    doc: Optional[str] = None,
    required: bool = False,
    registry: Optional[ConfigRegistry] = None,
) -> ConfigVar:
    """Declare a config var in ``registry`` (the process-wide one by default)."""

    target = REGISTRY if registry is None else registry
    return target.declare(name, default=default, doc=doc, required=required)
