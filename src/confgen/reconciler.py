"""Reconcile declared config vars with configured values.

Three inputs drive a reconciliation:

* ``configured``: values supplied by the current config file,
* ``defaults``: default values of every declaration that has one,
* ``required``: declarations that need a value and have no default.

Names are classified as *unbound* (required, with neither value nor
default), *unused* (configured but not wanted by any declaration) or *used*.
:func:`render_config` turns the classification into the text of the next
config file.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import (
    AbstractSet,
    Any,
    Hashable,
    Iterable,
    Mapping,
    Optional,
    Protocol,
)

from .formatter import DocLookup, EntryFormatter

__all__ = [
    "DeclarationSource",
    "Reconciliation",
    "UNBOUND_HEADER",
    "UNUSED_HEADER",
    "USED_HEADER",
    "generate_config",
    "reconcile",
    "render_config",
    "sort_names",
]

UNBOUND_HEADER = ";; UNBOUND CONFIG VARS:"
UNUSED_HEADER = ";; UNUSED CONFIG ENTRIES:"
USED_HEADER = ";; CONFIG ENTRIES:"


class DeclarationSource(Protocol):
    """What the reconciler needs to know about declared config vars."""

    @property
    def defaults(self) -> Mapping[Any, Any]: ...

    @property
    def required(self) -> AbstractSet[Any]: ...

    def doc_for(self, name: Any) -> Optional[str]: ...


@dataclass(frozen=True)
class Reconciliation:
    """Derived name sets for one reconciliation run."""

    available: frozenset
    wanted: frozenset
    unbound: tuple
    unused: tuple
    used: tuple

    @property
    def counts(self) -> dict[str, int]:
        return {
            "unbound": len(self.unbound),
            "unused": len(self.unused),
            "used": len(self.used),
        }


def sort_names(names: Iterable[Hashable]) -> tuple:
    """Order names by their canonical text form."""

    return tuple(sorted(names, key=str))


def reconcile(
    configured: Mapping[Any, Any],
    defaults: Mapping[Any, Any],
    required: AbstractSet[Any],
) -> Reconciliation:
    configured_keys = frozenset(configured)
    default_keys = frozenset(defaults)
    required_keys = frozenset(required)

    available = configured_keys | default_keys
    wanted = required_keys | default_keys
    return Reconciliation(
        available=available,
        wanted=wanted,
        unbound=sort_names(required_keys - available),
        unused=sort_names(available - wanted),
        used=sort_names(available & wanted),
    )


def render_config(
    configured: Mapping[Any, Any],
    defaults: Mapping[Any, Any],
    required: AbstractSet[Any],
    *,
    doc_lookup: Optional[DocLookup] = None,
) -> str:
    """Return the regenerated config file text."""

    result = reconcile(configured, defaults, required)
    formatter = EntryFormatter(doc_lookup)

    def render_used(name: Any) -> str:
        if name not in configured:
            return formatter.render_default_only(name, defaults[name])
        if name in defaults:
            return formatter.render_entry_with_default(
                name, configured[name], defaults[name]
            )
        return formatter.render_entry(name, configured[name])

    sections = (
        (UNBOUND_HEADER, [formatter.render_unbound(n) for n in result.unbound]),
        (
            UNUSED_HEADER,
            [formatter.render_entry(n, configured[n]) for n in result.unused],
        ),
        (USED_HEADER, [render_used(n) for n in result.used]),
    )

    parts = ["{\n"]
    for header, blocks in sections:
        if not blocks:
            continue
        parts.append(f"\n{header}\n\n")
        parts.append("\n".join(blocks))
        parts.append("\n")
    parts.append("}\n")
    return "".join(parts)


def generate_config(
    configured: Mapping[Any, Any], registry: DeclarationSource
) -> str:
    """Render the config file for ``configured`` against ``registry``."""

    return render_config(
        configured,
        registry.defaults,
        registry.required,
        doc_lookup=registry.doc_for,
    )
