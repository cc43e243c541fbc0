"""Text blocks for individual config entries.

Every block ends with a newline. Entries that would otherwise load as live
values (unbound names, defaults) are disabled with the EDN ``#_`` discard
marker so the generated file stays loadable.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Hashable, Optional

from .edn import pr_str

__all__ = [
    "DISCARD",
    "DocLookup",
    "EntryFormatter",
    "LINE_BUDGET",
    "format_doc",
    "should_split",
]

LINE_BUDGET = 80
DISCARD = "#_"
COMMENT = "; "

DocLookup = Callable[[Hashable], Optional[str]]

logger = logging.getLogger(__name__)


def should_split(*fragments: str) -> bool:
    """Return ``True`` when ``fragments`` must go on separate lines.

    Fragments split when any of them contains a newline, or when joining
    them with single spaces would exceed :data:`LINE_BUDGET` characters.
    """

    if any("\n" in fragment for fragment in fragments):
        return True
    width = sum(len(fragment) for fragment in fragments) + len(fragments) - 1
    return width > LINE_BUDGET


def _layout(*fragments: str) -> str:
    separator = "\n" if should_split(*fragments) else " "
    return separator.join(fragments) + "\n"


def format_doc(doc: Optional[str]) -> str:
    """Turn a docstring into a block of ``;`` comment lines.

    Leading and trailing blank lines are dropped and the common indentation
    of the continuation lines is removed; the first line is kept as is. An
    interior blank line counts as zero indentation.
    """

    if not doc:
        return ""
    lines = doc.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        return ""

    first, rest = lines[0], lines[1:]
    indents = [len(line) - len(line.lstrip()) for line in rest]
    trim = min(indents, default=0)
    doc_lines = [first] + [line[trim:] for line in rest]
    return "".join(f"{COMMENT}{line}\n" for line in doc_lines)


class EntryFormatter:
    """Render config entries, pulling documentation from ``doc_lookup``."""

    def __init__(self, doc_lookup: Optional[DocLookup] = None) -> None:
        self._doc_lookup = doc_lookup

    def render_doc(self, name: Hashable) -> str:
        if self._doc_lookup is None:
            return ""
        try:
            doc = self._doc_lookup(name)
        except Exception:  # noqa: BLE001 - docs are best effort
            logger.debug("Documentation lookup failed for %s", name, exc_info=True)
            return ""
        if not isinstance(doc, str):
            return ""
        return format_doc(doc)

    def render_entry(self, name: Hashable, value: Any) -> str:
        return _layout(pr_str(name), pr_str(value))

    def render_entry_with_default(
        self, name: Hashable, value: Any, default: Any
    ) -> str:
        """Render a configured value followed by its disabled default."""

        return self.render_doc(name) + _layout(
            pr_str(name),
            pr_str(value),
            DISCARD + pr_str(default),
        )

    def render_unbound(self, name: Hashable) -> str:
        return self.render_doc(name) + DISCARD + pr_str(name) + "\n"

    def render_default_only(self, name: Hashable, default: Any) -> str:
        """Render an entry that only has a default, fully disabled."""

        return self.render_doc(name) + _layout(
            DISCARD + pr_str(name),
            DISCARD + pr_str(default),
        )
