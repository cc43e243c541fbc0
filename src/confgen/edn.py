"""EDN printing and reading for generated config files.

Only the subset of EDN that config values actually use is supported:
scalars, keywords, symbols, the four collection literals and the
``#config/env``, ``#inst`` and ``#uuid`` tags.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from pathlib import Path
from typing import Any, Mapping, Optional
from uuid import UUID

from confgen.core.errors import ConfgenError

__all__ = [
    "EdnError",
    "EnvVar",
    "Keyword",
    "Symbol",
    "load",
    "loads",
    "pr_str",
]


class EdnError(ConfgenError):
    """Raised when a value cannot be printed or text cannot be read as EDN."""


@total_ordering
@dataclass(frozen=True)
class Symbol:
    """A namespace-qualified name such as ``com.example/db-url``."""

    namespace: Optional[str]
    name: str

    @classmethod
    def parse(cls, text: str) -> "Symbol":
        namespace, name = _split_qualified(text)
        return cls(namespace, name)

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return str(self) < str(other)


@total_ordering
@dataclass(frozen=True)
class Keyword:
    """An EDN keyword, printed with a leading colon."""

    namespace: Optional[str]
    name: str

    @classmethod
    def parse(cls, text: str) -> "Keyword":
        namespace, name = _split_qualified(text.lstrip(":"))
        return cls(namespace, name)

    def __str__(self) -> str:
        if self.namespace:
            return f":{self.namespace}/{self.name}"
        return f":{self.name}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Keyword):
            return NotImplemented
        return str(self) < str(other)


@dataclass(frozen=True)
class EnvVar:
    """A ``#config/env "NAME"`` reference to an environment variable."""

    name: str

    def __str__(self) -> str:
        return f"#config/env {_quote(self.name)}"


def _split_qualified(text: str) -> tuple[Optional[str], str]:
    if not text:
        raise EdnError("Names must be non-empty.")
    if text == "/" or "/" not in text:
        return None, text
    namespace, _, name = text.partition("/")
    if not namespace or not name:
        raise EdnError(f"Invalid qualified name '{text}'.")
    return namespace, name


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------

_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\t": "\\t",
    "\r": "\\r",
}


def _quote(text: str) -> str:
    # Newlines stay literal so a multi-line value trips the split rule.
    return '"' + "".join(_STRING_ESCAPES.get(ch, ch) for ch in text) + '"'


def pr_str(value: Any) -> str:
    """Return the EDN text for ``value``."""

    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, (Symbol, Keyword, EnvVar)):
        return str(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "##NaN"
        if math.isinf(value):
            return "##Inf" if value > 0 else "##-Inf"
        return repr(value)
    if isinstance(value, Decimal):
        return f"{value}M"
    if isinstance(value, datetime):
        return f"#inst {_quote(value.isoformat())}"
    if isinstance(value, UUID):
        return f"#uuid {_quote(str(value))}"
    if isinstance(value, list):
        return "[" + " ".join(pr_str(item) for item in value) + "]"
    if isinstance(value, tuple):
        return "(" + " ".join(pr_str(item) for item in value) + ")"
    if isinstance(value, Mapping):
        pairs = (f"{pr_str(k)} {pr_str(v)}" for k, v in value.items())
        return "{" + ", ".join(pairs) + "}"
    if isinstance(value, (set, frozenset)):
        return "#{" + " ".join(sorted(pr_str(item) for item in value)) + "}"
    raise EdnError(
        f"Cannot print value of type {type(value).__name__} as EDN."
    )


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

_WHITESPACE = " \t\r\n,"
_DELIMITERS = set('()[]{}";') | set(_WHITESPACE)
_CLOSERS = {"(": ")", "[": "]", "{": "}"}
_INT_RE = re.compile(r"^[+-]?\d+N?$")
_FLOAT_RE = re.compile(r"^[+-]?\d+(\.\d*)?([eE][+-]?\d+)?M?$")
_CHAR_NAMES = {
    "newline": "\n",
    "space": " ",
    "tab": "\t",
    "return": "\r",
    "backspace": "\b",
    "formfeed": "\f",
}
_STRING_UNESCAPES = {
    "t": "\t",
    "r": "\r",
    "n": "\n",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    '"': '"',
}
_SYMBOLIC = {
    "Inf": math.inf,
    "-Inf": -math.inf,
    "NaN": math.nan,
}

_DISCARDED = object()


class _Reader:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def error(self, message: str) -> EdnError:
        line = self.text.count("\n", 0, self.pos) + 1
        column = self.pos - (self.text.rfind("\n", 0, self.pos) + 1) + 1
        return EdnError(f"{message} (line {line}, column {column})")

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str:
        return self.text[self.pos]

    def skip_whitespace(self) -> None:
        while not self.at_end():
            ch = self.peek()
            if ch in _WHITESPACE:
                self.pos += 1
            elif ch == ";":
                end = self.text.find("\n", self.pos)
                self.pos = len(self.text) if end == -1 else end + 1
            else:
                return

    def read_form(self) -> Any:
        self.skip_whitespace()
        if self.at_end():
            raise self.error("Unexpected end of input")
        ch = self.peek()
        if ch in _CLOSERS:
            self.pos += 1
            return self.read_collection(ch)
        if ch in ")]}":
            raise self.error(f"Unmatched delimiter '{ch}'")
        if ch == '"':
            return self.read_string()
        if ch == "#":
            return self.read_dispatch()
        if ch == "\\":
            return self.read_char()
        if ch == ":":
            self.pos += 1
            token = self.read_token()
            if not token or token.startswith(":"):
                raise self.error(f"Invalid keyword ':{token}'")
            return Keyword.parse(token)
        return self.interpret_token(self.read_token())

    def read_token(self) -> str:
        start = self.pos
        while not self.at_end() and self.peek() not in _DELIMITERS:
            self.pos += 1
        return self.text[start:self.pos]

    def read_items(self, closer: str) -> list[Any]:
        items: list[Any] = []
        while True:
            self.skip_whitespace()
            if self.at_end():
                raise self.error(f"Expected '{closer}' before end of input")
            if self.peek() == closer:
                self.pos += 1
                return items
            form = self.read_form()
            if form is not _DISCARDED:
                items.append(form)

    def read_collection(self, opener: str) -> Any:
        items = self.read_items(_CLOSERS[opener])
        if opener == "[":
            return items
        if opener == "(":
            return tuple(items)
        if len(items) % 2:
            raise self.error("Map literal must contain an even number of forms")
        result: dict[Any, Any] = {}
        for key, value in zip(items[::2], items[1::2]):
            try:
                if key in result:
                    raise self.error(f"Duplicate map key {pr_str(key)}")
                result[key] = value
            except TypeError as exc:
                raise self.error("Map keys must be hashable") from exc
        return result

    def read_string(self) -> str:
        self.pos += 1
        chunks: list[str] = []
        while True:
            if self.at_end():
                raise self.error("Unterminated string")
            ch = self.peek()
            self.pos += 1
            if ch == '"':
                return "".join(chunks)
            if ch != "\\":
                chunks.append(ch)
                continue
            if self.at_end():
                raise self.error("Unterminated string")
            escape = self.peek()
            self.pos += 1
            if escape == "u":
                chunks.append(self.read_unicode())
            elif escape in _STRING_UNESCAPES:
                chunks.append(_STRING_UNESCAPES[escape])
            else:
                raise self.error(f"Unsupported escape '\\{escape}'")

    def read_unicode(self) -> str:
        digits = self.text[self.pos:self.pos + 4]
        try:
            code = int(digits, 16)
        except ValueError as exc:
            raise self.error(f"Invalid unicode escape '\\u{digits}'") from exc
        if len(digits) != 4:
            raise self.error(f"Invalid unicode escape '\\u{digits}'")
        self.pos += 4
        return chr(code)

    def read_char(self) -> str:
        self.pos += 1
        if self.at_end():
            raise self.error("Expected character after '\\'")
        start = self.pos
        self.pos += 1
        while not self.at_end() and self.peek() not in _DELIMITERS:
            self.pos += 1
        token = self.text[start:self.pos]
        if len(token) == 1:
            return token
        if token in _CHAR_NAMES:
            return _CHAR_NAMES[token]
        if token.startswith("u") and len(token) == 5:
            self.pos = start + 1
            return self.read_unicode()
        raise self.error(f"Unknown character literal '\\{token}'")

    def read_dispatch(self) -> Any:
        self.pos += 1
        if self.at_end():
            raise self.error("Unexpected end of input after '#'")
        ch = self.peek()
        if ch == "{":
            self.pos += 1
            items = self.read_items("}")
            try:
                members = frozenset(items)
            except TypeError as exc:
                raise self.error("Set members must be hashable") from exc
            if len(members) != len(items):
                raise self.error("Duplicate set member")
            return members
        if ch == "_":
            self.pos += 1
            form = self.read_form()
            while form is _DISCARDED:
                form = self.read_form()
            return _DISCARDED
        if ch == "#":
            self.pos += 1
            token = self.read_token()
            if token not in _SYMBOLIC:
                raise self.error(f"Unknown symbolic value '##{token}'")
            return _SYMBOLIC[token]
        tag = self.read_token()
        if not tag:
            raise self.error("Expected tag after '#'")
        return self.read_tagged(tag)

    def read_tagged(self, tag: str) -> Any:
        value = self.read_form()
        while value is _DISCARDED:
            value = self.read_form()
        if not isinstance(value, str):
            raise self.error(f"Tag #{tag} expects a string")
        if tag == "config/env":
            return EnvVar(value)
        if tag == "inst":
            try:
                return datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError as exc:
                raise self.error(f"Invalid #inst value {value!r}") from exc
        if tag == "uuid":
            try:
                return UUID(value)
            except ValueError as exc:
                raise self.error(f"Invalid #uuid value {value!r}") from exc
        raise self.error(f"Unknown tag #{tag}")

    def interpret_token(self, token: str) -> Any:
        if token == "nil":
            return None
        if token == "true":
            return True
        if token == "false":
            return False
        if _INT_RE.match(token):
            return int(token.rstrip("N"))
        if _FLOAT_RE.match(token):
            if token.endswith("M"):
                try:
                    return Decimal(token[:-1])
                except InvalidOperation as exc:  # pragma: no cover - regex guard
                    raise self.error(f"Invalid decimal '{token}'") from exc
            return float(token)
        if not token or token[0].isdigit():
            raise self.error(f"Invalid token '{token}'")
        try:
            return Symbol.parse(token)
        except EdnError as exc:
            raise self.error(str(exc)) from exc


def loads(text: str) -> Any:
    """Read exactly one EDN form from ``text``."""

    reader = _Reader(text)
    reader.skip_whitespace()
    if reader.at_end():
        raise reader.error("No form found")
    form = reader.read_form()
    while form is _DISCARDED:
        reader.skip_whitespace()
        if reader.at_end():
            raise reader.error("No form found")
        form = reader.read_form()
    reader.skip_whitespace()
    while not reader.at_end():
        if reader.read_form() is not _DISCARDED:
            raise reader.error("Unexpected trailing form")
        reader.skip_whitespace()
    return form


def load(path: Path) -> Any:
    """Read the single EDN form stored in ``path``."""

    return loads(path.read_text(encoding="utf-8"))
