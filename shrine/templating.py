"""A small text template engine for field substitution.

Supports the subset used by manifest outputs and env vars: ``{{.name}}``
field references (optionally chained into nested mappings), string literals,
``{{/* comments */}}`` and the ``{{-``/``-}}`` whitespace trim markers.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

NO_VALUE = "<no value>"

_WHITESPACE = " \t\r\n"
_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t", "r": "\r"}


class TemplateError(ValueError):
    """Raised when a template cannot be parsed or rendered."""


@dataclass(frozen=True)
class _Text:
    value: str


@dataclass(frozen=True)
class _Literal:
    value: str


@dataclass(frozen=True)
class _Field:
    path: tuple[str, ...]


_Node = Union[_Text, _Literal, _Field]


class _Parser:
    def __init__(self, name: str, source: str) -> None:
        self.name = name
        self.src = source

    def error(self, pos: int, message: str) -> TemplateError:
        line = self.src.count("\n", 0, pos) + 1
        return TemplateError(f"template: {self.name}:{line}: {message}")

    def parse(self) -> list[_Node]:
        src = self.src
        nodes: list[_Node] = []
        pos = 0
        trim_left = False
        while True:
            start = src.find("{{", pos)
            text = src[pos:] if start < 0 else src[pos:start]
            if trim_left:
                text = text.lstrip(_WHITESPACE)
            if start < 0:
                if text:
                    nodes.append(_Text(text))
                return nodes

            i = start + 2
            if src.startswith("-", i) and i + 1 < len(src) and src[i + 1] in _WHITESPACE:
                text = text.rstrip(_WHITESPACE)
                i += 2
            if text:
                nodes.append(_Text(text))

            if src.startswith("/*", i):
                pos, trim_left = self._comment(start, i)
                continue
            node, pos, trim_left = self._action(start, i)
            nodes.append(node)

    def _comment(self, start: int, i: int) -> tuple[int, bool]:
        end = self.src.find("*/", i + 2)
        if end < 0:
            raise self.error(start, "unclosed comment")
        after = end + 2
        if self.src.startswith("}}", after):
            return after + 2, False
        if (
            after < len(self.src)
            and self.src[after] in _WHITESPACE
            and self.src.startswith("-}}", after + 1)
        ):
            return after + 4, True
        raise self.error(start, "comment ends before closing delimiter")

    def _action(self, start: int, i: int) -> tuple[_Node, int, bool]:
        src = self.src
        size = len(src)
        tokens: list[_Node] = []
        while True:
            ws_start = i
            while i < size and src[i] in _WHITESPACE:
                i += 1
            if i > ws_start and src.startswith("-}}", i):
                return self._command(start, tokens), i + 3, True
            if src.startswith("}}", i):
                return self._command(start, tokens), i + 2, False
            if i >= size:
                raise self.error(start, "unclosed action")

            char = src[i]
            if char == '"':
                value, i = self._quoted(start, i)
                tokens.append(_Literal(value))
            elif char == "`":
                end = src.find("`", i + 1)
                if end < 0:
                    raise self.error(start, "unterminated raw quoted string")
                tokens.append(_Literal(src[i + 1:end]))
                i = end + 1
            elif char == ".":
                path: list[str] = []
                while src.startswith(".", i) and (match := _IDENT.match(src, i + 1)):
                    path.append(match.group())
                    i = match.end()
                if not path:
                    i += 1
                tokens.append(_Field(tuple(path)))
            else:
                match = _IDENT.match(src, i)
                if match:
                    raise self.error(start, f'function "{match.group()}" not defined')
                raise self.error(start, f"unexpected {char!r} in command")

    def _quoted(self, start: int, i: int) -> tuple[str, int]:
        src = self.src
        chars: list[str] = []
        j = i + 1
        while j < len(src):
            char = src[j]
            if char == '"':
                return "".join(chars), j + 1
            if char == "\n":
                break
            if char == "\\":
                if j + 1 < len(src) and src[j + 1] in _ESCAPES:
                    chars.append(_ESCAPES[src[j + 1]])
                    j += 2
                    continue
                raise self.error(start, "invalid escape in quoted string")
            chars.append(char)
            j += 1
        raise self.error(start, "unterminated quoted string")

    def _command(self, start: int, tokens: list[_Node]) -> _Node:
        if not tokens:
            raise self.error(start, "missing value for command")
        if len(tokens) > 1:
            raise self.error(start, "only a single field or literal is allowed in an action")
        return tokens[0]


class Template:
    """A parsed template that renders against a mapping of values."""

    def __init__(self, name: str, source: str) -> None:
        self.name = name
        self.source = source
        self._nodes = _Parser(name, source).parse()

    def field_refs(self) -> list[str]:
        """Return the top-level field names referenced, in first-use order."""
        refs: list[str] = []
        for node in self._nodes:
            if isinstance(node, _Field) and node.path and node.path[0] not in refs:
                refs.append(node.path[0])
        return refs

    def render(self, context: Mapping[str, Any]) -> str:
        """Render the template; a missing key renders as ``<no value>``."""
        parts = []
        for node in self._nodes:
            if isinstance(node, (_Text, _Literal)):
                parts.append(node.value)
            else:
                parts.append(self._evaluate(node.path, context))
        return "".join(parts)

    def _evaluate(self, path: tuple[str, ...], context: Any) -> str:
        value = context
        for index, field in enumerate(path):
            if not isinstance(value, Mapping):
                raise TemplateError(
                    f"template: {self.name}: can't evaluate field {field} "
                    f"in type {type(value).__name__}"
                )
            if field not in value:
                if index == len(path) - 1:
                    return NO_VALUE
                raise TemplateError(
                    f"template: {self.name}: nil pointer evaluating .{'.'.join(path[: index + 1])}"
                )
            value = value[field]
        return str(value)