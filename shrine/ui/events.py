"""Deployment events reported to observers, and their field formatting."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

_SIMPLE_ESCAPES = {
    "\a": "\\a",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\v": "\\v",
    "\\": "\\\\",
    '"': '\\"',
}


class EventStatus(str, Enum):
    """The stage of an operation that an event reports."""

    STARTED = "started"
    FINISHED = "finished"
    ERROR = "error"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


@dataclass
class Event:
    """A named occurrence during a deployment, with free-form string fields."""

    name: str
    status: EventStatus
    fields: dict[str, str] = field(default_factory=dict)

    def field(self, key: str) -> str:
        """Return a field value, or an empty string when it is absent."""
        return self.fields.get(key, "")


def quote(text: str) -> str:
    """Quote a string with double quotes and backslash escapes."""
    parts = ['"']
    for char in text:
        if char in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[char])
        elif char.isprintable():
            parts.append(char)
        else:
            code = ord(char)
            if code < 0x80:
                parts.append(f"\\x{code:02x}")
            elif code < 0x10000:
                parts.append(f"\\u{code:04x}")
            else:
                parts.append(f"\\U{code:08x}")
    parts.append('"')
    return "".join(parts)


def format_fields(fields: Mapping[str, str] | None) -> str:
    """Render fields as ` key="value"` pairs in key order."""
    if not fields:
        return ""
    return "".join(f" {key}={quote(fields[key])}" for key in sorted(fields))