"""Platform state: deployment records, store errors and the aggregate store."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class StateError(Exception):
    """Base class for state storage errors."""


class SecretNotFoundError(StateError, LookupError):
    """Raised when a requested secret does not exist."""

    def __init__(self, message: str = "secret not found") -> None:
        super().__init__(message)


class SubnetNotFoundError(StateError, LookupError):
    """Raised when a team has no allocated subnet."""

    def __init__(self, message: str = "subnet not found") -> None:
        super().__init__(message)


class NoAvailableSubnetsError(StateError):
    """Raised when the subnet range is exhausted."""

    def __init__(self, message: str = "no available subnets") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class Deployment:
    """A record of one deployed container."""

    kind: str
    name: str
    container_id: str
    config_hash: str = ""


@dataclass
class Store:
    """All state stores used by the platform, bundled together."""

    teams: Any
    subnets: Any
    secrets: Any
    deployments: Any


def config_hash(
    image: str,
    env: Iterable[str] | None,
    vol_specs: Iterable[str] | None,
    port_specs: Iterable[str] | None,
    expose_to_platform: bool,
) -> str:
    """Return a stable sha256 fingerprint of a container configuration.

    ``env`` holds "KEY=VALUE" strings, ``vol_specs`` "name:mountPath" strings
    and ``port_specs`` "<hostPort>:<containerPort>/<proto>" strings. Each is
    sorted first, so the order in which they are given does not matter.
    """
    sections = [
        image,
        "\n".join(sorted(env or ())),
        "\n".join(sorted(vol_specs or ())),
        "\n".join(sorted(port_specs or ())),
        "true" if expose_to_platform else "false",
    ]
    return hashlib.sha256("\n---\n".join(sections).encode()).hexdigest()