"""Filesystem-backed allocation of per-team /24 subnets."""

from __future__ import annotations

import contextlib
import ipaddress
import os
import tempfile
import threading
from pathlib import Path

from shrine.state import NoAvailableSubnetsError, StateError, SubnetNotFoundError

FIRST_USABLE_OCTET = 5
LAST_USABLE_OCTET = 255
_FILE_NAME = "subnets.txt"


def _third_octet(cidr: str) -> int | None:
    """Return the third octet of an IPv4 CIDR, or None if it is not one."""
    address, sep, prefix = cidr.partition("/")
    if not sep or not prefix.isdigit():
        return None
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return None
    if isinstance(ip, ipaddress.IPv6Address):
        if int(prefix) > 128:
            return None
        ip = ip.ipv4_mapped
        if ip is None:
            return None
    elif int(prefix) > 32:
        return None
    return ip.packed[2]


class SubnetStore:
    """Hands out 10.100.X.0/24 subnets to teams and persists them to disk."""

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base_dir = Path(base_dir)
        try:
            self._base_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f"creating state directory: {exc}") from exc
        self._subnets: dict[str, str] = {}
        self._taken: set[int] = set()
        self._lock = threading.Lock()
        self._load()

    @property
    def _path(self) -> Path:
        return self._base_dir / _FILE_NAME

    def _load(self) -> None:
        try:
            with self._path.open(encoding="utf-8") as handle:
                lines = handle.read().split("\n")
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StateError(f"opening subnets file: {exc}") from exc

        for raw in lines:
            line = raw.split("#", 1)[0].strip()
            if not line or "=" not in line:
                continue
            team, cidr = line.split("=", 1)
            octet = _third_octet(cidr)
            if octet is None:
                continue
            self._subnets[team] = cidr
            self._taken.add(octet)

    def _save(self) -> None:
        content = "".join(f"{team}={self._subnets[team]}\n" for team in sorted(self._subnets))
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix="subnets-", suffix=".txt.tmp", dir=self._base_dir
            )
        except OSError as exc:
            raise StateError(f"creating temporary file: {exc}") from exc
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as exc:
                raise StateError(f"writing to temporary file: {exc}") from exc
            try:
                os.replace(tmp_path, self._path)
            except OSError as exc:
                raise StateError(f"renaming temporary file: {exc}") from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)

    def allocate_subnet(self, team: str) -> str:
        """Return the team's subnet, allocating the lowest free one if needed."""
        with self._lock:
            if team in self._subnets:
                return self._subnets[team]
            for octet in range(FIRST_USABLE_OCTET, LAST_USABLE_OCTET + 1):
                if octet in self._taken:
                    continue
                self._taken.add(octet)
                self._subnets[team] = f"10.100.{octet}.0/24"
                try:
                    self._save()
                except StateError as exc:
                    self._taken.discard(octet)
                    del self._subnets[team]
                    raise StateError(
                        f'persisting subnet allocation for "{team}": {exc}'
                    ) from exc
                return self._subnets[team]
            raise NoAvailableSubnetsError()

    def get_subnet(self, team: str) -> str:
        """Return the team's subnet or raise SubnetNotFoundError."""
        with self._lock:
            try:
                return self._subnets[team]
            except KeyError:
                raise SubnetNotFoundError() from None

    def release_subnet(self, team: str) -> None:
        """Free the team's subnet; releasing an unknown team does nothing."""
        with self._lock:
            cidr = self._subnets.get(team)
            if cidr is None:
                return
            address, _, _ = cidr.partition("/")
            try:
                ipaddress.ip_address(address)
            except ValueError as exc:
                raise StateError(f'parsing stored CIDR "{cidr}": {exc}') from exc
            octet = _third_octet(cidr)
            if octet is not None:
                self._taken.discard(octet)
            del self._subnets[team]
            self._save()

    def list_subnets(self) -> dict[str, str]:
        """Return a copy of the team-to-CIDR mapping."""
        with self._lock:
            return dict(self._subnets)