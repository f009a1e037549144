"""Filesystem-backed per-team secret storage."""

from __future__ import annotations

import base64
import contextlib
import os
import tempfile
import threading
from pathlib import Path

from shrine.state import SecretNotFoundError, StateError

_FILE_NAME = "secrets.env"


class SecretStore:
    """Stores secrets as KEY=VALUE lines in ``<base_dir>/<team>/secrets.env``."""

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base_dir = Path(base_dir)
        try:
            self._base_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f"creating state directory: {exc}") from exc
        self._lock = threading.Lock()

    def get_or_generate(self, team: str, key: str, length: int) -> tuple[str, bool]:
        """Return ``(value, generated)``, creating a random value if absent."""
        with self._lock:
            secrets = self._load_team(team)
            if key in secrets:
                return secrets[key], False
            value = base64.urlsafe_b64encode(os.urandom(length)).decode().rstrip("=")
            secrets[key] = value
            self._save_team(team, secrets)
            return value, True

    def get(self, team: str, key: str) -> str:
        """Return a stored secret or raise SecretNotFoundError."""
        with self._lock:
            secrets = self._load_team(team)
        try:
            return secrets[key]
        except KeyError:
            raise SecretNotFoundError() from None

    def list(self, team: str) -> dict[str, str]:
        """Return a copy of all secrets of a team."""
        with self._lock:
            return dict(self._load_team(team))

    def _load_team(self, team: str) -> dict[str, str]:
        path = self._base_dir / team / _FILE_NAME
        try:
            with path.open(encoding="utf-8") as handle:
                lines = handle.read().split("\n")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StateError(f'opening secrets for team "{team}": {exc}') from exc

        secrets: dict[str, str] = {}
        for raw in lines:
            line = raw.split("#", 1)[0].strip()
            if not line or "=" not in line:
                continue
            name, value = line.split("=", 1)
            secrets[name] = value
        return secrets

    def _save_team(self, team: str, secrets: dict[str, str]) -> None:
        team_dir = self._base_dir / team
        try:
            team_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f'creating team directory for "{team}": {exc}') from exc

        content = "".join(f"{name}={secrets[name]}\n" for name in sorted(secrets))
        try:
            fd, tmp_path = tempfile.mkstemp(prefix="secrets-", suffix=".env.tmp", dir=team_dir)
        except OSError as exc:
            raise StateError(f"creating temporary secrets file: {exc}") from exc
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as exc:
                raise StateError(f"writing to temporary secrets file: {exc}") from exc
            try:
                os.replace(tmp_path, team_dir / _FILE_NAME)
            except OSError as exc:
                raise StateError(f'finalizing secrets file for "{team}": {exc}') from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)