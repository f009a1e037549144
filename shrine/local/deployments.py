"""Filesystem-backed per-team deployment records."""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
from pathlib import Path

from shrine.state import Deployment, StateError

_FILE_NAME = "deployments.txt"


class DeploymentStore:
    """Keeps one line per deployment in ``<base_dir>/<team>/deployments.txt``.

    Each line reads ``<kind> <name> <container-id> [<config-hash>]``.
    """

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base_dir = Path(base_dir)
        try:
            self._base_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f"creating state directory: {exc}") from exc
        self._lock = threading.Lock()

    def record(self, team: str, deployment: Deployment) -> None:
        """Add or replace the deployment with the same name."""
        with self._lock:
            deployments = self._load_team(team)
            deployments[deployment.name] = deployment
            self._save_team(team, deployments)

    def remove(self, team: str, name: str) -> None:
        """Forget a deployment; removing an unknown name does nothing."""
        with self._lock:
            deployments = self._load_team(team)
            deployments.pop(name, None)
            self._save_team(team, deployments)

    def list(self, team: str) -> list[Deployment]:
        """Return the team's deployments, ordered by name."""
        with self._lock:
            deployments = self._load_team(team)
        return [deployments[name] for name in sorted(deployments)]

    def _load_team(self, team: str) -> dict[str, Deployment]:
        path = self._base_dir / team / _FILE_NAME
        try:
            with path.open(encoding="utf-8") as handle:
                lines = handle.read().split("\n")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise StateError(f'opening deployments for team "{team}": {exc}') from exc

        deployments: dict[str, Deployment] = {}
        for raw in lines:
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            parts = line.split(" ", 3)
            if len(parts) < 3:
                continue
            kind, name, container_id = parts[:3]
            config = parts[3] if len(parts) == 4 else ""
            deployments[name] = Deployment(kind, name, container_id, config)
        return deployments

    def _save_team(self, team: str, deployments: dict[str, Deployment]) -> None:
        team_dir = self._base_dir / team
        try:
            team_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f'creating team directory for "{team}": {exc}') from exc

        content = "".join(
            f"{d.kind} {d.name} {d.container_id} {d.config_hash}\n"
            for d in (deployments[name] for name in sorted(deployments))
        )
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix="deployments-", suffix=".txt.tmp", dir=team_dir
            )
        except OSError as exc:
            raise StateError(f"creating temporary deployments file: {exc}") from exc
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as exc:
                raise StateError(f"writing to temporary deployments file: {exc}") from exc
            try:
                os.replace(tmp_path, team_dir / _FILE_NAME)
            except OSError as exc:
                raise StateError(f'finalizing deployments file for "{team}": {exc}') from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)