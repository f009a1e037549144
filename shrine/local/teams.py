"""Filesystem-backed team registry, one JSON document per team."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
import uuid
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

from shrine.state import StateError


class TeamNotFoundError(StateError, LookupError):
    """Raised when a team is not registered."""


def _team_name(team: MutableMapping[str, Any]) -> str:
    return str(team.get("metadata", {}).get("name", ""))


class TeamStore:
    """Stores team manifests as ``<base_dir>/teams/<name>.json``.

    A team manifest is a JSON-like mapping with a ``metadata`` section
    holding at least ``name``; ``resourceID`` is filled in on first save.
    """

    def __init__(self, base_dir: str | os.PathLike[str]) -> None:
        self._base_dir = Path(base_dir)
        try:
            self._teams_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise StateError(f"creating teams directory: {exc}") from exc

    @property
    def _teams_dir(self) -> Path:
        return self._base_dir / "teams"

    def _team_path(self, name: str) -> Path:
        return self._teams_dir / f"{name.lower()}.json"

    def save_team(self, team: MutableMapping[str, Any]) -> None:
        """Write the team, assigning a resource ID in place if it has none."""
        metadata = team.setdefault("metadata", {})
        if not metadata.get("resourceID"):
            metadata["resourceID"] = str(uuid.uuid4())

        path = self._team_path(_team_name(team))
        try:
            content = json.dumps(team, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as exc:
            raise StateError(f"encoding team to JSON: {exc}") from exc
        try:
            fd, tmp_path = tempfile.mkstemp(
                prefix="team-", suffix=".json.tmp", dir=self._teams_dir
            )
        except OSError as exc:
            raise StateError(f"creating temporary file: {exc}") from exc
        try:
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as exc:
                raise StateError(f"closing temporary file: {exc}") from exc
            try:
                os.replace(tmp_path, path)
            except OSError as exc:
                raise StateError(f'renaming temporary file to "{path}": {exc}') from exc
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp_path)

    def load_team(self, name: str) -> dict[str, Any]:
        """Return the stored team manifest or raise TeamNotFoundError."""
        path = self._team_path(name)
        try:
            data = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise TeamNotFoundError(
                f'\n  ❌  team "{name}" not found, use \'shrine apply teams\' '
                "to sync new team definitions\n"
            ) from None
        except OSError as exc:
            raise StateError(f"reading team file: {exc}") from exc
        try:
            team = json.loads(data)
        except ValueError as exc:
            raise StateError(f"unmarshaling team JSON: {exc}") from exc
        if not isinstance(team, dict):
            raise StateError("unmarshaling team JSON: not an object")
        return team

    def list_teams(self) -> list[dict[str, Any]]:
        """Return every readable team; unreadable files are reported and skipped."""
        try:
            entries = sorted(os.scandir(self._teams_dir), key=lambda e: e.name)
        except OSError as exc:
            raise StateError(f"reading teams directory: {exc}") from exc

        teams = []
        for entry in entries:
            if entry.is_dir() or os.path.splitext(entry.name)[1] != ".json":
                continue
            try:
                teams.append(self.load_team(entry.name[: -len(".json")]))
            except StateError as exc:
                print(f'Warning: failed to load team file "{entry.name}": {exc}')
        return teams

    def delete_team(self, name: str) -> None:
        """Remove a team or raise TeamNotFoundError."""
        try:
            self._team_path(name).unlink()
        except FileNotFoundError:
            raise TeamNotFoundError(f'team "{name}" not found') from None
        except OSError as exc:
            raise StateError(f"deleting team file: {exc}") from exc