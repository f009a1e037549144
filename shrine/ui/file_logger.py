"""Append every event to a plain-text log file in the state directory."""

from __future__ import annotations

import os
import threading
from datetime import datetime, timezone
from pathlib import Path

from shrine.ui.events import Event, format_fields

LOG_FILE_NAME = "shrine.log"


class FileLogger:
    """Writes one line per event to ``<state_dir>/logs/shrine.log``."""

    def __init__(self, state_dir: str | os.PathLike[str]) -> None:
        logs_dir = Path(state_dir) / "logs"
        try:
            logs_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as exc:
            raise OSError(f'creating logs dir "{logs_dir}": {exc}') from exc
        self.path = logs_dir / LOG_FILE_NAME
        try:
            self._file = self.path.open("a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f'opening log file "{self.path}": {exc}') from exc
        self._lock = threading.Lock()

    def on_event(self, event: Event) -> None:
        """Append the event with a UTC timestamp."""
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        status = getattr(event.status, "value", event.status)
        line = f"{timestamp} [{status}] {event.name}{format_fields(event.fields)}\n"
        with self._lock:
            self._file.write(line)
            self._file.flush()

    def close(self) -> None:
        """Close the log file."""
        self._file.close()

    def __enter__(self) -> FileLogger:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()