"""Human-friendly terminal rendering of deployment events."""

from __future__ import annotations

import sys
import threading
from typing import TextIO

from shrine.ui.events import Event, EventStatus

_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")
_FRAME_INTERVAL = 0.1


class _Spinner:
    """Animates a message on one terminal line until stopped."""

    def __init__(self, out: TextIO, message: str) -> None:
        self._out = out
        self._message = message
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._stopped = False

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        index = 0
        while not self._stop.is_set():
            self._out.write(f"\r    {_FRAMES[index % len(_FRAMES)]} {self._message}")
            self._out.flush()
            index += 1
            self._stop.wait(_FRAME_INTERVAL)
        self._out.write("\r\033[K")
        self._out.flush()

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._stop.set()
        self._thread.join()


# Events rendered as a single line: name -> (template, field names).
_SIMPLE_LINES: dict[str, tuple[str, tuple[str, ...]]] = {
    "network.ensure": ("  🌐 Ensuring network: shrine.{}.private", ("owner",)),
    "container.create": ("  🏗️  Creating container: {}.{}", ("team", "name")),
    "gateway.config.preserved": (
        "  📄 Preserving operator-owned traefik.yml: {}", ("path",)),
    "gateway.config.generated": ("  📝 Generated default traefik.yml: {}", ("path",)),
    "gateway.config.legacy_http_block": (
        "  ⚠️  Legacy http block in traefik.yml at {} — {}", ("path", "hint")),
    "gateway.config.tls_port_no_websecure": (
        "  ⚠️  tlsPort set but traefik.yml is missing websecure entrypoint at {} — {}",
        ("path", "hint")),
    "gateway.alias.tls_no_websecure": (
        "  ⚠️  alias tls: true but websecure entrypoint missing in {} for {}.{} ({}) — {}",
        ("path", "team", "name", "tls_aliases", "hint")),
    "gateway.config.legacy_probe_error": (
        "  ⚠️  Could not probe traefik.yml for legacy http block (deploy continues): {} ({})",
        ("path", "error")),
    "gateway.config.tls_port_probe_error": (
        "  ⚠️  Could not probe traefik.yml for websecure entrypoint (deploy continues): {} ({})",
        ("path", "error")),
    "gateway.dashboard.generated": ("  📝 Generated dashboard dynamic file: {}", ("path",)),
    "gateway.dashboard.preserved": (
        "  📄 Preserving operator-owned dashboard dynamic file: {}", ("path",)),
    "gateway.route.generated": ("  📝 Generated route file: {}", ("path",)),
    "gateway.route.preserved": ("  📄 Preserving operator-owned route file: {}", ("path",)),
    "gateway.route.stat_error": (
        "  ⚠️  Could not stat route file (deploy continues): {} ({})", ("path", "error")),
    "gateway.route.orphan": (
        "  ⚠️  Orphan route file left on disk; remove with: rm {}", ("path",)),
    "dns.register": ("  🌍 Registering DNS: {}", ("domain",)),
    "container.start": ("    ▶️  Starting existing container: {}", ("name",)),
    "container.recreate": ("    🔄 Image changed for {}, replacing container...", ("name",)),
    "container.fresh": ("    ✨ Creating fresh container: {}", ("name",)),
    "container.created": ("    ✅ Container {} is running", ("name",)),
}

# Events rendered only when they start: name -> (template, field names).
_START_LINES: dict[str, tuple[str, tuple[str, ...]]] = {
    "application.deploy": ("🚀 Deploying Application: {} (owner: {})", ("name", "owner")),
    "application.teardown": (
        "🗑️  Tearing down Application: {} (team: {})", ("name", "team")),
    "resource.deploy": ("📦 Deploying Resource: {} (type: {})", ("name", "type")),
    "resource.teardown": ("🗑️  Tearing down Resource: {} (team: {})", ("name", "team")),
}


class TerminalObserver:
    """Prints progress lines and spinners for deployment events."""

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out if out is not None else sys.stdout
        self._spinner: _Spinner | None = None

    def _line(self, template: str, event: Event, keys: tuple[str, ...]) -> None:
        self.out.write(template.format(*(event.field(key) for key in keys)) + "\n")

    def on_event(self, event: Event) -> None:
        """Render one event."""
        if event.status == EventStatus.ERROR:
            self.out.write(f"  ❌ Error [{event.name}]: {event.field('error')}\n")

        name = event.name
        if name in _START_LINES:
            if event.status == EventStatus.STARTED:
                self._line(*_START_LINES[name][:1], event, _START_LINES[name][1])
        elif name in _SIMPLE_LINES:
            template, keys = _SIMPLE_LINES[name]
            self._line(template, event, keys)
        elif name == "routing.configure":
            self._line("  🔗 Configuring routing: {} -> port {}", event, ("domain", "port"))
            aliases = event.field("aliases")
            if aliases:
                self.out.write(f"    ↳ Aliases: {aliases}\n")
        elif name == "network.create":
            self._step(event, EventStatus.STARTED, "    ",
                       "🔨 Creating Docker network: {}", "name",
                       "✅ Network created: {} ({})", "name", "cidr")
        elif name == "network.remove":
            self._step(event, EventStatus.STARTED, "  ",
                       "🌐 Removing network: {}", "name",
                       "✅ Network removed: {}", "name")
        elif name == "container.remove":
            if event.status == EventStatus.INFO and event.field("reason") == "not found":
                self.out.write(
                    f"    ℹ️  Container {event.field('name')} not found, skipping removal\n"
                )
            else:
                self._step(event, EventStatus.STARTED, "    ",
                           "🗑️  Removing container: {}", "name",
                           "✅ Container {} removed", "name")
        elif name == "volume.create":
            self._step(event, EventStatus.INFO, "    ", "📦 Creating volume: {}", "name", "")
        elif name == "volume.created":
            self._step(event, None, "    ", "", "", "✅ Volume {} is created", "name")
        elif name == "image.pull":
            self._step(event, EventStatus.STARTED, "    ",
                       "📥 Pulling image {}...", "ref", "✅ Pulled image {}", "ref")

    def _stop_spinner(self) -> None:
        if self._spinner is not None:
            self._spinner.stop()
            self._spinner = None

    def _step(
        self,
        event: Event,
        start_status: EventStatus | None,
        prefix: str,
        start_template: str,
        start_field: str,
        finish_template: str,
        *finish_fields: str,
    ) -> None:
        if start_status is not None and event.status == start_status:
            self._stop_spinner()
            message = start_template.format(event.field(start_field))
            self._spinner = _Spinner(self.out, prefix + message)
            self._spinner.start()
        elif event.status == EventStatus.FINISHED:
            self._stop_spinner()
            if finish_template:
                values = (event.field(key) for key in finish_fields)
                self.out.write(prefix + finish_template.format(*values) + "\n")
        elif event.status == EventStatus.ERROR:
            self._stop_spinner()