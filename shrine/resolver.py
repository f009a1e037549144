"""Materialise resource outputs and application env vars into final values."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from shrine.templating import Template, TemplateError
from shrine.topo import CycleError, topo_sort

GENERATED_SECRET_LENGTH = 32
"""Byte length requested from the secret store for ``generated`` outputs."""

BUILTIN_HOST = "host"
BUILTIN_PORT = "port"


class ResolverError(Exception):
    """Raised when an output or env var cannot be resolved."""


class SecretSource(Protocol):
    """The part of a secret store the resolver needs."""

    def get_or_generate(self, team: str, key: str, length: int) -> tuple[str, bool]:
        ...


@dataclass
class Metadata:
    """Name and owning team of a manifest."""

    name: str
    owner: str = ""


@dataclass
class Output:
    """One declared output of a resource."""

    name: str
    value: str = ""
    generated: bool = False
    template: str = ""


@dataclass
class ResourceManifest:
    """A resource with its declared outputs."""

    metadata: Metadata
    outputs: list[Output] = field(default_factory=list)
    port: int = 0


@dataclass
class EnvVar:
    """One environment variable of an application."""

    name: str
    value: str = ""
    value_from: str = ""
    template: str = ""


@dataclass
class ApplicationManifest:
    """An application with its environment."""

    metadata: Metadata
    env: list[EnvVar] = field(default_factory=list)


@dataclass
class ResolvedDependencies:
    """Resolved outputs of resources and built-ins of applications."""

    resources: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    applications: Mapping[str, Mapping[str, str]] = field(default_factory=dict)


def _q(text: str) -> str:
    return f'"{text}"'


def lookup_value_from(ref: str, deps: ResolvedDependencies) -> str:
    """Look up a ``resource.<name>.<output>`` or ``application.<name>.<output>`` ref."""
    parts = ref.split(".")
    if len(parts) != 3:
        raise ResolverError(f"invalid valueFrom format {_q(ref)}")
    kind, name, output = parts
    if kind == "resource":
        source = deps.resources or {}
    elif kind == "application":
        source = deps.applications or {}
    else:
        raise ResolverError(
            f"invalid valueFrom prefix {_q(kind)} (must be resource or application)"
        )
    if name not in source:
        raise ResolverError(f"unknown {kind} {_q(name)} in valueFrom {_q(ref)}")
    outputs = source[name]
    if output not in outputs:
        raise ResolverError(f"{kind} {_q(name)} has no resolved output {_q(output)}")
    return outputs[output]


def render_templates(
    scope: str, templates: Mapping[str, str], values: Mapping[str, str]
) -> dict[str, str]:
    """Render ``templates`` in dependency order against ``values``.

    Templates may reference each other; they are rendered so that each sees
    the rendered values of the siblings it refers to. ``values`` is not changed.
    """
    if not templates:
        return {}

    parsed: dict[str, Template] = {}
    deps: dict[str, set[str]] = {}
    for name, source in templates.items():
        try:
            template = Template(name, source)
        except TemplateError as exc:
            raise ResolverError(f"{scope}: parsing template {_q(name)}: {exc}") from exc
        parsed[name] = template
        deps[name] = {
            ref for ref in template.field_refs() if ref in templates and ref != name
        }

    try:
        order = topo_sort(deps)
    except CycleError as exc:
        raise ResolverError(f"{scope}: template cycle: {exc}") from exc

    context = dict(values)
    rendered: dict[str, str] = {}
    for name in order:
        try:
            text = parsed[name].render(context)
        except TemplateError as exc:
            raise ResolverError(f"{scope}: rendering template {_q(name)}: {exc}") from exc
        context[name] = text
        rendered[name] = text
    return rendered


def _resolve_env(
    app: ApplicationManifest, deps: ResolvedDependencies, prefix: str
) -> dict[str, str]:
    app_name = app.metadata.name
    env: dict[str, str] = {}
    sources: dict[str, str] = {}

    for var in app.env:
        if var.value:
            env[var.name] = var.value
        elif var.value_from:
            try:
                env[var.name] = lookup_value_from(var.value_from, deps)
            except ResolverError as exc:
                raise ResolverError(
                    f"{prefix}app {_q(app_name)}: env {_q(var.name)}: {exc}"
                ) from exc
        elif var.template:
            sources[var.name] = var.template
        else:
            raise ResolverError(
                f"{prefix}app {_q(app_name)}: env {_q(var.name)} "
                "has neither value, valueFrom nor template"
            )

    if not sources:
        return env

    context = {"team": app.metadata.owner, "name": app_name, **env}
    env.update(render_templates(f"app {_q(app_name)}", sources, context))
    return env


class LiveResolver:
    """Resolves values for a real deployment, generating secrets as needed."""

    def __init__(self, secrets: SecretSource | None) -> None:
        self.secrets = secrets

    def resolve_resource(self, res: ResourceManifest) -> dict[str, str]:
        """Return every output of ``res`` plus the ``team`` and ``name`` built-ins."""
        name, owner = res.metadata.name, res.metadata.owner
        values = {"team": owner, "name": name}
        templates: dict[str, str] = {}

        for output in res.outputs:
            if output.value:
                values[output.name] = output.value
            elif output.generated:
                values[output.name] = self._generate(res, output)
            elif output.template:
                templates[output.name] = output.template
            elif output.name == BUILTIN_HOST:
                values[output.name] = f"{owner}.{name}"
            elif output.name == BUILTIN_PORT:
                if res.port == 0:
                    raise ResolverError(
                        f'resource {_q(name)}: bare output "port" requires spec.port to be set'
                    )
                values[output.name] = str(res.port)
            else:
                raise ResolverError(
                    f"resource {_q(name)}: bare output {_q(output.name)} is not a "
                    'recognized CLI built-in (only "host" and "port" are supported)'
                )

        values.update(render_templates(f"resource {_q(name)}", templates, values))
        return values

    def _generate(self, res: ResourceManifest, output: Output) -> str:
        key = f"{res.metadata.name}.{output.name}"
        try:
            if self.secrets is None:
                raise ResolverError("no secret store configured")
            value, _ = self.secrets.get_or_generate(
                res.metadata.owner, key, GENERATED_SECRET_LENGTH
            )
        except Exception as exc:
            raise ResolverError(
                f"resource {_q(res.metadata.name)}: resolving generated output "
                f"{_q(output.name)}: {exc}"
            ) from exc
        return value

    def resolve_application(
        self, app: ApplicationManifest, deps: ResolvedDependencies
    ) -> dict[str, str]:
        """Return the materialised env of ``app``."""
        return _resolve_env(app, deps, "")


class DryRunResolver:
    """Resolves values with placeholders, touching no secret store."""

    def resolve_resource(self, res: ResourceManifest) -> dict[str, str]:
        """Return outputs of ``res`` with placeholders for unknown values."""
        name, owner = res.metadata.name, res.metadata.owner
        values = {"team": owner, "name": name}
        for output in res.outputs:
            if output.value:
                values[output.name] = output.value
            elif output.generated:
                values[output.name] = "[GENERATED]"
            elif output.template:
                values[output.name] = output.template
            elif output.name == BUILTIN_HOST:
                values[output.name] = f"{owner}.{name}"
            elif output.name == BUILTIN_PORT:
                values[output.name] = "[PORT]"
            else:
                raise ResolverError(
                    f"dry-run: resource {_q(name)}: bare output {_q(output.name)} "
                    "is not a recognized CLI built-in"
                )
        return values

    def resolve_application(
        self, app: ApplicationManifest, deps: ResolvedDependencies
    ) -> dict[str, str]:
        """Return the env of ``app`` as it would be deployed."""
        return _resolve_env(app, deps, "dry-run: ")