# shrine

Building blocks for a small self-hosted container platform. The package has
filesystem-backed state stores and resolves manifest outputs and application
environment variables. It also has observers that log deployment events.

## Installation

```
pip install .
```

To run the test suite, install the `test` extra and run pytest:

```
pip install ".[test]"
pytest
```

The package has no runtime dependencies beyond the standard library.

## What is inside

### `shrine.topo`

`topo_sort(deps)` takes a mapping from each node to the nodes it depends on. It
returns the nodes in an order where every node comes after its dependencies.
When several nodes are ready at once, they are taken alphabetically. A
dependency that is not a key of the mapping counts as already resolved. A cycle
raises `CycleError`. Its `stuck` attribute lists the nodes that could not be
ordered.

### `shrine.state`

- `Deployment(kind, name, container_id, config_hash="")` is a frozen record of
  one deployed container.
- `Store(teams, subnets, secrets, deployments)` bundles the four stores.
- `config_hash(image, env, vol_specs, port_specs, expose_to_platform)` returns a
  sha256 hex digest of a container configuration. It sorts the env, volume and
  port lists first, so their order does not matter. `None` and an empty list
  give the same hash.
- Errors: `StateError` is the base class. The others are `SecretNotFoundError`,
  `SubnetNotFoundError` and `NoAvailableSubnetsError`.

### `shrine.local`

These stores all live under one state directory. Each one writes its files
atomically, through a temporary file and a rename.

- `subnets.SubnetStore(base_dir)` gives each team a `10.100.X.0/24` subnet,
  with X running from 5 to 255. It stores them in `subnets.txt` as
  `team=cidr` lines.
  - `allocate_subnet(team)` is idempotent and takes the lowest free octet.
  - `get_subnet(team)` returns the team's subnet.
  - `release_subnet(team)` frees it. Releasing an unknown team does nothing.
  - `list_subnets()` returns a copy of the team-to-CIDR mapping.
  - Running out of subnets raises `NoAvailableSubnetsError`.
- `secrets.SecretStore(base_dir)` keeps `KEY=VALUE` lines in
  `<team>/secrets.env`.
  - `get_or_generate(team, key, length)` returns `(value, generated)`. A new
    value is `length` random bytes, URL-safe base64 encoded without padding.
  - `get(team, key)` raises `SecretNotFoundError` for an unknown key.
  - `list(team)` returns a copy of the team's secrets.
- `deployments.DeploymentStore(base_dir)` keeps
  `<kind> <name> <container-id> [<config-hash>]` lines in
  `<team>/deployments.txt`.
  - `record(team, deployment)` adds a deployment or replaces the one with the
    same name.
  - `remove(team, name)` deletes it.
  - `list(team)` returns the deployments ordered by name.
- `teams.TeamStore(base_dir)` stores team manifests as JSON mappings in
  `teams/<name>.json`, with the name lower-cased.
  - `save_team(team)` fills in `metadata.resourceID` with a UUID when it is
    missing.
  - `load_team(name)` and `delete_team(name)` raise `TeamNotFoundError` for an
    unknown team.
  - `list_teams()` skips files it cannot read and prints a warning for each.
- `store.new_local_store(base_dir)` builds all four stores and returns a
  `Store`.

Lines in the text files may carry `#` comments and blank lines. Malformed lines
are skipped.

### `shrine.templating`

`Template(name, source)` parses a small template language:

- `{{.field}}` references, including chained `{{.a.b}}`
- `"quoted"` and `` `raw` `` string literals
- `{{/* comments */}}`
- the `{{-` and `-}}` whitespace trim markers

`field_refs()` lists the top-level fields the template uses. `render(context)`
fills them in. A missing key renders as `<no value>`. Parse and render
failures raise `TemplateError`.

### `shrine.resolver`

The manifests are dataclasses: `Metadata`, `Output`, `ResourceManifest`,
`EnvVar`, `ApplicationManifest` and `ResolvedDependencies`.

- `LiveResolver(secrets).resolve_resource(res)` returns every output of the
  resource, together with the built-ins `team` and `name`. Each output is one
  of the following:
  - a static value;
  - a generated secret, fetched from the store under the key `<name>.<output>`
    with a length of 32 bytes;
  - a template;
  - one of the bare built-ins `host`, which resolves to `owner.name`, or
    `port`, which needs `port` to be set.
- `resolve_application(app, deps)` resolves each env var from one of the
  following:
  - `value`;
  - `value_from`, written as `resource.<name>.<output>` or
    `application.<name>.<output>`;
  - `template`.

  Templates can see `team`, `name` and the sibling env vars.
- `DryRunResolver` has the same methods but never touches a secret store. It
  uses the placeholders `[GENERATED]` and `[PORT]`, and leaves resource
  templates unrendered.
- `render_templates(scope, templates, values)` renders templates that refer to
  each other in dependency order. A cycle gives an error that mentions
  "template cycle".
- `lookup_value_from(ref, deps)` resolves a single reference.
- All failures raise `ResolverError`.

### `shrine.ui`

- `events.Event(name, status, fields)` describes one event, and
  `events.EventStatus` holds the statuses `started`, `finished`, `error` and
  `info`. `events.format_fields(fields)` renders the fields as ` key="value"`
  pairs in key order.
- `file_logger.FileLogger(state_dir)` appends a line for every event to
  `<state_dir>/logs/shrine.log`. Each line reads
  `<UTC time> [<status>] <name> key="value"...`. The logger is a context
  manager.
- `terminal.TerminalObserver(out)` prints a progress line for each known event.
  For network, container-removal, volume and image-pull steps, it shows a
  spinner while the step runs.

### `shrine.updater`

- `latest_version()` asks the release API for the newest tag.
- `is_newer(current, latest)` compares two versions, ignoring a leading `v`. A
  `dev` build never counts as outdated.
- `extract_binary(stream)` pulls the `shrine` file out of a `.tar.gz` archive.
- `update(out, executable)` downloads the archive for the current platform and
  replaces the executable with its `shrine` file.
- The repository it looks at comes from the `SHRINE_UPDATE_REPO` environment
  variable.
- Failures raise `UpdateError`.

## Example

```python
from shrine.local.store import new_local_store
from shrine.resolver import (
    LiveResolver, Metadata, Output, ResourceManifest,
)

store = new_local_store("/var/lib/shrine")
db = ResourceManifest(
    metadata=Metadata(name="hello-db", owner="team-a"),
    outputs=[
        Output(name="host"),
        Output(name="port", value="5432"),
        Output(name="password", generated=True),
        Output(name="url", template="postgres://{{.host}}:{{.port}}"),
    ],
)
values = LiveResolver(store.secrets).resolve_resource(db)
print(values["url"])  # postgres://team-a.hello-db:5432
```

## What this package does not do

- It has no command-line interface.
- It does not read manifests from YAML files.
- It does not talk to a container engine, so it does not create networks,
  volumes or containers itself.
- It does not write reverse-proxy routing files.

It supplies the state, resolution and logging pieces that such a tool would
build on.