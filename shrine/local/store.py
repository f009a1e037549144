"""Construction of the filesystem-backed state stores."""

from __future__ import annotations

import os

from shrine.local.deployments import DeploymentStore
from shrine.local.secrets import SecretStore
from shrine.local.subnets import SubnetStore
from shrine.local.teams import TeamStore
from shrine.state import Store


def new_local_store(base_dir: str | os.PathLike[str]) -> Store:
    """Open every filesystem store under ``base_dir`` and bundle them."""
    return Store(
        teams=TeamStore(base_dir),
        subnets=SubnetStore(base_dir),
        secrets=SecretStore(base_dir),
        deployments=DeploymentStore(base_dir),
    )