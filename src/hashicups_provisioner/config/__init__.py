"""YAML configuration loading and convenience plan/apply API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import SecretStr

from hashicups_provisioner.config.loader import ConfigError, load_config
from hashicups_provisioner.config.registry import default_registry
from hashicups_provisioner.config.schema import Config, ProviderConfig
from hashicups_provisioner.core.provider import HashiCupsProvider, PasswordAuth
from hashicups_provisioner.core.state import State
from hashicups_provisioner.engine.engine import HashiCupsEngine, ProgressCallback
from hashicups_provisioner.resources.coffee import CoffeesDataSource

if TYPE_CHECKING:
    from pathlib import Path

    from hashicups_provisioner.core.state import ResourceInstance
    from hashicups_provisioner.engine.types import ApplyResult, ResourceChange

__all__ = [
    "Config",
    "ConfigError",
    "ProviderConfig",
    "State",
    "apply",
    "coffees",
    "destroy",
    "drift",
    "import_",
    "load",
    "load_config",
    "plan",
    "refresh",
]


def load(path: Path | str) -> Config:
    """Load a YAML configuration file."""
    return load_config(path)


def _provider_from_config(config: Config) -> HashiCupsProvider:
    p = config.provider
    if not p.host:
        raise ConfigError("provider.host is required (set in YAML or HASHICUPS_HOST env var)")
    auth = None
    if p.username or p.password:
        if not (p.username and p.password):
            raise ConfigError("provider.username and provider.password must be set together")
        auth = PasswordAuth(username=p.username, password=SecretStr(p.password))
    return HashiCupsProvider(host=p.host, auth=auth, timeout=p.timeout)


def _engine_from_config(config: Config) -> HashiCupsEngine:
    """Build a ``HashiCupsEngine`` from a ``Config`` instance."""
    return HashiCupsEngine(
        provider=_provider_from_config(config),
        state_path=config.resolved_state_path,
        registry=default_registry(),
    )


def plan(config: Config, *, destroy: bool = False, refresh: bool = True) -> list[ResourceChange]:
    """Plan changes for the given configuration.

    With ``refresh`` the plan is computed against live data and the refreshed
    state is written back first.
    """
    engine = _engine_from_config(config)
    if refresh:
        engine.refresh(persist=True)
    return engine.plan(config.resources, destroy=destroy)


def apply(
    config: Config, *, refresh: bool = True, progress: ProgressCallback | None = None
) -> ApplyResult:
    """Converge the API to the configuration."""
    engine = _engine_from_config(config)
    if refresh:
        engine.refresh(persist=True)
    return engine.apply(config.resources, progress=progress)


def destroy(config: Config, *, progress: ProgressCallback | None = None) -> ApplyResult:
    """Delete everything tracked in the state file."""
    return _engine_from_config(config).destroy(progress=progress)


def refresh(config: Config, *, persist: bool = False) -> tuple[list[ResourceChange], State]:
    """Refresh state from the live API.

    Returns the drift changes and the refreshed state. Nothing is written
    unless ``persist`` is set.
    """
    state, changes = _engine_from_config(config).refresh(persist=persist)
    return changes, state


def drift(config: Config) -> list[ResourceChange]:
    """Detect drift between the state file and the live API."""
    changes, _ = refresh(config)
    return changes


def import_(config: Config, address: str, identity: str) -> ResourceInstance:
    """Adopt an existing remote entity, e.g. ``import_(config, "hashicups_order.edu", "2")``."""
    return _engine_from_config(config).import_(address, identity)


def coffees(config: Config) -> list[dict[str, Any]]:
    """Read the coffee catalog."""
    instance = _engine_from_config(config).read_data(CoffeesDataSource())
    return instance.attributes["coffees"]
