"""Configuration models for YAML-based provisioning."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hashicups_provisioner.client.http import DEFAULT_TIMEOUT
from hashicups_provisioner.resources.base import Resource  # noqa: TC001 — Pydantic needs this at runtime
from hashicups_provisioner.resources.order import (
    OrderResource,  # noqa: TC001 — Pydantic needs this at runtime
)


class ProviderConfig(BaseSettings):
    """HashiCups connection settings.

    Fields can be set via YAML (constructor kwargs) or environment variables
    with the ``HASHICUPS_`` prefix. Constructor kwargs take precedence.

    ``password`` is typically provided via ``HASHICUPS_PASSWORD`` rather than
    YAML to avoid committing secrets to version control.
    """

    model_config = SettingsConfigDict(env_prefix="HASHICUPS_")

    host: str | None = None
    username: str | None = None
    password: str | None = None
    timeout: float = DEFAULT_TIMEOUT


def _none_to_list(v: Any) -> Any:
    return v if v is not None else []


class Config(BaseModel):
    """Top-level configuration file: provider settings, state location and orders."""

    provider: ProviderConfig
    state_path: Path = Path(".hashicups-state.json")
    orders: Annotated[list[OrderResource], BeforeValidator(_none_to_list)] = []
    config_dir: Path = Path()

    @property
    def resources(self) -> list[Resource]:
        """All declared resources, in file order."""
        return [*self.orders]

    @property
    def resolved_state_path(self) -> Path:
        """``state_path`` interpreted relative to the config file."""
        if self.state_path.is_absolute():
            return self.state_path
        return self.config_dir / self.state_path
