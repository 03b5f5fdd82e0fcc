"""Engine types (actions, lifecycle, drift, changes)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from hashicups_provisioner.core.state import ResourceInstance  # noqa: TC001 — Pydantic needs this at runtime

# Path used for drift entries that concern the whole entity (e.g. deletion).
ENTITY_PATH = "$"


class Action(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"
    IMPORT = "import"
    NOOP = "no-op"


class Lifecycle(str, Enum):
    ABSENT = "absent"
    CREATING = "creating"
    PRESENT = "present"
    DELETING = "deleting"


class FieldDrift(BaseModel):
    path: str
    old_value: Any = None
    new_value: Any = None


class RefreshResult(BaseModel):
    instance: ResourceInstance | None
    drift: list[FieldDrift] = Field(default_factory=list)
    deleted: bool = False


class ResourceChange(BaseModel):
    address: str
    resource_type: str
    action: Action
    identity: str | None = None
    desired: dict[str, Any] | None = None
    prior: dict[str, Any] | None = None
    drift: list[FieldDrift] | None = None


class ApplyResult(BaseModel):
    applied: list[ResourceChange] = Field(default_factory=list)

    def summary(self) -> dict[str, int]:
        counts = {a.value: 0 for a in Action}
        for c in self.applied:
            counts[c.action.value] += 1
        return counts
