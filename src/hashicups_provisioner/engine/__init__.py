"""Reconciliation engine for HashiCups resources."""

from hashicups_provisioner.engine.drift import detect
from hashicups_provisioner.engine.engine import HashiCupsEngine
from hashicups_provisioner.engine.errors import (
    AlreadyManagedError,
    ApplyError,
    DuplicateAddressError,
    EngineError,
    ReadOnlyResourceError,
    ReconcileError,
    UnknownResourceTypeError,
)
from hashicups_provisioner.engine.handlers import EngineContext, EntityHandler
from hashicups_provisioner.engine.reconciler import Reconciler
from hashicups_provisioner.engine.registry import ResourceTypeRegistration, ResourceTypeRegistry
from hashicups_provisioner.engine.types import (
    Action,
    ApplyResult,
    FieldDrift,
    Lifecycle,
    RefreshResult,
    ResourceChange,
)

__all__ = [
    "Action",
    "AlreadyManagedError",
    "ApplyError",
    "ApplyResult",
    "DuplicateAddressError",
    "EngineContext",
    "EngineError",
    "EntityHandler",
    "FieldDrift",
    "HashiCupsEngine",
    "Lifecycle",
    "ReadOnlyResourceError",
    "ReconcileError",
    "Reconciler",
    "RefreshResult",
    "ResourceChange",
    "ResourceTypeRegistration",
    "ResourceTypeRegistry",
    "UnknownResourceTypeError",
    "detect",
]
