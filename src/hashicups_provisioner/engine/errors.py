"""Engine error types."""

from __future__ import annotations

from typing import Any


class EngineError(Exception):
    """Base exception for engine errors."""


class UnknownResourceTypeError(EngineError):
    """Raised when a resource type has no registration/handler."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Unknown resource type: {resource_type}")
        self.resource_type = resource_type


class ReadOnlyResourceError(EngineError):
    """Raised when a write is attempted on a data source."""

    def __init__(self, resource_type: str) -> None:
        super().__init__(f"Resource type is read-only: {resource_type}")
        self.resource_type = resource_type


class DuplicateAddressError(EngineError):
    """Raised when multiple desired resources share the same address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Duplicate resource address: {address}")
        self.address = address


class ReconcileError(EngineError):
    """Raised when a single reconcile operation fails.

    The failing client/mapping error is chained via ``__cause__`` and also
    exposed as ``cause``.
    """

    def __init__(
        self,
        *,
        operation: str,
        address: str,
        identity: str | None,
        cause: BaseException,
    ) -> None:
        self.operation = operation
        self.address = address
        self.identity = identity
        self.cause = cause
        target = f"{address} (id={identity})" if identity is not None else address
        super().__init__(f"{operation} failed on {target}: {cause}")

    @property
    def retryable(self) -> bool:
        return bool(getattr(self.cause, "retryable", False))


class ApplyError(EngineError):
    """Raised when an apply fails mid-way through.

    Carries the partial result (what was applied before the failure) so
    callers can inspect progress. The original exception is chained via
    ``__cause__``.
    """

    def __init__(self, *, applied: list[Any], address: str, message: str) -> None:
        from hashicups_provisioner.engine.types import ApplyResult

        self.result = ApplyResult(applied=applied)
        self.address = address
        super().__init__(f"Apply failed on {address}: {message}")


class AlreadyManagedError(EngineError):
    """Raised when importing onto an address the state already tracks."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Resource already managed: {address}")
        self.address = address
