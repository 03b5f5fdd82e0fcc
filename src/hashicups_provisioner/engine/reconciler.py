"""Per-entity reconciliation of desired state against the HashiCups API.

Lifecycle of one entity within a session::

    absent -> creating -> present -> deleting -> absent

Every public method either returns a new snapshot or raises
:class:`ReconcileError`; snapshots passed in are never mutated, so on any
failure the caller still holds the previous observed state verbatim.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from hashicups_provisioner.client.errors import NotFoundError
from hashicups_provisioner.core.state import ResourceInstance, compute_attributes_hash
from hashicups_provisioner.engine.drift import detect
from hashicups_provisioner.engine.errors import ReadOnlyResourceError, ReconcileError
from hashicups_provisioner.engine.handlers import EngineContext
from hashicups_provisioner.engine.types import (
    ENTITY_PATH,
    Action,
    FieldDrift,
    Lifecycle,
    RefreshResult,
)
from hashicups_provisioner.resources.fields import project

if TYPE_CHECKING:
    import threading

    from hashicups_provisioner.core.provider import HashiCupsProvider
    from hashicups_provisioner.engine.registry import ResourceTypeRegistration, ResourceTypeRegistry
    from hashicups_provisioner.resources.base import Resource

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Reconciler:
    """Converges observed state toward desired state, one entity at a time.

    The reconciler holds no connection between calls: each operation opens a
    client through ``provider.connect()`` and closes it before returning.
    Callers must serialize operations on the same entity.

    An instance is one session: it remembers lifecycle phases and the
    identity keys it has seen deleted. That bookkeeping is not thread-safe,
    so workers reconciling entities concurrently each need their own
    ``Reconciler``.
    """

    def __init__(
        self,
        *,
        provider: HashiCupsProvider,
        registry: ResourceTypeRegistry,
        clock: Callable[[], datetime] = _utcnow,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._provider = provider
        self._registry = registry
        self._clock = clock
        self._cancel_event = cancel_event
        self._phases: dict[str, Lifecycle] = {}
        self._tombstones: set[tuple[str, str]] = set()

    # -- session bookkeeping ----------------------------------------------

    @contextmanager
    def _ctx(self) -> Iterator[EngineContext]:
        with self._provider.connect(cancel_event=self._cancel_event) as client:
            yield EngineContext(client=client)

    def lifecycle(self, address: str) -> Lifecycle:
        """Phase of *address* as seen by this reconciler (``absent`` if unknown)."""
        return self._phases.get(address, Lifecycle.ABSENT)

    def _enter(self, address: str, phase: Lifecycle) -> None:
        prev = self._phases.get(address, Lifecycle.ABSENT)
        if prev != phase:
            logger.debug("%s: %s -> %s", address, prev.value, phase.value)
        self._phases[address] = phase

    def is_tombstoned(self, observed: ResourceInstance) -> bool:
        """True if this entity was deleted earlier in the session."""
        return observed.id is not None and (observed.resource_type, observed.id) in self._tombstones

    def _tombstone(self, observed: ResourceInstance) -> None:
        if observed.id is not None:
            self._tombstones.add((observed.resource_type, observed.id))

    def _writable(self, resource_type: str) -> ResourceTypeRegistration:
        reg = self._registry.get(resource_type)
        if reg.model.read_only:
            raise ReadOnlyResourceError(resource_type)
        return reg

    def _snapshot(
        self,
        resource_type: str,
        name: str,
        attrs: dict[str, Any],
        *,
        created_at: datetime | None = None,
    ) -> ResourceInstance:
        now = self._clock()
        return ResourceInstance(
            address=f"{resource_type}.{name}",
            resource_type=resource_type,
            name=name,
            id=attrs.get("id"),
            attributes=attrs,
            attributes_hash=compute_attributes_hash(attrs),
            created_at=created_at or now,
            synced_at=now,
        )

    # -- planning ---------------------------------------------------------

    def plan_action(self, desired: Resource, observed: ResourceInstance | None) -> Action:
        """Decide create/update/no-op without calling the API.

        Equality is structural over user fields only; server fields and
        timestamps never trigger an update.
        """
        reg = self._writable(desired.resource_type)
        if observed is None or self.is_tombstoned(observed):
            return Action.CREATE
        if observed.resource_type != desired.resource_type:
            raise ValueError(
                f"Observed state for {observed.address} is a {observed.resource_type}, "
                f"not a {desired.resource_type}"
            )
        prior = project(observed.attributes, reg.model.user_fields)
        return Action.NOOP if desired.user_view() == prior else Action.UPDATE

    # -- operations -------------------------------------------------------

    def apply(self, desired: Resource, observed: ResourceInstance | None = None) -> ResourceInstance:
        """Converge one entity to *desired*.

        Returns the new observed snapshot, or *observed* itself when nothing
        had to change.
        """
        action = self.plan_action(desired, observed)
        if action == Action.NOOP:
            assert observed is not None
            logger.debug("%s is up-to-date", desired.address)
            self._enter(desired.address, Lifecycle.PRESENT)
            return observed
        if action == Action.CREATE:
            return self._create(desired)
        assert observed is not None
        return self._update(desired, observed)

    def _create(self, desired: Resource) -> ResourceInstance:
        handler = self._registry.get(desired.resource_type).handler
        self._enter(desired.address, Lifecycle.CREATING)
        try:
            with self._ctx() as ctx:
                attrs = handler.create(ctx, desired)
        except Exception as exc:
            self._enter(desired.address, Lifecycle.ABSENT)
            raise ReconcileError(
                operation=Action.CREATE.value,
                address=desired.address,
                identity=None,
                cause=exc,
            ) from exc

        # The server response is authoritative for every field, including
        # the ones the caller just sent.
        instance = self._snapshot(desired.resource_type, desired.name, attrs)
        self._enter(desired.address, Lifecycle.PRESENT)
        logger.info("Created %s (id=%s)", desired.address, instance.id)
        return instance

    def _update(self, desired: Resource, observed: ResourceInstance) -> ResourceInstance:
        handler = self._registry.get(desired.resource_type).handler
        assert observed.id is not None
        try:
            with self._ctx() as ctx:
                attrs = handler.update(ctx, observed.id, desired)
        except Exception as exc:
            raise ReconcileError(
                operation=Action.UPDATE.value,
                address=desired.address,
                identity=observed.id,
                cause=exc,
            ) from exc

        instance = self._snapshot(
            desired.resource_type, desired.name, attrs, created_at=observed.created_at
        )
        self._enter(desired.address, Lifecycle.PRESENT)
        logger.info("Updated %s (id=%s)", desired.address, instance.id)
        return instance

    def refresh(self, observed: ResourceInstance) -> RefreshResult:
        """Re-read one entity and report how it drifted from *observed*.

        An entity removed out of band comes back as ``deleted`` with no
        instance; any other failure raises and leaves *observed* valid.
        """
        reg = self._registry.get(observed.resource_type)
        if observed.id is None:
            raise ValueError(f"Cannot refresh {observed.address}: it has no identity key")
        if self.is_tombstoned(observed):
            return RefreshResult(instance=None, deleted=True)

        try:
            with self._ctx() as ctx:
                fresh = reg.handler.read(ctx, observed.id)
        except NotFoundError:
            logger.warning(
                "%s (id=%s) was deleted outside of this tool", observed.address, observed.id
            )
            self._tombstone(observed)
            self._enter(observed.address, Lifecycle.ABSENT)
            gone = FieldDrift(
                path=ENTITY_PATH,
                old_value=project(observed.attributes, reg.model.user_fields),
                new_value=None,
            )
            return RefreshResult(instance=None, drift=[gone], deleted=True)
        except Exception as exc:
            raise ReconcileError(
                operation=Action.READ.value,
                address=observed.address,
                identity=observed.id,
                cause=exc,
            ) from exc

        drift = detect(observed.attributes, fresh, reg.model.user_fields)
        if drift:
            logger.info("%s drifted in %d field(s)", observed.address, len(drift))
        instance = observed.model_copy(
            update={
                "attributes": fresh,
                "attributes_hash": compute_attributes_hash(fresh),
                "synced_at": self._clock(),
            },
            deep=True,
        )
        self._enter(observed.address, Lifecycle.PRESENT)
        return RefreshResult(instance=instance, drift=drift)

    def import_(self, resource_type: str, name: str, identity: str) -> ResourceInstance:
        """Adopt an existing remote entity by its identity key.

        The entity is read once and its attributes become the observed
        snapshot stored under ``<resource_type>.<name>``.
        """
        reg = self._writable(resource_type)
        address = f"{resource_type}.{name}"
        try:
            with self._ctx() as ctx:
                attrs = reg.handler.read(ctx, identity)
        except Exception as exc:
            raise ReconcileError(
                operation=Action.IMPORT.value,
                address=address,
                identity=identity,
                cause=exc,
            ) from exc

        instance = self._snapshot(resource_type, name, attrs)
        self._enter(address, Lifecycle.PRESENT)
        logger.info("Imported %s (id=%s)", address, instance.id)
        return instance

    def destroy(self, observed: ResourceInstance | None) -> None:
        """Delete one entity. Destroying an absent entity is a no-op."""
        if observed is None or self.is_tombstoned(observed):
            return
        reg = self._writable(observed.resource_type)
        if observed.id is None:
            raise ValueError(f"Cannot destroy {observed.address}: it has no identity key")

        self._enter(observed.address, Lifecycle.DELETING)
        try:
            with self._ctx() as ctx:
                reg.handler.delete(ctx, observed.id)
        except Exception as exc:
            self._enter(observed.address, Lifecycle.PRESENT)
            raise ReconcileError(
                operation=Action.DELETE.value,
                address=observed.address,
                identity=observed.id,
                cause=exc,
            ) from exc

        self._tombstone(observed)
        self._enter(observed.address, Lifecycle.ABSENT)
        logger.info("Destroyed %s (id=%s)", observed.address, observed.id)

    def read_data(self, source: Resource) -> ResourceInstance:
        """Read a catalog-style data source."""
        reg = self._registry.get(source.resource_type)
        try:
            with self._ctx() as ctx:
                entries = reg.handler.list(ctx)
        except Exception as exc:
            raise ReconcileError(
                operation=Action.READ.value,
                address=source.address,
                identity=None,
                cause=exc,
            ) from exc
        return self._snapshot(source.resource_type, source.name, source.collect(entries))
