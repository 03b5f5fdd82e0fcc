"""State-file driven orchestration on top of the reconciler."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Literal

from hashicups_provisioner.core.state import State
from hashicups_provisioner.engine.errors import (
    AlreadyManagedError,
    ApplyError,
    DuplicateAddressError,
)
from hashicups_provisioner.engine.reconciler import Reconciler
from hashicups_provisioner.engine.types import Action, ApplyResult, ResourceChange
from hashicups_provisioner.resources.base import NAME_PATTERN

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ResourceChange, Literal["start", "done"]], None]

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence
    from pathlib import Path

    from hashicups_provisioner.core import HashiCupsProvider
    from hashicups_provisioner.core.state import ResourceInstance
    from hashicups_provisioner.engine.registry import ResourceTypeRegistry
    from hashicups_provisioner.resources.base import Resource


class HashiCupsEngine:
    """Terraform-like engine: desired resources + a state file -> API calls.

    The engine is the host side of the reconciler: it loads observed state
    from ``state_path``, hands each entity to the :class:`Reconciler`, and
    writes the state back after every successful operation.
    """

    def __init__(
        self,
        *,
        provider: HashiCupsProvider,
        state_path: Path,
        registry: ResourceTypeRegistry,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._state_path = state_path
        self._registry = registry
        self._reconciler = Reconciler(
            provider=provider, registry=registry, cancel_event=cancel_event
        )

    @property
    def state_path(self) -> Path:
        return self._state_path

    @property
    def reconciler(self) -> Reconciler:
        return self._reconciler

    def _load_state(self) -> State:
        state = State.load_or_create(self._state_path)
        logger.debug("State loaded: serial=%d, %d resources", state.serial, len(state.resources))
        return state

    def _persist(self, state: State) -> None:
        state.serial += 1
        state.save(self._state_path)

    @staticmethod
    def _index(resources: Sequence[Resource]) -> dict[str, Resource]:
        desired_by_addr: dict[str, Resource] = {}
        for r in resources:
            if r.address in desired_by_addr:
                raise DuplicateAddressError(r.address)
            desired_by_addr[r.address] = r
        return desired_by_addr

    def _refresh_state_in_place(self, state: State) -> list[ResourceChange]:
        changes: list[ResourceChange] = []
        for address, inst in list(state.resources.items()):
            result = self._reconciler.refresh(inst)
            if result.deleted:
                del state.resources[address]
                changes.append(
                    ResourceChange(
                        address=address,
                        resource_type=inst.resource_type,
                        action=Action.DELETE,
                        identity=inst.id,
                        prior=dict(inst.attributes),
                        drift=result.drift,
                    )
                )
                continue
            assert result.instance is not None
            state.resources[address] = result.instance
            if result.drift:
                changes.append(
                    ResourceChange(
                        address=address,
                        resource_type=inst.resource_type,
                        action=Action.UPDATE,
                        identity=inst.id,
                        prior=dict(inst.attributes),
                        drift=result.drift,
                    )
                )
        return changes

    def refresh(self, *, persist: bool = False) -> tuple[State, list[ResourceChange]]:
        """Re-read every tracked entity. Returns the new state and the drift found.

        With ``persist`` the refreshed snapshots are written back, server
        fields and sync timestamps included, even when no user field drifted.
        """
        state = self._load_state()
        drift = self._refresh_state_in_place(state)
        logger.info("Refreshed %d resources, %d drifted", len(state.resources), len(drift))
        if persist and (drift or state.resources):
            self._persist(state)
        return state, drift

    def plan(self, resources: Sequence[Resource], *, destroy: bool = False) -> list[ResourceChange]:
        """Classify each resource as create/update/no-op, plus deletes for untracked ones.

        No API call is made; run :meth:`refresh` first to plan against live data.
        """
        state = self._load_state()
        desired_by_addr = {} if destroy else self._index(resources)
        changes: list[ResourceChange] = []
        for addr, r in desired_by_addr.items():
            prior = state.resources.get(addr)
            changes.append(
                ResourceChange(
                    address=addr,
                    resource_type=r.resource_type,
                    action=self._reconciler.plan_action(r, prior),
                    identity=prior.id if prior is not None else None,
                    desired=r.user_view(),
                    prior=dict(prior.attributes) if prior is not None else None,
                )
            )
        for addr, inst in state.resources.items():
            if addr not in desired_by_addr:
                changes.append(
                    ResourceChange(
                        address=addr,
                        resource_type=inst.resource_type,
                        action=Action.DELETE,
                        identity=inst.id,
                        prior=dict(inst.attributes),
                    )
                )
        logger.info("Planned %d changes", sum(c.action != Action.NOOP for c in changes))
        return changes

    def apply(
        self,
        resources: Sequence[Resource],
        *,
        destroy: bool = False,
        progress: ProgressCallback | None = None,
    ) -> ApplyResult:
        """Create/update every desired resource, then delete untracked ones."""
        desired_by_addr = {} if destroy else self._index(resources)
        state = self._load_state()
        applied: list[ResourceChange] = []
        address = ""

        try:
            for address, desired in desired_by_addr.items():
                prior = state.resources.get(address)
                change = ResourceChange(
                    address=address,
                    resource_type=desired.resource_type,
                    action=self._reconciler.plan_action(desired, prior),
                    identity=prior.id if prior is not None else None,
                    desired=desired.user_view(),
                )
                if change.action == Action.NOOP:
                    continue
                if progress:
                    progress(change, "start")
                inst = self._reconciler.apply(desired, prior)
                state.resources[address] = inst
                self._persist(state)
                change.identity = inst.id
                applied.append(change)
                if progress:
                    progress(change, "done")

            for address in [a for a in state.resources if a not in desired_by_addr]:
                prior_inst: ResourceInstance = state.resources[address]
                change = ResourceChange(
                    address=address,
                    resource_type=prior_inst.resource_type,
                    action=Action.DELETE,
                    identity=prior_inst.id,
                    prior=dict(prior_inst.attributes),
                )
                if progress:
                    progress(change, "start")
                self._reconciler.destroy(prior_inst)
                del state.resources[address]
                self._persist(state)
                applied.append(change)
                if progress:
                    progress(change, "done")
        except Exception as e:
            raise ApplyError(applied=applied, address=address, message=str(e)) from e

        logger.info("Applied %d changes", len(applied))
        return ApplyResult(applied=applied)

    def destroy(self, *, progress: ProgressCallback | None = None) -> ApplyResult:
        """Delete every tracked entity."""
        return self.apply([], destroy=True, progress=progress)

    def read_data(self, source: Resource) -> ResourceInstance:
        return self._reconciler.read_data(source)

    def import_(self, address: str, identity: str) -> ResourceInstance:
        """Start tracking an existing remote entity under *address*.

        The address must not be tracked yet. Once imported, a matching
        declaration in the desired resources plans as no-op or update.
        """
        resource_type, _, name = address.partition(".")
        if not resource_type or not re.fullmatch(NAME_PATTERN, name):
            raise ValueError(f"Invalid resource address: {address!r}")
        state = self._load_state()
        if address in state.resources:
            raise AlreadyManagedError(address)

        inst = self._reconciler.import_(resource_type, name, identity)
        state.resources[address] = inst
        self._persist(state)
        return inst
