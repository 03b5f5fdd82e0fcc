"""Engine-facing handler interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from hashicups_provisioner.resources.base import Resource

if TYPE_CHECKING:
    from hashicups_provisioner.client.http import HashiCupsClient

R = TypeVar("R", bound=Resource)


@dataclass(frozen=True)
class EngineContext:
    """Context passed to handlers for the duration of one operation."""

    client: HashiCupsClient


class EntityHandler(Generic[R]):
    """Remote CRUD contract for one entity type.

    Handlers translate resources into API calls and API responses into stored
    attributes. They never retry and never touch observed state; the
    reconciler owns that. Identity keys are the opaque strings kept in state.
    """

    def create(self, ctx: EngineContext, desired: R) -> dict[str, Any]:
        """Create the entity. Return its attributes, including the new ``id``."""
        raise NotImplementedError

    def read(self, ctx: EngineContext, identity: str) -> dict[str, Any]:
        """Read the entity. Raise ``NotFoundError`` if it no longer exists."""
        raise NotImplementedError

    def update(self, ctx: EngineContext, identity: str, desired: R) -> dict[str, Any]:
        """Replace the entity's user fields. Return its attributes."""
        raise NotImplementedError

    def delete(self, ctx: EngineContext, identity: str) -> None:
        """Delete the entity. An entity that is already gone is not an error."""
        raise NotImplementedError

    def list(self, ctx: EngineContext) -> list[dict[str, Any]]:
        """List all entities of this type, in server order."""
        raise NotImplementedError
