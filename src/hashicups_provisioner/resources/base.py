"""Base resource class for HashiCups resources."""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field

from hashicups_provisioner.resources.fields import project

# Local names end up in addresses like "hashicups_order.<name>".
NAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class Resource(BaseModel):
    """Base class for all HashiCups resources.

    Resources are pure data - they define the desired state. Handlers know
    how to CRUD them. Every type splits its attributes into two disjoint
    field sets: ``user_fields`` are supplied by the caller and sent on
    create/update, ``server_fields`` are computed remotely and overwritten on
    every read.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str]
    user_fields: ClassVar[tuple[str, ...]] = ()
    server_fields: ClassVar[tuple[str, ...]] = ()
    read_only: ClassVar[bool] = False

    name: str = Field(pattern=NAME_PATTERN)

    def user_view(self) -> dict[str, Any]:
        """Desired attributes restricted to ``user_fields``."""
        return project(self.model_dump(exclude={"name", "address"}), self.user_fields)

    def collect(self, entries: list[dict[str, Any]]) -> dict[str, Any]:
        """Build data source attributes from listed entities (read-only types)."""
        raise NotImplementedError(f"{self.resource_type} is not a data source")

    @computed_field
    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'hashicups_order.morning')."""
        return f"{self.resource_type}.{self.name}"
