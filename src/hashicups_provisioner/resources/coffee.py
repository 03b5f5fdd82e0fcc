"""Coffee catalog data source."""

from __future__ import annotations

from typing import Any, ClassVar

from hashicups_provisioner.resources.base import Resource

# The catalog has no identity of its own.
CATALOG_ID = "placeholder"


class CoffeesDataSource(Resource):
    """The read-only list of coffees offered by the API.

    Nothing is user-specified: every attribute comes from the server.
    """

    resource_type: ClassVar[str] = "hashicups_coffees"
    read_only: ClassVar[bool] = True
    server_fields: ClassVar[tuple[str, ...]] = (
        "id",
        "coffees[].id",
        "coffees[].name",
        "coffees[].teaser",
        "coffees[].description",
        "coffees[].price",
        "coffees[].image",
        "coffees[].ingredients[].id",
    )

    name: str = "coffees"

    def collect(self, entries: list[dict[str, Any]]) -> dict[str, Any]:
        """Attributes of the data source built from the listed coffees."""
        return {"id": CATALOG_ID, "coffees": entries}
