"""Coffee catalog handler (read-only)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from hashicups_provisioner.engine.handlers import EntityHandler
from hashicups_provisioner.resources.mapper import coffee_from_wire

if TYPE_CHECKING:
    from hashicups_provisioner.engine.handlers import EngineContext
    from hashicups_provisioner.resources.coffee import CoffeesDataSource


class CoffeeHandler(EntityHandler["CoffeesDataSource"]):
    """Lists the coffee catalog. Coffees cannot be written through the API."""

    def list(self, ctx: EngineContext) -> list[dict[str, Any]]:
        return [coffee_from_wire(c) for c in ctx.client.get_coffees()]
