"""Order handler implementing CRUD via the HashiCups orders API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from hashicups_provisioner.client.errors import NotFoundError
from hashicups_provisioner.engine.handlers import EntityHandler
from hashicups_provisioner.resources.mapper import (
    MappingError,
    identity_to_wire,
    order_from_wire,
    order_items_to_wire,
)

if TYPE_CHECKING:
    from hashicups_provisioner.engine.handlers import EngineContext
    from hashicups_provisioner.resources.order import OrderResource

logger = logging.getLogger(__name__)


class OrderHandler(EntityHandler["OrderResource"]):
    """CRUD handler for HashiCups orders."""

    def create(self, ctx: EngineContext, desired: OrderResource) -> dict[str, Any]:
        """Create an order; the response replaces the planned attributes."""
        response = ctx.client.create_order(order_items_to_wire(desired))
        attrs = order_from_wire(response)
        if attrs["id"] is None:
            raise MappingError("Create order response carries no id")
        logger.debug("Created order %s", attrs["id"])
        return attrs

    def read(self, ctx: EngineContext, identity: str) -> dict[str, Any]:
        return order_from_wire(ctx.client.get_order(identity_to_wire(identity)))

    def update(
        self, ctx: EngineContext, identity: str, desired: OrderResource
    ) -> dict[str, Any]:
        """Replace the order's items, then re-read it.

        The update response does not populate the nested coffees, so the
        stored attributes come from a fresh GET. If that GET fails (or is
        cancelled) the remote order is already replaced while the caller
        still holds the old snapshot; the next apply sends the same PUT
        again, which is harmless since the item list is replaced wholesale.
        """
        order_id = identity_to_wire(identity)
        ctx.client.update_order(order_id, order_items_to_wire(desired))
        return order_from_wire(ctx.client.get_order(order_id))

    def delete(self, ctx: EngineContext, identity: str) -> None:
        try:
            ctx.client.delete_order(identity_to_wire(identity))
        except NotFoundError:
            logger.debug("Order %s already deleted", identity)
