"""Order resource model."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from hashicups_provisioner.resources.base import Resource


class CoffeeRef(BaseModel):
    """Reference to a catalog coffee by its numeric identifier."""

    model_config = ConfigDict(extra="forbid")

    id: int = Field(ge=0)


class OrderItem(BaseModel):
    """One line of an order: a coffee and how many of it."""

    model_config = ConfigDict(extra="forbid")

    coffee: CoffeeRef
    quantity: int = Field(ge=1)


class OrderResource(Resource):
    """A HashiCups order.

    The item list is always sent as a whole; the API replaces it on update.
    """

    resource_type: ClassVar[str] = "hashicups_order"
    user_fields: ClassVar[tuple[str, ...]] = (
        "items[].coffee.id",
        "items[].quantity",
    )
    server_fields: ClassVar[tuple[str, ...]] = (
        "id",
        "items[].coffee.name",
        "items[].coffee.teaser",
        "items[].coffee.description",
        "items[].coffee.price",
        "items[].coffee.image",
    )

    items: list[OrderItem] = Field(min_length=1)
