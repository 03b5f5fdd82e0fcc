"""Conversions between HashiCups wire payloads and stored attributes.

Everything here is pure. ``*_to_wire`` builds request bodies from desired
resources, ``*_from_wire`` turns response bodies into the attribute dicts
kept in observed state. On user fields the pair round-trips exactly; server
fields only exist on the response side.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from hashicups_provisioner.client.models import WireCoffee, WireOrder

if TYPE_CHECKING:
    from hashicups_provisioner.resources.order import OrderResource

# The API stores identifiers as signed 64-bit integers; negative values are never issued.
MAX_IDENTITY = 2**63 - 1

_DIGITS_RE = re.compile(r"[0-9]+")


class MappingError(Exception):
    """Raised when a value cannot be mapped between wire and state form."""


# ── Identity keys ───────────────────────────────────────────────────


def identity_to_wire(identity: str) -> int:
    """Convert an opaque identity key (``"42"``) to the API's integer id."""
    if not isinstance(identity, str) or not _DIGITS_RE.fullmatch(identity):
        raise MappingError(f"Identity key must be a non-negative decimal string, got {identity!r}")
    value = int(identity)
    if value > MAX_IDENTITY:
        raise MappingError(f"Identity key {identity} is out of range")
    return value


def identity_from_wire(value: Any) -> str:
    """Convert the API's id (an int, or a numeric string) to an identity key."""
    if isinstance(value, bool):
        raise MappingError(f"Identifier must be numeric, got {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= MAX_IDENTITY:
            raise MappingError(f"Identifier {value} is out of range")
        return str(value)
    if isinstance(value, str):
        return str(identity_to_wire(value))
    raise MappingError(f"Identifier must be numeric, got {type(value).__name__}")


# ── Coffees ─────────────────────────────────────────────────────────


def _coffee_attrs(coffee: WireCoffee) -> dict[str, Any]:
    return {
        "id": coffee.id,
        "name": coffee.name,
        "teaser": coffee.teaser,
        "description": coffee.description,
        "price": coffee.price,
        "image": coffee.image,
    }


def coffee_from_wire(wire: Any) -> dict[str, Any]:
    try:
        coffee = WireCoffee.model_validate(wire)
    except ValidationError as exc:
        raise MappingError(f"Malformed coffee payload: {exc}") from exc
    attrs = _coffee_attrs(coffee)
    attrs["ingredients"] = [{"id": i.id} for i in coffee.ingredients]
    return attrs


# ── Orders ──────────────────────────────────────────────────────────


def order_items_to_wire(desired: OrderResource) -> list[dict[str, Any]]:
    """Request body for create/update: the full item list."""
    return [{"coffee": {"id": i.coffee.id}, "quantity": i.quantity} for i in desired.items]


def order_to_wire(desired: OrderResource, identity: str | None = None) -> dict[str, Any]:
    wire: dict[str, Any] = {"items": order_items_to_wire(desired)}
    if identity is not None:
        wire["id"] = identity_to_wire(identity)
    return wire


def order_from_wire(wire: Any) -> dict[str, Any]:
    """Stored attributes for an order payload.

    ``id`` is ``None`` when the payload carries no identifier (request bodies).
    """
    try:
        order = WireOrder.model_validate(wire)
    except ValidationError as exc:
        raise MappingError(f"Malformed order payload: {exc}") from exc
    return {
        "id": identity_from_wire(order.id) if order.id is not None else None,
        "items": [
            {"coffee": _coffee_attrs(item.coffee), "quantity": item.quantity}
            for item in order.items
        ],
    }
