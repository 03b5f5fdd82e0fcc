"""HashiCups resource definitions."""

from hashicups_provisioner.resources.base import Resource
from hashicups_provisioner.resources.coffee import CoffeesDataSource
from hashicups_provisioner.resources.order import CoffeeRef, OrderItem, OrderResource

__all__ = [
    "CoffeeRef",
    "CoffeesDataSource",
    "OrderItem",
    "OrderResource",
    "Resource",
]
