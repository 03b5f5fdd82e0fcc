"""Default resource type registry factory."""

from __future__ import annotations

from hashicups_provisioner.engine.coffee_handler import CoffeeHandler
from hashicups_provisioner.engine.order_handler import OrderHandler
from hashicups_provisioner.engine.registry import ResourceTypeRegistry
from hashicups_provisioner.resources.coffee import CoffeesDataSource
from hashicups_provisioner.resources.order import OrderResource


def default_registry() -> ResourceTypeRegistry:
    """Create a fresh registry with all built-in resource types and handlers."""
    registry = ResourceTypeRegistry()
    registry.register(OrderResource, OrderHandler())
    registry.register(CoffeesDataSource, CoffeeHandler())
    return registry
