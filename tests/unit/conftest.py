"""Shared fixtures for unit tests."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

import pytest

from hashicups_provisioner.client.errors import NotFoundError, RemoteError
from hashicups_provisioner.config import load
from hashicups_provisioner.config.registry import default_registry
from hashicups_provisioner.core import HashiCupsProvider
from hashicups_provisioner.engine.reconciler import Reconciler

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from hashicups_provisioner.config.schema import Config

_HASHICUPS_ENV_VARS = (
    "HASHICUPS_HOST",
    "HASHICUPS_USERNAME",
    "HASHICUPS_PASSWORD",
    "HASHICUPS_TIMEOUT",
)

COFFEES: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Packer Spiced Latte",
        "teaser": "Packed with goodness to spice up your images",
        "collection": "Origins",
        "origin": "Summer 2013",
        "color": "#1FA7EE",
        "description": "",
        "price": 350,
        "image": "/packer.png",
        "ingredients": [{"ingredient_id": 1}, {"ingredient_id": 2}, {"ingredient_id": 4}],
    },
    {
        "id": 2,
        "name": "Vaulatte",
        "teaser": "Nothing gives you a safe and secure feeling like a Vaulatte",
        "collection": "Foundations",
        "origin": "Spring 2015",
        "color": "#FFD814",
        "description": "",
        "price": 200,
        "image": "/vault.png",
        "ingredients": [{"ingredient_id": 1}, {"ingredient_id": 2}],
    },
]


class FakeHashiCupsClient:
    """In-memory stand-in for ``HashiCupsClient`` that behaves like the real API.

    Records every call in ``calls``. ``fail_next[verb] = exc`` makes the next
    call of that verb raise ``exc`` without touching the store.
    """

    def __init__(self, coffees: list[dict[str, Any]] | None = None) -> None:
        self.coffees = {c["id"]: c for c in copy.deepcopy(coffees or COFFEES)}
        self.orders: dict[int, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, Any]] = []
        self.fail_next: dict[str, Exception] = {}
        self._next_id = 1

    def _record(self, verb: str, arg: Any = None) -> None:
        self.calls.append((verb, copy.deepcopy(arg)))
        exc = self.fail_next.pop(verb, None)
        if exc is not None:
            raise exc

    def _expand(self, items: list[dict[str, Any]]) -> list[dict[str, Any]]:
        out = []
        for item in items:
            coffee_id = item["coffee"]["id"]
            if coffee_id not in self.coffees:
                raise RemoteError(422, f"coffee {coffee_id} does not exist")
            out.append({"coffee": copy.deepcopy(self.coffees[coffee_id]), "quantity": item["quantity"]})
        return out

    def _order(self, order_id: int) -> dict[str, Any]:
        if order_id not in self.orders:
            raise NotFoundError(f"order {order_id} not found")
        return {"id": order_id, "items": copy.deepcopy(self.orders[order_id])}

    def get_coffees(self) -> list[dict[str, Any]]:
        self._record("get_coffees")
        return copy.deepcopy(list(self.coffees.values()))

    def create_order(self, items: list[dict[str, Any]]) -> dict[str, Any]:
        self._record("create_order", items)
        order_id = self._next_id
        self._next_id += 1
        self.orders[order_id] = self._expand(items)
        return self._order(order_id)

    def get_order(self, order_id: int) -> dict[str, Any]:
        self._record("get_order", order_id)
        return self._order(order_id)

    def update_order(self, order_id: int, items: list[dict[str, Any]]) -> dict[str, Any]:
        self._record("update_order", (order_id, items))
        if order_id not in self.orders:
            raise NotFoundError(f"order {order_id} not found")
        self.orders[order_id] = self._expand(items)
        # Like the real API, the update response carries bare coffee ids only.
        return {"id": order_id, "items": copy.deepcopy(items)}

    def delete_order(self, order_id: int) -> None:
        self._record("delete_order", order_id)
        if order_id not in self.orders:
            raise NotFoundError(f"order {order_id} not found")
        del self.orders[order_id]

    def verbs(self) -> list[str]:
        return [verb for verb, _ in self.calls]


@pytest.fixture(autouse=True)
def _clean_hashicups_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove HASHICUPS_* env vars so unit tests don't leak host config."""
    for var in _HASHICUPS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def fake_client() -> FakeHashiCupsClient:
    return FakeHashiCupsClient()


@pytest.fixture
def provider(fake_client: FakeHashiCupsClient) -> HashiCupsProvider:
    return HashiCupsProvider.from_client(fake_client)  # type: ignore[arg-type]


@pytest.fixture
def reconciler(provider: HashiCupsProvider) -> Reconciler:
    return Reconciler(provider=provider, registry=default_registry())


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Config]:
    """Factory fixture: write YAML + optional .env, return loaded Config."""

    def _make(yaml_str: str, *, dotenv: str | None = None) -> Config:
        (tmp_path / "config.yaml").write_text(yaml_str)
        if dotenv is not None:
            (tmp_path / ".env").write_text(dotenv)
        return load(tmp_path / "config.yaml")

    return _make
