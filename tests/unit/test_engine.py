from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Literal

import pytest

from hashicups_provisioner.client.errors import NotFoundError, RemoteError
from hashicups_provisioner.config.registry import default_registry
from hashicups_provisioner.core.state import State
from hashicups_provisioner.engine import HashiCupsEngine
from hashicups_provisioner.engine.errors import (
    AlreadyManagedError,
    ApplyError,
    DuplicateAddressError,
    ReconcileError,
)
from hashicups_provisioner.engine.types import Action, ResourceChange
from hashicups_provisioner.resources.coffee import CoffeesDataSource
from hashicups_provisioner.resources.order import OrderResource

if TYPE_CHECKING:
    from conftest import FakeHashiCupsClient

    from hashicups_provisioner.core import HashiCupsProvider


def _order(name: str, *items: tuple[int, int]) -> OrderResource:
    return OrderResource.model_validate(
        {"name": name, "items": [{"coffee": {"id": c}, "quantity": q} for c, q in items]}
    )


@pytest.fixture
def engine(provider: HashiCupsProvider, tmp_path: Path) -> HashiCupsEngine:
    return HashiCupsEngine(
        provider=provider,
        state_path=tmp_path / "state.json",
        registry=default_registry(),
    )


def test_create_update_delete_roundtrip(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    morning = _order("morning", (1, 2))

    plan1 = engine.plan([morning])
    assert [c.action for c in plan1] == [Action.CREATE]

    result = engine.apply([morning])
    assert result.summary()["create"] == 1

    state = State.load(engine.state_path)
    assert state.serial == 1
    inst = state.resources["hashicups_order.morning"]
    assert inst.id == "1"
    assert inst.attributes["items"][0]["coffee"]["name"] == "Packer Spiced Latte"

    plan2 = engine.plan([morning])
    assert [c.action for c in plan2] == [Action.NOOP]
    calls = len(fake_client.calls)
    assert engine.apply([morning]).applied == []
    assert len(fake_client.calls) == calls
    assert State.load(engine.state_path).serial == 1

    bigger = _order("morning", (1, 3))
    plan3 = engine.plan([bigger])
    assert plan3[0].action == Action.UPDATE
    engine.apply([bigger])
    assert fake_client.orders[1][0]["quantity"] == 3
    assert Path(str(engine.state_path) + ".backup").exists()

    plan4 = engine.plan([])
    assert [c.action for c in plan4] == [Action.DELETE]
    engine.apply([])
    assert State.load(engine.state_path).resources == {}
    assert fake_client.orders == {}


def test_duplicate_addresses(engine: HashiCupsEngine) -> None:
    with pytest.raises(DuplicateAddressError):
        engine.plan([_order("a", (1, 1)), _order("a", (2, 1))])


def test_failed_apply_keeps_partial_progress(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    with pytest.raises(ApplyError) as exc_info:
        engine.apply([_order("good", (1, 1)), _order("bad", (99, 1))])

    assert exc_info.value.address == "hashicups_order.bad"
    assert exc_info.value.result.summary()["create"] == 1
    state = State.load(engine.state_path)
    assert list(state.resources) == ["hashicups_order.good"]
    assert list(fake_client.orders) == [1]


def test_failed_update_leaves_state_file_unchanged(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    engine.apply([_order("a", (1, 1))])
    before = engine.state_path.read_text()
    fake_client.fail_next["update_order"] = RemoteError(422, "nope")

    with pytest.raises(ApplyError):
        engine.apply([_order("a", (1, 4))])

    assert engine.state_path.read_text() == before


def test_refresh_reports_drift_and_deletion(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    engine.apply([_order("a", (1, 1)), _order("b", (2, 1))])
    fake_client.orders[1][0]["quantity"] = 4
    del fake_client.orders[2]

    state, drift = engine.refresh()

    by_addr = {c.address: c for c in drift}
    assert by_addr["hashicups_order.a"].action == Action.UPDATE
    assert [d.path for d in by_addr["hashicups_order.a"].drift or []] == ["items[0].quantity"]
    assert by_addr["hashicups_order.b"].action == Action.DELETE
    assert list(state.resources) == ["hashicups_order.a"]
    # Not persisted by default.
    assert len(State.load(engine.state_path).resources) == 2

    engine.refresh(persist=True)
    assert list(State.load(engine.state_path).resources) == ["hashicups_order.a"]


def test_deleted_entity_is_recreated_with_new_identity(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    desired = _order("a", (1, 1))
    engine.apply([desired])
    fake_client.orders.clear()

    engine.refresh(persist=True)
    engine.apply([desired])

    assert State.load(engine.state_path).resources["hashicups_order.a"].id == "2"


def test_destroy_with_progress(engine: HashiCupsEngine) -> None:
    engine.apply([_order("a", (1, 1)), _order("b", (1, 2))])
    events: list[tuple[str, str]] = []

    def on_progress(change: ResourceChange, event: Literal["start", "done"]) -> None:
        events.append((change.address, event))

    result = engine.destroy(progress=on_progress)

    assert result.summary()["delete"] == 2
    assert events == [
        ("hashicups_order.a", "start"),
        ("hashicups_order.a", "done"),
        ("hashicups_order.b", "start"),
        ("hashicups_order.b", "done"),
    ]
    assert engine.destroy().applied == []


def test_read_data(engine: HashiCupsEngine) -> None:
    inst = engine.read_data(CoffeesDataSource())
    assert len(inst.attributes["coffees"]) == 2


def test_persisted_refresh_keeps_fresh_server_fields(
    engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
) -> None:
    engine.apply([_order("m", (1, 1))])
    synced = State.load(engine.state_path).resources["hashicups_order.m"].synced_at
    fake_client.orders[1][0]["coffee"]["price"] = 999.0

    _, drift = engine.refresh(persist=True)

    assert drift == []
    stored = State.load(engine.state_path).resources["hashicups_order.m"]
    assert stored.attributes["items"][0]["coffee"]["price"] == 999.0
    assert stored.synced_at >= synced


def test_refresh_of_empty_state_writes_nothing(engine: HashiCupsEngine) -> None:
    engine.refresh(persist=True)
    assert not engine.state_path.exists()


class TestImport:
    def test_import_then_plan(
        self, engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
    ) -> None:
        fake_client.create_order([{"coffee": {"id": 2}, "quantity": 3}])

        inst = engine.import_("hashicups_order.edu", "1")

        assert inst.id == "1"
        state = State.load(engine.state_path)
        assert state.serial == 1
        assert state.resources["hashicups_order.edu"].attributes["items"][0]["quantity"] == 3
        assert [c.action for c in engine.plan([_order("edu", (2, 3))])] == [Action.NOOP]
        assert [c.action for c in engine.plan([])] == [Action.DELETE]

    def test_missing_remote_order(self, engine: HashiCupsEngine) -> None:
        with pytest.raises(ReconcileError) as exc_info:
            engine.import_("hashicups_order.edu", "7")

        assert exc_info.value.operation == "import"
        assert isinstance(exc_info.value.cause, NotFoundError)
        assert not engine.state_path.exists()

    def test_already_managed(
        self, engine: HashiCupsEngine, fake_client: FakeHashiCupsClient
    ) -> None:
        engine.apply([_order("edu", (1, 1))])

        with pytest.raises(AlreadyManagedError):
            engine.import_("hashicups_order.edu", "1")
        assert fake_client.verbs() == ["create_order"]

    @pytest.mark.parametrize("address", ["edu", "hashicups_order.", "hashicups_order.a-b"])
    def test_invalid_address(self, engine: HashiCupsEngine, address: str) -> None:
        with pytest.raises(ValueError, match="Invalid resource address"):
            engine.import_(address, "1")
