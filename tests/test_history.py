"""
Tests del historial de activos
"""
import json
from datetime import datetime

import pytest

from ms_inventory.models import AuditLogEntry
from ms_inventory.services import (
    LifecycleService, HistoryService, InventoryService,
    Destination, NotFoundError,
)


@pytest.fixture
def lifecycle(db, clock):
    return LifecycleService(db, clock=clock)


@pytest.fixture
def history(db):
    return HistoryService(db)


def add_raw_entry(db, table_name, action, record_id, payload, at=None):
    entry = AuditLogEntry(
        table_name=table_name,
        action=action,
        record_id=record_id,
        payload=payload,
        user_id=9,
        user_name="Legacy",
        created_at=at or datetime(2020, 1, 1, 12, 0),
    )
    db.add(entry)
    db.commit()
    return entry


def test_assign_repair_scenario_timeline(db, lifecycle, history, catalog, make_asset, actor, notebook_secrets):
    asset = make_asset("SN-100", catalog.laptop)

    lifecycle.assign(asset.id, Destination.employee(catalog.ana.id), actor, notebook_secrets)
    repair = lifecycle.send_to_repair(asset.id, "TecnoService", "No enciende", actor)
    lifecycle.return_from_repair(repair.id, "Fuente reemplazada", "Repaired", actor)

    events = history.get_history(asset.id)

    assert [event.action for event in events] == [
        "Returned from Repair (Repaired)",
        "Sent to Repair",
        "Return (implicit)",
        "New Assignment",
    ]
    assert [event.kind for event in events] == ["Repair", "Repair", "Assignment", "Assignment"]
    assert all(event.user == "Admin" for event in events)
    assert "Proveedor: TecnoService" in events[1].observations
    assert "Ana Gómez" in events[3].observations
    assert events[0].occurred_at >= events[1].occurred_at >= events[3].occurred_at


def test_history_includes_creation(db, clock, history, catalog, actor):
    result = InventoryService(db, clock=clock).register_batch(catalog.laptop.id, ["SN-NEW"], actor)

    events = history.get_history(result.created[0].id)

    assert [event.action for event in events] == ["Creation"]
    assert "SN-NEW" in events[0].observations
    assert "Lenovo ThinkPad T14" in events[0].observations


def test_history_of_missing_asset(db, history):
    with pytest.raises(NotFoundError):
        history.get_history(424242)


def test_history_of_asset_without_events(db, history, catalog, make_asset):
    asset = make_asset("SN-QUIET", catalog.monitor)
    assert history.get_history(asset.id) == []


def test_bad_payload_degrades_to_generic_event(db, history, catalog, make_asset):
    asset = make_asset("SN-BAD", catalog.monitor)
    add_raw_entry(db, "assets", "State Change", asset.id, "not-json{", at=datetime(2020, 1, 1))
    add_raw_entry(db, "assets", "State Change", asset.id, json.dumps({"to_state": "Retired"}), at=datetime(2020, 1, 2))

    events = history.get_history(asset.id)

    assert [event.action for event in events] == ["assets - State Change", "assets - State Change"]
    assert events[0].observations == json.dumps({"to_state": "Retired"})
    assert events[1].observations == "not-json{"


def test_unknown_action_keeps_raw_text(db, history, catalog, make_asset):
    asset = make_asset("SN-ODD", catalog.monitor)
    add_raw_entry(db, "assets", "Inventario Anual", asset.id, "Verificado en depósito")

    events = history.get_history(asset.id)

    assert events[0].action == "assets - Inventario Anual"
    assert events[0].observations == "Verificado en depósito"
    assert events[0].user == "Legacy"


def test_legacy_spanish_actions_are_decoded(db, history, catalog, make_asset):
    asset = make_asset("SN-OLD", catalog.monitor)
    add_raw_entry(db, "assets", "Cambio de Estado", asset.id,
                  json.dumps({"from_state": "Available", "to_state": "InRepair"}), at=datetime(2020, 1, 1))
    add_raw_entry(db, "assets", "Creación", asset.id,
                  json.dumps({"serial_number": "SN-OLD"}), at=datetime(2019, 1, 1))

    events = history.get_history(asset.id)

    assert [event.action for event in events] == ["State Change", "Creation"]
    assert events[0].observations == "Available -> InRepair"


def test_history_only_includes_own_records(db, lifecycle, history, catalog, make_asset, actor, notebook_secrets):
    mine = make_asset("SN-MINE", catalog.laptop)
    other = make_asset("SN-OTHER", catalog.laptop)
    lifecycle.assign(other.id, Destination.employee(catalog.bruno.id), actor, notebook_secrets)
    lifecycle.send_to_repair(mine.id, "TecnoService", "Batería", actor)

    events = history.get_history(mine.id)

    assert [event.action for event in events] == ["Sent to Repair"]
