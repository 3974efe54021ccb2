"""
Tests de registro de activos y listados
"""
import json

import pytest

from ms_inventory.config import settings
from ms_inventory.models import Asset, AuditLogEntry
from ms_inventory.services import (
    InventoryService, LifecycleService, Destination,
    NotFoundError, ValidationError,
)


@pytest.fixture
def inventory(db, clock):
    return InventoryService(db, clock=clock)


@pytest.fixture
def lifecycle(db, clock):
    return LifecycleService(db, clock=clock)


# ============================================================================
# REGISTRO POR LOTE
# ============================================================================

def test_register_batch_creates_available_assets(db, inventory, catalog, actor):
    result = inventory.register_batch(catalog.laptop.id, [" SN-A ", "SN-B"], actor)

    assert [asset.serial_number for asset in result.created] == ["SN-A", "SN-B"]
    assert result.duplicates == []
    assert {asset.state for asset in db.query(Asset).all()} == {"Available"}

    entries = db.query(AuditLogEntry).order_by(AuditLogEntry.id).all()
    assert [(entry.table_name, entry.action) for entry in entries] == [
        ("assets", "Creation"), ("assets", "Creation")
    ]
    assert json.loads(entries[0].payload)["product_name"] == "Lenovo ThinkPad T14"


def test_register_batch_reports_duplicates(db, inventory, catalog, make_asset, actor):
    make_asset("SN-EXISTS", catalog.laptop)

    result = inventory.register_batch(catalog.laptop.id, ["SN-EXISTS", "SN-C", "SN-C"], actor)

    assert [asset.serial_number for asset in result.created] == ["SN-C"]
    assert result.duplicates == ["SN-EXISTS", "SN-C"]
    assert db.query(Asset).count() == 2


@pytest.mark.parametrize("serials", [[], ["SN-1", "  "], [""]])
def test_register_batch_rejects_malformed_input(db, inventory, catalog, actor, serials):
    with pytest.raises(ValidationError):
        inventory.register_batch(catalog.laptop.id, serials, actor)
    assert db.query(Asset).count() == 0


def test_register_batch_rejects_oversized_batch(db, inventory, catalog, actor):
    serials = [f"SN-{index}" for index in range(settings.BATCH_MAX_SIZE + 1)]
    with pytest.raises(ValidationError):
        inventory.register_batch(catalog.laptop.id, serials, actor)


def test_register_batch_unknown_product(db, inventory, catalog, actor):
    with pytest.raises(NotFoundError):
        inventory.register_batch(999, ["SN-X"], actor)
    assert db.query(AuditLogEntry).count() == 0


# ============================================================================
# DETALLE Y LISTADOS
# ============================================================================

def test_asset_detail_derives_active_records(db, inventory, lifecycle, catalog, make_asset, actor, notebook_secrets):
    asset = make_asset("SN-DET", catalog.laptop)

    detail = inventory.get_asset_detail(asset.id)
    assert detail.active_assignment is None and detail.open_repair is None

    assignment = lifecycle.assign(asset.id, Destination.employee(catalog.ana.id), actor, notebook_secrets)
    detail = inventory.get_asset_detail(asset.id)
    assert detail.active_assignment.id == assignment.id
    assert detail.open_repair is None

    repair = lifecycle.send_to_repair(asset.id, "TecnoService", "Pantalla", actor)
    detail = inventory.get_asset_detail(asset.id)
    assert detail.active_assignment is None
    assert detail.open_repair.id == repair.id


def test_asset_detail_missing(db, inventory):
    with pytest.raises(NotFoundError):
        inventory.get_asset_detail(777)


def test_list_active_assignments_by_destination(db, inventory, lifecycle, catalog, make_asset, actor, notebook_secrets, phone_secrets):
    first = make_asset("SN-L1", catalog.laptop)
    second = make_asset("SN-L2", catalog.phone)
    third = make_asset("SN-L3", catalog.monitor)
    lifecycle.assign(first.id, Destination.employee(catalog.ana.id), actor, notebook_secrets)
    lifecycle.assign(second.id, Destination.employee(catalog.ana.id), actor, phone_secrets)
    returned = lifecycle.assign(third.id, Destination.branch(catalog.branch.id), actor)
    lifecycle.return_assignment(returned.id, actor)

    rows, total = inventory.list_active_assignments()
    assert total == 2

    rows, total = inventory.list_active_assignments(Destination.employee(catalog.ana.id), page=1, page_size=1)
    assert total == 2
    assert len(rows) == 1
    assert rows[0].asset_id == second.id

    rows, total = inventory.list_active_assignments(Destination.branch(catalog.branch.id))
    assert (rows, total) == ([], 0)


def test_list_active_repairs_by_provider(db, inventory, lifecycle, catalog, make_asset, actor):
    first = make_asset("SN-R1", catalog.laptop)
    second = make_asset("SN-R2", catalog.laptop)
    lifecycle.send_to_repair(first.id, "TecnoService", "Teclado", actor)
    lifecycle.send_to_repair(second.id, "Reparaciones Sur", "Pantalla", actor)

    rows, total = inventory.list_active_repairs(provider="tecno")

    assert total == 1
    assert rows[0].asset_id == first.id


def test_listings_validate_pagination(db, inventory):
    with pytest.raises(ValidationError):
        inventory.list_active_assignments(page=0)
    with pytest.raises(ValidationError):
        inventory.list_active_repairs(page_size=0)
