"""
Tests de concurrencia: dos operaciones sobre el mismo activo
"""
import threading

import pytest

from ms_inventory.models import SessionLocal, Asset, AssetState, Assignment
from ms_inventory.services import (
    LifecycleService, Destination, SensitivePayload, InvalidStateError, BusyError,
)


def test_concurrent_assign_has_single_winner(db, catalog, make_asset, actor):
    asset = make_asset("SN-RACE", catalog.laptop)
    asset_id = asset.id
    destinations = [Destination.employee(catalog.ana.id), Destination.employee(catalog.bruno.id)]
    secrets = SensitivePayload(disk_encryption_password="disk-race")

    barrier = threading.Barrier(len(destinations))
    outcomes = []
    lock = threading.Lock()

    def worker(destination):
        session = SessionLocal()
        try:
            barrier.wait()
            LifecycleService(session).assign(asset_id, destination, actor, secrets)
            result = "ok"
        except (InvalidStateError, BusyError) as exc:
            result = exc.kind
        finally:
            session.close()
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(destination,)) for destination in destinations]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert len(outcomes) == 2
    assert outcomes.count("ok") == 1
    assert set(outcomes) - {"ok"} <= {"InvalidState", "Busy"}

    db.expire_all()
    assert db.get(Asset, asset_id).state == "Assigned"
    assert db.query(Assignment).filter(
        Assignment.asset_id == asset_id, Assignment.is_active == True
    ).count() == 1


def test_compare_and_set_rejects_changed_state(db, clock, catalog, make_asset, actor):
    """Un cambio confirmado por otra sesión no se pisa con un estado esperado viejo"""
    asset = make_asset("SN-STALE", catalog.laptop)
    asset_id = asset.id

    other = SessionLocal()
    try:
        LifecycleService(other, clock=clock).send_to_repair(asset_id, "TecnoService", "Falla", actor)
    finally:
        other.close()

    service = LifecycleService(db, clock=clock)
    with pytest.raises(InvalidStateError):
        with service.repository.transaction():
            service.repository.compare_and_set_state(
                asset, AssetState.AVAILABLE, AssetState.ASSIGNED, clock()
            )

    db.expire_all()
    assert db.get(Asset, asset_id).state == "InRepair"
