"""
Tests de los límites transaccionales del repositorio
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ms_inventory.models import Asset, Assignment
from ms_inventory.services import (
    AssetRepository, ConflictError, BusyError, UnexpectedError, NotFoundError,
)


@pytest.fixture
def repo(db):
    return AssetRepository(db)


# ============================================================================
# TRADUCCIÓN DE ERRORES DEL ALMACÉN
# ============================================================================

def test_second_active_assignment_is_conflict(db, repo, catalog, make_asset):
    asset = make_asset("SN-IDX", catalog.monitor)
    asset_id = asset.id

    with pytest.raises(ConflictError) as exc_info:
        with repo.transaction():
            repo.add(Assignment(asset_id=asset_id, employee_id=catalog.ana.id, is_active=True))
            repo.add(Assignment(asset_id=asset_id, employee_id=catalog.bruno.id, is_active=True))

    assert exc_info.value.kind == "Conflict"
    assert db.query(Assignment).count() == 0
    assert db.get(Asset, asset_id).state == "Available"


def test_inactive_assignments_do_not_conflict(db, repo, catalog, make_asset):
    asset = make_asset("SN-IDX-2", catalog.monitor)

    with repo.transaction():
        repo.add(Assignment(asset_id=asset.id, employee_id=catalog.ana.id, is_active=False))
        repo.add(Assignment(asset_id=asset.id, employee_id=catalog.bruno.id, is_active=True))

    assert db.query(Assignment).count() == 2


def test_operational_error_is_unexpected(db, repo):
    with pytest.raises(UnexpectedError) as exc_info:
        with repo.transaction():
            db.execute(text("SELECT * FROM tabla_inexistente"))

    assert "tabla_inexistente" in exc_info.value.message


def test_locked_database_is_busy(db, repo):
    with pytest.raises(BusyError) as exc_info:
        with repo.transaction():
            raise OperationalError("UPDATE assets", {}, Exception("database is locked"))

    assert exc_info.value.detail == {"lock_timeout_ms": repo.lock_timeout_ms}


def test_business_error_rolls_back_pending_writes(db, repo, catalog, make_asset):
    asset = make_asset("SN-BIZ", catalog.monitor)

    with pytest.raises(NotFoundError):
        with repo.transaction():
            repo.add(Assignment(asset_id=asset.id, sector_id=catalog.sector.id, is_active=True))
            repo.get_asset(9999)

    assert db.query(Assignment).count() == 0


# ============================================================================
# TIMEOUT DE LOCK POR DIALECTO
# ============================================================================

def make_session(dialect, previous_wait=50):
    session = MagicMock()
    session.get_bind.return_value.dialect.name = dialect
    session.execute.return_value.scalar.return_value = previous_wait
    return session


def executed_sql(session):
    return [str(call.args[0]) for call in session.execute.call_args_list]


def test_mysql_lock_wait_is_restored_on_commit():
    session = make_session("mysql")
    repo = AssetRepository(session, lock_timeout_ms=3000)

    with repo.transaction():
        repo._apply_lock_timeout()
        repo._apply_lock_timeout()

    assert executed_sql(session) == [
        "SELECT @@SESSION.innodb_lock_wait_timeout",
        "SET SESSION innodb_lock_wait_timeout = 3",
        "SET SESSION innodb_lock_wait_timeout = 50",
    ]
    session.commit.assert_called_once()
    session.rollback.assert_not_called()


def test_mysql_lock_wait_is_restored_on_rollback():
    session = make_session("mariadb", previous_wait=20)
    repo = AssetRepository(session, lock_timeout_ms=500)

    with pytest.raises(NotFoundError):
        with repo.transaction():
            repo._apply_lock_timeout()
            raise NotFoundError("Activo no encontrado")

    assert executed_sql(session) == [
        "SELECT @@SESSION.innodb_lock_wait_timeout",
        "SET SESSION innodb_lock_wait_timeout = 1",
        "SET SESSION innodb_lock_wait_timeout = 20",
    ]
    session.rollback.assert_called_once()
    session.commit.assert_not_called()


def test_postgres_lock_timeout_is_transaction_local():
    session = make_session("postgresql")
    repo = AssetRepository(session, lock_timeout_ms=1500)

    with repo.transaction():
        repo._apply_lock_timeout()

    assert executed_sql(session) == ["SET LOCAL lock_timeout = 1500"]
    session.commit.assert_called_once()
