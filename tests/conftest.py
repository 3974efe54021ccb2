"""
Fixtures compartidas de los tests de MS-INVENTORY-PY
"""
import os

# Base de datos de pruebas (archivo: los tests de concurrencia usan varias conexiones)
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_inventory.db")
os.environ.setdefault("LOCK_TIMEOUT_MS", "2000")

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from ms_inventory.models import (
    Base, engine, SessionLocal,
    Category, Product, Employee, Sector, Branch, Asset, AssetState,
)
from ms_inventory.services import Actor, SensitivePayload


class FakeClock:
    """Reloj determinista: cada llamada avanza un minuto"""

    def __init__(self, start=None):
        self.current = start or datetime(2025, 10, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.current = self.current + timedelta(minutes=1)
        return self.current


@pytest.fixture(autouse=True)
def setup_database():
    """Crear y limpiar base de datos antes de cada test"""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def actor():
    return Actor(id=1, name="Admin")


@pytest.fixture
def catalog(db):
    """Catálogo mínimo: notebook, celular y monitor; un empleado, un sector y una sucursal"""
    notebook = Category(name="Notebook")
    phone = Category(name="Celular")
    monitor = Category(name="Monitor")
    db.add_all([notebook, phone, monitor])
    db.flush()

    laptop = Product(category_id=notebook.id, brand="Lenovo", model="ThinkPad T14", description="Notebook 14 pulgadas")
    galaxy = Product(category_id=phone.id, brand="Samsung", model="Galaxy A54", description="Celular corporativo")
    screen = Product(category_id=monitor.id, brand="Dell", model="P2422H", description="Monitor 24 pulgadas")
    ana = Employee(first_name="Ana", last_name="Gómez", email="ana.gomez@test.com")
    bruno = Employee(first_name="Bruno", last_name="Díaz", email="bruno.diaz@test.com")
    sector = Sector(name="Contabilidad")
    branch = Branch(name="Sucursal Centro")
    db.add_all([laptop, galaxy, screen, ana, bruno, sector, branch])
    db.commit()

    return SimpleNamespace(
        laptop=laptop, phone=galaxy, monitor=screen,
        ana=ana, bruno=bruno, sector=sector, branch=branch,
    )


@pytest.fixture
def make_asset(db):
    """Crea un activo directamente (sin entrada de log)"""
    def _make(serial_number, product, state=AssetState.AVAILABLE):
        asset = Asset(serial_number=serial_number, product_id=product.id, state=state.value)
        db.add(asset)
        db.commit()
        return asset
    return _make


@pytest.fixture
def notebook_secrets():
    return SensitivePayload(disk_encryption_password="disk-0001")


@pytest.fixture
def phone_secrets():
    return SensitivePayload(mail_account="movil@corp.com", mail_password="mail-0001")
