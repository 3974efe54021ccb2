"""
Tests de la API HTTP de MS-INVENTORY-PY
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt

from ms_inventory.config import settings
from ms_inventory.main import app
from ms_inventory.services import BusyError
from ms_inventory.utils import register_exception_handlers

client = TestClient(app)

PREFIX = settings.API_PREFIX


def make_token(**claims):
    payload = {"sub": "admin@test.com", "role": "admin", "user_id": 1, "name": "Admin"}
    payload.update(claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def assets(catalog, auth_headers):
    """Registra por API un notebook y un celular"""
    response = client.post(f"{PREFIX}/assets/batch", json={
        "product_id": catalog.laptop.id,
        "serial_numbers": ["API-NB-1"]
    }, headers=auth_headers)
    assert response.status_code == 201
    laptop_id = response.json()["created"][0]["id"]

    response = client.post(f"{PREFIX}/assets/batch", json={
        "product_id": catalog.phone.id,
        "serial_numbers": ["API-PH-1"]
    }, headers=auth_headers)
    assert response.status_code == 201
    phone_id = response.json()["created"][0]["id"]
    return {"laptop": laptop_id, "phone": phone_id}


# ============================================================================
# HEALTH Y AUTENTICACIÓN
# ============================================================================

def test_health_check():
    """Health check sin autenticación"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "MS-INVENTORY-PY - Asset Lifecycle Service"
    assert data["database"] == "connected"


def test_endpoints_require_token():
    response = client.get(f"{PREFIX}/search", params={"q": "x"})
    assert response.status_code == 401

    response = client.get(f"{PREFIX}/search", params={"q": "x"},
                          headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_token_without_subject_is_rejected():
    token = jwt.encode({"role": "admin"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    response = client.get(f"{PREFIX}/repairs/active", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


# ============================================================================
# FLUJO COMPLETO
# ============================================================================

def test_assign_return_flow(catalog, assets, auth_headers):
    response = client.post(f"{PREFIX}/assignments", json={
        "asset_id": assets["laptop"],
        "employee_id": catalog.ana.id,
        "disk_encryption_password": "disk-777",
        "mail_password": "ignored"
    }, headers=auth_headers)
    assert response.status_code == 201
    assignment = response.json()
    assert assignment["destination_type"] == "Employee"
    assert assignment["destination_name"] == "Ana Gómez"
    assert assignment["assigned_by"] == 1
    assert "disk_encryption_password" not in assignment

    response = client.get(f"{PREFIX}/assets/{assets['laptop']}", headers=auth_headers)
    detail = response.json()
    assert detail["state"] == "Assigned"
    assert detail["category"] == "Notebook"
    assert detail["active_assignment"]["id"] == assignment["id"]

    response = client.get(f"{PREFIX}/search", params={"q": "API-NB", "type": "SerialNumber"},
                          headers=auth_headers)
    data = response.json()
    assert data["total_count"] == 1
    assert data["results"][0]["result_type"] == "Assignment"
    assert data["results"][0]["sensitive_field"] == "disk-777"

    response = client.post(f"{PREFIX}/assignments/{assignment['id']}/return",
                           json={"notes": "Fin de contrato"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False
    assert response.json()["return_notes"] == "Fin de contrato"

    response = client.post(f"{PREFIX}/assignments/{assignment['id']}/return", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"

    response = client.get(f"{PREFIX}/assets/{assets['laptop']}/history", headers=auth_headers)
    history = response.json()
    assert history["serial_number"] == "API-NB-1"
    assert [event["action"] for event in history["events"]] == ["Return", "New Assignment", "Creation"]


def test_repair_flow_to_retired(catalog, assets, auth_headers):
    response = client.post(f"{PREFIX}/repairs", json={
        "asset_id": assets["phone"],
        "provider": "TecnoService",
        "problem_description": "No carga"
    }, headers=auth_headers)
    assert response.status_code == 201
    repair = response.json()
    assert repair["state"] == "InRepair"

    response = client.get(f"{PREFIX}/repairs/active", params={"provider": "tecno"}, headers=auth_headers)
    assert response.json()["total"] == 1

    response = client.post(f"{PREFIX}/repairs/{repair['id']}/return", json={
        "resolution_description": "Placa sin repuesto",
        "outcome": "Unrepaired"
    }, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["state"] == "Unrepaired"

    response = client.post(f"{PREFIX}/assignments", json={
        "asset_id": assets["phone"],
        "sector_id": catalog.sector.id
    }, headers=auth_headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "InvalidState"
    assert body["detail"]["state"] == "Retired"


# ============================================================================
# ERRORES
# ============================================================================

def test_cancel_with_short_reason_is_bad_request(catalog, assets, auth_headers):
    response = client.post(f"{PREFIX}/assignments", json={
        "asset_id": assets["laptop"],
        "branch_id": catalog.branch.id,
        "disk_encryption_password": "disk-888"
    }, headers=auth_headers)
    assignment_id = response.json()["id"]

    response = client.post(f"{PREFIX}/assignments/{assignment_id}/cancel",
                           json={"reason": "abcd"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationError"

    response = client.post(f"{PREFIX}/assignments/{assignment_id}/cancel",
                           json={"reason": "Error de carga"}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["cancellation_reason"] == "Error de carga"


def test_assign_with_two_destinations_is_bad_request(catalog, assets, auth_headers):
    response = client.post(f"{PREFIX}/assignments", json={
        "asset_id": assets["laptop"],
        "employee_id": catalog.ana.id,
        "sector_id": catalog.sector.id
    }, headers=auth_headers)
    assert response.status_code == 400


def test_assign_notebook_without_disk_password_is_bad_request(catalog, assets, auth_headers):
    response = client.post(f"{PREFIX}/assignments", json={
        "asset_id": assets["laptop"],
        "employee_id": catalog.ana.id
    }, headers=auth_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "ValidationError"
    assert body["detail"]["field"] == "disk_encryption_password"

    response = client.get(f"{PREFIX}/assets/{assets['laptop']}", headers=auth_headers)
    assert response.json()["state"] == "Available"


def test_batch_with_unknown_product_is_not_found(auth_headers):
    response = client.post(f"{PREFIX}/assets/batch", json={
        "product_id": 999,
        "serial_numbers": ["SN-1"]
    }, headers=auth_headers)
    assert response.status_code == 404


def test_empty_search_term_is_bad_request(auth_headers):
    response = client.get(f"{PREFIX}/search", params={"q": " "}, headers=auth_headers)
    assert response.status_code == 400


def test_busy_maps_to_service_unavailable():
    busy_app = FastAPI()
    register_exception_handlers(busy_app)

    @busy_app.get("/busy")
    async def busy():
        raise BusyError("El activo está siendo modificado por otra operación, reintente")

    response = TestClient(busy_app).get("/busy")
    assert response.status_code == 503
    assert response.headers["Retry-After"] == str(max(1, settings.LOCK_TIMEOUT_MS // 1000))
    assert response.json()["error"] == "Busy"
