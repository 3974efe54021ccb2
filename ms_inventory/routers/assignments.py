"""
Router de Asignaciones (Assignments)
Asignación de activos a empleados, sectores o sucursales
"""
import math

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..models import get_db
from ..schemas import (
    AssignmentCreate, AssignmentReturnRequest, AssignmentCancelRequest,
    AssignmentResponse, AssignmentListResponse
)
from ..services import (
    Actor, Destination, SensitivePayload,
    LifecycleService, InventoryService,
)
from ..utils import get_current_user, get_current_actor

router = APIRouter()


# Las operaciones de ciclo de vida son sync: esperan locks de fila desde el threadpool
@router.post("/assignments", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
def assign_asset(
    assignment_data: AssignmentCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Asignar un activo disponible a un destino"""
    destination = Destination.from_ids(
        employee_id=assignment_data.employee_id,
        sector_id=assignment_data.sector_id,
        branch_id=assignment_data.branch_id
    )
    sensitive = SensitivePayload(
        disk_encryption_password=assignment_data.disk_encryption_password,
        mail_account=assignment_data.mail_account,
        mail_password=assignment_data.mail_password,
        phone_number=assignment_data.phone_number,
        two_factor_code=assignment_data.two_factor_code
    )
    assignment = LifecycleService(db).assign(
        assignment_data.asset_id, destination, actor,
        sensitive_payload=sensitive, notes=assignment_data.notes
    )
    return AssignmentResponse.model_validate(assignment)


@router.get("/assignments/active", response_model=AssignmentListResponse)
async def list_active_assignments(
    employee_id: Optional[int] = Query(None),
    sector_id: Optional[int] = Query(None),
    branch_id: Optional[int] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Listar asignaciones activas, opcionalmente filtradas por un destino"""
    destination = None
    if any(value is not None for value in (employee_id, sector_id, branch_id)):
        destination = Destination.from_ids(employee_id, sector_id, branch_id)

    rows, total = InventoryService(db).list_active_assignments(destination, page, page_size)
    return AssignmentListResponse(
        items=[AssignmentResponse.model_validate(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size)
    )


@router.post("/assignments/{assignment_id}/return", response_model=AssignmentResponse)
def return_assignment(
    assignment_id: int,
    return_data: Optional[AssignmentReturnRequest] = None,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Registrar la devolución de un activo asignado"""
    notes = return_data.notes if return_data else None
    assignment = LifecycleService(db).return_assignment(assignment_id, actor, notes=notes)
    return AssignmentResponse.model_validate(assignment)


@router.post("/assignments/{assignment_id}/cancel", response_model=AssignmentResponse)
def cancel_assignment(
    assignment_id: int,
    cancel_data: AssignmentCancelRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Cancelar una asignación cargada por error"""
    assignment = LifecycleService(db).cancel_assignment(assignment_id, cancel_data.reason, actor)
    return AssignmentResponse.model_validate(assignment)
