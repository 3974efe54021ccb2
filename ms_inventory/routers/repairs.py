"""
Router de Reparaciones (Repairs)
"""
import math

from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..models import get_db
from ..schemas import RepairCreate, RepairReturnRequest, RepairResponse, RepairListResponse
from ..services import Actor, LifecycleService, InventoryService
from ..utils import get_current_user, get_current_actor

router = APIRouter()


@router.post("/repairs", response_model=RepairResponse, status_code=status.HTTP_201_CREATED)
def send_to_repair(
    repair_data: RepairCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Enviar un activo a reparación (si está asignado, se devuelve primero)"""
    repair = LifecycleService(db).send_to_repair(
        repair_data.asset_id, repair_data.provider, repair_data.problem_description, actor
    )
    return RepairResponse.model_validate(repair)


@router.get("/repairs/active", response_model=RepairListResponse)
async def list_active_repairs(
    provider: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(10),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Listar reparaciones abiertas, opcionalmente por proveedor"""
    rows, total = InventoryService(db).list_active_repairs(provider, page, page_size)
    return RepairListResponse(
        items=[RepairResponse.model_validate(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size)
    )


@router.post("/repairs/{repair_id}/return", response_model=RepairResponse)
def return_from_repair(
    repair_id: int,
    return_data: RepairReturnRequest,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Procesar el retorno de una reparación (Repaired o Unrepaired)"""
    repair = LifecycleService(db).return_from_repair(
        repair_id, return_data.resolution_description, return_data.outcome, actor
    )
    return RepairResponse.model_validate(repair)
