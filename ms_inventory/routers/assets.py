"""
Router de Activos (Assets)
Alta por lote, detalle e historial
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..models import get_db, Asset
from ..schemas import (
    AssetBatchCreate, AssetResponse, AssetBatchResponse,
    AssetDetailResponse, AssetHistoryResponse,
    AssignmentResponse, RepairResponse, TimelineEventResponse
)
from ..services import Actor, InventoryService, HistoryService
from ..utils import get_current_user, get_current_actor

router = APIRouter()


def asset_to_response(asset: Asset) -> dict:
    return {
        "id": asset.id,
        "serial_number": asset.serial_number,
        "product_id": asset.product_id,
        "product_name": asset.product.display_name if asset.product else None,
        "category": asset.category_name or None,
        "state": asset.state,
        "notes": asset.notes,
        "created_at": asset.created_at,
        "updated_at": asset.updated_at,
    }


@router.post("/assets/batch", response_model=AssetBatchResponse, status_code=status.HTTP_201_CREATED)
def register_assets(
    batch: AssetBatchCreate,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_current_actor)
):
    """Registrar un lote de números de serie para un producto"""
    result = InventoryService(db).register_batch(
        batch.product_id, batch.serial_numbers, actor, notes=batch.notes
    )
    return AssetBatchResponse(
        created=[AssetResponse(**asset_to_response(asset)) for asset in result.created],
        duplicates=result.duplicates,
        total_created=len(result.created),
        total_duplicates=len(result.duplicates)
    )


@router.get("/assets/{asset_id}", response_model=AssetDetailResponse)
async def get_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Obtener un activo con su asignación activa y reparación abierta"""
    detail = InventoryService(db).get_asset_detail(asset_id)
    return AssetDetailResponse(
        **asset_to_response(detail.asset),
        active_assignment=(
            AssignmentResponse.model_validate(detail.active_assignment)
            if detail.active_assignment else None
        ),
        open_repair=(
            RepairResponse.model_validate(detail.open_repair)
            if detail.open_repair else None
        )
    )


@router.get("/assets/{asset_id}/history", response_model=AssetHistoryResponse)
async def get_asset_history(
    asset_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Historial completo del activo (más reciente primero)"""
    service = HistoryService(db)
    events = service.get_history(asset_id)
    asset = service.repository.get_asset(asset_id)
    return AssetHistoryResponse(
        asset_id=asset.id,
        serial_number=asset.serial_number,
        events=[TimelineEventResponse.model_validate(event) for event in events],
        total_events=len(events)
    )
