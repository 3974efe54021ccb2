"""
Registro de activos y consultas de inventario
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from ..config import settings
from ..models import Asset, AssetState, Assignment, Repair
from .audit_log import AuditLog, Actor, TABLE_ASSETS, ACTION_CREATION
from .errors import ValidationError
from .lifecycle import utcnow
from .policies import Destination
from .repository import AssetRepository

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    created: List[Asset] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)


@dataclass
class AssetDetail:
    asset: Asset
    active_assignment: Optional[Assignment] = None
    open_repair: Optional[Repair] = None


def _validate_page(page: int, page_size: int) -> None:
    if page < 1 or page_size < 1 or page_size > settings.SEARCH_MAX_PAGE_SIZE:
        raise ValidationError(
            "Parámetros de paginación inválidos",
            {"page": page, "page_size": page_size, "max_page_size": settings.SEARCH_MAX_PAGE_SIZE},
        )


class InventoryService:
    """Alta de números de serie y listados de asignaciones/reparaciones activas"""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        self.repository = AssetRepository(db)
        self.audit = AuditLog(db)
        self.clock = clock or utcnow

    def register_batch(
        self,
        product_id: int,
        serial_numbers: List[str],
        actor: Actor,
        notes: Optional[str] = None,
    ) -> BatchResult:
        """
        Registra un lote de números de serie para un producto

        Los duplicados (dentro del lote o ya existentes) se informan y se
        omiten. Todo el lote se confirma en una sola transacción.

        Raises:
            ValidationError: lote vacío, con entradas en blanco o demasiado grande
            NotFoundError: el producto no existe
        """
        if not serial_numbers:
            raise ValidationError("Debe proporcionar al menos un número de serie")
        if len(serial_numbers) > settings.BATCH_MAX_SIZE:
            raise ValidationError(
                f"El lote supera el máximo de {settings.BATCH_MAX_SIZE} números de serie",
                {"max_size": settings.BATCH_MAX_SIZE, "size": len(serial_numbers)},
            )
        serials = [(serial or "").strip() for serial in serial_numbers]
        blanks = [index for index, serial in enumerate(serials) if not serial]
        if blanks:
            raise ValidationError("El lote contiene números de serie vacíos", {"positions": blanks})

        result = BatchResult()
        with self.repository.transaction():
            product = self.repository.get_product(product_id)
            existing = self.repository.existing_serials(serials)
            seen = set()
            now = self.clock()

            for serial in serials:
                if serial in existing or serial in seen:
                    result.duplicates.append(serial)
                    continue
                seen.add(serial)

                asset = self.repository.add(Asset(
                    serial_number=serial,
                    product_id=product.id,
                    state=AssetState.AVAILABLE.value,
                    notes=notes,
                    created_at=now,
                    updated_at=now,
                ))
                self.audit.record(TABLE_ASSETS, ACTION_CREATION, asset.id, {
                    "serial_number": serial,
                    "product_id": product.id,
                    "product_name": product.display_name,
                    "state": asset.state,
                }, actor, now)
                result.created.append(asset)

        logger.info(
            f"Lote del producto {product_id}: {len(result.created)} activos creados, "
            f"{len(result.duplicates)} duplicados"
        )
        return result

    def get_asset_detail(self, asset_id: int) -> AssetDetail:
        """
        Activo con su asignación activa y su reparación abierta, si las tiene

        Raises:
            NotFoundError: el activo no existe
        """
        asset = self.repository.get_asset(asset_id)
        return AssetDetail(
            asset=asset,
            active_assignment=self.repository.find_active_assignment(asset.id),
            open_repair=self.repository.find_open_repair(asset.id),
        )

    def list_active_assignments(
        self,
        destination: Optional[Destination] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Assignment], int]:
        _validate_page(page, page_size)
        return self.repository.list_active_assignments(destination, page, page_size)

    def list_active_repairs(
        self,
        provider: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Repair], int]:
        _validate_page(page, page_size)
        return self.repository.list_active_repairs(provider, page, page_size)
