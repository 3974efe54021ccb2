"""
Repositorio de activos, asignaciones y reparaciones

Dueño de los límites transaccionales: toda operación de ciclo de vida corre
dentro de `transaction()`, que confirma o revierte todo junto y traduce las
fallas de SQLAlchemy a errores tipados.
"""
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Set, Tuple
import logging

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..models import (
    Asset, AssetState, Assignment, Repair, RepairState,
    Product, Employee, Sector, Branch,
)
from .errors import (
    InventoryError, NotFoundError, InvalidStateError,
    ConflictError, BusyError, UnexpectedError, ValidationError,
)
from .policies import Destination, DestinationKind

logger = logging.getLogger(__name__)

# SQLSTATE de PostgreSQL para lock_not_available
_PG_LOCK_NOT_AVAILABLE = "55P03"
# MySQL: lock wait timeout / NOWAIT
_MYSQL_LOCK_ERRORS = (1205, 3572)

_DESTINATION_MODELS = {
    DestinationKind.EMPLOYEE: Employee,
    DestinationKind.SECTOR: Sector,
    DestinationKind.BRANCH: Branch,
}


def _is_lock_timeout(exc: OperationalError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == _PG_LOCK_NOT_AVAILABLE:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] in _MYSQL_LOCK_ERRORS:
        return True
    return "database is locked" in str(orig).lower()


class AssetRepository:
    """Acceso a datos del núcleo de inventario sobre una sesión de SQLAlchemy"""

    def __init__(self, db: Session, lock_timeout_ms: Optional[int] = None):
        self.db = db
        self.lock_timeout_ms = lock_timeout_ms if lock_timeout_ms is not None else settings.LOCK_TIMEOUT_MS
        self._lock_timeout_applied = False
        self._previous_lock_wait = None

    # ------------------------------------------------------------------
    # Transacciones
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self):
        """
        Unidad de trabajo: commit al salir sin errores, rollback completo ante cualquier falla

        Raises:
            InventoryError: errores de negocio (se propagan tal cual)
            ConflictError: violación de integridad
            BusyError: no se obtuvo el lock a tiempo
            UnexpectedError: cualquier otra falla del almacén

        Cualquier otra excepción también revierte la transacción antes de propagarse.
        """
        self._lock_timeout_applied = False
        try:
            yield self
            self._restore_lock_timeout()
            self.db.commit()
        except InventoryError:
            self._rollback()
            raise
        except IntegrityError as exc:
            self._rollback()
            logger.warning(f"Violación de integridad: {exc.orig}")
            raise ConflictError("Violación de integridad en el almacén", {"reason": str(exc.orig)}) from exc
        except OperationalError as exc:
            self._rollback()
            if _is_lock_timeout(exc):
                logger.warning("Timeout esperando lock de fila")
                raise BusyError(
                    "El activo está siendo modificado por otra operación, reintente",
                    {"lock_timeout_ms": self.lock_timeout_ms},
                ) from exc
            logger.error(f"Error operacional del almacén: {exc.orig}")
            raise UnexpectedError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            self._rollback()
            logger.error(f"Error inesperado del almacén: {exc}")
            raise UnexpectedError(str(exc)) from exc
        except Exception:
            self._rollback()
            logger.exception("Error no controlado dentro de la transacción; cambios revertidos")
            raise

    def _rollback(self) -> None:
        try:
            self._restore_lock_timeout()
        except SQLAlchemyError as exc:
            logger.warning(f"No se pudo restaurar innodb_lock_wait_timeout: {exc}")
        self.db.rollback()

    def _apply_lock_timeout(self) -> None:
        """Limita la espera por locks de fila en la transacción actual"""
        if self._lock_timeout_applied:
            return
        dialect = self.db.get_bind().dialect.name
        ms = int(self.lock_timeout_ms)
        if dialect == "postgresql":
            self.db.execute(text(f"SET LOCAL lock_timeout = {ms}"))
        elif dialect in ("mysql", "mariadb"):
            # Variable de sesión: se restaura antes de devolver la conexión al pool
            self._previous_lock_wait = self.db.execute(
                text("SELECT @@SESSION.innodb_lock_wait_timeout")
            ).scalar()
            self.db.execute(text(f"SET SESSION innodb_lock_wait_timeout = {max(1, ms // 1000)}"))
        # SQLite: el timeout de conexión cubre la espera del lock de escritura
        self._lock_timeout_applied = True

    def _restore_lock_timeout(self) -> None:
        if self._previous_lock_wait is None:
            return
        previous, self._previous_lock_wait = self._previous_lock_wait, None
        self.db.execute(text(f"SET SESSION innodb_lock_wait_timeout = {int(previous)}"))

    def _locked(self, query, lock: bool, model):
        if not lock:
            return query
        self._apply_lock_timeout()
        # OF <tabla>: el eager join de catálogo no debe quedar bajo el lock
        return query.with_for_update(of=model).populate_existing()

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    def get_asset(self, asset_id: int, lock: bool = False) -> Asset:
        asset = self._locked(self.db.query(Asset).filter(Asset.id == asset_id), lock, Asset).first()
        if not asset:
            raise NotFoundError("Activo no encontrado", {"asset_id": asset_id})
        return asset

    def get_assignment(self, assignment_id: int, lock: bool = False) -> Assignment:
        assignment = self._locked(
            self.db.query(Assignment).filter(Assignment.id == assignment_id), lock, Assignment
        ).first()
        if not assignment:
            raise NotFoundError("Asignación no encontrada", {"assignment_id": assignment_id})
        return assignment

    def get_repair(self, repair_id: int, lock: bool = False) -> Repair:
        repair = self._locked(self.db.query(Repair).filter(Repair.id == repair_id), lock, Repair).first()
        if not repair:
            raise NotFoundError("Reparación no encontrada", {"repair_id": repair_id})
        return repair

    def get_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("El producto especificado no existe", {"product_id": product_id})
        return product

    def find_active_assignment(self, asset_id: int, lock: bool = False) -> Optional[Assignment]:
        """Asignación activa del activo, siempre resuelta por consulta"""
        return self._locked(
            self.db.query(Assignment).filter(
                Assignment.asset_id == asset_id,
                Assignment.is_active == True
            ),
            lock,
            Assignment,
        ).first()

    def find_open_repair(self, asset_id: int, lock: bool = False) -> Optional[Repair]:
        """Reparación abierta del activo, siempre resuelta por consulta"""
        return self._locked(
            self.db.query(Repair).filter(
                Repair.asset_id == asset_id,
                Repair.state == RepairState.IN_REPAIR.value
            ),
            lock,
            Repair,
        ).first()

    def assignment_ids_for_asset(self, asset_id: int) -> List[int]:
        rows = self.db.query(Assignment.id).filter(Assignment.asset_id == asset_id).all()
        return [row[0] for row in rows]

    def repair_ids_for_asset(self, asset_id: int) -> List[int]:
        rows = self.db.query(Repair.id).filter(Repair.asset_id == asset_id).all()
        return [row[0] for row in rows]

    def resolve_destination(self, destination: Destination) -> str:
        """Verifica que el destino exista y esté activo; devuelve su nombre visible"""
        model = _DESTINATION_MODELS[destination.kind]
        entity = self.db.query(model).filter(model.id == destination.id).first()
        if not entity:
            raise NotFoundError(
                f"{destination.kind.value} no encontrado",
                {"destination_kind": destination.kind.value, "destination_id": destination.id},
            )
        if not entity.is_active:
            raise ValidationError(
                f"{destination.kind.value} inactivo: no puede recibir asignaciones",
                {"destination_kind": destination.kind.value, "destination_id": destination.id},
            )
        if destination.kind is DestinationKind.EMPLOYEE:
            return entity.full_name
        return entity.name

    def existing_serials(self, serials: Iterable[str]) -> Set[str]:
        serials = list(serials)
        if not serials:
            return set()
        rows = self.db.query(Asset.serial_number).filter(Asset.serial_number.in_(serials)).all()
        return {row[0] for row in rows}

    # ------------------------------------------------------------------
    # Escrituras
    # ------------------------------------------------------------------

    def add(self, obj):
        """Agrega un registro y hace flush para obtener su ID"""
        self.db.add(obj)
        self.db.flush()
        return obj

    def compare_and_set_state(
        self,
        asset: Asset,
        expected: AssetState,
        new: AssetState,
        now: datetime,
    ) -> None:
        """
        Cambia el estado del activo solo si sigue en el estado esperado

        Junto con el lock de fila garantiza que, entre dos transiciones
        concurrentes sobre el mismo activo, la perdedora falle limpiamente.
        """
        updated = self.db.query(Asset).filter(
            Asset.id == asset.id,
            Asset.state == expected.value
        ).update(
            {Asset.state: new.value, Asset.updated_at: now},
            synchronize_session="fetch"
        )
        if updated != 1:
            raise InvalidStateError(
                "El estado del activo cambió durante la operación",
                {"asset_id": asset.id, "expected_state": expected.value},
            )

    # ------------------------------------------------------------------
    # Listados paginados
    # ------------------------------------------------------------------

    def list_active_assignments(
        self,
        destination: Optional[Destination] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Assignment], int]:
        query = self.db.query(Assignment).filter(Assignment.is_active == True)
        if destination is not None:
            for column, value in destination.column_values().items():
                if value is not None:
                    query = query.filter(getattr(Assignment, column) == value)

        total = query.count()
        rows = query.order_by(
            Assignment.assigned_at.desc(), Assignment.id.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()
        return rows, total

    def list_active_repairs(
        self,
        provider: Optional[str] = None,
        page: int = 1,
        page_size: int = 10,
    ) -> Tuple[List[Repair], int]:
        query = self.db.query(Repair).filter(Repair.state == RepairState.IN_REPAIR.value)
        if provider:
            query = query.filter(Repair.provider.ilike(f"%{provider.strip()}%"))

        total = query.count()
        rows = query.order_by(
            Repair.shipped_at.desc(), Repair.id.desc()
        ).offset((page - 1) * page_size).limit(page_size).all()
        return rows, total
