"""
Log de actividad (append-only)

Cada operación que modifica datos escribe sus entradas dentro de la misma
transacción; si la operación se revierte, la entrada también.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import json

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..models import AuditLogEntry

# Tablas afectadas
TABLE_ASSETS = "assets"
TABLE_ASSIGNMENTS = "assignments"
TABLE_REPAIRS = "repairs"

# Acciones
ACTION_CREATION = "Creation"
ACTION_STATE_CHANGE = "State Change"
ACTION_NEW_ASSIGNMENT = "New Assignment"
ACTION_RETURN = "Return"
ACTION_CANCELLATION = "Cancellation"
ACTION_SENT_TO_REPAIR = "Sent to Repair"
ACTION_RETURNED_FROM_REPAIR = "Returned from Repair"


@dataclass(frozen=True)
class Actor:
    """Usuario autenticado que ejecuta la operación (lo provee quien llama)"""
    id: Optional[int]
    name: str


class AuditLog:
    """Almacén de eventos estructurados; solo inserta y consulta"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        table_name: str,
        action: str,
        record_id: int,
        payload: Dict[str, Any],
        actor: Actor,
        at: datetime,
    ) -> AuditLogEntry:
        entry = AuditLogEntry(
            table_name=table_name,
            action=action,
            record_id=record_id,
            payload=json.dumps(payload, ensure_ascii=False, default=str),
            user_id=actor.id,
            user_name=actor.name,
            created_at=at,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def entries_for_asset(
        self,
        asset_id: int,
        assignment_ids: List[int],
        repair_ids: List[int],
    ) -> List[AuditLogEntry]:
        """
        Entradas del activo y, transitivamente, de sus asignaciones y reparaciones

        Ordenadas de la más reciente a la más antigua.
        """
        conditions = [
            and_(AuditLogEntry.table_name == TABLE_ASSETS, AuditLogEntry.record_id == asset_id)
        ]
        if assignment_ids:
            conditions.append(and_(
                AuditLogEntry.table_name == TABLE_ASSIGNMENTS,
                AuditLogEntry.record_id.in_(assignment_ids)
            ))
        if repair_ids:
            conditions.append(and_(
                AuditLogEntry.table_name == TABLE_REPAIRS,
                AuditLogEntry.record_id.in_(repair_ids)
            ))

        return self.db.query(AuditLogEntry).filter(
            or_(*conditions)
        ).order_by(
            AuditLogEntry.created_at.desc(),
            AuditLogEntry.id.desc()
        ).all()
