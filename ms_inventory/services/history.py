"""
Historial de un activo

Reproduce el log de actividad del activo (y de sus asignaciones y
reparaciones) como una línea de tiempo, de lo más reciente a lo más antiguo.
El payload de cada entrada se interpreta al leer, según (tabla, acción).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Type
import json
import logging

from pydantic import BaseModel, ValidationError as PayloadError
from sqlalchemy.orm import Session

from ..models import AuditLogEntry
from .audit_log import (
    AuditLog,
    TABLE_ASSETS, TABLE_ASSIGNMENTS, TABLE_REPAIRS,
    ACTION_CREATION, ACTION_STATE_CHANGE, ACTION_NEW_ASSIGNMENT, ACTION_RETURN,
    ACTION_CANCELLATION, ACTION_SENT_TO_REPAIR, ACTION_RETURNED_FROM_REPAIR,
)
from .repository import AssetRepository

logger = logging.getLogger(__name__)


@dataclass
class TimelineEvent:
    id: int
    kind: str
    occurred_at: datetime
    action: str
    observations: str
    user: Optional[str] = None


# ----------------------------------------------------------------------
# Variantes de payload
# ----------------------------------------------------------------------

class _Payload(BaseModel):
    serial_number: Optional[str] = None

    def label(self) -> str:
        raise NotImplementedError

    def observation(self) -> str:
        raise NotImplementedError


class CreationPayload(_Payload):
    product_name: Optional[str] = None
    state: Optional[str] = None

    def label(self) -> str:
        return "Creation"

    def observation(self) -> str:
        parts = [f"S/N: {self.serial_number or 'N/A'}"]
        if self.product_name:
            parts.append(f"Producto: {self.product_name}")
        if self.state:
            parts.append(f"Estado inicial: {self.state}")
        return " | ".join(parts)


class StateChangePayload(_Payload):
    from_state: str
    to_state: str
    reason: Optional[str] = None

    def label(self) -> str:
        return "State Change"

    def observation(self) -> str:
        text = f"{self.from_state} -> {self.to_state}"
        return f"{text} ({self.reason})" if self.reason else text


class NewAssignmentPayload(_Payload):
    destination_type: str
    destination_name: str
    destination_id: Optional[int] = None
    notes: Optional[str] = None

    def label(self) -> str:
        return "New Assignment"

    def observation(self) -> str:
        text = f"Asignado a {self.destination_type}: {self.destination_name}"
        return f"{text} | Notas: {self.notes}" if self.notes else text


class ReturnPayload(_Payload):
    notes: Optional[str] = None
    implicit: bool = False

    def label(self) -> str:
        return "Return (implicit)" if self.implicit else "Return"

    def observation(self) -> str:
        return self.notes or "Devolución sin observaciones"


class CancellationPayload(_Payload):
    reason: str

    def label(self) -> str:
        return "Cancellation"

    def observation(self) -> str:
        return f"Motivo: {self.reason}"


class SentToRepairPayload(_Payload):
    provider: str
    problem: Optional[str] = None

    def label(self) -> str:
        return "Sent to Repair"

    def observation(self) -> str:
        text = f"Proveedor: {self.provider}"
        return f"{text} | Problema: {self.problem}" if self.problem else text


class ReturnedFromRepairPayload(_Payload):
    outcome: str
    resolution: Optional[str] = None
    asset_state: Optional[str] = None

    def label(self) -> str:
        return f"Returned from Repair ({self.outcome})"

    def observation(self) -> str:
        parts = [f"Resultado: {self.outcome}"]
        if self.resolution:
            parts.append(f"Solución: {self.resolution}")
        if self.asset_state:
            parts.append(f"Estado del activo: {self.asset_state}")
        return " | ".join(parts)


_VARIANTS: Dict[Tuple[str, str], Type[_Payload]] = {
    (TABLE_ASSETS, ACTION_CREATION): CreationPayload,
    (TABLE_ASSETS, ACTION_STATE_CHANGE): StateChangePayload,
    (TABLE_ASSIGNMENTS, ACTION_NEW_ASSIGNMENT): NewAssignmentPayload,
    (TABLE_ASSIGNMENTS, ACTION_RETURN): ReturnPayload,
    (TABLE_ASSIGNMENTS, ACTION_CANCELLATION): CancellationPayload,
    (TABLE_REPAIRS, ACTION_SENT_TO_REPAIR): SentToRepairPayload,
    (TABLE_REPAIRS, ACTION_RETURNED_FROM_REPAIR): ReturnedFromRepairPayload,
}

# Etiquetas de acción heredadas (registros anteriores a la migración)
_LEGACY_ACTIONS = {
    "creación": ACTION_CREATION,
    "creacion": ACTION_CREATION,
    "cambio de estado": ACTION_STATE_CHANGE,
    "nueva asignación": ACTION_NEW_ASSIGNMENT,
    "nueva asignacion": ACTION_NEW_ASSIGNMENT,
    "devolución": ACTION_RETURN,
    "devolucion": ACTION_RETURN,
    "cancelación": ACTION_CANCELLATION,
    "cancelacion": ACTION_CANCELLATION,
    "envío a reparación": ACTION_SENT_TO_REPAIR,
    "envio a reparacion": ACTION_SENT_TO_REPAIR,
    "retorno de reparación": ACTION_RETURNED_FROM_REPAIR,
    "retorno de reparacion": ACTION_RETURNED_FROM_REPAIR,
}

_KINDS = {
    TABLE_ASSETS: "Asset",
    TABLE_ASSIGNMENTS: "Assignment",
    TABLE_REPAIRS: "Repair",
}


def normalize_action(action: Optional[str]) -> str:
    raw = (action or "").strip()
    return _LEGACY_ACTIONS.get(raw.casefold(), raw)


def decode_entry(entry: AuditLogEntry) -> TimelineEvent:
    """
    Convierte una entrada del log en un evento de la línea de tiempo

    Un payload ilegible o que no coincide con su variante no interrumpe la
    lectura: se muestra como evento genérico con el texto original.
    """
    action = normalize_action(entry.action)
    variant = _VARIANTS.get((entry.table_name, action))

    label = observations = None
    if variant is not None:
        try:
            payload = variant.model_validate(json.loads(entry.payload or ""))
            label, observations = payload.label(), payload.observation()
        except (ValueError, TypeError, PayloadError) as exc:
            logger.warning(f"Payload no interpretable en audit_log {entry.id}: {exc.__class__.__name__}")

    if label is None:
        label = f"{entry.table_name} - {entry.action}"
        observations = entry.payload or ""

    return TimelineEvent(
        id=entry.id,
        kind=_KINDS.get(entry.table_name, entry.table_name),
        occurred_at=entry.created_at,
        action=label,
        observations=observations,
        user=entry.user_name,
    )


class HistoryService:
    """Lectura del historial; no modifica datos"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = AssetRepository(db)
        self.audit = AuditLog(db)

    def get_history(self, asset_id: int) -> List[TimelineEvent]:
        """
        Línea de tiempo completa del activo, de lo más reciente a lo más antiguo

        Raises:
            NotFoundError: el activo no existe
        """
        self.repository.get_asset(asset_id)
        entries = self.audit.entries_for_asset(
            asset_id,
            self.repository.assignment_ids_for_asset(asset_id),
            self.repository.repair_ids_for_asset(asset_id),
        )
        return [decode_entry(entry) for entry in entries]
