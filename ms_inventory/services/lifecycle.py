"""
Máquina de estados del ciclo de vida de un activo

    Available -> Assigned        (assign)
    Assigned  -> Available       (return_assignment / cancel_assignment)
    Available -> InRepair        (send_to_repair)
    Assigned  -> InRepair        (send_to_repair, cierra antes la asignación)
    InRepair  -> Available       (return_from_repair, Repaired)
    InRepair  -> Retired         (return_from_repair, Unrepaired)

Retired es terminal. Cada operación corre en una sola transacción, toma el
lock de fila del activo antes de leer su estado y escribe su entrada de log.
"""
from datetime import datetime, timezone
from typing import Callable, Optional, Union
import logging

from sqlalchemy.orm import Session

from ..config import settings
from ..models import Asset, AssetState, Assignment, Repair, RepairState
from .audit_log import (
    AuditLog, Actor,
    TABLE_ASSIGNMENTS, TABLE_REPAIRS,
    ACTION_NEW_ASSIGNMENT, ACTION_RETURN, ACTION_CANCELLATION,
    ACTION_SENT_TO_REPAIR, ACTION_RETURNED_FROM_REPAIR,
)
from .errors import NotFoundError, InvalidStateError, ValidationError
from .policies import Destination, SensitivePayload, check_required_fields, filter_payload
from .repository import AssetRepository

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    AssetState.AVAILABLE: {AssetState.ASSIGNED, AssetState.IN_REPAIR},
    AssetState.ASSIGNED: {AssetState.AVAILABLE, AssetState.IN_REPAIR},
    AssetState.IN_REPAIR: {AssetState.AVAILABLE, AssetState.RETIRED},
    AssetState.RETIRED: set(),
}

_REPAIR_OUTCOMES = {
    RepairState.REPAIRED: AssetState.AVAILABLE,
    RepairState.UNREPAIRED: AssetState.RETIRED,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _required_text(value: Optional[str], field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"El campo {field} es obligatorio", {"field": field})
    return value


class LifecycleService:
    """Operaciones de transición de estado sobre activos serializados"""

    def __init__(
        self,
        db: Session,
        clock: Optional[Callable[[], datetime]] = None,
        lock_timeout_ms: Optional[int] = None,
    ):
        self.repository = AssetRepository(db, lock_timeout_ms)
        self.audit = AuditLog(db)
        self.clock = clock or utcnow

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _invalid_state(self, asset: Asset, operation: str) -> InvalidStateError:
        logger.warning(f"Transición rechazada: {operation} sobre activo {asset.id} en estado {asset.state}")
        return InvalidStateError(
            f"El activo no admite {operation} desde el estado {asset.state}",
            {"asset_id": asset.id, "state": asset.state, "operation": operation},
        )

    def _transition(self, asset: Asset, new: AssetState, now: datetime) -> None:
        current = AssetState(asset.state)
        if new not in _TRANSITIONS[current]:
            raise self._invalid_state(asset, f"transición a {new.value}")
        self.repository.compare_and_set_state(asset, current, new, now)

    def _close_assignment(
        self,
        asset: Asset,
        assignment: Assignment,
        actor: Actor,
        now: datetime,
        action: str = ACTION_RETURN,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
        implicit: bool = False,
    ) -> None:
        if not assignment.is_active:
            raise NotFoundError(
                "Asignación no encontrada o ya devuelta/cancelada",
                {"assignment_id": assignment.id},
            )
        if asset.state != AssetState.ASSIGNED.value:
            raise self._invalid_state(asset, action)

        self._transition(asset, AssetState.AVAILABLE, now)

        assignment.is_active = False
        assignment.returned_at = now
        assignment.returned_by = actor.id
        if notes:
            assignment.return_notes = notes
        if reason:
            assignment.cancellation_reason = reason
        self.repository.db.flush()

        payload = {"asset_id": asset.id, "serial_number": asset.serial_number}
        if action == ACTION_CANCELLATION:
            payload["reason"] = reason
        else:
            payload["notes"] = notes
            payload["implicit"] = implicit
        self.audit.record(TABLE_ASSIGNMENTS, action, assignment.id, payload, actor, now)

    def _lock_for_assignment(self, assignment_id: int):
        # Primero el activo, luego la asignación: mismo orden de locks que assign/send_to_repair
        assignment = self.repository.get_assignment(assignment_id)
        asset = self.repository.get_asset(assignment.asset_id, lock=True)
        assignment = self.repository.get_assignment(assignment_id, lock=True)
        return asset, assignment

    # ------------------------------------------------------------------
    # Operaciones
    # ------------------------------------------------------------------

    def assign(
        self,
        asset_id: int,
        destination: Destination,
        actor: Actor,
        sensitive_payload: Optional[SensitivePayload] = None,
        notes: Optional[str] = None,
    ) -> Assignment:
        """
        Asigna un activo disponible a un empleado, sector o sucursal

        Los datos sensibles se guardan solo si corresponden a la categoría del
        activo (notebook: contraseña de disco; celular: correo, teléfono y 2FA).

        Raises:
            ValidationError: destino inválido o inactivo, o falta la credencial de la categoría
            NotFoundError: el activo o el destino no existen
            InvalidStateError: el activo no está disponible
        """
        if not isinstance(destination, Destination):
            raise ValidationError(
                "Debe especificar exactamente un destino (empleado, sector o sucursal)"
            )

        with self.repository.transaction():
            asset = self.repository.get_asset(asset_id, lock=True)
            if asset.state != AssetState.AVAILABLE.value:
                raise self._invalid_state(asset, "asignación")

            destination_name = self.repository.resolve_destination(destination)
            check_required_fields(asset.category_name, sensitive_payload)
            now = self.clock()
            self._transition(asset, AssetState.ASSIGNED, now)

            assignment = self.repository.add(Assignment(
                asset_id=asset.id,
                assigned_at=now,
                assigned_by=actor.id,
                notes=notes,
                is_active=True,
                **destination.column_values(),
                **filter_payload(asset.category_name, sensitive_payload),
            ))

            self.audit.record(TABLE_ASSIGNMENTS, ACTION_NEW_ASSIGNMENT, assignment.id, {
                "asset_id": asset.id,
                "serial_number": asset.serial_number,
                "destination_type": destination.kind.value,
                "destination_id": destination.id,
                "destination_name": destination_name,
                "notes": notes,
            }, actor, now)

        logger.info(
            f"Activo {asset_id} asignado a {destination.kind.value} {destination.id} "
            f"(asignación {assignment.id}) por usuario {actor.id}"
        )
        return assignment

    def return_assignment(
        self,
        assignment_id: int,
        actor: Actor,
        notes: Optional[str] = None,
    ) -> Assignment:
        """
        Registra la devolución de un activo asignado; el activo vuelve a Available

        Raises:
            NotFoundError: la asignación no existe o ya no está activa
            InvalidStateError: el activo no está en estado Assigned
        """
        notes = (notes or "").strip() or None
        with self.repository.transaction():
            asset, assignment = self._lock_for_assignment(assignment_id)
            self._close_assignment(asset, assignment, actor, self.clock(), notes=notes)

        logger.info(f"Asignación {assignment_id} devuelta por usuario {actor.id}")
        return assignment

    def cancel_assignment(
        self,
        assignment_id: int,
        reason: str,
        actor: Actor,
    ) -> Assignment:
        """
        Cancela una asignación cargada por error

        Mismo efecto que una devolución, pero queda registrada como
        "Cancellation" con su motivo; no es intercambiable con Return en reportes.

        Raises:
            ValidationError: motivo ausente o más corto que CANCEL_REASON_MIN_LENGTH
            NotFoundError: la asignación no existe o ya no está activa
            InvalidStateError: el activo no está en estado Assigned
        """
        reason = (reason or "").strip()
        if len(reason) < settings.CANCEL_REASON_MIN_LENGTH:
            raise ValidationError(
                f"Debe proporcionar un motivo válido para la cancelación "
                f"(mínimo {settings.CANCEL_REASON_MIN_LENGTH} caracteres)",
                {"min_length": settings.CANCEL_REASON_MIN_LENGTH, "length": len(reason)},
            )

        with self.repository.transaction():
            asset, assignment = self._lock_for_assignment(assignment_id)
            self._close_assignment(
                asset, assignment, actor, self.clock(),
                action=ACTION_CANCELLATION, reason=reason,
            )

        logger.info(f"Asignación {assignment_id} cancelada por usuario {actor.id}")
        return assignment

    def send_to_repair(
        self,
        asset_id: int,
        provider: str,
        problem_description: str,
        actor: Actor,
    ) -> Repair:
        """
        Envía un activo a reparación externa

        Si el activo está asignado, primero se cierra su asignación activa
        (devolución implícita, registrada como Return con implicit=true).

        Raises:
            ValidationError: proveedor o descripción vacíos
            NotFoundError: el activo no existe
            InvalidStateError: el activo no está Available ni Assigned
        """
        provider = _required_text(provider, "provider")
        problem_description = _required_text(problem_description, "problem_description")

        with self.repository.transaction():
            asset = self.repository.get_asset(asset_id, lock=True)
            if asset.state not in (AssetState.AVAILABLE.value, AssetState.ASSIGNED.value):
                raise self._invalid_state(asset, "envío a reparación")

            now = self.clock()
            if asset.state == AssetState.ASSIGNED.value:
                assignment = self.repository.find_active_assignment(asset.id, lock=True)
                if assignment is None:
                    raise self._invalid_state(asset, "envío a reparación sin asignación activa")
                self._close_assignment(
                    asset, assignment, actor, now,
                    notes=f"Devuelto por envío a reparación ({provider})",
                    implicit=True,
                )

            self._transition(asset, AssetState.IN_REPAIR, now)
            repair = self.repository.add(Repair(
                asset_id=asset.id,
                provider=provider,
                problem_description=problem_description,
                state=RepairState.IN_REPAIR.value,
                shipped_at=now,
                sent_by=actor.id,
            ))

            self.audit.record(TABLE_REPAIRS, ACTION_SENT_TO_REPAIR, repair.id, {
                "asset_id": asset.id,
                "serial_number": asset.serial_number,
                "provider": provider,
                "problem": problem_description,
            }, actor, now)

        logger.info(f"Activo {asset_id} enviado a reparación {repair.id} ({provider}) por usuario {actor.id}")
        return repair

    def return_from_repair(
        self,
        repair_id: int,
        resolution_description: str,
        outcome: Union[RepairState, str],
        actor: Actor,
    ) -> Repair:
        """
        Procesa el retorno de una reparación

        Repaired deja el activo Available; Unrepaired lo da de baja (Retired).

        Raises:
            ValidationError: resultado inválido o descripción de solución vacía
            NotFoundError: la reparación no existe
            InvalidStateError: la reparación ya fue procesada o el activo no está InRepair
        """
        try:
            outcome = RepairState(outcome)
        except ValueError:
            outcome = None
        if outcome not in _REPAIR_OUTCOMES:
            raise ValidationError(
                "Resultado de reparación inválido",
                {"allowed": [state.value for state in _REPAIR_OUTCOMES]},
            )
        resolution_description = _required_text(resolution_description, "resolution_description")

        with self.repository.transaction():
            repair = self.repository.get_repair(repair_id)
            asset = self.repository.get_asset(repair.asset_id, lock=True)
            repair = self.repository.get_repair(repair_id, lock=True)
            if not repair.is_open:
                logger.warning(f"Reparación {repair_id} ya procesada ({repair.state})")
                raise InvalidStateError(
                    "La reparación ya fue procesada anteriormente",
                    {"repair_id": repair_id, "state": repair.state},
                )
            if asset.state != AssetState.IN_REPAIR.value:
                raise self._invalid_state(asset, "retorno de reparación")

            now = self.clock()
            new_state = _REPAIR_OUTCOMES[outcome]
            self._transition(asset, new_state, now)

            repair.state = outcome.value
            repair.resolution_description = resolution_description
            repair.returned_at = now
            repair.received_by = actor.id
            self.repository.db.flush()

            self.audit.record(TABLE_REPAIRS, ACTION_RETURNED_FROM_REPAIR, repair.id, {
                "asset_id": asset.id,
                "serial_number": asset.serial_number,
                "outcome": outcome.value,
                "resolution": resolution_description,
                "asset_state": new_state.value,
            }, actor, now)

        logger.info(
            f"Reparación {repair_id} cerrada como {outcome.value}; "
            f"activo {repair.asset_id} ahora {new_state.value}"
        )
        return repair
