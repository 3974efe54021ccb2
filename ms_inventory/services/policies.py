"""
Políticas de dominio: destino de una asignación y exposición de datos sensibles por categoría
"""
import enum
import re
from dataclasses import dataclass, fields
from typing import Dict, FrozenSet, Optional

from .errors import ValidationError


class DestinationKind(str, enum.Enum):
    EMPLOYEE = "Employee"
    SECTOR = "Sector"
    BRANCH = "Branch"


@dataclass(frozen=True)
class Destination:
    """
    Destino de una asignación: exactamente uno de empleado, sector o sucursal

    Usar los constructores (employee/sector/branch/from_ids); no existe un
    destino "vacío" ni uno con dos tipos a la vez.
    """
    kind: DestinationKind
    id: int

    def __post_init__(self):
        if not isinstance(self.kind, DestinationKind):
            raise ValidationError("Tipo de destino inválido", {"kind": str(self.kind)})
        if not isinstance(self.id, int) or isinstance(self.id, bool) or self.id <= 0:
            raise ValidationError("ID de destino inválido", {"id": self.id})

    @classmethod
    def employee(cls, employee_id: int) -> "Destination":
        return cls(DestinationKind.EMPLOYEE, employee_id)

    @classmethod
    def sector(cls, sector_id: int) -> "Destination":
        return cls(DestinationKind.SECTOR, sector_id)

    @classmethod
    def branch(cls, branch_id: int) -> "Destination":
        return cls(DestinationKind.BRANCH, branch_id)

    @classmethod
    def from_ids(
        cls,
        employee_id: Optional[int] = None,
        sector_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> "Destination":
        """Construye el destino a partir de tres IDs opcionales (exactamente uno)"""
        given = [
            (kind, value)
            for kind, value in (
                (DestinationKind.EMPLOYEE, employee_id),
                (DestinationKind.SECTOR, sector_id),
                (DestinationKind.BRANCH, branch_id),
            )
            if value is not None
        ]
        if len(given) != 1:
            raise ValidationError(
                "Debe especificar exactamente un destino (empleado, sector o sucursal)",
                {"destinations_given": len(given)},
            )
        kind, value = given[0]
        return cls(kind, value)

    def column_values(self) -> Dict[str, Optional[int]]:
        """Valores para las columnas employee_id / sector_id / branch_id"""
        return {
            "employee_id": self.id if self.kind is DestinationKind.EMPLOYEE else None,
            "sector_id": self.id if self.kind is DestinationKind.SECTOR else None,
            "branch_id": self.id if self.kind is DestinationKind.BRANCH else None,
        }


@dataclass
class SensitivePayload:
    """Datos sensibles que acompañan una asignación"""
    disk_encryption_password: Optional[str] = None
    mail_account: Optional[str] = None
    mail_password: Optional[str] = None
    phone_number: Optional[str] = None
    two_factor_code: Optional[str] = None


NOTEBOOK = "notebook"
PHONE = "phone"

# Nombres de categoría reconocidos (incluye los nombres heredados en español)
_CATEGORY_KINDS = {
    NOTEBOOK: ("notebook", "laptop"),
    PHONE: ("phone", "celular"),
}

# Campo sensible expuesto en resultados de búsqueda, por tipo de categoría
_SEARCH_FIELD = {
    NOTEBOOK: "disk_encryption_password",
    PHONE: "mail_password",
}

# Campos que se guardan en la asignación, por tipo de categoría
_STORED_FIELDS: Dict[str, FrozenSet[str]] = {
    NOTEBOOK: frozenset({"disk_encryption_password"}),
    PHONE: frozenset({"mail_account", "mail_password", "phone_number", "two_factor_code"}),
}


def category_kind(category_name: Optional[str]) -> Optional[str]:
    """Clasifica una categoría como notebook, phone o None (sin datos sensibles)"""
    words = re.findall(r"\w+", (category_name or "").casefold())
    for kind, prefixes in _CATEGORY_KINDS.items():
        if any(word.startswith(prefix) for word in words for prefix in prefixes):
            return kind
    return None


def sensitive_field_for(category_name: Optional[str]) -> Optional[str]:
    """
    Campo de la asignación que puede exponerse para una categoría

    Notebook -> contraseña de encriptación de disco; Phone -> contraseña del
    correo de recuperación; cualquier otra categoría -> None (nunca se expone).
    """
    kind = category_kind(category_name)
    return _SEARCH_FIELD.get(kind) if kind else None


def filter_payload(category_name: Optional[str], payload: Optional[SensitivePayload]) -> Dict[str, Optional[str]]:
    """Descarta los campos sensibles que no corresponden a la categoría del activo"""
    allowed = _STORED_FIELDS.get(category_kind(category_name), frozenset())
    values = {f.name: None for f in fields(SensitivePayload)}
    if payload is None:
        return values
    for name in allowed:
        value = getattr(payload, name)
        if isinstance(value, str):
            value = value.strip() or None
        values[name] = value
    return values


# Credencial obligatoria al asignar, por tipo de categoría
_REQUIRED_FIELDS = {
    NOTEBOOK: ("disk_encryption_password", "La contraseña de encriptación es obligatoria para notebooks"),
    PHONE: ("mail_account", "La cuenta de correo es obligatoria para celulares"),
}


def check_required_fields(category_name: Optional[str], payload: Optional[SensitivePayload]) -> None:
    """
    Exige la credencial que corresponde a la categoría del activo

    Raises:
        ValidationError: notebook sin contraseña de disco o celular sin cuenta de correo
    """
    required = _REQUIRED_FIELDS.get(category_kind(category_name))
    if required is None:
        return
    field_name, message = required
    value = getattr(payload, field_name, None) if payload is not None else None
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(message, {"category": category_name, "field": field_name})
