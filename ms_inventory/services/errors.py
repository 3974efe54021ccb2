"""
Errores tipados del núcleo de inventario

Los servicios lanzan estas excepciones; la capa HTTP las traduce a códigos de estado.
Ninguna de ellas formatea mensajes para el usuario final.
"""
from typing import Any, Dict, Optional


class InventoryError(Exception):
    """Base de todos los errores de negocio y de almacenamiento"""

    kind = "Unexpected"

    def __init__(self, message: str, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.kind, "message": self.message, "detail": self.detail}


class NotFoundError(InventoryError):
    """El activo, asignación, reparación o entidad referenciada no existe"""

    kind = "NotFound"


class InvalidStateError(InventoryError):
    """La operación no es válida desde el estado actual del activo"""

    kind = "InvalidState"


class ValidationError(InventoryError):
    """Entrada mal formada: destino ambiguo, motivo corto, término vacío..."""

    kind = "ValidationError"


class ConflictError(InventoryError):
    """Violación de integridad detectada por el almacén (p.ej. índice único)"""

    kind = "Conflict"


class BusyError(InventoryError):
    """No se obtuvo el lock de la fila dentro del tiempo máximo; reintentar"""

    kind = "Busy"


class UnexpectedError(InventoryError):
    """Falla del almacén; se propaga con el mensaje original"""

    kind = "Unexpected"
