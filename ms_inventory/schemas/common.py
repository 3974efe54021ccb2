"""
Schemas compartidos
"""
from pydantic import BaseModel, Field
from typing import Any, Dict


class HealthResponse(BaseModel):
    """Schema para health check"""
    status: str = Field(..., description="Estado del servicio")
    service: str = Field(..., description="Nombre del servicio")
    version: str = Field(..., description="Versión del servicio")
    database: str = Field(..., description="Estado de la conexión a la base de datos")


class ErrorResponse(BaseModel):
    """Schema de error tipado devuelto por los exception handlers"""
    error: str = Field(..., description="Tipo de error (NotFound, InvalidState, ...)")
    message: str = Field(..., description="Descripción del error")
    detail: Dict[str, Any] = Field(default_factory=dict, description="Datos adicionales")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "InvalidState",
                "message": "El activo no admite asignación desde el estado InRepair",
                "detail": {"asset_id": 12, "state": "InRepair", "operation": "asignación"}
            }
        }


class PageMeta(BaseModel):
    """Metadatos de paginación"""
    total: int = Field(..., description="Total de registros")
    page: int = Field(..., description="Página actual (desde 1)")
    page_size: int = Field(..., description="Registros por página")
    total_pages: int = Field(..., description="Total de páginas")
