"""
Schemas de Reparaciones (Repairs)
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from .common import PageMeta


class RepairCreate(BaseModel):
    """Schema para enviar un activo a reparación"""
    asset_id: int = Field(..., gt=0, description="ID del activo")
    provider: str = Field(..., description="Proveedor de la reparación")
    problem_description: str = Field(..., description="Descripción del problema")

    class Config:
        json_schema_extra = {
            "example": {
                "asset_id": 1,
                "provider": "TecnoService",
                "problem_description": "No enciende"
            }
        }


class RepairReturnRequest(BaseModel):
    """Schema para procesar el retorno de una reparación"""
    resolution_description: str = Field(..., description="Descripción de la solución")
    outcome: str = Field(..., description="Repaired (vuelve a Available) o Unrepaired (baja)")

    class Config:
        json_schema_extra = {
            "example": {
                "resolution_description": "Se reemplazó la placa madre",
                "outcome": "Repaired"
            }
        }


class RepairResponse(BaseModel):
    """Schema para respuesta de reparación"""
    id: int = Field(..., description="ID de la reparación")
    asset_id: int = Field(..., description="ID del activo")
    provider: str = Field(..., description="Proveedor")
    problem_description: str = Field(..., description="Problema reportado")
    resolution_description: Optional[str] = Field(None, description="Solución aplicada")
    state: str = Field(..., description="InRepair, Repaired o Unrepaired")
    shipped_at: Optional[datetime] = Field(None, description="Fecha de envío")
    returned_at: Optional[datetime] = Field(None, description="Fecha de retorno")
    sent_by: Optional[int] = Field(None, description="ID del usuario que envió")
    received_by: Optional[int] = Field(None, description="ID del usuario que recibió")

    class Config:
        from_attributes = True


class RepairListResponse(PageMeta):
    """Página de reparaciones abiertas"""
    items: List[RepairResponse] = Field(..., description="Reparaciones")
