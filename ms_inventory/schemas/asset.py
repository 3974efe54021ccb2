"""
Schemas de Activos (Assets)
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from .assignment import AssignmentResponse
from .repair import RepairResponse


class AssetBatchCreate(BaseModel):
    """Schema para registrar un lote de números de serie de un producto"""
    product_id: int = Field(..., gt=0, description="ID del producto")
    serial_numbers: List[str] = Field(..., description="Números de serie a registrar")
    notes: Optional[str] = Field(None, description="Notas comunes a todo el lote")

    class Config:
        json_schema_extra = {
            "example": {
                "product_id": 3,
                "serial_numbers": ["SN-100", "SN-101", "SN-102"],
                "notes": "Compra OC-2025-114"
            }
        }


class AssetResponse(BaseModel):
    """Schema para respuesta de activo"""
    id: int = Field(..., description="ID del activo")
    serial_number: str = Field(..., description="Número de serie")
    product_id: int = Field(..., description="ID del producto")
    product_name: Optional[str] = Field(None, description="Marca y modelo")
    category: Optional[str] = Field(None, description="Categoría del producto")
    state: str = Field(..., description="Available, Assigned, InRepair o Retired")
    notes: Optional[str] = Field(None, description="Notas")
    created_at: Optional[datetime] = Field(None, description="Fecha de alta")
    updated_at: Optional[datetime] = Field(None, description="Última modificación")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "serial_number": "SN-100",
                "product_id": 3,
                "product_name": "Lenovo ThinkPad T14",
                "category": "Notebook",
                "state": "Available",
                "notes": None,
                "created_at": "2025-10-02T00:00:00Z",
                "updated_at": "2025-10-02T00:00:00Z"
            }
        }


class AssetBatchResponse(BaseModel):
    """Resultado del registro de un lote"""
    created: List[AssetResponse] = Field(..., description="Activos creados")
    duplicates: List[str] = Field(..., description="Números de serie omitidos por duplicados")
    total_created: int = Field(..., description="Cantidad de activos creados")
    total_duplicates: int = Field(..., description="Cantidad de duplicados")


class AssetDetailResponse(AssetResponse):
    """Activo con su asignación activa y su reparación abierta"""
    active_assignment: Optional[AssignmentResponse] = Field(None, description="Asignación activa")
    open_repair: Optional[RepairResponse] = Field(None, description="Reparación abierta")
