"""
Schemas de Asignación (Assignment)
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from .common import PageMeta


class AssignmentCreate(BaseModel):
    """Schema para asignar un activo; exactamente uno de employee_id, sector_id o branch_id"""
    asset_id: int = Field(..., gt=0, description="ID del activo")
    employee_id: Optional[int] = Field(None, description="ID del empleado destino")
    sector_id: Optional[int] = Field(None, description="ID del sector destino")
    branch_id: Optional[int] = Field(None, description="ID de la sucursal destino")
    notes: Optional[str] = Field(None, description="Notas sobre la asignación")

    # Datos sensibles (se guardan solo si corresponden a la categoría)
    disk_encryption_password: Optional[str] = Field(None, description="Notebook: contraseña de encriptación de disco")
    mail_account: Optional[str] = Field(None, description="Celular: cuenta de correo")
    mail_password: Optional[str] = Field(None, description="Celular: contraseña del correo")
    phone_number: Optional[str] = Field(None, description="Celular: número de línea")
    two_factor_code: Optional[str] = Field(None, description="Celular: código 2FA")

    class Config:
        json_schema_extra = {
            "example": {
                "asset_id": 1,
                "employee_id": 7,
                "notes": "Entrega inicial",
                "disk_encryption_password": "bitlocker-7781"
            }
        }


class AssignmentReturnRequest(BaseModel):
    """Schema para devolver un activo asignado"""
    notes: Optional[str] = Field(None, description="Observaciones de la devolución")


class AssignmentCancelRequest(BaseModel):
    """Schema para cancelar una asignación cargada por error"""
    reason: str = Field(..., description="Motivo de la cancelación (mínimo 5 caracteres)")

    class Config:
        json_schema_extra = {
            "example": {
                "reason": "Asignada al empleado equivocado"
            }
        }


class AssignmentResponse(BaseModel):
    """Schema para respuesta de asignación (sin datos sensibles)"""
    id: int = Field(..., description="ID de la asignación")
    asset_id: int = Field(..., description="ID del activo")
    employee_id: Optional[int] = Field(None, description="ID del empleado")
    sector_id: Optional[int] = Field(None, description="ID del sector")
    branch_id: Optional[int] = Field(None, description="ID de la sucursal")
    destination_type: str = Field(..., description="Employee, Sector o Branch")
    destination_name: str = Field(..., description="Nombre del destino")
    assigned_at: Optional[datetime] = Field(None, description="Fecha de asignación")
    returned_at: Optional[datetime] = Field(None, description="Fecha de devolución")
    assigned_by: Optional[int] = Field(None, description="ID del usuario que asignó")
    returned_by: Optional[int] = Field(None, description="ID del usuario que devolvió")
    notes: Optional[str] = Field(None, description="Notas")
    return_notes: Optional[str] = Field(None, description="Notas de devolución")
    cancellation_reason: Optional[str] = Field(None, description="Motivo de cancelación")
    is_active: bool = Field(..., description="Asignación activa")

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "asset_id": 1,
                "employee_id": 7,
                "sector_id": None,
                "branch_id": None,
                "destination_type": "Employee",
                "destination_name": "Ana Gómez",
                "assigned_at": "2025-10-02T00:00:00Z",
                "returned_at": None,
                "assigned_by": 1,
                "returned_by": None,
                "notes": "Entrega inicial",
                "return_notes": None,
                "cancellation_reason": None,
                "is_active": True
            }
        }


class AssignmentListResponse(PageMeta):
    """Página de asignaciones activas"""
    items: List[AssignmentResponse] = Field(..., description="Asignaciones")
