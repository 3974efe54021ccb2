"""
Schemas de Historial
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class TimelineEventResponse(BaseModel):
    """Evento de la línea de tiempo de un activo"""
    id: int = Field(..., description="ID de la entrada del log")
    kind: str = Field(..., description="Asset, Assignment o Repair")
    occurred_at: Optional[datetime] = Field(None, description="Fecha del evento")
    action: str = Field(..., description="Acción")
    observations: str = Field(..., description="Detalle legible del evento")
    user: Optional[str] = Field(None, description="Usuario que ejecutó la acción")

    class Config:
        from_attributes = True


class AssetHistoryResponse(BaseModel):
    """Historial completo de un activo, de lo más reciente a lo más antiguo"""
    asset_id: int = Field(..., description="ID del activo")
    serial_number: str = Field(..., description="Número de serie")
    events: List[TimelineEventResponse] = Field(..., description="Eventos")
    total_events: int = Field(..., description="Cantidad de eventos")

    class Config:
        json_schema_extra = {
            "example": {
                "asset_id": 1,
                "serial_number": "SN-100",
                "events": [
                    {
                        "id": 3,
                        "kind": "Repair",
                        "occurred_at": "2025-10-05T00:00:00Z",
                        "action": "Sent to Repair",
                        "observations": "Proveedor: TecnoService | Problema: No enciende",
                        "user": "Admin"
                    }
                ],
                "total_events": 1
            }
        }
