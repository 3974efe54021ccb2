"""
Schemas de Búsqueda
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class SearchResultResponse(BaseModel):
    """Un resultado de la búsqueda federada"""
    result_type: str = Field(..., description="Assignment, Asset, Repair, Employee, Product, Sector o Branch")
    item_id: int = Field(..., description="ID del registro")
    title: str = Field(..., description="Título")
    description: str = Field("", description="Descripción")
    status: Optional[str] = Field(None, description="Estado")
    date: Optional[datetime] = Field(None, description="Fecha relevante")
    entity_type: Optional[str] = Field(None, description="Categoría o tipo de entidad")
    serial_number: Optional[str] = Field(None, description="Número de serie")
    sensitive_field: Optional[str] = Field(None, description="Dato sensible según la categoría")
    related_info: Optional[str] = Field(None, description="Información relacionada")

    class Config:
        from_attributes = True


class SearchResponse(BaseModel):
    """Página de resultados de búsqueda"""
    search_type: str = Field(..., description="Tipo de búsqueda aplicado")
    results: List[SearchResultResponse] = Field(..., description="Resultados")
    total_count: int = Field(..., description="Total de resultados")
    page: int = Field(..., description="Página actual")
    page_size: int = Field(..., description="Resultados por página")
    total_pages: int = Field(..., description="Total de páginas")

    class Config:
        json_schema_extra = {
            "example": {
                "search_type": "SerialNumber",
                "results": [
                    {
                        "result_type": "Assignment",
                        "item_id": 4,
                        "title": "Samsung Galaxy A54",
                        "description": "Celular - S/N: SN-100",
                        "status": "Assigned",
                        "entity_type": "Celular",
                        "serial_number": "SN-100",
                        "sensitive_field": "mail-pass-01",
                        "related_info": "Assigned to: Ana Gómez"
                    }
                ],
                "total_count": 1,
                "page": 1,
                "page_size": 10,
                "total_pages": 1
            }
        }
