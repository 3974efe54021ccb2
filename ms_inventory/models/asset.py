"""
Modelo de Activo (Asset)
Un equipo serializado, rastreado individualmente por su número de serie
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class AssetState(str, enum.Enum):
    AVAILABLE = "Available"
    ASSIGNED = "Assigned"
    IN_REPAIR = "InRepair"
    RETIRED = "Retired"


class Asset(Base):
    """
    Modelo de Activo - raíz del ciclo de vida
    El estado siempre es consistente con sus asignaciones y reparaciones activas
    """

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True, index=True)
    serial_number = Column(String(100), unique=True, nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    # Estado del activo (Available, Assigned, InRepair, Retired)
    state = Column(String(20), default=AssetState.AVAILABLE.value, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint(
            "state IN ('Available', 'Assigned', 'InRepair', 'Retired')",
            name="check_asset_state"
        ),
    )

    notes = Column(Text, nullable=True)

    # Timestamps de auditoría
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", lazy="joined")

    @property
    def category_name(self) -> str:
        if self.product is None or self.product.category is None:
            return ""
        return self.product.category.name

    def __repr__(self):
        return f"<Asset(id={self.id}, serial={self.serial_number}, state={self.state})>"
