"""
Modelo de Reparación (Repair)
Envío de un activo a un proveedor externo y su retorno
"""
import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, CheckConstraint, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class RepairState(str, enum.Enum):
    IN_REPAIR = "InRepair"
    REPAIRED = "Repaired"
    UNREPAIRED = "Unrepaired"


class Repair(Base):
    """Modelo de Reparación - como máximo una reparación abierta por activo"""

    __tablename__ = "repairs"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)

    provider = Column(String(100), nullable=False, index=True)
    problem_description = Column(Text, nullable=False)
    resolution_description = Column(Text, nullable=True)

    # Estado de la reparación (InRepair, Repaired, Unrepaired)
    state = Column(String(20), default=RepairState.IN_REPAIR.value, nullable=False, index=True)

    shipped_at = Column(DateTime(timezone=True), server_default=func.now())
    returned_at = Column(DateTime(timezone=True), nullable=True)

    sent_by = Column(Integer, nullable=True)
    received_by = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "state IN ('InRepair', 'Repaired', 'Unrepaired')",
            name="check_repair_state"
        ),
        Index(
            "uq_open_repair_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("state = 'InRepair'"),
            sqlite_where=text("state = 'InRepair'"),
        ),
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    asset = relationship("Asset")

    @property
    def is_open(self) -> bool:
        return self.state == RepairState.IN_REPAIR.value

    def __repr__(self):
        return f"<Repair(id={self.id}, asset={self.asset_id}, state={self.state})>"
