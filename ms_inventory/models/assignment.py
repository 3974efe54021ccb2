"""
Modelo de Asignación (Assignment)
Vincula un activo con exactamente un destino: empleado, sector o sucursal
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, CheckConstraint, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class Assignment(Base):
    """
    Modelo de Asignación - historial completo de asignaciones de un activo
    Como máximo una asignación activa por activo
    """

    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)

    # Destino: exactamente uno de los tres
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)

    # Timestamps de asignación/devolución
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())
    returned_at = Column(DateTime(timezone=True), nullable=True)

    # Auditoría - quién hizo los cambios (usuarios de MS-AUTH, sin FK)
    assigned_by = Column(Integer, nullable=True, index=True)
    returned_by = Column(Integer, nullable=True, index=True)

    notes = Column(Text, nullable=True)
    return_notes = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    # Datos sensibles según categoría (notebook / celular)
    disk_encryption_password = Column(String(255), nullable=True)
    mail_account = Column(String(255), nullable=True)
    mail_password = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    two_factor_code = Column(String(100), nullable=True)

    # Estado activo
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN employee_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN sector_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN branch_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="check_assignment_single_destination"
        ),
        Index(
            "uq_active_assignment_per_asset",
            "asset_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    asset = relationship("Asset")
    employee = relationship("Employee")
    sector = relationship("Sector")
    branch = relationship("Branch")

    @property
    def destination_type(self) -> str:
        if self.employee_id is not None:
            return "Employee"
        if self.sector_id is not None:
            return "Sector"
        return "Branch"

    @property
    def destination_name(self) -> str:
        if self.employee is not None:
            return self.employee.full_name
        if self.sector is not None:
            return self.sector.name
        if self.branch is not None:
            return self.branch.name
        return "Unknown"

    def __repr__(self):
        return f"<Assignment(id={self.id}, asset={self.asset_id}, active={self.is_active})>"
