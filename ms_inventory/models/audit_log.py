"""
Modelo de Log de Actividad (AuditLogEntry)
Única fuente de verdad histórica: solo se insertan filas, nunca se modifican
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func
from .database import Base


class AuditLogEntry(Base):
    """
    Una entrada por operación que modifica datos
    record_id referencia la fila afectada sin FK (no hay cascadas)
    """

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String(50), nullable=False)
    action = Column(String(50), nullable=False)
    record_id = Column(Integer, nullable=False)

    # Payload JSON específico de cada acción; se interpreta al leer
    payload = Column(Text, nullable=True)

    # Usuario que ejecutó la acción (MS-AUTH, sin FK)
    user_id = Column(Integer, nullable=True, index=True)
    user_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_audit_log_table_record", "table_name", "record_id"),
    )

    def __repr__(self):
        return f"<AuditLogEntry(id={self.id}, table={self.table_name}, action={self.action}, record={self.record_id})>"
