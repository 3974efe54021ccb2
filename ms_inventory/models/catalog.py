"""
Modelos de catálogo: categorías, productos, empleados, sectores y sucursales
Son de solo lectura para el núcleo de ciclo de vida; se administran en otro servicio
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .database import Base


class Category(Base):
    """Categoría de producto (Notebook, Phone, Monitor, ...)"""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"


class Product(Base):
    """Modelo de Producto - marca y modelo de un equipo serializado"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    category = relationship("Category", lazy="joined")

    @property
    def display_name(self) -> str:
        return f"{self.brand or ''} {self.model or ''}".strip()

    def __repr__(self):
        return f"<Product(id={self.id}, brand={self.brand}, model={self.model})>"


class Employee(Base):
    """Empleado que puede recibir equipos asignados"""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.full_name})>"


class Sector(Base):
    """Sector (departamento) de la empresa"""

    __tablename__ = "sectors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Sector(id={self.id}, name={self.name})>"


class Branch(Base):
    """Sucursal (ubicación física)"""

    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Branch(id={self.id}, name={self.name})>"
