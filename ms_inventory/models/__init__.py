"""
Modelos de la base de datos
"""
from .database import Base, get_db, engine, SessionLocal
from .catalog import Category, Product, Employee, Sector, Branch
from .asset import Asset, AssetState
from .assignment import Assignment
from .repair import Repair, RepairState
from .audit_log import AuditLogEntry

__all__ = [
    "Base",
    "get_db",
    "engine",
    "SessionLocal",
    "Category",
    "Product",
    "Employee",
    "Sector",
    "Branch",
    "Asset",
    "AssetState",
    "Assignment",
    "Repair",
    "RepairState",
    "AuditLogEntry",
]
