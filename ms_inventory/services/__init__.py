"""
Servicios del núcleo de inventario
"""
from .errors import (
    InventoryError, NotFoundError, InvalidStateError,
    ValidationError, ConflictError, BusyError, UnexpectedError,
)
from .audit_log import Actor, AuditLog
from .policies import Destination, DestinationKind, SensitivePayload, sensitive_field_for
from .repository import AssetRepository
from .lifecycle import LifecycleService
from .search import SearchService, SearchType, ResultType, SearchResult, SearchPage
from .history import HistoryService, TimelineEvent
from .inventory import InventoryService, BatchResult, AssetDetail

__all__ = [
    "InventoryError",
    "NotFoundError",
    "InvalidStateError",
    "ValidationError",
    "ConflictError",
    "BusyError",
    "UnexpectedError",
    "Actor",
    "AuditLog",
    "Destination",
    "DestinationKind",
    "SensitivePayload",
    "sensitive_field_for",
    "AssetRepository",
    "LifecycleService",
    "SearchService",
    "SearchType",
    "ResultType",
    "SearchResult",
    "SearchPage",
    "HistoryService",
    "TimelineEvent",
    "InventoryService",
    "BatchResult",
    "AssetDetail",
]
