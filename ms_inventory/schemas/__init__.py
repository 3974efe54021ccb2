"""
Schemas Pydantic para validación
"""
from .common import (
    HealthResponse,
    ErrorResponse,
    PageMeta
)
from .assignment import (
    AssignmentCreate,
    AssignmentReturnRequest,
    AssignmentCancelRequest,
    AssignmentResponse,
    AssignmentListResponse
)
from .repair import (
    RepairCreate,
    RepairReturnRequest,
    RepairResponse,
    RepairListResponse
)
from .asset import (
    AssetBatchCreate,
    AssetResponse,
    AssetBatchResponse,
    AssetDetailResponse
)
from .search import (
    SearchResultResponse,
    SearchResponse
)
from .history import (
    TimelineEventResponse,
    AssetHistoryResponse
)

__all__ = [
    # Common
    "HealthResponse",
    "ErrorResponse",
    "PageMeta",
    # Assignment
    "AssignmentCreate",
    "AssignmentReturnRequest",
    "AssignmentCancelRequest",
    "AssignmentResponse",
    "AssignmentListResponse",
    # Repair
    "RepairCreate",
    "RepairReturnRequest",
    "RepairResponse",
    "RepairListResponse",
    # Asset
    "AssetBatchCreate",
    "AssetResponse",
    "AssetBatchResponse",
    "AssetDetailResponse",
    # Search
    "SearchResultResponse",
    "SearchResponse",
    # History
    "TimelineEventResponse",
    "AssetHistoryResponse"
]
