"""
Router de Búsqueda global
"""
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..models import get_db
from ..schemas import SearchResponse, SearchResultResponse
from ..services import SearchService
from ..services.search import parse_search_type
from ..utils import get_current_user

router = APIRouter()


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str = Query("", description="Término de búsqueda"),
    type: Optional[str] = Query(None, description="General, SerialNumber o Sensitive"),
    page: int = Query(1),
    page_size: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """Búsqueda federada por número de serie, datos sensibles y entidades"""
    search_type = parse_search_type(type)
    result = SearchService(db).search(q, search_type, page=page, page_size=page_size)
    return SearchResponse(
        search_type=search_type.value,
        results=[
            SearchResultResponse(**{**asdict(item), "result_type": item.result_type.value})
            for item in result.results
        ],
        total_count=result.total_count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages
    )
