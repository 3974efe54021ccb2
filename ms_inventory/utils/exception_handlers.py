"""
Traducción de errores del núcleo a respuestas HTTP
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..config import settings
from ..services import InventoryError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "NotFound": status.HTTP_404_NOT_FOUND,
    "InvalidState": status.HTTP_409_CONFLICT,
    "ValidationError": status.HTTP_400_BAD_REQUEST,
    "Conflict": status.HTTP_409_CONFLICT,
    "Busy": status.HTTP_503_SERVICE_UNAVAILABLE,
    "Unexpected": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = None
    if exc.kind == "Busy":
        # Segundos sugeridos antes de reintentar
        headers = {"Retry-After": str(max(1, settings.LOCK_TIMEOUT_MS // 1000))}
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
