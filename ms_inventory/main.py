"""
MS-INVENTORY-PY - Microservicio de Ciclo de Vida de Activos
FastAPI Application
"""
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import settings
from .models import get_db
from .schemas import HealthResponse

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Crear aplicación FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    Microservicio de inventario de equipos serializados para el Sistema Digital Twins.

    ## Funcionalidades

    * **Activos (Assets)**: Alta por lote de números de serie, detalle e historial
    * **Asignaciones (Assignments)**: Asignar a empleados, sectores o sucursales; devolver y cancelar
    * **Reparaciones (Repairs)**: Envío a proveedor externo y retorno (reparado o baja)
    * **Búsqueda**: Búsqueda global por número de serie, datos sensibles y entidades

    ## Ciclo de vida

    * Available -> Assigned -> Available
    * Available / Assigned -> InRepair -> Available / Retired
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Configurar CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Importar y configurar routers después de crear la app para evitar imports circulares
from .routers import (
    assets_router,
    assignments_router,
    repairs_router,
    search_router
)
from .utils import register_exception_handlers

register_exception_handlers(app)

# Incluir routers
app.include_router(
    assets_router,
    prefix=settings.API_PREFIX,
    tags=["assets"]
)

app.include_router(
    assignments_router,
    prefix=settings.API_PREFIX,
    tags=["assignments"]
)

app.include_router(
    repairs_router,
    prefix=settings.API_PREFIX,
    tags=["repairs"]
)

app.include_router(
    search_router,
    prefix=settings.API_PREFIX,
    tags=["search"]
)


@app.get("/", include_in_schema=False)
async def root():
    """Redireccionar a la documentación"""
    return RedirectResponse(url="/docs")


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def root_health(db: Session = Depends(get_db)):
    """Health check raíz"""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as exc:
        logger.error(f"Health check: base de datos no disponible ({exc.__class__.__name__})")
        database = "disconnected"

    return HealthResponse(
        status="healthy" if database == "connected" else "unhealthy",
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        database=database
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Evento de inicio de la aplicación"""
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} iniciado")
    logger.info(f"Documentación disponible en: http://{settings.SERVICE_HOST}:{settings.SERVICE_PORT}/docs")
    logger.info(f"Endpoints de inventario en: {settings.API_PREFIX}")


@app.on_event("shutdown")
async def shutdown_event():
    """Evento de cierre de la aplicación"""
    logger.info(f"{settings.APP_NAME} detenido")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ms_inventory.main:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        reload=settings.DEBUG
    )
