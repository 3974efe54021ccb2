"""
Conexión a la base de datos y sesión por request
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from ..config import settings


def _connect_args(url: str) -> dict:
    # SQLite espera el lock de escritura en lugar de fallar de inmediato
    if url.startswith("sqlite"):
        return {
            "check_same_thread": False,
            "timeout": settings.LOCK_TIMEOUT_MS / 1000,
        }
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency de FastAPI: una sesión por request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
