# cmms_iut/config/database.py
from contextlib import contextmanager
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from .settings import settings

logger = logging.getLogger(__name__)

def build_engine(url: str, echo: bool = False):
    """Engine con reconexión; SQLite (desarrollo/pruebas) comparte conexión entre hilos"""
    engine_kwargs = {
        "pool_pre_ping": True,
        "echo": echo
    }

    if url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    else:
        engine_kwargs["pool_recycle"] = 300

    return create_engine(url, **engine_kwargs)

engine = build_engine(settings.database_url_with_ssl, echo=settings.debug)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def init_db(bind=None):
    """Crear las tablas que falten (no migra columnas existentes)"""
    from cmms_iut.shared.database.models import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("✅ Tablas verificadas/creadas")

@contextmanager
def session_scope(factory=None):
    """Sesión para scripts: commit al salir, rollback si algo falla"""
    db: Session = (factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

# Database dependency
def get_db():
    """Sesión por request para FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
