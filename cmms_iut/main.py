# cmms_iut/main.py
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from cmms_iut.config.settings import settings
from cmms_iut.config.database import init_db
from cmms_iut.core.errors import setup_exception_handlers
from cmms_iut.core.middleware import setup_middleware
from cmms_iut.api.v1.router import api_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 CMMS IUT API Starting...")
    logger.info(f"📍 Version: {settings.version}")
    logger.info(f"🌍 Environment: {'Development' if settings.debug else 'Production'}")
    logger.info(f"🗄️  Database: {settings.database_url.split('@')[1] if '@' in settings.database_url else settings.database_url}")

    if settings.create_tables:
        init_db()

    yield

    # Shutdown
    logger.info("🛑 CMMS IUT API Shutting down...")

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Transferencias de materiales compartidos entre departamentos de mantenimiento",
    docs_url="/docs",
    redoc_url="/redoc" if settings.debug else None,
    lifespan=lifespan
)

# Setup middleware
setup_middleware(app)
setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api/v1")

# Root endpoint
@app.get("/")
def root():
    return {
        "message": "🚀 CMMS Inter-Unit Transfer API",
        "version": settings.version,
        "status": "running",
        "environment": "production" if not settings.debug else "development",
        "docs": "/docs",
        "api": "/api/v1"
    }

@app.get("/health")
def health_check():
    return {
        "status": "healthy",
        "version": settings.version,
        "app": settings.app_name,
        "environment": "production" if not settings.debug else "development"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "cmms_iut.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
