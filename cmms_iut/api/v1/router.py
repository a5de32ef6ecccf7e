# cmms_iut/api/v1/router.py
from fastapi import APIRouter
from cmms_iut.config.settings import settings
from cmms_iut.modules.shared_materials.router import router as shared_materials_router
from cmms_iut.modules.transfers.router import router as transfers_router

# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(
    shared_materials_router,
    prefix="/shared-materials",
    tags=["Shared Materials"]
)

api_router.include_router(
    transfers_router,
    prefix="/transfers",
    tags=["Inter-Unit Transfers"]
)

# ==================== ENDPOINTS RAÍZ ====================

@api_router.get("/")
def api_root():
    """Root endpoint de la API"""
    return {
        "message": "CMMS Inter-Unit Transfer API v1",
        "version": settings.version,
        "status": "active",
        "docs": "/docs",
        "available_endpoints": {
            "shared_materials": "/api/v1/shared-materials",
            "transfers": "/api/v1/transfers"
        }
    }

@api_router.get("/health")
def health_check():
    """Health check de la API v1"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "modules": {
            "shared_materials": {
                "status": "active",
                "features": ["Grupos por OEM#", "Materiales por departamento", "Estadísticas"]
            },
            "transfers": {
                "status": "active",
                "features": ["Solicitar", "Aprobar / Rechazar", "Completar", "Cancelar"]
            }
        }
    }
