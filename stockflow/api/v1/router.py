# stockflow/api/v1/router.py
from fastapi import APIRouter
from stockflow.api.v1.auth import router as auth_router
from stockflow.modules.transfers.router import router as transfers_router
from stockflow.config.settings import settings

# Crear router principal de la API v1
api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])

api_router.include_router(
    transfers_router,
    prefix="/transfers",
    tags=["Transfers"]
)

@api_router.get("/")
async def api_root():
    """Root endpoint de la API"""
    return {
        "message": "StockFlow API v1",
        "version": settings.version,
        "status": "active",
        "available_endpoints": {
            "authentication": "/api/v1/auth",
            "transfers": "/api/v1/transfers"
        }
    }

@api_router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.version,
        "modules": {
            "auth": {"status": "active", "features": ["JWT", "Capabilities"]},
            "transfers": {
                "status": "active",
                "features": [
                    "Crear transferencia con reserva de stock",
                    "Listado paginado con filtros",
                    "Cancelación con devolución de stock",
                    "Confirmación de recepción",
                    "Estadísticas por estado y motivo"
                ]
            }
        }
    }
