# stockflow/modules/transfers/__init__.py
"""
Módulo de Transferencias - Movimiento de stock entre sucursales

Flujo de estados:
- pending: creada, stock reservado en la sucursal origen
- completed: stock sumado en la sucursal destino
- cancelled: stock devuelto a la sucursal origen

Arquitectura:
- router.py: Endpoints de transferencias
- service.py: Reglas de negocio y transacciones
- repository.py: Acceso a datos de transferencias
- schemas.py: Modelos de request/response
"""

from .router import router
from .service import TransfersService
from .repository import TransfersRepository

__all__ = [
    "router",
    "TransfersService",
    "TransfersRepository"
]
