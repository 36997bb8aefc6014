# stockflow/modules/transfers/router.py
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from stockflow.config.database import get_db
from stockflow.config.settings import settings
from stockflow.core.auth.capabilities import Capability
from stockflow.core.auth.dependencies import get_branch_scope, require_capability
from stockflow.core.exceptions import InvalidRequest
from .service import TransfersService
from .schemas import (
    MAX_ID, TransferCreate, TransferFilters, TransferStatus, TransferReason,
    TransferEnvelope, TransferListEnvelope, TransferStatsEnvelope
)

router = APIRouter()

def _choice(enum_cls, value: Optional[str], field: str):
    """Valor de filtro sin distinguir mayúsculas"""
    if value is None:
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidRequest(f"Invalid {field} '{value}'. Allowed: {allowed}") from None

@router.post("", response_model=TransferEnvelope, status_code=status.HTTP_201_CREATED)
async def create_transfer(
    transfer_data: TransferCreate,
    current_user = Depends(require_capability(Capability.TRANSFER_PRODUCTS)),
    db: Session = Depends(get_db)
):
    """
    Crear transferencia entre sucursales

    **Validaciones (en orden):**
    - El producto existe
    - Origen y destino son distintos
    - La cantidad es positiva
    - Hay stock suficiente en el origen
    - Ambas sucursales existen

    El stock del origen se reserva en el momento de la creación.
    """
    service = TransfersService(db)
    return await service.create_transfer(transfer_data, current_user.id)

@router.get("", response_model=TransferListEnvelope)
async def get_all_transfers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.transfers_page_size_max),
    product_id: Optional[int] = Query(None, ge=1, le=MAX_ID, alias="productId"),
    branch: Optional[int] = Query(None, ge=1, le=MAX_ID, description="Coincide con origen o destino"),
    status: Optional[str] = Query(None, description="pending, completed o cancelled"),
    reason: Optional[str] = Query(None, description="restock, demand, rebalance, emergency u other"),
    branch_scope: Optional[int] = Depends(get_branch_scope),
    db: Session = Depends(get_db)
):
    """Listado paginado de transferencias, más recientes primero"""
    service = TransfersService(db)
    filters = TransferFilters(
        product_id=product_id,
        branch=branch,
        status=_choice(TransferStatus, status, "status"),
        reason=_choice(TransferReason, reason, "reason")
    )
    return await service.get_all_transfers(filters, page, limit, branch_scope)

@router.get("/stats", response_model=TransferStatsEnvelope)
async def get_transfer_stats(
    branch: Optional[int] = Query(None, ge=1, le=MAX_ID),
    branch_scope: Optional[int] = Depends(get_branch_scope),
    db: Session = Depends(get_db)
):
    """Conteos y cantidades por estado y por motivo"""
    service = TransfersService(db)
    return await service.get_transfer_stats(branch, branch_scope)

@router.get("/{transfer_id}", response_model=TransferEnvelope)
async def get_transfer(
    transfer_id: int = Path(..., ge=1, le=MAX_ID),
    branch_scope: Optional[int] = Depends(get_branch_scope),
    db: Session = Depends(get_db)
):
    service = TransfersService(db)
    return await service.get_transfer_by_id(transfer_id, branch_scope)

@router.put("/{transfer_id}/cancel", response_model=TransferEnvelope)
async def cancel_transfer(
    transfer_id: int = Path(..., ge=1, le=MAX_ID),
    current_user = Depends(require_capability(Capability.TRANSFER_PRODUCTS)),
    db: Session = Depends(get_db)
):
    """
    Cancelar transferencia pendiente

    Devuelve la cantidad reservada a la sucursal origen. Las transferencias
    completadas o ya canceladas no se pueden cancelar.
    """
    service = TransfersService(db)
    return await service.cancel_transfer(transfer_id, current_user.id)

@router.put("/{transfer_id}/complete", response_model=TransferEnvelope)
async def complete_transfer(
    transfer_id: int = Path(..., ge=1, le=MAX_ID),
    current_user = Depends(require_capability(Capability.TRANSFER_PRODUCTS)),
    db: Session = Depends(get_db)
):
    """Confirmar recepción: suma la cantidad al stock de la sucursal destino"""
    service = TransfersService(db)
    return await service.complete_transfer(transfer_id, current_user.id)
