# stockflow/modules/transfers/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from stockflow.shared.schemas.common import (
    BaseResponse, PaginationInfo, BranchInfo, ProductInfo, UserInfo
)

# rango de INTEGER en PostgreSQL
MAX_ID = 2**31 - 1

class TransferReason(str, Enum):
    RESTOCK = "restock"
    DEMAND = "demand"
    REBALANCE = "rebalance"
    EMERGENCY = "emergency"
    OTHER = "other"

class TransferStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class TransferCreate(BaseModel):
    product_id: int = Field(..., ge=1, le=MAX_ID, alias="productId", description="ID del producto")
    from_branch: int = Field(..., ge=1, le=MAX_ID, alias="fromBranch", description="ID de sucursal origen")
    to_branch: int = Field(..., ge=1, le=MAX_ID, alias="toBranch", description="ID de sucursal destino")
    # el signo se valida en el servicio, después de comprobar producto y sucursales
    quantity: int = Field(..., description="Cantidad a transferir")
    reason: TransferReason = Field(..., description="Motivo: restock, demand, rebalance, emergency, other")
    notes: Optional[str] = Field(None, max_length=500, description="Notas adicionales")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "productId": 12,
                "fromBranch": 1,
                "toBranch": 2,
                "quantity": 4,
                "reason": "restock",
                "notes": "Reposición semanal"
            }
        }

class TransferFilters(BaseModel):
    product_id: Optional[int] = None
    branch: Optional[int] = None
    status: Optional[TransferStatus] = None
    reason: Optional[TransferReason] = None

class TransferResponse(BaseModel):
    id: int
    reference_number: str
    product: ProductInfo
    from_branch: BranchInfo
    to_branch: BranchInfo
    quantity: int
    reason: str
    notes: Optional[str] = None
    status: TransferStatus
    created_by: UserInfo
    created_at: datetime
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[UserInfo] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[UserInfo] = None

    class Config:
        from_attributes = True

class TransferData(BaseModel):
    transfer: TransferResponse

class TransferListData(BaseModel):
    transfers: List[TransferResponse]
    pagination: PaginationInfo

class StatsBucket(BaseModel):
    count: int = 0
    quantity: int = 0

class StatusBucket(StatsBucket):
    status: TransferStatus

class ReasonBucket(StatsBucket):
    reason: str

class TransferStats(BaseModel):
    total_transfers: int
    total_quantity: int
    by_status: List[StatusBucket]
    by_reason: List[ReasonBucket]

class TransferStatsData(BaseModel):
    stats: TransferStats

class TransferEnvelope(BaseResponse):
    data: TransferData

class TransferListEnvelope(BaseResponse):
    data: TransferListData

class TransferStatsEnvelope(BaseResponse):
    data: TransferStatsData
