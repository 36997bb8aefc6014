# stockflow/shared/schemas/common.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

class BaseResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)

class ErrorResponse(BaseModel):
    success: bool = False
    message: str

class PaginationInfo(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class BranchInfo(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True

class ProductInfo(BaseModel):
    id: int
    name: str
    sku: str
    category: Optional[str] = None
    brand: Optional[str] = None

    class Config:
        from_attributes = True

class UserInfo(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True
