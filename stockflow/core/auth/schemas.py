from pydantic import BaseModel, Field
from typing import List, Optional

from stockflow.shared.schemas.common import BaseResponse

class UserLogin(BaseModel):
    """Schema para login de usuario"""
    email: str = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=6, description="Contraseña del usuario")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@stockflow.local",
                "password": "admin123"
            }
        }

class UserResponse(BaseModel):
    """Schema para respuesta de usuario"""
    id: int
    email: str
    name: str
    role: str
    permissions: List[str] = []
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    """Schema para respuesta de token"""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse

class UserData(BaseModel):
    user: UserResponse

class TokenEnvelope(BaseResponse):
    data: TokenResponse

class UserEnvelope(BaseResponse):
    data: UserData
