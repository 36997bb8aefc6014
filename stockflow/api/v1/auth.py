from datetime import datetime
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from stockflow.config.database import get_db
from stockflow.core.auth.service import AuthService
from stockflow.core.auth.schemas import (
    UserLogin, TokenResponse, UserResponse, UserData, TokenEnvelope, UserEnvelope
)
from stockflow.core.auth.dependencies import get_current_user
from stockflow.core.exceptions import Unauthenticated
from stockflow.shared.database.models import User

logger = logging.getLogger(__name__)

router = APIRouter()

def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        permissions=list(user.permissions or []),
        branch_id=user.branch_id,
        branch_name=user.branch.name if user.branch else None,
        is_active=user.is_active
    )

@router.post("/login", response_model=TokenEnvelope)
async def login(
    user_login: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login con JSON

    **Body:**
    ```json
        {
            "email": "user@example.com",
            "password": "password123"
        }
    ```
    """
    user = db.query(User).filter(User.email == user_login.email.lower()).first()

    if not user or not AuthService.verify_password(user_login.password, user.password_hash):
        logger.warning(f"Login fallido para {user_login.email}")
        raise Unauthenticated("Invalid email or password")

    if not user.is_active:
        raise Unauthenticated("Invalid or inactive user")

    access_token = AuthService.create_access_token(data={
        "user_id": user.id,
        "email": user.email,
        "role": user.role
    })

    user.last_login = datetime.now()
    db.commit()

    logger.info(f"🔐 Login correcto - usuario {user.id}")

    return TokenEnvelope(
        success=True,
        message="Login successful",
        data=TokenResponse(
            access_token=access_token,
            token_type="bearer",
            user=_user_response(user)
        )
    )

@router.get("/me", response_model=UserEnvelope)
async def get_me(current_user: User = Depends(get_current_user)):
    """Información del usuario autenticado"""
    return UserEnvelope(success=True, data=UserData(user=_user_response(current_user)))
