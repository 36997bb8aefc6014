from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from stockflow.config.database import get_db
from stockflow.core.exceptions import Unauthenticated, Forbidden
from stockflow.shared.database.models import User
from stockflow.core.auth.capabilities import Capability, has_capability
from stockflow.core.auth.service import AuthService

security = HTTPBearer(auto_error=False)

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Obtener usuario actual desde el token"""

    if credentials is None:
        raise Unauthenticated("Access token required")

    payload = AuthService.verify_token(credentials.credentials)
    if payload is None:
        raise Unauthenticated("Invalid or expired token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise Unauthenticated("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()

    if user is None or not user.is_active:
        raise Unauthenticated("Invalid or inactive user")

    return user

def require_capability(capability: Capability):
    """Factory para crear dependency que requiere un permiso específico"""
    def capability_checker(current_user: User = Depends(get_current_user)) -> User:
        if not has_capability(current_user, capability):
            raise Forbidden(f"Permission '{capability.value}' required")
        return current_user
    return capability_checker

def get_branch_scope(current_user: User = Depends(get_current_user)) -> Optional[int]:
    """
    Sucursal a la que se restringen las consultas del usuario.

    Los administradores ven todo (None); los usuarios de sucursal solo ven
    su propia sucursal y sin sucursal asignada no pueden ver nada.
    """
    if current_user.is_admin:
        return None
    if current_user.branch_id is None:
        raise Forbidden("No branch assigned to user")
    return current_user.branch_id
