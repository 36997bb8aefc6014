from enum import Enum

from stockflow.shared.database.models import User

ALL_CAPABILITIES_GRANT = "all"


class Capability(str, Enum):
    """Permisos con nombre que un usuario puede tener"""
    TRANSFER_PRODUCTS = "transfer_products"


def has_capability(user: User, capability: Capability) -> bool:
    """Los administradores tienen implícitamente todos los permisos"""
    if user.is_admin:
        return True
    granted = set(user.permissions or [])
    return ALL_CAPABILITIES_GRANT in granted or capability.value in granted
