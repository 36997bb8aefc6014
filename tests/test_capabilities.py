from stockflow.core.auth.capabilities import Capability, has_capability
from stockflow.shared.database.models import User


def _user(role="team", permissions=None):
    return User(email="u@stockflow.local", password_hash="x", name="U", role=role, permissions=permissions or [])


def test_admin_holds_every_capability():
    assert has_capability(_user(role="admin"), Capability.TRANSFER_PRODUCTS)


def test_team_user_needs_explicit_grant():
    assert not has_capability(_user(), Capability.TRANSFER_PRODUCTS)
    assert not has_capability(_user(permissions=["transfers.view"]), Capability.TRANSFER_PRODUCTS)
    assert has_capability(_user(permissions=["transfer_products"]), Capability.TRANSFER_PRODUCTS)


def test_all_grant_matches():
    assert has_capability(_user(permissions=["all"]), Capability.TRANSFER_PRODUCTS)
