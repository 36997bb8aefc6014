import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockflow.config.database import get_db
from stockflow.core.auth.service import AuthService
from stockflow.main import app
from stockflow.shared.database.models import Base, Branch, User, Product, ProductStock
from stockflow.shared.services.stock_ledger import StockLedger


@pytest.fixture(scope="function")
def session_factory():
    """
    Base SQLite en memoria aislada por test.

    StaticPool comparte una única conexión, así que todas las sesiones
    (las del test y las de cada request) ven los mismos datos.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def seed(session_factory):
    """
    Datos base:
    - sucursales A, B y C
    - producto P con stock 10 en A
    - admin, usuario de A con transfer_products, usuario de B sin permisos,
      usuario sin sucursal
    """
    db = session_factory()
    try:
        branch_a = Branch(name="Branch A", address="1 Main St")
        branch_b = Branch(name="Branch B", address="2 Side St")
        branch_c = Branch(name="Branch C", address="3 Far Rd")
        db.add_all([branch_a, branch_b, branch_c])
        db.flush()

        product = Product(
            name="Cordless Drill",
            sku="DRL-001",
            category="tools",
            brand="Acme",
            price=Decimal("120.00"),
            cost_price=Decimal("80.00"),
            branch_id=branch_a.id,
        )
        db.add(product)
        db.flush()
        db.add(ProductStock(product_id=product.id, branch_id=branch_a.id, quantity=10))

        admin = User(email="admin@stockflow.local", password_hash="x", name="Admin", role="admin", permissions=[])
        team_a = User(
            email="team.a@stockflow.local", password_hash="x", name="Team A", role="team",
            permissions=["transfer_products"], branch_id=branch_a.id,
        )
        viewer_b = User(
            email="viewer.b@stockflow.local", password_hash="x", name="Viewer B", role="team",
            permissions=[], branch_id=branch_b.id,
        )
        no_branch = User(
            email="nobranch@stockflow.local", password_hash="x", name="No Branch", role="team",
            permissions=["transfer_products"],
        )
        db.add_all([admin, team_a, viewer_b, no_branch])
        db.commit()

        return {
            "branch_a": branch_a.id,
            "branch_b": branch_b.id,
            "branch_c": branch_c.id,
            "product": product.id,
            "admin": admin.id,
            "team_a": team_a.id,
            "viewer_b": viewer_b.id,
            "no_branch": no_branch.id,
        }
    finally:
        db.close()


def auth_headers(user_id: int, role: str = "team") -> dict:
    token = AuthService.create_access_token(data={"user_id": user_id, "email": f"user{user_id}@stockflow.local", "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers(seed):
    return {
        "admin": auth_headers(seed["admin"], "admin"),
        "team_a": auth_headers(seed["team_a"]),
        "viewer_b": auth_headers(seed["viewer_b"]),
        "no_branch": auth_headers(seed["no_branch"]),
    }


@pytest.fixture
def stock_of(session_factory):
    def _stock_of(product_id: int, branch_id: int) -> int:
        db = session_factory()
        try:
            return StockLedger(db).available(product_id, branch_id)
        finally:
            db.close()
    return _stock_of
