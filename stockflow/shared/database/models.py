# stockflow/shared/database/models.py
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, JSON,
    Numeric, ForeignKey, UniqueConstraint, CheckConstraint, Index,
    func
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()

# =====================================================
# MIXIN PARA TIMESTAMPS
# =====================================================
class TimestampMixin:
    """Mixin que agrega campos created_at y updated_at"""
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())


# =====================================================
# SUCURSALES
# =====================================================

class Branch(Base, TimestampMixin):
    """Sucursal (ubicación física de inventario)"""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    address = Column(Text, nullable=False)
    phone = Column(String(50))
    email = Column(String(255))
    manager = Column(String(255))
    is_active = Column(Boolean, default=True, index=True)

    # Relationships
    users = relationship("User", back_populates="branch")
    products = relationship("Product", back_populates="branch")


# =====================================================
# USUARIOS
# =====================================================

class User(Base):
    """Modelo de Usuario"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default='team', nullable=False, index=True)
    permissions = Column(JSON, nullable=False, default=list)
    branch_id = Column(Integer, ForeignKey("branches.id"), index=True)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime)
    created_at = Column(DateTime, server_default=func.current_timestamp())

    # Relationships
    branch = relationship("Branch", back_populates="users")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# =====================================================
# PRODUCTOS E INVENTARIO
# =====================================================

class Product(Base, TimestampMixin):
    """Modelo de Producto"""
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    sku = Column(String(100), nullable=False, unique=True)
    category = Column(String(100), nullable=False, index=True)
    brand = Column(String(100))
    price = Column(Numeric(12, 2), nullable=False)
    cost_price = Column(Numeric(12, 2), nullable=False)
    unit = Column(String(50), nullable=False, default='piece')
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, index=True)

    # Relationships
    branch = relationship("Branch", back_populates="products")
    stocks = relationship("ProductStock", back_populates="product")

    @property
    def stock(self) -> int:
        """Existencias en la sucursal propietaria del producto"""
        for row in self.stocks:
            if row.branch_id == self.branch_id:
                return row.quantity
        return 0


class ProductStock(Base):
    """Existencias de un producto en una sucursal"""
    __tablename__ = "product_stocks"
    __table_args__ = (
        UniqueConstraint("product_id", "branch_id", name="uq_product_stocks_product_branch"),
        CheckConstraint("quantity >= 0", name="ck_product_stocks_quantity_nonneg"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), onupdate=func.current_timestamp())

    # Relationships
    product = relationship("Product", back_populates="stocks")
    branch = relationship("Branch")


class StockMovement(Base):
    """Registro de cada ajuste del libro de existencias"""
    __tablename__ = "stock_movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    movement_type = Column(String(30), nullable=False, index=True)
    quantity_change = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    reference = Column(String(50))
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp(), index=True)


# =====================================================
# TRANSFERENCIAS
# =====================================================

class Transfer(Base, TimestampMixin):
    """Transferencia de un producto entre dos sucursales"""
    __tablename__ = "transfers"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_transfers_quantity_positive"),
        CheckConstraint("from_branch_id <> to_branch_id", name="ck_transfers_distinct_branches"),
        Index("ix_transfers_created_at_desc", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    from_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    to_branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    reason = Column(String(20), nullable=False, index=True)
    notes = Column(String(500))
    status = Column(String(20), nullable=False, default='pending', index=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    completed_at = Column(DateTime)
    completed_by_user_id = Column(Integer, ForeignKey("users.id"))
    cancelled_at = Column(DateTime)
    cancelled_by_user_id = Column(Integer, ForeignKey("users.id"))

    # Relationships
    product = relationship("Product")
    from_branch = relationship("Branch", foreign_keys=[from_branch_id])
    to_branch = relationship("Branch", foreign_keys=[to_branch_id])
    created_by = relationship("User", foreign_keys=[created_by_user_id])
    completed_by = relationship("User", foreign_keys=[completed_by_user_id])
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_user_id])

    @property
    def reference_number(self) -> str:
        return f"TRF-{self.id:08d}"
