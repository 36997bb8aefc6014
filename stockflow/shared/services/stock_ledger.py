import logging

from sqlalchemy import and_, update
from sqlalchemy.orm import Session

from stockflow.core.exceptions import InsufficientStock
from stockflow.shared.database.models import ProductStock, StockMovement

logger = logging.getLogger(__name__)

MOVEMENT_TRANSFER_OUT = "transfer_out"
MOVEMENT_TRANSFER_IN = "transfer_in"
MOVEMENT_TRANSFER_RETURN = "transfer_return"


class StockLedger:
    """
    Único punto de modificación de existencias por (producto, sucursal).

    Todas las operaciones son actualizaciones condicionales de una sola
    sentencia y registran un StockMovement. Ninguna hace commit: la
    transacción pertenece al servicio que las invoca.
    """

    def __init__(self, db: Session):
        self.db = db

    def available(self, product_id: int, branch_id: int) -> int:
        """Existencias actuales del producto en la sucursal (0 si no hay registro)"""
        quantity = self.db.query(ProductStock.quantity).filter(
            and_(
                ProductStock.product_id == product_id,
                ProductStock.branch_id == branch_id
            )
        ).scalar()
        return quantity or 0

    def reserve(self, product_id: int, branch_id: int, quantity: int, reference: str, user_id: int) -> int:
        """
        Descontar existencias de la sucursal origen.

        Usa ``UPDATE ... WHERE quantity >= :q`` para que dos reservas
        concurrentes nunca dejen el stock negativo.

        Args:
            product_id: ID del producto
            branch_id: Sucursal de la que se descuenta
            quantity: Cantidad a descontar
            reference: Número de referencia de la transferencia
            user_id: Usuario que origina el movimiento

        Returns:
            int: Existencias resultantes en la sucursal

        Raises:
            InsufficientStock: Si la sucursal no tiene suficiente stock
        """
        result = self.db.execute(
            update(ProductStock)
            .where(
                and_(
                    ProductStock.product_id == product_id,
                    ProductStock.branch_id == branch_id,
                    ProductStock.quantity >= quantity
                )
            )
            .values(quantity=ProductStock.quantity - quantity)
            .execution_options(synchronize_session="fetch")
        )

        if result.rowcount == 0:
            available = self.available(product_id, branch_id)
            logger.warning(
                f"❌ Stock insuficiente - producto {product_id} sucursal {branch_id}: "
                f"disponible={available}, solicitado={quantity}"
            )
            raise InsufficientStock(
                f"Insufficient stock. Available: {available}, Requested: {quantity}"
            )

        return self._record(product_id, branch_id, -quantity, MOVEMENT_TRANSFER_OUT, reference, user_id)

    def commit(self, product_id: int, branch_id: int, quantity: int, reference: str, user_id: int) -> int:
        """Sumar existencias en la sucursal destino, creando el registro si no existe"""
        return self._credit(product_id, branch_id, quantity, MOVEMENT_TRANSFER_IN, reference, user_id)

    def release(self, product_id: int, branch_id: int, quantity: int, reference: str, user_id: int) -> int:
        """Devolver a la sucursal origen una cantidad reservada previamente"""
        return self._credit(product_id, branch_id, quantity, MOVEMENT_TRANSFER_RETURN, reference, user_id)

    def _credit(self, product_id: int, branch_id: int, quantity: int, movement_type: str, reference: str, user_id: int) -> int:
        result = self.db.execute(
            update(ProductStock)
            .where(
                and_(
                    ProductStock.product_id == product_id,
                    ProductStock.branch_id == branch_id
                )
            )
            .values(quantity=ProductStock.quantity + quantity)
            .execution_options(synchronize_session="fetch")
        )

        if result.rowcount == 0:
            self.db.add(ProductStock(product_id=product_id, branch_id=branch_id, quantity=quantity))
            self.db.flush()

        return self._record(product_id, branch_id, quantity, movement_type, reference, user_id)

    def _record(self, product_id: int, branch_id: int, change: int, movement_type: str, reference: str, user_id: int) -> int:
        quantity_after = self.available(product_id, branch_id)
        self.db.add(StockMovement(
            product_id=product_id,
            branch_id=branch_id,
            movement_type=movement_type,
            quantity_change=change,
            quantity_after=quantity_after,
            reference=reference,
            created_by_user_id=user_id
        ))
        self.db.flush()
        return quantity_after
