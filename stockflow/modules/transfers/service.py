# stockflow/modules/transfers/service.py
from typing import Optional
from sqlalchemy.orm import Session
import logging
import math

from .repository import TransfersRepository
from .schemas import (
    TransferCreate, TransferFilters, TransferResponse, TransferEnvelope, TransferData,
    TransferListEnvelope, TransferListData, TransferStatsEnvelope, TransferStatsData,
    TransferStats, TransferStatus, StatusBucket, ReasonBucket
)
from stockflow.core.exceptions import (
    StockFlowError, NotFound, InvalidRequest, InsufficientStock, InvalidState
)
from stockflow.shared.database.models import Transfer
from stockflow.shared.schemas.common import PaginationInfo
from stockflow.shared.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)

class TransfersService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = TransfersRepository(db)
        self.ledger = StockLedger(db)

    async def create_transfer(self, transfer_data: TransferCreate, created_by: int) -> TransferEnvelope:
        """
        Crear transferencia reservando el stock de la sucursal origen.

        El descuento de stock y la inserción de la transferencia se
        confirman en una sola transacción; cualquier fallo revierte ambas.
        """
        try:
            logger.info(
                f"📦 Creando transferencia - Usuario: {created_by} - Producto: {transfer_data.product_id} "
                f"- {transfer_data.from_branch} → {transfer_data.to_branch} x{transfer_data.quantity}"
            )

            # 1. Producto
            product = self.repository.get_product(transfer_data.product_id)
            if not product:
                raise NotFound("Product not found")

            # 2. Sucursales distintas
            if transfer_data.from_branch == transfer_data.to_branch:
                raise InvalidRequest("Source and destination branches cannot be the same")

            # 3. Cantidad
            if transfer_data.quantity <= 0:
                raise InvalidRequest("Quantity must be a positive integer")

            # 4. Disponibilidad en origen
            available = self.ledger.available(product.id, transfer_data.from_branch)
            if available < transfer_data.quantity:
                raise InsufficientStock(
                    f"Insufficient stock. Available: {available}, Requested: {transfer_data.quantity}"
                )

            # 5. Existencia de ambas sucursales
            branches = self.repository.get_branches([transfer_data.from_branch, transfer_data.to_branch])
            if transfer_data.from_branch not in branches:
                raise NotFound("Source branch not found")
            if transfer_data.to_branch not in branches:
                raise NotFound("Destination branch not found")

            transfer = self.repository.create_transfer(transfer_data.model_dump(mode="json"), created_by)
            remaining = self.ledger.reserve(
                product_id=product.id,
                branch_id=transfer_data.from_branch,
                quantity=transfer_data.quantity,
                reference=transfer.reference_number,
                user_id=created_by
            )
            self.db.commit()

            logger.info(f"✅ Transferencia {transfer.reference_number} creada - stock restante en origen: {remaining}")

            return TransferEnvelope(
                success=True,
                message="Transfer created successfully",
                data=TransferData(transfer=self._load(transfer.id))
            )

        except StockFlowError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Transferencia rechazada: {e.message}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception("❌ Error creando transferencia")
            raise StockFlowError("Error creating transfer") from e

    async def get_all_transfers(
        self,
        filters: TransferFilters,
        page: int = 1,
        limit: int = 10,
        branch_scope: Optional[int] = None
    ) -> TransferListEnvelope:
        """Listado paginado; los usuarios de sucursal solo ven su sucursal"""
        if page < 1 or limit < 1:
            raise InvalidRequest("page and limit must be positive integers")

        filter_values = filters.model_dump(mode="json")
        if branch_scope is not None:
            filter_values["branch"] = branch_scope

        transfers, total = self.repository.list_transfers(filter_values, page, limit)

        return TransferListEnvelope(
            success=True,
            data=TransferListData(
                transfers=[TransferResponse.model_validate(t) for t in transfers],
                pagination=PaginationInfo(
                    page=page,
                    limit=limit,
                    total=total,
                    pages=math.ceil(total / limit)
                )
            )
        )

    async def get_transfer_by_id(self, transfer_id: int, branch_scope: Optional[int] = None) -> TransferEnvelope:
        transfer = self.repository.get_transfer(transfer_id, branch_scope)
        if not transfer:
            raise NotFound("Transfer not found")

        return TransferEnvelope(
            success=True,
            data=TransferData(transfer=TransferResponse.model_validate(transfer))
        )

    async def cancel_transfer(self, transfer_id: int, acting_user_id: int) -> TransferEnvelope:
        """
        Cancelar una transferencia pendiente.

        La cantidad reservada vuelve a la sucursal origen en la misma
        transacción que el cambio de estado.
        """
        try:
            transfer = self._pending_transfer(transfer_id, "cancelled")

            self.ledger.release(
                product_id=transfer.product_id,
                branch_id=transfer.from_branch_id,
                quantity=transfer.quantity,
                reference=transfer.reference_number,
                user_id=acting_user_id
            )
            self.repository.mark_cancelled(transfer, acting_user_id)
            self.db.commit()

            logger.info(f"🛑 Transferencia {transfer.reference_number} cancelada por usuario {acting_user_id}")

            return TransferEnvelope(
                success=True,
                message="Transfer cancelled successfully",
                data=TransferData(transfer=self._load(transfer_id))
            )

        except StockFlowError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error cancelando transferencia {transfer_id}")
            raise StockFlowError("Error cancelling transfer") from e

    async def complete_transfer(self, transfer_id: int, acting_user_id: int) -> TransferEnvelope:
        """Confirmar la llegada: suma el stock en la sucursal destino"""
        try:
            transfer = self._pending_transfer(transfer_id, "completed")

            self.ledger.commit(
                product_id=transfer.product_id,
                branch_id=transfer.to_branch_id,
                quantity=transfer.quantity,
                reference=transfer.reference_number,
                user_id=acting_user_id
            )
            self.repository.mark_completed(transfer, acting_user_id)
            self.db.commit()

            logger.info(f"✅ Transferencia {transfer.reference_number} completada por usuario {acting_user_id}")

            return TransferEnvelope(
                success=True,
                message="Transfer completed successfully",
                data=TransferData(transfer=self._load(transfer_id))
            )

        except StockFlowError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.exception(f"❌ Error completando transferencia {transfer_id}")
            raise StockFlowError("Error completing transfer") from e

    async def get_transfer_stats(self, branch: Optional[int] = None, branch_scope: Optional[int] = None) -> TransferStatsEnvelope:
        branch_id = branch_scope if branch_scope is not None else branch
        grouped = self.repository.get_stats(branch_id)

        status_counts = {status: (count, quantity) for status, count, quantity in grouped["by_status"]}
        by_status = [
            StatusBucket(
                status=status,
                count=status_counts.get(status.value, (0, 0))[0],
                quantity=status_counts.get(status.value, (0, 0))[1]
            )
            for status in TransferStatus
        ]
        by_reason = [
            ReasonBucket(reason=reason, count=count, quantity=quantity)
            for reason, count, quantity in sorted(grouped["by_reason"])
        ]

        return TransferStatsEnvelope(
            success=True,
            data=TransferStatsData(
                stats=TransferStats(
                    total_transfers=sum(bucket.count for bucket in by_status),
                    total_quantity=sum(bucket.quantity for bucket in by_status),
                    by_status=by_status,
                    by_reason=by_reason
                )
            )
        )

    def _pending_transfer(self, transfer_id: int, target_status: str) -> Transfer:
        transfer = self.repository.get_transfer_for_update(transfer_id)
        if not transfer:
            raise NotFound("Transfer not found")
        # estados terminales: completed y cancelled
        if transfer.status != TransferStatus.PENDING.value:
            raise InvalidState(f"Only pending transfers can be {target_status}")
        return transfer

    def _load(self, transfer_id: int) -> TransferResponse:
        return TransferResponse.model_validate(self.repository.get_transfer(transfer_id))
