# stockflow/modules/transfers/repository.py
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, desc, func
from typing import List, Dict, Any, Optional, Tuple
from datetime import datetime
import logging

from stockflow.shared.database.models import Transfer, Product, Branch

logger = logging.getLogger(__name__)

class TransfersRepository:
    def __init__(self, db: Session):
        self.db = db

    def _populated_query(self):
        return self.db.query(Transfer).options(
            joinedload(Transfer.product),
            joinedload(Transfer.from_branch),
            joinedload(Transfer.to_branch),
            joinedload(Transfer.created_by),
            joinedload(Transfer.completed_by),
            joinedload(Transfer.cancelled_by)
        )

    def get_product(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_branches(self, branch_ids: List[int]) -> Dict[int, Branch]:
        branches = self.db.query(Branch).filter(Branch.id.in_(branch_ids)).all()
        return {branch.id: branch for branch in branches}

    def create_transfer(self, transfer_data: Dict[str, Any], created_by: int) -> Transfer:
        """Insertar la transferencia sin hacer commit (para obtener su ID)"""
        transfer = Transfer(
            product_id=transfer_data['product_id'],
            from_branch_id=transfer_data['from_branch'],
            to_branch_id=transfer_data['to_branch'],
            quantity=transfer_data['quantity'],
            reason=transfer_data['reason'],
            notes=transfer_data.get('notes'),
            status='pending',
            created_by_user_id=created_by
        )

        self.db.add(transfer)
        self.db.flush()
        return transfer

    def get_transfer(self, transfer_id: int, branch_id: Optional[int] = None) -> Optional[Transfer]:
        query = self._populated_query().filter(Transfer.id == transfer_id)
        if branch_id is not None:
            query = query.filter(self._touches_branch(branch_id))
        return query.first()

    def get_transfer_for_update(self, transfer_id: int) -> Optional[Transfer]:
        """Transferencia bloqueada para cambio de estado"""
        return self.db.query(Transfer).filter(Transfer.id == transfer_id).with_for_update().first()

    def mark_cancelled(self, transfer: Transfer, user_id: int) -> Transfer:
        transfer.status = 'cancelled'
        transfer.cancelled_at = datetime.now()
        transfer.cancelled_by_user_id = user_id
        return transfer

    def mark_completed(self, transfer: Transfer, user_id: int) -> Transfer:
        transfer.status = 'completed'
        transfer.completed_at = datetime.now()
        transfer.completed_by_user_id = user_id
        return transfer

    def list_transfers(
        self,
        filters: Dict[str, Any],
        page: int,
        limit: int
    ) -> Tuple[List[Transfer], int]:
        """Página de transferencias, más recientes primero, y el total"""
        conditions = self._build_conditions(filters)

        total = self.db.query(func.count(Transfer.id)).filter(*conditions).scalar()

        # páginas fuera de rango: sin consulta, el offset puede no caber en un INTEGER
        offset = (page - 1) * limit
        if offset >= total:
            return [], total

        transfers = (
            self._populated_query()
            .filter(*conditions)
            .order_by(desc(Transfer.created_at), desc(Transfer.id))
            .offset(offset)
            .limit(limit)
            .all()
        )

        return transfers, total

    def get_stats(self, branch_id: Optional[int] = None) -> Dict[str, List[Tuple[str, int, int]]]:
        """Conteo y suma de cantidades agrupados por estado y por motivo"""
        conditions = self._build_conditions({"branch": branch_id})

        def grouped(column):
            return (
                self.db.query(
                    column,
                    func.count(Transfer.id),
                    func.coalesce(func.sum(Transfer.quantity), 0)
                )
                .filter(*conditions)
                .group_by(column)
                .all()
            )

        return {
            "by_status": [(row[0], int(row[1]), int(row[2])) for row in grouped(Transfer.status)],
            "by_reason": [(row[0], int(row[1]), int(row[2])) for row in grouped(Transfer.reason)]
        }

    def _touches_branch(self, branch_id: int):
        return or_(Transfer.from_branch_id == branch_id, Transfer.to_branch_id == branch_id)

    def _build_conditions(self, filters: Dict[str, Any]) -> list:
        conditions = []
        if filters.get("product_id") is not None:
            conditions.append(Transfer.product_id == filters["product_id"])
        if filters.get("branch") is not None:
            conditions.append(self._touches_branch(filters["branch"]))
        if filters.get("status") is not None:
            conditions.append(Transfer.status == filters["status"])
        if filters.get("reason") is not None:
            conditions.append(Transfer.reason == filters["reason"])
        return conditions
