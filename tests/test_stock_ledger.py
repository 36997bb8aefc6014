import pytest

from stockflow.core.exceptions import InsufficientStock
from stockflow.shared.database.models import Product, ProductStock, StockMovement
from stockflow.shared.services.stock_ledger import StockLedger


def test_reserve_is_conditional(db_session, seed):
    ledger = StockLedger(db_session)

    assert ledger.reserve(seed["product"], seed["branch_a"], 7, "TRF-00000001", seed["admin"]) == 3

    with pytest.raises(InsufficientStock, match="Available: 3, Requested: 4"):
        ledger.reserve(seed["product"], seed["branch_a"], 4, "TRF-00000002", seed["admin"])

    assert ledger.available(seed["product"], seed["branch_a"]) == 3


def test_reserve_without_stock_row(db_session, seed):
    ledger = StockLedger(db_session)

    with pytest.raises(InsufficientStock):
        ledger.reserve(seed["product"], seed["branch_b"], 1, "TRF-00000001", seed["admin"])

    assert ledger.available(seed["product"], seed["branch_b"]) == 0


def test_commit_creates_destination_row(db_session, seed):
    ledger = StockLedger(db_session)

    assert ledger.commit(seed["product"], seed["branch_b"], 2, "TRF-00000001", seed["admin"]) == 2
    assert ledger.commit(seed["product"], seed["branch_b"], 3, "TRF-00000002", seed["admin"]) == 5
    db_session.commit()

    rows = db_session.query(ProductStock).filter(ProductStock.branch_id == seed["branch_b"]).all()
    assert len(rows) == 1
    assert rows[0].quantity == 5


def test_release_returns_quantity(db_session, seed):
    ledger = StockLedger(db_session)
    ledger.reserve(seed["product"], seed["branch_a"], 4, "TRF-00000001", seed["admin"])

    assert ledger.release(seed["product"], seed["branch_a"], 4, "TRF-00000001", seed["admin"]) == 10

    changes = [m.quantity_change for m in db_session.query(StockMovement).order_by(StockMovement.id)]
    assert changes == [-4, 4]


def test_ledger_does_not_commit(db_session, seed, stock_of):
    StockLedger(db_session).reserve(seed["product"], seed["branch_a"], 4, "TRF-00000001", seed["admin"])
    db_session.rollback()

    assert stock_of(seed["product"], seed["branch_a"]) == 10


def test_product_stock_reads_home_branch(db_session, seed):
    StockLedger(db_session).commit(seed["product"], seed["branch_b"], 5, "TRF-00000001", seed["admin"])
    db_session.commit()

    product = db_session.get(Product, seed["product"])
    assert product.stock == 10
