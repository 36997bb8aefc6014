import asyncio

import pytest

from stockflow.core.exceptions import NotFound, InvalidRequest, InsufficientStock, InvalidState
from stockflow.modules.transfers.schemas import TransferCreate, TransferFilters, TransferReason
from stockflow.modules.transfers.service import TransfersService
from stockflow.shared.database.models import StockMovement, Transfer


def _payload(seed, **overrides):
    data = {
        "product_id": seed["product"],
        "from_branch": seed["branch_a"],
        "to_branch": seed["branch_b"],
        "quantity": 4,
        "reason": TransferReason.RESTOCK,
    }
    data.update(overrides)
    return TransferCreate(**data)


def test_product_check_runs_before_branch_check(db_session, seed):
    service = TransfersService(db_session)

    with pytest.raises(NotFound):
        asyncio.run(service.create_transfer(
            _payload(seed, product_id=999, to_branch=seed["branch_a"]), seed["admin"]
        ))


def test_stock_check_runs_before_branch_existence(db_session, seed):
    service = TransfersService(db_session)

    with pytest.raises(InsufficientStock):
        asyncio.run(service.create_transfer(_payload(seed, from_branch=999), seed["admin"]))

    with pytest.raises(NotFound, match="Destination branch not found"):
        asyncio.run(service.create_transfer(_payload(seed, to_branch=999), seed["admin"]))


def test_failed_create_writes_nothing(db_session, seed, stock_of):
    service = TransfersService(db_session)

    with pytest.raises(InvalidRequest):
        asyncio.run(service.create_transfer(_payload(seed, quantity=0), seed["admin"]))
    with pytest.raises(NotFound):
        asyncio.run(service.create_transfer(_payload(seed, to_branch=999), seed["admin"]))

    assert db_session.query(Transfer).count() == 0
    assert db_session.query(StockMovement).count() == 0
    assert stock_of(seed["product"], seed["branch_a"]) == 10


def test_create_records_reservation_movement(db_session, seed):
    service = TransfersService(db_session)

    envelope = asyncio.run(service.create_transfer(_payload(seed), seed["team_a"]))

    transfer = envelope.data.transfer
    movement = db_session.query(StockMovement).one()
    assert movement.movement_type == "transfer_out"
    assert movement.quantity_change == -4
    assert movement.quantity_after == 6
    assert movement.reference == transfer.reference_number
    assert movement.branch_id == seed["branch_a"]


def test_reads_do_not_mutate(db_session, seed):
    service = TransfersService(db_session)
    asyncio.run(service.create_transfer(_payload(seed, quantity=1), seed["admin"]))
    asyncio.run(service.create_transfer(_payload(seed, quantity=2, to_branch=seed["branch_c"]), seed["admin"]))

    filters = TransferFilters(branch=seed["branch_a"])
    first = asyncio.run(service.get_all_transfers(filters, 1, 10))
    second = asyncio.run(service.get_all_transfers(filters, 1, 10))

    assert first.data == second.data
    assert first.data.pagination.total == 2
    assert db_session.query(StockMovement).count() == 2


def test_cancel_and_complete_are_terminal(db_session, seed):
    service = TransfersService(db_session)
    cancelled_id = asyncio.run(service.create_transfer(_payload(seed, quantity=1), seed["admin"])).data.transfer.id
    completed_id = asyncio.run(service.create_transfer(_payload(seed, quantity=1), seed["admin"])).data.transfer.id

    asyncio.run(service.cancel_transfer(cancelled_id, seed["admin"]))
    asyncio.run(service.complete_transfer(completed_id, seed["team_a"]))

    for transfer_id in (cancelled_id, completed_id):
        with pytest.raises(InvalidState, match="Only pending transfers can be cancelled"):
            asyncio.run(service.cancel_transfer(transfer_id, seed["admin"]))
        with pytest.raises(InvalidState, match="Only pending transfers can be completed"):
            asyncio.run(service.complete_transfer(transfer_id, seed["admin"]))

    movements = [m.movement_type for m in db_session.query(StockMovement).order_by(StockMovement.id)]
    assert movements == ["transfer_out", "transfer_out", "transfer_return", "transfer_in"]


def test_get_transfer_respects_branch_scope(db_session, seed):
    service = TransfersService(db_session)
    transfer_id = asyncio.run(
        service.create_transfer(_payload(seed, quantity=1, to_branch=seed["branch_c"]), seed["admin"])
    ).data.transfer.id

    assert asyncio.run(service.get_transfer_by_id(transfer_id, seed["branch_c"])).data.transfer.id == transfer_id
    with pytest.raises(NotFound):
        asyncio.run(service.get_transfer_by_id(transfer_id, seed["branch_b"]))


def test_empty_stats(db_session, seed):
    stats = asyncio.run(TransfersService(db_session).get_transfer_stats()).data.stats

    assert stats.total_transfers == 0
    assert stats.total_quantity == 0
    assert [bucket.status.value for bucket in stats.by_status] == ["pending", "completed", "cancelled"]
    assert stats.by_reason == []
