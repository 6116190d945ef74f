from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from lotcost.accounting.lots import LotSnapshot
from lotcost.accounting.remaining import effective_lots, effective_remaining, inconsistent_lots, total_available
from lotcost.types import PendingAllocationItem, PurchaseLot


def _lot(lot_id: str, remaining: int, *, variant: str = "V1", day: int = 1) -> PurchaseLot:
    return PurchaseLot(
        id=lot_id,
        product_id="P1",
        variant_id=variant,
        quantity_received=10,
        remaining_quantity=remaining,
        unit_cost=Decimal("1"),
        purchase_date=datetime(2024, 1, day, tzinfo=timezone.utc),
    )


def _pending(lot_id: str, qty: int) -> PendingAllocationItem:
    return PendingAllocationItem(variant_id="V1", lot_id=lot_id, quantity=qty)


def test_effective_remaining_subtracts_matching_claims_only() -> None:
    lot = _lot("A", 5)
    pending = [_pending("A", 2), _pending("B", 4), _pending("A", 1)]
    assert effective_remaining(lot, pending) == 2


def test_effective_remaining_is_not_clamped() -> None:
    assert effective_remaining(_lot("A", 1), [_pending("A", 3)]) == -2


def test_inconsistent_lots_lists_negative_lots() -> None:
    availability = effective_lots([_lot("A", 1), _lot("B", 4)], [_pending("A", 3)])
    issues = inconsistent_lots(availability)
    assert [issue.lot_id for issue in issues] == ["A"]
    assert total_available(availability) == 4


def test_remaining_cannot_exceed_received() -> None:
    with pytest.raises(ValidationError):
        PurchaseLot(
            id="X",
            product_id="P1",
            variant_id="V1",
            quantity_received=2,
            remaining_quantity=3,
            unit_cost=Decimal("1"),
            purchase_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )


def test_snapshot_orders_and_drops_empty_lots() -> None:
    snapshot = LotSnapshot([_lot("C", 3, day=5), _lot("A", 0, day=1), _lot("B", 2, day=2), _lot("D", 1, variant="V2")])
    assert [lot.id for lot in snapshot.lots_for("P1", "V1")] == ["B", "C"]
    assert snapshot.variants() == [("P1", "V1"), ("P1", "V2")]
    assert len(snapshot) == 3


def test_non_positive_claim_is_rejected() -> None:
    for qty in (0, -3):
        with pytest.raises(ValidationError):
            _pending("A", qty)
