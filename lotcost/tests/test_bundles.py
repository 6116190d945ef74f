from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from lotcost.accounting.bundles import BundleCostResolver, CompositeNotFound, SnapshotCatalog
from lotcost.types import (
    CompositeComponent,
    CompositeProduct,
    CustomExpense,
    IssueCode,
    PendingAllocationItem,
    PurchaseLot,
)


def _lot(lot_id: str, variant: str, month: int, remaining: int, unit_cost: str) -> PurchaseLot:
    return PurchaseLot(
        id=lot_id,
        product_id=f"P{variant}",
        variant_id=variant,
        quantity_received=remaining,
        remaining_quantity=remaining,
        unit_cost=Decimal(unit_cost),
        retail_price=Decimal("20"),
        purchase_date=datetime(2024, month, 1, tzinfo=timezone.utc),
    )


def _kit(**kwargs) -> CompositeProduct:
    data = dict(
        id="KIT",
        name="Starter kit",
        components=[
            CompositeComponent(product_id="PX", variant_id="X", quantity_per_unit=2),
            CompositeComponent(product_id="PY", variant_id="Y", quantity_per_unit=1),
        ],
        custom_expenses=[CustomExpense(name="assembly", amount=Decimal("1.50"), category="labor")],
        base_price=Decimal("40"),
    )
    data.update(kwargs)
    return CompositeProduct(**data)


def _resolver(y_stock: int = 2, composite: CompositeProduct | None = None) -> BundleCostResolver:
    lots = [
        _lot("X2", "X", 3, 10, "3"),
        _lot("X1", "X", 1, 4, "2"),
        _lot("Y1", "Y", 1, y_stock, "5"),
    ]
    return BundleCostResolver(SnapshotCatalog.build(lots, [composite or _kit()]))


def test_short_component_does_not_hide_other_rows() -> None:
    breakdown = _resolver(y_stock=2).resolve("KIT", 3)
    assert not breakdown.can_fulfill
    assert [(r.variant_id, r.lot_id, r.quantity) for r in breakdown.component_breakdown] == [
        ("X", "X1", 4),
        ("X", "X2", 2),
    ]
    assert len(breakdown.errors) == 1
    issue = breakdown.errors[0]
    assert issue.code is IssueCode.component_shortfall
    assert issue.component_id == "PY-Y"
    assert issue.shortfall == 1
    assert "PY-Y" in issue.message


def test_fulfilled_bundle_totals() -> None:
    breakdown = _resolver(y_stock=3).resolve("KIT", 3)
    assert breakdown.can_fulfill
    assert breakdown.errors == ()
    assert breakdown.total_component_cost == Decimal("29")
    assert breakdown.total_custom_expenses == Decimal("4.50")
    assert breakdown.total_cost == Decimal("33.50")
    assert [exp.amount for exp in breakdown.custom_expenses] == [Decimal("4.50")]
    assert len(breakdown.component_breakdown) == 3


def test_pending_claims_apply_to_components() -> None:
    pending = [PendingAllocationItem(variant_id="X", lot_id="X1", quantity=4)]
    breakdown = _resolver(y_stock=3).resolve("KIT", 1, pending)
    assert [(r.lot_id, r.quantity) for r in breakdown.component_breakdown] == [("X2", 2), ("Y1", 1)]


def test_components_sharing_a_variant_see_each_other() -> None:
    composite = _kit(
        components=[
            CompositeComponent(product_id="PX", variant_id="X", quantity_per_unit=3),
            CompositeComponent(product_id="PX", variant_id="X", quantity_per_unit=3),
        ],
        custom_expenses=[],
    )
    breakdown = _resolver(composite=composite).resolve("KIT", 1)
    assert breakdown.can_fulfill
    assert [(r.lot_id, r.quantity) for r in breakdown.component_breakdown] == [("X1", 3), ("X1", 1), ("X2", 2)]
    assert breakdown.total_cost == Decimal("14")


def test_all_components_missing_collects_every_error() -> None:
    resolver = BundleCostResolver(SnapshotCatalog.build([], [_kit()]))
    breakdown = resolver.resolve("KIT", 1)
    assert not breakdown.can_fulfill
    assert breakdown.component_breakdown == ()
    assert [issue.component_id for issue in breakdown.errors] == ["PX-X", "PY-Y"]
    assert breakdown.total_cost == Decimal("1.50")


def test_invalid_units() -> None:
    breakdown = _resolver().resolve("KIT", 0)
    assert not breakdown.can_fulfill
    assert breakdown.errors[0].code is IssueCode.invalid_quantity


def test_unknown_composite_raises() -> None:
    with pytest.raises(CompositeNotFound):
        _resolver().resolve("NOPE", 1)


def test_disabled_composite_warns() -> None:
    breakdown = _resolver(y_stock=3, composite=_kit(disabled=True)).resolve("KIT", 1)
    assert breakdown.can_fulfill
    assert [w.code for w in breakdown.warnings] == [IssueCode.composite_disabled]


def test_available_units_limited_by_scarcest_component() -> None:
    assert _resolver(y_stock=2).available_units("KIT") == 2
    assert _resolver(y_stock=30).available_units("KIT") == 7
    pending = [PendingAllocationItem(variant_id="Y", lot_id="Y1", quantity=2)]
    assert _resolver(y_stock=2).available_units("KIT", pending) == 0


def test_estimate_profit_for_one_unit() -> None:
    estimate = _resolver(y_stock=3).estimate("KIT")
    assert estimate.breakdown.total_cost == Decimal("10.50")
    assert estimate.estimated_profit == Decimal("29.50")
    assert estimate.available_units == 3
