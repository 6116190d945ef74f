"""Quoted prices from a variant's FIFO lot queue."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from . import utils
from .accounting.methods import order_lots
from .accounting.remaining import effective_lots
from .types import (
    AllocationIssue,
    BillingType,
    IssueCode,
    PendingAllocationItem,
    PriceQuote,
    PriceTransition,
    PurchaseLot,
    QueueState,
    VariantPricing,
)

LOGGER = logging.getLogger(__name__)


def resolve_price(
    variant_id: str,
    lots: Sequence[PurchaseLot],
    pending_items: Iterable[PendingAllocationItem] = (),
    billing_type: BillingType = BillingType.retail,
) -> PriceQuote:
    """Quote the price of the earliest lot that still has effective stock.

    Customers are always quoted the oldest live lot's price, even when the
    quantity they take will also draw from later lots.
    """

    billing_type = BillingType(billing_type)
    ordered = order_lots(effective_lots(lots, list(pending_items), variant_id))
    if not ordered:
        return PriceQuote(
            variant_id=variant_id,
            billing_type=billing_type,
            state=QueueState.all_lots_exhausted,
            errors=(
                AllocationIssue(
                    code=IssueCode.out_of_stock,
                    message=f"No stock available for variant {variant_id}",
                    variant_id=variant_id,
                    available=0,
                ),
            ),
        )
    lot, qty = ordered[0]
    price = lot.price_for(billing_type)
    errors: tuple[AllocationIssue, ...] = ()
    if price <= 0:
        LOGGER.warning("Non-positive %s price on lot=%s for variant=%s", billing_type.value, lot.id, variant_id)
        errors = (
            AllocationIssue(
                code=IssueCode.invalid_price,
                message=f"{billing_type.value.title()} price for lot {lot.id} must be positive, got {price}",
                variant_id=variant_id,
                lot_id=lot.id,
            ),
        )
    return PriceQuote(
        variant_id=variant_id,
        billing_type=billing_type,
        lot_id=lot.id,
        price=price,
        lot_remaining=qty,
        state=QueueState.lot_active,
        errors=errors,
    )


def price_transitions(
    variant_id: str,
    lots: Sequence[PurchaseLot],
    pending_items: Iterable[PendingAllocationItem],
    quantity: int,
    billing_type: BillingType = BillingType.retail,
) -> List[PriceTransition]:
    """Walk FIFO consumption of ``quantity`` and report each quote change.

    A transition fires whenever the active lot reaches zero: either the queue
    advances to the next lot or every lot is exhausted.
    """

    billing_type = BillingType(billing_type)
    ordered = order_lots(effective_lots(lots, list(pending_items), variant_id))
    transitions: List[PriceTransition] = []
    consumed = 0
    remaining = quantity
    for idx, (lot, qty) in enumerate(ordered):
        if remaining <= 0 or remaining < qty:
            break
        remaining -= qty
        consumed += qty
        nxt = ordered[idx + 1][0] if idx + 1 < len(ordered) else None
        if nxt is None:
            transitions.append(
                PriceTransition(
                    variant_id=variant_id,
                    state=QueueState.all_lots_exhausted,
                    from_lot_id=lot.id,
                    previous_price=lot.price_for(billing_type),
                    after_quantity=consumed,
                )
            )
            break
        transitions.append(
            PriceTransition(
                variant_id=variant_id,
                state=QueueState.advance_to_next_lot,
                from_lot_id=lot.id,
                to_lot_id=nxt.id,
                previous_price=lot.price_for(billing_type),
                price=nxt.price_for(billing_type),
                after_quantity=consumed,
            )
        )
    return transitions


def detect_price_change(previous: Optional[PriceQuote], current: PriceQuote) -> Optional[PriceTransition]:
    """Compare two quotes for the same variant; ``None`` when nothing moved."""
    if previous is None:
        return None
    if previous.lot_id == current.lot_id and previous.price == current.price:
        return None
    if current.state is QueueState.all_lots_exhausted:
        state = QueueState.all_lots_exhausted
    else:
        state = QueueState.advance_to_next_lot
    return PriceTransition(
        variant_id=current.variant_id,
        state=state,
        from_lot_id=previous.lot_id,
        to_lot_id=current.lot_id,
        previous_price=previous.price if previous.lot_id else None,
        price=current.price if current.lot_id else None,
    )


def _pricing_from_lot(lot: PurchaseLot, remaining_units: int) -> VariantPricing:
    return VariantPricing(
        purchase_price=lot.unit_cost,
        retail_price=lot.retail_price,
        wholesale_price=lot.wholesale_price,
        shipping_cost=lot.shipping_cost,
        supplier=lot.supplier,
        purchase_date=lot.purchase_date,
        remaining_units=remaining_units,
    )


def variant_pricing(
    lots: Sequence[PurchaseLot], pending_items: Iterable[PendingAllocationItem] = ()
) -> VariantPricing:
    """Pricing of the earliest live lot.

    With nothing left, the most recent lot is used as a price reference and
    ``remaining_units`` is zero.
    """

    if not lots:
        return VariantPricing()
    ordered = order_lots(effective_lots(lots, list(pending_items)))
    if ordered:
        lot, qty = ordered[0]
        return _pricing_from_lot(lot, qty)
    most_recent = max(lots, key=lambda lot: (utils.as_utc(lot.purchase_date), lot.id))
    return _pricing_from_lot(most_recent, 0)


def weighted_average_pricing(
    lots: Sequence[PurchaseLot], pending_items: Iterable[PendingAllocationItem] = ()
) -> VariantPricing:
    live = order_lots(effective_lots(lots, list(pending_items)))
    total = sum(qty for _, qty in live)
    if total == 0:
        return VariantPricing()

    def _avg(attr: str) -> Decimal:
        weighted = sum((getattr(lot, attr) * qty for lot, qty in live), Decimal("0"))
        return utils.quantize_money(weighted / total)

    return VariantPricing(
        purchase_price=_avg("unit_cost"),
        retail_price=_avg("retail_price"),
        wholesale_price=_avg("wholesale_price"),
        shipping_cost=_avg("shipping_cost"),
        remaining_units=total,
    )


def latest_pricing(
    lots: Sequence[PurchaseLot], pending_items: Iterable[PendingAllocationItem] = ()
) -> VariantPricing:
    """Most recent purchase prices, with total stock still available."""
    if not lots:
        return VariantPricing()
    latest = max(lots, key=lambda lot: (utils.as_utc(lot.purchase_date), lot.id))
    total = sum(qty for _, qty in effective_lots(lots, list(pending_items)) if qty > 0)
    return _pricing_from_lot(latest, total)
