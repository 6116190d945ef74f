"""FIFO lot selection for a single variant."""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Sequence

from ..types import AllocationEntry, AllocationIssue, AllocationResult, IssueCode, PendingAllocationItem, PurchaseLot
from .lots import fifo_key
from .remaining import LotAvailability, effective_lots, inconsistent_lots, total_available

LOGGER = logging.getLogger(__name__)


def order_lots(availability: LotAvailability) -> LotAvailability:
    """Keep lots with stock left, oldest purchase first, lot id breaking ties."""
    live = [(lot, qty) for lot, qty in availability if qty > 0]
    return sorted(live, key=lambda pair: fifo_key(pair[0]))


def allocate(
    variant_id: str,
    demand_quantity: int,
    lots: Sequence[PurchaseLot],
    pending_items: Iterable[PendingAllocationItem] = (),
) -> AllocationResult:
    if demand_quantity <= 0:
        return AllocationResult(
            variant_id=variant_id,
            requested=demand_quantity,
            can_fulfill=False,
            errors=(
                AllocationIssue(
                    code=IssueCode.invalid_quantity,
                    message=f"Requested quantity must be positive, got {demand_quantity}",
                    variant_id=variant_id,
                    required=demand_quantity,
                ),
            ),
        )
    availability = effective_lots(lots, list(pending_items), variant_id)
    warnings = inconsistent_lots(availability)
    for issue in warnings:
        LOGGER.warning("Inconsistent lot snapshot for variant=%s: %s", variant_id, issue.message)
    ordered = order_lots(availability)
    available = total_available(availability)

    remaining = demand_quantity
    entries: List[AllocationEntry] = []
    for lot, qty in ordered:
        if remaining <= 0:
            break
        take = min(qty, remaining)
        entries.append(
            AllocationEntry(
                lot_id=lot.id,
                quantity=take,
                unit_cost=lot.unit_cost,
                line_cost=lot.unit_cost * take,
            )
        )
        remaining -= take
    total_cost = sum((entry.line_cost for entry in entries), Decimal("0"))

    errors: List[AllocationIssue] = []
    if remaining > 0:
        if not entries:
            errors.append(
                AllocationIssue(
                    code=IssueCode.out_of_stock,
                    message=f"No stock available for variant {variant_id}. Required: {demand_quantity}",
                    variant_id=variant_id,
                    required=demand_quantity,
                    available=0,
                    shortfall=remaining,
                )
            )
        else:
            errors.append(
                AllocationIssue(
                    code=IssueCode.insufficient_stock,
                    message=(
                        f"Insufficient stock for variant {variant_id}. "
                        f"Required: {demand_quantity}, Available: {available}"
                    ),
                    variant_id=variant_id,
                    required=demand_quantity,
                    available=available,
                    shortfall=remaining,
                )
            )
    return AllocationResult(
        variant_id=variant_id,
        requested=demand_quantity,
        entries=tuple(entries),
        total_cost=total_cost,
        can_fulfill=remaining == 0,
        shortfall=remaining,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )
