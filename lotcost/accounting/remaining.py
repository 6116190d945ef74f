"""Effective remaining stock after uncommitted draft claims."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..types import AllocationIssue, IssueCode, PendingAllocationItem, PurchaseLot

LotAvailability = List[Tuple[PurchaseLot, int]]


def claimed_by_lot(pending_items: Iterable[PendingAllocationItem]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for item in pending_items:
        totals[item.lot_id] += item.quantity
    return dict(totals)


def effective_remaining(lot: PurchaseLot, pending_items: Iterable[PendingAllocationItem]) -> int:
    """Return ``lot.remaining_quantity`` minus everything drafts already claim from it.

    The result is not clamped: a negative value means the pending items claim
    more than the snapshot says is left, which callers must report.
    """

    claimed = sum(item.quantity for item in pending_items if item.lot_id == lot.id)
    return lot.remaining_quantity - claimed


def effective_lots(
    lots: Sequence[PurchaseLot],
    pending_items: Iterable[PendingAllocationItem],
    variant_id: Optional[str] = None,
) -> LotAvailability:
    claimed = claimed_by_lot(pending_items)
    pairs: LotAvailability = []
    for lot in lots:
        if variant_id is not None and lot.variant_id != variant_id:
            continue
        pairs.append((lot, lot.remaining_quantity - claimed.get(lot.id, 0)))
    return pairs


def total_available(availability: LotAvailability) -> int:
    return sum(qty for _, qty in availability if qty > 0)


def inconsistent_lots(availability: LotAvailability) -> List[AllocationIssue]:
    issues: List[AllocationIssue] = []
    for lot, qty in availability:
        if qty >= 0:
            continue
        issues.append(
            AllocationIssue(
                code=IssueCode.inconsistent_snapshot,
                message=(
                    f"Pending items claim {lot.remaining_quantity - qty} units from lot {lot.id} "
                    f"but only {lot.remaining_quantity} remain"
                ),
                variant_id=lot.variant_id,
                lot_id=lot.id,
                required=lot.remaining_quantity - qty,
                available=lot.remaining_quantity,
                shortfall=-qty,
            )
        )
    return issues
