"""Summary helpers for reporting."""
from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

import pandas as pd

from ..accounting.methods import order_lots
from ..accounting.remaining import effective_lots
from ..types import PendingAllocationItem, PurchaseLot
from .schema import STOCK_SUMMARY_COLUMNS


def summarize_stock(
    lots: Sequence[PurchaseLot], pending_items: Iterable[PendingAllocationItem] = ()
) -> pd.DataFrame:
    """Per-variant stock on hand after draft claims, valued at each lot's own cost."""

    aggregates: dict[tuple[str, str], dict] = defaultdict(
        lambda: {
            "lots": 0,
            "remaining_quantity": 0,
            "claimed_quantity": 0,
            "available_quantity": 0,
            "fifo_value": Decimal("0"),
            "next_lot_id": None,
            "next_unit_cost": None,
        }
    )
    for lot, qty in order_lots(effective_lots(lots, list(pending_items))):
        bucket = aggregates[(lot.product_id, lot.variant_id)]
        bucket["lots"] += 1
        bucket["remaining_quantity"] += lot.remaining_quantity
        bucket["claimed_quantity"] += lot.remaining_quantity - qty
        bucket["available_quantity"] += qty
        bucket["fifo_value"] += lot.unit_cost * qty
        if bucket["next_lot_id"] is None:
            bucket["next_lot_id"] = lot.id
            bucket["next_unit_cost"] = float(lot.unit_cost)
    rows = []
    for (product_id, variant_id), data in sorted(aggregates.items()):
        rows.append(
            {
                "product_id": product_id,
                "variant_id": variant_id,
                "lots": data["lots"],
                "remaining_quantity": data["remaining_quantity"],
                "claimed_quantity": data["claimed_quantity"],
                "available_quantity": data["available_quantity"],
                "fifo_value": float(data["fifo_value"]),
                "next_lot_id": data["next_lot_id"],
                "next_unit_cost": data["next_unit_cost"],
            }
        )
    return pd.DataFrame(rows, columns=STOCK_SUMMARY_COLUMNS)
