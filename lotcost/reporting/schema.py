"""Column schemas for report outputs."""
from __future__ import annotations

ALLOCATION_COLUMNS = [
    "lot_id",
    "quantity",
    "unit_cost",
    "line_cost",
]

BUNDLE_COLUMNS = [
    "product_id",
    "variant_id",
    "lot_id",
    "quantity",
    "unit_cost",
    "line_cost",
]

STOCK_SUMMARY_COLUMNS = [
    "product_id",
    "variant_id",
    "lots",
    "remaining_quantity",
    "claimed_quantity",
    "available_quantity",
    "fifo_value",
    "next_lot_id",
    "next_unit_cost",
]
