"""Console rendering helpers using rich."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional, Sequence

import pandas as pd
from rich.console import Console
from rich.table import Table

from .. import utils
from ..types import AllocationIssue, AllocationResult, BundleCostBreakdown, PriceQuote, PriceTransition
from .schema import ALLOCATION_COLUMNS, BUNDLE_COLUMNS


def _money(value: Optional[Decimal], quantum: Decimal) -> str:
    if value is None:
        return "-"
    return f"{utils.quantize_money(value, quantum)}"


def _render_issues(console: Console, issues: Iterable[AllocationIssue], style: str) -> None:
    for issue in issues:
        console.print(f"[{style}]{issue.code.value}: {issue.message}[/{style}]")


def render_allocation(
    result: AllocationResult,
    *,
    quote: Optional[PriceQuote] = None,
    transitions: Sequence[PriceTransition] = (),
    console: Optional[Console] = None,
    quantum: Decimal = utils.MONEY_QUANTUM,
) -> None:
    console = console or Console()
    if result.entries:
        table = Table(title=f"Allocation for {result.variant_id}", show_lines=False)
        for column in ALLOCATION_COLUMNS:
            table.add_column(column)
        for entry in result.entries:
            table.add_row(entry.lot_id, f"{entry.quantity}", _money(entry.unit_cost, quantum), _money(entry.line_cost, quantum))
        console.print(table)
    console.print(
        f"Requested {result.requested}, allocated {result.allocated_quantity}, "
        f"total cost {_money(result.total_cost, quantum)}"
    )
    if quote is not None and quote.lot_id:
        console.print(f"Quoted {quote.billing_type.value} price {_money(quote.price, quantum)} from lot {quote.lot_id}")
    for transition in transitions:
        render_transition(transition, console=console, quantum=quantum)
    _render_issues(console, result.warnings, "yellow")
    _render_issues(console, result.errors, "red")


def render_transition(
    transition: PriceTransition, *, console: Optional[Console] = None, quantum: Decimal = utils.MONEY_QUANTUM
) -> None:
    console = console or Console()
    if transition.to_lot_id is None:
        console.print(f"[yellow]All lots exhausted after {transition.after_quantity} unit(s)[/yellow]")
        return
    console.print(
        f"[yellow]Lot {transition.from_lot_id} exhausted after {transition.after_quantity} unit(s); "
        f"price moves {_money(transition.previous_price, quantum)} -> {_money(transition.price, quantum)} "
        f"(lot {transition.to_lot_id})[/yellow]"
    )


def render_bundle(
    breakdown: BundleCostBreakdown, *, console: Optional[Console] = None, quantum: Decimal = utils.MONEY_QUANTUM
) -> None:
    console = console or Console()
    if breakdown.component_breakdown:
        table = Table(title=f"Bundle {breakdown.composite_id} x {breakdown.units_requested}", show_lines=False)
        for column in BUNDLE_COLUMNS:
            table.add_column(column)
        for row in breakdown.component_breakdown:
            table.add_row(
                row.product_id,
                row.variant_id,
                row.lot_id,
                f"{row.quantity}",
                _money(row.unit_cost, quantum),
                _money(row.line_cost, quantum),
            )
        console.print(table)
    for expense in breakdown.custom_expenses:
        console.print(f"Expense {expense.name} ({expense.category}): {_money(expense.amount, quantum)}")
    console.print(
        f"Components {_money(breakdown.total_component_cost, quantum)} + "
        f"expenses {_money(breakdown.total_custom_expenses, quantum)} = {_money(breakdown.total_cost, quantum)}"
    )
    if not breakdown.can_fulfill:
        console.print("[red]Bundle cannot be fulfilled[/red]")
    _render_issues(console, breakdown.warnings, "yellow")
    _render_issues(console, breakdown.errors, "red")


def render_stock(summary: pd.DataFrame, *, console: Optional[Console] = None) -> None:
    console = console or Console()
    if summary.empty:
        console.print("[yellow]No stock available.[/yellow]")
        return
    table = Table(title="Stock on hand", show_lines=False)
    for column in summary.columns:
        table.add_column(str(column))
    for record in summary.itertuples(index=False):
        table.add_row(*("" if value is None else str(value) for value in record))
    console.print(table)
