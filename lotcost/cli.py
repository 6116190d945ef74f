"""Typer CLI for inspecting lot costing against a snapshot file."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from . import get_version, pricing
from .accounting import methods
from .accounting.bundles import BundleCostResolver, CompositeNotFound
from .config import AppSettings, load_settings
from .reporting import console as console_report
from .reporting import summaries
from .snapshot import Snapshot, SnapshotError, load_snapshot
from .types import BillingType
from .utils import money_quantum

app = typer.Typer(help="FIFO purchase lot costing")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"lotcost {get_version()}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit"
    ),
) -> None:
    """FIFO purchase lot costing."""


def _load(config: Optional[Path], snapshot: Optional[Path], overrides: Optional[dict] = None) -> tuple[AppSettings, Snapshot]:
    overrides = dict(overrides or {})
    if snapshot is not None:
        overrides["snapshot_path"] = snapshot
    settings = load_settings(config, overrides)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    if settings.snapshot_path is None:
        raise typer.BadParameter("No snapshot provided")
    try:
        return settings, load_snapshot(settings.snapshot_path)
    except SnapshotError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _variant_lots(snap: Snapshot, variant: str, product: Optional[str]):
    catalog = snap.catalog()
    if product is not None:
        return catalog.lots_for(product, variant)
    return [lot for lot in catalog.lots.all_lots() if lot.variant_id == variant]


@app.command()
def allocate(
    variant: str = typer.Argument(..., help="Variant id"),
    quantity: int = typer.Argument(..., help="Units demanded"),
    product: Optional[str] = typer.Option(None, "--product", "-p", help="Product id"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot YAML/JSONL"),
    config: Optional[Path] = typer.Option(None, "--config", help="Config YAML"),
    billing: Optional[BillingType] = typer.Option(None, "--billing", help="Billing type"),
) -> None:
    """Allocate units of one variant oldest lot first."""

    settings, snap = _load(config, snapshot, {"billing_type": billing} if billing else None)
    lots = _variant_lots(snap, variant, product)
    result = methods.allocate(variant, quantity, lots, snap.pending)
    quote = pricing.resolve_price(variant, lots, snap.pending, settings.billing_type)
    transitions = pricing.price_transitions(variant, lots, snap.pending, quantity, settings.billing_type)
    console_report.render_allocation(
        result,
        quote=quote,
        transitions=transitions,
        console=Console(),
        quantum=money_quantum(settings.money_places),
    )
    if not result.can_fulfill:
        raise typer.Exit(code=1)


@app.command()
def bundle(
    composite: str = typer.Argument(..., help="Composite product id"),
    units: int = typer.Argument(..., help="Bundles requested"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot YAML/JSONL"),
    config: Optional[Path] = typer.Option(None, "--config", help="Config YAML"),
) -> None:
    """Break a composite product down into component lots."""

    settings, snap = _load(config, snapshot)
    resolver = BundleCostResolver(snap.catalog())
    try:
        breakdown = resolver.resolve(composite, units, snap.pending)
    except CompositeNotFound as exc:
        raise typer.BadParameter(str(exc)) from exc
    console_report.render_bundle(breakdown, console=Console(), quantum=money_quantum(settings.money_places))
    if not breakdown.can_fulfill:
        raise typer.Exit(code=1)


@app.command()
def quote(
    variant: str = typer.Argument(..., help="Variant id"),
    product: Optional[str] = typer.Option(None, "--product", "-p", help="Product id"),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot YAML/JSONL"),
    config: Optional[Path] = typer.Option(None, "--config", help="Config YAML"),
    billing: Optional[BillingType] = typer.Option(None, "--billing", help="Billing type"),
) -> None:
    """Show the price quoted from the earliest live lot."""

    settings, snap = _load(config, snapshot, {"billing_type": billing} if billing else None)
    lots = _variant_lots(snap, variant, product)
    result = pricing.resolve_price(variant, lots, snap.pending, settings.billing_type)
    if result.lot_id is None:
        typer.echo(f"{variant}: out of stock")
        raise typer.Exit(code=1)
    typer.echo(f"{variant}: {result.billing_type.value} {result.price} from lot {result.lot_id} ({result.lot_remaining} left)")
    if not result.ok:
        for issue in result.errors:
            typer.echo(f"{issue.code.value}: {issue.message}", err=True)
        raise typer.Exit(code=1)


@app.command()
def stock(
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", "-s", help="Snapshot YAML/JSONL"),
    config: Optional[Path] = typer.Option(None, "--config", help="Config YAML"),
) -> None:
    """Summarize available stock per variant after pending claims."""

    _, snap = _load(config, snapshot)
    lots = snap.catalog().lots
    typer.echo(f"{len(lots)} lot(s) across {len(lots.variants())} variant(s)")
    summary = summaries.summarize_stock(snap.lots, snap.pending)
    console_report.render_stock(summary, console=Console())
