"""Cost breakdown for composite (bundle) products."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import Dict, Iterable, List, Protocol, Sequence

from ..types import (
    AllocationIssue,
    BundleCostBreakdown,
    BundleEstimate,
    CompositeProduct,
    ComponentBreakdownRow,
    CustomExpense,
    IssueCode,
    PendingAllocationItem,
    PurchaseLot,
)
from . import methods
from .lots import LotSnapshot
from .remaining import effective_lots, total_available

LOGGER = logging.getLogger(__name__)


class CompositeNotFound(LookupError):
    pass


class Catalog(Protocol):
    def composite(self, composite_id: str) -> CompositeProduct:
        ...

    def lots_for(self, product_id: str, variant_id: str) -> List[PurchaseLot]:
        ...


@dataclass
class SnapshotCatalog:
    """Catalog backed by an in-memory lot snapshot and composite definitions."""

    lots: LotSnapshot = field(default_factory=LotSnapshot)
    composites: Dict[str, CompositeProduct] = field(default_factory=dict)

    @classmethod
    def build(cls, lots: Iterable[PurchaseLot], composites: Iterable[CompositeProduct] = ()) -> "SnapshotCatalog":
        return cls(LotSnapshot(lots), {item.id: item for item in composites})

    def composite(self, composite_id: str) -> CompositeProduct:
        try:
            return self.composites[composite_id]
        except KeyError:
            raise CompositeNotFound(f"Composite product {composite_id} not found") from None

    def lots_for(self, product_id: str, variant_id: str) -> List[PurchaseLot]:
        return self.lots.lots_for(product_id, variant_id)


def _scaled_expenses(expenses: Sequence[CustomExpense], units: int) -> List[CustomExpense]:
    return [exp.model_copy(update={"amount": exp.amount * units}) for exp in expenses]


class BundleCostResolver:
    def __init__(self, catalog: Catalog) -> None:
        self.catalog = catalog

    def resolve(
        self,
        composite_id: str,
        units_requested: int,
        pending_items: Iterable[PendingAllocationItem] = (),
    ) -> BundleCostBreakdown:
        composite = self.catalog.composite(composite_id)
        warnings: List[AllocationIssue] = []
        if composite.disabled:
            warnings.append(
                AllocationIssue(
                    code=IssueCode.composite_disabled,
                    message=f"Composite product {composite_id} is disabled",
                )
            )
        if units_requested <= 0:
            return BundleCostBreakdown(
                composite_id=composite_id,
                units_requested=units_requested,
                can_fulfill=False,
                errors=(
                    AllocationIssue(
                        code=IssueCode.invalid_quantity,
                        message=f"Requested bundle units must be positive, got {units_requested}",
                        required=units_requested,
                    ),
                ),
                warnings=tuple(warnings),
            )

        # Claims from earlier components count against later ones sharing a variant.
        pending = list(pending_items)
        rows: List[ComponentBreakdownRow] = []
        errors: List[AllocationIssue] = []
        can_fulfill = True
        for component in composite.components:
            required = component.quantity_per_unit * units_requested
            lots = self.catalog.lots_for(component.product_id, component.variant_id)
            result = methods.allocate(component.variant_id, required, lots, pending)
            warnings.extend(result.warnings)
            if result.can_fulfill:
                # short components contribute no rows, only an issue
                for entry in result.entries:
                    rows.append(
                        ComponentBreakdownRow(
                            product_id=component.product_id,
                            variant_id=component.variant_id,
                            lot_id=entry.lot_id,
                            quantity=entry.quantity,
                            unit_cost=entry.unit_cost,
                            line_cost=entry.line_cost,
                        )
                    )
                pending.extend(result.as_pending())
                continue
            can_fulfill = False
            cause = result.errors[0] if result.errors else None
            errors.append(
                AllocationIssue(
                    code=IssueCode.component_shortfall,
                    message=(
                        f"Component {component.component_id}: "
                        f"{cause.message if cause else 'allocation failed'}"
                    ),
                    variant_id=component.variant_id,
                    component_id=component.component_id,
                    required=required,
                    available=result.allocated_quantity,
                    shortfall=result.shortfall,
                )
            )

        if errors:
            LOGGER.warning(
                "Composite %s cannot be fulfilled for %s unit(s): %d component(s) short",
                composite_id,
                units_requested,
                len(errors),
            )
        expenses = _scaled_expenses(composite.custom_expenses, units_requested)
        total_component_cost = sum((row.line_cost for row in rows), Decimal("0"))
        total_custom_expenses = sum((exp.amount for exp in expenses), Decimal("0"))
        return BundleCostBreakdown(
            composite_id=composite_id,
            units_requested=units_requested,
            component_breakdown=tuple(rows),
            custom_expenses=tuple(expenses),
            total_component_cost=total_component_cost,
            total_custom_expenses=total_custom_expenses,
            total_cost=total_component_cost + total_custom_expenses,
            can_fulfill=can_fulfill,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def available_units(self, composite_id: str, pending_items: Iterable[PendingAllocationItem] = ()) -> int:
        """How many whole bundles the current stock can build."""
        composite = self.catalog.composite(composite_id)
        pending = list(pending_items)
        needed: Dict[tuple[str, str], int] = {}
        for component in composite.components:
            key = (component.product_id, component.variant_id)
            needed[key] = needed.get(key, 0) + component.quantity_per_unit
        units = None
        for (product_id, variant_id), per_unit in needed.items():
            lots = self.catalog.lots_for(product_id, variant_id)
            available = total_available(effective_lots(lots, pending, variant_id))
            possible = available // per_unit
            units = possible if units is None else min(units, possible)
        return units or 0

    def estimate(self, composite_id: str, pending_items: Iterable[PendingAllocationItem] = ()) -> BundleEstimate:
        composite = self.catalog.composite(composite_id)
        pending = list(pending_items)
        breakdown = self.resolve(composite_id, 1, pending)
        return BundleEstimate(
            composite_id=composite_id,
            available_units=self.available_units(composite_id, pending),
            breakdown=breakdown,
            base_price=composite.base_price,
            estimated_profit=composite.base_price - breakdown.total_cost,
        )
