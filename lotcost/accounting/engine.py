"""Costing engine used by the document builders."""
from __future__ import annotations

from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, TypeAdapter

from .. import pricing
from ..types import (
    AllocationIssue,
    AllocationResult,
    BillingType,
    BundleCostBreakdown,
    CompositeItem,
    LineItem,
    PendingAllocationItem,
    PriceQuote,
    PriceTransition,
    SingleItem,
    StockDeduction,
)
from . import methods
from .bundles import BundleCostResolver, Catalog

_LINE_ITEM = TypeAdapter(LineItem)


class LineQuote(BaseModel):
    """A priced line referencing the lots that supply it."""

    model_config = ConfigDict(frozen=True)

    index: int
    item: Union[SingleItem, CompositeItem]
    allocation: Optional[AllocationResult] = None
    bundle: Optional[BundleCostBreakdown] = None
    quote: Optional[PriceQuote] = None
    unit_price: Decimal = Decimal("0")
    line_total: Decimal = Decimal("0")
    cost: Decimal = Decimal("0")
    transitions: Tuple[PriceTransition, ...] = ()

    @property
    def can_fulfill(self) -> bool:
        if self.allocation is not None:
            return self.allocation.can_fulfill
        return self.bundle is not None and self.bundle.can_fulfill

    @property
    def errors(self) -> Tuple[AllocationIssue, ...]:
        issues: Tuple[AllocationIssue, ...] = ()
        if self.allocation is not None:
            issues += self.allocation.errors
        if self.bundle is not None:
            issues += self.bundle.errors
        if self.quote is not None:
            issues += self.quote.errors
        return issues

    def claims(self) -> List[PendingAllocationItem]:
        if self.allocation is not None:
            return self.allocation.as_pending()
        if self.bundle is not None:
            return self.bundle.as_pending()
        return []


class DocumentQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    billing_type: BillingType
    lines: Tuple[LineQuote, ...] = ()

    @property
    def can_fulfill(self) -> bool:
        return all(line.can_fulfill for line in self.lines)

    @property
    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal("0"))

    @property
    def total_cost(self) -> Decimal:
        return sum((line.cost for line in self.lines), Decimal("0"))

    @property
    def errors(self) -> List[AllocationIssue]:
        issues: List[AllocationIssue] = []
        for line in self.lines:
            issues.extend(line.errors)
        return issues


def parse_line_item(data: object) -> Union[SingleItem, CompositeItem]:
    """Validate raw line item input once at the document boundary."""
    if isinstance(data, (SingleItem, CompositeItem)):
        return data
    return _LINE_ITEM.validate_python(data)


class CostingEngine:
    def __init__(self, catalog: Catalog, *, billing_type: BillingType = BillingType.retail) -> None:
        self.catalog = catalog
        self.billing_type = BillingType(billing_type)
        self.bundles = BundleCostResolver(catalog)

    def price_line(
        self,
        item: object,
        pending_items: Iterable[PendingAllocationItem] = (),
        *,
        index: int = 0,
    ) -> LineQuote:
        line = parse_line_item(item)
        pending = list(pending_items)
        if isinstance(line, SingleItem):
            return self._price_single(line, pending, index)
        return self._price_composite(line, pending, index)

    def price_document(
        self,
        items: Sequence[object],
        pending_items: Iterable[PendingAllocationItem] = (),
    ) -> DocumentQuote:
        """Price every line in order; each line sees the claims of the lines before it."""

        pending = list(pending_items)
        lines: List[LineQuote] = []
        for idx, item in enumerate(items):
            line = self.price_line(item, pending, index=idx)
            pending.extend(line.claims())
            lines.append(line)
        return DocumentQuote(billing_type=self.billing_type, lines=tuple(lines))

    # ------------------------------------------------------------------
    def _price_single(self, item: SingleItem, pending: List[PendingAllocationItem], index: int) -> LineQuote:
        lots = self.catalog.lots_for(item.product_id, item.variant_id)
        allocation = methods.allocate(item.variant_id, item.quantity, lots, pending)
        quote = pricing.resolve_price(item.variant_id, lots, pending, self.billing_type)
        transitions = pricing.price_transitions(item.variant_id, lots, pending, item.quantity, self.billing_type)
        return LineQuote(
            index=index,
            item=item,
            allocation=allocation,
            quote=quote,
            unit_price=quote.price,
            line_total=quote.price * item.quantity,
            cost=allocation.total_cost,
            transitions=tuple(transitions),
        )

    def _price_composite(self, item: CompositeItem, pending: List[PendingAllocationItem], index: int) -> LineQuote:
        composite = self.catalog.composite(item.composite_id)
        bundle = self.bundles.resolve(item.composite_id, item.quantity, pending)
        return LineQuote(
            index=index,
            item=item,
            bundle=bundle,
            unit_price=composite.base_price,
            line_total=composite.base_price * item.quantity,
            cost=bundle.total_cost,
        )


def deduction_plan(document: DocumentQuote) -> List[StockDeduction]:
    """Aggregate per-lot quantities for the commit step.

    The commit layer must re-check each lot against freshly persisted stock
    and apply all decrements atomically.
    """

    totals: "OrderedDict[Tuple[str, str], int]" = OrderedDict()
    for line in document.lines:
        for claim in line.claims():
            key = (claim.lot_id, claim.variant_id)
            totals[key] = totals.get(key, 0) + claim.quantity
    return [
        StockDeduction(lot_id=lot_id, variant_id=variant_id, quantity=qty)
        for (lot_id, variant_id), qty in totals.items()
        if qty > 0
    ]
