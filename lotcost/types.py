"""Core pydantic data models used across the project."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


class BillingType(str, Enum):
    retail = "retail"
    wholesale = "wholesale"


class IssueCode(str, Enum):
    invalid_quantity = "InvalidQuantity"
    out_of_stock = "OutOfStock"
    insufficient_stock = "InsufficientStock"
    invalid_price = "InvalidPrice"
    component_shortfall = "CompositeComponentShortfall"
    inconsistent_snapshot = "InconsistentSnapshot"
    composite_disabled = "CompositeDisabled"


class QueueState(str, Enum):
    """States of a variant's lot queue as seen by the price quote."""

    lot_active = "LotActive"
    advance_to_next_lot = "AdvanceToNextLot"
    all_lots_exhausted = "AllLotsExhausted"


class PurchaseLot(BaseModel):
    """A batch of stock received at a point in time at a specific unit cost."""

    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    variant_id: str
    supplier: Optional[str] = None
    quantity_received: int = Field(ge=0)
    remaining_quantity: int = Field(ge=0)
    unit_cost: Decimal
    retail_price: Decimal = Decimal("0")
    wholesale_price: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    purchase_date: datetime
    location_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_remaining(self) -> "PurchaseLot":
        if self.remaining_quantity > self.quantity_received:
            raise ValueError(
                f"lot {self.id}: remaining_quantity {self.remaining_quantity} "
                f"exceeds quantity_received {self.quantity_received}"
            )
        return self

    def price_for(self, billing_type: BillingType) -> Decimal:
        if BillingType(billing_type) is BillingType.wholesale:
            return self.wholesale_price
        return self.retail_price


class PendingAllocationItem(BaseModel):
    """Stock tentatively claimed by a document still being edited."""

    model_config = ConfigDict(frozen=True)

    variant_id: str
    lot_id: str
    quantity: int = Field(gt=0)


class CompositeComponent(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    variant_id: str
    quantity_per_unit: int = Field(gt=0)

    @property
    def component_id(self) -> str:
        return f"{self.product_id}-{self.variant_id}"


ExpenseCategory = Literal["labor", "materials", "overhead", "packaging", "shipping", "other"]


class CustomExpense(BaseModel):
    """Fixed per-unit expense attached to a composite product."""

    model_config = ConfigDict(frozen=True)

    name: str
    amount: Decimal
    category: ExpenseCategory = "other"
    description: Optional[str] = None


class CompositeProduct(BaseModel):
    """A sellable bundle of fixed quantities of other variants."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    sku: str = ""
    components: tuple[CompositeComponent, ...] = Field(min_length=1)
    custom_expenses: tuple[CustomExpense, ...] = ()
    base_price: Decimal = Decimal("0")
    disabled: bool = False


class AllocationIssue(BaseModel):
    """Typed error or warning produced while allocating stock."""

    model_config = ConfigDict(frozen=True)

    code: IssueCode
    message: str
    variant_id: Optional[str] = None
    component_id: Optional[str] = None
    lot_id: Optional[str] = None
    required: Optional[int] = None
    available: Optional[int] = None
    shortfall: Optional[int] = None


class AllocationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    lot_id: str
    quantity: int
    unit_cost: Decimal
    line_cost: Decimal


class AllocationResult(BaseModel):
    """Outcome of a FIFO allocation for one variant."""

    model_config = ConfigDict(frozen=True)

    variant_id: str
    requested: int
    entries: tuple[AllocationEntry, ...] = ()
    total_cost: Decimal = Decimal("0")
    can_fulfill: bool
    shortfall: int = 0
    errors: tuple[AllocationIssue, ...] = ()
    warnings: tuple[AllocationIssue, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def allocated_quantity(self) -> int:
        return sum(entry.quantity for entry in self.entries)

    def as_pending(self) -> list[PendingAllocationItem]:
        """Return the entries as claims a later allocation must respect."""

        return [
            PendingAllocationItem(variant_id=self.variant_id, lot_id=entry.lot_id, quantity=entry.quantity)
            for entry in self.entries
        ]


class ComponentBreakdownRow(BaseModel):
    """One component drawn from one lot inside a bundle."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    variant_id: str
    lot_id: str
    quantity: int
    unit_cost: Decimal
    line_cost: Decimal


class BundleCostBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    composite_id: str
    units_requested: int
    component_breakdown: tuple[ComponentBreakdownRow, ...] = ()
    custom_expenses: tuple[CustomExpense, ...] = ()
    total_component_cost: Decimal = Decimal("0")
    total_custom_expenses: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    can_fulfill: bool
    errors: tuple[AllocationIssue, ...] = ()
    warnings: tuple[AllocationIssue, ...] = ()

    def as_pending(self) -> list[PendingAllocationItem]:
        return [
            PendingAllocationItem(variant_id=row.variant_id, lot_id=row.lot_id, quantity=row.quantity)
            for row in self.component_breakdown
        ]


class BundleEstimate(BaseModel):
    """Per-unit cost estimate for a composite product."""

    model_config = ConfigDict(frozen=True)

    composite_id: str
    available_units: int
    breakdown: BundleCostBreakdown
    base_price: Decimal
    estimated_profit: Decimal


class PriceQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant_id: str
    billing_type: BillingType
    lot_id: Optional[str] = None
    price: Decimal = Decimal("0")
    lot_remaining: int = 0
    state: QueueState
    errors: tuple[AllocationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class PriceTransition(BaseModel):
    """Quoted price moved because the active lot ran out."""

    model_config = ConfigDict(frozen=True)

    variant_id: str
    state: QueueState
    from_lot_id: Optional[str] = None
    to_lot_id: Optional[str] = None
    previous_price: Optional[Decimal] = None
    price: Optional[Decimal] = None
    after_quantity: int = 0


class VariantPricing(BaseModel):
    """Pricing reference derived from a variant's lots."""

    model_config = ConfigDict(frozen=True)

    purchase_price: Decimal = Decimal("0")
    retail_price: Decimal = Decimal("0")
    wholesale_price: Decimal = Decimal("0")
    shipping_cost: Decimal = Decimal("0")
    supplier: Optional[str] = None
    purchase_date: Optional[datetime] = None
    remaining_units: int = 0


class SingleItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single"] = "single"
    product_id: str
    variant_id: str
    quantity: int = Field(gt=0)


class CompositeItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["composite"] = "composite"
    composite_id: str
    quantity: int = Field(gt=0)


LineItem = Annotated[Union[SingleItem, CompositeItem], Field(discriminator="kind")]


class StockDeduction(BaseModel):
    """Quantity the commit step must decrement from one lot."""

    model_config = ConfigDict(frozen=True)

    lot_id: str
    variant_id: str
    quantity: int

    @field_validator("quantity")
    @classmethod
    def _positive(cls, value: Any) -> int:
        if value <= 0:
            raise ValueError("deduction quantity must be positive")
        return value
