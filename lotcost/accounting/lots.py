"""Read-only purchase lot snapshot index."""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from .. import utils
from ..types import PurchaseLot


def fifo_key(lot: PurchaseLot) -> Tuple:
    return (utils.as_utc(lot.purchase_date), lot.id)


class LotSnapshot:
    """Lots grouped per ``(product_id, variant_id)`` in FIFO order.

    Only lots with stock left are indexed, matching what the persistence
    layer hands over. The snapshot never changes after construction.
    """

    def __init__(self, lots: Iterable[PurchaseLot] = ()) -> None:
        grouped: Dict[Tuple[str, str], List[PurchaseLot]] = defaultdict(list)
        for lot in lots:
            if lot.remaining_quantity <= 0:
                continue
            grouped[(lot.product_id, lot.variant_id)].append(lot)
        self._lots: Dict[Tuple[str, str], Tuple[PurchaseLot, ...]] = {
            key: tuple(sorted(items, key=fifo_key)) for key, items in grouped.items()
        }

    def lots_for(self, product_id: str, variant_id: str) -> List[PurchaseLot]:
        return list(self._lots.get((product_id, variant_id), ()))

    def variants(self) -> List[Tuple[str, str]]:
        return sorted(self._lots)

    def all_lots(self) -> List[PurchaseLot]:
        items: List[PurchaseLot] = []
        for lots in self._lots.values():
            items.extend(lots)
        return items

    def __len__(self) -> int:
        return sum(len(lots) for lots in self._lots.values())
