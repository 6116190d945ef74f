"""Load lot, composite and pending-item snapshots from disk."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from . import utils
from .accounting.bundles import SnapshotCatalog
from .types import CompositeProduct, PendingAllocationItem, PurchaseLot


class SnapshotError(ValueError):
    pass


_BUCKETS = {"lot": "lots", "composite": "composites", "pending": "pending"}


@dataclass
class Snapshot:
    lots: List[PurchaseLot] = field(default_factory=list)
    composites: List[CompositeProduct] = field(default_factory=list)
    pending: List[PendingAllocationItem] = field(default_factory=list)

    def catalog(self) -> SnapshotCatalog:
        return SnapshotCatalog.build(self.lots, self.composites)


def _read(path: Path) -> Dict[str, Any]:
    try:
        if path.suffix == ".jsonl":
            return _read_jsonl(path)
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except SnapshotError:
        raise
    except (ValueError, yaml.YAMLError) as exc:
        raise SnapshotError(f"{path}: cannot parse snapshot: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise SnapshotError(f"{path}: snapshot must be a mapping")
    return raw


def _read_jsonl(path: Path) -> Dict[str, Any]:
    # one record per line, tagged by a "type" key
    data: Dict[str, Any] = {"lots": [], "composites": [], "pending": []}
    for record in utils.read_jsonl(path):
        if not isinstance(record, dict):
            raise SnapshotError(f"{path}: every record must be an object")
        kind = record.pop("type", "lot")
        bucket = _BUCKETS.get(kind) if isinstance(kind, str) else None
        if bucket is None:
            raise SnapshotError(f"{path}: unknown record type {kind!r}")
        data[bucket].append(record)
    return data


def load_snapshot(path: Path) -> Snapshot:
    """Parse a YAML/JSON file or JSON Lines stream into validated models."""
    if not path.exists():
        raise SnapshotError(f"Snapshot file {path} does not exist")
    data = _read(path)
    try:
        return Snapshot(
            lots=[PurchaseLot.model_validate(item) for item in data.get("lots") or []],
            composites=[CompositeProduct.model_validate(item) for item in data.get("composites") or []],
            pending=[PendingAllocationItem.model_validate(item) for item in data.get("pending") or []],
        )
    except ValidationError as exc:
        raise SnapshotError(f"{path}: invalid snapshot: {exc}") from exc
