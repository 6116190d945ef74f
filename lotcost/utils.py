"""Utility helpers shared across modules."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
import json
from pathlib import Path
from typing import Any, Iterable, Iterator

try:  # pragma: no cover - optional dependency for speed
    import orjson
except Exception:  # pragma: no cover - fallback during tests
    orjson = None  # type: ignore


MONEY_QUANTUM = Decimal("0.01")


def json_dumps(data: Any) -> str:
    if orjson is not None:  # pragma: no cover - executed when orjson available
        return orjson.dumps(data, default=str).decode("utf-8")
    return json.dumps(data, default=str)


def json_loads(data: str) -> Any:
    if orjson is not None:  # pragma: no cover
        return orjson.loads(data)
    return json.loads(data)


def write_jsonl(path: Path, records: Iterable[Any], *, mode: str = "a") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open(mode, encoding="utf-8") as fh:
        for item in records:
            fh.write(json_dumps(item))
            fh.write("\n")


def read_jsonl(path: Path) -> Iterator[Any]:
    if not path.exists():
        return iter(())
    return _iter_jsonl(path)


def _iter_jsonl(path: Path) -> Iterator[Any]:
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            yield json_loads(line)


def quantize_money(value: Decimal, quantum: Decimal = MONEY_QUANTUM) -> Decimal:
    return value.quantize(quantum)


def money_quantum(places: int) -> Decimal:
    """Return the quantizer for ``places`` decimal places."""

    if places < 0:
        raise ValueError("money places must be non-negative")
    return Decimal(10) ** -places


def as_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC so lots from mixed sources sort together."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)
