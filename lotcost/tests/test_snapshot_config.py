from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from lotcost import utils
from lotcost.config import load_settings
from lotcost.snapshot import SnapshotError, load_snapshot
from lotcost.types import BillingType

FIXTURE = Path(__file__).with_name("fixtures_snapshot.yaml")


def test_load_yaml_snapshot() -> None:
    snap = load_snapshot(FIXTURE)
    assert [lot.id for lot in snap.lots] == ["A", "B", "Y1"]
    assert snap.composites[0].custom_expenses[0].amount == Decimal("1.50")
    catalog = snap.catalog()
    assert [lot.id for lot in catalog.lots_for("P1", "V1")] == ["A", "B"]
    assert catalog.composite("KIT").base_price == Decimal("40")


def test_load_jsonl_snapshot(tmp_path) -> None:
    path = tmp_path / "snap.jsonl"
    utils.write_jsonl(
        path,
        [
            {
                "type": "lot",
                "id": "A",
                "product_id": "P1",
                "variant_id": "V1",
                "quantity_received": 3,
                "remaining_quantity": 3,
                "unit_cost": "2",
                "purchase_date": "2024-01-01T00:00:00Z",
            },
            {"type": "pending", "variant_id": "V1", "lot_id": "A", "quantity": 1},
        ],
    )
    snap = load_snapshot(path)
    assert len(snap.lots) == 1
    assert snap.pending[0].quantity == 1


def test_unknown_record_type(tmp_path) -> None:
    path = tmp_path / "snap.jsonl"
    utils.write_jsonl(path, [{"type": "invoice"}])
    with pytest.raises(SnapshotError):
        load_snapshot(path)


def test_invalid_snapshot_is_rejected(tmp_path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("lots:\n  - id: A\n    remaining_quantity: -1\n", encoding="utf-8")
    with pytest.raises(SnapshotError, match="invalid snapshot"):
        load_snapshot(path)
    with pytest.raises(SnapshotError):
        load_snapshot(tmp_path / "missing.yaml")


def test_settings_from_yaml(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("LOTCOST_BILLING_TYPE", raising=False)
    config = tmp_path / "config.yaml"
    config.write_text("billing_type: wholesale\nmoney_places: 3\nlog_level: info\n", encoding="utf-8")
    settings = load_settings(config)
    assert settings.billing_type is BillingType.wholesale
    assert settings.money_places == 3
    assert settings.log_level == "INFO"


def test_environment_overrides_yaml(tmp_path, monkeypatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("billing_type: wholesale\n", encoding="utf-8")
    monkeypatch.setenv("LOTCOST_BILLING_TYPE", "retail")
    assert load_settings(config).billing_type is BillingType.retail
    assert load_settings(config, {"billing_type": "wholesale"}).billing_type is BillingType.wholesale


def test_money_quantum() -> None:
    assert utils.money_quantum(2) == Decimal("0.01")
    with pytest.raises(ValueError):
        utils.money_quantum(-1)


def test_broken_jsonl_is_rejected(tmp_path) -> None:
    path = tmp_path / "snap.jsonl"
    path.write_text("{not json\n", encoding="utf-8")
    with pytest.raises(SnapshotError, match="cannot parse snapshot"):
        load_snapshot(path)


def test_jsonl_record_must_be_an_object(tmp_path) -> None:
    path = tmp_path / "snap.jsonl"
    path.write_text("[1, 2]\n", encoding="utf-8")
    with pytest.raises(SnapshotError, match="must be an object"):
        load_snapshot(path)


def test_broken_yaml_is_rejected(tmp_path) -> None:
    path = tmp_path / "snap.yaml"
    path.write_text("lots: [unclosed\n", encoding="utf-8")
    with pytest.raises(SnapshotError, match="cannot parse snapshot"):
        load_snapshot(path)
