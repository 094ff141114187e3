from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from salonbooks.exceptions import ReferentialError, ValidationError
from salonbooks.services.inventory import (
    InventoryValuationEngine, average_cost, fold_movements, record_manual_movement, signed_quantity
)


def movement(movement_type, quantity, cost, product_id=1):
    return SimpleNamespace(product_id=product_id, movement_type=movement_type,
                           quantity=Decimal(str(quantity)), cost_per_unit=Decimal(str(cost)))


class TestFold:

    def test_in_then_out_at_same_cost(self):
        positions = fold_movements([movement("IN", 10, 5), movement("OUT", 4, 5)])
        position = positions[1]

        assert position.quantity == Decimal("6")
        assert position.value == Decimal("30")
        assert average_cost(position.quantity, position.value, 0) == Decimal("5")

    def test_weighted_average_across_purchases(self):
        position = fold_movements([movement("IN", 10, 4), movement("IN", 10, 6)])[1]
        assert average_cost(position.quantity, position.value, 0) == Decimal("5")

    def test_negative_adjustment_reduces_stock(self):
        position = fold_movements([movement("IN", 10, 5), movement("ADJUSTMENT", -3, 5)])[1]
        assert position.quantity == Decimal("7")
        assert position.value == Decimal("35")

    def test_positions_are_kept_per_product(self):
        positions = fold_movements([movement("IN", 2, 3, product_id=1), movement("IN", 5, 1, product_id=2)])
        assert positions[1].quantity == Decimal("2")
        assert positions[2].quantity == Decimal("5")

    def test_empty_stock_falls_back_to_static_cost(self):
        assert average_cost(Decimal("0"), Decimal("0"), Decimal("20")) == Decimal("20")

    def test_signed_quantity(self):
        assert signed_quantity("IN", 3) == Decimal("3")
        assert signed_quantity("OUT", 3) == Decimal("-3")
        assert signed_quantity("ADJUSTMENT", -2) == Decimal("-2")


class TestManualMovements:

    def test_in_then_out_valuation(self, uow, user, product_id, location_id):
        record_manual_movement(uow, user, product_id, location_id, "IN", 10, 5, date(2024, 3, 1))
        record_manual_movement(uow, user, product_id, location_id, "OUT", 4, 5, date(2024, 3, 2))

        row = next(r for r in InventoryValuationEngine(uow).valuation() if r["product_id"] == product_id)
        assert row["quantity_on_hand"] == Decimal("6")
        assert row["avg_cost"] == Decimal("5")
        assert row["inventory_value"] == Decimal("30")

    def test_product_without_movements_uses_static_cost(self, uow, product_id):
        row = next(r for r in InventoryValuationEngine(uow).valuation() if r["product_id"] == product_id)
        assert row["quantity_on_hand"] == 0
        assert row["avg_cost"] == Decimal("20")
        assert row["inventory_value"] == 0

    def test_as_of_replays_history_up_to_the_date(self, uow, user, product_id, location_id):
        record_manual_movement(uow, user, product_id, location_id, "IN", 10, 5, date(2024, 3, 1))
        record_manual_movement(uow, user, product_id, location_id, "IN", 10, 7, date(2024, 4, 1))

        engine = InventoryValuationEngine(uow)
        march = next(r for r in engine.valuation(as_of=date(2024, 3, 31)) if r["product_id"] == product_id)
        now = next(r for r in engine.valuation() if r["product_id"] == product_id)

        assert march["quantity_on_hand"] == Decimal("10")
        assert march["avg_cost"] == Decimal("5")
        assert now["quantity_on_hand"] == Decimal("20")
        assert now["avg_cost"] == Decimal("6")

    def test_running_balance_matches_full_fold(self, uow, user, product_id, location_id):
        record_manual_movement(uow, user, product_id, location_id, "IN", 12, 4.5, date(2024, 3, 1))
        record_manual_movement(uow, user, product_id, location_id, "OUT", 5, 4.5, date(2024, 3, 3))
        record_manual_movement(uow, user, product_id, location_id, "ADJUSTMENT", -1, 4.5, date(2024, 3, 4))
        record_manual_movement(uow, user, product_id, location_id, "IN", 6, 5.25, date(2024, 3, 5))

        balance = uow.inventory.get_balance(product_id, location_id)
        folded = fold_movements(uow.inventory.movements())[product_id]

        assert balance.quantity_on_hand == folded.quantity
        assert balance.inventory_value == folded.value

    def test_rebuild_balances_restores_running_totals(self, uow, user, product_id, location_id):
        record_manual_movement(uow, user, product_id, location_id, "IN", 10, 5, date(2024, 3, 1))
        record_manual_movement(uow, user, product_id, location_id, "OUT", 3, 5, date(2024, 3, 2))

        balance = uow.inventory.get_balance(product_id, location_id)
        balance.quantity_on_hand = 999
        uow.commit()

        with uow:
            assert InventoryValuationEngine(uow).rebuild_balances() == 1

        balance = uow.inventory.get_balance(product_id, location_id)
        assert balance.quantity_on_hand == Decimal("7")
        assert balance.inventory_value == Decimal("35")

    @pytest.mark.parametrize("movement_type, quantity, cost", [
        ("IN", 0, 5),
        ("OUT", -1, 5),
        ("ADJUSTMENT", 0, 5),
        ("IN", 1, -5),
        ("TRANSFER", 1, 5),
    ])
    def test_invalid_movements_are_rejected(self, uow, user, product_id, location_id, movement_type, quantity, cost):
        with pytest.raises(ValidationError):
            record_manual_movement(uow, user, product_id, location_id, movement_type, quantity, cost, date(2024, 3, 1))

    def test_unknown_product_is_rejected(self, uow, user, location_id):
        with pytest.raises(ReferentialError):
            record_manual_movement(uow, user, 99999, location_id, "IN", 1, 1, date(2024, 3, 1))

    def test_unknown_reference_type_is_rejected(self, uow, user, product_id, location_id):
        with pytest.raises(ValidationError):
            record_manual_movement(uow, user, product_id, location_id, "IN", 1, 1, date(2024, 3, 1),
                                   reference_type="STOCKTAKE")
        assert uow.inventory.movements() == []


class TestInventoryApi:

    def test_movements_valuation_and_history(self, client, auth_headers, product_id, location_id):
        for payload in (
            {"movement_type": "IN", "quantity": 10, "cost_per_unit": 5, "date": "2024-03-01"},
            {"movement_type": "OUT", "quantity": 4, "cost_per_unit": 5, "date": "2024-03-02"},
        ):
            response = client.post("/api/inventory/movements", headers=auth_headers, json={
                "product_id": product_id, "location_id": location_id, **payload,
            })
            assert response.status_code == 201
            assert response.json()["journal_entry_id"] is None

        valuation = client.get("/api/inventory/valuation", headers=auth_headers).json()
        row = next(r for r in valuation["rows"] if r["product_id"] == product_id)
        assert row["sku"] == "SKU-001"
        assert row["quantity_on_hand"] == 6.0
        assert row["avg_cost"] == 5.0
        assert row["inventory_value"] == 30.0
        assert valuation["total_value"] == 30.0

        history = client.get(f"/api/inventory/movement-history?product_id={product_id}", headers=auth_headers).json()
        assert [m["movement_type"] for m in history] == ["IN", "OUT"]

        elsewhere = client.get(f"/api/inventory/movement-history?location_id={location_id + 1}", headers=auth_headers)
        assert elsewhere.json() == []

    def test_sale_and_purchase_feed_valuation(self, client, auth_headers, accounts, product_id, location_id):
        client.post("/api/transactions/purchase-bills", headers=auth_headers, json={
            "number": "BILL-1", "date": "2024-03-01", "vendor_name": "Beauty Wholesale Ltd",
            "ap_account_id": accounts["2000"],
            "items": [{"product_id": product_id, "location_id": location_id, "quantity": 10, "unit_cost": 20}],
        })
        client.post("/api/transactions/sales-invoices", headers=auth_headers, json={
            "number": "INV-1", "date": "2024-03-05", "customer_name": "Jane Doe",
            "ar_account_id": accounts["1200"],
            "items": [{"product_id": product_id, "location_id": location_id, "quantity": 2, "unit_price": 50}],
        })

        valuation = client.get("/api/inventory/valuation", headers=auth_headers).json()
        row = next(r for r in valuation["rows"] if r["product_id"] == product_id)
        assert row["quantity_on_hand"] == 8.0
        assert row["inventory_value"] == 160.0

    def test_unknown_movement_type_is_400(self, client, auth_headers, product_id, location_id):
        response = client.post("/api/inventory/movements", headers=auth_headers, json={
            "product_id": product_id, "location_id": location_id,
            "movement_type": "TRANSFER", "quantity": 1, "cost_per_unit": 5, "date": "2024-03-01",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

    def test_rebuild_needs_admin(
self, client, auth_headers, owner_headers, seeded):
        assert client.post("/api/inventory/rebuild-balances", headers=auth_headers).status_code == 403
        response = client.post("/api/inventory/rebuild-balances", headers=owner_headers)
        assert response.status_code == 200
        assert response.json() == {"balances": 0}
