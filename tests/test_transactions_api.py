# tests/test_transactions_api.py
"""API tests for transactions: status side effects, sale linking, totals."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from conftest import person_payload, transaction_payload, vehicle_payload
from dealership.models.activity_log import ActivityLog


@pytest.fixture
def vehicle(client, auth):
    return client.post("/api/vehicles", json=vehicle_payload(), headers=auth).json()["data"]


@pytest.fixture
def seller(client, auth):
    return client.post("/api/persons", json=person_payload(), headers=auth).json()["data"]


@pytest.fixture
def buyer(client, auth):
    return client.post("/api/persons", json=person_payload(full_name="Kamal Silva"), headers=auth).json()["data"]


def vehicle_status(client, auth, vehicle_id):
    return client.get(f"/api/vehicles/{vehicle_id}", headers=auth).json()["data"]["ownership_status"]


class TestTransactionCreate:
    def test_in_marks_vehicle_in_stock(self, client, auth, vehicle, seller):
        resp = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]), headers=auth)

        assert resp.status_code == 201
        assert vehicle_status(client, auth, vehicle["id"]) == "InStock"

    def test_out_on_not_owned_vehicle_rejected(self, client, auth, vehicle, buyer):
        resp = client.post("/api/transactions",
                           json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT"), headers=auth)

        assert resp.status_code == 400
        assert resp.json()["error"] == "Cannot sell a vehicle that is not owned"
        assert vehicle_status(client, auth, vehicle["id"]) == "NotOwned"

    def test_out_links_to_purchase_and_marks_sold(self, client, auth, vehicle, seller, buyer):
        purchase = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]),
                               headers=auth).json()["data"]
        sale = client.post("/api/transactions",
                           json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT", price=1_300_000,
                                                    date="2025-02-10T10:00:00"),
                           headers=auth).json()["data"]

        assert sale["previous_transaction_id"] == purchase["id"]
        assert sale["vehicle"]["registration_number"] == "CAB-1234"
        assert sale["counterparty"]["full_name"] == "Kamal Silva"
        assert vehicle_status(client, auth, vehicle["id"]) == "Sold"

    def test_purchase_is_linked_at_most_once(self, client, auth, vehicle, seller, buyer):
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]), headers=auth)
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT",
                                                                  date="2025-02-01T00:00:00"), headers=auth)
        second_sale = client.post("/api/transactions",
                                  json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT",
                                                           date="2025-03-01T00:00:00"),
                                  headers=auth).json()["data"]

        assert second_sale["previous_transaction_id"] is None

    def test_total_price_computed(self, client, auth, vehicle, seller):
        body = transaction_payload(vehicle["id"], seller["id"], price=1_000_000,
                                   taxes=[{"name": "VAT", "amount": 150_000, "percentage": 15}],
                                   fees=[{"name": "Transfer", "amount": 5_000}],
                                   discount=25_000)
        data = client.post("/api/transactions", json=body, headers=auth).json()["data"]

        assert data["total_price"] == 1_130_000

    def test_negative_total_rejected(self, client, auth, vehicle, seller):
        body = transaction_payload(vehicle["id"], seller["id"], price=100, discount=500)
        assert client.post("/api/transactions", json=body, headers=auth).status_code == 400

    def test_unknown_vehicle_or_counterparty_is_404(self, client, auth, vehicle, seller):
        assert client.post("/api/transactions", json=transaction_payload(999, seller["id"]),
                           headers=auth).status_code == 404
        assert client.post("/api/transactions", json=transaction_payload(vehicle["id"], 999),
                           headers=auth).status_code == 404

    def test_one_activity_row_per_create(self, client, auth, vehicle, seller, db):
        txn = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]),
                          headers=auth).json()["data"]

        rows = db.query(ActivityLog).filter(ActivityLog.entity_type == "Transaction").all()
        assert len(rows) == 1
        assert rows[0].entity_id == txn["id"]
        assert rows[0].diff["vehicle_ownership_status"] == ["NotOwned", "InStock"]


class TestTransactionUpdateDelete:
    def test_update_recomputes_total(self, client, auth, vehicle, seller):
        txn = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]),
                          headers=auth).json()["data"]

        resp = client.patch(f"/api/transactions/{txn['id']}", json={"discount": 100_000}, headers=auth)

        assert resp.status_code == 200
        assert resp.json()["data"]["total_price"] == 900_000

    def test_direction_cannot_be_changed(self, client, auth, vehicle, seller):
        txn = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]),
                          headers=auth).json()["data"]

        client.patch(f"/api/transactions/{txn['id']}", json={"direction": "OUT"}, headers=auth)
        assert client.get(f"/api/transactions/{txn['id']}", headers=auth).json()["data"]["direction"] == "IN"

    def test_delete_sale_restores_in_stock(self, client, auth, vehicle, seller, buyer):
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]), headers=auth)
        sale = client.post("/api/transactions",
                           json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT",
                                                    date="2025-02-01T00:00:00"),
                           headers=auth).json()["data"]

        assert client.delete(f"/api/transactions/{sale['id']}", headers=auth).status_code == 200
        assert vehicle_status(client, auth, vehicle["id"]) == "InStock"

    def test_delete_only_purchase_returns_to_not_owned(self, client, auth, vehicle, seller):
        txn = client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]),
                          headers=auth).json()["data"]

        client.delete(f"/api/transactions/{txn['id']}", headers=auth)

        assert vehicle_status(client, auth, vehicle["id"]) == "NotOwned"
        assert client.get(f"/api/transactions/{txn['id']}", headers=auth).status_code == 404
        assert client.delete(f"/api/transactions/{txn['id']}", headers=auth).status_code == 404

    def test_list_filters_by_direction(self, client, auth, vehicle, seller, buyer):
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]), headers=auth)
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT",
                                                                  date="2025-02-01T00:00:00"), headers=auth)

        body = client.get(f"/api/transactions?vehicle_id={vehicle['id']}&direction=OUT", headers=auth).json()
        assert body["pagination"]["total"] == 1
        assert body["data"][0]["direction"] == "OUT"

    def test_list_pagination_reports_pages(self, client, auth, vehicle, seller, buyer):
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], seller["id"]), headers=auth)
        client.post("/api/transactions", json=transaction_payload(vehicle["id"], buyer["id"], direction="OUT",
                                                                  date="2025-02-01T00:00:00"), headers=auth)

        body = client.get("/api/transactions?limit=1", headers=auth).json()

        assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2, "pages": 2}
