# tests/test_persons_api.py
"""API tests for persons: name rules, identifier uniqueness, blank normalization."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import person_payload


class TestPersonValidation:
    def test_individual_requires_full_name(self, client, auth):
        resp = client.post("/api/persons", json=person_payload(full_name=None), headers=auth)
        assert resp.status_code == 400

    def test_dealer_requires_business_name(self, client, auth):
        resp = client.post("/api/persons", json=person_payload(type="Dealer", full_name=None), headers=auth)
        assert resp.status_code == 400

        resp = client.post("/api/persons", json=person_payload(type="Dealer", business_name="Auto Hub"),
                           headers=auth)
        assert resp.status_code == 201

    def test_phone_list_must_not_be_empty(self, client, auth):
        assert client.post("/api/persons", json=person_payload(phone=[]), headers=auth).status_code == 400


class TestPersonUniqueness:
    def test_duplicate_nic_conflicts(self, client, auth):
        client.post("/api/persons", json=person_payload(nic_or_passport="901234567V"), headers=auth)
        resp = client.post("/api/persons", json=person_payload(full_name="Other", nic_or_passport="901234567V"),
                           headers=auth)

        assert resp.status_code == 409
        assert resp.json()["details"]["field"] == "nic_or_passport"

    def test_blank_identifiers_never_collide(self, client, auth):
        first = client.post("/api/persons", json=person_payload(nic_or_passport="", email=""), headers=auth)
        second = client.post("/api/persons", json=person_payload(nic_or_passport=" ", email=""), headers=auth)

        assert first.status_code == 201
        assert second.status_code == 201
        assert second.json()["data"]["nic_or_passport"] is None

    def test_update_blank_identifier_stored_as_null(self, client, auth):
        person = client.post("/api/persons", json=person_payload(email="a@example.com"), headers=auth).json()["data"]

        resp = client.patch(f"/api/persons/{person['id']}", json={"email": ""}, headers=auth)

        assert resp.status_code == 200
        assert resp.json()["data"]["email"] is None

    def test_update_into_taken_identifier_conflicts(self, client, auth):
        client.post("/api/persons", json=person_payload(company_reg_no="PV-1"), headers=auth)
        other = client.post("/api/persons", json=person_payload(full_name="B"), headers=auth).json()["data"]

        resp = client.patch(f"/api/persons/{other['id']}", json={"company_reg_no": "PV-1"}, headers=auth)
        assert resp.status_code == 409

    def test_identifier_reusable_after_delete(self, client, auth):
        person = client.post("/api/persons", json=person_payload(nic_or_passport="X1"), headers=auth).json()["data"]
        client.delete(f"/api/persons/{person['id']}", headers=auth)

        resp = client.post("/api/persons", json=person_payload(nic_or_passport="X1"), headers=auth)
        assert resp.status_code == 201


class TestPersonList:
    def test_search_by_phone_and_type_filter(self, client, auth):
        client.post("/api/persons", json=person_payload(phone=["0719998888"]), headers=auth)
        client.post("/api/persons", json=person_payload(type="Company", full_name=None, business_name="Lanka Motors",
                                                        phone=["0112223333"]), headers=auth)

        by_phone = client.get("/api/persons?q=99988", headers=auth).json()["data"]
        assert [p["full_name"] for p in by_phone] == ["Nimal Perera"]

        companies = client.get("/api/persons?type=Company", headers=auth).json()["data"]
        assert [p["business_name"] for p in companies] == ["Lanka Motors"]

    def test_soft_deleted_person_is_not_found(self, client, auth):
        person = client.post("/api/persons", json=person_payload(), headers=auth).json()["data"]
        client.delete(f"/api/persons/{person['id']}", headers=auth)

        assert client.get(f"/api/persons/{person['id']}", headers=auth).status_code == 404
        assert client.delete(f"/api/persons/{person['id']}", headers=auth).status_code == 404
