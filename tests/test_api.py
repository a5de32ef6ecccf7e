from datetime import timedelta
from decimal import Decimal

import pytest

from cmms_iut.core.auth.service import AuthService

from conftest import SOURCE, DESTINATION, THIRD

API = "/api/v1"


@pytest.fixture
def requester(auth_headers):
    return auth_headers("alice", "requester", 10)


@pytest.fixture
def approver(auth_headers):
    return auth_headers("bob", "approver", 20)


@pytest.fixture
def admin(auth_headers):
    return auth_headers("carol", "inventory_admin")


def _create(client, headers, group_id, quantity=20, **overrides):
    payload = {
        "shared_group_id": group_id,
        "from_material_number": SOURCE,
        "to_material_number": DESTINATION,
        "quantity": quantity,
    }
    payload.update(overrides)
    return client.post(f"{API}/transfers", json=payload, headers=headers)


class TestHealth:
    def test_root_and_health(self, client):
        assert client.get("/").status_code == 200
        assert client.get("/health").json()["status"] == "healthy"
        assert client.get(f"{API}/health").status_code == 200
        assert client.get(f"{API}/transfers/health").json()["service"] == "transfers"

    def test_responses_carry_process_time(self, client):
        assert "x-process-time" in client.get("/health").headers


class TestAuth:
    def test_missing_token(self, client, bearing_group):
        assert client.get(f"{API}/transfers").status_code in (401, 403)

    def test_invalid_token(self, client, bearing_group):
        response = client.get(f"{API}/transfers", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_expired_token(self, client, bearing_group):
        token = AuthService.create_access_token(
            {"sub": "alice", "role": "requester"}, expires_delta=timedelta(minutes=-1)
        )
        response = client.get(f"{API}/transfers", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_unknown_role_rejected(self, client, auth_headers, bearing_group):
        response = client.get(f"{API}/transfers", headers=auth_headers("mallory", "superuser"))
        assert response.status_code == 401

    def test_requester_cannot_approve(self, client, requester, bearing_group):
        transfer_id = _create(client, requester, bearing_group.id).json()["transfer"]["id"]
        response = client.post(f"{API}/transfers/{transfer_id}/approve", headers=requester)
        assert response.status_code == 403

    def test_requester_cannot_create_groups(self, client, requester):
        response = client.post(
            f"{API}/shared-materials/groups",
            json={"name": "Filter Z", "oem_part_number": "PAR-1234"},
            headers=requester
        )
        assert response.status_code == 403


class TestTransferEndpoints:
    def test_full_workflow(self, client, requester, approver, bearing_group):
        created = _create(client, requester, bearing_group.id, unit_cost="12.00")
        assert created.status_code == 201
        transfer = created.json()["transfer"]
        assert transfer["status"] == "pending"
        assert transfer["status_label"] == "Pending Approval"
        assert transfer["requested_by"] == "alice"
        assert Decimal(transfer["total_value"]) == Decimal("240.00")
        assert transfer["allowed_actions"] == ["approve", "reject", "cancel"]

        approved = client.post(f"{API}/transfers/{transfer['id']}/approve", headers=approver)
        assert approved.status_code == 200
        assert approved.json()["transfer"]["approved_by"] == "bob"

        completed = client.post(f"{API}/transfers/{transfer['id']}/complete", headers=approver)
        assert completed.status_code == 200
        assert completed.json()["transfer"]["status"] == "completed"
        assert completed.json()["transfer"]["allowed_actions"] == []

        source = client.get(f"{API}/shared-materials/materials/{SOURCE}", headers=requester).json()
        destination = client.get(f"{API}/shared-materials/materials/{DESTINATION}", headers=requester).json()
        assert source["material"]["on_hand"] == 30
        assert destination["material"]["on_hand"] == 25

    def test_zero_quantity_is_validation_error(self, client, requester, bearing_group):
        response = _create(client, requester, bearing_group.id, quantity=0)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "validation_error"
        assert client.get(f"{API}/transfers", headers=requester).json()["total"] == 0

    def test_quantity_above_on_hand(self, client, requester, bearing_group):
        response = _create(client, requester, bearing_group.id, quantity=500)
        assert response.status_code == 400
        assert response.json()["details"]["on_hand"] == 50

    def test_malformed_body_is_rejected_by_schema(self, client, requester, bearing_group):
        response = _create(client, requester, bearing_group.id, quantity="many")
        assert response.status_code == 422

    def test_boolean_quantity_is_rejected_by_schema(self, client, requester, bearing_group):
        response = _create(client, requester, bearing_group.id, quantity=True)
        assert response.status_code == 422
        assert client.get(f"{API}/transfers", headers=requester).json()["total"] == 0

    def test_unit_cost_other_than_source_cost(self, client, requester, bearing_group):
        response = _create(client, requester, bearing_group.id, unit_cost="0.01")
        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "validation_error"
        assert Decimal(body["details"]["source_unit_cost"]) == Decimal("12.00")
        assert client.get(f"{API}/transfers", headers=requester).json()["total"] == 0

    def test_repeated_approve_is_conflict(self, client, requester, approver, bearing_group):
        transfer_id = _create(client, requester, bearing_group.id).json()["transfer"]["id"]
        client.post(f"{API}/transfers/{transfer_id}/approve", headers=approver)

        response = client.post(f"{API}/transfers/{transfer_id}/approve", headers=approver)
        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "invalid_state_transition"
        assert body["details"]["current_status"] == "approved"

    def test_insufficient_stock_on_complete(self, client, requester, approver, admin, bearing_group):
        first = _create(client, requester, bearing_group.id, quantity=40).json()["transfer"]["id"]
        second = _create(client, requester, bearing_group.id, quantity=20, to_material_number=THIRD).json()["transfer"]["id"]
        for transfer_id in (first, second):
            client.post(f"{API}/transfers/{transfer_id}/approve", headers=approver)

        assert client.post(f"{API}/transfers/{first}/complete", headers=admin).status_code == 200
        response = client.post(f"{API}/transfers/{second}/complete", headers=admin)

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "insufficient_stock"
        assert body["details"] == {"material_number": SOURCE, "requested": 20, "on_hand": 10}
        detail = client.get(f"{API}/transfers/{second}", headers=requester).json()
        assert detail["transfer"]["status"] == "approved"

    def test_reject_with_reason(self, client, requester, approver, bearing_group):
        transfer_id = _create(client, requester, bearing_group.id).json()["transfer"]["id"]
        response = client.post(
            f"{API}/transfers/{transfer_id}/reject",
            json={"reason": "Reservado para parada de planta"},
            headers=approver
        )
        assert response.status_code == 200
        assert response.json()["transfer"]["rejection_reason"] == "Reservado para parada de planta"

    def test_cancel_without_body(self, client, requester, bearing_group):
        transfer_id = _create(client, requester, bearing_group.id).json()["transfer"]["id"]
        response = client.post(f"{API}/transfers/{transfer_id}/cancel", headers=requester)
        assert response.status_code == 200
        assert response.json()["transfer"]["cancelled_by"] == "alice"

    def test_unknown_transfer_is_not_found(self, client, approver, bearing_group):
        response = client.post(f"{API}/transfers/999/approve", headers=approver)
        assert response.status_code == 404
        assert response.json()["error_code"] == "not_found"

    def test_list_filters_and_summary(self, client, requester, approver, bearing_group):
        first = _create(client, requester, bearing_group.id, quantity=1).json()["transfer"]["id"]
        second = _create(client, requester, bearing_group.id, quantity=2, from_material_number=THIRD).json()["transfer"]["id"]
        client.post(f"{API}/transfers/{first}/reject", headers=approver)

        listing = client.get(f"{API}/transfers", params={"view": "active"}, headers=requester).json()
        assert [t["id"] for t in listing["transfers"]] == [second]
        assert listing["filters"]["view"] == "active"

        by_department = client.get(f"{API}/transfers", params={"department": 30}, headers=requester).json()
        assert by_department["total"] == 1

        searched = client.get(f"{API}/transfers", params={"search": "bearing"}, headers=requester).json()
        assert searched["total"] == 2

        bad_view = client.get(f"{API}/transfers", params={"view": "archive"}, headers=requester)
        assert bad_view.status_code == 400

        summary = client.get(f"{API}/transfers/summary", headers=requester).json()
        assert summary["counts"]["rejected"] == 1
        assert summary["open"] == 1
        assert summary["total"] == 2


class TestSharedMaterialEndpoints:
    def test_list_and_get_groups(self, client, requester, bearing_group):
        listing = client.get(f"{API}/shared-materials/groups", headers=requester).json()
        assert listing["total"] == 1
        assert listing["groups"][0]["name"] == "Bearing X"

        group = client.get(f"{API}/shared-materials/groups/{bearing_group.id}", headers=requester).json()["group"]
        assert [m["material_number"] for m in group["linked_materials"]] == [SOURCE, DESTINATION, THIRD]

    def test_unknown_group(self, client, requester):
        response = client.get(f"{API}/shared-materials/groups/77", headers=requester)
        assert response.status_code == 404

    def test_admin_creates_group_and_links_material(self, client, admin):
        created = client.post(
            f"{API}/shared-materials/groups",
            json={"name": "Filter Z", "oem_part_number": "PAR-1234", "manufacturer": "Parker"},
            headers=admin
        )
        assert created.status_code == 201
        group_id = created.json()["group"]["id"]

        linked = client.post(
            f"{API}/shared-materials/groups/{group_id}/materials",
            json={"material_number": "1000777", "name": "Filter Z", "department_code": 1, "on_hand": 3},
            headers=admin
        )
        assert linked.status_code == 201
        assert linked.json()["group"]["total_on_hand"] == 3

    def test_stats(self, client, requester, bearing_group):
        _create(client, requester, bearing_group.id)
        stats = client.get(f"{API}/shared-materials/stats", headers=requester).json()
        assert stats["total_groups"] == 1
        assert stats["open_transfers"] == 1
