import pytest
from fastapi.testclient import TestClient

from app.models import BlockStatus


class TestSessionBlockEndpoints:
    """Session block purchase, consumption and refund through the API"""

    def test_purchase_first_block(self, client: TestClient, owner_headers: dict, test_customer):
        response = client.post(
            f"/customers/{test_customer.id}/sessions",
            json={"total_sessions": 10, "payment_method": "card", "notes": "Intro package"},
            headers=owner_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "active"
        assert data["total_sessions"] == 10
        assert data["used_sessions"] == 0
        assert data["remaining_sessions"] == 10
        assert data["queue_position"] == 1
        assert data["payment_method"] == "card"

    def test_purchase_queues_second_block(self, client: TestClient, auth_headers: dict, test_customer):
        client.post(f"/customers/{test_customer.id}/sessions", json={"total_sessions": 10}, headers=auth_headers)

        response = client.post(
            f"/customers/{test_customer.id}/sessions", json={"total_sessions": 20}, headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["status"] == "pending"
        assert response.json()["queue_position"] == 2

    def test_purchase_rejects_non_positive_total(self, client: TestClient, auth_headers: dict, test_customer):
        response = client.post(
            f"/customers/{test_customer.id}/sessions", json={"total_sessions": 0}, headers=auth_headers,
        )

        assert response.status_code == 422

    def test_purchase_unauthorized(self, client: TestClient, test_customer):
        response = client.post(f"/customers/{test_customer.id}/sessions", json={"total_sessions": 10})

        assert response.status_code == 401

    def test_purchase_by_customer_forbidden(self, client: TestClient, customer_headers: dict, test_customer):
        response = client.post(
            f"/customers/{test_customer.id}/sessions", json={"total_sessions": 10}, headers=customer_headers,
        )

        assert response.status_code == 403

    def test_purchase_by_foreign_owner_forbidden(
        self, client: TestClient, foreign_owner_headers: dict, test_customer
    ):
        response = client.post(
            f"/customers/{test_customer.id}/sessions", json={"total_sessions": 10}, headers=foreign_owner_headers,
        )

        assert response.status_code == 403

    def test_unknown_customer(self, client: TestClient, auth_headers: dict):
        response = client.post("/customers/999/sessions", json={"total_sessions": 10}, headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NotFound"

    def test_consume_with_rollover(self, client: TestClient, owner_headers: dict, test_customer, queued_blocks):
        _, block_b, block_c = queued_blocks

        response = client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 25, "reason": "Group class"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["consumed_from"] == block_b.id
        assert data["rolled_over_to"] == block_c.id
        assert data["new_remaining"] == 5
        assert data["total_remaining"] == 5
        assert [a["consumed"] for a in data["allocations"]] == [20, 5]

    def test_consume_more_than_available(
        self, client: TestClient, owner_headers: dict, test_customer, queued_blocks
    ):
        response = client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 31},
            headers=owner_headers,
        )

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error"] == "InsufficientSessions"
        assert detail["requested"] == 31
        assert detail["available"] == 30

    def test_consume_without_blocks(self, client: TestClient, owner_headers: dict, test_customer):
        response = client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 1},
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "NoActiveBlock"

    def test_consume_zero_sessions_rejected(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        response = client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 0},
            headers=owner_headers,
        )

        assert response.status_code == 422

    def test_consume_by_customer_forbidden(
        self, client: TestClient, customer_headers: dict, test_customer, active_block
    ):
        response = client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 1},
            headers=customer_headers,
        )

        assert response.status_code == 403

    def test_refund_to_block(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 3},
            headers=owner_headers,
        )

        response = client.post(
            f"/customers/{test_customer.id}/refund-sessions",
            json={"sessions_to_refund": 2, "block_id": active_block.id, "reason": "Class cancelled"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["block_id"] == active_block.id
        assert data["refunded"] == 2
        assert data["new_remaining"] == 9
        assert data["status"] == "active"

    def test_refund_more_than_used(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        response = client.post(
            f"/customers/{test_customer.id}/refund-sessions",
            json={"sessions_to_refund": 1, "block_id": active_block.id},
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidState"

    def test_refund_requires_block_id(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        response = client.post(
            f"/customers/{test_customer.id}/refund-sessions",
            json={"sessions_to_refund": 1},
            headers=owner_headers,
        )

        assert response.status_code == 422

    def test_list_session_blocks(self, client: TestClient, auth_headers: dict, test_customer, queued_blocks):
        block_a, block_b, block_c = queued_blocks

        response = client.get(f"/customers/{test_customer.id}/session-blocks", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [b["id"] for b in data["blocks"]] == [block_b.id, block_c.id, block_a.id]
        assert data["active"]["id"] == block_b.id
        assert [b["id"] for b in data["pending"]] == [block_c.id]
        assert [b["id"] for b in data["history"]] == [block_a.id]

    def test_customer_can_read_own_blocks(
        self, client: TestClient, customer_headers: dict, test_customer, active_block
    ):
        response = client.get(f"/customers/{test_customer.id}/session-blocks", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["active"]["id"] == active_block.id

    def test_customer_cannot_read_other_customer(
        self, client: TestClient, customer_headers: dict, second_customer
    ):
        response = client.get(f"/customers/{second_customer.id}/session-blocks", headers=customer_headers)

        assert response.status_code == 403

    def test_foreign_owner_cannot_read(
        self, client: TestClient, foreign_owner_headers: dict, test_customer, active_block
    ):
        response = client.get(f"/customers/{test_customer.id}/session-blocks", headers=foreign_owner_headers)

        assert response.status_code == 403

    def test_update_pending_block(self, client: TestClient, owner_headers: dict, test_customer, queued_blocks):
        _, _, block_c = queued_blocks

        response = client.put(
            f"/customers/{test_customer.id}/session-blocks/{block_c.id}",
            json={"total_sessions": 20, "notes": "Upgraded"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json()["total_sessions"] == 20
        assert response.json()["notes"] == "Upgraded"

    def test_update_rejects_downgrade(self, client: TestClient, owner_headers: dict, test_customer, queued_blocks):
        _, _, block_c = queued_blocks

        response = client.put(
            f"/customers/{test_customer.id}/session-blocks/{block_c.id}",
            json={"total_sessions": 5},
            headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidState"

    def test_delete_active_block_promotes_next(
        self, client: TestClient, owner_headers: dict, test_customer, queued_blocks
    ):
        _, block_b, block_c = queued_blocks

        response = client.delete(
            f"/customers/{test_customer.id}/session-blocks/{block_b.id}", headers=owner_headers,
        )

        assert response.status_code == 200
        assert response.json()["id"] == block_b.id
        assert response.json()["promoted_block_id"] == block_c.id

        listing = client.get(f"/customers/{test_customer.id}/session-blocks", headers=owner_headers).json()
        assert listing["active"]["id"] == block_c.id
        assert listing["active"]["status"] == BlockStatus.ACTIVE.value

    def test_delete_used_block_rejected(
        self, client: TestClient, owner_headers: dict, test_customer, queued_blocks
    ):
        block_a, _, _ = queued_blocks

        response = client.delete(
            f"/customers/{test_customer.id}/session-blocks/{block_a.id}", headers=owner_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "InvalidState"

    def test_delete_unknown_block(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        response = client.delete(
            f"/customers/{test_customer.id}/session-blocks/{active_block.id + 100}", headers=owner_headers,
        )

        assert response.status_code == 404

    def test_session_summary(self, client: TestClient, customer_headers: dict, test_customer, queued_blocks):
        response = client.get(f"/customers/{test_customer.id}/session-summary", headers=customer_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["active_block_id"] == queued_blocks[1].id
        assert data["active_remaining"] == 20
        assert data["pending_remaining"] == 10
        assert data["total_remaining"] == 30

    def test_session_transactions(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        client.post(
            f"/customers/{test_customer.id}/consume-sessions",
            json={"sessions_to_consume": 2, "reason": "Private session"},
            headers=owner_headers,
        )

        response = client.get(f"/customers/{test_customer.id}/session-transactions", headers=owner_headers)

        assert response.status_code == 200
        data = response.json()
        assert [(t["transaction_type"], t["amount"]) for t in data] == [("deduction", -2), ("purchase", 10)]
        assert data[0]["reason"] == "Private session"
        assert data[0]["created_by_id"] == 10

    @pytest.mark.parametrize("limit", [0, 501])
    def test_session_transactions_limit_bounds(
        self, client: TestClient, owner_headers: dict, test_customer, limit
    ):
        response = client.get(
            f"/customers/{test_customer.id}/session-transactions",
            params={"limit": limit},
            headers=owner_headers,
        )

        assert response.status_code == 422

    def test_get_session_block(self, client: TestClient, customer_headers: dict, test_customer, queued_blocks):
        _, block_b, _ = queued_blocks

        response = client.get(
            f"/customers/{test_customer.id}/session-blocks/{block_b.id}", headers=customer_headers,
        )

        assert response.status_code == 200
        assert response.json()["id"] == block_b.id
        assert response.json()["status"] == "active"
        assert response.json()["remaining_sessions"] == 20

    def test_get_unknown_session_block(self, client: TestClient, owner_headers: dict, test_customer, active_block):
        response = client.get(
            f"/customers/{test_customer.id}/session-blocks/{active_block.id + 100}", headers=owner_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NotFound"
