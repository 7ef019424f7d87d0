from fastapi.testclient import TestClient


class TestCustomerEndpoints:
    """Customer registration and lookup"""

    def test_register_customer_with_initial_block(self, client: TestClient, owner_headers: dict, test_studio):
        response = client.post(
            f"/studios/{test_studio.id}/customers",
            json={
                "first_name": "Eva",
                "last_name": "Bakker",
                "email": "eva@example.com",
                "initial_block": {"total_sessions": 10},
            },
            headers=owner_headers,
        )

        assert response.status_code == 201
        customer = response.json()
        assert customer["studio_id"] == test_studio.id

        summary = client.get(f"/customers/{customer['id']}/session-summary", headers=owner_headers).json()
        assert summary["active_remaining"] == 10

    def test_register_in_foreign_studio_forbidden(
        self, client: TestClient, foreign_owner_headers: dict, test_studio
    ):
        response = client.post(
            f"/studios/{test_studio.id}/customers",
            json={"first_name": "Eva", "last_name": "Bakker"},
            headers=foreign_owner_headers,
        )

        assert response.status_code == 403

    def test_register_in_unknown_studio(self, client: TestClient, auth_headers: dict):
        response = client.post(
            "/studios/999/customers",
            json={"first_name": "Eva", "last_name": "Bakker"},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "NotFound"

    def test_get_customer(self, client: TestClient, customer_headers: dict, test_customer):
        response = client.get(f"/customers/{test_customer.id}", headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["email"] == test_customer.email

    def test_get_unknown_customer(self, client: TestClient, auth_headers: dict):
        response = client.get("/customers/999", headers=auth_headers)

        assert response.status_code == 404
