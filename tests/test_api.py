"""
End-to-end tests through the FastAPI app with the in-memory backend.
"""
from conftest import FIXED_NOW, login


def _order_payload(**overrides):
    payload = {
        "batchId": 1,
        "quantity": 2,
        "phone": "0812345",
        "address": "Jl. Melati 5",
        "delivery": "deliver",
        "payment": "transfer",
    }
    payload.update(overrides)
    return payload


class TestHealth:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_status_reports_storage(self, client):
        body = client.get("/status").json()
        assert body["database"] == "connected"
        assert body["storage"] == "memory"


class TestBatchesApi:
    def test_list_is_public_and_uncached(self, client):
        response = client.get("/batches")
        assert response.status_code == 200
        assert "no-store" in response.headers["cache-control"]
        first = response.json()[0]
        assert first == {
            "id": 1, "name": "Bibit Cabai", "plantDate": "2026-10-01",
            "quantity": 10, "stock": 10, "readyForSale": True,
        }

    def test_catalog_hides_sold_out(self, client):
        entries = client.get("/catalog").json()
        assert [e["batchId"] for e in entries] == [1, 2]
        assert entries[1]["progressPercent"] == 50.0

    def test_catalog_filters(self, client):
        entries = client.get("/catalog", params={"status": "ready", "search": "10-01"}).json()
        assert [e["batchId"] for e in entries] == [1]

    def test_catalog_bad_status(self, client):
        assert client.get("/catalog", params={"status": "wilted"}).status_code == 400

    def test_save_requires_login(self, client):
        response = client.post("/batches", json=[])
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_save_forbidden_for_customer(self, client, customer_headers):
        response = client.post("/batches", json=[], headers=customer_headers)
        assert response.status_code == 403

    def test_admin_replaces_batches(self, client, admin_headers):
        response = client.post(
            "/batches",
            json=[{"id": 5, "plantDate": "2026-10-05", "quantity": 20, "stock": 12}],
            headers=admin_headers,
        )
        assert response.json() == {"success": True, "message": "Data saved successfully", "count": 1}
        [batch] = client.get("/batches").json()
        assert batch["id"] == 5
        assert batch["name"] == "Bibit Cabai"
        assert batch["readyForSale"] is False

    def test_replace_with_invalid_stock(self, client, admin_headers):
        response = client.post(
            "/batches",
            json=[{"id": 5, "plantDate": "2026-10-05", "quantity": 2, "stock": 12}],
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_admin_batch_lifecycle(self, client, admin_headers):
        created = client.post(
            "/batches/new",
            json={"name": "Bibit Tomat", "plantDate": "2026-10-16", "quantity": 40},
            headers=admin_headers,
        )
        assert created.status_code == 201
        batch_id = created.json()["id"]
        assert batch_id == 4

        ready = client.patch(f"/batches/{batch_id}/ready", headers=admin_headers)
        assert ready.json()["readyForSale"] is True

        stock = client.patch(f"/batches/{batch_id}/stock", json={"stock": 25}, headers=admin_headers)
        assert stock.json()["stock"] == 25

        deleted = client.delete(f"/batches/{batch_id}", headers=admin_headers)
        assert deleted.json()["deletedBatch"]["id"] == batch_id
        assert client.delete(f"/batches/{batch_id}", headers=admin_headers).status_code == 404


class TestOrdersApi:
    def test_guest_order(self, client, notifier):
        response = client.post("/order", json=_order_payload(quantity=3))
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["userType"] == "guest"
        assert body["order"]["totalPrice"] == 15000
        assert body["order"]["userId"] == "guest"
        assert body["order"]["status"] == "pending"
        assert body["order"]["orderDate"].startswith(FIXED_NOW.date().isoformat())
        assert len(notifier.messages) == 1

    def test_customer_order_is_authenticated(self, client, customer_headers):
        body = client.post("/order", json=_order_payload(), headers=customer_headers).json()
        assert body["userType"] == "authenticated"
        assert body["order"]["userId"] == "sari"

    def test_invalid_token_orders_as_guest(self, client):
        response = client.post("/order", json=_order_payload(), headers={"Authorization": "Bearer bogus"})
        assert response.json()["userType"] == "guest"

    def test_insufficient_stock_conflict(self, client):
        response = client.post("/order", json=_order_payload(batchId=2, quantity=6))
        assert response.status_code == 409
        assert response.json()["code"] == "InsufficientStock"

    def test_unknown_batch(self, client):
        assert client.post("/order", json=_order_payload(batchId=42)).status_code == 404

    def test_missing_field(self, client):
        response = client.post("/order", json=_order_payload(address=None))
        assert response.status_code == 400
        assert response.json()["code"] == "ValidationError"

    def test_guest_lookup(self, client):
        order_id = client.post("/order", json=_order_payload()).json()["orderId"]
        assert client.get("/orders").json() == []
        by_phone = client.get("/orders", params={"phone": "0812345"}).json()
        assert [o["id"] for o in by_phone] == [order_id]
        by_id = client.get("/orders", params={"orderId": order_id}).json()
        assert [o["id"] for o in by_id] == [order_id]

    def test_customer_and_admin_views(self, client, customer_headers, admin_headers):
        client.post("/order", json=_order_payload())
        client.post("/order", json=_order_payload(quantity=1), headers=customer_headers)

        mine = client.get("/orders", headers=customer_headers).json()
        assert [o["userId"] for o in mine] == ["sari"]
        assert len(client.get("/orders", headers=admin_headers).json()) == 2

        summary = client.get("/orders/summary", headers=admin_headers).json()
        assert summary == {"totalOrders": 2, "totalSpent": 15000, "pendingOrders": 2}

    def test_status_update_permissions(self, client, customer_headers, admin_headers):
        order_id = client.post("/order", json=_order_payload()).json()["orderId"]
        body = {"status": "processing"}

        assert client.put(f"/orders/{order_id}", json=body).status_code == 401
        assert client.put(f"/orders/{order_id}", json=body, headers=customer_headers).status_code == 403

        response = client.put(f"/orders/{order_id}", json=body, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["order"]["status"] == "processing"

    def test_status_update_errors(self, client, admin_headers):
        order_id = client.post("/order", json=_order_payload()).json()["orderId"]
        assert client.put(f"/orders/{order_id}", json={"status": "shipped"}, headers=admin_headers).status_code == 400
        assert client.put("/orders/missing", json={"status": "processing"}, headers=admin_headers).status_code == 404
        assert client.put(f"/orders/{order_id}", json={"status": "completed"}, headers=admin_headers).status_code == 409

    def test_cancel_restocks(self, client, admin_headers):
        order_id = client.post("/order", json=_order_payload(quantity=4)).json()["orderId"]
        client.put(f"/orders/{order_id}", json={"status": "cancelled"}, headers=admin_headers)
        [first] = [b for b in client.get("/batches").json() if b["id"] == 1]
        assert first["stock"] == 10


class TestAuthApi:
    def test_register_then_user(self, client):
        response = client.post("/register", json={"username": "budi", "password": "budi-pass"})
        assert response.status_code == 200
        assert response.json()["user"] == {"username": "budi", "role": "customer"}
        # Session cookie from registration is enough
        assert client.get("/user").json() == {"username": "budi", "role": "customer"}

    def test_register_ignores_requested_role(self, client):
        response = client.post("/register", json={"username": "budi", "password": "pw", "role": "admin"})
        assert response.json()["user"]["role"] == "customer"

    def test_duplicate_registration(self, client):
        client.post("/register", json={"username": "budi", "password": "pw"})
        response = client.post("/register", json={"username": "budi", "password": "pw"})
        assert response.status_code == 409

    def test_login_wrong_password(self, client):
        response = client.post("/login", json={"username": "admin", "password": "nope"})
        assert response.status_code == 401

    def test_admin_login_returns_role(self, client):
        response = client.post("/login", json={"username": "admin", "password": "admin-pass-123"})
        assert response.json()["role"] == "admin"
        assert "leafy.sid" in response.cookies

    def test_user_requires_auth(self, client):
        assert client.get("/user").status_code == 401
        assert client.get("/user", headers={"Authorization": "Bearer bogus"}).status_code == 401

    def test_logout_revokes_token(self, client):
        headers = login(client)
        assert client.post("/logout", headers=headers).status_code == 200
        assert client.get("/user", headers=headers).status_code == 401


class TestOutOfRangeInput:
    def test_superscript_quantity_is_bad_request(self, client):
        response = client.post("/order", json=_order_payload(quantity="²"))
        assert response.status_code == 400

    def test_huge_quantity_is_conflict(self, client):
        response = client.post("/order", json=_order_payload(quantity=10**20))
        assert response.status_code == 409

    def test_huge_batch_id_in_bulk_save(self, client, admin_headers):
        response = client.post(
            "/batches",
            json=[{"id": 10**20, "plantDate": "2026-10-05", "quantity": 20, "stock": 12}],
            headers=admin_headers,
        )
        assert response.status_code == 400
