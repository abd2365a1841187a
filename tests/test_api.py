"""End-to-end tests through the HTTP and WebSocket surface."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from qrmenu.main import create_app
from qrmenu.models import Order, PushSubscription, QRCode, QRType, User, UserRole
from qrmenu.services.printer.mock import MockPrinterService

from conftest import auth_headers, seed_user

TOKEN = "5d0c7f3e-2f0b-4a1d-9c55-0e7f3b6a9a10"
CUSTOMER_PHONE = "9876543210"


@pytest.fixture
def api_table_qr(sync_db, api_owner) -> QRCode:
    qr = QRCode(
        user_id=api_owner.id,
        name="Table 5",
        type=QRType.TABLE,
        table_number="5",
        token=TOKEN,
        url=f"http://menu.test/m/spice-garden/q/{TOKEN}",
        qr_code_data="data:image/png;base64,ZmFrZQ==",
    )
    sync_db.add(qr)
    sync_db.commit()
    return qr


def order_payload(**overrides) -> dict:
    payload = {
        "token": TOKEN,
        "customerName": "Ravi",
        "customerPhone": CUSTOMER_PHONE,
        "items": [{"name": "Paneer Tikka", "price": 300, "quantity": 1}],
        "totalAmount": 300,
    }
    payload.update(overrides)
    return payload


def place_order(client, **overrides) -> dict:
    response = client.post("/api/orders", json=order_payload(**overrides))
    assert response.status_code == 201, response.text
    return response.json()["data"]


# =============================================================================
# ROOT & HEALTH
# =============================================================================

class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["health"] == "/health"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "operational"
        assert body["database"] == "healthy"
        assert body["smsService"] == "healthy"
        assert body["pushService"] == "healthy"
        assert body["realtimeConnections"] == 0


# =============================================================================
# AUTH & ERROR SHAPE
# =============================================================================

class TestAuth:

    def test_missing_token(self, client):
        response = client.get("/api/orders/owner/list")

        assert response.status_code == 401
        assert response.json()["success"] is False
        assert response.json()["message"] == "Not authenticated"

    def test_invalid_token(self, client):
        response = client.get("/api/orders/owner/list", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_unknown_user(self, client):
        response = client.get("/api/qr", headers=auth_headers(User(id="ghost")))
        assert response.status_code == 401
        assert response.json()["message"] == "User not found"

    def test_deactivated_user(self, client, sync_db):
        user = seed_user(sync_db, name="Old Owner", role="owner", is_active=False)
        response = client.get("/api/qr", headers=auth_headers(user))

        assert response.status_code == 403
        assert response.json()["message"] == "Account is deactivated"

    def test_staff_without_owner_is_server_error(self, client, sync_db):
        user = seed_user(sync_db, name="Orphan", role="staff")
        response = client.get("/api/qr", headers=auth_headers(user))

        assert response.status_code == 500
        assert response.json()["message"] == "Staff account is not linked to an owner"


class TestErrorShape:

    def test_request_validation_is_400(self, client):
        response = client.post("/api/orders", json={})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        fields = {error["field"] for error in body["error"]}
        assert {"token", "customerName", "customerPhone", "totalAmount"} <= fields

    @pytest.mark.parametrize(
        "body",
        [
            '"totalAmount": Infinity, "items": [{"name": "Tea", "price": 40, "quantity": 1}]',
            '"totalAmount": NaN, "items": [{"name": "Tea", "price": 40, "quantity": 1}]',
            '"totalAmount": 40, "items": [{"name": "Tea", "price": Infinity, "quantity": 1}]',
        ],
    )
    def test_non_finite_amounts_are_rejected(self, client, sync_db, api_table_qr, body):
        raw = f'{{"token": "{TOKEN}", "customerName": "Ravi", "customerPhone": "{CUSTOMER_PHONE}", {body}}}'

        response = client.post("/api/orders", content=raw, headers={"Content-Type": "application/json"})

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"
        assert sync_db.scalar(select(func.count(Order.id))) == 0

    def test_domain_error_detail_in_development(self, client, owner_headers, api_table_qr):
        order = place_order(client)
        client.put(f"/api/orders/{order['id']}/status", json={"status": "ready"}, headers=owner_headers)

        response = client.put(
            f"/api/orders/{order['id']}/status", json={"status": "preparing"}, headers=owner_headers
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "Cannot change order status from ready to preparing",
            "error": {"current": "ready", "target": "preparing"},
        }


# =============================================================================
# ORDERS
# =============================================================================

class TestOrderFlow:

    def test_place_and_walk_through_kitchen(self, client, owner_headers, api_table_qr):
        order = place_order(client, notes="Less spicy")

        assert order["status"] == "pending"
        assert order["tableNumber"] == "5"
        assert order["orderNumber"] == order["id"][-8:].upper()
        assert order["notes"] == "Less spicy"

        response = client.put(
            f"/api/orders/{order['id']}/status", json={"status": "preparing"}, headers=owner_headers
        )
        assert response.json()["data"]["status"] == "preparing"

        response = client.put(f"/api/orders/{order['id']}/ready", headers=owner_headers)
        assert response.json()["message"] == "Order marked as ready and customer notified"
        assert response.json()["data"]["status"] == "ready"

        response = client.put(f"/api/orders/{order['id']}/complete", headers=owner_headers)
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["completedAt"] is not None

    def test_public_order_lookup(self, client, api_table_qr):
        order = place_order(client)
        response = client.get(f"/api/orders/{order['id']}")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["restaurant"] == {"name": "Spice Garden", "email": "owner@spicegarden.test"}
        assert data["totalAmount"] == 300

    def test_unknown_order(self, client):
        response = client.get("/api/orders/does-not-exist")
        assert response.status_code == 404
        assert response.json()["message"] == "Order not found"

    def test_unknown_token(self, client, api_owner):
        response = client.post("/api/orders", json=order_payload(token="missing"))
        assert response.status_code == 404
        assert response.json()["message"] == "QR code not found or inactive"

    def test_customer_orders_today(self, client, api_table_qr):
        order = place_order(client)
        place_order(client, customerPhone="9000000001")

        response = client.get(f"/api/orders/customer/{CUSTOMER_PHONE}")

        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["id"] == order["id"]
        assert body["data"][0]["restaurantName"] == "Spice Garden"

    def test_staff_sees_owner_orders(self, client, staff_headers, api_table_qr):
        order = place_order(client)
        response = client.get("/api/orders/owner/list", headers=staff_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["orders"][0]["id"] == order["id"]

    def test_status_filter(self, client, owner_headers, api_table_qr):
        first = place_order(client)
        place_order(client)
        client.put(f"/api/orders/{first['id']}/status", json={"status": "cancelled"}, headers=owner_headers)

        cancelled = client.get("/api/orders/owner/list?status=cancelled", headers=owner_headers).json()["data"]
        everything = client.get("/api/orders/owner/list?status=all", headers=owner_headers).json()["data"]

        assert [o["id"] for o in cancelled["orders"]] == [first["id"]]
        assert everything["total"] == 2

    def test_staff_of_other_owner_sees_disjoint_orders(self, client, sync_db, api_other_owner, api_table_qr):
        other_token = "trattoria-counter"
        sync_db.add(QRCode(
            user_id=api_other_owner.id,
            name="Counter",
            token=other_token,
            url=f"http://menu.test/m/trattoria/q/{other_token}",
            qr_code_data="data:image/png;base64,ZmFrZQ==",
        ))
        sync_db.commit()
        other_staff = seed_user(
            sync_db,
            name="Waiter Wes",
            role=UserRole.STAFF,
            owner_id=api_other_owner.id,
            restaurant_name=api_other_owner.restaurant_name,
        )

        ours = {place_order(client)["id"], place_order(client)["id"]}
        theirs = place_order(client, token=other_token, customerPhone="9000000002")

        response = client.get("/api/orders/owner/list", headers=auth_headers(other_staff))

        data = response.json()["data"]
        listed = {order["id"] for order in data["orders"]}
        assert listed == {theirs["id"]}
        assert listed.isdisjoint(ours)
        assert data["total"] == 1

    def test_other_tenant_cannot_touch_order(self, client, api_other_owner, api_table_qr):
        order = place_order(client)
        headers = auth_headers(api_other_owner)

        response = client.put(f"/api/orders/{order['id']}/status", json={"status": "preparing"}, headers=headers)
        assert response.status_code == 403

        response = client.delete(f"/api/orders/{order['id']}", headers=headers)
        assert response.status_code == 403

        listing = client.get("/api/orders/owner/list", headers=headers).json()["data"]
        assert listing["total"] == 0

    def test_delete(self, client, owner_headers, api_table_qr):
        order = place_order(client)

        response = client.delete(f"/api/orders/{order['id']}", headers=owner_headers)
        assert response.json()["message"] == "Order deleted successfully"
        assert client.get(f"/api/orders/{order['id']}").status_code == 404


class TestNotifications:

    def test_every_transition_texts_the_customer(self, app_services, api_owner, api_table_qr):
        headers = auth_headers(api_owner)
        with TestClient(create_app(app_services)) as client:
            order = place_order(client)
            for path, body in (("status", {"status": "preparing"}), ("ready", None), ("complete", None)):
                client.put(f"/api/orders/{order['id']}/{path}", json=body, headers=headers)

        # Shutdown drains pending notifications
        recipients = [phone for phone, _ in app_services.sms.outbox]
        assert recipients.count("+919876543210") == 4
        assert recipients.count("+919800000001") == 1

    def test_owner_dashboard_receives_new_order(self, client, api_owner, api_table_qr):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "owner:join", "data": {"ownerId": api_owner.id}})
            assert ws.receive_json() == {"event": "joined", "data": {"rooms": [f"owner:{api_owner.id}"]}}

            order = place_order(client)
            message = ws.receive_json()

        assert message["event"] == "notification"
        assert message["data"]["type"] == "new_order"
        assert message["data"]["data"]["orderId"] == order["id"]

    def test_customer_tracking_receives_ready(self, client, owner_headers, api_table_qr):
        order = place_order(client)
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "customer:join", "data": {"orderId": order["id"], "phone": CUSTOMER_PHONE}})
            assert ws.receive_json()["event"] == "joined"

            client.put(f"/api/orders/{order['id']}/ready", headers=owner_headers)
            # One frame per room: the order room and the phone room
            messages = [ws.receive_json(), ws.receive_json()]

        assert {m["data"]["type"] for m in messages} == {"order_ready"}


class TestWebSocketProtocol:

    def test_ping(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "ping"})
            assert ws.receive_json() == {"event": "pong"}

    def test_invalid_join(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "owner:join", "data": {}})
            assert ws.receive_json() == {"event": "error", "data": {"message": "owner:join requires ownerId"}}

    def test_unknown_event(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "dance"})
            assert ws.receive_json()["data"]["message"] == "Unknown event: dance"

    def test_non_object_frame(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_json(["owner:join"])
            assert ws.receive_json()["event"] == "error"

    def test_open_connection_is_counted(self, client, app_services):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"event": "ping"})
            ws.receive_json()
            assert app_services.directory.connection_count == 1
            assert client.get("/health").json()["realtimeConnections"] == 1


# =============================================================================
# QR CODES
# =============================================================================

class TestQRCodes:

    def test_generate_scan_and_list(self, client, owner_headers, api_owner):
        response = client.post(
            "/api/qr/generate",
            json={"name": "Table 9", "type": "table", "tableNumber": "9"},
            headers=owner_headers,
        )
        assert response.status_code == 201
        qr = response.json()["data"]
        assert qr["url"] == f"http://menu.test/m/spice-garden/q/{qr['token']}"
        assert qr["qrCodeData"].startswith("data:image/png;base64,")

        scan = client.post(f"/api/qr/scan/{qr['token']}")
        assert scan.json()["data"] == {"url": qr["url"], "tableNumber": "9"}

        listing = client.get("/api/qr", headers=owner_headers).json()
        assert listing["count"] == 1
        assert listing["data"][0]["scans"] == 1

    def test_duplicate_table(self, client, owner_headers, api_table_qr):
        response = client.post(
            "/api/qr/generate",
            json={"name": "Again", "type": "table", "tableNumber": "5"},
            headers=owner_headers,
        )
        assert response.status_code == 409
        assert response.json()["message"] == "QR code for Table 5 already exists"

    def test_scan_unknown_token(self, client):
        assert client.post("/api/qr/scan/nope").status_code == 404

    def test_other_tenant_cannot_read_or_delete(self, client, api_other_owner, api_table_qr):
        headers = auth_headers(api_other_owner)
        assert client.get(f"/api/qr/{api_table_qr.id}", headers=headers).status_code == 403
        assert client.delete(f"/api/qr/{api_table_qr.id}", headers=headers).status_code == 403

    def test_delete(self, client, owner_headers, api_table_qr):
        response = client.delete(f"/api/qr/{api_table_qr.id}", headers=owner_headers)

        assert response.json()["message"] == "QR Code deleted successfully"
        assert client.post(f"/api/qr/scan/{TOKEN}").status_code == 404


# =============================================================================
# MENU
# =============================================================================

class TestMenu:

    def test_create_and_public_menu(self, client, owner_headers, api_table_qr):
        response = client.post(
            "/api/menu/items",
            json={"name": "Masala Chai", "price": 40, "category": "Beverages", "isVeg": True},
            headers=owner_headers,
        )
        assert response.status_code == 201
        item = response.json()["data"]
        assert item["category"] == "beverages"
        assert item["currency"] == "INR"

        response = client.get(f"/api/menu/public/spice-garden?token={TOKEN}")
        menu = response.json()["data"]
        assert menu["restaurant"]["name"] == "Spice Garden"
        assert menu["tableNumber"] == "5"
        assert list(menu["categories"]) == ["beverages"]

    def test_availability_hides_item(self, client, owner_headers, api_owner):
        item = client.post(
            "/api/menu/items",
            json={"name": "Kulfi", "price": 90, "category": "desserts"},
            headers=owner_headers,
        ).json()["data"]

        response = client.patch(
            f"/api/menu/items/{item['id']}/availability", json={"isAvailable": False}, headers=owner_headers
        )
        assert response.json()["message"] == "Item marked as unavailable"
        assert client.get("/api/menu/public/spice-garden").json()["data"]["items"] == []

    def test_bulk_save_and_delete_all(self, client, owner_headers, api_owner):
        response = client.put(
            "/api/menu",
            json={"items": [
                {"name": "Dal Makhani", "price": 240, "category": "mains"},
                {"name": "Garlic Naan", "price": 60, "category": "sides"},
            ]},
            headers=owner_headers,
        )
        assert response.json()["count"] == 2

        response = client.delete("/api/menu/items", headers=owner_headers)
        assert response.json()["data"] == 2
        assert client.get("/api/menu/owner", headers=owner_headers).json()["count"] == 0

    def test_upload_unsupported_type(self, client, owner_headers, api_owner):
        response = client.post(
            "/api/menu/upload",
            files={"file": ("menu.txt", b"Tea 40.00", "text/plain")},
            headers=owner_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Unsupported file type. Please upload an image or PDF"

    def test_upload_image_without_ai_needs_manual_entry(self, client, owner_headers, api_owner):
        response = client.post(
            "/api/menu/upload",
            files={"file": ("menu.png", b"\x89PNG\r\n", "image/png")},
            headers=owner_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Could not extract menu items automatically. Please add items manually."
        assert body["data"]["items"] == []
        assert body["data"]["needsManualReview"] is True


# =============================================================================
# STAFF & INVENTORY
# =============================================================================

class TestStaffApi:

    def test_owner_manages_staff(self, client, owner_headers, api_owner):
        response = client.post(
            "/api/staff",
            json={"name": "Priya", "pin": "123456", "email": "priya@spicegarden.test", "staffRole": "kitchen"},
            headers=owner_headers,
        )
        assert response.status_code == 201
        staff = response.json()["data"]
        assert staff["ownerId"] == api_owner.id
        assert staff["staffRole"] == "kitchen"
        assert "passwordHash" not in staff

        response = client.put(f"/api/staff/{staff['id']}", json={"isActive": False}, headers=owner_headers)
        assert response.json()["data"]["isActive"] is False

        assert client.get("/api/staff", headers=owner_headers).json()["count"] == 1
        assert client.delete(f"/api/staff/{staff['id']}", headers=owner_headers).status_code == 200

    def test_bad_pin(self, client, owner_headers):
        response = client.post("/api/staff", json={"name": "Priya", "pin": "12", "phone": "9000000009"},
                               headers=owner_headers)
        assert response.status_code == 400

    def test_staff_cannot_manage_staff(self, client, staff_headers):
        response = client.get("/api/staff", headers=staff_headers)
        assert response.status_code == 403
        assert response.json()["message"] == "Only restaurant owners can manage staff"


class TestInventoryApi:

    def test_crud(self, client, owner_headers, staff_headers):
        response = client.post(
            "/api/inventory", json={"name": "Milk", "quantity": 2, "unit": "l"}, headers=owner_headers
        )
        assert response.status_code == 201
        item = response.json()["data"]
        assert item["isLowStock"] is True

        duplicate = client.post("/api/inventory", json={"name": "milk"}, headers=owner_headers)
        assert duplicate.status_code == 409

        # Staff work on the owner's stock
        response = client.put(f"/api/inventory/{item['id']}", json={"quantity": 50}, headers=staff_headers)
        assert response.json()["data"]["isLowStock"] is False

        assert client.get("/api/inventory", headers=owner_headers).json()["count"] == 1
        assert client.delete(f"/api/inventory/{item['id']}", headers=owner_headers).status_code == 200


# =============================================================================
# PUSH, PRINTER, ANALYTICS
# =============================================================================

class TestPushApi:

    def test_public_key(self, client):
        assert client.get("/api/push/public-key").json()["data"] == "mock-vapid-public-key"

    def test_subscribe_is_idempotent_per_endpoint(self, client, sync_db):
        subscription = {"endpoint": "https://push.test/abc", "keys": {"p256dh": "key", "auth": "secret"}}

        first = client.post("/api/push/subscribe", json={**subscription, "phone": CUSTOMER_PHONE})
        second = client.post("/api/push/subscribe", json={**subscription, "userId": "owner-1"})

        assert first.status_code == second.status_code == 201
        assert sync_db.scalar(select(func.count(PushSubscription.id))) == 1
        stored = sync_db.scalars(select(PushSubscription)).one()
        assert stored.user_id == "owner-1"
        assert stored.phone is None

    def test_subscribe_requires_keys(self, client):
        response = client.post("/api/push/subscribe", json={"endpoint": "https://push.test/abc"})
        assert response.status_code == 400


class TestPrinterApi:

    def test_print_bill(self, client, app_services, owner_headers, api_table_qr):
        order = place_order(client)
        response = client.post(f"/api/printer/print/{order['id']}", headers=owner_headers)

        assert response.status_code == 200
        assert response.json()["data"]["printer"] == "mock"
        assert len(app_services.printer.jobs) == 1
        assert any("Bill #:" in line for line in app_services.printer.jobs[0])

    def test_paper_width_override(self, client, app_services, owner_headers, api_table_qr):
        order = place_order(client)
        client.post(
            f"/api/printer/print/{order['id']}",
            json={"printerSettings": {"paperWidth": 48}},
            headers=owner_headers,
        )
        assert len(app_services.printer.jobs[0][0]) == 48

    def test_other_tenant_forbidden(self, client, api_other_owner, api_table_qr):
        order = place_order(client)
        response = client.post(f"/api/printer/print/{order['id']}", headers=auth_headers(api_other_owner))
        assert response.status_code == 403

    def test_printer_failure_is_502(self, client, app_services, owner_headers, api_table_qr):
        order = place_order(client)
        app_services.printer = MockPrinterService(fail=True)

        response = client.post(f"/api/printer/print/{order['id']}", headers=owner_headers)

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to print bill"
        assert response.json()["error"] == "Simulated printer failure"


class TestAnalyticsApi:

    def test_stats_history_and_customers(self, client, owner_headers, api_table_qr):
        order = place_order(client)
        client.put(f"/api/orders/{order['id']}/complete", headers=owner_headers)
        place_order(client, customerPhone="9000000001", totalAmount=150)

        stats = client.get("/api/analytics/stats?period=all", headers=owner_headers).json()["data"]
        assert stats["period"] == "all"
        assert stats["orders"]["total"] == 2
        assert stats["revenue"]["total"] == 300
        assert stats["revenue"]["pending"] == 150
        assert stats["qrStats"]["totalCodes"] == 1

        history = client.get("/api/analytics/orders?page=1&limit=1", headers=owner_headers).json()["data"]
        assert history["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}
        assert history["orders"][0]["customerPhone"] == "9000000001"

        customers = client.get("/api/analytics/customers", headers=owner_headers).json()["data"]
        assert [c["phone"] for c in customers] == [CUSTOMER_PHONE, "9000000001"]


class TestDashboardApi:

    def test_overview_for_owner_and_staff(self, client, owner_headers, staff_headers, api_table_qr):
        first = place_order(client)
        place_order(client, customerPhone="9000000001", totalAmount=150)
        cancelled = place_order(client, customerPhone="9000000002", totalAmount=80)
        client.put(f"/api/orders/{cancelled['id']}/status", json={"status": "cancelled"}, headers=owner_headers)
        client.put(f"/api/orders/{first['id']}/ready", headers=owner_headers)
        client.post(f"/api/qr/scan/{TOKEN}")
        client.post(f"/api/qr/scan/{TOKEN}")

        for headers in (owner_headers, staff_headers):
            stats = client.get("/api/dashboard/stats", headers=headers).json()["data"]["stats"]
            assert stats["totalOrders"] == 3
            assert stats["todayOrders"] == 3
            assert stats["pendingOrders"] == 1
            assert stats["todayRevenue"] == 450
            assert stats["totalScans"] == 2
            assert stats["scanGrowth"] == "+100%"

        activity = client.get("/api/dashboard/activity", headers=owner_headers).json()["data"]["activity"]
        assert activity[0]["name"] == "Table 5"
        assert activity[0]["scans"] == 2

        summary = client.get("/api/dashboard/qr-summary", headers=staff_headers).json()["data"]
        assert summary["total"] == 1
        assert summary["qrCodes"][0]["tableNumber"] == "5"

    def test_other_tenant_sees_empty_dashboard(self, client, api_other_owner, api_table_qr):
        place_order(client)
        headers = auth_headers(api_other_owner)

        stats = client.get("/api/dashboard/stats", headers=headers).json()["data"]["stats"]
        assert stats["totalOrders"] == 0
        assert stats["totalQRCodes"] == 0
        assert client.get("/api/dashboard/qr-summary", headers=headers).json()["data"]["total"] == 0

    def test_requires_authentication(self, client):
        assert client.get("/api/dashboard/stats").status_code == 401
