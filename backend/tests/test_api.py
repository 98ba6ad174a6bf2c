"""HTTP surface: status codes, error bodies and one order over the wire"""

API = "/api/v1"


def _order_payload(lines):
    return {
        "customer_id": 7,
        "customer_name": "Acme",
        "items": [
            {"product_ref": ref, "product_name": f"Item {ref}", "quantity": quantity, "unit_price": price}
            for ref, quantity, price in lines
        ],
        "shipping_address": {
            "street": "1 Main St", "city": "Springfield", "state": "IL", "zip_code": "62701", "country": "US",
        },
    }


async def _create_product(client, auth, code):
    resp = await client.post(f"{API}/products/", headers=auth("warehouse"), json={
        "product_code": code, "product_name": f"Widget {code}", "unit_price": "10.00",
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


async def _receive(client, auth, product_id, batch_number, quantity):
    return await client.post(f"{API}/inventory/batches", headers=auth("warehouse"), json={
        "product_id": product_id,
        "batch_number": batch_number,
        "quantity": quantity,
        "received_date": "2026-01-05T00:00:00",
    })


async def test_missing_principal_is_401(client):
    resp = await client.get(f"{API}/orders/")
    assert resp.status_code == 401
    assert resp.json() == {"detail": "Not authenticated"}


async def test_unknown_profile_is_404(client):
    resp = await client.get(f"{API}/orders/", headers={"X-User-Id": "ghost"})
    assert resp.status_code == 404
    assert resp.json() == {"detail": "User profile not found"}


async def test_role_denial_is_403(client, auth):
    resp = await client.post(f"{API}/inventory/batches", headers=auth("sales"), json={
        "product_id": 1, "batch_number": "LOT-2", "quantity": 1, "received_date": "2026-01-05T00:00:00",
    })
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only warehouse managers or admins can manage inventory"


async def test_unknown_order_is_404(client, auth):
    resp = await client.get(f"{API}/orders/999", headers=auth("accountant"))
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Order not found"}


async def test_order_without_items_is_422(client, auth):
    resp = await client.post(f"{API}/orders/", headers=auth("sales"), json=_order_payload([]))
    assert resp.status_code == 422


async def test_acme_order_over_http(client, auth):
    widget_a = await _create_product(client, auth, "WA")
    widget_b = await _create_product(client, auth, "WB")
    assert (await _receive(client, auth, widget_a["id"], "LOT-A", 10)).status_code == 200
    assert (await _receive(client, auth, widget_b["id"], "LOT-B", 1)).status_code == 200

    resp = await client.post(f"{API}/orders/", headers=auth("sales"), json=_order_payload([
        (widget_a["id"], 5, "10.00"),
        (widget_b["id"], 2, "20.00"),
    ]))
    assert resp.status_code == 200, resp.text
    order = resp.json()
    assert order["total_amount"] == 90.0
    assert order["status"] == "pending"
    assert order["customer_id"] == "7"
    assert order["items"][0]["product_ref"] == str(widget_a["id"])

    resp = await client.post(f"{API}/orders/{order['id']}/approve", headers=auth("accountant"))
    assert resp.status_code == 400
    assert resp.json() == {"detail": "Insufficient stock for Widget WB. In stock: 1, requested: 2"}

    stock = await client.get(f"{API}/products/{widget_a['id']}", headers=auth("sales"))
    assert stock.json()["stock_quantity"] == 10

    assert (await _receive(client, auth, widget_b["id"], "LOT-B2", 2)).status_code == 200
    resp = await client.post(f"{API}/orders/{order['id']}/approve", headers=auth("accountant"))
    assert resp.status_code == 200, resp.text
    assert resp.json()["status"] == "approved"

    resp = await client.post(f"{API}/orders/{order['id']}/approve", headers=auth("accountant"))
    assert resp.status_code == 409
    assert resp.json() == {"detail": "Only pending orders can be approved"}

    availability = await client.get(f"{API}/inventory/products/{widget_b['id']}/availability", headers=auth("warehouse"))
    assert availability.json()["stock_quantity"] == 1

    inbox = await client.get(f"{API}/notifications/", headers=auth("warehouse"))
    assert [n["title"] for n in inbox.json()] == ["Order Ready for Processing"]


async def test_duplicate_batch_is_409(client, auth):
    product = await _create_product(client, auth, "DUP")
    assert (await _receive(client, auth, product["id"], "LOT-D", 1)).status_code == 200
    resp = await _receive(client, auth, product["id"], "LOT-D", 1)
    assert resp.status_code == 409
    assert resp.json() == {"detail": "Batch number already exists"}


async def test_notifications_tolerate_missing_profile(client):
    headers = {"X-User-Id": "not-registered"}
    assert (await client.get(f"{API}/notifications/", headers=headers)).json() == []
    assert (await client.get(f"{API}/notifications/unread-count", headers=headers)).json() == {"count": 0}


async def test_self_registration(client):
    headers = {"X-User-Id": "fresh-1"}
    resp = await client.put(f"{API}/profiles/", headers=headers, json={
        "user_id": "fresh-1", "email": "fresh@example.com", "name": "Fresh",
    })
    assert resp.status_code == 200, resp.text
    assert resp.json()["role"] == "sales"

    me = await client.get(f"{API}/profiles/me", headers=headers)
    assert me.json()["name"] == "Fresh"

    resp = await client.put(f"{API}/profiles/", headers={"X-User-Id": "fresh-2"}, json={
        "user_id": "fresh-2", "email": "f2@example.com", "name": "Sneaky", "role": "admin",
    })
    assert resp.status_code == 403


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_expiry_sweep_on_demand(client, auth):
    product = await _create_product(client, auth, "EXP")
    resp = await client.post(f"{API}/inventory/batches", headers=auth("warehouse"), json={
        "product_id": product["id"],
        "batch_number": "LOT-STALE",
        "quantity": 4,
        "received_date": "2020-01-01T00:00:00",
        "expiry_date": "2020-06-01T00:00:00",
    })
    assert resp.status_code == 200, resp.text

    assert (await client.post(f"{API}/inventory/batches/expire", headers=auth("sales"))).status_code == 403

    resp = await client.post(f"{API}/inventory/batches/expire", headers=auth("warehouse"))
    assert resp.status_code == 200
    assert [(b["batch_number"], b["status"]) for b in resp.json()] == [("LOT-STALE", "expired")]

    again = await client.post(f"{API}/inventory/batches/expire", headers=auth("warehouse"))
    assert again.json() == []


async def test_product_history_over_http(client, auth):
    product = await _create_product(client, auth, "HIS")
    resp = await client.put(f"{API}/products/{product['id']}", headers=auth("warehouse"), json={"unit_price": "12.00"})
    assert resp.status_code == 200, resp.text

    resp = await client.get(f"{API}/audit-logs/product/{product['id']}", headers=auth("warehouse"))
    assert resp.status_code == 200
    history = resp.json()
    assert [log["action"] for log in history] == ["update", "create"]
    assert history[0]["changes"] == [{"field": "unit_price", "old": "10.00", "new": "12.00"}]

    assert (await client.get(f"{API}/audit-logs/product/{product['id']}", headers=auth("sales"))).status_code == 403
    assert (await client.get(f"{API}/audit-logs/", headers=auth("warehouse"))).status_code == 403
    assert (await client.get(f"{API}/audit-logs/order/1", headers=auth("admin"))).status_code == 422
