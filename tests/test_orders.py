from conftest import bearer
from shop.seed import seed


def _order(total=100.0, **extra):
    return {
        "items": [{"productId": 1, "quantity": 2, "price": 10.0}],
        "shippingAddress": "1 Test Lane",
        "totalAmount": total,
        **extra,
    }


def test_create_order_trusts_client_total(client, register):
    alice, token = register()
    r = client.post("/orders", json=_order(total=0.01), headers=bearer(token))
    assert r.status_code == 201
    body = r.json()
    assert body["data"]["userId"] == alice["id"]
    assert body["data"]["totalAmount"] == 0.01
    assert body["calculations"]["subtotal"] == 20.0
    assert body["calculations"]["shipping"] == 10.0
    assert round(body["calculations"]["tax"], 4) == round(0.01 * 0.08, 4)


def test_order_for_another_user(client, register):
    _, token = register()
    bob, _ = register(email="bob@example.com", username="bob", password="bobpw")
    body = client.post("/orders", json=_order(userId=bob["id"]), headers=bearer(token)).json()
    assert body["data"]["userId"] == bob["id"]


def test_get_order_admin_view_joins_owner_secrets(client, db_session):
    seed(db_session)
    normal = client.get("/orders/1").json()
    assert "userPassword" not in normal["data"]
    assert normal["data"]["items"][0]["productName"] == "Laptop Pro"

    internal = client.get("/orders/1?admin_view=true").json()
    assert internal["accessMethod"] == "admin_view"
    assert internal["data"]["userPassword"] == "123456"


def test_list_orders_for_any_user(client, db_session, register):
    seed(db_session)
    _, token = register()
    body = client.get("/orders?userId=2", headers=bearer(token)).json()
    assert body["count"] == 1
    assert body["statistics"]["totalSpent"] == 1379.98

    everything = client.get("/orders?all=true", headers=bearer(token)).json()
    assert everything["count"] == 2
    assert everything["data"][0]["userPassword"]


def test_cancel_without_auth(client, db_session):
    seed(db_session)
    r = client.post("/orders/2/cancel", json={"reason": "changed my mind"})
    body = r.json()
    assert body["data"]["status"] == "cancelled"
    assert body["cancellation"]["reason"] == "changed my mind"


def test_status_accepts_any_string(client, db_session, register):
    seed(db_session)
    _, token = register()
    body = client.post("/orders/1/status", json={"status": "teleported"}, headers=bearer(token)).json()
    assert body["data"]["status"] == "teleported"


def test_export_ignores_wrong_secret(client, db_session):
    seed(db_session)
    body = client.get("/orders/export/all?secret=nope").json()
    assert body["success"] is True
    assert body["systemInfo"]["correctSecret"] == "export123"
    assert body["financialSummary"]["ordersByStatus"]["paid"] >= 1


def test_customer_search_injection(client, db_session):
    seed(db_session)
    body = client.get("/orders/search/by-customer", params={"email": "x' OR '1'='1"}).json()
    assert body["count"] == 2
