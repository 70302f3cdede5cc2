from conftest import bearer
from shop.db import query_rows
from shop.seed import seed


def _block_order_deletes(db_session):
    db_session.connection().exec_driver_sql(
        "CREATE TRIGGER block_order_delete BEFORE DELETE ON orders "
        "BEGIN SELECT RAISE(ABORT, 'order deletion blocked'); END"
    )
    db_session.commit()


def test_delete_requires_confirmation(client, db_session):
    seed(db_session)
    body = client.delete("/admin/users/2").json()
    assert body["success"] is False
    assert body["hint"].startswith("Add ?confirm=yes")


def test_delete_cascades_to_orders_and_items(client, db_session):
    seed(db_session)
    body = client.delete("/admin/users/2?confirm=yes").json()
    assert body["success"] is True
    assert query_rows(db_session, "SELECT * FROM orders WHERE userId = 2") == []
    assert query_rows(db_session, "SELECT * FROM order_items WHERE orderId = 1") == []
    assert query_rows(db_session, "SELECT * FROM users WHERE id = 2") == []


def test_delete_is_not_atomic(client, db_session):
    seed(db_session)
    _block_order_deletes(db_session)

    body = client.delete("/admin/users/2?confirm=yes").json()
    assert body["success"] is False
    assert "order deletion blocked" in body["error"]

    # the user row is gone while the order survives
    assert query_rows(db_session, "SELECT * FROM users WHERE id = 2") == []
    assert len(query_rows(db_session, "SELECT * FROM orders WHERE userId = 2")) == 1
    assert query_rows(db_session, "SELECT * FROM order_items WHERE orderId = 1") == []


def test_update_accepts_arbitrary_columns(client, register):
    alice, token = register()
    body = client.put(f"/admin/users/{alice['id']}", json={"isAdmin": True, "password": "pwned"},
                      headers=bearer(token)).json()
    assert body["success"] is True
    assert body["data"]["isAdmin"] == 1
    assert body["data"]["password"] == "pwned"


def test_update_with_empty_body(client, register):
    alice, token = register()
    body = client.put(f"/admin/users/{alice['id']}", json={}, headers=bearer(token)).json()
    assert body["error"] == "No updates provided"


def test_orders_with_wrong_key_still_served(client, db_session):
    seed(db_session)
    body = client.get("/admin/orders", headers={"X-Admin-Key": "wrong"}).json()
    assert body["success"] is True
    assert body["count"] == 2
    assert body["adminKey"] == "wrong"


def test_user_detail_and_promotion(client, db_session):
    seed(db_session)
    body = client.get("/admin/users/3").json()
    assert body["sensitiveData"]["passwordHash"] == "qwerty"
    assert body["sensitiveData"]["accessLevel"] == "USER"

    promoted = client.post("/admin/promote/3", json={"reason": "why not"}).json()
    assert promoted["user"]["isAdmin"] == 1


def test_export_users(client, db_session):
    seed(db_session)
    body = client.get("/admin/export/users").json()
    assert body["totalRecords"] == 8
    assert body["stats"]["adminUsers"] == 1
    assert body["stats"]["usersWithOrders"] == 2
    john = next(u for u in body["data"] if u["email"] == "john@example.com")
    assert john["systemGenerated"]["passwordStrength"] == "WEAK"


def test_raw_query_and_dump(client, db_session):
    seed(db_session)
    body = client.post("/admin/query", json={"query": "SELECT email, password FROM users WHERE isAdmin = 1"}).json()
    assert body["data"] == [{"email": "admin@shop.com", "password": "password123"}]

    dump = client.get("/admin/database/dump").json()
    assert dump["counts"] == {"users": 8, "products": 6, "orders": 2, "order_items": 3}


def test_raw_query_error_envelope(client):
    body = client.post("/admin/query", json={"query": "SELEC nonsense"}).json()
    assert body["success"] is False
    assert body["query"] == "SELEC nonsense"


def test_system_info_leaks_environment(client, monkeypatch):
    monkeypatch.setenv("DB_PASSWORD", "hunter2")
    body = client.get("/admin/system/info").json()
    assert body["systemInfo"]["database"]["password"] == "hunter2"
    assert body["systemInfo"]["envVars"]["DB_PASSWORD"] == "hunter2"
