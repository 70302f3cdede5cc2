from conftest import bearer, forge_token
from shop.seed import seed

ADMIN = bearer(forge_token(userId=1, email="admin@shop.com", isAdmin=True, username="admin"))


def test_list_only_active_products(client, db_session):
    seed(db_session)
    r = client.get("/products")
    body = r.json()
    assert body["count"] == 6
    assert {"imageUrl", "isActive", "createdAt"} <= set(body["data"][0])


def test_search_is_injectable(client, db_session):
    seed(db_session)
    assert client.get("/products/search", params={"q": "Laptop"}).json()["count"] == 1

    body = client.get("/products/search", params={"q": "zzz%') OR 1=1 --"}).json()
    assert body["success"] is True
    assert body["count"] == 6


def test_search_syntax_error_is_reported(client):
    body = client.get("/products/search", params={"q": "x')"}).json()
    assert body["success"] is False
    assert body["hint"] == "Try different search terms"


def test_internal_dump_exposes_cost_price(client, db_session):
    seed(db_session)
    data = client.get("/products/internal/dump").json()["data"]
    laptop = next(p for p in data if p["name"] == "Laptop Pro")
    assert round(laptop["cost_price"], 2) == round(1299.99 * 0.7, 2)


def test_missing_product_lists_ids(client, db_session):
    seed(db_session)
    body = client.get("/products/999").json()
    assert body["success"] is False
    assert body["availableIds"] == [1, 2, 3, 4, 5, 6]


def test_product_crud_as_admin(client):
    r = client.post("/products", json={"name": "Lamp", "price": 19.5, "stock": 4}, headers=ADMIN)
    product = r.json()["data"]
    assert product["name"] == "Lamp"

    r = client.put(f"/products/{product['id']}", json={"price": -3, "isActive": False}, headers=ADMIN)
    body = r.json()
    assert body["data"]["price"] == -3
    assert body["data"]["isActive"] == 0

    r = client.delete(f"/products/{product['id']}", headers=ADMIN)
    assert r.json()["deletedId"] == str(product["id"])
    assert client.get(f"/products/{product['id']}").json()["success"] is False


def test_product_write_requires_token(client):
    r = client.post("/products", json={"name": "Lamp", "price": 1, "stock": 1})
    assert r.status_code == 401
