from fastapi.testclient import TestClient

from app.main import create_app


def create_product(client, name="Keyboard", price=10.0, stock=5):
    resp = client.post("/api/v1/products/", json={"name": name, "price": price, "stock": stock})
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def test_root(client):
    assert client.get("/").status_code == 200


# Auth

def test_register_twice_is_rejected(client, register_and_login):
    register_and_login(email="ana@example.com")

    resp = client.post("/api/v1/auth/register", json={"name": "Ana", "email": "ANA@example.com", "password": "x"})

    assert resp.status_code == 400


def test_register_requires_all_fields(client):
    resp = client.post("/api/v1/auth/register", json={"email": "ana@example.com"})

    assert resp.status_code == 400


def test_login_with_wrong_password(client, register_and_login):
    register_and_login(email="ana@example.com", password="right-one")

    resp = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "wrong-one"})

    assert resp.status_code == 401
    assert "token" not in resp.json()


def test_protected_routes_need_a_token(client):
    assert client.get("/api/v1/users/me").status_code == 401
    assert client.get("/api/v1/orders/").status_code == 401
    resp = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


# Users

def test_get_edit_delete_own_profile(client, register_and_login):
    headers = register_and_login(name="Ana", email="ana@example.com", password="old-pass")

    me = client.get("/api/v1/users/me", headers=headers).json()
    assert me == {"id": me["id"], "name": "Ana", "email": "ana@example.com"}

    resp = client.put(f"/api/v1/users/{me['id']}", headers=headers, json={"name": "Ana B", "password": "new-pass"})
    assert resp.status_code == 200
    assert client.get("/api/v1/users/me", headers=headers).json()["name"] == "Ana B"
    login = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "new-pass"})
    assert login.status_code == 200

    resp = client.delete(f"/api/v1/users/{me['id']}", headers=headers)
    assert resp.status_code == 200
    assert client.get("/api/v1/users/me", headers=headers).status_code == 404


def test_cannot_touch_someone_elses_profile(client, register_and_login):
    ana = register_and_login(name="Ana", email="ana@example.com")
    bo = register_and_login(name="Bo", email="bo@example.com")
    ana_id = client.get("/api/v1/users/me", headers=ana).json()["id"]

    assert client.put(f"/api/v1/users/{ana_id}", headers=bo, json={"name": "Mallory"}).status_code == 401
    assert client.delete(f"/api/v1/users/{ana_id}", headers=bo).status_code == 401
    assert client.get("/api/v1/users/me", headers=ana).json()["name"] == "Ana"


def test_missing_user_is_404_before_ownership(client, register_and_login):
    headers = register_and_login()

    assert client.put("/api/v1/users/9999", headers=headers, json={"name": "X"}).status_code == 404
    assert client.delete("/api/v1/users/9999", headers=headers).status_code == 404


# Products

def test_create_and_list_products(client):
    first = create_product(client, "Keyboard", 199.99, 10)
    create_product(client, "Mouse", 49.5, 3)

    resp = client.get("/api/v1/products/", params={"page": 1, "limit": 1})

    assert resp.status_code == 200
    assert resp.json() == {"products": [{"id": first, "name": "Keyboard", "price": 199.99, "stock": 10}]}
    assert len(client.get("/api/v1/products/").json()["products"]) == 2


def test_oversized_limit_is_clamped(client):
    for i in range(3):
        create_product(client, f"Product {i}")

    resp = client.get("/api/v1/products/", params={"limit": 1000})

    assert resp.status_code == 200
    assert len(resp.json()["products"]) == 3


def test_bad_paging_is_400(client):
    assert client.get("/api/v1/products/", params={"page": 0}).status_code == 400
    assert client.get("/api/v1/products/", params={"limit": 0}).status_code == 400


def test_create_product_validation(client):
    assert client.post("/api/v1/products/", json={"name": "X", "price": 10.0}).status_code == 400
    assert client.post("/api/v1/products/", json={"name": "X", "price": -1, "stock": 1}).status_code == 400
    assert client.post("/api/v1/products/", json={"name": "X", "price": 1, "stock": -1}).status_code == 400
    assert client.post("/api/v1/products/", json={"name": "X", "price": "abc", "stock": 1}).status_code == 400


def test_get_missing_product(client):
    resp = client.get("/api/v1/products/424242")

    assert resp.status_code == 404
    assert "424242" in resp.json()["message"]


def test_sub_cent_price_is_rejected(client):
    assert client.post("/api/v1/products/", json={"name": "X", "price": 0.004, "stock": 1}).status_code == 400
    assert client.post("/api/v1/products/", json={"name": "X", "price": 10.005, "stock": 1}).status_code == 400
    assert client.get("/api/v1/products/").json()["products"] == []


def test_boolean_stock_is_rejected(client):
    assert client.post("/api/v1/products/", json={"name": "X", "price": 1.0, "stock": True}).status_code == 400


# Orders

def test_place_order_and_list_items(client, register_and_login):
    headers = register_and_login()
    product_id = create_product(client, price=10.0, stock=5)

    resp = client.post("/api/v1/orders/", headers=headers, json={"products": [{"id": product_id, "quantity": 2}]})

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["total_price"] == 20.0
    assert client.get(f"/api/v1/products/{product_id}").json()["stock"] == 3

    items = client.get("/api/v1/orders/", headers=headers).json()["items"]
    assert items == [{
        "id": items[0]["id"],
        "order_id": body["order_id"],
        "product_id": product_id,
        "quantity": 2,
        "price": 10.0,
    }]


def test_order_with_insufficient_stock(client, register_and_login):
    headers = register_and_login()
    product_id = create_product(client, name="Keyboard", price=10.0, stock=5)

    resp = client.post("/api/v1/orders/", headers=headers, json={"products": [{"id": product_id, "quantity": 10}]})

    assert resp.status_code == 400
    assert "Keyboard" in resp.json()["message"]
    assert client.get(f"/api/v1/products/{product_id}").json()["stock"] == 5


def test_order_with_unknown_product(client, register_and_login):
    headers = register_and_login()

    resp = client.post("/api/v1/orders/", headers=headers, json={"products": [{"id": 777, "quantity": 1}]})

    assert resp.status_code == 404


def test_order_with_invalid_line(client, register_and_login):
    headers = register_and_login()
    product_id = create_product(client)

    for line in ({"id": product_id, "quantity": 0}, {"quantity": 1}, {"id": product_id}, {"id": product_id, "quantity": True}, {"id": True, "quantity": 1}):
        resp = client.post("/api/v1/orders/", headers=headers, json={"products": [line]})
        assert resp.status_code == 400

    assert client.get("/api/v1/orders/", headers=headers).status_code == 400


def test_order_with_unknown_status(client, register_and_login):
    headers = register_and_login()
    product_id = create_product(client)

    resp = client.post(
        "/api/v1/orders/",
        headers=headers,
        json={"status": "teleported", "products": [{"id": product_id, "quantity": 1}]},
    )

    assert resp.status_code == 400


def test_no_orders_yet(client, register_and_login):
    headers = register_and_login()

    resp = client.get("/api/v1/orders/", headers=headers)

    assert resp.status_code == 400
    assert "message" in resp.json()


def test_order_timeout_is_retryable(settings, register_and_login, client):
    headers = register_and_login()
    product_id = create_product(client)
    client.app.state.settings = settings.model_copy(update={"ORDER_TIMEOUT_SECONDS": 0})

    resp = client.post("/api/v1/orders/", headers=headers, json={"products": [{"id": product_id, "quantity": 1}]})

    assert resp.status_code == 503
    assert resp.headers["Retry-After"] == "1"
    assert client.get(f"/api/v1/products/{product_id}").json()["stock"] == 5


# Locking

def test_blocked_writes_are_retryable_and_reads_still_work(settings, write_locked):
    app = create_app(settings.model_copy(update={"SQLITE_BUSY_TIMEOUT_SECONDS": 0.3}))

    with TestClient(app) as client:
        client.post("/api/v1/auth/register", json={"name": "Ana", "email": "ana@example.com", "password": "pw"})
        token = client.post("/api/v1/auth/login", json={"email": "ana@example.com", "password": "pw"}).json()["token"]
        headers = {"Authorization": f"Bearer {token}"}
        product_id = create_product(client, stock=5)

        with write_locked():
            order = client.post("/api/v1/orders/", headers=headers, json={"products": [{"id": product_id, "quantity": 1}]})
            product = client.post("/api/v1/products/", json={"name": "Mouse", "price": 5.0, "stock": 1})
            listing = client.get("/api/v1/products/")
            me = client.get("/api/v1/users/me", headers=headers)

        assert order.status_code == 503
        assert order.headers["Retry-After"] == "1"
        assert product.status_code == 503
        assert product.headers["Retry-After"] == "1"
        assert "message" in product.json()
        assert listing.status_code == 200
        assert [p["id"] for p in listing.json()["products"]] == [product_id]
        assert me.status_code == 200

        assert client.get(f"/api/v1/products/{product_id}").json()["stock"] == 5
        assert client.get("/api/v1/orders/", headers=headers).status_code == 400


def test_busy_timeout_never_outlasts_the_order_timeout(settings):
    app = create_app(settings.model_copy(update={"SQLITE_BUSY_TIMEOUT_SECONDS": 30.0, "ORDER_TIMEOUT_SECONDS": 2.0}))

    with app.state.engine.connect() as conn:
        assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 2000

    app.state.engine.dispose()
