from datetime import date, timedelta


def _add(client, catalog, product="tee", size="small", quantity=1, headers=None):
    return client.post("/api/cart/items", json={
        "product_id": catalog[product], "size_id": catalog[size], "quantity": quantity,
    }, headers=headers)


def test_guest_cart_starts_empty(client):
    r = client.get("/api/cart")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["items"] == []
    assert data["state"] == "empty"
    assert data["backend"] == "local"
    assert data["totals"] == {"subtotal": 0.0, "discount": 0.0, "total": 0.0, "item_count": 0}


def test_guest_add_merges_same_product_and_size(client, catalog):
    _add(client, catalog, quantity=2)
    r = _add(client, catalog, quantity=1)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert len(data["items"]) == 1
    assert data["items"][0]["quantity"] == 3
    assert data["items"][0]["name"] == "Camiseta Básica"
    assert data["items"][0]["size"] == "P"
    assert data["totals"]["subtotal"] == 300.0

    # persisted in the session cookie across requests
    again = client.get("/api/cart").get_json()["data"]
    assert again["items"][0]["quantity"] == 3


def test_price_comes_from_catalog(client, catalog):
    r = client.post("/api/cart/items", json={
        "product_id": catalog["pants"], "size_id": catalog["small"], "price": 0.01,
    })
    assert r.get_json()["data"]["items"][0]["price"] == 50.0


def test_add_validates_input(client, catalog):
    r = client.post("/api/cart/items", json={"size_id": catalog["small"]})
    assert r.status_code == 422
    assert r.get_json()["data"]["field"] == "product_id"

    r = _add(client, catalog, quantity=0)
    assert r.status_code == 422

    r = _add(client, catalog, product="hidden")
    assert r.status_code == 404
    assert client.get("/api/cart").get_json()["data"]["items"] == []


def test_update_and_remove(client, catalog):
    line_id = _add(client, catalog, quantity=2).get_json()["data"]["items"][0]["line_id"]

    r = client.patch(f"/api/cart/items/{line_id}", json={"delta": 1})
    assert r.get_json()["message"] == "item updated"
    assert r.get_json()["data"]["items"][0]["quantity"] == 3

    r = client.patch(f"/api/cart/items/{line_id}", json={"delta": -3})
    assert r.get_json()["message"] == "item removed"
    assert r.get_json()["data"]["items"] == []

    r = client.delete(f"/api/cart/items/{line_id}")
    assert r.status_code == 200
    assert r.get_json()["message"] == "item not in cart"


def test_patch_requires_delta(client, catalog):
    line_id = _add(client, catalog).get_json()["data"]["items"][0]["line_id"]
    r = client.patch(f"/api/cart/items/{line_id}", json={"delta": "x"})
    assert r.status_code == 422


def test_apply_percentage_coupon(client, catalog, db_coupon):
    db_coupon("SAVE10", "percentage", "10")
    _add(client, catalog, quantity=2)

    r = client.post("/api/cart/coupon", json={"code": " save10 "})
    assert r.status_code == 200
    body = r.get_json()
    assert body["message"] == "Coupon applied! 10% off"
    assert body["data"]["totals"] == {"subtotal": 200.0, "discount": 20.0, "total": 180.0, "item_count": 2}
    assert body["data"]["coupon"]["code"] == "SAVE10"
    assert body["data"]["state"] == "non_empty_with_coupon"


def test_fixed_coupon_larger_than_subtotal(client, catalog, db_coupon):
    db_coupon("BIG80", "fixed", "80")
    _add(client, catalog, product="pants")
    r = client.post("/api/cart/coupon", json={"code": "BIG80"})
    assert r.get_json()["message"] == "Coupon applied! R$ 80.00 off"
    assert r.get_json()["data"]["totals"]["subtotal"] == 50.0
    assert r.get_json()["data"]["totals"]["discount"] == 80.0
    assert r.get_json()["data"]["totals"]["total"] == 0.0


def test_second_coupon_replaces_first(client, catalog, db_coupon):
    db_coupon("TEN", "percentage", "10")
    db_coupon("FIVE", "fixed", "5")
    _add(client, catalog)
    client.post("/api/cart/coupon", json={"code": "TEN"})
    r = client.post("/api/cart/coupon", json={"code": "FIVE"})
    data = r.get_json()["data"]
    assert data["coupon"]["code"] == "FIVE"
    assert data["totals"]["total"] == 95.0


def test_coupon_errors_leave_cart_unchanged(client, catalog, db_coupon):
    db_coupon("TEN", "percentage", "10")
    db_coupon("MIN500", "percentage", "20", minimum_spend="500")
    db_coupon("OLD", "percentage", "30", expires_on=date.today() - timedelta(days=1))
    db_coupon("OFF", "percentage", "30", active=False)
    _add(client, catalog)
    client.post("/api/cart/coupon", json={"code": "TEN"})
    before = client.get("/api/cart").get_json()["data"]

    r = client.post("/api/cart/coupon", json={"code": "   "})
    assert r.status_code == 422
    assert r.get_json()["message"] == "Enter a coupon code"

    r = client.post("/api/cart/coupon", json={"code": "MIN500"})
    assert r.status_code == 422
    assert r.get_json()["data"]["minimum_spend"] == 500.0

    for code in ("NOPE", "OLD", "OFF"):
        r = client.post("/api/cart/coupon", json={"code": code})
        assert r.status_code == 404
        assert r.get_json()["message"] == "Invalid or expired coupon"

    after = client.get("/api/cart").get_json()["data"]
    assert after["coupon"] == before["coupon"]
    assert after["totals"] == before["totals"]


def test_coupon_on_empty_cart(client, db_coupon):
    db_coupon("TEN")
    r = client.post("/api/cart/coupon", json={"code": "TEN"})
    assert r.status_code == 422
    assert r.get_json()["message"] == "Add products to the cart first"


def test_emptying_cart_drops_coupon(client, catalog, db_coupon):
    db_coupon("TEN")
    line_id = _add(client, catalog).get_json()["data"]["items"][0]["line_id"]
    client.post("/api/cart/coupon", json={"code": "TEN"})

    r = client.delete(f"/api/cart/items/{line_id}")
    assert r.get_json()["data"]["coupon"] is None

    _add(client, catalog)
    data = client.get("/api/cart").get_json()["data"]
    assert data["coupon"] is None
    assert data["state"] == "non_empty_no_coupon"


def test_clear_coupon(client, catalog, db_coupon):
    db_coupon("TEN")
    _add(client, catalog)
    client.post("/api/cart/coupon", json={"code": "TEN"})
    r = client.delete("/api/cart/coupon")
    assert r.get_json()["message"] == "coupon removed"
    assert r.get_json()["data"]["totals"]["discount"] == 0.0


def test_authenticated_cart_lives_on_server(app, client, catalog, customer):
    _add(client, catalog, quantity=2)

    r = client.get("/api/cart", headers=customer["headers"])
    data = r.get_json()["data"]
    assert data["backend"] == "remote"
    # guest items are not merged into the account cart
    assert data["items"] == []

    r = _add(client, catalog, product="pants", quantity=2, headers=customer["headers"])
    line_id = r.get_json()["data"]["items"][0]["line_id"]

    other = app.test_client()
    data = other.get("/api/cart", headers=customer["headers"]).get_json()["data"]
    assert [(i["line_id"], i["quantity"]) for i in data["items"]] == [(line_id, 2)]

    r = other.patch(f"/api/cart/items/{line_id}", json={"delta": -2}, headers=customer["headers"])
    assert r.get_json()["data"]["items"] == []
    assert client.get("/api/cart", headers=customer["headers"]).get_json()["data"]["items"] == []


def test_logout_drops_applied_coupon(client, catalog, db_coupon):
    db_coupon("TEN")
    _add(client, catalog)
    client.post("/api/cart/coupon", json={"code": "TEN"})

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert client.get("/api/cart").get_json()["data"]["coupon"] is None


def test_guest_coupon_does_not_follow_shopper_into_account_cart(client, catalog, customer, db_coupon):
    db_coupon("BIG", "fixed", "5", minimum_spend="150")
    _add(client, catalog, quantity=2)
    r = client.post("/api/cart/coupon", json={"code": "BIG"})
    assert r.get_json()["data"]["coupon"]["code"] == "BIG"

    _add(client, catalog, product="pants", headers=customer["headers"])
    data = client.get("/api/cart", headers=customer["headers"]).get_json()["data"]
    assert data["coupon"] is None
    assert data["state"] == "non_empty_no_coupon"
    assert data["totals"] == {"subtotal": 50.0, "discount": 0.0, "total": 50.0, "item_count": 1}

    # the guest cart keeps its own coupon
    assert client.get("/api/cart").get_json()["data"]["coupon"]["code"] == "BIG"


def test_account_coupon_survives_across_requests(client, catalog, customer, db_coupon):
    db_coupon("TEN")
    _add(client, catalog, headers=customer["headers"])
    client.post("/api/cart/coupon", json={"code": "TEN"}, headers=customer["headers"])

    data = client.get("/api/cart", headers=customer["headers"]).get_json()["data"]
    assert data["coupon"]["code"] == "TEN"
    assert client.get("/api/cart").get_json()["data"]["coupon"] is None


def test_non_string_coupon_code_is_rejected(client, catalog):
    _add(client, catalog)
    r = client.post("/api/cart/coupon", json={"code": 123})
    assert r.status_code == 422
    assert r.get_json()["data"]["field"] == "code"


def test_fractional_delta_is_rejected(client, catalog):
    line_id = _add(client, catalog, quantity=2).get_json()["data"]["items"][0]["line_id"]
    r = client.patch(f"/api/cart/items/{line_id}", json={"delta": 1.5})
    assert r.status_code == 422
    assert r.get_json()["data"]["field"] == "delta"
    assert client.get("/api/cart").get_json()["data"]["items"][0]["quantity"] == 2

    r = client.patch(f"/api/cart/items/{line_id}", json={"delta": 1.0})
    assert r.get_json()["data"]["items"][0]["quantity"] == 3
