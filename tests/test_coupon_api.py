from datetime import date, timedelta


def _future(days=30):
    return (date.today() + timedelta(days=days)).isoformat()


def test_validate_without_subtotal(client, db_coupon):
    db_coupon("SUMMER", "percentage", "15", minimum_spend="200")
    r = client.get("/api/coupons/validate/summer")
    assert r.status_code == 200
    coupon = r.get_json()["data"]["coupon"]
    assert coupon["code"] == "SUMMER"
    assert coupon["value"] == 15.0
    assert coupon["minimum_spend"] == 200.0


def test_validate_with_subtotal_enforces_minimum(client, db_coupon):
    db_coupon("SUMMER", "percentage", "15", minimum_spend="200")
    assert client.get("/api/coupons/validate/SUMMER?subtotal=150").status_code == 422
    assert client.get("/api/coupons/validate/SUMMER?subtotal=200").status_code == 200
    assert client.get("/api/coupons/validate/SUMMER?subtotal=abc").status_code == 422


def test_validate_hides_expired_and_inactive(client, db_coupon):
    db_coupon("OLD", expires_on=date.today() - timedelta(days=1))
    db_coupon("OFF", active=False)
    for code in ("OLD", "OFF", "MISSING"):
        r = client.get(f"/api/coupons/validate/{code}")
        assert r.status_code == 404
        assert r.get_json()["message"] == "Invalid or expired coupon"


def test_admin_endpoints_require_admin(client, customer):
    assert client.get("/api/coupons").status_code == 401
    r = client.get("/api/coupons", headers=customer["headers"])
    assert r.status_code == 403
    assert r.get_json()["message"] == "Access denied. Administrators only."


def test_admin_create_list_update_delete(client, admin):
    r = client.post("/api/coupons", headers=admin["headers"], json={
        "code": " welcome ", "kind": "fixed", "value": "25", "minimum_spend": 100,
        "expires_on": _future(),
    })
    assert r.status_code == 201
    created = r.get_json()["data"]
    assert created["code"] == "WELCOME"
    assert created["kind"] == "fixed"

    r = client.post("/api/coupons", headers=admin["headers"], json={
        "code": "WELCOME", "kind": "fixed", "value": 10, "expires_on": _future(),
    })
    assert r.status_code == 409

    r = client.put(f"/api/coupons/{created['id']}", headers=admin["headers"], json={"active": False})
    assert r.status_code == 200
    assert r.get_json()["data"]["active"] is False
    assert client.get("/api/coupons/validate/WELCOME").status_code == 404

    items = client.get("/api/coupons", headers=admin["headers"]).get_json()["data"]["items"]
    assert [c["code"] for c in items] == ["WELCOME"]

    assert client.delete(f"/api/coupons/{created['id']}", headers=admin["headers"]).status_code == 200
    assert client.delete(f"/api/coupons/{created['id']}", headers=admin["headers"]).status_code == 404


def test_admin_create_validates_fields(client, admin):
    base = {"code": "X", "kind": "percentage", "value": 10, "expires_on": _future()}

    r = client.post("/api/coupons", headers=admin["headers"], json={**base, "kind": "bogus"})
    assert r.status_code == 422
    assert r.get_json()["data"]["field"] == "kind"

    r = client.post("/api/coupons", headers=admin["headers"], json={**base, "value": 150})
    assert r.status_code == 422

    r = client.post("/api/coupons", headers=admin["headers"], json={**base, "value": 0})
    assert r.status_code == 422

    r = client.post("/api/coupons", headers=admin["headers"], json={**base, "expires_on": "soon"})
    assert r.status_code == 422
    assert r.get_json()["data"]["field"] == "expires_on"


def test_admin_create_rejects_non_string_fields(client, admin):
    base = {"code": "X", "kind": "percentage", "value": 10, "expires_on": _future()}

    for field, bad in (("code", 123), ("kind", 5), ("expires_on", 20300101)):
        r = client.post("/api/coupons", headers=admin["headers"], json={**base, field: bad})
        assert r.status_code == 422, field
        assert r.get_json()["data"]["field"] == field
