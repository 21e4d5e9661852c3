from datetime import timedelta

from spacevox.api.deps import join_limiter
from spacevox.utils.timeutil import utcnow


def _later(hours=2):
    return (utcnow() + timedelta(hours=hours)).isoformat()


def _join(client, product_id, **overrides):
    payload = {
        "productId": product_id,
        "buyerName": "Alice",
        "email": "alice@example.org",
        "pickupTime": _later(),
    }
    payload.update(overrides)
    return client.post("/api/buyer-interests", json=payload)


def test_join_returns_created_interest(client, make_product):
    product = make_product()
    r = _join(client, product.id, offerPrice=500, smsOptIn=True)
    assert r.status_code == 201
    body = r.json()
    assert body["productId"] == product.id
    assert body["buyerName"] == "Alice"
    assert body["position"] == 0
    assert body["status"] == "active"
    assert body["offerPrice"] == 500
    assert body["smsOptIn"] is True

    r2 = _join(client, product.id, buyerName="Bob", email=None, phone="+15551234567")
    assert r2.status_code == 201
    assert r2.json()["position"] == 1


def test_join_duplicate_contact_is_conflict(client, make_product):
    product = make_product()
    assert _join(client, product.id).status_code == 201
    r = _join(client, product.id, buyerName="Alice again")
    assert r.status_code == 409
    assert "already in the queue" in r.json()["detail"]


def test_join_validation_errors(client, make_product):
    product = make_product()

    r = _join(client, product.id, email=None)
    assert r.status_code == 400
    assert "at least one contact method" in r.json()["detail"]

    r = _join(client, product.id, phone="5551234567", email=None)
    assert r.status_code == 400
    assert "phone" in r.json()["detail"]

    r = _join(client, product.id, email="not-an-email")
    assert r.status_code == 400
    assert "email" in r.json()["detail"]

    r = _join(client, product.id, pickupTime="tomorrow-ish")
    assert r.status_code == 400
    assert "pickupTime" in r.json()["detail"]


def test_join_unknown_product_is_404(client):
    r = _join(client, "does-not-exist")
    assert r.status_code == 404


def test_join_inactive_product_is_410(client, make_product):
    product = make_product(status="removed")
    r = _join(client, product.id)
    assert r.status_code == 410


def test_join_is_rate_limited_per_ip(client, make_product):
    product = make_product()
    limit = join_limiter.max_requests
    for i in range(limit):
        r = _join(client, product.id, email=f"rl{i}@example.org")
        assert r.status_code == 201
    r = _join(client, product.id, email="one-too-many@example.org")
    assert r.status_code == 429
    assert "Too many join requests" in r.json()["detail"]
    assert r.headers["RateLimit-Remaining"] == "0"


def test_product_queue_listing_sweeps_and_orders(client, make_user, make_product, auth_headers):
    owner = make_user()
    product = make_product(owner=owner)
    # pickup time already passed: the listing's sweep marks it missed
    _join(client, product.id, buyerName="Late", email="late@example.org", pickupTime=_later(-1))
    _join(client, product.id, buyerName="First", email="first@example.org")
    _join(client, product.id, buyerName="Second", email="second@example.org")

    r = client.get(f"/api/products/{product.id}/buyer-interests", headers=auth_headers(owner))
    assert r.status_code == 200
    rows = [(i["buyerName"], i["status"], i["position"]) for i in r.json()]
    assert rows == [
        ("First", "active", 0),
        ("Second", "active", 1),
        ("Late", "missed", None),
    ]


def test_product_queue_listing_requires_owner(client, make_user, make_product, auth_headers):
    product = make_product()
    r = client.get(f"/api/products/{product.id}/buyer-interests")
    assert r.status_code == 401
    r = client.get(
        f"/api/products/{product.id}/buyer-interests", headers=auth_headers(make_user())
    )
    assert r.status_code == 403
    r = client.get(
        f"/api/products/{product.id}/buyer-interests",
        headers=auth_headers(make_user(role="admin")),
    )
    assert r.status_code == 200


def test_global_listing_is_admin_only(client, make_user, make_product, auth_headers):
    product = make_product()
    created = _join(client, product.id).json()

    r = client.get("/api/buyer-interests", headers=auth_headers(make_user()))
    assert r.status_code == 403

    r = client.get("/api/buyer-interests", headers=auth_headers(make_user(role="admin")))
    assert r.status_code == 200
    assert created["id"] in [i["id"] for i in r.json()]


def test_approve_deny_via_api(client, make_user, make_product, auth_headers):
    owner = make_user()
    product = make_product(owner=owner)
    first = _join(client, product.id, email="p1@example.org").json()
    second = _join(client, product.id, email="p2@example.org").json()
    third = _join(client, product.id, email="p3@example.org").json()
    headers = auth_headers(owner)

    r = client.post(f"/api/buyer-interests/{first['id']}/approve", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "completed"
    assert r.json()["position"] is None

    r = client.post(f"/api/buyer-interests/{second['id']}/deny", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "missed"

    r = client.get(f"/api/products/{product.id}/buyer-interests", headers=headers)
    by_id = {i["id"]: i for i in r.json()}
    assert by_id[third["id"]]["position"] == 0

    r = client.post(
        f"/api/buyer-interests/{third['id']}/approve", headers=auth_headers(make_user())
    )
    assert r.status_code == 403

    r = client.post("/api/buyer-interests/missing/approve", headers=headers)
    assert r.status_code == 404


def test_patch_interest(client, make_user, make_product, auth_headers):
    owner = make_user()
    product = make_product(owner=owner)
    created = _join(client, product.id).json()

    r = client.patch(
        f"/api/buyer-interests/{created['id']}",
        json={"offerPrice": 1200, "buyerName": "Alice B."},
        headers=auth_headers(owner),
    )
    assert r.status_code == 200
    assert r.json()["offerPrice"] == 1200
    assert r.json()["buyerName"] == "Alice B."
    assert r.json()["position"] == 0

    r = client.patch(
        f"/api/buyer-interests/{created['id']}",
        json={"status": "paused"},
        headers=auth_headers(owner),
    )
    assert r.status_code == 400
