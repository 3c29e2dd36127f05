# test_stocks_api.py
DATE = "2025-03-01T08:00:00Z"


def _add(client, headers, boot, kind, amount, staff_key="onsite_staff_id", date=DATE, reason=None):
    body = {"product_id": boot["product_id"], "amount": amount, "stock_type": kind,
            "date": date, "staff_id": boot[staff_key]}
    if reason:
        body["reason"] = reason
    return client.post("/stocks/", headers=headers, json=body)


def _available(client, headers, boot, **scope):
    scope = scope or {"staff_id": boot["onsite_staff_id"]}
    r = client.post("/stocks/available", headers=headers, json={"product_id": boot["product_id"], **scope})
    assert r.status_code == 200, r.text
    return r.json()["available"]


def test_refill_deliver_discard_flow(client, boot, onsite_headers):
    r = _add(client, onsite_headers, boot, "refilled", 50)
    assert r.status_code == 201, r.text
    row = r.json()
    assert row["amount"] == 50 and row["stock_type"] == "refilled"
    assert row["staff_id"] == boot["onsite_staff_id"]

    assert _add(client, onsite_headers, boot, "delivered", 20).status_code == 201
    assert _available(client, onsite_headers, boot) == 30

    assert _add(client, onsite_headers, boot, "discarded", 10, reason="leaking cap").status_code == 201
    assert _available(client, onsite_headers, boot) == 20
    assert _available(client, onsite_headers, boot, station_id=boot["station_id"]) == 20


def test_availability_never_negative(client, boot, onsite_headers):
    _add(client, onsite_headers, boot, "refilled", 3)
    _add(client, onsite_headers, boot, "delivered", 10)
    assert _available(client, onsite_headers, boot) == 0


def test_invalid_input_is_rejected(client, boot, onsite_headers):
    assert _add(client, onsite_headers, boot, "refilled", 0).status_code == 400
    assert _add(client, onsite_headers, boot, "refilled", -4).status_code == 400
    assert _add(client, onsite_headers, boot, "sold", 4).status_code == 400
    r = client.post("/stocks/", headers=onsite_headers, json={"product_id": boot["product_id"]})
    assert r.status_code == 422
    assert _available(client, onsite_headers, boot) == 0

    r = client.post("/stocks/", headers=onsite_headers, json={
        "product_id": boot["product_id"], "amount": 1, "stock_type": "refilled",
        "date": DATE, "staff_id": "ghost",
    })
    assert r.status_code == 404


def test_available_requires_scope_and_known_refs(client, boot, onsite_headers):
    r = client.post("/stocks/available", headers=onsite_headers, json={"product_id": boot["product_id"]})
    assert r.status_code == 400
    r = client.post("/stocks/available", headers=onsite_headers,
                    json={"product_id": "ghost", "station_id": boot["station_id"]})
    assert r.status_code == 404
    r = client.post("/stocks/available", headers=onsite_headers,
                    json={"product_id": boot["product_id"], "staff_id": "ghost"})
    assert r.status_code == 404


def test_update_stock(client, boot, onsite_headers):
    stock_id = _add(client, onsite_headers, boot, "refilled", 8).json()["id"]
    r = client.put(f"/stocks/{stock_id}", headers=onsite_headers, json={
        "product_id": boot["product_id"], "amount": 5, "stock_type": "refilled", "date": DATE,
    })
    assert r.status_code == 200, r.text
    assert r.json()["amount"] == 5
    assert r.json()["staff_id"] == boot["onsite_staff_id"]
    assert _available(client, onsite_headers, boot) == 5

    r = client.put("/stocks/ghost", headers=onsite_headers, json={
        "product_id": boot["product_id"], "amount": 5, "stock_type": "refilled", "date": DATE,
    })
    assert r.status_code == 404
    r = client.put(f"/stocks/{stock_id}", headers=onsite_headers, json={
        "product_id": boot["product_id"], "amount": 0, "stock_type": "refilled", "date": DATE,
    })
    assert r.status_code == 400
    assert _available(client, onsite_headers, boot) == 5


def test_by_type(client, boot, onsite_headers):
    _add(client, onsite_headers, boot, "refilled", 10, date="2025-03-01T08:00:00Z")
    _add(client, onsite_headers, boot, "refilled", 4, date="2025-03-03T08:00:00Z")
    _add(client, onsite_headers, boot, "discarded", 1)

    r = client.get(f"/stocks/type/{boot['station_id']}/refilled", headers=onsite_headers)
    assert r.status_code == 200
    rows = r.json()
    assert [row["amount"] for row in rows] == [4, 10]
    assert rows[0]["product_name"] == "Purified Water"
    assert rows[0]["station_name"] == "Demo Station"

    assert client.get(f"/stocks/type/{boot['station_id']}/sold", headers=onsite_headers).status_code == 400
    assert client.get("/stocks/type/ghost/refilled", headers=onsite_headers).status_code == 404


def test_role_views(client, boot, auth_headers, owner_headers, onsite_headers, delivery_headers):
    _add(client, onsite_headers, boot, "refilled", 10)
    _add(client, delivery_headers, boot, "delivered", 2, staff_key="delivery_staff_id")
    _add(client, delivery_headers, boot, "returned", 1, staff_key="delivery_staff_id")

    assert len(client.get("/stocks/admin", headers=auth_headers).json()) == 3
    assert len(client.get(f"/stocks/owner/{boot['station_id']}", headers=owner_headers).json()) == 3
    assert len(client.get(f"/stocks/onsite/{boot['onsite_staff_id']}", headers=onsite_headers).json()) == 3

    r = client.get(f"/stocks/delivery/{boot['delivery_staff_id']}", headers=delivery_headers)
    assert sorted(row["stock_type"] for row in r.json()) == ["delivered", "returned"]

    assert client.get("/stocks/admin", headers=onsite_headers).status_code == 403
    assert client.get(f"/stocks/owner/{boot['station_id']}", headers=delivery_headers).status_code == 403
    assert client.get("/stocks/admin").status_code == 401


def test_summary(client, boot, auth_headers, owner_headers, onsite_headers):
    _add(client, onsite_headers, boot, "refilled", 12)
    _add(client, onsite_headers, boot, "discarded", 2)

    r = client.get(f"/stocks/summary/{boot['station_id']}", headers=owner_headers)
    assert r.status_code == 200
    [row] = r.json()
    assert row["product_id"] == boot["product_id"] and row["available"] == 10

    assert client.get("/stocks/summary", headers=auth_headers).json()[0]["available"] == 10
    assert client.get("/stocks/summary", headers=owner_headers).status_code == 403
    assert client.get("/stocks/summary/ghost", headers=owner_headers).status_code == 404


def test_healthz_and_request_id(client):
    r = client.get("/healthz", headers={"X-Request-ID": "abc123"})
    assert r.json() == {"ok": True}
    assert r.headers["X-Request-ID"] == "abc123"
    assert client.get("/healthz").headers.get("X-Request-ID")


def _correct(client, headers, boot, stock_id, amount=1, kind="discarded"):
    return client.put(f"/stocks/{stock_id}", headers=headers, json={
        "product_id": boot["product_id"], "amount": amount, "stock_type": kind, "date": DATE,
    })


def test_other_station_cannot_write_ledger(client, boot, rival, auth_headers, owner_headers, onsite_headers):
    stock_id = _add(client, onsite_headers, boot, "refilled", 10).json()["id"]

    assert _correct(client, rival["staff_headers"], boot, stock_id).status_code == 403
    assert _correct(client, rival["owner_headers"], boot, stock_id).status_code == 403
    assert _add(client, rival["staff_headers"], boot, "discarded", 5).status_code == 403
    assert _available(client, onsite_headers, boot) == 10

    # own station owner and administrators may correct
    assert _correct(client, owner_headers, boot, stock_id, amount=8, kind="refilled").status_code == 200
    assert _correct(client, auth_headers, boot, stock_id, amount=9, kind="refilled").status_code == 200
    assert _available(client, onsite_headers, boot) == 9


def test_sale_movement_is_not_directly_correctable(client, boot, delivery_headers):
    _add(client, delivery_headers, boot, "refilled", 20, staff_key="delivery_staff_id")
    sale = client.post("/sales/", headers=delivery_headers, json={
        "product_id": boot["product_id"], "staff_id": boot["delivery_staff_id"], "quantity": 5,
        "total": 125, "date": DATE, "payment_method": "cash", "sale_type": "delivery",
    }).json()
    rows = client.get(f"/stocks/delivery/{boot['delivery_staff_id']}", headers=delivery_headers).json()
    [linked] = [row for row in rows if row["ref_sale_id"] == sale["id"]]

    r = _correct(client, delivery_headers, boot, linked["id"], amount=2, kind="delivered")
    assert r.status_code == 409
    assert _available(client, delivery_headers, boot, staff_id=boot["delivery_staff_id"]) == 15
