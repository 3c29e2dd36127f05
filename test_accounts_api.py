# test_accounts_api.py
from conftest import login


def _person(phone, **over):
    body = {"first_name": "Jo", "last_name": "Tan", "gender": "Male",
            "phone_number": phone, "password": "secret"}
    body.update(over)
    return body


def test_bootstrap_is_idempotent(client, boot):
    again = client.post("/admin/dev-bootstrap").json()
    assert again == boot
    assert boot["admin_username"] == "admin000001"
    assert boot["owner_username"] == "owner000001"
    assert (boot["onsite_username"], boot["delivery_username"]) == ("onsite000001", "delivery000002")


def test_login_roles_and_failures(client, boot):
    for key, role in (("admin_username", "admin"), ("owner_username", "owner"),
                      ("onsite_username", "onsite"), ("delivery_username", "delivery")):
        r = client.post("/login/", json={"username": boot[key], "password": "admin"})
        assert r.status_code == 200, r.text
        assert r.json()["role"] == role
        assert r.json()["token_type"] == "bearer"

    r = client.post("/login/", json={"username": boot["owner_username"], "password": "nope"})
    assert r.status_code == 401 and r.json()["detail"] == "Incorrect password"
    r = client.post("/login/", json={"username": "nobody", "password": "admin"})
    assert r.status_code == 401


def test_admin_usernames_are_sequential(client, boot, auth_headers):
    r = client.post("/accounts/admin", headers=auth_headers, json=_person("0911111111"))
    assert r.status_code == 201, r.text
    assert r.json()["username"] == "admin000002"

    r = client.post("/accounts/admin", headers=auth_headers, json=_person("0911111111"))
    assert r.status_code == 409
    r = client.post("/accounts/admin", headers=auth_headers, json=_person("0911111112", password=""))
    assert r.status_code == 400


def test_owner_creation_reuses_station_by_name(client, boot, auth_headers):
    r = client.post("/accounts/owner", headers=auth_headers,
                    json=_person("0922222222", last_name="De la Cruz", station_name="demo station"))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["username"] == "delacruz000002"
    assert body["station_id"] == boot["station_id"]

    r = client.post("/accounts/owner", headers=auth_headers,
                    json=_person("0922222223", station_name="Fresh Springs"))
    assert r.status_code == 201
    assert r.json()["station_id"] != boot["station_id"]
    assert r.json()["username"] == "tan000003"

    owner = login(client, "tan000003", "secret")
    assert client.post("/accounts/owner", headers=owner,
                       json=_person("0922222224", station_name="X")).status_code == 403


def test_staff_lifecycle(client, boot, auth_headers, owner_headers):
    r = client.post("/accounts/staff", headers=owner_headers,
                    json=_person("0933333333", station_id=boot["station_id"], type="Delivery"))
    assert r.status_code == 201, r.text
    staff_id, username = r.json()["id"], r.json()["username"]
    # one counter per table regardless of type
    assert username == "delivery000003"

    r = client.post("/accounts/staff", headers=owner_headers,
                    json=_person("0933333334", station_id=boot["station_id"], type="Cashier"))
    assert r.status_code == 400
    r = client.post("/accounts/staff", headers=auth_headers,
                    json=_person("0933333335", station_id="ghost", type="Onsite"))
    assert r.status_code == 404
    r = client.post("/accounts/staff", headers=owner_headers,
                    json=_person("0933333336", station_id="ghost", type="Onsite"))
    assert r.status_code == 403

    listed = client.get("/accounts/staff", headers=owner_headers, params={"station_id": boot["station_id"]}).json()
    assert [s["username"] for s in listed] == ["onsite000001", "delivery000002", "delivery000003"]

    r = client.put(f"/accounts/staff/status/{staff_id}", headers=owner_headers)
    assert r.json()["staff"]["status"] == "Inactive"
    r = client.post("/login/", json={"username": username, "password": "secret"})
    assert r.status_code == 401

    r = client.put(f"/accounts/staff/status/{staff_id}", headers=owner_headers)
    assert r.json()["staff"]["status"] == "Active"
    assert client.post("/login/", json={"username": username, "password": "secret"}).status_code == 200


def test_profile_updates_are_partial(client, boot, auth_headers, onsite_headers):
    staff_id = boot["onsite_staff_id"]
    r = client.put(f"/accounts/staff/{staff_id}", headers=onsite_headers, json={"first_name": "Renamed"})
    assert r.status_code == 200
    staff = r.json()["staff"]
    assert staff["first_name"] == "Renamed" and staff["last_name"] == "Staff"

    assert client.put(f"/accounts/staff/{staff_id}", headers=onsite_headers, json={}).status_code == 400
    r = client.put(f"/accounts/staff/{staff_id}", headers=onsite_headers,
                   json={"phone_number": "09990000003"})
    assert r.status_code == 409

    r = client.put(f"/accounts/admin/{boot['admin_id']}", headers=auth_headers, json={"password": "changed"})
    assert r.status_code == 200
    login(client, boot["admin_username"], "changed")

    assert client.get("/accounts/admin/ghost", headers=auth_headers).status_code == 404
    assert client.get(f"/accounts/owner/{boot['owner_id']}", headers=auth_headers).json()["station_name"] == "Demo Station"


def test_bootstrap_only_in_dev(client, monkeypatch):
    from hydrohub.config import settings
    monkeypatch.setattr(settings, "APP_ENV", "prod")
    r = client.post("/admin/dev-bootstrap")
    assert r.status_code == 403 and r.json()["detail"] == "Not allowed"


def test_accounts_edit_only_what_they_own(client, boot, rival, owner_headers, onsite_headers):
    r = client.post("/customers/register", json={
        "first_name": "C", "last_name": "D", "email": "c@d.example", "phone_number": "0955", "password": "pw",
    })
    assert r.status_code == 200
    cust = client.post("/customers/login", json={"email": "c@d.example", "password": "pw"}).json()
    cust_headers = {"Authorization": f"Bearer {cust['access_token']}"}
    onsite, delivery = boot["onsite_staff_id"], boot["delivery_staff_id"]

    assert client.put(f"/accounts/staff/{onsite}", headers=cust_headers, json={"password": "pwned"}).status_code == 403
    r = client.post("/login/", json={"username": boot["onsite_username"], "password": "pwned"})
    assert r.status_code == 401

    assert client.put(f"/accounts/staff/{delivery}", headers=onsite_headers, json={"first_name": "X"}).status_code == 403
    assert client.put(f"/accounts/staff/{onsite}", headers=rival["owner_headers"],
                      json={"first_name": "X"}).status_code == 403
    assert client.put(f"/accounts/staff/status/{onsite}", headers=rival["owner_headers"]).status_code == 403
    assert client.put(f"/accounts/owner/{boot['owner_id']}", headers=rival["owner_headers"],
                      json={"password": "pwned"}).status_code == 403
    assert client.post("/accounts/staff", headers=rival["owner_headers"], json=_person(
        "0944444444", station_id=boot["station_id"], type="Onsite")).status_code == 403

    # own-station owner manages its staff; accounts manage themselves
    r = client.put(f"/accounts/staff/{onsite}", headers=owner_headers, json={"first_name": "Boss-set"})
    assert r.status_code == 200 and r.json()["staff"]["first_name"] == "Boss-set"
    r = client.put(f"/accounts/owner/{boot['owner_id']}", headers=owner_headers, json={"first_name": "Olive"})
    assert r.status_code == 200
    r = client.put(f"/accounts/owner/{rival['owner_id']}", headers=rival["owner_headers"], json={"first_name": "Rita2"})
    assert r.status_code == 200
