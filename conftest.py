# conftest.py
import os

# Settings are read at import time; point them at a throwaway in-memory database
os.environ.setdefault("APP_SECRET", "test-secret-key-for-unit-tests-only")
os.environ.setdefault("DB_URL", "sqlite://")
os.environ["APP_ENV"] = "dev"

import random
import string
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from hydrohub.db import Database
from hydrohub.main import create_app
from hydrohub.models.core import Product
from hydrohub.services import accounts


# ── service-level fixtures (direct session, no HTTP) ────────────────────────

@pytest.fixture
def database():
    database = Database("sqlite://").open()
    database.create_all()
    yield database
    database.close()

@pytest.fixture
def db(database):
    s = database.session()
    yield s
    s.rollback()
    s.close()

@pytest.fixture
def station(db):
    owner = accounts.create_owner(db, {
        "station_name": "Aqua North", "first_name": "Nina", "last_name": "Reyes",
        "gender": "Female", "phone_number": "0917000001", "password": "pw",
    })
    db.commit()
    return owner.station_id

@pytest.fixture
def other_station(db):
    owner = accounts.create_owner(db, {
        "station_name": "Aqua South", "first_name": "Sam", "last_name": "Cruz",
        "gender": "Male", "phone_number": "0917000002", "password": "pw",
    })
    db.commit()
    return owner.station_id

def make_staff(db, station_id, phone, type="Onsite"):
    s = accounts.create_staff(db, {
        "station_id": station_id, "type": type, "first_name": "Ana", "last_name": "Lim",
        "gender": "Female", "phone_number": phone, "password": "pw",
    })
    db.commit()
    return s.id

def make_product(db, station_id, name="Purified Water", size="5 Gallons"):
    p = Product(station_id=station_id, name=name, type="Purified", size_category=size, price=25)
    db.add(p)
    db.commit()
    return p.id

@pytest.fixture
def staff(db, station):
    return make_staff(db, station, "0918000001")

@pytest.fixture
def product(db, station):
    return make_product(db, station)

@pytest.fixture
def when():
    base = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
    def _at(minutes: int = 0) -> datetime:
        return base + timedelta(minutes=minutes)
    return _at


# ── HTTP fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def client():
    app = create_app(Database("sqlite://"))
    with TestClient(app) as c:
        yield c

@pytest.fixture
def boot(client):
    r = client.post("/admin/dev-bootstrap")
    assert r.status_code == 200, f"/admin/dev-bootstrap failed: {r.text}"
    return r.json()

def login(client, username, password="admin"):
    r = client.post("/login/", json={"username": username, "password": password})
    assert r.status_code == 200, f"/login failed: {r.text}"
    return {"Authorization": f"Bearer {r.json()['access_token']}"}

@pytest.fixture
def auth_headers(client, boot):
    return login(client, boot["admin_username"])

@pytest.fixture
def owner_headers(client, boot):
    return login(client, boot["owner_username"])

@pytest.fixture
def onsite_headers(client, boot):
    return login(client, boot["onsite_username"])

@pytest.fixture
def delivery_headers(client, boot):
    return login(client, boot["delivery_username"])

@pytest.fixture
def rng_suffix():
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=6))

@pytest.fixture
def rival(client, auth_headers):
    """A second station with its own owner and onsite staff, all logged in."""
    r = client.post("/accounts/owner", headers=auth_headers, json={
        "station_name": "Rival", "first_name": "Rita", "last_name": "Rival", "gender": "Female",
        "phone_number": "0966000000", "password": "pw",
    })
    assert r.status_code == 201, r.text
    owner = r.json()
    owner_headers = login(client, owner["username"], "pw")
    r = client.post("/accounts/staff", headers=owner_headers, json={
        "station_id": owner["station_id"], "type": "Onsite", "first_name": "Rick", "last_name": "Rival",
        "gender": "Male", "phone_number": "0966000001", "password": "pw",
    })
    assert r.status_code == 201, r.text
    staff = r.json()
    return {
        "station_id": owner["station_id"], "owner_id": owner["id"], "owner_headers": owner_headers,
        "staff_id": staff["id"], "staff_headers": login(client, staff["username"], "pw"),
    }
