from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import update

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_auth, CUSTOMER
from hydrohub.errors import Forbidden
from hydrohub.models.core import Customer, CustomerAddress, AccountStatus
from hydrohub.util.security import hash_pw, verify_pw, create_token

router = APIRouter(prefix="/customers", tags=["customers"])


def _out(c: Customer) -> dict:
    return {
        "customer_id": c.id,
        "first_name": c.first_name,
        "last_name": c.last_name,
        "email": c.email,
        "phone_number": c.phone_number,
    }

def _address_out(a: CustomerAddress) -> dict:
    return {
        "address_id": a.id, "customer_id": a.customer_id, "label": a.label, "address": a.address,
        "note": a.note, "latitude": a.latitude, "longitude": a.longitude, "is_default": bool(a.is_default),
    }

def _own(me: Principal, customer_id: str) -> None:
    # customers may only touch their own record; staff-side roles may read/update any
    if me.role == CUSTOMER and me.id != customer_id:
        raise Forbidden("Not your account")


@router.post("/register")
def register(body: dict, db: Session = Depends(get_db)):
    for field in ("first_name", "last_name", "email", "phone_number", "password"):
        if not body.get(field):
            raise HTTPException(400, detail="All fields are required.")
    if db.query(Customer).filter(Customer.email == body["email"]).first():
        raise HTTPException(409, detail="Email already registered.")
    with atomic(db):
        c = Customer(
            first_name=body["first_name"],
            last_name=body["last_name"],
            email=body["email"],
            phone_number=body["phone_number"],
            pass_hash=hash_pw(body["password"]),
        )
        db.add(c)
    return {"success": True, "message": "Customer registered successfully.", "customer_id": c.id}


@router.post("/login")
def login(body: dict, db: Session = Depends(get_db)):
    if not body.get("email") or not body.get("password"):
        raise HTTPException(400, detail="Email and password are required.")
    c = db.query(Customer).filter(Customer.email == body["email"]).first()
    if not c or c.status != AccountStatus.ACTIVE or not verify_pw(c.pass_hash, body["password"]):
        raise HTTPException(401, detail="Invalid email or password.")
    return {"success": True, "message": "Login successful.", "customer": _out(c),
            "access_token": create_token(c.id, CUSTOMER), "token_type": "bearer"}


@router.put("/update-address")
def update_address(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    for field in ("customer_id", "address", "latitude", "longitude"):
        if body.get(field) in (None, ""):
            raise HTTPException(400, detail="Missing fields.")
    _own(me, body["customer_id"])
    c = db.get(Customer, body["customer_id"])
    if not c:
        raise HTTPException(404, detail="Customer not found.")
    with atomic(db):
        c.address = body["address"]
        c.latitude = body["latitude"]
        c.longitude = body["longitude"]
    return {"success": True, "message": "Address updated successfully."}


@router.get("/{customer_id}")
def get_customer(customer_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    c = db.get(Customer, customer_id)
    if not c:
        raise HTTPException(404, detail="Customer not found.")
    default = (db.query(CustomerAddress)
                 .filter(CustomerAddress.customer_id == customer_id, CustomerAddress.is_default.is_(True))
                 .first())
    return {
        **_out(c),
        "address": c.address, "latitude": c.latitude, "longitude": c.longitude,
        "default_address": _address_out(default) if default else None,
    }


@router.put("/{customer_id}")
def update_customer(customer_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    """Only supplied fields change; omitted ones keep their stored value."""
    _own(me, customer_id)
    c = db.get(Customer, customer_id)
    if not c:
        raise HTTPException(404, detail="Customer not found.")
    if body.get("email") and body["email"] != c.email:
        if db.query(Customer).filter(Customer.email == body["email"]).first():
            raise HTTPException(409, detail="Email already registered.")
    with atomic(db):
        for field in ("first_name", "last_name", "email", "phone_number"):
            if body.get(field) is not None:
                setattr(c, field, body[field])
        if body.get("password"):
            c.pass_hash = hash_pw(body["password"])
        if body.get("status") is not None:
            try:
                c.status = AccountStatus(body["status"])
            except ValueError:
                raise HTTPException(400, detail="invalid status")
    return {"success": True, "message": "Customer updated successfully.", "customer": _out(c)}


# ── Address book ────────────────────────────────────────────────────────────

@router.get("/{customer_id}/addresses")
def list_addresses(customer_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    rows = (db.query(CustomerAddress)
              .filter(CustomerAddress.customer_id == customer_id)
              .order_by(CustomerAddress.is_default.desc(), CustomerAddress.created_at.desc())
              .all())
    return [_address_out(a) for a in rows]


@router.post("/{customer_id}/addresses")
def add_address(customer_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    if not db.get(Customer, customer_id):
        raise HTTPException(404, detail="Customer not found.")
    if not body.get("address"):
        raise HTTPException(400, detail="address is required")
    with atomic(db):
        a = CustomerAddress(
            customer_id=customer_id,
            label=body.get("label") or None,
            address=body["address"],
            note=body.get("note") or None,
            latitude=body.get("latitude"),
            longitude=body.get("longitude"),
        )
        db.add(a)
    return {"success": True, "address": _address_out(a)}


def _get_address(db: Session, customer_id: str, address_id: str) -> CustomerAddress:
    a = db.get(CustomerAddress, address_id)
    if not a or a.customer_id != customer_id:
        raise HTTPException(404, detail="Address not found.")
    return a


@router.put("/{customer_id}/addresses/{address_id}")
def update_address_entry(customer_id: str, address_id: str, body: dict,
                         db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    a = _get_address(db, customer_id, address_id)
    with atomic(db):
        for field in ("label", "address", "note", "latitude", "longitude"):
            if field in body:
                setattr(a, field, body[field])
    return {"success": True}


@router.delete("/{customer_id}/addresses/{address_id}")
def delete_address(customer_id: str, address_id: str, db: Session = Depends(get_db),
                   me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    a = _get_address(db, customer_id, address_id)
    with atomic(db):
        db.delete(a)
    return {"success": True}


@router.put("/{customer_id}/addresses/{address_id}/default")
def set_default_address(customer_id: str, address_id: str, db: Session = Depends(get_db),
                        me: Principal = Depends(require_auth)):
    _own(me, customer_id)
    a = _get_address(db, customer_id, address_id)
    with atomic(db):
        db.execute(update(CustomerAddress)
                   .where(CustomerAddress.customer_id == customer_id)
                   .values(is_default=False))
        a.is_default = True
    return {"success": True}
