# hydrohub/routers/accounts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_auth, require_role, require_admin, OWNER
from hydrohub.models.core import Administrator, Owner, Staff, Station, AccountStatus
from hydrohub.services import accounts

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _person(a) -> dict:
    return {
        "id": a.id,
        "first_name": a.first_name,
        "last_name": a.last_name,
        "gender": a.gender,
        "phone_number": a.phone_number,
        "username": a.username,
    }

def _owner_out(db: Session, o: Owner) -> dict:
    st = db.get(Station, o.station_id)
    return {**_person(o), "station_id": o.station_id, "station_name": st.station_name if st else None,
            "status": o.status.value}

def _staff_out(db: Session, s: Staff) -> dict:
    st = db.get(Station, s.station_id)
    return {**_person(s), "station_id": s.station_id, "station_name": st.station_name if st else None,
            "type": s.type.value, "status": s.status.value}


# ── Administrators ──────────────────────────────────────────────────────────

@router.post("/admin", status_code=201)
def create_admin(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    """
    body: { first_name, last_name, gender, phone_number, password }
    """
    with atomic(db):
        a = accounts.create_admin(db, body)
    return {"success": True, "message": "Admin created", "id": a.id, "username": a.username}

@router.get("/admin/{admin_id}")
def get_admin(admin_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    a = db.get(Administrator, admin_id)
    if not a:
        raise HTTPException(404, detail="Admin not found")
    return _person(a)

@router.put("/admin/{admin_id}")
def update_admin(admin_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    a = db.get(Administrator, admin_id)
    if not a:
        raise HTTPException(404, detail="Admin not found")
    with atomic(db):
        accounts.update_profile(db, a, body)
    return {"success": True, "message": "Admin updated", "admin": _person(a)}


# ── Owners ──────────────────────────────────────────────────────────────────

@router.post("/owner", status_code=201)
def create_owner(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    """
    Creates the owner and finds (or creates) its station by name, in one transaction.
    body: { station_name, first_name, last_name, gender, phone_number, password }
    """
    with atomic(db):
        o = accounts.create_owner(db, body)
    return {"success": True, "message": "Owner created", "id": o.id, "username": o.username,
            "station_id": o.station_id}

@router.get("/owner/{owner_id}")
def get_owner(owner_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    o = db.get(Owner, owner_id)
    if not o:
        raise HTTPException(404, detail="Owner not found")
    return _owner_out(db, o)

@router.put("/owner/{owner_id}")
def update_owner(owner_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    o = db.get(Owner, owner_id)
    if not o:
        raise HTTPException(404, detail="Owner not found")
    accounts.ensure_can_edit(db, me, o)
    with atomic(db):
        accounts.update_profile(db, o, body)
    return {"success": True, "message": "Owner updated", "owner": _owner_out(db, o)}


# ── Staff ───────────────────────────────────────────────────────────────────

@router.post("/staff", status_code=201)
def create_staff(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    """
    body: { station_id, first_name, last_name, gender, phone_number, type: Onsite|Delivery, password }
    """
    accounts.ensure_station_access(db, me, body.get("station_id") or "")
    with atomic(db):
        s = accounts.create_staff(db, body)
    return {"success": True, "message": "Staff created", "id": s.id, "username": s.username}

@router.get("/staff", summary="List staff (optionally one station)")
def list_staff(station_id: str | None = None, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    q = db.query(Staff)
    if station_id:
        q = q.filter(Staff.station_id == station_id)
    return [_staff_out(db, s) for s in q.order_by(Staff.created_at.asc()).all()]

@router.get("/staff/{staff_id}")
def get_staff(staff_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    s = db.get(Staff, staff_id)
    if not s:
        raise HTTPException(404, detail="Staff not found")
    return _staff_out(db, s)

@router.put("/staff/status/{staff_id}", summary="Toggle Active / Inactive")
def toggle_staff_status(staff_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    s = db.get(Staff, staff_id)
    if not s:
        raise HTTPException(404, detail="Staff not found")
    accounts.ensure_station_access(db, me, s.station_id)
    with atomic(db):
        s.status = AccountStatus.INACTIVE if s.status == AccountStatus.ACTIVE else AccountStatus.ACTIVE
    msg = "Staff account activated." if s.status == AccountStatus.ACTIVE else "Staff account deactivated."
    return {"success": True, "message": msg, "staff": _staff_out(db, s)}

@router.put("/staff/{staff_id}")
def update_staff(staff_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    s = db.get(Staff, staff_id)
    if not s:
        raise HTTPException(404, detail="Staff not found")
    accounts.ensure_can_edit(db, me, s)
    with atomic(db):
        accounts.update_profile(db, s, body)
    return {"success": True, "message": "Staff updated", "staff": _staff_out(db, s)}
