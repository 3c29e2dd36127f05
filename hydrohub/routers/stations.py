import json
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_role, OWNER
from hydrohub.models.core import Station, AccountStatus

router = APIRouter(prefix="/stations", tags=["stations"])

DEFAULT_WORKING_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri"]
UPDATABLE = ("station_name", "address", "contact_number", "description",
             "latitude", "longitude", "opening_time", "closing_time")


def parse_working_days(value) -> list[str]:
    """Accept a list, a JSON-array string or a comma list; anything else falls back to Mon-Fri."""
    if isinstance(value, list):
        days = value
    elif isinstance(value, str):
        try:
            parsed = json.loads(value)
            days = parsed if isinstance(parsed, list) else [str(parsed)]
        except ValueError:
            days = value.split(",")
    else:
        return list(DEFAULT_WORKING_DAYS)
    days = [str(d).strip() for d in days if str(d).strip()]
    return days or list(DEFAULT_WORKING_DAYS)


def _out(st: Station) -> dict:
    return {
        "station_id": st.id,
        "station_name": st.station_name,
        "address": st.address,
        "contact_number": st.contact_number,
        "description": st.description,
        "latitude": st.latitude,
        "longitude": st.longitude,
        "working_days": st.working_days.split(",") if st.working_days else [],
        "opening_time": st.opening_time,
        "closing_time": st.closing_time,
        "profile_picture": st.profile_picture,
        "status": st.status.value,
    }


@router.get("/", summary="Active stations (customer homepage)")
def list_active(db: Session = Depends(get_db)):
    rows = (db.query(Station)
              .filter(Station.status == AccountStatus.ACTIVE)
              .order_by(Station.station_name.asc())
              .all())
    # rating is a placeholder until reviews exist
    return [{**_out(st), "rating": 0.0} for st in rows]


@router.get("/{station_id}")
def get_station(station_id: str, db: Session = Depends(get_db)):
    st = db.get(Station, station_id)
    if not st:
        raise HTTPException(404, detail="Station not found")
    return _out(st)


@router.post("/update-profile")
def update_profile(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    """
    body: { station_id, station_name?, address?, contact_number?, description?, latitude?, longitude?,
            working_days?, opening_time?, closing_time?, profile_picture? }
    profile_picture is the stored file name; it is kept when not supplied.
    """
    st = db.get(Station, body.get("station_id") or "")
    if not st:
        raise HTTPException(404, detail="Station not found")
    if body.get("station_name") and body["station_name"] != st.station_name:
        taken = db.query(Station).filter(Station.station_name == body["station_name"], Station.id != st.id).first()
        if taken:
            raise HTTPException(409, detail="Station name already exists")
    with atomic(db):
        for k in UPDATABLE:
            if k in body:
                if k == "station_name" and not body[k]:
                    continue
                setattr(st, k, body[k] if body[k] != "" else None)
        if "working_days" in body:
            st.working_days = ",".join(parse_working_days(body["working_days"]))
        if body.get("profile_picture"):
            st.profile_picture = body["profile_picture"]
    return {"message": "Station profile updated successfully!", "data": _out(st)}
