import logging
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session
from hydrohub.util.security import create_token, verify_pw
from hydrohub.models.core import Administrator, Owner, Staff, AccountStatus
from hydrohub.db import get_db
from hydrohub.deps import ADMIN, OWNER

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/login", tags=["auth"])

class LoginIn(BaseModel):
    username: str
    password: str

def _resolve(db: Session, username: str):
    """Administrator, then owner, then active staff; returns (account, role)."""
    a = db.query(Administrator).filter(Administrator.username == username).first()
    if a:
        return a, ADMIN
    o = db.query(Owner).filter(Owner.username == username).first()
    if o:
        return o, OWNER
    s = (db.query(Staff)
           .filter(Staff.username == username, Staff.status == AccountStatus.ACTIVE)
           .first())
    if s:
        return s, s.type.value.lower()
    return None, None

@router.post("/")
def login(body: LoginIn, db: Session = Depends(get_db)):
    user, role = _resolve(db, body.username)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials or inactive account")
    if not verify_pw(user.pass_hash, body.password):
        raise HTTPException(status_code=401, detail="Incorrect password")

    profile = {
        "first_name": user.first_name,
        "last_name": user.last_name,
        "gender": user.gender,
        "phone_number": user.phone_number,
        "username": user.username,
    }
    out = {"success": True, "message": "Login successful", "role": role,
           "access_token": create_token(user.id, role), "token_type": "bearer"}
    if role == ADMIN:
        out["admin"] = {"admin_id": user.id, **profile}
    elif role == OWNER:
        out["owner"] = {"owner_id": user.id, "station_id": user.station_id, **profile}
    else:
        out["staff"] = {"staff_id": user.id, "station_id": user.station_id, "type": role,
                        "status": user.status.value, **profile}
    logger.info("login: %s as %s", user.username, role)
    return out
