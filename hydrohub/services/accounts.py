"""Account provisioning helpers shared by the account routers."""
import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from hydrohub.config import settings
from hydrohub.deps import ADMIN, OWNER, STAFF_ROLES, Principal
from hydrohub.errors import Conflict, Forbidden, NotFound, ValidationFailed
from hydrohub.models.core import (
    AccountStatus, Administrator, Owner, Staff, StaffType, Station,
)
from hydrohub.util.security import hash_pw

logger = logging.getLogger(__name__)

_SUFFIX = re.compile(r"(\d+)$")

REQUIRED_PERSON_FIELDS = ("first_name", "last_name", "gender", "phone_number", "password")
PROFILE_FIELDS = ("first_name", "last_name", "phone_number")


def require_fields(body: dict, fields) -> None:
    missing = [f for f in fields if not body.get(f)]
    if missing:
        raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")


def next_username(db: Session, model, prefix: str) -> str:
    """``prefix`` + the table's highest numeric username suffix + 1, zero padded.

    The counter is per table, not per prefix, so ``onsite000003`` is followed by
    ``delivery000004``.
    """
    highest = 0
    for (username,) in db.execute(select(model.username)):
        m = _SUFFIX.search(username or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{prefix.lower()}{highest + 1:0{settings.USERNAME_DIGITS}d}"


def ensure_phone_free(db: Session, model, phone_number: str, exclude_id: str | None = None) -> None:
    q = select(model.id).where(model.phone_number == phone_number)
    if exclude_id:
        q = q.where(model.id != exclude_id)
    if db.execute(q.limit(1)).first():
        raise Conflict("Phone number already exists")


def find_or_create_station(db: Session, station_name: str) -> Station:
    st = db.execute(
        select(Station).where(func.lower(Station.station_name) == station_name.strip().lower())
    ).scalar_one_or_none()
    if st:
        return st
    st = Station(station_name=station_name.strip(), status=AccountStatus.ACTIVE)
    db.add(st)
    db.flush()
    logger.info("station created: %s (%s)", st.station_name, st.id)
    return st


def create_admin(db: Session, body: dict) -> Administrator:
    require_fields(body, REQUIRED_PERSON_FIELDS)
    ensure_phone_free(db, Administrator, body["phone_number"])
    a = Administrator(
        first_name=body["first_name"],
        last_name=body["last_name"],
        gender=body["gender"],
        phone_number=body["phone_number"],
        username=next_username(db, Administrator, settings.ADMIN_USERNAME_PREFIX),
        pass_hash=hash_pw(body["password"]),
    )
    db.add(a)
    db.flush()
    logger.info("administrator created: %s", a.username)
    return a


def create_owner(db: Session, body: dict) -> Owner:
    require_fields(body, ("station_name",) + REQUIRED_PERSON_FIELDS)
    ensure_phone_free(db, Owner, body["phone_number"])
    station = find_or_create_station(db, body["station_name"])
    o = Owner(
        station_id=station.id,
        first_name=body["first_name"],
        last_name=body["last_name"],
        gender=body["gender"],
        phone_number=body["phone_number"],
        username=next_username(db, Owner, re.sub(r"\s+", "", body["last_name"])),
        pass_hash=hash_pw(body["password"]),
        status=AccountStatus.ACTIVE,
    )
    db.add(o)
    db.flush()
    logger.info("owner created: %s for station %s", o.username, station.id)
    return o


def create_staff(db: Session, body: dict) -> Staff:
    require_fields(body, ("station_id", "type") + REQUIRED_PERSON_FIELDS)
    try:
        staff_type = StaffType(body["type"])
    except ValueError:
        raise ValidationFailed("Invalid staff type")
    if not db.get(Station, body["station_id"]):
        raise NotFound("Station not found")
    ensure_phone_free(db, Staff, body["phone_number"])
    s = Staff(
        station_id=body["station_id"],
        first_name=body["first_name"],
        last_name=body["last_name"],
        gender=body["gender"],
        phone_number=body["phone_number"],
        type=staff_type,
        username=next_username(db, Staff, staff_type.value),
        pass_hash=hash_pw(body["password"]),
        status=AccountStatus.ACTIVE,
    )
    db.add(s)
    db.flush()
    logger.info("staff created: %s for station %s", s.username, s.station_id)
    return s


def update_profile(db: Session, account, body: dict) -> None:
    """Partial update: only supplied (non-empty) fields change."""
    changed = False
    for field in PROFILE_FIELDS:
        if body.get(field):
            if field == "phone_number":
                ensure_phone_free(db, type(account), body[field], exclude_id=account.id)
            setattr(account, field, body[field])
            changed = True
    if body.get("password"):
        account.pass_hash = hash_pw(body["password"])
        changed = True
    if not changed:
        raise ValidationFailed("No fields to update")
    db.flush()


# ── access ──────────────────────────────────────────────────────────────────

def principal_station(db: Session, me: Principal) -> str | None:
    """Station the caller works for; ``None`` for administrators (every station)."""
    if me.role == ADMIN:
        return None
    account = None
    if me.role == OWNER:
        account = db.get(Owner, me.id)
    elif me.role in STAFF_ROLES:
        account = db.get(Staff, me.id)
    if not account or not account.station_id:
        raise Forbidden("No station access")
    return account.station_id


def ensure_station_access(db: Session, me: Principal, station_id: str) -> None:
    mine = principal_station(db, me)
    if mine is not None and mine != station_id:
        raise Forbidden("No access to this station")


def ensure_can_edit(db: Session, me: Principal, account) -> None:
    """Admins edit anyone; others edit themselves; owners also edit their station's staff."""
    if me.role == ADMIN or me.id == account.id:
        return
    if me.role == OWNER and isinstance(account, Staff):
        ensure_station_access(db, me, account.station_id)
        return
    raise Forbidden("Not your account")
