from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hydrohub.db import get_db, atomic
from hydrohub.config import settings
from hydrohub.errors import Forbidden
from hydrohub.models.core import Administrator, Owner, Staff, StaffType, Station, Product
from hydrohub.services import accounts

router = APIRouter(prefix="/admin", tags=["admin"])

DEV_PASSWORD = "admin"

@router.post("/dev-bootstrap")
def dev_bootstrap(db: Session = Depends(get_db)):
    if settings.APP_ENV != "dev":
        raise Forbidden("Not allowed")

    with atomic(db):
        # Administrator
        a = db.query(Administrator).first()
        if not a:
            a = accounts.create_admin(db, {
                "first_name": "Admin", "last_name": "HydroHub", "gender": "Other",
                "phone_number": "09990000000", "password": DEV_PASSWORD,
            })

        # Owner + station
        o = db.query(Owner).first()
        if not o:
            o = accounts.create_owner(db, {
                "station_name": "Demo Station", "first_name": "Olivia", "last_name": "Owner",
                "gender": "Female", "phone_number": "09990000001", "password": DEV_PASSWORD,
            })
        st = db.get(Station, o.station_id)

        # One staff member of each type
        staff = {}
        for i, stype in enumerate(StaffType, start=2):
            s = db.query(Staff).filter(Staff.station_id == st.id, Staff.type == stype).first()
            if not s:
                s = accounts.create_staff(db, {
                    "station_id": st.id, "type": stype.value, "first_name": stype.value,
                    "last_name": "Staff", "gender": "Male",
                    "phone_number": f"0999000000{i}", "password": DEV_PASSWORD,
                })
            staff[stype] = s

        # A product to record stock against
        p = db.query(Product).filter(Product.station_id == st.id).first()
        if not p:
            p = Product(station_id=st.id, name="Purified Water", type="Purified",
                        size_category="5 Gallons", price=25)
            db.add(p); db.flush()

    return {
        "admin_id": a.id, "admin_username": a.username,
        "owner_id": o.id, "owner_username": o.username,
        "station_id": st.id,
        "onsite_staff_id": staff[StaffType.ONSITE].id,
        "onsite_username": staff[StaffType.ONSITE].username,
        "delivery_staff_id": staff[StaffType.DELIVERY].id,
        "delivery_username": staff[StaffType.DELIVERY].username,
        "product_id": p.id,
        "password": DEV_PASSWORD,
    }
