# hydrohub/routers/stocks.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_auth, require_role, require_admin, OWNER, ONSITE, DELIVERY
from hydrohub.models.core import MovementKind, Station
from hydrohub.schemas.stocks import (
    StockIn, StockUpdateIn, StockOut, StockRowOut, AvailableIn, AvailableOut, StockSummaryOut,
)
from hydrohub.services import ledger

router = APIRouter(prefix="/stocks", tags=["stocks"])

ANY_STAFF = require_role(OWNER, ONSITE, DELIVERY)


@router.post("/", response_model=StockOut, status_code=201)
def add_stock(body: StockIn, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    with atomic(db):
        m = ledger.record_movement(
            db,
            product_id=body.product_id,
            quantity=body.amount,
            kind=body.stock_type,
            date=body.date,
            reason=body.reason,
            recorded_by=body.staff_id,
            actor=me,
        )
    return ledger.movement_row(m)


@router.put("/{stock_id}", response_model=StockOut)
def update_stock(stock_id: str, body: StockUpdateIn, db: Session = Depends(get_db),
                 me: Principal = Depends(ANY_STAFF)):
    with atomic(db):
        m = ledger.update_movement(
            db, stock_id,
            product_id=body.product_id,
            quantity=body.amount,
            kind=body.stock_type,
            date=body.date,
            reason=body.reason,
            actor=me,
        )
    return ledger.movement_row(m)


@router.post("/available", response_model=AvailableOut)
def available(body: AvailableIn, db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    """
    body: { product_id, staff_id? | station_id? }
    staff_id narrows to that staff member's station; station_id narrows directly.
    """
    station_id = body.station_id
    if body.staff_id:
        station_id = ledger.station_of_staff(db, body.staff_id)
    if not station_id:
        raise HTTPException(400, detail="staff_id or station_id is required")
    return {"available": ledger.query_available(db, body.product_id, station_id)}


@router.get("/type/{station_id}/{stock_type}", response_model=List[StockRowOut])
def by_type(station_id: str, stock_type: str, db: Session = Depends(get_db),
            me: Principal = Depends(ANY_STAFF)):
    return ledger.query_by_kind(db, station_id, stock_type)


@router.get("/summary", response_model=List[StockSummaryOut], summary="Availability across all stations")
def summary_all(db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    return ledger.summarize(db)


@router.get("/summary/{station_id}", response_model=List[StockSummaryOut])
def summary(station_id: str, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    if not db.get(Station, station_id):
        raise HTTPException(404, detail="Station not found")
    return ledger.summarize(db, station_id)


# ── role views ──────────────────────────────────────────────────────────────

@router.get("/admin", response_model=List[StockRowOut], summary="All stations (admin)")
def admin_view(db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    return ledger.list_movements(db)


@router.get("/owner/{station_id}", response_model=List[StockRowOut])
def owner_view(station_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    return ledger.list_movements(db, station_id=station_id)


@router.get("/onsite/{staff_id}", response_model=List[StockRowOut])
def onsite_view(staff_id: str, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    return ledger.list_movements(db, station_id=ledger.station_of_staff(db, staff_id))


@router.get("/delivery/{staff_id}", response_model=List[StockRowOut], summary="Delivered and returned stock")
def delivery_view(staff_id: str, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    return ledger.list_movements(
        db,
        station_id=ledger.station_of_staff(db, staff_id),
        kinds=(MovementKind.DELIVERED, MovementKind.RETURNED),
    )
