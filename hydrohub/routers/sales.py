from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_role, OWNER, ONSITE, DELIVERY
from hydrohub.models.core import Sale, SaleType, Staff
from hydrohub.schemas.sales import SaleIn, SaleUpdateIn, SaleOut
from hydrohub.services.sales import record_sale, update_sale

router = APIRouter(prefix="/sales", tags=["sales"])

ANY_STAFF = require_role(OWNER, ONSITE, DELIVERY)


def _out(s: Sale) -> dict:
    return {
        "id": s.id,
        "product_id": s.product_id,
        "staff_id": s.staff_id,
        "customer_id": s.customer_id,
        "quantity": s.quantity,
        "total": float(s.total),
        "date": s.date,
        "payment_method": s.payment_method,
        "sale_type": s.sale_type.value,
        "proof": s.proof,
    }


@router.post("/", response_model=SaleOut, status_code=201)
def add_sale(body: SaleIn, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    with atomic(db):
        s = record_sale(db, **body.model_dump(), actor=me)
    return _out(s)


@router.get("/", response_model=List[SaleOut])
def list_sales(
    type: str | None = None,
    station_id: str | None = None,
    db: Session = Depends(get_db),
    me: Principal = Depends(ANY_STAFF),
):
    q = db.query(Sale)
    if type:
        try:
            q = q.filter(Sale.sale_type == SaleType(type.lower()))
        except ValueError:
            raise HTTPException(status_code=400, detail="invalid sale type")
    if station_id:
        q = q.join(Staff, Staff.id == Sale.staff_id).filter(Staff.station_id == station_id)
    return [_out(s) for s in q.order_by(Sale.date.desc(), Sale.created_at.desc()).all()]


@router.put("/{sale_id}", response_model=SaleOut)
def edit_sale(sale_id: str, body: SaleUpdateIn, db: Session = Depends(get_db), me: Principal = Depends(ANY_STAFF)):
    # sale row and its compensating ledger entries commit together or not at all
    with atomic(db):
        s = update_sale(db, sale_id, **body.model_dump(), actor=me)
    return _out(s)
