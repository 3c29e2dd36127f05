"""Stock ledger: append-only inventory movements and the availability derived from them.

Available stock is never stored. It is folded from the movement log on every
read::

    available = sum(refilled + returned) - sum(discarded + delivered)

optionally narrowed to the movements recorded by staff of one station, and
clamped at zero for display. The raw (possibly negative) balance stays
reachable through ``raw_balance`` so audits can see a deficit.

All writers here only ``flush``; the caller owns the transaction (see
``hydrohub.db.atomic``).
"""
import logging
from datetime import datetime

from sqlalchemy import case, func, select, and_
from sqlalchemy.orm import Session

from hydrohub.deps import Principal
from hydrohub.errors import Conflict, NotFound, ValidationFailed
from hydrohub.models.core import (
    MovementKind, CREDIT_KINDS, DEBIT_KINDS,
    Product, Staff, Station, StockMovement,
)
from hydrohub.services.accounts import ensure_station_access
from hydrohub.util.audit import audit

logger = logging.getLogger(__name__)


# ── validation helpers ──────────────────────────────────────────────────────

def parse_kind(value) -> MovementKind:
    if isinstance(value, MovementKind):
        return value
    try:
        return MovementKind(value)
    except ValueError:
        allowed = ", ".join(k.value for k in MovementKind)
        raise ValidationFailed(f"Invalid stock type: {value!r} (expected one of {allowed})")


def check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailed("quantity must be a positive integer")
    return quantity


def _check_date(date) -> datetime:
    if not isinstance(date, datetime):
        raise ValidationFailed("date is required")
    return date


def station_of_staff(db: Session, staff_id: str | None) -> str:
    """Resolve the station a staff member belongs to; unknown staff is an error."""
    staff = db.get(Staff, staff_id) if staff_id else None
    if not staff or not staff.station_id:
        raise NotFound("Staff not found or has no station")
    return staff.station_id


def _product_in_station(db: Session, product_id: str | None, station_id: str) -> Product:
    product = db.get(Product, product_id) if product_id else None
    if not product:
        raise NotFound("Product not found")
    if product.station_id != station_id:
        raise ValidationFailed("Product does not belong to this station")
    return product


# ── writes ──────────────────────────────────────────────────────────────────

def record_movement(
    db: Session,
    *,
    product_id: str,
    quantity: int,
    kind,
    date: datetime,
    recorded_by: str,
    reason: str | None = None,
    ref_sale_id: str | None = None,
    actor: Principal | None = None,
) -> StockMovement:
    kind = parse_kind(kind)
    quantity = check_quantity(quantity)
    date = _check_date(date)
    station_id = station_of_staff(db, recorded_by)
    if actor is not None:
        ensure_station_access(db, actor, station_id)
    _product_in_station(db, product_id, station_id)

    m = StockMovement(
        product_id=product_id,
        staff_id=recorded_by,
        quantity=quantity,
        kind=kind,
        date=date,
        reason=reason or None,
        ref_sale_id=ref_sale_id,
    )
    db.add(m)
    db.flush()
    logger.info("stock %s: product=%s qty=%d station=%s staff=%s",
                kind.value, product_id, quantity, station_id, recorded_by)
    return m


def update_movement(
    db: Session,
    movement_id: str,
    *,
    product_id: str,
    quantity: int,
    kind,
    date: datetime,
    reason: str | None = None,
    actor: Principal | None = None,
) -> StockMovement:
    """Replace every correctable field of one movement in place.

    The recording staff member (and therefore the station) is kept; the new
    product must belong to that same station. Movements written for a sale
    are owned by that sale and only change through a sale edit.
    """
    m = db.get(StockMovement, movement_id)
    if not m:
        raise NotFound("Stock record not found")
    station_id = station_of_staff(db, m.staff_id)
    if actor is not None:
        ensure_station_access(db, actor, station_id)
    if m.ref_sale_id:
        raise Conflict("Stock record belongs to a sale; edit the sale instead")
    kind = parse_kind(kind)
    quantity = check_quantity(quantity)
    date = _check_date(date)
    _product_in_station(db, product_id, station_id)

    before = _snapshot(m)
    m.product_id = product_id
    m.quantity = quantity
    m.kind = kind
    m.date = date
    m.reason = reason or None
    db.flush()
    audit(db, actor.id if actor else None, "stock", m.id, "UPDATE", before=before, after=_snapshot(m))
    logger.info("stock %s corrected: %s -> %s", m.id, before, _snapshot(m))
    return m


def _snapshot(m: StockMovement) -> dict:
    return {
        "product_id": m.product_id,
        "quantity": m.quantity,
        "kind": m.kind.value,
        "date": m.date.isoformat() if m.date else None,
        "reason": m.reason,
    }


# ── reads ───────────────────────────────────────────────────────────────────

def _signed_quantity():
    return case(
        (StockMovement.kind.in_(CREDIT_KINDS), StockMovement.quantity),
        (StockMovement.kind.in_(DEBIT_KINDS), -StockMovement.quantity),
        else_=0,
    )


def _station_staff(station_id: str):
    return select(Staff.id).where(Staff.station_id == station_id)


def raw_balance(db: Session, product_id: str, station_id: str | None = None) -> int:
    """Signed sum of the product's movements, without clamping."""
    q = select(func.coalesce(func.sum(_signed_quantity()), 0)).where(StockMovement.product_id == product_id)
    if station_id:
        q = q.where(StockMovement.staff_id.in_(_station_staff(station_id)))
    return int(db.execute(q).scalar_one())


def query_available(db: Session, product_id: str, station_id: str | None = None) -> int:
    if not product_id or not db.get(Product, product_id):
        raise NotFound("Product not found")
    if station_id and not db.get(Station, station_id):
        raise NotFound("Station not found")
    return max(raw_balance(db, product_id, station_id), 0)


def list_movements(
    db: Session,
    station_id: str | None = None,
    kinds: list[MovementKind] | tuple[MovementKind, ...] | None = None,
) -> list[dict]:
    """Movements joined with product, staff and station names, most recent first."""
    q = (
        select(StockMovement, Product, Staff, Station)
        .join(Product, Product.id == StockMovement.product_id)
        .join(Staff, Staff.id == StockMovement.staff_id)
        .join(Station, Station.id == Staff.station_id)
    )
    if station_id:
        q = q.where(Staff.station_id == station_id)
    if kinds:
        q = q.where(StockMovement.kind.in_(list(kinds)))
    q = q.order_by(StockMovement.date.desc(), StockMovement.created_at.desc())
    return [movement_row(m, p, sf, st) for m, p, sf, st in db.execute(q).all()]


def query_by_kind(db: Session, station_id: str, kind) -> list[dict]:
    kind = parse_kind(kind)
    if not db.get(Station, station_id):
        raise NotFound("Station not found")
    return list_movements(db, station_id=station_id, kinds=[kind])


def summarize(db: Session, station_id: str | None = None) -> list[dict]:
    """Available quantity for every product (of one station, if given), by name."""
    on = StockMovement.product_id == Product.id
    if station_id:
        on = and_(on, StockMovement.staff_id.in_(_station_staff(station_id)))
    q = (
        select(
            Product.id, Product.name, Product.type, Product.size_category,
            Product.station_id, Product.is_archived,
            func.coalesce(func.sum(_signed_quantity()), 0).label("available"),
        )
        .outerjoin(StockMovement, on)
        .group_by(Product.id, Product.name, Product.type, Product.size_category,
                  Product.station_id, Product.is_archived)
        .order_by(Product.name.asc())
    )
    if station_id:
        q = q.where(Product.station_id == station_id)
    return [
        {
            "product_id": r.id,
            "product_name": r.name,
            "product_type": r.type,
            "size_category": r.size_category,
            "station_id": r.station_id,
            "is_archived": bool(r.is_archived),
            "available": max(int(r.available), 0),
        }
        for r in db.execute(q).all()
    ]


def movement_row(m: StockMovement, p: Product | None = None, sf: Staff | None = None,
                 st: Station | None = None) -> dict:
    row = {
        "id": m.id,
        "product_id": m.product_id,
        "staff_id": m.staff_id,
        "amount": m.quantity,
        "stock_type": m.kind.value,
        "date": m.date,
        "reason": m.reason,
        "ref_sale_id": m.ref_sale_id,
    }
    if p is not None:
        row.update(product_name=p.name, size_category=p.size_category, product_type=p.type)
    if sf is not None:
        row.update(first_name=sf.first_name, last_name=sf.last_name, station_id=sf.station_id)
    if st is not None:
        row.update(station_name=st.station_name)
    return row
