import logging
from datetime import datetime

from sqlalchemy.orm import Session

from hydrohub.errors import NotFound, ValidationFailed
from hydrohub.models.core import MovementKind, Product, Sale, SaleType
from hydrohub.deps import Principal
from hydrohub.services import ledger
from hydrohub.services.accounts import ensure_station_access

logger = logging.getLogger(__name__)


def _sale_type(value) -> SaleType:
    if isinstance(value, SaleType):
        return value
    try:
        return SaleType(str(value).strip().lower())
    except ValueError:
        raise ValidationFailed(f"Invalid sale type: {value!r}")


def record_sale(db: Session, *, product_id: str, staff_id: str, quantity: int, total: float,
                date: datetime, payment_method: str, sale_type, proof: str | None = None,
                customer_id: str | None = None,
                actor: Principal | None = None) -> Sale:
    """Insert a sale; a delivery sale also takes its quantity out of the ledger."""
    sale_type = _sale_type(sale_type)
    quantity = ledger.check_quantity(quantity)
    station_id = ledger.station_of_staff(db, staff_id)
    if actor is not None:
        ensure_station_access(db, actor, station_id)
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    if product.station_id != station_id:
        raise ValidationFailed("Product does not belong to this station")

    s = Sale(
        product_id=product_id, staff_id=staff_id, customer_id=customer_id,
        quantity=quantity, total=total, date=date,
        payment_method=payment_method, sale_type=sale_type, proof=proof,
    )
    db.add(s)
    db.flush()

    if sale_type == SaleType.DELIVERY:
        ledger.record_movement(
            db, product_id=product_id, quantity=quantity, kind=MovementKind.DELIVERED,
            date=date, recorded_by=staff_id, reason=f"Sale {s.id}", ref_sale_id=s.id,
        )
    return s


def update_sale(db: Session, sale_id: str, *, product_id: str, staff_id: str | None, quantity: int,
                total: float, date: datetime, payment_method: str, sale_type,
                proof: str | None = None, customer_id: str | None = None,
                actor: Principal | None = None) -> Sale:
    """Replace a sale's fields, keeping the ledger append-only.

    If the old sale was a delivery, its debit is reversed with a ``returned``
    entry for the old product and quantity; if the new sale is a delivery, a
    fresh ``delivered`` entry is written. Nothing already in the ledger changes.
    """
    s = db.get(Sale, sale_id)
    if not s:
        raise NotFound("Sale not found")
    sale_type = _sale_type(sale_type)
    quantity = ledger.check_quantity(quantity)
    if actor is not None:
        ensure_station_access(db, actor, ledger.station_of_staff(db, s.staff_id))
    staff_id = staff_id or s.staff_id
    station_id = ledger.station_of_staff(db, staff_id)
    if actor is not None:
        ensure_station_access(db, actor, station_id)
    product = db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    if product.station_id != station_id:
        raise ValidationFailed("Product does not belong to this station")

    if s.sale_type == SaleType.DELIVERY:
        ledger.record_movement(
            db, product_id=s.product_id, quantity=s.quantity, kind=MovementKind.RETURNED,
            date=date, recorded_by=s.staff_id, reason=f"Sale {s.id} edited", ref_sale_id=s.id,
        )
        logger.info("sale %s: reversed delivery of %d x %s", s.id, s.quantity, s.product_id)

    if sale_type == SaleType.DELIVERY:
        ledger.record_movement(
            db, product_id=product_id, quantity=quantity, kind=MovementKind.DELIVERED,
            date=date, recorded_by=staff_id, reason=f"Sale {s.id}", ref_sale_id=s.id,
        )

    s.product_id = product_id
    s.staff_id = staff_id
    s.quantity = quantity
    s.total = total
    s.date = date
    s.payment_method = payment_method
    s.sale_type = sale_type
    if customer_id is not None:
        s.customer_id = customer_id
    if proof:
        s.proof = proof
    db.flush()
    return s
