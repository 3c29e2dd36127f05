from sqlalchemy import (
    String, ForeignKey, Boolean, Numeric, Enum, Text, DateTime, Integer, Float, CheckConstraint
)
from sqlalchemy.orm import Mapped, mapped_column
from enum import Enum as PyEnum
from datetime import datetime
from hydrohub.db import Base
from hydrohub.models.common import IdMixin, TSMMixin

def _values(enum_cls):
    # persist the literal wire values ("refilled", "Onsite", ...) rather than member names
    return [m.value for m in enum_cls]

# ── Enums ───────────────────────────────────────────────────────────────────
class MovementKind(PyEnum):
    REFILLED = "refilled"
    DISCARDED = "discarded"
    DELIVERED = "delivered"
    RETURNED = "returned"

    @property
    def sign(self) -> int:
        return MOVEMENT_SIGN[self]

# +1 adds to available stock, -1 takes from it
MOVEMENT_SIGN: dict[MovementKind, int] = {
    MovementKind.REFILLED: 1,
    MovementKind.RETURNED: 1,
    MovementKind.DISCARDED: -1,
    MovementKind.DELIVERED: -1,
}
if set(MOVEMENT_SIGN) != set(MovementKind):
    raise RuntimeError("every movement kind needs a sign")

CREDIT_KINDS = tuple(k for k, s in MOVEMENT_SIGN.items() if s > 0)
DEBIT_KINDS = tuple(k for k, s in MOVEMENT_SIGN.items() if s < 0)

class StaffType(PyEnum):
    ONSITE = "Onsite"
    DELIVERY = "Delivery"

class AccountStatus(PyEnum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"

class SaleType(PyEnum):
    ONSITE = "onsite"
    DELIVERY = "delivery"

# ── Stations ────────────────────────────────────────────────────────────────
class Station(Base, IdMixin, TSMMixin):
    __tablename__ = "water_refilling_stations"
    station_name: Mapped[str] = mapped_column(String(160), unique=True)
    address: Mapped[str | None] = mapped_column(Text)
    contact_number: Mapped[str | None] = mapped_column(String(20))
    description: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    working_days: Mapped[str | None] = mapped_column(String(60), default="Mon,Tue,Wed,Thu,Fri")  # comma-joined
    opening_time: Mapped[str | None] = mapped_column(String(8))   # "HH:MM"
    closing_time: Mapped[str | None] = mapped_column(String(8))
    profile_picture: Mapped[str | None] = mapped_column(String(300))
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, values_callable=_values), default=AccountStatus.ACTIVE)

# ── Accounts ────────────────────────────────────────────────────────────────
class Administrator(Base, IdMixin, TSMMixin):
    __tablename__ = "administrator"
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    gender: Mapped[str] = mapped_column(String(20))
    phone_number: Mapped[str] = mapped_column(String(20), unique=True)
    username: Mapped[str] = mapped_column(String(60), unique=True)
    pass_hash: Mapped[str] = mapped_column(String(200))

class Owner(Base, IdMixin, TSMMixin):
    __tablename__ = "owners"
    station_id: Mapped[str] = mapped_column(String(36), ForeignKey("water_refilling_stations.id"))
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    gender: Mapped[str] = mapped_column(String(20))
    phone_number: Mapped[str] = mapped_column(String(20), unique=True)
    username: Mapped[str] = mapped_column(String(60), unique=True)
    pass_hash: Mapped[str] = mapped_column(String(200))
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, values_callable=_values), default=AccountStatus.ACTIVE)

class Staff(Base, IdMixin, TSMMixin):
    __tablename__ = "staff"
    station_id: Mapped[str] = mapped_column(String(36), ForeignKey("water_refilling_stations.id"))
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    gender: Mapped[str] = mapped_column(String(20))
    phone_number: Mapped[str] = mapped_column(String(20), unique=True)
    type: Mapped[StaffType] = mapped_column(Enum(StaffType, values_callable=_values))
    username: Mapped[str] = mapped_column(String(60), unique=True)
    pass_hash: Mapped[str] = mapped_column(String(200))
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, values_callable=_values), default=AccountStatus.ACTIVE)

class Customer(Base, IdMixin, TSMMixin):
    __tablename__ = "customers"
    first_name: Mapped[str] = mapped_column(String(80))
    last_name: Mapped[str] = mapped_column(String(80))
    email: Mapped[str] = mapped_column(String(160), unique=True)
    phone_number: Mapped[str] = mapped_column(String(20))
    pass_hash: Mapped[str] = mapped_column(String(200))
    address: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus, values_callable=_values), default=AccountStatus.ACTIVE)

class CustomerAddress(Base, IdMixin, TSMMixin):
    __tablename__ = "customer_addresses"
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"))
    label: Mapped[str | None] = mapped_column(String(60))
    address: Mapped[str] = mapped_column(Text)
    note: Mapped[str | None] = mapped_column(Text)
    latitude: Mapped[float | None] = mapped_column(Float)
    longitude: Mapped[float | None] = mapped_column(Float)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

# ── Catalog ─────────────────────────────────────────────────────────────────
class Product(Base, IdMixin, TSMMixin):
    __tablename__ = "products"
    station_id: Mapped[str] = mapped_column(String(36), ForeignKey("water_refilling_stations.id"))
    name: Mapped[str] = mapped_column(String(160))
    type: Mapped[str] = mapped_column(String(60))           # e.g. Alkaline / Mineral / Purified
    size_category: Mapped[str] = mapped_column(String(60))  # e.g. 5 Gallons
    price: Mapped[float] = mapped_column(Numeric(10, 2))
    photo: Mapped[str | None] = mapped_column(String(300))
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)

# ── Sales ───────────────────────────────────────────────────────────────────
class Sale(Base, IdMixin, TSMMixin):
    __tablename__ = "sales"
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"))
    staff_id: Mapped[str] = mapped_column(String(36), ForeignKey("staff.id"))
    customer_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("customers.id"))
    quantity: Mapped[int] = mapped_column(Integer)
    total: Mapped[float] = mapped_column(Numeric(10, 2))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    payment_method: Mapped[str] = mapped_column(String(30))
    sale_type: Mapped[SaleType] = mapped_column(Enum(SaleType, values_callable=_values))
    proof: Mapped[str | None] = mapped_column(String(300))
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),)

# ── Stock ledger ────────────────────────────────────────────────────────────
class StockMovement(Base, IdMixin, TSMMixin):
    """One inventory event. Quantity is a magnitude; the kind gives the direction."""
    __tablename__ = "stocks"
    product_id: Mapped[str] = mapped_column(String(36), ForeignKey("products.id"))
    staff_id: Mapped[str] = mapped_column(String(36), ForeignKey("staff.id"))
    quantity: Mapped[int] = mapped_column(Integer)
    kind: Mapped[MovementKind] = mapped_column(Enum(MovementKind, values_callable=_values))
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    reason: Mapped[str | None] = mapped_column(Text)
    ref_sale_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("sales.id"))
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_stocks_quantity_positive"),)

# ── Audit ───────────────────────────────────────────────────────────────────
class AuditLog(Base, IdMixin, TSMMixin):
    __tablename__ = "audit_log"
    actor_id: Mapped[str | None] = mapped_column(String(36))
    entity: Mapped[str] = mapped_column(String(60))
    entity_id: Mapped[str] = mapped_column(String(36))
    action: Mapped[str] = mapped_column(String(60))
    before: Mapped[str | None] = mapped_column(Text)
    after: Mapped[str | None] = mapped_column(Text)
