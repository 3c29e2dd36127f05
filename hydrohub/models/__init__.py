# Importing the module registers tables with Base for create_all()
from .core import (  # noqa: F401
    # Enums
    MovementKind, MOVEMENT_SIGN, CREDIT_KINDS, DEBIT_KINDS,
    StaffType, AccountStatus, SaleType,

    # Stations & accounts
    Station, Administrator, Owner, Staff, Customer, CustomerAddress,

    # Catalog & sales
    Product, Sale,

    # Ledger & audit
    StockMovement, AuditLog,
)

__all__ = [
    # Enums
    "MovementKind", "MOVEMENT_SIGN", "CREDIT_KINDS", "DEBIT_KINDS",
    "StaffType", "AccountStatus", "SaleType",

    # Stations & accounts
    "Station", "Administrator", "Owner", "Staff", "Customer", "CustomerAddress",

    # Catalog & sales
    "Product", "Sale",

    # Ledger & audit
    "StockMovement", "AuditLog",
]
