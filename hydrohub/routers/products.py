from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from hydrohub.db import get_db, atomic
from hydrohub.deps import Principal, require_auth, require_role, require_admin, OWNER
from hydrohub.models.core import Product, Station, StockMovement, Sale

router = APIRouter(prefix="/products", tags=["products"])

FIELDS = ("name", "type", "size_category", "price")


def _out(p: Product, station_name: str | None = None) -> dict:
    out = {
        "id": p.id,
        "name": p.name,
        "type": p.type,
        "size_category": p.size_category,
        "price": float(p.price),
        "is_archived": bool(p.is_archived),
        "photo": p.photo,
        "station_id": p.station_id,
        "created_at": p.created_at,
    }
    if station_name is not None:
        out["station_name"] = station_name
    return out


def _duplicate(db: Session, station_id: str, body: dict, exclude_id: str | None = None) -> bool:
    q = db.query(Product.id).filter(
        Product.station_id == station_id,
        func.lower(Product.name) == body["name"].lower(),
        func.lower(Product.type) == body["type"].lower(),
        func.lower(Product.size_category) == body["size_category"].lower(),
    )
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    return q.first() is not None


def _require(body: dict, fields) -> None:
    if any(body.get(f) in (None, "") for f in fields):
        raise HTTPException(400, detail="All fields are required")


@router.get("/", summary="Active products of one station (optionally one type)")
def list_for_station(station_id: str | None = None, type: str | None = None,
                     db: Session = Depends(get_db), me: Principal = Depends(require_auth)):
    if not station_id:
        raise HTTPException(400, detail="station_id is required")
    q = db.query(Product).filter(Product.station_id == station_id, Product.is_archived.is_(False))
    if type:
        q = q.filter(func.lower(Product.type) == type.lower())
    return [_out(p) for p in q.order_by(Product.name.asc()).all()]


# ── Admin: read + delete ────────────────────────────────────────────────────

@router.get("/admin")
def list_all(db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    rows = (db.query(Product, Station.station_name)
              .outerjoin(Station, Station.id == Product.station_id)
              .order_by(Station.station_name.asc(), Product.created_at.desc())
              .all())
    return [_out(p, name) for p, name in rows]


@router.delete("/admin/{product_id}")
def delete_product(product_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_admin)):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="Product not found")
    # stock history is never rewritten, so a product with movements or sales stays (archive it instead)
    in_use = (db.query(StockMovement.id).filter(StockMovement.product_id == product_id).first()
              or db.query(Sale.id).filter(Sale.product_id == product_id).first())
    if in_use:
        raise HTTPException(409, detail="Product has stock or sales history; archive it instead")
    with atomic(db):
        db.delete(p)
    return {"message": "Product deleted successfully"}


# ── Owner: full CRUD per station ────────────────────────────────────────────

@router.post("/owner", status_code=201)
def add_product(body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    """
    body: { name, type, size_category, price, station_id, photo? }
    """
    _require(body, FIELDS + ("station_id",))
    if not db.get(Station, body["station_id"]):
        raise HTTPException(404, detail="Station not found")
    if _duplicate(db, body["station_id"], body):
        raise HTTPException(409, detail="Product already exists in this station.")
    with atomic(db):
        p = Product(
            station_id=body["station_id"],
            name=body["name"],
            type=body["type"],
            size_category=body["size_category"],
            price=body["price"],
            photo=body.get("photo") or None,
            is_archived=False,
        )
        db.add(p)
    return {"message": "Product added successfully", "product": _out(p)}


@router.get("/owner/{station_id}")
def list_owner(station_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    rows = (db.query(Product, Station.station_name)
              .outerjoin(Station, Station.id == Product.station_id)
              .filter(Product.station_id == station_id)
              .order_by(Product.created_at.desc())
              .all())
    return [_out(p, name) for p, name in rows]


@router.put("/owner/archive/{product_id}", summary="Toggle archived")
def toggle_archive(product_id: str, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="Product not found")
    with atomic(db):
        p.is_archived = not p.is_archived
    msg = "Product archived successfully" if p.is_archived else "Product restored successfully"
    return {"message": msg, "product": _out(p)}


@router.put("/owner/{product_id}")
def update_product(product_id: str, body: dict, db: Session = Depends(get_db), me: Principal = Depends(require_role(OWNER))):
    p = db.get(Product, product_id)
    if not p:
        raise HTTPException(404, detail="Product not found")
    _require(body, FIELDS)
    if _duplicate(db, p.station_id, body, exclude_id=p.id):
        raise HTTPException(409, detail="Another product with same name/type/size exists.")
    with atomic(db):
        for k in FIELDS:
            setattr(p, k, body[k])
        if body.get("photo"):
            p.photo = body["photo"]
    return {"message": "Product updated successfully", "product": _out(p)}
