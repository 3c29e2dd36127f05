from pydantic import BaseModel
from typing import Optional
from datetime import datetime

# stock_type stays a plain string here; hydrohub.services.ledger.parse_kind
# is the single place that maps it onto MovementKind.

class StockIn(BaseModel):
    product_id: str
    amount: int
    stock_type: str
    date: datetime
    reason: Optional[str] = None
    staff_id: str

class StockUpdateIn(BaseModel):
    product_id: str
    amount: int
    stock_type: str
    date: datetime
    reason: Optional[str] = None

class StockOut(BaseModel):
    id: str
    product_id: str
    staff_id: str
    amount: int
    stock_type: str
    date: datetime
    reason: Optional[str] = None
    ref_sale_id: Optional[str] = None

class StockRowOut(StockOut):
    product_name: str
    size_category: str
    product_type: str
    first_name: str
    last_name: str
    station_id: str
    station_name: str

class AvailableIn(BaseModel):
    product_id: str
    staff_id: Optional[str] = None
    station_id: Optional[str] = None

class AvailableOut(BaseModel):
    available: int

class StockSummaryOut(BaseModel):
    product_id: str
    product_name: str
    product_type: str
    size_category: str
    station_id: str
    is_archived: bool
    available: int
