from pydantic import BaseModel
from typing import Optional, Literal
from datetime import datetime

SaleTypeLiteral = Literal["onsite", "delivery"]

class SaleIn(BaseModel):
    product_id: str
    staff_id: str
    quantity: int
    total: float
    date: datetime
    payment_method: str
    sale_type: SaleTypeLiteral
    proof: Optional[str] = None
    customer_id: Optional[str] = None

class SaleUpdateIn(SaleIn):
    staff_id: Optional[str] = None

class SaleOut(BaseModel):
    id: str
    product_id: str
    staff_id: str
    customer_id: Optional[str] = None
    quantity: int
    total: float
    date: datetime
    payment_method: str
    sale_type: SaleTypeLiteral
    proof: Optional[str] = None
