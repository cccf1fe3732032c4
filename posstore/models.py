# posstore/models.py
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, Field, computed_field

from .config import DEFAULT_MIN_STOCK


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentMethod(str, Enum):
    cash = "cash"
    transfer = "transfer"


class Product(BaseModel):
    id: str
    barcode: str
    name: str
    category: Optional[str] = "general"
    cost_price_cents: int = Field(..., ge=0)
    sale_price_cents: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(DEFAULT_MIN_STOCK, ge=0)
    version: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @computed_field
    @property
    def low_stock(self) -> bool:
        return self.stock < self.min_stock


class LineItem(BaseModel):
    """One product/quantity entry of a sale, priced at the moment of sale."""
    product_id: str
    quantity: int = Field(..., ge=1)
    price_at_sale_cents: int = Field(..., ge=0)
    subtotal_cents: int = Field(..., ge=0)


class Sale(BaseModel):
    id: str
    seller_id: str
    products: List[LineItem]
    total_cents: int = Field(..., ge=0)
    payment_method: PaymentMethod
    cash_received_cents: Optional[int] = None
    change_cents: Optional[int] = Field(None, ge=0)
    date: datetime = Field(default_factory=utcnow)

    model_config = {"frozen": True}
