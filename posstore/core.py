# posstore/core.py
from pydantic import BaseModel, Field
from typing import Optional, List

from .config import DEFAULT_MIN_STOCK
from .models import PaymentMethod, Product


class ProductIn(BaseModel):
    barcode: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: Optional[str] = "general"
    cost_price_cents: int = Field(..., ge=0)
    sale_price_cents: int = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(DEFAULT_MIN_STOCK, ge=0)


class ProductUpdate(BaseModel):
    barcode: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = None
    cost_price_cents: Optional[int] = Field(None, ge=0)
    sale_price_cents: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)


class SaleLineIn(BaseModel):
    product_id: str
    quantity: int


class SaleRequest(BaseModel):
    seller_id: str = Field(..., min_length=1)
    products: List[SaleLineIn]
    payment_method: PaymentMethod
    cash_received_cents: Optional[int] = None


def _make_product(product_id: str, p: ProductIn) -> Product:
    return Product(
        id=product_id,
        barcode=p.barcode,
        name=p.name,
        category=p.category,
        cost_price_cents=p.cost_price_cents,
        sale_price_cents=p.sale_price_cents,
        stock=p.stock,
        min_stock=p.min_stock,
    )
