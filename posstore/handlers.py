import uuid
from typing import Optional, Dict, Any, List
from fastapi import HTTPException

from .config import SALES_PAGE_LIMIT
from .core import ProductIn, ProductUpdate, SaleRequest, _make_product
from .database import STORE, InventoryStore
from .errors import DuplicateBarcode, ProductNotFound, SaleError
from .models import Product, Sale
from .sales import process_sale

# This file contains the logic behind every API endpoint. Route functions in
# main.py stay thin and delegate here.


def _product_out(p: Product) -> Dict[str, Any]:
    return p.model_dump(mode="json")


def _sale_out(s: Sale) -> Dict[str, Any]:
    # cash_received_cents / change_cents only exist for cash sales
    return s.model_dump(mode="json", exclude_none=True)


# Product endpoints
async def create_product_logic(payload: ProductIn, store: InventoryStore = STORE):
    pid = uuid.uuid4().hex
    try:
        product = await store.insert_product(_make_product(pid, payload))
    except DuplicateBarcode as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _product_out(product)


async def list_products_logic(category: Optional[str] = None, low_stock_only: bool = False,
                              available_only: bool = False, store: InventoryStore = STORE):
    products = store.list_products(category, low_stock_only, available_only)
    return [_product_out(p) for p in products]


async def search_products_logic(q: str, store: InventoryStore = STORE):
    return [_product_out(p) for p in store.search_products(q)]


async def get_product_logic(product_id: str, store: InventoryStore = STORE):
    p = store.get_product(product_id)
    if not p:
        raise HTTPException(status_code=404, detail="product not found")
    return _product_out(p)


async def get_product_by_barcode_logic(barcode: str, store: InventoryStore = STORE):
    p = store.find_by_barcode(barcode)
    if not p:
        raise HTTPException(status_code=404, detail=f"no product with barcode {barcode}")
    return _product_out(p)


async def update_product_logic(product_id: str, payload: ProductUpdate, store: InventoryStore = STORE):
    changes = payload.model_dump(exclude_none=True)
    try:
        product = await store.update_product(product_id, changes)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="product not found")
    except DuplicateBarcode as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _product_out(product)


async def delete_product_logic(product_id: str, store: InventoryStore = STORE):
    try:
        await store.delete_product(product_id)
    except ProductNotFound:
        raise HTTPException(status_code=404, detail="product not found")
    return {"message": "product removed", "product_id": product_id}


# Sale endpoints
async def _process_sale_request(payload: SaleRequest, store: InventoryStore) -> Sale:
    try:
        return await process_sale(
            store,
            payload.seller_id,
            [(line.product_id, line.quantity) for line in payload.products],
            payload.payment_method,
            payload.cash_received_cents,
        )
    except SaleError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


async def create_sale_logic(payload: SaleRequest, idempotency_key: Optional[str] = None,
                            store: InventoryStore = STORE):
    if not idempotency_key:
        return _sale_out(await _process_sale_request(payload, store))

    # same-key requests run one at a time; later ones replay the stored sale
    async with store.hold(f"idem:{idempotency_key}"):
        prev = store.idempotency.get(idempotency_key)
        if prev is not None:
            return _sale_out(store.sales[prev])
        sale = await _process_sale_request(payload, store)
        store.idempotency[idempotency_key] = sale.id
    return _sale_out(sale)


async def list_sales_logic(seller_id: Optional[str] = None, limit: int = SALES_PAGE_LIMIT,
                           store: InventoryStore = STORE) -> List[Dict[str, Any]]:
    return [_sale_out(s) for s in store.list_sales(seller_id, limit)]


async def get_sale_logic(sale_id: str, store: InventoryStore = STORE):
    s = store.get_sale(sale_id)
    if not s:
        raise HTTPException(status_code=404, detail="sale not found")
    return _sale_out(s)


# Utility: reset (for tests/demo)
async def reset_all_logic(store: InventoryStore = STORE):
    store.reset()
    return {"status": "reset"}
