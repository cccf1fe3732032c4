# posstore/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Header, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT, SALES_PAGE_LIMIT
from .core import ProductIn, ProductUpdate, SaleRequest
from .handlers import (
    create_product_logic, list_products_logic, search_products_logic,
    get_product_logic, get_product_by_barcode_logic, update_product_logic,
    delete_product_logic, create_sale_logic, list_sales_logic, get_sale_logic,
    reset_all_logic,
)

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="pos-store (in-memory point of sale)")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "pos-store API running"}


@app.get("/health")
async def health():
    return {"status": "ok"}


# ---------------------------
# Product endpoints
# ---------------------------
@app.post("/products", status_code=201)
async def create_product(payload: ProductIn):
    return await create_product_logic(payload)


@app.get("/products")
async def list_products(category: Optional[str] = None, low_stock_only: bool = False,
                        available_only: bool = False):
    return await list_products_logic(category, low_stock_only, available_only)


@app.get("/products/search")
async def search_products(q: str = Query(..., min_length=1)):
    return await search_products_logic(q)


@app.get("/products/barcode/{barcode}")
async def get_product_by_barcode(barcode: str):
    return await get_product_by_barcode_logic(barcode)


@app.get("/products/{product_id}")
async def get_product(product_id: str):
    return await get_product_logic(product_id)


@app.put("/products/{product_id}")
async def update_product(product_id: str, payload: ProductUpdate):
    return await update_product_logic(product_id, payload)


@app.delete("/products/{product_id}")
async def delete_product(product_id: str):
    return await delete_product_logic(product_id)


# ---------------------------
# Sale endpoints
# ---------------------------
@app.post("/sales", status_code=201)
async def create_sale(payload: SaleRequest, idempotency_key: Optional[str] = Header(None)):
    return await create_sale_logic(payload, idempotency_key)


@app.get("/sales")
async def list_sales(seller_id: Optional[str] = None, limit: int = Query(SALES_PAGE_LIMIT, ge=1)):
    return await list_sales_logic(seller_id, limit)


@app.get("/sales/{sale_id}")
async def get_sale(sale_id: str):
    return await get_sale_logic(sale_id)


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/reset")
async def reset_all():
    return await reset_all_logic()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
