# posstore/database.py
import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Dict, List, Optional, Any

from .config import STORE_LATENCY_SECONDS
from .errors import CommitConflict, DuplicateBarcode, InsufficientStock, ProductNotFound
from .models import Product, Sale, utcnow

# This file holds the in-memory document store, its locks and the
# transaction scope used by the sale processor.

logger = logging.getLogger(__name__)


class Transaction:
    """Staged reads and writes against an InventoryStore.

    Reads record the product version they saw. Nothing is visible to other
    callers until commit(), which re-checks those versions under the product
    locks and either applies everything or raises and applies nothing.
    """

    def __init__(self, store: "InventoryStore"):
        self._store = store
        self._read: Dict[str, Product] = {}
        self._working: Dict[str, Product] = {}
        self._staged: Dict[str, Product] = {}
        self._sales: List[Sale] = []
        self.state = "open"

    async def __aenter__(self) -> "Transaction":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self.state == "open":
            self.abort()
        return False

    def _ensure_open(self):
        if self.state != "open":
            raise RuntimeError(f"transaction is {self.state}")

    async def fetch_for_update(self, product_id: str) -> Optional[Product]:
        self._ensure_open()
        if product_id in self._working:
            return self._working[product_id]
        await self._store.round_trip()
        current = self._store.products.get(product_id)
        if current is None:
            return None
        self._read[product_id] = current.model_copy(deep=True)
        self._working[product_id] = current.model_copy(deep=True)
        return self._working[product_id]

    def persist(self, product: Product):
        self._ensure_open()
        if product.id not in self._read:
            raise ValueError(f"product {product.id} was not fetched in this transaction")
        self._staged[product.id] = product

    def add_sale(self, sale: Sale):
        self._ensure_open()
        self._sales.append(sale)

    def _verify(self):
        for pid, staged in self._staged.items():
            read = self._read[pid]
            deducted = read.stock - staged.stock
            if staged.stock < 0:
                raise InsufficientStock(pid, read.name, deducted, read.stock)
            current = self._store.products.get(pid)
            if current is None:
                raise ProductNotFound(pid)
            if current.version != read.version:
                if current.stock < deducted:
                    raise InsufficientStock(pid, current.name, deducted, current.stock)
                raise CommitConflict(pid)

    async def commit(self):
        self._ensure_open()
        keys = sorted([f"product:{pid}" for pid in self._staged] + (["sales"] if self._sales else []))
        try:
            async with AsyncExitStack() as stack:
                for k in keys:
                    await stack.enter_async_context(self._store.hold(k))
                self._verify()
                now = utcnow()
                for pid, staged in self._staged.items():
                    self._store.products[pid] = staged.model_copy(
                        update={"version": self._read[pid].version + 1, "updated_at": now}
                    )
                for sale in self._sales:
                    self._store.sales[sale.id] = sale
                self.state = "committed"
        finally:
            if self.state != "committed":
                self.abort()

    def abort(self):
        if self.state == "committed":
            raise RuntimeError("transaction already committed")
        self._staged.clear()
        self._working.clear()
        self._sales.clear()
        self.state = "aborted"


class InventoryStore:
    def __init__(self, latency: float = STORE_LATENCY_SECONDS):
        self.latency = latency
        self.products: Dict[str, Product] = {}
        self.sales: Dict[str, Sale] = {}
        self.idempotency: Dict[str, str] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        """Hold the lock for ``key``; the entry is dropped once nobody holds or waits on it."""
        if key not in self._locks:
            self._locks[key] = asyncio.Lock()
        lock = self._locks[key]
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_users.get(key, 1) - 1
            if remaining > 0:
                self._lock_users[key] = remaining
            else:
                self._lock_users.pop(key, None)
                if self._locks.get(key) is lock:
                    del self._locks[key]

    async def round_trip(self):
        await asyncio.sleep(self.latency)

    def transaction(self) -> Transaction:
        return Transaction(self)

    # Products
    def get_product(self, product_id: str) -> Optional[Product]:
        return self.products.get(product_id)

    def find_by_barcode(self, barcode: str) -> Optional[Product]:
        for p in self.products.values():
            if p.barcode == barcode:
                return p
        return None

    def list_products(self, category: Optional[str] = None, low_stock_only: bool = False,
                      available_only: bool = False) -> List[Product]:
        out = []
        for p in self.products.values():
            if category and p.category != category:
                continue
            if low_stock_only and not p.low_stock:
                continue
            if available_only and p.stock <= 0:
                continue
            out.append(p)
        return out

    def search_products(self, term: str) -> List[Product]:
        term = term.lower()
        return [p for p in self.products.values() if term in p.name.lower() or term in p.barcode.lower()]

    async def insert_product(self, product: Product) -> Product:
        async with self.hold("barcodes"):
            await self.round_trip()
            if self.find_by_barcode(product.barcode) is not None:
                raise DuplicateBarcode(product.barcode)
            self.products[product.id] = product
        logger.info("product %s registered (barcode %s, stock %d)", product.id, product.barcode, product.stock)
        return product

    async def update_product(self, product_id: str, changes: Dict[str, Any]) -> Product:
        async with self.hold("barcodes"), self.hold(f"product:{product_id}"):
            await self.round_trip()
            current = self.products.get(product_id)
            if current is None:
                raise ProductNotFound(product_id)
            barcode = changes.get("barcode")
            if barcode and barcode != current.barcode and self.find_by_barcode(barcode) is not None:
                raise DuplicateBarcode(barcode)
            updated = Product.model_validate(
                {**current.model_dump(), **changes, "version": current.version + 1, "updated_at": utcnow()}
            )
            self.products[product_id] = updated
        logger.info("product %s updated: %s", product_id, sorted(changes))
        return updated

    async def delete_product(self, product_id: str) -> Product:
        async with self.hold(f"product:{product_id}"):
            await self.round_trip()
            removed = self.products.pop(product_id, None)
            if removed is None:
                raise ProductNotFound(product_id)
        logger.info("product %s deleted", product_id)
        return removed

    # Sales
    def get_sale(self, sale_id: str) -> Optional[Sale]:
        return self.sales.get(sale_id)

    def list_sales(self, seller_id: Optional[str] = None, limit: Optional[int] = None) -> List[Sale]:
        # newest insert first on equal timestamps
        out = [s for s in reversed(list(self.sales.values())) if seller_id is None or s.seller_id == seller_id]
        out.sort(key=lambda s: s.date, reverse=True)
        return out[:limit] if limit is not None else out

    def reset(self):
        self.products.clear()
        self.sales.clear()
        # idempotency keys have no expiry; they live until reset()
        self.idempotency.clear()
        self._locks.clear()
        self._lock_users.clear()


STORE = InventoryStore()
