# sdk/posclient.py
import os
import uuid
import requests
import httpx
from typing import Optional, Iterable, Tuple, Dict, Any

DEFAULT_BASE_URL = os.environ.get("POS_API_URL", "http://127.0.0.1:8085")


def _sale_payload(seller_id: str, lines: Iterable[Tuple[str, int]], payment_method: str,
                  cash_received_cents: Optional[int]) -> Dict[str, Any]:
    payload = {
        "seller_id": seller_id,
        "products": [{"product_id": pid, "quantity": int(qty)} for pid, qty in lines],
        "payment_method": payment_method,
    }
    if cash_received_cents is not None:
        payload["cash_received_cents"] = int(cash_received_cents)
    return payload


class PosClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, api_key: Optional[str] = None, timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    def reset(self):
        r = self.session.post(f"{self.base_url}/reset", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _make_idempotency_key(self, provided: Optional[str]) -> str:
        return provided if provided else uuid.uuid4().hex

    # Products
    def register_product(self, barcode: str, name: str, cost_price_cents: int, sale_price_cents: int,
                         stock: int, category: str = "general", min_stock: Optional[int] = None):
        payload = {
            "barcode": barcode, "name": name, "category": category,
            "cost_price_cents": cost_price_cents, "sale_price_cents": sale_price_cents, "stock": stock,
        }
        if min_stock is not None:
            payload["min_stock"] = min_stock
        r = self.session.post(f"{self.base_url}/products", json=payload, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def list_products(self, category: Optional[str] = None, low_stock_only: bool = False,
                      available_only: bool = False):
        params = {}
        if category:
            params["category"] = category
        if low_stock_only:
            params["low_stock_only"] = "true"
        if available_only:
            params["available_only"] = "true"
        r = self.session.get(f"{self.base_url}/products", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def search_products(self, term: str):
        r = self.session.get(f"{self.base_url}/products/search", params={"q": term}, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_product(self, product_id: str):
        r = self.session.get(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def scan_barcode(self, barcode: str):
        """Look up a product by barcode; returns None when nothing matches."""
        r = self.session.get(f"{self.base_url}/products/barcode/{barcode}", timeout=self.timeout)
        if r.status_code == 404:
            return None
        r.raise_for_status()
        return r.json()

    def update_product(self, product_id: str, **changes):
        r = self.session.put(f"{self.base_url}/products/{product_id}", json=changes, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def delete_product(self, product_id: str):
        r = self.session.delete(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Sales
    def create_sale(self, seller_id: str, lines: Iterable[Tuple[str, int]], payment_method: str = "cash",
                    cash_received_cents: Optional[int] = None, idempotency_key: Optional[str] = None):
        headers = {"Idempotency-Key": self._make_idempotency_key(idempotency_key)}
        payload = _sale_payload(seller_id, lines, payment_method, cash_received_cents)
        r = self.session.post(f"{self.base_url}/sales", json=payload, headers=headers, timeout=self.timeout)
        # do not r.raise_for_status(): callers inspect 402/404/409
        return r

    async def create_sale_async(self, seller_id: str, lines: Iterable[Tuple[str, int]],
                                payment_method: str = "cash", cash_received_cents: Optional[int] = None,
                                idempotency_key: Optional[str] = None):
        headers = {"Idempotency-Key": self._make_idempotency_key(idempotency_key)}
        payload = _sale_payload(seller_id, lines, payment_method, cash_received_cents)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(f"{self.base_url}/sales", json=payload, headers=headers)

    def list_sales(self, seller_id: Optional[str] = None, limit: Optional[int] = None):
        params = {}
        if seller_id:
            params["seller_id"] = seller_id
        if limit:
            params["limit"] = limit
        r = self.session.get(f"{self.base_url}/sales", params=params, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def get_sale(self, sale_id: str):
        r = self.session.get(f"{self.base_url}/sales/{sale_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()


if __name__ == "__main__":
    import argparse
    from rich import print

    parser = argparse.ArgumentParser(description="pos-store client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    lp = subparsers.add_parser("list-products", help="List all products")
    lp.add_argument("--category", help="Filter products by category")
    lp.add_argument("--low-stock", action="store_true", help="Show only products under their minimum stock")

    sp = subparsers.add_parser("search", help="Search products by name or barcode")
    sp.add_argument("--term", required=True)

    sc = subparsers.add_parser("scan", help="Look up a product by barcode")
    sc.add_argument("--barcode", required=True)

    rp = subparsers.add_parser("register-product", help="Register a new product")
    rp.add_argument("--barcode", required=True)
    rp.add_argument("--name", required=True)
    rp.add_argument("--cost", type=int, required=True, help="Cost price in cents")
    rp.add_argument("--price", type=int, required=True, help="Sale price in cents")
    rp.add_argument("--stock", type=int, required=True)
    rp.add_argument("--category", default="general")

    sl = subparsers.add_parser("sell", help="Sell a single product")
    sl.add_argument("--seller", required=True)
    sl.add_argument("--product-id", required=True)
    sl.add_argument("--qty", type=int, default=1)
    sl.add_argument("--method", choices=["cash", "transfer"], default="cash")
    sl.add_argument("--cash", type=int, help="Cash received in cents")

    ls = subparsers.add_parser("list-sales")
    ls.add_argument("--seller")

    args = parser.parse_args()
    c = PosClient()

    if args.command == "list-products":
        print(c.list_products(args.category, args.low_stock))
    elif args.command == "search":
        print(c.search_products(args.term))
    elif args.command == "scan":
        print(c.scan_barcode(args.barcode))
    elif args.command == "register-product":
        print(c.register_product(args.barcode, args.name, args.cost, args.price, args.stock, args.category))
    elif args.command == "sell":
        print(c.create_sale(args.seller, [(args.product_id, args.qty)], args.method, args.cash).json())
    elif args.command == "list-sales":
        print(c.list_sales(args.seller))
