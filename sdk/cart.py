# sdk/cart.py
import json
import os
from typing import Dict, Any, List, Tuple, Optional

DEFAULT_CART_FILE = os.environ.get("POS_CART_FILE", ".pos_cart.json")


class LocalCart:
    """Terminal-side cart that survives restarts of the POS.

    Each entry keeps the product snapshot shown to the cashier; the server
    re-prices everything when the sale is submitted.
    """

    def __init__(self, path: str = DEFAULT_CART_FILE):
        self.path = path
        self.items: Dict[str, Dict[str, Any]] = {}
        self.load()

    def load(self):
        if not os.path.exists(self.path):
            self.items = {}
            return
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError):
            # corrupt cart file
            self.items = {}
            return
        if not isinstance(data, dict):
            self.items = {}
            return
        self.items = {
            pid: it for pid, it in data.items()
            if isinstance(it, dict) and type(it.get("quantity")) is int and it["quantity"] > 0
        }

    def save(self):
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(self.items, fh)

    def add(self, product: Dict[str, Any], quantity: int = 1) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValueError("quantity must be > 0")
        entry = self.items.setdefault(product["id"], {
            "name": product.get("name", ""),
            "sale_price_cents": product.get("sale_price_cents", 0),
            "quantity": 0,
        })
        entry["quantity"] += quantity
        self.save()
        return entry

    def remove(self, product_id: str, quantity: Optional[int] = None):
        if product_id not in self.items:
            return
        current = self.items[product_id]["quantity"]
        if quantity is None or quantity >= current:
            del self.items[product_id]
        else:
            self.items[product_id]["quantity"] = current - quantity
        self.save()

    def clear(self):
        self.items = {}
        if os.path.exists(self.path):
            os.remove(self.path)

    def lines(self) -> List[Tuple[str, int]]:
        return [(pid, it["quantity"]) for pid, it in self.items.items()]

    @property
    def total_cents(self) -> int:
        return sum(it["sale_price_cents"] * it["quantity"] for it in self.items.values())

    def __len__(self):
        return len(self.items)
