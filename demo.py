#!/usr/bin/env python
import uuid
from sdk.posclient import PosClient


def main():
    c = PosClient()
    seller = "worker-1"

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    c.reset()

    # -----------------------------
    # Register products
    # -----------------------------
    print("\nRegistering products...")
    notebook = c.register_product("7501031311309", "Notebook A5", 450, 1000, 5, "paper", min_stock=2)
    pen = c.register_product("7501031311316", "Blue pen", 120, 350, 40, "writing")
    print(notebook)
    print(pen)

    # -----------------------------
    # Barcode lookup
    # -----------------------------
    print("\nScanning 7501031311309...")
    print(c.scan_barcode("7501031311309"))

    # -----------------------------
    # Cash sale
    # -----------------------------
    print("\nSelling 3 notebooks and 2 pens, paying $50.00 cash...")
    r = c.create_sale(seller, [(notebook["id"], 3), (pen["id"], 2)], "cash", 5000,
                      idempotency_key=str(uuid.uuid4()))
    print(r.status_code, r.json())

    # -----------------------------
    # Transfer sale
    # -----------------------------
    print("\nSelling 1 notebook by transfer...")
    r = c.create_sale(seller, [(notebook["id"], 1)], "transfer")
    print(r.status_code, r.json())

    # -----------------------------
    # Rejected sale: not enough stock
    # -----------------------------
    print("\nTrying to sell 5 notebooks (1 left)...")
    r = c.create_sale(seller, [(notebook["id"], 5)], "transfer")
    print(r.status_code, r.json())

    # -----------------------------
    # Low stock report and sales history
    # -----------------------------
    print("\nLow stock products...")
    print(c.list_products(low_stock_only=True))

    print(f"\nSales recorded by {seller}...")
    print(c.list_sales(seller))


if __name__ == "__main__":
    main()
