# posstore/errors.py
from typing import Any, Dict


class SaleError(Exception):
    """Base class for every reason a sale is rejected.

    A rejected sale never leaves anything behind in the store, so callers
    only need the kind and the context to build a corrected request.
    """
    status_code = 400
    error = "sale_error"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self._context = context

    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def to_detail(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, **self._context}


class EmptySale(SaleError):
    error = "empty_sale"


class InvalidQuantity(SaleError):
    error = "invalid_quantity"


class ProductNotFound(SaleError):
    status_code = 404
    error = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"product not found: {product_id}", product_id=product_id)


class InsufficientStock(SaleError):
    status_code = 409
    error = "insufficient_stock"

    def __init__(self, product_id: str, name: str, requested: int, available: int):
        super().__init__(
            f"insufficient stock for {name}: requested {requested}, available {available}",
            product_id=product_id,
            name=name,
            requested=requested,
            available=available,
        )


class InsufficientPayment(SaleError):
    status_code = 402
    error = "insufficient_payment"

    def __init__(self, total_cents: int, cash_received_cents: int):
        super().__init__(
            f"cash received {cash_received_cents} is less than total {total_cents}",
            total_cents=total_cents,
            cash_received_cents=cash_received_cents,
        )


class CommitConflict(SaleError):
    # Nothing was written; the whole sale may be submitted again.
    status_code = 409
    error = "commit_conflict"

    def __init__(self, product_id: str):
        super().__init__(
            f"product {product_id} changed while the sale was in progress",
            product_id=product_id,
        )


class DuplicateBarcode(Exception):
    def __init__(self, barcode: str):
        super().__init__(f"product already exists with barcode {barcode}")
        self.barcode = barcode
