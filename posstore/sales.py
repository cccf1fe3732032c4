# posstore/sales.py
import logging
import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .database import InventoryStore
from .errors import (
    EmptySale, InsufficientPayment, InsufficientStock, InvalidQuantity,
    ProductNotFound, SaleError,
)
from .models import LineItem, PaymentMethod, Sale, utcnow

logger = logging.getLogger(__name__)


def compute_change(payment_method: PaymentMethod, total_cents: int,
                   cash_received_cents: Optional[int]) -> Tuple[Optional[int], Optional[int]]:
    """Return (cash_received_cents, change_cents) for a sale total.

    Transfers carry neither figure. Cash must cover the total.
    """
    if payment_method != PaymentMethod.cash:
        return None, None
    received = cash_received_cents or 0
    if received < total_cents:
        raise InsufficientPayment(total_cents, received)
    return received, received - total_cents


async def process_sale(
    store: InventoryStore,
    seller_id: str,
    lines: Iterable[Tuple[str, int]],
    payment_method: PaymentMethod,
    cash_received_cents: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Sale:
    """Validate a cart, deduct its stock and record the sale as one unit.

    ``lines`` are ``(product_id, quantity)`` pairs checked in the order given;
    the first failing line aborts the whole sale and no stock is touched.
    """
    lines = list(lines)
    payment_method = PaymentMethod(payment_method)

    async with store.transaction() as tx:
        try:
            if not lines:
                raise EmptySale("a sale needs at least one product")

            items: List[LineItem] = []
            total = 0
            for product_id, quantity in lines:
                if quantity < 1:
                    raise InvalidQuantity(
                        f"quantity must be >= 1 (got {quantity} for {product_id})",
                        product_id=product_id, quantity=quantity,
                    )
                product = await tx.fetch_for_update(product_id)
                if product is None:
                    raise ProductNotFound(product_id)
                if product.stock < quantity:
                    raise InsufficientStock(product.id, product.name, quantity, product.stock)

                product.stock -= quantity
                tx.persist(product)

                subtotal = product.sale_price_cents * quantity
                total += subtotal
                items.append(LineItem(
                    product_id=product.id,
                    quantity=quantity,
                    price_at_sale_cents=product.sale_price_cents,
                    subtotal_cents=subtotal,
                ))

            received, change = compute_change(payment_method, total, cash_received_cents)

            sale = Sale(
                id=uuid.uuid4().hex,
                seller_id=seller_id,
                products=items,
                total_cents=total,
                payment_method=payment_method,
                cash_received_cents=received,
                change_cents=change,
                date=now or utcnow(),
            )
            tx.add_sale(sale)
            await tx.commit()
        except SaleError as e:
            logger.warning("sale rejected for seller %s: %s", seller_id, e.message)
            raise

    logger.info("sale %s committed: seller=%s lines=%d total_cents=%d method=%s",
                sale.id, seller_id, len(items), total, payment_method.value)
    return sale
