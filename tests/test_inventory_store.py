# tests/test_inventory_store.py
import asyncio

import pytest

from posstore.database import InventoryStore
from posstore.errors import CommitConflict, DuplicateBarcode, InsufficientStock, ProductNotFound
from posstore.models import PaymentMethod, Product, Sale


def product(pid, stock=10, barcode=None, price=1000):
    return Product(id=pid, barcode=barcode or f"bc-{pid}", name=pid, cost_price_cents=1,
                   sale_price_cents=price, stock=stock, min_stock=3)


def run(coro):
    return asyncio.run(coro)


def seeded(*products):
    store = InventoryStore(latency=0)
    for p in products:
        store.products[p.id] = p
    return store


def test_fetch_returns_private_copy():
    store = seeded(product("a"))

    async def scenario():
        tx = store.transaction()
        p = await tx.fetch_for_update("a")
        p.stock = 1
        tx.persist(p)
        assert store.products["a"].stock == 10
        assert await tx.fetch_for_update("a") is p
        assert await tx.fetch_for_update("missing") is None
        tx.abort()

    run(scenario())
    assert store.products["a"].stock == 10


def test_leaving_scope_without_commit_aborts():
    store = seeded(product("a"))

    async def scenario():
        async with store.transaction() as tx:
            p = await tx.fetch_for_update("a")
            p.stock -= 4
            tx.persist(p)
        return tx

    tx = run(scenario())
    assert tx.state == "aborted"
    assert store.products["a"].stock == 10


def test_commit_applies_products_and_sale_together():
    store = seeded(product("a"))
    sale = Sale(id="s1", seller_id="x", products=[], total_cents=0, payment_method=PaymentMethod.transfer)

    async def scenario():
        async with store.transaction() as tx:
            p = await tx.fetch_for_update("a")
            p.stock -= 4
            tx.persist(p)
            tx.add_sale(sale)
            await tx.commit()
        return tx

    tx = run(scenario())
    assert tx.state == "committed"
    assert store.products["a"].stock == 6
    assert store.products["a"].version == 1
    assert store.sales["s1"] is sale


def _stage_then_interfere(store, deduct, interfere):
    async def scenario():
        tx = store.transaction()
        p = await tx.fetch_for_update("a")
        p.stock -= deduct
        tx.persist(p)
        await interfere()
        await tx.commit()

    run(scenario())


def test_concurrent_write_leaving_too_little_stock_is_insufficient_stock():
    store = seeded(product("a", stock=10))

    async def other_sale():
        await store.update_product("a", {"stock": 4})

    with pytest.raises(InsufficientStock) as exc:
        _stage_then_interfere(store, 6, other_sale)
    assert exc.value.context()["available"] == 4
    assert store.products["a"].stock == 4


def test_concurrent_write_with_enough_stock_is_retryable_conflict():
    store = seeded(product("a", stock=10))

    async def price_change():
        await store.update_product("a", {"sale_price_cents": 1200})

    with pytest.raises(CommitConflict):
        _stage_then_interfere(store, 6, price_change)
    assert store.products["a"].stock == 10
    assert store.products["a"].sale_price_cents == 1200


def test_product_deleted_before_commit():
    store = seeded(product("a"))

    async def delete():
        await store.delete_product("a")

    with pytest.raises(ProductNotFound):
        _stage_then_interfere(store, 1, delete)
    assert store.products == {}


def test_negative_staged_stock_never_commits():
    store = seeded(product("a", stock=2))

    async def scenario():
        tx = store.transaction()
        p = await tx.fetch_for_update("a")
        p.stock = -1
        tx.persist(p)
        await tx.commit()

    with pytest.raises(InsufficientStock):
        run(scenario())
    assert store.products["a"].stock == 2


def test_persist_requires_fetch_and_open_transaction():
    store = seeded(product("a"))

    async def scenario():
        tx = store.transaction()
        with pytest.raises(ValueError):
            tx.persist(product("a"))
        tx.abort()
        with pytest.raises(RuntimeError):
            await tx.fetch_for_update("a")

    run(scenario())


def test_barcode_must_be_unique():
    store = seeded(product("a", barcode="123"))
    with pytest.raises(DuplicateBarcode):
        run(store.insert_product(product("b", barcode="123")))
    run(store.insert_product(product("c", barcode="456")))
    with pytest.raises(DuplicateBarcode):
        run(store.update_product("c", {"barcode": "123"}))
    assert store.find_by_barcode("456").id == "c"


def test_listing_filters():
    store = seeded(product("a", stock=2), product("b", stock=0), product("c", stock=9))
    store.products["c"] = store.products["c"].model_copy(update={"category": "paper"})
    assert {p.id for p in store.list_products(low_stock_only=True)} == {"a", "b"}
    assert {p.id for p in store.list_products(available_only=True)} == {"a", "c"}
    assert [p.id for p in store.list_products(category="paper")] == ["c"]
    assert [p.id for p in store.search_products("BC-A")] == ["a"]


def test_locks_are_released_for_unknown_and_existing_products():
    store = seeded(product("a"))

    async def scenario():
        for _ in range(3):
            with pytest.raises(ProductNotFound):
                await store.update_product("ghost", {"stock": 1})
            with pytest.raises(ProductNotFound):
                await store.delete_product("ghost")
        await store.update_product("a", {"stock": 4})
        async with store.transaction() as tx:
            p = await tx.fetch_for_update("a")
            p.stock -= 1
            tx.persist(p)
            await tx.commit()

    run(scenario())
    assert store.products["a"].stock == 3
    assert store._locks == {}
    assert store._lock_users == {}


def test_hold_serialises_same_key():
    store = seeded()
    order = []

    async def worker(name):
        async with store.hold("k"):
            order.append(f"{name}-in")
            await asyncio.sleep(0)
            order.append(f"{name}-out")

    async def scenario():
        await asyncio.gather(worker("a"), worker("b"))

    run(scenario())
    assert order == ["a-in", "a-out", "b-in", "b-out"]
    assert store._locks == {}
