# tests/test_cart.py
import pytest

from sdk.cart import LocalCart

PEN = {"id": "p1", "name": "Pen", "sale_price_cents": 350}
PAD = {"id": "p2", "name": "Pad", "sale_price_cents": 1000}


def test_cart_survives_reload(tmp_path):
    path = str(tmp_path / "cart.json")
    cart = LocalCart(path)
    cart.add(PEN, 2)
    cart.add(PAD)
    cart.add(PEN, 1)

    reloaded = LocalCart(path)
    assert reloaded.lines() == [("p1", 3), ("p2", 1)]
    assert reloaded.total_cents == 3 * 350 + 1000


def test_remove_partial_and_whole(tmp_path):
    cart = LocalCart(str(tmp_path / "cart.json"))
    cart.add(PEN, 3)
    cart.remove("p1", 1)
    assert cart.lines() == [("p1", 2)]
    cart.remove("p1")
    assert len(cart) == 0
    cart.remove("unknown")


def test_clear_removes_file(tmp_path):
    path = tmp_path / "cart.json"
    cart = LocalCart(str(path))
    cart.add(PEN)
    assert path.exists()
    cart.clear()
    assert not path.exists()
    assert LocalCart(str(path)).lines() == []


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "cart.json"
    for content in ("{not json", "[]", "null", "3"):
        path.write_text(content)
        assert len(LocalCart(str(path))) == 0


def test_entries_with_bad_quantity_are_skipped(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text(
        '{"p1": {"name": "Pen", "sale_price_cents": 350, "quantity": "2"},'
        ' "p2": {"name": "Pad", "sale_price_cents": 1000, "quantity": 1},'
        ' "p3": "junk"}'
    )
    assert LocalCart(str(path)).lines() == [("p2", 1)]


def test_rejects_non_positive_quantity(tmp_path):
    cart = LocalCart(str(tmp_path / "cart.json"))
    with pytest.raises(ValueError):
        cart.add(PEN, 0)
