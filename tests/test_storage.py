# tests/test_storage.py
from decimal import Decimal

from conftest import FakeApi
from floresya.cart import CartStore, ShoppingCart
from floresya.storage import LocalStorage, SessionStorage


def test_local_storage_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    s = LocalStorage(path)
    s.set_item("a", "1")
    s.set_item("b", "two")
    s.remove_item("a")
    reopened = LocalStorage(path)
    assert reopened.get_item("a") is None
    assert reopened.get_item("b") == "two"
    assert list(path.parent.glob(".storage-*")) == []


def test_local_storage_starts_empty_on_corrupt_file(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("not json", encoding="utf-8")
    assert LocalStorage(path).get_item("floresya_cart") is None
    path.write_text("[1, 2]", encoding="utf-8")
    assert LocalStorage(path).get_item("floresya_cart") is None


def test_session_storage_is_not_shared():
    one, two = SessionStorage(), SessionStorage()
    one.set_item("k", "v")
    assert two.get_item("k") is None
    one.clear()
    assert "k" not in one


def test_cart_survives_page_reload(tmp_path):
    api = FakeApi()
    path = tmp_path / "storage.json"
    cart = ShoppingCart(api, CartStore(LocalStorage(path)), shipping_fee_usd=Decimal("7.00"))
    cart.add_item(1, 2)
    cart.add_item(5, 1)

    reloaded = ShoppingCart(api, CartStore(LocalStorage(path)), shipping_fee_usd=Decimal("7.00"))
    assert reloaded.get_items() == cart.get_items()
    assert reloaded.get_final_total_usd() == Decimal("75.00")
