"""Shared fixtures: a fresh backend per test and in-process fakes for the cart."""
from decimal import Decimal
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from floresya.cart import CartStore, ExchangeRateProvider, ShoppingCart
from floresya.errors import NetworkError, NotFoundError
from floresya.storage import SessionStorage
from storefront import database
from storefront.main import app


@pytest.fixture
def client():
    database.seed()
    return TestClient(app)


class FakeApi:
    """Stands in for FloresYaClient: products by id, one settings dict, call log."""

    def __init__(self, products: Optional[Dict[int, Dict[str, Any]]] = None, rate: Any = "36.5"):
        self.products = products if products is not None else {
            1: {"id": 1, "name": "Ramo de 12 Rosas Rojas", "price_usd": "25.00", "image_url": "/img/1.webp"},
            5: {"id": 5, "name": "Tulipanes Pastel", "price_usd": "18.00", "image_url": None},
            9: {"id": 9, "name": "Clavel", "price_usd": "0.10"},
        }
        self.rate = rate
        self.offline = False
        self.calls = []

    def get_product(self, product_id):
        self.calls.append(("get_product", product_id))
        if self.offline:
            raise NetworkError("could not reach http://testserver")
        if product_id not in self.products:
            raise NotFoundError("product not found")
        return self.products[product_id]

    def get_setting(self, key):
        self.calls.append(("get_setting", key))
        if isinstance(self.rate, Exception):
            raise self.rate
        return {"setting_key": key, "setting_value": self.rate}

    async def get_setting_async(self, key):
        return self.get_setting(key)


class Notifications(list):
    def __call__(self, message, level="info"):
        self.append((level, message))


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def storage():
    return SessionStorage()


@pytest.fixture
def notifications():
    return Notifications()


@pytest.fixture
def cart(fake_api, storage, notifications):
    return ShoppingCart(
        fake_api,
        CartStore(storage),
        rates=ExchangeRateProvider(fake_api, fallback=Decimal("36.5")),
        shipping_fee_usd=Decimal("7.00"),
        notifier=notifications,
    )
