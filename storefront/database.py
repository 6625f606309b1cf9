import asyncio
import copy
import itertools
from decimal import Decimal
from typing import Any, Dict, Iterator, List

from floresya.constants import (
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_SHIPPING_FEE_USD,
    EXCHANGE_RATE_KEY,
    SHIPPING_FEE_KEY,
)

# This file holds all the in-memory data stores and concurrency locks.

SEED_PRODUCTS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Ramo de 12 Rosas Rojas", "description": "Doce rosas rojas con follaje y lazo.",
     "price_usd": Decimal("25.00"), "image_url": "/images/products/rosas-rojas.webp",
     "stock_quantity": 40, "occasion": "amor", "featured": True, "active": True},
    {"id": 2, "name": "Girasoles Radiantes", "description": "Seis girasoles en envoltura kraft.",
     "price_usd": Decimal("22.50"), "image_url": "/images/products/girasoles.webp",
     "stock_quantity": 25, "occasion": "cumpleanos", "featured": True, "active": True},
    {"id": 3, "name": "Orquidea Phalaenopsis", "description": "Orquidea blanca en maceta de ceramica.",
     "price_usd": Decimal("45.00"), "image_url": "/images/products/orquidea.webp",
     "stock_quantity": 10, "occasion": "aniversario", "featured": False, "active": True},
    {"id": 4, "name": "Arreglo Primaveral", "description": "Gerberas, lirios y margaritas en base de madera.",
     "price_usd": Decimal("32.99"), "image_url": "/images/products/primaveral.webp",
     "stock_quantity": 15, "occasion": "cumpleanos", "featured": False, "active": True},
    {"id": 5, "name": "Tulipanes Pastel", "description": "Diez tulipanes en tonos pastel.",
     "price_usd": Decimal("18.00"), "image_url": "/images/products/tulipanes.webp",
     "stock_quantity": 30, "occasion": "amistad", "featured": True, "active": True},
    {"id": 6, "name": "Corona Funebre Blanca", "description": "Corona de rosas y claveles blancos.",
     "price_usd": Decimal("85.00"), "image_url": "/images/products/corona.webp",
     "stock_quantity": 5, "occasion": "condolencias", "featured": False, "active": True},
    {"id": 7, "name": "Caja de Rosas Eternas", "description": "Rosas preservadas en caja redonda.",
     "price_usd": Decimal("59.90"), "image_url": "/images/products/rosas-eternas.webp",
     "stock_quantity": 0, "occasion": "amor", "featured": False, "active": False},
]

SEED_SETTINGS: List[Dict[str, Any]] = [
    {"setting_key": EXCHANGE_RATE_KEY, "setting_value": str(DEFAULT_EXCHANGE_RATE),
     "description": "Tasa de cambio BCV (Bs/$)"},
    {"setting_key": SHIPPING_FEE_KEY, "setting_value": str(DEFAULT_SHIPPING_FEE_USD),
     "description": "Costo de envio fijo en USD"},
]

SEED_PAYMENT_METHODS: List[Dict[str, Any]] = [
    {"id": 1, "name": "Pago Movil", "type": "mobile_payment",
     "account_info": "Banco de Venezuela - 0414-0000000 - J-00000000-0", "active": True},
    {"id": 2, "name": "Transferencia Bancaria", "type": "bank_transfer",
     "account_info": "Banesco 0134-0000-00-0000000000", "active": True},
    {"id": 3, "name": "Zelle", "type": "zelle", "account_info": "pagos@floresya.com", "active": True},
    {"id": 4, "name": "Efectivo", "type": "cash", "account_info": "Solo en tienda", "active": False},
]

PRODUCTS: Dict[int, Dict[str, Any]] = {}
SETTINGS: Dict[str, Dict[str, Any]] = {}
PAYMENT_METHODS: Dict[int, Dict[str, Any]] = {}
ORDERS: Dict[int, Dict[str, Any]] = {}
PAYMENTS: Dict[int, Dict[str, Any]] = {}
_LOCKS: Dict[str, asyncio.Lock] = {}
_COUNTERS: Dict[str, Iterator[int]] = {}


def _get_lock(key: str) -> asyncio.Lock:
    if key not in _LOCKS:
        _LOCKS[key] = asyncio.Lock()
    return _LOCKS[key]


def next_id(kind: str) -> int:
    if kind not in _COUNTERS:
        _COUNTERS[kind] = itertools.count(1)
    return next(_COUNTERS[kind])


def seed() -> None:
    """Drop everything and load the demo catalog, settings and payment methods."""
    for store in (PRODUCTS, SETTINGS, PAYMENT_METHODS, ORDERS, PAYMENTS, _LOCKS, _COUNTERS):
        store.clear()
    for p in SEED_PRODUCTS:
        PRODUCTS[p["id"]] = copy.deepcopy(p)
    for s in SEED_SETTINGS:
        SETTINGS[s["setting_key"]] = dict(s)
    for m in SEED_PAYMENT_METHODS:
        PAYMENT_METHODS[m["id"]] = dict(m)


seed()
