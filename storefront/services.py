import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import HTTPException

from floresya.constants import (
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_SHIPPING_FEE_USD,
    EXCHANGE_RATE_KEY,
    ORDER_STATUSES,
    SHIPPING_FEE_KEY,
)
from floresya.money import parse_amount, to_cents

from .core import OrderCreate, OrderStatusUpdate, PaymentCreate, SettingUpdate
from .database import ORDERS, PAYMENT_METHODS, PAYMENTS, PRODUCTS, SETTINGS, _get_lock, next_id, seed
from .models import OrderLine, order_lines, public_payment_method, public_product

logger = logging.getLogger("storefront")

# This file contains the core logic for all API endpoints.


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _setting_decimal(key: str, default: Decimal, allow_zero: bool = False) -> Decimal:
    setting = SETTINGS.get(key)
    if not setting:
        return default
    value = parse_amount(setting["setting_value"], allow_zero=allow_zero)
    if value is None:
        logger.warning("setting %s holds %r, using %s", key, setting["setting_value"], default)
        return default
    return value


def _active_product(product_id: int) -> Optional[Dict]:
    p = PRODUCTS.get(product_id)
    if not p or not p.get("active", True):
        return None
    return p


# Product endpoints
async def list_products_logic(occasion: Optional[str] = None, featured: bool = False) -> List[Dict]:
    out = []
    for p in PRODUCTS.values():
        if not p.get("active", True):
            continue
        if occasion and p.get("occasion") != occasion:
            continue
        if featured and not p.get("featured"):
            continue
        out.append(public_product(p))
    return out


async def search_product_logic(name: str) -> List[Dict]:
    term = name.lower()
    return [public_product(p) for p in PRODUCTS.values() if p.get("active", True) and term in p["name"].lower()]


async def get_product_logic(product_id: int) -> Dict:
    p = _active_product(product_id)
    if not p:
        raise HTTPException(status_code=404, detail="product not found")
    return public_product(p)


# Settings endpoints
async def get_setting_logic(key: str) -> Dict:
    setting = SETTINGS.get(key)
    if not setting:
        raise HTTPException(status_code=404, detail="setting not found")
    return dict(setting)


async def update_setting_logic(key: str, payload: SettingUpdate) -> Dict:
    setting = SETTINGS.setdefault(key, {"setting_key": key, "setting_value": "", "description": None})
    setting["setting_value"] = payload.value
    logger.info("setting %s updated to %s", key, payload.value)
    return dict(setting)


# Order endpoints
async def create_order_logic(payload: OrderCreate) -> Dict:
    if not payload.user_email and not payload.guest_email:
        raise HTTPException(status_code=400, detail="user_email or guest_email is required")

    wanted: Dict[int, int] = {}
    for item in payload.items:
        wanted[item.product_id] = wanted.get(item.product_id, 0) + item.quantity

    for pid in wanted:
        if not _active_product(pid):
            raise HTTPException(status_code=404, detail=f"product_not_found:{pid}")

    locks = [_get_lock(f"product:{pid}") for pid in sorted(wanted)]
    for l in locks:
        await l.acquire()

    try:
        subtotal = Decimal("0")
        lines: List[OrderLine] = []
        for pid, qty in wanted.items():
            prod = PRODUCTS[pid]
            if prod["stock_quantity"] < qty:
                raise HTTPException(status_code=409, detail=f"insufficient_stock:{pid}")
            line_total = prod["price_usd"] * qty
            subtotal += line_total
            lines.append(OrderLine(
                product_id=pid,
                quantity=qty,
                unit_price=prod["price_usd"],
                total_price=line_total,
                product_snapshot={"name": prod["name"], "price": prod["price_usd"]},
            ))

        # Commit
        for pid, qty in wanted.items():
            PRODUCTS[pid]["stock_quantity"] -= qty

        shipping = _setting_decimal(SHIPPING_FEE_KEY, DEFAULT_SHIPPING_FEE_USD, allow_zero=True) if subtotal > 0 else Decimal("0")
        order_id = next_id("order")
        created_at = _now()
        order = {
            "id": order_id,
            "order_number": f"FL-{datetime.now(timezone.utc):%Y%m%d}-{order_id:03d}",
            "user_email": payload.user_email,
            "guest_email": payload.guest_email,
            "customer_name": payload.customer_name,
            "customer_phone": payload.customer_phone,
            "status": "pending",
            "items": order_lines(lines),
            "subtotal_usd": subtotal,
            "shipping_usd": shipping,
            "total_amount_usd": subtotal + shipping,
            "shipping_address": payload.shipping_address,
            "notes": payload.notes,
            "delivery_date": payload.delivery_date,
            "status_history": [{"old_status": None, "new_status": "pending", "notes": "Order created",
                                "changed_at": created_at}],
            "created_at": created_at,
        }
        ORDERS[order_id] = order
        logger.info("order %s created, total %s USD", order["order_number"], order["total_amount_usd"])
        return order
    finally:
        for l in reversed(locks):
            try:
                l.release()
            except RuntimeError:
                pass


async def get_order_logic(order_id: int) -> Dict:
    order = ORDERS.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    return order


async def list_orders_logic(email: Optional[str] = None, status: Optional[str] = None) -> List[Dict]:
    out = []
    for o in ORDERS.values():
        if email and email not in (o.get("user_email"), o.get("guest_email")):
            continue
        if status and o["status"] != status:
            continue
        out.append(o)
    return out


async def update_order_status_logic(order_id: int, payload: OrderStatusUpdate) -> Dict:
    if payload.status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="invalid order status")
    order = ORDERS.get(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    order["status_history"].append({
        "old_status": order["status"],
        "new_status": payload.status,
        "notes": payload.notes,
        "changed_at": _now(),
    })
    order["status"] = payload.status
    return order


# Payment endpoints
async def list_payment_methods_logic() -> List[Dict]:
    return [public_payment_method(m) for m in PAYMENT_METHODS.values() if m.get("active")]


async def create_payment_logic(payload: PaymentCreate) -> Dict:
    if payload.amount_usd <= 0:
        raise HTTPException(status_code=400, detail="Amount must be positive")
    order = ORDERS.get(payload.order_id)
    if not order:
        raise HTTPException(status_code=404, detail="order not found")
    method = PAYMENT_METHODS.get(payload.payment_method_id)
    if not method or not method.get("active"):
        raise HTTPException(status_code=404, detail="payment method not found")
    if order["status"] == "cancelled":
        raise HTTPException(status_code=409, detail="order is cancelled")
    if order["status"] != "pending":
        raise HTTPException(status_code=400, detail=f"order is {order['status']}, only pending orders take payments")
    if payload.amount_usd != order["total_amount_usd"]:
        raise HTTPException(
            status_code=400,
            detail=f"payment amount {payload.amount_usd} does not match order total {order['total_amount_usd']}",
        )

    amount_ves = payload.amount_ves
    if amount_ves is None:
        amount_ves = to_cents(payload.amount_usd * _setting_decimal(EXCHANGE_RATE_KEY, DEFAULT_EXCHANGE_RATE))

    payment_id = next_id("payment")
    payment = {
        "id": payment_id,
        "order_id": order["id"],
        "payment_method_id": method["id"],
        "amount_usd": payload.amount_usd,
        "amount_ves": amount_ves,
        "reference_number": payload.reference_number,
        "status": "pending",
        "created_at": _now(),
    }
    PAYMENTS[payment_id] = payment
    return payment


# Utility: reset (for tests/demo)
async def reset_all_logic() -> Dict:
    seed()
    return {"status": "reset"}
