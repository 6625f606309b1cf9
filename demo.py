#!/usr/bin/env python
"""Scripted walk-through: fill a cart, check out as a guest, pay."""
import tempfile
from pathlib import Path

from floresya.cart import CartStore, ExchangeRateProvider, ShoppingCart
from floresya.checkout import CheckoutDispatcher, place_order
from floresya.client import FloresYaClient
from floresya.log import setup_logging
from floresya.storage import LocalStorage, SessionStorage


def main():
    setup_logging()
    c = FloresYaClient(base_url="http://127.0.0.1:8085")

    # -----------------------------
    # Reset everything for demo
    # -----------------------------
    print("Resetting store...")
    c.reset()

    # -----------------------------
    # Catalog
    # -----------------------------
    print("\nListing featured products...")
    for p in c.list_products(featured_only=True):
        print(f"  {p['id']:>2} {p['name']:<28} ${p['price_usd']}")

    print("\nSearching for 'rosas'...")
    print(c.search_products("rosas"))

    # -----------------------------
    # Cart
    # -----------------------------
    storage = LocalStorage(Path(tempfile.mkdtemp()) / "local_storage.json")
    cart = ShoppingCart(c, CartStore(storage), rates=ExchangeRateProvider(c))
    cart.on_change(lambda items: print(f"  cart changed: {[(i.product_id, i.quantity) for i in items]}"))

    print("\nAdding products to cart...")
    cart.add_item(1, 2)
    cart.add_item(5)
    print(f"Subtotal: ${cart.get_subtotal()}")
    print(f"Total:    ${cart.get_final_total_usd()} (Bs. {cart.get_final_total_local_currency():.2f})")

    # -----------------------------
    # Guest express checkout
    # -----------------------------
    session = SessionStorage()
    visited = []
    dispatcher = CheckoutDispatcher(cart, session, navigator=visited.append)
    dispatcher.begin_checkout()
    dispatcher.submit_guest_info(
        name="Maria Perez",
        phone="0414-5551234",
        email="maria@example.com",
        address="Av. Libertador, Caracas",
    )
    print(f"\nNavigated to {visited[-1]}")

    # -----------------------------
    # Payment page
    # -----------------------------
    order = place_order(cart, c, session, notes="Feliz cumpleanos!")
    print(f"\nOrder {order['order_number']} placed, total ${order['total_amount_usd']}")
    method = c.get_payment_methods()[0]
    payment = c.submit_payment(order["id"], method["id"], order["total_amount_usd"], reference_number="123456")
    print(f"Payment {payment['id']} via {method['name']}: {payment['status']}")

    print("\nListing orders for maria@example.com...")
    print(c.list_orders("maria@example.com"))


if __name__ == "__main__":
    main()
