# cli.py - interactive FloresYa storefront in the terminal
import sys
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from floresya.cart import CartStore, ExchangeRateProvider, ShoppingCart
from floresya.checkout import CheckoutDispatcher, CheckoutState, place_order
from floresya.client import FloresYaClient
from floresya.config import settings
from floresya.errors import FloresYaError, ValidationError
from floresya.log import setup_logging
from floresya.storage import LocalStorage, SessionStorage

console = Console()

# Status line and autocomplete cache
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#aa3366 #ffffff',
    'completion-menu.completion.current': 'bg:#dd5588 #000000',
    'scrollbar.background': 'bg:#aa8899',
    'scrollbar.button': 'bg:#222222',
})


def usd(amount: Decimal) -> str:
    return f"${Decimal(amount):,.2f}"


def ves(amount: Decimal) -> str:
    return f"Bs. {Decimal(amount):,.2f}"


# ---------------------------
# Display helpers
# ---------------------------
def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def notify(message: str, level: str = "info"):
    """Cart/checkout notifier: transient user-facing messages."""
    global status_message
    status_message = message
    console.print(show_status(message, level != "error"))


def show_products(products: List[Dict[str, Any]], rate: Decimal):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="🌸 FloresYa Catalog",
        box=box.ROUNDED,
        header_style="bold magenta",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=4)
    table.add_column("Name", style="bold", width=28)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Bs.", justify="right", width=14)
    table.add_column("Stock", justify="right", width=6)
    table.add_column("Occasion", width=14)

    for p in products:
        price = Decimal(str(p.get("price_usd", 0)))
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name", "N/A"),
            usd(price),
            ves(price * rate),
            str(p.get("stock_quantity", 0)),
            p.get("occasion") or "-"
        )
    console.print(table)


def show_cart(cart: ShoppingCart):
    title = Text()
    title.append("🛒 Cart - ", style="bold")
    title.append(f"{cart.get_item_count()} items", style="bold cyan")

    items = cart.get_items()
    if not items:
        console.print(Panel("Your cart is empty 💐", title=title, style="blue"))
        return

    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("ID", style="dim", width=4)
    table.add_column("Product", style="bold", width=28)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Line", justify="right", width=12)

    for it in items:
        table.add_row(str(it.product_id), it.name, str(it.quantity), usd(it.unit_price), usd(it.line_total))

    totals = Table.grid(padding=(0, 2))
    totals.add_column(justify="right")
    totals.add_column(justify="right")
    totals.add_row("Subtotal", usd(cart.get_subtotal()))
    totals.add_row("Shipping", usd(cart.shipping_fee_usd))
    totals.add_row("[bold]Total[/bold]", f"[bold green]{usd(cart.get_final_total_usd())}[/bold green]")
    totals.add_row("Total Bs.", ves(cart.get_final_total_local_currency()))

    console.print(Panel.fit(table, title=title, border_style="blue"))
    console.print(Panel.fit(totals, title=f"Rate {cart.rates.current_rate} Bs/$", border_style="green"))


def show_order(order: Dict[str, Any]):
    table = Table(box=box.SIMPLE, header_style="bold yellow")
    table.add_column("Product", width=28)
    table.add_column("Qty", justify="right", width=6)
    table.add_column("Total", justify="right", width=12)
    for line in order.get("items", []):
        table.add_row(
            line.get("product_snapshot", {}).get("name", str(line.get("product_id"))),
            str(line.get("quantity")),
            usd(Decimal(str(line.get("total_price", 0)))),
        )
    console.print(Panel.fit(
        table,
        title=f"🧾 {order.get('order_number')} [{order.get('status')}]",
        subtitle=f"Total {usd(Decimal(str(order.get('total_amount_usd', 0))))}",
        border_style="yellow",
    ))


def show_orders(orders: List[Dict[str, Any]], email: str):
    if not orders:
        console.print("[italic yellow]No orders found[/italic yellow]")
        return

    table = Table(
        title=f"📋 Orders for {email}",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Order", style="dim", width=16)
    table.add_column("Contents", width=40)
    table.add_column("Status", width=12)
    table.add_column("Total", justify="right", width=12)

    for order in orders:
        names = [
            f"{line.get('product_snapshot', {}).get('name', line.get('product_id'))} x{line.get('quantity', 1)}"
            for line in order.get("items", [])[:3]
        ]
        summary = ", ".join(names) if names else "No items"
        if len(order.get("items", [])) > 3:
            summary += f" +{len(order['items']) - 3} more"
        status_style = "green" if order.get("status") in ("verified", "delivered") else "yellow"
        table.add_row(
            order.get("order_number", "N/A"),
            summary,
            f"[{status_style}]{order.get('status', 'N/A')}[/{status_style}]",
            usd(Decimal(str(order.get("total_amount_usd", 0)))),
        )
    console.print(table)


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    FloresYa errors end up in the status line; the result is None then.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except FloresYaError as e:
        status_message = f"Error: {e.message}"
        console.print(show_status(status_message, False))
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer(client: FloresYaClient):
    global product_cache
    if not product_cache:
        product_cache = try_api(client.list_products) or []
    return WordCompleter([str(p["id"]) for p in product_cache] + [p["name"] for p in product_cache], ignore_case=True)


def resolve_product_id(raw: str) -> Optional[int]:
    raw = raw.strip()
    if raw.isdigit():
        return int(raw)
    for p in product_cache:
        if p["name"].lower() == raw.lower():
            return p["id"]
    console.print(f"[red]Unknown product: {raw}[/red]")
    return None


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🌸 FloresYa",
        "[bold magenta]Flower shop in your terminal[/bold magenta]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold magenta")


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


# ---------------------------
# Payment page
# ---------------------------
class PaymentPage:
    """Navigation target: places the order and records the payment."""

    def __init__(self, client: FloresYaClient, cart: ShoppingCart, session_storage: SessionStorage):
        self.client = client
        self.cart = cart
        self.session_storage = session_storage
        self.user_email: Optional[str] = None

    def __call__(self, url: str):
        flags = {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}
        console.rule(f"[magenta]{url}[/magenta]")
        email = address = None
        if flags.get("guest") != "true":
            email = self.user_email or Prompt.ask("📧 Email for the order")
            address = Prompt.ask("🏠 Delivery address")

        notes = Prompt.ask("📝 Card message / notes", default="")
        order = try_api(place_order, self.cart, self.client, self.session_storage,
                        user_email=email, notes=notes or None, shipping_address=address,
                        success_msg="Order placed")
        if not order:
            return
        show_order(order)

        methods = try_api(self.client.get_payment_methods) or []
        if not methods:
            return
        for m in methods:
            console.print(f"  [bold cyan]{m['id']}[/bold cyan] {m['name']} - [dim]{m['account_info']}[/dim]")
        method_id = IntPrompt.ask("💳 Payment method", choices=[str(m["id"]) for m in methods])
        reference = Prompt.ask("🔢 Payment reference", default="")
        total = Decimal(str(order["total_amount_usd"]))
        payment = try_api(
            self.client.submit_payment, order["id"], method_id, total, reference or None,
            success_msg="Payment submitted, pending verification",
        )
        if payment:
            console.print(Panel.fit(
                f"[green]Thank you![/green]\nOrder: [bold]{order['order_number']}[/bold]\n"
                f"Paid: [bold]{usd(total)}[/bold] ({ves(Decimal(str(payment['amount_ves'])))})",
                title="✅ FloresYa",
            ))


def express_checkout(dispatcher: CheckoutDispatcher):
    dispatcher.begin_checkout()
    if dispatcher.state is not CheckoutState.AWAITING_GUEST_INFO:
        return
    console.print(Panel.fit(
        f"{dispatcher.cart.get_item_count()} products - "
        f"[bold]{usd(dispatcher.cart.get_final_total_usd())}[/bold]\n"
        "Fill in your delivery details and pay in seconds.",
        title="🚀 FloresYa Express",
    ))
    while True:
        fields = {
            "name": Prompt.ask("Full name *", default=""),
            "phone": Prompt.ask("Phone *", default=""),
            "email": Prompt.ask("Email *", default=""),
            "address": Prompt.ask("Delivery address *", default=""),
        }
        try:
            dispatcher.submit_guest_info(**fields)
            return
        except ValidationError as e:
            console.print(show_status(f"{e.message}: {', '.join(e.fields)}", False))
            if not Confirm.ask("Try again?"):
                dispatcher.cancel()
                return


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache

    setup_logging("WARNING")
    client = FloresYaClient()
    session_storage = SessionStorage()
    rates = ExchangeRateProvider(client)
    cart = ShoppingCart(client, CartStore(LocalStorage(settings.storage_path)), rates=rates, notifier=notify)
    payment_page = PaymentPage(client, cart, session_storage)
    dispatcher = CheckoutDispatcher(cart, session_storage, navigator=payment_page, notifier=notify)
    cart.on_change(lambda items: console.print(
        f"[dim]🛒 {sum(i.quantity for i in items)} items in cart[/dim]"))

    console.clear()
    console.print(create_header())
    product_cache = try_api(client.list_products) or []

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "🌸 List products", "7", "🚀 FloresYa Express checkout"),
            ("2", "🔍 Search products", "8", "💳 Regular checkout"),
            ("3", "🛒 Add to cart", "9", "💾 Save cart for later"),
            ("4", "✏️ Change quantity", "10", "📂 Load saved cart"),
            ("5", "➖ Remove from cart", "11", "📋 My orders"),
            ("6", "👀 View cart", "12", "🗑️ Empty cart"),
            ("", "", "q", "👋 Quit")
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 13)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(client.list_products, success_msg="Catalog loaded")
            if products is not None:
                product_cache = products
                show_products(products, rates.get_rate())

        elif choice == "2":
            term = prompt_with_autocomplete("Search term")
            if not term.strip():
                continue
            res = try_api(client.search_products, term, success_msg=f"Search for '{term}' completed")
            if res is not None:
                show_products(res, rates.get_rate())

        elif choice == "3":
            pid = resolve_product_id(prompt_with_autocomplete("Product", completer=get_product_completer(client)))
            if pid is None:
                continue
            qty = IntPrompt.ask("Quantity", default=1)
            try_api(cart.add_item, pid, qty)
            show_cart(cart)

        elif choice == "4":
            pid = resolve_product_id(prompt_with_autocomplete("Product", completer=get_product_completer(client)))
            if pid is None:
                continue
            cart.update_quantity(pid, IntPrompt.ask("New quantity (0 removes)", default=1))
            show_cart(cart)

        elif choice == "5":
            pid = resolve_product_id(prompt_with_autocomplete("Product", completer=get_product_completer(client)))
            if pid is not None and cart.remove_item(pid):
                notify(f"Product {pid} removed from cart")
            show_cart(cart)

        elif choice == "6":
            show_cart(cart)

        elif choice == "7":
            express_checkout(dispatcher)

        elif choice == "8":
            if dispatcher.regular_checkout() is None:
                notify("Your cart is empty", "error")

        elif choice == "9":
            cart.save_for_later()

        elif choice == "10":
            if not cart.load_saved_cart():
                notify("No saved cart found")
            show_cart(cart)

        elif choice == "11":
            email = Prompt.ask("📧 Email")
            orders = try_api(client.list_orders, email, success_msg=f"Orders loaded for {email}")
            if orders is not None:
                show_orders(orders, email)

        elif choice == "12":
            if Confirm.ask("[red]Empty the cart?[/red]"):
                cart.clear()
                notify("Cart emptied")

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold magenta]Gracias por comprar en FloresYa! 🌷[/bold magenta]",
                                        title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
