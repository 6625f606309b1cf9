"""
Shopping cart: line-item aggregation, persistence and dual-currency totals.

The cart never talks to globals; the API client, storage and exchange-rate
provider are handed in by whoever owns the cart (CLI, checkout, tests).
"""
import json
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from floresya.config import settings
from floresya.constants import CART_STORAGE_KEY, SAVED_CART_STORAGE_KEY
from floresya.errors import FloresYaError, NotFoundError, ValidationError
from floresya.log import Notifier, log_notifier
from floresya.money import parse_amount

logger = logging.getLogger(__name__)

CartListener = Callable[[List["CartLineItem"]], None]

ZERO = Decimal("0")


class CartLineItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: int
    name: str
    unit_price: Decimal = Field(alias="price")
    quantity: int = Field(ge=1)
    image_url: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class CartStateItem(BaseModel):
    product_id: int
    quantity: int
    price: Decimal


class CartState(BaseModel):
    items: List[CartStateItem]
    total: Decimal
    item_count: int


# ---------------------------
# Persistent cart store
# ---------------------------
class CartStore:
    """Reads and writes the ordered line-item list as JSON text under one storage key."""

    def __init__(self, storage, key: str = CART_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def load(self) -> List[CartLineItem]:
        saved = self.storage.get_item(self.key)
        if not saved:
            return []
        try:
            raw = json.loads(saved)
            items = [CartLineItem.model_validate(entry) for entry in raw]
        except (ValueError, TypeError, PydanticValidationError) as e:
            logger.error("Error loading cart from storage key %s: %s", self.key, e)
            return []
        logger.info("Cart loaded from storage (%d items)", len(items))
        return items

    def save(self, items: List[CartLineItem]) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in items]
        try:
            self.storage.set_item(self.key, json.dumps(payload))
        except OSError as e:
            logger.error("Error saving cart to storage key %s: %s", self.key, e)
            return
        logger.debug("Cart saved to storage (%d items)", len(items))

    def remove(self) -> None:
        self.storage.remove_item(self.key)


# ---------------------------
# Exchange rate provider
# ---------------------------
class ExchangeRateProvider:
    """
    USD -> VES rate read from the ``exchange_rate_bcv`` setting.

    Fetched at most once until ``refresh`` is called. Any failure (missing
    setting, API or network error, unparseable value) yields the fallback rate.
    """

    def __init__(self, api, key: Optional[str] = None, fallback: Optional[Decimal] = None):
        self.api = api
        self.key = key or settings.exchange_rate_key
        self.fallback = fallback if fallback is not None else settings.fallback_exchange_rate
        self._rate: Optional[Decimal] = None

    @property
    def current_rate(self) -> Decimal:
        return self._rate if self._rate is not None else self.fallback

    def _parse(self, data: Any) -> Decimal:
        value = data.get("setting_value") if isinstance(data, dict) else None
        if value in (None, ""):
            logger.warning("Exchange rate not found, using fallback %s", self.fallback)
            return self.fallback
        rate = parse_amount(value)
        if rate is None:
            logger.warning("Exchange rate %r is not usable, using fallback %s", value, self.fallback)
            return self.fallback
        logger.info("Exchange rate loaded: %s", rate)
        return rate

    def get_rate(self) -> Decimal:
        if self._rate is None:
            try:
                data = self.api.get_setting(self.key)
            except FloresYaError as e:
                logger.error("Error fetching exchange rate, using fallback %s: %s", self.fallback, e)
                data = None
            self._rate = self._parse(data)
        return self._rate

    def refresh(self) -> Decimal:
        self._rate = None
        return self.get_rate()

    async def refresh_async(self) -> Decimal:
        try:
            data = await self.api.get_setting_async(self.key)
        except FloresYaError as e:
            logger.error("Error fetching exchange rate, using fallback %s: %s", self.fallback, e)
            data = None
        self._rate = self._parse(data)
        return self._rate


# ---------------------------
# Cart aggregator
# ---------------------------
class ShoppingCart:
    def __init__(
        self,
        api,
        store: CartStore,
        rates: Optional[ExchangeRateProvider] = None,
        shipping_fee_usd: Optional[Decimal] = None,
        notifier: Optional[Notifier] = None,
        saved_store: Optional[CartStore] = None,
    ):
        self.api = api
        self.store = store
        self.saved_store = saved_store or CartStore(store.storage, SAVED_CART_STORAGE_KEY)
        self.rates = rates or ExchangeRateProvider(api)
        self.shipping_fee_usd = shipping_fee_usd if shipping_fee_usd is not None else settings.shipping_fee_usd
        self.notifier = notifier if notifier is not None else log_notifier
        self._items: List[CartLineItem] = store.load()
        self._listeners: List[CartListener] = []
        logger.info("ShoppingCart initialized with %d items", len(self._items))

    def _find(self, product_id: int) -> Optional[CartLineItem]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def _commit(self) -> None:
        self.store.save(self._items)
        self._notify_listeners()

    def _notify_listeners(self) -> None:
        snapshot = self.get_items()
        for callback in self._listeners:
            callback(snapshot)

    def on_change(self, callback: CartListener) -> None:
        self._listeners.append(callback)

    def add_item(self, product_id: int, quantity: int = 1) -> CartLineItem:
        if quantity < 1:
            raise ValidationError("quantity must be >= 1", fields=["quantity"])
        logger.info("Adding item to cart: product_id=%s quantity=%s", product_id, quantity)
        try:
            product = self.api.get_product(product_id)
            if not product:
                raise NotFoundError(f"product {product_id} not found")
        except FloresYaError as e:
            logger.error("Error adding product %s to cart: %s", product_id, e.message)
            self.notifier(f"Could not add product {product_id}: {e.message}", "error")
            raise

        item = self._find(product_id)
        if item:
            item.quantity += quantity
        else:
            item = CartLineItem(
                product_id=product_id,
                name=product["name"],
                price=Decimal(str(product["price_usd"])),
                quantity=quantity,
                image_url=product.get("image_url"),
            )
            self._items.append(item)

        self._commit()
        self.notifier(f"{item.name} added to cart", "success")
        return item

    def remove_item(self, product_id: int) -> bool:
        item = self._find(product_id)
        if item is None:
            logger.warning("Item not found in cart: product_id=%s", product_id)
            return False
        self._items.remove(item)
        self._commit()
        logger.info("Item removed from cart: product_id=%s", product_id)
        return True

    def update_quantity(self, product_id: int, new_quantity: int) -> None:
        if new_quantity <= 0:
            self.remove_item(product_id)
            return
        item = self._find(product_id)
        if item is None:
            logger.warning("Item not found for quantity update: product_id=%s", product_id)
            return
        item.quantity = new_quantity
        self._commit()

    def clear(self) -> None:
        logger.info("Clearing cart (%d items)", len(self._items))
        self._items = []
        self._commit()

    # Totals
    def get_subtotal(self) -> Decimal:
        return sum((item.line_total for item in self._items), ZERO)

    def get_final_total_usd(self) -> Decimal:
        subtotal = self.get_subtotal()
        return subtotal + self.shipping_fee_usd if subtotal > 0 else ZERO

    def get_final_total_local_currency(self) -> Decimal:
        return self.get_final_total_usd() * self.rates.get_rate()

    def get_item_count(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def get_items(self) -> List[CartLineItem]:
        return [item.model_copy() for item in self._items]

    def get_state(self) -> CartState:
        return CartState(
            items=[
                CartStateItem(product_id=i.product_id, quantity=i.quantity, price=i.unit_price)
                for i in self._items
            ],
            total=self.get_final_total_usd(),
            item_count=self.get_item_count(),
        )

    def to_order_items(self) -> List[Dict[str, int]]:
        return [{"product_id": i.product_id, "quantity": i.quantity} for i in self._items]

    # Save for later
    def save_for_later(self) -> bool:
        if not self._items:
            logger.warning("Attempt to save an empty cart for later")
            return False
        self.saved_store.save(self._items)
        self.notifier("Cart saved for later", "success")
        return True

    def load_saved_cart(self) -> bool:
        items = self.saved_store.load()
        if not items:
            logger.info("No saved cart found")
            return False
        self._items = items
        self._commit()
        self.saved_store.remove()
        self.notifier("Saved cart loaded", "success")
        return True
