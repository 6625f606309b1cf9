"""
Checkout dispatch: authenticated vs guest express checkout, and the payment
page step that turns the cart into an order.
"""
import enum
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from floresya.config import settings
from floresya.constants import GUEST_STORAGE_KEY
from floresya.errors import FloresYaError, NavigationError, ValidationError
from floresya.log import Notifier, log_notifier

logger = logging.getLogger(__name__)

Navigator = Callable[[str], None]


class GuestCheckoutInfo(BaseModel):
    name: str
    phone: str
    email: str
    address: str


class CheckoutState(enum.Enum):
    IDLE = "idle"
    AWAITING_GUEST_INFO = "awaiting_guest_info"
    REDIRECTING = "redirecting"


@dataclass
class AuthSession:
    token: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None


def payment_url(base: Optional[str] = None, **flags: bool) -> str:
    base = base or settings.payment_page_url
    query = urlencode({k: "true" for k, v in flags.items() if v})
    return f"{base}?{query}" if query else base


class CheckoutDispatcher:
    def __init__(
        self,
        cart,
        session_storage,
        navigator: Navigator,
        auth: Optional[AuthSession] = None,
        notifier: Optional[Notifier] = None,
        redirect_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        payment_page_url: Optional[str] = None,
    ):
        self.cart = cart
        self.session_storage = session_storage
        self.navigator = navigator
        self.auth = auth or AuthSession()
        self.notifier = notifier if notifier is not None else log_notifier
        self.redirect_delay = settings.redirect_delay if redirect_delay is None else redirect_delay
        self.sleep = sleep
        self.payment_page_url = payment_page_url or settings.payment_page_url
        self.state = CheckoutState.IDLE

    def _navigate(self, url: str) -> Optional[str]:
        self.state = CheckoutState.REDIRECTING
        try:
            self.navigator(url)
        except NavigationError as e:
            logger.error("Navigation to %s failed: %s", url, e.message)
            self.state = CheckoutState.IDLE
            return None
        logger.info("Redirected to %s", url)
        self.state = CheckoutState.IDLE
        return url

    def begin_checkout(self) -> Optional[str]:
        """
        Express checkout trigger.

        Authenticated sessions go straight to the payment page and the URL is
        returned. Guests move to AWAITING_GUEST_INFO and get ``None`` back;
        the caller then collects the form and calls ``submit_guest_info``.
        """
        if self.cart.is_empty:
            logger.warning("Express checkout attempted with an empty cart")
            return None
        if self.auth.is_authenticated:
            logger.info("Logged in user detected, redirecting to payment")
            return self._navigate(payment_url(self.payment_page_url, floresya=True))
        logger.info("Guest user detected, awaiting contact details")
        self.state = CheckoutState.AWAITING_GUEST_INFO
        return None

    def regular_checkout(self) -> Optional[str]:
        if self.cart.is_empty:
            logger.warning("Regular checkout attempted with an empty cart")
            return None
        return self._navigate(self.payment_page_url)

    def cancel(self) -> None:
        self.state = CheckoutState.IDLE

    def submit_guest_info(self, name: str, phone: str, email: str, address: str) -> Optional[str]:
        if self.state is not CheckoutState.AWAITING_GUEST_INFO:
            raise FloresYaError("guest details are only accepted after checkout has begun")

        fields = {"name": name, "phone": phone, "email": email, "address": address}
        missing = [k for k, v in fields.items() if not (v or "").strip()]
        if missing:
            logger.warning("Guest checkout form invalid, missing: %s", ", ".join(missing))
            raise ValidationError("please fill in all required fields", fields=missing)

        info = GuestCheckoutInfo(**{k: v.strip() for k, v in fields.items()})
        self.session_storage.set_item(GUEST_STORAGE_KEY, info.model_dump_json())
        logger.info("Guest data stored in session storage")

        self.notifier("FloresYa - Processing your order...", "info")
        self.sleep(self.redirect_delay)
        return self._navigate(payment_url(self.payment_page_url, floresya=True, guest=True))


# ---------------------------
# Payment page side
# ---------------------------
def consume_guest_info(session_storage) -> Optional[GuestCheckoutInfo]:
    raw = session_storage.get_item(GUEST_STORAGE_KEY)
    if raw is None:
        return None
    session_storage.remove_item(GUEST_STORAGE_KEY)
    try:
        return GuestCheckoutInfo.model_validate(json.loads(raw))
    except (ValueError, PydanticValidationError) as e:
        logger.error("Discarding unreadable guest checkout data: %s", e)
        return None


def place_order(
    cart,
    api,
    session_storage,
    user_email: Optional[str] = None,
    notes: Optional[str] = None,
    delivery_date: Optional[str] = None,
    shipping_address: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create the backend order from the cart and clear the cart on success.

    Guest details stored by the dispatcher are consumed here and supply the
    contact and delivery address. Without a guest payload both ``user_email``
    and ``shipping_address`` are required. An explicit ``shipping_address``
    wins over the guest one.
    """
    if cart.is_empty:
        raise ValidationError("cart is empty", fields=["items"])

    guest = consume_guest_info(session_storage)
    address = (shipping_address or "").strip() or (guest.address if guest is not None else "")
    missing = []
    if guest is None and not user_email:
        missing.append("email")
    if not address:
        missing.append("shipping_address")
    if missing:
        raise ValidationError("contact details are required", fields=missing)

    payload: Dict[str, Any] = {"items": cart.to_order_items(), "shipping_address": address}
    if user_email:
        payload["user_email"] = user_email
    if guest is not None:
        payload.update(
            guest_email=guest.email,
            customer_name=guest.name,
            customer_phone=guest.phone,
        )
    if notes:
        payload["notes"] = notes
    if delivery_date:
        payload["delivery_date"] = delivery_date

    try:
        order = api.create_order(payload)
    except FloresYaError:
        # keep guest details for a manual retry
        if guest is not None:
            session_storage.set_item(GUEST_STORAGE_KEY, guest.model_dump_json())
        raise
    logger.info("Order %s placed", order.get("order_number"))
    cart.clear()
    return order
