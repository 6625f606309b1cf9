from decimal import Decimal

# Business defaults shared by the client and the backend seed data.
DEFAULT_SHIPPING_FEE_USD = Decimal("7.00")
DEFAULT_EXCHANGE_RATE = Decimal("36.5")

EXCHANGE_RATE_KEY = "exchange_rate_bcv"
SHIPPING_FEE_KEY = "shipping_cost_usd"

CART_STORAGE_KEY = "floresya_cart"
SAVED_CART_STORAGE_KEY = "floresya_saved_cart"
GUEST_STORAGE_KEY = "floresya_guest"

PAYMENT_PAGE_URL = "/pages/payment.html"
REDIRECT_DELAY_SECONDS = 1.5

ORDER_STATUSES = ("pending", "verified", "preparing", "shipped", "delivered", "cancelled")
