from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from floresya.constants import (
    DEFAULT_EXCHANGE_RATE,
    DEFAULT_SHIPPING_FEE_USD,
    EXCHANGE_RATE_KEY,
    PAYMENT_PAGE_URL,
    REDIRECT_DELAY_SECONDS,
)

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        raise RuntimeError(f"{keys[0]} must be an integer, got {v!r}")


def _get_float(*keys: str, default: float) -> float:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        raise RuntimeError(f"{keys[0]} must be a number, got {v!r}")


def _get_decimal(*keys: str, default: Decimal) -> Decimal:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    try:
        return Decimal(v)
    except InvalidOperation:
        raise RuntimeError(f"{keys[0]} must be a decimal number, got {v!r}")


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    timeout: int
    shipping_fee_usd: Decimal
    fallback_exchange_rate: Decimal
    exchange_rate_key: str
    storage_path: str
    payment_page_url: str
    redirect_delay: float
    log_level: str


settings = Settings(
    api_base_url=_get_env("FLORESYA_API_URL", default="http://127.0.0.1:8085") or "http://127.0.0.1:8085",
    timeout=_get_int("FLORESYA_TIMEOUT", default=10),
    shipping_fee_usd=_get_decimal("FLORESYA_SHIPPING_FEE_USD", default=DEFAULT_SHIPPING_FEE_USD),
    fallback_exchange_rate=_get_decimal("FLORESYA_FALLBACK_RATE", default=DEFAULT_EXCHANGE_RATE),
    exchange_rate_key=_get_env("FLORESYA_EXCHANGE_RATE_KEY", default=EXCHANGE_RATE_KEY) or EXCHANGE_RATE_KEY,
    storage_path=_get_env("FLORESYA_STORAGE_PATH", default=str(ROOT_DIR / "data" / "local_storage.json"))
    or str(ROOT_DIR / "data" / "local_storage.json"),
    payment_page_url=_get_env("FLORESYA_PAYMENT_URL", default=PAYMENT_PAGE_URL) or PAYMENT_PAGE_URL,
    redirect_delay=_get_float("FLORESYA_REDIRECT_DELAY", default=REDIRECT_DELAY_SECONDS),
    log_level=_get_env("FLORESYA_LOG_LEVEL", default="INFO") or "INFO",
)
