# storefront/models.py
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price_usd: Decimal
    image_url: Optional[str] = None
    stock_quantity: int
    occasion: Optional[str] = None
    featured: bool = False


class PaymentMethod(BaseModel):
    id: int
    name: str
    type: str
    account_info: str


class OrderLine(BaseModel):
    product_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal
    product_snapshot: Dict[str, Any]


def public_product(p: Dict[str, Any]) -> Dict[str, Any]:
    return Product.model_validate(p).model_dump()


def public_payment_method(m: Dict[str, Any]) -> Dict[str, Any]:
    return PaymentMethod.model_validate(m).model_dump()


def order_lines(lines: List[OrderLine]) -> List[Dict[str, Any]]:
    return [line.model_dump() for line in lines]
