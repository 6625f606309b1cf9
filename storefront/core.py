from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, field_validator


class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(ge=1)


class OrderCreate(BaseModel):
    items: List[OrderItemIn] = Field(min_length=1)
    shipping_address: str
    user_email: Optional[str] = None
    guest_email: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    delivery_date: Optional[str] = None

    @field_validator("shipping_address")
    @classmethod
    def address_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("shipping_address must not be blank")
        return v


class OrderStatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None


class SettingUpdate(BaseModel):
    value: str


class PaymentCreate(BaseModel):
    order_id: int
    payment_method_id: int
    amount_usd: Decimal
    amount_ves: Optional[Decimal] = None
    reference_number: Optional[str] = None


def ok(data: Any) -> Dict[str, Any]:
    # money stays exact on the wire: Decimal goes out as a string, not a float
    return {"success": True, "data": jsonable_encoder(data, custom_encoder={Decimal: str})}
