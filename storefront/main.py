# storefront/main.py
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import services
from .core import OrderCreate, OrderStatusUpdate, PaymentCreate, SettingUpdate, ok

app = FastAPI(title="FloresYa storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # or restrict to the storefront origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------
# Error envelope
# ---------------------------
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "message": str(exc.detail)})


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "invalid request", "errors": jsonable_encoder(exc.errors())},
    )


# ---------------------------
# Product endpoints
# ---------------------------
@app.get("/api/products")
async def list_products(occasion: Optional[str] = None, featured: bool = False):
    return ok(await services.list_products_logic(occasion, featured))


@app.get("/api/products/search")
async def search_products(name: str = Query(..., min_length=1)):
    return ok(await services.search_product_logic(name))


@app.get("/api/products/{product_id}")
async def get_product(product_id: int):
    return ok(await services.get_product_logic(product_id))


# ---------------------------
# Settings endpoints
# ---------------------------
@app.get("/api/settings/{key}")
async def get_setting(key: str):
    return ok(await services.get_setting_logic(key))


@app.put("/api/settings/{key}")
async def update_setting(key: str, payload: SettingUpdate):
    return ok(await services.update_setting_logic(key, payload))


# ---------------------------
# Order endpoints
# ---------------------------
@app.post("/api/orders", status_code=201)
async def create_order(payload: OrderCreate):
    return ok(await services.create_order_logic(payload))


@app.get("/api/orders")
async def list_orders(email: Optional[str] = None, status: Optional[str] = None):
    return ok(await services.list_orders_logic(email, status))


@app.get("/api/orders/{order_id}")
async def get_order(order_id: int):
    return ok(await services.get_order_logic(order_id))


@app.patch("/api/orders/{order_id}/status")
async def update_order_status(order_id: int, payload: OrderStatusUpdate):
    return ok(await services.update_order_status_logic(order_id, payload))


# ---------------------------
# Payment endpoints
# ---------------------------
@app.get("/api/payment-methods")
async def list_payment_methods():
    return ok(await services.list_payment_methods_logic())


@app.post("/api/payments", status_code=201)
async def create_payment(payload: PaymentCreate):
    return ok(await services.create_payment_logic(payload))


# ---------------------------
# Utility: reset (for tests/demo)
# ---------------------------
@app.post("/api/reset")
async def reset_all():
    return ok(await services.reset_all_logic())
