import re
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import Literal, Optional, List
from decimal import Decimal
from datetime import datetime

from app.schemas.user import clean_phone

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=2, max_length=150)
    phone: str
    address_line1: str = Field(min_length=3, max_length=255)
    address_line2: Optional[str] = None
    city: str = Field(min_length=2, max_length=100)
    state: str = Field(min_length=2, max_length=100)
    pincode: str

    @field_validator("phone")
    @classmethod
    def phone_valid(cls, v: str) -> str:
        v = clean_phone(v)
        if not v:
            raise ValueError("Phone is required")
        return v

    @field_validator("pincode")
    @classmethod
    def pincode_valid(cls, v: str) -> str:
        v = v.strip()
        if not re.fullmatch(r"[1-9][0-9]{5}", v):
            raise ValueError("Pincode must be 6 digits")
        return v


class OrderItemIn(BaseModel):
    product_id: str
    variant_id: Optional[str] = None
    product_name: str = Field(min_length=1, max_length=255)
    variant_name: Optional[str] = None
    quantity: int = Field(ge=1)
    unit_price: Decimal = Field(ge=0)
    gst_amount: Decimal = Field(default=Decimal("0"), ge=0)


class OrderItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    product_id: str
    variant_id: Optional[str] = None
    product_name: str
    variant_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    gst_amount: Decimal
    total_price: Decimal


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    order_number: str
    subtotal: Decimal
    gst_amount: Decimal
    transport_charges: Decimal
    total_amount: Decimal
    payment_method: str
    payment_status: str
    order_status: str
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderItemOut] = []
    notes: Optional[str] = None
    created_at: datetime

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class OrderListResponse(BaseModel):
    orders: List[OrderOut]


class OrderCreateRequest(BaseModel):
    """
    Totals are computed by the storefront. They are stored as given once they
    add up: subtotal is the sum of the item lines and total_amount is
    subtotal + gst_amount + transport_charges.
    """
    items: List[OrderItemIn] = Field(min_length=1)
    shipping_address: ShippingAddress
    subtotal: Decimal
    gst_amount: Decimal = Decimal("0")
    transport_charges: Decimal = Decimal("0")
    total_amount: Decimal
    payment_method: Literal["online", "cod"]
    razorpay_order_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def amounts_consistent(self) -> "OrderCreateRequest":
        for name in ("subtotal", "gst_amount", "transport_charges", "total_amount"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        lines = sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))
        if lines != self.subtotal:
            raise ValueError(f"subtotal {self.subtotal} does not match item total {lines}")
        if self.subtotal + self.gst_amount + self.transport_charges != self.total_amount:
            raise ValueError("total_amount must equal subtotal + gst_amount + transport_charges")
        return self


class OrderStatusUpdateRequest(BaseModel):
    order_status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def at_least_one(self) -> "OrderStatusUpdateRequest":
        if self.order_status is None and self.payment_status is None:
            raise ValueError("Provide order_status and/or payment_status")
        return self


class OrderStatusUpdateResponse(BaseModel):
    order: OrderOut
    changed: List[str]
    emails_sent: int
