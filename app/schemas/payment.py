from pydantic import BaseModel, field_validator
from typing import Optional


class CreateOrderRequest(BaseModel):
    """Create a Razorpay order for the checkout total."""
    amount: float   # in rupees
    currency: str = "INR"

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float) -> float:
        if v < 1:
            raise ValueError("Minimum payment is ₹1")
        return v


class CreateOrderResponse(BaseModel):
    """Returned to the storefront to open Razorpay checkout."""
    id: str
    amount: int          # paise
    currency: str
    receipt: Optional[str] = None
    razorpay_key_id: str


class PaymentVerifyRequest(BaseModel):
    """
    The three fields Razorpay checkout hands back to the storefront.
    Optional here so a missing one is answered with 400 MissingFields
    instead of a generic validation error.
    """
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class PaymentVerifyResponse(BaseModel):
    verified: bool
    reason: Optional[str] = None
    order_id: Optional[str] = None
    payment_id: Optional[str] = None
    message: str
