"""
Payments router: Razorpay order creation and checkout callback verification.

  1. POST /payments/create-order → Razorpay order for the checkout total
  2. [Storefront opens Razorpay checkout, customer pays]
  3. POST /payments/verify       → HMAC signature check → {verified}

Every verification outcome is written to the audit log. A failed signature
is final for that payload: nothing is retried and no order state changes.
Only after verified=True does the order module get to mark the order paid,
and only if the recorded gateway amount equals the order total.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.core.dependencies import get_current_profile, get_store_settings_cache
from app.core.exceptions import ForbiddenException
from app.core.rate_limiter import limiter
from app.middleware.audit_middleware import log_audit_event
from app.models.user import Profile
from app.schemas.payment import CreateOrderRequest, CreateOrderResponse, PaymentVerifyRequest, PaymentVerifyResponse
from app.services import order_service, profile_service, razorpay_service
from app.services.email_service import send_status_email_safe
from app.services.store_settings_service import StoreSettingsCache

router = APIRouter()


@router.post("/create-order", response_model=CreateOrderResponse)
@limiter.limit("10/minute")
def create_order(
    request: Request,
    body: CreateOrderRequest,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
    store_settings: StoreSettingsCache = Depends(get_store_settings_cache),
):
    if not store_settings.get(db).get("razorpay_enabled", True):
        raise ForbiddenException("Online payments are currently disabled")

    order = razorpay_service.create_order(body.amount, currency=body.currency)
    order_service.record_razorpay_order(db, profile.id, order)
    return CreateOrderResponse(
        id=order["id"],
        amount=order["amount"],
        currency=order["currency"],
        receipt=order.get("receipt"),
        razorpay_key_id=settings.razorpay_key_id,
    )


@router.post("/verify", response_model=PaymentVerifyResponse)
@limiter.limit("10/minute")
async def verify_payment(
    request: Request,
    body: PaymentVerifyRequest,
    db: Session = Depends(get_db),
):
    """
    {verified: false, reason: "InvalidSignature"} for a bad signature,
    400 MissingFields if any of the three fields is absent.
    """
    verified = razorpay_service.verify_payment_signature(
        razorpay_order_id=body.razorpay_order_id,
        razorpay_payment_id=body.razorpay_payment_id,
        razorpay_signature=body.razorpay_signature,
    )

    if not verified:
        log_audit_event(
            db,
            action="PAYMENT_SIGNATURE_INVALID",
            target_type="payment",
            target_id=body.razorpay_order_id,
            details={"payment_id": body.razorpay_payment_id},
        )
        return {"verified": False, "reason": "InvalidSignature", "message": "Invalid payment signature"}

    log_audit_event(
        db,
        action="PAYMENT_VERIFIED",
        target_type="payment",
        target_id=body.razorpay_order_id,
        details={"payment_id": body.razorpay_payment_id},
    )

    order = order_service.mark_order_paid(db, body.razorpay_order_id, body.razorpay_payment_id)
    if order:
        customer = profile_service.get_profile(db, order.user_id)
        if customer:
            await send_status_email_safe(customer.email, customer.full_name, order, "payment_status", "paid")

    return {
        "verified": True,
        "order_id": body.razorpay_order_id,
        "payment_id": body.razorpay_payment_id,
        "message": "Payment verified successfully",
    }
