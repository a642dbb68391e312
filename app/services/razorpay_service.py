"""
Razorpay payment service.

Flow:
  1. Storefront calls POST /payments/create-order → backend creates Razorpay order
  2. Backend returns the Razorpay order (id, amount in paise, currency)
  3. Storefront opens Razorpay checkout, customer pays
  4. Razorpay hands {razorpay_order_id, razorpay_payment_id, razorpay_signature}
     back to the storefront
  5. Storefront POSTs all three to POST /payments/verify
  6. Backend verifies the HMAC-SHA256 signature (CRITICAL security step)
  7. Only a verified callback may move an order to "paid"

The signature is an HMAC of "{order_id}|{payment_id}" keyed with the Razorpay
secret. Verification is a pure function of its inputs: a failed result is final
for that payload and is never retried.
"""
import hmac
import hashlib
import logging
import time
from typing import Optional

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError

from app.config import settings
from app.core.exceptions import MissingFieldsException, PaymentGatewayException

logger = logging.getLogger(__name__)

# Initialize Razorpay client once at module level
client = razorpay.Client(
    auth=(settings.razorpay_key_id, settings.razorpay_key_secret)
)


def create_order(amount_inr: float, currency: str = "INR", receipt: Optional[str] = None) -> dict:
    """
    Create a Razorpay order.

    Razorpay amounts are in PAISE (1 rupee = 100 paise).
    Returns the Razorpay order dict ('id', 'amount', 'currency', ...).
    """
    data = {
        "amount": int(round(amount_inr * 100)),
        "currency": currency or "INR",
        "receipt": receipt or f"order_{int(time.time() * 1000)}",
        "notes": {"company": settings.store_name},
    }
    try:
        return client.order.create(data=data)
    except (BadRequestError, GatewayError, ServerError) as exc:
        logger.error(f"Razorpay order creation failed: {exc}")
        raise PaymentGatewayException() from exc


def compute_signature(order_id: str, payment_id: str, secret: Optional[str] = None) -> str:
    """Lowercase hex HMAC-SHA256 of "{order_id}|{payment_id}"."""
    key = secret if secret is not None else settings.razorpay_key_secret
    message = f"{order_id}|{payment_id}"
    return hmac.new(
        key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_payment_signature(
    razorpay_order_id: Optional[str],
    razorpay_payment_id: Optional[str],
    razorpay_signature: Optional[str],
    secret: Optional[str] = None,
) -> bool:
    """
    Check a checkout callback's signature.

    Raises MissingFieldsException if any field is absent or empty.
    Returns True if valid, False if tampered or invalid.
    hmac.compare_digest keeps the comparison timing-safe.
    """
    provided = {
        "razorpay_order_id": razorpay_order_id,
        "razorpay_payment_id": razorpay_payment_id,
        "razorpay_signature": razorpay_signature,
    }
    missing = [name for name, value in provided.items() if not value]
    if missing:
        logger.warning(f"Payment verification rejected, missing fields: {missing}")
        raise MissingFieldsException(missing)

    expected_signature = compute_signature(razorpay_order_id, razorpay_payment_id, secret)
    # Compare bytes: compare_digest rejects non-ASCII str arguments
    return hmac.compare_digest(
        expected_signature.encode("utf-8"),
        razorpay_signature.encode("utf-8"),
    )
