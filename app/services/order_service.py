"""
Order management: creation, listing, and status transitions.

Payment verification only *advises* this module: routers call
mark_order_paid() after verify_payment_signature() returned True, never
before and never on a failed check. Even then the order is only flipped when
the Razorpay order that was paid asked for exactly the order's total.
"""
import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.order import Order, OrderItem, RazorpayOrder, ORDER_STATUSES, PAYMENT_STATUSES
from app.core.exceptions import ConflictException, NotFoundException
from app.middleware.audit_middleware import log_audit_event

logger = logging.getLogger(__name__)

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(now: Optional[datetime] = None) -> str:
    """WOW-YYYYMMDD-XXXX, e.g. WOW-20261018-K3ZQ."""
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(4))
    return f"WOW-{now:%Y%m%d}-{suffix}"


def to_paise(amount) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def create_order(
    db: Session,
    user_id,
    subtotal,
    gst_amount,
    transport_charges,
    total_amount,
    payment_method: str,
    razorpay_order_id: Optional[str] = None,
    notes: Optional[str] = None,
    items: Optional[list[dict]] = None,
    shipping_address: Optional[dict] = None,
) -> Order:
    """
    items are dicts with product_id, product_name, quantity, unit_price and
    optionally variant_id, variant_name, gst_amount. total_price is computed.

    Raises ConflictException if another order already references razorpay_order_id.
    """
    order = Order(
        user_id=uuid.UUID(str(user_id)),
        order_number=generate_order_number(),
        subtotal=subtotal,
        gst_amount=gst_amount,
        transport_charges=transport_charges,
        total_amount=total_amount,
        payment_method=payment_method,
        razorpay_order_id=razorpay_order_id,
        shipping_address=shipping_address,
        notes=notes,
    )
    for position, item in enumerate(items or []):
        unit_price = Decimal(str(item["unit_price"]))
        order.items.append(OrderItem(
            position=position,
            product_id=item["product_id"],
            variant_id=item.get("variant_id"),
            product_name=item["product_name"],
            variant_name=item.get("variant_name"),
            quantity=item["quantity"],
            unit_price=unit_price,
            gst_amount=Decimal(str(item.get("gst_amount") or 0)),
            total_price=unit_price * item["quantity"],
        ))

    db.add(order)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"Order for user {user_id} reuses Razorpay order {razorpay_order_id}")
        raise ConflictException("This payment is already attached to another order")
    db.refresh(order)
    logger.info(f"Order {order.order_number} created for user {user_id}")
    return order


def list_orders(db: Session, user_id) -> list[Order]:
    return (
        db.query(Order)
        .filter(Order.user_id == uuid.UUID(str(user_id)))
        .order_by(Order.created_at.desc())
        .all()
    )


def get_order(db: Session, order_id) -> Order:
    order = db.get(Order, uuid.UUID(str(order_id)))
    if not order:
        raise NotFoundException("Order")
    return order


def record_razorpay_order(db: Session, user_id, razorpay_order: dict) -> RazorpayOrder:
    """Remember a gateway order and the amount (paise) it was opened for."""
    record = RazorpayOrder(
        id=razorpay_order["id"],
        user_id=uuid.UUID(str(user_id)),
        amount=int(razorpay_order["amount"]),
        currency=razorpay_order.get("currency") or "INR",
        receipt=razorpay_order.get("receipt"),
    )
    db.add(record)
    db.commit()
    return record


def mark_order_paid(db: Session, razorpay_order_id: str, razorpay_payment_id: str) -> Optional[Order]:
    """
    Flip the order referencing this Razorpay order to paid.

    Returns the order if its payment status changed. Returns None when no
    local order references the gateway id, it was already paid (duplicate
    callback), or the gateway order does not match the order's owner and
    total; the last case is written to the audit log.
    """
    order = db.query(Order).filter(Order.razorpay_order_id == razorpay_order_id).first()
    if not order or order.payment_status == "paid":
        return None

    gateway_order = db.get(RazorpayOrder, razorpay_order_id)
    expected = to_paise(order.total_amount)
    if (
        gateway_order is None
        or gateway_order.user_id != order.user_id
        or gateway_order.currency != "INR"
        or gateway_order.amount != expected
    ):
        logger.warning(
            f"Order {order.order_number} not marked paid: Razorpay order {razorpay_order_id} "
            f"is for {gateway_order.amount if gateway_order else None} paise, order total is {expected}"
        )
        log_audit_event(
            db,
            action="PAYMENT_AMOUNT_MISMATCH",
            target_type="order",
            target_id=str(order.id),
            details={
                "razorpay_order_id": razorpay_order_id,
                "payment_id": razorpay_payment_id,
                "paid_paise": gateway_order.amount if gateway_order else None,
                "expected_paise": expected,
            },
        )
        return None

    order.payment_status = "paid"
    order.razorpay_payment_id = razorpay_payment_id
    if order.order_status == "pending":
        order.order_status = "confirmed"
    db.commit()
    db.refresh(order)
    logger.info(f"Order {order.order_number} marked paid ({razorpay_payment_id})")
    return order


def update_status(
    db: Session,
    order: Order,
    order_status: Optional[str] = None,
    payment_status: Optional[str] = None,
) -> dict:
    """
    Apply status changes. Returns {"order_status": (old, new), ...} for the
    fields that actually changed.
    """
    changes = {}
    if order_status is not None and order_status != order.order_status:
        if order_status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {order_status}")
        changes["order_status"] = (order.order_status, order_status)
        order.order_status = order_status
    if payment_status is not None and payment_status != order.payment_status:
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown payment status: {payment_status}")
        changes["payment_status"] = (order.payment_status, payment_status)
        order.payment_status = payment_status

    if changes:
        db.commit()
        db.refresh(order)
    return changes
