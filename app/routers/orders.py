"""
Orders router.

Customers create and list their own orders. Admins move orders through
their order / payment statuses; each change emails the customer (best-effort)
and is recorded in the audit log.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_profile, get_current_admin
from app.core.rate_limiter import limiter
from app.middleware.audit_middleware import log_audit_event
from app.models.user import Profile
from app.schemas.order import (
    OrderOut, OrderListResponse, OrderCreateRequest,
    OrderStatusUpdateRequest, OrderStatusUpdateResponse,
)
from app.services import order_service, profile_service
from app.services.email_service import send_order_confirmation_email_safe, send_status_email_safe

router = APIRouter()


@router.get("", response_model=OrderListResponse)
def list_my_orders(
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    """Newest first."""
    orders = order_service.list_orders(db, profile.id)
    return {"orders": [OrderOut.model_validate(o) for o in orders]}


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def create_order(
    request: Request,
    body: OrderCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    order = order_service.create_order(
        db,
        user_id=profile.id,
        subtotal=body.subtotal,
        gst_amount=body.gst_amount,
        transport_charges=body.transport_charges,
        total_amount=body.total_amount,
        payment_method=body.payment_method,
        razorpay_order_id=body.razorpay_order_id,
        notes=body.notes,
        items=[item.model_dump() for item in body.items],
        shipping_address=body.shipping_address.model_dump(),
    )
    await send_order_confirmation_email_safe(profile.email, profile.full_name, order)
    return order


@router.patch("/{order_id}/status", response_model=OrderStatusUpdateResponse)
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdateRequest,
    admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    order = order_service.get_order(db, order_id)
    changes = order_service.update_status(
        db, order, order_status=body.order_status, payment_status=body.payment_status
    )

    customer = profile_service.get_profile(db, order.user_id)
    emails_sent = 0
    for kind, (old, new) in changes.items():
        log_audit_event(
            db,
            action=f"{kind.upper()}_CHANGED",
            target_type="order",
            target_id=str(order.id),
            details={"from": old, "to": new},
            actor_id=admin.id,
        )
        if customer and await send_status_email_safe(customer.email, customer.full_name, order, kind, new):
            emails_sent += 1

    return {
        "order": OrderOut.model_validate(order),
        "changed": list(changes),
        "emails_sent": emails_sent,
    }
