"""
Audit log helper. Not an HTTP middleware: a utility function called
explicitly by router handlers after a security-relevant or state-changing
operation.

Usage:
    from app.middleware.audit_middleware import log_audit_event

    log_audit_event(db, action="PAYMENT_SIGNATURE_INVALID",
                    target_type="payment", target_id=body.razorpay_order_id,
                    details={"payment_id": body.razorpay_payment_id})
"""
import logging
from sqlalchemy.orm import Session
from typing import Optional
from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


def log_audit_event(
    db: Session,
    action: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[dict] = None,
    actor_id=None,
) -> AuditLog:
    """
    Insert an immutable audit log record and mirror it to the app log.

    Args:
        action: string constant like "PAYMENT_VERIFIED", "ORDER_STATUS_CHANGED"
        target_type: entity type affected ("payment", "order", "setting")
        target_id: identifier of the affected entity
        details: optional dict with extra context (never secrets or signatures)
        actor_id: UUID of the account that triggered it, if any
    """
    log = AuditLog(
        actor_id=actor_id,
        action=action,
        target_type=target_type,
        target_id=target_id,
        details=details,
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    logger.info(f"audit {action} {target_type}={target_id} {details or {}}")
    return log
