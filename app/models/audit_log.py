import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    """
    Immutable audit trail. Records are INSERT-only, never updated or deleted.

    Examples of actions recorded:
      PAYMENT_VERIFIED, PAYMENT_SIGNATURE_INVALID, PAYMENT_AMOUNT_MISMATCH,
      ORDER_STATUS_CHANGED, PAYMENT_STATUS_CHANGED, STORE_SETTING_UPDATED
    """
    __tablename__ = "audit_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    actor_id = Column(
        UUID(as_uuid=True),
        # SET NULL: preserve log even if the account is deleted
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(String(100), nullable=False, index=True)
    # "payment", "order", "setting"
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(100), nullable=True, index=True)
    details = Column(JSON, nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
