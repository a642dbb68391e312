import uuid
from sqlalchemy import Column, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from app.database import Base


class EmailOTP(Base):
    """
    Password-reset OTPs, one live row per email.

    - email is stored normalized (trimmed, lowercased) and is UNIQUE, so the
      database itself guarantees at most one outstanding code per address.
      Issuance replaces the row atomically (INSERT .. ON CONFLICT DO UPDATE).
    - Rows are deleted on successful verification (single use) or when a
      verification attempt finds them expired. There is no "used" flag.
    - No FK to users: a code is addressed to an email, not an account id.
    """
    __tablename__ = "email_otps"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    code = Column(String(6), nullable=False)
    issued_at = Column(TIMESTAMP(timezone=True), nullable=False)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)


class UsedResetToken(Base):
    """
    jti of every password-reset token that has been redeemed. The primary key
    makes redemption single use, even for two requests carrying the same token.
    """
    __tablename__ = "used_reset_tokens"

    jti = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=False, index=True)
    used_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
