import uuid
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class User(Base):
    """Login account. Everything shop-facing lives on Profile."""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)

    last_login_at = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────────
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user", cascade="all, delete-orphan")


class Profile(Base):
    """
    Customer profile keyed by the account id.

    The primary key doubles as the uniqueness constraint that makes
    provisioning idempotent: a second insert for the same account can never
    create a duplicate row, it can only conflict.
    """
    __tablename__ = "profiles"

    id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        nullable=False,
    )
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(150), nullable=False, server_default="")
    phone = Column(String(20), nullable=False, server_default="")
    role = Column(
        SAEnum("customer", "admin", name="profile_role"),
        nullable=False,
        server_default="customer",
    )
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="profile")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
