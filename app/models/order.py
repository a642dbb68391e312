import uuid
from sqlalchemy import Column, String, Text, Integer, Numeric, TIMESTAMP, ForeignKey, JSON, Enum as SAEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base

ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")


class Order(Base):
    __tablename__ = "orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    order_number = Column(String(30), unique=True, nullable=False, index=True)

    # Amounts in INR; subtotal is the sum of the item lines
    subtotal = Column(Numeric(10, 2), nullable=False)
    gst_amount = Column(Numeric(10, 2), nullable=False, server_default="0")
    transport_charges = Column(Numeric(10, 2), nullable=False, server_default="0")
    total_amount = Column(Numeric(10, 2), nullable=False)

    payment_method = Column(SAEnum("online", "cod", name="payment_method"), nullable=False)
    payment_status = Column(
        SAEnum(*PAYMENT_STATUSES, name="payment_status"),
        nullable=False,
        server_default="pending",
    )
    order_status = Column(
        SAEnum(*ORDER_STATUSES, name="order_status"),
        nullable=False,
        server_default="pending",
    )

    # Set when the checkout goes through Razorpay
    razorpay_order_id = Column(String(100), unique=True, nullable=True, index=True)
    razorpay_payment_id = Column(String(100), nullable=True)

    # Copy of the delivery address as it was at checkout
    # {full_name, phone, address_line1, address_line2, city, state, pincode}
    shipping_address = Column(JSON, nullable=True)

    notes = Column(Text, nullable=True)
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

    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin",
    )


class OrderItem(Base):
    """One product line. Names and prices are copied so later catalogue edits don't rewrite history."""
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, nullable=False)
    order_id = Column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    product_id = Column(String(100), nullable=False)
    variant_id = Column(String(100), nullable=True)
    product_name = Column(String(255), nullable=False)
    variant_name = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    gst_amount = Column(Numeric(10, 2), nullable=False, server_default="0")
    # unit_price * quantity
    total_price = Column(Numeric(10, 2), nullable=False)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    order = relationship("Order", back_populates="items")


class RazorpayOrder(Base):
    """
    Every order this API opened at Razorpay, with the amount it asked for.

    A verified signature only proves the customer paid *this* gateway order;
    the stored amount is what ties that payment to a local order total.
    """
    __tablename__ = "razorpay_orders"

    id = Column(String(100), primary_key=True)
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount = Column(Integer, nullable=False)    # paise
    currency = Column(String(3), nullable=False, server_default="INR")
    receipt = Column(String(100), nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
