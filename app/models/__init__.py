# models/__init__.py
# Import all models here so that:
# 1. Alembic's env.py can import this single module and detect all tables.
# 2. SQLAlchemy relationship() calls resolve correctly (all classes in same metadata).

from app.models.user import User, Profile
from app.models.otp import EmailOTP, UsedResetToken
from app.models.order import Order, OrderItem, RazorpayOrder
from app.models.store_setting import StoreSetting
from app.models.audit_log import AuditLog

__all__ = [
    "User",
    "Profile",
    "EmailOTP",
    "UsedResetToken",
    "Order",
    "OrderItem",
    "RazorpayOrder",
    "StoreSetting",
    "AuditLog",
]
