"""
Transactional email via fastapi-mail (SMTP).

Gmail setup steps (do this once):
  1. Enable 2-Factor Authentication on the store Gmail account
  2. Google Account → Security → App Passwords → create one for "Mail"
  3. Use that 16-character password as MAIL_PASSWORD in your .env

Port 587 uses STARTTLS (MAIL_STARTTLS=True, MAIL_SSL_TLS=False).

Delivery policy:
  - The password-reset OTP email is mandatory: an SMTP failure is raised as
    DeliveryFailureException so the caller can report it.
  - Order / status emails are notifications only: failures are logged and
    swallowed by the *_safe wrappers so they never fail the order operation.
"""
import logging
from datetime import datetime, timedelta, timezone
from html import escape

from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from fastapi_mail.errors import ConnectionErrors

from app.config import settings
from app.core.exceptions import DeliveryFailureException

logger = logging.getLogger(__name__)

# Times in customer emails are shown in Indian Standard Time
IST = timezone(timedelta(hours=5, minutes=30), "IST")

mail_config = ConnectionConfig(
    MAIL_USERNAME=settings.mail_username,
    MAIL_PASSWORD=settings.mail_password,
    MAIL_FROM=settings.mail_from,
    MAIL_FROM_NAME=settings.mail_from_name,
    MAIL_PORT=settings.mail_port,
    MAIL_SERVER=settings.mail_server,
    MAIL_STARTTLS=True,
    MAIL_SSL_TLS=False,
    USE_CREDENTIALS=True,
    VALIDATE_CERTS=True,
    SUPPRESS_SEND=int(settings.mail_suppress_send),
)

fast_mail = FastMail(mail_config)

ORDER_STATUS_MESSAGES = {
    "confirmed": ("Order Confirmed!", "Great news! Your order has been confirmed and is being prepared for shipment.", "#3b82f6"),
    "processing": ("Order Processing", "Your order is now being processed and will be shipped soon.", "#8b5cf6"),
    "shipped": ("Order Shipped!", "Your order is on its way!", "#6366f1"),
    "delivered": ("Order Delivered!", "Your order has been successfully delivered. We hope you enjoy your products!", "#10b981"),
    "cancelled": ("Order Cancelled", "Your order has been cancelled. If you did not request this, please contact us immediately.", "#ef4444"),
}

PAYMENT_STATUS_MESSAGES = {
    "paid": ("Payment Received!", "We have received your payment successfully. Your order will be processed shortly.", "#10b981"),
    "failed": ("Payment Failed", "Unfortunately, your payment could not be processed. Please try again or contact support.", "#ef4444"),
    "pending": ("Payment Pending", "Your payment is pending. We will notify you once it is confirmed.", "#f59e0b"),
    "refunded": ("Payment Refunded", "Your payment has been refunded. It may take 5-7 business days to reflect in your account.", "#8b5cf6"),
}


def format_local_time(moment: datetime) -> str:
    """'03:45 PM' in IST. Naive datetimes are treated as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(IST).strftime("%I:%M %p")


def _layout(heading: str, subheading: str, content: str, accent: str = "#10b981") -> str:
    store = escape(settings.store_name)
    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f9fafb;">
  <div style="background: {accent}; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
    <h1 style="margin: 0; font-size: 28px;">{escape(heading)}</h1>
    <p style="margin: 10px 0 0; font-size: 18px;">{escape(subheading)}</p>
  </div>
  <div style="background: white; padding: 30px; border-radius: 0 0 10px 10px;">
    {content}
    <p style="margin-top: 30px; font-size: 14px; color: #6b7280;">Best regards,<br>The {store} Team</p>
  </div>
  <div style="text-align: center; padding: 20px; color: #6b7280; font-size: 12px;">
    <p style="margin: 5px 0;">Questions? Write to {escape(settings.support_email)}</p>
    <p style="margin: 5px 0;">This is an automated email. Please do not reply directly to this email.</p>
  </div>
</body>
</html>"""


def build_password_reset_otp_html(full_name: str, otp: str, expires_at: datetime) -> str:
    content = f"""
    <p style="font-size: 16px; margin-top: 0;">Hello {escape(full_name or "there")},</p>
    <p>We received a request to reset your password. Use the OTP below to proceed:</p>
    <div style="background: #f0fdf4; padding: 30px; border-radius: 8px; margin: 30px 0; text-align: center; border: 2px dashed #10b981;">
      <p style="margin: 0 0 10px; color: #059669; font-size: 14px; font-weight: 600;">YOUR OTP CODE</p>
      <h1 style="margin: 0; color: #10b981; font-size: 48px; letter-spacing: 8px;">{escape(otp)}</h1>
    </div>
    <div style="background: #fef3c7; padding: 15px; border-radius: 8px; border-left: 4px solid #f59e0b;">
      <p style="margin: 0; font-size: 14px;"><strong>Valid for {settings.otp_expiry_minutes} minutes</strong></p>
      <p style="margin: 5px 0 0; font-size: 14px;">This OTP will expire at {format_local_time(expires_at)}</p>
    </div>
    <p style="font-size: 14px;">If you didn't request this password reset, please ignore this email or contact our support team.</p>"""
    return _layout(settings.store_name, "Password Reset Request", content)


_CELL = "padding: 12px; border-bottom: 1px solid #e5e7eb;"


def _items_html(order) -> str:
    if not order.items:
        return ""
    rows = []
    for item in order.items:
        name = escape(item.product_name)
        if item.variant_name:
            name += f" ({escape(item.variant_name)})"
        rows.append(f"""
        <tr>
          <td style="{_CELL}">{name}</td>
          <td style="{_CELL} text-align: center;">{item.quantity}</td>
          <td style="{_CELL} text-align: right;">₹{item.unit_price:.2f}</td>
          <td style="{_CELL} text-align: right;">₹{item.total_price:.2f}</td>
        </tr>""")
    return f"""
    <table style="width: 100%; border-collapse: collapse; margin: 20px 0;">
      <tr style="background: #f3f4f6;">
        <th style="padding: 12px; text-align: left;">Item</th>
        <th style="padding: 12px; text-align: center;">Qty</th>
        <th style="padding: 12px; text-align: right;">Price</th>
        <th style="padding: 12px; text-align: right;">Total</th>
      </tr>{"".join(rows)}
    </table>"""


def _address_html(order) -> str:
    address = order.shipping_address
    if not address:
        return ""
    lines = [
        address.get("address_line1"),
        address.get("address_line2"),
        f"{address.get('city', '')}, {address.get('state', '')} - {address.get('pincode', '')}",
        f"Phone: {address.get('phone', '')}",
    ]
    body = "".join(f'\n      <p style="margin: 5px 0;">{escape(line)}</p>' for line in lines if line)
    return f"""
    <div style="background: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
      <h3 style="margin-top: 0; font-size: 18px;">Delivery Address</h3>
      <p style="margin: 5px 0;"><strong>{escape(address.get("full_name", ""))}</strong></p>{body}
    </div>"""


def _order_summary_html(order) -> str:
    """Items, delivery address and totals; shared by the confirmation and status emails."""
    return _items_html(order) + _address_html(order) + f"""
    <div style="background: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
      <p style="margin: 8px 0;"><strong>Order Number:</strong> {escape(order.order_number)}</p>
      <p style="margin: 8px 0;"><strong>Payment Method:</strong> {"Online" if order.payment_method == "online" else "Cash on Delivery"}</p>
      <p style="margin: 8px 0;"><strong>Subtotal:</strong> ₹{order.subtotal:.2f}</p>
      <p style="margin: 8px 0;"><strong>GST:</strong> ₹{order.gst_amount:.2f}</p>
      <p style="margin: 8px 0;"><strong>Transport:</strong> ₹{order.transport_charges:.2f}</p>
      <p style="margin: 8px 0;"><strong>Total:</strong> ₹{order.total_amount:.2f}</p>
    </div>"""


def build_order_confirmation_html(order, full_name: str) -> str:
    content = f"""
    <p style="font-size: 16px; margin-top: 0;">Hello {escape(full_name or "there")},</p>
    <p>Thank you for shopping with us! We've received your order.</p>
    {_order_summary_html(order)}"""
    return _layout(settings.store_name, "Order Confirmation", content)


def build_status_html(order, full_name: str, kind: str, new_status: str) -> str:
    """kind is "order_status" or "payment_status"."""
    messages = ORDER_STATUS_MESSAGES if kind == "order_status" else PAYMENT_STATUS_MESSAGES
    label = "Order" if kind == "order_status" else "Payment"
    title, message, color = messages.get(
        new_status,
        (f"{label} Status Updated", f"Your {label.lower()} status has been updated to: {new_status}", "#6b7280"),
    )
    content = f"""
    <p style="font-size: 16px; margin-top: 0;">Hello {escape(full_name or "there")},</p>
    <p>{escape(message)}</p>
    {_order_summary_html(order)}"""
    return _layout(title, f"{label}: {new_status.capitalize()}", content, accent=color)


async def _deliver(subject: str, email_to: str, html: str, channel: str = "email") -> None:
    message = MessageSchema(
        subject=subject,
        recipients=[email_to],
        body=html,
        subtype=MessageType.html,
    )
    try:
        await fast_mail.send_message(message)
    except ConnectionErrors as exc:
        logger.error(f"SMTP delivery to {email_to} failed: {exc}")
        raise DeliveryFailureException(channel) from exc


async def send_password_reset_otp_email(email_to: str, full_name: str, otp: str, expires_at: datetime) -> None:
    """Raises DeliveryFailureException if SMTP rejects the message."""
    await _deliver(
        f"Password Reset OTP - {settings.store_name}",
        email_to,
        build_password_reset_otp_html(full_name, otp, expires_at),
    )
    logger.info(f"Password reset OTP email sent to {email_to}")


async def send_order_confirmation_email(email_to: str, full_name: str, order) -> None:
    await _deliver(
        f"Order Confirmation - {order.order_number}",
        email_to,
        build_order_confirmation_html(order, full_name),
    )


async def send_status_email(email_to: str, full_name: str, order, kind: str, new_status: str) -> None:
    label = "Order" if kind == "order_status" else "Payment"
    await _deliver(
        f"{label} {new_status.capitalize()} - {order.order_number}",
        email_to,
        build_status_html(order, full_name, kind, new_status),
    )


async def send_order_confirmation_email_safe(email_to: str, full_name: str, order) -> bool:
    try:
        await send_order_confirmation_email(email_to, full_name, order)
    except DeliveryFailureException:
        logger.warning(f"Order confirmation email for {order.order_number} not delivered")
        return False
    return True


async def send_status_email_safe(email_to: str, full_name: str, order, kind: str, new_status: str) -> bool:
    try:
        await send_status_email(email_to, full_name, order, kind, new_status)
    except DeliveryFailureException:
        logger.warning(f"{kind} email ({new_status}) for {order.order_number} not delivered")
        return False
    return True
