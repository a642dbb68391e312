from decimal import Decimal

from razorpay.errors import BadRequestError

from app.models.audit_log import AuditLog
from app.models.order import Order, RazorpayOrder
from app.services import order_service, razorpay_service, store_settings_service
from app.services.razorpay_service import compute_signature

SECRET = "rzp_test_secret"
RZP_ORDER = "order_NfZ8b2lV3q0aXy"
RZP_PAYMENT = "pay_NfZ9kq1uJ7rT2m"


def place_online_order(db, profile, total="640.00", gateway_paise=64000):
    if gateway_paise is not None:
        order_service.record_razorpay_order(
            db, profile.id, {"id": RZP_ORDER, "amount": gateway_paise, "currency": "INR", "receipt": "order_1"}
        )
    return order_service.create_order(
        db,
        user_id=profile.id,
        subtotal=Decimal("500.00"),
        gst_amount=Decimal("90.00"),
        transport_charges=Decimal("50.00"),
        total_amount=Decimal(total),
        payment_method="online",
        razorpay_order_id=RZP_ORDER,
    )


def verify(client, **overrides):
    payload = {
        "razorpay_order_id": RZP_ORDER,
        "razorpay_payment_id": RZP_PAYMENT,
        "razorpay_signature": compute_signature(RZP_ORDER, RZP_PAYMENT, SECRET),
    }
    payload.update(overrides)
    return client.post("/payments/verify", json=payload)


def audit_actions(db):
    db.expire_all()
    return [row.action for row in db.query(AuditLog).all()]


def test_valid_signature_marks_order_paid(client, db, customer, outbox):
    _, profile = customer
    order = place_online_order(db, profile)

    resp = verify(client)

    assert resp.status_code == 200
    body = resp.json()
    assert body["verified"] is True
    assert body["order_id"] == RZP_ORDER
    assert body["payment_id"] == RZP_PAYMENT

    db.expire_all()
    stored = db.get(Order, order.id)
    assert stored.payment_status == "paid"
    assert stored.order_status == "confirmed"
    assert stored.razorpay_payment_id == RZP_PAYMENT
    assert audit_actions(db) == ["PAYMENT_VERIFIED"]
    assert len(outbox) == 1
    assert order.order_number in outbox[0].body


def test_duplicate_callback_does_not_email_twice(client, db, customer, outbox):
    _, profile = customer
    place_online_order(db, profile)

    assert verify(client).json()["verified"] is True
    assert verify(client).json()["verified"] is True
    assert len(outbox) == 1


def test_valid_signature_without_local_order(client, db, outbox):
    resp = verify(client)
    assert resp.json()["verified"] is True
    assert outbox == []


def test_underpaid_gateway_order_does_not_settle_order(client, db, customer, outbox):
    _, profile = customer
    # Gateway order opened for ₹1, local order claims ₹5000
    order = place_online_order(db, profile, total="5000.00", gateway_paise=100)

    resp = verify(client)

    assert resp.json()["verified"] is True
    db.expire_all()
    stored = db.get(Order, order.id)
    assert stored.payment_status == "pending"
    assert stored.order_status == "pending"
    assert stored.razorpay_payment_id is None
    assert sorted(audit_actions(db)) == ["PAYMENT_AMOUNT_MISMATCH", "PAYMENT_VERIFIED"]
    mismatch = db.query(AuditLog).filter(AuditLog.action == "PAYMENT_AMOUNT_MISMATCH").one()
    assert mismatch.details["paid_paise"] == 100
    assert mismatch.details["expected_paise"] == 500000
    assert outbox == []


def test_unknown_gateway_order_does_not_settle_order(client, db, customer):
    _, profile = customer
    order = place_online_order(db, profile, gateway_paise=None)

    verify(client)

    db.expire_all()
    assert db.get(Order, order.id).payment_status == "pending"
    assert "PAYMENT_AMOUNT_MISMATCH" in audit_actions(db)


def test_gateway_order_of_another_customer_does_not_settle_order(client, db, customer, admin):
    _, profile = customer
    _, other = admin
    order_service.record_razorpay_order(db, other.id, {"id": RZP_ORDER, "amount": 64000, "currency": "INR"})
    order = place_online_order(db, profile, gateway_paise=None)

    verify(client)

    db.expire_all()
    assert db.get(Order, order.id).payment_status == "pending"


def test_invalid_signature_changes_nothing(client, db, customer, outbox):
    _, profile = customer
    order = place_online_order(db, profile)

    resp = verify(client, razorpay_signature="0" * 64)

    assert resp.status_code == 200
    assert resp.json()["verified"] is False
    assert resp.json()["reason"] == "InvalidSignature"

    db.expire_all()
    stored = db.get(Order, order.id)
    assert stored.payment_status == "pending"
    assert stored.order_status == "pending"
    assert stored.razorpay_payment_id is None
    assert audit_actions(db) == ["PAYMENT_SIGNATURE_INVALID"]
    assert outbox == []


def test_signature_for_another_payment_is_rejected(client, db, customer):
    _, profile = customer
    place_online_order(db, profile)
    other_signature = compute_signature(RZP_ORDER, "pay_SomeoneElse00", SECRET)

    resp = verify(client, razorpay_signature=other_signature)
    assert resp.json()["verified"] is False


def test_missing_fields_is_400(client, db):
    resp = client.post("/payments/verify", json={"razorpay_order_id": RZP_ORDER})

    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["reason"] == "MissingFields"
    assert "razorpay_payment_id" in detail["message"]
    assert "razorpay_signature" in detail["message"]
    assert audit_actions(db) == []


def test_create_order_converts_to_paise(client, db, customer, auth_headers, monkeypatch):
    user, _ = customer
    captured = {}

    def fake_create(data):
        captured.update(data)
        return {"id": RZP_ORDER, "amount": data["amount"], "currency": data["currency"], "receipt": data["receipt"]}

    monkeypatch.setattr(razorpay_service.client.order, "create", fake_create)

    resp = client.post("/payments/create-order", json={"amount": 640.5}, headers=auth_headers(user))

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == RZP_ORDER
    assert body["amount"] == 64050
    assert body["currency"] == "INR"
    assert body["razorpay_key_id"] == "rzp_test_key"
    assert captured["receipt"].startswith("order_")

    recorded = db.get(RazorpayOrder, RZP_ORDER)
    assert recorded.amount == 64050
    assert recorded.user_id == user.id


def test_create_order_gateway_error_is_502(client, customer, auth_headers, monkeypatch):
    user, _ = customer

    def failing_create(data):
        raise BadRequestError("The amount must be at least INR 1.00")

    monkeypatch.setattr(razorpay_service.client.order, "create", failing_create)

    resp = client.post("/payments/create-order", json={"amount": 10}, headers=auth_headers(user))
    assert resp.status_code == 502
    assert resp.json()["detail"]["reason"] == "PaymentGateway"


def test_create_order_rejects_amount_below_one_rupee(client, customer, auth_headers):
    user, _ = customer
    resp = client.post("/payments/create-order", json={"amount": 0.5}, headers=auth_headers(user))
    assert resp.status_code == 422


def test_create_order_blocked_when_online_payments_disabled(client, db, customer, auth_headers):
    user, _ = customer
    store_settings_service.upsert_store_setting(db, "razorpay_enabled", False)

    resp = client.post("/payments/create-order", json={"amount": 100}, headers=auth_headers(user))
    assert resp.status_code == 403


def test_create_order_requires_login(client):
    assert client.post("/payments/create-order", json={"amount": 100}).status_code == 401
