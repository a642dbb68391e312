import hashlib
import hmac

import pytest

from app.core.exceptions import MissingFieldsException
from app.services.razorpay_service import compute_signature, verify_payment_signature

SECRET = "rzp_test_secret"
ORDER_ID = "order_NfZ8b2lV3q0aXy"
PAYMENT_ID = "pay_NfZ9kq1uJ7rT2m"


def test_signature_matches_reference_hmac():
    reference = hmac.new(SECRET.encode(), f"{ORDER_ID}|{PAYMENT_ID}".encode(), hashlib.sha256).hexdigest()
    assert compute_signature(ORDER_ID, PAYMENT_ID, SECRET) == reference
    assert reference == reference.lower()


def test_generated_signature_verifies():
    signature = compute_signature(ORDER_ID, PAYMENT_ID, SECRET)
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, secret=SECRET) is True


def test_default_secret_comes_from_settings():
    # conftest sets RAZORPAY_KEY_SECRET=rzp_test_secret
    signature = compute_signature(ORDER_ID, PAYMENT_ID, SECRET)
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature) is True


def test_any_single_character_mutation_fails():
    signature = compute_signature(ORDER_ID, PAYMENT_ID, SECRET)
    for i, ch in enumerate(signature):
        replacement = "0" if ch != "0" else "1"
        mutated = signature[:i] + replacement + signature[i + 1:]
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, mutated, secret=SECRET) is False


def test_uppercase_hex_is_not_accepted():
    signature = compute_signature(ORDER_ID, PAYMENT_ID, SECRET)
    if signature != signature.upper():
        assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature.upper(), secret=SECRET) is False


def test_signature_for_swapped_ids_fails():
    signature = compute_signature(PAYMENT_ID, ORDER_ID, SECRET)
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, secret=SECRET) is False


def test_wrong_secret_fails():
    signature = compute_signature(ORDER_ID, PAYMENT_ID, "someone-elses-secret")
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, secret=SECRET) is False


def test_non_ascii_signature_is_rejected_not_crashing():
    assert verify_payment_signature(ORDER_ID, PAYMENT_ID, "sïgnature", secret=SECRET) is False


def test_verification_is_deterministic():
    signature = compute_signature(ORDER_ID, PAYMENT_ID, SECRET)
    results = {verify_payment_signature(ORDER_ID, PAYMENT_ID, signature, secret=SECRET) for _ in range(5)}
    assert results == {True}


@pytest.mark.parametrize(
    "order_id, payment_id, signature, missing",
    [
        (None, PAYMENT_ID, "abc", ["razorpay_order_id"]),
        (ORDER_ID, "", "abc", ["razorpay_payment_id"]),
        (ORDER_ID, PAYMENT_ID, None, ["razorpay_signature"]),
        (None, None, None, ["razorpay_order_id", "razorpay_payment_id", "razorpay_signature"]),
    ],
)
def test_missing_fields(order_id, payment_id, signature, missing):
    with pytest.raises(MissingFieldsException) as exc:
        verify_payment_signature(order_id, payment_id, signature, secret=SECRET)
    assert exc.value.status_code == 400
    assert exc.value.detail["reason"] == "MissingFields"
    for name in missing:
        assert name in exc.value.detail["message"]
