import pytest
import requests

from app.core.exceptions import DeliveryFailureException, InvalidOTPException
from app.services import sms_service


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def calls(monkeypatch):
    """Records requested URLs; set calls.reply to control the 2Factor answer."""

    class Recorder(list):
        reply = {"Status": "Success", "Details": "sess-123"}

    recorder = Recorder()

    def fake_get(url, timeout=None):
        recorder.append(url)
        if isinstance(recorder.reply, Exception):
            raise recorder.reply
        return FakeResponse(recorder.reply)

    monkeypatch.setattr(sms_service.requests, "get", fake_get)
    return recorder


def test_send_returns_session_id(calls):
    assert sms_service.send_phone_otp("9876543210") == "sess-123"
    assert calls[0].endswith("/twofactor-key/SMS/9876543210/AUTOGEN")


def test_send_refused_by_provider(calls):
    calls.reply = {"Status": "Error", "Details": "Invalid Phone Number"}
    with pytest.raises(DeliveryFailureException) as exc:
        sms_service.send_phone_otp("9876543210")
    assert exc.value.status_code == 500
    assert "SMS" in exc.value.detail["message"]


def test_send_network_error(calls):
    calls.reply = requests.ConnectionError("timed out")
    with pytest.raises(DeliveryFailureException):
        sms_service.send_phone_otp("9876543210")


def test_verify_match(calls):
    calls.reply = {"Status": "Success", "Details": "OTP Matched"}
    sms_service.verify_phone_otp("sess-123", "482913")
    assert calls[0].endswith("/SMS/VERIFY/sess-123/482913")


def test_verify_mismatch(calls):
    calls.reply = {"Status": "Error", "Details": "OTP Mismatch"}
    with pytest.raises(InvalidOTPException):
        sms_service.verify_phone_otp("sess-123", "000000")


def test_send_otp_endpoint(client, calls):
    resp = client.post("/auth/send-otp", json={"phone": "98765-43210"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "session_id": "sess-123"}
    assert "/SMS/9876543210/AUTOGEN" in calls[0]


def test_send_otp_endpoint_rejects_bad_phone(client, calls):
    assert client.post("/auth/send-otp", json={"phone": "12345"}).status_code == 422
    assert calls == []


def test_verify_otp_endpoint_mismatch(client, calls):
    calls.reply = {"Status": "Error", "Details": "OTP Mismatch"}
    resp = client.post("/auth/verify-otp", json={"session_id": "sess-123", "otp": "000000"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["reason"] == "Invalid"
