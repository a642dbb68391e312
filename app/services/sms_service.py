"""
Phone OTP via the 2Factor.in SMS API.

2Factor generates, stores and checks the code on its side; we only keep the
session id it returns and hand it back at verification time.

  send:   GET {base}/{api_key}/SMS/{phone}/AUTOGEN          → {"Status": "Success", "Details": <session_id>}
  verify: GET {base}/{api_key}/SMS/VERIFY/{session_id}/{otp} → {"Status": "Success", "Details": "OTP Matched"}
"""
import logging
import requests

from app.config import settings
from app.core.exceptions import DeliveryFailureException, InvalidOTPException

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15


def _call(path: str) -> dict:
    url = f"{settings.two_factor_base_url}/{settings.two_factor_api_key}/SMS/{path}"
    resp = requests.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
    return resp.json()


def send_phone_otp(phone: str) -> str:
    """Ask 2Factor to text an OTP. Returns the verification session id."""
    try:
        result = _call(f"{phone}/AUTOGEN")
    except (requests.RequestException, ValueError) as exc:
        logger.error(f"2Factor send failed for {phone}: {exc}")
        raise DeliveryFailureException("SMS") from exc

    if result.get("Status") != "Success":
        logger.error(f"2Factor refused to send OTP to {phone}: {result.get('Details')}")
        raise DeliveryFailureException("SMS")
    return result["Details"]


def verify_phone_otp(session_id: str, otp: str) -> None:
    """Raises InvalidOTPException unless 2Factor reports a match."""
    try:
        result = _call(f"VERIFY/{session_id}/{otp}")
    except (requests.RequestException, ValueError) as exc:
        logger.error(f"2Factor verify call failed: {exc}")
        raise DeliveryFailureException("SMS") from exc

    if result.get("Status") != "Success":
        raise InvalidOTPException("Invalid OTP")
