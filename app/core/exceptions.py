"""
Centralised custom exceptions.

The OTP and payment paths return a structured detail so clients can branch
on a stable reason code instead of parsing the message:

    {"detail": {"reason": "Expired", "message": "OTP has expired. Please request a new one."}}
"""
from fastapi import HTTPException, status


def _reason(reason: str, message: str) -> dict:
    return {"reason": reason, "message": message}


class CredentialsException(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenException(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundException(HTTPException):
    def __init__(self, resource: str = "Resource", message: str = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_reason("NotFound", message or f"{resource} not found"),
        )


class ConflictException(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidOTPFormatException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_reason("InvalidFormat", "OTP must be exactly 6 digits"),
        )


class InvalidOTPException(HTTPException):
    # Same response for "wrong code" and "no code issued" so neither leaks
    def __init__(self, message: str = "Invalid OTP. Please check the code and try again."):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_reason("Invalid", message),
        )


class ExpiredOTPException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_reason("Expired", "OTP has expired. Please request a new one."),
        )


class MissingFieldsException(HTTPException):
    def __init__(self, fields: list[str]):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_reason(
                "MissingFields",
                f"Missing required fields: {', '.join(fields)}",
            ),
        )


class DeliveryFailureException(HTTPException):
    def __init__(self, channel: str = "email"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=_reason(
                "DeliveryFailure",
                f"Failed to send {channel}. Please try again.",
            ),
        )


class InvalidResetTokenException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_reason("InvalidToken", "Reset link is invalid or has expired"),
        )


class PaymentGatewayException(HTTPException):
    def __init__(self, message: str = "Payment gateway rejected the request. Please try again."):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=_reason("PaymentGateway", message),
        )
