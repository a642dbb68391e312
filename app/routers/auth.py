"""
Auth router: registration, login, token refresh, password reset, phone OTP.

Password reset (email OTP):
  1. POST /auth/send-email-otp    → issue OTP + email it (404 if no account)
  2. POST /auth/verify-email-otp  → consume OTP → short-lived reset token
  3. POST /auth/reset-password    → reset token + new password

Phone verification (2Factor SMS):
  1. POST /auth/send-otp   → 2Factor texts a code, returns session_id
  2. POST /auth/verify-otp → session_id + code
"""
import uuid
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from jwt.exceptions import InvalidTokenError

from app.config import settings
from app.database import get_db
from app.core.rate_limiter import limiter
from app.core.security import decode_refresh_token
from app.core.exceptions import CredentialsException
from app.schemas.auth import (
    RegisterRequest, LoginRequest, LoginResponse, RefreshTokenRequest, TokenResponse,
    CheckEmailRequest, CheckEmailResponse, SendEmailOTPRequest, SendEmailOTPResponse,
    VerifyEmailOTPRequest, VerifyEmailOTPResponse, ResetPasswordRequest,
    SendPhoneOTPRequest, SendPhoneOTPResponse, VerifyPhoneOTPRequest, SuccessResponse,
)
from app.schemas.user import ProfileOut
from app.services import auth_service, profile_service, sms_service
from app.models.user import User

router = APIRouter()


# ── Register / Login ──────────────────────────────────────────────────────────

@router.post("/register", response_model=LoginResponse, status_code=201)
@limiter.limit("5/minute")
async def register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
):
    user, profile = auth_service.register_user(
        db,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        phone=body.phone,
    )
    access_token, refresh_token = auth_service.issue_tokens(user, profile)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "profile": ProfileOut.model_validate(profile),
    }


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
):
    """Email + password sign-in. Provisions the profile if it is missing."""
    user, profile = auth_service.login(db, email=body.email, password=body.password)
    access_token, refresh_token = auth_service.issue_tokens(user, profile)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "profile": ProfileOut.model_validate(profile),
    }


@router.post("/refresh", response_model=TokenResponse)
@limiter.limit("20/minute")
async def refresh_token(
    request: Request,
    body: RefreshTokenRequest,
    db: Session = Depends(get_db),
):
    """Exchange a valid refresh token for a new access + refresh token pair."""
    try:
        payload = decode_refresh_token(body.refresh_token)
        user_id = uuid.UUID(str(payload.get("sub")))
    except (InvalidTokenError, ValueError):
        raise CredentialsException("Invalid or expired refresh token")

    user = db.get(User, user_id)
    if not user:
        raise CredentialsException()

    profile, _ = profile_service.ensure_profile(db, user.id, user.email)
    new_access, new_refresh = auth_service.issue_tokens(user, profile)
    return {
        "access_token": new_access,
        "refresh_token": new_refresh,
        "token_type": "bearer",
    }


@router.post("/check-email", response_model=CheckEmailResponse)
@limiter.limit("10/minute")
async def check_email(
    request: Request,
    body: CheckEmailRequest,
    db: Session = Depends(get_db),
):
    """Lets the sign-up form tell the customer an email is already registered."""
    return {"exists": profile_service.find_profile_by_email(db, body.email) is not None}


# ── Password reset via email OTP ──────────────────────────────────────────────

@router.post("/send-email-otp", response_model=SendEmailOTPResponse)
@limiter.limit("3/minute")
async def send_email_otp(
    request: Request,
    body: SendEmailOTPRequest,
    db: Session = Depends(get_db),
):
    """
    Issue a password-reset OTP.

    404 when no account owns the email (kept so the storefront can tell the
    customer; rate limiting bounds the enumeration this allows).
    500 DeliveryFailure when the email could not be sent.
    """
    record = await auth_service.request_password_reset(db, body.email)
    response = {"success": True, "message": "OTP sent to your email"}
    if not settings.is_production:
        response["debug_otp"] = record.code
    return response


@router.post("/verify-email-otp", response_model=VerifyEmailOTPResponse)
@limiter.limit("10/minute")
async def verify_email_otp(
    request: Request,
    body: VerifyEmailOTPRequest,
    db: Session = Depends(get_db),
):
    """400 with reason InvalidFormat | Invalid | Expired on failure."""
    token = auth_service.verify_password_reset_otp(db, body.email, body.code)
    return {"success": True, "token": token, "message": "OTP verified successfully"}


@router.post("/reset-password", response_model=SuccessResponse)
@limiter.limit("5/minute")
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
):
    auth_service.reset_password(db, email=body.email, token=body.token, new_password=body.new_password)
    return {"success": True, "message": "Password reset successfully"}


# ── Phone OTP (2Factor) ───────────────────────────────────────────────────────

@router.post("/send-otp", response_model=SendPhoneOTPResponse)
@limiter.limit("3/minute")
def send_phone_otp(request: Request, body: SendPhoneOTPRequest):
    session_id = sms_service.send_phone_otp(body.phone)
    return {"success": True, "session_id": session_id}


@router.post("/verify-otp", response_model=SuccessResponse)
@limiter.limit("10/minute")
def verify_phone_otp(request: Request, body: VerifyPhoneOTPRequest):
    sms_service.verify_phone_otp(body.session_id, body.otp)
    return {"success": True, "message": "Phone verified"}

