"""
Auth service: higher-level auth operations that combine multiple lower-level services.
Keeps routers thin: routers only handle HTTP, services handle logic.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from app.database import dialect_insert
from app.models.otp import EmailOTP, UsedResetToken
from app.models.user import User, Profile
from app.core.security import (
    hash_password, verify_password, create_access_token, create_refresh_token,
    create_reset_token, decode_reset_token, pwd_context,
)
from app.core.exceptions import (
    ConflictException, CredentialsException, DeliveryFailureException,
    InvalidResetTokenException, NotFoundException,
)
from app.services import otp_service, profile_service
from app.services.email_service import send_password_reset_otp_email

logger = logging.getLogger(__name__)

# Pre-computed bcrypt hash used ONLY for constant-time comparison when the user
# doesn't exist, so login answers in the same time for unknown email and bad password.
_DUMMY_HASH: str = pwd_context.hash("__dummy_timing_prevention__")


def issue_tokens(user: User, profile: Profile) -> tuple[str, str]:
    return (
        create_access_token(str(user.id), profile.role),
        create_refresh_token(str(user.id)),
    )


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == otp_service.normalize_email(email)).first()


def register_user(db: Session, email: str, password: str, full_name: str = "", phone: str = "") -> tuple[User, Profile]:
    """Creates the account, then provisions its profile."""
    email = otp_service.normalize_email(email)
    if get_user_by_email(db, email):
        raise ConflictException("An account with this email already exists")

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)

    profile, _ = profile_service.ensure_profile(db, user.id, email, full_name, phone)
    return user, profile


def login(db: Session, email: str, password: str) -> tuple[User, Profile]:
    """
    Validates credentials and makes sure a profile exists for the account.
    Same error for unknown email and wrong password.
    """
    user = get_user_by_email(db, email)
    password_ok = verify_password(password, user.hashed_password if user else _DUMMY_HASH)
    if not user or not password_ok:
        raise CredentialsException("Invalid email or password")

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    profile, created = profile_service.ensure_profile(db, user.id, user.email)
    if created:
        logger.info(f"Profile for {user.email} was missing at sign-in and has been created")
    return user, profile


async def request_password_reset(db: Session, email: str, now: Optional[datetime] = None) -> EmailOTP:
    """
    Issue a reset OTP and email it.

    Raises NotFoundException if no profile owns the email, and
    DeliveryFailureException if the email could not be sent. In the latter
    case the freshly issued code is discarded so an undelivered code is
    never left live.
    """
    email = otp_service.normalize_email(email)
    profile = profile_service.find_profile_by_email(db, email)
    if not profile:
        logger.info(f"Password reset requested for unknown email {email}")
        raise NotFoundException(message="No account found with this email address")

    record = otp_service.issue_otp(db, email, now=now)
    try:
        await send_password_reset_otp_email(email, profile.full_name, record.code, record.expires_at)
    except DeliveryFailureException:
        otp_service.discard_otp(db, record)
        raise
    return record


def verify_password_reset_otp(db: Session, email: str, code, now: Optional[datetime] = None) -> str:
    """Consume the OTP and return a reset token bound to the email."""
    verified_email = otp_service.verify_otp(db, email, code, now=now)
    return create_reset_token(verified_email)


def reset_password(db: Session, email: str, token: str, new_password: str) -> None:
    """Set a new password for the account the reset token was issued to."""
    email = otp_service.normalize_email(email)
    try:
        payload = decode_reset_token(token)
    except InvalidTokenError:
        raise InvalidResetTokenException()
    if payload.get("sub") != email:
        logger.warning(f"Reset token for {payload.get('sub')} presented for {email}")
        raise InvalidResetTokenException()

    jti = payload.get("jti")
    if not jti:
        raise InvalidResetTokenException()

    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundException("User")

    # Claim the jti in the same transaction as the new hash
    insert = dialect_insert(db)
    claim = db.execute(
        insert(UsedResetToken)
        .values(jti=jti, email=email)
        .on_conflict_do_nothing(index_elements=["jti"])
    )
    if claim.rowcount != 1:
        db.rollback()
        logger.warning(f"Reset token {jti} for {email} was already used")
        raise InvalidResetTokenException()

    user.hashed_password = hash_password(new_password)
    db.commit()
    logger.info(f"Password reset for {email}")
