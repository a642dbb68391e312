"""
Password hashing and the three JWT kinds the API hands out.

  access          sub=user id, role, ACCESS_TOKEN_EXPIRE_MINUTES
  refresh         sub=user id, REFRESH_TOKEN_EXPIRE_DAYS
  password_reset  sub=verified email, jti, RESET_TOKEN_EXPIRE_MINUTES

The "type" claim keeps one kind from being accepted where another is expected.
"""
import uuid
import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import Optional
from app.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(subject: str, token_type: str, lifetime: timedelta, now: Optional[datetime] = None, **claims) -> str:
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        **claims,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(user_id: str, role: str = "customer") -> str:
    return _encode(user_id, "access", timedelta(minutes=settings.access_token_expire_minutes), role=role)


def create_refresh_token(user_id: str) -> str:
    # No role claim: it is re-read from the profile on refresh
    return _encode(user_id, "refresh", timedelta(days=settings.refresh_token_expire_days))


def create_reset_token(email: str, now: Optional[datetime] = None) -> str:
    """
    Minted after a successful OTP verification. Bound to the verified email,
    so a token proven for one address can't be replayed against another.
    """
    return _encode(
        email,
        "password_reset",
        timedelta(minutes=settings.reset_token_expire_minutes),
        now=now,
        jti=uuid.uuid4().hex,
    )


def _decode(token: str, expected_type: str) -> dict:
    """Raises jwt.exceptions.InvalidTokenError (or a subclass) on any failure."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    if payload.get("type") != expected_type:
        raise InvalidTokenError(f"Not a {expected_type} token")
    return payload


def decode_access_token(token: str) -> dict:
    return _decode(token, "access")


def decode_refresh_token(token: str) -> dict:
    return _decode(token, "refresh")


def decode_reset_token(token: str) -> dict:
    return _decode(token, "password_reset")
