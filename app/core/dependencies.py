"""
FastAPI dependencies used across routers.
Keep this file lean: only auth/DB/cache dependencies go here.
Business logic belongs in services/.
"""
import uuid
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jwt.exceptions import InvalidTokenError

from app.database import get_db
from app.core.security import decode_access_token
from app.core.exceptions import CredentialsException, ForbiddenException
from app.models.user import User, Profile
from app.services import profile_service
from app.services.store_settings_service import StoreSettingsCache

# tokenUrl must match the actual login endpoint path
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Validates the JWT access token and returns the authenticated User.
    """
    try:
        payload = decode_access_token(token)
        user_id: str = payload.get("sub")
        if user_id is None:
            raise CredentialsException()
    except InvalidTokenError:
        raise CredentialsException()

    user = db.get(User, _parse_uuid(user_id))
    if user is None:
        raise CredentialsException()
    return user


def get_current_profile(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    """The caller's profile, provisioned on the spot if it is missing."""
    profile, _ = profile_service.ensure_profile(db, current_user.id, current_user.email)
    return profile


def get_current_admin(
    profile: Profile = Depends(get_current_profile),
) -> Profile:
    """Role is read from the DB on every request, never trusted from the token."""
    if not profile.is_admin:
        raise ForbiddenException("Admin access required")
    return profile


def get_store_settings_cache(request: Request) -> StoreSettingsCache:
    return request.app.state.store_settings_cache


def _parse_uuid(value: str):
    try:
        return uuid.UUID(value)
    except ValueError:
        raise CredentialsException()
