"""
Profile router.

POST /profiles is the storefront's "make sure my profile exists" call after
sign-up. It is safe to repeat and safe to race: the second caller gets the
row the first one created.
"""
import logging
import uuid
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_profile
from app.core.exceptions import NotFoundException
from app.core.rate_limiter import limiter
from app.models.user import Profile, User
from app.schemas.user import ProfileOut, ProfileCreateRequest, ProfileCreateResponse, ProfileUpdateRequest
from app.services import profile_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=ProfileCreateResponse)
@limiter.limit("10/minute")
def create_profile(
    request: Request,
    body: ProfileCreateRequest,
    db: Session = Depends(get_db),
):
    try:
        user_id = uuid.UUID(body.user_id)
    except ValueError:
        raise NotFoundException("User")
    # The account must exist; the profile row references it
    user = db.get(User, user_id)
    if not user:
        raise NotFoundException("User")
    if body.email.lower() != user.email:
        logger.warning(f"Profile request for {user_id} named {body.email}, using account email {user.email}")

    # The profile always carries the account email, never the one in the body
    profile, created = profile_service.ensure_profile(
        db, user_id, user.email, full_name=body.full_name, phone=body.phone
    )
    return {
        "profile": ProfileOut.model_validate(profile),
        "message": "Profile created successfully" if created else "Profile already exists",
    }


@router.get("/me", response_model=ProfileOut)
def get_me(profile: Profile = Depends(get_current_profile)):
    return profile


@router.patch("/me", response_model=ProfileOut)
def update_me(
    body: ProfileUpdateRequest,
    profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db),
):
    return profile_service.update_profile(db, profile, full_name=body.full_name, phone=body.phone)
