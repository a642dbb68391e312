"""
Profile provisioning and updates.

A profile row is keyed by the account id. It is normally written at sign-up,
but sign-in must cope with it being absent, and two requests may try to
create it at once. ensure_profile() is therefore an idempotent upsert:
INSERT .. ON CONFLICT (id) DO NOTHING followed by a read. The primary key is
the source of truth; a lost race simply reads the winner's row.
"""
import logging
import uuid
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.database import dialect_insert
from app.models.user import Profile
from app.core.exceptions import ConflictException

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "customer"


def get_profile(db: Session, user_id) -> Optional[Profile]:
    return db.get(Profile, uuid.UUID(str(user_id)))


def find_profile_by_email(db: Session, email: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.email == email.strip().lower()).first()


def ensure_profile(
    db: Session,
    user_id,
    email: str,
    full_name: str = "",
    phone: str = "",
) -> tuple[Profile, bool]:
    """
    Return (profile, created). Never creates a duplicate and never fails
    because a concurrent request created the row first.

    Raises ConflictException only when the email already belongs to a
    *different* account's profile.
    """
    user_id = uuid.UUID(str(user_id))
    existing = db.get(Profile, user_id)
    if existing:
        return existing, False

    insert = dialect_insert(db)
    stmt = (
        insert(Profile)
        .values(
            id=user_id,
            email=email.strip().lower(),
            full_name=(full_name or "").strip(),
            phone=(phone or "").strip(),
            role=DEFAULT_ROLE,
        )
        .on_conflict_do_nothing(index_elements=["id"])
    )
    try:
        result = db.execute(stmt)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictException("This email is already linked to another account")

    created = result.rowcount == 1
    if not created:
        logger.info(f"Profile {user_id} was provisioned concurrently, re-reading")
    else:
        logger.info(f"Profile created for {email}")

    profile = db.get(Profile, user_id, populate_existing=True)
    return profile, created


def update_profile(db: Session, profile: Profile, full_name: Optional[str] = None, phone: Optional[str] = None) -> Profile:
    if full_name is not None:
        profile.full_name = full_name.strip()
    if phone is not None:
        profile.phone = phone.strip()
    db.commit()
    db.refresh(profile)
    return profile
