"""
Email OTP lifecycle for password reset.

Per email the states are:  NoCode → Issued → {Consumed | Expired}
Consumed and Expired both end with the row deleted, so a new code can only
ever be issued from "no row".

Design decisions:
  1. Issuance is a single INSERT .. ON CONFLICT (email) DO UPDATE against the
     unique email column. Two racing issuances can't leave two live rows;
     the last writer's code wins.
  2. Verification claims the row with a DELETE by id and checks the rowcount,
     so two concurrent verifications of the same code can't both succeed.
  3. Expiry is inclusive: a code is dead at exactly issued_at + 10 minutes.
  4. secrets.randbelow() is cryptographically secure (unlike random.randint).
  5. "No such code" and "wrong code" raise the same InvalidOTPException.
"""
import logging
import re
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.orm import Session

from app.config import settings
from app.database import dialect_insert
from app.models.otp import EmailOTP
from app.core.exceptions import InvalidOTPFormatException, InvalidOTPException, ExpiredOTPException

logger = logging.getLogger(__name__)

OTP_PATTERN = re.compile(r"^\d{6}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp() -> str:
    """
    secrets.randbelow(900000) gives 0–899999, +100000 gives 100000–999999.
    Always 6 digits, no leading zero.
    """
    return str(secrets.randbelow(900000) + 100000)


def clean_otp(code) -> str:
    """Strip all whitespace and enforce exactly six ASCII digits."""
    cleaned = re.sub(r"\s", "", str(code if code is not None else ""))
    # re's \d also matches non-ASCII digits like '١'
    if not OTP_PATTERN.match(cleaned) or not cleaned.isascii():
        raise InvalidOTPFormatException()
    return cleaned


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def issue_otp(db: Session, email: str, now: Optional[datetime] = None) -> EmailOTP:
    """
    Replace whatever code exists for this email with a fresh one.
    Returns the stored record (its `code` is what gets emailed).
    """
    email = normalize_email(email)
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=settings.otp_expiry_minutes)

    insert = dialect_insert(db)
    stmt = insert(EmailOTP).values(
        id=uuid.uuid4(),
        email=email,
        code=generate_otp(),
        issued_at=issued_at,
        expires_at=expires_at,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["email"],
        set_={
            "id": stmt.excluded.id,
            "code": stmt.excluded.code,
            "issued_at": stmt.excluded.issued_at,
            "expires_at": stmt.excluded.expires_at,
        },
    )
    db.execute(stmt)
    db.commit()

    record = db.query(EmailOTP).filter(EmailOTP.email == email).one()
    logger.info(f"OTP issued for {email}, expires at {expires_at.isoformat()}")
    return record


def discard_otp(db: Session, record: EmailOTP) -> None:
    """Remove a specific issued code (used when its email could not be delivered)."""
    db.query(EmailOTP).filter(EmailOTP.id == record.id).delete(synchronize_session=False)
    db.commit()


def verify_otp(db: Session, email: str, code, now: Optional[datetime] = None) -> str:
    """
    Consume a code. Returns the normalized email on success.

    Raises:
      InvalidOTPFormatException: not six digits (checked before any lookup)
      InvalidOTPException: no live record for this (email, code)
      ExpiredOTPException: record found but past expires_at (row is deleted)
    """
    code = clean_otp(code)
    email = normalize_email(email)
    now = now or datetime.now(timezone.utc)

    record = (
        db.query(EmailOTP)
        .filter(EmailOTP.email == email, EmailOTP.code == code)
        .first()
    )
    if not record:
        logger.warning(f"OTP verification failed for {email}: no matching code")
        raise InvalidOTPException()

    record_id = record.id
    expired = now >= _as_utc(record.expires_at)

    claimed = (
        db.query(EmailOTP)
        .filter(EmailOTP.id == record_id)
        .delete(synchronize_session=False)
    )
    db.commit()

    if expired:
        logger.info(f"OTP expired for {email}")
        raise ExpiredOTPException()

    if claimed == 0:
        # Another request consumed (or replaced) the row between our read and delete
        logger.warning(f"OTP for {email} was already consumed")
        raise InvalidOTPException()

    logger.info(f"OTP verified for {email}")
    return email
