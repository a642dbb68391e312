import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import ExpiredOTPException, InvalidOTPException, InvalidOTPFormatException
from app.database import Base
from app.models.otp import EmailOTP
from app.services import otp_service

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)


def live_codes(db, email):
    db.expire_all()
    return db.query(EmailOTP).filter(EmailOTP.email == email).all()


def test_generated_codes_are_six_digits_in_range():
    for _ in range(200):
        code = otp_service.generate_otp()
        assert len(code) == 6
        assert 100000 <= int(code) <= 999999


def test_issue_normalizes_email_and_sets_ten_minute_expiry(db):
    record = otp_service.issue_otp(db, "  Asha@Example.COM ", now=NOW)

    assert record.email == "asha@example.com"
    expires_at = record.expires_at.replace(tzinfo=timezone.utc) if record.expires_at.tzinfo is None else record.expires_at
    assert expires_at - NOW == timedelta(minutes=10)


def test_second_issue_replaces_first(db):
    first = otp_service.issue_otp(db, "asha@example.com", now=NOW).code
    second = otp_service.issue_otp(db, "asha@example.com", now=NOW + timedelta(seconds=5)).code

    assert len(live_codes(db, "asha@example.com")) == 1
    if first != second:
        with pytest.raises(InvalidOTPException):
            otp_service.verify_otp(db, "asha@example.com", first, now=NOW + timedelta(seconds=10))
    assert otp_service.verify_otp(db, "asha@example.com", second, now=NOW + timedelta(seconds=10)) == "asha@example.com"


def test_concurrent_issuance_leaves_one_live_record(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'otp.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    make_session = sessionmaker(bind=engine, autoflush=False)

    rounds, workers = 10, 4
    barrier = threading.Barrier(workers)
    errors, issued = [], []

    def issue(email):
        session = make_session()
        try:
            for _ in range(rounds):
                barrier.wait()
                issued.append(otp_service.issue_otp(session, email, now=NOW).code)
        except Exception as exc:
            errors.append(exc)
            barrier.abort()
        finally:
            session.close()

    emails = ["asha@example.com", "ASHA@example.com", " Asha@Example.com", "asha@EXAMPLE.com"]
    threads = [threading.Thread(target=issue, args=(email,)) for email in emails]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    try:
        assert errors == []
        assert len(issued) == rounds * workers
        check = make_session()
        rows = check.query(EmailOTP).all()
        check.close()
        assert len(rows) == 1
        assert rows[0].email == "asha@example.com"
        assert rows[0].code in issued
    finally:
        engine.dispose()


def test_table_rejects_a_second_row_for_the_same_email(db):
    otp_service.issue_otp(db, "asha@example.com", now=NOW)
    db.add(EmailOTP(email="asha@example.com", code="123456", issued_at=NOW, expires_at=NOW))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_code_is_single_use(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code

    otp_service.verify_otp(db, "asha@example.com", code, now=NOW + timedelta(minutes=1))

    with pytest.raises(InvalidOTPException):
        otp_service.verify_otp(db, "asha@example.com", code, now=NOW + timedelta(minutes=1))
    assert live_codes(db, "asha@example.com") == []


def test_code_valid_just_before_expiry(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code
    assert otp_service.verify_otp(
        db, "asha@example.com", code, now=NOW + timedelta(minutes=9, seconds=59)
    ) == "asha@example.com"


def test_code_expired_just_after_expiry_and_row_deleted(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code

    with pytest.raises(ExpiredOTPException):
        otp_service.verify_otp(db, "asha@example.com", code, now=NOW + timedelta(minutes=10, seconds=1))
    assert live_codes(db, "asha@example.com") == []

    # Once deleted, the same code is just unknown
    with pytest.raises(InvalidOTPException):
        otp_service.verify_otp(db, "asha@example.com", code, now=NOW + timedelta(minutes=10, seconds=2))


def test_expiry_is_inclusive_at_exactly_ten_minutes(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code
    with pytest.raises(ExpiredOTPException):
        otp_service.verify_otp(db, "asha@example.com", code, now=NOW + timedelta(minutes=10))


def test_wrong_code_and_no_code_are_indistinguishable(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code
    wrong = "100000" if code != "100000" else "100001"

    with pytest.raises(InvalidOTPException) as wrong_code:
        otp_service.verify_otp(db, "asha@example.com", wrong, now=NOW)
    with pytest.raises(InvalidOTPException) as no_code:
        otp_service.verify_otp(db, "nobody@example.com", wrong, now=NOW)

    assert wrong_code.value.detail == no_code.value.detail
    # A wrong guess doesn't burn the real code
    assert len(live_codes(db, "asha@example.com")) == 1


@pytest.mark.parametrize("bad_code", ["12a456", "12345", "1234567", "", "١٢٣٤٥٦"])
def test_malformed_codes_rejected_before_lookup(bad_code):
    # db=None: any attempt to query would blow up with AttributeError
    with pytest.raises(InvalidOTPFormatException):
        otp_service.verify_otp(None, "asha@example.com", bad_code)


def test_whitespace_inside_code_is_ignored(db):
    code = otp_service.issue_otp(db, "asha@example.com", now=NOW).code
    spaced = f" {code[:3]} {code[3:]}\n"
    assert otp_service.verify_otp(db, " ASHA@example.com", spaced, now=NOW) == "asha@example.com"


def test_discard_removes_only_that_record(db):
    record = otp_service.issue_otp(db, "asha@example.com", now=NOW)
    otp_service.issue_otp(db, "ravi@example.com", now=NOW)

    otp_service.discard_otp(db, record)

    assert live_codes(db, "asha@example.com") == []
    assert len(live_codes(db, "ravi@example.com")) == 1
