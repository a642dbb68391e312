"""
Store settings (site name, GST %, payment toggles) with an explicit TTL cache.

The cache is an object, not module state: create_app() builds one and keeps
it on app.state, routers receive it through the get_store_settings_cache
dependency, and writes call invalidate(). Tests build their own instance.
"""
import logging
import time
from typing import Any, Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import dialect_insert
from app.models.store_setting import StoreSetting

logger = logging.getLogger(__name__)

DEFAULT_STORE_SETTINGS = {
    "site_name": "WOW! Organics",
    "site_email": "contact@woworganics.com",
    "site_phone": "+91 1234567890",
    "gst_percentage": 18,
    "default_transport_charges": 50,
    "razorpay_enabled": True,
    "cod_enabled": True,
}


def load_store_settings(db: Session) -> dict[str, Any]:
    """Read every row and overlay it on the defaults."""
    rows = db.query(StoreSetting).all()
    values = dict(DEFAULT_STORE_SETTINGS)
    values.update({row.key: row.value for row in rows})
    return values


def upsert_store_setting(db: Session, key: str, value: Any) -> None:
    insert = dialect_insert(db)
    stmt = insert(StoreSetting).values(key=key, value=value)
    stmt = stmt.on_conflict_do_update(
        index_elements=["key"],
        set_={"value": stmt.excluded.value},
    )
    db.execute(stmt)
    db.commit()


class StoreSettingsCache:
    """Holds the last loaded settings and when they were fetched."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self.value: Optional[dict[str, Any]] = None
        self.fetched_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self.value is None or self.fetched_at is None:
            return False
        return (self._clock() - self.fetched_at) < self.ttl_seconds

    def get(self, db: Session) -> dict[str, Any]:
        if self.is_fresh():
            return self.value

        try:
            value = load_store_settings(db)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(f"Could not load store settings, serving defaults: {exc}")
            # Defaults are not cached, so the next request retries the DB
            return dict(DEFAULT_STORE_SETTINGS)

        self.value = value
        self.fetched_at = self._clock()
        return value

    def invalidate(self) -> None:
        self.value = None
        self.fetched_at = None
