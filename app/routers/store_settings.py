"""
Store settings router.

Reads go through the injected StoreSettingsCache; writes invalidate it so
the next read sees the change immediately instead of after the TTL.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.core.dependencies import get_current_admin, get_store_settings_cache
from app.middleware.audit_middleware import log_audit_event
from app.models.user import Profile
from app.schemas.store_settings import StoreSettingUpdateRequest
from app.services import store_settings_service
from app.services.store_settings_service import StoreSettingsCache

router = APIRouter()


@router.get("")
def get_store_settings(
    db: Session = Depends(get_db),
    cache: StoreSettingsCache = Depends(get_store_settings_cache),
):
    return cache.get(db)


@router.put("/{key}")
def update_store_setting(
    key: str,
    body: StoreSettingUpdateRequest,
    admin: Profile = Depends(get_current_admin),
    db: Session = Depends(get_db),
    cache: StoreSettingsCache = Depends(get_store_settings_cache),
):
    store_settings_service.upsert_store_setting(db, key, body.value)
    cache.invalidate()
    log_audit_event(
        db,
        action="STORE_SETTING_UPDATED",
        target_type="setting",
        target_id=key,
        details={"value": body.value},
        actor_id=admin.id,
    )
    return cache.get(db)
