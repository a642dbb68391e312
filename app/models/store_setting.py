from sqlalchemy import Column, String, TIMESTAMP, JSON
from sqlalchemy.sql import func
from app.database import Base


class StoreSetting(Base):
    """Admin-editable key/value store settings (site name, GST %, toggles)."""
    __tablename__ = "store_settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
