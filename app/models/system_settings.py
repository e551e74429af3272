# app/models/system_settings.py - Key/value policy rows (academic standing rules, credit limits)
from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func
from app.models.base import Base

class SystemSetting(Base):
    __tablename__ = "system_settings"

    key = Column(String(64), primary_key=True)
    value = Column(JSON, nullable=False)
    description = Column(String(256))
    updated_by = Column(String(64))
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SystemSetting(key={self.key}, value={self.value})>"
