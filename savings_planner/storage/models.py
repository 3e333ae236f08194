"""Key/value storage model."""
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.sql import func

from savings_planner.database import Base


class StorageEntry(Base):
    """A single string value under a string key, like browser local storage."""

    __tablename__ = "storage_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
