"""
Key/Value Record Model

Stores one persisted record (session list, app snapshot, backup) per key.
Values are JSON text; the schema lives in pydantic, not in the table.
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from jogtracker.models.base import Base


class KeyValueRecord(Base):
    """One logical record, last write wins."""

    __tablename__ = "kv_store"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<KeyValueRecord {self.key} ({len(self.value or '')} chars)>"
