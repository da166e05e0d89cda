"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy.
"""

from jogtracker.models.base import Base
from jogtracker.models.kv_record import KeyValueRecord

__all__ = [
    "Base",
    "KeyValueRecord",
]
